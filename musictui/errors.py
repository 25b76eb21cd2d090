"""Structured error logging — JSON to errors.log, one-line status text."""
import json
import logging
import sys
from datetime import datetime
from typing import Optional

from .config import ERRORS_LOG, OUTPUT_DIR, DEV_MODE

logger = logging.getLogger(__name__)

_FRIENDLY_MESSAGES = {
    "poll": "Error fetching state.",
    "command": "Command failed.",
    "browse": "Couldn't read playlists.",
    "play_track": "Couldn't play track.",
    "trivia": "Trivia lookup failed.",
}


class BridgeError(Exception):
    """An automation bridge call failed (non-zero exit, missing tool, bad op)."""

    def __init__(self, operation: str, detail: str = ""):
        self.operation = operation
        self.detail = detail
        msg = f"{operation} failed"
        if detail:
            msg = f"{msg}: {detail}"
        super().__init__(msg)


def format_error(
    stage: str,
    raw: str = "",
    context: Optional[dict] = None,
) -> str:
    """Record an error and return a single line fit for the status bar."""
    entry = {
        "timestamp": datetime.now().isoformat(),
        "stage": stage,
        "context": context,
        "error": raw,
        "python": sys.version.split()[0],
    }

    _append_to_log(entry)
    logger.error("Error at %s: %s", stage, raw)

    if DEV_MODE:
        line = f"{stage}: {raw}"
        return line.splitlines()[0] if line else stage
    return _FRIENDLY_MESSAGES.get(stage, f"Something went wrong ({stage}).")


def _append_to_log(entry: dict):
    try:
        OUTPUT_DIR.mkdir(parents=True, exist_ok=True)
        with open(ERRORS_LOG, "a") as f:
            f.write(json.dumps(entry) + "\n")
    except OSError:
        pass
