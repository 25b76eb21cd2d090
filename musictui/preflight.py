"""Startup preflight — checks the bridge and picks the trivia backend once."""
import shutil
from dataclasses import dataclass
from typing import Optional

import httpx
from rich.console import Console

from . import bridge as ops
from .bridge import Bridge
from .config import APP_VERSION, MUSIC_APP, OLLAMA_HOST, OLLAMA_MODEL, OPENAI_API_KEY, TRIVIA_BACKEND
from .errors import BridgeError

console = Console()


@dataclass(frozen=True)
class Capabilities:
    bridge_ok: bool
    trivia_backend: Optional[str]  # "openai" | "ollama" | None


async def run_preflight(bridge: Bridge, backend: str = TRIVIA_BACKEND) -> Capabilities:
    """
    Print the startup checklist and resolve capabilities. Never aborts:
    an unreachable player just shows up as the error state once polling starts.
    """
    console.print(f"\n  [bold]♪  Music Terminal UI v{APP_VERSION}[/bold] — preflight check\n")

    checks = [
        ("osascript", _check_osascript),
        (f"{MUSIC_APP} app", lambda: _check_bridge(bridge)),
        ("Trivia backend", lambda: _resolve_trivia(backend)),
    ]

    results = {}
    for i, (label, fn) in enumerate(checks, 1):
        ok, msg, value = await fn()
        results[label] = value
        icon = "[green]✓[/green]" if ok else "[yellow]![/yellow]"
        dots = "." * max(30 - len(label), 3)
        status = f"[green]{msg}[/green]" if ok else f"[yellow]{msg}[/yellow]"
        console.print(f"  [{i}/{len(checks)}] {label} {dots} {icon} {status}")

    console.print("")
    return Capabilities(
        bridge_ok=bool(results["osascript"]) and bool(results[f"{MUSIC_APP} app"]),
        trivia_backend=results["Trivia backend"],
    )


async def _check_osascript() -> tuple[bool, str, bool]:
    path = shutil.which("osascript")
    if not path:
        return False, "not found (macOS only) — state will show as an error", False
    return True, path, True


async def _check_bridge(bridge: Bridge) -> tuple[bool, str, bool]:
    try:
        running = await bridge.run(ops.IS_RUNNING)
    except BridgeError as e:
        return False, f"unreachable: {e}", False
    if running == "true":
        return True, "running", True
    return True, "not running — will launch", True


async def _resolve_trivia(backend: str) -> tuple[bool, str, Optional[str]]:
    if backend == "none":
        return True, "disabled", None
    if backend == "openai" or (backend == "auto" and OPENAI_API_KEY):
        if not OPENAI_API_KEY:
            return False, "OPENAI_API_KEY not set — trivia off", None
        return True, "openai", "openai"
    if backend in ("ollama", "auto"):
        if await _ollama_has_model():
            return True, f"ollama ({OLLAMA_MODEL})", "ollama"
        return False, "no OPENAI_API_KEY and no Ollama — trivia off", None
    return False, f"unknown backend '{backend}' — trivia off", None


async def _ollama_has_model() -> bool:
    try:
        async with httpx.AsyncClient(timeout=5) as client:
            r = await client.get(f"{OLLAMA_HOST}/api/tags")
            if r.status_code != 200:
                return False
            models = [m["name"] for m in r.json().get("models", [])]
            return any(
                m == OLLAMA_MODEL or m.startswith(OLLAMA_MODEL.split(":")[0])
                for m in models
            )
    except (httpx.HTTPError, ValueError, KeyError):
        return False
