"""PresentationState — the single live snapshot shown by the UI."""
import logging
from dataclasses import dataclass
from typing import Callable, Optional, Union

from .models import PlaybackSnapshot

logger = logging.getLogger(__name__)

POLL = "poll"
OPTIMISTIC = "optimistic"


@dataclass(frozen=True)
class ErrorState:
    """Degraded display used when the player can't be reached."""
    message: str


Listener = Callable[["PresentationState"], None]


class PresentationState:
    def __init__(self):
        self.current: Union[PlaybackSnapshot, ErrorState, None] = None
        self.origin: Optional[str] = None
        self.status: str = ""
        self._subscribers: list[Listener] = []
        self._status_from_error = False

    def subscribe(self, callback: Listener):
        """Register a callback run synchronously after every change."""
        self._subscribers.append(callback)

    def unsubscribe(self, callback: Listener):
        if callback in self._subscribers:
            self._subscribers.remove(callback)

    @property
    def snapshot(self) -> Optional[PlaybackSnapshot]:
        """Last published snapshot, or None before the first poll / in error."""
        if isinstance(self.current, PlaybackSnapshot):
            return self.current
        return None

    @property
    def error(self) -> Optional[ErrorState]:
        if isinstance(self.current, ErrorState):
            return self.current
        return None

    def publish(self, snapshot: PlaybackSnapshot, origin: str = POLL):
        """Replace the live snapshot wholesale and render now."""
        self.current = snapshot
        self.origin = origin
        if origin == POLL and self._status_from_error:
            self.status = ""
            self._status_from_error = False
        self._notify()

    def publish_error(self, message: str, status: str = ""):
        self.current = ErrorState(message)
        self.origin = POLL
        if status:
            self.status = status
            self._status_from_error = True
        self._notify()

    def set_status(self, message: str):
        self.status = message
        self._status_from_error = False
        self._notify()

    def notify(self):
        """Re-render without a state change (browse/trivia updates)."""
        self._notify()

    def _notify(self):
        for callback in list(self._subscribers):
            try:
                callback(self)
            except Exception:
                logger.exception("state subscriber failed")
