"""Poll loop — one snapshot per tick, never two in flight."""
import asyncio
import logging
from typing import Optional

from .config import MUSIC_APP, REFRESH_SECONDS
from .errors import format_error
from .player import RemotePlayer
from .snapshot import build_snapshot
from .state import POLL, PresentationState

logger = logging.getLogger(__name__)

ERROR_MESSAGE = f"{MUSIC_APP}.app access denied or AppleScript error."


class Poller:
    def __init__(
        self,
        player: RemotePlayer,
        state: PresentationState,
        interval: float = REFRESH_SECONDS,
    ):
        self.player = player
        self.state = state
        self.interval = interval
        self._busy = False
        self._tasks: set[asyncio.Task] = set()
        self.ticks = 0

    @property
    def busy(self) -> bool:
        return self._busy

    async def tick(self):
        """Poll once. Dropped (not queued) while a previous tick is running."""
        if self._busy:
            return
        self._busy = True
        try:
            await self.player.ensure_launched()
            snapshot = await build_snapshot(self.player.bridge)
            self.ticks += 1
            self.state.publish(snapshot, origin=POLL)
        except Exception as e:
            status = format_error("poll", raw=str(e))
            self.state.publish_error(ERROR_MESSAGE, status=status)
        finally:
            self._busy = False

    def tick_soon(self) -> asyncio.Task:
        """Fire a tick without waiting for it (interval timer semantics)."""
        task = asyncio.create_task(self.tick())
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def run(self, iterations: Optional[int] = None):
        """First tick inline, then one tick per interval for the process lifetime."""
        await self.tick()
        n = 0
        while iterations is None or n < iterations:
            await asyncio.sleep(self.interval)
            self.tick_soon()
            n += 1
