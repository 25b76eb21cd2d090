"""Module 3 — Player actions on top of the automation bridge"""
import asyncio
import logging
import math

from . import bridge as ops
from .bridge import Bridge, parse_playlists, parse_track_records
from .config import LAUNCH_SETTLE_SECONDS
from .errors import BridgeError
from .models import PLAYING, TrackRecord, clamp_volume, next_repeat

logger = logging.getLogger(__name__)


def parse_float(raw: str) -> float:
    """Non-negative finite float, 0 on anything unparsable."""
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(value) or value < 0:
        return 0.0
    return value


def parse_int(raw: str) -> int:
    try:
        return int(float(raw))
    except (TypeError, ValueError, OverflowError):
        return 0


class RemotePlayer:
    """Best-effort remote control of the player.

    Reads go through safe() and fall back to a default; writes raise
    BridgeError so callers can tell the user something didn't land.
    """

    def __init__(self, bridge: Bridge, settle_seconds: float = LAUNCH_SETTLE_SECONDS):
        self.bridge = bridge
        self.settle_seconds = settle_seconds

    async def safe(self, operation: str, *args, default: str = "") -> str:
        try:
            return await self.bridge.run(operation, *args)
        except BridgeError as e:
            logger.debug("query %s fell back to %r: %s", operation, default, e)
            return default

    # ── Lifecycle ──────────────────────────────────────────────────────────────

    async def ensure_launched(self):
        """Launch the player if it isn't running, then give it a moment."""
        running = await self.safe(ops.IS_RUNNING, default="false")
        if running != "true":
            logger.info("player not running, launching")
            await self.bridge.run(ops.LAUNCH)
            await asyncio.sleep(self.settle_seconds)

    # ── Transport ──────────────────────────────────────────────────────────────

    async def play(self):
        await self.bridge.run(ops.PLAY)

    async def pause(self):
        await self.bridge.run(ops.PAUSE)

    async def toggle_play(self):
        """Pause if the player says it's playing, play otherwise."""
        state = await self.safe(ops.PLAYER_STATE, default="stopped")
        if state == PLAYING:
            await self.pause()
        else:
            await self.play()

    async def skip(self, forward: bool = True):
        # skipping alone can leave the player paused
        await self.bridge.run(ops.NEXT_TRACK if forward else ops.PREVIOUS_TRACK)
        await self.play()

    # ── Volume / position ──────────────────────────────────────────────────────

    async def get_volume(self) -> int:
        return clamp_volume(parse_int(await self.safe(ops.GET_VOLUME, default="0")))

    async def set_volume(self, level: int) -> int:
        level = clamp_volume(level)
        await self.bridge.run(ops.SET_VOLUME, level)
        return level

    async def step_volume(self, delta: int) -> int:
        return await self.set_volume(await self.get_volume() + delta)

    async def seek(self, delta: float) -> int:
        """Move the playhead by delta seconds, floored at the track start."""
        pos = parse_float(await self.safe(ops.GET_POSITION, default="0"))
        target = max(0, math.floor(pos + delta))
        await self.bridge.run(ops.SET_POSITION, target)
        return target

    # ── Modes ──────────────────────────────────────────────────────────────────

    async def toggle_shuffle(self) -> bool:
        current = await self.safe(ops.GET_SHUFFLE, default="false")
        enabled = current != "true"
        await self.bridge.run(ops.SET_SHUFFLE, enabled)
        return enabled

    async def cycle_repeat(self) -> str:
        current = await self.safe(ops.GET_REPEAT, default="none")
        mode = next_repeat(current)
        await self.bridge.run(ops.SET_REPEAT, mode)
        return mode

    # ── Library ────────────────────────────────────────────────────────────────

    async def list_playlists(self) -> list[str]:
        return parse_playlists(await self.bridge.run(ops.LIST_PLAYLISTS))

    async def playlist_tracks(self, name: str) -> list[TrackRecord]:
        return parse_track_records(await self.bridge.run(ops.PLAYLIST_TRACKS, name))

    async def play_playlist(self, name: str):
        await self.bridge.run(ops.PLAY_PLAYLIST, name)

    async def play_track(self, playlist: str, index: int):
        await self.bridge.run(ops.PLAY_TRACK, playlist, max(1, int(index)))
