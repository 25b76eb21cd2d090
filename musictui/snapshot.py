"""Module 4 — Snapshot Builder

Gate on the play state first, then fan out: five track-detail queries only
when something is loaded, five mode/next-track queries always.
"""
import asyncio

from . import bridge as ops
from .bridge import Bridge
from .errors import BridgeError
from .models import PAUSED, PLAYING, REPEAT_ORDER, STOPPED, PlaybackSnapshot
from .player import parse_float, parse_int


async def _safe(bridge: Bridge, operation: str, default: str) -> str:
    try:
        return await bridge.run(operation)
    except BridgeError:
        return default


async def _track_details(bridge: Bridge) -> tuple[str, str, str, str, str]:
    return await asyncio.gather(
        _safe(bridge, ops.TRACK_NAME, ""),
        _safe(bridge, ops.TRACK_ARTIST, ""),
        _safe(bridge, ops.TRACK_ALBUM, ""),
        _safe(bridge, ops.TRACK_DURATION, "0"),
        _safe(bridge, ops.GET_POSITION, "0"),
    )


async def _no_track() -> tuple[str, str, str, str, str]:
    return "", "", "", "0", "0"


async def _modes(bridge: Bridge) -> tuple[str, str, str, str, str]:
    return await asyncio.gather(
        _safe(bridge, ops.GET_SHUFFLE, "false"),
        _safe(bridge, ops.GET_REPEAT, "none"),
        _safe(bridge, ops.GET_VOLUME, "0"),
        _safe(bridge, ops.NEXT_NAME, ""),
        _safe(bridge, ops.NEXT_ARTIST, ""),
    )


async def build_snapshot(bridge: Bridge) -> PlaybackSnapshot:
    """Assemble one consistent snapshot. Bridge failures become defaults."""
    state = await _safe(bridge, ops.PLAYER_STATE, STOPPED)
    if state not in (PLAYING, PAUSED):
        state = STOPPED

    details = _track_details(bridge) if state != STOPPED else _no_track()
    (name, artist, album, dur, pos), (shuffle, repeat, vol, next_nm, next_ar) = (
        await asyncio.gather(details, _modes(bridge))
    )

    return PlaybackSnapshot(
        track_name=name,
        artist=artist,
        album=album,
        duration=parse_float(dur),
        position=parse_float(pos),
        play_state=state,
        shuffle=shuffle == "true",
        repeat=repeat if repeat in REPEAT_ORDER else "none",
        volume=parse_int(vol),
        next_name=next_nm,
        next_artist=next_ar,
    )
