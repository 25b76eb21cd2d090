"""Command table and dispatcher — optimistic update, bridge call, forced poll."""
import logging
from dataclasses import replace
from typing import Callable, Optional

from .config import SEEK_STEP, VOLUME_STEP
from .errors import BridgeError, format_error
from .models import (
    LOADING_NAME,
    PAUSED,
    PLAYING,
    CommandDescriptor,
    PlaybackSnapshot,
    clamp_volume,
    next_repeat,
)
from .player import RemotePlayer
from .poller import Poller
from .state import OPTIMISTIC, PresentationState

logger = logging.getLogger(__name__)

PLAY_PAUSE = "play_pause"
NEXT = "next"
PREVIOUS = "previous"
VOLUME_UP = "volume_up"
VOLUME_DOWN = "volume_down"
SEEK_FORWARD = "seek_forward"
SEEK_BACK = "seek_back"
TOGGLE_SHUFFLE = "toggle_shuffle"
CYCLE_REPEAT = "cycle_repeat"
SHOW_PLAYLISTS = "show_playlists"
QUIT = "quit"

COMMANDS = (
    CommandDescriptor(PLAY_PAUSE, "Play/Pause", "⏯", "green", ("space",)),
    CommandDescriptor(NEXT, "Next Track", "⏭", "cyan"),
    CommandDescriptor(PREVIOUS, "Previous Track", "⏮", "cyan"),
    CommandDescriptor(VOLUME_UP, "Volume +", "▲", "yellow", ("+", "=")),
    CommandDescriptor(VOLUME_DOWN, "Volume -", "▼", "yellow", ("-",)),
    CommandDescriptor(SEEK_FORWARD, f"Seek +{SEEK_STEP}s", "≫", "green", ("right",)),
    CommandDescriptor(SEEK_BACK, f"Seek -{SEEK_STEP}s", "≪", "green", ("left",)),
    CommandDescriptor(TOGGLE_SHUFFLE, "Toggle Shuffle", "⇌", "magenta", ("s",)),
    CommandDescriptor(CYCLE_REPEAT, "Cycle Repeat", "⟳", "magenta", ("r",)),
    CommandDescriptor(SHOW_PLAYLISTS, "Playlists...", "♫", "blue", ("p",)),
    CommandDescriptor(QUIT, "Quit", "✕", "red", ("q",)),
)

COMMANDS_BY_ID = {c.command_id: c for c in COMMANDS}
SHORTCUTS = {key: c.command_id for c in COMMANDS for key in c.keys}


# ─── Optimistic guesses ───────────────────────────────────────────────────────

def _toggle_play(s: PlaybackSnapshot) -> PlaybackSnapshot:
    return replace(s, play_state=PAUSED if s.play_state == PLAYING else PLAYING)


def _skip(s: PlaybackSnapshot) -> PlaybackSnapshot:
    return replace(s, track_name=LOADING_NAME, play_state=PLAYING)


OPTIMISTIC_UPDATES: dict[str, Callable[[PlaybackSnapshot], PlaybackSnapshot]] = {
    PLAY_PAUSE: _toggle_play,
    NEXT: _skip,
    PREVIOUS: _skip,
    VOLUME_UP: lambda s: replace(s, volume=clamp_volume(s.volume + VOLUME_STEP)),
    VOLUME_DOWN: lambda s: replace(s, volume=clamp_volume(s.volume - VOLUME_STEP)),
    SEEK_FORWARD: lambda s: replace(s, position=s.position + SEEK_STEP),
    SEEK_BACK: lambda s: replace(s, position=max(0.0, s.position - SEEK_STEP)),
    TOGGLE_SHUFFLE: lambda s: replace(s, shuffle=not s.shuffle),
    CYCLE_REPEAT: lambda s: replace(s, repeat=next_repeat(s.repeat)),
}


class Dispatcher:
    def __init__(
        self,
        player: RemotePlayer,
        state: PresentationState,
        poller: Poller,
        browser=None,
        on_quit: Optional[Callable[[], None]] = None,
    ):
        self.player = player
        self.state = state
        self.poller = poller
        self.browser = browser
        self.on_quit = on_quit

    def apply_optimistic(self, command_id: str):
        """Publish the expected effect right away, before touching the bridge."""
        snap = self.state.snapshot
        update = OPTIMISTIC_UPDATES.get(command_id)
        if snap is None or update is None:
            return
        self.state.publish(update(snap), origin=OPTIMISTIC)

    async def dispatch(self, command_id: str):
        if command_id not in COMMANDS_BY_ID:
            raise KeyError(command_id)
        if command_id == QUIT:
            if self.on_quit:
                self.on_quit()
            return

        self.apply_optimistic(command_id)
        try:
            await self._perform(command_id)
        except BridgeError as e:
            # best-effort: the optimistic guess stands until the next poll
            label = COMMANDS_BY_ID[command_id].label
            format_error("command", raw=str(e), context={"command": command_id})
            self.state.set_status(f"{label} failed")
        finally:
            await self.poller.tick()

    async def _perform(self, command_id: str):
        p = self.player
        if command_id == PLAY_PAUSE:
            await p.toggle_play()
        elif command_id == NEXT:
            await p.skip(forward=True)
        elif command_id == PREVIOUS:
            await p.skip(forward=False)
        elif command_id == VOLUME_UP:
            await p.step_volume(VOLUME_STEP)
        elif command_id == VOLUME_DOWN:
            await p.step_volume(-VOLUME_STEP)
        elif command_id == SEEK_FORWARD:
            await p.seek(SEEK_STEP)
        elif command_id == SEEK_BACK:
            await p.seek(-SEEK_STEP)
        elif command_id == TOGGLE_SHUFFLE:
            await p.toggle_shuffle()
        elif command_id == CYCLE_REPEAT:
            await p.cycle_repeat()
        elif command_id == SHOW_PLAYLISTS and self.browser is not None:
            await self.browser.open()

    async def play_track(self, playlist: str, index: int) -> bool:
        """Play one track of a playlist; closes the browser on success."""
        try:
            await self.player.play_track(playlist, index)
        except BridgeError as e:
            msg = format_error("play_track", raw=str(e), context={"playlist": playlist, "index": index})
            self.state.set_status(msg)
            return False
        if self.browser is not None:
            self.browser.close()
        await self.poller.tick()
        return True

    async def play_playlist(self, playlist: str) -> bool:
        """Play a whole playlist from the top; closes the browser on success."""
        try:
            await self.player.play_playlist(playlist)
        except BridgeError as e:
            msg = format_error("play_track", raw=str(e), context={"playlist": playlist})
            self.state.set_status(msg)
            return False
        if self.browser is not None:
            self.browser.close()
        await self.poller.tick()
        return True
