"""Playlist → track browser: closed, playlists, tracks, back to closed."""
import logging
from typing import Optional

from .errors import BridgeError, format_error
from .models import TrackRecord
from .player import RemotePlayer
from .state import PresentationState

logger = logging.getLogger(__name__)

CLOSED = "closed"
PLAYLISTS = "playlists"
TRACKS = "tracks"


class Browser:
    def __init__(self, player: RemotePlayer, state: PresentationState):
        self.player = player
        self.state = state
        self.dispatcher = None  # set once the dispatcher exists
        self.mode = CLOSED
        self.playlists: list[str] = []
        self.playlist: Optional[str] = None
        self.tracks: list[TrackRecord] = []
        self.cursor = 0

    @property
    def is_open(self) -> bool:
        return self.mode != CLOSED

    @property
    def items(self) -> list[str]:
        if self.mode == PLAYLISTS:
            return self.playlists
        if self.mode == TRACKS:
            return [t.label for t in self.tracks]
        return []

    @property
    def title(self) -> str:
        if self.mode == TRACKS:
            return f" Tracks - {self.playlist} "
        return " Playlists "

    async def open(self):
        """List every playlist and show the picker."""
        try:
            playlists = await self.player.list_playlists()
        except BridgeError as e:
            format_error("browse", raw=str(e))
            playlists = []
        if not playlists:
            self.state.set_status("No playlists.")
            return
        self.playlists = playlists
        self.tracks = []
        self.playlist = None
        self.mode = PLAYLISTS
        self.cursor = 0
        self.state.notify()

    async def select(self):
        """Enter on the highlighted row."""
        if self.mode == PLAYLISTS and self.playlists:
            await self._open_tracks(self.playlists[self.cursor])
        elif self.mode == TRACKS and self.tracks:
            track = self.tracks[self.cursor]
            await self.dispatcher.play_track(self.playlist, track.index)

    async def play_all(self):
        """Play the open playlist from its first track."""
        if self.mode == TRACKS and self.playlist:
            await self.dispatcher.play_playlist(self.playlist)

    async def _open_tracks(self, name: str):
        # only one list on screen at a time
        self.mode = CLOSED
        self.state.set_status(f"Loading: {name}...")
        try:
            tracks = await self.player.playlist_tracks(name)
        except BridgeError as e:
            format_error("browse", raw=str(e), context={"playlist": name})
            tracks = []
        if not tracks:
            self.close()
            self.state.set_status("Empty playlist or error.")
            return
        self.playlist = name
        self.tracks = tracks
        self.cursor = 0
        self.mode = TRACKS
        self.state.set_status("")

    def move(self, delta: int):
        count = len(self.items)
        if not count:
            return
        self.cursor = max(0, min(count - 1, self.cursor + delta))
        self.state.notify()

    def cancel(self):
        if self.is_open:
            self.close()

    def close(self):
        self.mode = CLOSED
        self.playlists = []
        self.playlist = None
        self.tracks = []
        self.cursor = 0
        self.state.notify()
