"""
Data models — playback snapshot, track records, command descriptors.
"""
from dataclasses import dataclass, field
from typing import Optional, Tuple

from .config import VOLUME_MIN, VOLUME_MAX

PLAYING = "playing"
PAUSED = "paused"
STOPPED = "stopped"
PLAY_STATES = (PLAYING, PAUSED, STOPPED)

REPEAT_ORDER = ("none", "one", "all")

LOADING_NAME = "(loading...)"

TrackIdentity = Tuple[str, str]


def clamp_volume(value: int) -> int:
    return max(VOLUME_MIN, min(VOLUME_MAX, int(value)))


def next_repeat(mode: str) -> str:
    """Advance none → one → all → none. Unknown modes count as 'none'."""
    idx = REPEAT_ORDER.index(mode) if mode in REPEAT_ORDER else 0
    return REPEAT_ORDER[(idx + 1) % len(REPEAT_ORDER)]


@dataclass(frozen=True)
class PlaybackSnapshot:
    """One complete view of the player at an instant. Replaced, never patched."""
    track_name: str = ""
    artist: str = ""
    album: str = ""
    duration: float = 0.0
    position: float = 0.0
    play_state: str = STOPPED
    shuffle: bool = False
    repeat: str = "none"
    volume: int = 0
    next_name: str = ""
    next_artist: str = ""

    def __post_init__(self):
        # frozen dataclass: bypass __setattr__ to store normalised values
        object.__setattr__(self, "volume", clamp_volume(self.volume))
        if self.play_state not in PLAY_STATES:
            object.__setattr__(self, "play_state", STOPPED)
        if not self.is_active:
            # nothing loaded: no track fields, playhead at the start
            for name in ("track_name", "artist", "album"):
                object.__setattr__(self, name, "")
            object.__setattr__(self, "duration", 0.0)
            object.__setattr__(self, "position", 0.0)

    @property
    def identity(self) -> Optional[TrackIdentity]:
        """(name, artist) of the current song, None when nothing is loaded."""
        if not self.track_name:
            return None
        return (self.track_name, self.artist)

    @property
    def is_active(self) -> bool:
        return self.play_state in (PLAYING, PAUSED)

    @property
    def progress(self) -> float:
        """Playback progress as 0.0-1.0 for display."""
        if self.duration <= 0:
            return 0.0
        return min(1.0, max(0.0, self.position / self.duration))


@dataclass(frozen=True)
class TrackRecord:
    """One row of a playlist; index is the 1-based position in the playlist."""
    index: int
    name: str = ""
    artist: str = ""
    album: str = ""

    @property
    def label(self) -> str:
        text = f"{self.index:>3}  {self.name}"
        if self.artist:
            text += f" - {self.artist}"
        if self.album:
            text += f"  [{self.album}]"
        return text


@dataclass(frozen=True)
class CommandDescriptor:
    """A menu entry: stable id used for dispatch plus what the user sees."""
    command_id: str
    label: str
    icon: str = ""
    color: str = "white"
    keys: Tuple[str, ...] = field(default_factory=tuple)
