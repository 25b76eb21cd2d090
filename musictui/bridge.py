"""Module 2 — Automation Bridge (AppleScript via osascript)"""
import asyncio
import logging

from .config import MUSIC_APP
from .errors import BridgeError
from .models import TrackRecord

logger = logging.getLogger(__name__)

US = chr(31)  # unit separator
RS = chr(30)  # record separator

# ─── Operation names ──────────────────────────────────────────────────────────
IS_RUNNING = "is_running"
LAUNCH = "launch"
PLAYER_STATE = "player_state"
PLAY = "play"
PAUSE = "pause"
NEXT_TRACK = "next_track"
PREVIOUS_TRACK = "previous_track"
GET_VOLUME = "get_volume"
SET_VOLUME = "set_volume"
GET_POSITION = "get_position"
SET_POSITION = "set_position"
GET_SHUFFLE = "get_shuffle"
SET_SHUFFLE = "set_shuffle"
GET_REPEAT = "get_repeat"
SET_REPEAT = "set_repeat"
TRACK_NAME = "track_name"
TRACK_ARTIST = "track_artist"
TRACK_ALBUM = "track_album"
TRACK_DURATION = "track_duration"
NEXT_NAME = "next_name"
NEXT_ARTIST = "next_artist"
LIST_PLAYLISTS = "list_playlists"
PLAYLIST_TRACKS = "playlist_tracks"
PLAY_PLAYLIST = "play_playlist"
PLAY_TRACK = "play_track"


class Bridge:
    """Executes a named operation against the controlled player.

    Implementations return the raw text result and raise BridgeError on any
    underlying fault. Nothing above this layer knows how the player is driven.
    """

    async def run(self, operation: str, *args) -> str:
        raise NotImplementedError


def escape(text: str) -> str:
    """Quote-safe body for an AppleScript string literal."""
    return str(text).replace("\\", "\\\\").replace('"', '\\"')


def _playlist_ref(name: str) -> str:
    return f'(first user playlist whose name is "{escape(name)}")'


def _any_playlist_ref(name: str) -> str:
    return f'(first playlist whose name is "{escape(name)}")'


# Music calls "no repeat" off; the rest of the app says none
_REPEAT_TO_APP = {"none": "off", "one": "one", "all": "all"}
_REPEAT_FROM_APP = {"off": "none", "none": "none", "one": "one", "all": "all"}


class OsascriptBridge(Bridge):
    """Drive Music.app by piping AppleScript into osascript."""

    def __init__(self, app_name: str = MUSIC_APP, executable: str = "osascript"):
        self.app_name = app_name
        self.executable = executable

    def _tell(self, body: str) -> str:
        return f'tell application "{self.app_name}" to {body}'

    def build_script(self, operation: str, *args) -> str:
        """Render one operation as AppleScript source."""
        simple = {
            IS_RUNNING: f'tell application "System Events" to (name of processes) contains "{self.app_name}"',
            LAUNCH: self._tell("launch"),
            PLAYER_STATE: self._tell("get player state"),
            PLAY: self._tell("play"),
            PAUSE: self._tell("pause"),
            NEXT_TRACK: self._tell("next track"),
            PREVIOUS_TRACK: self._tell("previous track"),
            GET_VOLUME: self._tell("get sound volume"),
            GET_POSITION: self._tell("get player position"),
            GET_SHUFFLE: self._tell("get shuffle enabled"),
            GET_REPEAT: self._tell("get song repeat"),
            TRACK_NAME: self._tell("get name of current track"),
            TRACK_ARTIST: self._tell("get artist of current track"),
            TRACK_ALBUM: self._tell("get album of current track"),
            TRACK_DURATION: self._tell("get duration of current track"),
            NEXT_NAME: self._tell("get name of next track"),
            NEXT_ARTIST: self._tell("get artist of next track"),
        }
        if operation in simple:
            return simple[operation]

        if operation == SET_VOLUME:
            level = max(0, min(100, int(args[0])))
            return self._tell(f"set sound volume to {level}")
        if operation == SET_POSITION:
            return self._tell(f"set player position to {max(0, int(args[0]))}")
        if operation == SET_SHUFFLE:
            return self._tell(f"set shuffle enabled to {'true' if args[0] else 'false'}")
        if operation == SET_REPEAT:
            mode = _REPEAT_TO_APP.get(args[0], "off")
            return self._tell(f"set song repeat to {mode}")
        if operation == LIST_PLAYLISTS:
            return self._list_playlists_script()
        if operation == PLAYLIST_TRACKS:
            return self._playlist_tracks_script(args[0])
        if operation == PLAY_PLAYLIST:
            return (
                f'tell application "{self.app_name}"\n'
                f"  try\n"
                f"    play {_playlist_ref(args[0])}\n"
                f"  on error\n"
                f"    play {_any_playlist_ref(args[0])}\n"
                f"  end try\n"
                f"end tell"
            )
        if operation == PLAY_TRACK:
            try:
                index = max(1, int(args[1]))
            except (TypeError, ValueError):
                index = 1
            return (
                f'tell application "{self.app_name}"\n'
                f"  try\n"
                f"    play track {index} of {_playlist_ref(args[0])}\n"
                f"  on error\n"
                f"    play track {index} of {_any_playlist_ref(args[0])}\n"
                f"  end try\n"
                f"end tell"
            )
        raise BridgeError(operation, "unknown operation")

    def _list_playlists_script(self) -> str:
        return f"""
tell application "{self.app_name}"
  set rs to (ASCII character 30)
  set outText to ""
  try
    repeat with p in (every playlist)
      try
        set nm to (name of p) as text
        if nm is not "" then set outText to outText & nm & rs
      end try
    end repeat
  end try
  return outText
end tell"""

    def _playlist_tracks_script(self, name: str) -> str:
        return f"""
tell application "{self.app_name}"
  set PL to missing value
  try
    set PL to {_playlist_ref(name)}
  end try
  if PL is missing value then
    try
      set PL to {_any_playlist_ref(name)}
    end try
  end if
  if PL is missing value then return ""

  set us to (ASCII character 31)
  set rs to (ASCII character 30)
  set outText to ""
  set cnt to (count of tracks of PL)
  repeat with i from 1 to cnt
    set t to track i of PL
    set nm to ""
    try
      set nm to (name of t) as text
    end try
    set ar to ""
    try
      set ar to (artist of t) as text
    end try
    set al to ""
    try
      set al to (album of t) as text
    end try
    set outText to outText & (i as text) & us & nm & us & ar & us & al & rs
  end repeat
  return outText
end tell"""

    async def run(self, operation: str, *args) -> str:
        script = self.build_script(operation, *args)
        try:
            proc = await asyncio.create_subprocess_exec(
                self.executable,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise BridgeError(operation, str(e)) from e

        try:
            stdout, stderr = await proc.communicate(script.encode())
        except asyncio.CancelledError:
            # poll/command task cancelled on quit: don't leave osascript behind
            if proc.returncode is None:
                proc.kill()
            raise
        if proc.returncode != 0:
            raise BridgeError(operation, stderr.decode(errors="replace").strip())

        out = stdout.decode(errors="replace").strip()
        if operation == GET_REPEAT:
            return _REPEAT_FROM_APP.get(out, out)
        return out


def parse_playlists(raw: str) -> list[str]:
    """Split RS-separated names, drop blanks and duplicates, sort."""
    if not raw:
        return []
    items = [s.strip() for s in raw.split(RS)]
    unique = {s for s in items if s}
    return sorted(unique, key=lambda s: (s.casefold(), s))


def parse_track_records(raw: str) -> list[TrackRecord]:
    """Parse RS/US-separated `index name artist album` rows."""
    if not raw:
        return []
    records = []
    for row in raw.split(RS):
        row = row.strip("\r\n")
        if not row:
            continue
        parts = row.split(US)
        try:
            index = int(parts[0])
        except ValueError:
            index = 1
        records.append(TrackRecord(
            index=index or 1,
            name=parts[1] if len(parts) > 1 else "",
            artist=parts[2] if len(parts) > 2 else "",
            album=parts[3] if len(parts) > 3 else "",
        ))
    return records
