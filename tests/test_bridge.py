"""
Tests for the osascript bridge - script building, subprocess handling, parsing.
"""
import asyncio

import pytest

from musictui import bridge as ops
from musictui.bridge import RS, US, OsascriptBridge, escape, parse_playlists, parse_track_records
from musictui.errors import BridgeError


class TestBuildScript:
    """Tests for AppleScript generation."""

    def setup_method(self):
        self.bridge = OsascriptBridge(app_name="Music")

    def test_simple_query(self):
        assert self.bridge.build_script(ops.GET_VOLUME) == 'tell application "Music" to get sound volume'

    def test_set_volume_clamped(self):
        assert self.bridge.build_script(ops.SET_VOLUME, 140).endswith("set sound volume to 100")
        assert self.bridge.build_script(ops.SET_VOLUME, -3).endswith("set sound volume to 0")

    def test_set_position_floors_at_zero(self):
        assert self.bridge.build_script(ops.SET_POSITION, -8).endswith("set player position to 0")

    def test_repeat_none_is_off(self):
        assert self.bridge.build_script(ops.SET_REPEAT, "none").endswith("set song repeat to off")
        assert self.bridge.build_script(ops.SET_REPEAT, "all").endswith("set song repeat to all")

    def test_shuffle(self):
        assert self.bridge.build_script(ops.SET_SHUFFLE, True).endswith("set shuffle enabled to true")

    def test_playlist_names_escaped(self):
        script = self.bridge.build_script(ops.PLAY_PLAYLIST, 'My "Best" \\ Mix')
        assert 'name is "My \\"Best\\" \\\\ Mix"' in script

    @pytest.mark.parametrize("index,expected", [(0, 1), (-4, 1), ("x", 1), (7, 7)])
    def test_play_track_index_floor(self, index, expected):
        script = self.bridge.build_script(ops.PLAY_TRACK, "Chill", index)
        assert f"play track {expected} of" in script

    def test_unknown_operation(self):
        with pytest.raises(BridgeError):
            self.bridge.build_script("format_disk")

    def test_escape(self):
        assert escape('a"b') == 'a\\"b'


class TestRun:
    """Tests for running scripts through a subprocess."""

    def test_script_piped_on_stdin(self):
        # cat echoes the script back, which shows exactly what osascript would get
        bridge = OsascriptBridge(app_name="Music", executable="cat")
        out = asyncio.run(bridge.run(ops.PLAY))
        assert out == 'tell application "Music" to play'

    def test_nonzero_exit_raises(self):
        bridge = OsascriptBridge(executable="false")
        with pytest.raises(BridgeError) as exc:
            asyncio.run(bridge.run(ops.PLAY))
        assert exc.value.operation == ops.PLAY

    def test_missing_executable_raises(self, tmp_path):
        bridge = OsascriptBridge(executable=str(tmp_path / "no-such-osascript"))
        with pytest.raises(BridgeError):
            asyncio.run(bridge.run(ops.PLAY))

    def test_cancel_kills_child(self, monkeypatch):
        class HangingProcess:
            returncode = None
            killed = False

            async def communicate(self, data):
                await asyncio.Event().wait()

            def kill(self):
                self.killed = True

        proc = HangingProcess()

        async def fake_exec(*args, **kwargs):
            return proc

        monkeypatch.setattr(asyncio, "create_subprocess_exec", fake_exec)

        async def scenario():
            task = asyncio.create_task(OsascriptBridge().run(ops.PLAY))
            await asyncio.sleep(0)
            task.cancel()
            with pytest.raises(asyncio.CancelledError):
                await task

        asyncio.run(scenario())
        assert proc.killed

    def test_repeat_off_read_back_as_none(self, tmp_path):
        fake = tmp_path / "fake-osascript"
        fake.write_text("#!/bin/sh\ncat > /dev/null\necho off\n")
        fake.chmod(0o755)
        bridge = OsascriptBridge(executable=str(fake))
        assert asyncio.run(bridge.run(ops.GET_REPEAT)) == "none"


class TestParsing:
    """Tests for the record-separated result formats."""

    def test_playlists_deduped_and_sorted(self):
        raw = RS.join(["b", "A", "", "  ", "b", "c"]) + RS
        assert parse_playlists(raw) == ["A", "b", "c"]

    def test_playlists_empty(self):
        assert parse_playlists("") == []

    def test_track_records(self):
        raw = RS.join([
            US.join(["1", "Heroes", "David Bowie", "Heroes"]),
            US.join(["2", "Low"]),
        ]) + RS
        records = parse_track_records(raw)
        assert [r.index for r in records] == [1, 2]
        assert records[1].name == "Low"
        assert records[1].artist == ""
        assert records[1].album == ""

    def test_track_record_bad_index(self):
        records = parse_track_records(US.join(["?", "Song", "Artist", "Album"]))
        assert records[0].index == 1
