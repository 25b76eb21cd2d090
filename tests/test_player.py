"""
Tests for the data models and RemotePlayer actions.
"""
import asyncio

import pytest

from musictui import bridge as ops
from musictui.errors import BridgeError
from musictui.models import (
    PAUSED,
    PLAYING,
    REPEAT_ORDER,
    STOPPED,
    PlaybackSnapshot,
    TrackRecord,
    clamp_volume,
    next_repeat,
)
from musictui.player import RemotePlayer, parse_float, parse_int
from musictui.state import OPTIMISTIC, POLL, PresentationState

from conftest import FakeBridge


class TestModels:
    """Tests for snapshot and record helpers."""

    def test_snapshot_clamps_volume(self):
        assert PlaybackSnapshot(volume=130).volume == 100
        assert PlaybackSnapshot(volume=-5).volume == 0

    def test_identity(self):
        assert PlaybackSnapshot().identity is None
        assert PlaybackSnapshot(track_name="Low", artist="David Bowie", play_state=PLAYING).identity == ("Low", "David Bowie")

    def test_stopped_has_no_track(self):
        snap = PlaybackSnapshot(
            track_name="Heroes", artist="David Bowie", album="Heroes",
            duration=371.5, position=42.0, play_state=STOPPED, next_name="Low",
        )
        assert snap.track_name == snap.artist == snap.album == ""
        assert snap.position == 0.0
        assert snap.duration == 0.0
        assert snap.identity is None
        # next track survives a stop
        assert snap.next_name == "Low"

    def test_unknown_play_state_is_stopped(self):
        snap = PlaybackSnapshot(track_name="Heroes", position=5, play_state="rewinding")
        assert snap.play_state == STOPPED
        assert not snap.is_active
        assert snap.position == 0.0

    def test_paused_keeps_track(self):
        snap = PlaybackSnapshot(track_name="Heroes", position=5, play_state=PAUSED)
        assert snap.is_active
        assert snap.track_name == "Heroes"
        assert snap.position == 5

    def test_progress(self):
        assert PlaybackSnapshot(position=30, duration=0, play_state=PLAYING).progress == 0.0
        assert PlaybackSnapshot(position=30, duration=60, play_state=PLAYING).progress == 0.5
        assert PlaybackSnapshot(position=90, duration=60, play_state=PLAYING).progress == 1.0

    @pytest.mark.parametrize("mode,expected", [("none", "one"), ("one", "all"), ("all", "none"), ("bogus", "one")])
    def test_next_repeat(self, mode, expected):
        assert next_repeat(mode) == expected

    def test_repeat_order(self):
        assert REPEAT_ORDER == ("none", "one", "all")

    def test_clamp(self):
        assert clamp_volume(101) == 100
        assert clamp_volume(-1) == 0

    def test_track_label(self):
        assert TrackRecord(12, "Low").label == " 12  Low"


class TestParsing:
    """Tests for number parsing of bridge output."""

    @pytest.mark.parametrize("raw,expected", [("42.25", 42.25), ("-1", 0.0), ("nan", 0.0), ("", 0.0), (None, 0.0)])
    def test_parse_float(self, raw, expected):
        assert parse_float(raw) == expected

    @pytest.mark.parametrize("raw,expected", [("50", 50), ("49.9", 49), ("x", 0), ("inf", 0)])
    def test_parse_int(self, raw, expected):
        assert parse_int(raw) == expected


class TestRemotePlayer:
    """Tests for player actions against the fake bridge."""

    def _player(self, **kwargs):
        bridge = FakeBridge(**kwargs)
        return bridge, RemotePlayer(bridge, settle_seconds=0)

    def test_reads_fall_back(self):
        bridge, player = self._player(failing={ops.GET_VOLUME})
        assert asyncio.run(player.get_volume()) == 0

    def test_writes_raise(self):
        bridge, player = self._player(failing={ops.SET_VOLUME})
        with pytest.raises(BridgeError):
            asyncio.run(player.set_volume(10))

    def test_step_volume_clamps(self):
        bridge, player = self._player(responses={ops.GET_VOLUME: "98"})
        assert asyncio.run(player.step_volume(5)) == 100
        assert bridge.args_of(ops.SET_VOLUME) == [(100,)]

    def test_seek_forward(self):
        bridge, player = self._player(responses={ops.GET_POSITION: "42.25"})
        assert asyncio.run(player.seek(10)) == 52

    def test_toggle_shuffle(self):
        bridge, player = self._player(responses={ops.GET_SHUFFLE: "true"})
        assert asyncio.run(player.toggle_shuffle()) is False
        assert bridge.args_of(ops.SET_SHUFFLE) == [(False,)]

    def test_cycle_repeat_from_player(self):
        bridge, player = self._player(responses={ops.GET_REPEAT: "all"})
        assert asyncio.run(player.cycle_repeat()) == "none"

    def test_play_track_index_floor(self):
        bridge, player = self._player()
        asyncio.run(player.play_track("Chill", 0))
        assert bridge.args_of(ops.PLAY_TRACK) == [("Chill", 1)]

    def test_launch_failure_raises(self):
        bridge, player = self._player(responses={ops.IS_RUNNING: "false"}, failing={ops.LAUNCH})
        with pytest.raises(BridgeError):
            asyncio.run(player.ensure_launched())


class TestPresentationState:
    """Tests for the shared state holder."""

    def test_subscribers_see_each_publish(self):
        state = PresentationState()
        seen = []
        state.subscribe(lambda s: seen.append(s.origin))
        state.publish(PlaybackSnapshot(), origin=OPTIMISTIC)
        state.publish(PlaybackSnapshot())
        assert seen == [OPTIMISTIC, POLL]

    def test_failing_subscriber_does_not_block_others(self):
        state = PresentationState()
        seen = []

        def broken(_):
            raise RuntimeError("boom")

        state.subscribe(broken)
        state.subscribe(lambda s: seen.append(1))
        state.publish(PlaybackSnapshot())
        assert seen == [1]

    def test_command_status_survives_poll(self):
        state = PresentationState()
        state.set_status("Volume + failed")
        state.publish(PlaybackSnapshot())
        assert state.status == "Volume + failed"

    def test_error_status_cleared_by_poll(self):
        state = PresentationState()
        state.publish_error("unreachable", status="Error fetching state.")
        state.publish(PlaybackSnapshot(), origin=OPTIMISTIC)
        assert state.status == "Error fetching state."
        state.publish(PlaybackSnapshot())
        assert state.status == ""

    def test_unsubscribe(self):
        state = PresentationState()
        seen = []
        cb = lambda s: seen.append(1)  # noqa: E731
        state.subscribe(cb)
        state.unsubscribe(cb)
        state.publish(PlaybackSnapshot())
        assert seen == []
