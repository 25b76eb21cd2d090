"""
Pytest configuration and shared fixtures for Music TUI tests.
"""
import asyncio

import pytest

from musictui import bridge as ops
from musictui import errors
from musictui.bridge import Bridge
from musictui.errors import BridgeError
from musictui.player import RemotePlayer
from musictui.poller import Poller
from musictui.state import PresentationState

PLAYING_RESPONSES = {
    ops.IS_RUNNING: "true",
    ops.PLAYER_STATE: "playing",
    ops.TRACK_NAME: "Heroes",
    ops.TRACK_ARTIST: "David Bowie",
    ops.TRACK_ALBUM: "Heroes",
    ops.TRACK_DURATION: "371.5",
    ops.GET_POSITION: "42.25",
    ops.GET_SHUFFLE: "false",
    ops.GET_REPEAT: "none",
    ops.GET_VOLUME: "50",
    ops.NEXT_NAME: "Sons of the Silent Age",
    ops.NEXT_ARTIST: "David Bowie",
}

# setter -> (getter it updates, how the value reads back)
_SETTERS = {
    ops.SET_VOLUME: (ops.GET_VOLUME, str),
    ops.SET_POSITION: (ops.GET_POSITION, str),
    ops.SET_SHUFFLE: (ops.GET_SHUFFLE, lambda v: "true" if v else "false"),
    ops.SET_REPEAT: (ops.GET_REPEAT, str),
}


class FakeBridge(Bridge):
    """Scripted bridge: canned answers, optional failures, an optional gate.

    Setters write through to their getters and play/pause update the player
    state, so a poll after a command reads back what the command did.
    """

    def __init__(self, responses=None, failing=(), gate=None):
        self.responses = dict(PLAYING_RESPONSES)
        if responses:
            self.responses.update(responses)
        self.failing = set(failing)
        self.gate = gate
        self.calls = []
        self.events = []

    async def run(self, operation, *args):
        self.calls.append((operation, args))
        if self.gate is not None:
            await self.gate.wait()
        await asyncio.sleep(0)
        self.events.append(("resolved", operation))
        if operation in self.failing:
            raise BridgeError(operation, "scripted failure")

        if operation in _SETTERS:
            getter, fmt = _SETTERS[operation]
            self.responses[getter] = fmt(args[0])
        elif operation == ops.PLAY:
            self.responses[ops.PLAYER_STATE] = "playing"
        elif operation == ops.PAUSE:
            self.responses[ops.PLAYER_STATE] = "paused"

        value = self.responses.get(operation, "")
        if callable(value):
            value = value(*args)
        return str(value)

    @property
    def operations(self):
        return [op for op, _ in self.calls]

    def args_of(self, operation):
        return [args for op, args in self.calls if op == operation]


class FakeFetcher:
    """Trivia backend stand-in; counts calls and can be held on a gate."""

    def __init__(self, text="## About", fail=False, gate=None):
        self.text = text
        self.fail = fail
        self.gate = gate
        self.calls = []

    async def __call__(self, title, artist):
        self.calls.append((title, artist))
        if self.gate is not None:
            await self.gate.wait()
        if self.fail:
            raise RuntimeError("backend down")
        return f"{self.text} {title}" if self.text else ""


@pytest.fixture(autouse=True)
def error_log(tmp_path, monkeypatch):
    """Keep structured error logs out of the project tree."""
    monkeypatch.setattr(errors, "OUTPUT_DIR", tmp_path)
    monkeypatch.setattr(errors, "ERRORS_LOG", tmp_path / "errors.log")
    return tmp_path / "errors.log"


@pytest.fixture
def fake_bridge():
    return FakeBridge()


@pytest.fixture
def make_engine():
    """Build (bridge, state, poller) around a FakeBridge with no launch delay."""
    def _make(**bridge_kwargs):
        bridge = FakeBridge(**bridge_kwargs)
        state = PresentationState()
        poller = Poller(RemotePlayer(bridge, settle_seconds=0), state, interval=0)
        return bridge, state, poller
    return _make
