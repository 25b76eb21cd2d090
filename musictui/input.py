"""Terminal input — cbreak mode, raw key reading, escape-sequence decoding."""
import os
import select as _sel
import sys
import termios
import tty
from contextlib import contextmanager
from typing import Optional

_ESCAPES = {
    "[A": "up",
    "[B": "down",
    "[C": "right",
    "[D": "left",
    "OA": "up",
    "OB": "down",
    "OC": "right",
    "OD": "left",
    "[5~": "pageup",
    "[6~": "pagedown",
}

_SINGLE = {
    " ": "space",
    "\r": "enter",
    "\n": "enter",
    "\x7f": "backspace",
    "\x03": "ctrl-c",
}


@contextmanager
def cbreak_terminal():
    """Keys arrive one at a time without echo for the duration of the block."""
    fd = sys.stdin.fileno()
    old = termios.tcgetattr(fd)
    try:
        tty.setcbreak(fd)
        yield
    finally:
        termios.tcsetattr(fd, termios.TCSADRAIN, old)


def _read_char(fd: int, timeout: float) -> Optional[str]:
    readable, _, _ = _sel.select([fd], [], [], timeout)
    if not readable:
        return None
    data = os.read(fd, 1)
    return data.decode(errors="ignore") if data else None


def decode_key(ch: str, rest: str = "") -> str:
    """Map a first character plus any escape tail to a logical key name."""
    if ch == "\x1b":
        if not rest:
            return "esc"  # bare Escape
        return _ESCAPES.get(rest, "ignore")
    return _SINGLE.get(ch, ch)


def read_key(timeout: float = 0.3) -> Optional[str]:
    """Read one logical keypress, or None if nothing arrived within timeout."""
    fd = sys.stdin.fileno()
    ch = _read_char(fd, timeout)
    if ch is None:
        return None
    if ch != "\x1b":
        return decode_key(ch)

    rest = ""
    while len(rest) < 3:
        nxt = _read_char(fd, 0.05)
        if nxt is None:
            break
        rest += nxt
        if rest in _ESCAPES or (len(rest) >= 2 and rest[-1].isalpha()) or rest.endswith("~"):
            break
    return decode_key(ch, rest)
