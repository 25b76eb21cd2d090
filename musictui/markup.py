"""Markdown → terminal renderables for the trivia panel."""
import re

from rich.markdown import Markdown
from rich.text import Text

from .trivia import SENTINELS

_OPEN_FENCE = re.compile(r"^```(?:\w+)?\n")
_CLOSE_FENCE = re.compile(r"\n```$")


def strip_fences(text: str) -> str:
    """Drop a wrapping ```lang ... ``` block that models like to add."""
    return _CLOSE_FENCE.sub("", _OPEN_FENCE.sub("", text.strip()))


def render(text: str):
    if text in SENTINELS:
        return Text(text, style="dim")
    return Markdown(strip_fences(text))
