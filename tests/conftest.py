"""Shared fixtures: a fake terminal and keystroke helpers."""

from __future__ import annotations

import curses
import io
import json

import pytest
from blessed import Terminal
from blessed.keyboard import Keystroke

from daxtui.state import ViewModel
from daxtui.terminal import MOUSE_OFF

KEY_CODES = {
    "KEY_ENTER": curses.KEY_ENTER,
    "KEY_BACKSPACE": curses.KEY_BACKSPACE,
    "KEY_UP": curses.KEY_UP,
    "KEY_DOWN": curses.KEY_DOWN,
    "KEY_PGUP": curses.KEY_PPAGE,
    "KEY_PGDOWN": curses.KEY_NPAGE,
    "KEY_HOME": curses.KEY_HOME,
    "KEY_END": curses.KEY_END,
    "KEY_DELETE": curses.KEY_DC,
    "KEY_F1": curses.KEY_F1,
}


def key(name_or_char: str) -> Keystroke:
    """Keystroke for a named key (`KEY_UP`) or a plain character."""
    if name_or_char in KEY_CODES:
        return Keystroke("\x1b[?", code=KEY_CODES[name_or_char], name=name_or_char)
    return Keystroke(name_or_char)


class FakeTerm:
    """Just enough of blessed.Terminal for the viewer loop and ScreenBuffer.flush."""

    def __init__(self, keys=(), width: int = 80, height: int = 24):
        self.keys = list(keys)
        self.width = width
        self.height = height
        self.stream = io.StringIO()
        self.timeouts: list[float] = []

    def inkey(self, timeout=None):
        self.timeouts.append(timeout)
        if self.keys:
            k = self.keys.pop(0)
            return k if isinstance(k, Keystroke) else Keystroke(k)
        return Keystroke("")

    def move_yx(self, y, x):
        return ""


def line(obj: dict) -> str:
    return json.dumps(obj)


@pytest.fixture
def model() -> ViewModel:
    return ViewModel()


@pytest.fixture
def term() -> FakeTerm:
    return FakeTerm()


@pytest.fixture
def xterm() -> Terminal:
    """A real blessed terminal writing styled output into a StringIO."""
    return Terminal(kind="xterm-256color", stream=io.StringIO(), force_styling=True)


def restore_sequence(term: Terminal) -> str:
    """What `session` writes on the way out: cursor, mouse, then main screen."""
    return term.normal_cursor + MOUSE_OFF + term.exit_fullscreen
