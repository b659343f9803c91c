from dataclasses import dataclass
from typing import Callable, Optional, Union
import re

from .state import ViewModel

INTERRUPT = 'KEY_INTERRUPT'
PAGE = 10

WHEEL_UP = 64
WHEEL_DOWN = 65

MOUSE_PREFIX = '[<'
MOUSE_RE = re.compile(r'\[<(\d+);(\d+);(\d+)([Mm])$')


@dataclass(frozen=True)
class MouseEvent:
    button: int
    x: int
    y: int
    pressed: bool


def _read_mouse_report(term, text: str = '') -> Optional[MouseEvent]:
    """Pulls the rest of an SGR mouse report (ESC already read) off the keyboard."""
    while len(text) < 32:
        if not (MOUSE_PREFIX.startswith(text) or text.startswith(MOUSE_PREFIX)):
            return None
        if text.startswith(MOUSE_PREFIX) and text[-1] in 'Mm':
            break
        k = term.inkey(timeout=0)
        if not k:
            return None
        text += str(k)
    m = MOUSE_RE.match(text)
    if not m:
        return None
    return MouseEvent(int(m.group(1)), int(m.group(2)), int(m.group(3)), m.group(4) == 'M')


def read_event(term, timeout: float):
    '''
    Waits up to `timeout` seconds for one keystroke or mouse report.
    Returns None when nothing arrived.
    '''
    key = term.inkey(timeout=timeout)
    if not key:
        return None
    s = str(key)
    if s.startswith('\x1b'):
        # mouse reports aren't known sequences, so they arrive as a lone ESC
        mouse = _read_mouse_report(term, s[1:])
        if mouse is not None:
            return mouse
    return key


Emit = Callable[[str], None]


class InputHandler:
    '''
    Applies one key (or mouse) event to the model. `handle` returns False when
    the user asked to quit.
    '''
    KEY_ALIASES = {
        '\x03': INTERRUPT,
        '\r': 'KEY_ENTER',
        '\n': 'KEY_ENTER',
        '\x7f': 'KEY_BACKSPACE',
        '\x08': 'KEY_BACKSPACE',
    }

    def __init__(self, emit: Emit):
        self.emit = emit

    def submit(self, model: ViewModel):
        if not model.input_buffer:
            return
        self.emit(model.input_buffer)
        model.input_buffer = ""

    def handle(self, model: ViewModel, key: Union[MouseEvent, object, None]) -> bool:
        if key is None:
            return True
        if isinstance(key, MouseEvent):
            if key.button == WHEEL_UP: model.scroll_to(model.scroll_position - 1)
            elif key.button == WHEEL_DOWN: model.scroll_to(model.scroll_position + 1)
            return True

        name = self.KEY_ALIASES.get(str(key), getattr(key, 'name', None))
        if name == INTERRUPT:
            return False
        if name == 'KEY_ENTER': self.submit(model)
        elif name == 'KEY_BACKSPACE': model.input_buffer = model.input_buffer[:-1]
        elif name == 'KEY_UP': model.scroll_to(model.scroll_position - 1)
        elif name == 'KEY_DOWN': model.scroll_to(model.scroll_position + 1)
        elif name == 'KEY_PGUP': model.scroll_to(model.scroll_position - PAGE)
        elif name == 'KEY_PGDOWN': model.scroll_to(model.scroll_position + PAGE)
        elif name == 'KEY_HOME': model.scroll_to(0)
        elif name == 'KEY_END': model.scroll_to(model.last_index())
        elif name is None and not getattr(key, 'is_sequence', False):
            ch = str(key)
            if len(ch) == 1 and ch.isprintable():
                model.input_buffer += ch
        return True
