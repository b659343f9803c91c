import os
os.environ.setdefault('ESCDELAY', '25')  # reduce escape key delay (ms)

from contextlib import contextmanager
from typing import Optional, TextIO, Tuple
import logging
import sys

from blessed import Terminal

from .config import ALLOW_PIPE_ENV

log = logging.getLogger(__name__)

USAGE = f"""Error: the viewer requires a real terminal.

It reads control messages on stdin and writes input lines to stdout, and
draws on whichever of stdout/stderr is a terminal. To run it:
  1. Open a terminal window
  2. Start the driving process from there
Or set {ALLOW_PIPE_ENV}=1 (or pass --allow-pipe) to run without one.
"""

# SGR mouse reporting: button events + extended coordinates
MOUSE_ON = '\x1b[?1000h\x1b[?1006h'
MOUSE_OFF = '\x1b[?1006l\x1b[?1000l'


def _isatty(stream) -> bool:
    try:
        return bool(stream) and stream.isatty()
    except (AttributeError, ValueError):
        return False


def check_tty(allow_pipe: bool, stdin=None, stdout=None) -> Optional[str]:
    """Returns the usage hint when there is no terminal to draw on."""
    if allow_pipe:
        return None
    stdin = sys.stdin if stdin is None else stdin
    stdout = sys.stdout if stdout is None else stdout
    if _isatty(stdin) or _isatty(stdout):
        return None
    return USAGE


def open_terminal() -> Tuple[Terminal, TextIO]:
    '''
    Returns the terminal to draw on and the stream control messages arrive on.

    When stdin is a pipe from the driving process, the pipe is moved to a new
    descriptor for the line reader and fd 0 is pointed at /dev/tty, because
    blessed only reads keys from stdin.
    '''
    protocol = sys.stdin
    if not _isatty(sys.stdin):
        try:
            tty_fd = os.open('/dev/tty', os.O_RDWR)
        except OSError as e:
            log.info("no controlling terminal, keyboard disabled: %s", e)
        else:
            protocol = os.fdopen(os.dup(0), 'r', encoding='utf-8', errors='replace')
            os.dup2(tty_fd, 0)
            os.close(tty_fd)

    if _isatty(sys.__stdout__): stream = sys.__stdout__
    elif _isatty(sys.__stderr__): stream = sys.__stderr__
    else: stream = sys.__stdout__
    return Terminal(stream=stream), protocol


@contextmanager
def mouse_capture(term: Terminal):
    if not term.does_styling:
        yield
        return
    term.stream.write(MOUSE_ON)
    term.stream.flush()
    try:
        yield
    finally:
        term.stream.write(MOUSE_OFF)
        term.stream.flush()


@contextmanager
def session(term: Terminal):
    '''
    Raw input, alternate screen, mouse capture and hidden cursor for the
    lifetime of the block. Each mode is undone in reverse order however the
    block exits.
    '''
    with term.raw(), term.fullscreen(), mouse_capture(term), term.hidden_cursor():
        log.info("terminal session started (%sx%s)", term.width, term.height)
        yield term
    log.info("terminal restored")
