'''
The viewer's main loop.

Each tick: apply everything the line reader has queued (in arrival order),
draw the whole screen, then wait up to one tick for a key and handle it.
'''
from typing import Callable, List, Optional
import argparse
import logging
import sys

from .config import Settings, configure_logging
from .emitter import OutputEmitter
from .keyboard import InputHandler, read_event
from .protocol import decode_line
from .reader import LineReader, MessageQueue
from .reducer import reduce
from .render import render
from .screen import ScreenBuffer
from .state import ViewModel
from .terminal import check_tty, open_terminal, session
from .theme import DEFAULT_THEME, Theme

log = logging.getLogger(__name__)


class Viewer:
    def __init__(self, term, queue: MessageQueue, emit: Callable[[str], None],
                 settings: Optional[Settings] = None, model: Optional[ViewModel] = None,
                 theme: Theme = DEFAULT_THEME):
        self.term = term
        self.queue = queue
        self.model = model if model is not None else ViewModel()
        self.handler = InputHandler(emit)
        self.settings = settings or Settings()
        self.theme = theme
        self.buf = ScreenBuffer(term.width, term.height)

    def apply_pending(self):
        for line in self.queue.drain():
            msg = decode_line(line)
            if msg is not None:
                reduce(self.model, msg)
            if self.model.terminated:
                break  # whatever is left is abandoned

    def draw(self):
        if self.buf.w != self.term.width or self.buf.h != self.term.height:
            self.buf = ScreenBuffer(self.term.width, self.term.height)
        render(self.buf, self.model, self.theme)
        self.buf.flush(self.term)

    def tick(self) -> bool:
        """One drain -> render -> poll cycle. False means stop."""
        self.apply_pending()
        if self.model.terminated:
            return False
        self.draw()
        return self.handler.handle(self.model, read_event(self.term, self.settings.tick))

    def run(self):
        with session(self.term):
            try:
                while self.tick():
                    pass
            except KeyboardInterrupt:
                log.info("interrupted")
        log.info("viewer stopped")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='daxtui',
        description="Terminal view of a streaming agent session. "
                    "Reads JSON control lines on stdin, writes input lines to stdout.",
    )
    parser.add_argument('--allow-pipe', action='store_true',
                        help="run even when neither stdin nor stdout is a terminal")
    parser.add_argument('--tick-ms', type=int, metavar='MS', help="input poll timeout")
    parser.add_argument('--log-file', metavar='PATH', help="write logs to PATH")
    parser.add_argument('--log-level', metavar='LEVEL', help="log level (default INFO)")
    return parser


def load_settings(argv: Optional[List[str]] = None) -> Settings:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        settings = Settings.from_env()
    except ValueError as e:
        parser.error(str(e))
    if args.allow_pipe:
        settings.allow_pipe = True
    if args.tick_ms is not None:
        if args.tick_ms < 1:
            parser.error("--tick-ms must be at least 1")
        settings.tick_ms = args.tick_ms
    if args.log_file:
        settings.log_file = args.log_file
    if args.log_level:
        settings.log_level = args.log_level.upper()
    return settings


def main(argv: Optional[List[str]] = None) -> int:
    settings = load_settings(argv)
    configure_logging(settings)

    problem = check_tty(settings.allow_pipe)
    if problem:
        sys.stderr.write(problem)
        return 1

    term, protocol = open_terminal()
    queue = MessageQueue()
    LineReader(protocol, queue).start()  # not joined; it dies with the process
    Viewer(term, queue, OutputEmitter(sys.stdout), settings).run()
    return 0
