from typing import Optional, TextIO
import logging
import sys

from .protocol import encode_input

log = logging.getLogger(__name__)


class OutputEmitter:
    """Writes each submission as one JSON line and flushes straight away."""
    def __init__(self, stream: Optional[TextIO] = None):
        self.stream = stream

    def __call__(self, text: str):
        stream = self.stream or sys.stdout
        stream.write(encode_input(text) + "\n")
        stream.flush()
        log.debug("submitted %d chars", len(text))
