from typing import List, TextIO
import logging
import queue
import threading

log = logging.getLogger(__name__)


class MessageQueue:
    '''
    Hands raw lines from the reader thread to the main loop.
    FIFO and unbounded; `drain` never blocks.
    '''
    def __init__(self):
        self._q = queue.SimpleQueue()

    def put(self, line: str):
        self._q.put(line)

    def drain(self) -> List[str]:
        out = []
        while True:
            try:
                out.append(self._q.get_nowait())
            except queue.Empty:
                return out


class LineReader(threading.Thread):
    '''
    Reads the protocol stream line by line and queues every non-empty
    (stripped) line. Stops quietly on end-of-stream or a read error.
    '''
    def __init__(self, stream: TextIO, out: MessageQueue):
        super().__init__(name="daxtui-reader", daemon=True)
        self.stream = stream
        self.out = out

    def run(self):
        while True:
            try:
                line = self.stream.readline()
            except (OSError, ValueError) as e:
                log.debug("input stream read failed: %s", e)
                return
            if not line:
                log.info("input stream closed")
                return
            line = line.strip()
            if line:
                self.out.put(line)
