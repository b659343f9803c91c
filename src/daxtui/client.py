'''
Driver side: spawn the viewer as a child process and talk to it.

    viewer = ViewerProcess()
    viewer.set_send_handler(lambda text: ...)
    viewer.add_user_message("hi")
    viewer.dispatch(text_delta("hello"))
    viewer.dispatch(complete())
    viewer.destroy()

Submissions starting with "/" go to the command handler, everything else to
the send handler. Handlers run on the client's reader thread.
'''
from typing import Callable, List, Mapping, Optional, Sequence, Union
import logging
import os
import subprocess
import sys
import threading

from .config import ALLOW_PIPE_ENV
from .protocol import (
    AddUserMessage, ControlMessage, Dispatch, SetContext, StreamEvent, Terminate,
    UpdateState, decode_output, encode,
)
from .state import Phase

log = logging.getLogger(__name__)

Handler = Callable[[str], None]

DESTROY_GRACE = 2.0  # seconds the viewer gets to restore the terminal


def viewer_command() -> List[str]:
    return [sys.executable, '-m', 'daxtui']


class ViewerProcess:
    def __init__(self, command: Optional[Sequence[str]] = None, env: Optional[Mapping[str, str]] = None,
                 popen=subprocess.Popen):
        env = dict(os.environ if env is None else env)
        env[ALLOW_PIPE_ENV] = '1'
        self.command = list(command or viewer_command())
        self._on_send: Optional[Handler] = None
        self._on_command: Optional[Handler] = None
        self._lock = threading.Lock()

        # stderr is inherited: with stdout piped, the viewer draws there
        self.proc = popen(
            self.command,
            stdin=subprocess.PIPE,
            stdout=subprocess.PIPE,
            env=env,
            text=True,
            encoding='utf-8',
            bufsize=1,
        )
        self.ready = True
        self._reader = threading.Thread(target=self._read_output, name="daxtui-client", daemon=True)
        self._reader.start()

    # --- outbound ---

    def send(self, msg: ControlMessage):
        with self._lock:
            if not self.ready:
                return
            try:
                self.proc.stdin.write(encode(msg) + "\n")
                self.proc.stdin.flush()
            except (OSError, ValueError) as e:
                log.warning("viewer pipe closed: %s", e)
                self.ready = False

    def dispatch(self, event: StreamEvent):
        self.send(Dispatch(event))

    def add_user_message(self, content: str):
        self.send(AddUserMessage(content))

    def set_context(self, files: Sequence[str], scope: Sequence[str]):
        self.send(SetContext(list(files), list(scope)))

    def update_state(self, phase: Union[Phase, str]):
        self.send(UpdateState(phase if isinstance(phase, Phase) else Phase.parse(phase)))

    def set_send_handler(self, fn: Handler):
        self._on_send = fn

    def set_command_handler(self, fn: Handler):
        self._on_command = fn

    def destroy(self):
        self.send(Terminate())
        with self._lock:
            self.ready = False
            try:
                self.proc.stdin.close()
            except OSError:
                pass
        try:
            self.proc.wait(timeout=DESTROY_GRACE)
        except subprocess.TimeoutExpired:
            log.warning("viewer did not exit, terminating")
            self.proc.terminate()
            self.proc.wait()

    def wait(self) -> int:
        return self.proc.wait()

    # --- inbound ---

    def route(self, text: str):
        handler = self._on_command if text.startswith("/") else self._on_send
        if handler is not None:
            handler(text)

    def _read_output(self):
        for line in self.proc.stdout:
            line = line.strip()
            if not line:
                continue
            text = decode_output(line)
            if text is None:
                log.debug("ignoring viewer output %.80r", line)
                continue
            self.route(text)
        log.info("viewer output closed (exit code %s)", self.proc.poll())
