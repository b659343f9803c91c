"""Tests for the driver-side process wrapper, with a fake child process."""

from __future__ import annotations

import subprocess
import threading

import pytest

from daxtui.client import DESTROY_GRACE, ViewerProcess, viewer_command
from daxtui.protocol import decode_line, encode_input, text_delta
from daxtui.protocol import AddUserMessage, Dispatch, SetContext, Terminate, UpdateState
from daxtui.state import Phase


class FakeStdin:
    def __init__(self, broken=False):
        self.lines = []
        self.closed = False
        self.broken = broken

    def write(self, s):
        if self.broken:
            raise BrokenPipeError("gone")
        if self.closed:
            raise ValueError("I/O operation on closed file")
        self.lines.append(s)

    def flush(self):
        pass

    def close(self):
        self.closed = True


class GatedOutput:
    """Viewer stdout that only starts yielding once the test opens it."""

    def __init__(self, lines=()):
        self.lines = list(lines)
        self.open = threading.Event()

    def __iter__(self):
        self.open.wait(5)
        return iter(self.lines)


class FakePopen:
    def __init__(self, args, output=(), hangs=False, broken=False, **kwargs):
        self.args = args
        self.kwargs = kwargs
        self.stdin = FakeStdin(broken)
        self.stdout = GatedOutput(output)
        self.hangs = hangs
        self.terminated = False
        self.waits = []

    def wait(self, timeout=None):
        self.waits.append(timeout)
        if self.hangs and not self.terminated:
            raise subprocess.TimeoutExpired(self.args, timeout)
        return 0

    def poll(self):
        return 0

    def terminate(self):
        self.terminated = True


def spawn(**fake) -> ViewerProcess:
    return ViewerProcess(["viewer"], env={"HOME": "/tmp"}, popen=lambda args, **kw: FakePopen(args, **fake, **kw))


def sent(viewer: ViewerProcess):
    return [decode_line(s) for s in viewer.proc.stdin.lines]


def test_spawns_with_pipes_and_allow_pipe():
    viewer = spawn()
    kw = viewer.proc.kwargs
    assert viewer.proc.args == ["viewer"]
    assert kw["stdin"] is subprocess.PIPE
    assert kw["stdout"] is subprocess.PIPE
    assert "stderr" not in kw
    assert kw["env"]["DAX_TUI_ALLOW_PIPE"] == "1"
    assert kw["env"]["HOME"] == "/tmp"


def test_default_command_runs_the_package():
    assert viewer_command()[1:] == ["-m", "daxtui"]


def test_sends_one_json_line_per_message():
    viewer = spawn()
    viewer.add_user_message("hi")
    viewer.dispatch(text_delta("x"))
    viewer.set_context(("a.py",), ["src/"])
    viewer.update_state("streaming")
    viewer.update_state(Phase.ERROR)
    assert all(s.endswith("\n") and s.count("\n") == 1 for s in viewer.proc.stdin.lines)
    assert sent(viewer) == [
        AddUserMessage("hi"),
        Dispatch(text_delta("x")),
        SetContext(["a.py"], ["src/"]),
        UpdateState(Phase.STREAMING),
        UpdateState(Phase.ERROR),
    ]


def test_destroy_sends_terminate_and_drops_later_sends():
    viewer = spawn()
    viewer.destroy()
    viewer.add_user_message("too late")
    assert sent(viewer) == [Terminate()]
    assert viewer.proc.stdin.closed
    assert viewer.proc.waits == [DESTROY_GRACE]
    assert not viewer.ready


def test_destroy_terminates_a_hung_viewer():
    viewer = spawn(hangs=True)
    viewer.destroy()
    assert viewer.proc.terminated


def test_broken_pipe_marks_not_ready():
    viewer = spawn(broken=True)
    viewer.add_user_message("hi")
    assert not viewer.ready


@pytest.mark.parametrize("text, to_command", [("/gate", True), ("hello", False), ("a /b", False)])
def test_route(text, to_command):
    viewer = spawn()
    commands, sends = [], []
    viewer.set_command_handler(commands.append)
    viewer.set_send_handler(sends.append)
    viewer.route(text)
    assert (commands if to_command else sends) == [text]
    assert (sends if to_command else commands) == []


def test_route_without_handler_is_ignored():
    spawn().route("hello")


def test_output_lines_are_routed():
    viewer = spawn(output=[encode_input("hi") + "\n", "\n", "not json\n", encode_input("/quit") + "\n"])
    commands, sends = [], []
    viewer.set_command_handler(commands.append)
    viewer.set_send_handler(sends.append)
    viewer.proc.stdout.open.set()
    viewer._reader.join(timeout=5)
    assert sends == ["hi"]
    assert commands == ["/quit"]
