"""End-to-end tests of the viewer loop with a fake terminal."""

from __future__ import annotations

import io

import pytest
from blessed.keyboard import Keystroke
from conftest import FakeTerm, key, line, restore_sequence

from daxtui.app import Viewer, load_settings, main
from daxtui.config import DEFAULT_TICK_MS
from daxtui.emitter import OutputEmitter
from daxtui.reader import LineReader, MessageQueue
from daxtui.state import Phase, Role

TURN = [
    line({"type": "addUserMessage", "content": "hi"}),
    line({"type": "dispatch", "event": {"type": "text_delta", "data": {"text": "hello"}}}),
    line({"type": "dispatch", "event": {"type": "complete"}}),
]


def make_viewer(keys=(), lines=(), out=None, width=80, height=24) -> Viewer:
    queue = MessageQueue()
    for raw in lines:
        queue.put(raw)
    term = FakeTerm(keys, width, height)
    return Viewer(term, queue, OutputEmitter(out or io.StringIO()))


def test_turn_is_applied_and_drawn():
    viewer = make_viewer(lines=TURN)
    assert viewer.tick()
    model = viewer.model
    assert [(m.role, m.content) for m in model.transcript] == [(Role.USER, "hi"), (Role.ASSISTANT, "hello")]
    assert model.stream_phase is Phase.IDLE
    assert model.scroll_position == 1
    screen = viewer.buf.text()
    assert "hello" in screen
    assert "✓ Ready" in screen


def test_typing_then_enter_emits_input_line():
    out = io.StringIO()
    viewer = make_viewer(keys=[*"test", key("KEY_ENTER")], out=out)
    for _ in range(5):
        assert viewer.tick()
    assert out.getvalue() == '{"type":"input","content":"test"}\n'
    assert viewer.model.input_buffer == ""


def test_malformed_lines_are_skipped():
    viewer = make_viewer(lines=["garbage", TURN[0], "{}"])
    viewer.tick()
    assert [m.content for m in viewer.model.transcript] == ["hi"]


def test_destroy_stops_the_loop_and_drops_the_rest():
    viewer = make_viewer(lines=[TURN[0], '{"type":"destroy"}', TURN[0]])
    assert viewer.tick() is False
    assert len(viewer.model.transcript) == 1


def test_ctrl_c_stops_the_loop():
    viewer = make_viewer(keys=["\x03"])
    assert viewer.tick() is False


def test_tick_waits_with_configured_timeout():
    viewer = make_viewer()
    viewer.tick()
    assert viewer.term.timeouts == [DEFAULT_TICK_MS / 1000]


def test_buffer_follows_resize():
    viewer = make_viewer()
    viewer.tick()
    viewer.term.width, viewer.term.height = 100, 30
    viewer.tick()
    assert (viewer.buf.w, viewer.buf.h) == (100, 30)


def test_reader_feeds_viewer():
    queue = MessageQueue()
    reader = LineReader(io.StringIO("\n".join(TURN) + "\n"), queue)
    reader.start()
    reader.join(timeout=5)
    viewer = Viewer(FakeTerm(), queue, OutputEmitter(io.StringIO()))
    viewer.tick()
    assert len(viewer.model.transcript) == 2


class TestSettings:
    def test_defaults(self, monkeypatch):
        for name in ["DAX_TUI_ALLOW_PIPE", "DAX_TUI_TICK_MS", "DAX_TUI_LOG", "DAX_TUI_LOG_LEVEL"]:
            monkeypatch.delenv(name, raising=False)
        settings = load_settings([])
        assert not settings.allow_pipe
        assert settings.tick_ms == DEFAULT_TICK_MS

    def test_flags_override_environment(self, monkeypatch, tmp_path):
        monkeypatch.setenv("DAX_TUI_TICK_MS", "80")
        log_file = str(tmp_path / "v.log")
        settings = load_settings(["--allow-pipe", "--tick-ms", "20", "--log-file", log_file, "--log-level", "debug"])
        assert settings.allow_pipe
        assert settings.tick_ms == 20
        assert settings.log_file == log_file
        assert settings.log_level == "DEBUG"

    def test_bad_tick_exits(self, monkeypatch):
        monkeypatch.delenv("DAX_TUI_TICK_MS", raising=False)
        with pytest.raises(SystemExit):
            load_settings(["--tick-ms", "0"])

    def test_bad_env_tick_exits(self, monkeypatch):
        monkeypatch.setenv("DAX_TUI_TICK_MS", "soon")
        with pytest.raises(SystemExit):
            load_settings([])


def test_main_without_terminal_prints_hint(capsys, monkeypatch):
    monkeypatch.delenv("DAX_TUI_ALLOW_PIPE", raising=False)
    monkeypatch.delenv("DAX_TUI_LOG", raising=False)
    monkeypatch.setattr("sys.stdin", io.StringIO(""))
    monkeypatch.setattr("sys.stdout", io.StringIO())
    assert main([]) == 1
    err = capsys.readouterr().err
    assert "requires a real terminal" in err
    assert "DAX_TUI_ALLOW_PIPE=1" in err


class TestRunRestoresTerminal:
    def viewer(self, xterm, lines=()) -> Viewer:
        queue = MessageQueue()
        for raw in lines:
            queue.put(raw)
        return Viewer(xterm, queue, OutputEmitter(io.StringIO()))

    def test_after_destroy(self, xterm):
        viewer = self.viewer(xterm, [TURN[0], '{"type":"destroy"}'])
        viewer.run()
        assert viewer.model.terminated
        assert xterm.stream.getvalue().endswith(restore_sequence(xterm))

    def test_after_ctrl_c(self, xterm, monkeypatch):
        monkeypatch.setattr(xterm, "inkey", lambda timeout=None: Keystroke("\x03"))
        viewer = self.viewer(xterm, TURN)
        viewer.run()
        out = xterm.stream.getvalue()
        assert "hello" in out
        assert out.endswith(restore_sequence(xterm))

    def test_after_keyboard_interrupt(self, xterm, monkeypatch):
        viewer = self.viewer(xterm)

        def interrupted():
            raise KeyboardInterrupt

        monkeypatch.setattr(viewer, "draw", interrupted)
        viewer.run()
        assert xterm.stream.getvalue().endswith(restore_sequence(xterm))

    def test_after_draw_fails(self, xterm, monkeypatch):
        viewer = self.viewer(xterm)

        def broken():
            raise RuntimeError("render failed")

        monkeypatch.setattr(viewer, "draw", broken)
        with pytest.raises(RuntimeError):
            viewer.run()
        assert xterm.stream.getvalue().endswith(restore_sequence(xterm))
