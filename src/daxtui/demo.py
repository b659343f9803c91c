'''
Scripted driver for trying the viewer by hand: `daxtui-demo`.

Type anything to get a canned streamed reply. Commands:
    /gate        pause on an approval gate
    /fail        report an error from the "agent"
    /quit        close the viewer
'''
from typing import Optional
import argparse
import itertools
import sys
import threading
import time

from .client import ViewerProcess
from .config import Settings, configure_logging
from .protocol import complete, error, gate as gate_event, meta, state, text_delta, tool_call, tool_result
from .state import Phase

REPLY = ["Hello!", "I'm DAX.", "How can I help you today?"]

_commands = {}
_ids = itertools.count(1)


def command(fn):
    '''
    used like:

    @command
    def gate(viewer, delay): ...

    now `/gate` typed in the viewer calls it.
    '''
    _commands[fn.__name__] = fn
    return fn


def dispatch_command(viewer: ViewerProcess, text: str, delay: float) -> bool:
    if not text.startswith("/"): return False
    parts = text[1:].split()
    if not parts: return False
    fn = _commands.get(parts[0])
    if fn is None:
        viewer.dispatch(error(f"unknown command /{parts[0]}"))
        return True
    fn(viewer, delay)
    return True


def respond(viewer: ViewerProcess, text: str, delay: float):
    viewer.add_user_message(text)
    time.sleep(delay)
    viewer.update_state(Phase.AWAITING_FIRST_TOKEN)
    time.sleep(delay)
    viewer.dispatch(state(Phase.STREAMING))
    for word in REPLY:
        viewer.dispatch(text_delta(word + " "))
        time.sleep(delay)

    call_id = f"call_{next(_ids)}"
    viewer.dispatch(tool_call("read_file", call_id))
    viewer.dispatch(state(Phase.TOOL_EXECUTING))
    started = time.time()
    time.sleep(delay)
    viewer.dispatch(tool_result(call_id, True, f"read {len(text)} bytes", int((time.time() - started) * 1000)))
    viewer.dispatch(text_delta(f"\nYou said: {text}"))
    viewer.dispatch(complete())


@command
def gate(viewer, delay):
    viewer.dispatch(gate_event("gate_1", blocked=False, warnings=[("write_outside_scope", "/etc/hosts")]))
    time.sleep(delay * 5)
    viewer.dispatch(text_delta("Gate resolved, carrying on."))
    viewer.dispatch(complete())


@command
def fail(viewer, delay):
    viewer.dispatch(error("simulated provider failure"))


@command
def quit(viewer, delay):
    viewer.destroy()


def main(argv: Optional[list] = None) -> int:
    parser = argparse.ArgumentParser(prog='daxtui-demo', description="Drive the viewer with canned replies.")
    parser.add_argument('--delay', type=float, default=0.3, help="seconds between streamed chunks")
    parser.add_argument('--log-file', metavar='PATH', help="write client logs to PATH")
    args = parser.parse_args(argv)
    configure_logging(Settings(log_file=args.log_file))

    viewer = ViewerProcess()

    def on_send(text):
        threading.Thread(target=respond, args=(viewer, text, args.delay), daemon=True).start()

    def on_command(text):
        threading.Thread(target=dispatch_command, args=(viewer, text, args.delay), daemon=True).start()

    viewer.set_send_handler(on_send)
    viewer.set_command_handler(on_command)
    viewer.dispatch(meta("demo", "echo-1"))
    viewer.set_context(["src/daxtui/app.py", "src/daxtui/render.py"], ["src/", "pyproject.toml"])
    try:
        return viewer.wait()
    except KeyboardInterrupt:
        viewer.destroy()
        return 130


if __name__ == "__main__":
    sys.exit(main())
