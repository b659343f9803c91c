'''
Folds control messages into the ViewModel.

The phase is mostly inferred from the kind of event (user message -> thinking,
complete -> idle, gate -> waiting, error -> error) so the header always shows
the latest known activity; `state` events and `updateState` messages set it
directly for the phases the event stream can't express on its own.
'''
from typing import Iterable
import copy
import logging

from .protocol import (
    AddUserMessage, Complete, ControlMessage, Dispatch, Error, Gate, Meta, SetContext,
    State, StreamEvent, Terminate, TextDelta, ToolCall, ToolResult, UpdateState,
)
from .state import GateState, Message, Phase, Role, ToolState, ToolStatus, ViewModel

log = logging.getLogger(__name__)


def _finish_turn(model: ViewModel):
    if not model.streaming_buffer and not model.tool_log:
        return
    tools = tuple(copy.copy(t) for t in model.tool_log)
    model.transcript.append(Message(Role.ASSISTANT, model.streaming_buffer, tools=tools))
    model.streaming_buffer = ""
    model.tool_log = []
    model.gate = None
    model.stream_phase = Phase.IDLE
    model.scroll_position = model.last_index()


def _resolve_tool(model: ViewModel, ev: ToolResult):
    model.active_tool = None
    if ev.tool_id is None:
        return
    for tool in model.tool_log:
        if tool.id == ev.tool_id and tool.status is ToolStatus.RUNNING:
            tool.resolve(ev.success, ev.output, ev.elapsed_ms)
            return
    log.debug("tool result for unknown or finished id %r", ev.tool_id)


def apply_event(model: ViewModel, ev: StreamEvent) -> ViewModel:
    if isinstance(ev, Meta):
        model.provider, model.model = ev.provider, ev.model
    elif isinstance(ev, State):
        model.stream_phase = ev.phase
    elif isinstance(ev, TextDelta):
        model.streaming_buffer += ev.text
    elif isinstance(ev, ToolCall):
        model.active_tool = ev.name
        if ev.name is not None and ev.id is not None:
            model.tool_log.append(ToolState(ev.name, ev.id))
    elif isinstance(ev, ToolResult):
        _resolve_tool(model, ev)
    elif isinstance(ev, Complete):
        _finish_turn(model)
    elif isinstance(ev, Error):
        log.warning("driver reported error: %s", ev.message)
        model.stream_phase = Phase.ERROR
    elif isinstance(ev, Gate):
        model.gate = GateState(ev.id, ev.blocked, ev.warnings)
        model.stream_phase = Phase.WAITING
    else:
        raise TypeError(f"unhandled stream event {ev!r}")
    return model


def reduce(model: ViewModel, msg: ControlMessage) -> ViewModel:
    """Applies one control message to `model` (in place) and returns it."""
    if model.terminated:
        return model
    if isinstance(msg, Dispatch):
        return apply_event(model, msg.event)
    if isinstance(msg, AddUserMessage):
        model.streaming_buffer = ""
        model.gate = None
        model.transcript.append(Message(Role.USER, msg.content))
        model.stream_phase = Phase.THINKING
    elif isinstance(msg, SetContext):
        model.context_files = list(msg.files)
        model.context_scope = list(msg.scope)
    elif isinstance(msg, UpdateState):
        model.stream_phase = msg.phase
    elif isinstance(msg, Terminate):
        log.info("destroy received")
        model.terminated = True
    else:
        raise TypeError(f"unhandled control message {msg!r}")
    return model


def reduce_all(model: ViewModel, msgs: Iterable[ControlMessage]) -> ViewModel:
    for msg in msgs:
        reduce(model, msg)
    return model
