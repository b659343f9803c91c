'''
Wire format between the driving process and the viewer.

Inbound, one JSON object per line on stdin:

    {"type": "dispatch", "event": {"type": "text_delta", "data": {"text": "hi"}}}
    {"type": "addUserMessage", "content": "..."}
    {"type": "setContext", "files": [...], "scope": [...]}
    {"type": "updateState", "state": "streaming"}
    {"type": "destroy"}

Outbound, one JSON object per submission on stdout:

    {"type": "input", "content": "..."}
'''
from dataclasses import dataclass, field
from typing import Any, List, Optional, Tuple, Union
import json

from .state import GateWarning, Phase


class DecodeError(ValueError):
    pass


# --- stream events (payload of "dispatch") ---

@dataclass(frozen=True)
class Meta:
    provider: Optional[str] = None
    model: Optional[str] = None

@dataclass(frozen=True)
class State:
    phase: Phase

@dataclass(frozen=True)
class TextDelta:
    text: str

@dataclass(frozen=True)
class ToolCall:
    name: Optional[str] = None
    id: Optional[str] = None

@dataclass(frozen=True)
class ToolResult:
    tool_id: Optional[str] = None
    success: bool = False
    output: Optional[str] = None
    elapsed_ms: Optional[int] = None

@dataclass(frozen=True)
class Gate:
    id: Optional[str] = None
    blocked: bool = False
    warnings: Tuple[GateWarning, ...] = ()

@dataclass(frozen=True)
class Complete:
    pass

@dataclass(frozen=True)
class Error:
    message: Optional[str] = None


StreamEvent = Union[Meta, State, TextDelta, ToolCall, ToolResult, Gate, Complete, Error]


# --- control messages ---

@dataclass(frozen=True)
class Dispatch:
    event: StreamEvent

@dataclass(frozen=True)
class AddUserMessage:
    content: str

@dataclass(frozen=True)
class SetContext:
    files: List[str] = field(default_factory=list)
    scope: List[str] = field(default_factory=list)

@dataclass(frozen=True)
class UpdateState:
    phase: Phase

@dataclass(frozen=True)
class Terminate:
    pass


ControlMessage = Union[Dispatch, AddUserMessage, SetContext, UpdateState, Terminate]


#====================================
# decoding
#====================================


def _require(obj: dict, key: str, typ):
    val = obj.get(key)
    if not isinstance(val, typ) or isinstance(val, bool) and typ is not bool:
        raise DecodeError(f"field '{key}' missing or not {typ.__name__}")
    return val

def _optional(obj: dict, key: str, typ):
    val = obj.get(key)
    if val is None:
        return None
    if not isinstance(val, typ) or isinstance(val, bool) and typ is not bool:
        raise DecodeError(f"field '{key}' is not {typ.__name__}")
    return val

def _str_list(obj: dict, key: str) -> List[str]:
    val = _require(obj, key, list)
    if not all(isinstance(v, str) for v in val):
        raise DecodeError(f"field '{key}' must be a list of strings")
    return list(val)

def _warnings(data: dict) -> Tuple[GateWarning, ...]:
    raw = _optional(data, "warnings", list) or []
    out = []
    for w in raw:
        if not isinstance(w, dict):
            raise DecodeError("gate warning must be an object")
        out.append(GateWarning(_require(w, "code", str), _require(w, "subject", str)))
    return tuple(out)


def decode_event(obj: Any) -> StreamEvent:
    if not isinstance(obj, dict):
        raise DecodeError("event must be an object")
    kind = obj.get("type")
    data = obj.get("data")
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise DecodeError("event data must be an object")

    if kind == "meta":
        return Meta(_optional(data, "provider", str), _optional(data, "model", str))
    if kind == "state":
        return State(Phase.parse(_require(data, "state", str)))
    if kind == "text_delta":
        return TextDelta(_require(data, "text", str))
    if kind == "tool_call":
        return ToolCall(_optional(data, "name", str), _optional(data, "id", str))
    if kind == "tool_result":
        tool_id = _optional(data, "tool_id", str)
        if tool_id is None:
            tool_id = _optional(data, "id", str)
        elapsed = _optional(data, "elapsed_ms", int)
        if elapsed is not None and elapsed < 0:
            raise DecodeError("elapsed_ms must not be negative")
        return ToolResult(
            tool_id=tool_id,
            success=bool(_optional(data, "success", bool)),
            output=_optional(data, "output", str),
            elapsed_ms=elapsed,
        )
    if kind == "gate":
        return Gate(_optional(data, "id", str), bool(_optional(data, "blocked", bool)), _warnings(data))
    if kind == "complete":
        return Complete()
    if kind == "error":
        return Error(_optional(data, "message", str))
    raise DecodeError(f"unknown event type {kind!r}")


def decode(obj: Any) -> ControlMessage:
    if not isinstance(obj, dict):
        raise DecodeError("message must be an object")
    kind = obj.get("type")
    if kind == "dispatch":
        return Dispatch(decode_event(obj.get("event")))
    if kind == "addUserMessage":
        return AddUserMessage(_require(obj, "content", str))
    if kind == "setContext":
        return SetContext(_str_list(obj, "files"), _str_list(obj, "scope"))
    if kind == "updateState":
        return UpdateState(Phase.parse(_require(obj, "state", str)))
    if kind == "destroy":
        return Terminate()
    raise DecodeError(f"unknown message type {kind!r}")


def decode_line(line: str) -> Optional[ControlMessage]:
    """Returns None for anything that isn't a well-formed control message."""
    try:
        return decode(json.loads(line))
    except (ValueError, RecursionError):  # JSONDecodeError and DecodeError are ValueErrors
        return None


#====================================
# encoding (driver side + outbound)
#====================================


def encode_event(event: StreamEvent) -> dict:
    if isinstance(event, Meta):
        return {"type": "meta", "data": {"provider": event.provider, "model": event.model}}
    if isinstance(event, State):
        return {"type": "state", "data": {"state": event.phase.value}}
    if isinstance(event, TextDelta):
        return {"type": "text_delta", "data": {"text": event.text}}
    if isinstance(event, ToolCall):
        return {"type": "tool_call", "data": {"name": event.name, "id": event.id}}
    if isinstance(event, ToolResult):
        return {"type": "tool_result", "data": {
            "tool_id": event.tool_id,
            "success": event.success,
            "output": event.output,
            "elapsed_ms": event.elapsed_ms,
        }}
    if isinstance(event, Gate):
        return {"type": "gate", "data": {
            "id": event.id,
            "blocked": event.blocked,
            "warnings": [{"code": w.code, "subject": w.subject} for w in event.warnings],
        }}
    if isinstance(event, Complete):
        return {"type": "complete", "data": {}}
    if isinstance(event, Error):
        return {"type": "error", "data": {"message": event.message}}
    raise TypeError(f"not a stream event: {event!r}")


def encode(msg: ControlMessage) -> str:
    if isinstance(msg, Dispatch):
        obj = {"type": "dispatch", "event": encode_event(msg.event)}
    elif isinstance(msg, AddUserMessage):
        obj = {"type": "addUserMessage", "content": msg.content}
    elif isinstance(msg, SetContext):
        obj = {"type": "setContext", "files": list(msg.files), "scope": list(msg.scope)}
    elif isinstance(msg, UpdateState):
        obj = {"type": "updateState", "state": msg.phase.value}
    elif isinstance(msg, Terminate):
        obj = {"type": "destroy"}
    else:
        raise TypeError(f"not a control message: {msg!r}")
    return json.dumps(obj, ensure_ascii=False, separators=(",", ":"))


# Shorthands for drivers, e.g. `viewer.dispatch(text_delta("hi"))`

def meta(provider: str, model: str) -> Meta: return Meta(provider, model)
def state(phase: Union[Phase, str]) -> State: return State(phase if isinstance(phase, Phase) else Phase.parse(phase))
def text_delta(text: str) -> TextDelta: return TextDelta(text)
def tool_call(name: str, id: str) -> ToolCall: return ToolCall(name, id)
def complete() -> Complete: return Complete()
def error(message: str) -> Error: return Error(message)

def tool_result(tool_id: str, success: bool, output: Optional[str] = None, elapsed_ms: Optional[int] = None) -> ToolResult:
    return ToolResult(tool_id, success, output, elapsed_ms)

def gate(id: str, blocked: bool = False, warnings=()) -> Gate:
    return Gate(id, blocked, tuple(w if isinstance(w, GateWarning) else GateWarning(*w) for w in warnings))


def encode_input(text: str) -> str:
    return json.dumps({"type": "input", "content": text}, ensure_ascii=False, separators=(",", ":"))


def decode_output(line: str) -> Optional[str]:
    """Returns the submitted text from an outbound line, or None."""
    try:
        obj = json.loads(line)
    except ValueError:
        return None
    if isinstance(obj, dict) and obj.get("type") == "input" and isinstance(obj.get("content"), str):
        return obj["content"]
    return None
