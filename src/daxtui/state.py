from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple
import time


def now_ms() -> int:
    return int(time.time() * 1000)


class Role(Enum):
    USER = "user"
    ASSISTANT = "assistant"


class ToolStatus(Enum):
    RUNNING = "running"
    SUCCESS = "success"
    ERROR = "error"


class Phase(Enum):
    IDLE = "idle"
    DONE = "done"
    REQUEST_SENT = "request_sent"
    THINKING = "thinking"
    AWAITING_FIRST_TOKEN = "awaiting_first_token"
    STREAMING = "streaming"
    TOOL_EXECUTING = "tool_executing"
    WAITING = "waiting"
    ERROR = "error"

    @classmethod
    def parse(cls, value: str) -> 'Phase':
        """Unknown phase strings fall back to IDLE (shown as "ready")."""
        try:
            return cls(value)
        except ValueError:
            return cls.IDLE


@dataclass
class ToolState:
    name: str
    id: str
    status: ToolStatus = ToolStatus.RUNNING
    output: Optional[str] = None
    elapsed_ms: Optional[int] = None

    def resolve(self, success: bool, output: Optional[str], elapsed_ms: Optional[int]) -> bool:
        if self.status is not ToolStatus.RUNNING:
            return False
        self.status = ToolStatus.SUCCESS if success else ToolStatus.ERROR
        self.output = output
        self.elapsed_ms = elapsed_ms
        return True


@dataclass(frozen=True)
class Message:
    role: Role
    content: str
    timestamp: int = field(default_factory=now_ms)
    tools: Tuple[ToolState, ...] = ()


@dataclass(frozen=True)
class GateWarning:
    code: str
    subject: str


@dataclass(frozen=True)
class GateState:
    id: Optional[str] = None
    blocked: bool = False
    warnings: Tuple[GateWarning, ...] = ()


@dataclass
class ViewModel:
    '''
    The whole screen state. One instance lives for the process lifetime and
    is only touched from the main loop (reducer + input handler).
    '''
    transcript: List[Message] = field(default_factory=list)
    streaming_buffer: str = ""
    stream_phase: Phase = Phase.IDLE
    active_tool: Optional[str] = None
    tool_log: List[ToolState] = field(default_factory=list)
    context_files: List[str] = field(default_factory=list)
    context_scope: List[str] = field(default_factory=list)
    gate: Optional[GateState] = None
    input_buffer: str = ""
    scroll_position: int = 0
    provider: Optional[str] = None
    model: Optional[str] = None
    terminated: bool = False

    def last_index(self) -> int:
        return max(0, len(self.transcript) - 1)

    def clamp_scroll(self, pos: int) -> int:
        return min(max(pos, 0), self.last_index())

    def scroll_to(self, pos: int):
        self.scroll_position = self.clamp_scroll(pos)
