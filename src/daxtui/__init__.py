'''
daxtui: a live terminal view of a streaming agent session.

Run `daxtui` (or `python -m daxtui`) with the driving process attached to
stdin/stdout, or drive it from Python with `daxtui.client.ViewerProcess`.
'''
from .state import Message, Phase, Role, ToolState, ToolStatus, ViewModel
from .protocol import decode_line, encode, encode_input
from .reducer import reduce, reduce_all

__version__ = "0.1.0"

__all__ = [
    "Message", "Phase", "Role", "ToolState", "ToolStatus", "ViewModel",
    "decode_line", "encode", "encode_input", "reduce", "reduce_all",
]
