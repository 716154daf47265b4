"""Assistant tools: registry, typed arguments, handlers and dispatch."""

from .arguments import (
    DecodedToolCall,
    ToolArgumentsError,
    UnknownToolError,
    decode_tool_call,
)
from .base import ToolServices, ToolTurn
from .definitions import TOOL_NAMES, get_tool_definitions
from .dispatcher import HANDLERS, MUTATING_TOOLS, ToolDispatcher

__all__ = [
    "get_tool_definitions",
    "TOOL_NAMES",
    "decode_tool_call",
    "DecodedToolCall",
    "UnknownToolError",
    "ToolArgumentsError",
    "ToolServices",
    "ToolTurn",
    "ToolDispatcher",
    "HANDLERS",
    "MUTATING_TOOLS",
]
