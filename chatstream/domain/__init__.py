"""Domain layer - Pure streaming logic with no external dependencies."""

from .models import (
    AbortSignal,
    ChatStreamError,
    EmptyResponseError,
    Fragment,
    PendingToolCall,
    SessionState,
    StreamOutcome,
    ToolResult,
)
from .interfaces import StreamCallbacks

__all__ = [
    "AbortSignal",
    "ChatStreamError",
    "EmptyResponseError",
    "Fragment",
    "PendingToolCall",
    "SessionState",
    "StreamOutcome",
    "ToolResult",
    "StreamCallbacks",
]
