"""Domain models package."""

from .errors import (
    ChatStreamError,
    EmptyResponseError,
    InvalidTransitionError,
    ToolArgumentsError,
    ToolHandlerNotFoundError,
    ToolInvocationError,
)
from .events import (
    Aborted,
    Errored,
    FragmentReceived,
    Opened,
    SessionEvent,
    StreamEnded,
    ToolRoundCompleted,
    ToolRoundStarted,
)
from .session import AbortSignal, Session, SessionState, StreamOutcome
from .stream import Fragment, RevealBuffer
from .tool import PendingToolCall, ToolCallStatus, ToolResult, ToolRound

__all__ = [
    "ChatStreamError",
    "EmptyResponseError",
    "InvalidTransitionError",
    "ToolArgumentsError",
    "ToolHandlerNotFoundError",
    "ToolInvocationError",
    "Aborted",
    "Errored",
    "FragmentReceived",
    "Opened",
    "SessionEvent",
    "StreamEnded",
    "ToolRoundCompleted",
    "ToolRoundStarted",
    "AbortSignal",
    "Session",
    "SessionState",
    "StreamOutcome",
    "Fragment",
    "RevealBuffer",
    "PendingToolCall",
    "ToolCallStatus",
    "ToolResult",
    "ToolRound",
]
