"""Exception taxonomy for the streaming orchestrator."""

from __future__ import annotations


class ChatStreamError(Exception):
    """Base class for orchestrator errors."""
    pass


class EmptyResponseError(ChatStreamError):
    """The session completed but produced no text."""

    def __init__(self, message: str = "empty response from server"):
        super().__init__(message)


class InvalidTransitionError(ChatStreamError):
    """The session state machine was asked to make an illegal move."""

    def __init__(self, current, target):
        self.current = current
        self.target = target
        super().__init__(f"Invalid session transition {current.value} -> {target.value}")


class ToolHandlerNotFoundError(ChatStreamError):
    """A tool call names a function with no registered handler."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Tool '{name}' not found")


class ToolArgumentsError(ChatStreamError):
    """Tool arguments could not be decoded or failed validation."""
    pass


class ToolInvocationError(ChatStreamError):
    """A tool handler returned a failure status.

    ``str(error)`` is the normalized failure content so it can be folded into
    the conversation verbatim.
    """

    def __init__(self, content: str, status: int = 0):
        self.content = content
        self.status = status
        super().__init__(content)
