"""
Session domain models - state, cancellation handle and outcome of one streaming request.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, FrozenSet, List, Optional

from .stream import RevealBuffer
from .tool import PendingToolCall


class SessionState(Enum):
    """States of the session controller."""
    CREATED = "created"
    OPENING = "opening"
    STREAMING = "streaming"
    FINISHING = "finishing"
    TOOL_ROUND = "tool_round"
    FINISHED = "finished"
    ABORTED = "aborted"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (SessionState.FINISHED, SessionState.ABORTED, SessionState.FAILED)


ALLOWED_TRANSITIONS: Dict[SessionState, FrozenSet[SessionState]] = {
    SessionState.CREATED: frozenset({SessionState.OPENING, SessionState.ABORTED}),
    SessionState.OPENING: frozenset({
        SessionState.STREAMING, SessionState.FINISHING, SessionState.ABORTED, SessionState.FAILED,
    }),
    SessionState.STREAMING: frozenset({
        SessionState.FINISHING, SessionState.ABORTED, SessionState.FAILED,
    }),
    SessionState.FINISHING: frozenset({
        SessionState.TOOL_ROUND, SessionState.FINISHED, SessionState.ABORTED, SessionState.FAILED,
    }),
    SessionState.TOOL_ROUND: frozenset({
        SessionState.OPENING, SessionState.ABORTED, SessionState.FAILED,
    }),
    SessionState.FINISHED: frozenset(),
    SessionState.ABORTED: frozenset(),
    SessionState.FAILED: frozenset(),
}


class AbortSignal:
    """Cancellation handle shared by the consumer, the controller and the transport."""

    def __init__(self, logger: Optional[logging.Logger] = None) -> None:
        self._aborted = False
        self._reason: Optional[str] = None
        self._listeners: List[Callable[[], None]] = []
        self._logger = logger or logging.getLogger(__name__)

    @property
    def aborted(self) -> bool:
        return self._aborted

    @property
    def reason(self) -> Optional[str]:
        return self._reason

    def add_listener(self, listener: Callable[[], None]) -> None:
        self._listeners.append(listener)

    def abort(self, reason: Optional[str] = None) -> None:
        """Trigger cancellation; listeners run synchronously, once."""
        if self._aborted:
            return
        self._aborted = True
        self._reason = reason
        self._logger.debug(f"Abort requested{': ' + reason if reason else ''}")
        listeners, self._listeners = self._listeners, []
        for listener in listeners:
            listener()


@dataclass
class Session:
    """Mutable state of one logical streaming request, shared across tool rounds."""
    payload: Dict[str, Any]
    signal: AbortSignal = field(default_factory=AbortSignal)
    buffer: RevealBuffer = field(default_factory=RevealBuffer)
    pending_tool_calls: List[PendingToolCall] = field(default_factory=list)
    state: SessionState = SessionState.CREATED
    response: Any = None
    tool_rounds: int = 0

    @property
    def finished(self) -> bool:
        return self.state.is_terminal

    @property
    def running(self) -> bool:
        """True while a tool round is in flight."""
        return self.state is SessionState.TOOL_ROUND


@dataclass
class StreamOutcome:
    """Final result returned to the caller once a session is terminal."""
    state: SessionState
    transcript: str
    response: Any = None
    error: Optional[BaseException] = None
    tool_rounds: int = 0

    @property
    def success(self) -> bool:
        return self.error is None and self.state is not SessionState.FAILED
