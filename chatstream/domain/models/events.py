"""
Session events - the tagged inputs dispatched through the session state machine.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, List, Optional, Union

from .tool import PendingToolCall, ToolRound


@dataclass(frozen=True)
class Opened:
    """The transport opened a response.

    ``body`` holds the fully read body when the response is not an event
    stream, otherwise ``None``.
    """
    response: Any
    body: Optional[str] = None


@dataclass(frozen=True)
class FragmentReceived:
    """A raw event payload arrived on an open stream."""
    data: str


@dataclass(frozen=True)
class StreamEnded:
    """Terminal sentinel, transport close, or a response resolved at open time."""
    reason: str = "done"


@dataclass(frozen=True)
class ToolRoundStarted:
    calls: List[PendingToolCall] = field(default_factory=list)


@dataclass(frozen=True)
class ToolRoundCompleted:
    round: ToolRound


@dataclass(frozen=True)
class Aborted:
    reason: Optional[str] = None


@dataclass(frozen=True)
class Errored:
    error: BaseException


SessionEvent = Union[
    Opened, FragmentReceived, StreamEnded, ToolRoundStarted, ToolRoundCompleted, Aborted, Errored
]
