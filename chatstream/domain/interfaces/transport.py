"""
Event transport protocol interface.
Defines the contract for long-lived streaming request implementations.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Protocol, Dict, Any, Optional, Mapping, AsyncIterator, Union

from ..models.session import AbortSignal


@dataclass
class TransportRequest:
    """One request cycle handed to the transport."""
    url: str
    body: Dict[str, Any]
    headers: Dict[str, str] = field(default_factory=dict)
    method: str = "POST"


class ResponseInfo(Protocol):
    """Response metadata available once the transport opens."""

    @property
    def status_code(self) -> int:
        ...

    @property
    def headers(self) -> Mapping[str, str]:
        ...

    @property
    def content_type(self) -> str:
        ...

    @property
    def ok(self) -> bool:
        ...

    async def aread_text(self) -> str:
        """Read the whole (non-stream) body as text."""
        ...


@dataclass(frozen=True)
class TransportOpened:
    response: ResponseInfo


@dataclass(frozen=True)
class TransportMessage:
    data: str
    event: str = "message"
    id: Optional[str] = None


TransportEvent = Union[TransportOpened, TransportMessage]


class EventTransport(Protocol):
    """Protocol for event-stream transports.

    ``events`` yields exactly one ``TransportOpened`` before any
    ``TransportMessage``; the iterator ending means the stream closed.
    Failures are raised from the iterator. Nothing is yielded once the
    signal is aborted.
    """

    def events(self, request: TransportRequest, signal: AbortSignal) -> AsyncIterator[TransportEvent]:
        ...
