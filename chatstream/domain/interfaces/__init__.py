"""Domain interfaces package - Protocols for the orchestrator's collaborators."""

from .callbacks import StreamCallbacks
from .chunk_parser import ChunkParser, ParsedChunk
from .locale import Locale, UNAUTHORIZED
from .transport import (
    EventTransport,
    ResponseInfo,
    TransportEvent,
    TransportMessage,
    TransportOpened,
    TransportRequest,
)

__all__ = [
    "StreamCallbacks",
    "ChunkParser",
    "ParsedChunk",
    "Locale",
    "UNAUTHORIZED",
    "EventTransport",
    "ResponseInfo",
    "TransportEvent",
    "TransportMessage",
    "TransportOpened",
    "TransportRequest",
]
