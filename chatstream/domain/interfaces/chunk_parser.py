"""
Chunk parser protocol interface.
"""

from __future__ import annotations
from typing import Protocol, List, Optional, Union

from ..models.stream import Fragment
from ..models.tool import PendingToolCall


ParsedChunk = Union[str, Fragment, None]


class ChunkParser(Protocol):
    """Turns one raw event payload into a text fragment.

    May append to, or extend entries of, ``pending_tool_calls`` while
    parsing streamed tool-call deltas. Malformed input may raise; the
    session controller guards every call.
    """

    def __call__(self, text: str, pending_tool_calls: List[PendingToolCall]) -> ParsedChunk:
        ...
