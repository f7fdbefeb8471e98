"""
Segment assembler - folds parsed fragments into the reveal buffer.

Two strategies share one interface: ``PlainAssembler`` appends content
verbatim, ``ThinkingAssembler`` renders reasoning segments as a quoted block
ahead of the answer and normalizes inline ``<think>`` tags to the same form.
"""

from __future__ import annotations
import logging
from enum import Enum
from typing import Optional

from ..interfaces.chunk_parser import ParsedChunk
from ..models.stream import Fragment, RevealBuffer


PARAGRAPH_BREAK = "\n\n"


class SegmentStrategy(Enum):
    PLAIN = "plain"
    THINKING = "thinking"


class SegmentAssembler:
    """Base strategy; ``feed`` returns the text appended to the buffer."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        self._logger = logger or logging.getLogger(__name__)

    def feed(self, chunk: ParsedChunk, buffer: RevealBuffer) -> str:
        raise NotImplementedError


class PlainAssembler(SegmentAssembler):
    """Appends every non-empty fragment verbatim."""

    def feed(self, chunk: ParsedChunk, buffer: RevealBuffer) -> str:
        fragment = Fragment.coerce(chunk)
        if fragment is None or not fragment.content:
            return ""
        buffer.append(fragment.content)
        return fragment.content


class ThinkingAssembler(SegmentAssembler):
    """Tags reasoning fragments as a block quote separated from the answer."""

    def __init__(
        self,
        open_tag: str = "<think>",
        close_tag: str = "</think>",
        quote_marker: str = "> ",
        logger: Optional[logging.Logger] = None,
    ):
        super().__init__(logger)
        self._open_tag = open_tag
        self._close_tag = close_tag
        self._quote = quote_marker
        # Block-quote currently open in the buffer
        self._in_thinking = False
        # Thinking state implied by inline tags seen so far
        self._tag_open = False

    @property
    def in_thinking(self) -> bool:
        return self._in_thinking

    def classify(self, fragment: Fragment) -> Fragment:
        """Resolve a fragment with no explicit flag from inline think tags."""
        if fragment.is_thinking is not None:
            return fragment
        content = fragment.content
        if content.startswith(self._open_tag):
            content = content[len(self._open_tag):].lstrip()
            # "<think>...</think>" in a single fragment opens and closes at once
            self._tag_open = not content.endswith(self._close_tag)
            if not self._tag_open:
                content = content[:-len(self._close_tag)].rstrip()
            return Fragment(content=content, is_thinking=True)
        if content.endswith(self._close_tag):
            self._tag_open = False
            return Fragment(content=content[:-len(self._close_tag)].rstrip(), is_thinking=False)
        return Fragment(content=content, is_thinking=self._tag_open)

    def feed(self, chunk: ParsedChunk, buffer: RevealBuffer) -> str:
        fragment = Fragment.coerce(chunk)
        if fragment is None or not fragment.content:
            return ""
        fragment = self.classify(fragment)
        if not fragment.content:
            return ""

        if fragment.is_thinking:
            if not self._in_thinking:
                text = ("\n" if len(buffer) > 0 else "") + self._quote + fragment.content
                self._in_thinking = True
            else:
                text = self._requote(fragment.content)
        else:
            if self._in_thinking:
                text = PARAGRAPH_BREAK + fragment.content
                self._in_thinking = False
            else:
                text = fragment.content

        buffer.append(text)
        return text

    def _requote(self, content: str) -> str:
        if PARAGRAPH_BREAK not in content:
            return content
        return content.replace(PARAGRAPH_BREAK, PARAGRAPH_BREAK + self._quote)


def create_assembler(
    strategy: SegmentStrategy,
    open_tag: str = "<think>",
    close_tag: str = "</think>",
    quote_marker: str = "> ",
    logger: Optional[logging.Logger] = None,
) -> SegmentAssembler:
    """Build the assembler for ``strategy``."""
    if strategy is SegmentStrategy.THINKING:
        return ThinkingAssembler(
            open_tag=open_tag,
            close_tag=close_tag,
            quote_marker=quote_marker,
            logger=logger,
        )
    return PlainAssembler(logger=logger)
