"""
Stream domain models - parsed output fragments and the reveal buffer.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Optional, Union


@dataclass
class Fragment:
    """One parsed increment of model output.

    ``is_thinking`` is ``None`` when the parser cannot tell; the assembler
    then infers the classification from inline think tags.
    """
    content: str
    is_thinking: Optional[bool] = None

    @classmethod
    def coerce(cls, chunk: Union[str, "Fragment", None]) -> Optional["Fragment"]:
        """Normalize a parser return value into a Fragment."""
        if chunk is None:
            return None
        if isinstance(chunk, Fragment):
            return chunk
        return cls(content=str(chunk))


class RevealBuffer:
    """Ordered queue of assembled text split into shown and not-yet-shown parts.

    ``shown + pending`` is always the full transcript. Text only enters at the
    tail (``append``) and only leaves the pending part from the head
    (``release``). ``rewrite_tail`` may change unrevealed text, never shown text.
    """

    def __init__(self) -> None:
        self._shown = ""
        self._pending = ""

    @property
    def shown(self) -> str:
        return self._shown

    @property
    def pending(self) -> str:
        return self._pending

    @property
    def transcript(self) -> str:
        return self._shown + self._pending

    def __len__(self) -> int:
        return len(self._shown) + len(self._pending)

    def append(self, text: str) -> None:
        if text:
            self._pending += text

    def release(self, count: int) -> str:
        """Move up to ``count`` characters from the head of pending to shown."""
        if count <= 0 or not self._pending:
            return ""
        chunk = self._pending[:count]
        self._pending = self._pending[count:]
        self._shown += chunk
        return chunk

    def release_all(self) -> str:
        chunk = self._pending
        self._pending = ""
        self._shown += chunk
        return chunk

    def rewrite_tail(self, start: int, text: str) -> None:
        """Swap the unrevealed text from transcript offset ``start`` for ``text``.

        Shown text is never touched, so ``start`` must not fall inside it.
        """
        if start < len(self._shown):
            raise ValueError(f"Offset {start} is inside already shown text")
        self._pending = self._pending[:start - len(self._shown)] + text
