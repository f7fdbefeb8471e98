"""
Error normalization - overload sentinel substitution and open-time diagnostics.
"""

from __future__ import annotations
import json
from typing import Any, List, Optional

from ..interfaces.locale import Locale, UNAUTHORIZED


DEFAULT_OVERLOAD_MARKER = "insufficient"
DEFAULT_OVERLOAD_SENTINEL = "ERROR: ServerUnreachable"


class OverloadNormalizer:
    """Maps any text carrying the backend overload marker to one sentinel string.

    Plain substring match: unrelated text containing the marker is also
    replaced.
    """

    def __init__(
        self,
        marker: str = DEFAULT_OVERLOAD_MARKER,
        sentinel: str = DEFAULT_OVERLOAD_SENTINEL,
    ):
        self.marker = marker
        self.sentinel = sentinel

    def is_overloaded(self, text: Any) -> bool:
        return isinstance(text, str) and bool(self.marker) and self.marker in text

    def normalize(self, text: str) -> str:
        return self.sentinel if self.is_overloaded(text) else text


def pretty_object(value: Any) -> str:
    """Render a decoded JSON error body as a fenced ```json block."""
    original = value
    if not isinstance(value, str):
        value = json.dumps(value, indent=2, ensure_ascii=False)
    if value == "{}":
        return str(original)
    if value.startswith("```json"):
        return value
    return "\n".join(["```json", value, "```"])


def describe_response_body(body: str) -> str:
    """Prefer a structured rendering of a JSON body, fall back to the raw text."""
    try:
        decoded = json.loads(body)
    except (ValueError, TypeError):
        return body
    if decoded == {}:
        return body
    return pretty_object(decoded)


def build_diagnostic(status_code: int, body: str, locale: Optional[Locale] = None) -> str:
    """Assemble the human-readable transcript for a failed or non-stream open."""
    parts: List[str] = []
    if status_code == 401 and locale is not None:
        parts.append(locale.text(UNAUTHORIZED))
    extra_info = describe_response_body(body) if body else ""
    if extra_info:
        parts.append(extra_info)
    return "\n\n".join(parts)
