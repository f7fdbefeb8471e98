"""Locale protocol interface for user-facing strings."""

from __future__ import annotations
from typing import Protocol


UNAUTHORIZED = "error.unauthorized"


class Locale(Protocol):
    """Looks up a localized message by key."""

    def text(self, key: str) -> str:
        ...
