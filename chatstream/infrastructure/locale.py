"""Static message catalogue implementing the Locale protocol."""

from __future__ import annotations
from typing import Dict, Optional

from ..domain.interfaces.locale import UNAUTHORIZED


ENGLISH: Dict[str, str] = {
    UNAUTHORIZED: (
        "Unauthorized access, please check your API key "
        "(set CHATSTREAM_API_KEY or pass it in the request headers)."
    ),
}


class StaticLocale:
    """Dictionary-backed locale; unknown keys are returned unchanged."""

    def __init__(self, messages: Optional[Dict[str, str]] = None):
        self._messages = dict(ENGLISH)
        if messages:
            self._messages.update(messages)

    def text(self, key: str) -> str:
        return self._messages.get(key, key)
