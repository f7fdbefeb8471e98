"""Default conversation-extension collaborator for tool rounds."""

from __future__ import annotations
from typing import Any, Callable, Dict, List


ConversationExtender = Callable[[Dict[str, Any], Dict[str, Any], List[Dict[str, Any]]], None]


def append_tool_messages(
    payload: Dict[str, Any],
    assistant_message: Dict[str, Any],
    tool_messages: List[Dict[str, Any]],
) -> None:
    """Append the assistant tool-call message and its results to ``payload['messages']``."""
    messages = payload.setdefault("messages", [])
    messages.append(assistant_message)
    messages.extend(tool_messages)
