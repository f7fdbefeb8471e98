"""
OpenAI-compatible chunk parser.

Parses ``chat.completion.chunk`` event payloads:

{
  "object": "chat.completion.chunk",
  "choices": [
    {
      "index": 0,
      "delta": {
        "content": "text piece",
        "reasoning_content": "thinking piece",
        "tool_calls": [
          {"index": 0, "id": "call_1", "type": "function",
           "function": {"name": "fn", "arguments": "{\"partial"}}
        ]
      }
    }
  ]
}

Tool-call deltas carrying an ``id`` open a new pending call; later deltas
without one only carry argument text and extend the call with the same
``index`` (or the most recent call).
"""

from __future__ import annotations
import json
import logging
from typing import Any, Dict, List, Optional

from ...domain.interfaces.chunk_parser import ParsedChunk
from ...domain.models.stream import Fragment
from ...domain.models.tool import PendingToolCall


class OpenAIChunkParser:
    """ChunkParser for OpenAI-compatible streaming responses."""

    def __init__(self, thinking: bool = False, logger: Optional[logging.Logger] = None):
        self.thinking = thinking
        self._logger = logger or logging.getLogger(__name__)

    def __call__(self, text: str, pending_tool_calls: List[PendingToolCall]) -> ParsedChunk:
        data = json.loads(text)
        choices = data.get("choices") or []
        if not choices:
            return None
        delta = (choices[0] or {}).get("delta") or {}

        for tc in delta.get("tool_calls") or []:
            self._accumulate_tool_call(tc or {}, pending_tool_calls)

        reasoning = delta.get("reasoning_content")
        content = delta.get("content")
        if self.thinking:
            if reasoning:
                return Fragment(str(reasoning), is_thinking=True)
            if content:
                return Fragment(str(content))
            return None
        return str(content) if content else None

    def _accumulate_tool_call(self, tc: Dict[str, Any], pending_tool_calls: List[PendingToolCall]) -> None:
        if tc.get("id"):
            call = PendingToolCall.from_delta(tc)
            pending_tool_calls.append(call)
            self._logger.debug(f"Tool call started: {call.name} ({call.id})")
            return

        target = self._find_call(tc.get("index"), pending_tool_calls)
        if target is None:
            self._logger.debug("Dropping tool-call delta with no open call")
            return
        target.append_arguments((tc.get("function") or {}).get("arguments"))

    @staticmethod
    def _find_call(index: Any, pending_tool_calls: List[PendingToolCall]) -> Optional[PendingToolCall]:
        if index is not None:
            for call in reversed(pending_tool_calls):
                if call.index == index:
                    return call
        return pending_tool_calls[-1] if pending_tool_calls else None
