"""
Consumer callbacks for a streaming session.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Callable, Optional

from ..models.tool import PendingToolCall, ToolResult


@dataclass
class StreamCallbacks:
    """Hooks invoked by the session controller.

    - on_update(shown_text, delta): paced reveal progress
    - on_finish(transcript, response): successful completion (exactly once)
    - on_error(error): empty answer or transport failure (exactly once)
    - on_before_tool(call) / on_after_tool(result): tool round progress
    """
    on_update: Optional[Callable[[str, str], None]] = None
    on_finish: Optional[Callable[[str, Any], None]] = None
    on_error: Optional[Callable[[BaseException], None]] = None
    on_before_tool: Optional[Callable[[PendingToolCall], None]] = None
    on_after_tool: Optional[Callable[[ToolResult], None]] = None

    def update(self, shown: str, delta: str) -> None:
        if self.on_update:
            self.on_update(shown, delta)

    def finish(self, transcript: str, response: Any) -> None:
        if self.on_finish:
            self.on_finish(transcript, response)

    def error(self, error: BaseException) -> None:
        if self.on_error:
            self.on_error(error)

    def before_tool(self, call: PendingToolCall) -> None:
        if self.on_before_tool:
            self.on_before_tool(call)

    def after_tool(self, result: ToolResult) -> None:
        if self.on_after_tool:
            self.on_after_tool(result)
