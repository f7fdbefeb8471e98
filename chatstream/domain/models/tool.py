"""
Tool domain models - pending tool calls, their results and tool rounds.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import List, Dict, Any, Optional
from datetime import datetime
from enum import Enum
import json

from .errors import ToolArgumentsError


class ToolCallStatus(Enum):
    """Status of tool call execution."""
    PENDING = "pending"
    EXECUTING = "executing"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class PendingToolCall:
    """A tool invocation requested by the backend.

    Arguments arrive as raw JSON text, possibly split across several stream
    events, and are only decoded when the call is executed.
    """
    id: str
    name: str
    arguments: str = ""
    type: str = "function"
    index: Optional[int] = None
    status: ToolCallStatus = ToolCallStatus.PENDING
    created_at: datetime = field(default_factory=datetime.now)

    def append_arguments(self, piece: Any) -> None:
        """Accumulate a streamed argument fragment."""
        if piece is None:
            return
        if isinstance(piece, (dict, list)):
            piece = json.dumps(piece, ensure_ascii=False)
        self.arguments += str(piece)

    def parse_arguments(self) -> Dict[str, Any]:
        """Decode the accumulated arguments; absent arguments mean ``{}``."""
        if not self.arguments or not self.arguments.strip():
            return {}
        try:
            parsed = json.loads(self.arguments)
        except json.JSONDecodeError as e:
            raise ToolArgumentsError(
                f"Invalid JSON arguments for tool '{self.name}': {e}"
            ) from e
        if not isinstance(parsed, dict):
            raise ToolArgumentsError(
                f"Arguments for tool '{self.name}' must be a JSON object"
            )
        return parsed

    def to_message_format(self) -> Dict[str, Any]:
        """Convert to the assistant ``tool_calls`` entry format."""
        return {
            "id": self.id,
            "type": self.type,
            "function": {
                "name": self.name,
                "arguments": self.arguments,
            },
        }

    @classmethod
    def from_delta(cls, data: Dict[str, Any]) -> PendingToolCall:
        """Create a pending call from the first streamed tool-call delta."""
        func_data = data.get("function") or {}
        call = cls(
            id=str(data.get("id") or ""),
            name=str(func_data.get("name") or ""),
            type=str(data.get("type") or "function"),
            index=data.get("index"),
        )
        call.append_arguments(func_data.get("arguments"))
        return call


@dataclass
class ToolResult:
    """Outcome of one tool invocation."""
    tool_call: PendingToolCall
    content: str
    is_error: bool = False
    error_message: Optional[str] = None
    execution_time_ms: Optional[float] = None

    @property
    def tool_call_id(self) -> str:
        return self.tool_call.id

    def to_message_format(self) -> Dict[str, Any]:
        """Convert to a tool-role conversation message."""
        return {
            "name": self.tool_call.name,
            "role": "tool",
            "content": self.content,
            "tool_call_id": self.tool_call.id,
        }


@dataclass
class ToolRound:
    """One completed tool round, as folded into the conversation."""
    assistant_message: Dict[str, Any]
    results: List[ToolResult] = field(default_factory=list)

    @property
    def tool_messages(self) -> List[Dict[str, Any]]:
        return [result.to_message_format() for result in self.results]

    @property
    def failed_calls(self) -> int:
        return sum(1 for result in self.results if result.is_error)
