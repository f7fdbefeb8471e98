"""
Tool call coordinator - Domain service running one tool round.
Invokes the requested handlers, normalizes their results and folds the round
into the conversation payload.
"""

from __future__ import annotations
import asyncio
import inspect
import json
import logging
import time
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from ..interfaces.callbacks import StreamCallbacks
from ..models.errors import ToolHandlerNotFoundError, ToolInvocationError
from ..models.tool import PendingToolCall, ToolCallStatus, ToolResult, ToolRound
from .conversation import ConversationExtender, append_tool_messages
from .error_normalizer import OverloadNormalizer


ToolHandler = Callable[[Dict[str, Any]], Any]

_RESPONSE_FIELDS = ("data", "status", "statusText", "status_text")


def normalize_handler_response(response: Any) -> Tuple[str, int]:
    """Reduce a handler return value to ``(content, status)``.

    Handlers may return a plain value, or a response-like object (mapping or
    attributes) carrying ``data`` / ``status`` / ``statusText``. Non-string
    content is JSON encoded.
    """
    status = 200
    content: Any = response
    if isinstance(response, Mapping) and any(key in response for key in _RESPONSE_FIELDS):
        status = response.get("status") or 200
        content = response.get("data") or response.get("statusText") or response.get("status_text")
    elif any(hasattr(response, attr) for attr in ("data", "status")) and not isinstance(response, (str, bytes)):
        status = getattr(response, "status", None) or 200
        content = (
            getattr(response, "data", None)
            or getattr(response, "statusText", None)
            or getattr(response, "status_text", None)
        )

    if content is None:
        content = ""
    if not isinstance(content, str):
        content = json.dumps(content, ensure_ascii=False, default=str)
    try:
        status = int(status)
    except (TypeError, ValueError):
        status = 200
    return content, status


class ToolCallCoordinator:
    """Domain service for executing one round of pending tool calls."""

    def __init__(
        self,
        handlers: Mapping[str, ToolHandler],
        normalizer: Optional[OverloadNormalizer] = None,
        extend_conversation: Optional[ConversationExtender] = None,
        callbacks: Optional[StreamCallbacks] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self._handlers = handlers
        self._normalizer = normalizer or OverloadNormalizer()
        self._extend = extend_conversation or append_tool_messages
        self._callbacks = callbacks or StreamCallbacks()
        self._logger = logger or logging.getLogger(__name__)

    async def run_round(
        self,
        pending_tool_calls: List[PendingToolCall],
        payload: Dict[str, Any],
    ) -> ToolRound:
        """Execute every pending call and fold the round into ``payload``.

        The pending list is snapshotted and cleared before the first await so
        that calls parsed while the round runs are never executed twice.
        Results keep the original call order regardless of completion order.
        """
        batch = list(pending_tool_calls)
        del pending_tool_calls[:]

        assistant_message = {
            "role": "assistant",
            "tool_calls": [call.to_message_format() for call in batch],
        }
        self._logger.debug(f"Executing tool round with {len(batch)} call(s)")

        results = await asyncio.gather(*(self._invoke(call) for call in batch))
        tool_round = ToolRound(assistant_message=assistant_message, results=list(results))

        self._extend(payload, assistant_message, tool_round.tool_messages)
        if tool_round.failed_calls:
            self._logger.debug(f"Tool round finished with {tool_round.failed_calls} failed call(s)")
        return tool_round

    async def _invoke(self, call: PendingToolCall) -> ToolResult:
        self._callbacks.before_tool(call)
        call.status = ToolCallStatus.EXECUTING
        start_time = time.time()

        try:
            handler = self._handlers.get(call.name)
            if handler is None:
                raise ToolHandlerNotFoundError(call.name)
            arguments = call.parse_arguments()
            if asyncio.iscoroutinefunction(handler):
                response = await handler(arguments)
            else:
                # Sync handlers run in the thread pool, off the event loop
                response = await asyncio.to_thread(handler, arguments)
            if inspect.isawaitable(response):
                response = await response
            content, status = normalize_handler_response(response)
            content = self._normalizer.normalize(content)
            if status >= 300:
                raise ToolInvocationError(content, status=status)
            result = ToolResult(tool_call=call, content=content, is_error=False)
            call.status = ToolCallStatus.COMPLETED
            self._logger.debug(
                f"Tool {call.name} succeeded in {(time.time() - start_time) * 1000:.1f}ms"
            )
        except Exception as e:
            error_content = self._normalizer.normalize(str(e))
            result = ToolResult(
                tool_call=call,
                content=error_content,
                is_error=True,
                error_message=error_content,
            )
            call.status = ToolCallStatus.FAILED
            self._logger.warning(f"Tool {call.name} failed: {e}")

        result.execution_time_ms = (time.time() - start_time) * 1000
        self._callbacks.after_tool(result)
        return result
