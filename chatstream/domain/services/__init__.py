"""Domain services - reveal pacing, segment assembly, tool rounds and the session state machine."""

from .conversation import ConversationExtender, append_tool_messages
from .error_normalizer import (
    OverloadNormalizer,
    build_diagnostic,
    describe_response_body,
    pretty_object,
)
from .pacing_emitter import PacingEmitter, Ticker, reveal_chunk_size
from .segment_assembler import (
    PlainAssembler,
    SegmentAssembler,
    SegmentStrategy,
    ThinkingAssembler,
    create_assembler,
)
from .session_controller import (
    ResponseKind,
    SessionController,
    SessionOptions,
    classify_response,
)
from .tool_coordinator import ToolCallCoordinator, ToolHandler, normalize_handler_response

__all__ = [
    "ConversationExtender",
    "append_tool_messages",
    "OverloadNormalizer",
    "build_diagnostic",
    "describe_response_body",
    "pretty_object",
    "PacingEmitter",
    "Ticker",
    "reveal_chunk_size",
    "PlainAssembler",
    "SegmentAssembler",
    "SegmentStrategy",
    "ThinkingAssembler",
    "create_assembler",
    "ResponseKind",
    "SessionController",
    "SessionOptions",
    "classify_response",
    "ToolCallCoordinator",
    "ToolHandler",
    "normalize_handler_response",
]
