"""Application layer."""

from .chat_stream_service import ChatStreamService, StreamHandle

__all__ = ["ChatStreamService", "StreamHandle"]
