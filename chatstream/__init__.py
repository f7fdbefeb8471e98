"""
chatstream - Paced streaming chat-completion client with reasoning quotes and tool rounds.
"""

__version__ = "1.0.0"

__all__ = [
    "ChatStreamService",
    "StreamHandle",
    "StreamCallbacks",
    "StreamOutcome",
    "SessionState",
]

# Lazy attribute access to avoid importing httpx at package import time.
# This keeps `import chatstream.domain...` safe during test collection.
def __getattr__(name: str):  # pragma: no cover - simple lazy loader
    if name in {"ChatStreamService", "StreamHandle"}:
        from .application import chat_stream_service
        return getattr(chat_stream_service, name)
    if name == "StreamCallbacks":
        from .domain.interfaces.callbacks import StreamCallbacks
        return StreamCallbacks
    if name in {"StreamOutcome", "SessionState"}:
        from .domain.models import session
        return getattr(session, name)
    raise AttributeError(f"module 'chatstream' has no attribute {name!r}")
