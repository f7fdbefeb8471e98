"""Transport implementations."""

from .httpx_sse import HttpxResponseInfo, HttpxSSETransport

__all__ = ["HttpxResponseInfo", "HttpxSSETransport"]
