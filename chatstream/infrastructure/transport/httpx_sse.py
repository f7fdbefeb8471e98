"""
HTTP event-stream transport - Infrastructure implementation of EventTransport.
Posts the request body with httpx and reads server-sent events with httpx-sse.
"""

from __future__ import annotations
import logging
from contextlib import AsyncExitStack
from typing import AsyncIterator, Mapping, Optional

import httpx
from httpx_sse import aconnect_sse

from ...domain.interfaces.transport import (
    TransportEvent, TransportMessage, TransportOpened, TransportRequest,
)
from ...domain.models.session import AbortSignal


class HttpxResponseInfo:
    """ResponseInfo view over an ``httpx.Response``."""

    def __init__(self, response: httpx.Response):
        self._response = response

    @property
    def status_code(self) -> int:
        return self._response.status_code

    @property
    def headers(self) -> Mapping[str, str]:
        return self._response.headers

    @property
    def content_type(self) -> str:
        return self._response.headers.get("content-type", "")

    @property
    def ok(self) -> bool:
        return self._response.is_success

    @property
    def raw(self) -> httpx.Response:
        return self._response

    async def aread_text(self) -> str:
        await self._response.aread()
        return self._response.text

    def __repr__(self) -> str:
        return f"HttpxResponseInfo(status_code={self.status_code}, content_type={self.content_type!r})"


class HttpxSSETransport:
    """Event transport over httpx + httpx-sse.

    A shared ``httpx.AsyncClient`` may be injected (and stays owned by the
    caller); otherwise one client is created per request cycle.
    """

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        connect_timeout_s: float = 5.0,
        read_timeout_s: float = 600.0,
        logger: Optional[logging.Logger] = None,
    ):
        self._client = client
        self._timeout = httpx.Timeout(read_timeout_s, connect=connect_timeout_s)
        self._logger = logger or logging.getLogger(__name__)

    async def events(self, request: TransportRequest, signal: AbortSignal) -> AsyncIterator[TransportEvent]:
        if signal.aborted:
            return
        async with AsyncExitStack() as stack:
            client = self._client
            if client is None:
                client = await stack.enter_async_context(httpx.AsyncClient(timeout=self._timeout))

            self._logger.debug(f"[Request] {request.method} {request.url}")
            event_source = await stack.enter_async_context(
                aconnect_sse(
                    client,
                    request.method,
                    request.url,
                    headers=request.headers,
                    json=request.body,
                )
            )
            response = HttpxResponseInfo(event_source.response)
            if signal.aborted:
                return
            yield TransportOpened(response=response)

            content_type = response.content_type.lower()
            if response.status_code != 200 or not content_type.startswith("text/event-stream"):
                return

            async for sse in event_source.aiter_sse():
                if signal.aborted:
                    return
                yield TransportMessage(data=sse.data, event=sse.event, id=sse.id or None)
