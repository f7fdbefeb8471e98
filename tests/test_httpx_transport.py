import httpx
import pytest

from chatstream.application.chat_stream_service import ChatStreamService
from chatstream.domain.interfaces.callbacks import StreamCallbacks
from chatstream.domain.interfaces.transport import TransportMessage, TransportOpened, TransportRequest
from chatstream.domain.models.session import AbortSignal, SessionState
from chatstream.infrastructure.config.settings import (
    AppSettings, EndpointSettings, PacingSettings, ToolSettings,
)
from chatstream.infrastructure.transport.httpx_sse import HttpxSSETransport


SSE_BODY = (
    'data: {"choices": [{"index": 0, "delta": {"content": "Hello"}}]}\n\n'
    'data: {"choices": [{"index": 0, "delta": {"content": " world"}}]}\n\n'
    "data: [DONE]\n\n"
)


def _client(handler):
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


async def _collect(transport, request, signal=None):
    events = []
    async for event in transport.events(request, signal or AbortSignal()):
        if isinstance(event, TransportOpened):
            event = (event, await event.response.aread_text()
                     if event.response.status_code != 200 else None)
        events.append(event)
    return events


@pytest.mark.asyncio
async def test_streams_sse_messages_after_open():
    seen = {}

    def handler(request):
        seen["body"] = request.content
        seen["auth"] = request.headers.get("authorization")
        return httpx.Response(200, headers={"content-type": "text/event-stream"}, content=SSE_BODY.encode())

    async with _client(handler) as client:
        transport = HttpxSSETransport(client=client)
        request = TransportRequest(
            url="https://example.test/v1/chat/completions",
            body={"model": "m", "messages": []},
            headers={"Authorization": "Bearer k"},
        )
        events = await _collect(transport, request)

    opened, body = events[0]
    assert opened.response.ok is True
    assert opened.response.content_type.startswith("text/event-stream")
    assert body is None
    assert [e.data for e in events[1:]] == [
        '{"choices": [{"index": 0, "delta": {"content": "Hello"}}]}',
        '{"choices": [{"index": 0, "delta": {"content": " world"}}]}',
        "[DONE]",
    ]
    assert all(isinstance(e, TransportMessage) for e in events[1:])
    assert b'"model": "m"' in seen["body"] or b'"model":"m"' in seen["body"]
    assert seen["auth"] == "Bearer k"


@pytest.mark.asyncio
async def test_error_response_opens_without_messages():
    def handler(request):
        return httpx.Response(401, json={"error": "unauthorized"})

    async with _client(handler) as client:
        events = await _collect(
            HttpxSSETransport(client=client),
            TransportRequest(url="https://example.test/chat", body={}),
        )

    assert len(events) == 1
    opened, body = events[0]
    assert opened.response.status_code == 401
    assert opened.response.ok is False
    assert "unauthorized" in body


@pytest.mark.asyncio
async def test_aborted_signal_yields_nothing():
    def handler(request):
        raise AssertionError("request should not be sent")

    signal = AbortSignal()
    signal.abort()
    async with _client(handler) as client:
        events = await _collect(
            HttpxSSETransport(client=client),
            TransportRequest(url="https://example.test/chat", body={}),
            signal,
        )
    assert events == []


@pytest.mark.asyncio
async def test_service_streams_through_httpx_end_to_end():
    def handler(request):
        return httpx.Response(200, headers={"content-type": "text/event-stream"}, content=SSE_BODY.encode())

    settings = AppSettings(
        endpoint=EndpointSettings(url="https://example.test/chat", api_key="secret"),
        pacing=PacingSettings(tick_interval_s=0),
        tools=ToolSettings(restart_delay_s=0),
    )
    finished = []
    async with _client(handler) as client:
        service = ChatStreamService(transport=HttpxSSETransport(client=client), settings=settings)
        outcome = await service.stream(
            {"model": "m", "messages": [{"role": "user", "content": "hi"}]},
            callbacks=StreamCallbacks(on_finish=lambda text, response: finished.append(text)),
        )

    assert outcome.state is SessionState.FINISHED
    assert finished == ["Hello world"]
    assert outcome.response.status_code == 200
