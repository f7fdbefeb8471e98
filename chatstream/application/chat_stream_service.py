"""
Chat stream service - Application service wiring settings, transport, parser
and tool handlers into one session controller per request.
"""

from __future__ import annotations
import asyncio
import logging
from typing import Any, Dict, Generator, List, Mapping, Optional

from ..domain.interfaces.callbacks import StreamCallbacks
from ..domain.interfaces.chunk_parser import ChunkParser
from ..domain.interfaces.locale import Locale
from ..domain.interfaces.transport import EventTransport
from ..domain.models.events import SessionEvent
from ..domain.models.session import SessionState, StreamOutcome
from ..domain.services.conversation import ConversationExtender
from ..domain.services.error_normalizer import OverloadNormalizer
from ..domain.services.pacing_emitter import Ticker
from ..domain.services.segment_assembler import SegmentStrategy
from ..domain.services.session_controller import SessionController, SessionOptions
from ..domain.services.tool_coordinator import ToolHandler
from ..infrastructure.config.settings import AppSettings, get_settings
from ..infrastructure.locale import StaticLocale
from ..infrastructure.parsers.openai_compatible import OpenAIChunkParser
from ..infrastructure.transport.httpx_sse import HttpxSSETransport


class StreamHandle:
    """Awaitable handle on a running session; ``abort()`` is the cancellation handle."""

    def __init__(self, controller: SessionController, task: asyncio.Task):
        self._controller = controller
        self._task = task

    def __await__(self) -> Generator[Any, None, StreamOutcome]:
        return self._task.__await__()

    def abort(self, reason: Optional[str] = None) -> None:
        self._controller.abort(reason)

    @property
    def state(self) -> SessionState:
        return self._controller.state

    @property
    def outcome(self) -> StreamOutcome:
        return self._controller.outcome

    @property
    def events(self) -> List[SessionEvent]:
        return self._controller.events

    @property
    def done(self) -> bool:
        return self._task.done()


class ChatStreamService:
    """Application service starting streaming sessions."""

    def __init__(
        self,
        transport: Optional[EventTransport] = None,
        settings: Optional[AppSettings] = None,
        locale: Optional[Locale] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self._settings = settings or get_settings()
        self._transport = transport or HttpxSSETransport(
            connect_timeout_s=self._settings.endpoint.connect_timeout_s,
            read_timeout_s=self._settings.endpoint.read_timeout_s,
        )
        self._locale = locale or StaticLocale()
        self._logger = logger or logging.getLogger(__name__)

    @property
    def settings(self) -> AppSettings:
        return self._settings

    def session_options(self) -> SessionOptions:
        """Build controller options from settings."""
        s = self._settings
        return SessionOptions(
            reveal_divisor=s.pacing.reveal_divisor,
            restart_delay_s=s.tools.restart_delay_s,
            request_timeout_s=s.endpoint.request_timeout_s,
            max_tool_rounds=s.tools.max_rounds,
            done_sentinel=s.stream.done_sentinel,
            open_tag=s.thinking.open_tag,
            close_tag=s.thinking.close_tag,
            quote_marker=s.thinking.quote_marker,
        )

    def default_headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self._settings.endpoint.api_key:
            headers["Authorization"] = f"Bearer {self._settings.endpoint.api_key}"
        return headers

    def create_controller(
        self,
        payload: Dict[str, Any],
        url: Optional[str] = None,
        headers: Optional[Dict[str, str]] = None,
        tools: Optional[List[Dict[str, Any]]] = None,
        handlers: Optional[Mapping[str, ToolHandler]] = None,
        callbacks: Optional[StreamCallbacks] = None,
        thinking: bool = False,
        parser: Optional[ChunkParser] = None,
        extend_conversation: Optional[ConversationExtender] = None,
        ticker: Optional[Ticker] = None,
    ) -> SessionController:
        """Wire one session controller for ``payload``."""
        s = self._settings
        return SessionController(
            url=url or s.endpoint.url,
            payload=payload,
            transport=self._transport,
            parser=parser or OpenAIChunkParser(thinking=thinking, logger=self._logger),
            headers=headers if headers is not None else self.default_headers(),
            tools=tools,
            handlers=handlers,
            callbacks=callbacks,
            strategy=SegmentStrategy.THINKING if thinking else SegmentStrategy.PLAIN,
            extend_conversation=extend_conversation,
            locale=self._locale,
            normalizer=OverloadNormalizer(
                marker=s.errors.overload_marker,
                sentinel=s.errors.overload_sentinel,
            ),
            ticker=ticker or Ticker(s.pacing.tick_interval_s),
            options=self.session_options(),
            logger=self._logger,
        )

    def start(self, payload: Dict[str, Any], **kwargs: Any) -> StreamHandle:
        """Start a session in the running loop and return its handle."""
        controller = self.create_controller(payload, **kwargs)
        task = asyncio.ensure_future(controller.run())
        return StreamHandle(controller, task)

    async def stream(self, payload: Dict[str, Any], **kwargs: Any) -> StreamOutcome:
        """Run a session to completion."""
        return await self.start(payload, **kwargs)
