"""
Session controller - Domain service driving one streaming request.

Ties the transport, chunk parser, segment assembler, pacing emitter and tool
coordinator together through an explicit state machine:

    OPENING -> STREAMING -> FINISHING -> (TOOL_ROUND -> OPENING)* -> FINISHED

with ABORTED reachable from every non-terminal state and FAILED on
transport errors. A tool round restarts the transport as a state transition
on the same Session, never by recursion.
"""

from __future__ import annotations
import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional

from ..interfaces.callbacks import StreamCallbacks
from ..interfaces.chunk_parser import ChunkParser
from ..interfaces.locale import Locale
from ..interfaces.transport import (
    EventTransport, ResponseInfo, TransportOpened, TransportRequest,
)
from ..models.errors import ChatStreamError, EmptyResponseError, InvalidTransitionError
from ..models.events import (
    Aborted, Errored, FragmentReceived, Opened, SessionEvent, StreamEnded,
    ToolRoundCompleted, ToolRoundStarted,
)
from ..models.session import (
    ALLOWED_TRANSITIONS, AbortSignal, Session, SessionState, StreamOutcome,
)
from .conversation import ConversationExtender
from .error_normalizer import OverloadNormalizer, build_diagnostic
from .pacing_emitter import PacingEmitter, Ticker, DEFAULT_REVEAL_DIVISOR
from .segment_assembler import SegmentStrategy, create_assembler
from .tool_coordinator import ToolCallCoordinator, ToolHandler


EVENT_STREAM_CONTENT_TYPE = "text/event-stream"
PLAIN_TEXT_CONTENT_TYPE = "text/plain"


class ResponseKind(Enum):
    EVENT_STREAM = "event_stream"
    PLAIN_TEXT = "plain_text"
    DIAGNOSTIC = "diagnostic"


def classify_response(response: ResponseInfo) -> ResponseKind:
    """Decide how an opened response is consumed."""
    content_type = (response.content_type or "").lower()
    if content_type.startswith(PLAIN_TEXT_CONTENT_TYPE):
        return ResponseKind.PLAIN_TEXT
    if (
        not response.ok
        or response.status_code != 200
        or not content_type.startswith(EVENT_STREAM_CONTENT_TYPE)
    ):
        return ResponseKind.DIAGNOSTIC
    return ResponseKind.EVENT_STREAM


@dataclass
class SessionOptions:
    """Tunables for one session."""
    reveal_divisor: int = DEFAULT_REVEAL_DIVISOR
    restart_delay_s: float = 0.06
    request_timeout_s: Optional[float] = 60.0
    max_tool_rounds: Optional[int] = None
    done_sentinel: str = "[DONE]"
    open_tag: str = "<think>"
    close_tag: str = "</think>"
    quote_marker: str = "> "


class SessionController:
    """State machine for one logical streaming request."""

    def __init__(
        self,
        url: str,
        payload: Dict[str, Any],
        transport: EventTransport,
        parser: ChunkParser,
        headers: Optional[Dict[str, str]] = None,
        tools: Optional[List[Dict[str, Any]]] = None,
        handlers: Optional[Mapping[str, ToolHandler]] = None,
        callbacks: Optional[StreamCallbacks] = None,
        strategy: SegmentStrategy = SegmentStrategy.PLAIN,
        extend_conversation: Optional[ConversationExtender] = None,
        locale: Optional[Locale] = None,
        normalizer: Optional[OverloadNormalizer] = None,
        ticker: Optional[Ticker] = None,
        options: Optional[SessionOptions] = None,
        signal: Optional[AbortSignal] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self._url = url
        self._transport = transport
        self._parser = parser
        self._headers = dict(headers or {})
        self._tools = list(tools or [])
        self._callbacks = callbacks or StreamCallbacks()
        self._locale = locale
        self._normalizer = normalizer or OverloadNormalizer()
        self._options = options or SessionOptions()
        self._logger = logger or logging.getLogger(__name__)

        self._session = Session(payload=payload, signal=signal or AbortSignal(logger=self._logger))
        self._assembler = create_assembler(
            strategy,
            open_tag=self._options.open_tag,
            close_tag=self._options.close_tag,
            quote_marker=self._options.quote_marker,
            logger=self._logger,
        )
        self._emitter = PacingEmitter(
            buffer=self._session.buffer,
            on_update=self._callbacks.update,
            is_done=self._reveal_done,
            ticker=ticker,
            divisor=self._options.reveal_divisor,
            logger=self._logger,
        )
        self._coordinator = ToolCallCoordinator(
            handlers=handlers or {},
            normalizer=self._normalizer,
            extend_conversation=extend_conversation,
            callbacks=self._callbacks,
            logger=self._logger,
        )

        self._events: List[SessionEvent] = []
        self._error: Optional[BaseException] = None
        self._started = False
        self._cycle_task: Optional[asyncio.Task] = None
        self._open_timer: Optional[asyncio.TimerHandle] = None
        # Transcript offset where the current transport cycle began
        self._cycle_start = 0

        self._session.signal.add_listener(self._on_abort_signal)

    # --- Public surface ---
    @property
    def state(self) -> SessionState:
        return self._session.state

    @property
    def session(self) -> Session:
        return self._session

    @property
    def signal(self) -> AbortSignal:
        return self._session.signal

    @property
    def events(self) -> List[SessionEvent]:
        """Every event dispatched so far, in order."""
        return list(self._events)

    @property
    def outcome(self) -> StreamOutcome:
        return StreamOutcome(
            state=self.state,
            transcript=self._session.buffer.transcript,
            response=self._session.response,
            error=self._error,
            tool_rounds=self._session.tool_rounds,
        )

    def abort(self, reason: Optional[str] = None) -> None:
        """Cancel the session; buffered text is flushed into the final transcript."""
        self._session.signal.abort(reason)

    async def run(self) -> StreamOutcome:
        """Drive the session until it reaches a terminal state."""
        if self._started:
            raise ChatStreamError("Session already started")
        self._started = True
        self._logger.debug("[ChatStream] start")

        try:
            while not self.state.is_terminal:
                await self._run_cycle()
                if self.state is not SessionState.FINISHING:
                    continue
                if self._tool_round_due():
                    await self._run_tool_round()
                else:
                    self._finalize()
        except asyncio.CancelledError:
            self._session.signal.abort("cancelled")
            # Task cancellation finalizes at once, even mid tool round
            self._finalize(aborted=True)
            raise
        except Exception as e:
            self._dispatch(Errored(e))
            raise
        finally:
            self._cancel_open_timer()
            await self._emitter.wait_stopped()

        return self.outcome

    # --- State machine ---
    def _transition(self, target: SessionState) -> None:
        current = self._session.state
        if target not in ALLOWED_TRANSITIONS[current]:
            raise InvalidTransitionError(current, target)
        self._logger.debug(f"[ChatStream] {current.value} -> {target.value}")
        self._session.state = target

    def _dispatch(self, event: SessionEvent) -> None:
        self._events.append(event)
        if isinstance(event, Opened):
            self._on_opened(event)
        elif isinstance(event, FragmentReceived):
            self._on_fragment(event)
        elif isinstance(event, StreamEnded):
            self._on_stream_ended(event)
        elif isinstance(event, Aborted):
            self._on_aborted(event)
        elif isinstance(event, Errored):
            self._on_errored(event)
        elif isinstance(event, ToolRoundStarted):
            self._logger.debug(f"[ChatStream] tool round {self._session.tool_rounds} started")
        elif isinstance(event, ToolRoundCompleted):
            self._logger.debug(
                f"[ChatStream] tool round {self._session.tool_rounds} completed "
                f"({event.round.failed_calls} failed)"
            )

    def _on_opened(self, event: Opened) -> None:
        self._cancel_open_timer()
        response = event.response
        self._session.response = response
        self._logger.debug(f"[Request] response content type: {response.content_type}")

        kind = classify_response(response)
        if kind is ResponseKind.EVENT_STREAM:
            self._transition(SessionState.STREAMING)
            return

        if kind is ResponseKind.PLAIN_TEXT:
            text = event.body or ""
        else:
            text = build_diagnostic(response.status_code, event.body or "", self._locale)
            self._logger.debug(f"[Request] non-stream response with status {response.status_code}")
        if text:
            buffer = self._session.buffer
            buffer.append(("\n\n" if len(buffer) > 0 else "") + text)
        self._dispatch(StreamEnded(reason=kind.value))

    def _on_fragment(self, event: FragmentReceived) -> None:
        text = event.data
        if text == self._options.done_sentinel:
            self._dispatch(StreamEnded(reason="done"))
            return
        if not text or not text.strip():
            return
        try:
            chunk = self._parser(text, self._session.pending_tool_calls)
            appended = self._assembler.feed(chunk, self._session.buffer)
        except Exception as e:
            self._logger.warning(f"[Request] parse error on event {text[:200]!r}: {e}")
            return
        if appended:
            self._emitter.start()

    def _on_stream_ended(self, event: StreamEnded) -> None:
        if self.state not in (SessionState.OPENING, SessionState.STREAMING):
            return
        buffer = self._session.buffer
        if self._normalizer.is_overloaded(buffer.transcript[self._cycle_start:]):
            self._logger.warning("[ChatStream] backend overload detected in response")
            buffer.rewrite_tail(self._cycle_start, self._normalizer.sentinel)
        self._emitter.resume()
        if buffer.pending:
            self._emitter.start()
        self._transition(SessionState.FINISHING)

    def _on_aborted(self, event: Aborted) -> None:
        if self.state.is_terminal:
            return
        if self.state is SessionState.TOOL_ROUND:
            self._logger.debug("[ChatStream] abort deferred until the tool round completes")
            return
        if self._cycle_task is not None and not self._cycle_task.done():
            self._cycle_task.cancel()
        self._finalize(aborted=True)

    def _on_errored(self, event: Errored) -> None:
        if self.state.is_terminal:
            return
        self._transition(SessionState.FAILED)
        self._cancel_open_timer()
        self._error = event.error
        self._callbacks.error(event.error)

    def _on_abort_signal(self) -> None:
        self._dispatch(Aborted(reason=self._session.signal.reason))

    def _finalize(self, aborted: bool = False) -> None:
        """Deliver the transcript exactly once."""
        if self.state.is_terminal:
            return
        self._transition(SessionState.ABORTED if aborted else SessionState.FINISHED)
        self._cancel_open_timer()
        self._logger.debug("[ChatStream] end")

        self._emitter.flush()
        transcript = self._session.buffer.shown
        if not transcript:
            self._error = EmptyResponseError()
            self._callbacks.error(self._error)
            return
        self._callbacks.finish(transcript, self._session.response)

    def _reveal_done(self) -> bool:
        return self.state.is_terminal or self._session.signal.aborted

    # --- Transport cycle ---
    def _build_request(self) -> TransportRequest:
        body = dict(self._session.payload)
        if self._tools:
            body["tools"] = list(self._tools)
        return TransportRequest(url=self._url, body=body, headers=dict(self._headers))

    async def _run_cycle(self) -> None:
        self._transition(SessionState.OPENING)
        # Hold reveal until the overload check at stream end
        self._cycle_start = len(self._session.buffer)
        self._emitter.hold()
        self._arm_open_timer()
        self._cycle_task = asyncio.ensure_future(self._consume(self._build_request()))
        try:
            await self._cycle_task
        except asyncio.CancelledError:
            if not self._session.signal.aborted:
                raise
        finally:
            self._cycle_task = None
            self._cancel_open_timer()

    async def _consume(self, request: TransportRequest) -> None:
        events = self._transport.events(request, self._session.signal)
        try:
            async for event in events:
                if isinstance(event, TransportOpened):
                    body = None
                    if classify_response(event.response) is not ResponseKind.EVENT_STREAM:
                        body = await event.response.aread_text()
                    self._dispatch(Opened(response=event.response, body=body))
                else:
                    self._dispatch(FragmentReceived(data=event.data))
                if self.state is not SessionState.STREAMING:
                    break
            else:
                self._dispatch(StreamEnded(reason="closed"))
        finally:
            aclose = getattr(events, "aclose", None)
            if aclose is not None:
                await aclose()

    def _arm_open_timer(self) -> None:
        timeout = self._options.request_timeout_s
        if timeout:
            self._open_timer = asyncio.get_running_loop().call_later(timeout, self._on_open_timeout)

    def _cancel_open_timer(self) -> None:
        if self._open_timer is not None:
            self._open_timer.cancel()
            self._open_timer = None

    def _on_open_timeout(self) -> None:
        self._open_timer = None
        self._logger.warning(
            f"[Request] no response within {self._options.request_timeout_s}s, aborting"
        )
        self.abort("request timeout")

    # --- Tool rounds ---
    def _tool_round_due(self) -> bool:
        pending = self._session.pending_tool_calls
        if not pending:
            return False
        max_rounds = self._options.max_tool_rounds
        if max_rounds is not None and self._session.tool_rounds >= max_rounds:
            self._logger.warning(
                f"[ChatStream] tool round limit ({max_rounds}) reached, "
                f"dropping {len(pending)} pending call(s)"
            )
            del pending[:]
            return False
        return True

    async def _run_tool_round(self) -> None:
        self._transition(SessionState.TOOL_ROUND)
        self._session.tool_rounds += 1
        self._dispatch(ToolRoundStarted(calls=list(self._session.pending_tool_calls)))

        tool_round = await self._coordinator.run_round(
            self._session.pending_tool_calls, self._session.payload
        )
        self._dispatch(ToolRoundCompleted(round=tool_round))

        await asyncio.sleep(self._options.restart_delay_s)
        if self._session.signal.aborted:
            self._finalize(aborted=True)
            return
        self._logger.debug("[ChatStream] restart")
