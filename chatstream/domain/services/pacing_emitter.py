"""
Pacing emitter - reveals buffered text to the consumer at a bounded rate.
"""

from __future__ import annotations
import asyncio
import logging
import math
from typing import Callable, Optional

from ..models.stream import RevealBuffer


DEFAULT_TICK_INTERVAL_S = 1 / 60
DEFAULT_REVEAL_DIVISOR = 60


class Ticker:
    """Fixed-cadence scheduler primitive used by the emitter loop."""

    def __init__(self, interval_s: float = DEFAULT_TICK_INTERVAL_S):
        self.interval_s = max(0.0, interval_s)

    async def wait(self) -> None:
        await asyncio.sleep(self.interval_s)


def reveal_chunk_size(pending_length: int, divisor: int = DEFAULT_REVEAL_DIVISOR) -> int:
    """Characters released per tick: ``max(1, round(pending / divisor))``, halves rounded up."""
    return max(1, int(math.floor(pending_length / divisor + 0.5)))


class PacingEmitter:
    """Drains a ``RevealBuffer`` into ``on_update`` one tick at a time.

    The loop is started lazily, at most once, and stops on the first tick
    where ``is_done()`` holds, after flushing whatever is still pending.
    While held, ticks release nothing; a flush still drains the buffer.
    """

    def __init__(
        self,
        buffer: RevealBuffer,
        on_update: Callable[[str, str], None],
        is_done: Callable[[], bool],
        ticker: Optional[Ticker] = None,
        divisor: int = DEFAULT_REVEAL_DIVISOR,
        logger: Optional[logging.Logger] = None,
    ):
        self._buffer = buffer
        self._on_update = on_update
        self._is_done = is_done
        self._ticker = ticker or Ticker()
        self._divisor = max(1, divisor)
        self._logger = logger or logging.getLogger(__name__)
        self._task: Optional[asyncio.Task] = None
        self._held = False

    @property
    def started(self) -> bool:
        return self._task is not None

    @property
    def held(self) -> bool:
        return self._held

    def hold(self) -> None:
        """Pause releases until ``resume``."""
        self._held = True

    def resume(self) -> None:
        self._held = False

    def start(self) -> None:
        if self._task is not None:
            return
        self._logger.debug("Reveal animation started")
        self._task = asyncio.ensure_future(self._run())

    async def _run(self) -> None:
        while self.tick():
            await self._ticker.wait()
        self._logger.debug("Reveal animation finished")

    def tick(self) -> bool:
        """Run one reveal step; returns False once the emitter should stop."""
        if self._is_done():
            self.flush()
            return False
        pending = self._buffer.pending
        if pending and not self._held:
            chunk = self._buffer.release(reveal_chunk_size(len(pending), self._divisor))
            self._on_update(self._buffer.shown, chunk)
        return True

    def flush(self) -> str:
        """Reveal everything still pending in one update."""
        chunk = self._buffer.release_all()
        if chunk:
            self._on_update(self._buffer.shown, chunk)
        return chunk

    async def wait_stopped(self) -> None:
        """Wait for the loop to exit; re-raises consumer callback errors."""
        if self._task is not None:
            await self._task
