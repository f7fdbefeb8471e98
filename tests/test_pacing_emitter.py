import asyncio

import pytest

from chatstream.domain.models.stream import RevealBuffer
from chatstream.domain.services.pacing_emitter import PacingEmitter, Ticker, reveal_chunk_size


class _Recorder:
    def __init__(self):
        self.updates = []

    def __call__(self, shown, delta):
        self.updates.append((shown, delta))


@pytest.mark.parametrize("pending,expected", [
    (1, 1),
    (29, 1),
    (30, 1),
    (90, 2),
    (120, 2),
    (600, 10),
])
def test_reveal_chunk_size_rounds_and_never_drops_below_one(pending, expected):
    assert reveal_chunk_size(pending) == expected


def test_tick_releases_bounded_chunks_until_drained():
    buffer = RevealBuffer()
    buffer.append("x" * 200)
    recorder = _Recorder()
    emitter = PacingEmitter(buffer, recorder, is_done=lambda: False)

    sizes = []
    while buffer.pending:
        remaining = len(buffer.pending)
        assert emitter.tick() is True
        size = len(recorder.updates[-1][1])
        assert 1 <= size <= max(1, remaining / 60 + 0.5)
        sizes.append(size)

    assert sizes == sorted(sizes, reverse=True)
    assert "".join(delta for _, delta in recorder.updates) == "x" * 200
    assert recorder.updates[-1][0] == "x" * 200


def test_tick_without_pending_text_keeps_running_silently():
    recorder = _Recorder()
    emitter = PacingEmitter(RevealBuffer(), recorder, is_done=lambda: False)
    assert emitter.tick() is True
    assert recorder.updates == []


def test_done_flushes_remaining_text_and_stops():
    buffer = RevealBuffer()
    buffer.append("abcdef")
    recorder = _Recorder()
    emitter = PacingEmitter(buffer, recorder, is_done=lambda: True)
    assert emitter.tick() is False
    assert recorder.updates == [("abcdef", "abcdef")]


@pytest.mark.asyncio
async def test_loop_starts_once_and_drains_on_done():
    buffer = RevealBuffer()
    buffer.append("hello world")
    recorder = _Recorder()
    state = {"done": False}
    emitter = PacingEmitter(buffer, recorder, is_done=lambda: state["done"], ticker=Ticker(0))

    emitter.start()
    task = emitter._task
    emitter.start()
    assert emitter._task is task

    await asyncio.sleep(0)
    state["done"] = True
    await emitter.wait_stopped()

    assert buffer.pending == ""
    assert "".join(delta for _, delta in recorder.updates) == "hello world"


def test_held_emitter_releases_nothing_until_resumed():
    buffer = RevealBuffer()
    buffer.append("x" * 120)
    recorder = _Recorder()
    emitter = PacingEmitter(buffer, recorder, is_done=lambda: False)

    emitter.hold()
    assert emitter.tick() is True
    assert recorder.updates == []
    assert buffer.shown == ""

    emitter.resume()
    emitter.tick()
    assert recorder.updates == [("xx", "xx")]


def test_flush_drains_a_held_emitter():
    buffer = RevealBuffer()
    buffer.append("abc")
    recorder = _Recorder()
    emitter = PacingEmitter(buffer, recorder, is_done=lambda: True)

    emitter.hold()
    assert emitter.tick() is False
    assert recorder.updates == [("abc", "abc")]
