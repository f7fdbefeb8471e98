import asyncio
import time

import pytest

from chatstream.domain.interfaces.callbacks import StreamCallbacks
from chatstream.domain.models.tool import PendingToolCall, ToolCallStatus
from chatstream.domain.services.tool_coordinator import ToolCallCoordinator, normalize_handler_response


def _call(call_id, name, arguments=""):
    return PendingToolCall(id=call_id, name=name, arguments=arguments)


class _Response:
    def __init__(self, data=None, status=200, statusText=None):
        self.data = data
        self.status = status
        self.statusText = statusText


@pytest.mark.parametrize("response,expected", [
    ("plain", ("plain", 200)),
    ({"answer": 42}, ('{"answer": 42}', 200)),
    ({"data": "ok", "status": 201}, ("ok", 201)),
    ({"status": 503, "statusText": "Service Unavailable"}, ("Service Unavailable", 503)),
    (_Response(data={"x": 1}), ('{"x": 1}', 200)),
    (None, ("", 200)),
])
def test_normalize_handler_response(response, expected):
    assert normalize_handler_response(response) == expected


@pytest.mark.asyncio
async def test_round_preserves_call_order_and_extends_payload():
    async def slow(args):
        await asyncio.sleep(0.01)
        return f"slow:{args['n']}"

    def fast(args):
        return f"fast:{args['n']}"

    pending = [_call("c1", "slow", '{"n": 1}'), _call("c2", "fast", '{"n": 2}')]
    payload = {"messages": [{"role": "user", "content": "hi"}]}
    coordinator = ToolCallCoordinator({"slow": slow, "fast": fast})

    tool_round = await coordinator.run_round(pending, payload)

    assert pending == []
    assert [r.content for r in tool_round.results] == ["slow:1", "fast:2"]
    assert payload["messages"][1] == {
        "role": "assistant",
        "tool_calls": [
            {"id": "c1", "type": "function", "function": {"name": "slow", "arguments": '{"n": 1}'}},
            {"id": "c2", "type": "function", "function": {"name": "fast", "arguments": '{"n": 2}'}},
        ],
    }
    assert payload["messages"][2:] == [
        {"name": "slow", "role": "tool", "content": "slow:1", "tool_call_id": "c1"},
        {"name": "fast", "role": "tool", "content": "fast:2", "tool_call_id": "c2"},
    ]


@pytest.mark.asyncio
async def test_overloaded_rejection_becomes_sentinel_error():
    async def failing(args):
        raise RuntimeError("upstream returned insufficient capacity")

    after = []
    coordinator = ToolCallCoordinator(
        {"lookup": failing},
        callbacks=StreamCallbacks(on_after_tool=after.append),
    )
    pending = [_call("c1", "lookup")]

    tool_round = await coordinator.run_round(pending, {})

    result = tool_round.results[0]
    assert result.content == "ERROR: ServerUnreachable"
    assert result.is_error is True
    assert after == [result]
    assert after[0].is_error is True
    assert result.tool_call.status is ToolCallStatus.FAILED


@pytest.mark.asyncio
async def test_overload_marker_in_success_content_is_normalized():
    coordinator = ToolCallCoordinator({"t": lambda args: "quota insufficient"})
    tool_round = await coordinator.run_round([_call("c1", "t")], {})
    assert tool_round.results[0].content == "ERROR: ServerUnreachable"
    assert tool_round.results[0].is_error is False


@pytest.mark.asyncio
async def test_failure_status_is_error_result():
    coordinator = ToolCallCoordinator(
        {"t": lambda args: {"status": 404, "statusText": "Not Found"}}
    )
    tool_round = await coordinator.run_round([_call("c1", "t")], {})
    result = tool_round.results[0]
    assert result.is_error is True
    assert result.content == "Not Found"
    assert tool_round.failed_calls == 1


@pytest.mark.asyncio
async def test_missing_handler_and_bad_arguments_do_not_abort_round():
    coordinator = ToolCallCoordinator({"ok": lambda args: "fine", "echo": lambda args: args})
    pending = [
        _call("c1", "unknown"),
        _call("c2", "echo", "{not json"),
        _call("c3", "ok"),
    ]
    tool_round = await coordinator.run_round(pending, {})

    assert [r.is_error for r in tool_round.results] == [True, True, False]
    assert tool_round.results[0].content == "Tool 'unknown' not found"
    assert "Invalid JSON arguments" in tool_round.results[1].content
    assert tool_round.results[2].content == "fine"


@pytest.mark.asyncio
async def test_absent_arguments_are_an_empty_object():
    seen = []
    coordinator = ToolCallCoordinator({"t": lambda args: seen.append(args) or "done"})
    await coordinator.run_round([_call("c1", "t", "")], {})
    assert seen == [{}]


@pytest.mark.asyncio
async def test_calls_added_during_round_are_not_run_twice():
    pending = []
    calls = []

    async def handler(args):
        calls.append(args["n"])
        # A parser appending while the round is in flight lands in the fresh list
        pending.append(_call("late", "t", '{"n": 99}'))
        return "ok"

    pending.append(_call("c1", "t", '{"n": 1}'))
    coordinator = ToolCallCoordinator({"t": handler})
    await coordinator.run_round(pending, {})

    assert calls == [1]
    assert [c.id for c in pending] == ["late"]


@pytest.mark.asyncio
async def test_custom_conversation_extender_is_used():
    seen = []

    def extend(payload, assistant_message, tool_messages):
        seen.append((assistant_message["role"], [m["tool_call_id"] for m in tool_messages]))

    coordinator = ToolCallCoordinator({"t": lambda args: "x"}, extend_conversation=extend)
    payload = {}
    await coordinator.run_round([_call("c1", "t")], payload)

    assert seen == [("assistant", ["c1"])]
    assert payload == {}


@pytest.mark.asyncio
async def test_blocking_handlers_run_concurrently_off_the_event_loop():
    def blocking(args):
        time.sleep(0.3)
        return f"done:{args['n']}"

    ticks = []

    async def heartbeat():
        while True:
            ticks.append(time.monotonic())
            await asyncio.sleep(0.05)

    coordinator = ToolCallCoordinator({"block": blocking})
    pending = [_call("c1", "block", '{"n": 1}'), _call("c2", "block", '{"n": 2}')]
    beat = asyncio.ensure_future(heartbeat())
    start = time.monotonic()
    try:
        tool_round = await coordinator.run_round(pending, {})
    finally:
        beat.cancel()
    elapsed = time.monotonic() - start

    assert [r.content for r in tool_round.results] == ["done:1", "done:2"]
    assert elapsed < 0.55
    # The loop kept ticking while both handlers blocked
    assert len(ticks) >= 3
