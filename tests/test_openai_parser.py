import json

import pytest

from chatstream.domain.models.stream import Fragment
from chatstream.infrastructure.parsers.openai_compatible import OpenAIChunkParser


def _event(delta):
    return json.dumps({"object": "chat.completion.chunk", "choices": [{"index": 0, "delta": delta}]})


def test_plain_mode_returns_content_text():
    parser = OpenAIChunkParser()
    assert parser(_event({"content": "Hi"}), []) == "Hi"
    assert parser(_event({"role": "assistant"}), []) is None


def test_thinking_mode_tags_reasoning_and_leaves_content_unflagged():
    parser = OpenAIChunkParser(thinking=True)
    assert parser(_event({"reasoning_content": "hmm"}), []) == Fragment("hmm", True)
    assert parser(_event({"content": "<think>x"}), []) == Fragment("<think>x", None)


def test_tool_call_deltas_accumulate_arguments():
    parser = OpenAIChunkParser()
    pending = []
    parser(_event({"tool_calls": [
        {"index": 0, "id": "a", "type": "function", "function": {"name": "first", "arguments": ""}},
        {"index": 1, "id": "b", "type": "function", "function": {"name": "second", "arguments": "{\"q\""}},
    ]}), pending)
    parser(_event({"tool_calls": [{"index": 0, "function": {"arguments": "{\"x\": 1}"}}]}), pending)
    parser(_event({"tool_calls": [{"index": 1, "function": {"arguments": ": \"y\"}"}}]}), pending)

    assert [(c.id, c.name) for c in pending] == [("a", "first"), ("b", "second")]
    assert pending[0].parse_arguments() == {"x": 1}
    assert pending[1].parse_arguments() == {"q": "y"}


def test_delta_without_index_extends_last_call():
    parser = OpenAIChunkParser()
    pending = []
    parser(_event({"tool_calls": [{"id": "a", "function": {"name": "t", "arguments": "{"}}]}), pending)
    parser(_event({"tool_calls": [{"function": {"arguments": "}"}}]}), pending)
    assert pending[0].arguments == "{}"


def test_orphan_argument_delta_is_ignored():
    pending = []
    OpenAIChunkParser()(_event({"tool_calls": [{"index": 0, "function": {"arguments": "{}"}}]}), pending)
    assert pending == []


def test_empty_choices_and_malformed_json():
    parser = OpenAIChunkParser()
    assert parser(json.dumps({"choices": []}), []) is None
    with pytest.raises(ValueError):
        parser("{not json", [])
