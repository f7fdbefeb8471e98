import types

import pytest

from chatstream.domain.models.errors import ToolArgumentsError
from chatstream.infrastructure.tools.registry import (
    PluginLoadError, ToolRegistry, load_default_registry,
)


ECHO_SCHEMA = {
    "type": "function",
    "function": {
        "name": "echo",
        "description": "Echo text back",
        "parameters": {
            "type": "object",
            "properties": {"text": {"type": "string"}},
            "required": ["text"],
        },
    },
}


def _echo(text):
    return f"echo: {text}"


def test_register_and_invoke_handler():
    registry = ToolRegistry()
    registry.register(ECHO_SCHEMA, _echo)

    assert registry.names == ["echo"]
    assert registry.schemas == [ECHO_SCHEMA]
    # Unknown keys and None values are dropped before the call
    assert registry.handlers["echo"]({"text": "hi", "extra": 1, "none": None}) == "echo: hi"


def test_arguments_failing_schema_raise_tool_arguments_error():
    registry = ToolRegistry()
    registry.register(ECHO_SCHEMA, _echo)
    with pytest.raises(ToolArgumentsError):
        registry.handlers["echo"]({"text": 5})
    with pytest.raises(ToolArgumentsError):
        registry.handlers["echo"]({})


def test_invalid_definitions_are_rejected():
    registry = ToolRegistry()
    with pytest.raises(PluginLoadError):
        registry.register({"type": "function", "function": {"name": "x"}}, _echo)
    registry.register(ECHO_SCHEMA, _echo)
    with pytest.raises(PluginLoadError):
        registry.register(ECHO_SCHEMA, _echo)


def test_register_module_finds_implementation_by_name():
    module = types.ModuleType("fake_plugin")
    module.TOOL_SCHEMA = ECHO_SCHEMA
    module.echo = _echo

    plugin = ToolRegistry().register_module(module)

    assert plugin.name == "echo"
    assert plugin.source == "fake_plugin"


def test_load_directory_skips_broken_plugins(tmp_path, caplog):
    (tmp_path / "good.py").write_text(
        "TOOL_SCHEMA = {'type': 'function', 'function': {'name': 'shout', 'description': 'Shout',\n"
        "               'parameters': {'type': 'object', 'properties': {'text': {'type': 'string'}}}}}\n"
        "def shout(text=''):\n"
        "    return text.upper()\n"
    )
    (tmp_path / "broken.py").write_text("TOOL_SCHEMA = 'nope'\n")
    (tmp_path / "_private.py").write_text("raise RuntimeError('never imported')\n")

    registry = ToolRegistry()
    loaded = registry.load_directory(str(tmp_path))

    assert loaded == ["shout"]
    assert registry.handlers["shout"]({"text": "hey"}) == "HEY"
    assert "Failed to load plugin" in caplog.text


def test_default_registry_contains_builtin_plugins():
    registry = load_default_registry()
    assert "calculate_math" in registry
    assert "get_system_info" in registry


def test_calculator_plugin():
    handler = load_default_registry().handlers["calculate_math"]
    assert handler({"expression": "2 + 3 * 4"}) == "Result: 2 + 3 * 4 = 14"
    assert handler({"expression": "sqrt(16)"}) == "Result: sqrt(16) = 4"
    assert handler({"expression": "2^10"}) == "Result: 2^10 = 1024"
    with pytest.raises(ValueError):
        handler({"expression": "__import__('os')"})
    with pytest.raises(ValueError):
        handler({"expression": "1/0"})


def test_system_info_plugin_returns_response_like_mapping():
    result = load_default_registry().handlers["get_system_info"]({})
    assert result["status"] == 200
    assert "python_version" in result["data"]
