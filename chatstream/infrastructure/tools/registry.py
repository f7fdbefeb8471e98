"""
Tool plugin registry - Infrastructure component managing tool plugins.

Plugin contract (any Python module):
- Must define TOOL_SCHEMA: dict with keys {"type": "function", "function": {"name": str, "description": str, "parameters": object-schema}}
- Must provide an implementation, one of:
  * attribute TOOL_IMPLEMENTATION: callable
  * a function named the same as TOOL_SCHEMA['function']['name']
- Optional: TOOL_VERSION: str, TOOL_AUTHOR: str

The registry exposes ``schemas`` (the request ``tools`` list) and
``handlers`` (name -> callable taking the decoded argument object). Handler
arguments are validated against the plugin's ``parameters`` JSON schema
before the implementation runs.
"""
from __future__ import annotations

import importlib
import importlib.util
import inspect
import logging
import os
import pkgutil
import sys
from dataclasses import dataclass
from types import ModuleType
from typing import Any, Callable, Dict, List, Optional

from jsonschema import ValidationError, validate as jsonschema_validate

from ...domain.models.errors import ChatStreamError, ToolArgumentsError


# Minimal JSON Schema to validate the tool definition structure itself
_TOOL_DEFINITION_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "required": ["type", "function"],
    "properties": {
        "type": {"const": "function"},
        "function": {
            "type": "object",
            "required": ["name", "description", "parameters"],
            "properties": {
                "name": {"type": "string", "minLength": 1},
                "description": {"type": "string", "minLength": 1},
                "parameters": {"type": ["object", "boolean"]},  # allow True for no-arg tools
            },
            "additionalProperties": True,
        },
    },
    "additionalProperties": True,
}

BUILTIN_PLUGIN_PACKAGE = "chatstream.plugins"


class PluginLoadError(ChatStreamError):
    pass


@dataclass(frozen=True)
class ToolPlugin:
    name: str
    schema: Dict[str, Any]
    implementation: Callable[..., Any]
    source: str = ""


class ToolRegistry:
    """Registry of tool plugins keyed by function name."""

    def __init__(self, logger: Optional[logging.Logger] = None) -> None:
        self._logger = logger or logging.getLogger(__name__)
        self._plugins: Dict[str, ToolPlugin] = {}

    # --- Registration ---
    def register(self, schema: Dict[str, Any], implementation: Callable[..., Any], source: str = "") -> ToolPlugin:
        """Register a tool after validating its definition."""
        self._validate_tool_schema(schema)
        name = schema["function"]["name"]
        if not callable(implementation):
            raise PluginLoadError(f"Implementation for tool '{name}' is not callable")
        if name in self._plugins:
            raise PluginLoadError(f"Duplicate tool name '{name}'")
        plugin = ToolPlugin(name=name, schema=schema, implementation=implementation, source=source)
        self._plugins[name] = plugin
        self._logger.debug(f"Registered tool: {name}")
        return plugin

    def register_module(self, module: ModuleType) -> ToolPlugin:
        """Register the tool declared by a plugin module."""
        schema = getattr(module, "TOOL_SCHEMA", None)
        if not isinstance(schema, dict):
            raise PluginLoadError("Missing or invalid TOOL_SCHEMA (must be a dict)")
        self._validate_tool_schema(schema)
        name = schema["function"]["name"]
        impl = getattr(module, "TOOL_IMPLEMENTATION", None)
        if not callable(impl):
            impl = getattr(module, name, None)
        if not callable(impl):
            raise PluginLoadError("No callable implementation found (TOOL_IMPLEMENTATION or function name)")
        return self.register(schema, impl, source=getattr(module, "__name__", ""))

    def load_builtin(self) -> List[str]:
        """Register every plugin module shipped in ``chatstream.plugins``."""
        package = importlib.import_module(BUILTIN_PLUGIN_PACKAGE)
        loaded: List[str] = []
        for info in pkgutil.iter_modules(package.__path__):
            if info.name.startswith("_"):
                continue
            module = importlib.import_module(f"{BUILTIN_PLUGIN_PACKAGE}.{info.name}")
            loaded.append(self._register_safely(module, module.__name__))
        return [name for name in loaded if name]

    def load_directory(self, base_dir: str) -> List[str]:
        """Import and register ``*.py`` plugin files from an external directory."""
        loaded: List[str] = []
        if not os.path.isdir(base_dir):
            self._logger.warning(f"Plugin directory not found: {base_dir}")
            return loaded
        for file_name in sorted(os.listdir(base_dir)):
            if file_name.startswith("_") or not file_name.endswith(".py"):
                continue
            file_path = os.path.join(base_dir, file_name)
            try:
                module = self._import_module_from_path(file_path)
            except Exception as e:
                self._logger.error(f"Failed to import plugin from {file_path}: {e}")
                continue
            loaded.append(self._register_safely(module, file_path))
        return [name for name in loaded if name]

    # --- Lookup ---
    @property
    def names(self) -> List[str]:
        return list(self._plugins.keys())

    @property
    def schemas(self) -> List[Dict[str, Any]]:
        return [plugin.schema for plugin in self._plugins.values()]

    @property
    def handlers(self) -> Dict[str, Callable[[Dict[str, Any]], Any]]:
        return {name: self._make_handler(plugin) for name, plugin in self._plugins.items()}

    def get(self, name: str) -> Optional[ToolPlugin]:
        return self._plugins.get(name)

    def __len__(self) -> int:
        return len(self._plugins)

    def __contains__(self, name: object) -> bool:
        return name in self._plugins

    # --- Internals ---
    def _register_safely(self, module: ModuleType, source: str) -> str:
        try:
            plugin = self.register_module(module)
        except PluginLoadError as e:
            self._logger.error(f"Failed to load plugin from {source}: {e}")
            return ""
        self._logger.info(f"Loaded plugin '{plugin.name}' from {source}")
        return plugin.name

    @staticmethod
    def _import_module_from_path(file_path: str) -> ModuleType:
        module_name = f"chatstream_plugin_{os.path.splitext(os.path.basename(file_path))[0]}"
        spec = importlib.util.spec_from_file_location(module_name, file_path)
        if spec is None or spec.loader is None:
            raise PluginLoadError(f"Cannot create import spec for {file_path}")
        module = importlib.util.module_from_spec(spec)
        sys.modules[module_name] = module
        spec.loader.exec_module(module)
        return module

    @staticmethod
    def _validate_tool_schema(schema: Dict[str, Any]) -> None:
        try:
            jsonschema_validate(instance=schema, schema=_TOOL_DEFINITION_SCHEMA)
        except ValidationError as e:
            raise PluginLoadError(f"Tool definition failed validation: {e.message}") from e

    def _make_handler(self, plugin: ToolPlugin) -> Callable[[Dict[str, Any]], Any]:
        params_schema = plugin.schema.get("function", {}).get("parameters")
        func = plugin.implementation
        logger = self._logger

        def handler(args: Dict[str, Any]) -> Any:
            # Remove None values to avoid schema type mismatches (e.g., string vs null)
            cleaned = {k: v for k, v in (args or {}).items() if v is not None}
            if isinstance(params_schema, dict):
                try:
                    jsonschema_validate(instance=cleaned, schema=params_schema)
                except ValidationError as e:
                    raise ToolArgumentsError(
                        f"Arguments for {plugin.name} failed schema validation: {e.message}"
                    ) from e

            params = inspect.signature(func).parameters
            if not any(p.kind == inspect.Parameter.VAR_KEYWORD for p in params.values()):
                dropped = [k for k in cleaned if k not in params]
                if dropped:
                    logger.debug(f"Tool '{plugin.name}': dropping unexpected arguments: {dropped}")
                cleaned = {k: v for k, v in cleaned.items() if k in params}
            return func(**cleaned)

        handler.__name__ = f"plugin_{plugin.name}"
        return handler


def load_default_registry(
    plugin_dirs: Optional[List[str]] = None,
    logger: Optional[logging.Logger] = None,
) -> ToolRegistry:
    """Registry with the built-in plugins plus any external plugin directories."""
    registry = ToolRegistry(logger=logger)
    registry.load_builtin()
    for path in plugin_dirs or []:
        registry.load_directory(path)
    return registry
