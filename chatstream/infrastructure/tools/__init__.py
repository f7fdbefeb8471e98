"""Tool plugin infrastructure."""

from .registry import PluginLoadError, ToolPlugin, ToolRegistry, load_default_registry

__all__ = ["PluginLoadError", "ToolPlugin", "ToolRegistry", "load_default_registry"]
