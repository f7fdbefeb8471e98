"""Built-in tool plugins (TOOL_SCHEMA + TOOL_IMPLEMENTATION modules)."""
