"""
Utility functions for chatstream.
"""

import logging
import sys
from typing import Any, Dict, List


def setup_logging(level: str = "INFO") -> None:
    """Setup logging configuration."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler(sys.stderr)
        ]
    )

    # Reduce noise from third-party libraries unless debugging
    if level.upper() != "DEBUG":
        for name in ("httpx", "httpcore"):
            logging.getLogger(name).setLevel(logging.WARNING)


def truncate_text(text: str, max_length: int = 100) -> str:
    """Truncate text with ellipsis if too long."""
    if len(text) <= max_length:
        return text
    return text[:max_length-3] + "..."


def format_conversation_history(history: List[Dict[str, Any]], max_entries: int = 10) -> str:
    """Format conversation history for display."""
    if not history:
        return "No conversation history"

    result = []
    recent_history = history[-max_entries:]

    for i, message in enumerate(recent_history, 1):
        role = message.get('role', 'unknown')
        content = message.get('content') or ''
        if not content and message.get('tool_calls'):
            names = [tc.get('function', {}).get('name', '?') for tc in message['tool_calls']]
            content = f"[tool calls: {', '.join(names)}]"

        role_emoji = {
            'user': '👤',
            'assistant': '🤖',
            'tool': '🔧',
            'system': '⚙️'
        }.get(role, '❓')

        result.append(f"  {i}. {role_emoji} {role}: {truncate_text(content, 150)}")

    if len(history) > max_entries:
        result.insert(0, f"  ... (showing last {max_entries} of {len(history)} messages)")

    return "\n".join(result)
