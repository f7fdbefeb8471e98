#!/usr/bin/env python3
"""
Command line entry point for chatstream.
"""

import argparse
import asyncio
import logging
import signal
import sys
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv

# Load environment variables
load_dotenv()

# Import after loading env vars to ensure proper configuration
from .application.chat_stream_service import ChatStreamService
from .domain.interfaces.callbacks import StreamCallbacks
from .domain.models.session import SessionState, StreamOutcome
from .domain.models.tool import PendingToolCall, ToolResult
from .infrastructure.config.settings import get_settings
from .infrastructure.tools.registry import ToolRegistry, load_default_registry
from .utils import format_conversation_history, setup_logging, truncate_text


def _build_callbacks(quiet: bool) -> StreamCallbacks:
    def on_update(shown: str, delta: str) -> None:
        sys.stdout.write(delta)
        sys.stdout.flush()

    def on_finish(transcript: str, response: Any) -> None:
        print()

    def on_error(error: BaseException) -> None:
        print(f"\n❌ Error: {error}")

    def on_before_tool(call: PendingToolCall) -> None:
        if not quiet:
            print(f"\n🔧 Calling {call.name}({truncate_text(call.arguments, 80)})")

    def on_after_tool(result: ToolResult) -> None:
        if not quiet:
            marker = "⚠️" if result.is_error else "✅"
            print(f"{marker} {result.tool_call.name}: {truncate_text(result.content, 200)}")

    return StreamCallbacks(
        on_update=on_update,
        on_finish=on_finish,
        on_error=on_error,
        on_before_tool=on_before_tool,
        on_after_tool=on_after_tool,
    )


async def send_message(
    service: ChatStreamService,
    messages: List[Dict[str, Any]],
    registry: Optional[ToolRegistry],
    thinking: bool = False,
    quiet: bool = False,
) -> StreamOutcome:
    """Stream one assistant turn for ``messages``; Ctrl-C aborts the session."""
    payload = {
        "model": service.settings.endpoint.model,
        "messages": messages,
        "stream": True,
    }
    handle = service.start(
        payload,
        tools=registry.schemas if registry else None,
        handlers=registry.handlers if registry else None,
        callbacks=_build_callbacks(quiet),
        thinking=thinking,
    )

    loop = asyncio.get_running_loop()
    try:
        loop.add_signal_handler(signal.SIGINT, handle.abort, "interrupted")
        installed = True
    except (NotImplementedError, RuntimeError):
        installed = False
    try:
        outcome = await handle
    finally:
        if installed:
            loop.remove_signal_handler(signal.SIGINT)

    if outcome.state is SessionState.ABORTED and not quiet:
        print("⚠️ Response interrupted")
    if outcome.transcript:
        messages.append({"role": "assistant", "content": outcome.transcript})
    return outcome


def interactive_mode(
    service: ChatStreamService,
    registry: Optional[ToolRegistry],
    thinking: bool = False,
    quiet: bool = False,
) -> None:
    """Run interactive chat mode."""
    logger = logging.getLogger(__name__)
    messages: List[Dict[str, Any]] = []
    if not quiet:
        print("🚀 chatstream - Interactive Mode")
        print(f"📝 Model: {service.settings.endpoint.model}")
        print(f"🔧 Tools: {', '.join(registry.names) if registry else 'Disabled'}")
        print("💡 Commands: 'quit'/'exit' to exit, 'clear' to clear history, 'history' to show history")
        print("-" * 60)

    while True:
        try:
            user_input = input("\n👤 You: ").strip()
        except (KeyboardInterrupt, EOFError):
            if not quiet:
                print("\n👋 Goodbye!")
            break

        if not user_input:
            continue
        if user_input.lower() in ['quit', 'exit']:
            if not quiet:
                print("👋 Goodbye!")
            break
        if user_input.lower() == 'clear':
            messages.clear()
            if not quiet:
                print("✅ History cleared")
            continue
        if user_input.lower() == 'history':
            print("\n📜 Conversation History:")
            print(format_conversation_history(messages))
            continue

        messages.append({"role": "user", "content": user_input})
        if not quiet:
            print("\n🤖 ", end="", flush=True)
        try:
            asyncio.run(send_message(service, messages, registry, thinking=thinking, quiet=quiet))
        except Exception as e:
            logger.error(f"Interactive mode error: {e}")
            if not quiet:
                print(f"\n❌ Error: {e}")


def main(argv: Optional[List[str]] = None) -> None:
    """Main entry point for chatstream."""
    settings = get_settings()
    parser = argparse.ArgumentParser(
        description="Stream chat completions with paced output, reasoning quotes and tool calling",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s                                       # Interactive mode
  %(prog)s --message "Calculate 15 * 8"          # Single message
  %(prog)s --message "Why is the sky blue?" --think
        """
    )
    parser.add_argument('--message',
                       help='Single message to send (non-interactive mode)')
    parser.add_argument('--think', action='store_true',
                       help='Show reasoning as a quoted block before the answer')
    parser.add_argument('--no-tools', action='store_true',
                       help='Disable tool calling')
    parser.add_argument('--plugin-dir', action='append', default=[],
                       help='Extra directory of tool plugins (repeatable)')
    parser.add_argument('--quiet', action='store_true',
                       help='Print only the response text')
    parser.add_argument('--log-level',
                       default=settings.log_level,
                       choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
                       help='Logging level (default: INFO)')
    parser.add_argument('--version',
                       action='version',
                       version='%(prog)s 1.0.0')

    args = parser.parse_args(argv)

    setup_logging(args.log_level)
    logger = logging.getLogger(__name__)

    missing = settings.validate_required_settings()
    if missing and not args.quiet:
        print(f"⚠️ Warning: {', '.join(missing)} is not set; the endpoint may reject the request")

    registry = None
    if settings.tools_enabled and not args.no_tools:
        registry = load_default_registry(args.plugin_dir, logger=logger)

    service = ChatStreamService(settings=settings)
    logger.info(f"Streaming from {settings.endpoint.url} with model {settings.endpoint.model}")

    try:
        if args.message:
            if not args.quiet:
                print(f"🔄 Sending message to {settings.endpoint.model}...")
            messages = [{"role": "user", "content": args.message}]
            outcome = asyncio.run(
                send_message(service, messages, registry, thinking=args.think, quiet=args.quiet)
            )
            if not outcome.success:
                sys.exit(1)
        else:
            interactive_mode(service, registry, thinking=args.think, quiet=args.quiet)
    except KeyboardInterrupt:
        print("\n👋 Goodbye!")
        sys.exit(0)
    except Exception as e:
        logger.error(f"Application error: {e}")
        print(f"❌ Fatal error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
