"""
Weatherman CLI entry point.

Provides the interactive chat loop and a configuration dump.
"""

import argparse
import asyncio
import logging
import sys
from collections.abc import Callable
from pathlib import Path

from pydantic import ValidationError

from weatherman import __version__
from weatherman.agent import WeatherAgent
from weatherman.config.logging import setup_logging
from weatherman.config.settings import Settings, load_settings
from weatherman.errors import ConfigurationError, WeathermanError
from weatherman.llm import CompletionClient
from weatherman.tools import WeatherToolClient

logger = logging.getLogger(__name__)

EXIT_COMMANDS = {"quit", "exit"}


def create_parser() -> argparse.ArgumentParser:
    """Create and configure argument parser."""
    parser = argparse.ArgumentParser(
        prog="weatherman",
        description="Console weather agent backed by a chat-completions model",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"Weatherman {__version__}",
    )

    parser.add_argument(
        "--env-file",
        type=Path,
        default=None,
        help="Path to .env file (default: .env in current directory)",
    )

    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default=None,
        help="Override logging level from config",
    )

    # Command-line overrides; these win over .env and environment variables
    parser.add_argument("--model", default=None, help="Override LLM__MODEL")
    parser.add_argument("--endpoint", default=None, help="Override LLM__ENDPOINT")
    parser.add_argument("--max-tokens", type=int, default=None, help="Override LLM__MAX_TOKENS")
    parser.add_argument("--temperature", type=float, default=None, help="Override LLM__TEMPERATURE")
    parser.add_argument("--server-url", default=None, help="Override TOOL__SERVER_URL")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser(
        "chat",
        help="Start the interactive weather chat (default)",
    )

    subparsers.add_parser(
        "config",
        help="Show current configuration",
    )

    return parser


def apply_overrides(settings: Settings, args: argparse.Namespace) -> Settings:
    """
    Apply command-line overrides on top of the loaded settings.

    Each override is validated on assignment.

    Raises:
        ConfigurationError: If an override is out of range or malformed
    """
    try:
        _assign_overrides(settings, args)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid command-line override: {e}", cause=e) from e
    return settings


def _assign_overrides(settings: Settings, args: argparse.Namespace) -> None:
    if args.log_level:
        settings.log_level = args.log_level
    if args.model:
        settings.llm.model = args.model
    if args.endpoint:
        settings.llm.endpoint = args.endpoint
    if args.max_tokens is not None:
        settings.llm.max_tokens = args.max_tokens
    if args.temperature is not None:
        settings.llm.temperature = args.temperature
    if args.server_url:
        settings.tool.server_url = args.server_url


def build_agent(settings: Settings) -> WeatherAgent:
    """Wire the completion client and tool client into an agent."""
    completion_client = CompletionClient(settings.llm)
    tool_client = WeatherToolClient(
        settings.tool.server_url,
        open_timeout=settings.tool.open_timeout,
        max_message_size=settings.tool.max_message_size,
    )
    return WeatherAgent(
        completion_client,
        tool_client,
        forecast_days=settings.tool.forecast_days,
    )


def cmd_config(settings: Settings) -> int:
    """Show current configuration."""
    print("\n=== Weatherman Configuration ===\n")
    print(f"Log Level: {settings.log_level}")
    print(f"Log File: {settings.log_file or 'None (console only)'}")
    print(f"\nLLM Endpoint: {settings.llm.endpoint}")
    print(f"LLM Model: {settings.llm.model}")
    print(f"LLM API Key: {'Set' if settings.llm.api_key else 'Not set'}")
    print(f"LLM Max Tokens: {settings.llm.max_tokens}")
    print(f"LLM Temperature: {settings.llm.temperature}")
    print(f"\nTool Server URL: {settings.tool.server_url or 'Not set'}")
    print(f"Forecast Days: {settings.tool.forecast_days}")
    return 0


async def chat_loop(agent: WeatherAgent, read_line: Callable[[str], str] = input) -> None:
    """
    Line-oriented prompt/response loop.

    Blank input is re-prompted; 'quit' or 'exit' (any case) and end of
    input stop the loop.
    """
    while True:
        try:
            user_input = read_line("You: ")
        except EOFError:
            break

        user_input = user_input.strip()
        if not user_input:
            continue
        if user_input.lower() in EXIT_COMMANDS:
            break

        response = await agent.process_message(user_input)
        print(f"🌤️  Weather Agent: {response}\n")


async def cmd_chat(
    settings: Settings,
    read_line: Callable[[str], str] = input,
    agent: WeatherAgent | None = None,
) -> int:
    """Run the interactive chat until the user quits."""

    missing = settings.missing_required()
    if missing:
        logger.error(f"Missing required configuration: {', '.join(missing)}")
        print(
            f"❌ Missing required configuration: {', '.join(missing)}. "
            "Set them in your .env file or environment.",
            file=sys.stderr,
        )
        return 1

    if agent is None:
        agent = build_agent(settings)

    print("🌤️  Weather Agent Starting...")
    try:
        await agent.initialize()
    except WeathermanError as e:
        logger.error(f"Startup failed: {e}")
        print(f"❌ Error starting Weather Agent: {e}", file=sys.stderr)
        print("Please check your configuration and try again.", file=sys.stderr)
        return 1

    try:
        logger.info("Weather agent is ready")
        print("\n🌤️  Welcome to your Weather Agent!")
        print("Ask me anything about the weather, and I'll help you out!")
        print("Type 'quit' or 'exit' to stop.\n")

        await chat_loop(agent, read_line)
    finally:
        await agent.shutdown()

    print("\n👋 Goodbye! Stay weather-aware!")
    return 0


def main() -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args()

    # Load settings
    try:
        settings = load_settings(env_file=args.env_file)
    except Exception as e:
        print(f"Error loading settings: {e}", file=sys.stderr)
        return 1

    try:
        apply_overrides(settings, args)
    except ConfigurationError as e:
        print(f"Error in command-line options: {e}", file=sys.stderr)
        return 1

    # Setup logging
    setup_logging(settings)

    # Execute command
    if args.command == "config":
        return cmd_config(settings)

    try:
        return asyncio.run(cmd_chat(settings))
    except KeyboardInterrupt:
        print("\n👋 Goodbye! Stay weather-aware!")
        return 130


if __name__ == "__main__":
    sys.exit(main())
