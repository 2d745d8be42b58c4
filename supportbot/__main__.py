"""
SupportBot CLI entry point.

Provides command-line interface for running the HTTP server and utility commands.
"""

import argparse
import asyncio
import sys
import uuid
from pathlib import Path

from supportbot import __version__
from supportbot.config.logging import get_logger, setup_logging
from supportbot.config.settings import Settings, load_settings
from supportbot.errors import ConfigurationError, SupportBotError


def create_parser() -> argparse.ArgumentParser:
    """Create and configure argument parser."""
    parser = argparse.ArgumentParser(
        prog="supportbot",
        description="Customer support chat answered by an LLM, optionally with MCP tools",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"SupportBot {__version__}",
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

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Serve command
    serve_parser = subparsers.add_parser(
        "serve",
        help="Run the HTTP API server",
    )
    serve_parser.add_argument(
        "--host",
        default=None,
        help="Interface to bind (default: SERVER_HOST from config)",
    )
    serve_parser.add_argument(
        "--port",
        type=int,
        default=None,
        help="Port to listen on (default: SERVER_PORT from config)",
    )

    # Config command
    subparsers.add_parser(
        "config",
        help="Show current configuration",
    )

    # Ask command
    ask_parser = subparsers.add_parser(
        "ask",
        help="Ask a single question and print the answer",
    )
    ask_parser.add_argument(
        "message",
        help='Question to ask, e.g. "How do I create a test case?"',
    )
    ask_parser.add_argument(
        "--tools",
        action="store_true",
        help="Let the model call a tool from the configured MCP server",
    )
    ask_parser.add_argument(
        "--session",
        default=None,
        help="Session id (default: a new random id)",
    )
    ask_parser.add_argument(
        "--system-instruction",
        default=None,
        help="Override the default system instruction",
    )

    # Tools command
    subparsers.add_parser(
        "tools",
        help="List the tools offered by the configured MCP server",
    )

    return parser


def cmd_config(settings: Settings) -> int:
    """Show current configuration."""
    logger = get_logger(__name__)

    logger.info("\n=== SupportBot Configuration ===\n")
    logger.info(f"Environment: {settings.environment}")
    logger.info(f"Log Level: {settings.log_level}")
    logger.info(f"Log File: {settings.log_file or 'None (console only)'}")
    logger.info(f"\nServer: {settings.server.host}:{settings.server.port}")
    logger.info(f"CORS Origins: {', '.join(settings.server.cors_origins)}")
    logger.info(f"\nLLM Model: {settings.llm.model}")
    logger.info(f"LLM API Key: {'Set' if settings.llm.api_key else 'Not set'}")
    logger.info(f"LLM Max Tokens: {settings.llm.max_tokens}")
    logger.info(
        f"LLM Sampling: temperature={settings.llm.temperature} "
        f"top_k={settings.llm.top_k} top_p={settings.llm.top_p}"
    )
    logger.info(f"\nMCP Command: {settings.mcp.command} {' '.join(settings.mcp.args)}")
    logger.info(f"MCP Timeout: {settings.mcp.timeout_ms} ms")
    logger.info(f"\nHistory TTL: {settings.history.ttl_seconds} s")

    return 0


def cmd_serve(args, settings: Settings) -> int:
    """Start the HTTP API server."""
    logger = get_logger(__name__)

    if not settings.llm.api_key:
        logger.error("LLM API key not set. Add LLM_API_KEY=<your-key> to your .env file.")
        return 1

    import uvicorn

    from supportbot.api import create_app

    host = args.host or settings.server.host
    port = args.port or settings.server.port

    logger.info(f"Starting SupportBot on {host}:{port}...")
    # log_config=None: keep uvicorn from replacing our logging setup
    uvicorn.run(create_app(settings), host=host, port=port, log_config=None)
    return 0


async def cmd_ask(args, settings: Settings) -> int:
    """Answer one message, with or without MCP tools, and print it."""
    logger = get_logger(__name__)

    from supportbot.api.app import build_orchestrator
    from supportbot.llm.gateway import ModelGateway

    try:
        gateway = ModelGateway(settings.llm)
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1

    orchestrator = build_orchestrator(settings, gateway)
    session_id = args.session or str(uuid.uuid4())

    if args.tools:
        logger.info(f"Sending to {settings.llm.model} with tools from {settings.mcp.command}...")
        ask = orchestrator.ask_with_tools
    else:
        logger.info(f"Sending to {settings.llm.model}...")
        ask = orchestrator.ask_model

    try:
        result = await ask(session_id, args.message, args.system_instruction)
    except (SupportBotError, ValueError) as e:
        print(f"\nError: {e}", file=sys.stderr)
        return 1

    print(f"\nQ: {args.message}\n")
    print(result.answer)
    return 0


async def cmd_tools(settings: Settings) -> int:
    """Connect to the MCP server and print its tool catalog."""
    from supportbot.tools.mcp_client import MCPToolProvider
    from supportbot.tools.schema import translate_tool

    try:
        async with MCPToolProvider.from_settings(settings.mcp) as provider:
            tools = [translate_tool(tool) for tool in await provider.list_tools()]
    except SupportBotError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if not tools:
        print("The MCP server offers no tools.")
        return 0

    print(f"\n=== MCP Tools ({len(tools)}) ===")
    for tool in tools:
        params = ", ".join(tool.parameters.get("properties", {}))
        print(f"  {tool.name}({params})")
        if tool.description:
            print(f"      {tool.description}")
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

    # Override log level if specified
    if args.log_level:
        settings.log_level = args.log_level

    setup_logging(settings)

    # Execute command
    if args.command == "config":
        return cmd_config(settings)
    elif args.command == "serve":
        return cmd_serve(args, settings)
    elif args.command == "ask":
        return asyncio.run(cmd_ask(args, settings))
    elif args.command == "tools":
        return asyncio.run(cmd_tools(settings))
    else:
        # Default: show help
        parser.print_help()
        return 0


if __name__ == "__main__":
    sys.exit(main())
