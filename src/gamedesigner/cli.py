"""Command line entry point: run the MCP server or exercise a single tool."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import Dict

from mcp.server.fastmcp.exceptions import ToolError

from .logging_setup import setup_logging
from .server import TOOLS, build_server, call_tool
from .settings import get_settings

logger = logging.getLogger(__name__)

TOOL_HELP = {
    "designNew": "Create a new game design session",
    "designOverview": "Get the initial game design goals",
    "nextFeature": "Get the next feature specification",
    "featureReview": "Submit a feature implementation for review",
    "reviewReply": "Reply to questions from the review process",
    "featureAsk": "Ask an ad-hoc question about the design",
    "help": "Show this help information",
}

USAGE_EXAMPLES = (
    'gamedesigner test --tool designNew --session-name my_game --game-description "A 2D platformer about cats in space"',
    "gamedesigner test --tool designOverview --session-name my_game",
    "gamedesigner test --tool nextFeature --session-name my_game",
    'gamedesigner test --tool featureReview --session-name my_game --changes-made "Implemented basic player movement with WASD and jump"',
    'gamedesigner test --tool reviewReply --session-name my_game --content "Yes, I used pygame for this implementation."',
    'gamedesigner test --tool featureAsk --session-name my_game --question "How should the player interact with collectible items?"',
)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="gamedesigner", description="Game Designer MCP server")
    sub = parser.add_subparsers(dest="command", required=True)

    stdio = sub.add_parser("stdio", help="Run the server in stdin/stdout mode")
    stdio.add_argument("-d", "--debug", action="store_true", help="Enable debug logging")

    http = sub.add_parser("http", help="Run the server over streamable HTTP")
    http.add_argument("--host", help="Address to bind the HTTP server to")
    http.add_argument("--port", type=int, help="Port to bind the HTTP server to")
    http.add_argument("-d", "--debug", action="store_true", help="Enable debug logging")

    test = sub.add_parser("test", help="Test tools directly from the CLI")
    test.add_argument("--tool", default="nextFeature", help="The tool to test, or 'help'")
    test.add_argument("--session-name", help="Session name for tools that require it")
    test.add_argument("--game-description", help="Game description for designNew")
    test.add_argument("--changes-made", help="Changes made report for featureReview")
    test.add_argument("--content", help="Content for reviewReply")
    test.add_argument("--question", help="Question for featureAsk")
    test.add_argument("-d", "--debug", action="store_true", help="Enable debug logging")
    return parser


def _level(debug: bool) -> str:
    return "DEBUG" if debug else get_settings().log_level


def run_stdio(debug: bool) -> None:
    settings = get_settings()
    log = setup_logging(_level(debug), settings.log_dir, "stdio-server.log", console=False)
    log.info("Starting Game Designer MCP server in STDIN/STDOUT mode")
    build_server().run(transport="stdio")


def run_http(host: str | None, port: int | None, debug: bool) -> None:
    settings = get_settings()
    log = setup_logging(_level(debug), settings.log_dir)
    server = build_server()
    server.settings.host = host or settings.host
    server.settings.port = port or settings.port
    log.info(
        "Access the Game Designer MCP Server at http://%s:%s%s",
        server.settings.host,
        server.settings.port,
        server.settings.streamable_http_path,
    )
    server.run(transport="streamable-http")


def _print_help() -> None:
    print("Game Designer MCP CLI Tool Tester\n")
    print("Usage examples:")
    for example in USAGE_EXAMPLES:
        print(f"  {example}")
    print("\nAvailable tools:")
    for name, text in TOOL_HELP.items():
        print(f"  {name:<14} - {text}")


def run_test_tool(args: argparse.Namespace) -> int:
    if args.tool == "help":
        _print_help()
        return 0
    if args.tool not in TOOLS:
        print(f"Unknown tool: {args.tool}", file=sys.stderr)
        return 2

    setup_logging(_level(args.debug), get_settings().log_dir)
    arguments: Dict[str, str] = {
        key: value
        for key, value in {
            "sessionName": args.session_name,
            "gameDescription": args.game_description,
            "changesMade": args.changes_made,
            "content": args.content,
            "question": args.question,
        }.items()
        if value is not None
    }

    logger.debug("Calling %s with arguments: %s", args.tool, arguments)
    print(f"Executing {args.tool} tool...")
    try:
        result = asyncio.run(call_tool(args.tool, arguments))
    except ToolError as e:
        print(f"\nERROR: {e}", file=sys.stderr)
        print("\nFor help: gamedesigner test --tool help", file=sys.stderr)
        return 1

    print("\n--- TOOL RESULT ---\n")
    print(result)
    print("\n--- END RESULT ---")
    return 0


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    if args.command == "stdio":
        run_stdio(args.debug)
    elif args.command == "http":
        run_http(args.host, args.port, args.debug)
    else:
        return run_test_tool(args)
    return 0


if __name__ == "__main__":
    sys.exit(main())
