"""Unified launcher for design-kb.

Picks the transport from the command line, or from DESIGN_KB_MODE when no
command is given.
"""

import argparse
import asyncio
import logging
import sys
from dataclasses import replace

from .config import SERVER_NAME, SERVER_VERSION, Settings
from .errors import ConfigError

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


def run_rest_server(settings: Settings):
    """Run the REST API."""
    from .web_server import run_server

    run_server(settings)


def run_mcp_server():
    """Run the MCP server (stdio transport)."""
    from .server import main as mcp_main

    mcp_main()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=SERVER_NAME,
        description="design-kb - feature and ubiquitous-language knowledge base",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Commands:
  mcp          Start the MCP server on stdio
  rest         Start the REST API
  status       Show the design document status

Without a command, DESIGN_KB_MODE (mcp or rest) decides; the default is mcp.

Examples:
  design-kb mcp
  design-kb rest --port 3000
  DESIGN_KB_MODE=rest design-kb
        """,
    )
    parser.add_argument("-V", "--version", action="version", version=f"{SERVER_NAME} {SERVER_VERSION}")

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    subparsers.add_parser("mcp", help="Start MCP server")

    rest_parser = subparsers.add_parser("rest", help="Start REST API")
    rest_parser.add_argument("--host", default=None, help="Host to bind to (default: $HOST or localhost)")
    rest_parser.add_argument("--port", type=int, default=None, help="Port to bind to (default: $PORT or 3000)")

    subparsers.add_parser("status", help="Show design document status")

    return parser


def main(argv: list[str] | None = None):
    """Main entry point for the launcher."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = Settings.from_env()
    except ConfigError as e:
        logger.error(f"Configuration error: {e}")
        sys.exit(1)

    command = args.command or settings.mode

    if command == "rest":
        host = getattr(args, "host", None) or settings.host
        port = getattr(args, "port", None) or settings.port
        settings = replace(settings, mode="rest", host=host, port=port)
        logger.info(f"Starting REST API on http://{settings.host}:{settings.port}")
        run_rest_server(settings)

    elif command == "mcp":
        logger.info("Starting MCP server (stdio transport)")
        run_mcp_server()

    elif command == "status":
        asyncio.run(show_status(settings))


async def show_status(settings: Settings):
    """Show the design document status."""
    from .services import KnowledgeBase

    print("\n" + "=" * 50)
    print("  design-kb Status")
    print("=" * 50 + "\n")

    print(f"  Design document: {settings.data_file}")
    print(f"  Exists: {settings.data_file.exists()}")

    kb = KnowledgeBase.open(settings.data_file)
    stats = await kb.statistics()
    if stats.ok:
        print(f"  Features: {stats.value.feature_count}")
        print(f"  Terms: {stats.value.term_count}")
    else:
        print(f"  Design document: ERROR - {stats.error.message}")

    for label, repository in (("Feature", kb.features), ("Term", kb.terms)):
        records = await repository.find_all()
        if not records.ok:
            print(f"  {label} records: INVALID - {records.error.message}")

    print(f"\n  Mode: {settings.mode}")
    print(f"  REST endpoint: http://{settings.host}:{settings.port}/api")
    print(f"  Log directory: {settings.log_dir}")
    print()


if __name__ == "__main__":
    main()
