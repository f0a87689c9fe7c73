"""MCP Conclusions Server - Main entry point."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any, Optional

# MCP imports are optional - only needed when running the server
try:
    from mcp.server import Server  # pragma: no cover
    from mcp.server.stdio import stdio_server  # pragma: no cover
    from mcp.types import Tool, TextContent  # pragma: no cover
    HAS_MCP = True  # pragma: no cover
except ImportError:
    HAS_MCP = False
    Server = None  # type: ignore
    Tool = None  # type: ignore
    TextContent = None  # type: ignore

from .config import StoreConfig, load_config
from .engine import ConclusionStore
from .tools import execute_tool, make_tools

LOG_FORMAT = "%(asctime)s - [%(levelname)s] %(name)s: %(message)s"

logger = logging.getLogger("mcp_conclusions")


def configure_logging(level: str = "INFO", log_file: Optional[Path] = None) -> logging.Logger:
    """Configure the package logger.

    Records go to stderr because stdout carries the MCP stdio stream.
    """
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    logger.handlers.clear()
    logger.propagate = False

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))

    formatter = logging.Formatter(LOG_FORMAT)
    for handler in handlers:
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    return logger


def create_server(config: StoreConfig, log: Optional[logging.Logger] = None) -> "Server":
    """Create and configure the MCP server.

    Args:
        config: Store configuration
        log: Logger handed to the store (default: package logger)

    Returns:
        Configured MCP Server instance

    Raises:
        ImportError: If MCP package is not installed
    """
    if not HAS_MCP:
        raise ImportError(
            "MCP package not installed. Install with: pip install mcp-conclusions[mcp]"
        )

    server = Server("mcp-conclusions")
    store = ConclusionStore(config, log=log or logger)
    tool_defs = make_tools(store)

    @server.list_tools()
    async def list_tools() -> list[Tool]:
        """Return list of available tools."""
        return [
            Tool(
                name=t["name"],
                description=t["description"],
                inputSchema=t["inputSchema"],
            )
            for t in tool_defs.values()
        ]

    @server.call_tool()
    async def call_tool(name: str, arguments: dict[str, Any]) -> list[TextContent]:
        """Handle tool invocation."""
        result = await execute_tool(store, name, arguments or {})
        if result.get("success"):
            store.log.info("%s executed successfully", name)
        else:
            store.log.error("Error in %s: %s", name, result.get("error"))
        return [TextContent(type="text", text=json.dumps(result, indent=2, default=str))]

    return server


async def run_server(config: StoreConfig) -> None:
    """Run the MCP server with stdio transport."""
    if not HAS_MCP:
        raise ImportError(
            "MCP package not installed. Install with: pip install mcp-conclusions[mcp]"
        )

    server = create_server(config)  # pragma: no cover

    async with stdio_server() as (read_stream, write_stream):  # pragma: no cover
        await server.run(  # pragma: no cover
            read_stream,
            write_stream,
            server.create_initialization_options(),
        )


def main() -> None:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="MCP Conclusions Server - durable why/what records for AI-assisted work"
    )
    parser.add_argument(
        "--project-root",
        "-p",
        type=Path,
        default=Path.cwd(),
        help="Directory to look for a config file in (default: current directory)",
    )
    parser.add_argument(
        "--config",
        "-c",
        type=Path,
        help="Path to config file (default: auto-detect in project root)",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Override the configured log level",
    )
    parser.add_argument(
        "--init",
        action="store_true",
        help="Create the conclusion data directory in project root and exit",
    )

    args = parser.parse_args()
    project_root = args.project_root.resolve()

    try:
        config = load_config(project_root, args.config)
    except Exception as e:
        print(f"Error loading config: {e}", file=sys.stderr)
        sys.exit(1)

    configure_logging(args.log_level or config.log_level, config.log_file)

    if args.init:
        data_path = config.get_data_path()
        data_path.mkdir(parents=True, exist_ok=True)
        print(f"Initialized conclusion data directory in {project_root}")
        print(f"  - {config.data_dir}/")
        print(f"Conclusions will be appended to {config.get_conclusion_path()}")
        return

    if not HAS_MCP:
        print("Error: MCP package not installed.", file=sys.stderr)
        print("Install with: pip install mcp-conclusions[mcp]", file=sys.stderr)
        sys.exit(1)

    logger.info("Starting mcp-conclusions for %s", config.project_name)
    asyncio.run(run_server(config))


if __name__ == "__main__":  # pragma: no cover
    main()
