"""Arduino CLI Bridge application entry.

Server lifecycle and the console entry point.
"""

from __future__ import annotations

import asyncio
import logging
import sys

from mcp.server.stdio import stdio_server

from .config import get_config
from .server import create_server

__all__ = ["run_server", "main"]

logger = logging.getLogger(__name__)


async def run_server() -> None:
    """Run the MCP server over stdio until the client disconnects."""
    config = get_config()
    logger.info(f"Starting Arduino CLI Bridge MCP Server: {config}")

    server = create_server()

    try:
        async with stdio_server() as (read_stream, write_stream):
            await server.run(
                read_stream,
                write_stream,
                server.create_initialization_options(),
            )
    except asyncio.CancelledError:
        logger.info("run_server: cancelled")
        raise
    finally:
        logger.info("run_server: stopped")


def configure_logging() -> None:
    """Configure log handlers from ACB_LOG_DEBUG.

    stdout carries the MCP protocol, so logs go to stderr or a file.
    """
    config = get_config()
    log_handlers: list[logging.Handler] = []

    if config.log_debug and config.log_file:
        file_handler = logging.FileHandler(config.log_file, encoding="utf-8")
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s")
        )
        log_handlers.append(file_handler)
        log_level = logging.DEBUG
    else:
        stderr_handler = logging.StreamHandler(sys.stderr)
        stderr_handler.setFormatter(
            logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s")
        )
        log_handlers.append(stderr_handler)
        log_level = logging.INFO

    # Third-party libraries stay at WARNING
    logging.basicConfig(
        level=logging.WARNING,
        handlers=log_handlers,
    )
    logging.getLogger("arduino_cli_bridge").setLevel(log_level)


def main() -> None:
    """Main entry point."""
    configure_logging()
    try:
        asyncio.run(run_server())
    except KeyboardInterrupt:
        logger.info("Interrupted, exiting")
        sys.exit(130)  # 128 + SIGINT(2)


if __name__ == "__main__":
    main()
