"""Arduino CLI Bridge MCP Server.

Exposes arduino-cli compile/upload/exec as MCP tools over stdio.

Environment variables:
    ACB_CLI_PATH: arduino-cli executable (default "arduino-cli")
    ACB_TIMEOUT: per-call timeout in seconds (default none)
    ACB_ENABLE / ACB_DISABLE: tools to expose

Usage:
    arduino-cli-bridge
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any

from mcp.server import Server
from mcp.types import TextContent, Tool

from .client import ArduinoCLI
from .config import Config, get_config
from .errors import BridgeError, ProcessTimeoutError, SpawnError
from .response_formatter import format_error_response, format_run_result
from .tool_schema import SUPPORTED_TOOLS, TOOL_DESCRIPTIONS, create_tool_schema

__all__ = ["create_server", "handle_tool_call"]

logger = logging.getLogger(__name__)

# Listing order for list_tools
_TOOL_ORDER = ["compile", "upload", "exec", "board_list", "version"]


def list_enabled_tools(config: Config) -> list[Tool]:
    """Build the Tool list for every enabled tool."""
    return [
        Tool(
            name=name,
            description=TOOL_DESCRIPTIONS[name],
            inputSchema=create_tool_schema(name),
        )
        for name in _TOOL_ORDER
        if config.is_tool_allowed(name)
    ]


async def handle_tool_call(
    name: str,
    arguments: dict[str, Any],
    cli: ArduinoCLI,
    config: Config,
) -> list[TextContent]:
    """Run one tool call and format the outcome as text.

    Bridge errors become error responses; cancellation propagates.
    """
    if name not in SUPPORTED_TOOLS:
        return format_error_response(f"Unknown tool '{name}'")
    if not config.is_tool_allowed(name):
        return format_error_response(f"Tool '{name}' is not enabled")

    try:
        if name == "compile":
            result = await cli.compile(
                arguments.get("fqbn", ""), arguments.get("sketch_path", "")
            )
        elif name == "upload":
            result = await cli.upload(
                arguments.get("fqbn", ""),
                arguments.get("sketch_path", ""),
                arguments.get("port", ""),
            )
        elif name == "exec":
            result = await cli.exec_raw(arguments.get("command", ""))
        elif name == "board_list":
            result = await cli.board_list()
        else:
            result = await cli.version()

    except asyncio.CancelledError:
        logger.info(f"Tool '{name}' cancelled")
        raise

    except SpawnError as e:
        logger.warning(f"Tool '{name}' spawn failed: {e}")
        return format_error_response(str(e))

    except ProcessTimeoutError as e:
        logger.warning(f"Tool '{name}' timed out: {e}")
        return format_error_response(
            str(e), e.partial_output.decode("utf-8", errors="replace")
        )

    except BridgeError as e:
        logger.warning(f"Tool '{name}' failed: {e}")
        return format_error_response(str(e))

    return format_run_result(result)


def create_server(cli: ArduinoCLI | None = None) -> Server:
    """Create the MCP Server instance.

    Args:
        cli: Client to run tools with (default built from config)
    """
    config = get_config()
    cli = cli or ArduinoCLI(config=config)
    server = Server("arduino-cli-bridge")

    @server.list_tools()
    async def list_tools() -> list[Tool]:
        """List enabled tools."""
        tools = list_enabled_tools(config)
        logger.debug(
            f"[MCP] list_tools called, returning {len(tools)} tools: "
            f"{[t.name for t in tools]}"
        )
        return tools

    @server.call_tool()
    async def call_tool(name: str, arguments: dict[str, Any]) -> list[TextContent]:
        """Call a tool."""
        logger.debug(
            f"[MCP] call_tool request:\n"
            f"  Tool: {name}\n"
            f"  Arguments: {json.dumps(arguments, ensure_ascii=False, default=str)}"
        )
        return await handle_tool_call(name, arguments or {}, cli, config)

    return server
