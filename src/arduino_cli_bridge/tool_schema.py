"""Tool schema definitions.

Tool descriptions, argument schemas and the schema factory.
"""

from __future__ import annotations

from typing import Any

from .config import SUPPORTED_TOOLS

__all__ = [
    "SUPPORTED_TOOLS",
    "TOOL_DESCRIPTIONS",
    "create_tool_schema",
]

TOOL_DESCRIPTIONS = {
    "compile": """Compile an Arduino sketch with arduino-cli.

Runs: arduino-cli compile --fqbn <fqbn> <sketch_path>
Returns the complete compiler output. A non-zero exit is reported in an
<exit_code> trailer.""",

    "upload": """Upload a sketch to a connected board with arduino-cli.

Runs: arduino-cli upload -p <port> --fqbn <fqbn> <sketch_path>
The sketch must already be compiled for the same FQBN.""",

    "exec": """Run a complete command line verbatim (no shell).

The command is split with POSIX quoting rules and run directly. Pipes,
redirections and variables are not interpreted.""",

    "board_list": "List boards connected to this machine (arduino-cli board list).",

    "version": "Show the arduino-cli version.",
}

_FQBN = {
    "type": "string",
    "description": "Fully Qualified Board Name, e.g. 'arduino:avr:uno'.",
}

_SKETCH_PATH = {
    "type": "string",
    "description": "Path to the sketch directory.",
}

_PORT = {
    "type": "string",
    "description": "Serial port, e.g. '/dev/ttyACM0' or 'COM3'.",
}

_COMMAND = {
    "type": "string",
    "description": "Complete command line including the executable.",
}


def create_tool_schema(tool: str) -> dict[str, Any]:
    """Create the JSON Schema for a tool's arguments.

    Raises:
        ValueError: Unknown tool
    """
    if tool not in SUPPORTED_TOOLS:
        raise ValueError(f"Unknown tool '{tool}'")

    properties: dict[str, Any] = {}
    required: list[str] = []

    if tool in ("compile", "upload"):
        properties["fqbn"] = _FQBN
        properties["sketch_path"] = _SKETCH_PATH
        required += ["fqbn", "sketch_path"]
    if tool == "upload":
        properties["port"] = _PORT
        required.append("port")
    if tool == "exec":
        properties["command"] = _COMMAND
        required.append("command")

    return {
        "type": "object",
        "properties": properties,
        "required": required,
    }
