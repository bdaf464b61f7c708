"""Arduino CLI Bridge - run arduino-cli and capture its complete output.

Environment variables:
    ACB_CLI_PATH: arduino-cli executable (default "arduino-cli")
    ACB_TIMEOUT: per-call timeout in seconds (default none)
    ACB_MERGE_STDERR: merge stderr into output (default true)

Usage:
    from arduino_cli_bridge import ArduinoCLI
    result = await ArduinoCLI().compile("arduino:avr:uno", "sketches/blink")

    arduino-cli-bridge   # MCP server over stdio
"""

__version__ = "0.1.0"

from .client import ArduinoCLI
from .errors import (
    BridgeError,
    InvalidArgumentError,
    OutputCaptureError,
    ProcessTimeoutError,
    SpawnError,
    ToolExitError,
)
from .runtime import ProcessRunner, ProcessSpec, RunResult

__all__ = [
    "__version__",
    "ArduinoCLI",
    "BridgeError",
    "InvalidArgumentError",
    "OutputCaptureError",
    "ProcessRunner",
    "ProcessSpec",
    "ProcessTimeoutError",
    "RunResult",
    "SpawnError",
    "ToolExitError",
]
