"""Synchronous string boundary.

For callers that expect every operation to block and return a plain string.
Spawn failure maps to SPAWN_FAILURE_SENTINEL; any other bridge error maps to
an "ERROR: ..." line. Nothing structured is raised past this module.

These functions start their own event loop and must not be called from
inside a running one; use ArduinoCLI there.
"""

from __future__ import annotations

import functools
import logging
from collections.abc import Awaitable, Callable
from pathlib import Path

import anyio

from .client import ArduinoCLI
from .errors import BridgeError, OutputCaptureError, ProcessTimeoutError, SpawnError
from .runtime import RunResult

__all__ = [
    "SPAWN_FAILURE_SENTINEL",
    "compile_sketch",
    "upload_sketch",
    "exec_command",
]

logger = logging.getLogger(__name__)

SPAWN_FAILURE_SENTINEL = "ERROR: cannot run command"


def _call(func: Callable[..., Awaitable[RunResult]], *args: object) -> str:
    try:
        result = anyio.run(functools.partial(func, *args))
    except SpawnError as e:
        logger.debug(f"Spawn failed: {e}")
        return SPAWN_FAILURE_SENTINEL
    except ProcessTimeoutError as e:
        partial = e.partial_output.decode("utf-8", errors="replace")
        return f"{partial}ERROR: {e}"
    except BridgeError as e:
        return f"ERROR: {e}"

    try:
        return result.text
    except MemoryError:
        return f"ERROR: {OutputCaptureError(result.argv, len(result.output))}"


def compile_sketch(
    target: str,
    source: str | Path,
    *,
    cli: ArduinoCLI | None = None,
) -> str:
    """Compile a sketch and return the tool's output."""
    cli = cli or ArduinoCLI()
    return _call(cli.compile, target, source)


def upload_sketch(
    target: str,
    source: str | Path,
    port: str,
    *,
    cli: ArduinoCLI | None = None,
) -> str:
    """Upload a sketch and return the tool's output."""
    cli = cli or ArduinoCLI()
    return _call(cli.upload, target, source, port)


def exec_command(command_line: str, *, cli: ArduinoCLI | None = None) -> str:
    """Run a complete command line verbatim and return its output."""
    cli = cli or ArduinoCLI()
    return _call(cli.exec_raw, command_line)
