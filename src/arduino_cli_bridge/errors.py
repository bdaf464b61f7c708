"""Bridge exception classes.

arduino-cli-bridge errors v0.1.0

Runner and client raise these; the string boundary in ``bridge`` and the MCP
server turn them back into plain text.
"""

from __future__ import annotations

import shlex
from collections.abc import Sequence
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .runtime.process_runner import RunResult

__all__ = [
    "BridgeError",
    "InvalidArgumentError",
    "SpawnError",
    "OutputCaptureError",
    "ProcessTimeoutError",
    "ToolExitError",
]


def _program(argv: Sequence[str]) -> str:
    return argv[0] if argv else "<empty command>"


class BridgeError(Exception):
    """Base class for all bridge errors."""
    pass


class InvalidArgumentError(BridgeError, ValueError):
    """A caller-supplied fragment was rejected before building a command.

    Attributes:
        name: Parameter name (target, source, port, ...)
        value: The rejected value
        reason: Why it was rejected
    """

    def __init__(self, name: str, value: object, reason: str) -> None:
        self.name = name
        self.value = value
        self.reason = reason
        super().__init__(f"invalid {name} {value!r}: {reason}")


class SpawnError(BridgeError):
    """The child process could not be created.

    Covers a missing executable, permission denied, an empty command line and
    OS resource exhaustion. Nothing is left running when this is raised.

    Attributes:
        argv: The command that failed to start
        cause: The underlying OS error or a short description
    """

    def __init__(self, argv: Sequence[str], cause: BaseException | str) -> None:
        self.argv = tuple(argv)
        self.cause = cause
        super().__init__(f"cannot run command {_program(self.argv)!r}: {cause}")


class OutputCaptureError(BridgeError):
    """Growing the output buffer failed; the read was aborted.

    Attributes:
        argv: The command being captured
        captured: Number of bytes captured before the failure
    """

    def __init__(self, argv: Sequence[str], captured: int) -> None:
        self.argv = tuple(argv)
        self.captured = captured
        super().__init__(
            f"output capture failed for {_program(self.argv)!r} "
            f"after {captured} bytes"
        )


class ProcessTimeoutError(BridgeError):
    """The child did not finish within the configured timeout.

    The process group has been terminated and reaped by the time this is
    raised.

    Attributes:
        argv: The command that timed out
        timeout: The timeout in seconds
        partial_output: Output captured before the deadline
    """

    def __init__(
        self,
        argv: Sequence[str],
        timeout: float,
        partial_output: bytes = b"",
    ) -> None:
        self.argv = tuple(argv)
        self.timeout = timeout
        self.partial_output = partial_output
        super().__init__(f"{_program(self.argv)!r} timed out after {timeout:g}s")


class ToolExitError(BridgeError):
    """The tool ran but exited with a non-zero status (``check=True`` only).

    Attributes:
        result: The complete run result, output included
    """

    def __init__(self, result: "RunResult") -> None:
        self.result = result
        message = f"{shlex.join(result.argv)} exited with code {result.exit_code}"
        text = result.text.strip()
        if text:
            # Last 5 lines usually hold the tool's error message
            lines = text.split("\n")
            message += ":\n" + "\n".join(lines[-5:])
        super().__init__(message)
