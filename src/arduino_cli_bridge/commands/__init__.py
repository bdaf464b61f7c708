"""Command construction for the arduino-cli tool.

Turns verbs and caller parameters into argument vectors. No side effects.
"""

from __future__ import annotations

from .builder import (
    CommandBuilder,
    format_command_line,
    validate_fragment,
    validate_params,
)
from .types import (
    DEFAULT_TOOL,
    CommandLine,
    CompileParams,
    UploadParams,
    Verb,
)

__all__ = [
    "CommandBuilder",
    "CommandLine",
    "CompileParams",
    "DEFAULT_TOOL",
    "UploadParams",
    "Verb",
    "format_command_line",
    "validate_fragment",
    "validate_params",
]
