"""Command type definitions.

arduino-cli-bridge commands v0.1.0

Defines verbs, flag tokens and the parameter sets each verb takes.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from enum import Enum

__all__ = [
    "CommandLine",
    "Verb",
    "DEFAULT_TOOL",
    "FLAG_FQBN",
    "FLAG_PORT",
    "FLAG_INPUT_FILE",
    "FLAG_UPLOAD",
    "CompileParams",
    "UploadParams",
    "fspath_str",
]

# An argument vector; the first element is the executable
CommandLine = tuple[str, ...]

# Executable name looked up on PATH when no explicit path is configured
DEFAULT_TOOL = "arduino-cli"

FLAG_FQBN = "--fqbn"
FLAG_PORT = "-p"
FLAG_INPUT_FILE = "--input-file"
FLAG_UPLOAD = "--upload"


class Verb(str, Enum):
    """Verbs the builder knows how to lay out.

    COMPILE, UPLOAD and RAW form the bridge boundary; the rest mirror the
    tool's everyday subcommands.
    """

    COMPILE = "compile"
    UPLOAD = "upload"
    RAW = "raw"
    VERSION = "version"
    BOARD_LIST = "board list"
    BOARD_LISTALL = "board listall"
    BOARD_SEARCH = "board search"
    BOARD_DETAILS = "board details"
    CORE_INSTALL = "core install"
    CORE_LIST = "core list"
    CORE_UPDATE_INDEX = "core update-index"
    LIB_SEARCH = "lib search"
    LIB_INSTALL = "lib install"
    LIB_LIST = "lib list"
    UPLOAD_HEX = "upload hex"
    COMPILE_AND_UPLOAD = "compile upload"
    SKETCH_NEW = "sketch new"
    CONFIG_DUMP = "config dump"


def fspath_str(value: str | os.PathLike[str]) -> str:
    return os.fspath(value) if isinstance(value, os.PathLike) else value


@dataclass
class CompileParams:
    """Parameters for a compile.

    Attributes:
        target: Fully qualified board name, e.g. "arduino:avr:uno"
        source: Sketch directory or file
    """

    target: str
    source: str

    def __post_init__(self) -> None:
        """Accept Path objects for source."""
        self.source = fspath_str(self.source)


@dataclass
class UploadParams(CompileParams):
    """Parameters for an upload.

    Attributes:
        port: Serial port, e.g. "/dev/ttyACM0" or "COM3"
    """

    port: str = ""
