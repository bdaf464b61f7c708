"""Command line builder.

arduino-cli-bridge commands v0.1.0

Composes argument vectors for the tool. Building never touches the OS and
never fails on its own; validation is a separate step so that a degenerate
command still surfaces at run time, the way a shell would report it.

Command formats:
    <tool> compile --fqbn {target} {source}
    <tool> upload -p {port} --fqbn {target} {source}
    <tool> upload -p {port} --fqbn {target} --input-file {file}
    <tool> compile --upload -p {port} --fqbn {target} {source}
"""

from __future__ import annotations

import os
import shlex
from typing import Callable

from ..errors import InvalidArgumentError
from .types import (
    DEFAULT_TOOL,
    FLAG_FQBN,
    FLAG_INPUT_FILE,
    FLAG_PORT,
    FLAG_UPLOAD,
    CommandLine,
    CompileParams,
    UploadParams,
    Verb,
    fspath_str,
)

__all__ = [
    "CommandBuilder",
    "format_command_line",
    "validate_fragment",
    "validate_params",
]


def format_command_line(argv: CommandLine) -> str:
    """Shell-quoted display form of an argument vector (for logs only)."""
    return shlex.join(argv)


def validate_fragment(name: str, value: object) -> str:
    """Check one caller-supplied fragment.

    A fragment must be a non-empty printable string that does not start with
    "-", so it can never be read as a flag by the tool.

    Returns:
        The fragment as str (Path objects are converted)

    Raises:
        InvalidArgumentError: The fragment is rejected
    """
    if isinstance(value, os.PathLike):
        value = os.fspath(value)
    if not isinstance(value, str):
        raise InvalidArgumentError(name, value, "must be a string")
    if not value:
        raise InvalidArgumentError(name, value, "must not be empty")
    if not value.isprintable():
        raise InvalidArgumentError(name, value, "contains non-printable characters")
    if value.startswith("-"):
        raise InvalidArgumentError(name, value, "must not start with '-'")
    return value


def validate_params(params: CompileParams) -> None:
    """Validate every field of a compile or upload parameter set.

    Raises:
        InvalidArgumentError: A field is rejected
    """
    validate_fragment("target", params.target)
    validate_fragment("source", params.source)
    if isinstance(params, UploadParams):
        validate_fragment("port", params.port)


class CommandBuilder:
    """Builds verb-specific argument vectors for one tool executable.

    Example:
        builder = CommandBuilder("arduino-cli")
        builder.compile("arduino:avr:uno", "/sketches/blink")
        # ('arduino-cli', 'compile', '--fqbn', 'arduino:avr:uno', '/sketches/blink')
    """

    def __init__(self, tool: str = DEFAULT_TOOL) -> None:
        """Initialize the builder.

        Args:
            tool: Executable name or path, default "arduino-cli"
        """
        self._tool = tool

    @property
    def tool(self) -> str:
        return self._tool

    def subcommand(self, *args: str) -> CommandLine:
        """Prefix the tool executable to arbitrary subcommand arguments."""
        return (self._tool, *args)

    def compile(self, target: str, source: str) -> CommandLine:
        return self.subcommand(Verb.COMPILE.value, FLAG_FQBN, target, fspath_str(source))

    def upload(self, target: str, source: str, port: str) -> CommandLine:
        return self.subcommand(
            Verb.UPLOAD.value, FLAG_PORT, port, FLAG_FQBN, target, fspath_str(source)
        )

    def raw(self, command_line: str) -> CommandLine:
        """Tokenize a complete command line supplied verbatim by the caller.

        The tool prefix is not added. Tokenizing follows POSIX shell quoting,
        but nothing is expanded: no variables, globs, pipes or redirections.

        Raises:
            InvalidArgumentError: Unbalanced quotes
        """
        try:
            return tuple(shlex.split(command_line))
        except ValueError as e:
            raise InvalidArgumentError("command", command_line, str(e)) from e

    def from_params(self, params: CompileParams) -> CommandLine:
        """Build compile or upload from a parameter set."""
        if isinstance(params, UploadParams):
            return self.upload(params.target, params.source, params.port)
        return self.compile(params.target, params.source)

    # Everyday subcommands

    def version(self) -> CommandLine:
        return self.subcommand("version")

    def board_list(self) -> CommandLine:
        return self.subcommand("board", "list")

    def board_list_all(self) -> CommandLine:
        return self.subcommand("board", "listall")

    def board_search(self, query: str) -> CommandLine:
        return self.subcommand("board", "search", query)

    def board_details(self, target: str) -> CommandLine:
        return self.subcommand("board", "details", FLAG_FQBN, target)

    def core_install(self, core: str) -> CommandLine:
        return self.subcommand("core", "install", core)

    def core_list(self) -> CommandLine:
        return self.subcommand("core", "list")

    def core_update_index(self) -> CommandLine:
        return self.subcommand("core", "update-index")

    def lib_search(self, query: str) -> CommandLine:
        return self.subcommand("lib", "search", query)

    def lib_install(self, library: str) -> CommandLine:
        return self.subcommand("lib", "install", library)

    def lib_list(self) -> CommandLine:
        return self.subcommand("lib", "list")

    def upload_hex(self, target: str, hex_file: str, port: str) -> CommandLine:
        return self.subcommand(
            Verb.UPLOAD.value, FLAG_PORT, port, FLAG_FQBN, target,
            FLAG_INPUT_FILE, fspath_str(hex_file),
        )

    def compile_and_upload(self, target: str, source: str, port: str) -> CommandLine:
        return self.subcommand(
            Verb.COMPILE.value, FLAG_UPLOAD, FLAG_PORT, port, FLAG_FQBN, target,
            fspath_str(source),
        )

    def sketch_new(self, name: str) -> CommandLine:
        return self.subcommand("sketch", "new", name)

    def config_dump(self) -> CommandLine:
        return self.subcommand("config", "dump")

    def build(self, verb: Verb | str, *args: str) -> CommandLine:
        """Build any verb by name with positional arguments.

        Args:
            verb: A Verb or its string value ("compile", "board list", ...)
            *args: The verb's parameters in its method's order

        Returns:
            The argument vector

        Raises:
            ValueError: Unknown verb
        """
        verb = Verb(verb)
        method: Callable[..., CommandLine] = getattr(self, _VERB_METHODS[verb])
        return method(*args)


_VERB_METHODS: dict[Verb, str] = {
    Verb.COMPILE: "compile",
    Verb.UPLOAD: "upload",
    Verb.RAW: "raw",
    Verb.VERSION: "version",
    Verb.BOARD_LIST: "board_list",
    Verb.BOARD_LISTALL: "board_list_all",
    Verb.BOARD_SEARCH: "board_search",
    Verb.BOARD_DETAILS: "board_details",
    Verb.CORE_INSTALL: "core_install",
    Verb.CORE_LIST: "core_list",
    Verb.CORE_UPDATE_INDEX: "core_update_index",
    Verb.LIB_SEARCH: "lib_search",
    Verb.LIB_INSTALL: "lib_install",
    Verb.LIB_LIST: "lib_list",
    Verb.UPLOAD_HEX: "upload_hex",
    Verb.COMPILE_AND_UPLOAD: "compile_and_upload",
    Verb.SKETCH_NEW: "sketch_new",
    Verb.CONFIG_DUMP: "config_dump",
}
