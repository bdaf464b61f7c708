"""High-level arduino-cli client.

Validates caller fragments, builds the argument vector and hands it to the
ProcessRunner. Every method creates a fresh command and a fresh buffer, so
one client can be shared between concurrent tasks.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from pathlib import Path

from .commands import (
    CommandBuilder,
    CommandLine,
    CompileParams,
    UploadParams,
    format_command_line,
    validate_fragment,
    validate_params,
)
from .config import Config, get_config
from .errors import ToolExitError
from .runtime import ProcessRunner, ProcessSpec, RunResult

__all__ = ["ArduinoCLI"]

logger = logging.getLogger(__name__)


class ArduinoCLI:
    """Async wrapper around the arduino-cli executable.

    Non-zero exits are returned as data in RunResult.exit_code; pass
    check=True to get a ToolExitError instead.

    Example:
        cli = ArduinoCLI()
        result = await cli.compile("arduino:avr:uno", "/path/to/sketch")
        if not result.ok:
            print(result.text)
    """

    def __init__(
        self,
        cli_path: str | None = None,
        *,
        timeout: float | None = None,
        merge_stderr: bool | None = None,
        cwd: Path | None = None,
        env: Mapping[str, str] | None = None,
        runner: ProcessRunner | None = None,
        config: Config | None = None,
    ) -> None:
        """Initialize the client.

        Explicit arguments win over the ACB_* configuration.

        Args:
            cli_path: arduino-cli executable (default from config)
            timeout: Per-call timeout in seconds (default from config)
            merge_stderr: Merge stderr into output (default from config)
            cwd: Working directory for the tool
            env: Environment for the tool (None = inherit)
            runner: Custom ProcessRunner
            config: Configuration to read defaults from
        """
        config = config or get_config()
        self._builder = CommandBuilder(cli_path or config.cli_path)
        self._timeout = timeout if timeout is not None else config.timeout
        self._merge_stderr = config.merge_stderr if merge_stderr is None else merge_stderr
        self._cwd = cwd
        self._env = env
        self._runner = runner or ProcessRunner()

    @property
    def cli_path(self) -> str:
        return self._builder.tool

    @property
    def builder(self) -> CommandBuilder:
        return self._builder

    async def run(self, argv: CommandLine, *, check: bool = False) -> RunResult:
        """Run a prepared argument vector.

        Args:
            argv: Argument vector
            check: Raise ToolExitError on non-zero exit

        Returns:
            The run result

        Raises:
            SpawnError: The tool could not be started
            ProcessTimeoutError: The timeout expired
            OutputCaptureError: Output could not be buffered
            ToolExitError: Non-zero exit and check=True
        """
        spec = ProcessSpec(
            argv=argv,
            cwd=self._cwd,
            env=self._env,
            merge_stderr=self._merge_stderr,
            timeout=self._timeout,
        )
        logger.info(f"Executing: {format_command_line(argv)}")
        result = await self._runner.run(spec)

        if not result.ok:
            logger.warning(f"{format_command_line(argv)} exited with code {result.exit_code}")
            if check:
                raise ToolExitError(result)
        return result

    # Bridge boundary

    async def compile(
        self, target: str, source: str | Path, *, check: bool = False
    ) -> RunResult:
        """Compile a sketch.

        Args:
            target: Fully Qualified Board Name (e.g. "arduino:avr:uno")
            source: Path to sketch directory
        """
        params = CompileParams(target=target, source=source)
        validate_params(params)
        return await self.run(self._builder.from_params(params), check=check)

    async def upload(
        self, target: str, source: str | Path, port: str, *, check: bool = False
    ) -> RunResult:
        """Upload a sketch to a board.

        Args:
            target: Fully Qualified Board Name
            source: Path to sketch directory
            port: Serial port (e.g. "/dev/ttyACM0", "COM3")
        """
        params = UploadParams(target=target, source=source, port=port)
        validate_params(params)
        return await self.run(self._builder.from_params(params), check=check)

    async def exec_raw(self, command_line: str, *, check: bool = False) -> RunResult:
        """Run a complete command line exactly as given (no tool prefix)."""
        return await self.run(self._builder.raw(command_line), check=check)

    async def exec(self, command: str, *, check: bool = False) -> RunResult:
        """Run an arduino-cli subcommand, e.g. exec("board list").

        Args:
            command: Subcommand and arguments without the tool prefix
        """
        return await self.run(self._builder.subcommand(*self._builder.raw(command)), check=check)

    # Everyday subcommands

    async def version(self) -> RunResult:
        return await self.run(self._builder.version())

    async def board_list(self) -> RunResult:
        """List connected boards."""
        return await self.run(self._builder.board_list())

    async def board_list_all(self) -> RunResult:
        """List all boards of installed cores."""
        return await self.run(self._builder.board_list_all())

    async def board_search(self, query: str) -> RunResult:
        return await self.run(self._builder.board_search(validate_fragment("query", query)))

    async def board_details(self, target: str) -> RunResult:
        return await self.run(self._builder.board_details(validate_fragment("target", target)))

    async def core_install(self, core: str) -> RunResult:
        return await self.run(self._builder.core_install(validate_fragment("core", core)))

    async def core_list(self) -> RunResult:
        return await self.run(self._builder.core_list())

    async def core_update_index(self) -> RunResult:
        """Update the core index (required before installing cores)."""
        return await self.run(self._builder.core_update_index())

    async def lib_search(self, query: str) -> RunResult:
        return await self.run(self._builder.lib_search(validate_fragment("query", query)))

    async def lib_install(self, library: str) -> RunResult:
        return await self.run(self._builder.lib_install(validate_fragment("library", library)))

    async def lib_list(self) -> RunResult:
        return await self.run(self._builder.lib_list())

    async def upload_hex(
        self, target: str, hex_file: str | Path, port: str, *, check: bool = False
    ) -> RunResult:
        """Upload a pre-compiled .hex file."""
        argv = self._builder.upload_hex(
            validate_fragment("target", target),
            validate_fragment("hex_file", hex_file),
            validate_fragment("port", port),
        )
        return await self.run(argv, check=check)

    async def compile_and_upload(
        self, target: str, source: str | Path, port: str, *, check: bool = False
    ) -> RunResult:
        """Compile and upload in one step."""
        params = UploadParams(target=target, source=source, port=port)
        validate_params(params)
        argv = self._builder.compile_and_upload(params.target, params.source, params.port)
        return await self.run(argv, check=check)

    async def sketch_new(self, name: str | Path) -> RunResult:
        return await self.run(self._builder.sketch_new(validate_fragment("name", name)))

    async def config_dump(self) -> RunResult:
        return await self.run(self._builder.config_dump())
