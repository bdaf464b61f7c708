"""Process runner with direct argv execution and complete output capture.

arduino-cli-bridge runtime module v0.1.0

This module provides:
- Direct argv spawning (no shell in between)
- Chunked stdout capture into a single growable buffer
- Optional stderr merge, otherwise concurrent stderr draining
- Exit status reporting via RunResult
- Optional timeout with graceful shutdown (SIGTERM -> timeout -> SIGKILL)
- Cancel-safe cleanup using asyncio.shield

Key design points:
- POSIX: start_new_session=True so the whole process group can be signalled
- Windows: CREATE_NEW_PROCESS_GROUP for signal isolation
- The child is always reaped before run() returns or raises
"""

from __future__ import annotations

import asyncio
import logging
import os
import shlex
import signal
import subprocess
import sys
import time
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import anyio

from ..errors import OutputCaptureError, ProcessTimeoutError, SpawnError

__all__ = [
    "CHUNK_SIZE",
    "ProcessRunner",
    "ProcessSpec",
    "RunResult",
]

logger = logging.getLogger(__name__)

# Platform detection
IS_WINDOWS = sys.platform == "win32"

# Bytes requested per read from the child's stdout
CHUNK_SIZE = 2048

# Default timeouts
DEFAULT_TERM_TIMEOUT = 2.0  # seconds to wait after SIGTERM
DEFAULT_KILL_TIMEOUT = 1.0  # seconds to wait after SIGKILL


def _freeze(argv: tuple[str, ...], buffer: bytearray) -> bytes:
    """Copy the capture buffer into an immutable bytes object."""
    try:
        return bytes(buffer)
    except MemoryError:
        raise OutputCaptureError(argv, len(buffer)) from None


@dataclass(frozen=True)
class ProcessSpec:
    """Specification for a subprocess to run.

    Attributes:
        argv: Command line arguments (first element is the executable)
        cwd: Working directory for the process (None = inherit)
        env: Environment variables (None = inherit parent)
        merge_stderr: Redirect stderr into the captured output
        timeout: Seconds before the child is terminated (None = wait forever)
    """

    argv: Sequence[str]
    cwd: Path | None = None
    env: Mapping[str, str] | None = None
    merge_stderr: bool = True
    timeout: float | None = None


@dataclass(frozen=True)
class RunResult:
    """Outcome of a child process that was spawned and reaped.

    Attributes:
        argv: The command that was run
        output: Everything the child wrote to stdout, byte for byte
        exit_code: Child exit status (negative = killed by that signal on POSIX)
        stderr: Separately drained stderr (empty when merged into output)
        duration_sec: Wall time from spawn to reap
        pid: Child process id
    """

    argv: tuple[str, ...]
    output: bytes
    exit_code: int
    stderr: bytes = b""
    duration_sec: float = 0.0
    pid: int | None = None

    @property
    def ok(self) -> bool:
        return self.exit_code == 0

    @property
    def text(self) -> str:
        """Captured output decoded as UTF-8, invalid bytes replaced."""
        return self.output.decode("utf-8", errors="replace")

    @property
    def command_line(self) -> str:
        return shlex.join(self.argv)


@dataclass
class ProcessRunner:
    """Runs one command per call and captures its output in full.

    The runner holds no per-call state, so one instance can serve concurrent
    calls; every call gets its own process and buffer.

    Example:
        runner = ProcessRunner()
        result = await runner.run(ProcessSpec(argv=["arduino-cli", "version"]))
        print(result.exit_code, result.text)
    """

    term_timeout: float = DEFAULT_TERM_TIMEOUT
    kill_timeout: float = DEFAULT_KILL_TIMEOUT

    async def run(self, spec: ProcessSpec) -> RunResult:
        """Run subprocess to completion and return its captured output.

        This method:
        1. Starts the subprocess in an isolated process group/session
        2. Reads stdout in CHUNK_SIZE pieces into one buffer until EOF
        3. Drains stderr concurrently unless it is merged into stdout
        4. Waits for the process to exit (reaps it)
        5. Ensures cleanup even if cancelled or timed out

        Args:
            spec: Process specification

        Returns:
            RunResult with the output bytes and exit status

        Raises:
            SpawnError: The process could not be started
            ProcessTimeoutError: spec.timeout expired before the child exited
            OutputCaptureError: The output buffer could not grow
        """
        argv = tuple(spec.argv)
        if not argv or not argv[0]:
            raise SpawnError(argv, "empty command line")

        kwargs = self._build_subprocess_kwargs(spec)
        start = time.monotonic()

        try:
            # stdin=DEVNULL: the child must never read the caller's stdin,
            # which may be an MCP stdio channel.
            process = await asyncio.create_subprocess_exec(
                *argv,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.STDOUT if spec.merge_stderr else asyncio.subprocess.PIPE,
                **kwargs,
            )
        except (OSError, ValueError) as e:
            # ValueError: embedded NUL byte in an argument
            logger.debug(f"Spawn failed argv={argv[0]}: {e}")
            raise SpawnError(argv, e) from e

        logger.debug(
            f"Started subprocess pid={process.pid} "
            f"argv={argv[0]} cwd={spec.cwd}"
        )

        buffer = bytearray()
        stderr_task: asyncio.Task[bytes] | None = None
        completed = False

        try:
            if not spec.merge_stderr:
                stderr_task = asyncio.create_task(self._drain_stderr(process, argv))

            # The deadline covers stdout, reaping and the stderr drain
            if spec.timeout is not None:
                with anyio.fail_after(spec.timeout):
                    stderr = await self._collect(process, argv, buffer, stderr_task)
            else:
                stderr = await self._collect(process, argv, buffer, stderr_task)

            output = _freeze(argv, buffer)
            duration = time.monotonic() - start
            completed = True

            logger.debug(
                f"Subprocess completed pid={process.pid} "
                f"returncode={process.returncode} "
                f"output={len(output)} bytes"
            )

            return RunResult(
                argv=argv,
                output=output,
                exit_code=process.returncode if process.returncode is not None else -1,
                stderr=stderr,
                duration_sec=duration,
                pid=process.pid,
            )

        except TimeoutError:
            logger.warning(
                f"Subprocess timed out pid={process.pid} "
                f"after {spec.timeout}s, terminating"
            )
            partial = _freeze(argv, buffer)
            raise ProcessTimeoutError(argv, spec.timeout or 0.0, partial) from None

        finally:
            # Ensure cleanup with shield to prevent cancel interruption
            await self._safe_cleanup(process, stderr_task, kill_group=not completed)

    async def _collect(
        self,
        process: asyncio.subprocess.Process,
        argv: tuple[str, ...],
        buffer: bytearray,
        stderr_task: asyncio.Task[bytes] | None,
    ) -> bytes:
        """Capture stdout, reap the process and wait for the stderr drain."""
        await self._capture(process, argv, buffer)
        if stderr_task is None:
            return b""
        return await stderr_task

    async def _capture(
        self,
        process: asyncio.subprocess.Process,
        argv: tuple[str, ...],
        buffer: bytearray,
    ) -> None:
        """Append stdout chunks to buffer until EOF, then reap the process."""
        if process.stdout:
            while True:
                chunk = await process.stdout.read(CHUNK_SIZE)
                if not chunk:
                    break
                try:
                    buffer += chunk
                except MemoryError:
                    logger.warning(
                        f"Output buffer could not grow pid={process.pid} "
                        f"size={len(buffer)}"
                    )
                    raise OutputCaptureError(argv, len(buffer)) from None

        await process.wait()

    def _build_subprocess_kwargs(self, spec: ProcessSpec) -> dict[str, Any]:
        """Build platform-specific subprocess kwargs.

        Args:
            spec: Process specification

        Returns:
            Dict of kwargs for asyncio.create_subprocess_exec
        """
        kwargs: dict[str, Any] = {}

        if spec.cwd is not None:
            kwargs["cwd"] = spec.cwd

        # Environment
        if spec.env is not None:
            kwargs["env"] = dict(spec.env)

        # Platform-specific isolation
        if IS_WINDOWS:
            kwargs["creationflags"] = subprocess.CREATE_NEW_PROCESS_GROUP
        else:
            kwargs["start_new_session"] = True

        return kwargs

    async def _drain_stderr(
        self,
        process: asyncio.subprocess.Process,
        argv: tuple[str, ...],
    ) -> bytes:
        """Drain stderr to prevent pipe deadlock.

        Args:
            process: The subprocess
            argv: The command, for error reporting

        Returns:
            All stderr bytes
        """
        chunks = bytearray()

        if process.stderr:
            while True:
                chunk = await process.stderr.read(4096)
                if not chunk:
                    break
                try:
                    chunks += chunk
                except MemoryError:
                    raise OutputCaptureError(argv, len(chunks)) from None

        return _freeze(argv, chunks)

    async def _safe_cleanup(
        self,
        process: asyncio.subprocess.Process,
        stderr_task: asyncio.Task[bytes] | None,
        kill_group: bool = False,
    ) -> None:
        """Safely cleanup subprocess and tasks, shielded from cancellation.

        Args:
            process: The subprocess to terminate
            stderr_task: The stderr draining task
            kill_group: Also kill what is left of the process group
        """
        try:
            # Shield entire cleanup from cancellation
            await asyncio.shield(self._do_cleanup(process, stderr_task, kill_group))
        except asyncio.CancelledError:
            # If shield itself is cancelled, still try cleanup
            await self._do_cleanup(process, stderr_task, kill_group)
            raise

    async def _do_cleanup(
        self,
        process: asyncio.subprocess.Process,
        stderr_task: asyncio.Task[bytes] | None,
        kill_group: bool = False,
    ) -> None:
        """Perform actual cleanup.

        Args:
            process: The subprocess to terminate
            stderr_task: The stderr draining task
            kill_group: Also kill what is left of the process group
        """
        if process.returncode is None:
            # wait() only returns once the pipes are closed, so keep them
            # flowing while the process group is being shut down.
            discard_task = asyncio.create_task(self._discard(process.stdout))
            try:
                await self._terminate_process(process)
            finally:
                discard_task.cancel()
                try:
                    await discard_task
                except asyncio.CancelledError:
                    pass
        elif kill_group and not IS_WINDOWS:
            # Leader is gone but background children may still hold the pipes
            self._kill_orphans(process.pid)

        # Cancel stderr task if still running
        if stderr_task and not stderr_task.done():
            stderr_task.cancel()
            try:
                await stderr_task
            except (asyncio.CancelledError, OutputCaptureError):
                pass
        elif stderr_task and not stderr_task.cancelled():
            # Mark a failed drain as retrieved; the primary error wins
            stderr_task.exception()

    def _kill_orphans(self, pgid: int) -> None:
        """SIGKILL a process group whose leader has already been reaped."""
        try:
            os.killpg(pgid, signal.SIGKILL)
            logger.debug(f"Sent SIGKILL to leftover process group pgid={pgid}")
        except ProcessLookupError:
            pass
        except OSError as e:
            logger.debug(f"killpg on leftover group failed pgid={pgid}: {e}")

    async def _discard(self, stream: asyncio.StreamReader | None) -> None:
        if stream is None:
            return
        while await stream.read(CHUNK_SIZE):
            pass

    async def _terminate_process(
        self,
        process: asyncio.subprocess.Process,
    ) -> None:
        """Terminate subprocess gracefully, then forcefully if needed.

        Termination strategy:
        1. Send SIGTERM (or CTRL_BREAK_EVENT on Windows)
        2. Wait up to term_timeout for graceful exit
        3. If still running, send SIGKILL (or kill() on Windows)
        4. Wait up to kill_timeout for forced exit

        Args:
            process: The subprocess to terminate
        """
        pid = process.pid
        logger.debug(f"Terminating subprocess pid={pid}")

        try:
            # Step 1: Graceful termination
            if IS_WINDOWS:
                await self._windows_terminate(process)
            else:
                await self._posix_terminate(process)

            # Step 2: Wait for graceful exit
            try:
                await asyncio.wait_for(process.wait(), timeout=self.term_timeout)
                logger.debug(
                    f"Subprocess terminated gracefully pid={pid} "
                    f"returncode={process.returncode}"
                )
                return
            except asyncio.TimeoutError:
                pass

            # Step 3: Force kill
            logger.debug(f"Force killing subprocess pid={pid}")
            if IS_WINDOWS:
                process.kill()
            else:
                await self._posix_kill(process)

            # Step 4: Wait for forced exit
            try:
                await asyncio.wait_for(process.wait(), timeout=self.kill_timeout)
                logger.debug(
                    f"Subprocess killed pid={pid} "
                    f"returncode={process.returncode}"
                )
            except asyncio.TimeoutError:
                logger.warning(f"Subprocess did not exit after kill pid={pid}")

        except ProcessLookupError:
            # Process already exited
            logger.debug(f"Subprocess already exited pid={pid}")
        except Exception as e:
            logger.warning(f"Error terminating subprocess pid={pid}: {e}")

    async def _posix_terminate(
        self,
        process: asyncio.subprocess.Process,
    ) -> None:
        """Send SIGTERM to process group on POSIX systems."""
        try:
            pgid = os.getpgid(process.pid)
            os.killpg(pgid, signal.SIGTERM)
            logger.debug(f"Sent SIGTERM to process group pgid={pgid}")
        except ProcessLookupError:
            pass
        except OSError as e:
            logger.debug(f"killpg failed, falling back to terminate: {e}")
            process.terminate()

    async def _posix_kill(
        self,
        process: asyncio.subprocess.Process,
    ) -> None:
        """Send SIGKILL to process group on POSIX systems."""
        try:
            pgid = os.getpgid(process.pid)
            os.killpg(pgid, signal.SIGKILL)
            logger.debug(f"Sent SIGKILL to process group pgid={pgid}")
        except ProcessLookupError:
            pass
        except OSError as e:
            logger.debug(f"killpg failed, falling back to kill: {e}")
            process.kill()

    async def _windows_terminate(
        self,
        process: asyncio.subprocess.Process,
    ) -> None:
        """Send CTRL_BREAK_EVENT on Windows."""
        try:
            # Works because of CREATE_NEW_PROCESS_GROUP
            os.kill(process.pid, signal.CTRL_BREAK_EVENT)
            logger.debug(f"Sent CTRL_BREAK_EVENT to pid={process.pid}")
        except (ProcessLookupError, OSError) as e:
            logger.debug(f"CTRL_BREAK_EVENT failed, falling back: {e}")
            process.terminate()
