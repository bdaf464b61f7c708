"""Pytest configuration and fixtures."""

from __future__ import annotations

import os
import stat
import sys
from pathlib import Path
from unittest import mock

import pytest

# Project root
PROJECT_ROOT = Path(__file__).parent.parent

# Add src to the Python path
SRC_DIR = PROJECT_ROOT / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

FIXTURES_DIR = Path(__file__).parent / "fixtures"

IS_WINDOWS = sys.platform == "win32"


def open_fd_count() -> int | None:
    """Number of open file descriptors of this process (Linux only)."""
    fd_dir = Path("/proc/self/fd")
    if not fd_dir.is_dir():
        return None
    return len(os.listdir(fd_dir))


@pytest.fixture
def fake_cli(tmp_path: Path) -> Path:
    """Executable fake arduino-cli that echoes its argv as JSON."""
    if IS_WINDOWS:
        pytest.skip("fake arduino-cli needs a shebang script")

    script = tmp_path / "bin" / "arduino-cli"
    script.parent.mkdir()
    body = (FIXTURES_DIR / "fake_arduino_cli.py").read_text(encoding="utf-8")
    script.write_text(f"#!{sys.executable}\n{body}", encoding="utf-8")
    script.chmod(script.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return script


class ExhaustedBuffer(bytearray):
    """bytearray that cannot grow, as if memory ran out."""

    def __iadd__(self, other):
        raise MemoryError


def exhausted_buffers():
    """Make the runner allocate capture buffers that cannot grow."""
    return mock.patch(
        "arduino_cli_bridge.runtime.process_runner.bytearray",
        ExhaustedBuffer,
        create=True,
    )
