"""Runtime module for subprocess execution and output capture.

This module provides direct argv process execution with complete output
capture, exit status reporting and reliable termination.
"""

from __future__ import annotations

from .process_runner import CHUNK_SIZE, ProcessRunner, ProcessSpec, RunResult

__all__ = [
    "CHUNK_SIZE",
    "ProcessRunner",
    "ProcessSpec",
    "RunResult",
]
