"""ACB environment variable configuration.

Environment variables:
    ACB_CLI_PATH: arduino-cli executable
        - Name looked up on PATH, or an absolute path
        - Default "arduino-cli"

    ACB_TIMEOUT: Per-call timeout in seconds
        - Empty/unset/0 = wait until the tool exits (default)
        - e.g. "300"

    ACB_MERGE_STDERR: Merge stderr into the captured output
        - true/1/yes = merge (default)
        - false/0/no = keep stderr separate

    ACB_ENABLE: MCP tools to expose
        - Empty/unset = all (compile, upload, exec, board_list, version)
        - Comma separated, case insensitive

    ACB_DISABLE: MCP tools to hide (subtracted from ACB_ENABLE)
        - e.g. "exec" hides raw command execution

    ACB_LOG_DEBUG: Debug logging
        - true/1/yes = on (log to a temp file)
        - false/0/no = off (default, log to stderr)
"""

from __future__ import annotations

import os
import tempfile
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

from .commands.types import DEFAULT_TOOL

__all__ = ["Config", "load_config", "get_config", "reload_config", "SUPPORTED_TOOLS"]

# MCP tools the server can expose
SUPPORTED_TOOLS = frozenset({"compile", "upload", "exec", "board_list", "version"})


def _parse_bool(value: str | None, default: bool = False) -> bool:
    """Parse a boolean environment variable."""
    if value is None:
        return default
    return value.lower() in ("true", "1", "yes", "on")


def _parse_tool_list(value: str | None) -> set[str]:
    """Parse a comma separated tool list, dropping unknown names."""
    if not value or not value.strip():
        return set()

    tools = set()
    for item in value.split(","):
        tool = item.strip().lower()
        if tool and tool in SUPPORTED_TOOLS:
            tools.add(tool)

    return tools


def _compute_enabled_tools(enable: str | None, disable: str | None) -> set[str]:
    """Compute the final tool set.

    Args:
        enable: ACB_ENABLE value
        disable: ACB_DISABLE value

    Returns:
        Enabled tools
    """
    enabled = _parse_tool_list(enable)
    disabled = _parse_tool_list(disable)

    # Empty enable list means everything
    if not enabled:
        enabled = set(SUPPORTED_TOOLS)

    return enabled - disabled


def _parse_timeout(value: str | None) -> float | None:
    """Parse ACB_TIMEOUT; None means no timeout."""
    if not value or not value.strip():
        return None
    try:
        timeout = float(value)
    except ValueError:
        return None
    return timeout if timeout > 0 else None


@dataclass
class Config:
    """ACB configuration.

    Attributes:
        cli_path: arduino-cli executable
        timeout: Per-call timeout in seconds (None = unbounded)
        merge_stderr: Merge stderr into captured output
        tools: Enabled MCP tools
        log_debug: Debug logging to a temp file
        log_file: Log file path (set when log_debug=True)
    """

    cli_path: str = DEFAULT_TOOL
    timeout: float | None = None
    merge_stderr: bool = True
    tools: set[str] = field(default_factory=lambda: set(SUPPORTED_TOOLS))
    log_debug: bool = False
    log_file: str | None = None

    def is_tool_allowed(self, tool: str) -> bool:
        """Check whether an MCP tool is enabled."""
        return tool.lower() in self.tools

    def __repr__(self) -> str:
        tools_str = ",".join(sorted(self.tools)) or "none"
        return (
            f"Config(cli_path={self.cli_path}, "
            f"timeout={self.timeout}, "
            f"merge_stderr={self.merge_stderr}, "
            f"tools={tools_str}, "
            f"log_debug={self.log_debug}, "
            f"log_file={self.log_file})"
        )


def _generate_log_file_path() -> str:
    """Create a timestamped log file path under the system temp dir."""
    log_dir = Path(tempfile.gettempdir()) / "arduino-cli-bridge"
    log_dir.mkdir(parents=True, exist_ok=True)

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    log_file = log_dir / f"acb_debug_{timestamp}.log"

    return str(log_file.resolve())


def load_config() -> Config:
    """Load configuration from environment variables."""
    log_debug = _parse_bool(os.environ.get("ACB_LOG_DEBUG"), default=False)
    log_file = _generate_log_file_path() if log_debug else None

    return Config(
        cli_path=os.environ.get("ACB_CLI_PATH", "").strip() or DEFAULT_TOOL,
        timeout=_parse_timeout(os.environ.get("ACB_TIMEOUT")),
        merge_stderr=_parse_bool(os.environ.get("ACB_MERGE_STDERR"), default=True),
        tools=_compute_enabled_tools(
            os.environ.get("ACB_ENABLE"),
            os.environ.get("ACB_DISABLE"),
        ),
        log_debug=log_debug,
        log_file=log_file,
    )


# Global config instance (loaded lazily)
_config: Config | None = None


def get_config() -> Config:
    """Get the global config instance."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def reload_config() -> Config:
    """Reload configuration (used by tests)."""
    global _config
    _config = load_config()
    return _config
