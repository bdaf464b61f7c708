"""MCP response formatter.

Successful runs return the tool's output verbatim. A non-zero exit appends
an <exit_code> trailer; failures use the <response><error> envelope.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from mcp.types import TextContent

if TYPE_CHECKING:
    from .runtime import RunResult

__all__ = ["format_run_result", "format_error_response"]


def format_run_result(result: "RunResult") -> list[TextContent]:
    """Format a completed run as a single text block."""
    text = result.text
    if result.stderr:
        text += "\n<stderr>\n" + result.stderr.decode("utf-8", errors="replace") + "\n</stderr>"
    if not result.ok:
        text += f"\n<exit_code>{result.exit_code}</exit_code>"
    return [TextContent(type="text", text=text)]


def format_error_response(error: str, partial_output: str = "") -> list[TextContent]:
    """Unified error response.

    Every error comes back as <response><error>...</error></response> so the
    contract stays the same for all tools.
    """
    parts = ["<response>", f"  <error>{error}</error>"]
    if partial_output and partial_output.strip():
        parts.append(f"  <partial_output>{partial_output}</partial_output>")
    parts.append("</response>")
    return [TextContent(type="text", text="\n".join(parts))]
