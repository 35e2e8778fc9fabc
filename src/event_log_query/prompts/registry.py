"""MCP prompt registry.

Prompts are predefined conversation/workflow templates that the client can invoke explicitly.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from mcp.server.fastmcp import FastMCP


def _format_list(values: Sequence[str] | str) -> str:
    """Return values as a JSON array literal for prompt display."""
    if isinstance(values, str):
        items = [s.strip() for s in values.split(",") if s.strip()]
    else:
        items = [str(s).strip() for s in values if str(s).strip()]
    if not items:
        return "[]"
    quoted = ", ".join(f'"{item}"' for item in items)
    return f"[{quoted}]"


def register_prompts(mcp: FastMCP) -> None:
    """Register prompt templates on the MCP server."""

    @mcp.prompt()
    def summarize_new_events(
        since_id: int,
        loglevels: Sequence[str] | str = (),
        per_page: int = 50,
    ) -> list[dict[str, Any]]:
        """Build a prompt that summarizes events written after a known id."""
        call_lines = [f"- since_id: {since_id}", f"- per_page: {per_page}"]
        levels_display = _format_list(loglevels)
        if levels_display != "[]":
            call_lines.append(f"- loglevels: {levels_display}")
        call_block = "\n".join(call_lines)
        return [
            {
                "role": "system",
                "content": (
                    "You are an audit log assistant. Summarize activity from event log data "
                    "precisely. Do not invent events; if nothing happened, say so."
                ),
            },
            {
                "role": "user",
                "content": (
                    "Summarize what happened since the last check using query_events.\n"
                    "- Call query_events with the parameters below.\n"
                    "- Rows with subsequent_occasions_count > 1 stand for repeated events; "
                    "report them once with their count.\n"
                    "- total_row_count is the number of raw events. If it is larger than the "
                    "number of rows returned, say that more events exist.\n"
                    "- Quote event ids as evidence, e.g. [#123].\n\n"
                    "Call query_events with:\n"
                    f"{call_block}\n\n"
                    "Return this structure:\n"
                    "1) Overview (1-3 bullets)\n"
                    "2) Notable events (ids, level, message)\n"
                    "3) Newest event id seen (the max_id field), for the next check\n"
                ),
            },
        ]
