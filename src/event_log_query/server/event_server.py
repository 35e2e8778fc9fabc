"""MCP server entrypoint (stdio transport).

This module wires together:
- Tools: query the event log, fetch a single event
- Resources: help, response schema, engine config, sample events, event://{id}
- Prompts: reusable conversation templates that clients can invoke

Run locally (stdio):
    LOG_QUERY_EVENTS_PATH=events.jsonl python -m event_log_query
"""

from __future__ import annotations

import logging
import os
import sys
from collections.abc import Sequence
from typing import Any

from mcp.server.fastmcp import FastMCP

from event_log_query.core.access import ReadAccess
from event_log_query.core.config import resolve_engine_config
from event_log_query.core.errors import ConfigurationError
from event_log_query.core.storage.jsonl import JsonLinesEventStore
from event_log_query.prompts.registry import register_prompts
from event_log_query.resources.registry import register_resources
from event_log_query.tools.events import get_event_impl, query_events_impl

LOGGER = logging.getLogger(__name__)

EVENTS_PATH_ENV = "LOG_QUERY_EVENTS_PATH"
READABLE_LOGGERS_ENV = "LOG_QUERY_READABLE_LOGGERS"


def _configure_logging() -> None:
    """Configure a reasonable default logging setup.

    The MCP client typically captures stderr; keeping logs concise makes them easier to consume.
    """
    level_name = os.getenv("LOG_QUERY_LOG_LEVEL", "INFO").upper()
    level = getattr(logging, level_name, logging.INFO)
    logging.basicConfig(
        stream=sys.stderr,
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def events_store() -> JsonLinesEventStore:
    """Return the store configured through LOG_QUERY_EVENTS_PATH."""
    return JsonLinesEventStore(os.getenv(EVENTS_PATH_ENV, "events.jsonl"))


def read_access() -> ReadAccess:
    """Build the caller allow-list from LOG_QUERY_READABLE_LOGGERS (unset = all loggers)."""
    raw = os.getenv(READABLE_LOGGERS_ENV)
    if raw is None:
        return ReadAccess.unrestricted()
    return ReadAccess.for_loggers(s.strip() for s in raw.split(",") if s.strip())


mcp = FastMCP("event-log-query", json_response=True)

register_resources(mcp, store_factory=events_store, access_factory=read_access)
register_prompts(mcp)


@mcp.tool()
async def query_events(
    page: int | None = None,
    per_page: int | None = None,
    offset: int | None = None,
    include: list[int] | None = None,
    since_id: int | None = None,
    max_id_first_page: int | None = None,
    date_from: str | None = None,
    date_to: str | None = None,
    dates: list[str] | None = None,
    lastdays: int | None = None,
    months: list[str] | None = None,
    loglevels: list[str] | None = None,
    loggers: list[str] | None = None,
    messages: list[str] | None = None,
    users: list[int] | None = None,
    user: int | None = None,
    occasions_id: str | None = None,
    occasions_count: int | None = None,
    occasions_count_max_return: int | None = None,
    log_row_id: int | None = None,
    search: str | None = None,
    return_type: str | None = None,
) -> dict[str, Any]:
    """Return a page of events, with repeated events collapsed into one row.

    Parameters
    ----------
    page/per_page/offset:
        Offset browsing. per_page is clamped to 1..100 (default 10).
    max_id_first_page:
        Snapshot bound. Pass the max_id of page 1 with every later page so
        newly written events do not shift the pages.
    since_id:
        Polling: only events newer than this id. Cannot be combined with
        page > 1, offset or max_id_first_page.
    date_from/date_to:
        Unix timestamps or ISO-8601 datetimes. They override lastdays, months
        and dates.
    dates/lastdays/months:
        Relative shortcuts: ["allDates"], ["lastdays:7"], ["month:2025-12"];
        lastdays=7; months=["2025-11", "2025-12"]. The last one given wins.
    loglevels/loggers/messages/users/user/include:
        Equality filters. messages items look like "Logger:message_key".
    search:
        Words that must all appear in the message, logger or context.
    occasions_id/occasions_count/occasions_count_max_return/log_row_id:
        Expand one collapsed row into its raw events, older than log_row_id.
    return_type:
        "overview" (default) or "occasions".

    Returns
    -------
    dict:
        {"events": [...], "total_row_count": int, "page_current": int,
         "pages_count": int, ...} or {"error": {"kind": str, "detail": str}}
    """
    params = {
        "page": page,
        "per_page": per_page,
        "offset": offset,
        "include": include,
        "since_id": since_id,
        "max_id_first_page": max_id_first_page,
        "date_from": date_from,
        "date_to": date_to,
        "dates": dates,
        "lastdays": lastdays,
        "months": months,
        "loglevels": loglevels,
        "loggers": loggers,
        "messages": messages,
        "users": users,
        "user": user,
        "occasions_id": occasions_id,
        "occasions_count": occasions_count,
        "occasions_count_max_return": occasions_count_max_return,
        "log_row_id": log_row_id,
        "search": search,
        "return_type": return_type,
    }
    return await query_events_impl(events_store(), access=read_access(), **params)


@mcp.tool()
async def get_event(event_id: int) -> dict[str, Any]:
    """Return a single event by id, or a not_found error."""
    return await get_event_impl(events_store(), event_id, access=read_access())


def main(argv: Sequence[str] | None = None) -> None:
    """Start the MCP server over stdio."""
    _configure_logging()
    try:
        resolve_engine_config()
    except ConfigurationError as exc:
        LOGGER.error("Invalid configuration: %s", exc.detail)
        raise SystemExit(2) from exc
    LOGGER.debug("Starting MCP server (transport=stdio, events=%s)", events_store().path)
    _ = argv or sys.argv[1:]
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
