"""MCP resource registry.

Resources are addressable by URI and can be fetched by the MCP client on demand.
"""

from __future__ import annotations

import json
from collections.abc import Callable
from typing import Any

from mcp.server.fastmcp import FastMCP

from event_log_query.core.access import ReadAccess
from event_log_query.core.config import resolve_engine_config
from event_log_query.core.errors import ConfigurationError
from event_log_query.core.schemas import QueryResponse
from event_log_query.core.storage.base import EventStore
from event_log_query.tools.events import get_event_impl

SAMPLE_EVENTS = (
    {
        "id": 1,
        "date": "2025-12-30T08:12:01Z",
        "logger": "UserLogger",
        "level": "info",
        "message_key": "user_logged_in",
        "message": "Logged in",
        "initiator": "user",
        "user_id": 1,
    },
    {
        "id": 2,
        "date": "2025-12-30T08:12:03Z",
        "logger": "UserLogger",
        "level": "warning",
        "message_key": "user_login_failed",
        "message": "Failed to login with username {login}",
        "context": {"login": "admin", "_server_remote_addr": "10.0.0.7"},
        "initiator": "anonymous",
    },
    {
        "id": 3,
        "date": "2025-12-30T08:12:04Z",
        "logger": "UserLogger",
        "level": "warning",
        "message_key": "user_login_failed",
        "message": "Failed to login with username {login}",
        "context": {"login": "admin", "_server_remote_addr": "10.0.0.9"},
        "initiator": "anonymous",
    },
    {
        "id": 4,
        "date": "2025-12-30T08:12:05Z",
        "logger": "PluginLogger",
        "level": "notice",
        "message_key": "plugin_activated",
        "message": "Activated plugin {plugin_name}",
        "context": {"plugin_name": "Backups"},
        "initiator": "cli",
    },
)


def register_resources(
    mcp: FastMCP,
    *,
    store_factory: Callable[[], EventStore],
    access_factory: Callable[[], ReadAccess],
) -> None:
    """Register resource handlers on the MCP server."""

    @mcp.resource("app://event-log-query/help")
    def help_resource() -> str:
        """Return a short list of available resource URIs."""
        return (
            "Resources:\n"
            "- app://event-log-query/help\n"
            "- app://event-log-query/config\n"
            "- app://event-log-query/schemas/query-response\n"
            "- app://event-log-query/examples/sample-events\n"
            "- event://{event_id} (single event, subject to read access)\n"
            "\nTools: query_events, get_event\n"
        )

    @mcp.resource("app://event-log-query/examples/sample-events")
    def sample_events() -> str:
        """Return a tiny JSON-lines events file for demos and tests."""
        return "".join(json.dumps(rec) + "\n" for rec in SAMPLE_EVENTS)

    @mcp.resource("app://event-log-query/config")
    def engine_config() -> dict[str, Any]:
        """Return the effective engine limits."""
        try:
            cfg = resolve_engine_config()
        except ConfigurationError as exc:
            return {"error": exc.to_dict()}
        return {
            "lookahead_cap": cfg.lookahead_cap,
            "default_per_page": cfg.default_per_page,
            "max_per_page": cfg.max_per_page,
            "timezone": str(cfg.timezone),
        }

    @mcp.resource("app://event-log-query/schemas/query-response")
    def query_response_schema() -> dict[str, Any]:
        """Return the JSON schema for query_events responses."""
        return QueryResponse.model_json_schema()

    @mcp.resource("event://{event_id}")
    async def read_event(event_id: str) -> dict[str, Any]:
        """Return one event, or a not_found error payload."""
        return await get_event_impl(store_factory(), event_id, access=access_factory())
