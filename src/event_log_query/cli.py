from __future__ import annotations

import argparse
import asyncio
import csv
import json
import sys
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from event_log_query.core.access import ReadAccess
from event_log_query.core.config import resolve_engine_config
from event_log_query.core.errors import ConfigurationError
from event_log_query.core.storage.jsonl import JsonLinesEventStore
from event_log_query.tools.events import get_event_impl, query_events_impl

_TABLE_FIELDS = ("date", "initiator", "description", "level", "count")


def _count(s: str) -> int:
    try:
        value = int(s)
    except ValueError as e:
        raise argparse.ArgumentTypeError('parameter "count" must be a number') from e
    if value < 1:
        raise argparse.ArgumentTypeError('parameter "count" must be >= 1')
    return value


def _clean_rows(events: list[dict[str, Any]]) -> list[dict[str, Any]]:
    return [
        {
            "date": e["date"],
            "initiator": e["initiator_label"],
            "description": e["message"],
            "level": e["loglevel"],
            "count": e["subsequent_occasions_count"],
        }
        for e in events
    ]


def _print_rows(rows: list[dict[str, Any]], fmt: str) -> None:
    if fmt == "json":
        print(json.dumps(rows, indent=2))
        return
    if fmt == "csv":
        w = csv.DictWriter(sys.stdout, fieldnames=list(_TABLE_FIELDS))
        w.writeheader()
        w.writerows(rows)
        return

    widths = {f: len(f) for f in _TABLE_FIELDS}
    for r in rows:
        for f in _TABLE_FIELDS:
            widths[f] = max(widths[f], len(str(r[f])))
    print("  ".join(f.ljust(widths[f]) for f in _TABLE_FIELDS))
    for r in rows:
        print("  ".join(str(r[f]).ljust(widths[f]) for f in _TABLE_FIELDS))


def _fail(error: dict[str, Any]) -> None:
    print(f"Error: {error['detail']}", file=sys.stderr)
    raise SystemExit(2)


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="event-log-query", description="List events from an append-only event log."
    )
    sub = p.add_subparsers(dest="command", required=True)

    ls = sub.add_parser("list", help="Display the latest events")
    ls.add_argument("events_path")
    ls.add_argument(
        "--count", type=_count, default=10, help="How many events to show (default: 10)"
    )
    ls.add_argument("--page", default=None)
    ls.add_argument("--since-id", default=None, help="Only events newer than this id")
    ls.add_argument("--max-id", default=None, help="Snapshot bound (max_id_first_page)")
    ls.add_argument("--loggers", default=None, help="Comma-separated logger names")
    ls.add_argument("--levels", default=None, help="Comma-separated levels (e.g., error,warning)")
    ls.add_argument("--search", default=None)
    ls.add_argument("--lastdays", default=None, help="Only events from the last N days")
    ls.add_argument("--format", choices=["table", "json", "csv"], default="table")

    show = sub.add_parser("show", help="Display a single event as JSON")
    show.add_argument("events_path")
    show.add_argument("event_id")
    return p


def main(argv: Sequence[str] | None = None) -> None:
    """CLI entrypoint. Whoever can run it can read every logger."""
    args = _build_parser().parse_args(argv)
    store = JsonLinesEventStore(Path(args.events_path))
    access = ReadAccess.unrestricted()

    try:
        cfg = resolve_engine_config()
    except ConfigurationError as e:
        print(f"Error: {e.detail}", file=sys.stderr)
        raise SystemExit(2) from e

    if args.command == "show":
        out = asyncio.run(get_event_impl(store, args.event_id, access=access, config=cfg))
        if "error" in out:
            _fail(out["error"])
        print(json.dumps(out, indent=2))
        return

    out = asyncio.run(
        query_events_impl(
            store,
            access=access,
            config=cfg,
            page=args.page,
            per_page=args.count,
            since_id=args.since_id,
            max_id_first_page=args.max_id,
            loggers=args.loggers,
            loglevels=args.levels,
            search=args.search,
            lastdays=args.lastdays,
        )
    )
    if "error" in out:
        _fail(out["error"])

    _print_rows(_clean_rows(out["events"]), args.format)
    if args.format == "table":
        print(
            f"\nFound {out['total_row_count']} matching events "
            f"(page {out['page_current']} of {out['pages_count']})."
        )


if __name__ == "__main__":
    main()
