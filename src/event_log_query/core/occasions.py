"""Occasion resolution: collapse runs of repeated events into one row.

Adjacency is judged on the *filtered* stream the store returns. An event that
a filter hides cannot separate two equal neighbours, so filtering may merge
runs that are split in the unfiltered log, but never splits one. Runs are
also bounded by the current scan window: a run that continues on the next
page is counted only up to the page boundary.
"""

from __future__ import annotations

import hashlib
import json
from collections.abc import Iterable, Iterator, Mapping
from typing import Any

from .models import Event, OccasionRow


def occasion_id_for(logger: str, message_key: str, context: Mapping[str, Any]) -> str:
    """Stable id of "the same logical action".

    Underscore-prefixed context keys carry per-write metadata (remote address,
    user agent, ...) and are left out so repeats hash identically.
    """
    payload = {
        "logger": logger,
        "message_key": message_key,
        "context": {k: context[k] for k in sorted(context) if not str(k).startswith("_")},
    }
    blob = json.dumps(payload, sort_keys=True, default=str, separators=(",", ":"))
    return hashlib.md5(blob.encode("utf-8")).hexdigest()


def iter_occasions(events: Iterable[Event], *, lookahead_cap: int) -> Iterator[OccasionRow]:
    """Yield one row per run of equal ``occasion_id`` in an id-descending stream."""
    if lookahead_cap < 1:
        raise ValueError("lookahead_cap must be >= 1")

    head: Event | None = None
    run_len = 0
    prev_id: int | None = None

    for e in events:
        if prev_id is not None and e.id >= prev_id:
            raise ValueError("events must be strictly id-descending")
        prev_id = e.id

        if head is not None and e.occasion_id == head.occasion_id and run_len < lookahead_cap:
            run_len += 1
            continue

        if head is not None:
            yield OccasionRow(event=head, count=run_len)
        head = e
        run_len = 1

    if head is not None:
        yield OccasionRow(event=head, count=run_len)


def collapse_occasions(events: Iterable[Event], *, lookahead_cap: int) -> list[OccasionRow]:
    """Collect iter_occasions into a list."""
    return list(iter_occasions(events, lookahead_cap=lookahead_cap))
