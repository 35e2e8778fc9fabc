"""Date selector parsing helpers.

Converts the user-friendly date selectors of a query (unix timestamps, ISO
strings, ``YYYY-MM`` months, ``lastdays``) into UTC :class:`DateRange` values.
"""

from __future__ import annotations

import re
from datetime import UTC, datetime, timedelta

from .models import DateRange

_MONTH_RE = re.compile(r"^(?P<y>\d{4})-(?P<m>\d{2})$")
_ONE_TICK = timedelta(microseconds=1)


def parse_iso_dt(s: str) -> datetime:
    """Parse ISO8601 datetime. If tz is missing, assume UTC."""
    dt = datetime.fromisoformat(s.replace("Z", "+00:00"))
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def parse_date_bound(value: int | str | datetime) -> datetime:
    """Parse a unix timestamp, digit string, ISO string or datetime into UTC."""
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC)
    if isinstance(value, bool):
        raise ValueError("date must be a unix timestamp or ISO-8601 string")
    if isinstance(value, int):
        return datetime.fromtimestamp(value, UTC)
    s = str(value).strip()
    if s.isascii() and s.isdigit():
        return datetime.fromtimestamp(int(s), UTC)
    return parse_iso_dt(s)


def range_for_month(s: str) -> DateRange:
    """Return the inclusive UTC range of a YYYY-MM selector."""
    m = _MONTH_RE.match(s.strip())
    if not m:
        raise ValueError("month must look like YYYY-MM (e.g., 2025-12)")
    y = int(m.group("y"))
    mo = int(m.group("m"))
    if not 1 <= mo <= 12:
        raise ValueError("month must look like YYYY-MM (e.g., 2025-12)")
    start = datetime(y, mo, 1, tzinfo=UTC)
    if mo == 12:
        end = datetime(y + 1, 1, 1, tzinfo=UTC)
    else:
        end = datetime(y, mo + 1, 1, tzinfo=UTC)
    return DateRange(start=start, end=end - _ONE_TICK)


def range_for_lastdays(days: int, *, now: datetime) -> DateRange:
    """Return the range covering the last N days up to ``now``."""
    if days < 1:
        raise ValueError("lastdays must be >= 1")
    return DateRange(start=now - timedelta(days=days), end=now)
