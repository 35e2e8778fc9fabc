"""Pagination controller.

Two regimes are supported and exactly one is active per request:

- offset browsing (``page``/``per_page`` or an explicit ``offset``), optionally
  pinned to a snapshot with ``max_id_first_page`` so that rows inserted while a
  client pages through the log do not shift later pages;
- id-cursor polling with ``since_id`` (newest rows strictly after a known id).

Occasion expansion (``occasionsID``) is a third, unpaged mode that returns the
raw members of one occasion.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from .errors import ValidationError
from .models import PaginationMode


@dataclass(frozen=True, slots=True)
class PageRequest:
    mode: PaginationMode
    page: int = 1
    per_page: int = 10
    offset: int | None = None  # explicit row offset overrides page


@dataclass(frozen=True, slots=True)
class ScanWindow:
    offset: int
    limit: int
    # Extra rows fetched only to see whether the last run continues; never returned.
    peek: int = 0


@dataclass(frozen=True, slots=True)
class PageInfo:
    page_current: int
    pages_count: int
    has_prev: bool
    has_next: bool


def select_mode(
    *,
    page: int | None,
    offset: int | None,
    since_id: int | None,
    max_id_first_page: int | None,
    occasions: bool,
) -> PaginationMode:
    """Pick the single pagination regime for a request, rejecting mixtures."""
    if occasions:
        if since_id is not None or max_id_first_page is not None:
            raise ValidationError(
                "occasionsID",
                "occasion expansion cannot be combined with since_id or max_id_first_page",
            )
        return PaginationMode.OCCASIONS

    if since_id is not None:
        if max_id_first_page is not None:
            raise ValidationError(
                "since_id", "since_id cannot be combined with max_id_first_page"
            )
        if (page is not None and page > 1) or offset is not None:
            raise ValidationError(
                "since_id", "since_id polling cannot be combined with page > 1 or offset"
            )
        return PaginationMode.SINCE_ID

    if max_id_first_page is not None:
        return PaginationMode.SNAPSHOT
    return PaginationMode.OFFSET


def row_offset(page: PageRequest) -> int:
    if page.mode in (PaginationMode.SINCE_ID, PaginationMode.OCCASIONS):
        return 0
    if page.offset is not None:
        return page.offset
    return (page.page - 1) * page.per_page


def plan_window(page: PageRequest, *, occasions_limit: int | None = None) -> ScanWindow:
    """Compute which raw rows to fetch for a page."""
    if page.mode is PaginationMode.OCCASIONS:
        if occasions_limit is None or occasions_limit < 1:
            raise ValueError("occasions_limit must be >= 1 for occasion expansion")
        return ScanWindow(offset=0, limit=occasions_limit, peek=0)
    return ScanWindow(offset=row_offset(page), limit=page.per_page, peek=1)


def pages_count(total_row_count: int, per_page: int) -> int:
    """ceil(total / per_page); zero when nothing matched."""
    if per_page < 1:
        raise ValueError("per_page must be >= 1")
    return math.ceil(total_row_count / per_page)


def page_info(page: PageRequest, total_row_count: int) -> PageInfo:
    """Current page number and navigation flags, derived from the raw total."""
    if page.mode is PaginationMode.OCCASIONS:
        return PageInfo(
            page_current=1,
            pages_count=1 if total_row_count else 0,
            has_prev=False,
            has_next=False,
        )

    count = pages_count(total_row_count, page.per_page)
    if page.offset is not None:
        current = page.offset // page.per_page + 1
    else:
        current = page.page
    return PageInfo(
        page_current=current,
        pages_count=count,
        has_prev=current > 1,
        has_next=count > current,
    )
