"""Availability window rules.

Every place that needs to know whether a listing is free (dashboard buckets,
listing badges, search filtering, the expiry sweep) goes through this module.
All functions are pure: they never raise and never touch storage.
"""

from __future__ import annotations

from datetime import date
from typing import Optional

from backend.domain.intervals import (
    DayLike,
    closed_intervals_overlap,
    contains_day,
    next_day,
    to_day,
)
from backend.domain.models import (
    AvailabilityResult,
    AvailabilityStatus,
    QueryRange,
    UnavailabilityWindow,
)


AVAILABLE = AvailabilityResult(status=AvailabilityStatus.AVAILABLE)
OCCUPIED_INDEFINITELY = AvailabilityResult(status=AvailabilityStatus.OCCUPIED)


def classify(window: UnavailabilityWindow, reference_date: DayLike) -> AvailabilityResult:
    """Classify a window as of ``reference_date`` (day granularity).

    Rules are checked in order:

    * no bounds: available;
    * start after end: occupied with no known release;
    * start only: occupied with no known release;
    * end only: occupied up to and including ``end_date``;
    * both: occupied while ``start_date <= day <= end_date``.

    When occupied with a known end, ``available_from`` is the day after it.
    """
    day = to_day(reference_date)

    if window.is_empty:
        return AVAILABLE
    if window.is_malformed:
        return OCCUPIED_INDEFINITELY
    if window.end_date is None:
        return OCCUPIED_INDEFINITELY

    if contains_day(window.start_date, window.end_date, day):
        return AvailabilityResult(
            status=AvailabilityStatus.OCCUPIED,
            available_from=next_day(window.end_date),
        )
    return AVAILABLE


def is_expired(window: UnavailabilityWindow, reference_date: DayLike) -> bool:
    """True once ``end_date`` has strictly passed; start-only windows never expire."""
    if window.end_date is None:
        return False
    return window.end_date < to_day(reference_date)


def _effective_bounds(window: UnavailabilityWindow) -> tuple[Optional[date], Optional[date]]:
    if window.is_malformed:
        return None, None
    return window.start_date, window.end_date


def excluded_by_range(window: UnavailabilityWindow, query_range: QueryRange) -> bool:
    """Return True when the window overlaps the dates the caller wants free.

    For any well-formed query, a listing without a window is never excluded
    and a query without bounds excludes nothing. An inverted query (start
    after end) cannot be satisfied by anything, so it excludes every listing,
    window or not.

    Absent bounds on either side are read as unbounded, and a malformed window
    counts as unbounded on both sides.
    """
    if query_range.is_inverted:
        return True
    if window.is_empty or query_range.is_unbounded:
        return False

    window_start, window_end = _effective_bounds(window)
    return closed_intervals_overlap(
        window_start,
        window_end,
        query_range.start,
        query_range.end,
    )
