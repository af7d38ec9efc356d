"""Calendar-day interval helpers shared by classification and range filtering."""

from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Optional, Union


DayLike = Union[date, datetime]

NEGATIVE_INFINITY = date.min
POSITIVE_INFINITY = date.max


def to_day(value: DayLike) -> date:
    """Strip any time-of-day component."""
    if isinstance(value, datetime):
        return value.date()
    return value


def lower_bound(value: Optional[date]) -> date:
    return NEGATIVE_INFINITY if value is None else value


def upper_bound(value: Optional[date]) -> date:
    return POSITIVE_INFINITY if value is None else value


def closed_intervals_overlap(
    first_start: Optional[date],
    first_end: Optional[date],
    second_start: Optional[date],
    second_end: Optional[date],
) -> bool:
    """Closed-interval overlap with absent bounds read as unbounded."""
    return not (
        upper_bound(first_end) < lower_bound(second_start)
        or lower_bound(first_start) > upper_bound(second_end)
    )


def contains_day(start: Optional[date], end: Optional[date], day: date) -> bool:
    return lower_bound(start) <= day <= upper_bound(end)


def next_day(value: date) -> Optional[date]:
    """Return the following day, or None when ``value`` is the last representable day."""
    if value >= POSITIVE_INFINITY:
        return None
    return value + timedelta(days=1)
