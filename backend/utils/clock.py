"""Reference-day source used when callers do not pass an explicit date."""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Callable


Clock = Callable[[], date]


def utc_today() -> date:
    return datetime.now(timezone.utc).date()
