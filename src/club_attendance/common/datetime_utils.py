from __future__ import annotations

from datetime import date, datetime, time, timedelta
from typing import Tuple


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value, "%Y-%m-%d").date()


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now()


def local_midnight(day: date) -> datetime:
    return datetime.combine(day, time.min)


def day_window(day: date) -> Tuple[datetime, datetime]:
    """Inclusive [00:00:00.000, 23:59:59.999] window of a calendar day in local time."""
    start = local_midnight(day)
    end = start + timedelta(days=1) - timedelta(milliseconds=1)
    return start, end
