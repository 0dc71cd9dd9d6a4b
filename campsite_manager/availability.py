from __future__ import annotations

from datetime import date, timedelta
from typing import Iterable, Iterator

from .booking import DateInterval, occupied_days


def taken_days(intervals: Iterable[DateInterval]) -> set[date]:
    taken: set[date] = set()
    for interval in intervals:
        taken.update(occupied_days(interval))
    return taken


def free_days(first_day: date, last_day: date, intervals: Iterable[DateInterval]) -> Iterator[date]:
    """Yield the days of the inclusive window not occupied by any interval, ascending."""
    taken = taken_days(intervals)
    cursor = first_day
    while cursor <= last_day:
        if cursor not in taken:
            yield cursor
        cursor += timedelta(days=1)
