from dataclasses import dataclass
from datetime import date, timedelta
from typing import Iterable, Iterator

from .errors import RULE_DEPARTURE_NOT_AFTER_ARRIVAL, InvalidRangeError


@dataclass(frozen=True)
class DateInterval:
    start: date
    end: date

    def __post_init__(self) -> None:
        if self.start >= self.end:
            raise InvalidRangeError(RULE_DEPARTURE_NOT_AFTER_ARRIVAL, bound=self.start, value=self.end)

    @property
    def nights(self) -> int:
        return (self.end - self.start).days

    @property
    def first_night(self) -> date:
        return self.start

    @property
    def last_night(self) -> date:
        return self.end - timedelta(days=1)

    def to_dict(self) -> dict[str, str]:
        return {"start": self.start.isoformat(), "end": self.end.isoformat()}


def occupied_days(interval: DateInterval) -> Iterator[date]:
    """Yield every calendar day the interval occupies.

    The arrival day is occupied, the departure day is not: a new stay may
    arrive on the day another one departs. Both the overlap test and the
    availability calculator are defined in terms of this enumeration.
    """
    cursor = interval.first_night
    while cursor <= interval.last_night:
        yield cursor
        cursor += timedelta(days=1)


def window_interval(first_day: date, last_day: date) -> DateInterval:
    """Return the interval whose occupied days are exactly ``first_day..last_day``."""
    return DateInterval(first_day, last_day + timedelta(days=1))


def has_date_overlap(a: DateInterval, b: DateInterval) -> bool:
    """Return True when two intervals share at least one occupied day."""
    return a.first_night <= b.last_night and b.first_night <= a.last_night


def can_reserve(candidate: DateInterval, existing: Iterable[DateInterval]) -> bool:
    for interval in existing:
        if has_date_overlap(candidate, interval):
            return False
    return True
