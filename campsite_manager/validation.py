from __future__ import annotations

import calendar
import re
from datetime import date, datetime, timedelta

from .booking import DateInterval
from .errors import (
    RULE_BEYOND_BOOKING_HORIZON,
    RULE_DEPARTURE_NOT_AFTER_ARRIVAL,
    RULE_INSUFFICIENT_LEAD_TIME,
    RULE_STAY_TOO_LONG,
    InvalidRangeError,
    MalformedInputError,
)

MAX_STAY_DAYS = 3
BOOKING_HORIZON_MONTHS = 1
MIN_LEAD_DAYS = 1

DateInput = str | date | None

_ISO_DATE_RE = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")


def parse_iso_date(value: DateInput, field: str) -> date | None:
    """Parse a ``YYYY-MM-DD`` string; ``None`` or a blank string means "not supplied"."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        raise MalformedInputError(field, value)

    text = value.strip()
    if not text:
        return None
    if not _ISO_DATE_RE.fullmatch(text):
        raise MalformedInputError(field, value)
    try:
        return datetime.strptime(text, "%Y-%m-%d").date()
    except ValueError as error:
        raise MalformedInputError(field, value) from error


def add_months(day: date, months: int) -> date:
    month_index = day.month - 1 + months
    year = day.year + month_index // 12
    month = month_index % 12 + 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day.day, last_day))


def booking_horizon(today: date) -> date:
    return add_months(today, BOOKING_HORIZON_MONTHS)


def validate_reservation_dates(start: DateInput, end: DateInput, today: date) -> DateInterval:
    """Run the admission rules for creating or moving a reservation.

    Rules are checked in a fixed order and the first failure is raised:
    both dates present and well formed, departure after arrival, arrival at
    least one day ahead, stay no longer than ``MAX_STAY_DAYS`` nights, and
    both dates inside the booking horizon.
    """
    arrival = parse_iso_date(start, "arrival")
    if arrival is None:
        raise MalformedInputError("arrival", start)
    departure = parse_iso_date(end, "departure")
    if departure is None:
        raise MalformedInputError("departure", end)

    _check_departure_after_arrival(arrival, departure)
    _check_lead_time(arrival, today)

    nights = (departure - arrival).days
    if nights > MAX_STAY_DAYS:
        raise InvalidRangeError(RULE_STAY_TOO_LONG, bound=MAX_STAY_DAYS, value=nights)

    _check_horizon(arrival, today)
    _check_horizon(departure, today)
    return DateInterval(arrival, departure)


def validate_availability_window(start: DateInput, end: DateInput, today: date) -> tuple[date, date]:
    """Resolve and check an availability query window.

    Returns the inclusive ``(first_day, last_day)`` pair. A missing arrival
    becomes tomorrow; a missing departure becomes one month after the
    arrival minus a day, capped at the booking horizon. Defaulted values are
    not re-checked against the lead-time and horizon rules, and the stay
    length rule never applies here.

    The cap is deliberate: an uncapped default departure for a supplied
    arrival late in the horizon would itself break the horizon rule, and a
    caller who never sent a departure would get an error about it. Capping
    answers with the days that can still be booked instead.
    """
    arrival = parse_iso_date(start, "arrival")
    departure = parse_iso_date(end, "departure")
    arrival_supplied = arrival is not None
    departure_supplied = departure is not None

    if arrival is None:
        arrival = today + timedelta(days=MIN_LEAD_DAYS)
    if departure is None:
        departure = min(add_months(arrival, BOOKING_HORIZON_MONTHS) - timedelta(days=1), booking_horizon(today))

    if departure_supplied:
        _check_departure_after_arrival(arrival, departure)
    if arrival_supplied:
        _check_lead_time(arrival, today)
        _check_horizon(arrival, today)
    if departure_supplied:
        _check_horizon(departure, today)
    if departure < arrival:
        # only reachable when the arrival itself is past the horizon
        raise InvalidRangeError(RULE_BEYOND_BOOKING_HORIZON, bound=booking_horizon(today), value=arrival)
    return arrival, departure


def _check_departure_after_arrival(arrival: date, departure: date) -> None:
    if not arrival < departure:
        raise InvalidRangeError(RULE_DEPARTURE_NOT_AFTER_ARRIVAL, bound=arrival, value=departure)


def _check_lead_time(arrival: date, today: date) -> None:
    if not today < arrival:
        raise InvalidRangeError(RULE_INSUFFICIENT_LEAD_TIME, bound=today + timedelta(days=MIN_LEAD_DAYS), value=arrival)


def _check_horizon(day: date, today: date) -> None:
    horizon = booking_horizon(today)
    if day > horizon:
        raise InvalidRangeError(RULE_BEYOND_BOOKING_HORIZON, bound=horizon, value=day)
