from __future__ import annotations

from datetime import date
from typing import Any, Iterable


RULE_DEPARTURE_NOT_AFTER_ARRIVAL = "departure_not_after_arrival"
RULE_INSUFFICIENT_LEAD_TIME = "insufficient_lead_time"
RULE_STAY_TOO_LONG = "stay_too_long"
RULE_BEYOND_BOOKING_HORIZON = "beyond_booking_horizon"


class ReservationError(Exception):
    """Base class for every rejection the reservation engine reports."""

    kind = "reservation_error"

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.kind}


class MalformedInputError(ReservationError, ValueError):
    kind = "malformed_input"

    def __init__(self, field: str, value: Any = None, expected: str = "a valid YYYY-MM-DD date") -> None:
        self.field = field
        self.value = value
        if value is None or value == "":
            super().__init__(f"{field} is required")
        else:
            super().__init__(f"{field} is not {expected}: {value!r}")

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.kind, "field": self.field, "value": self.value}


class InvalidRangeError(ReservationError, ValueError):
    """A candidate range broke one admission rule.

    ``bound`` is the limit that was crossed (a date, or a day count for the
    stay-length rule) and ``value`` is what the caller supplied.
    """

    kind = "invalid_range"

    def __init__(self, rule: str, bound: date | int | None = None, value: date | int | None = None) -> None:
        self.rule = rule
        self.bound = bound
        self.value = value
        super().__init__(f"{rule} (bound={bound}, value={value})")

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": self.kind,
            "rule": self.rule,
            "bound": _jsonable(self.bound),
            "value": _jsonable(self.value),
        }


class NotFoundError(ReservationError, LookupError):
    kind = "not_found"

    def __init__(self, reservation_id: str) -> None:
        self.reservation_id = reservation_id
        super().__init__(f"reservation not found: {reservation_id}")

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.kind, "reservation_id": self.reservation_id}


class ConflictError(ReservationError):
    kind = "conflict"

    def __init__(self, conflicting_ids: Iterable[str] = (), message: str | None = None) -> None:
        self.conflicting_ids = list(conflicting_ids)
        super().__init__(message or "Reservation overlaps with an existing reservation.")

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.kind, "conflicting_ids": self.conflicting_ids}


class BusyError(ConflictError):
    kind = "busy"

    def __init__(self, attempts: int = 1) -> None:
        self.attempts = attempts
        super().__init__(message=f"Reservation store is busy after {attempts} attempt(s).")

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.kind, "attempts": self.attempts}


class UnknownOwnerError(ReservationError, LookupError):
    kind = "unknown_owner"

    def __init__(self, owner_id: str) -> None:
        self.owner_id = owner_id
        super().__init__(f"owner not found: {owner_id}")

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.kind, "owner_id": self.owner_id}


class InvalidStateError(ReservationError):
    kind = "invalid_state"

    def __init__(self, reservation_id: str, arrival: date) -> None:
        self.reservation_id = reservation_id
        self.arrival = arrival
        super().__init__(f"cannot cancel a past reservation: {reservation_id}")

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": self.kind,
            "reservation_id": self.reservation_id,
            "arrival": self.arrival.isoformat(),
        }


class OwnerExistsError(ReservationError, ValueError):
    kind = "owner_exists"

    def __init__(self, email: str) -> None:
        self.email = email
        super().__init__(f"owner already exists: {email}")

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.kind, "email": self.email}


class ReservationStorageError(ReservationError, RuntimeError):
    """Raised for any fault in the backing store.

    Only ``reference`` is meant for callers; the underlying exception is kept
    as ``__cause__`` and goes to the log.
    """

    kind = "storage_failure"

    def __init__(self, reference: str, message: str = "Reservation storage failure.") -> None:
        self.reference = reference
        super().__init__(f"{message} (reference={reference})")

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.kind, "reference": self.reference}


def _jsonable(value: date | int | None) -> str | int | None:
    if isinstance(value, date):
        return value.isoformat()
    return value
