from __future__ import annotations

from datetime import date
from typing import Callable
import logging

from .availability import free_days
from .errors import ConflictError, MalformedInputError, UnknownOwnerError
from .ledger import MAX_BUSY_RETRIES, ReservationLedger
from .validation import DateInput, validate_availability_window, validate_reservation_dates
from .yaml_store import OwnerRecord, ReservationRecord, ReservationYamlRepository

logger = logging.getLogger(__name__)


class CampsiteService:
    """Entry point used by the HTTP and MCP layers.

    Every method accepts an optional ``today`` so callers and tests can pin
    the admission clock; otherwise ``today_provider`` is consulted once per
    call.
    """

    def __init__(
        self,
        repository: ReservationYamlRepository,
        today_provider: Callable[[], date] | None = None,
        max_busy_retries: int = MAX_BUSY_RETRIES,
    ) -> None:
        self.repository = repository
        self.ledger = ReservationLedger(repository, max_busy_retries=max_busy_retries)
        self._today: Callable[[], date] = today_provider or date.today

    def check_availability(
        self,
        start: DateInput = None,
        end: DateInput = None,
        *,
        today: date | None = None,
    ) -> list[date]:
        effective_today = today or self._today()
        first_day, last_day = validate_availability_window(start, end, effective_today)
        reservations = self.ledger.find_intersecting(first_day, last_day)
        return list(free_days(first_day, last_day, [record.interval for record in reservations]))

    def create_reservation(
        self,
        owner_id: str,
        start: DateInput,
        end: DateInput,
        *,
        today: date | None = None,
    ) -> str:
        effective_today = today or self._today()
        interval = validate_reservation_dates(start, end, effective_today)
        if self.repository.get_owner(owner_id) is None:
            raise UnknownOwnerError(owner_id)
        try:
            return self.ledger.create(owner_id, interval)
        except ConflictError as error:
            logger.info("Rejected reservation %s..%s: %s", interval.start, interval.end, error)
            raise

    def create_reservation_for_guest(
        self,
        first_name: str | None,
        last_name: str | None,
        email: str | None,
        start: DateInput,
        end: DateInput,
        *,
        today: date | None = None,
    ) -> str:
        _require_owner_fields(first_name, last_name, email)
        effective_today = today or self._today()
        # dates are checked before an owner row is written for a doomed request
        validate_reservation_dates(start, end, effective_today)

        owner = self.repository.get_or_create_owner(first_name, last_name, email)
        return self.create_reservation(owner.owner_id, start, end, today=effective_today)

    def update_reservation(
        self,
        reservation_id: str,
        start: DateInput,
        end: DateInput,
        *,
        today: date | None = None,
    ) -> ReservationRecord:
        effective_today = today or self._today()
        interval = validate_reservation_dates(start, end, effective_today)
        return self.ledger.update(reservation_id, interval)

    def cancel_reservation(self, reservation_id: str, *, today: date | None = None) -> ReservationRecord:
        effective_today = today or self._today()
        return self.ledger.cancel(reservation_id, effective_today)

    def get_reservation(self, reservation_id: str) -> ReservationRecord:
        return self.ledger.get(reservation_id)

    def register_owner(self, first_name: str | None, last_name: str | None, email: str | None) -> OwnerRecord:
        _require_owner_fields(first_name, last_name, email)
        return self.repository.create_owner(first_name, last_name, email)


def _require_owner_fields(first_name: str | None, last_name: str | None, email: str | None) -> None:
    for field, value in (("first_name", first_name), ("last_name", last_name), ("email", email)):
        if value is None or not str(value).strip():
            raise MalformedInputError(field, value, expected="a non-blank string")

