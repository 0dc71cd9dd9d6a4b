from __future__ import annotations

from datetime import date, datetime
from typing import Callable, TypeVar
import logging

from .booking import DateInterval, can_reserve, has_date_overlap, window_interval
from .errors import BusyError, ConflictError, InvalidStateError, NotFoundError
from .yaml_store import ReservationRecord, ReservationYamlRepository

logger = logging.getLogger(__name__)

MAX_BUSY_RETRIES = 3

T = TypeVar("T")


class ReservationLedger:
    """Sole authority over the committed set of reservations.

    ``create`` and ``update`` run the overlap check and the write inside one
    repository transaction, so two admissions whose intervals overlap can
    never both commit. When the repository lock cannot be taken in time the
    whole check-and-commit is re-run, up to ``max_busy_retries`` extra
    attempts, before :class:`BusyError` reaches the caller. Overlap conflicts
    are never retried.
    """

    def __init__(self, repository: ReservationYamlRepository, max_busy_retries: int = MAX_BUSY_RETRIES) -> None:
        if max_busy_retries < 0:
            raise ValueError("max_busy_retries must not be negative")
        self.repository = repository
        self.max_busy_retries = max_busy_retries

    def create(self, owner_id: str, interval: DateInterval, now: datetime | None = None) -> str:
        def attempt() -> str:
            with self.repository.transaction():
                self._ensure_no_overlap(interval)
                return self.repository.insert(owner_id, interval, now=now).reservation_id

        return self._with_busy_retry("create", attempt)

    def update(self, reservation_id: str, interval: DateInterval, now: datetime | None = None) -> ReservationRecord:
        def attempt() -> ReservationRecord:
            with self.repository.transaction():
                if not self.repository.exists(reservation_id):
                    raise NotFoundError(reservation_id)
                self._ensure_no_overlap(interval, exclude_id=reservation_id)
                return self.repository.replace_interval(reservation_id, interval, now=now)

        return self._with_busy_retry("update", attempt)

    def cancel(self, reservation_id: str, today: date, now: datetime | None = None) -> ReservationRecord:
        def attempt() -> ReservationRecord:
            with self.repository.transaction():
                record = self.repository.get(reservation_id)
                if record is None:
                    raise NotFoundError(reservation_id)
                if record.start < today:
                    raise InvalidStateError(reservation_id, record.start)
                return self.repository.delete(reservation_id, now=now)

        return self._with_busy_retry("cancel", attempt)

    def find_intersecting(self, first_day: date, last_day: date) -> list[ReservationRecord]:
        window = window_interval(first_day, last_day)
        return self._with_busy_retry("find_intersecting", lambda: self.repository.find_intersecting(window))

    def exists(self, reservation_id: str) -> bool:
        return self._with_busy_retry("exists", lambda: self.repository.exists(reservation_id))

    def get(self, reservation_id: str) -> ReservationRecord:
        record = self._with_busy_retry("get", lambda: self.repository.get(reservation_id))
        if record is None:
            raise NotFoundError(reservation_id)
        return record

    def _ensure_no_overlap(self, interval: DateInterval, exclude_id: str | None = None) -> None:
        others = [
            record
            for record in self.repository.get_active_reservations()
            if record.reservation_id != exclude_id
        ]
        if can_reserve(interval, [record.interval for record in others]):
            return
        raise ConflictError(
            record.reservation_id for record in others if has_date_overlap(record.interval, interval)
        )

    def _with_busy_retry(self, operation: str, attempt: Callable[[], T]) -> T:
        attempts = 0
        while True:
            attempts += 1
            try:
                return attempt()
            except BusyError as error:
                if attempts > self.max_busy_retries:
                    logger.warning("%s gave up after %d busy attempt(s)", operation, attempts)
                    raise BusyError(attempts) from error
                logger.info("%s hit a busy store, retrying (attempt %d)", operation, attempts)
