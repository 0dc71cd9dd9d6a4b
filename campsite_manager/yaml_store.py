from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from datetime import date, datetime
from pathlib import Path
from typing import Any, Iterator
import logging
import shutil
import threading
from uuid import uuid4

import yaml

from .booking import DateInterval, has_date_overlap
from .errors import BusyError, NotFoundError, OwnerExistsError, ReservationStorageError

logger = logging.getLogger(__name__)

LOCK_TIMEOUT_SECONDS = 5.0


@dataclass(frozen=True)
class ReservationRecord:
    reservation_id: str
    owner_id: str
    start: date
    end: date
    created_at: datetime
    updated_at: datetime

    @property
    def interval(self) -> DateInterval:
        return DateInterval(self.start, self.end)

    def to_dict(self) -> dict[str, str]:
        return {
            "reservation_id": self.reservation_id,
            "owner_id": self.owner_id,
            "start": self.start.isoformat(),
            "end": self.end.isoformat(),
            "created_at": self.created_at.isoformat(timespec="seconds"),
            "updated_at": self.updated_at.isoformat(timespec="seconds"),
        }

    @staticmethod
    def from_dict(data: dict[str, Any]) -> "ReservationRecord":
        start = _as_date(data["start"])
        end = _as_date(data["end"])
        if start >= end:
            raise ValueError("Reservation start date must be earlier than end date.")

        return ReservationRecord(
            reservation_id=str(data["reservation_id"]),
            owner_id=str(data["owner_id"]),
            start=start,
            end=end,
            created_at=datetime.fromisoformat(str(data["created_at"])),
            updated_at=datetime.fromisoformat(str(data["updated_at"])),
        )


@dataclass(frozen=True)
class OwnerRecord:
    owner_id: str
    first_name: str
    last_name: str
    email: str
    created_at: datetime

    def to_dict(self) -> dict[str, str]:
        return {
            "owner_id": self.owner_id,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "email": self.email,
            "created_at": self.created_at.isoformat(timespec="seconds"),
        }

    @staticmethod
    def from_dict(data: dict[str, Any]) -> "OwnerRecord":
        return OwnerRecord(
            owner_id=str(data["owner_id"]),
            first_name=str(data["first_name"]),
            last_name=str(data["last_name"]),
            email=str(data["email"]),
            created_at=datetime.fromisoformat(str(data["created_at"])),
        )


class ReservationYamlRepository:
    """YAML-backed store for the campsite's committed reservations.

    All reads and writes happen under one re-entrant lock, and
    :meth:`transaction` exposes that lock so a caller can run an overlap check
    and the following write as one critical section. The lock is acquired
    with a timeout; a caller that cannot get it within ``lock_timeout``
    seconds gets :class:`BusyError` instead of waiting forever.

    Every file write goes to a temporary file that then replaces the target,
    so the files on disk always hold a complete snapshot.
    """

    def __init__(self, base_dir: str | Path = "data", lock_timeout: float = LOCK_TIMEOUT_SECONDS) -> None:
        self.base_dir = Path(base_dir)
        self.active_file = self.base_dir / "active_reservations.yaml"
        self.owners_file = self.base_dir / "owners.yaml"
        self.log_file = self.base_dir / "reservation_events.yaml"
        self.lock_timeout = lock_timeout
        self._lock = threading.RLock()
        self._closed = False
        self._ensure_files()

    def __enter__(self) -> "ReservationYamlRepository":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        if not self._lock.acquire(timeout=self.lock_timeout):
            raise BusyError()
        try:
            self._closed = True
        finally:
            self._lock.release()

    @contextmanager
    def transaction(self) -> Iterator["ReservationYamlRepository"]:
        if not self._lock.acquire(timeout=self.lock_timeout):
            raise BusyError()
        try:
            if self._closed:
                raise self._storage_failure("Reservation store is closed.")
            yield self
        finally:
            self._lock.release()

    def _ensure_files(self) -> None:
        try:
            self.base_dir.mkdir(parents=True, exist_ok=True)
            for path in (self.active_file, self.owners_file, self.log_file):
                if not path.exists():
                    path.write_text("[]\n", encoding="utf-8")
        except OSError as error:
            raise self._storage_failure(f"Failed to prepare data directory: {self.base_dir}", error) from error

    def _read_yaml_list(self, path: Path) -> list[dict[str, Any]]:
        try:
            payload = yaml.safe_load(path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            path.write_text("[]\n", encoding="utf-8")
            return []
        except (OSError, UnicodeDecodeError, yaml.YAMLError) as error:
            return self._handle_corrupted_yaml(path, error)

        if payload is None:
            return []
        if not isinstance(payload, list):
            return self._handle_corrupted_yaml(path, ValueError("top-level YAML is not a list"))

        sanitized: list[dict[str, Any]] = []
        for index, row in enumerate(payload):
            if isinstance(row, dict):
                sanitized.append(row)
            elif path != self.log_file:
                self._log_event(
                    "YAML_ROW_SKIPPED",
                    {
                        "file": str(path.name),
                        "index": index,
                        "reason": "row is not a mapping",
                    },
                )
        return sanitized

    def _write_yaml_list(self, path: Path, rows: list[dict[str, Any]]) -> None:
        temp_path = path.with_suffix(path.suffix + ".tmp")
        try:
            temp_path.write_text(yaml.safe_dump(rows, allow_unicode=True, sort_keys=False), encoding="utf-8")
            temp_path.replace(path)
        except OSError as error:
            raise self._storage_failure(f"Failed to write YAML file: {path}", error) from error
        finally:
            if temp_path.exists():
                temp_path.unlink(missing_ok=True)

    def _backup_corrupted(self, path: Path) -> Path:
        timestamp = datetime.now().strftime("%Y%m%d%H%M%S")
        backup_path = path.with_name(f"{path.stem}.corrupt.{timestamp}{path.suffix}")
        try:
            if path.exists():
                shutil.copy2(path, backup_path)
        except OSError:
            logger.warning("Could not back up corrupted file %s", path, exc_info=True)
        return backup_path

    def _handle_corrupted_yaml(self, path: Path, error: Exception) -> list[dict[str, Any]]:
        backup_path = self._backup_corrupted(path)

        # The event log is diagnostics only and may be reset; the data files
        # hold committed state and must not be silently emptied.
        if path == self.log_file:
            try:
                path.write_text("[]\n", encoding="utf-8")
            except OSError as write_error:
                raise self._storage_failure(f"Failed to reset YAML file: {path}", write_error) from write_error
            self._log_event(
                "YAML_RECOVERED",
                {
                    "file": str(path.name),
                    "backup": str(backup_path.name),
                    "reason": str(error),
                },
            )
            return self._read_yaml_list(path)

        self._log_event(
            "YAML_CORRUPTED",
            {
                "file": str(path.name),
                "backup": str(backup_path.name),
                "reason": str(error),
            },
        )
        raise self._storage_failure(f"Corrupted YAML file: {path}", error) from error

    def _storage_failure(self, message: str, error: BaseException | None = None) -> ReservationStorageError:
        reference = uuid4().hex[:12]
        logger.error("%s [reference=%s]", message, reference, exc_info=error)
        return ReservationStorageError(reference)

    def _log_event(self, event_type: str, payload: dict[str, Any], event_time: datetime | None = None) -> None:
        timestamp = (event_time or datetime.now()).isoformat(timespec="seconds")
        try:
            events = self._read_yaml_list(self.log_file)
            events.append({"event_time": timestamp, "event_type": event_type, "payload": payload})
            self._write_yaml_list(self.log_file, events)
        except ReservationStorageError:
            # committed state is already on disk; losing the audit entry is logged, not raised
            logger.warning("Event %s was not written to %s", event_type, self.log_file.name)

    def _load_reservations(self) -> list[ReservationRecord]:
        rows = self._read_yaml_list(self.active_file)
        try:
            return [ReservationRecord.from_dict(row) for row in rows]
        except (KeyError, TypeError, ValueError) as error:
            raise self._storage_failure(f"Invalid reservation row in {self.active_file}", error) from error

    def _load_owners(self) -> list[OwnerRecord]:
        rows = self._read_yaml_list(self.owners_file)
        try:
            return [OwnerRecord.from_dict(row) for row in rows]
        except (KeyError, TypeError, ValueError) as error:
            raise self._storage_failure(f"Invalid owner row in {self.owners_file}", error) from error

    def _save_reservations(self, records: list[ReservationRecord]) -> None:
        self._write_yaml_list(self.active_file, [record.to_dict() for record in records])

    def get_active_reservations(self) -> list[ReservationRecord]:
        with self.transaction():
            return self._load_reservations()

    def get(self, reservation_id: str) -> ReservationRecord | None:
        with self.transaction():
            for record in self._load_reservations():
                if record.reservation_id == reservation_id:
                    return record
        return None

    def exists(self, reservation_id: str) -> bool:
        return self.get(reservation_id) is not None

    def find_intersecting(self, window: DateInterval) -> list[ReservationRecord]:
        with self.transaction():
            records = self._load_reservations()
        return sorted(
            (record for record in records if has_date_overlap(record.interval, window)),
            key=lambda record: record.start,
        )

    def insert(self, owner_id: str, interval: DateInterval, now: datetime | None = None) -> ReservationRecord:
        effective_now = now or datetime.now()
        record = ReservationRecord(
            reservation_id=str(uuid4()),
            owner_id=owner_id,
            start=interval.start,
            end=interval.end,
            created_at=effective_now,
            updated_at=effective_now,
        )
        with self.transaction():
            records = self._load_reservations()
            records.append(record)
            self._save_reservations(records)

            self._log_event(
                "RESERVATION_CREATED",
                {
                    "reservation_id": record.reservation_id,
                    "owner_id": owner_id,
                    "start": record.start.isoformat(),
                    "end": record.end.isoformat(),
                },
                effective_now,
            )
        return record

    def replace_interval(
        self,
        reservation_id: str,
        interval: DateInterval,
        now: datetime | None = None,
    ) -> ReservationRecord:
        effective_now = now or datetime.now()
        with self.transaction():
            records = self._load_reservations()
            found_index = _index_of(records, reservation_id)
            if found_index < 0:
                raise NotFoundError(reservation_id)

            current = records[found_index]
            updated = ReservationRecord(
                reservation_id=current.reservation_id,
                owner_id=current.owner_id,
                start=interval.start,
                end=interval.end,
                created_at=current.created_at,
                updated_at=effective_now,
            )
            records[found_index] = updated
            self._save_reservations(records)

            self._log_event(
                "RESERVATION_UPDATED",
                {
                    "reservation_id": reservation_id,
                    "previous_start": current.start.isoformat(),
                    "previous_end": current.end.isoformat(),
                    "start": updated.start.isoformat(),
                    "end": updated.end.isoformat(),
                },
                effective_now,
            )
        return updated

    def delete(self, reservation_id: str, now: datetime | None = None) -> ReservationRecord:
        effective_now = now or datetime.now()
        with self.transaction():
            records = self._load_reservations()
            found_index = _index_of(records, reservation_id)
            if found_index < 0:
                raise NotFoundError(reservation_id)

            removed = records.pop(found_index)
            self._save_reservations(records)

            self._log_event(
                "RESERVATION_CANCELLED",
                {
                    "reservation_id": reservation_id,
                    "owner_id": removed.owner_id,
                    "start": removed.start.isoformat(),
                    "end": removed.end.isoformat(),
                },
                effective_now,
            )
        return removed

    def get_owner(self, owner_id: str) -> OwnerRecord | None:
        with self.transaction():
            for owner in self._load_owners():
                if owner.owner_id == owner_id:
                    return owner
        return None

    def find_owner_by_email(self, email: str) -> OwnerRecord | None:
        normalized = _normalize_email(email)
        with self.transaction():
            for owner in self._load_owners():
                if _normalize_email(owner.email) == normalized:
                    return owner
        return None

    def create_owner(
        self,
        first_name: str,
        last_name: str,
        email: str,
        now: datetime | None = None,
    ) -> OwnerRecord:
        effective_now = now or datetime.now()
        with self.transaction():
            if self.find_owner_by_email(email) is not None:
                raise OwnerExistsError(email.strip())

            owner = OwnerRecord(
                owner_id=str(uuid4()),
                first_name=first_name.strip(),
                last_name=last_name.strip(),
                email=email.strip(),
                created_at=effective_now,
            )
            rows = [row.to_dict() for row in self._load_owners()]
            rows.append(owner.to_dict())
            self._write_yaml_list(self.owners_file, rows)

            self._log_event("OWNER_CREATED", {"owner_id": owner.owner_id, "email": owner.email}, effective_now)
        return owner

    def get_or_create_owner(
        self,
        first_name: str,
        last_name: str,
        email: str,
        now: datetime | None = None,
    ) -> OwnerRecord:
        with self.transaction():
            existing = self.find_owner_by_email(email)
            if existing is not None:
                return existing
            return self.create_owner(first_name, last_name, email, now=now)


def _index_of(records: list[ReservationRecord], reservation_id: str) -> int:
    for index, record in enumerate(records):
        if record.reservation_id == reservation_id:
            return index
    return -1


def _normalize_email(email: str) -> str:
    return email.strip().lower()


def _as_date(value: Any) -> date:
    # PyYAML already turns unquoted ISO dates into date objects
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value))
