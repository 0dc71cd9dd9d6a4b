from .booking import DateInterval, can_reserve, has_date_overlap, occupied_days
from .availability import free_days, taken_days
from .errors import (
	BusyError,
	ConflictError,
	InvalidRangeError,
	InvalidStateError,
	MalformedInputError,
	NotFoundError,
	OwnerExistsError,
	ReservationError,
	ReservationStorageError,
	UnknownOwnerError,
)
from .ledger import ReservationLedger
from .service import CampsiteService
from .validation import validate_availability_window, validate_reservation_dates
from .yaml_store import OwnerRecord, ReservationRecord, ReservationYamlRepository

__all__ = [
	"DateInterval",
	"can_reserve",
	"has_date_overlap",
	"occupied_days",
	"free_days",
	"taken_days",
	"BusyError",
	"ConflictError",
	"InvalidRangeError",
	"InvalidStateError",
	"MalformedInputError",
	"NotFoundError",
	"OwnerExistsError",
	"ReservationError",
	"ReservationStorageError",
	"UnknownOwnerError",
	"ReservationLedger",
	"CampsiteService",
	"validate_availability_window",
	"validate_reservation_dates",
	"OwnerRecord",
	"ReservationRecord",
	"ReservationYamlRepository",
]
