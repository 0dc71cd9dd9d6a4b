from __future__ import annotations

from datetime import date
from pathlib import Path
from typing import Any, Callable

from flask import Flask, jsonify, request

from .errors import (
    RULE_BEYOND_BOOKING_HORIZON,
    RULE_DEPARTURE_NOT_AFTER_ARRIVAL,
    RULE_INSUFFICIENT_LEAD_TIME,
    RULE_STAY_TOO_LONG,
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
from .service import CampsiteService
from .yaml_store import ReservationRecord, ReservationYamlRepository

DATE_ERROR_FORMAT = "Please provide a valid format for the arrival and departure dates (YYYY-MM-DD)."
DATE_ERROR_NOT_PROVIDED = (
    "Invalid date range: The arrival date and the departure date need to be provided in order to create a booking."
)
USER_ERROR_NOT_PROVIDED = "The user's first name, last name, and email must be provided."
USER_ERROR_ALREADY_EXISTS = "A user with the provided email already exists: "
USER_CREATE_SUCCESS = "User was successfully created"
BOOKING_ERROR_CONFLICT = "The campsite is not available on the given dates."
BOOKING_ERROR_BUSY = "The campsite is handling too many requests right now, please try again."
BOOKING_ERROR_NOT_FOUND = "The booking does not exist: "
USER_ERROR_NOT_FOUND = "The user does not exist: "
BOOKING_ERROR_CANCEL_PAST = "Cannot cancel a past booking: "
STORAGE_ERROR = "An error occurred while accessing the bookings, please try again. Reference: "
BODY_ERROR_NOT_OBJECT = "The request body must be a JSON object."

RANGE_MESSAGES = {
    RULE_DEPARTURE_NOT_AFTER_ARRIVAL: "Invalid date range: The arrival date must be before the departure date.",
    RULE_INSUFFICIENT_LEAD_TIME: "Invalid date range: The arrival date must be at least 1 day in advance.",
    RULE_STAY_TOO_LONG: "Invalid date range: The campsite cannot be booked for more than {bound} days.",
    RULE_BEYOND_BOOKING_HORIZON: (
        "Invalid date range: The arrival date and the departure date cannot be later than {bound}."
    ),
}

USER_FIELDS = {"first_name", "last_name", "email"}


def create_app(
    data_dir: str | Path = "data",
    today_provider: Callable[[], date] | None = None,
    repository: ReservationYamlRepository | None = None,
) -> Flask:
    app = Flask(__name__)
    store = repository or ReservationYamlRepository(data_dir)
    service = CampsiteService(store, today_provider=today_provider)
    app.extensions["campsite_service"] = service

    @app.errorhandler(ReservationError)
    def handle_reservation_error(error: ReservationError) -> Any:
        status, message = _describe_error(error)
        return jsonify({"ok": False, "message": message, **error.to_dict()}), status

    @app.post("/campsite/user")
    def create_user() -> Any:
        payload = _json_body()
        owner = service.register_owner(
            _field(payload, "firstName", "first_name"),
            _field(payload, "lastName", "last_name"),
            _field(payload, "email"),
        )
        return jsonify({"ok": True, "message": USER_CREATE_SUCCESS, "owner_id": owner.owner_id}), 201

    @app.post("/campsite/booking")
    def create_booking() -> Any:
        payload = _json_body()
        arrival = _field(payload, "arrivalDate", "arrivalDateString")
        departure = _field(payload, "departureDate", "departureDateString")

        owner_id = _field(payload, "ownerId", "owner_id")
        if owner_id:
            reservation_id = service.create_reservation(owner_id, arrival, departure)
        else:
            reservation_id = service.create_reservation_for_guest(
                _field(payload, "firstName", "first_name"),
                _field(payload, "lastName", "last_name"),
                _field(payload, "email"),
                arrival,
                departure,
            )
        return jsonify({"ok": True, "reservation_id": reservation_id}), 201

    @app.get("/campsite/booking/<reservation_id>")
    def get_booking(reservation_id: str) -> Any:
        record = service.get_reservation(reservation_id)
        return jsonify({"ok": True, "reservation": _serialize_reservation(record)})

    @app.put("/campsite/booking/<reservation_id>")
    def update_booking(reservation_id: str) -> Any:
        payload = _json_body()
        updated = service.update_reservation(
            reservation_id,
            _field(payload, "arrivalDate", "arrivalDateString"),
            _field(payload, "departureDate", "departureDateString"),
        )
        return jsonify({"ok": True, "reservation": _serialize_reservation(updated)})

    @app.delete("/campsite/booking/<reservation_id>")
    def delete_booking(reservation_id: str) -> Any:
        service.cancel_reservation(reservation_id)
        return "", 204

    @app.get("/campsite/availability")
    def get_availability() -> Any:
        available = service.check_availability(
            _field(request.args, "arrivalDate", "arrivalDateString"),
            _field(request.args, "departureDate", "departureDateString"),
        )
        return jsonify({"ok": True, "available_dates": [day.isoformat() for day in available]})

    return app


def _json_body() -> dict[str, Any]:
    payload = request.get_json(silent=True)
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise MalformedInputError("body", payload, expected="a JSON object")
    return payload


def _field(source: Any, *names: str) -> str | None:
    for name in names:
        value = source.get(name)
        if value is not None:
            return str(value)
    return None


def _serialize_reservation(record: ReservationRecord) -> dict[str, str]:
    return {
        "reservation_id": record.reservation_id,
        "owner_id": record.owner_id,
        "arrival_date": record.start.isoformat(),
        "departure_date": record.end.isoformat(),
        "created_at": record.created_at.isoformat(timespec="seconds"),
        "updated_at": record.updated_at.isoformat(timespec="seconds"),
    }


def _describe_error(error: ReservationError) -> tuple[int, str]:
    if isinstance(error, MalformedInputError):
        if error.field == "body":
            return 400, BODY_ERROR_NOT_OBJECT
        if error.field in USER_FIELDS:
            return 400, USER_ERROR_NOT_PROVIDED
        if error.value is None or error.value == "":
            return 400, DATE_ERROR_NOT_PROVIDED
        return 400, DATE_ERROR_FORMAT
    if isinstance(error, InvalidRangeError):
        template = RANGE_MESSAGES.get(error.rule, str(error))
        return 400, template.format(bound=error.bound)
    if isinstance(error, InvalidStateError):
        return 400, BOOKING_ERROR_CANCEL_PAST + error.reservation_id
    if isinstance(error, OwnerExistsError):
        return 400, USER_ERROR_ALREADY_EXISTS + error.email
    if isinstance(error, NotFoundError):
        return 404, BOOKING_ERROR_NOT_FOUND + error.reservation_id
    if isinstance(error, UnknownOwnerError):
        return 404, USER_ERROR_NOT_FOUND + error.owner_id
    if isinstance(error, BusyError):
        return 409, BOOKING_ERROR_BUSY
    if isinstance(error, ConflictError):
        return 409, BOOKING_ERROR_CONFLICT
    if isinstance(error, ReservationStorageError):
        return 500, STORAGE_ERROR + error.reference
    return 400, str(error)


if __name__ == "__main__":
    with ReservationYamlRepository("data") as repository:
        app = create_app(repository=repository)
        app.run(host="127.0.0.1", port=5000, debug=False)
