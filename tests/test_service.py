import tempfile
import unittest
from datetime import date
from pathlib import Path

from campsite_manager import (
    CampsiteService,
    ConflictError,
    InvalidRangeError,
    MalformedInputError,
    NotFoundError,
    OwnerExistsError,
    ReservationYamlRepository,
    UnknownOwnerError,
)


class TestCampsiteService(unittest.TestCase):
    def setUp(self) -> None:
        self._temp_dir = tempfile.TemporaryDirectory()
        self.repo = ReservationYamlRepository(Path(self._temp_dir.name) / "data")
        self.today = date(2024, 6, 1)
        self.service = CampsiteService(self.repo, today_provider=lambda: self.today)
        self.owner_id = self.service.register_owner("Grace", "Hopper", "grace@example.com").owner_id
        self.other_owner_id = self.service.register_owner("Alan", "Turing", "alan@example.com").owner_id

    def tearDown(self) -> None:
        self.repo.close()
        self._temp_dir.cleanup()

    def test_availability_scenario_frees_departure_day(self) -> None:
        self.service.create_reservation(self.owner_id, "2024-06-10", "2024-06-12")

        available = self.service.check_availability("2024-06-10", "2024-06-13")

        self.assertEqual(available, [date(2024, 6, 12), date(2024, 6, 13)])

    def test_default_availability_window(self) -> None:
        available = self.service.check_availability()

        self.assertEqual(available[0], date(2024, 6, 2))
        self.assertEqual(available[-1], date(2024, 7, 1))
        self.assertEqual(len(available), 30)

    def test_cancel_then_query_frees_days(self) -> None:
        reservation_id = self.service.create_reservation(self.owner_id, "2024-06-10", "2024-06-12")
        self.assertNotIn(date(2024, 6, 10), self.service.check_availability("2024-06-09", "2024-06-13"))

        self.service.cancel_reservation(reservation_id)

        self.assertIn(date(2024, 6, 10), self.service.check_availability("2024-06-09", "2024-06-13"))
        self.assertIn(date(2024, 6, 11), self.service.check_availability("2024-06-09", "2024-06-13"))

    def test_create_then_query_shows_days_taken(self) -> None:
        self.service.create_reservation(self.owner_id, "2024-06-20", "2024-06-23")

        available = self.service.check_availability("2024-06-19", "2024-06-24")

        self.assertEqual(available, [date(2024, 6, 19), date(2024, 6, 23), date(2024, 6, 24)])

    def test_stay_too_long_is_rejected(self) -> None:
        with self.assertRaises(InvalidRangeError) as ctx:
            self.service.create_reservation(self.owner_id, "2024-06-10", "2024-06-14")

        self.assertEqual(ctx.exception.rule, "stay_too_long")

    def test_arrival_boundaries(self) -> None:
        with self.assertRaises(InvalidRangeError) as ctx:
            self.service.create_reservation(self.owner_id, "2024-06-01", "2024-06-02")
        self.assertEqual(ctx.exception.rule, "insufficient_lead_time")

        reservation_id = self.service.create_reservation(self.owner_id, "2024-06-02", "2024-06-03")
        self.assertEqual(self.service.get_reservation(reservation_id).start, date(2024, 6, 2))

    def test_explicit_today_overrides_provider(self) -> None:
        with self.assertRaises(InvalidRangeError):
            self.service.create_reservation(self.owner_id, "2024-06-10", "2024-06-11", today=date(2024, 6, 10))

    def test_overlapping_create_conflicts(self) -> None:
        self.service.create_reservation(self.owner_id, "2024-06-10", "2024-06-12")

        with self.assertRaises(ConflictError):
            self.service.create_reservation(self.other_owner_id, "2024-06-11", "2024-06-12")

    def test_unknown_owner_cannot_reserve(self) -> None:
        with self.assertRaises(UnknownOwnerError) as ctx:
            self.service.create_reservation("nobody", "2024-06-10", "2024-06-11")

        self.assertEqual(ctx.exception.owner_id, "nobody")
        self.assertEqual(self.repo.get_active_reservations(), [])

    def test_owner_field_error_does_not_mention_dates(self) -> None:
        with self.assertRaises(MalformedInputError) as ctx:
            self.service.register_owner("Ada", " ", "ada@example.com")

        self.assertNotIn("YYYY-MM-DD", str(ctx.exception))

    def test_update_revalidates_dates(self) -> None:
        reservation_id = self.service.create_reservation(self.owner_id, "2024-06-10", "2024-06-12")

        with self.assertRaises(InvalidRangeError):
            self.service.update_reservation(reservation_id, "2024-06-10", "2024-06-20")

        updated = self.service.update_reservation(reservation_id, "2024-06-10", "2024-06-12")
        self.assertEqual(updated.end, date(2024, 6, 12))

    def test_update_unknown_reservation(self) -> None:
        with self.assertRaises(NotFoundError):
            self.service.update_reservation("missing", "2024-06-10", "2024-06-12")

    def test_guest_booking_creates_owner_once(self) -> None:
        first_id = self.service.create_reservation_for_guest(
            "Ada", "Lovelace", "ada@example.com", "2024-06-10", "2024-06-11"
        )
        second_id = self.service.create_reservation_for_guest(
            "Ada", "Lovelace", "ADA@example.com", "2024-06-12", "2024-06-13"
        )

        first = self.service.get_reservation(first_id)
        second = self.service.get_reservation(second_id)
        self.assertEqual(first.owner_id, second.owner_id)
        self.assertEqual(self.repo.get_owner(first.owner_id).email, "ada@example.com")

    def test_guest_booking_with_bad_dates_writes_no_owner(self) -> None:
        with self.assertRaises(MalformedInputError):
            self.service.create_reservation_for_guest("Ada", "Lovelace", "ada@example.com", "2024-06-10", None)

        self.assertIsNone(self.repo.find_owner_by_email("ada@example.com"))

    def test_guest_booking_requires_owner_fields(self) -> None:
        with self.assertRaises(MalformedInputError) as ctx:
            self.service.create_reservation_for_guest("Ada", " ", "ada@example.com", "2024-06-10", "2024-06-11")

        self.assertEqual(ctx.exception.field, "last_name")

    def test_register_owner_rejects_duplicates(self) -> None:
        self.service.register_owner("Ada", "Lovelace", "ada@example.com")

        with self.assertRaises(OwnerExistsError):
            self.service.register_owner("Ada", "Lovelace", "ada@example.com")


if __name__ == "__main__":
    unittest.main()
