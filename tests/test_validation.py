import unittest
from datetime import date

from campsite_manager import InvalidRangeError, MalformedInputError
from campsite_manager.validation import (
    add_months,
    booking_horizon,
    parse_iso_date,
    validate_availability_window,
    validate_reservation_dates,
)

TODAY = date(2024, 6, 1)


class TestParseIsoDate(unittest.TestCase):
    def test_parses_iso_string(self) -> None:
        self.assertEqual(parse_iso_date("2024-06-10", "arrival"), date(2024, 6, 10))

    def test_blank_means_missing(self) -> None:
        self.assertIsNone(parse_iso_date("  ", "arrival"))
        self.assertIsNone(parse_iso_date(None, "arrival"))

    def test_rejects_other_formats(self) -> None:
        for value in ("06/10/2024", "20240610", "2024-6-10", "2024-13-01", "2024-02-30", "tomorrow"):
            with self.subTest(value=value):
                with self.assertRaises(MalformedInputError) as ctx:
                    parse_iso_date(value, "departure")
                self.assertEqual(ctx.exception.field, "departure")
                self.assertEqual(ctx.exception.value, value)

    def test_rejects_non_ascii_digits(self) -> None:
        for value in ("\u0662\u0660\u0662\u0664-\u0660\u0666-\u0661\u0660", "\uff12\uff10\uff12\uff14-06-10"):
            with self.subTest(value=value):
                with self.assertRaises(MalformedInputError):
                    parse_iso_date(value, "arrival")


class TestAddMonths(unittest.TestCase):
    def test_clamps_to_end_of_shorter_month(self) -> None:
        self.assertEqual(add_months(date(2024, 1, 31), 1), date(2024, 2, 29))
        self.assertEqual(add_months(date(2023, 1, 31), 1), date(2023, 2, 28))

    def test_rolls_over_year(self) -> None:
        self.assertEqual(add_months(date(2024, 12, 15), 1), date(2025, 1, 15))

    def test_booking_horizon_is_one_month_out(self) -> None:
        self.assertEqual(booking_horizon(TODAY), date(2024, 7, 1))


class TestReservationRules(unittest.TestCase):
    def test_valid_request_returns_interval(self) -> None:
        interval = validate_reservation_dates("2024-06-10", "2024-06-12", TODAY)

        self.assertEqual(interval.start, date(2024, 6, 10))
        self.assertEqual(interval.end, date(2024, 6, 12))

    def test_missing_dates_are_malformed(self) -> None:
        with self.assertRaises(MalformedInputError) as ctx:
            validate_reservation_dates(None, "2024-06-12", TODAY)
        self.assertEqual(ctx.exception.field, "arrival")

        with self.assertRaises(MalformedInputError) as ctx:
            validate_reservation_dates("2024-06-10", "", TODAY)
        self.assertEqual(ctx.exception.field, "departure")

    def test_departure_must_follow_arrival(self) -> None:
        with self.assertRaises(InvalidRangeError) as ctx:
            validate_reservation_dates("2024-06-10", "2024-06-10", TODAY)

        self.assertEqual(ctx.exception.rule, "departure_not_after_arrival")

    def test_arrival_today_is_rejected(self) -> None:
        with self.assertRaises(InvalidRangeError) as ctx:
            validate_reservation_dates("2024-06-01", "2024-06-02", TODAY)

        self.assertEqual(ctx.exception.rule, "insufficient_lead_time")
        self.assertEqual(ctx.exception.bound, date(2024, 6, 2))
        self.assertEqual(ctx.exception.value, date(2024, 6, 1))

    def test_arrival_tomorrow_is_accepted(self) -> None:
        interval = validate_reservation_dates("2024-06-02", "2024-06-03", TODAY)
        self.assertEqual(interval.start, date(2024, 6, 2))

    def test_four_night_stay_is_too_long(self) -> None:
        with self.assertRaises(InvalidRangeError) as ctx:
            validate_reservation_dates("2024-06-10", "2024-06-14", TODAY)

        self.assertEqual(ctx.exception.rule, "stay_too_long")
        self.assertEqual(ctx.exception.bound, 3)
        self.assertEqual(ctx.exception.value, 4)

    def test_three_night_stay_is_accepted(self) -> None:
        interval = validate_reservation_dates("2024-06-10", "2024-06-13", TODAY)
        self.assertEqual(interval.nights, 3)

    def test_departure_on_horizon_is_accepted(self) -> None:
        interval = validate_reservation_dates("2024-06-29", "2024-07-01", TODAY)
        self.assertEqual(interval.end, date(2024, 7, 1))

    def test_departure_past_horizon_is_rejected(self) -> None:
        with self.assertRaises(InvalidRangeError) as ctx:
            validate_reservation_dates("2024-06-30", "2024-07-02", TODAY)

        self.assertEqual(ctx.exception.rule, "beyond_booking_horizon")
        self.assertEqual(ctx.exception.bound, date(2024, 7, 1))
        self.assertEqual(ctx.exception.value, date(2024, 7, 2))

    def test_rules_short_circuit_in_order(self) -> None:
        # both too long and past the horizon: the stay-length rule comes first
        with self.assertRaises(InvalidRangeError) as ctx:
            validate_reservation_dates("2024-06-29", "2024-07-05", TODAY)
        self.assertEqual(ctx.exception.rule, "stay_too_long")

        # in the past and reversed: the ordering rule comes first
        with self.assertRaises(InvalidRangeError) as ctx:
            validate_reservation_dates("2024-05-20", "2024-05-18", TODAY)
        self.assertEqual(ctx.exception.rule, "departure_not_after_arrival")


class TestAvailabilityWindow(unittest.TestCase):
    def test_defaults_cover_tomorrow_to_horizon(self) -> None:
        self.assertEqual(validate_availability_window(None, None, TODAY), (date(2024, 6, 2), date(2024, 7, 1)))

    def test_defaulted_departure_is_capped_at_horizon(self) -> None:
        self.assertEqual(
            validate_availability_window("2024-06-20", None, TODAY),
            (date(2024, 6, 20), date(2024, 7, 1)),
        )

    def test_defaulted_arrival_with_supplied_departure(self) -> None:
        self.assertEqual(
            validate_availability_window(None, "2024-06-10", TODAY),
            (date(2024, 6, 2), date(2024, 6, 10)),
        )

    def test_supplied_departure_must_follow_defaulted_arrival(self) -> None:
        with self.assertRaises(InvalidRangeError) as ctx:
            validate_availability_window(None, "2024-06-02", TODAY)
        self.assertEqual(ctx.exception.rule, "departure_not_after_arrival")

    def test_stay_length_rule_does_not_apply(self) -> None:
        self.assertEqual(
            validate_availability_window("2024-06-02", "2024-06-25", TODAY),
            (date(2024, 6, 2), date(2024, 6, 25)),
        )

    def test_lead_time_applies_to_supplied_arrival(self) -> None:
        with self.assertRaises(InvalidRangeError) as ctx:
            validate_availability_window("2024-06-01", "2024-06-05", TODAY)
        self.assertEqual(ctx.exception.rule, "insufficient_lead_time")

    def test_horizon_applies_to_supplied_dates(self) -> None:
        with self.assertRaises(InvalidRangeError) as ctx:
            validate_availability_window("2024-06-10", "2024-07-03", TODAY)
        self.assertEqual(ctx.exception.rule, "beyond_booking_horizon")

        with self.assertRaises(InvalidRangeError) as ctx:
            validate_availability_window("2024-07-05", None, TODAY)
        self.assertEqual(ctx.exception.rule, "beyond_booking_horizon")

    def test_malformed_window_date(self) -> None:
        with self.assertRaises(MalformedInputError):
            validate_availability_window("2024/06/10", None, TODAY)


if __name__ == "__main__":
    unittest.main()
