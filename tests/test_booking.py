import unittest
from datetime import date

from holiday_maker import (
    DateRange,
    ErrorCode,
    InvalidDateFormatError,
    InvalidDateRangeError,
    can_reserve,
    is_overlapping,
    parse_booking_date,
    parse_booking_range,
)


class TestDateOverlap(unittest.TestCase):
    def setUp(self) -> None:
        self.exist_start = date(2024, 6, 10)
        self.exist_end = date(2024, 6, 15)

    def test_range_entirely_before_does_not_overlap(self) -> None:
        self.assertFalse(is_overlapping(self.exist_start, self.exist_end, date(2024, 6, 1), date(2024, 6, 9)))

    def test_range_entirely_after_does_not_overlap(self) -> None:
        self.assertFalse(is_overlapping(self.exist_start, self.exist_end, date(2024, 6, 16), date(2024, 6, 20)))

    def test_touching_end_boundary_day_overlaps(self) -> None:
        self.assertTrue(is_overlapping(self.exist_start, self.exist_end, date(2024, 6, 15), date(2024, 6, 20)))

    def test_touching_start_boundary_day_overlaps(self) -> None:
        self.assertTrue(is_overlapping(self.exist_start, self.exist_end, date(2024, 6, 5), date(2024, 6, 10)))

    def test_identical_ranges_overlap(self) -> None:
        self.assertTrue(is_overlapping(self.exist_start, self.exist_end, self.exist_start, self.exist_end))

    def test_partial_overlap(self) -> None:
        self.assertTrue(is_overlapping(self.exist_start, self.exist_end, date(2024, 6, 14), date(2024, 6, 18)))

    def test_contained_and_containing_ranges_overlap(self) -> None:
        self.assertTrue(is_overlapping(self.exist_start, self.exist_end, date(2024, 6, 12), date(2024, 6, 12)))
        self.assertTrue(is_overlapping(self.exist_start, self.exist_end, date(2024, 6, 1), date(2024, 6, 30)))

    def test_overlap_is_symmetric(self) -> None:
        a = DateRange(date(2024, 6, 10), date(2024, 6, 15))
        b = DateRange(date(2024, 6, 15), date(2024, 6, 18))
        c = DateRange(date(2024, 6, 16), date(2024, 6, 18))
        self.assertTrue(a.overlaps(b))
        self.assertTrue(b.overlaps(a))
        self.assertFalse(a.overlaps(c))
        self.assertFalse(c.overlaps(a))


class TestDateRange(unittest.TestCase):
    def test_single_day_range_is_valid(self) -> None:
        single = DateRange(date(2024, 6, 10), date(2024, 6, 10))
        self.assertEqual(single.days, 1)

    def test_days_counts_both_ends(self) -> None:
        self.assertEqual(DateRange(date(2024, 6, 10), date(2024, 6, 15)).days, 6)

    def test_rejects_end_before_start(self) -> None:
        with self.assertRaises(ValueError):
            DateRange(date(2024, 6, 15), date(2024, 6, 10))

    def test_to_text_uses_booking_format(self) -> None:
        self.assertEqual(
            DateRange(date(2024, 6, 1), date(2024, 6, 5)).to_text(),
            ("01/06/2024", "05/06/2024"),
        )


class TestCanReserve(unittest.TestCase):
    def test_can_reserve_returns_false_when_any_overlap(self) -> None:
        existing = [
            DateRange(date(2024, 6, 1), date(2024, 6, 5)),
            DateRange(date(2024, 6, 10), date(2024, 6, 15)),
        ]
        self.assertFalse(can_reserve(DateRange(date(2024, 6, 15), date(2024, 6, 18)), existing))

    def test_can_reserve_returns_true_between_reservations(self) -> None:
        existing = [
            DateRange(date(2024, 6, 1), date(2024, 6, 5)),
            DateRange(date(2024, 6, 10), date(2024, 6, 15)),
        ]
        self.assertTrue(can_reserve(DateRange(date(2024, 6, 6), date(2024, 6, 9)), existing))

    def test_can_reserve_with_no_existing(self) -> None:
        self.assertTrue(can_reserve(DateRange(date(2024, 6, 6), date(2024, 6, 9)), []))


class TestBookingDateParsing(unittest.TestCase):
    def test_parses_day_month_year(self) -> None:
        self.assertEqual(parse_booking_date("16/06/2024"), date(2024, 6, 16))

    def test_strips_surrounding_whitespace(self) -> None:
        self.assertEqual(parse_booking_date(" 01/12/2024 "), date(2024, 12, 1))

    def test_rejects_wrong_separators_and_month(self) -> None:
        with self.assertRaises(InvalidDateFormatError) as context:
            parse_booking_date("31-13-2024", field="date_from")

        self.assertEqual(context.exception.code, ErrorCode.INVALID_DATE_FORMAT)
        self.assertEqual(context.exception.value, "31-13-2024")
        self.assertEqual(context.exception.field, "date_from")
        self.assertTrue(str(context.exception).startswith("INVALID_DATE_FORMAT:"))

    def test_rejects_impossible_day(self) -> None:
        with self.assertRaises(InvalidDateFormatError):
            parse_booking_date("31/02/2024")

    def test_rejects_iso_format(self) -> None:
        with self.assertRaises(InvalidDateFormatError):
            parse_booking_date("2024-06-16")

    def test_rejects_empty_and_non_string(self) -> None:
        with self.assertRaises(InvalidDateFormatError):
            parse_booking_date("")
        with self.assertRaises(InvalidDateFormatError):
            parse_booking_date(None)

    def test_parse_range_rejects_reversed_dates(self) -> None:
        with self.assertRaises(InvalidDateRangeError) as context:
            parse_booking_range("20/06/2024", "16/06/2024")

        self.assertEqual(context.exception.code, ErrorCode.INVALID_DATE_RANGE)
        self.assertEqual(context.exception.start, date(2024, 6, 20))

    def test_parse_range_reports_failing_field(self) -> None:
        with self.assertRaises(InvalidDateFormatError) as context:
            parse_booking_range("16/06/2024", "20.06.2024")

        self.assertEqual(context.exception.field, "date_to")


if __name__ == "__main__":
    unittest.main()
