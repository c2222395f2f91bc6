import importlib
import os
import tempfile
import unittest
from datetime import date
from pathlib import Path
from unittest import mock

from holiday_maker import HolidayMakerYamlRepository


class TestCommitBookingTool(unittest.TestCase):
    def setUp(self) -> None:
        temp_dir = tempfile.TemporaryDirectory()
        self.addCleanup(temp_dir.cleanup)
        data_dir = Path(temp_dir.name) / "data"

        with mock.patch.dict(os.environ, {"HOLIDAY_MAKER_DATA_DIR": str(data_dir)}):
            self.server = importlib.import_module("holiday_maker_mcp_server")

        self.repo = HolidayMakerYamlRepository(data_dir)
        patcher = mock.patch.object(self.server, "REPOSITORY", self.repo)
        patcher.start()
        self.addCleanup(patcher.stop)
        self.room = self.repo.add_room("Family Suite", number_of_beds=4)

    def test_passes_booking_id_and_board_options(self) -> None:
        payload = self.server.commit_booking(
            "01/08/2024",
            "08/08/2024",
            [self.room.room_id],
            booking_id="family-trip",
            customer_id="customer-3",
            number_of_adults=2,
            number_of_kids=2,
            all_inclusive=True,
            extra_beds=True,
        )

        self.assertTrue(payload["ok"])
        booking = self.repo.get_booking("family-trip")
        self.assertEqual(booking.date_from, date(2024, 8, 1))
        self.assertEqual(booking.number_of_kids, 2)
        self.assertTrue(booking.all_inclusive)
        self.assertTrue(booking.extra_beds)
        self.assertFalse(booking.full_board)
        self.assertFalse(booking.half_board)

    def test_reports_rejection_code(self) -> None:
        self.server.commit_booking("01/08/2024", "08/08/2024", [self.room.room_id])

        payload = self.server.commit_booking("08/08/2024", "10/08/2024", [self.room.room_id], full_board=True)

        self.assertFalse(payload["ok"])
        self.assertEqual(payload["code"], "DATE_RANGE_CONFLICT")


if __name__ == "__main__":
    unittest.main()
