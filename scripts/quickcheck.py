from __future__ import annotations

from datetime import datetime
import traceback

from holiday_maker import BookingRequest, HolidayMakerYamlRepository, load_settings, try_commit_booking


def main() -> int:
    print("[INFO] Holiday Maker Quick Check")

    settings = load_settings()
    repo = HolidayMakerYamlRepository.from_settings(settings)
    now = datetime(2024, 6, 1, 10, 0)

    room = repo.add_room("Sea View Double", accommodation="Quickcheck Hotel", number_of_beds=2, now=now)
    print(f"[OK] Room created: {room.room_id}")

    first = try_commit_booking(BookingRequest("10/06/2024", "15/06/2024", (room.room_id,)), repo, now=now)
    if not first.ok:
        print(f"[ERROR] First booking rejected: {first.code}")
        return 1
    print(f"[OK] Booking committed: {first.booking.booking_id}")

    overlapping = try_commit_booking(BookingRequest("14/06/2024", "18/06/2024", (room.room_id,)), repo, now=now)
    print(f"[OK] Overlapping booking rejected with: {overlapping.code}")

    following = try_commit_booking(BookingRequest("16/06/2024", "20/06/2024", (room.room_id,)), repo, now=now)
    print(f"[OK] Following booking committed: {following.ok}")

    print(f"[OK] Reserved dates for room: {len(repo.get_reserved_dates_for_room(room.room_id))}")
    print(f"[OK] Rooms YAML: {repo.rooms_file.resolve()}")
    print(f"[OK] Bookings YAML: {repo.bookings_file.resolve()}")
    print(f"[OK] Reserved dates YAML: {repo.reserved_dates_file.resolve()}")
    print(f"[OK] Event Log YAML: {repo.log_file.resolve()}")

    print("[DONE] Quick check completed successfully.")
    return 0


if __name__ == "__main__":
    try:
        raise SystemExit(main())
    except Exception:
        print("[ERROR] Quick check failed.")
        traceback.print_exc()
        raise SystemExit(1)
