from __future__ import annotations

from typing import Any

from mcp.server.fastmcp import FastMCP

from holiday_maker import BookingRequest, HolidayMakerYamlRepository, load_settings, try_commit_booking

mcp = FastMCP(
    "Holiday Maker MCP Server",
    instructions="Expose rooms, reserved dates and booking commits from the holiday_maker project.",
    json_response=True,
)

SETTINGS = load_settings()
REPOSITORY = HolidayMakerYamlRepository.from_settings(SETTINGS)


@mcp.resource("holiday-maker://rooms")
async def list_rooms() -> list[dict[str, Any]]:
    """List bookable rooms."""
    return [room.to_dict() for room in REPOSITORY.list_rooms()]


@mcp.tool()
def add_room(name: str, accommodation: str | None = None, number_of_beds: int = 1) -> dict[str, Any]:
    """Register a bookable room."""
    return REPOSITORY.add_room(name, accommodation=accommodation, number_of_beds=number_of_beds).to_dict()


@mcp.tool()
def list_reserved_dates(room_id: str) -> list[dict[str, str]]:
    """Return reserved date ranges for a room, earliest first."""
    return [record.to_dict() for record in REPOSITORY.get_reserved_dates_for_room(room_id)]


@mcp.tool()
def commit_booking(
    date_from: str,
    date_to: str,
    room_ids: list[str],
    booking_id: str | None = None,
    customer_id: str | None = None,
    number_of_adults: int = 1,
    number_of_kids: int = 0,
    all_inclusive: bool = False,
    full_board: bool = False,
    half_board: bool = False,
    extra_beds: bool = False,
) -> dict[str, Any]:
    """Reserve all rooms for dd/MM/yyyy dates, or report why the booking was rejected."""
    request = BookingRequest.from_dict(
        {
            "date_from": date_from,
            "date_to": date_to,
            "room_ids": room_ids,
            "booking_id": booking_id,
            "customer_id": customer_id,
            "number_of_adults": number_of_adults,
            "number_of_kids": number_of_kids,
            "all_inclusive": all_inclusive,
            "full_board": full_board,
            "half_board": half_board,
            "extra_beds": extra_beds,
        }
    )
    return try_commit_booking(request, REPOSITORY).to_dict()


def main() -> None:
    mcp.run()


if __name__ == "__main__":
    main()
