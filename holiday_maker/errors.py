"""Domain error codes for booking commits."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Iterable

if TYPE_CHECKING:
    from .booking import ReservationConflict


class ErrorCode(Enum):
    """Domain error codes."""

    ROOM_NOT_FOUND = "ROOM_NOT_FOUND"
    INVALID_DATE_FORMAT = "INVALID_DATE_FORMAT"
    INVALID_DATE_RANGE = "INVALID_DATE_RANGE"
    DATE_RANGE_CONFLICT = "DATE_RANGE_CONFLICT"
    NO_ROOMS_REQUESTED = "NO_ROOMS_REQUESTED"
    DUPLICATE_BOOKING = "DUPLICATE_BOOKING"
    PERSISTENCE_FAILURE = "PERSISTENCE_FAILURE"


@dataclass(eq=False)
class DomainError(Exception):
    """Base domain error with code and user-safe message."""

    code: ErrorCode
    message: str

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"


class RoomNotFoundError(DomainError):
    """Raised when one or more requested rooms do not exist."""

    def __init__(self, room_ids: Iterable[str]) -> None:
        self.room_ids = tuple(room_ids)
        super().__init__(
            code=ErrorCode.ROOM_NOT_FOUND,
            message=f"Room not found: {', '.join(self.room_ids)}",
        )


class InvalidDateFormatError(DomainError):
    """Raised when a booking date is not in dd/MM/yyyy form."""

    def __init__(self, value: object, field: str = "date") -> None:
        self.value = value
        self.field = field
        super().__init__(
            code=ErrorCode.INVALID_DATE_FORMAT,
            message=f"Invalid {field} {value!r}, expected dd/MM/yyyy",
        )


class InvalidDateRangeError(DomainError):
    """Raised when a booking ends before it starts."""

    def __init__(self, start: date, end: date) -> None:
        self.start = start
        self.end = end
        super().__init__(
            code=ErrorCode.INVALID_DATE_RANGE,
            message="Booking start date must not be later than end date",
        )


class DateRangeConflictError(DomainError):
    """Raised when the requested dates overlap an existing reservation."""

    def __init__(self, conflicts: Iterable[ReservationConflict]) -> None:
        self.conflicts = tuple(conflicts)
        rooms = sorted({conflict.room_id for conflict in self.conflicts})
        super().__init__(
            code=ErrorCode.DATE_RANGE_CONFLICT,
            message=f"Requested dates overlap existing reservations for room(s): {', '.join(rooms)}",
        )

    @property
    def room_ids(self) -> tuple[str, ...]:
        return tuple(dict.fromkeys(conflict.room_id for conflict in self.conflicts))


class NoRoomsRequestedError(DomainError):
    """Raised when a booking names no rooms."""

    def __init__(self) -> None:
        super().__init__(
            code=ErrorCode.NO_ROOMS_REQUESTED,
            message="Booking must request at least one room",
        )


class DuplicateBookingError(DomainError):
    """Raised when a booking id has already been committed."""

    def __init__(self, booking_id: str) -> None:
        self.booking_id = booking_id
        super().__init__(
            code=ErrorCode.DUPLICATE_BOOKING,
            message="Booking has already been committed",
        )


class PersistenceFailureError(DomainError):
    """Raised when the booking store cannot be written."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        super().__init__(
            code=ErrorCode.PERSISTENCE_FAILURE,
            message=f"Failed to write YAML file: {self.path.name}",
        )
