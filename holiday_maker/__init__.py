from .booking import BOOKING_DATE_FORMAT, DateRange, ReservationConflict, can_reserve, is_overlapping, parse_booking_date, parse_booking_range
from .config import Settings, load_settings
from .errors import (
	DateRangeConflictError,
	DomainError,
	DuplicateBookingError,
	ErrorCode,
	InvalidDateFormatError,
	InvalidDateRangeError,
	NoRoomsRequestedError,
	PersistenceFailureError,
	RoomNotFoundError,
)
from .yaml_store import (
	BookingCommitResult,
	BookingRecord,
	BookingRequest,
	HolidayMakerYamlRepository,
	ReservedDatesRecord,
	RoomRecord,
	try_commit_booking,
)

__all__ = [
	"BOOKING_DATE_FORMAT",
	"DateRange",
	"ReservationConflict",
	"can_reserve",
	"is_overlapping",
	"parse_booking_date",
	"parse_booking_range",
	"Settings",
	"load_settings",
	"DateRangeConflictError",
	"DomainError",
	"DuplicateBookingError",
	"ErrorCode",
	"InvalidDateFormatError",
	"InvalidDateRangeError",
	"NoRoomsRequestedError",
	"PersistenceFailureError",
	"RoomNotFoundError",
	"BookingCommitResult",
	"BookingRecord",
	"BookingRequest",
	"HolidayMakerYamlRepository",
	"ReservedDatesRecord",
	"RoomRecord",
	"try_commit_booking",
]
