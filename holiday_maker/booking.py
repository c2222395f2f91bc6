from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import TYPE_CHECKING, Iterable

from .errors import InvalidDateFormatError, InvalidDateRangeError

if TYPE_CHECKING:
    from .yaml_store import ReservedDatesRecord

BOOKING_DATE_FORMAT = "%d/%m/%Y"


@dataclass(frozen=True)
class DateRange:
    start: date
    end: date

    def __post_init__(self) -> None:
        if self.start > self.end:
            raise ValueError("DateRange start must not be later than end.")

    @property
    def days(self) -> int:
        return (self.end - self.start).days + 1

    def overlaps(self, other: DateRange) -> bool:
        return is_overlapping(self.start, self.end, other.start, other.end)

    def to_text(self, date_format: str = BOOKING_DATE_FORMAT) -> tuple[str, str]:
        return self.start.strftime(date_format), self.end.strftime(date_format)


@dataclass(frozen=True)
class ReservationConflict:
    room_id: str
    existing: ReservedDatesRecord
    requested: DateRange

    def to_dict(self) -> dict[str, str]:
        return {
            "room_id": self.room_id,
            "reserved_dates_id": self.existing.reserved_dates_id,
            "booking_id": self.existing.booking_id,
            "existing_from": self.existing.date_from.isoformat(),
            "existing_to": self.existing.date_to.isoformat(),
            "requested_from": self.requested.start.isoformat(),
            "requested_to": self.requested.end.isoformat(),
        }


def is_overlapping(existing_start: date, existing_end: date, candidate_start: date, candidate_end: date) -> bool:
    """Return True when two closed date intervals share at least one day.

    Both ends are inclusive, so a stay ending on the 15th and another
    starting on the 15th overlap. Callers guarantee start <= end.
    """
    return candidate_start <= existing_end and existing_start <= candidate_end


def can_reserve(requested: DateRange, existing_ranges: Iterable[DateRange]) -> bool:
    """Return True if the requested range does not overlap any existing range."""
    for existing in existing_ranges:
        if is_overlapping(existing.start, existing.end, requested.start, requested.end):
            return False
    return True


def parse_booking_date(text: object, field: str = "date", date_format: str = BOOKING_DATE_FORMAT) -> date:
    if not isinstance(text, str) or not text.strip():
        raise InvalidDateFormatError(text, field)
    try:
        return datetime.strptime(text.strip(), date_format).date()
    except ValueError as error:
        raise InvalidDateFormatError(text, field) from error


def parse_booking_range(date_from: object, date_to: object, date_format: str = BOOKING_DATE_FORMAT) -> DateRange:
    start = parse_booking_date(date_from, "date_from", date_format)
    end = parse_booking_date(date_to, "date_to", date_format)
    if start > end:
        raise InvalidDateRangeError(start, end)
    return DateRange(start, end)
