from __future__ import annotations

from contextlib import ExitStack, contextmanager
from dataclasses import dataclass
from datetime import date, datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any, Iterable, Iterator, Mapping
import logging
import shutil
import threading
from uuid import uuid4

import yaml

from .booking import BOOKING_DATE_FORMAT, DateRange, ReservationConflict, is_overlapping, parse_booking_range
from .errors import (
    DateRangeConflictError,
    DomainError,
    DuplicateBookingError,
    NoRoomsRequestedError,
    PersistenceFailureError,
    RoomNotFoundError,
)

if TYPE_CHECKING:
    from .config import Settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RoomRecord:
    room_id: str
    name: str
    created_at: datetime
    accommodation: str | None = None
    number_of_beds: int = 1

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "room_id": self.room_id,
            "name": self.name,
            "number_of_beds": self.number_of_beds,
            "created_at": self.created_at.isoformat(timespec="seconds"),
        }
        if self.accommodation is not None:
            payload["accommodation"] = self.accommodation
        return payload

    @staticmethod
    def from_dict(data: dict[str, Any]) -> "RoomRecord":
        return RoomRecord(
            room_id=str(data["room_id"]),
            name=str(data["name"]),
            created_at=datetime.fromisoformat(str(data["created_at"])),
            accommodation=(str(data.get("accommodation")) if data.get("accommodation") is not None else None),
            number_of_beds=int(data.get("number_of_beds", 1)),
        )


@dataclass(frozen=True)
class ReservedDatesRecord:
    reserved_dates_id: str
    room_id: str
    booking_id: str
    date_from: date
    date_to: date
    created_at: datetime

    @property
    def date_range(self) -> DateRange:
        return DateRange(self.date_from, self.date_to)

    def to_dict(self) -> dict[str, str]:
        return {
            "reserved_dates_id": self.reserved_dates_id,
            "room_id": self.room_id,
            "booking_id": self.booking_id,
            "date_from": self.date_from.isoformat(),
            "date_to": self.date_to.isoformat(),
            "created_at": self.created_at.isoformat(timespec="seconds"),
        }

    @staticmethod
    def from_dict(data: dict[str, Any]) -> "ReservedDatesRecord":
        return ReservedDatesRecord(
            reserved_dates_id=str(data["reserved_dates_id"]),
            room_id=str(data["room_id"]),
            booking_id=str(data["booking_id"]),
            date_from=date.fromisoformat(str(data["date_from"])),
            date_to=date.fromisoformat(str(data["date_to"])),
            created_at=datetime.fromisoformat(str(data["created_at"])),
        )


@dataclass(frozen=True)
class BookingRequest:
    date_from: str
    date_to: str
    room_ids: tuple[str, ...]
    booking_id: str | None = None
    customer_id: str | None = None
    number_of_adults: int = 1
    number_of_kids: int = 0
    all_inclusive: bool = False
    full_board: bool = False
    half_board: bool = False
    extra_beds: bool = False

    @staticmethod
    def from_dict(data: Mapping[str, Any]) -> "BookingRequest":
        room_ids = data.get("room_ids") or []
        if isinstance(room_ids, str):
            room_ids = [room_ids]
        return BookingRequest(
            date_from=str(data.get("date_from", "")),
            date_to=str(data.get("date_to", "")),
            room_ids=tuple(str(value) for value in room_ids),
            booking_id=(str(data["booking_id"]) if data.get("booking_id") is not None else None),
            customer_id=(str(data["customer_id"]) if data.get("customer_id") is not None else None),
            number_of_adults=int(data.get("number_of_adults", 1)),
            number_of_kids=int(data.get("number_of_kids", 0)),
            all_inclusive=bool(data.get("all_inclusive", False)),
            full_board=bool(data.get("full_board", False)),
            half_board=bool(data.get("half_board", False)),
            extra_beds=bool(data.get("extra_beds", False)),
        )

    def summary(self) -> dict[str, Any]:
        return {
            "booking_id": self.booking_id,
            "customer_id": self.customer_id,
            "date_from": self.date_from,
            "date_to": self.date_to,
            "room_ids": list(self.room_ids),
        }


@dataclass(frozen=True)
class BookingRecord:
    booking_id: str
    date_from: date
    date_to: date
    room_ids: tuple[str, ...]
    reserved_dates_ids: tuple[str, ...]
    created_at: datetime
    customer_id: str | None = None
    number_of_adults: int = 1
    number_of_kids: int = 0
    all_inclusive: bool = False
    full_board: bool = False
    half_board: bool = False
    extra_beds: bool = False

    @property
    def date_range(self) -> DateRange:
        return DateRange(self.date_from, self.date_to)

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "booking_id": self.booking_id,
            "date_from": self.date_from.isoformat(),
            "date_to": self.date_to.isoformat(),
            "room_ids": list(self.room_ids),
            "reserved_dates_ids": list(self.reserved_dates_ids),
            "number_of_adults": self.number_of_adults,
            "number_of_kids": self.number_of_kids,
            "all_inclusive": self.all_inclusive,
            "full_board": self.full_board,
            "half_board": self.half_board,
            "extra_beds": self.extra_beds,
            "created_at": self.created_at.isoformat(timespec="seconds"),
        }
        if self.customer_id is not None:
            payload["customer_id"] = self.customer_id
        return payload

    @staticmethod
    def from_dict(data: dict[str, Any]) -> "BookingRecord":
        return BookingRecord(
            booking_id=str(data["booking_id"]),
            date_from=date.fromisoformat(str(data["date_from"])),
            date_to=date.fromisoformat(str(data["date_to"])),
            room_ids=tuple(str(value) for value in data.get("room_ids", [])),
            reserved_dates_ids=tuple(str(value) for value in data.get("reserved_dates_ids", [])),
            created_at=datetime.fromisoformat(str(data["created_at"])),
            customer_id=(str(data.get("customer_id")) if data.get("customer_id") is not None else None),
            number_of_adults=int(data.get("number_of_adults", 1)),
            number_of_kids=int(data.get("number_of_kids", 0)),
            all_inclusive=bool(data.get("all_inclusive", False)),
            full_board=bool(data.get("full_board", False)),
            half_board=bool(data.get("half_board", False)),
            extra_beds=bool(data.get("extra_beds", False)),
        )


@dataclass(frozen=True)
class BookingCommitResult:
    ok: bool
    booking: BookingRecord | None = None
    error: DomainError | None = None

    @property
    def code(self) -> str | None:
        return self.error.code.value if self.error is not None else None

    def to_dict(self) -> dict[str, Any]:
        if self.ok and self.booking is not None:
            return {"ok": True, "booking": self.booking.to_dict()}
        payload: dict[str, Any] = {"ok": False, "code": self.code, "message": self.error.message if self.error else None}
        if isinstance(self.error, DateRangeConflictError):
            payload["conflicts"] = [conflict.to_dict() for conflict in self.error.conflicts]
        return payload


# Locks are shared by every repository opened on the same directory.
_LOCK_REGISTRY_GUARD = threading.Lock()
_STORE_LOCKS: dict[str, threading.RLock] = {}
_ROOM_LOCKS: dict[tuple[str, str], threading.Lock] = {}


def _store_lock_for(base_dir: Path) -> threading.RLock:
    key = str(base_dir.resolve())
    with _LOCK_REGISTRY_GUARD:
        if key not in _STORE_LOCKS:
            _STORE_LOCKS[key] = threading.RLock()
        return _STORE_LOCKS[key]


def _room_lock_for(base_dir: Path, room_id: str) -> threading.Lock:
    key = (str(base_dir.resolve()), room_id)
    with _LOCK_REGISTRY_GUARD:
        if key not in _ROOM_LOCKS:
            _ROOM_LOCKS[key] = threading.Lock()
        return _ROOM_LOCKS[key]


class HolidayMakerYamlRepository:
    def __init__(self, base_dir: str | Path = "data", date_format: str = BOOKING_DATE_FORMAT) -> None:
        self.base_dir = Path(base_dir)
        self.date_format = date_format
        self.rooms_file = self.base_dir / "rooms.yaml"
        self.bookings_file = self.base_dir / "bookings.yaml"
        self.reserved_dates_file = self.base_dir / "reserved_dates.yaml"
        self.log_file = self.base_dir / "booking_events.yaml"
        self._store_lock = _store_lock_for(self.base_dir)
        self._ensure_files()

    @classmethod
    def from_settings(cls, settings: "Settings") -> "HolidayMakerYamlRepository":
        return cls(settings.data_dir, date_format=settings.date_format)

    def _ensure_files(self) -> None:
        self.base_dir.mkdir(parents=True, exist_ok=True)
        for path in (self.rooms_file, self.bookings_file, self.reserved_dates_file, self.log_file):
            if not path.exists():
                path.write_text("[]\n", encoding="utf-8")

    def _read_yaml_list(self, path: Path) -> list[dict[str, Any]]:
        try:
            payload = yaml.safe_load(path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            path.write_text("[]\n", encoding="utf-8")
            return []
        except (OSError, UnicodeDecodeError, yaml.YAMLError) as error:
            self._recover_corrupted_yaml(path, error)
            return []

        if payload is None:
            return []
        if not isinstance(payload, list):
            self._recover_corrupted_yaml(path, ValueError("top-level YAML is not a list"))
            return []

        sanitized: list[dict[str, Any]] = []
        for index, row in enumerate(payload):
            if isinstance(row, dict):
                sanitized.append(row)
            elif path != self.log_file:
                self._log_event(
                    "YAML_ROW_SKIPPED",
                    {
                        "file": str(path.name),
                        "index": index,
                        "reason": "row is not a mapping",
                    },
                )
        return sanitized

    def _write_yaml_list(self, path: Path, rows: list[dict[str, Any]]) -> None:
        temp_path = path.with_suffix(path.suffix + ".tmp")
        try:
            temp_path.write_text(yaml.safe_dump(rows, allow_unicode=True, sort_keys=False), encoding="utf-8")
            temp_path.replace(path)
        except OSError as error:
            raise PersistenceFailureError(path) from error
        finally:
            if temp_path.exists():
                temp_path.unlink(missing_ok=True)

    def _recover_corrupted_yaml(self, path: Path, error: Exception) -> None:
        timestamp = datetime.now().strftime("%Y%m%d%H%M%S")
        backup_path = path.with_name(f"{path.stem}.corrupt.{timestamp}{path.suffix}")
        with self._store_lock:
            if _is_yaml_list(path):
                # Rewritten by another writer since the failed read.
                return
            try:
                if path.exists():
                    shutil.copy2(path, backup_path)
            except OSError:
                backup_path = None

            try:
                path.write_text("[]\n", encoding="utf-8")
            except OSError as write_error:
                raise PersistenceFailureError(path) from write_error

        if path != self.log_file:
            self._log_event(
                "YAML_RECOVERED",
                {
                    "file": str(path.name),
                    "backup": str(backup_path.name) if backup_path is not None else None,
                    "reason": str(error),
                },
            )

    def _log_event(self, event_type: str, payload: dict[str, Any], event_time: datetime | None = None) -> None:
        timestamp = (event_time or datetime.now()).isoformat(timespec="seconds")
        with self._store_lock:
            events = self._read_yaml_list(self.log_file)
            events.append({"event_time": timestamp, "event_type": event_type, "payload": payload})
            self._write_yaml_list(self.log_file, events)

    def _append_rows(self, path: Path, new_rows: list[dict[str, Any]]) -> None:
        with self._store_lock:
            rows = self._read_yaml_list(path)
            rows.extend(new_rows)
            self._write_yaml_list(path, rows)

    def get_events(self) -> list[dict[str, Any]]:
        return self._read_yaml_list(self.log_file)

    def add_room(
        self,
        name: str,
        accommodation: str | None = None,
        number_of_beds: int = 1,
        room_id: str | None = None,
        now: datetime | None = None,
    ) -> RoomRecord:
        normalized_name = (name or "").strip()
        if not normalized_name:
            raise ValueError("room name must not be empty")
        if number_of_beds < 1:
            raise ValueError("number_of_beds must be at least one")

        effective_now = now or datetime.now()
        record = RoomRecord(
            room_id=room_id or str(uuid4()),
            name=normalized_name,
            created_at=effective_now,
            accommodation=accommodation,
            number_of_beds=number_of_beds,
        )

        with self._store_lock:
            if self.get_room(record.room_id) is not None:
                raise ValueError(f"room_id already exists: {record.room_id}")
            self._append_rows(self.rooms_file, [record.to_dict()])

        self._log_event(
            "ROOM_CREATED",
            {"room_id": record.room_id, "name": record.name, "accommodation": accommodation},
            effective_now,
        )
        return record

    def get_room(self, room_id: str) -> RoomRecord | None:
        for row in self._read_yaml_list(self.rooms_file):
            if str(row.get("room_id")) == room_id:
                return RoomRecord.from_dict(row)
        return None

    def list_rooms(self) -> list[RoomRecord]:
        return [RoomRecord.from_dict(row) for row in self._read_yaml_list(self.rooms_file)]

    def get_reserved_dates(self) -> list[ReservedDatesRecord]:
        return [ReservedDatesRecord.from_dict(row) for row in self._read_yaml_list(self.reserved_dates_file)]

    def get_reserved_dates_for_room(self, room_id: str) -> list[ReservedDatesRecord]:
        records = [record for record in self.get_reserved_dates() if record.room_id == room_id]
        return sorted(records, key=lambda record: (record.date_from, record.created_at))

    def get_booking(self, booking_id: str) -> BookingRecord | None:
        for row in self._read_yaml_list(self.bookings_file):
            if str(row.get("booking_id")) == booking_id:
                return BookingRecord.from_dict(row)
        return None

    def find_conflicts(self, room_id: str, requested: DateRange) -> list[ReservationConflict]:
        conflicts: list[ReservationConflict] = []
        for existing in self.get_reserved_dates_for_room(room_id):
            if is_overlapping(existing.date_from, existing.date_to, requested.start, requested.end):
                conflicts.append(ReservationConflict(room_id=room_id, existing=existing, requested=requested))
        return conflicts

    @contextmanager
    def _locked_rooms(self, room_ids: list[str]) -> Iterator[None]:
        with ExitStack() as stack:
            for room_id in sorted(room_ids):
                stack.enter_context(_room_lock_for(self.base_dir, room_id))
            yield

    def commit_booking(self, request: BookingRequest, now: datetime | None = None) -> BookingRecord:
        """Reserve every requested room for the requested dates, or none of them.

        Raises:
            NoRoomsRequestedError: If the request names no rooms.
            InvalidDateFormatError: If either date is not dd/MM/yyyy.
            InvalidDateRangeError: If date_from is later than date_to.
            RoomNotFoundError: If any requested room does not exist.
            DateRangeConflictError: If any room already has overlapping reserved dates.
            DuplicateBookingError: If the booking id was already committed.
            PersistenceFailureError: If the store cannot be written.
        """
        effective_now = now or datetime.now()
        try:
            booking = self._commit_booking(request, effective_now)
        except DomainError as error:
            payload: dict[str, Any] = {
                "code": error.code.value,
                "message": error.message,
                "request": request.summary(),
            }
            if isinstance(error, DateRangeConflictError):
                payload["conflicts"] = [conflict.to_dict() for conflict in error.conflicts]
            try:
                self._log_event("BOOKING_REJECTED", payload, effective_now)
            except PersistenceFailureError:
                logger.warning("Could not record BOOKING_REJECTED for %s", error.code.value, exc_info=True)
            raise

        # Committed from here on; a failed event write is only reported.
        try:
            self._log_event(
                "BOOKING_COMMITTED",
                {
                    "booking_id": booking.booking_id,
                    "room_ids": list(booking.room_ids),
                    "date_from": booking.date_from.isoformat(),
                    "date_to": booking.date_to.isoformat(),
                },
                effective_now,
            )
        except PersistenceFailureError:
            logger.warning("Could not record BOOKING_COMMITTED for %s", booking.booking_id, exc_info=True)
        return booking

    def _commit_booking(self, request: BookingRequest, now: datetime) -> BookingRecord:
        room_ids = _normalize_room_ids(request.room_ids)
        if not room_ids:
            raise NoRoomsRequestedError()

        requested = parse_booking_range(request.date_from, request.date_to, self.date_format)

        known_room_ids = {room.room_id for room in self.list_rooms()}
        missing = [room_id for room_id in room_ids if room_id not in known_room_ids]
        if missing:
            raise RoomNotFoundError(missing)

        with self._locked_rooms(room_ids):
            conflicts: list[ReservationConflict] = []
            for room_id in room_ids:
                conflicts.extend(self.find_conflicts(room_id, requested))
            if conflicts:
                raise DateRangeConflictError(conflicts)

            booking_id = request.booking_id or str(uuid4())
            reserved = [
                ReservedDatesRecord(
                    reserved_dates_id=str(uuid4()),
                    room_id=room_id,
                    booking_id=booking_id,
                    date_from=requested.start,
                    date_to=requested.end,
                    created_at=now,
                )
                for room_id in room_ids
            ]
            booking = BookingRecord(
                booking_id=booking_id,
                date_from=requested.start,
                date_to=requested.end,
                room_ids=tuple(room_ids),
                reserved_dates_ids=tuple(record.reserved_dates_id for record in reserved),
                created_at=now,
                customer_id=request.customer_id,
                number_of_adults=request.number_of_adults,
                number_of_kids=request.number_of_kids,
                all_inclusive=request.all_inclusive,
                full_board=request.full_board,
                half_board=request.half_board,
                extra_beds=request.extra_beds,
            )

            # Booking ids are not scoped to rooms, so the id check and both appends share the store lock.
            with self._store_lock:
                if request.booking_id is not None and self.get_booking(booking_id) is not None:
                    raise DuplicateBookingError(booking_id)

                self._append_rows(self.reserved_dates_file, [record.to_dict() for record in reserved])
                try:
                    self._append_rows(self.bookings_file, [booking.to_dict()])
                except PersistenceFailureError:
                    self._remove_reserved_dates({record.reserved_dates_id for record in reserved}, booking_id, now)
                    raise

        return booking

    def _remove_reserved_dates(self, reserved_dates_ids: set[str], booking_id: str, now: datetime) -> None:
        with self._store_lock:
            rows = self._read_yaml_list(self.reserved_dates_file)
            remaining = [row for row in rows if str(row.get("reserved_dates_id")) not in reserved_dates_ids]
            self._write_yaml_list(self.reserved_dates_file, remaining)

        self._log_event(
            "BOOKING_ROLLED_BACK",
            {"booking_id": booking_id, "removed": len(rows) - len(remaining)},
            now,
        )


def try_commit_booking(
    request: BookingRequest,
    repository: HolidayMakerYamlRepository,
    now: datetime | None = None,
) -> BookingCommitResult:
    try:
        booking = repository.commit_booking(request, now=now)
    except DomainError as error:
        return BookingCommitResult(ok=False, error=error)
    return BookingCommitResult(ok=True, booking=booking)


def _normalize_room_ids(room_ids: Iterable[str]) -> list[str]:
    normalized: list[str] = []
    for room_id in room_ids:
        value = str(room_id).strip()
        if value and value not in normalized:
            normalized.append(value)
    return normalized


def _is_yaml_list(path: Path) -> bool:
    try:
        return isinstance(yaml.safe_load(path.read_text(encoding="utf-8")), list)
    except (OSError, UnicodeDecodeError, yaml.YAMLError):
        return False
