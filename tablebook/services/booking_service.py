"""Booking operations: create, status/cancel, partial update, delete and listings."""

from __future__ import annotations

import functools
import logging
from datetime import datetime
from typing import Any, Callable, Mapping, Optional, Union
from zoneinfo import ZoneInfo

from pydantic import ValidationError as PayloadError

from tablebook.core.errors import (
    BookingError,
    ConflictError,
    NotFoundError,
    StoreError,
    ValidationError,
)
from tablebook.core.locking import ExclusionCoordinator
from tablebook.db.booking_table import (
    NOT_FOUND,
    BookingTable,
    ScanDirection,
    mark_phone,
)
from tablebook.schemas.booking import (
    STATUS_CANCELLED,
    STATUS_CONFIRMED,
    BookingCreate,
    BookingPatch,
    BookingRecord,
    BookingType,
)
from tablebook.schemas.common import OperationResult
from tablebook.services.conflicts import (
    SLOT_DURATION_MINUTES,
    is_employee_booked,
    is_table_free,
)
from tablebook.services.validation import validate_booking
from tablebook.utils.timeparse import (
    UNPARSEABLE,
    current_time_string,
    is_slot_active,
    normalize_date,
    time_to_minutes,
    today_string,
)

logger = logging.getLogger(__name__)

TABLE_TAKEN = (
    "This table has already been booked for this date and time slot. "
    "Please choose another table or time."
)
EMPLOYEE_TAKEN = (
    "You already have a booking for this specific time slot. "
    "Please choose another time or table."
)


def _payload_error(exc: PayloadError) -> ValidationError:
    first = exc.errors()[0]
    field = ".".join(str(p) for p in first.get("loc", ())) or "payload"
    return ValidationError(f"Invalid {field}: {first.get('msg')}")


def _operation(fn: Callable[..., OperationResult]) -> Callable[..., OperationResult]:
    """Turn every failure of a booking operation into a failure envelope."""

    @functools.wraps(fn)
    def wrapper(self, *args, **kwargs) -> OperationResult:
        try:
            return fn(self, *args, **kwargs)
        except BookingError as e:
            logger.info("%s rejected (%s): %s", fn.__name__, e.code, e.message)
            return OperationResult.failure(e.message, e.code)
        except Exception as e:
            logger.exception("Unexpected error during %s.", fn.__name__)
            err = StoreError(f"Server Error: {e}")
            return OperationResult.failure(err.message, err.code)

    return wrapper


class BookingService:
    """
    Booking operations against one shared booking table.

    Mutating operations run entirely under ``coordinator``: validation,
    conflict checks and the write form one critical section. Listings read
    an independent snapshot without the lock and may miss a write that is
    still in flight.
    """

    def __init__(
        self,
        table: BookingTable,
        coordinator: ExclusionCoordinator,
        create_timeout: float = 30.0,
        mutation_timeout: float = 10.0,
        slot_duration: int = SLOT_DURATION_MINUTES,
        timezone: str = "Asia/Kolkata",
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.table = table
        self.coordinator = coordinator
        self.create_timeout = create_timeout
        self.mutation_timeout = mutation_timeout
        self.slot_duration = slot_duration
        self.timezone = timezone
        self.clock = clock or (lambda: datetime.now(ZoneInfo(self.timezone)))

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _find(self, ref: Any, direction: ScanDirection = ScanDirection.TOP_DOWN,
              empty_message: str = "No data") -> int:
        if ref is None or not str(ref).strip():
            raise ValidationError("Missing ref")
        if self.table.count() == 0:
            raise NotFoundError(empty_message)
        index = self.table.find_row_index_by_reference(ref, direction)
        if index == NOT_FOUND:
            raise NotFoundError("Ref not found")
        return index

    # ------------------------------------------------------------------
    # Mutating operations
    # ------------------------------------------------------------------

    @_operation
    def create(self, payload: Union[BookingCreate, Mapping[str, Any]]) -> OperationResult:
        with self.coordinator.hold(self.create_timeout):
            if not isinstance(payload, BookingCreate):
                try:
                    payload = BookingCreate.model_validate(payload)
                except PayloadError as e:
                    raise _payload_error(e) from e

            check = validate_booking(payload)
            if not check.valid:
                raise ValidationError(check.error)

            snapshot = self.table.read_all_records()
            booking_type = payload.booking_type

            if booking_type != BookingType.FOOD and not is_table_free(
                snapshot, payload.table_id, payload.date, payload.time, self.slot_duration
            ):
                raise ConflictError(TABLE_TAKEN)

            if is_employee_booked(snapshot, payload.emp_no, payload.date, payload.time):
                raise ConflictError(EMPLOYEE_TAKEN)

            record = BookingRecord(
                ref=payload.ref,
                emp_no=payload.emp_no,
                name=payload.name,
                phone=mark_phone(payload.phone),
                email=payload.email,
                table=payload.table,
                table_id=payload.table_id,
                date=payload.date,
                time=payload.time,
                guests=payload.guests,
                guest_orders=payload.guest_orders,
                special=payload.special,
                type=booking_type.value,
                status=STATUS_CONFIRMED,
                submitted_at=self.clock(),
            )
            self.table.append_record(record)

        logger.info(
            "Booking %s confirmed: table=%s date=%s time=%s type=%s",
            payload.ref, payload.table_id, payload.date, payload.time, booking_type.value,
        )
        return OperationResult(success=True, ref=payload.ref)

    @_operation
    def update_status(self, ref: Any, status: Optional[str]) -> OperationResult:
        if not status:
            raise ValidationError("Missing Status")

        with self.coordinator.hold(self.mutation_timeout):
            index = self._find(ref)
            booking = self.table.read_record_at_index(index)
            self.table.overwrite_field(index, "status", status)

        logger.info("Booking %s status set to %s", ref, status)
        return OperationResult(success=True, ref=ref, status=status, booking=booking)

    def cancel(self, ref: Any) -> OperationResult:
        return self.update_status(ref, STATUS_CANCELLED)

    @_operation
    def update_fields(self, ref: Any, data: Union[BookingPatch, Mapping[str, Any]]) -> OperationResult:
        """
        Overwrite the given fields of the first row with ``ref``.

        Keys may be column headers ("Customer Name") or attribute names
        ("name"). Unknown keys, the reference and the submission timestamp
        are ignored.
        """
        with self.coordinator.hold(self.mutation_timeout):
            index = self._find(ref, empty_message="Ref not found")
            if not isinstance(data, BookingPatch):
                try:
                    data = BookingPatch.from_mapping(data or {})
                except PayloadError as e:
                    raise _payload_error(e) from e

            for field, value in data.changes().items():
                if field == "phone":
                    value = mark_phone(value)
                self.table.overwrite_field(index, field, value)

        logger.info("Booking %s updated: %s", ref, ", ".join(data.changes()) or "no known fields")
        return OperationResult(success=True, ref=ref)

    @_operation
    def delete(self, ref: Any) -> OperationResult:
        with self.coordinator.hold(self.mutation_timeout):
            # Bottom-up: with duplicate refs the latest row goes
            index = self._find(ref, ScanDirection.BOTTOM_UP)
            self.table.delete_row_at_index(index)

        logger.info("Booking %s deleted", ref)
        return OperationResult(success=True, ref=ref)

    # ------------------------------------------------------------------
    # Read operations (no lock)
    # ------------------------------------------------------------------

    @_operation
    def list_all(self) -> OperationResult:
        return OperationResult(success=True, bookings=self.table.read_all_records())

    @_operation
    def list_for_date(self, date: Any = None, now_time: Optional[str] = None) -> OperationResult:
        """
        Active bookings on ``date`` (default: today), so a caller can work out
        which slots are still free. ``active`` lists the refs whose slot
        window contains ``now_time`` (default: the current time).
        """
        now = self.clock()
        target_date = normalize_date(date or today_string(self.timezone, now))
        now_time = now_time or current_time_string(self.timezone, now)

        booked = [
            b for b in self.table.read_all_records()
            if normalize_date(b.date) == target_date and not b.is_cancelled
        ]
        active = [b.ref for b in booked if is_slot_active(b.time, now_time, self.slot_duration)]
        return OperationResult(success=True, bookings=booked, active=active)

    @_operation
    def history(self, phone: Optional[str] = None, emp: Optional[str] = None) -> OperationResult:
        """Bookings matching a phone number (or a legacy employee number), newest first."""
        query = _history_key(phone or emp)
        if not query:
            raise ValidationError("Missing phone")

        matches = [
            b for b in self.table.read_all_records()
            if _history_key(b.phone) == query or str(b.emp_no or "").lower().strip() == query
        ]
        matches.sort(key=_start_key, reverse=True)
        return OperationResult(success=True, bookings=matches)


def _history_key(value: Any) -> str:
    return str(value or "").lower().strip().lstrip("'")


def _start_key(b: BookingRecord):
    minutes = time_to_minutes(b.time or "00:00")
    if minutes == UNPARSEABLE:
        minutes = 0
    return normalize_date(b.date), minutes
