"""
Ordered booking table: the storage collaborator of the booking service.

Rows keep their append order and are addressed by zero-based position, the
way a spreadsheet addresses rows. The table offers no transactional
guarantees across calls; callers serialize read-modify-write sequences with
the exclusion lock.
"""
import logging
from contextlib import contextmanager
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Protocol

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from tablebook.core.errors import StoreError
from tablebook.models.booking import BookingRow
from tablebook.schemas.booking import BOOKING_HEADERS, BookingRecord

logger = logging.getLogger(__name__)

NOT_FOUND = -1

# Leading marker that keeps phone numbers as text in the table
PHONE_TEXT_MARKER = "'"


class ScanDirection(str, Enum):
    TOP_DOWN = "top_down"
    BOTTOM_UP = "bottom_up"


def mark_phone(value: Any) -> Any:
    if not value:
        return value
    value = str(value)
    if value.startswith(PHONE_TEXT_MARKER):
        return value
    return PHONE_TEXT_MARKER + value


def _read_phone(value: Optional[str]) -> Optional[str]:
    # Like a text-forced spreadsheet cell, the marker is not part of the value
    if value and value.startswith(PHONE_TEXT_MARKER):
        return value[len(PHONE_TEXT_MARKER):]
    return value


def _ref_key(value: Any) -> str:
    return "" if value is None else str(value)


def _scan(refs: List[Any], ref: Any, direction: ScanDirection) -> int:
    wanted = _ref_key(ref)
    positions = range(len(refs))
    if direction == ScanDirection.BOTTOM_UP:
        positions = reversed(positions)
    for i in positions:
        if _ref_key(refs[i]) == wanted:
            return i
    return NOT_FOUND


def _check_field(field: str) -> None:
    if field not in BOOKING_HEADERS:
        raise StoreError(f"Unknown booking column: {field}")


class BookingTable(Protocol):
    def append_record(self, record: BookingRecord) -> None: ...

    def read_all_records(self) -> List[BookingRecord]: ...

    def find_row_index_by_reference(
        self, ref: Any, direction: ScanDirection = ScanDirection.TOP_DOWN
    ) -> int: ...

    def read_record_at_index(self, index: int) -> BookingRecord: ...

    def overwrite_field(self, index: int, field: str, value: Any) -> None: ...

    def delete_row_at_index(self, index: int) -> None: ...

    def count(self) -> int: ...


# ---------------------------------------------------------------------------
# In-process table
# ---------------------------------------------------------------------------


class InMemoryBookingTable:
    """Rows held in a list of dicts; for a single worker process and for tests."""

    def __init__(self, records: Optional[List[BookingRecord]] = None):
        self._rows: List[Dict[str, Any]] = []
        for record in records or []:
            self.append_record(record)

    def _row(self, index: int) -> Dict[str, Any]:
        if not 0 <= index < len(self._rows):
            raise StoreError(f"Row {index} is out of range")
        return self._rows[index]

    @staticmethod
    def _to_record(row: Dict[str, Any]) -> BookingRecord:
        return BookingRecord.model_validate({**row, "phone": _read_phone(row.get("phone"))})

    def append_record(self, record: BookingRecord) -> None:
        self._rows.append(record.model_dump())

    def read_all_records(self) -> List[BookingRecord]:
        return [self._to_record(row) for row in self._rows]

    def find_row_index_by_reference(self, ref, direction=ScanDirection.TOP_DOWN) -> int:
        return _scan([row.get("ref") for row in self._rows], ref, direction)

    def read_record_at_index(self, index: int) -> BookingRecord:
        return self._to_record(self._row(index))

    def overwrite_field(self, index: int, field: str, value: Any) -> None:
        _check_field(field)
        self._row(index)[field] = value

    def delete_row_at_index(self, index: int) -> None:
        self._row(index)
        del self._rows[index]

    def count(self) -> int:
        return len(self._rows)


# ---------------------------------------------------------------------------
# SQL table
# ---------------------------------------------------------------------------


class SqlBookingTable:
    """
    Booking rows in the ``bookings`` table, ordered by their surrogate id.

    Each call opens its own session, so every read is an independent
    snapshot and every write is committed before the call returns.
    """

    def __init__(self, session_factory: Callable[[], Session]):
        self.session_factory = session_factory

    @contextmanager
    def _session(self):
        db = self.session_factory()
        try:
            yield db
        except SQLAlchemyError as e:
            db.rollback()
            logger.error("Booking table operation failed: %s", e)
            raise StoreError(f"Server Error: {e}") from e
        finally:
            db.close()

    @staticmethod
    def _to_record(row: BookingRow) -> BookingRecord:
        record = BookingRecord.model_validate(row)
        record.phone = _read_phone(record.phone)
        return record

    @staticmethod
    def _row_at(db: Session, index: int) -> BookingRow:
        row = None
        if index >= 0:
            row = (
                db.query(BookingRow)
                .order_by(BookingRow.id)
                .offset(index)
                .limit(1)
                .first()
            )
        if row is None:
            raise StoreError(f"Row {index} is out of range")
        return row

    def append_record(self, record: BookingRecord) -> None:
        with self._session() as db:
            db.add(BookingRow(**record.model_dump()))
            db.commit()

    def read_all_records(self) -> List[BookingRecord]:
        with self._session() as db:
            rows = db.query(BookingRow).order_by(BookingRow.id).all()
            return [self._to_record(row) for row in rows]

    def find_row_index_by_reference(self, ref, direction=ScanDirection.TOP_DOWN) -> int:
        with self._session() as db:
            refs = [r for (r,) in db.query(BookingRow.ref).order_by(BookingRow.id).all()]
        return _scan(refs, ref, direction)

    def read_record_at_index(self, index: int) -> BookingRecord:
        with self._session() as db:
            return self._to_record(self._row_at(db, index))

    def overwrite_field(self, index: int, field: str, value: Any) -> None:
        _check_field(field)
        with self._session() as db:
            row = self._row_at(db, index)
            setattr(row, field, value)
            db.commit()

    def delete_row_at_index(self, index: int) -> None:
        with self._session() as db:
            db.delete(self._row_at(db, index))
            db.commit()

    def count(self) -> int:
        with self._session() as db:
            return db.query(BookingRow).count()
