"""
Slot conflict checks over a snapshot of the booking table.

Both checks are linear scans of every active (non-cancelled) record, which
is fine for a restaurant-sized table of a few hundred rows.
"""
from typing import Any, Iterable

from tablebook.schemas.booking import BookingRecord
from tablebook.utils.timeparse import normalize_date, time_to_minutes

SLOT_DURATION_MINUTES = 120


def _text(value: Any) -> str:
    return "" if value is None else str(value)


def is_table_free(
    records: Iterable[BookingRecord],
    table_id: Any,
    date: Any,
    time: Any,
    slot_duration: int = SLOT_DURATION_MINUTES,
) -> bool:
    """
    A table is taken when another active booking for the same table and day
    starts less than ``slot_duration`` minutes before or after ``time``.

    Only start times are compared; every slot is assumed to last
    ``slot_duration`` minutes.
    """
    wanted_table = _text(table_id)
    target_date = normalize_date(date)
    target = time_to_minutes(time)

    for b in records:
        if b.is_cancelled:
            continue
        if _text(b.table_id) != wanted_table:
            continue
        if normalize_date(b.date) != target_date:
            continue

        # An unparseable existing time compares as -1, like any other start
        existing = time_to_minutes(b.time)
        if abs(target - existing) < slot_duration:
            return False
    return True


def is_employee_booked(records: Iterable[BookingRecord], emp_no: Any, date: Any, time: Any) -> bool:
    """
    An employee may hold one active booking per day and *literal* time string.

    Unlike the table check the time is not normalized: "06:00 PM" and
    "6:00 PM" are different slots here.
    """
    emp = _text(emp_no).lower().strip()
    target_date = normalize_date(date)

    for b in records:
        if b.is_cancelled:
            continue
        same_emp = _text(b.emp_no).lower().strip() == emp
        same_date = normalize_date(b.date) == target_date
        same_time = b.time == time
        if same_emp and same_date and same_time:
            return True
    return False
