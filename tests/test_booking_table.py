import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from tablebook.core.errors import StoreError
from tablebook.db.base import Base
from tablebook.db.booking_table import (
    NOT_FOUND,
    InMemoryBookingTable,
    ScanDirection,
    SqlBookingTable,
    mark_phone,
)
from tablebook.schemas.booking import BookingRecord


@pytest.fixture
def sql_table():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield SqlBookingTable(sessionmaker(autocommit=False, autoflush=False, bind=engine))
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(params=["memory", "sql"])
def booking_table(request):
    if request.param == "memory":
        return InMemoryBookingTable()
    return request.getfixturevalue("sql_table")


def _record(ref, **fields):
    return BookingRecord(ref=ref, emp_no="E1", table_id="T1", date="2024-06-01",
                         time="06:00 PM", status="Confirmed", **fields)


def test_mark_phone():
    assert mark_phone("98765") == "'98765"
    assert mark_phone("'98765") == "'98765"
    assert mark_phone(98765) == "'98765"
    assert mark_phone("") == ""
    assert mark_phone(None) is None


def test_append_and_read_keep_order(booking_table):
    for ref in ("A", "B", "C"):
        booking_table.append_record(_record(ref))

    assert [r.ref for r in booking_table.read_all_records()] == ["A", "B", "C"]
    assert booking_table.count() == 3


def test_phone_marker_is_not_part_of_the_read_value(booking_table):
    booking_table.append_record(_record("A", phone=mark_phone("0098765")))
    assert booking_table.read_all_records()[0].phone == "0098765"


def test_find_by_reference_in_both_directions(booking_table):
    for ref in ("A", "B", "A"):
        booking_table.append_record(_record(ref))

    assert booking_table.find_row_index_by_reference("A") == 0
    assert booking_table.find_row_index_by_reference("A", ScanDirection.BOTTOM_UP) == 2
    assert booking_table.find_row_index_by_reference("Z") == NOT_FOUND


def test_overwrite_field_and_read_back(booking_table):
    booking_table.append_record(_record("A"))
    booking_table.append_record(_record("B"))

    booking_table.overwrite_field(1, "status", "Cancelled")
    booking_table.overwrite_field(1, "guests", 6)

    record = booking_table.read_record_at_index(1)
    assert record.status == "Cancelled"
    assert record.guests == 6
    assert booking_table.read_record_at_index(0).status == "Confirmed"


def test_delete_row_at_index(booking_table):
    for ref in ("A", "B", "C"):
        booking_table.append_record(_record(ref))

    booking_table.delete_row_at_index(1)
    assert [r.ref for r in booking_table.read_all_records()] == ["A", "C"]


def test_out_of_range_and_unknown_column_raise_store_error(booking_table):
    booking_table.append_record(_record("A"))

    with pytest.raises(StoreError):
        booking_table.read_record_at_index(5)
    with pytest.raises(StoreError):
        booking_table.delete_row_at_index(-1)
    with pytest.raises(StoreError):
        booking_table.overwrite_field(0, "colour", "red")


def test_booking_service_on_sql_table(sql_table):
    from tablebook.core.locking import ThreadLockCoordinator
    from tablebook.services.booking_service import BookingService

    service = BookingService(sql_table, ThreadLockCoordinator())
    base = {"emp_no": "E1", "name": "Asha", "phone": "98765", "table_id": "T5",
            "date": "2024-06-01"}

    assert service.create({**base, "ref": "R1", "time": "06:00 PM"}).success
    assert service.create({**base, "ref": "R2", "emp_no": "E2", "time": "07:30 PM"}).error_code == "conflict"
    assert service.create({**base, "ref": "R3", "time": "09:00 PM"}).success

    assert service.update_fields("R3", {"Phone": "555"}).success
    assert service.cancel("R1").success
    assert service.delete("R3").success

    [record] = service.list_all().bookings
    assert record.ref == "R1"
    assert record.status == "Cancelled"
    assert record.phone == "98765"
