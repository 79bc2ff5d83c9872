import os

# Settings are read at import time; point them at throwaway backends first.
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["BOOKING_STORE"] = "memory"
os.environ["LOCK_BACKEND"] = "thread"

from datetime import datetime
from zoneinfo import ZoneInfo

import pytest

from tablebook.core.locking import ThreadLockCoordinator
from tablebook.db.booking_table import InMemoryBookingTable
from tablebook.services.booking_service import BookingService

IST = ZoneInfo("Asia/Kolkata")
NOW = datetime(2024, 6, 1, 19, 0, tzinfo=IST)


@pytest.fixture
def table():
    return InMemoryBookingTable()


@pytest.fixture
def coordinator():
    return ThreadLockCoordinator()


@pytest.fixture
def service(table, coordinator):
    return BookingService(
        table,
        coordinator,
        create_timeout=2.0,
        mutation_timeout=2.0,
        timezone="Asia/Kolkata",
        clock=lambda: NOW,
    )


@pytest.fixture
def make_payload():
    def _make(**overrides):
        payload = {
            "ref": "SG-1001",
            "emp_no": "E100",
            "name": "Asha Rao",
            "phone": "9876543210",
            "email": "asha@example.com",
            "table": "Table 5",
            "table_id": "T5",
            "date": "2024-06-01",
            "time": "06:00 PM",
            "guests": 4,
            "guest_dishes": ["Paneer Tikka", "Dal Makhani"],
            "special": "Window seat",
            "type": "BOTH",
        }
        payload.update(overrides)
        return payload

    return _make


@pytest.fixture
def now():
    return NOW
