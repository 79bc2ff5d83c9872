from functools import lru_cache

from tablebook.core.config import settings
from tablebook.core.locking import (
    ExclusionCoordinator,
    PostgresAdvisoryLockCoordinator,
    ThreadLockCoordinator,
)
from tablebook.db.booking_table import InMemoryBookingTable, SqlBookingTable
from tablebook.db.session import SessionLocal, engine
from tablebook.services.booking_service import BookingService


def build_coordinator() -> ExclusionCoordinator:
    if settings.LOCK_BACKEND == "postgres":
        return PostgresAdvisoryLockCoordinator(engine, settings.LOCK_KEY)
    return ThreadLockCoordinator()


@lru_cache
def get_booking_service() -> BookingService:
    """One service per process: every request shares the same table handle and lock."""
    if settings.BOOKING_STORE == "memory":
        table = InMemoryBookingTable()
    else:
        table = SqlBookingTable(SessionLocal)

    return BookingService(
        table,
        build_coordinator(),
        create_timeout=settings.CREATE_LOCK_TIMEOUT_SECONDS,
        mutation_timeout=settings.MUTATION_LOCK_TIMEOUT_SECONDS,
        slot_duration=settings.SLOT_DURATION_MINUTES,
        timezone=settings.TIMEZONE,
    )
