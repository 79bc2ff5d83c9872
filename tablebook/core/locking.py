"""
Process-wide exclusion lock for booking read-modify-write sequences.

Every mutating booking operation runs inside ``coordinator.hold(timeout)``.
Acquisition waits at most ``timeout`` seconds (capped by ``max_wait``); when
the wait expires the caller gets ``BusyError`` instead of queueing. The lock
is released on every exit path of the ``with`` block.
"""
import logging
import threading
import time
from contextlib import contextmanager

from sqlalchemy import text

from tablebook.core.errors import BusyError

logger = logging.getLogger(__name__)

DEFAULT_MAX_WAIT_SECONDS = 60.0


class ExclusionCoordinator:
    """Bounded-wait advisory lock: Unlocked -> Locked -> Unlocked."""

    def __init__(self, max_wait: float = DEFAULT_MAX_WAIT_SECONDS):
        self.max_wait = max_wait

    def _bounded(self, timeout: float) -> float:
        return min(max(0.0, float(timeout)), self.max_wait)

    def try_acquire(self, timeout: float) -> bool:
        raise NotImplementedError

    def release(self) -> None:
        raise NotImplementedError

    @contextmanager
    def hold(self, timeout: float):
        if not self.try_acquire(timeout):
            logger.warning("Booking lock not acquired within %.1fs.", timeout)
            raise BusyError()
        try:
            yield
        finally:
            self.release()


class ThreadLockCoordinator(ExclusionCoordinator):
    """One lock shared by every worker thread of this process."""

    def __init__(self, max_wait: float = DEFAULT_MAX_WAIT_SECONDS):
        super().__init__(max_wait)
        self._lock = threading.Lock()

    def try_acquire(self, timeout: float) -> bool:
        return self._lock.acquire(timeout=self._bounded(timeout))

    def release(self) -> None:
        self._lock.release()

    @property
    def locked(self) -> bool:
        return self._lock.locked()


class PostgresAdvisoryLockCoordinator(ExclusionCoordinator):
    """
    Session-level PostgreSQL advisory lock, shared by every process that
    talks to the same database with the same ``key``.

    The lock lives on a dedicated connection held for the whole critical
    section; ``pg_try_advisory_lock`` is polled until the deadline.
    """

    def __init__(self, engine, key: int, poll_interval: float = 0.1,
                 max_wait: float = DEFAULT_MAX_WAIT_SECONDS):
        super().__init__(max_wait)
        self.engine = engine
        self.key = key
        self.poll_interval = poll_interval
        self._conn = None

    def try_acquire(self, timeout: float) -> bool:
        deadline = time.monotonic() + self._bounded(timeout)
        conn = self.engine.connect()
        try:
            while True:
                acquired = conn.execute(
                    text("SELECT pg_try_advisory_lock(:key)"), {"key": self.key}
                ).scalar()
                conn.commit()
                if acquired:
                    self._conn = conn
                    return True
                if time.monotonic() >= deadline:
                    break
                time.sleep(self.poll_interval)
        except Exception:
            conn.close()
            raise
        conn.close()
        return False

    def release(self) -> None:
        conn, self._conn = self._conn, None
        if conn is None:
            return
        try:
            conn.execute(text("SELECT pg_advisory_unlock(:key)"), {"key": self.key})
            conn.commit()
        except Exception:
            # Dropping the session drops its advisory locks
            conn.invalidate()
            raise
        finally:
            conn.close()
