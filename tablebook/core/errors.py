"""
Error taxonomy for booking operations.

Operations raise these internally; the service boundary turns each one into
a ``{success: false, error, error_code}`` envelope so nothing escapes to the
transport layer as an unhandled fault.
"""


class BookingError(Exception):
    """Base class for every expected booking failure."""

    code = "error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(BookingError):
    """A required field is missing or the time slot cannot be parsed."""

    code = "validation"


class ConflictError(BookingError):
    """The table or the employee is already booked for the slot."""

    code = "conflict"


class NotFoundError(BookingError):
    """No row carries the requested booking reference."""

    code = "not_found"


class BusyError(BookingError):
    """The exclusion lock was not acquired before the timeout."""

    code = "busy"

    def __init__(self, message: str = "System busy. Please try again in a moment."):
        super().__init__(message)


class StoreError(BookingError):
    """The underlying table failed unexpectedly."""

    code = "store"
