from tablebook.schemas.booking import (
    BookingType, BookingRecord, BookingCreate, BookingPatch,
    BOOKING_HEADERS, STATUS_CONFIRMED, STATUS_CANCELLED,
)
from tablebook.schemas.common import OperationResult
from tablebook.schemas.user import UserCreate, UserLogin, AuthResult
