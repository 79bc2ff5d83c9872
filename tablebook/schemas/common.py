from typing import List, Optional
from pydantic import BaseModel

from tablebook.schemas.booking import BookingRecord


# Uniform result envelope — every booking operation returns one of these,
# including busy and conflict failures.
class OperationResult(BaseModel):
    success: bool
    ref: Optional[str] = None
    status: Optional[str] = None
    booking: Optional[BookingRecord] = None
    bookings: Optional[List[BookingRecord]] = None
    active: Optional[List[str]] = None
    error: Optional[str] = None
    error_code: Optional[str] = None

    @classmethod
    def failure(cls, error: str, error_code: str) -> "OperationResult":
        return cls(success=False, error=error, error_code=error_code)
