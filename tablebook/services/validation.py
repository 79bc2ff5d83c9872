from dataclasses import dataclass
from typing import Optional

from tablebook.schemas.booking import BookingCreate
from tablebook.utils.timeparse import UNPARSEABLE, time_to_minutes


@dataclass
class ValidationResult:
    valid: bool
    error: Optional[str] = None


def validate_booking(candidate: BookingCreate) -> ValidationResult:
    """Structural checks run before any conflict check or write."""
    if not candidate.emp_no:
        return ValidationResult(False, "Missing Employee No")
    if not candidate.name:
        return ValidationResult(False, "Missing Name")
    if not candidate.date:
        return ValidationResult(False, "Missing Date")
    if not candidate.time:
        return ValidationResult(False, "Missing Time")
    if time_to_minutes(candidate.time) == UNPARSEABLE:
        return ValidationResult(False, "Invalid Time")
    return ValidationResult(True)
