from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Mapping, Optional
from pydantic import BaseModel, field_validator
from datetime import datetime


class BookingType(str, Enum):
    FOOD = "FOOD"       # food order only, no table held
    TABLE = "TABLE"
    BOTH = "BOTH"


STATUS_CONFIRMED = "Confirmed"
STATUS_CANCELLED = "Cancelled"

# Column order of the booking table: attribute -> header
BOOKING_HEADERS: Dict[str, str] = {
    "ref": "Booking Ref",
    "emp_no": "Employee No",
    "name": "Customer Name",
    "phone": "Phone",
    "email": "Email",
    "table": "Table No.",
    "table_id": "Table ID",
    "date": "Date",
    "time": "Time",
    "guests": "Guests",
    "guest_orders": "Guest Orders",
    "special": "Special Requests",
    "type": "Booking Type",
    "status": "Status",
    "submitted_at": "Submitted At",
}

# Fields a patch may overwrite. The reference and the server timestamp are
# not patchable; any other key is ignored.
UPDATABLE_FIELDS = tuple(
    attr for attr in BOOKING_HEADERS if attr not in ("ref", "submitted_at")
)
_FIELD_ALIASES: Dict[str, str] = {
    **{attr: attr for attr in UPDATABLE_FIELDS},
    **{BOOKING_HEADERS[attr]: attr for attr in UPDATABLE_FIELDS},
}

_TEXT_FIELDS = ("ref", "emp_no", "phone", "table", "table_id", "date", "time")


def _number_to_text(v):
    # Employee numbers, phones and table ids often arrive as JSON numbers
    if isinstance(v, (int, float)) and not isinstance(v, bool):
        return str(v)
    return v


def resolve_field(key: str) -> Optional[str]:
    """Map a header ("Customer Name") or attribute ("name") to an updatable attribute."""
    return _FIELD_ALIASES.get(str(key).strip())


# ---------------------------------------------------------------------------
# Stored record
# ---------------------------------------------------------------------------

class BookingRecord(BaseModel):
    ref: Optional[str] = None
    emp_no: Optional[str] = None
    name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    table: Optional[str] = None
    table_id: Optional[str] = None
    date: Optional[str] = None
    time: Optional[str] = None
    guests: Optional[int] = None
    guest_orders: Optional[str] = None
    special: Optional[str] = None
    type: str = BookingType.BOTH.value
    status: Optional[str] = None
    submitted_at: Optional[datetime] = None

    class Config:
        from_attributes = True

    @field_validator(*_TEXT_FIELDS, mode="before")
    @classmethod
    def coerce_text(cls, v):
        return _number_to_text(v)

    @property
    def is_cancelled(self) -> bool:
        return self.status == STATUS_CANCELLED


# ---------------------------------------------------------------------------
# Create payload (POST /bookings)
# ---------------------------------------------------------------------------

class BookingCreate(BaseModel):
    ref: Optional[str] = None
    emp_no: Optional[str] = None
    name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    table: Optional[str] = None
    table_id: Optional[str] = None
    date: Optional[str] = None
    time: Optional[str] = None
    guests: Optional[int] = None
    guest_dishes: Optional[List[str]] = None
    menu: Optional[str] = None
    special: Optional[str] = None
    type: Optional[BookingType] = None

    @field_validator(*_TEXT_FIELDS, mode="before")
    @classmethod
    def coerce_text(cls, v):
        return _number_to_text(v)

    @field_validator("type", mode="before")
    @classmethod
    def parse_empty_type_to_none(cls, v):
        if v == "":
            return None
        return v

    @property
    def booking_type(self) -> BookingType:
        return self.type or BookingType.BOTH

    @property
    def guest_orders(self) -> str:
        if self.guest_dishes:
            return " | ".join(self.guest_dishes)
        return self.menu or ""


# ---------------------------------------------------------------------------
# Partial update (GET /bookings?action=update&data=...)
# ---------------------------------------------------------------------------

class BookingPatch(BaseModel):
    emp_no: Optional[str] = None
    name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    table: Optional[str] = None
    table_id: Optional[str] = None
    date: Optional[str] = None
    time: Optional[str] = None
    guests: Optional[int] = None
    guest_orders: Optional[str] = None
    special: Optional[str] = None
    type: Optional[BookingType] = None
    status: Optional[str] = None

    @field_validator(*[f for f in _TEXT_FIELDS if f != "ref"], mode="before")
    @classmethod
    def coerce_text(cls, v):
        return _number_to_text(v)

    @field_validator("type", mode="before")
    @classmethod
    def require_type(cls, v):
        # The booking type column is never empty
        if v is None or v == "":
            raise ValueError("Booking Type cannot be empty")
        return v

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "BookingPatch":
        """Build a patch from header- or attribute-keyed data, dropping unknown keys."""
        known = {}
        for key, value in data.items():
            attr = resolve_field(key)
            if attr is not None:
                known[attr] = value
        return cls.model_validate(known)

    def changes(self) -> Dict[str, Any]:
        """Only the fields the caller actually sent, in column order."""
        sent = self.model_fields_set
        changes = {attr: getattr(self, attr) for attr in UPDATABLE_FIELDS if attr in sent}
        if "type" in changes:
            changes["type"] = changes["type"].value
        return changes
