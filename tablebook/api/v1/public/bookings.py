import json
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from tablebook.api.deps import get_booking_service
from tablebook.core.errors import ValidationError
from tablebook.schemas.booking import BookingCreate
from tablebook.schemas.common import OperationResult
from tablebook.services.booking_service import BookingService

router = APIRouter(prefix="/bookings", tags=["Bookings"])

# error_code -> HTTP status; the body is always the same envelope
ERROR_STATUS = {
    "validation": status.HTTP_400_BAD_REQUEST,
    "not_found": status.HTTP_404_NOT_FOUND,
    "conflict": status.HTTP_409_CONFLICT,
    "busy": status.HTTP_503_SERVICE_UNAVAILABLE,
    "store": status.HTTP_500_INTERNAL_SERVER_ERROR,
}

ACTIONS = ("all", "today", "history", "update", "status", "cancel", "delete")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _respond(result: OperationResult, success_status: int = status.HTTP_200_OK) -> JSONResponse:
    if result.success:
        status_code = success_status
    else:
        status_code = ERROR_STATUS.get(result.error_code, status.HTTP_400_BAD_REQUEST)
    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(result, exclude_none=True),
    )


def _invalid(message: str) -> JSONResponse:
    err = ValidationError(message)
    return _respond(OperationResult.failure(err.message, err.code))


# ---------------------------------------------------------------------------
# POST /bookings — create a booking
# ---------------------------------------------------------------------------


@router.post(
    "/",
    response_model=OperationResult,
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
)
def create_booking(
    data: BookingCreate,
    service: BookingService = Depends(get_booking_service),
):
    """
    Book a table (and/or a food order) for a date and time slot.

    - **409** when the table or the employee's slot is already taken.
    - **503** when the booking lock could not be acquired; retry later.
    """
    return _respond(service.create(data), status.HTTP_201_CREATED)


# ---------------------------------------------------------------------------
# GET /bookings?action= — listings and by-reference mutations
# ---------------------------------------------------------------------------


@router.get("/", response_model=OperationResult, response_model_exclude_none=True)
def booking_action(
    action: str = Query("all", description="all, today, history, update, status, cancel, delete"),
    ref: Optional[str] = Query(None, description="Booking reference for update/status/cancel/delete"),
    new_status: Optional[str] = Query(None, alias="status"),
    data: Optional[str] = Query(None, description="JSON object of fields to update"),
    date: Optional[str] = Query(None, description="Day for action=today (YYYY-MM-DD)"),
    time: Optional[str] = Query(None, description="Current time for action=today (HH:MM)"),
    phone: Optional[str] = None,
    emp: Optional[str] = None,
    service: BookingService = Depends(get_booking_service),
):
    if action not in ACTIONS:
        return _invalid(f"Unknown action: {action}")

    if action == "update":
        try:
            fields = json.loads(data or "{}")
        except json.JSONDecodeError:
            return _invalid("Invalid update data")
        if not isinstance(fields, dict):
            return _invalid("Invalid update data")
        return _respond(service.update_fields(ref, fields))

    if action == "status":
        return _respond(service.update_status(ref, new_status))

    if action == "cancel":
        return _respond(service.cancel(ref))

    if action == "delete":
        return _respond(service.delete(ref))

    if action == "today":
        return _respond(service.list_for_date(date, time))

    if action == "history":
        return _respond(service.history(phone=phone, emp=emp))

    return _respond(service.list_all())
