
from fastapi import APIRouter

# Auth
from tablebook.api.v1.public.auth import router as auth_router

# Bookings
from tablebook.api.v1.public.bookings import router as bookings_router

api_router = APIRouter()

# --- Auth ---
api_router.include_router(auth_router)

# --- Bookings ---
api_router.include_router(bookings_router)
