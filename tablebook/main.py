import logging

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from tablebook.db.init_db import create_database
from tablebook.db.base import Base
from tablebook.db.session import engine
from tablebook.core.config import settings
from tablebook.api.v1.router import api_router
from tablebook.schemas.common import OperationResult

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: Ensure DB exists and create tables
    create_database()
    Base.metadata.create_all(bind=engine)
    logger.info(
        "Booking store=%s lock=%s slot=%dmin",
        settings.BOOKING_STORE, settings.LOCK_BACKEND, settings.SLOT_DURATION_MINUTES,
    )
    yield


from fastapi.middleware.cors import CORSMiddleware

app = FastAPI(title=settings.PROJECT_NAME, lifespan=lifespan)

# Set all CORS enabled origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    # Malformed bodies get the same envelope as every other failure
    errors = exc.errors()
    message = "Invalid request"
    if errors:
        loc = ".".join(str(p) for p in errors[0].get("loc", ()) if p != "body")
        message = f"Invalid {loc or 'request'}: {errors[0].get('msg')}"
    result = OperationResult.failure(message, "validation")
    return JSONResponse(
        status_code=422,
        content=jsonable_encoder(result, exclude_none=True),
    )


app.include_router(api_router, prefix=settings.API_V1_STR)

@app.get("/")
def read_root():
    return {"Hello": "Spice Garden"}
