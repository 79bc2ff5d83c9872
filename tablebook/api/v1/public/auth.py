import logging

from fastapi import APIRouter, Depends, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from tablebook.db.session import get_db
from tablebook.core.security import get_password_hash, verify_password
from tablebook.models.user import User
from tablebook.schemas.user import AuthResult, UserCreate, UserLogin

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


def _fail(message: str, error_code: str, status_code: int) -> JSONResponse:
    result = AuthResult(success=False, error=message, error_code=error_code)
    return JSONResponse(status_code=status_code, content=jsonable_encoder(result, exclude_none=True))


@router.post("/register", response_model=AuthResult, response_model_exclude_none=True,
             status_code=status.HTTP_201_CREATED)
def register(body: UserCreate, db: Session = Depends(get_db)):
    if not body.name or not body.mobile or not body.password:
        return _fail("Name, Mobile and Password are required.", "validation",
                     status.HTTP_400_BAD_REQUEST)

    if db.query(User).filter(User.mobile == body.mobile).first():
        return _fail("Mobile number already registered.", "conflict", status.HTTP_409_CONFLICT)

    user = User(
        name=body.name,
        mobile=body.mobile,
        password_hash=get_password_hash(body.password),
    )
    try:
        db.add(user)
        db.commit()
    except IntegrityError:
        # Unique constraint on mobile caught a concurrent registration
        db.rollback()
        return _fail("Mobile number already registered.", "conflict", status.HTTP_409_CONFLICT)

    logger.info("Registered user %s", body.mobile)
    return AuthResult(success=True, name=user.name, mobile=user.mobile)


@router.post("/login", response_model=AuthResult, response_model_exclude_none=True)
def login(body: UserLogin, db: Session = Depends(get_db)):
    if not body.mobile or not body.password:
        return _fail("Mobile and Password are required.", "validation",
                     status.HTTP_400_BAD_REQUEST)

    user = db.query(User).filter(User.mobile == body.mobile).first()
    if not user or not verify_password(body.password, user.password_hash):
        return _fail("Invalid mobile or password.", "unauthorized", status.HTTP_401_UNAUTHORIZED)

    return AuthResult(success=True, name=user.name, mobile=user.mobile)
