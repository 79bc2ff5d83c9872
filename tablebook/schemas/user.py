from typing import Optional
from pydantic import BaseModel, field_validator


def _strip(v):
    if isinstance(v, (int, float)) and not isinstance(v, bool):
        v = str(v)
    if isinstance(v, str):
        return v.strip()
    return v


# Properties to receive via API on registration (POST /auth/register)
class UserCreate(BaseModel):
    name: str = ""
    mobile: str = ""
    password: str = ""

    @field_validator("name", "mobile", "password", mode="before")
    @classmethod
    def strip_value(cls, v):
        return _strip(v) if v is not None else ""


# Properties to receive via API on login (POST /auth/login)
class UserLogin(BaseModel):
    mobile: str = ""
    password: str = ""

    @field_validator("mobile", "password", mode="before")
    @classmethod
    def strip_value(cls, v):
        return _strip(v) if v is not None else ""


class AuthResult(BaseModel):
    success: bool
    name: Optional[str] = None
    mobile: Optional[str] = None
    error: Optional[str] = None
    error_code: Optional[str] = None
