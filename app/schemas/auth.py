from typing import Annotated, Any, Sequence
from pydantic import AfterValidator, Field, field_validator
from pydantic.networks import validate_email
from pydantic_core import PydanticCustomError

from app.core.config import settings
from .base import BaseSchema
from .user import PublicUser

def _check_email(value: str) -> str:
    # Syntax check only; the address is stored exactly as submitted.
    # validate_email strips surrounding whitespace and accepts "Name <addr>"
    # forms; both would store something other than the checked address.
    if value != value.strip() or "<" in value or ">" in value:
        raise ValueError("Valid email is required")
    try:
        validate_email(value)
    except (PydanticCustomError, ValueError):
        raise ValueError("Valid email is required")
    return value

def _check_password(value: str) -> str:
    if len(value) < settings.MIN_PASSWORD_LENGTH:
        raise ValueError(f"Password must be at least {settings.MIN_PASSWORD_LENGTH} characters")
    return value

EmailAddress = Annotated[str, AfterValidator(_check_email)]
NewPassword = Annotated[str, AfterValidator(_check_password)]

class RegisterRequest(BaseSchema):
    """Schema for user registration"""
    email: EmailAddress
    password: NewPassword
    name: str

    @field_validator("name")
    def name_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Name is required")
        return v

class LoginRequest(BaseSchema):
    """Schema for user login"""
    email: EmailAddress
    password: str = Field(..., min_length=1)

class RefreshRequest(BaseSchema):
    refresh_token: str | None = None

class LogoutRequest(BaseSchema):
    refresh_token: str | None = None

class ResetPasswordRequest(BaseSchema):
    """Schema for password reset"""
    email: EmailAddress
    new_password: NewPassword

class RegisterResponse(BaseSchema):
    message: str = "User registered successfully"
    access_token: str
    refresh_token: str
    user: PublicUser

class LoginResponse(BaseSchema):
    message: str = "Login successful"
    access_token: str
    refresh_token: str
    user: PublicUser

class MessageResponse(BaseSchema):
    message: str

def validation_details(errors: Sequence[Any]) -> list[dict[str, Any]]:
    """Flatten pydantic error dicts into ``{"field", "message"}`` pairs"""
    details = []
    for error in errors:
        loc = [str(part) for part in error.get("loc", ()) if part != "body"]
        message = error.get("msg", "Invalid value")
        # pydantic prefixes messages raised from validators
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        details.append({"field": ".".join(loc), "message": message})
    return details
