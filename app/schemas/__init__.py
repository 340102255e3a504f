from .base import BaseSchema
from .user import PublicUser
from .token import TokenPayload, AccessToken, SessionTokens
from .auth import (
    RegisterRequest,
    LoginRequest,
    RefreshRequest,
    LogoutRequest,
    ResetPasswordRequest,
    RegisterResponse,
    LoginResponse,
    MessageResponse,
)

__all__ = [
    "BaseSchema",
    "PublicUser",
    "TokenPayload",
    "AccessToken",
    "SessionTokens",
    "RegisterRequest",
    "LoginRequest",
    "RefreshRequest",
    "LogoutRequest",
    "ResetPasswordRequest",
    "RegisterResponse",
    "LoginResponse",
    "MessageResponse",
]
