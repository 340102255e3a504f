from fastapi import status
from typing import Any

class StoreError(Exception):
    """Raised when the credential store cannot complete an operation."""

class DuplicateEmailError(StoreError):
    """Raised when a user with the same email already exists in the store."""
    def __init__(self, email: str):
        self.email = email
        super().__init__(f"User with email {email!r} already exists")

class InvalidTokenError(Exception):
    """Raised when a token fails signature, expiry, type or payload checks."""

class CustomException(Exception):
    """Base class for exceptions rendered directly as HTTP responses."""
    def __init__(
        self,
        detail: str | dict[str, Any] = "An error occurred",
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        headers: dict[str, str] | None = None,
        errors: list[dict[str, Any]] | None = None
    ) -> None:
        self.detail = detail
        self.status_code = status_code
        self.headers = headers
        self.errors = errors
        super().__init__(detail)
