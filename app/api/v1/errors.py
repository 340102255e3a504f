from typing import TypeVar
from fastapi import status

from app.core.exceptions import CustomException
from app.core.result import ErrorKind, Failure, Result

T = TypeVar("T")

STATUS_BY_KIND = {
    ErrorKind.VALIDATION: status.HTTP_400_BAD_REQUEST,
    ErrorKind.CONFLICT: status.HTTP_409_CONFLICT,
    ErrorKind.AUTHENTICATION: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.INTERNAL: status.HTTP_500_INTERNAL_SERVER_ERROR,
}

def failure_to_exception(failure: Failure) -> CustomException:
    """Translate a service failure into the HTTP error raised by a route"""
    error = failure.error
    headers = None
    if error.kind is ErrorKind.AUTHENTICATION:
        headers = {"WWW-Authenticate": "Bearer"}
    return CustomException(
        detail=error.message,
        status_code=STATUS_BY_KIND[error.kind],
        headers=headers,
        errors=error.details or None
    )

def unwrap(result: Result[T]) -> T:
    """Return the success value or raise the mapped HTTP error"""
    if isinstance(result, Failure):
        raise failure_to_exception(result)
    return result.value
