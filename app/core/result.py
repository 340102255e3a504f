"""
Explicit success/failure values returned by the auth service.

Every service operation returns either ``Success(value)`` or
``Failure(error)``; callers branch on the type instead of catching
exceptions. The HTTP layer turns a ``Failure`` into a response in one place
(see ``app.api.v1.errors``).
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Generic, TypeVar, Union

T = TypeVar("T")

class ErrorKind(str, Enum):
    """Kinds of failure an auth operation can report"""
    VALIDATION = "validation"
    CONFLICT = "conflict"
    AUTHENTICATION = "authentication"
    NOT_FOUND = "not_found"
    INTERNAL = "internal"

@dataclass(frozen=True)
class AuthError:
    kind: ErrorKind
    message: str
    details: list[dict[str, Any]] = field(default_factory=list)

@dataclass(frozen=True)
class Success(Generic[T]):
    value: T

@dataclass(frozen=True)
class Failure:
    error: AuthError

    @property
    def kind(self) -> ErrorKind:
        return self.error.kind

Result = Union[Success[T], Failure]

def fail(kind: ErrorKind, message: str, details: list[dict[str, Any]] | None = None) -> Failure:
    """Shorthand for building a ``Failure``"""
    return Failure(AuthError(kind=kind, message=message, details=details or []))
