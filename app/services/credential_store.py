"""
Credential store contract used by the auth service, and its SQLAlchemy
implementation.

The service only sees plain records, never ORM instances, so an in-memory
store can stand in for the database in tests.
"""
from dataclasses import dataclass
from datetime import datetime, UTC
from typing import Protocol
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import StoreError
from app.core.logging import db_logger
from app.crud import refresh_token as crud_refresh_token
from app.crud import user as crud_user

@dataclass(frozen=True)
class UserRecord:
    id: int
    email: str
    hashed_password: str
    name: str

@dataclass(frozen=True)
class RefreshTokenRecord:
    token: str
    user_id: int
    expires_at: datetime

class CredentialStore(Protocol):
    """Persistence operations the auth service depends on.

    Implementations raise ``DuplicateEmailError`` from ``create_user`` when
    the email is taken and ``StoreError`` for any other backend failure.
    """

    async def find_user_by_email(self, email: str) -> UserRecord | None: ...

    async def create_user(self, email: str, hashed_password: str, name: str) -> UserRecord: ...

    async def update_user_password(self, user_id: int, hashed_password: str) -> None: ...

    async def create_refresh_token(self, token: str, user_id: int, expires_at: datetime) -> None: ...

    async def find_refresh_token(self, token: str) -> RefreshTokenRecord | None: ...

    async def delete_refresh_tokens_by_token(self, token: str) -> int: ...

    async def delete_refresh_tokens_by_user(self, user_id: int) -> int: ...

def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes even for timezone-aware columns
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)

class DatabaseCredentialStore:
    """Credential store backed by an async SQLAlchemy session"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def find_user_by_email(self, email: str) -> UserRecord | None:
        try:
            user = await crud_user.get_user_by_email(self.db, email=email)
        except SQLAlchemyError as e:
            raise StoreError("Failed to look up user") from e
        if user is None:
            return None
        return UserRecord(id=user.id, email=user.email, hashed_password=user.hashed_password, name=user.name)

    async def create_user(self, email: str, hashed_password: str, name: str) -> UserRecord:
        try:
            user = await crud_user.create_user(self.db, email=email, hashed_password=hashed_password, name=name)
        except SQLAlchemyError as e:
            raise StoreError("Failed to create user") from e
        db_logger.info("User created", extra={"user_id": user.id})
        return UserRecord(id=user.id, email=user.email, hashed_password=user.hashed_password, name=user.name)

    async def update_user_password(self, user_id: int, hashed_password: str) -> None:
        try:
            await crud_user.update_user_password(self.db, user_id=user_id, hashed_password=hashed_password)
        except SQLAlchemyError as e:
            raise StoreError("Failed to update password") from e

    async def create_refresh_token(self, token: str, user_id: int, expires_at: datetime) -> None:
        try:
            await crud_refresh_token.create_refresh_token(
                self.db, token=token, user_id=user_id, expires_at=expires_at
            )
        except SQLAlchemyError as e:
            raise StoreError("Failed to persist refresh token") from e

    async def find_refresh_token(self, token: str) -> RefreshTokenRecord | None:
        try:
            record = await crud_refresh_token.get_refresh_token(self.db, token=token)
        except SQLAlchemyError as e:
            raise StoreError("Failed to look up refresh token") from e
        if record is None:
            return None
        return RefreshTokenRecord(
            token=record.token,
            user_id=record.user_id,
            expires_at=_as_utc(record.expires_at)
        )

    async def delete_refresh_tokens_by_token(self, token: str) -> int:
        try:
            return await crud_refresh_token.delete_refresh_tokens_by_token(self.db, token=token)
        except SQLAlchemyError as e:
            raise StoreError("Failed to delete refresh token") from e

    async def delete_refresh_tokens_by_user(self, user_id: int) -> int:
        try:
            return await crud_refresh_token.delete_refresh_tokens_by_user(self.db, user_id=user_id)
        except SQLAlchemyError as e:
            raise StoreError("Failed to delete refresh tokens") from e
