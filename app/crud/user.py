from datetime import datetime, UTC
from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import DuplicateEmailError
from app.models.user import User

async def get_user_by_email(db: AsyncSession, *, email: str) -> User | None:
    """Get a user by email (exact match)"""
    result = await db.execute(select(User).where(User.email == email))
    return result.scalar_one_or_none()

async def create_user(db: AsyncSession, *, email: str, hashed_password: str, name: str) -> User:
    """Create a new user"""
    db_user = User(
        email=email,
        hashed_password=hashed_password,
        name=name,
    )
    db.add(db_user)
    try:
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        raise DuplicateEmailError(email) from e
    await db.refresh(db_user)
    return db_user

async def update_user_password(db: AsyncSession, *, user_id: int, hashed_password: str) -> None:
    """Overwrite a user's password hash"""
    await db.execute(
        update(User)
        .where(User.id == user_id)
        .values(hashed_password=hashed_password, updated_at=datetime.now(UTC))
    )
    await db.commit()
