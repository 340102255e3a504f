from datetime import datetime
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.refresh_token import RefreshToken

async def create_refresh_token(
    db: AsyncSession,
    *,
    token: str,
    user_id: int,
    expires_at: datetime
) -> RefreshToken:
    """Persist an issued refresh token"""
    db_token = RefreshToken(token=token, user_id=user_id, expires_at=expires_at)
    db.add(db_token)
    await db.commit()
    await db.refresh(db_token)
    return db_token

async def get_refresh_token(db: AsyncSession, *, token: str) -> RefreshToken | None:
    result = await db.execute(select(RefreshToken).where(RefreshToken.token == token))
    return result.scalar_one_or_none()

async def delete_refresh_tokens_by_token(db: AsyncSession, *, token: str) -> int:
    """Delete every record with this exact token string; returns the row count"""
    result = await db.execute(delete(RefreshToken).where(RefreshToken.token == token))
    await db.commit()
    return result.rowcount or 0

async def delete_refresh_tokens_by_user(db: AsyncSession, *, user_id: int) -> int:
    """Delete all refresh tokens owned by a user; returns the row count"""
    result = await db.execute(delete(RefreshToken).where(RefreshToken.user_id == user_id))
    await db.commit()
    return result.rowcount or 0
