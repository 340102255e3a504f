from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.errors import unwrap
from app.core.config import settings
from app.core.security import PasswordHasher, TokenCodec, get_password_hasher, get_token_codec
from app.db.database import get_db
from app.schemas.token import TokenPayload
from app.services.auth import AuthService, authenticate_access_token
from app.services.credential_store import DatabaseCredentialStore

# auto_error is off so a missing header fails the same way as a bad token
oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{settings.API_V1_STR}/auth/login", auto_error=False)

async def get_auth_service(
    db: AsyncSession = Depends(get_db),
    hasher: PasswordHasher = Depends(get_password_hasher),
    codec: TokenCodec = Depends(get_token_codec)
) -> AuthService:
    """Build the auth service for a single request"""
    return AuthService(DatabaseCredentialStore(db), hasher, codec)

async def get_current_identity(
    token: str | None = Depends(oauth2_scheme),
    codec: TokenCodec = Depends(get_token_codec)
) -> TokenPayload:
    """Dependency that resolves the caller from a bearer access token"""
    return unwrap(authenticate_access_token(codec, token))
