from datetime import datetime, timedelta, UTC
from functools import lru_cache
from typing import Any
from uuid import uuid4
from passlib.context import CryptContext
from jose import jwt, JWTError

from app.core.config import settings
from app.core.exceptions import InvalidTokenError
from app.schemas.token import TokenPayload

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"

class PasswordHasher:
    """Salted one-way password hashing backed by bcrypt"""

    def __init__(self, rounds: int = settings.PASSWORD_HASH_ROUNDS):
        self._context = CryptContext(
            schemes=["bcrypt"],
            deprecated="auto",
            bcrypt__rounds=rounds
        )

    def hash(self, password: str) -> str:
        """Hash a password"""
        return self._context.hash(password)

    def verify(self, password: str, hashed_password: str) -> bool:
        """Verify a password against its hash in constant time"""
        return self._context.verify(password, hashed_password)

    def dummy_verify(self, password: str) -> bool:
        """Spend the time of a real verify when there is no stored hash; always False"""
        self._context.dummy_verify()
        return False

class TokenCodec:
    """
    Signs and verifies the two JWT kinds used for sessions.

    Access and refresh tokens are signed with different secrets and carry a
    ``type`` claim, so a token of one kind never verifies as the other.
    Every token gets a random ``jti`` which keeps tokens minted within the
    same second distinct.
    """

    def __init__(
        self,
        access_secret: str,
        refresh_secret: str,
        algorithm: str = "HS256",
        access_expires: timedelta = timedelta(minutes=15),
        refresh_expires: timedelta = timedelta(days=7)
    ):
        self.access_secret = access_secret
        self.refresh_secret = refresh_secret
        self.algorithm = algorithm
        self.access_expires = access_expires
        self.refresh_expires = refresh_expires

    def _encode(self, payload: TokenPayload, token_type: str, secret: str, expires_delta: timedelta) -> str:
        now = datetime.now(UTC)
        to_encode: dict[str, Any] = {
            "sub": str(payload.user_id),
            "email": payload.email,
            "type": token_type,
            "iat": now,
            "exp": now + expires_delta,
            "jti": uuid4().hex,
        }
        return jwt.encode(to_encode, secret, algorithm=self.algorithm)

    def _decode(self, token: str, token_type: str, secret: str) -> TokenPayload:
        try:
            claims = jwt.decode(token, secret, algorithms=[self.algorithm])
        except JWTError as exc:
            raise InvalidTokenError("Could not validate token") from exc

        if claims.get("type") != token_type:
            raise InvalidTokenError(f"Expected {token_type} token")

        try:
            return TokenPayload(user_id=int(claims["sub"]), email=claims["email"])
        except (KeyError, TypeError, ValueError) as exc:
            raise InvalidTokenError("Malformed token payload") from exc

    def sign_access(self, payload: TokenPayload) -> str:
        """Create a short-lived access token"""
        return self._encode(payload, ACCESS_TOKEN_TYPE, self.access_secret, self.access_expires)

    def sign_refresh(self, payload: TokenPayload) -> str:
        """Create a refresh token"""
        return self._encode(payload, REFRESH_TOKEN_TYPE, self.refresh_secret, self.refresh_expires)

    def verify_access(self, token: str) -> TokenPayload:
        return self._decode(token, ACCESS_TOKEN_TYPE, self.access_secret)

    def verify_refresh(self, token: str) -> TokenPayload:
        return self._decode(token, REFRESH_TOKEN_TYPE, self.refresh_secret)

@lru_cache
def get_password_hasher() -> PasswordHasher:
    return PasswordHasher(rounds=settings.PASSWORD_HASH_ROUNDS)

@lru_cache
def get_token_codec() -> TokenCodec:
    return TokenCodec(
        access_secret=settings.JWT_SECRET_KEY,
        refresh_secret=settings.JWT_REFRESH_SECRET_KEY,
        algorithm=settings.JWT_ALGORITHM,
        access_expires=timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
        refresh_expires=timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS)
    )
