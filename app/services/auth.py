"""
Authentication and session-token lifecycle.

``AuthService`` is built from an explicit credential store, password hasher
and token codec, and every public method returns a ``Result``. Nothing in
here knows about HTTP; ``app.api.v1.errors`` maps failures onto responses.

Sessions are refresh tokens persisted by the store. A refresh token is only
honoured while both its signature and its stored record are unexpired, and
revoking a session means deleting the record. Logging in never revokes
sessions on other devices; resetting a password revokes all of them.
"""
from datetime import datetime, UTC
from typing import Any, Callable, Type, TypeVar
from jose.exceptions import JOSEError
from pydantic import BaseModel, ValidationError

from app.core.exceptions import DuplicateEmailError, InvalidTokenError, StoreError
from app.core.logging import auth_logger
from app.core.result import ErrorKind, Failure, Result, Success, fail
from app.core.security import PasswordHasher, TokenCodec
from app.schemas.auth import LoginRequest, RegisterRequest, ResetPasswordRequest, validation_details
from app.schemas.token import AccessToken, SessionTokens, TokenPayload
from app.schemas.user import PublicUser
from app.services.credential_store import CredentialStore, UserRecord

INVALID_CREDENTIALS = "Invalid email or password"
INVALID_REFRESH_TOKEN = "Invalid or expired refresh token"
INVALID_ACCESS_TOKEN = "Could not validate credentials"
EMAIL_TAKEN = "User with this email already exists"
USER_NOT_FOUND = "User not found"
INTERNAL_ERROR = "Internal server error"

# Failures of the store, hasher or codec that are not the caller's fault
_INTERNAL_ERRORS = (StoreError, JOSEError, ValueError, TypeError)

SchemaT = TypeVar("SchemaT", bound=BaseModel)

def utcnow() -> datetime:
    return datetime.now(UTC)

def _validate(schema: Type[SchemaT], **data: Any) -> Success[SchemaT] | Failure:
    try:
        return Success(schema.model_validate(data))
    except ValidationError as e:
        details = validation_details(e.errors())
        message = details[0]["message"] if details else "Invalid input"
        return fail(ErrorKind.VALIDATION, message, details)

def _public(user: UserRecord) -> PublicUser:
    return PublicUser(id=user.id, email=user.email, name=user.name)

class AuthService:
    """Registration, login, refresh, logout and password reset"""

    def __init__(
        self,
        store: CredentialStore,
        hasher: PasswordHasher,
        codec: TokenCodec,
        clock: Callable[[], datetime] = utcnow
    ):
        self.store = store
        self.hasher = hasher
        self.codec = codec
        self.clock = clock

    def _internal(self, operation: str, exc: Exception) -> Failure:
        auth_logger.error(
            f"{operation} failed",
            extra={"error": str(exc), "error_type": exc.__class__.__name__},
            exc_info=exc
        )
        return fail(ErrorKind.INTERNAL, INTERNAL_ERROR)

    async def _start_session(self, user: UserRecord) -> SessionTokens:
        """Mint a token pair and persist the refresh token"""
        payload = TokenPayload(user_id=user.id, email=user.email)
        access_token = self.codec.sign_access(payload)
        refresh_token = self.codec.sign_refresh(payload)
        expires_at = self.clock() + self.codec.refresh_expires
        await self.store.create_refresh_token(refresh_token, user.id, expires_at)
        return SessionTokens(access_token=access_token, refresh_token=refresh_token, user=_public(user))

    async def register(self, email: str, password: str, name: str) -> Result[SessionTokens]:
        """
        Create an account and start its first session.

        Fails with CONFLICT when the email is already registered, including
        when a concurrent registration wins the race at the store.
        """
        checked = _validate(RegisterRequest, email=email, password=password, name=name)
        if isinstance(checked, Failure):
            return checked
        data = checked.value

        try:
            if await self.store.find_user_by_email(data.email) is not None:
                return fail(ErrorKind.CONFLICT, EMAIL_TAKEN)

            hashed_password = self.hasher.hash(data.password)
            user = await self.store.create_user(data.email, hashed_password, data.name)
            # Not atomic with user creation; a failure here leaves the user
            # without a session.
            session = await self._start_session(user)
        except DuplicateEmailError:
            return fail(ErrorKind.CONFLICT, EMAIL_TAKEN)
        except _INTERNAL_ERRORS as e:
            return self._internal("Registration", e)

        auth_logger.info("User registered", extra={"user_id": user.id})
        return Success(session)

    async def login(self, email: str, password: str) -> Result[SessionTokens]:
        """
        Check credentials and start a new session.

        Unknown email and wrong password produce the same failure.
        """
        checked = _validate(LoginRequest, email=email, password=password)
        if isinstance(checked, Failure):
            return checked
        data = checked.value

        try:
            user = await self.store.find_user_by_email(data.email)
            if user is None:
                # Same bcrypt cost as a wrong password
                self.hasher.dummy_verify(data.password)
                auth_logger.warning("Login failed: unknown email", extra={"email": data.email})
                return fail(ErrorKind.AUTHENTICATION, INVALID_CREDENTIALS)

            if not self.hasher.verify(data.password, user.hashed_password):
                auth_logger.warning("Login failed: wrong password", extra={"user_id": user.id})
                return fail(ErrorKind.AUTHENTICATION, INVALID_CREDENTIALS)

            session = await self._start_session(user)
        except _INTERNAL_ERRORS as e:
            return self._internal("Login", e)

        auth_logger.info("Login successful", extra={"user_id": user.id})
        return Success(session)

    async def refresh(self, refresh_token: str | None) -> Result[AccessToken]:
        """
        Exchange a refresh token for a new access token.

        The refresh token itself is neither rotated nor re-persisted.
        """
        if not refresh_token:
            return fail(ErrorKind.VALIDATION, "Refresh token is required")

        try:
            payload = self.codec.verify_refresh(refresh_token)
        except InvalidTokenError:
            return fail(ErrorKind.AUTHENTICATION, INVALID_REFRESH_TOKEN)

        try:
            record = await self.store.find_refresh_token(refresh_token)
            if (
                record is None
                or record.user_id != payload.user_id
                or record.expires_at < self.clock()
            ):
                return fail(ErrorKind.AUTHENTICATION, INVALID_REFRESH_TOKEN)

            access_token = self.codec.sign_access(
                TokenPayload(user_id=payload.user_id, email=payload.email)
            )
        except _INTERNAL_ERRORS as e:
            return self._internal("Token refresh", e)

        return Success(AccessToken(access_token=access_token))

    async def logout(self, refresh_token: str | None = None) -> Result[int]:
        """End the session behind ``refresh_token``; returns how many records went away"""
        if not refresh_token:
            return Success(0)

        try:
            deleted = await self.store.delete_refresh_tokens_by_token(refresh_token)
        except _INTERNAL_ERRORS as e:
            return self._internal("Logout", e)

        auth_logger.info("Logout", extra={"revoked": deleted})
        return Success(deleted)

    async def reset_password(self, email: str, new_password: str) -> Result[int]:
        """
        Replace a user's password and revoke every one of their sessions.

        Returns the number of refresh tokens revoked.
        """
        checked = _validate(ResetPasswordRequest, email=email, new_password=new_password)
        if isinstance(checked, Failure):
            return checked
        data = checked.value

        try:
            user = await self.store.find_user_by_email(data.email)
            if user is None:
                return fail(ErrorKind.NOT_FOUND, USER_NOT_FOUND)

            hashed_password = self.hasher.hash(data.new_password)
            await self.store.update_user_password(user.id, hashed_password)
            revoked = await self.store.delete_refresh_tokens_by_user(user.id)
        except _INTERNAL_ERRORS as e:
            return self._internal("Password reset", e)

        auth_logger.info("Password reset", extra={"user_id": user.id, "revoked": revoked})
        return Success(revoked)

    def authenticate(self, access_token: str | None) -> Result[TokenPayload]:
        """Extract the caller's identity from an access token"""
        return authenticate_access_token(self.codec, access_token)

def authenticate_access_token(codec: TokenCodec, access_token: str | None) -> Result[TokenPayload]:
    """
    Identity check for request handlers.

    Access tokens are verified by signature and expiry alone, so this needs
    the codec but no credential store.
    """
    if not access_token:
        return fail(ErrorKind.AUTHENTICATION, INVALID_ACCESS_TOKEN)
    try:
        return Success(codec.verify_access(access_token))
    except InvalidTokenError:
        return fail(ErrorKind.AUTHENTICATION, INVALID_ACCESS_TOKEN)
