from fastapi import APIRouter, Depends, status

from app.api.deps import get_auth_service
from app.api.v1.errors import unwrap
from app.schemas.auth import (
    LoginRequest,
    LoginResponse,
    LogoutRequest,
    MessageResponse,
    RefreshRequest,
    RegisterRequest,
    RegisterResponse,
    ResetPasswordRequest,
)
from app.schemas.token import AccessToken
from app.services.auth import AuthService

router = APIRouter(
    prefix="/auth",
    tags=["Authentication"],
    responses={
        400: {"description": "Invalid input"},
        401: {"description": "Authentication failed"},
        500: {"description": "Internal server error"}
    }
)

@router.post(
    "/register",
    status_code=status.HTTP_201_CREATED,
    response_model=RegisterResponse,
    summary="Register new user",
    description="""
    Register a new user and start a session.

    The endpoint performs the following:
    * Validates email syntax, password length (min 6) and a non-blank name
    * Rejects emails that are already registered
    * Securely hashes the password
    * Returns an access token, a refresh token and the public user view
    """,
    responses={
        201: {
            "description": "User successfully created",
            "content": {
                "application/json": {
                    "example": {
                        "message": "User registered successfully",
                        "accessToken": "eyJ0eXAiOiJKV1QiLCJhbGciOiJIUzI1...",
                        "refreshToken": "eyJ0eXAiOiJKV1QiLCJhbGciOiJIUzI1...",
                        "user": {"id": 1, "email": "a@x.com", "name": "Ann"}
                    }
                }
            }
        },
        409: {
            "description": "Email already registered",
            "content": {
                "application/json": {
                    "example": {"detail": "User with this email already exists"}
                }
            }
        }
    }
)
async def register(
    *,
    service: AuthService = Depends(get_auth_service),
    user_in: RegisterRequest
) -> RegisterResponse:
    """
    Register a new user with the following information:

    - **email**: Unique email address
    - **password**: At least 6 characters
    - **name**: Display name
    """
    session = unwrap(await service.register(user_in.email, user_in.password, user_in.name))
    return RegisterResponse(
        access_token=session.access_token,
        refresh_token=session.refresh_token,
        user=session.user
    )

@router.post(
    "/login",
    response_model=LoginResponse,
    summary="Login for a token pair",
    description="""
    Authenticates a user and returns an access token and a refresh token.

    Each login starts an independent session; sessions on other devices
    stay valid.
    """,
    responses={
        401: {
            "description": "Invalid credentials",
            "content": {
                "application/json": {
                    "example": {"detail": "Invalid email or password"}
                }
            }
        }
    }
)
async def login(
    *,
    service: AuthService = Depends(get_auth_service),
    credentials: LoginRequest
) -> LoginResponse:
    session = unwrap(await service.login(credentials.email, credentials.password))
    return LoginResponse(
        access_token=session.access_token,
        refresh_token=session.refresh_token,
        user=session.user
    )

@router.post(
    "/refresh",
    response_model=AccessToken,
    summary="Refresh access token",
    description="""
    Get a new access token using a refresh token issued at login or
    registration. The refresh token itself is not rotated.
    """,
    responses={
        200: {
            "description": "New access token",
            "content": {
                "application/json": {
                    "example": {"accessToken": "eyJ0eXAiOiJKV1QiLCJhbGciOiJIUzI1..."}
                }
            }
        },
        401: {
            "description": "Invalid or expired refresh token",
            "content": {
                "application/json": {
                    "example": {"detail": "Invalid or expired refresh token"}
                }
            }
        }
    }
)
async def refresh_token(
    payload: RefreshRequest | None = None,
    service: AuthService = Depends(get_auth_service)
) -> AccessToken:
    return unwrap(await service.refresh(payload.refresh_token if payload else None))

@router.post(
    "/logout",
    response_model=MessageResponse,
    summary="Logout user",
    description="""
    Revoke the session behind the given refresh token. Succeeds whether or
    not the token exists; the client should discard both tokens.
    """
)
async def logout(
    payload: LogoutRequest | None = None,
    service: AuthService = Depends(get_auth_service)
) -> MessageResponse:
    unwrap(await service.logout(payload.refresh_token if payload else None))
    return MessageResponse(message="Logout successful")

@router.post(
    "/reset-password",
    response_model=MessageResponse,
    summary="Reset password",
    description="""
    Set a new password for the account with the given email. All existing
    sessions of that user are revoked, so every device must log in again.
    """,
    responses={
        404: {
            "description": "No user with this email",
            "content": {
                "application/json": {
                    "example": {"detail": "User not found"}
                }
            }
        }
    }
)
async def reset_password(
    *,
    service: AuthService = Depends(get_auth_service),
    reset_in: ResetPasswordRequest
) -> MessageResponse:
    unwrap(await service.reset_password(reset_in.email, reset_in.new_password))
    return MessageResponse(message="Password reset successful. Please login with your new password.")
