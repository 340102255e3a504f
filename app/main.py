from fastapi import FastAPI, Depends, status
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel
import logging
from contextlib import asynccontextmanager

from app.core.config import settings
from app.api.v1.api import api_router
from app.core.error_handler import setup_error_handlers
from app.core.logging import RequestLoggingMiddleware, setup_logging
from app.core.middleware import SecurityHeadersMiddleware
from app.core.rate_limit import rate_limit_dependency, limiter
from app.db.database import dispose_db, init_db

setup_logging()
logger = logging.getLogger(__name__)

class WelcomeResponse(BaseModel):
    message: str

class HealthResponse(BaseModel):
    status: str
    version: str

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Handle startup and shutdown events.
    """
    logger.info("Starting up application...")
    await init_db()
    limiter.start_cleanup()

    yield

    logger.info("Shutting down application...")
    limiter.stop_cleanup()
    await dispose_db()

app = FastAPI(
    title=settings.PROJECT_NAME,
    description="""
    Task Manager API - authentication backend for the task manager client.

    ## Authentication

    * `POST /auth/register` and `POST /auth/login` return an access token and
      a refresh token
    * Send the access token as `Authorization: Bearer <token>`
    * Exchange the refresh token at `POST /auth/refresh` when the access
      token expires (15 minutes by default)
    * Refresh tokens stay valid for 7 days unless revoked by logout or a
      password reset

    ## Error Handling

    * 400: Bad Request - Invalid input
    * 401: Unauthorized - Bad credentials or invalid token
    * 404: Not Found - Unknown user
    * 409: Conflict - Email already registered
    * 429: Too Many Requests - Rate limit exceeded
    * 500: Internal Server Error - Server-side error
    """,
    version=settings.VERSION,
    openapi_url=f"{settings.API_V1_STR}/openapi.json",
    docs_url=f"{settings.API_V1_STR}/docs" if settings.SHOW_DOCS else None,
    redoc_url=f"{settings.API_V1_STR}/redoc" if settings.SHOW_DOCS else None,
    dependencies=[Depends(rate_limit_dependency)],  # Apply rate limiting to all routes
    lifespan=lifespan
)

# Add CORS middleware
if settings.BACKEND_CORS_ORIGINS:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[str(origin).rstrip("/") for origin in settings.BACKEND_CORS_ORIGINS],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

# Add security headers middleware
if settings.SECURITY_HEADERS:
    app.add_middleware(SecurityHeadersMiddleware)

app.add_middleware(RequestLoggingMiddleware)

setup_error_handlers(app)

app.include_router(api_router, prefix=settings.API_V1_STR)

@app.get(
    "/",
    response_model=WelcomeResponse,
    status_code=status.HTTP_200_OK,
    summary="Root endpoint",
    description="Welcome endpoint for the API"
)
async def root() -> WelcomeResponse:
    """Root endpoint returning a welcome message."""
    return WelcomeResponse(message="Welcome to Task Manager API")

@app.get(
    "/health",
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
    summary="Health check"
)
async def health() -> HealthResponse:
    return HealthResponse(status="ok", version=settings.VERSION)
