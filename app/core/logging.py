import logging
import sys
from datetime import datetime, UTC
from typing import Any, Dict
from uuid import uuid4
from pythonjsonlogger.jsonlogger import JsonFormatter
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from app.core.config import settings
import time

LOGGER_NAMES = [
    "api.request",
    "api.auth",
    "db",
    "uvicorn"
]

class CustomJsonFormatter(JsonFormatter):
    """Custom JSON formatter for logs."""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        """Add custom fields to the log record."""
        super().add_fields(log_record, record, message_dict)

        log_record["timestamp"] = datetime.now(UTC).isoformat()
        log_record["level"] = record.levelname
        log_record["name"] = record.name

        # Code location
        log_record["function"] = record.funcName
        log_record["module"] = record.module
        log_record["line"] = record.lineno

        log_record["environment"] = settings.ENVIRONMENT

        # Request context if available
        if hasattr(record, "request_id"):
            log_record["request_id"] = record.request_id
        if hasattr(record, "user_id"):
            log_record["user_id"] = record.user_id
        if hasattr(record, "duration"):
            log_record["duration"] = record.duration

def setup_logging(level: str | None = None, propagate: bool = False) -> None:
    """Configure logging for the application.

    In development logs are written as plain text to stdout, elsewhere as
    JSON. Tests call this with ``propagate=True`` so that caplog sees
    records emitted on the named loggers.
    """
    level = (level or settings.LOG_LEVEL).upper()

    handler = logging.StreamHandler(sys.stdout)
    if settings.ENVIRONMENT.lower() == "development":
        handler.setFormatter(logging.Formatter("%(asctime)s - %(levelname)s - %(name)s - %(message)s"))
    else:
        handler.setFormatter(CustomJsonFormatter())

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    for existing in root_logger.handlers[:]:
        root_logger.removeHandler(existing)
    root_logger.addHandler(handler)

    for logger_name in LOGGER_NAMES:
        logger = logging.getLogger(logger_name)
        logger.setLevel(level)
        logger.propagate = propagate
        for existing in logger.handlers[:]:
            logger.removeHandler(existing)
        if not propagate:
            logger.addHandler(handler)

class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Middleware for logging HTTP requests."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = request.headers.get("X-Request-ID") or str(uuid4())
        start_time = time.time()
        request.state.request_id = request_id

        extra = {
            "request_id": request_id,
            "method": request.method,
            "path": request.url.path,
        }
        request_logger.info("Incoming request", extra=extra)

        try:
            response = await call_next(request)
        except Exception as e:
            extra["duration"] = time.time() - start_time
            extra["error_type"] = e.__class__.__name__
            request_logger.exception(f"{e.__class__.__name__} occurred", extra=extra)
            raise

        extra["duration"] = time.time() - start_time
        extra["status_code"] = response.status_code
        request_logger.info("Request completed", extra=extra)

        response.headers["X-Request-ID"] = request_id
        return response

# Create specific loggers
request_logger = logging.getLogger("api.request")
auth_logger = logging.getLogger("api.auth")
db_logger = logging.getLogger("db")
