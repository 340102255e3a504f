from fastapi import HTTPException, Request, status
import time
from typing import Optional, Dict, Tuple
import asyncio
from app.core.config import settings

class RateLimiter:
    """In-memory sliding-window rate limiter keyed by client IP and path"""
    def __init__(self, window_seconds: int = 60):
        self.window_seconds = window_seconds
        self.requests: Dict[Tuple[str, str], list] = {}  # (ip, path) -> [timestamps]
        self._cleanup_task: Optional[asyncio.Task] = None

    def _prune(self, now: float) -> None:
        for key in list(self.requests.keys()):
            self.requests[key] = [
                ts for ts in self.requests[key]
                if now - ts < self.window_seconds
            ]
            if not self.requests[key]:
                del self.requests[key]

    async def _cleanup_old_requests(self):
        """Periodically cleanup old request records"""
        while True:
            self._prune(time.time())
            await asyncio.sleep(self.window_seconds)

    def start_cleanup(self):
        """Start the cleanup task"""
        if not self._cleanup_task:
            self._cleanup_task = asyncio.create_task(self._cleanup_old_requests())

    def stop_cleanup(self):
        """Stop the cleanup task"""
        if self._cleanup_task:
            self._cleanup_task.cancel()
            self._cleanup_task = None

    def limit_for(self, path: str) -> int:
        """Auth endpoints get the stricter limit"""
        if path.startswith(f"{settings.API_V1_STR}/auth/"):
            return settings.AUTH_RATE_LIMIT
        return settings.API_RATE_LIMIT

    def is_rate_limited(self, client_ip: str, path: str, now: float | None = None) -> bool:
        """Record a request and report whether it exceeds the limit"""
        now = time.time() if now is None else now
        key = (client_ip, path)

        window_start = now - self.window_seconds
        recent = [ts for ts in self.requests.get(key, []) if ts > window_start]
        recent.append(now)
        self.requests[key] = recent

        return len(recent) > self.limit_for(path)

# Global rate limiter instance
limiter = RateLimiter()

async def rate_limit_dependency(request: Request):
    """FastAPI dependency for rate limiting"""
    client_ip = request.client.host if request.client else "unknown"
    if limiter.is_rate_limited(client_ip, request.url.path):
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Rate limit exceeded. Please try again later.",
            headers={"Retry-After": str(limiter.window_seconds)}
        )
    return True
