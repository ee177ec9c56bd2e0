import logging
import math
import time
from typing import Callable, Dict, Tuple

from fastapi import Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)

RATE_LIMIT_MAX_REQUESTS = 100
RATE_LIMIT_WINDOW_SECONDS = 60


class FixedWindowRateLimiter:
    """
    Counts hits per client key inside a fixed time window.

    All counters reset together when the window rolls over.
    """

    def __init__(
        self,
        max_requests: int = RATE_LIMIT_MAX_REQUESTS,
        window_seconds: float = RATE_LIMIT_WINDOW_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.clock = clock
        self._window_start = clock()
        self._hits: Dict[str, int] = {}

    def hit(self, key: str) -> Tuple[bool, int, int]:
        """
        Record a hit for ``key``.

        Returns:
            tuple: (allowed, remaining, seconds until the window resets)
        """
        now = self.clock()
        if now - self._window_start >= self.window_seconds:
            self._window_start = now
            self._hits.clear()

        count = self._hits.get(key, 0) + 1
        self._hits[key] = count
        remaining = max(self.max_requests - count, 0)
        reset_after = max(math.ceil(self._window_start + self.window_seconds - now), 0)
        return count <= self.max_requests, remaining, reset_after

    def reset(self) -> None:
        """Start a new window with all counters cleared."""
        self._window_start = self.clock()
        self._hits.clear()


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Applies a FixedWindowRateLimiter to requests under ``path_prefix``, keyed by client host."""

    def __init__(self, app, limiter: FixedWindowRateLimiter, path_prefix: str = "/api/"):
        super().__init__(app)
        self.limiter = limiter
        self.path_prefix = path_prefix

    async def dispatch(self, request: Request, call_next):
        if not request.url.path.startswith(self.path_prefix):
            return await call_next(request)

        client_host = request.client.host if request.client else "unknown"
        allowed, remaining, reset_after = self.limiter.hit(client_host)
        headers = {
            "RateLimit-Limit": str(self.limiter.max_requests),
            "RateLimit-Remaining": str(remaining),
            "RateLimit-Reset": str(reset_after),
        }

        if not allowed:
            logger.warning(f"Rate limit exceeded for {client_host} on {request.url.path}")
            headers["Retry-After"] = str(reset_after)
            return JSONResponse(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                content={"error": "Too many requests, please try again later."},
                headers=headers,
            )

        response = await call_next(request)
        response.headers.update(headers)
        return response
