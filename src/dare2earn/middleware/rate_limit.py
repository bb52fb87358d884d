"""Redis-backed fixed-window rate limiting middleware.

Credential endpoints get their own, much smaller budget so password guessing
cannot borrow from the general API allowance.
"""

import time
from typing import Any

import structlog
from redis.exceptions import RedisError
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from dare2earn.redis_client import get_redis, redis_enabled

logger = structlog.get_logger()

# Paths exempt from rate limiting
_EXEMPT_PATHS = frozenset({"/health", "/ready"})

_CREDENTIAL_PATHS = frozenset({"/auth/signin", "/auth/signup", "/auth/change-password"})


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Rate limit requests per client IP and route group."""

    def __init__(
        self,
        app: Any,  # noqa: ANN401
        requests_per_window: int = 100,
        auth_requests_per_window: int = 10,
        window_seconds: int = 60,
    ) -> None:
        super().__init__(app)
        self.requests_per_window = requests_per_window
        self.auth_requests_per_window = auth_requests_per_window
        self.window_seconds = window_seconds

    def _limit_for(self, path: str) -> tuple[str, int]:
        if path in _CREDENTIAL_PATHS:
            return "auth", self.auth_requests_per_window
        return "api", self.requests_per_window

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        """Count the request against its window; 429 once the budget is spent."""
        path = request.url.path
        if path in _EXEMPT_PATHS or not redis_enabled():
            return await call_next(request)

        group, limit = self._limit_for(path)
        client_ip = request.client.host if request.client else "unknown"
        window = int(time.time()) // self.window_seconds
        rate_key = f"ratelimit:{group}:{client_ip}:{window}"

        try:
            pipe = get_redis().pipeline()
            pipe.incr(rate_key)
            pipe.expire(rate_key, self.window_seconds + 1)
            results: list[Any] = await pipe.execute()
        except RedisError:
            logger.warning("rate_limit_unavailable", path=path)
            return await call_next(request)

        current_count: int = results[0]
        if current_count > limit:
            return JSONResponse(
                status_code=429,
                content={"detail": "Rate limit exceeded. Try again later."},
                headers={
                    "Retry-After": str(self.window_seconds),
                    "X-RateLimit-Remaining": "0",
                    "X-RateLimit-Limit": str(limit),
                },
            )

        response = await call_next(request)
        response.headers["X-RateLimit-Remaining"] = str(max(0, limit - current_count))
        response.headers["X-RateLimit-Limit"] = str(limit)
        return response
