"""Simple in-memory rate limiting for ServerMod API endpoints."""

import time
from typing import Final

from fastapi import Request, status
from fastapi.responses import JSONResponse

from .logging_config import get_logger
from .request_utils import get_client_ip, is_api_request, is_password_reproof_request

logger = get_logger(__name__)

_WINDOW_SECONDS: Final = 60


class RateLimitExceededError(Exception):
    """Raised when a client exceeds the limit of a bucket."""

    def __init__(self, limit: int, limit_type: str, current_requests: int):
        self.limit = limit
        self.limit_type = limit_type
        self.current_requests = current_requests
        self.retry_after = _WINDOW_SECONDS
        super().__init__(f"Rate limit exceeded for {limit_type} requests")


class RateLimiter:
    """In-memory sliding window limiter, one window per client IP and bucket."""

    def __init__(self):
        self._requests: dict[tuple[str, str], list[float]] = {}
        self._last_sweep = time.time()
        # Requests per minute
        self._limits: dict[str, int] = {
            "general": 100,
            "write": 30,
            "sensitive": 10,  # password re-proof, slows down guessing
        }
        self._enabled: bool = True

    def disable(self) -> None:
        """Disable rate limiting (for testing)."""
        self._enabled = False

    def enable(self) -> None:
        self._enabled = True

    def reset(self) -> None:
        """Reset all rate limiting data."""
        self._requests.clear()

    def set_limits_for_testing(self, **limits: int) -> dict[str, int]:
        """Set rate limits for testing purposes. Returns original limits."""
        original = self._limits.copy()
        for limit_type, value in limits.items():
            if limit_type in self._limits:
                self._limits[limit_type] = value
        return original

    def restore_limits(self, original_limits: dict[str, int]) -> None:
        """Restore original rate limits after testing."""
        self._limits.update(original_limits)

    def get_rate_limit_info(self, request: Request) -> tuple[int, int, int]:
        """Get rate limit information for a request.

        Returns:
            Tuple of (limit, remaining, reset_time)
        """
        key, limit = self._bucket_for(request)
        remaining = max(0, limit - len(self._clean_old_requests(key)))
        reset_time = int(time.time()) + _WINDOW_SECONDS

        return limit, remaining, reset_time

    def _clean_old_requests(self, key: tuple[str, str]) -> list[float]:
        """Drop timestamps outside the window; a key with none left is removed."""
        cutoff_time = time.time() - _WINDOW_SECONDS
        recent = [
            timestamp
            for timestamp in self._requests.get(key, [])
            if timestamp > cutoff_time
        ]
        if recent:
            self._requests[key] = recent
        else:
            self._requests.pop(key, None)
        return recent

    def _sweep(self) -> None:
        """Evict idle clients, at most once per window."""
        now = time.time()
        if now - self._last_sweep < _WINDOW_SECONDS:
            return
        self._last_sweep = now
        for key in list(self._requests):
            self._clean_old_requests(key)

    def _limit_type_for(self, request: Request) -> str:
        if is_password_reproof_request(request):
            return "sensitive"
        if request.method in ("POST", "PUT", "DELETE", "PATCH"):
            return "write"
        return "general"

    def _bucket_for(self, request: Request) -> tuple[tuple[str, str], int]:
        limit_type = self._limit_type_for(request)
        return (get_client_ip(request), limit_type), self._limits[limit_type]

    def check_rate_limit(self, request: Request) -> None:
        """Record the request, or raise if its bucket is exhausted.

        Raises:
            RateLimitExceededError: If the client is over the limit
        """
        if not self._enabled:
            return

        self._sweep()
        key, limit = self._bucket_for(request)
        current_requests = len(self._clean_old_requests(key))

        if current_requests >= limit:
            logger.warning(
                "Rate limit exceeded",
                client_ip=key[0],
                limit_type=key[1],
                path=request.url.path,
            )
            raise RateLimitExceededError(limit, key[1], current_requests)

        self._requests.setdefault(key, []).append(time.time())


# Global rate limiter instance
rate_limiter = RateLimiter()


async def rate_limit_middleware(request: Request, call_next):
    """Rate limiting middleware for FastAPI."""
    if is_api_request(request):
        try:
            rate_limiter.check_rate_limit(request)
        except RateLimitExceededError as e:
            return JSONResponse(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                content={
                    "type": "/problems/rate-limited",
                    "title": "Too Many Requests",
                    "status": status.HTTP_429_TOO_MANY_REQUESTS,
                    "detail": str(e),
                    "instance": str(request.url.path),
                    "code": "rate_limited",
                    "limit": e.limit,
                    "limit_type": e.limit_type,
                    "retry_after": e.retry_after,
                },
                headers={"Retry-After": str(e.retry_after)},
            )

    response = await call_next(request)

    if is_api_request(request):
        limit, remaining, reset_time = rate_limiter.get_rate_limit_info(request)

        response.headers["X-RateLimit-Limit"] = str(limit)
        response.headers["X-RateLimit-Remaining"] = str(remaining)
        response.headers["X-RateLimit-Reset"] = str(reset_time)

    return response
