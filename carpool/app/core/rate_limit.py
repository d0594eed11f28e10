"""
Rate limiting for the public auth endpoints (register / login).

Fixed window per client IP, counted by slowapi in Redis. While Redis is
unreachable slowapi logs the failure, switches to its in-process fallback
(which carries no auth limits) and lets requests through until Redis answers
again.
"""

from fastapi import Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from carpool.app.core.config import settings
from carpool.app.core.exceptions import RateLimitExceededError, app_exception_handler

limiter = Limiter(
    key_func=get_remote_address,
    storage_uri=settings.rate_limit_storage_uri or settings.redis_url,
    strategy="fixed-window",
    key_prefix="ratelimit",
    in_memory_fallback_enabled=True,
    swallow_errors=True,
)


def auth_rate_limit() -> str:
    """Read on every request so limit changes apply without a restart."""
    return f"{settings.auth_rate_limit} per {settings.auth_rate_window_seconds} seconds"


async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Render slowapi's 429 as the standard error payload with ``Retry-After``."""
    retry_after = exc.limit.limit.get_expiry() if exc.limit else settings.auth_rate_window_seconds
    return await app_exception_handler(request, RateLimitExceededError(retry_after=retry_after))
