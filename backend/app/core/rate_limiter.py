"""
Rate Limiting for CEG Connect API
=================================
Implements rate limiting using slowapi and its `limits` backend, in memory
or backed by Redis.

- Every /api route: RATE_LIMIT_DEFAULT (100 per 15 minutes) per client,
  applied as a router dependency. Authenticated routers key on the user id,
  public ones (health, auth) on the IP address.
- /api/auth/send-otp: OTP_SEND_RATE_LIMIT (mail abuse protection)
"""

import time

from fastapi import Depends, Request
from fastapi.responses import JSONResponse
from limits import parse
from limits.storage import storage_from_string
from limits.strategies import FixedWindowRateLimiter
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from app.core.config import settings
from app.core.exceptions import RateLimitedError
from app.core.logging_config import logger
from app.modules.auth.dependencies import get_current_user
from app.schemas.auth import AuthenticatedUser


def get_user_identifier(request: Request) -> str:
    """
    Get rate limit key for the caller.

    Priority:
    1. Authenticated user id (set by the auth dependency)
    2. IP address
    """
    user_id = getattr(request.state, 'user_id', None)
    if user_id:
        return f"user:{user_id}"

    return f"ip:{get_remote_address(request)}"


def _retry_after_seconds(exc: RateLimitExceeded) -> int:
    limit = getattr(exc, "limit", None)
    try:
        return int(limit.limit.get_expiry())
    except (AttributeError, TypeError, ValueError):
        return 60


def _too_many_requests(retry_after: int) -> JSONResponse:
    return JSONResponse(
        status_code=429,
        content={
            "message": "Too many requests from this IP, please try again later.",
            "code": "RATE_LIMITED",
            "retryAfterSeconds": retry_after,
        },
        headers={"Retry-After": str(retry_after)}
    )


# Create limiter instance (per-route limits such as send-otp)
limiter = Limiter(
    key_func=get_user_identifier,
    storage_uri=settings.RATE_LIMIT_STORAGE_URI,
    strategy="fixed-window",
    enabled=settings.RATE_LIMIT_ENABLED,
)


class DefaultRateLimit:
    """RATE_LIMIT_DEFAULT counted per caller key in a fixed window"""

    NAMESPACE = "default"

    def __init__(self, limit_value: str, storage_uri: str):
        self.item = parse(limit_value)
        self.window = FixedWindowRateLimiter(storage_from_string(storage_uri))

    def hit(self, key: str) -> None:
        if not settings.RATE_LIMIT_ENABLED:
            return
        if self.window.hit(self.item, self.NAMESPACE, key):
            return

        reset_at, _ = self.window.get_window_stats(self.item, self.NAMESPACE, key)
        retry_after = max(1, int(reset_at - time.time()))
        logger.warning(f"[RateLimit] Default limit {self.item} exceeded for {key}")
        raise RateLimitedError(retry_after)


default_rate_limit = DefaultRateLimit(settings.RATE_LIMIT_DEFAULT, settings.RATE_LIMIT_STORAGE_URI)


def limit_by_ip(request: Request) -> None:
    """Router dependency for public routes"""
    default_rate_limit.hit(f"ip:{get_remote_address(request)}")


def limit_by_user(current_user: AuthenticatedUser = Depends(get_current_user)) -> None:
    """Router dependency for authenticated routes"""
    default_rate_limit.hit(f"user:{current_user.uid}")


async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded):
    """
    Custom handler for rate limit exceeded errors.

    Returns the usual error body plus a Retry-After header.
    """
    logger.warning(
        f"[RateLimit] Exceeded for {get_user_identifier(request)}: {exc.detail}"
    )
    return _too_many_requests(_retry_after_seconds(exc))


async def default_rate_limit_handler(request: Request, exc: RateLimitedError):
    return _too_many_requests(exc.retry_after_seconds)


def otp_send_rate_limit():
    """Stricter limit for endpoints that send mail"""
    return limiter.limit(settings.OTP_SEND_RATE_LIMIT, key_func=get_remote_address)
