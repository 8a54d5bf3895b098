"""
Rate limiting for the LMS API, built on slowapi.

Authenticated requests are keyed by user id (set on request.state by the
auth dependency), everything else by client IP. The login endpoint carries
its own tighter limit (LOGIN_RATE_LIMIT) against credential stuffing.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from fastapi import Request
from fastapi.responses import JSONResponse

from lms.core.config import settings
from lms.core.logging_config import logger


def get_user_identifier(request: Request) -> str:
    """Rate limit key: authenticated user id, else client IP"""
    user_id = getattr(request.state, 'user_id', None)
    if user_id:
        return f"user:{user_id}"
    return f"ip:{get_remote_address(request)}"


limiter = Limiter(
    key_func=get_user_identifier,
    default_limits=[f"{settings.RATE_LIMIT_PER_MINUTE}/minute"],
    storage_uri=settings.RATE_LIMIT_STORAGE_URI,
    strategy="fixed-window",
    enabled=settings.RATE_LIMIT_ENABLED,
)


async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded):
    """Return the standard {error} body with a Retry-After header"""
    logger.warning(
        f"[RateLimit] Exceeded for {get_user_identifier(request)}: {exc.detail}"
    )
    return JSONResponse(
        status_code=429,
        content={"error": "Too many requests. Please slow down."},
        headers={"Retry-After": "60"},
    )


def login_rate_limit():
    """Rate limit applied to /auth/login"""
    return limiter.limit(settings.LOGIN_RATE_LIMIT, key_func=get_remote_address)
