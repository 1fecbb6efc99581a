"""Per-client-address rate limits: credential endpoints share a tight budget, everything else a general one."""

import logging

from fastapi import Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from app.core.config import settings

logger = logging.getLogger(__name__)

AUTH_LIMIT = settings.RATE_LIMIT_AUTH
DEFAULT_LIMIT = settings.RATE_LIMIT_DEFAULT

limiter = Limiter(
    key_func=get_remote_address,
    storage_uri=settings.RATE_LIMIT_STORAGE_URI,
    enabled=settings.RATE_LIMIT_ENABLED,
)

# One counter per client across all routes carrying the same decorator.
auth_limit = limiter.shared_limit(AUTH_LIMIT, scope="auth")
api_limit = limiter.shared_limit(DEFAULT_LIMIT, scope="api")


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Return 429 in the same {detail} shape as other API errors."""
    logger.warning(
        "Rate limit exceeded",
        extra={"path": request.url.path, "limit": str(exc.detail)},
    )
    return JSONResponse(
        status_code=429,
        content={"detail": "Too many requests, please try again later."},
    )
