"""Request throttling for sign-in and catalog writes."""
from __future__ import annotations

import logging

from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.requests import Request
from starlette.responses import JSONResponse

from .config import settings

logger = logging.getLogger(__name__)


def portal_rate_key(request: Request) -> str:
    """Bucket signed-in callers by user id and everyone else by client address.

    ``request.state.user_id`` is set by the bearer-token dependency, which
    runs before the limit is checked on protected routes.
    """

    user_id = getattr(request.state, "user_id", None)
    if user_id is not None:
        return f"user:{user_id}"
    return f"ip:{get_remote_address(request)}"


def auth_limit() -> str:
    return settings.RATE_LIMIT_AUTH


def write_limit() -> str:
    return settings.RATE_LIMIT_WRITE


limiter = Limiter(key_func=portal_rate_key)


def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Return a JSON response when a rate limit is exceeded."""

    logger.warning(
        "Rate limit exceeded for path=%s key=%s limit=%s",
        request.url.path,
        portal_rate_key(request),
        exc.detail,
    )
    return JSONResponse({"detail": "Rate limit exceeded"}, status_code=exc.status_code)
