"""Bearer token issuance and verification."""
from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Any

import jwt
from fastapi import Depends, Request
from sqlalchemy.orm import Session

from ..models import User
from .config import settings
from .db import get_session
from .errors import AuthError, InternalError

logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "


def create_access_token(user_id: int, email: str, *, now: datetime | None = None) -> str:
    """Mint a signed token embedding ``{id, email}``."""

    if not settings.JWT_SECRET:
        raise ValueError("JWT_SECRET is not configured")

    issued_at = now or datetime.now(timezone.utc)
    expires_at = issued_at + timedelta(days=settings.JWT_EXPIRES_DAYS)
    payload: dict[str, Any] = {
        "id": int(user_id),
        "email": email,
        "iat": int(issued_at.timestamp()),
        "exp": int(expires_at.timestamp()),
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> dict[str, Any]:
    """Verify signature and expiry and return the token payload."""

    if not token:
        raise AuthError("No token provided")
    if not settings.JWT_SECRET:
        logger.error("JWT_SECRET is not configured; rejecting bearer token")
        raise InternalError()
    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM],
            options={"require": ["exp"]},
        )
    except jwt.ExpiredSignatureError:
        raise AuthError("Token expired") from None
    except jwt.InvalidTokenError:
        raise AuthError("Invalid token") from None

    user_id = payload.get("id")
    if isinstance(user_id, bool) or not isinstance(user_id, int):
        raise AuthError("Invalid token")
    return payload


def parse_bearer(header: str | None) -> str:
    """Extract the token from an ``Authorization: Bearer <token>`` header."""

    if not header or not header.startswith(BEARER_PREFIX):
        raise AuthError("No token provided")
    token = header[len(BEARER_PREFIX):].strip()
    if not token or " " in token:
        raise AuthError("No token provided")
    return token


def verify_credentials(header: str | None, session: Session) -> User:
    """Resolve an authorization header to the user it was issued for."""

    payload = decode_access_token(parse_bearer(header))
    user = session.get(User, payload["id"])
    if user is None:
        logger.info("Rejected token for missing user id=%s", payload["id"])
        raise AuthError("Invalid token")
    return user


def get_current_user(request: Request, session: Session = Depends(get_session)) -> User:
    """FastAPI dependency guarding routes that require a bearer token."""

    user = verify_credentials(request.headers.get("Authorization"), session)
    request.state.user = user
    request.state.user_id = user.id
    return user
