"""Authentication endpoints for Google sign-in and token checks."""

import logging
from typing import Any

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import RedirectResponse
from pydantic import BaseModel
from sqlalchemy.orm import Session

from ..auth import OAuthHandoff, get_google_client
from ..core.config import settings
from ..core.db import get_session
from ..core.errors import NotFoundError
from ..core.rate_limiter import auth_limit, limiter
from ..core.security import decode_access_token, parse_bearer
from ..models import User

router = APIRouter()

logger = logging.getLogger(__name__)


class ProfileResponse(BaseModel):
    """Read-only user projection returned to clients."""

    id: int
    email: str
    name: str | None = None
    avatar: str | None = None


@router.get("/google", summary="Initiate Google sign-in")
@limiter.limit(auth_limit)
async def google_login(request: Request) -> Any:
    """Redirect the browser to Google for authentication."""

    oauth = get_google_client()
    response = await oauth.google.authorize_redirect(request, settings.google_callback_url)
    response.status_code = status.HTTP_302_FOUND
    return response


@router.get("/google/callback", summary="Google redirect URI")
@limiter.limit(auth_limit)
async def google_callback(request: Request, session: Session = Depends(get_session)) -> RedirectResponse:
    """Exchange the provider assertion for an application token."""

    handoff = OAuthHandoff(settings.FRONTEND_URL)
    try:
        oauth = get_google_client()
        token = await oauth.google.authorize_access_token(request)
        claims = await _extract_claims(oauth, token)
        handoff.receive(claims)
        handoff.reconcile(session)
        handoff.issue_token()
        session.commit()
    except Exception:
        session.rollback()
        handoff.fail()
        logger.exception("Google callback failed")
        return RedirectResponse(url=handoff.failure_url(), status_code=status.HTTP_302_FOUND)

    logger.info("Issued token for user id=%s", handoff.user.id if handoff.user else None)
    return RedirectResponse(url=handoff.success_url(), status_code=status.HTTP_302_FOUND)


@router.get("/me", response_model=ProfileResponse, summary="Current user profile")
async def read_current_user(request: Request, session: Session = Depends(get_session)) -> ProfileResponse:
    """Validate the bearer token and return the user it belongs to."""

    payload = decode_access_token(parse_bearer(request.headers.get("Authorization")))
    user = session.get(User, payload["id"])
    if user is None:
        raise NotFoundError("User not found")

    request.state.user_id = user.id
    return ProfileResponse(**user.to_profile())


async def _extract_claims(oauth: Any, token: dict[str, Any]) -> dict[str, Any]:
    """Resolve user claims from the ID token or the userinfo endpoint."""

    userinfo = token.get("userinfo")
    if userinfo:
        return dict(userinfo)
    return dict(await oauth.google.userinfo(token=token))
