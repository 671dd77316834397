"""Google sign-in handoff: provider assertion to first-party token.

The handoff walks ``REDIRECTED -> PROVIDER_CALLBACK -> RECONCILED ->
TOKEN_ISSUED``. Any failure moves it to ``FAILED``, after which only the
failure redirect is available. Reconciliation only touches the database
session, so it can be exercised without an HTTP request.
"""
from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Any, Mapping
from urllib.parse import urlencode

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.security import create_access_token
from ..models import User

logger = logging.getLogger(__name__)

AUTH_FAILED = "auth_failed"


class HandoffStage(str, enum.Enum):
    REDIRECTED = "redirected"
    PROVIDER_CALLBACK = "provider_callback"
    RECONCILED = "reconciled"
    TOKEN_ISSUED = "token_issued"
    FAILED = "failed"


class HandoffError(RuntimeError):
    """Raised for provider assertions we cannot use or out-of-order steps."""


@dataclass(frozen=True)
class ProfileAssertion:
    """Identity claims returned by the provider."""

    email: str
    name: str
    external_id: str
    avatar_url: str | None = None

    @classmethod
    def from_claims(cls, claims: Mapping[str, Any]) -> "ProfileAssertion":
        email = (claims.get("email") or "").strip()
        external_id = str(claims.get("sub") or "").strip()
        if not email or not external_id:
            raise HandoffError("Provider profile is missing email or subject")

        name = claims.get("name") or claims.get("given_name") or email
        avatar = claims.get("picture") or None
        return cls(email=email, name=name, external_id=external_id, avatar_url=avatar)


def reconcile_user(session: Session, assertion: ProfileAssertion) -> User:
    """Create or update the local user for a provider assertion.

    Users are matched by email. An existing row gets its name, avatar and
    Google subject refreshed; its email and id never change.
    """

    stmt = select(User).where(User.email == assertion.email)
    user = session.execute(stmt).scalar_one_or_none()

    if user is None:
        user = User(
            email=assertion.email,
            name=assertion.name,
            google_id=assertion.external_id,
            avatar=assertion.avatar_url,
        )
        session.add(user)
        logger.info("Creating user for %s", assertion.email)
    else:
        user.name = assertion.name
        user.google_id = assertion.external_id
        user.avatar = assertion.avatar_url

    session.flush()
    return user


class OAuthHandoff:
    """Tracks one sign-in attempt from provider callback to issued token."""

    def __init__(self, frontend_url: str | None = None) -> None:
        self.frontend_url = (frontend_url or settings.FRONTEND_URL).rstrip("/")
        self.stage = HandoffStage.REDIRECTED
        self.assertion: ProfileAssertion | None = None
        self.user: User | None = None
        self.token: str | None = None

    def _advance(self, expected: HandoffStage, target: HandoffStage) -> None:
        if self.stage is not expected:
            raise HandoffError(f"Cannot move to {target.value} from {self.stage.value}")
        self.stage = target

    def receive(self, claims: Mapping[str, Any]) -> ProfileAssertion:
        try:
            assertion = ProfileAssertion.from_claims(claims)
        except HandoffError:
            self.fail()
            raise
        self._advance(HandoffStage.REDIRECTED, HandoffStage.PROVIDER_CALLBACK)
        self.assertion = assertion
        return assertion

    def reconcile(self, session: Session) -> User:
        if self.stage is not HandoffStage.PROVIDER_CALLBACK or self.assertion is None:
            raise HandoffError(f"Cannot reconcile from {self.stage.value}")
        self.user = reconcile_user(session, self.assertion)
        self._advance(HandoffStage.PROVIDER_CALLBACK, HandoffStage.RECONCILED)
        return self.user

    def issue_token(self) -> str:
        if self.stage is not HandoffStage.RECONCILED or self.user is None:
            raise HandoffError(f"Cannot issue a token from {self.stage.value}")
        self.token = create_access_token(self.user.id, self.user.email)
        self._advance(HandoffStage.RECONCILED, HandoffStage.TOKEN_ISSUED)
        return self.token

    def fail(self) -> None:
        self.stage = HandoffStage.FAILED
        self.token = None

    def success_url(self) -> str:
        if self.stage is not HandoffStage.TOKEN_ISSUED or self.token is None:
            raise HandoffError("No token has been issued")
        return f"{self.frontend_url}/auth-callback?{urlencode({'token': self.token})}"

    def failure_url(self) -> str:
        return f"{self.frontend_url}/login?{urlencode({'error': AUTH_FAILED})}"
