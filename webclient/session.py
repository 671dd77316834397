"""Client session context: the single source of truth for sign-in state.

The context is created once by the application shell and handed to every
consumer (route guard, API wrappers) explicitly. ``init`` restores a
persisted token on start-up; ``clear`` drops all state on logout or when the
server rejects the token.
"""
from __future__ import annotations

import logging
from typing import Any

import httpx

from .storage import MemoryTokenStorage, TokenStorage

logger = logging.getLogger(__name__)

ME_PATH = "/api/auth/me"


class SessionContext:
    """Holds the current token and user profile."""

    def __init__(self, http: httpx.AsyncClient, storage: TokenStorage | None = None) -> None:
        self.http = http
        self.storage = storage or MemoryTokenStorage()
        self.token: str | None = None
        self.user: dict[str, Any] | None = None
        self.loading = False
        self.error: str | None = None

    @property
    def is_authenticated(self) -> bool:
        return bool(self.token) and self.user is not None

    def init(self) -> None:
        """Restore a persisted token without contacting the server."""

        token = self.storage.load()
        self.user = None
        self.error = None
        self._apply_token(token)

    def set_token(self, token: str | None) -> None:
        """Persist ``token``, or clear it together with the cached profile."""

        if token:
            self.storage.save(token)
        else:
            self.storage.delete()
            self.user = None
        self._apply_token(token)

    def clear(self) -> None:
        self.set_token(None)
        self.user = None

    async def fetch_user(self) -> dict[str, Any] | None:
        """Load the profile for the current token.

        Any failure is treated as an invalid session: token and user are both
        cleared and the call is not retried.
        """

        self.loading = True
        self.error = None
        try:
            if not self.token:
                self.user = None
                return None

            response = await self.http.get(
                ME_PATH, headers={"Authorization": f"Bearer {self.token}"}
            )
            response.raise_for_status()
            self.user = response.json()
            return self.user
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("Discarding session after profile fetch failed: %s", exc)
            self.error = error_message(exc, "Failed to fetch user")
            self.clear()
            return None
        finally:
            self.loading = False

    async def handle_auth_callback(self, token: str) -> dict[str, Any] | None:
        """Adopt the token handed back by the sign-in redirect."""

        self.set_token(token)
        return await self.fetch_user()

    def logout(self) -> None:
        # Client-side only; the token stays valid on the server until expiry.
        self.clear()

    def _apply_token(self, token: str | None) -> None:
        self.token = token or None
        if self.token:
            self.http.headers["Authorization"] = f"Bearer {self.token}"
        else:
            self.http.headers.pop("Authorization", None)


def error_message(exc: Exception, fallback: str) -> str:
    """Prefer the server's ``detail`` over a generic fallback message."""

    if isinstance(exc, httpx.HTTPStatusError):
        try:
            body = exc.response.json()
        except ValueError:
            body = None
        detail = body.get("detail") if isinstance(body, dict) else None
        if detail:
            return str(detail)
    return fallback
