"""Google OAuth client configuration using Authlib."""
from __future__ import annotations

from functools import lru_cache

from authlib.integrations.starlette_client import OAuth

from ..core.config import settings


@lru_cache(maxsize=1)
def get_google_client() -> OAuth:
    """Return a configured Authlib OAuth client for Google sign-in."""

    oauth = OAuth()
    oauth.register(
        name="google",
        server_metadata_url=settings.GOOGLE_METADATA_URL,
        client_id=settings.GOOGLE_CLIENT_ID,
        client_secret=settings.GOOGLE_CLIENT_SECRET,
        client_kwargs={"scope": "openid email profile"},
    )
    return oauth
