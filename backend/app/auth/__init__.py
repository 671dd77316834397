"""Authentication helpers and clients."""

from .google import get_google_client
from .handoff import HandoffError, HandoffStage, OAuthHandoff, ProfileAssertion, reconcile_user

__all__ = [
    "HandoffError",
    "HandoffStage",
    "OAuthHandoff",
    "ProfileAssertion",
    "get_google_client",
    "reconcile_user",
]
