"""Client-side session handling for the portal front end."""

from .api import PortalApi, create_http_client
from .router import DEFAULT_ROUTES, Navigation, Route, RouteGuard, Router
from .session import SessionContext
from .storage import FileTokenStorage, MemoryTokenStorage, TokenStorage
from .stores import CustomerStore, GreetingStore, ProductStore, RecordStore

__all__ = [
    "CustomerStore",
    "DEFAULT_ROUTES",
    "FileTokenStorage",
    "GreetingStore",
    "MemoryTokenStorage",
    "Navigation",
    "PortalApi",
    "ProductStore",
    "RecordStore",
    "Route",
    "RouteGuard",
    "Router",
    "SessionContext",
    "TokenStorage",
    "create_http_client",
]
