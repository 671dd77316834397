"""API package exports."""
from . import routes_admin, routes_auth, routes_customers, routes_products

__all__ = [
    "routes_admin",
    "routes_auth",
    "routes_customers",
    "routes_products",
]
