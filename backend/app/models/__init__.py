"""SQLAlchemy declarative base for the application models."""
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


# Import models so that Alembic discovers the tables via Base.metadata.
# The imports are intentionally placed at the end of the module to avoid
# circular import issues when the individual model modules import ``Base``.
from .customer_products import CustomerProduct  # noqa: F401  (re-export for convenience)
from .customers import Customer  # noqa: F401
from .products import Product  # noqa: F401
from .users import User  # noqa: F401


__all__ = [
    "Base",
    "Customer",
    "CustomerProduct",
    "Product",
    "User",
]
