"""User model definition."""
from __future__ import annotations

from sqlalchemy import Column, DateTime, Integer, String, func

from . import Base


class User(Base):
    """Application user persisted via the Google OAuth identity."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    name = Column(String(255), nullable=True)
    google_id = Column(String(255), nullable=True, unique=True, index=True)
    avatar = Column(String(1024), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def to_profile(self) -> dict[str, object]:
        """Return the read-only projection handed to clients."""

        return {"id": self.id, "email": self.email, "name": self.name, "avatar": self.avatar}

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"User(id={self.id!s}, email={self.email!r})"
