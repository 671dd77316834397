"""Application configuration powered by Pydantic settings."""
from __future__ import annotations

from functools import lru_cache
from typing import Any

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Global application settings loaded from environment variables."""

    PROJECT_NAME: str = Field(default="Business Data Portal")
    VERSION: str = Field(default="0.1.0")

    DATABASE_URL: str = Field(default="postgresql+psycopg://postgres:postgres@db:5432/portal")

    GOOGLE_CLIENT_ID: str = Field(default="client-id")
    GOOGLE_CLIENT_SECRET: str = Field(default="client-secret")
    GOOGLE_METADATA_URL: str = Field(
        default="https://accounts.google.com/.well-known/openid-configuration"
    )

    BACKEND_URL: str = Field(default="http://localhost:3000")
    FRONTEND_URL: str = Field(default="http://localhost:5173")
    PORT: int = Field(default=3000)

    # Empty until configured; token issuance refuses to run without it.
    JWT_SECRET: str = Field(default="")
    JWT_ALGORITHM: str = Field(default="HS256")
    JWT_EXPIRES_DAYS: int = Field(default=7)

    SESSION_SECRET: str = Field(default="change-me")
    SESSION_COOKIE_NAME: str = Field(default="portal_session")
    SESSION_COOKIE_SECURE: bool = Field(default=False)

    RATE_LIMIT_AUTH: str = Field(default="30/minute")
    RATE_LIMIT_WRITE: str = Field(default="120/minute")

    LOG_LEVEL: str = Field(default="INFO")

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore",
    }

    @property
    def frontend_base(self) -> str:
        return self.FRONTEND_URL.rstrip("/")

    @property
    def google_callback_url(self) -> str:
        return f"{self.BACKEND_URL.rstrip('/')}/api/auth/google/callback"


@lru_cache(maxsize=1)
def get_settings(**overrides: Any) -> Settings:
    """Return cached settings instance to avoid repeated parsing."""

    if overrides:
        return Settings(**overrides)
    return Settings()


settings = get_settings()
