"""FastAPI application entry point for the business data portal."""
from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from slowapi.errors import RateLimitExceeded
from starlette.middleware.sessions import SessionMiddleware

from .api import routes_admin, routes_auth, routes_customers, routes_products
from .core.config import settings
from .core.errors import unhandled_error_handler, validation_error_handler
from .core.middleware import RequestLoggingMiddleware
from .core.rate_limiter import limiter, rate_limit_handler

logger = logging.getLogger(__name__)


def configure_logging(level: str | None = None) -> None:
    """Apply the configured log level to the root logger."""

    logging.basicConfig(
        level=(level or settings.LOG_LEVEL).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(title=settings.PROJECT_NAME, version=settings.VERSION)
    if not settings.JWT_SECRET:
        logger.warning("JWT_SECRET is not set; sign-in and bearer-protected routes will fail")

    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.frontend_base],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    # Authlib keeps the OAuth state parameter in the signed session cookie.
    app.add_middleware(
        SessionMiddleware,
        secret_key=settings.SESSION_SECRET,
        session_cookie=settings.SESSION_COOKIE_NAME,
        same_site="lax",
        https_only=settings.SESSION_COOKIE_SECURE,
    )
    app.add_middleware(RequestLoggingMiddleware)

    app.include_router(routes_admin.router, prefix="/admin", tags=["admin"])
    app.include_router(routes_admin.public_router, prefix="/api", tags=["admin"])
    app.include_router(routes_auth.router, prefix="/api/auth", tags=["auth"])
    app.include_router(routes_customers.router, prefix="/api/customers", tags=["customers"])
    app.include_router(routes_products.router, prefix="/api/products", tags=["products"])

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    configure_logging()
    uvicorn.run(app, host="0.0.0.0", port=settings.PORT)
