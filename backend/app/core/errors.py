"""Error taxonomy shared by the API routes and services.

Every error is an ``HTTPException`` so FastAPI renders it as
``{"detail": ...}`` with the matching status code. Services raise these
directly; routes never need to translate them.
"""
from __future__ import annotations

import logging
from typing import Any

from fastapi import HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class AppError(HTTPException):
    """Base class for errors with a fixed HTTP status."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail: str = "Internal server error"

    def __init__(self, detail: str | None = None, headers: dict[str, str] | None = None) -> None:
        super().__init__(
            status_code=self.status_code,
            detail=detail or self.default_detail,
            headers=headers,
        )


class ValidationError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Invalid request"


class AuthError(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = "Not authenticated"

    def __init__(self, detail: str | None = None) -> None:
        super().__init__(detail, headers={"WWW-Authenticate": "Bearer"})


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Not found"


class ConflictError(AppError):
    # Unique-constraint violations are reported as bad requests.
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Resource already exists"


class InternalError(AppError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = "Internal server error"


def _field_name(location: Any) -> str:
    parts = [str(part) for part in location if part not in ("body", "query", "path")]
    return ".".join(parts) or "body"


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Render request validation failures as 400 responses."""

    fields = sorted({_field_name(error.get("loc", ())) for error in exc.errors()})
    logger.info("Rejected request to %s: invalid fields %s", request.url.path, fields)
    return JSONResponse(
        {"detail": f"Invalid value for: {', '.join(fields)}"},
        status_code=status.HTTP_400_BAD_REQUEST,
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Log unexpected failures and return a generic 500 body."""

    logger.error("Unhandled error processing %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(
        {"detail": InternalError.default_detail},
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )
