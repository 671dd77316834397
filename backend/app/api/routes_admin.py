"""Operational endpoints: health, metrics and the hello probe."""
from __future__ import annotations

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from sqlalchemy.orm import Session

from ..core.db import database_reachable, get_session

router = APIRouter()
public_router = APIRouter()


@router.get("/health", summary="Readiness probe")
async def admin_health(session: Session = Depends(get_session)) -> JSONResponse:
    """Report whether the API can reach its database."""

    if not database_reachable(session):
        return JSONResponse(
            {"status": "degraded", "database": "unreachable"},
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        )
    return JSONResponse({"status": "ok", "database": "ok"})


@router.get("/metrics", summary="Prometheus metrics feed")
async def admin_metrics() -> Response:
    """Expose Prometheus-formatted metrics for scraping."""

    payload = generate_latest()
    return Response(content=payload, media_type=CONTENT_TYPE_LATEST)


@public_router.get("/hello", summary="Connectivity probe for the front end")
async def hello() -> dict[str, str]:
    return {"message": "Hello from the backend!"}
