"""Custom ASGI middleware for request logging."""
from __future__ import annotations

import logging
import time
from typing import Awaitable, Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from .metrics import record_request


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log structured request summaries and emit metrics."""

    def __init__(self, app: Callable) -> None:
        super().__init__(app)
        self.logger = logging.getLogger("portal.request")

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        method = request.method
        start = time.perf_counter()
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
        except Exception:
            duration = time.perf_counter() - start
            route_path = _route_path(request)
            record_request(method, route_path, status_code, duration)
            self.logger.exception(
                "HTTP %s %s raised an unhandled exception", method, route_path
            )
            raise
        duration = time.perf_counter() - start
        route_path = _route_path(request)

        user_id = getattr(request.state, "user_id", None)
        self.logger.info(
            "HTTP %s %s status=%s user=%s duration=%.3f",
            method,
            route_path,
            status_code,
            user_id or "anonymous",
            duration,
        )
        record_request(method, route_path, status_code, duration)
        response.headers.setdefault("X-Process-Time", f"{duration:.6f}")
        return response


def _route_path(request: Request) -> str:
    # Templated path keeps metric label cardinality bounded.
    route = request.scope.get("route")
    return getattr(route, "path", request.url.path)
