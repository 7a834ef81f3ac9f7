"""Request id binding, access logging and request metrics."""

import time
import uuid

import structlog
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from signal_risk.observability.metrics import get_metrics

logger = structlog.get_logger(__name__)

_ID_HEADERS = ("X-Request-ID", "X-Correlation-ID")


def _route_label(request: Request) -> str:
    # Route templates keep the label set bounded (/assets/{asset_id}, not /assets/oil)
    route = request.scope.get("route")
    return getattr(route, "path", "unmatched")


class RequestContextMiddleware(BaseHTTPMiddleware):
    """
    Bind a request id for every log line of the request and echo it back.

    An incoming X-Request-ID or X-Correlation-ID is reused so callers can
    trace a scan or analysis across services.
    """

    async def dispatch(self, request: Request, call_next):
        request_id = next(
            (request.headers[h] for h in _ID_HEADERS if request.headers.get(h)),
            str(uuid.uuid4()),
        )
        started = time.perf_counter()
        with structlog.contextvars.bound_contextvars(request_id=request_id):
            response = await call_next(request)
            elapsed = time.perf_counter() - started
            response.headers["X-Request-ID"] = request_id
            route = _route_label(request)
            get_metrics().record_request(request.method, route, response.status_code, elapsed)
            logger.info(
                "HTTP request",
                method=request.method,
                route=route,
                status_code=response.status_code,
                duration_ms=round(elapsed * 1000, 2),
            )
        return response
