"""
Request timeout middleware.

Reads answer quickly, but ``/analyze`` and ``/feeds/scan`` wait on model
calls that can take minutes, so those prefixes get their own, longer bound.
``/health`` is never timed out. A request over its bound gets a 504.
"""

import asyncio

import structlog
from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

logger = structlog.get_logger(__name__)

LONG_RUNNING_PREFIXES = ("/analyze", "/feeds/scan")
EXEMPT_PREFIXES = ("/health",)


class TimeoutMiddleware(BaseHTTPMiddleware):
    """
    Answer 504 when a request exceeds its time bound.

    Args:
        timeout_seconds: Bound for ordinary requests
        long_timeout_seconds: Bound for model-backed routes; defaults to
            ``timeout_seconds``
    """

    def __init__(self, app, timeout_seconds: float = 30.0, long_timeout_seconds: float | None = None):
        super().__init__(app)
        self.timeout_seconds = timeout_seconds
        self.long_timeout_seconds = long_timeout_seconds or timeout_seconds

    def bound_for(self, path: str) -> float | None:
        if path.startswith(EXEMPT_PREFIXES):
            return None
        if path.startswith(LONG_RUNNING_PREFIXES):
            return self.long_timeout_seconds
        return self.timeout_seconds

    async def dispatch(self, request: Request, call_next):
        bound = self.bound_for(request.url.path)
        if bound is None:
            return await call_next(request)

        try:
            async with asyncio.timeout(bound):
                return await call_next(request)
        except TimeoutError:
            logger.warning("Request timed out", path=request.url.path, timeout_seconds=bound)
            return JSONResponse(
                status_code=504,
                content={
                    "detail": f"Request timed out after {bound:g}s",
                    "error_type": "timeout",
                    "timeout_seconds": bound,
                },
            )
