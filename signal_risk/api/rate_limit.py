"""
Per-client rate limits (slowapi).

Off unless RATE_LIMIT_ENABLED=true. Scans use the default limit and the
analysis routes a tighter one, since each of their calls is a paid model
request. Clients are told apart by API key, or by IP on an open API.
"""

import hashlib

from slowapi import Limiter
from slowapi.util import get_remote_address
from starlette.requests import Request

from signal_risk.api.auth import API_KEY_HEADER
from signal_risk.config.settings import get_settings


def _get_rate_limit_key(request: Request) -> str:
    api_key = request.headers.get(API_KEY_HEADER)
    if api_key:
        # Limiter storage never holds the raw key
        return "key:" + hashlib.sha256(api_key.encode()).hexdigest()[:16]
    return "ip:" + get_remote_address(request)


def create_limiter() -> Limiter:
    settings = get_settings()
    return Limiter(
        key_func=_get_rate_limit_key,
        default_limits=[settings.rate_limit_default],
        storage_uri=settings.rate_limit_storage_uri,
        enabled=settings.rate_limit_enabled,
    )


limiter = create_limiter()
