"""X-API-KEY check for every route except /health."""

import secrets

from fastapi import HTTPException, Security, status
from fastapi.security import APIKeyHeader

from signal_risk.config.settings import get_settings

API_KEY_HEADER = "X-API-KEY"

api_key_header = APIKeyHeader(name=API_KEY_HEADER, auto_error=False)


def _matches(candidate: str, keys: frozenset[str]) -> bool:
    # Compare against every key so timing does not reveal which one matched
    found = False
    for key in keys:
        found |= secrets.compare_digest(candidate.encode(), key.encode())
    return found


async def verify_api_key(api_key: str | None = Security(api_key_header)) -> str:
    """
    Accept the request when API_KEYS is unset or the header holds one of its keys.

    Raises:
        HTTPException: 401 for a missing or unknown key
    """
    keys = get_settings().api_key_set
    if not keys:
        return "open"
    if not api_key:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Missing API key. Provide the {API_KEY_HEADER} header.",
        )
    if not _matches(api_key, keys):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid API key")
    return api_key
