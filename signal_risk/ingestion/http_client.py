"""
Async GET client shared by the RSS aggregator and the Finnhub client.

Both callers only read: RSS sources need a browser-ish User-Agent and a
single quick retry, Finnhub needs its ``token`` query parameter rotated
across keys and honours ``Retry-After`` on 429. Everything retryable
(429, 5xx, timeouts, refused connections) is retried here with capped
exponential backoff so callers only see a payload or an ``HTTPClientError``.
"""

import asyncio
import itertools
import logging
import random
from dataclasses import dataclass
from typing import Any

import httpx

logger = logging.getLogger(__name__)

RETRYABLE_STATUS = frozenset({429, 500, 502, 503, 504})
RETRYABLE_ERRORS = (httpx.TimeoutException, httpx.ConnectError, httpx.ReadError)


class HTTPClientError(Exception):
    """A GET that could not produce a usable response."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        response_body: str | None = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.response_body = response_body


class RateLimitError(HTTPClientError):
    """Still answered 429 after every retry."""


class APIKeyRotator:
    """Cycle through API keys so request volume is spread across them."""

    def __init__(self, keys: list[str]):
        if not keys:
            raise ValueError("APIKeyRotator needs at least one key")
        self.keys = list(keys)
        self._cycle = itertools.cycle(self.keys)

    @classmethod
    def from_csv(cls, value: str | None) -> "APIKeyRotator | None":
        """Rotator for a comma-separated key list, or None when there are no keys."""
        keys = [k.strip() for k in (value or "").split(",") if k.strip()]
        return cls(keys) if keys else None

    @property
    def key_count(self) -> int:
        return len(self.keys)

    def next_key(self) -> str:
        return next(self._cycle)


@dataclass
class RetryConfig:
    """
    Retry budget and backoff.

    The n-th retry (0-indexed) waits ``min(base_delay * 2**n, max_backoff_seconds)``
    plus up to ``jitter_factor`` of that. A ``Retry-After`` header in seconds
    replaces the computed delay, still capped at ``max_backoff_seconds``.
    """

    max_retries: int = 3
    max_backoff_seconds: float = 60.0
    base_delay: float = 1.0
    jitter_factor: float = 0.1

    def calculate_backoff(self, attempt: int) -> float:
        delay = min(self.base_delay * (2**attempt), self.max_backoff_seconds)
        return delay * (1 + self.jitter_factor * random.random())

    def delay_for(self, attempt: int, response: httpx.Response | None = None) -> float:
        if response is not None:
            header = response.headers.get("Retry-After", "")
            if header.strip().isdigit():
                return min(float(header), self.max_backoff_seconds)
        return self.calculate_backoff(attempt)

    def is_retryable_status(self, status_code: int) -> bool:
        return status_code in RETRYABLE_STATUS


class HTTPClient:
    """
    Retrying GET client; use as an async context manager.

    Example:
        async with HTTPClient(RetryConfig(max_retries=2), timeout=10.0) as client:
            data = await client.get_json(
                "https://finnhub.io/api/v1/quote",
                params={"symbol": "ALB"},
                api_key_rotator=rotator,
                api_key_param="token",
            )
    """

    def __init__(
        self,
        retry_config: RetryConfig | None = None,
        timeout: float = 30.0,
        headers: dict[str, str] | None = None,
    ):
        self.retry_config = retry_config or RetryConfig()
        self.timeout = timeout
        self.headers = headers or {}
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> "HTTPClient":
        self._client = httpx.AsyncClient(
            timeout=self.timeout,
            headers=self.headers,
            follow_redirects=True,
        )
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    async def _wait(self, url: str, attempt: int, reason: str, response: httpx.Response | None = None) -> None:
        delay = self.retry_config.delay_for(attempt, response)
        logger.warning(
            f"{reason} from {url}, retry {attempt + 1}/{self.retry_config.max_retries} in {delay:.2f}s"
        )
        await asyncio.sleep(delay)

    async def get(
        self,
        url: str,
        params: dict[str, Any] | None = None,
        api_key_rotator: APIKeyRotator | None = None,
        api_key_param: str | None = None,
    ) -> httpx.Response:
        """
        GET ``url``, retrying transient failures.

        When a rotator is given, each attempt sends the next key in the
        ``api_key_param`` query parameter.

        Raises:
            RateLimitError: Still rate limited after every retry
            HTTPClientError: Any other failure
        """
        if self._client is None:
            raise RuntimeError("HTTPClient must be used as async context manager")

        attempts = self.retry_config.max_retries + 1
        for attempt in range(attempts):
            query = dict(params or {})
            if api_key_rotator is not None and api_key_param:
                query[api_key_param] = api_key_rotator.next_key()
            retries_left = attempt < self.retry_config.max_retries

            try:
                response = await self._client.get(url, params=query or None)
            except RETRYABLE_ERRORS as e:
                if retries_left:
                    await self._wait(url, attempt, type(e).__name__)
                    continue
                raise HTTPClientError(f"Request to {url} failed after {attempts} attempts: {e}") from e
            except httpx.HTTPError as e:
                raise HTTPClientError(f"Request to {url} failed: {e}") from e

            status = response.status_code
            if self.retry_config.is_retryable_status(status) and retries_left:
                await self._wait(url, attempt, f"Status {status}", response)
                continue
            if status >= 400:
                error_cls = RateLimitError if status == 429 else HTTPClientError
                raise error_cls(
                    f"Request to {url} failed with status {status} after {attempt + 1} attempts",
                    status_code=status,
                    response_body=response.text,
                )
            return response

        # range(attempts) always returns or raises above
        raise AssertionError("unreachable")

    async def get_json(self, url: str, **kwargs: Any) -> Any:
        """
        GET and decode a JSON body.

        Raises:
            HTTPClientError: On request failure or a body that is not JSON
        """
        response = await self.get(url, **kwargs)
        try:
            return response.json()
        except ValueError as e:
            raise HTTPClientError(
                f"Invalid JSON from {url}",
                status_code=response.status_code,
                response_body=response.text[:200],
            ) from e
