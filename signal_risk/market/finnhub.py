"""
Finnhub quotes and company profiles for opportunity enrichment.

Any failure (missing key, HTTP error, unknown symbol, malformed payload)
returns None, and the opportunity is passed through un-enriched rather than
dropped.
"""

import asyncio
import logging
import re
from dataclasses import dataclass
from typing import Any

from signal_risk.analysis.schemas import CompanyQuote, Opportunity
from signal_risk.config.settings import get_settings
from signal_risk.ingestion.http_client import APIKeyRotator, HTTPClient, HTTPClientError, RetryConfig
from signal_risk.observability.metrics import get_metrics

logger = logging.getLogger(__name__)

# "Long PLS.AX", "short TSLA", "Buy ALB"
_ACTION_TICKER_RE = re.compile(
    r"\b(?:long|short|buy|sell)\s+([A-Z][A-Z0-9]{0,5}(?:\.[A-Z]{1,3})?)\b",
    re.IGNORECASE,
)
# "(PLS.AX)" or "(NYSE: ALB)"
_PAREN_TICKER_RE = re.compile(r"\((?:[A-Z]+:\s*)?([A-Z][A-Z0-9]{0,5}(?:\.[A-Z]{1,3})?)\)")

_NOT_TICKERS = frozenset({"CME", "LME", "ETF", "OPEC", "USD", "EV", "AI"})


@dataclass
class StockQuote:
    price: float
    change: float
    change_percent: float
    high: float | None = None
    low: float | None = None
    open: float | None = None
    previous_close: float | None = None


@dataclass
class CompanyProfile:
    name: str
    sector: str = "Unknown"
    market_cap: float | None = None
    website: str | None = None


def extract_ticker(opportunity: Opportunity) -> str | None:
    """First plausible ticker named in the suggested actions or description."""
    for text in [*opportunity.suggested_actions, opportunity.description]:
        for pattern in (_ACTION_TICKER_RE, _PAREN_TICKER_RE):
            for match in pattern.finditer(text):
                candidate = match.group(1)
                if candidate.isupper() and candidate not in _NOT_TICKERS:
                    return candidate
    return None


class FinnhubClient:
    """
    Async Finnhub client built on the retrying HTTP layer.

    Example:
        async with FinnhubClient() as finnhub:
            quote = await finnhub.get_quote("ALB")
    """

    def __init__(
        self,
        api_keys: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
    ):
        settings = get_settings()
        if api_keys is None and settings.finnhub_api_keys is not None:
            api_keys = settings.finnhub_api_keys.get_secret_value()
        self._rotator = APIKeyRotator.from_csv(api_keys)
        self._base_url = (base_url or settings.finnhub_base_url).rstrip("/")
        self._timeout = timeout or settings.market_timeout_seconds
        self._retry = RetryConfig(
            max_retries=settings.max_http_retries,
            max_backoff_seconds=settings.max_backoff_seconds,
        )
        self._http: HTTPClient | None = None

    @property
    def configured(self) -> bool:
        return self._rotator is not None

    async def __aenter__(self) -> "FinnhubClient":
        self._http = HTTPClient(self._retry, timeout=self._timeout)
        await self._http.__aenter__()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        if self._http is not None:
            await self._http.__aexit__(exc_type, exc_val, exc_tb)
            self._http = None

    async def _get_json(self, path: str, symbol: str) -> dict[str, Any] | None:
        if self._rotator is None or self._http is None:
            return None
        try:
            data = await self._http.get_json(
                f"{self._base_url}{path}",
                params={"symbol": symbol},
                api_key_rotator=self._rotator,
                api_key_param="token",
            )
        except HTTPClientError as e:
            get_metrics().record_error("market_data", type(e).__name__)
            logger.warning(f"Finnhub {path} failed for {symbol}: {e}")
            return None
        return data if isinstance(data, dict) else None

    async def get_quote(self, symbol: str) -> StockQuote | None:
        data = await self._get_json("/quote", symbol)
        if data is None:
            return None
        # Finnhub answers unknown symbols with an all-zero quote
        if not any(data.get(k) for k in ("c", "d", "dp")):
            logger.debug(f"No quote for {symbol}")
            return None
        try:
            return StockQuote(
                price=float(data["c"]),
                change=float(data.get("d") or 0.0),
                change_percent=float(data.get("dp") or 0.0),
                high=data.get("h"),
                low=data.get("l"),
                open=data.get("o"),
                previous_close=data.get("pc"),
            )
        except (KeyError, TypeError, ValueError):
            logger.warning(f"Malformed quote for {symbol}: {data}")
            return None

    async def get_profile(self, symbol: str) -> CompanyProfile | None:
        data = await self._get_json("/stock/profile2", symbol)
        if not data or not data.get("name"):
            return None
        return CompanyProfile(
            name=str(data["name"]),
            sector=str(data.get("finnhubIndustry") or "Unknown"),
            market_cap=data.get("marketCapitalization"),
            website=data.get("weburl"),
        )

    async def get_company_quote(self, symbol: str) -> CompanyQuote | None:
        """Quote and profile combined; None when no quote is available."""
        quote, profile = await asyncio.gather(self.get_quote(symbol), self.get_profile(symbol))
        if quote is None:
            return None
        return CompanyQuote(
            ticker=symbol,
            name=profile.name if profile else symbol,
            price=quote.price,
            change=quote.change,
            change_percent=quote.change_percent,
            sector=profile.sector if profile else None,
        )


async def enrich_opportunities(
    opportunities: list[Opportunity],
    client: FinnhubClient | None = None,
) -> list[Opportunity]:
    """
    Attach live market data to opportunities that name a ticker.

    Opportunities without a ticker, or whose lookup fails, are returned
    unchanged.
    """
    if not opportunities:
        return []

    finnhub = client or FinnhubClient()
    if not finnhub.configured:
        logger.debug("Market data not configured, skipping enrichment")
        return list(opportunities)

    async def _enrich(opp: Opportunity, session: FinnhubClient) -> Opportunity:
        ticker = extract_ticker(opp)
        if ticker is None:
            return opp
        company = await session.get_company_quote(ticker)
        if company is None:
            return opp
        return opp.model_copy(update={"company": company})

    async with finnhub as session:
        enriched = await asyncio.gather(*(_enrich(o, session) for o in opportunities))

    count = sum(1 for o in enriched if o.company is not None)
    logger.info(f"Enriched {count}/{len(enriched)} opportunities with market data")
    return list(enriched)
