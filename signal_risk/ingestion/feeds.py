"""
RSS feed aggregation.

All enabled sources are fetched concurrently. A source that times out,
errors or returns garbage contributes no headlines; it never fails the scan.
Entries are capped per source and the combined list is sorted newest first.
"""

import asyncio
import html
import logging
import re
from calendar import timegm
from datetime import datetime, timezone
from typing import Any

import feedparser
from bs4 import BeautifulSoup

from signal_risk.config.feeds import FeedSource, get_enabled_sources
from signal_risk.config.settings import get_settings
from signal_risk.ingestion.http_client import HTTPClient, HTTPClientError, RetryConfig
from signal_risk.ingestion.schemas import DiscoveryChannel, Headline
from signal_risk.observability.metrics import get_metrics

logger = logging.getLogger(__name__)


def clean_html(text: str) -> str:
    """Strip markup from an RSS summary and collapse whitespace."""
    if not text:
        return ""
    soup = BeautifulSoup(text, "html.parser")
    for element in soup(["script", "style"]):
        element.decompose()
    plain = html.unescape(soup.get_text(separator=" "))
    return re.sub(r"\s+", " ", plain).strip()


def _entry_timestamp(entry: dict[str, Any]) -> datetime:
    """Best-effort publish time of a feed entry (now if absent)."""
    for field in ("published_parsed", "updated_parsed", "created_parsed"):
        parsed = entry.get(field)
        if parsed:
            return datetime.fromtimestamp(timegm(parsed), tz=timezone.utc)
    return datetime.now(timezone.utc)


def entries_to_headlines(
    source: FeedSource,
    entries: list[dict[str, Any]],
    limit: int,
) -> list[Headline]:
    """Convert parsed feed entries from one source into headlines."""
    headlines = []
    for index, entry in enumerate(entries[:limit]):
        published = _entry_timestamp(entry)
        headlines.append(
            Headline(
                id=f"{source.id}-{int(published.timestamp())}-{index}",
                title=(entry.get("title") or "Untitled").strip(),
                url=entry.get("link", ""),
                source=source.name,
                published_at=published,
                description=clean_html(entry.get("summary", "")),
                channel=DiscoveryChannel.FEED,
            )
        )
    return headlines


class FeedAggregator:
    """
    Concurrent RSS fetcher.

    Example:
        aggregator = FeedAggregator()
        headlines = await aggregator.fetch_all()
    """

    def __init__(
        self,
        sources: list[FeedSource] | None = None,
        timeout: float | None = None,
        max_per_source: int | None = None,
    ):
        settings = get_settings()
        self._sources = sources if sources is not None else get_enabled_sources()
        self._timeout = timeout or settings.feed_timeout_seconds
        self._max_per_source = max_per_source or settings.max_headlines_per_source
        self._user_agent = settings.feed_user_agent

    @property
    def sources(self) -> list[FeedSource]:
        return list(self._sources)

    async def fetch_source(self, client: HTTPClient, source: FeedSource) -> list[Headline]:
        """Fetch one feed; any failure yields an empty list."""
        try:
            response = await client.get(source.url)
            feed = feedparser.parse(response.text)
        except HTTPClientError as e:
            logger.warning(f"Feed {source.name} failed: {e}")
            return []

        if feed.get("bozo") and not feed.get("entries"):
            logger.warning(f"Feed {source.name} returned unparseable content")
            return []

        headlines = entries_to_headlines(source, feed.get("entries", []), self._max_per_source)
        get_metrics().record_fetch(source.id, len(headlines))
        logger.debug(f"Fetched {len(headlines)} headlines from {source.name}")
        return headlines

    async def fetch_all(self) -> list[Headline]:
        """Fetch every configured source in parallel, newest headlines first."""
        logger.info(f"Fetching from {len(self._sources)} RSS sources")

        async with HTTPClient(
            RetryConfig(max_retries=1),
            timeout=self._timeout,
            headers={"User-Agent": self._user_agent},
        ) as client:
            results = await asyncio.gather(
                *(self.fetch_source(client, source) for source in self._sources),
                return_exceptions=True,
            )

        headlines: list[Headline] = []
        for source, result in zip(self._sources, results):
            if isinstance(result, BaseException):
                logger.error(f"Feed {source.name} raised {type(result).__name__}: {result}")
                continue
            headlines.extend(result)

        headlines.sort(key=lambda h: h.published_at, reverse=True)
        logger.info(f"Fetched {len(headlines)} total headlines")
        return headlines
