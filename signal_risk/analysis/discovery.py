"""
AI headline discovery through Perplexity web search.

Discovered headlines are tagged ``ai_discovery`` and arrive already
relevance-scored, so the keyword triage stage passes them through. The
confidence is deterministic: the model's relevance plus a bonus per matched
asset, clamped to [0.5, 0.95].
"""

import asyncio
import hashlib
import logging
import re
from datetime import datetime, timezone
from typing import Any

from pydantic import ValidationError

from signal_risk.analysis.config import AnalysisConfig
from signal_risk.analysis.json_repair import load_json_lenient
from signal_risk.analysis.llm_client import PerplexityClient
from signal_risk.analysis.prompts import build_discovery_messages
from signal_risk.ingestion.schemas import DiscoveryChannel, Headline, TriageStatus
from signal_risk.observability.metrics import get_metrics
from signal_risk.risk.schemas import clamp

logger = logging.getLogger(__name__)

DEFAULT_ASSET_NAMES = ["lithium", "crude oil", "semiconductors"]

ASSET_PATTERNS: dict[str, re.Pattern[str]] = {
    "lithium": re.compile(r"lithium|chile|argentina|sqm|albemarle", re.IGNORECASE),
    "oil": re.compile(r"oil|crude|opec|petroleum|tanker|pipeline", re.IGNORECASE),
    "semiconductors": re.compile(r"semiconductor|chip|tsmc|taiwan|silicon|fab", re.IGNORECASE),
}

# (pattern, keywords) pairs for tagging discovered headlines
_KEYWORD_RULES: list[tuple[re.Pattern[str], tuple[str, ...]]] = [
    (re.compile(r"lithium"), ("lithium",)),
    (re.compile(r"oil|crude|petroleum"), ("oil", "crude")),
    (re.compile(r"semiconductor|chip"), ("semiconductors", "chip")),
    (re.compile(r"strike"), ("strike",)),
    (re.compile(r"disruption|closure"), ("disruption",)),
    (re.compile(r"sanction"), ("sanctions",)),
    (re.compile(r"attack|conflict"), ("conflict",)),
    (re.compile(r"chile"), ("chile",)),
    (re.compile(r"china"), ("china",)),
    (re.compile(r"taiwan"), ("taiwan",)),
    (re.compile(r"middle east|opec"), ("middle-east",)),
]

# Raw search results carry no model relevance, so they are capped lower
SEARCH_RESULT_MAX_CONFIDENCE = 0.9


def match_assets(text: str) -> list[str]:
    """Asset ids whose pattern appears in ``text``, in catalog order."""
    return [asset_id for asset_id, pattern in ASSET_PATTERNS.items() if pattern.search(text)]


def extract_keywords(text: str) -> list[str]:
    lowered = text.lower()
    keywords: list[str] = []
    for pattern, tags in _KEYWORD_RULES:
        if pattern.search(lowered):
            keywords.extend(t for t in tags if t not in keywords)
    return keywords


def _parse_timestamp(value: Any) -> datetime:
    if isinstance(value, str) and value.strip():
        try:
            parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            return datetime.now(timezone.utc)
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
    return datetime.now(timezone.utc)


def _headline_id(title: str, url: str) -> str:
    digest = hashlib.sha256(f"{url}|{title}".encode("utf-8")).hexdigest()[:16]
    return f"discovery-{digest}"


class DiscoveryClient:
    """
    Find breaking headlines with a web-search-enabled model.

    Never raises: any failure returns an empty list.

    Example:
        discovery = DiscoveryClient()
        headlines = await discovery.discover()
    """

    def __init__(
        self,
        client: PerplexityClient | None = None,
        config: AnalysisConfig | None = None,
        asset_names: list[str] | None = None,
    ):
        self._config = config or AnalysisConfig()
        self._client = client
        self._asset_names = asset_names or DEFAULT_ASSET_NAMES

    def _get_client(self) -> PerplexityClient:
        if self._client is None:
            self._client = PerplexityClient(self._config)
        return self._client

    def confidence_for(self, relevance: Any, asset_count: int, ceiling: float | None = None) -> float:
        """``clamp(relevance + bonus * assets, min, max)``."""
        cfg = self._config
        base = clamp(relevance, 0.0, 1.0, default=cfg.discovery_default_relevance)
        upper = cfg.discovery_max_confidence if ceiling is None else ceiling
        return clamp(
            base + cfg.discovery_asset_bonus * asset_count,
            cfg.discovery_min_confidence,
            upper,
        )

    async def discover(self) -> list[Headline]:
        if not self._config.discovery_enabled:
            return []

        try:
            response = await asyncio.wait_for(
                self._get_client().complete(
                    build_discovery_messages(
                        self._asset_names,
                        self._config.discovery_max_headlines,
                        self._config.discovery_recency,
                    ),
                    model=self._config.triage_model,
                    purpose="discovery",
                    extra_body={"web_search_options": {"search_type": "auto"}},
                ),
                timeout=self._config.discovery_timeout,
            )
        except Exception as e:
            get_metrics().record_error("discovery", type(e).__name__)
            logger.warning(f"AI discovery failed: {type(e).__name__}: {e}")
            return []

        items: list[Any] = []
        loaded = load_json_lenient(response.content, opener="[")
        if loaded is not None and isinstance(loaded[0], list):
            items = loaded[0]

        headlines = self._items_to_headlines(items, response.search_results)
        if not headlines and response.search_results:
            logger.info("Discovery returned no items, converting search results")
            headlines = self._search_results_to_headlines(response.search_results)

        get_metrics().record_fetch("ai_discovery", len(headlines))
        flagged = sum(1 for h in headlines if h.is_flagged)
        logger.info(f"AI discovery: {len(headlines)} headlines, {flagged} matched an asset")
        return headlines

    def _build(
        self,
        title: str,
        url: str,
        source: str,
        description: str,
        published_at: datetime,
        confidence: float,
        reason: str,
    ) -> Headline | None:
        text = f"{title} {description}"
        assets = match_assets(text)
        try:
            return Headline(
                id=_headline_id(title, url),
                title=title,
                url=url,
                source=source,
                published_at=published_at,
                description=description or None,
                channel=DiscoveryChannel.AI_DISCOVERY,
                triage_status=TriageStatus.FLAGGED if assets else TriageStatus.NOISE,
                matched_assets=assets,
                matched_keywords=extract_keywords(text),
                confidence=confidence,
                ai_score=round(confidence * 10, 1),
                ai_reason=reason,
            )
        except ValidationError as e:
            logger.debug(f"Skipping discovered item {title!r}: {e}")
            return None

    def _items_to_headlines(
        self, items: list[Any], search_results: list[dict[str, Any]]
    ) -> list[Headline]:
        headlines = []
        for index, item in enumerate(items[: self._config.discovery_max_headlines]):
            if not isinstance(item, dict) or not str(item.get("title") or "").strip():
                continue
            title = str(item["title"]).strip()
            description = str(item.get("description") or "").strip()
            url = str(item.get("url") or "")
            if not url and index < len(search_results):
                url = str(search_results[index].get("url") or "")

            asset_count = len(match_assets(f"{title} {description}"))
            headline = self._build(
                title=title,
                url=url,
                source=str(item.get("source") or "Perplexity Discovery"),
                description=description,
                published_at=_parse_timestamp(item.get("publishedAt")),
                confidence=self.confidence_for(item.get("relevance"), asset_count),
                reason="Discovered by web search",
            )
            if headline is not None:
                headlines.append(headline)
        return headlines

    def _search_results_to_headlines(self, results: list[dict[str, Any]]) -> list[Headline]:
        headlines = []
        for result in results[: self._config.discovery_max_headlines]:
            title = str(result.get("title") or result.get("name") or "Untitled").strip()
            description = str(result.get("snippet") or result.get("description") or "").strip()
            asset_count = len(match_assets(f"{title} {description}"))
            headline = self._build(
                title=title,
                url=str(result.get("url") or ""),
                source=str(result.get("source") or "Web Search"),
                description=description,
                published_at=_parse_timestamp(result.get("date")),
                confidence=self.confidence_for(
                    self._config.discovery_default_relevance,
                    asset_count,
                    ceiling=SEARCH_RESULT_MAX_CONFIDENCE,
                ),
                reason="Discovered via search results",
            )
            if headline is not None:
                headlines.append(headline)
        return headlines

    async def close(self) -> None:
        if self._client is not None:
            await self._client.close()
