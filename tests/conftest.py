"""Pytest fixtures for signal-risk tests."""

from datetime import datetime, timezone
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from signal_risk.analysis.llm_client import LLMResponse
from signal_risk.analysis.schemas import Event, EventType, ImpactAnalysis
from signal_risk.assets.catalog import AssetCatalog
from signal_risk.assets.scenarios import get_scenario
from signal_risk.assets.schemas import Asset
from signal_risk.config.settings import get_settings
from signal_risk.ingestion.schemas import DiscoveryChannel, Headline, TriageStatus


@pytest.fixture(autouse=True)
def _fresh_settings(monkeypatch):
    """Isolate tests from a developer's .env and cached settings."""
    for name in ("API_KEYS", "FINNHUB_API_KEYS", "ANALYSIS_PERPLEXITY_API_KEY", "RATE_LIMIT_ENABLED"):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def make_headline(
    headline_id: str = "h-1",
    title: str = "Workers at SQM's Salar de Atacama facility begin indefinite strike",
    **kwargs: Any,
) -> Headline:
    """Helper to create a Headline with sensible defaults."""
    return Headline(
        id=headline_id,
        title=title,
        url=kwargs.pop("url", f"https://example.com/{headline_id}"),
        source=kwargs.pop("source", "Reuters"),
        published_at=kwargs.pop("published_at", datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)),
        channel=kwargs.pop("channel", DiscoveryChannel.FEED),
        **kwargs,
    )


def make_flagged(
    headline_id: str = "h-1",
    asset_id: str = "lithium",
    confidence: float = 0.9,
    **kwargs: Any,
) -> Headline:
    """A headline that has already passed keyword triage."""
    return make_headline(
        headline_id,
        triage_status=TriageStatus.FLAGGED,
        matched_assets=[asset_id],
        confidence=confidence,
        **kwargs,
    )


def llm_response(content: str, search_results: list[dict[str, Any]] | None = None) -> LLMResponse:
    return LLMResponse(content=content, search_results=search_results or [], model="sonar")


@pytest.fixture
def catalog() -> AssetCatalog:
    """Fresh catalog seeded from the static definitions."""
    return AssetCatalog()


@pytest.fixture
def lithium(catalog: AssetCatalog) -> Asset:
    return catalog.require("lithium")


@pytest.fixture
def strike_event() -> Event:
    return Event(
        id="event-1",
        title="Workers at SQM's Salar de Atacama facility begin indefinite strike",
        description="Operations halted at a site producing 12% of global lithium supply.",
        event_type=EventType.STRIKE,
        source_name="Reuters",
    )


@pytest.fixture
def chile_analysis() -> ImpactAnalysis:
    """Fully structured analysis from the Chile strike demo scenario."""
    return get_scenario("lithium-chile-strike").preloaded_analysis


@pytest.fixture
def mock_llm() -> MagicMock:
    """PerplexityClient stand-in; set ``complete.return_value`` per test."""
    client = MagicMock()
    client.complete = AsyncMock(return_value=llm_response("{}"))
    client.close = AsyncMock()
    return client
