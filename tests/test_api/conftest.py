"""Shared fixtures for API tests."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from signal_risk.analysis.batch import AssetChange, BatchAnalysisResult
from signal_risk.analysis.config import AnalysisConfig
from signal_risk.analysis.parser import ParseOutcome, ParseStatus
from signal_risk.api.app import create_app
from signal_risk.api.dependencies import (
    get_analysis_service,
    get_catalog,
    get_feed_state,
    get_scan_service,
)
from signal_risk.assets.catalog import AssetCatalog
from signal_risk.risk.schemas import RiskWeighting, WeightDirection
from signal_risk.services.analysis_service import AnalysisService
from signal_risk.services.feed_state import FeedState
from signal_risk.services.scan_service import ScanService
from signal_risk.triage.relevance import RelevanceClassifier
from tests.conftest import make_flagged, make_headline


@pytest.fixture
def api_catalog() -> AssetCatalog:
    return AssetCatalog()


@pytest.fixture
def api_feed() -> FeedState:
    """Feed with one eligible lithium headline and one noise headline."""
    return FeedState([make_flagged("h-1"), make_headline("noise-1", title="Central bank holds rates")])


@pytest.fixture
def mock_deep(chile_analysis):
    """DeepAnalysisService stand-in returning the Chile strike analysis."""
    deep = MagicMock()
    deep.analyze_event = AsyncMock(return_value=ParseOutcome(chile_analysis, ParseStatus.PARSED))
    deep.get_risk_weighting = AsyncMock()
    deep.close = AsyncMock()
    return deep


@pytest.fixture
def mock_batch():
    batch = MagicMock()
    batch.analyze = AsyncMock(
        return_value=BatchAnalysisResult(
            changes={
                "lithium": AssetChange(
                    asset_id="lithium",
                    previous_score=4.2,
                    new_score=5.9,
                    direction=WeightDirection.INCREASE,
                    weighting=RiskWeighting(direction=WeightDirection.INCREASE, magnitude=1.7),
                    headline_count=1,
                ),
            }
        )
    )
    batch.close = AsyncMock()
    return batch


@pytest.fixture
def scan_service(api_catalog, api_feed, mock_llm) -> ScanService:
    aggregator = MagicMock()
    aggregator.fetch_all = AsyncMock(return_value=[])
    discovery = MagicMock()
    discovery.discover = AsyncMock(return_value=[])
    discovery.close = AsyncMock()

    return ScanService(
        api_feed,
        api_catalog,
        aggregator=aggregator,
        classifier=RelevanceClassifier(client=mock_llm),
        discovery=discovery,
    )


@pytest.fixture
def analysis_service(api_catalog, api_feed, mock_deep, mock_batch) -> AnalysisService:
    return AnalysisService(
        api_catalog,
        api_feed,
        deep_analysis=mock_deep,
        batch_analysis=mock_batch,
        analysis_config=AnalysisConfig(enrich_opportunities=False),
    )


@pytest.fixture
def client(api_catalog, api_feed, scan_service, analysis_service):
    """TestClient with every service dependency overridden."""
    app = create_app()
    app.dependency_overrides[get_catalog] = lambda: api_catalog
    app.dependency_overrides[get_feed_state] = lambda: api_feed
    app.dependency_overrides[get_scan_service] = lambda: scan_service
    app.dependency_overrides[get_analysis_service] = lambda: analysis_service
    yield TestClient(app)
    app.dependency_overrides.clear()
