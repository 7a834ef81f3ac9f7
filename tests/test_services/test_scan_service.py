"""Tests for ScanService."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from signal_risk.ingestion.schemas import DiscoveryChannel, TriageStatus
from signal_risk.services.feed_state import FeedState
from signal_risk.services.scan_service import ScanMode, ScanService, is_analysis_eligible
from signal_risk.triage.config import TriageConfig
from signal_risk.triage.relevance import RelevanceClassifier
from tests.conftest import llm_response, make_flagged, make_headline


@pytest.fixture
def aggregator() -> MagicMock:
    mock = MagicMock()
    mock.fetch_all = AsyncMock(return_value=[])
    return mock


@pytest.fixture
def discovery() -> MagicMock:
    mock = MagicMock()
    mock.discover = AsyncMock(return_value=[])
    mock.close = AsyncMock()
    return mock


@pytest.fixture
def feed_state() -> FeedState:
    return FeedState()


def _service(feed_state, catalog, aggregator, discovery, mock_llm, config=None) -> ScanService:
    config = config or TriageConfig()
    return ScanService(
        feed_state,
        catalog,
        aggregator=aggregator,
        classifier=RelevanceClassifier(client=mock_llm, config=config),
        discovery=discovery,
        config=config,
    )


class TestMockScan:
    """Scans over the offline fixtures."""

    async def test_keyword_only(self, feed_state, catalog, aggregator, discovery, mock_llm):
        service = _service(feed_state, catalog, aggregator, discovery, mock_llm)

        result = await service.scan(ScanMode.MOCK, enable_ai=False)

        assert result.total_headlines == 6
        assert result.flagged_count == 3
        assert {h.id for h in result.signals} == {"mock-1", "mock-2", "mock-3"}
        assert {h.id for h in result.eligible} == {"mock-1", "mock-2", "mock-3"}
        assert result.ai_triaged_count == 0
        assert result.estimated_cost == 0.0
        assert result.projected_analysis_cost == pytest.approx(0.105)
        assert result.used_mock_fallback is False
        mock_llm.complete.assert_not_called()
        aggregator.fetch_all.assert_not_called()
        discovery.discover.assert_not_called()

    async def test_publishes_sorted_feed(self, feed_state, catalog, aggregator, discovery, mock_llm):
        service = _service(feed_state, catalog, aggregator, discovery, mock_llm)

        result = await service.scan(ScanMode.MOCK, enable_ai=False)
        snapshot = feed_state.read()

        confidences = [h.confidence for h in snapshot.headlines]
        assert confidences == sorted(confidences, reverse=True)
        assert [h.id for h in snapshot.headlines] == [h.id for h in result.headlines]
        assert snapshot.last_scan_time == result.scanned_at

    async def test_relevance_confirms_top_flagged(self, feed_state, catalog, aggregator, discovery, mock_llm):
        mock_llm.complete.return_value = llm_response('{"score": 9, "reason": "Supply hit", "relevant": true}')
        service = _service(feed_state, catalog, aggregator, discovery, mock_llm)

        result = await service.scan(ScanMode.MOCK)

        assert result.ai_triaged_count == 3
        assert mock_llm.complete.await_count == 3
        assert result.estimated_cost == pytest.approx(0.0024)
        oil = next(h for h in result.headlines if h.id == "mock-3")
        assert oil.confidence == pytest.approx(0.9)
        assert oil.ai_score == 9

    async def test_relevance_budget(self, feed_state, catalog, aggregator, discovery, mock_llm):
        mock_llm.complete.return_value = llm_response('{"score": 8, "relevant": true}')
        config = TriageConfig(max_ai_triage_per_scan=2)
        service = _service(feed_state, catalog, aggregator, discovery, mock_llm, config)

        result = await service.scan(ScanMode.MOCK)

        assert result.ai_triaged_count == 2
        assert mock_llm.complete.await_count == 2

    async def test_disagreement_lowers_confidence_only(self, feed_state, catalog, aggregator, discovery, mock_llm):
        mock_llm.complete.return_value = llm_response('{"score": 2, "relevant": false}')
        service = _service(feed_state, catalog, aggregator, discovery, mock_llm)

        result = await service.scan(ScanMode.MOCK)

        assert len(result.signals) == 3
        oil = next(h for h in result.headlines if h.id == "mock-3")
        assert oil.triage_status == TriageStatus.FLAGGED
        assert oil.confidence == pytest.approx(0.35)
        assert "mock-3" not in {h.id for h in result.eligible}

    async def test_relevance_outage_keeps_keyword_result(self, feed_state, catalog, aggregator, discovery, mock_llm):
        mock_llm.complete.side_effect = RuntimeError("service down")
        service = _service(feed_state, catalog, aggregator, discovery, mock_llm)

        result = await service.scan(ScanMode.MOCK)

        assert {h.id for h in result.signals} == {"mock-1", "mock-2", "mock-3"}


class TestAutoScan:
    """Scans that fetch RSS and merge discovery."""

    async def test_empty_rss_falls_back_to_mock(self, feed_state, catalog, aggregator, discovery, mock_llm):
        service = _service(feed_state, catalog, aggregator, discovery, mock_llm)

        result = await service.scan(ScanMode.AUTO, enable_ai=False)

        assert result.used_mock_fallback is True
        assert result.total_headlines == 6
        discovery.discover.assert_awaited_once()

    async def test_discovery_merged_without_duplicates(self, feed_state, catalog, aggregator, discovery, mock_llm):
        aggregator.fetch_all.return_value = [
            make_headline("feed-1", title="Chilean workers strike at SQM lithium mine"),
        ]
        discovery.discover.return_value = [
            make_flagged(
                "ai-1",
                title="Chile lithium workers go on strike at SQM facility",
                channel=DiscoveryChannel.AI_DISCOVERY,
            ),
            make_flagged(
                "ai-2",
                "oil",
                confidence=0.8,
                title="Drone strike hits Saudi export terminal",
                channel=DiscoveryChannel.AI_DISCOVERY,
            ),
        ]
        service = _service(feed_state, catalog, aggregator, discovery, mock_llm)

        result = await service.scan(ScanMode.AUTO, enable_ai=False)

        assert result.discovered_count == 2
        assert result.duplicates_dropped == 1
        assert result.total_headlines == 2
        assert {h.id for h in result.headlines} == {"feed-1", "ai-2"}
        ai = next(h for h in result.headlines if h.id == "ai-2")
        assert ai.confidence == 0.8
        assert ai.matched_assets == ["oil"]

    async def test_discovery_can_be_disabled(self, feed_state, catalog, aggregator, discovery, mock_llm):
        aggregator.fetch_all.return_value = [make_headline("feed-1")]
        service = _service(feed_state, catalog, aggregator, discovery, mock_llm)

        result = await service.scan(ScanMode.AUTO, enable_ai=False, use_discovery=False)

        discovery.discover.assert_not_called()
        assert result.used_mock_fallback is False
        assert result.total_headlines == 1

    async def test_close(self, feed_state, catalog, aggregator, discovery, mock_llm):
        service = _service(feed_state, catalog, aggregator, discovery, mock_llm)

        await service.close()

        mock_llm.close.assert_awaited_once()
        discovery.close.assert_awaited_once()


class TestEligibility:
    @pytest.mark.parametrize(
        "headline, eligible",
        [
            (make_flagged(confidence=0.5), True),
            (make_flagged(confidence=0.49), False),
            (make_headline(confidence=0.9), False),
            (make_flagged(confidence=0.9).advance(TriageStatus.ANALYZED), False),
        ],
    )
    def test_floor(self, headline, eligible):
        assert is_analysis_eligible(headline, 0.5) is eligible
