"""Tests for DeepAnalysisService."""

import asyncio
import json
from unittest.mock import AsyncMock

import pytest

from signal_risk.analysis.config import AnalysisConfig
from signal_risk.analysis.parser import ParseStatus
from signal_risk.analysis.service import DeepAnalysisService
from signal_risk.errors import AnalysisUnavailableError
from signal_risk.risk.schemas import WeightDirection
from tests.conftest import llm_response

ANALYSIS_JSON = json.dumps(
    {
        "summary": "Strike halts Atacama output",
        "impacts": [
            {
                "order": "primary",
                "description": "12% of global lithium supply offline",
                "magnitude": 8,
                "citationIds": [0],
            }
        ],
        "opportunities": [],
    }
)


@pytest.fixture
def service(mock_llm) -> DeepAnalysisService:
    return DeepAnalysisService(client=mock_llm)


class TestAnalyzeEvent:
    """Tests for DeepAnalysisService.analyze_event."""

    async def test_structured_response(self, service, mock_llm, lithium, strike_event):
        mock_llm.complete.return_value = llm_response(
            ANALYSIS_JSON,
            search_results=[{"title": "Reuters", "url": "https://reuters.com/a"}],
        )

        outcome = await service.analyze_event(lithium, strike_event)

        assert outcome.status == ParseStatus.PARSED
        assert outcome.analysis.summary == "Strike halts Atacama output"
        assert outcome.analysis.impacts[0].citations[0].url == "https://reuters.com/a"

    async def test_numeric_search_result_dates(self, service, mock_llm, lithium, strike_event):
        mock_llm.complete.return_value = llm_response(
            ANALYSIS_JSON,
            search_results=[{"title": "Reuters", "url": "https://reuters.com/a", "date": 20250101}],
        )

        outcome = await service.analyze_event(lithium, strike_event)

        assert outcome.status == ParseStatus.PARSED
        assert outcome.analysis.citations[0].published_date == "20250101"

    async def test_request_parameters(self, service, mock_llm, lithium, strike_event):
        mock_llm.complete.return_value = llm_response(ANALYSIS_JSON)

        await service.analyze_event(lithium, strike_event)

        messages = mock_llm.complete.await_args.args[0]
        kwargs = mock_llm.complete.await_args.kwargs
        assert kwargs["purpose"] == "analysis"
        assert kwargs["model"] == "sonar-pro"
        assert kwargs["extra_body"] == {"web_search_options": {"search_type": "pro"}}
        assert messages[0]["role"] == "system"
        assert "Lithium" in messages[0]["content"]
        assert strike_event.title in messages[-1]["content"]

    async def test_prose_response_still_returns_analysis(self, service, mock_llm, lithium, strike_event):
        mock_llm.complete.return_value = llm_response("Prices will likely rise.")

        outcome = await service.analyze_event(lithium, strike_event)

        assert outcome.status == ParseStatus.UNRECOVERABLE
        assert len(outcome.analysis.impacts) == 1

    async def test_service_failure_raises(self, service, mock_llm, lithium, strike_event):
        mock_llm.complete.side_effect = RuntimeError("upstream 500")

        with pytest.raises(AnalysisUnavailableError, match="upstream 500"):
            await service.analyze_event(lithium, strike_event)

    async def test_timeout_raises(self, mock_llm, lithium, strike_event):
        async def slow(*args, **kwargs):
            await asyncio.sleep(5)

        mock_llm.complete = AsyncMock(side_effect=slow)
        config = AnalysisConfig()
        config.analysis_timeout = 0.01
        service = DeepAnalysisService(client=mock_llm, config=config)

        with pytest.raises(AnalysisUnavailableError, match="timed out"):
            await service.analyze_event(lithium, strike_event)


class TestGetRiskWeighting:
    """Tests for DeepAnalysisService.get_risk_weighting."""

    async def test_parses_weighting(self, service, mock_llm, lithium, strike_event, chile_analysis):
        mock_llm.complete.return_value = llm_response(
            '{"direction": "increase", "magnitude": 2.6, "confidence": 0.8, '
            '"reasoning": "Large supply share", "components": {"supplyDisruption": 8}}'
        )

        weighting = await service.get_risk_weighting(lithium, strike_event, chile_analysis)

        assert weighting.direction == WeightDirection.INCREASE
        assert weighting.magnitude == 2.6
        assert weighting.components.supply_disruption == 8.0
        assert mock_llm.complete.await_args.kwargs["purpose"] == "weighting"

    async def test_failure_is_neutral(self, service, mock_llm, lithium, strike_event, chile_analysis):
        mock_llm.complete.side_effect = ConnectionError("reset")

        weighting = await service.get_risk_weighting(lithium, strike_event, chile_analysis)

        assert weighting.direction == WeightDirection.NEUTRAL
        assert weighting.magnitude == 0.0
        assert "ConnectionError" in weighting.reasoning

    async def test_unparseable_is_neutral(self, service, mock_llm, lithium, strike_event, chile_analysis):
        mock_llm.complete.return_value = llm_response("Risk goes up, probably.")

        weighting = await service.get_risk_weighting(lithium, strike_event, chile_analysis)

        assert weighting.direction == WeightDirection.NEUTRAL

    async def test_close_closes_client(self, service, mock_llm):
        await service.close()

        mock_llm.close.assert_awaited_once()
