"""Tests for the impact analysis parser."""

import json

import pytest

from signal_risk.analysis.parser import (
    ImpactAnalysisParser,
    ParseStatus,
    citations_from_search_results,
    map_citations,
)
from signal_risk.analysis.schemas import EntityType, ImpactOrder, OpportunityType
from signal_risk.risk.schemas import RiskLevel

FULL_RESPONSE = {
    "summary": "Indefinite strike at SQM's Atacama operation.",
    "impacts": [
        {
            "order": "primary",
            "description": "Operations halted at a site producing 12% of global lithium supply",
            "magnitude": 8,
            "timeframe": "Immediate",
            "confidence": 0.9,
            "citationIds": [0, 7, "1"],
            "affectedEntities": [
                {"type": "company", "name": "SQM", "symbol": "SQM", "impactMagnitude": 9},
            ],
        },
        {
            "order": "first-order",
            "description": "Spot lithium carbonate prices rise",
            "magnitude": 14,
            "affectedEntities": [{"type": "Commodity", "name": "Lithium carbonate"}],
        },
        {"order": "fourth", "description": "Dropped: unknown tier"},
        {"order": "second", "description": ""},
    ],
    "opportunities": [
        {
            "type": "LONG",
            "description": "Buy Pilbara Minerals on supply substitution",
            "suggestedActions": ["Buy PLS.AX", None],
            "potentialReturn": "10-20%",
            "riskLevel": "elevated",
            "citationIds": [1],
        },
        {"type": "moonshot", "description": "Unknown type becomes a hedge", "riskLevel": "wild"},
        {"type": "short", "description": ""},
    ],
}


@pytest.fixture
def parser() -> ImpactAnalysisParser:
    return ImpactAnalysisParser()


@pytest.fixture
def citations():
    return citations_from_search_results(
        [
            {"title": "Reuters", "url": "https://reuters.com/a", "date": "2026-03-01"},
            {"title": "Bloomberg", "url": "https://bloomberg.com/b"},
        ]
    )


class TestParseJson:
    """Tests for structured responses."""

    def test_full_response(self, parser, citations):
        outcome = parser.parse(json.dumps(FULL_RESPONSE), citations)
        analysis = outcome.analysis

        assert outcome.status == ParseStatus.PARSED
        assert outcome.repaired is False
        assert analysis.summary == "Indefinite strike at SQM's Atacama operation."
        assert [i.order for i in analysis.impacts] == [ImpactOrder.PRIMARY, ImpactOrder.FIRST]
        assert analysis.citations == citations

    def test_impact_fields(self, parser, citations):
        analysis = parser.parse(json.dumps(FULL_RESPONSE), citations).analysis
        primary, first = analysis.impacts

        assert primary.magnitude == 8
        assert primary.confidence == 0.9
        # Out-of-range citation index 7 is dropped, "1" resolves
        assert [c.id for c in primary.citations] == ["cite-0", "cite-1"]
        assert primary.affected_entities[0].impact_magnitude == 9
        assert first.magnitude == 10.0
        assert first.timeframe == "Unknown"
        assert first.affected_entities[0].type == EntityType.COMMODITY

    def test_opportunity_normalization(self, parser, citations):
        analysis = parser.parse(json.dumps(FULL_RESPONSE), citations).analysis
        long_opp, hedge = analysis.opportunities

        assert len(analysis.opportunities) == 2
        assert long_opp.type == OpportunityType.LONG
        assert long_opp.potential_return == 10.0
        assert long_opp.risk_level == RiskLevel.ELEVATED
        assert long_opp.suggested_actions == ["Buy PLS.AX"]
        assert [c.id for c in long_opp.citations] == ["cite-1"]
        assert hedge.type == OpportunityType.HEDGE
        assert hedge.risk_level == RiskLevel.MODERATE

    def test_fenced_json_with_prose(self, parser):
        raw = "Here is the analysis:\n```json\n" + json.dumps({"summary": "ok"}) + "\n```\nThanks."

        outcome = parser.parse(raw)

        assert outcome.status == ParseStatus.PARSED
        assert outcome.analysis.summary == "ok"

    def test_missing_closing_brackets_are_repaired(self, parser):
        raw = (
            '{"summary": "Truncated", "impacts": [{"order": "primary", '
            '"description": "12% of supply", "magnitude": 8}'
        )

        outcome = parser.parse(raw)

        assert outcome.status == ParseStatus.PARSED
        assert outcome.repaired is True
        assert outcome.analysis.impacts[0].description == "12% of supply"

    def test_missing_summary_gets_default(self, parser):
        outcome = parser.parse('{"impacts": []}')

        assert outcome.analysis.summary == "Analysis complete"

    def test_unrelated_json_is_not_analysis(self, parser):
        outcome = parser.parse('{"foo": 1}')

        assert outcome.status == ParseStatus.UNRECOVERABLE


class TestParseFallbacks:
    """Tests for degraded and unrecoverable responses."""

    def test_labeled_sections(self, parser, citations):
        raw = (
            "PRIMARY IMPACT: Strike halts 12% of global lithium supply.\n\n"
            "FIRST-ORDER IMPACTS: SQM and Albemarle shares fall.\n\n"
            "TRADING OPPORTUNITIES: Long Pilbara Minerals."
        )

        outcome = parser.parse(raw, citations)
        analysis = outcome.analysis

        assert outcome.status == ParseStatus.DEGRADED
        assert [i.order for i in analysis.impacts] == [ImpactOrder.PRIMARY, ImpactOrder.FIRST]
        assert analysis.impacts[0].description == "Strike halts 12% of global lithium supply."
        assert analysis.impacts[0].magnitude == 6.0
        assert analysis.opportunities[0].type == OpportunityType.HEDGE
        assert analysis.opportunities[0].description == "Long Pilbara Minerals."

    def test_plain_prose_is_unrecoverable(self, parser):
        raw = "The strike will probably raise prices for a while."

        outcome = parser.parse(raw)
        [impact] = outcome.analysis.impacts

        assert outcome.status == ParseStatus.UNRECOVERABLE
        assert impact.order == ImpactOrder.PRIMARY
        assert impact.confidence == 0.2
        assert impact.description == raw

    @pytest.mark.parametrize("raw", ["", None, "   ", "{", "[1, 2", "}{"])
    def test_total_on_garbage(self, parser, raw):
        outcome = parser.parse(raw)

        assert outcome.analysis.summary
        assert len(outcome.analysis.impacts) >= 1
        for impact in outcome.analysis.impacts:
            assert 0 <= impact.magnitude <= 10
            assert 0 <= impact.confidence <= 1

    def test_oversized_numbers_are_clamped(self, parser):
        huge = "1" + "0" * 400
        raw = (
            '{"summary": "s", "impacts": [{"order": "primary", "description": "x", '
            f'"magnitude": {huge}, "confidence": {huge}, '
            f'"affectedEntities": [{{"name": "SQM", "impactMagnitude": {huge}}}]}}], '
            f'"opportunities": [{{"description": "Long ALB", "potentialReturn": {huge}}}]}}'
        )

        outcome = parser.parse(raw)
        [impact] = outcome.analysis.impacts

        assert outcome.status == ParseStatus.PARSED
        assert impact.magnitude == 10.0
        assert impact.confidence == 1.0
        assert impact.affected_entities[0].impact_magnitude == 10.0
        assert outcome.analysis.opportunities[0].potential_return is None

    def test_long_text_is_truncated(self, parser):
        outcome = parser.parse("x" * 2000)

        assert len(outcome.analysis.impacts[0].description) == 500

    def test_reasoning_steps_are_kept(self, parser):
        outcome = parser.parse(
            '{"summary": "s"}',
            reasoning_steps=[{"thought": "searched news"}, "not a dict"],
        )

        assert [s.thought for s in outcome.analysis.reasoning_steps] == ["searched news"]
        assert outcome.analysis.reasoning_steps[0].type == "web_search"


class TestCitations:
    """Tests for citation helpers."""

    def test_relevance_decays_by_position(self, citations):
        assert [c.id for c in citations] == ["cite-0", "cite-1"]
        assert citations[0].relevance == 1.0
        assert citations[1].relevance == pytest.approx(0.9)
        assert citations[0].published_date == "2026-03-01"

    def test_map_citations_ignores_bad_ids(self, citations):
        assert map_citations([True, -1, 2, "x", 0], citations) == [citations[0]]
        assert map_citations(None, citations) == []
        assert map_citations(1, citations) == [citations[1]]

    def test_non_string_dates_are_coerced(self):
        citations = citations_from_search_results([{"title": "Wire", "date": 20250101}, {"date": 0}])

        assert citations[0].published_date == "20250101"
        assert citations[1].published_date is None
