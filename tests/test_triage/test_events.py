"""Tests for rule-based event classification."""

import pytest

from signal_risk.analysis.schemas import EventType
from signal_risk.triage.events import classify_event_type, event_from_headline, event_from_text
from tests.conftest import make_headline


class TestClassifyEventType:
    """Tests for classify_event_type."""

    @pytest.mark.parametrize(
        "text, expected",
        [
            ("Houthi rebels target oil tanker in Red Sea", EventType.CONFLICT),
            ("Workers at SQM begin indefinite strike", EventType.STRIKE),
            ("Earthquake damages TSMC fab", EventType.NATURAL_DISASTER),
            ("Protests spread across the capital", EventType.POLITICAL_UNREST),
            ("US widens export controls on advanced chips", EventType.TRADE_POLICY),
            ("Chile proposes higher lithium royalties", EventType.REGULATION),
            ("Solid-state breakthrough announced", EventType.TECHNOLOGY_DISRUPTION),
            ("Brent edges higher in quiet trading", EventType.MARKET_MOVEMENT),
        ],
    )
    def test_classification(self, text, expected):
        assert classify_event_type(text) == expected

    def test_priority_order(self):
        """Conflict outranks strike when both appear."""
        assert classify_event_type("Military attack halts striking workers") == EventType.CONFLICT

    def test_word_boundaries(self):
        """'ai' inside another word is not a technology signal."""
        assert classify_event_type("Said prices were stable") == EventType.MARKET_MOVEMENT

    def test_empty_text(self):
        assert classify_event_type("") == EventType.MARKET_MOVEMENT


class TestEventBuilders:
    """Tests for event_from_headline and event_from_text."""

    def test_event_from_headline(self):
        headline = make_headline(description="Output halted at the flagship site")

        event = event_from_headline(headline)

        assert event.id == "event-h-1"
        assert event.title == headline.title
        assert event.description == "Output halted at the flagship site"
        assert event.event_type == EventType.STRIKE
        assert event.source_name == "Reuters"
        assert event.published_at == headline.published_at

    def test_headline_without_description_uses_title(self):
        event = event_from_headline(make_headline())

        assert event.description == event.title

    def test_event_from_text(self):
        event = event_from_text("  Earthquake hits Hsinchu science park  ", source_name="Analyst")

        assert event.title == "Earthquake hits Hsinchu science park"
        assert event.event_type == EventType.NATURAL_DISASTER
        assert event.source_name == "Analyst"
        assert event.id.startswith("event-")

    def test_long_text_title_is_truncated(self):
        event = event_from_text("x" * 500)

        assert len(event.title) == 100
        assert len(event.snippet) == 280
