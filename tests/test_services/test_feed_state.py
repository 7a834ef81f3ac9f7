"""Tests for the shared feed state."""

from datetime import datetime, timezone

from signal_risk.ingestion.schemas import TriageStatus
from signal_risk.services.feed_state import FeedState
from tests.conftest import make_flagged, make_headline


class TestFeedState:
    def test_empty(self):
        snapshot = FeedState().read()

        assert snapshot.headlines == []
        assert snapshot.last_scan_time is None
        assert snapshot.flagged_count == 0

    def test_update_replaces_feed(self):
        state = FeedState([make_headline("old")])
        scanned_at = datetime(2026, 3, 1, tzinfo=timezone.utc)

        state.update([make_flagged("a"), make_headline("b")], scanned_at)
        snapshot = state.read()

        assert [h.id for h in snapshot.headlines] == ["a", "b"]
        assert snapshot.last_scan_time == scanned_at
        assert snapshot.flagged_count == 1

    def test_update_defaults_scan_time(self):
        state = FeedState()
        state.update([])

        assert state.read().last_scan_time is not None

    def test_snapshot_is_a_copy(self):
        state = FeedState([make_headline("a")])
        snapshot = state.read()

        state.update([])

        assert [h.id for h in snapshot.headlines] == ["a"]

    def test_get_and_replace(self):
        state = FeedState([make_flagged("a")])

        assert state.get("missing") is None
        assert state.replace(make_flagged("a").advance(TriageStatus.ANALYZING)) is True
        assert state.get("a").triage_status == TriageStatus.ANALYZING
        assert state.replace(make_flagged("zzz")) is False
