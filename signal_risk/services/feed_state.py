"""
Current headline feed, shared between scans and analysis requests.

A ``FeedState`` is created once by whoever owns the process (the API
dependencies or a CLI command) and handed to the services that read or
replace it.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone

from signal_risk.ingestion.schemas import Headline, TriageStatus


@dataclass(frozen=True)
class FeedSnapshot:
    """Point-in-time view of the feed."""

    headlines: list[Headline] = field(default_factory=list)
    last_scan_time: datetime | None = None

    @property
    def flagged_count(self) -> int:
        return sum(1 for h in self.headlines if h.triage_status == TriageStatus.FLAGGED)


class FeedState:
    """
    Holder for the latest scanned headlines.

    Example:
        state = FeedState()
        state.update(result.headlines)
        snapshot = state.read()
    """

    def __init__(self, headlines: list[Headline] | None = None):
        self._headlines: list[Headline] = list(headlines or [])
        self._last_scan_time: datetime | None = None

    def update(self, headlines: list[Headline], scanned_at: datetime | None = None) -> None:
        """Replace the feed with a new scan's headlines."""
        self._headlines = list(headlines)
        self._last_scan_time = scanned_at or datetime.now(timezone.utc)

    def read(self) -> FeedSnapshot:
        return FeedSnapshot(headlines=list(self._headlines), last_scan_time=self._last_scan_time)

    def get(self, headline_id: str) -> Headline | None:
        return next((h for h in self._headlines if h.id == headline_id), None)

    def replace(self, headline: Headline) -> bool:
        """
        Swap in an updated copy of a headline already in the feed.

        Returns:
            False if no headline with that id is present
        """
        for index, existing in enumerate(self._headlines):
            if existing.id == headline.id:
                self._headlines[index] = headline
                return True
        return False
