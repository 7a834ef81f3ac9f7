"""
Offline headline fixtures.

Used by ``scan --mock``, by the scan service when every RSS source comes
back empty, and by tests. Three headlines are clear supply-side events (one
per monitored asset); the rest are market noise that triage should discard.
"""

from datetime import datetime, timedelta, timezone

from signal_risk.ingestion.schemas import DiscoveryChannel, Headline

# (id, title, url, source, minutes ago, description)
_MOCK_ROWS = [
    (
        "mock-1",
        "Chilean workers announce indefinite strike at Salar de Atacama lithium mine",
        "https://reuters.com/mock/chile-lithium-strike",
        "Reuters",
        2,
        "Workers at SQM's flagship lithium operation demand better conditions",
    ),
    (
        "mock-2",
        "TSMC reports earthquake damage at Taiwan fab, production delays expected",
        "https://bloomberg.com/mock/tsmc-earthquake",
        "Bloomberg",
        5,
        "Magnitude 6.5 earthquake disrupts semiconductor manufacturing",
    ),
    (
        "mock-3",
        "Houthi rebels target oil tanker in Red Sea, shipping routes at risk",
        "https://aljazeera.com/mock/oil-tanker-attack",
        "Al Jazeera",
        8,
        "Escalating tensions threaten critical crude shipping lanes",
    ),
    (
        "mock-4",
        "Federal Reserve signals steady interest rates through Q1",
        "https://reuters.com/mock/fed-rates",
        "Reuters",
        10,
        "Fed maintains current monetary policy stance",
    ),
    (
        "mock-5",
        "European markets open slightly higher amid earnings season",
        "https://ft.com/mock/europe-markets",
        "Financial Times",
        12,
        "Major indices show modest gains in morning trading",
    ),
    (
        "mock-6",
        "Tech sector braces for earnings season with mixed expectations",
        "https://bloomberg.com/mock/tech-earnings",
        "Bloomberg",
        15,
        "Analysts divided on outlook for major technology companies",
    ),
]


def mock_headlines(now: datetime | None = None) -> list[Headline]:
    """Return the fixture headlines, untriaged, newest first."""
    now = now or datetime.now(timezone.utc)
    return [
        Headline(
            id=headline_id,
            title=title,
            url=url,
            source=source,
            published_at=now - timedelta(minutes=minutes_ago),
            description=description,
            channel=DiscoveryChannel.MOCK,
        )
        for headline_id, title, url, source, minutes_ago, description in _MOCK_ROWS
    ]
