"""
Rule-based event type classification and Event builders.

Patterns are checked in priority order; the first bucket that matches wins
and anything unmatched is a plain market movement.
"""

import re
import uuid

from signal_risk.analysis.schemas import Event, EventType
from signal_risk.ingestion.schemas import Headline

_EVENT_PATTERNS: list[tuple[EventType, re.Pattern[str]]] = [
    (
        EventType.CONFLICT,
        re.compile(r"\b(war|conflict|attack\w*|invasion|military|battle|combat|missile|rebels?|houthi)\b"),
    ),
    (
        EventType.STRIKE,
        re.compile(r"\b(strikes?|walkout|union|labou?r action|workers|picket\w*)\b"),
    ),
    (
        EventType.NATURAL_DISASTER,
        re.compile(r"\b(earthquake|flood\w*|hurricane|typhoon|wildfire|fire|disaster|tsunami|drought)\b"),
    ),
    (
        EventType.POLITICAL_UNREST,
        re.compile(r"\b(coup|unrest|riots?|revolution|uprising|protests?|instability|regime change)\b"),
    ),
    (
        EventType.TRADE_POLICY,
        re.compile(r"\b(sanctions?|bans?|tariffs?|embargo|export controls?|restrictions?|quota)\b"),
    ),
    (
        EventType.REGULATION,
        re.compile(r"\b(regulation\w*|regulator\w*|policy|compliance|law|royalt\w+|nationali[sz]\w*)\b"),
    ),
    (
        EventType.TECHNOLOGY_DISRUPTION,
        re.compile(r"\b(innovation|breakthrough|chips?|semiconductors?|ai|technology|patent|disruption)\b"),
    ),
]


def classify_event_type(text: str) -> EventType:
    """Classify free text into an event type."""
    lowered = (text or "").lower()
    for event_type, pattern in _EVENT_PATTERNS:
        if pattern.search(lowered):
            return event_type
    return EventType.MARKET_MOVEMENT


def event_from_headline(headline: Headline) -> Event:
    """Build the Event a flagged headline describes."""
    return Event(
        id=f"event-{headline.id}",
        title=headline.title,
        description=headline.description or headline.title,
        event_type=classify_event_type(headline.text),
        source_name=headline.source or "Unknown",
        source_url=headline.url,
        snippet=(headline.description or "")[:280],
        published_at=headline.published_at,
    )


def event_from_text(
    text: str,
    title: str | None = None,
    source_name: str = "Manual input",
) -> Event:
    """Build an Event from analyst-supplied text."""
    cleaned = text.strip()
    return Event(
        id=f"event-{uuid.uuid4().hex[:12]}",
        title=title or cleaned[:100],
        description=cleaned,
        event_type=classify_event_type(cleaned),
        source_name=source_name,
        snippet=cleaned[:280],
    )
