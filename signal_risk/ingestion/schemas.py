"""
Canonical headline schema for the triage pipeline.

Every source (RSS feeds, AI discovery, mock fixtures) MUST produce this
structure. Triage, relevance classification and analysis return updated
copies rather than mutating headlines in place.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator

from signal_risk.errors import InvalidTransitionError
from signal_risk.risk.schemas import clamp


def _utc_now() -> datetime:
    """Return current UTC time with timezone info."""
    return datetime.now(timezone.utc)


class TriageStatus(str, Enum):
    """Lifecycle of a headline through the funnel."""

    NOISE = "noise"
    FLAGGED = "flagged"
    ANALYZING = "analyzing"
    ANALYZED = "analyzed"

    @property
    def rank(self) -> int:
        return _STATUS_RANK[self]


_STATUS_RANK = {
    TriageStatus.NOISE: 0,
    TriageStatus.FLAGGED: 1,
    TriageStatus.ANALYZING: 2,
    TriageStatus.ANALYZED: 3,
}


class DiscoveryChannel(str, Enum):
    """Where a headline came from."""

    FEED = "feed"
    AI_DISCOVERY = "ai_discovery"
    MOCK = "mock"


class Headline(BaseModel):
    """
    CANONICAL HEADLINE SCHEMA

    ``channel`` is the discovery-provenance marker: headlines found by the
    AI search channel are already model-scored and skip keyword triage.
    """

    # Identity
    id: str = Field(..., min_length=1, description="Unique headline id")
    title: str = Field(..., description="Headline text")
    url: str = Field(default="", description="Link to the article")
    source: str = Field(default="", description="Publisher display name")
    published_at: datetime = Field(default_factory=_utc_now)
    description: str | None = Field(default=None, description="Summary or lede")
    channel: DiscoveryChannel = Field(default=DiscoveryChannel.FEED)

    # Triage state
    triage_status: TriageStatus = Field(default=TriageStatus.NOISE)
    matched_assets: list[str] = Field(default_factory=list)
    matched_keywords: list[str] = Field(default_factory=list)
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    ai_score: float | None = Field(default=None, ge=0.0, le=10.0)
    ai_reason: str | None = None

    @field_validator("confidence", mode="before")
    @classmethod
    def clamp_confidence(cls, v: Any) -> float:
        return clamp(v, 0.0, 1.0)

    @field_validator("ai_score", mode="before")
    @classmethod
    def clamp_ai_score(cls, v: Any) -> float | None:
        if v is None:
            return None
        return clamp(v, 0.0, 10.0)

    @field_validator("published_at")
    @classmethod
    def ensure_utc(cls, v: datetime) -> datetime:
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v.astimezone(timezone.utc)

    @property
    def is_ai_scored(self) -> bool:
        """True when the headline came from AI discovery."""
        return self.channel == DiscoveryChannel.AI_DISCOVERY

    @property
    def is_flagged(self) -> bool:
        return self.triage_status == TriageStatus.FLAGGED

    @property
    def text(self) -> str:
        """Title and description joined, as used for keyword matching."""
        return f"{self.title} {self.description or ''}".strip()

    def advance(self, status: TriageStatus) -> "Headline":
        """
        Return a copy moved forward to ``status``.

        Raises:
            InvalidTransitionError: If ``status`` is behind the current one.
        """
        if status.rank < self.triage_status.rank:
            raise InvalidTransitionError(
                f"Headline {self.id} cannot move from "
                f"{self.triage_status.value} to {status.value}"
            )
        return self.model_copy(update={"triage_status": status})
