"""
Impact analysis data models.

Numeric fields are clamped by validators, so whatever the deep analysis
model returns, a constructed ``ImpactAnalysis`` always satisfies its bounds
(magnitudes 0-10, confidences and relevances 0-1).
"""

import math
import re
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from signal_risk.risk.schemas import RiskLevel, clamp

_NUMBER_RE = re.compile(r"-?\d+(?:\.\d+)?")


def _utc_now() -> datetime:
    """Return current UTC time with timezone info."""
    return datetime.now(timezone.utc)


class EventType(str, Enum):
    """Category of a geopolitical or market event."""

    STRIKE = "strike"
    NATURAL_DISASTER = "natural_disaster"
    POLITICAL_UNREST = "political_unrest"
    REGULATION = "regulation"
    TRADE_POLICY = "trade_policy"
    CONFLICT = "conflict"
    TECHNOLOGY_DISRUPTION = "technology_disruption"
    MARKET_MOVEMENT = "market_movement"


class ImpactOrder(str, Enum):
    """How directly an impact follows from the event."""

    PRIMARY = "primary"
    FIRST = "first"
    SECOND = "second"
    THIRD = "third"


class EntityType(str, Enum):
    COMPANY = "company"
    COUNTRY = "country"
    COMMODITY = "commodity"
    SECTOR = "sector"
    REGION = "region"


class OpportunityType(str, Enum):
    LONG = "long"
    SHORT = "short"
    ARBITRAGE = "arbitrage"
    HEDGE = "hedge"


class Citation(BaseModel):
    """A source backing part of an analysis."""

    model_config = ConfigDict(frozen=True)

    id: str
    title: str = ""
    url: str = ""
    snippet: str = ""
    published_date: str | None = None
    relevance: float = 0.5

    @field_validator("relevance", mode="before")
    @classmethod
    def clamp_relevance(cls, v: Any) -> float:
        return clamp(v, 0.0, 1.0, default=0.5)

    @field_validator("published_date", mode="before")
    @classmethod
    def coerce_date(cls, v: Any) -> str | None:
        # Search results sometimes carry numeric dates such as 20250101
        if v is None or isinstance(v, str):
            return v
        try:
            return str(v)
        except ValueError:
            return None


class ReasoningStep(BaseModel):
    """One step of the model's search and reasoning trail."""

    model_config = ConfigDict(frozen=True)

    thought: str = ""
    type: str = "web_search"


class AffectedEntity(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: EntityType = EntityType.COMPANY
    name: str
    symbol: str | None = None
    impact: str = ""
    impact_magnitude: float = 5.0

    @field_validator("impact_magnitude", mode="before")
    @classmethod
    def clamp_magnitude(cls, v: Any) -> float:
        return clamp(v, 0.0, 10.0, default=5.0)


class Impact(BaseModel):
    """A single consequence of the event, at one order tier."""

    model_config = ConfigDict(frozen=True)

    order: ImpactOrder
    description: str
    magnitude: float = 5.0
    timeframe: str = "Unknown"
    affected_entities: list[AffectedEntity] = Field(default_factory=list)
    confidence: float = 0.5
    citations: list[Citation] = Field(default_factory=list)

    @field_validator("magnitude", mode="before")
    @classmethod
    def clamp_magnitude(cls, v: Any) -> float:
        return clamp(v, 0.0, 10.0, default=5.0)

    @field_validator("confidence", mode="before")
    @classmethod
    def clamp_confidence(cls, v: Any) -> float:
        return clamp(v, 0.0, 1.0, default=0.5)


class CompanyQuote(BaseModel):
    """Live market data attached to an opportunity."""

    model_config = ConfigDict(frozen=True)

    ticker: str
    name: str
    price: float | None = None
    change: float | None = None
    change_percent: float | None = None
    sector: str | None = None


class Opportunity(BaseModel):
    """A trading idea suggested by the analysis."""

    model_config = ConfigDict(frozen=True)

    type: OpportunityType = OpportunityType.HEDGE
    description: str
    suggested_actions: list[str] = Field(default_factory=list)
    potential_return: float | None = None
    risk_level: RiskLevel = RiskLevel.MODERATE
    timeframe: str = "Unknown"
    citations: list[Citation] = Field(default_factory=list)
    company: CompanyQuote | None = None

    @field_validator("potential_return", mode="before")
    @classmethod
    def parse_return(cls, v: Any) -> float | None:
        """Accept numbers or strings such as "15%" or "10-20%" (first figure)."""
        if v is None or isinstance(v, bool):
            return None
        try:
            if isinstance(v, (int, float)):
                number = float(v)
            else:
                match = _NUMBER_RE.search(str(v))
                if not match:
                    return None
                number = float(match.group())
        except OverflowError:
            return None
        return number if math.isfinite(number) else None


class ImpactAnalysis(BaseModel):
    """Structured result of a deep impact analysis."""

    model_config = ConfigDict(frozen=True)

    summary: str
    impacts: list[Impact] = Field(default_factory=list)
    opportunities: list[Opportunity] = Field(default_factory=list)
    citations: list[Citation] = Field(default_factory=list)
    reasoning_steps: list[ReasoningStep] = Field(default_factory=list)

    def impacts_of(self, order: ImpactOrder) -> list[Impact]:
        """Impacts at one order tier, in original order."""
        return [impact for impact in self.impacts if impact.order == order]


class Event(BaseModel):
    """A real-world event an asset's risk is assessed against."""

    id: str
    title: str
    description: str = ""
    event_type: EventType = EventType.MARKET_MOVEMENT
    source_name: str = "Manual input"
    source_url: str = ""
    snippet: str = ""
    published_at: datetime = Field(default_factory=_utc_now)
    country: str | None = None
    region: str | None = None
    detected_at: datetime = Field(default_factory=_utc_now)

    @property
    def text(self) -> str:
        """Title and description joined for prompts and pattern matching."""
        if self.description and self.description != self.title:
            return f"{self.title}. {self.description}"
        return self.title
