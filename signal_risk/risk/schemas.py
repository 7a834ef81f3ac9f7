"""
Risk score data models.

``score_to_level`` is the only place score thresholds live: assets, component
scores, batch results and API responses all derive their level from it.
"""

import math
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

MIN_SCORE = 0.0
MAX_SCORE = 10.0


def _utc_now() -> datetime:
    """Return current UTC time with timezone info."""
    return datetime.now(timezone.utc)


class RiskLevel(str, Enum):
    """Discrete risk level derived from a 0-10 score."""

    LOW = "low"
    MODERATE = "moderate"
    ELEVATED = "elevated"
    CRITICAL = "critical"


class ScoringMethod(str, Enum):
    """Which path produced an asset's new score."""

    COMPONENTS = "components"
    WEIGHTING = "weighting"


class WeightDirection(str, Enum):
    """Direction of an externally judged risk adjustment."""

    INCREASE = "increase"
    DECREASE = "decrease"
    NEUTRAL = "neutral"


def clamp(value: Any, low: float, high: float, default: float | None = None) -> float:
    """
    Coerce ``value`` to a float inside [low, high].

    Non-numeric input (None, garbage strings, NaN) becomes ``default``, or
    ``low`` when no default is given. Integers too large for a float clamp
    like infinities.
    """
    fallback = low if default is None else default
    try:
        number = float(value)
    except OverflowError:
        number = math.inf if value > 0 else -math.inf
    except (TypeError, ValueError):
        return fallback
    if math.isnan(number):
        return fallback
    return min(max(number, low), high)


def round_score(value: float) -> float:
    """Clamp a score to [0, 10] and round half-up to one decimal place."""
    bounded = clamp(value, MIN_SCORE, MAX_SCORE)
    return float(Decimal(repr(bounded)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def score_to_level(score: float) -> RiskLevel:
    """
    Map a 0-10 score to its risk level.

    <3 low, <5 moderate, <7 elevated, otherwise critical.
    """
    if score < 3:
        return RiskLevel.LOW
    if score < 5:
        return RiskLevel.MODERATE
    if score < 7:
        return RiskLevel.ELEVATED
    return RiskLevel.CRITICAL


class RiskComponent(BaseModel):
    """One weighted factor of a component-based risk score."""

    model_config = ConfigDict(frozen=True)

    factor: str
    weight: float = Field(..., ge=0.0, le=1.0)
    score: float = Field(..., ge=MIN_SCORE, le=MAX_SCORE)
    description: str = ""

    @property
    def contribution(self) -> float:
        """Weighted contribution of this component to the total."""
        return self.score * self.weight


class RiskScore(BaseModel):
    """Component-attributed risk score for one asset."""

    model_config = ConfigDict(frozen=True)

    value: float = Field(..., ge=MIN_SCORE, le=MAX_SCORE)
    level: RiskLevel
    components: list[RiskComponent] = Field(default_factory=list)
    calculated_at: datetime = Field(default_factory=_utc_now)


class WeightingComponents(BaseModel):
    """Per-factor sub-scores reported alongside a weighting (display only)."""

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    supply_disruption: float = 5.0
    market_sentiment: float = 5.0
    company_exposure: float = 5.0
    geopolitical_severity: float = 5.0
    historical_precedent: float = 5.0

    @field_validator("*", mode="before")
    @classmethod
    def clamp_component(cls, v: Any) -> float:
        return clamp(v, MIN_SCORE, MAX_SCORE, default=5.0)


class RiskWeighting(BaseModel):
    """Directional risk adjustment judged by an external model."""

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    direction: WeightDirection = WeightDirection.NEUTRAL
    magnitude: float = 0.0
    confidence: float = 0.5
    reasoning: str = ""
    components: WeightingComponents = Field(default_factory=WeightingComponents)

    @field_validator("direction", mode="before")
    @classmethod
    def normalize_direction(cls, v: Any) -> Any:
        if isinstance(v, str):
            v = v.strip().lower()
            if v not in {d.value for d in WeightDirection}:
                return WeightDirection.NEUTRAL
        return v

    @field_validator("magnitude", mode="before")
    @classmethod
    def clamp_magnitude(cls, v: Any) -> float:
        return clamp(v, MIN_SCORE, MAX_SCORE, default=0.0)

    @field_validator("confidence", mode="before")
    @classmethod
    def clamp_confidence(cls, v: Any) -> float:
        return clamp(v, 0.0, 1.0, default=0.5)

    @field_validator("reasoning", mode="before")
    @classmethod
    def coerce_reasoning(cls, v: Any) -> str:
        return "" if v is None else str(v)
