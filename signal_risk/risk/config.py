"""Configuration for component-based risk scoring.

Component weights, the geopolitical severity table, supply disruption tiers
and the exposure threshold for "key" companies. All settings can be
overridden via ``RISK_*`` environment variables.
"""

import math

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _default_severity() -> dict[str, float]:
    return {
        "conflict": 9.0,
        "political_unrest": 8.0,
        "natural_disaster": 7.5,
        "trade_policy": 6.5,
        "strike": 6.0,
        "regulation": 5.0,
        "technology_disruption": 4.0,
        "market_movement": 3.0,
    }


class RiskScoringConfig(BaseSettings):
    """Configuration for the RiskScorer."""

    model_config = SettingsConfigDict(
        env_prefix="RISK_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Component weights, must sum to 1.0
    supply_disruption_weight: float = Field(default=0.30, ge=0.0, le=1.0)
    market_sentiment_weight: float = Field(default=0.20, ge=0.0, le=1.0)
    company_exposure_weight: float = Field(default=0.25, ge=0.0, le=1.0)
    geopolitical_severity_weight: float = Field(default=0.15, ge=0.0, le=1.0)
    historical_precedent_weight: float = Field(default=0.10, ge=0.0, le=1.0)

    # Supply disruption tiers: share of global supply (%) -> sub-score
    supply_critical_pct: float = Field(default=30.0, ge=0.0)
    supply_elevated_pct: float = Field(default=15.0, ge=0.0)
    supply_moderate_pct: float = Field(default=5.0, ge=0.0)
    supply_critical_score: float = Field(default=9.5, ge=0.0, le=10.0)
    supply_elevated_score: float = Field(default=7.0, ge=0.0, le=10.0)
    supply_moderate_score: float = Field(default=4.5, ge=0.0, le=10.0)
    supply_low_cap: float = Field(
        default=3.0,
        ge=0.0,
        le=10.0,
        description="Ceiling for disruptions below the moderate tier (score = pct / 2).",
    )

    # Market sentiment
    sentiment_entity_saturation: int = Field(
        default=5,
        ge=1,
        description="Affected entity count at which the entity factor saturates.",
    )

    # Company exposure
    high_exposure_threshold: float = Field(
        default=70.0,
        ge=0.0,
        le=100.0,
        description="Exposure (0-100) at which a related company counts as key.",
    )
    exposure_no_first_order: float = Field(default=5.0, ge=0.0, le=10.0)
    exposure_no_key_company: float = Field(default=3.0, ge=0.0, le=10.0)

    # Geopolitical severity
    severity_by_event_type: dict[str, float] = Field(default_factory=_default_severity)
    default_severity: float = Field(default=5.0, ge=0.0, le=10.0)

    # Historical precedent
    impact_history_terms: list[str] = Field(
        default_factory=lambda: ["historical", "similar", "past"]
    )
    opportunity_history_terms: list[str] = Field(
        default_factory=lambda: ["historically", "pattern"]
    )
    history_both_score: float = Field(default=8.0, ge=0.0, le=10.0)
    history_one_score: float = Field(default=6.0, ge=0.0, le=10.0)
    history_none_score: float = Field(default=4.0, ge=0.0, le=10.0)

    @property
    def weights(self) -> dict[str, float]:
        return {
            "supply_disruption": self.supply_disruption_weight,
            "market_sentiment": self.market_sentiment_weight,
            "company_exposure": self.company_exposure_weight,
            "geopolitical_severity": self.geopolitical_severity_weight,
            "historical_precedent": self.historical_precedent_weight,
        }

    @model_validator(mode="after")
    def check_weights(self) -> "RiskScoringConfig":
        total = sum(self.weights.values())
        if not math.isclose(total, 1.0, abs_tol=1e-9):
            raise ValueError(f"Component weights must sum to 1.0, got {total:.4f}")
        return self
