"""Configuration for the headline triage funnel.

Keyword weights, the match threshold, the relevance classifier budget and
the deep analysis eligibility floor. All settings can be overridden via
TRIAGE_* environment variables.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class TriageConfig(BaseSettings):
    """Configuration for keyword triage and relevance classification.

    Example:
        TRIAGE_MAX_AI_TRIAGE_PER_SCAN=5
        TRIAGE_ANALYSIS_CONFIDENCE_FLOOR=0.6
    """

    model_config = SettingsConfigDict(
        env_prefix="TRIAGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Keyword weights, added once per matched keyword
    primary_weight: float = Field(default=0.4, ge=0.0, le=1.0)
    location_weight: float = Field(default=0.2, ge=0.0, le=1.0)
    event_weight: float = Field(default=0.3, ge=0.0, le=1.0)
    company_weight: float = Field(default=0.1, ge=0.0, le=1.0)
    match_threshold: float = Field(
        default=0.5,
        ge=0.0,
        le=1.0,
        description="Raw score above which a headline matches without a primary keyword",
    )

    # Relevance classifier
    max_ai_triage_per_scan: int = Field(
        default=10,
        ge=0,
        le=100,
        description="Flagged headlines sent to the relevance model per scan",
    )
    ai_flag_min_score: float = Field(
        default=7.0,
        ge=0.0,
        le=10.0,
        description="Minimum relevance score for the model to flag a headline",
    )
    irrelevant_confidence_factor: float = Field(
        default=0.5,
        ge=0.0,
        le=1.0,
        description="Confidence multiplier when the model judges a headline irrelevant",
    )
    fallback_relevance_confidence: float = Field(
        default=0.5,
        ge=0.0,
        le=1.0,
        description="Keyword confidence above which the fallback judges a headline relevant",
    )
    relevance_timeout: float = Field(
        default=15.0,
        ge=1.0,
        le=60.0,
        description="Timeout in seconds for one relevance classification",
    )

    # Deep analysis gate
    analysis_confidence_floor: float = Field(
        default=0.5,
        ge=0.0,
        le=1.0,
        description="Minimum confidence for a flagged headline to qualify for deep analysis",
    )

    # Cost estimation (USD)
    triage_cost_per_headline: float = Field(default=0.0008, ge=0.0)
    analysis_cost_per_request: float = Field(default=0.035, ge=0.0)
