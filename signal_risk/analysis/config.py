"""Configuration for the Perplexity-backed analysis services.

Covers the API key, model tiers (cheap triage model vs. deep analysis model),
per-call timeouts, circuit breaker tuning and AI discovery settings. All
settings can be overridden via ANALYSIS_* environment variables.
"""

from typing import Literal

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class AnalysisConfig(BaseSettings):
    """Configuration for LLM relevance, deep analysis and discovery calls.

    Example:
        ANALYSIS_PERPLEXITY_API_KEY=pplx-...
        ANALYSIS_ANALYSIS_MODEL=sonar-pro
        ANALYSIS_ANALYSIS_TIMEOUT=180
    """

    model_config = SettingsConfigDict(
        env_prefix="ANALYSIS_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # API access
    perplexity_api_key: SecretStr | None = Field(
        default=None,
        description="Perplexity API key",
    )
    base_url: str = Field(
        default="https://api.perplexity.ai",
        description="OpenAI-compatible Perplexity endpoint",
    )

    # Model selection
    triage_model: str = Field(
        default="sonar",
        description="Cheap model for headline relevance and discovery",
    )
    analysis_model: str = Field(
        default="sonar-pro",
        description="Grounded model for deep impact analysis",
    )
    weighting_model: str = Field(
        default="sonar",
        description="Model for directional risk weighting",
    )
    search_type: Literal["fast", "pro", "auto"] = Field(
        default="pro",
        description="Web search mode for deep analysis",
    )

    # Generation limits
    triage_max_tokens: int = Field(default=100, ge=16, le=1000)
    triage_temperature: float = Field(default=0.1, ge=0.0, le=2.0)
    analysis_temperature: float = Field(default=0.2, ge=0.0, le=2.0)
    weighting_max_tokens: int = Field(default=600, ge=64, le=4000)

    # Timeouts (seconds)
    llm_timeout: float = Field(
        default=180.0,
        ge=5.0,
        le=600.0,
        description="Transport timeout for the SDK client",
    )
    analysis_timeout: float = Field(
        default=120.0,
        ge=10.0,
        le=600.0,
        description="Timeout for one deep impact analysis",
    )
    weighting_timeout: float = Field(default=30.0, ge=5.0, le=120.0)
    discovery_timeout: float = Field(default=30.0, ge=5.0, le=120.0)

    # Circuit breaker settings
    circuit_failure_threshold: int = Field(
        default=5,
        ge=1,
        description="Consecutive failures before opening circuit",
    )
    circuit_recovery_timeout: float = Field(
        default=60.0,
        ge=5.0,
        description="Seconds before attempting recovery probe",
    )

    # AI discovery
    discovery_enabled: bool = True
    discovery_max_headlines: int = Field(default=15, ge=1, le=50)
    discovery_default_relevance: float = Field(default=0.6, ge=0.0, le=1.0)
    discovery_asset_bonus: float = Field(default=0.1, ge=0.0, le=0.5)
    discovery_min_confidence: float = Field(default=0.5, ge=0.0, le=1.0)
    discovery_max_confidence: float = Field(default=0.95, ge=0.0, le=1.0)
    discovery_recency: Literal["hour", "day", "week"] = "day"

    # Stock enrichment of trading opportunities
    enrich_opportunities: bool = True

    @property
    def configured(self) -> bool:
        """True when an API key is available."""
        return self.perplexity_api_key is not None
