"""Application settings using Pydantic Settings for environment-based configuration."""

from functools import lru_cache
from typing import Literal

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Central configuration for the signal-risk application.

    All settings can be overridden via environment variables.
    Prefix is not used to allow standard env var names (e.g., FINNHUB_API_KEYS).
    Component-specific tuning lives in TriageConfig, AnalysisConfig and
    RiskScoringConfig.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Environment
    environment: Literal["development", "staging", "production"] = "development"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    debug: bool = False

    # Feed ingestion
    feed_timeout_seconds: float = Field(default=10.0, ge=1.0, le=60.0)
    max_headlines_per_source: int = Field(default=20, ge=1, le=200)
    feed_user_agent: str = "signal-risk/0.1.0 (+rss reader)"
    scan_interval_seconds: int = Field(default=180, ge=30)

    # Deduplication of AI-discovered headlines against feed headlines
    duplicate_threshold: float = Field(default=0.7, ge=0.0, le=1.0)
    dedup_min_token_length: int = Field(default=3, ge=1)
    dedup_stem_length: int = Field(default=5, ge=0)

    # Market data (comma-separated for multiple keys with rotation)
    finnhub_api_keys: SecretStr | None = None
    finnhub_base_url: str = "https://finnhub.io/api/v1"
    market_timeout_seconds: float = Field(default=10.0, ge=1.0, le=60.0)

    # HTTP retry configuration
    max_http_retries: int = Field(default=3, ge=0, le=10)
    max_backoff_seconds: float = Field(default=60.0, ge=1.0, le=300.0)

    # API server
    api_host: str = "0.0.0.0"
    api_port: int = 8001
    api_keys: str | None = None
    cors_origins: str = "http://localhost:3000,http://localhost:5173"
    cors_allow_credentials: bool = True
    # 0 disables request timeouts; analysis and scan routes get the long bound
    request_timeout_seconds: float = Field(default=30.0, ge=0.0)
    long_request_timeout_seconds: float = Field(default=300.0, ge=1.0)

    # Rate limiting (slowapi, in-process storage unless a URI is given)
    rate_limit_enabled: bool = False
    rate_limit_default: str = "60/minute"
    rate_limit_analysis: str = "10/minute"
    rate_limit_storage_uri: str = "memory://"

    # Observability
    metrics_port: int = 8000

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"

    @property
    def api_key_set(self) -> frozenset[str]:
        """Keys accepted in X-API-KEY; empty means the API is open."""
        return frozenset(k.strip() for k in (self.api_keys or "").split(",") if k.strip())

    @property
    def market_data_configured(self) -> bool:
        """Check if the stock quote API is configured."""
        return self.finnhub_api_keys is not None


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are loaded only once.
    Clear cache with get_settings.cache_clear() if needed.
    """
    return Settings()
