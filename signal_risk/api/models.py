"""
Request and response models for the signal-risk API.
"""

import datetime as dt

from pydantic import BaseModel, Field, model_validator

from signal_risk.analysis.batch import AssetChange, CrossAssetImpact
from signal_risk.analysis.parser import ParseStatus
from signal_risk.analysis.schemas import Citation, Event, EventType, ImpactAnalysis, Opportunity
from signal_risk.assets.schemas import Asset
from signal_risk.ingestion.schemas import Headline
from signal_risk.risk.schemas import RiskLevel, RiskScore, RiskWeighting, ScoringMethod
from signal_risk.services.scan_service import ScanMode


class ErrorResponse(BaseModel):
    """Response model for errors."""

    detail: str = Field(
        ...,
        description="Error message",
    )
    error_type: str = Field(
        default="error",
        description="Error type: not_found, ineligible, analysis_unavailable, internal",
    )


class HealthResponse(BaseModel):
    """Response model for health check."""

    status: str = Field(..., description="Overall service status: healthy or degraded")
    version: str
    assets: int = Field(default=0, description="Assets in the catalog")
    analysis_configured: bool = Field(
        default=False,
        description="Whether a Perplexity API key is configured",
    )
    market_data_configured: bool = Field(
        default=False,
        description="Whether a Finnhub API key is configured",
    )
    last_scan: dt.datetime | None = None
    headlines: int = Field(default=0, description="Headlines in the current feed")


# Asset models


class AssetListResponse(BaseModel):
    assets: list[Asset]
    total: int


class ScoreSnapshot(BaseModel):
    """An asset score at a point in time, without component attribution."""

    value: float
    level: RiskLevel


# Feed models


class ScanRequest(BaseModel):
    """Request model for a feed scan."""

    mode: ScanMode = Field(
        default=ScanMode.AUTO,
        description="auto: RSS with mock fallback; mock: fixtures only",
    )
    enable_ai: bool = Field(
        default=True,
        description="Confirm the top flagged headlines with the relevance model",
    )
    use_discovery: bool = Field(
        default=True,
        description="Merge AI-discovered headlines (ignored in mock mode)",
    )


class ScanSummary(BaseModel):
    scan_id: str
    mode: ScanMode
    total_headlines: int
    flagged_count: int
    ai_triaged_count: int
    signals_count: int
    eligible_count: int
    discovered_count: int = 0
    duplicates_dropped: int = 0
    used_mock_fallback: bool = False
    estimated_cost: float = Field(default=0.0, description="Relevance cost of this scan (USD)")
    projected_analysis_cost: float = Field(
        default=0.0,
        description="Cost of deep-analyzing every eligible signal (USD)",
    )
    duration_ms: float
    timestamp: dt.datetime


class ScanResponse(BaseModel):
    scan: ScanSummary
    headlines: list[Headline]
    signals: list[Headline]
    eligible_ids: list[str] = Field(
        default_factory=list,
        description="Signals that qualify for deep analysis",
    )


class FeedStreamResponse(BaseModel):
    headlines: list[Headline]
    last_scan: dt.datetime | None = None
    count: int
    flagged_count: int


# Analysis models


class AnalyzeRequest(BaseModel):
    """
    Request model for a single analysis.

    Either ``headline_id`` (a headline from the current feed) or both
    ``asset_id`` and ``event_text`` must be given.
    """

    asset_id: str | None = Field(default=None, description="Asset to analyze")
    event_text: str | None = Field(
        default=None,
        min_length=1,
        max_length=5000,
        description="Free-text event description",
    )
    event_source: str | None = Field(default=None, max_length=200)
    headline_id: str | None = Field(default=None, description="Flagged headline to analyze")
    method: ScoringMethod = Field(
        default=ScoringMethod.COMPONENTS,
        description="components: weighted sub-scores; weighting: bounded model adjustment",
    )

    @model_validator(mode="after")
    def check_target(self) -> "AnalyzeRequest":
        if self.headline_id:
            return self
        if not self.asset_id or not self.event_text or not self.event_text.strip():
            raise ValueError("Provide headline_id, or both asset_id and event_text")
        return self


class AnalyzeResponse(BaseModel):
    asset_id: str
    method: ScoringMethod
    before: ScoreSnapshot
    after: RiskScore
    change: float
    event: Event
    analysis: ImpactAnalysis
    parse_status: ParseStatus
    weighting: RiskWeighting | None = None
    headline: Headline | None = None
    duration_ms: float


class BatchAnalyzeRequest(BaseModel):
    headline_ids: list[str] | None = Field(
        default=None,
        max_length=100,
        description="Headlines to include (default: every eligible headline in the feed)",
    )


class BatchAnalyzeResponse(BaseModel):
    changes: dict[str, AssetChange]
    opportunities: list[Opportunity]
    cross_asset_impacts: list[CrossAssetImpact]
    citations: list[Citation]
    status: ParseStatus
    headline_count: int
    latency_ms: float


# Scenario models


class ScenarioItem(BaseModel):
    id: str
    name: str
    asset_id: str
    description: str
    event_type: EventType
    expected_risk_score: float
    country: str | None = None
    region: str | None = None


class ScenarioListResponse(BaseModel):
    scenarios: list[ScenarioItem]
    total: int


class InjectResponse(BaseModel):
    scenario_id: str
    asset_id: str
    before: ScoreSnapshot
    after: RiskScore
    change: float
    expected_risk_score: float
    event: Event
    analysis: ImpactAnalysis
