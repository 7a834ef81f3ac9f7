"""
Asset data models.

``risk_level`` is computed from ``current_risk_score`` on every read and is
never stored, so the two cannot drift apart.
"""

from datetime import datetime, timezone
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

from signal_risk.risk.schemas import RiskLevel, clamp, score_to_level


def _utc_now() -> datetime:
    """Return current UTC time with timezone info."""
    return datetime.now(timezone.utc)


class RelatedCompany(BaseModel):
    """A listed company whose fortunes are tied to the asset."""

    model_config = ConfigDict(frozen=True)

    name: str
    symbol: str
    exposure: int = Field(..., ge=0, le=100, description="Exposure to the asset, 0-100")
    relationship: Literal["producer", "consumer", "competitor"]


class MonitoringConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    regions: list[str] = Field(default_factory=list)
    keywords: list[str] = Field(default_factory=list)
    related_companies: list[RelatedCompany] = Field(default_factory=list)
    sources: list[str] = Field(default_factory=list)

    def high_exposure_companies(self, threshold: int = 70) -> list[RelatedCompany]:
        """Companies with exposure at or above ``threshold``."""
        return [c for c in self.related_companies if c.exposure >= threshold]


class SupplyProducer(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    country: str
    global_share: float = Field(..., ge=0.0, le=100.0, description="Share of global supply, %")
    coordinates: tuple[float, float] | None = None


class SupplyConsumer(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    country: str
    demand: float = Field(..., ge=0.0, le=100.0, description="Share of global demand, %")


class CriticalNode(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    type: Literal["mine", "port", "processing_plant", "pipeline", "fab"]
    location: str
    importance: int = Field(..., ge=0, le=10)


class SupplyChain(BaseModel):
    model_config = ConfigDict(frozen=True)

    top_producers: list[SupplyProducer] = Field(default_factory=list)
    top_consumers: list[SupplyConsumer] = Field(default_factory=list)
    critical_nodes: list[CriticalNode] = Field(default_factory=list)


class Asset(BaseModel):
    """A monitored commodity or equity basket."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    symbol: str
    type: Literal["commodity", "stock"]
    category: str
    description: str = ""
    current_risk_score: float = Field(default=5.0, ge=0.0, le=10.0)
    last_updated: datetime = Field(default_factory=_utc_now)
    monitoring: MonitoringConfig = Field(default_factory=MonitoringConfig)
    supply_chain: SupplyChain = Field(default_factory=SupplyChain)

    @field_validator("current_risk_score", mode="before")
    @classmethod
    def clamp_score(cls, v: Any) -> float:
        return clamp(v, 0.0, 10.0, default=5.0)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def risk_level(self) -> RiskLevel:
        """Risk level derived from the current score."""
        return score_to_level(self.current_risk_score)
