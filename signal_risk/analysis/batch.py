"""
Holistic analysis of all flagged headlines across assets.

One heavy call sees every flagged headline grouped by asset and proposes a
change per asset plus cross-asset effects. Proposed changes are treated as
weightings: the model's numbers only set direction and size, and the new
score always comes from ``apply_weighting`` so it stays in [0, 10].
"""

import asyncio
import logging
import time
from typing import Any, Iterable

from pydantic import BaseModel, ConfigDict, Field, computed_field

from signal_risk.analysis.config import AnalysisConfig
from signal_risk.analysis.json_repair import load_json_lenient
from signal_risk.analysis.llm_client import PerplexityClient
from signal_risk.analysis.parser import (
    ImpactAnalysisParser,
    ParseStatus,
    as_list,
    citations_from_search_results,
)
from signal_risk.analysis.prompts import build_batch_messages
from signal_risk.analysis.schemas import Citation, Opportunity
from signal_risk.assets.schemas import Asset
from signal_risk.errors import AnalysisUnavailableError, IneligibleHeadlineError
from signal_risk.ingestion.schemas import Headline
from signal_risk.observability.metrics import get_metrics
from signal_risk.risk.schemas import RiskLevel, RiskWeighting, WeightDirection, clamp, score_to_level
from signal_risk.risk.weighting import apply_weighting

logger = logging.getLogger(__name__)

MAX_OPPORTUNITIES = 5


class AssetChange(BaseModel):
    """Proposed score movement for one asset."""

    model_config = ConfigDict(frozen=True)

    asset_id: str
    previous_score: float
    new_score: float
    direction: WeightDirection = WeightDirection.NEUTRAL
    reasoning: str = ""
    impacts: list[str] = Field(default_factory=list)
    headline_count: int = 0
    # Kept so the change can be re-applied to a score that moved meanwhile
    weighting: RiskWeighting = Field(default_factory=RiskWeighting, exclude=True)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def change(self) -> float:
        return round(self.new_score - self.previous_score, 1)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def level(self) -> RiskLevel:
        return score_to_level(self.new_score)


class CrossAssetImpact(BaseModel):
    model_config = ConfigDict(frozen=True)

    description: str
    affected_assets: list[str] = Field(default_factory=list)


class BatchAnalysisResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    changes: dict[str, AssetChange] = Field(default_factory=dict)
    opportunities: list[Opportunity] = Field(default_factory=list)
    cross_asset_impacts: list[CrossAssetImpact] = Field(default_factory=list)
    citations: list[Citation] = Field(default_factory=list)
    status: ParseStatus = ParseStatus.PARSED


def group_by_asset(
    headlines: Iterable[Headline], assets: Iterable[Asset]
) -> dict[str, dict[str, Any]]:
    """Group headlines under every known asset they matched."""
    grouped: dict[str, dict[str, Any]] = {}
    ordered = list(headlines)
    for asset in assets:
        matched = [h for h in ordered if asset.id in h.matched_assets]
        if matched:
            grouped[asset.id] = {"asset": asset, "headlines": matched}
    return grouped


def _weighting_from_payload(payload: Any) -> RiskWeighting:
    """Read direction and size from one ``assetChanges`` entry."""
    if not isinstance(payload, dict):
        return RiskWeighting(reasoning="No assessment returned for this asset")

    change = payload.get("change")
    if change is None and payload.get("newScore") is not None:
        change = clamp(payload.get("newScore"), 0.0, 10.0) - clamp(
            payload.get("currentScore"), 0.0, 10.0
        )
    delta = clamp(change, -10.0, 10.0, default=0.0)

    direction = payload.get("direction")
    if not isinstance(direction, str) or not direction.strip():
        if delta > 0:
            direction = WeightDirection.INCREASE
        elif delta < 0:
            direction = WeightDirection.DECREASE
        else:
            direction = WeightDirection.NEUTRAL

    return RiskWeighting(
        direction=direction,
        magnitude=abs(delta),
        reasoning=payload.get("reasoning"),
    )


class BatchAnalysisService:
    """
    Analyze flagged headlines for all assets in one call.

    Example:
        service = BatchAnalysisService()
        result = await service.analyze(flagged, catalog.list_assets())
        for change in result.changes.values():
            print(change.asset_id, change.previous_score, "->", change.new_score)
    """

    def __init__(
        self,
        client: PerplexityClient | None = None,
        config: AnalysisConfig | None = None,
        parser: ImpactAnalysisParser | None = None,
    ):
        self._config = config or AnalysisConfig()
        self._client = client
        self._parser = parser or ImpactAnalysisParser()

    def _get_client(self) -> PerplexityClient:
        if self._client is None:
            self._client = PerplexityClient(self._config)
        return self._client

    async def analyze(
        self,
        headlines: Iterable[Headline],
        assets: Iterable[Asset],
    ) -> BatchAnalysisResult:
        """
        Raises:
            IneligibleHeadlineError: If no headline matched a known asset.
            AnalysisUnavailableError: If the analysis call fails or times out.
        """
        grouped = group_by_asset(headlines, assets)
        if not grouped:
            raise IneligibleHeadlineError("No headlines matched a monitored asset")

        metrics = get_metrics()
        start = time.perf_counter()
        try:
            response = await asyncio.wait_for(
                self._get_client().complete(
                    build_batch_messages(grouped, MAX_OPPORTUNITIES),
                    model=self._config.analysis_model,
                    purpose="batch",
                    temperature=0.4,
                    max_tokens=3000,
                    extra_body={"web_search_options": {"search_type": self._config.search_type}},
                ),
                timeout=self._config.analysis_timeout,
            )
        except asyncio.TimeoutError as e:
            metrics.record_error("batch_analysis", "timeout")
            raise AnalysisUnavailableError("Batch analysis timed out") from e
        except Exception as e:
            metrics.record_error("batch_analysis", type(e).__name__)
            logger.error(f"Batch analysis failed: {e}")
            raise AnalysisUnavailableError(f"Batch analysis failed: {e}") from e
        finally:
            metrics.analysis_latency.labels(stage="batch_analysis").observe(
                time.perf_counter() - start
            )

        citations = citations_from_search_results(response.search_results)
        loaded = load_json_lenient(response.content)
        data = loaded[0] if loaded is not None and isinstance(loaded[0], dict) else None
        status = ParseStatus.PARSED if data is not None else ParseStatus.UNRECOVERABLE
        metrics.record_parse(status.value)
        data = data or {}

        raw_changes = data.get("assetChanges")
        if not isinstance(raw_changes, dict):
            raw_changes = {}

        changes = {}
        for asset_id, group in grouped.items():
            asset: Asset = group["asset"]
            payload = raw_changes.get(asset_id)
            weighting = _weighting_from_payload(payload)
            impacts = payload.get("impacts") if isinstance(payload, dict) else None
            changes[asset_id] = AssetChange(
                asset_id=asset_id,
                previous_score=asset.current_risk_score,
                new_score=apply_weighting(asset.current_risk_score, weighting),
                direction=weighting.direction,
                reasoning=weighting.reasoning,
                weighting=weighting,
                impacts=[str(i) for i in impacts] if isinstance(impacts, list) else [],
                headline_count=len(group["headlines"]),
            )

        cross = []
        for item in as_list(data.get("crossAssetImpacts")):
            if isinstance(item, dict) and item.get("description"):
                affected = item.get("affectedAssets")
                cross.append(
                    CrossAssetImpact(
                        description=str(item["description"]),
                        affected_assets=[str(a) for a in affected] if isinstance(affected, list) else [],
                    )
                )

        opportunities = self._parser.build_opportunities(data.get("opportunities"), citations)
        logger.info(
            f"Batch analysis ({status.value}): "
            + ", ".join(f"{c.asset_id} {c.previous_score}->{c.new_score}" for c in changes.values())
        )
        return BatchAnalysisResult(
            changes=changes,
            opportunities=opportunities[:MAX_OPPORTUNITIES],
            cross_asset_impacts=cross,
            citations=citations,
            status=status,
        )

    async def close(self) -> None:
        if self._client is not None:
            await self._client.close()
