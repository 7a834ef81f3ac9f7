"""
Analysis service - one deep analysis cycle for one asset.

Reads the asset's current score, runs the grounded analysis, moves the
score by exactly one of the two scoring paths, enriches the suggested
trades and writes the new score back to the catalog once.

Only ``AnalysisUnavailableError`` escapes from the external calls; every
other external failure has a fallback further down the stack.
"""

import asyncio
import time
from collections import defaultdict
from dataclasses import dataclass

import structlog

from signal_risk.analysis.batch import BatchAnalysisResult, BatchAnalysisService
from signal_risk.analysis.config import AnalysisConfig
from signal_risk.analysis.parser import ParseStatus
from signal_risk.analysis.schemas import Event, ImpactAnalysis
from signal_risk.analysis.service import DeepAnalysisService
from signal_risk.assets.catalog import AssetCatalog
from signal_risk.assets.schemas import Asset
from signal_risk.errors import IneligibleHeadlineError
from signal_risk.ingestion.schemas import Headline, TriageStatus
from signal_risk.market.finnhub import FinnhubClient, enrich_opportunities
from signal_risk.observability.metrics import get_metrics
from signal_risk.risk.schemas import (
    RiskComponent,
    RiskLevel,
    RiskScore,
    RiskWeighting,
    ScoringMethod,
    score_to_level,
)
from signal_risk.risk.scorer import RiskScorer
from signal_risk.risk.weighting import apply_weighting
from signal_risk.services.feed_state import FeedState
from signal_risk.services.scan_service import is_analysis_eligible
from signal_risk.triage.config import TriageConfig
from signal_risk.triage.events import event_from_headline, event_from_text

logger = structlog.get_logger(__name__)

# (display name, WeightingComponents field and weight key)
_WEIGHTING_FACTORS = (
    ("Supply Disruption", "supply_disruption"),
    ("Market Sentiment", "market_sentiment"),
    ("Company Exposure", "company_exposure"),
    ("Geopolitical Severity", "geopolitical_severity"),
    ("Historical Precedent", "historical_precedent"),
)


@dataclass
class AnalysisReport:
    """Before and after of one analysis cycle."""

    asset_id: str
    event: Event
    method: ScoringMethod
    previous_score: float
    previous_level: RiskLevel
    risk_score: RiskScore
    analysis: ImpactAnalysis
    parse_status: ParseStatus
    weighting: RiskWeighting | None = None
    headline: Headline | None = None
    duration_ms: float = 0.0

    @property
    def change(self) -> float:
        return round(self.risk_score.value - self.previous_score, 1)


class AnalysisService:
    """
    Run analysis cycles against the shared catalog and feed.

    At most one cycle per asset runs at a time; cycles for different assets
    proceed independently.

    Usage:
        service = AnalysisService(catalog, feed_state)
        report = await service.analyze_event("lithium", "Strike at SQM ...")
    """

    def __init__(
        self,
        catalog: AssetCatalog,
        feed_state: FeedState | None = None,
        deep_analysis: DeepAnalysisService | None = None,
        batch_analysis: BatchAnalysisService | None = None,
        scorer: RiskScorer | None = None,
        finnhub: FinnhubClient | None = None,
        analysis_config: AnalysisConfig | None = None,
        triage_config: TriageConfig | None = None,
    ):
        self._catalog = catalog
        self._feed_state = feed_state or FeedState()
        self._analysis_config = analysis_config or AnalysisConfig()
        self._triage_config = triage_config or TriageConfig()
        self._deep_analysis = deep_analysis
        self._batch_analysis = batch_analysis
        self._scorer = scorer or RiskScorer()
        self._finnhub = finnhub
        self._locks: defaultdict[str, asyncio.Lock] = defaultdict(asyncio.Lock)

    def _get_deep_analysis(self) -> DeepAnalysisService:
        if self._deep_analysis is None:
            self._deep_analysis = DeepAnalysisService(config=self._analysis_config)
        return self._deep_analysis

    def _get_batch_analysis(self) -> BatchAnalysisService:
        if self._batch_analysis is None:
            self._batch_analysis = BatchAnalysisService(config=self._analysis_config)
        return self._batch_analysis

    def is_eligible(self, headline: Headline) -> bool:
        return is_analysis_eligible(headline, self._triage_config.analysis_confidence_floor)

    async def analyze_event(
        self,
        asset_id: str,
        text: str,
        method: ScoringMethod = ScoringMethod.COMPONENTS,
        source_name: str = "Manual input",
    ) -> AnalysisReport:
        """
        Analyze analyst-supplied event text against one asset.

        Raises:
            UnknownAssetError: If the asset id is not in the catalog.
            AnalysisUnavailableError: If the deep analysis call fails.
        """
        asset = self._catalog.require(asset_id)
        event = event_from_text(text, source_name=source_name)
        return await self._run_cycle(asset, event, method)

    async def analyze_headline(
        self,
        headline: Headline,
        method: ScoringMethod = ScoringMethod.COMPONENTS,
    ) -> AnalysisReport:
        """
        Analyze a flagged headline against the asset it matched.

        The headline moves to ``analyzing`` while the cycle runs and to
        ``analyzed`` when it completes. If the analysis call fails the
        headline is restored so it can be retried.

        Raises:
            IneligibleHeadlineError: If the headline is not flagged, is below
                the confidence floor or matched no asset.
            UnknownAssetError: If its matched asset is not in the catalog.
            AnalysisUnavailableError: If the deep analysis call fails.
        """
        if not self.is_eligible(headline):
            raise IneligibleHeadlineError(
                f"Headline {headline.id} is not eligible for analysis "
                f"(status={headline.triage_status.value}, confidence={headline.confidence:.2f})"
            )
        if not headline.matched_assets:
            raise IneligibleHeadlineError(f"Headline {headline.id} matched no asset")

        asset = self._catalog.require(headline.matched_assets[0])
        self._feed_state.replace(headline.advance(TriageStatus.ANALYZING))
        try:
            report = await self._run_cycle(asset, event_from_headline(headline), method)
        except Exception:
            self._feed_state.replace(headline)
            raise

        analyzed = headline.advance(TriageStatus.ANALYZED)
        self._feed_state.replace(analyzed)
        report.headline = analyzed
        return report

    async def _run_cycle(self, asset: Asset, event: Event, method: ScoringMethod) -> AnalysisReport:
        async with self._locks[asset.id]:
            with structlog.contextvars.bound_contextvars(asset_id=asset.id, method=method.value):
                return await self._cycle(asset, event, method)

    async def _cycle(self, asset: Asset, event: Event, method: ScoringMethod) -> AnalysisReport:
        start = time.perf_counter()
        # Re-read under the lock so the cycle starts from the latest score
        asset = self._catalog.require(asset.id)
        logger.info("Starting analysis", event_type=event.event_type.value, current=asset.current_risk_score)

        deep = self._get_deep_analysis()
        outcome = await deep.analyze_event(asset, event)
        analysis = outcome.analysis

        weighting = None
        if method == ScoringMethod.WEIGHTING:
            weighting = await deep.get_risk_weighting(asset, event, analysis)
            risk_score = self._weighted_score(asset, weighting)
        else:
            risk_score = self._scorer.calculate_risk_score(asset, event, analysis)

        if self._analysis_config.enrich_opportunities and analysis.opportunities:
            enriched = await enrich_opportunities(analysis.opportunities, self._finnhub)
            analysis = analysis.model_copy(update={"opportunities": enriched})

        self._catalog.update_score(asset.id, risk_score.value)
        get_metrics().set_asset_score(asset.id, risk_score.value)

        report = AnalysisReport(
            asset_id=asset.id,
            event=event,
            method=method,
            previous_score=asset.current_risk_score,
            previous_level=asset.risk_level,
            risk_score=risk_score,
            analysis=analysis,
            parse_status=outcome.status,
            weighting=weighting,
            duration_ms=round((time.perf_counter() - start) * 1000, 2),
        )
        logger.info(
            "Analysis complete",
            previous=report.previous_score,
            score=risk_score.value,
            level=risk_score.level.value,
            parse_status=outcome.status.value,
            impacts=len(analysis.impacts),
            opportunities=len(analysis.opportunities),
        )
        return report

    def _weighted_score(self, asset: Asset, weighting: RiskWeighting) -> RiskScore:
        """Score from the weighting path; components are the model's own sub-scores."""
        value = apply_weighting(asset.current_risk_score, weighting)
        weights = self._scorer.config.weights
        components = [
            RiskComponent(
                factor=factor,
                weight=weights[key],
                score=getattr(weighting.components, key),
                description="Model-assessed sub-score",
            )
            for factor, key in _WEIGHTING_FACTORS
        ]
        return RiskScore(value=value, level=score_to_level(value), components=components)

    async def analyze_batch(self, headlines: list[Headline] | None = None) -> BatchAnalysisResult:
        """
        Analyze eligible headlines for every asset in one call and apply
        each asset's bounded change to the catalog.

        Args:
            headlines: Candidates (defaults to the current feed); ineligible
                ones are skipped

        Raises:
            IneligibleHeadlineError: If no eligible headline matched an asset.
            AnalysisUnavailableError: If the batch call fails.
        """
        candidates = headlines if headlines is not None else self._feed_state.read().headlines
        eligible = [h for h in candidates if self.is_eligible(h)]
        if not eligible:
            raise IneligibleHeadlineError("No eligible headlines to analyze")

        result = await self._get_batch_analysis().analyze(eligible, self._catalog.list_assets())
        parsed = result.status == ParseStatus.PARSED

        # The batch call ran without holding asset locks, so each change is
        # re-applied to the score as it stands now, under that asset's lock
        metrics = get_metrics()
        changes = {}
        for asset_id in sorted(result.changes):
            change = result.changes[asset_id]
            async with self._locks[asset_id]:
                current = self._catalog.require(asset_id).current_risk_score
                new_score = apply_weighting(current, change.weighting)
                if parsed:
                    self._catalog.update_score(asset_id, new_score)
                    metrics.set_asset_score(asset_id, new_score)
            changes[asset_id] = change.model_copy(
                update={"previous_score": current, "new_score": new_score}
            )
        result = result.model_copy(update={"changes": changes})

        if not parsed:
            logger.warning("Batch response unusable, scores and headlines left unchanged")
            return result

        analyzed_ids = {
            h.id for h in eligible if any(a in result.changes for a in h.matched_assets)
        }
        for headline in eligible:
            if headline.id in analyzed_ids:
                self._feed_state.replace(headline.advance(TriageStatus.ANALYZED))

        logger.info(
            "Batch analysis applied",
            assets=len(result.changes),
            headlines=len(analyzed_ids),
            status=result.status.value,
        )
        return result

    async def close(self) -> None:
        if self._deep_analysis is not None:
            await self._deep_analysis.close()
        if self._batch_analysis is not None:
            await self._batch_analysis.close()
