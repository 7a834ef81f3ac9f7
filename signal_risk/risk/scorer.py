"""
Component-based risk scoring.

The score for an asset is a weighted sum of five sub-scores, each derived
from the event and its structured impact analysis:

    Supply Disruption      share of global supply cited by the primary impact
    Market Sentiment       breadth and magnitude of the impacts
    Company Exposure       how hard key related companies are hit
    Geopolitical Severity  fixed severity per event type
    Historical Precedent   whether the analysis cites comparable past events

Every sub-score is clamped to [0, 10] and the weights sum to 1.0, so the
final value is always within [0, 10].
"""

import logging
import re

from signal_risk.analysis.schemas import Event, ImpactAnalysis, ImpactOrder
from signal_risk.assets.schemas import Asset
from signal_risk.risk.config import RiskScoringConfig
from signal_risk.risk.schemas import (
    MAX_SCORE,
    MIN_SCORE,
    RiskComponent,
    RiskLevel,
    RiskScore,
    clamp,
    round_score,
    score_to_level,
)

logger = logging.getLogger(__name__)

_PERCENT_RE = re.compile(r"(\d+(?:\.\d+)?)\s*%")

_LEVEL_LABELS = {
    RiskLevel.LOW: "Low Risk",
    RiskLevel.MODERATE: "Moderate Risk",
    RiskLevel.ELEVATED: "Elevated Risk",
    RiskLevel.CRITICAL: "Critical Risk",
}


def risk_level_label(level: RiskLevel | str) -> str:
    """Human-readable label for a risk level."""
    return _LEVEL_LABELS[RiskLevel(level)]


class RiskScorer:
    """
    Compute component-attributed risk scores.

    Pure and total: no I/O, and any validated ``ImpactAnalysis`` (including
    one with no impacts or opportunities) yields a score in [0, 10].

    Example:
        scorer = RiskScorer()
        score = scorer.calculate_risk_score(asset, event, analysis)
        print(score.value, score.level)
    """

    def __init__(self, config: RiskScoringConfig | None = None):
        self._config = config or RiskScoringConfig()

    @property
    def config(self) -> RiskScoringConfig:
        return self._config

    def calculate_risk_score(
        self,
        asset: Asset,
        event: Event,
        analysis: ImpactAnalysis,
    ) -> RiskScore:
        weights = self._config.weights
        components = [
            RiskComponent(
                factor="Supply Disruption",
                weight=weights["supply_disruption"],
                score=self._bounded(self.score_supply_disruption(analysis)),
                description="Impact on global supply availability",
            ),
            RiskComponent(
                factor="Market Sentiment",
                weight=weights["market_sentiment"],
                score=self._bounded(self.score_market_sentiment(analysis)),
                description="Investor reaction and market volatility",
            ),
            RiskComponent(
                factor="Company Exposure",
                weight=weights["company_exposure"],
                score=self._bounded(self.score_company_exposure(asset, analysis)),
                description="Direct exposure of key companies",
            ),
            RiskComponent(
                factor="Geopolitical Severity",
                weight=weights["geopolitical_severity"],
                score=self._bounded(self.score_geopolitical_severity(event)),
                description="Political stability and conflict risk",
            ),
            RiskComponent(
                factor="Historical Precedent",
                weight=weights["historical_precedent"],
                score=self._bounded(self.score_historical_precedent(analysis)),
                description="Comparison to past similar events",
            ),
        ]

        value = round_score(sum(c.contribution for c in components))
        logger.debug(f"Risk score for {asset.id}: {value} from {len(analysis.impacts)} impacts")
        return RiskScore(value=value, level=score_to_level(value), components=components)

    @staticmethod
    def _bounded(score: float) -> float:
        return clamp(score, MIN_SCORE, MAX_SCORE)

    def score_supply_disruption(self, analysis: ImpactAnalysis) -> float:
        """Score from the first percentage in the first primary impact."""
        primary = analysis.impacts_of(ImpactOrder.PRIMARY)
        if not primary:
            return 0.0

        match = _PERCENT_RE.search(primary[0].description)
        pct = float(match.group(1)) if match else 0.0

        cfg = self._config
        if pct >= cfg.supply_critical_pct:
            return cfg.supply_critical_score
        if pct >= cfg.supply_elevated_pct:
            return cfg.supply_elevated_score
        if pct >= cfg.supply_moderate_pct:
            return cfg.supply_moderate_score
        return min(pct / 2, cfg.supply_low_cap)

    def score_market_sentiment(self, analysis: ImpactAnalysis) -> float:
        """Breadth of affected entities plus half the average impact magnitude."""
        impacts = analysis.impacts
        entity_count = sum(len(i.affected_entities) for i in impacts)
        avg_magnitude = sum(i.magnitude for i in impacts) / max(len(impacts), 1)

        saturation = self._config.sentiment_entity_saturation
        entity_factor = min(entity_count / saturation, 1.0) * 5
        return min(entity_factor + avg_magnitude * 0.5, MAX_SCORE)

    def score_company_exposure(self, asset: Asset, analysis: ImpactAnalysis) -> float:
        """Average first-order impact on the asset's high-exposure companies."""
        first_order = analysis.impacts_of(ImpactOrder.FIRST)
        if not first_order:
            return self._config.exposure_no_first_order

        key_names: set[str] = set()
        for company in asset.monitoring.high_exposure_companies(
            self._config.high_exposure_threshold
        ):
            key_names.add(company.name.casefold())
            if company.symbol:
                key_names.add(company.symbol.casefold())

        hits = []
        for entity in first_order[0].affected_entities:
            identifiers = {entity.name.casefold()}
            if entity.symbol:
                identifiers.add(entity.symbol.casefold())
            if identifiers & key_names:
                hits.append(entity.impact_magnitude)

        if not hits:
            return self._config.exposure_no_key_company
        return sum(hits) / len(hits)

    def score_geopolitical_severity(self, event: Event) -> float:
        event_type = getattr(event.event_type, "value", event.event_type)
        return self._config.severity_by_event_type.get(
            event_type, self._config.default_severity
        )

    def score_historical_precedent(self, analysis: ImpactAnalysis) -> float:
        """Higher when impacts and opportunities both reference past events."""
        cfg = self._config
        in_impacts = any(
            term in impact.description.lower()
            for impact in analysis.impacts
            for term in cfg.impact_history_terms
        )
        in_opportunities = any(
            term in opp.description.lower()
            for opp in analysis.opportunities
            for term in cfg.opportunity_history_terms
        )

        if in_impacts and in_opportunities:
            return cfg.history_both_score
        if in_impacts or in_opportunities:
            return cfg.history_one_score
        return cfg.history_none_score
