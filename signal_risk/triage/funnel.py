"""
Keyword triage funnel.

The cheap first stage: every headline is matched against every asset
taxonomy, the best matching asset wins, and the results come back sorted by
confidence so downstream stages can take the top N.
"""

import logging
from dataclasses import dataclass
from typing import Iterable

from signal_risk.ingestion.schemas import Headline, TriageStatus
from signal_risk.observability.metrics import get_metrics
from signal_risk.triage.config import TriageConfig
from signal_risk.triage.keywords import KEYWORD_TAXONOMIES, KeywordMatcher, KeywordTaxonomy

logger = logging.getLogger(__name__)


@dataclass
class TriageResult:
    """A triaged headline and the asset it matched (if any)."""

    headline: Headline
    flagged: bool
    confidence: float
    matched_asset: str | None = None


class TriageFunnel:
    """
    Classify headlines as flagged or noise by keyword match.

    Headlines from AI discovery were already scored by a model and pass
    through unchanged.

    Example:
        funnel = TriageFunnel()
        results = funnel.triage(headlines)
        top = get_top_flagged(results, limit=10)
    """

    def __init__(
        self,
        taxonomies: dict[str, KeywordTaxonomy] | None = None,
        matcher: KeywordMatcher | None = None,
        config: TriageConfig | None = None,
    ):
        self._taxonomies = taxonomies if taxonomies is not None else KEYWORD_TAXONOMIES
        self._matcher = matcher or KeywordMatcher(config)

    @property
    def asset_ids(self) -> list[str]:
        return list(self._taxonomies)

    def triage_one(self, headline: Headline) -> TriageResult:
        """Triage a single headline."""
        if headline.is_ai_scored:
            return TriageResult(
                headline=headline,
                flagged=headline.is_flagged,
                confidence=headline.confidence,
                matched_asset=headline.matched_assets[0] if headline.matched_assets else None,
            )

        text = headline.text
        best_asset: str | None = None
        best_score = 0.0
        best_keywords: list[str] = []

        for asset_id, taxonomy in self._taxonomies.items():
            match = self._matcher.match(text, taxonomy)
            # Strict comparison keeps the first asset checked on ties
            if match.matches and match.score > best_score:
                best_asset = asset_id
                best_score = match.score
                best_keywords = match.keywords

        flagged = best_asset is not None
        triaged = headline.model_copy(
            update={
                "triage_status": TriageStatus.FLAGGED if flagged else TriageStatus.NOISE,
                "matched_assets": [best_asset] if flagged else [],
                "matched_keywords": best_keywords,
                "confidence": best_score,
            }
        )
        return TriageResult(
            headline=triaged,
            flagged=flagged,
            confidence=best_score,
            matched_asset=best_asset,
        )

    def triage(self, headlines: Iterable[Headline]) -> list[TriageResult]:
        """
        Triage a batch of headlines.

        Returns:
            Results sorted by descending confidence (stable for ties)
        """
        results = [self.triage_one(h) for h in headlines]
        results.sort(key=lambda r: r.confidence, reverse=True)

        flagged = sum(1 for r in results if r.flagged)
        passthrough = sum(1 for r in results if r.headline.is_ai_scored)
        keyword_flagged = sum(1 for r in results if r.flagged and not r.headline.is_ai_scored)
        get_metrics().record_triage(
            flagged=keyword_flagged,
            noise=len(results) - passthrough - keyword_flagged,
            passthrough=passthrough,
        )
        if results:
            logger.info(
                f"Triage: {flagged}/{len(results)} flagged "
                f"({flagged / len(results):.0%}), {passthrough} pre-scored"
            )
        return results


def get_top_flagged(results: Iterable[TriageResult], limit: int = 10) -> list[TriageResult]:
    """Return at most ``limit`` flagged results, preserving order."""
    if limit <= 0:
        return []
    return [r for r in results if r.flagged][:limit]
