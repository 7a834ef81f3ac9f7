"""
Model-based relevance confirmation for keyword-flagged headlines.

The cheap triage model rates each headline 0-10 for its matched asset. Any
failure (timeout, service error, open circuit, malformed JSON) falls back to
the keyword confidence, so a batch always returns one judgment per headline.

Applying judgments is a stricter confirmatory filter, not an OR-gate: a
headline is flagged only when the model calls it relevant with a score of at
least 7. Disagreement halves the confidence but never downgrades the status.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Iterable

from signal_risk.analysis.config import AnalysisConfig
from signal_risk.analysis.json_repair import load_json_lenient
from signal_risk.analysis.llm_client import PerplexityClient
from signal_risk.analysis.prompts import build_relevance_messages
from signal_risk.ingestion.schemas import Headline, TriageStatus
from signal_risk.observability.metrics import get_metrics
from signal_risk.risk.schemas import clamp
from signal_risk.triage.config import TriageConfig

logger = logging.getLogger(__name__)


@dataclass
class RelevanceJudgment:
    """Relevance verdict for one headline."""

    score: float
    reason: str
    relevant: bool
    assets: list[str] = field(default_factory=list)
    fallback: bool = False


class RelevanceClassifier:
    """
    Confirm keyword-flagged headlines with a lightweight model.

    Example:
        classifier = RelevanceClassifier()
        judgments = await classifier.classify_batch(top_flagged, asset_names)
        updated = classifier.apply_judgments(headlines, judgments)
    """

    def __init__(
        self,
        client: PerplexityClient | None = None,
        config: TriageConfig | None = None,
        analysis_config: AnalysisConfig | None = None,
    ):
        self._config = config or TriageConfig()
        self._analysis_config = analysis_config or AnalysisConfig()
        self._client = client

    def _get_client(self) -> PerplexityClient:
        if self._client is None:
            self._client = PerplexityClient(self._analysis_config)
        return self._client

    def fallback(self, headline: Headline, reason: str) -> RelevanceJudgment:
        """Judgment derived from the keyword confidence alone."""
        return RelevanceJudgment(
            score=round(headline.confidence * 10, 2),
            reason=reason,
            relevant=headline.confidence > self._config.fallback_relevance_confidence,
            assets=list(headline.matched_assets),
            fallback=True,
        )

    async def classify(self, headline: Headline, asset_name: str) -> RelevanceJudgment:
        """Classify one headline; never raises."""
        asset_id = headline.matched_assets[0] if headline.matched_assets else asset_name.lower()
        try:
            response = await asyncio.wait_for(
                self._get_client().complete(
                    build_relevance_messages(headline.title, headline.source, asset_id, asset_name),
                    model=self._analysis_config.triage_model,
                    purpose="triage",
                    temperature=self._analysis_config.triage_temperature,
                    max_tokens=self._analysis_config.triage_max_tokens,
                ),
                timeout=self._config.relevance_timeout,
            )
        except asyncio.TimeoutError:
            get_metrics().record_relevance(fallback=True)
            logger.warning(f"Relevance check timed out for {headline.id}")
            return self.fallback(headline, "Relevance check timed out; using keyword score")
        except Exception as e:
            get_metrics().record_relevance(fallback=True)
            logger.warning(f"Relevance check failed for {headline.id}: {type(e).__name__}: {e}")
            return self.fallback(headline, "Relevance service unavailable; using keyword score")

        loaded = load_json_lenient(response.content)
        if loaded is None or not isinstance(loaded[0], dict):
            get_metrics().record_relevance(fallback=True)
            logger.warning(f"Unparseable relevance response for {headline.id}")
            return self.fallback(headline, "Relevance response was not valid JSON; using keyword score")

        data = loaded[0]
        relevant = data.get("relevant")
        assets = data.get("assets")
        get_metrics().record_relevance(fallback=False)
        return RelevanceJudgment(
            score=clamp(data.get("score"), 0.0, 10.0, default=0.0),
            reason=str(data.get("reason") or "No reason provided"),
            relevant=relevant if isinstance(relevant, bool) else str(relevant).lower() == "true",
            assets=[str(a).lower() for a in assets] if isinstance(assets, list) else [],
        )

    async def classify_batch(
        self,
        headlines: Iterable[Headline],
        asset_names: dict[str, str] | None = None,
    ) -> dict[str, RelevanceJudgment]:
        """
        Classify headlines concurrently.

        Args:
            headlines: Headlines to classify (the funnel's top N)
            asset_names: asset id -> display name for the prompt

        Returns:
            One judgment per input headline id
        """
        names = asset_names or {}
        batch = list(headlines)
        if not batch:
            return {}

        def _name(h: Headline) -> str:
            asset_id = h.matched_assets[0] if h.matched_assets else "general"
            return names.get(asset_id, asset_id)

        judgments = await asyncio.gather(*(self.classify(h, _name(h)) for h in batch))
        results = {h.id: j for h, j in zip(batch, judgments)}

        fallbacks = sum(1 for j in judgments if j.fallback)
        logger.info(f"Relevance: classified {len(batch)} headlines ({fallbacks} fallbacks)")
        return results

    def apply_judgments(
        self,
        headlines: Iterable[Headline],
        judgments: dict[str, RelevanceJudgment],
    ) -> list[Headline]:
        """
        Fold judgments back into headlines.

        Headlines without a judgment are returned unchanged.
        """
        updated = []
        for headline in headlines:
            judgment = judgments.get(headline.id)
            if judgment is None:
                updated.append(headline)
                continue

            agrees = judgment.relevant and judgment.score >= self._config.ai_flag_min_score
            if judgment.relevant:
                confidence = max(headline.confidence, judgment.score / 10)
            else:
                confidence = headline.confidence * self._config.irrelevant_confidence_factor

            changes = {
                "confidence": confidence,
                "ai_score": judgment.score,
                "ai_reason": judgment.reason,
            }
            if agrees and headline.triage_status == TriageStatus.NOISE:
                changes["triage_status"] = TriageStatus.FLAGGED
            updated.append(headline.model_copy(update=changes))
        return updated

    async def close(self) -> None:
        if self._client is not None:
            await self._client.close()
