"""
Deep impact analysis and risk weighting against Perplexity.

``analyze_event`` is the only external call whose failure reaches the
caller (as ``AnalysisUnavailableError``): there is no meaningful analysis
without it. Once any response text arrives, the parser guarantees a valid
``ImpactAnalysis``. ``get_risk_weighting`` never raises and falls back to a
neutral weighting.
"""

import asyncio
import logging
import time

from pydantic import ValidationError

from signal_risk.analysis.config import AnalysisConfig
from signal_risk.analysis.json_repair import load_json_lenient
from signal_risk.analysis.llm_client import PerplexityClient
from signal_risk.analysis.parser import (
    ImpactAnalysisParser,
    ParseOutcome,
    citations_from_search_results,
)
from signal_risk.analysis.prompts import build_analysis_messages, build_weighting_messages
from signal_risk.analysis.schemas import Event, ImpactAnalysis
from signal_risk.assets.schemas import Asset
from signal_risk.errors import AnalysisUnavailableError
from signal_risk.observability.metrics import get_metrics
from signal_risk.risk.schemas import RiskWeighting
from signal_risk.risk.weighting import neutral_weighting

logger = logging.getLogger(__name__)


class DeepAnalysisService:
    """
    Run the expensive grounded analysis of one event for one asset.

    Example:
        service = DeepAnalysisService()
        outcome = await service.analyze_event(asset, event)
        weighting = await service.get_risk_weighting(asset, event, outcome.analysis)
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
        """Lazy-initialize the Perplexity client."""
        if self._client is None:
            self._client = PerplexityClient(self._config)
        return self._client

    async def analyze_event(self, asset: Asset, event: Event) -> ParseOutcome:
        """
        Analyze ``event``'s impact on ``asset``.

        Raises:
            AnalysisUnavailableError: On timeout or any service failure.
        """
        metrics = get_metrics()
        start = time.perf_counter()
        try:
            response = await asyncio.wait_for(
                self._get_client().complete(
                    build_analysis_messages(asset, event),
                    model=self._config.analysis_model,
                    purpose="analysis",
                    temperature=self._config.analysis_temperature,
                    extra_body={"web_search_options": {"search_type": self._config.search_type}},
                ),
                timeout=self._config.analysis_timeout,
            )
        except asyncio.TimeoutError as e:
            metrics.record_error("deep_analysis", "timeout")
            raise AnalysisUnavailableError(
                f"Deep analysis timed out after {self._config.analysis_timeout:.0f}s"
            ) from e
        except Exception as e:
            metrics.record_error("deep_analysis", type(e).__name__)
            logger.error(f"Deep analysis failed for {asset.id}: {e}")
            raise AnalysisUnavailableError(f"Deep analysis failed: {e}") from e
        finally:
            metrics.analysis_latency.labels(stage="deep_analysis").observe(
                time.perf_counter() - start
            )

        citations = citations_from_search_results(response.search_results)
        outcome = self._parser.parse(response.content, citations, response.reasoning_steps)
        logger.info(
            f"Deep analysis for {asset.id}: {outcome.status.value}, "
            f"{len(outcome.analysis.impacts)} impacts, {len(citations)} citations"
        )
        return outcome

    async def get_risk_weighting(
        self,
        asset: Asset,
        event: Event,
        analysis: ImpactAnalysis,
    ) -> RiskWeighting:
        """Ask the model for a direction and magnitude; neutral on any failure."""
        metrics = get_metrics()
        start = time.perf_counter()
        try:
            response = await asyncio.wait_for(
                self._get_client().complete(
                    build_weighting_messages(asset, event, analysis),
                    model=self._config.weighting_model,
                    purpose="weighting",
                    temperature=0.3,
                    max_tokens=self._config.weighting_max_tokens,
                ),
                timeout=self._config.weighting_timeout,
            )
        except asyncio.TimeoutError:
            metrics.record_error("weighting", "timeout")
            logger.warning(f"Risk weighting for {asset.id} timed out, using neutral")
            return neutral_weighting("Risk weighting timed out")
        except Exception as e:
            metrics.record_error("weighting", type(e).__name__)
            logger.warning(f"Risk weighting for {asset.id} failed: {e}")
            return neutral_weighting(f"Risk weighting unavailable: {type(e).__name__}")
        finally:
            metrics.analysis_latency.labels(stage="weighting").observe(
                time.perf_counter() - start
            )

        loaded = load_json_lenient(response.content)
        if loaded is None or not isinstance(loaded[0], dict):
            metrics.record_error("weighting", "parse")
            logger.warning(f"Unparseable risk weighting for {asset.id}: {response.content[:120]!r}")
            return neutral_weighting("Risk weighting response was not valid JSON")

        try:
            weighting = RiskWeighting.model_validate(loaded[0])
        except ValidationError as e:
            metrics.record_error("weighting", "validation")
            logger.warning(f"Invalid risk weighting for {asset.id}: {e}")
            return neutral_weighting("Risk weighting response failed validation")

        logger.info(
            f"Risk weighting for {asset.id}: {weighting.direction.value} "
            f"by {weighting.magnitude} (confidence {weighting.confidence:.2f})"
        )
        return weighting

    async def close(self) -> None:
        if self._client is not None:
            await self._client.close()
