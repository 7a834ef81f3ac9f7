"""
Scan service - one pass of the headline funnel.

fetch (RSS or mock) -> AI discovery merge -> keyword triage ->
relevance classification of the top N -> sort -> publish to FeedState.

A scan never fails because a source or the relevance model failed: empty
RSS results fall back to the mock fixtures, discovery failures contribute
nothing, and relevance failures fall back to keyword confidence.
"""

import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

import structlog

from signal_risk.analysis.discovery import DiscoveryClient
from signal_risk.assets.catalog import AssetCatalog
from signal_risk.config.settings import get_settings
from signal_risk.ingestion.deduplication import Deduplicator, hybrid_discovery
from signal_risk.ingestion.feeds import FeedAggregator
from signal_risk.ingestion.mock_headlines import mock_headlines
from signal_risk.ingestion.schemas import Headline, TriageStatus
from signal_risk.observability.metrics import get_metrics
from signal_risk.services.feed_state import FeedState
from signal_risk.triage.config import TriageConfig
from signal_risk.triage.funnel import TriageFunnel, get_top_flagged
from signal_risk.triage.relevance import RelevanceClassifier

logger = structlog.get_logger(__name__)


class ScanMode(str, Enum):
    """Where a scan gets its headlines."""

    AUTO = "auto"  # RSS, falling back to mock when every source is empty
    MOCK = "mock"


def is_analysis_eligible(headline: Headline, confidence_floor: float) -> bool:
    """A headline qualifies for deep analysis when flagged and confident enough."""
    return (
        headline.triage_status == TriageStatus.FLAGGED
        and headline.confidence >= confidence_floor
    )


@dataclass
class ScanResult:
    """Outcome of one scan."""

    scan_id: str
    mode: ScanMode
    headlines: list[Headline]
    total_headlines: int
    flagged_count: int
    ai_triaged_count: int
    discovered_count: int = 0
    duplicates_dropped: int = 0
    used_mock_fallback: bool = False
    estimated_cost: float = 0.0
    projected_analysis_cost: float = 0.0
    eligible: list[Headline] = field(default_factory=list)
    duration_ms: float = 0.0
    scanned_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def signals(self) -> list[Headline]:
        """Headlines flagged after relevance confirmation."""
        return [h for h in self.headlines if h.triage_status == TriageStatus.FLAGGED]


class ScanService:
    """
    Orchestrates a single scan and publishes the result to a FeedState.

    Usage:
        service = ScanService(FeedState(), AssetCatalog())
        result = await service.scan(ScanMode.MOCK, enable_ai=False)
    """

    def __init__(
        self,
        feed_state: FeedState,
        catalog: AssetCatalog,
        aggregator: FeedAggregator | None = None,
        funnel: TriageFunnel | None = None,
        classifier: RelevanceClassifier | None = None,
        discovery: DiscoveryClient | None = None,
        deduplicator: Deduplicator | None = None,
        config: TriageConfig | None = None,
    ):
        """
        Initialize scan service.

        Args:
            feed_state: Where finished scans are published
            catalog: Source of asset display names for relevance prompts
            aggregator: RSS fetcher (created lazily)
            funnel: Keyword triage funnel
            classifier: Relevance classifier (created lazily)
            discovery: AI discovery client (created lazily)
            deduplicator: Merger for discovered headlines
            config: Triage configuration
        """
        settings = get_settings()
        self._feed_state = feed_state
        self._catalog = catalog
        self._config = config or TriageConfig()
        self._aggregator = aggregator
        self._funnel = funnel or TriageFunnel(config=self._config)
        self._classifier = classifier
        self._discovery = discovery
        self._deduplicator = deduplicator or Deduplicator(
            threshold=settings.duplicate_threshold,
            min_token_length=settings.dedup_min_token_length,
            stem_length=settings.dedup_stem_length,
        )

    @property
    def feed_state(self) -> FeedState:
        return self._feed_state

    def _get_aggregator(self) -> FeedAggregator:
        if self._aggregator is None:
            self._aggregator = FeedAggregator()
        return self._aggregator

    def _get_classifier(self) -> RelevanceClassifier:
        if self._classifier is None:
            self._classifier = RelevanceClassifier(config=self._config)
        return self._classifier

    def _get_discovery(self) -> DiscoveryClient:
        if self._discovery is None:
            self._discovery = DiscoveryClient(
                asset_names=[a.name for a in self._catalog.list_assets()],
            )
        return self._discovery

    async def _fetch(self, mode: ScanMode) -> tuple[list[Headline], bool]:
        if mode == ScanMode.MOCK:
            return mock_headlines(), False
        headlines = await self._get_aggregator().fetch_all()
        if not headlines:
            logger.warning("No headlines from RSS, using mock fallback")
            return mock_headlines(), True
        return headlines, False

    async def scan(
        self,
        mode: ScanMode = ScanMode.AUTO,
        enable_ai: bool = True,
        use_discovery: bool = True,
    ) -> ScanResult:
        """
        Run one scan.

        Args:
            mode: AUTO fetches RSS (mock fallback), MOCK uses fixtures only
            enable_ai: Send the top flagged headlines to the relevance model
            use_discovery: Merge AI-discovered headlines (ignored in MOCK mode)
        """
        scan_id = uuid.uuid4().hex[:12]
        start = time.perf_counter()
        with structlog.contextvars.bound_contextvars(scan_id=scan_id):
            logger.info("Starting scan", mode=mode.value, enable_ai=enable_ai, discovery=use_discovery)

            headlines, used_fallback = await self._fetch(mode)
            fetched = len(headlines)

            discovered_count = 0
            duplicates_dropped = 0
            if use_discovery and mode != ScanMode.MOCK:
                discovered = await self._get_discovery().discover()
                discovered_count = len(discovered)
                headlines = hybrid_discovery(headlines, discovered, self._deduplicator)
                duplicates_dropped = fetched + discovered_count - len(headlines)
                if duplicates_dropped:
                    get_metrics().duplicates_dropped.inc(duplicates_dropped)

            results = self._funnel.triage(headlines)
            flagged_count = sum(1 for r in results if r.flagged)
            final = [r.headline for r in results]

            ai_triaged = 0
            if enable_ai and flagged_count:
                top = [r.headline for r in get_top_flagged(results, self._config.max_ai_triage_per_scan)]
                names = {a.id: a.name for a in self._catalog.list_assets()}
                classifier = self._get_classifier()
                judgments = await classifier.classify_batch(top, names)
                final = classifier.apply_judgments(final, judgments)
                ai_triaged = len(top)

            final.sort(key=lambda h: h.confidence, reverse=True)
            scanned_at = datetime.now(timezone.utc)
            self._feed_state.update(final, scanned_at)

            eligible = [
                h for h in final if is_analysis_eligible(h, self._config.analysis_confidence_floor)
            ]
            result = ScanResult(
                scan_id=scan_id,
                mode=mode,
                headlines=final,
                total_headlines=len(headlines),
                flagged_count=flagged_count,
                ai_triaged_count=ai_triaged,
                discovered_count=discovered_count,
                duplicates_dropped=duplicates_dropped,
                used_mock_fallback=used_fallback,
                estimated_cost=round(ai_triaged * self._config.triage_cost_per_headline, 6),
                projected_analysis_cost=round(
                    len(eligible) * self._config.analysis_cost_per_request, 6
                ),
                eligible=eligible,
                duration_ms=round((time.perf_counter() - start) * 1000, 2),
                scanned_at=scanned_at,
            )
            logger.info(
                "Scan complete",
                total=result.total_headlines,
                flagged=result.flagged_count,
                signals=len(result.signals),
                ai_triaged=ai_triaged,
                eligible=len(eligible),
                duration_ms=result.duration_ms,
            )
            return result

    async def close(self) -> None:
        if self._classifier is not None:
            await self._classifier.close()
        if self._discovery is not None:
            await self._discovery.close()
