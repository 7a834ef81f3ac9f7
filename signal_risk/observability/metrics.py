"""
Prometheus metrics for the triage and scoring pipeline.

Defines and exposes metrics for:
- Headline fetch volume per source
- Triage outcomes (flagged vs noise)
- Relevance classifications and how often the keyword fallback was used
- Deep analysis parse quality and latency
- Current risk score per asset
- Circuit breaker state per model call purpose
- API requests and their duration per route

Metrics are exposed via HTTP endpoint for Prometheus scraping.
"""

import logging

from prometheus_client import (
    REGISTRY,
    Counter,
    Gauge,
    Histogram,
    start_http_server,
)

from signal_risk.config.settings import get_settings

logger = logging.getLogger(__name__)

# LLM calls run from sub-second triage up to multi-minute deep analysis
LATENCY_BUCKETS = (0.1, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0, 120.0)


class MetricsCollector:
    """
    Prometheus metrics collector for signal-risk.

    Usage:
        metrics = get_metrics()
        metrics.record_triage(flagged=3, noise=12)
        metrics.analysis_latency.labels(stage="deep_analysis").observe(42.0)
    """

    def __init__(self):
        """Initialize Prometheus metrics."""
        self.headlines_fetched = Counter(
            "signal_risk_headlines_fetched_total",
            "Headlines fetched from feeds and discovery",
            ["source"],
        )

        self.headlines_triaged = Counter(
            "signal_risk_headlines_triaged_total",
            "Headlines processed by keyword triage",
            ["status"],  # flagged, noise, passthrough
        )

        self.relevance_classifications = Counter(
            "signal_risk_relevance_classifications_total",
            "Relevance classifications by outcome",
            ["outcome"],  # model, fallback
        )

        self.duplicates_dropped = Counter(
            "signal_risk_duplicates_dropped_total",
            "AI-discovered headlines dropped as near-duplicates",
        )

        self.analysis_parse = Counter(
            "signal_risk_analysis_parse_total",
            "Deep analysis responses by parse status",
            ["status"],  # parsed, degraded, unrecoverable
        )

        self.analysis_errors = Counter(
            "signal_risk_analysis_errors_total",
            "External analysis failures",
            ["stage", "error_type"],
        )

        self.analysis_latency = Histogram(
            "signal_risk_analysis_latency_seconds",
            "Latency of external analysis calls",
            ["stage"],
            buckets=LATENCY_BUCKETS,
        )

        self.asset_risk_score = Gauge(
            "signal_risk_asset_risk_score",
            "Current risk score per asset",
            ["asset"],
        )

        self.llm_circuit_open = Gauge(
            "signal_risk_llm_circuit_open",
            "1 while model calls for a purpose are short-circuited",
            ["purpose"],
        )

        self.api_requests = Counter(
            "signal_risk_api_requests_total",
            "API requests by route and status",
            ["method", "route", "status"],
        )

        self.api_latency = Histogram(
            "signal_risk_api_request_seconds",
            "API request duration",
            ["route"],
            buckets=LATENCY_BUCKETS,
        )

        logger.info("Prometheus metrics initialized")

    def start_server(self, port: int | None = None) -> None:
        """
        Start Prometheus metrics HTTP server.

        Args:
            port: Port to expose metrics on (default from settings)
        """
        settings = get_settings()
        port = port or settings.metrics_port

        start_http_server(port, registry=REGISTRY)
        logger.info(f"Prometheus metrics server started on port {port}")

    # Convenience methods

    def record_fetch(self, source: str, count: int) -> None:
        """Record headlines fetched from one source."""
        if count:
            self.headlines_fetched.labels(source=source).inc(count)

    def record_triage(self, flagged: int, noise: int, passthrough: int = 0) -> None:
        """Record the outcome of a triage pass."""
        self.headlines_triaged.labels(status="flagged").inc(flagged)
        self.headlines_triaged.labels(status="noise").inc(noise)
        if passthrough:
            self.headlines_triaged.labels(status="passthrough").inc(passthrough)

    def record_relevance(self, fallback: bool) -> None:
        """Record one relevance classification."""
        outcome = "fallback" if fallback else "model"
        self.relevance_classifications.labels(outcome=outcome).inc()

    def record_parse(self, status: str) -> None:
        """Record the parse status of a deep analysis response."""
        self.analysis_parse.labels(status=status).inc()

    def record_error(self, stage: str, error_type: str) -> None:
        """Record an external-service failure."""
        self.analysis_errors.labels(stage=stage, error_type=error_type).inc()

    def set_asset_score(self, asset_id: str, score: float) -> None:
        """Publish an asset's current risk score."""
        self.asset_risk_score.labels(asset=asset_id).set(score)

    def set_circuit_open(self, purpose: str, is_open: bool) -> None:
        self.llm_circuit_open.labels(purpose=purpose).set(1 if is_open else 0)

    def record_request(self, method: str, route: str, status: int, seconds: float) -> None:
        self.api_requests.labels(method=method, route=route, status=str(status)).inc()
        self.api_latency.labels(route=route).observe(seconds)


# Global metrics instance
_metrics: MetricsCollector | None = None


def get_metrics() -> MetricsCollector:
    """Get global metrics collector instance."""
    global _metrics
    if _metrics is None:
        _metrics = MetricsCollector()
    return _metrics
