"""Logging and metrics for signal-risk."""

from signal_risk.observability.logging import setup_logging
from signal_risk.observability.metrics import MetricsCollector, get_metrics

__all__ = ["MetricsCollector", "get_metrics", "setup_logging"]
