"""Deep impact analysis through Perplexity.

Parses loosely structured model output into ``ImpactAnalysis`` with a
graceful-degradation ladder (JSON, repaired JSON, labeled sections, raw
prefix), and wraps the heavy analysis, risk weighting, discovery and batch
calls behind per-purpose circuit breakers.

Usage:
    from signal_risk.analysis import DeepAnalysisService

    service = DeepAnalysisService()
    outcome = await service.analyze_event(asset, event)
    print(outcome.status, outcome.analysis.summary)
"""

from signal_risk.analysis.batch import BatchAnalysisResult, BatchAnalysisService
from signal_risk.analysis.circuit_breaker import CircuitBreaker, CircuitOpenError
from signal_risk.analysis.config import AnalysisConfig
from signal_risk.analysis.discovery import DiscoveryClient
from signal_risk.analysis.parser import (
    ImpactAnalysisParser,
    ParseOutcome,
    ParseStatus,
    citations_from_search_results,
)
from signal_risk.analysis.schemas import (
    Citation,
    Event,
    EventType,
    Impact,
    ImpactAnalysis,
    ImpactOrder,
    Opportunity,
)
from signal_risk.analysis.service import DeepAnalysisService

__all__ = [
    "AnalysisConfig",
    "BatchAnalysisResult",
    "BatchAnalysisService",
    "CircuitBreaker",
    "CircuitOpenError",
    "Citation",
    "DeepAnalysisService",
    "DiscoveryClient",
    "Event",
    "EventType",
    "Impact",
    "ImpactAnalysis",
    "ImpactAnalysisParser",
    "ImpactOrder",
    "Opportunity",
    "ParseOutcome",
    "ParseStatus",
    "citations_from_search_results",
]
