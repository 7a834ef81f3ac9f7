"""Orchestration of scans and analysis cycles over shared feed and catalog state."""

from signal_risk.services.analysis_service import AnalysisReport, AnalysisService
from signal_risk.services.feed_state import FeedSnapshot, FeedState
from signal_risk.services.scan_service import ScanMode, ScanResult, ScanService, is_analysis_eligible

__all__ = [
    "AnalysisReport",
    "AnalysisService",
    "FeedSnapshot",
    "FeedState",
    "ScanMode",
    "ScanResult",
    "ScanService",
    "is_analysis_eligible",
]
