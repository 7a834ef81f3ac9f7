"""
Dependency injection for FastAPI endpoints.

The catalog and feed state are process-wide: every request sees the same
asset scores and the latest scan. Tests replace any of these through
``app.dependency_overrides``.
"""

from signal_risk.assets.catalog import AssetCatalog
from signal_risk.services.analysis_service import AnalysisService
from signal_risk.services.feed_state import FeedState
from signal_risk.services.scan_service import ScanService

# Global instances (initialized on first request)
_catalog: AssetCatalog | None = None
_feed_state: FeedState | None = None
_scan_service: ScanService | None = None
_analysis_service: AnalysisService | None = None


async def get_catalog() -> AssetCatalog:
    """Get the in-memory asset catalog."""
    global _catalog

    if _catalog is None:
        _catalog = AssetCatalog()

    return _catalog


async def get_feed_state() -> FeedState:
    """Get the current headline feed."""
    global _feed_state

    if _feed_state is None:
        _feed_state = FeedState()

    return _feed_state


async def get_scan_service() -> ScanService:
    """Get scan service bound to the shared catalog and feed."""
    global _scan_service

    if _scan_service is None:
        _scan_service = ScanService(
            feed_state=await get_feed_state(),
            catalog=await get_catalog(),
        )

    return _scan_service


async def get_analysis_service() -> AnalysisService:
    """Get analysis service bound to the shared catalog and feed."""
    global _analysis_service

    if _analysis_service is None:
        _analysis_service = AnalysisService(
            catalog=await get_catalog(),
            feed_state=await get_feed_state(),
        )

    return _analysis_service


async def cleanup_dependencies() -> None:
    """Clean up global dependencies on shutdown."""
    global _catalog, _feed_state, _scan_service, _analysis_service

    if _scan_service is not None:
        await _scan_service.close()
        _scan_service = None

    if _analysis_service is not None:
        await _analysis_service.close()
        _analysis_service = None

    _feed_state = None
    _catalog = None
