"""
Health check endpoint.
"""

import structlog
from fastapi import APIRouter, Depends

from signal_risk import __version__
from signal_risk.analysis.config import AnalysisConfig
from signal_risk.api.dependencies import get_catalog, get_feed_state
from signal_risk.api.models import HealthResponse
from signal_risk.assets.catalog import AssetCatalog
from signal_risk.config.settings import get_settings
from signal_risk.services.feed_state import FeedState

router = APIRouter()
logger = structlog.get_logger(__name__)


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health",
)
async def health_check(
    catalog: AssetCatalog = Depends(get_catalog),
    feed_state: FeedState = Depends(get_feed_state),
) -> HealthResponse:
    """
    Report which external services are configured.

    The service is ``degraded`` when no analysis key is configured: scans
    still run on keyword triage but deep analysis is unavailable.
    """
    analysis_configured = AnalysisConfig().configured
    snapshot = feed_state.read()
    return HealthResponse(
        status="healthy" if analysis_configured else "degraded",
        version=__version__,
        assets=len(catalog),
        analysis_configured=analysis_configured,
        market_data_configured=get_settings().market_data_configured,
        last_scan=snapshot.last_scan_time,
        headlines=len(snapshot.headlines),
    )
