"""Feed scan and stream endpoints."""

import structlog
from fastapi import APIRouter, Depends
from starlette.requests import Request

from signal_risk.api.auth import verify_api_key
from signal_risk.api.dependencies import get_feed_state, get_scan_service
from signal_risk.api.models import (
    ErrorResponse,
    FeedStreamResponse,
    ScanRequest,
    ScanResponse,
    ScanSummary,
)
from signal_risk.api.rate_limit import limiter
from signal_risk.config.settings import get_settings as _get_settings
from signal_risk.services.feed_state import FeedState
from signal_risk.services.scan_service import ScanService

logger = structlog.get_logger(__name__)
router = APIRouter()


@router.post(
    "/feeds/scan",
    response_model=ScanResponse,
    responses={401: {"model": ErrorResponse}},
    summary="Fetch, triage and publish a new feed",
)
@limiter.limit(lambda: _get_settings().rate_limit_default)
async def scan_feeds(
    request: Request,
    body: ScanRequest | None = None,
    api_key: str = Depends(verify_api_key),
    service: ScanService = Depends(get_scan_service),
) -> ScanResponse:
    """
    Run one scan.

    Source and relevance failures degrade the scan instead of failing it:
    empty RSS results fall back to the mock fixtures and relevance failures
    fall back to keyword confidence.
    """
    body = body or ScanRequest()
    result = await service.scan(body.mode, body.enable_ai, body.use_discovery)
    signals = result.signals
    return ScanResponse(
        scan=ScanSummary(
            scan_id=result.scan_id,
            mode=result.mode,
            total_headlines=result.total_headlines,
            flagged_count=result.flagged_count,
            ai_triaged_count=result.ai_triaged_count,
            signals_count=len(signals),
            eligible_count=len(result.eligible),
            discovered_count=result.discovered_count,
            duplicates_dropped=result.duplicates_dropped,
            used_mock_fallback=result.used_mock_fallback,
            estimated_cost=result.estimated_cost,
            projected_analysis_cost=result.projected_analysis_cost,
            duration_ms=result.duration_ms,
            timestamp=result.scanned_at,
        ),
        headlines=result.headlines,
        signals=signals,
        eligible_ids=[h.id for h in result.eligible],
    )


@router.get(
    "/feeds/stream",
    response_model=FeedStreamResponse,
    responses={401: {"model": ErrorResponse}},
    summary="Current feed from the latest scan",
)
async def feed_stream(
    api_key: str = Depends(verify_api_key),
    feed_state: FeedState = Depends(get_feed_state),
) -> FeedStreamResponse:
    snapshot = feed_state.read()
    return FeedStreamResponse(
        headlines=snapshot.headlines,
        last_scan=snapshot.last_scan_time,
        count=len(snapshot.headlines),
        flagged_count=snapshot.flagged_count,
    )
