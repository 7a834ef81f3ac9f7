"""Deep analysis endpoints."""

import time

import structlog
from fastapi import APIRouter, Depends, HTTPException, status
from starlette.requests import Request

from signal_risk.api.auth import verify_api_key
from signal_risk.api.dependencies import get_analysis_service, get_feed_state
from signal_risk.api.models import (
    AnalyzeRequest,
    AnalyzeResponse,
    BatchAnalyzeRequest,
    BatchAnalyzeResponse,
    ErrorResponse,
    ScoreSnapshot,
)
from signal_risk.api.rate_limit import limiter
from signal_risk.config.settings import get_settings as _get_settings
from signal_risk.services.analysis_service import AnalysisReport, AnalysisService
from signal_risk.services.feed_state import FeedState

logger = structlog.get_logger(__name__)
router = APIRouter()

_ERROR_RESPONSES = {
    401: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    422: {"model": ErrorResponse},
    502: {"model": ErrorResponse},
}


def _report_to_response(report: AnalysisReport) -> AnalyzeResponse:
    return AnalyzeResponse(
        asset_id=report.asset_id,
        method=report.method,
        before=ScoreSnapshot(value=report.previous_score, level=report.previous_level),
        after=report.risk_score,
        change=report.change,
        event=report.event,
        analysis=report.analysis,
        parse_status=report.parse_status,
        weighting=report.weighting,
        headline=report.headline,
        duration_ms=report.duration_ms,
    )


@router.post(
    "/analyze",
    response_model=AnalyzeResponse,
    responses=_ERROR_RESPONSES,
    summary="Analyze one event or flagged headline",
)
@limiter.limit(lambda: _get_settings().rate_limit_analysis)
async def analyze(
    request: Request,
    body: AnalyzeRequest,
    api_key: str = Depends(verify_api_key),
    service: AnalysisService = Depends(get_analysis_service),
    feed_state: FeedState = Depends(get_feed_state),
) -> AnalyzeResponse:
    """
    Run a deep analysis and update the asset's risk score.

    Returns 404 for an unknown asset or headline, 422 for a headline that
    is not eligible and 502 when the analysis service is unavailable.
    """
    if body.headline_id:
        headline = feed_state.get(body.headline_id)
        if headline is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"Unknown headline: {body.headline_id}",
            )
        report = await service.analyze_headline(headline, body.method)
    else:
        report = await service.analyze_event(
            body.asset_id,
            body.event_text,
            body.method,
            source_name=body.event_source or "User provided",
        )
    return _report_to_response(report)


@router.post(
    "/analyze/batch",
    response_model=BatchAnalyzeResponse,
    responses=_ERROR_RESPONSES,
    summary="Analyze all eligible headlines across assets",
)
@limiter.limit(lambda: _get_settings().rate_limit_analysis)
async def analyze_batch(
    request: Request,
    body: BatchAnalyzeRequest | None = None,
    api_key: str = Depends(verify_api_key),
    service: AnalysisService = Depends(get_analysis_service),
    feed_state: FeedState = Depends(get_feed_state),
) -> BatchAnalyzeResponse:
    start = time.perf_counter()
    headlines = feed_state.read().headlines
    if body is not None and body.headline_ids is not None:
        wanted = set(body.headline_ids)
        headlines = [h for h in headlines if h.id in wanted]

    result = await service.analyze_batch(headlines)
    return BatchAnalyzeResponse(
        changes=result.changes,
        opportunities=result.opportunities,
        cross_asset_impacts=result.cross_asset_impacts,
        citations=result.citations,
        status=result.status,
        headline_count=sum(c.headline_count for c in result.changes.values()),
        latency_ms=round((time.perf_counter() - start) * 1000, 2),
    )
