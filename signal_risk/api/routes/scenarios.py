"""Demo scenario endpoints."""

from fastapi import APIRouter, Depends, Query

from signal_risk.api.auth import verify_api_key
from signal_risk.api.dependencies import get_catalog
from signal_risk.api.models import (
    ErrorResponse,
    InjectResponse,
    ScenarioItem,
    ScenarioListResponse,
    ScoreSnapshot,
)
from signal_risk.assets.catalog import AssetCatalog
from signal_risk.assets.scenarios import DemoScenario, inject_scenario, list_scenarios

router = APIRouter()


def _scenario_to_item(s: DemoScenario) -> ScenarioItem:
    return ScenarioItem(
        id=s.id,
        name=s.name,
        asset_id=s.asset_id,
        description=s.description,
        event_type=s.event_type,
        expected_risk_score=s.expected_risk_score,
        country=s.country,
        region=s.region,
    )


@router.get(
    "/scenarios",
    response_model=ScenarioListResponse,
    responses={401: {"model": ErrorResponse}},
    summary="List demo scenarios",
)
async def get_scenarios(
    asset_id: str | None = Query(default=None, description="Filter by asset"),
    api_key: str = Depends(verify_api_key),
) -> ScenarioListResponse:
    items = [_scenario_to_item(s) for s in list_scenarios(asset_id)]
    return ScenarioListResponse(scenarios=items, total=len(items))


@router.post(
    "/scenarios/{scenario_id}/inject",
    response_model=InjectResponse,
    responses={401: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    summary="Score a demo scenario against its asset",
)
async def inject(
    scenario_id: str,
    api_key: str = Depends(verify_api_key),
    catalog: AssetCatalog = Depends(get_catalog),
) -> InjectResponse:
    """Before and after scores for a scenario; the catalog is left untouched."""
    injection = inject_scenario(scenario_id, catalog)
    return InjectResponse(
        scenario_id=injection.scenario.id,
        asset_id=injection.scenario.asset_id,
        before=ScoreSnapshot(value=injection.previous_score, level=injection.previous_level),
        after=injection.risk_score,
        change=injection.change,
        expected_risk_score=injection.scenario.expected_risk_score,
        event=injection.event,
        analysis=injection.scenario.preloaded_analysis,
    )
