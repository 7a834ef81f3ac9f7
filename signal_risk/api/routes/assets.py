"""Monitored asset endpoints."""

from fastapi import APIRouter, Depends

from signal_risk.api.auth import verify_api_key
from signal_risk.api.dependencies import get_catalog
from signal_risk.api.models import AssetListResponse, ErrorResponse
from signal_risk.assets.catalog import AssetCatalog
from signal_risk.assets.schemas import Asset

router = APIRouter()


@router.get(
    "/assets",
    response_model=AssetListResponse,
    responses={401: {"model": ErrorResponse}},
    summary="List monitored assets with current risk",
)
async def list_assets(
    api_key: str = Depends(verify_api_key),
    catalog: AssetCatalog = Depends(get_catalog),
) -> AssetListResponse:
    assets = catalog.list_assets()
    return AssetListResponse(assets=assets, total=len(assets))


@router.get(
    "/assets/{asset_id}",
    response_model=Asset,
    responses={401: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    summary="Get one asset",
)
async def get_asset(
    asset_id: str,
    api_key: str = Depends(verify_api_key),
    catalog: AssetCatalog = Depends(get_catalog),
) -> Asset:
    return catalog.require(asset_id)
