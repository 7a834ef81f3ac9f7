"""Monitored asset definitions and the in-memory asset catalog."""

from signal_risk.assets.catalog import AssetCatalog, get_asset_by_id
from signal_risk.assets.schemas import (
    Asset,
    CriticalNode,
    MonitoringConfig,
    RelatedCompany,
    SupplyChain,
    SupplyConsumer,
    SupplyProducer,
)

__all__ = [
    "Asset",
    "AssetCatalog",
    "CriticalNode",
    "MonitoringConfig",
    "RelatedCompany",
    "SupplyChain",
    "SupplyConsumer",
    "SupplyProducer",
    "get_asset_by_id",
]
