"""
In-memory asset catalog.

Holds the current version of each asset. ``update_score`` is the single
write an analysis cycle performs; everything else reads.
"""

import logging
from datetime import datetime, timezone
from typing import Iterable

from signal_risk.assets.definitions import DEFAULT_ASSETS
from signal_risk.assets.schemas import Asset
from signal_risk.errors import UnknownAssetError
from signal_risk.risk.schemas import round_score

logger = logging.getLogger(__name__)


class AssetCatalog:
    """
    Registry of monitored assets keyed by id.

    Example:
        catalog = AssetCatalog()
        lithium = catalog.require("lithium")
        catalog.update_score("lithium", 6.8)
    """

    def __init__(self, assets: Iterable[Asset] | None = None):
        self._assets: dict[str, Asset] = {
            a.id: a for a in (assets if assets is not None else DEFAULT_ASSETS)
        }

    def __contains__(self, asset_id: object) -> bool:
        return asset_id in self._assets

    def __len__(self) -> int:
        return len(self._assets)

    @property
    def asset_ids(self) -> list[str]:
        return list(self._assets)

    def list_assets(self) -> list[Asset]:
        """All assets in definition order."""
        return list(self._assets.values())

    def get(self, asset_id: str) -> Asset | None:
        """Look up an asset; None when the id is unknown."""
        return self._assets.get(asset_id)

    def require(self, asset_id: str) -> Asset:
        """
        Look up an asset.

        Raises:
            UnknownAssetError: If the id is not in the catalog.
        """
        asset = self._assets.get(asset_id)
        if asset is None:
            raise UnknownAssetError(asset_id)
        return asset

    def update_score(self, asset_id: str, score: float) -> Asset:
        """
        Replace an asset's current score (clamped, one decimal).

        Returns:
            The updated asset
        """
        current = self.require(asset_id)
        new_score = round_score(score)
        updated = current.model_copy(
            update={
                "current_risk_score": new_score,
                "last_updated": datetime.now(timezone.utc),
            }
        )
        self._assets[asset_id] = updated
        logger.info(
            f"Asset {asset_id} risk score {current.current_risk_score} -> {new_score} "
            f"({updated.risk_level.value})"
        )
        return updated


def get_asset_by_id(asset_id: str, catalog: AssetCatalog | None = None) -> Asset | None:
    """Look up an asset in ``catalog`` (or the static definitions)."""
    if catalog is not None:
        return catalog.get(asset_id)
    return next((a for a in DEFAULT_ASSETS if a.id == asset_id), None)
