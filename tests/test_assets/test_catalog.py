"""Tests for the asset catalog and definitions."""

import pytest

from signal_risk.assets.catalog import AssetCatalog, get_asset_by_id
from signal_risk.errors import UnknownAssetError
from signal_risk.risk.schemas import RiskLevel


class TestDefinitions:
    def test_three_assets_in_order(self, catalog):
        assert catalog.asset_ids == ["lithium", "oil", "semiconductors"]
        assert len(catalog) == 3

    def test_lithium_seed(self, lithium):
        assert lithium.current_risk_score == 4.2
        assert lithium.risk_level == RiskLevel.MODERATE
        assert {c.symbol for c in lithium.monitoring.high_exposure_companies(90)} == {"SQM", "ALB"}

    def test_risk_level_serialized(self, lithium):
        assert lithium.model_dump(mode="json")["risk_level"] == "moderate"


class TestAssetCatalog:
    """Tests for AssetCatalog lookups and score updates."""

    def test_require_unknown(self, catalog):
        with pytest.raises(UnknownAssetError, match="gold"):
            catalog.require("gold")

    def test_get_unknown_returns_none(self, catalog):
        assert catalog.get("gold") is None
        assert "gold" not in catalog
        assert "oil" in catalog

    def test_update_score_rounds_and_derives_level(self, catalog):
        updated = catalog.update_score("lithium", 6.8500001)

        assert updated.current_risk_score == 6.9
        assert updated.risk_level == RiskLevel.ELEVATED
        assert catalog.require("lithium").current_risk_score == 6.9

    @pytest.mark.parametrize("score, expected", [(-4, 0.0), (42, 10.0)])
    def test_update_score_clamps(self, catalog, score, expected):
        assert catalog.update_score("oil", score).current_risk_score == expected

    def test_update_refreshes_timestamp(self, catalog, lithium):
        updated = catalog.update_score("lithium", 5.0)

        assert updated.last_updated >= lithium.last_updated

    def test_update_unknown(self, catalog):
        with pytest.raises(UnknownAssetError):
            catalog.update_score("gold", 5.0)

    def test_catalogs_are_independent(self):
        first, second = AssetCatalog(), AssetCatalog()
        first.update_score("lithium", 9.0)

        assert second.require("lithium").current_risk_score == 4.2

    def test_get_asset_by_id(self, catalog):
        assert get_asset_by_id("oil").name == "Crude Oil"
        assert get_asset_by_id("gold") is None
        assert get_asset_by_id("oil", catalog) is catalog.require("oil")
