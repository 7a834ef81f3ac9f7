"""Tests for the REST endpoints."""

from signal_risk.config.settings import get_settings
from signal_risk.errors import AnalysisUnavailableError
from signal_risk.risk.schemas import RiskWeighting, WeightDirection

STRIKE_TEXT = "Workers at SQM's Salar de Atacama facility begin indefinite strike"


class TestHealthEndpoint:
    def test_degraded_without_analysis_key(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "degraded"
        assert data["analysis_configured"] is False
        assert data["market_data_configured"] is False
        assert data["assets"] == 3
        assert data["headlines"] == 2

    def test_healthy_with_analysis_key(self, client, monkeypatch):
        monkeypatch.setenv("ANALYSIS_PERPLEXITY_API_KEY", "pplx-test")

        assert client.get("/health").json()["status"] == "healthy"

    def test_root(self, client):
        assert client.get("/").json()["service"] == "Signal Risk API"


class TestAssetEndpoints:
    def test_list(self, client):
        data = client.get("/assets").json()

        assert data["total"] == 3
        assert [a["id"] for a in data["assets"]] == ["lithium", "oil", "semiconductors"]
        assert data["assets"][0]["risk_level"] == "moderate"

    def test_get_one(self, client):
        response = client.get("/assets/oil")

        assert response.status_code == 200
        assert response.json()["name"] == "Crude Oil"

    def test_unknown_asset_404(self, client):
        response = client.get("/assets/gold")

        assert response.status_code == 404
        assert response.json()["error_type"] == "not_found"


class TestFeedEndpoints:
    """Tests for scan and stream."""

    def test_mock_scan(self, client):
        response = client.post("/feeds/scan", json={"mode": "mock", "enable_ai": False})

        assert response.status_code == 200
        data = response.json()
        assert data["scan"]["total_headlines"] == 6
        assert data["scan"]["signals_count"] == 3
        assert data["scan"]["estimated_cost"] == 0.0
        assert set(data["eligible_ids"]) == {"mock-1", "mock-2", "mock-3"}
        assert len(data["headlines"]) == 6

    def test_stream_reflects_latest_scan(self, client):
        client.post("/feeds/scan", json={"mode": "mock", "enable_ai": False})

        data = client.get("/feeds/stream").json()

        assert data["count"] == 6
        assert data["flagged_count"] == 3
        assert data["last_scan"] is not None

    def test_stream_before_any_scan(self, client):
        data = client.get("/feeds/stream").json()

        assert data["count"] == 2
        assert data["last_scan"] is None


class TestAnalyzeEndpoint:
    """Tests for POST /analyze."""

    def test_event_text(self, client, api_catalog):
        response = client.post("/analyze", json={"asset_id": "lithium", "event_text": STRIKE_TEXT})

        assert response.status_code == 200
        data = response.json()
        assert data["before"] == {"value": 4.2, "level": "moderate"}
        assert data["after"]["value"] == api_catalog.require("lithium").current_risk_score
        assert data["parse_status"] == "parsed"
        assert data["event"]["source_name"] == "User provided"
        assert data["headline"] is None

    def test_weighting_method(self, client, mock_deep):
        mock_deep.get_risk_weighting.return_value = RiskWeighting(
            direction=WeightDirection.DECREASE, magnitude=1.2
        )

        response = client.post(
            "/analyze",
            json={"asset_id": "lithium", "event_text": STRIKE_TEXT, "method": "weighting"},
        )

        assert response.status_code == 200
        assert response.json()["after"]["value"] == 3.0
        assert response.json()["change"] == -1.2

    def test_headline(self, client, api_feed):
        response = client.post("/analyze", json={"headline_id": "h-1"})

        assert response.status_code == 200
        assert response.json()["headline"]["triage_status"] == "analyzed"
        assert api_feed.get("h-1").triage_status.value == "analyzed"

    def test_requires_target(self, client):
        response = client.post("/analyze", json={"asset_id": "lithium"})

        assert response.status_code == 422

    def test_unknown_asset(self, client):
        response = client.post("/analyze", json={"asset_id": "gold", "event_text": STRIKE_TEXT})

        assert response.status_code == 404
        assert response.json()["error_type"] == "not_found"

    def test_unknown_headline(self, client):
        response = client.post("/analyze", json={"headline_id": "nope"})

        assert response.status_code == 404

    def test_ineligible_headline(self, client):
        response = client.post("/analyze", json={"headline_id": "noise-1"})

        assert response.status_code == 422
        assert response.json()["error_type"] == "ineligible"

    def test_analysis_unavailable(self, client, mock_deep, api_catalog):
        mock_deep.analyze_event.side_effect = AnalysisUnavailableError("Analysis timed out")

        response = client.post("/analyze", json={"asset_id": "lithium", "event_text": STRIKE_TEXT})

        assert response.status_code == 502
        assert response.json()["error_type"] == "analysis_unavailable"
        assert api_catalog.require("lithium").current_risk_score == 4.2


class TestBatchAnalyzeEndpoint:
    def test_batch(self, client, api_catalog, mock_batch):
        response = client.post("/analyze/batch")

        assert response.status_code == 200
        data = response.json()
        assert data["changes"]["lithium"]["change"] == 1.7
        assert data["changes"]["lithium"]["level"] == "elevated"
        assert data["headline_count"] == 1
        assert api_catalog.require("lithium").current_risk_score == 5.9

    def test_batch_selected_headlines(self, client, mock_batch):
        response = client.post("/analyze/batch", json={"headline_ids": ["noise-1"]})

        assert response.status_code == 422
        mock_batch.analyze.assert_not_called()


class TestScenarioEndpoints:
    def test_list(self, client):
        data = client.get("/scenarios").json()

        assert data["total"] == 1
        assert data["scenarios"][0]["id"] == "lithium-chile-strike"
        assert data["scenarios"][0]["country"] == "Chile"

    def test_list_filtered(self, client):
        assert client.get("/scenarios", params={"asset_id": "oil"}).json()["total"] == 0

    def test_inject(self, client, api_catalog):
        response = client.post("/scenarios/lithium-chile-strike/inject")

        assert response.status_code == 200
        data = response.json()
        assert data["before"]["value"] == 4.2
        assert data["after"]["level"] == "elevated"
        assert data["expected_risk_score"] == 6.8
        assert api_catalog.require("lithium").current_risk_score == 4.2

    def test_inject_unknown(self, client):
        response = client.post("/scenarios/nope/inject")

        assert response.status_code == 404


class TestApiKeyAuth:
    """Tests for X-API-KEY enforcement."""

    def _enable(self, monkeypatch):
        monkeypatch.setenv("API_KEYS", "key-one, key-two")
        get_settings.cache_clear()

    def test_open_without_configured_keys(self, client):
        assert client.get("/assets").status_code == 200

    def test_missing_key(self, client, monkeypatch):
        self._enable(monkeypatch)

        response = client.get("/assets")

        assert response.status_code == 401
        assert "Missing API key" in response.json()["detail"]

    def test_invalid_key(self, client, monkeypatch):
        self._enable(monkeypatch)

        assert client.get("/assets", headers={"X-API-KEY": "wrong"}).status_code == 401

    def test_valid_key(self, client, monkeypatch):
        self._enable(monkeypatch)

        assert client.get("/assets", headers={"X-API-KEY": "key-two"}).status_code == 200

    def test_health_is_public(self, client, monkeypatch):
        self._enable(monkeypatch)

        assert client.get("/health").status_code == 200
