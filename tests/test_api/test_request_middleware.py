"""Tests for request middleware and rate limit keys."""

import asyncio
from unittest.mock import patch

from fastapi import FastAPI
from fastapi.testclient import TestClient
from starlette.requests import Request

from signal_risk.api.middleware import RequestContextMiddleware, TimeoutMiddleware
from signal_risk.api.rate_limit import _get_rate_limit_key


def _create_test_app(timeout: float = 1.0, long_timeout: float | None = None) -> FastAPI:
    """Create a minimal FastAPI app with timeout middleware for testing."""
    app = FastAPI()
    app.add_middleware(TimeoutMiddleware, timeout_seconds=timeout, long_timeout_seconds=long_timeout)

    @app.get("/fast")
    async def fast():
        return {"status": "ok"}

    @app.get("/slow")
    async def slow():
        await asyncio.sleep(10)
        return {"status": "ok"}

    @app.post("/analyze")
    async def analyze():
        await asyncio.sleep(0.2)
        return {"status": "analyzed"}

    @app.get("/health")
    async def health():
        await asyncio.sleep(0.2)
        return {"status": "healthy"}

    return app
class TestTimeoutMiddleware:
    """Tests for TimeoutMiddleware behavior."""

    def test_fast_request_succeeds(self):
        client = TestClient(_create_test_app(timeout=5.0))

        response = client.get("/fast")

        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

    def test_slow_request_returns_504(self):
        client = TestClient(_create_test_app(timeout=0.1))

        response = client.get("/slow")

        assert response.status_code == 504
        data = response.json()
        assert "timed out" in data["detail"]
        assert data["error_type"] == "timeout"
        assert data["timeout_seconds"] == 0.1

    def test_health_excluded_from_timeout(self):
        client = TestClient(_create_test_app(timeout=0.05))

        assert client.get("/health").status_code == 200

    def test_analysis_gets_long_bound(self):
        client = TestClient(_create_test_app(timeout=0.05, long_timeout=5.0))

        assert client.post("/analyze").json() == {"status": "analyzed"}

    def test_long_bound_defaults_to_timeout(self):
        client = TestClient(_create_test_app(timeout=0.05))

        response = client.post("/analyze")

        assert response.status_code == 504
        assert response.json()["timeout_seconds"] == 0.05

    def test_bound_for(self):
        middleware = TimeoutMiddleware(FastAPI(), timeout_seconds=30.0, long_timeout_seconds=300.0)

        assert middleware.bound_for("/assets/oil") == 30.0
        assert middleware.bound_for("/feeds/scan") == 300.0
        assert middleware.bound_for("/analyze/batch") == 300.0
        assert middleware.bound_for("/health") is None


class TestRequestId:
    def test_generated_when_absent(self, client):
        response = client.get("/health")

        assert response.headers["X-Request-ID"]

    def test_echoes_correlation_id(self, client):
        response = client.get("/health", headers={"X-Correlation-ID": "corr-42"})

        assert response.headers["X-Request-ID"] == "corr-42"

    def test_records_route_template(self):
        app = FastAPI()
        app.add_middleware(RequestContextMiddleware)

        @app.get("/assets/{asset_id}")
        async def asset(asset_id: str):
            return {"id": asset_id}

        with patch("signal_risk.api.middleware.request_context.get_metrics") as metrics:
            response = TestClient(app).get("/assets/oil", headers={"X-Request-ID": "req-7"})

        assert response.headers["X-Request-ID"] == "req-7"
        method, route, status, _ = metrics.return_value.record_request.call_args.args
        assert (method, route, status) == ("GET", "/assets/{asset_id}", 200)


class TestRateLimitKeyExtraction:
    """Tests for rate limit key function."""

    def test_uses_api_key_when_present(self):
        scope = {
            "type": "http",
            "method": "POST",
            "path": "/analyze",
            "headers": [(b"x-api-key", b"test-key-123")],
        }

        key = _get_rate_limit_key(Request(scope))

        assert key.startswith("key:")
        assert "test-key-123" not in key
        assert key == _get_rate_limit_key(Request(scope))

    def test_falls_back_to_ip(self):
        scope = {
            "type": "http",
            "method": "POST",
            "path": "/analyze",
            "headers": [],
            "client": ("192.168.1.100", 12345),
        }

        assert _get_rate_limit_key(Request(scope)) == "ip:192.168.1.100"
