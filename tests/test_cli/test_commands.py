"""Tests for the signal-risk CLI."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from click.testing import CliRunner

from signal_risk.analysis.parser import ParseOutcome, ParseStatus
from signal_risk.cli import main
from signal_risk.errors import AnalysisUnavailableError


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def mock_deep_cls(chile_analysis):
    """Patch DeepAnalysisService so analyze never reaches the network."""
    instance = MagicMock()
    instance.analyze_event = AsyncMock(return_value=ParseOutcome(chile_analysis, ParseStatus.PARSED))
    instance.close = AsyncMock()
    with patch("signal_risk.services.analysis_service.DeepAnalysisService", return_value=instance):
        yield instance


class TestScanCommand:
    def test_mock_scan_without_ai(self, runner):
        result = runner.invoke(main, ["scan", "--mock", "--no-ai", "--no-discovery"])

        assert result.exit_code == 0, result.output
        assert "headlines:   6" in result.output
        assert "flagged:     3" in result.output
        assert "ai triaged:  0" in result.output
        assert "lithium" in result.output

    def test_limit(self, runner):
        result = runner.invoke(main, ["scan", "--mock", "--no-ai", "--limit", "1"])

        assert result.exit_code == 0, result.output
        assert result.output.count("[flagged ]") == 1


class TestAnalyzeCommand:
    def test_prints_new_score(self, runner, mock_deep_cls):
        result = runner.invoke(
            main,
            ["analyze", "lithium", "Workers at SQM's Salar de Atacama facility begin indefinite strike"],
        )

        assert result.exit_code == 0, result.output
        assert "lithium: 4.2 ->" in result.output
        assert "Parse status: parsed" in result.output
        assert "Supply Disruption" in result.output
        mock_deep_cls.close.assert_awaited_once()

    def test_unknown_asset(self, runner):
        result = runner.invoke(main, ["analyze", "gold", "Mine strike"])

        assert result.exit_code == 2
        assert "gold" in result.output

    def test_analysis_unavailable(self, runner, mock_deep_cls):
        mock_deep_cls.analyze_event.side_effect = AnalysisUnavailableError("no key")

        result = runner.invoke(main, ["analyze", "oil", "Tanker seized in Hormuz"])

        assert result.exit_code == 1
        assert "Analysis unavailable" in result.output

    def test_rejects_unknown_method(self, runner):
        result = runner.invoke(main, ["analyze", "oil", "x", "--method", "vibes"])

        assert result.exit_code == 2


class TestCatalogCommands:
    def test_assets(self, runner):
        result = runner.invoke(main, ["assets"])

        assert result.exit_code == 0
        for asset_id in ("lithium", "oil", "semiconductors"):
            assert asset_id in result.output

    def test_scenario_list(self, runner):
        result = runner.invoke(main, ["scenario"])

        assert result.exit_code == 0
        assert "lithium-chile-strike" in result.output

    def test_scenario_inject(self, runner):
        result = runner.invoke(main, ["scenario", "lithium-chile-strike"])

        assert result.exit_code == 0, result.output
        assert "lithium: 4.2 ->" in result.output
        assert "elevated" in result.output

    def test_scenario_unknown(self, runner):
        result = runner.invoke(main, ["scenario", "nope"])

        assert result.exit_code == 2


class TestHealthCommand:
    def test_without_analysis_key(self, runner):
        result = runner.invoke(main, ["health"])

        assert result.exit_code == 1
        assert "perplexity_configured: False" in result.output

    def test_with_analysis_key(self, runner, monkeypatch):
        monkeypatch.setenv("ANALYSIS_PERPLEXITY_API_KEY", "pplx-test")

        result = runner.invoke(main, ["health"])

        assert result.exit_code == 0
        assert "Analysis available" in result.output
