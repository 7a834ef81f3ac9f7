"""
Command-line interface for signal-risk.

Usage:
    signal-risk scan --mock              # Triage the offline fixtures
    signal-risk analyze lithium "..."    # Deep-analyze an event
    signal-risk assets                   # Current risk per asset
    signal-risk scenario lithium-chile-strike
    signal-risk health                   # Check configuration
    signal-risk serve                    # Run the API server
"""

import asyncio
import sys

import click

from signal_risk.config.settings import get_settings
from signal_risk.errors import AnalysisUnavailableError, UnknownAssetError, UnknownScenarioError
from signal_risk.observability.logging import setup_logging
from signal_risk.observability.metrics import get_metrics
from signal_risk.risk.schemas import RiskLevel, ScoringMethod

_LEVEL_COLORS = {
    RiskLevel.LOW: "green",
    RiskLevel.MODERATE: "yellow",
    RiskLevel.ELEVATED: "magenta",
    RiskLevel.CRITICAL: "red",
}


def _styled_level(level: RiskLevel) -> str:
    return click.style(level.value, fg=_LEVEL_COLORS[level])


@click.group()
@click.option("--debug", is_flag=True, help="Enable debug logging")
def main(debug: bool) -> None:
    """Signal Risk - geopolitical supply-chain risk for commodity assets."""
    setup_logging("DEBUG" if debug else None)


@main.command()
@click.option("--mock", is_flag=True, help="Use the offline fixture headlines")
@click.option("--ai/--no-ai", default=True, help="Confirm top headlines with the relevance model")
@click.option("--discovery/--no-discovery", default=True, help="Merge AI-discovered headlines")
@click.option("--limit", default=10, show_default=True, help="Headlines to print")
def scan(mock: bool, ai: bool, discovery: bool, limit: int) -> None:
    """Run one scan and print the highest-confidence headlines."""
    from signal_risk.assets.catalog import AssetCatalog
    from signal_risk.services.feed_state import FeedState
    from signal_risk.services.scan_service import ScanMode, ScanService

    async def run():
        service = ScanService(FeedState(), AssetCatalog())
        try:
            return await service.scan(
                ScanMode.MOCK if mock else ScanMode.AUTO,
                enable_ai=ai,
                use_discovery=discovery,
            )
        finally:
            await service.close()

    result = asyncio.run(run())
    eligible = {h.id for h in result.eligible}

    click.echo("\nScan Results:")
    click.echo("-" * 60)
    click.echo(f"  headlines:   {result.total_headlines}")
    click.echo(f"  flagged:     {result.flagged_count}")
    click.echo(f"  ai triaged:  {result.ai_triaged_count}")
    click.echo(f"  signals:     {len(result.signals)}")
    click.echo(f"  eligible:    {len(eligible)}")
    click.echo(f"  est. cost:   ${result.estimated_cost:.4f}")
    if result.used_mock_fallback:
        click.echo(click.style("  RSS returned nothing; used mock headlines", fg="yellow"))
    click.echo("-" * 60)

    for headline in result.headlines[:limit]:
        marker = "*" if headline.id in eligible else " "
        assets = ",".join(headline.matched_assets) or "-"
        color = "green" if headline.is_flagged else None
        click.echo(
            click.style(
                f" {marker} {headline.confidence:4.2f} [{headline.triage_status.value:8}] "
                f"{assets:14} {headline.title}",
                fg=color,
            )
        )


@main.command()
@click.argument("asset_id")
@click.argument("event_text")
@click.option(
    "--method",
    type=click.Choice([m.value for m in ScoringMethod]),
    default=ScoringMethod.COMPONENTS.value,
    show_default=True,
    help="Scoring path",
)
def analyze(asset_id: str, event_text: str, method: str) -> None:
    """Deep-analyze EVENT_TEXT against ASSET_ID and print the new score."""
    from signal_risk.assets.catalog import AssetCatalog
    from signal_risk.services.analysis_service import AnalysisService

    async def run():
        service = AnalysisService(AssetCatalog())
        try:
            return await service.analyze_event(asset_id, event_text, ScoringMethod(method))
        finally:
            await service.close()

    try:
        report = asyncio.run(run())
    except UnknownAssetError as e:
        click.echo(click.style(str(e), fg="red"), err=True)
        sys.exit(2)
    except AnalysisUnavailableError as e:
        click.echo(click.style(f"Analysis unavailable: {e}", fg="red"), err=True)
        sys.exit(1)

    score = report.risk_score
    click.echo(f"\n{report.asset_id}: {report.previous_score} -> {score.value} ({_styled_level(score.level)})")
    click.echo(f"Parse status: {report.parse_status.value}")
    click.echo(f"Summary: {report.analysis.summary}")

    if score.components:
        click.echo("\nComponents:")
        for component in score.components:
            click.echo(f"  {component.factor:22} {component.score:4.1f} x {component.weight:.2f}")
    if report.weighting is not None:
        click.echo(
            f"\nWeighting: {report.weighting.direction.value} {report.weighting.magnitude} "
            f"({report.weighting.reasoning})"
        )
    if report.analysis.opportunities:
        click.echo("\nOpportunities:")
        for opp in report.analysis.opportunities:
            quote = ""
            if opp.company is not None and opp.company.price is not None:
                quote = f" [{opp.company.ticker} {opp.company.price:.2f}]"
            click.echo(f"  {opp.type.value:9} {opp.description}{quote}")


@main.command()
def assets() -> None:
    """List monitored assets with their current risk."""
    from signal_risk.assets.catalog import AssetCatalog

    click.echo("\nMonitored Assets:")
    click.echo("-" * 60)
    for asset in AssetCatalog().list_assets():
        click.echo(
            f"  {asset.id:16} {asset.name:28} {asset.current_risk_score:4.1f} "
            f"{_styled_level(asset.risk_level)}"
        )


@main.command()
@click.argument("scenario_id", required=False)
def scenario(scenario_id: str | None) -> None:
    """Score a demo scenario (or list them when no id is given)."""
    from signal_risk.assets.catalog import AssetCatalog
    from signal_risk.assets.scenarios import inject_scenario, list_scenarios

    if scenario_id is None:
        for item in list_scenarios():
            click.echo(f"  {item.id:24} {item.asset_id:12} {item.name}")
        return

    try:
        injection = inject_scenario(scenario_id, AssetCatalog())
    except (UnknownScenarioError, UnknownAssetError) as e:
        click.echo(click.style(str(e), fg="red"), err=True)
        sys.exit(2)

    score = injection.risk_score
    click.echo(f"\n{injection.scenario.name}")
    click.echo(
        f"{injection.scenario.asset_id}: {injection.previous_score} -> {score.value} "
        f"({_styled_level(score.level)}), change {injection.change:+.1f}"
    )
    for component in score.components:
        click.echo(f"  {component.factor:22} {component.score:4.1f} x {component.weight:.2f}")


@main.command()
def health() -> None:
    """Check which external services are configured."""
    from signal_risk.analysis.config import AnalysisConfig

    settings = get_settings()
    results = {
        "perplexity_configured": AnalysisConfig().configured,
        "finnhub_configured": settings.market_data_configured,
    }

    click.echo("\nHealth Check Results:")
    click.echo("-" * 40)
    for name, ok in results.items():
        icon = "✓" if ok else "✗"
        color = "green" if ok else "red"
        click.echo(click.style(f"  {icon} {name}: {ok}", fg=color))
    click.echo("-" * 40)

    if results["perplexity_configured"]:
        click.echo(click.style("Analysis available", fg="green"))
    else:
        click.echo(click.style("No analysis key: keyword triage only", fg="red"))
        sys.exit(1)


@main.command()
@click.option("--host", default=None, help="API server host")
@click.option("--port", default=None, type=int, help="API server port")
@click.option("--reload", is_flag=True, help="Enable auto-reload (dev only)")
@click.option("--metrics-port", default=None, type=int, help="Metrics server port")
def serve(host: str | None, port: int | None, reload: bool, metrics_port: int | None) -> None:
    """Start the API server."""
    import uvicorn

    settings = get_settings()
    host = host or settings.api_host
    port = port or settings.api_port
    metrics_port = metrics_port or settings.metrics_port

    # Start metrics server on separate port
    get_metrics().start_server(port=metrics_port)

    click.echo(f"Starting API server on {host}:{port}")
    click.echo(f"Metrics available on http://localhost:{metrics_port}/metrics")
    click.echo(f"API docs available on http://localhost:{port}/docs")

    uvicorn.run(
        "signal_risk.api.app:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
        log_level="info",
    )


if __name__ == "__main__":
    main()
