"""
Curated demo scenarios with preloaded analyses.

Injecting a scenario runs the component scorer over a known analysis so the
full pipeline can be demonstrated offline. It reports before and after
scores without writing to the catalog.
"""

from dataclasses import dataclass
from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict

from signal_risk.analysis.schemas import (
    AffectedEntity,
    Citation,
    EntityType,
    Event,
    EventType,
    Impact,
    ImpactAnalysis,
    ImpactOrder,
    Opportunity,
    OpportunityType,
)
from signal_risk.assets.catalog import AssetCatalog
from signal_risk.errors import UnknownScenarioError
from signal_risk.risk.scorer import RiskScorer
from signal_risk.risk.schemas import RiskLevel, RiskScore


class DemoScenario(BaseModel):
    """A historical-style event with an analysis known in advance."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    asset_id: str
    description: str
    event_type: EventType
    expected_risk_score: float
    event_text: str
    country: str | None = None
    region: str | None = None
    preloaded_analysis: ImpactAnalysis


@dataclass
class ScenarioInjection:
    """Before and after of running a scenario through the scorer."""

    scenario: DemoScenario
    event: Event
    previous_score: float
    previous_level: RiskLevel
    risk_score: RiskScore

    @property
    def change(self) -> float:
        return round(self.risk_score.value - self.previous_score, 1)


_CHILE_CITATIONS = [
    Citation(
        id="cite-1",
        title="SQM Salar de Atacama Production Capacity",
        url="https://www.sqm.com/en/investors/production-capacity",
        snippet="Salar de Atacama operations capacity: 70,000 tonnes lithium carbonate per year",
        published_date="2024-08-15",
        relevance=0.98,
    ),
    Citation(
        id="cite-2",
        title="Global Lithium Supply Analysis 2024",
        url="https://www.benchmark-minerals.com/lithium-supply",
        snippet="Chile accounts for 32% of global lithium production.",
        published_date="2024-09-22",
        relevance=0.95,
    ),
    Citation(
        id="cite-3",
        title="Tesla Gigafactory Nevada Supply Chain Report",
        url="https://www.tesla.com/ns_videos/2023-impact-report.pdf",
        snippet="Diversified lithium sourcing with primary contracts in Chile and Australia.",
        published_date="2023-04-10",
        relevance=0.89,
    ),
    Citation(
        id="cite-4",
        title="Panasonic Battery Business Unit Disclosure",
        url="https://www.panasonic.com/global/corporate/ir/pdf/disclosure-2024.pdf",
        snippet="60-90 day inventory buffers for critical materials including lithium compounds.",
        published_date="2024-06-30",
        relevance=0.87,
    ),
    Citation(
        id="cite-5",
        title="Global EV Supply Chain Interdependencies",
        url="https://www.mckinsey.com/industries/automotive/ev-supply-chain",
        snippet="Battery supply constraints are the primary bottleneck for EV production through 2026.",
        published_date="2024-07-18",
        relevance=0.82,
    ),
    Citation(
        id="cite-6",
        title="Historical Analysis: Chilean Lithium Strikes and Market Response",
        url="https://www.bloomberg.com/lithium-market-analysis-2023",
        snippet="2023 SQM strike: Pilbara Minerals gained 11.2% in 9 trading days while Albemarle rose 7.8%.",
        published_date="2023-11-05",
        relevance=0.94,
    ),
    Citation(
        id="cite-7",
        title="Lithium Futures Market Microstructure",
        url="https://www.cmegroup.com/markets/lithium-futures-analysis",
        snippet="Lithium hydroxide futures show a 2-4 day lag relative to spot market disruptions.",
        published_date="2024-08-28",
        relevance=0.86,
    ),
]

_CHILE_ANALYSIS = ImpactAnalysis(
    summary=(
        "Strike at Chile's Salar de Atacama facility disrupts 12% of global lithium supply, "
        "hitting Tesla and Panasonic battery production with possible 6-8 week delays. "
        "Historical patterns point to 8-12% gains for Australian lithium miners."
    ),
    impacts=[
        Impact(
            order=ImpactOrder.PRIMARY,
            description=(
                "SQM's Salar de Atacama facility produces about 70,000 tonnes of lithium carbonate "
                "a year, representing 12% of global supply. With operations halted indefinitely, "
                "spot prices at $18,500/tonne could rise 15-20% within 2 weeks based on similar "
                "2023 disruptions."
            ),
            magnitude=8.5,
            timeframe="Immediate to 4 weeks",
            affected_entities=[
                AffectedEntity(
                    type=EntityType.COMPANY,
                    name="SQM",
                    symbol="SQM",
                    impact="Production halt at its primary facility, $12-15M revenue lost per week.",
                    impact_magnitude=9,
                ),
                AffectedEntity(
                    type=EntityType.COMMODITY,
                    name="Lithium Carbonate",
                    impact="Spot prices expected to rise 15-20% on the supply shock.",
                    impact_magnitude=8,
                ),
            ],
            confidence=0.92,
            citations=_CHILE_CITATIONS[0:2],
        ),
        Impact(
            order=ImpactOrder.FIRST,
            description=(
                "Tesla and Panasonic hold 4-6 weeks of lithium carbonate inventory and source "
                "25-30% of their lithium from SQM. A strike longer than 6 weeks forces slowdowns "
                "at Gigafactory Nevada and alternative sourcing at a 30-40% premium."
            ),
            magnitude=7.5,
            timeframe="6-8 weeks",
            affected_entities=[
                AffectedEntity(
                    type=EntityType.COMPANY,
                    name="Tesla",
                    symbol="TSLA",
                    impact="SQM supplies 28% of Nevada's lithium; Model 3/Y output could slip 12-15 days.",
                    impact_magnitude=7.8,
                ),
                AffectedEntity(
                    type=EntityType.COMPANY,
                    name="Panasonic",
                    symbol="PCRFY",
                    impact="Secondary suppliers at a 35-40% premium cut Q4 margins by about 200bp.",
                    impact_magnitude=7.2,
                ),
            ],
            confidence=0.88,
            citations=_CHILE_CITATIONS[2:4],
        ),
        Impact(
            order=ImpactOrder.SECOND,
            description=(
                "Automakers relying on Tesla and Panasonic batteries face allocation pressure, "
                "while CATL and BYD gain from Australian and Chinese sourcing. European EV "
                "delivery schedules for Q1 are at risk."
            ),
            magnitude=6.2,
            timeframe="3-6 months",
            affected_entities=[
                AffectedEntity(
                    type=EntityType.COMPANY,
                    name="General Motors",
                    symbol="GM",
                    impact="Indirect exposure; 8-12% battery cost increase if prices spike broadly.",
                    impact_magnitude=5.5,
                ),
                AffectedEntity(
                    type=EntityType.COMPANY,
                    name="BYD",
                    symbol="1211.HK",
                    impact="Vertically integrated sourcing; benefits from competitors' constraints.",
                    impact_magnitude=-4.5,
                ),
            ],
            confidence=0.75,
            citations=_CHILE_CITATIONS[4:5],
        ),
    ],
    opportunities=[
        Opportunity(
            type=OpportunityType.LONG,
            description=(
                "Australian lithium producers historically gain 8-12% within 7-10 days of Chilean "
                "supply disruptions as demand shifts toward them."
            ),
            suggested_actions=[
                "Long PLS.AX (Pilbara Minerals), target +10% over 2 weeks",
                "Long ALB (Albemarle), non-Chilean supply gains pricing power",
            ],
            potential_return=10,
            risk_level=RiskLevel.MODERATE,
            timeframe="2-4 weeks",
            citations=_CHILE_CITATIONS[5:6],
        ),
        Opportunity(
            type=OpportunityType.ARBITRAGE,
            description=(
                "Lithium futures typically lag spot price increases by 3-5 days during supply "
                "shocks, leaving a 4-6% spread in near-month contracts."
            ),
            suggested_actions=[
                "Long CME lithium hydroxide futures (nearest month)",
                "Spread trade: long Australian producers, short Chilean producers",
            ],
            potential_return=5,
            risk_level=RiskLevel.ELEVATED,
            timeframe="1-2 weeks",
            citations=_CHILE_CITATIONS[6:7],
        ),
        Opportunity(
            type=OpportunityType.HEDGE,
            description=(
                "Hedge existing Tesla or battery-maker longs with Australian lithium miners or a "
                "broad materials ETF at a 1:0.3 ratio."
            ),
            suggested_actions=[
                "If long TSLA, hedge with PLS.AX at 30% position size",
                "Long XLB (Materials Select Sector ETF)",
            ],
            potential_return=0,
            risk_level=RiskLevel.LOW,
            timeframe="Duration of strike",
        ),
    ],
    citations=_CHILE_CITATIONS,
)

DEMO_SCENARIOS: list[DemoScenario] = [
    DemoScenario(
        id="lithium-chile-strike",
        name="Chilean Mining Strike - Salar de Atacama",
        asset_id="lithium",
        description="Major strike at SQM's Salar de Atacama facility affecting 12% of global lithium supply",
        event_type=EventType.STRIKE,
        expected_risk_score=6.8,
        event_text=(
            "Breaking: Workers at SQM's Salar de Atacama lithium facility have begun an "
            "indefinite strike over wages and working conditions. The facility, which produces "
            "about 12% of the world's lithium carbonate, has halted operations. The strike "
            "involves roughly 800 workers as demand for battery-grade lithium keeps rising."
        ),
        country="Chile",
        region="Atacama",
        preloaded_analysis=_CHILE_ANALYSIS,
    ),
]


def list_scenarios(asset_id: str | None = None) -> list[DemoScenario]:
    if asset_id is None:
        return list(DEMO_SCENARIOS)
    return [s for s in DEMO_SCENARIOS if s.asset_id == asset_id]


def get_scenario(scenario_id: str) -> DemoScenario:
    """
    Raises:
        UnknownScenarioError: If no scenario has this id.
    """
    for scenario in DEMO_SCENARIOS:
        if scenario.id == scenario_id:
            return scenario
    raise UnknownScenarioError(scenario_id)


def scenario_event(scenario: DemoScenario) -> Event:
    return Event(
        id=f"event-{scenario.id}",
        title=scenario.name,
        description=scenario.event_text,
        event_type=scenario.event_type,
        source_name="Demo Event Source",
        snippet=scenario.event_text[:200],
        published_at=datetime.now(timezone.utc),
        country=scenario.country,
        region=scenario.region,
    )


def inject_scenario(
    scenario_id: str,
    catalog: AssetCatalog,
    scorer: RiskScorer | None = None,
) -> ScenarioInjection:
    """
    Score a scenario's preloaded analysis against the current asset.

    Raises:
        UnknownScenarioError: If the scenario id is unknown.
        UnknownAssetError: If the scenario's asset is not in the catalog.
    """
    scenario = get_scenario(scenario_id)
    asset = catalog.require(scenario.asset_id)
    event = scenario_event(scenario)
    score = (scorer or RiskScorer()).calculate_risk_score(
        asset, event, scenario.preloaded_analysis
    )
    return ScenarioInjection(
        scenario=scenario,
        event=event,
        previous_score=asset.current_risk_score,
        previous_level=asset.risk_level,
        risk_score=score,
    )
