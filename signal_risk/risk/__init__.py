"""Risk scoring for monitored assets.

Two ways to move an asset's score, chosen per update:
- RiskScorer: component-based score computed from a structured impact analysis
- apply_weighting: bounded adjustment driven by an external directional judgment

Both paths clamp to [0, 10], round to one decimal and derive the risk level
from ``score_to_level``.
"""

from signal_risk.risk.schemas import (
    RiskComponent,
    RiskLevel,
    RiskScore,
    RiskWeighting,
    ScoringMethod,
    WeightDirection,
    WeightingComponents,
    round_score,
    score_to_level,
)
from signal_risk.risk.weighting import apply_llm_weighting, apply_weighting, neutral_weighting

__all__ = [
    "RiskComponent",
    "RiskLevel",
    "RiskScore",
    "RiskWeighting",
    "ScoringMethod",
    "WeightDirection",
    "WeightingComponents",
    "apply_llm_weighting",
    "apply_weighting",
    "neutral_weighting",
    "round_score",
    "score_to_level",
]
