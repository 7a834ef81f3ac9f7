"""
Bounded application of an external risk judgment to an asset score.

The judgment only says which way and how far; the arithmetic here keeps the
result inside [0, 10] no matter what the model returned.
"""

from signal_risk.risk.schemas import (
    RiskWeighting,
    WeightDirection,
    WeightingComponents,
    clamp,
    round_score,
)


def apply_weighting(current: float, weighting: RiskWeighting) -> float:
    """
    Move ``current`` by the weighting's magnitude in its direction.

    increase -> min(current + magnitude, 10)
    decrease -> max(current - magnitude, 0)
    neutral  -> current

    The result is rounded to one decimal place.
    """
    base = clamp(current, 0.0, 10.0)
    magnitude = clamp(weighting.magnitude, 0.0, 10.0)

    if weighting.direction == WeightDirection.INCREASE:
        return round_score(min(base + magnitude, 10.0))
    if weighting.direction == WeightDirection.DECREASE:
        return round_score(max(base - magnitude, 0.0))
    return round_score(base)


# Alias matching the route and CLI naming
apply_llm_weighting = apply_weighting


def neutral_weighting(reason: str = "Risk weighting unavailable") -> RiskWeighting:
    """Weighting used when no external judgment could be obtained."""
    return RiskWeighting(
        direction=WeightDirection.NEUTRAL,
        magnitude=0.0,
        confidence=0.5,
        reasoning=reason,
        components=WeightingComponents(),
    )
