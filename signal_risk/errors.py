"""Exception taxonomy for signal-risk.

Client errors (unknown ids, ineligible headlines) map to 4xx responses in the
API layer. External-service failures are absorbed with fallbacks wherever a
fallback exists; ``AnalysisUnavailableError`` is the one failure that is
allowed to surface to the caller.
"""


class SignalRiskError(Exception):
    """Base exception for all signal-risk errors."""


class UnknownAssetError(SignalRiskError):
    """Raised when an asset id is not present in the catalog."""

    def __init__(self, asset_id: str) -> None:
        super().__init__(f"Unknown asset: {asset_id}")
        self.asset_id = asset_id


class UnknownScenarioError(SignalRiskError):
    """Raised when a demo scenario id does not exist."""

    def __init__(self, scenario_id: str) -> None:
        super().__init__(f"Unknown scenario: {scenario_id}")
        self.scenario_id = scenario_id


class IneligibleHeadlineError(SignalRiskError):
    """Raised when a headline does not qualify for deep analysis."""


class InvalidTransitionError(SignalRiskError):
    """Raised when a headline's triage status would move backwards."""


class AnalysisUnavailableError(SignalRiskError):
    """Raised when the deep analysis producer fails or times out."""
