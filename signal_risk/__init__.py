"""signal-risk - geopolitical risk signals for commodity and equity assets.

Headlines flow through a cost-aware triage funnel (keyword matching, then
LLM relevance classification on the top candidates only), flagged events are
sent to a deep impact analysis, and each asset gets a bounded 0-10 risk score
with component attribution and trading opportunity suggestions.
"""

__version__ = "0.1.0"
