"""Headline triage funnel.

Three stages of increasing cost:
- KeywordMatcher: weighted keyword buckets per asset (local, free)
- TriageFunnel: best asset per headline, ranked by confidence
- RelevanceClassifier: model confirmation of the top N flagged headlines

Usage:
    from signal_risk.triage import TriageFunnel, get_top_flagged

    results = TriageFunnel().triage(headlines)
    top = get_top_flagged(results, limit=10)
"""

from signal_risk.triage.config import TriageConfig
from signal_risk.triage.events import classify_event_type, event_from_headline, event_from_text
from signal_risk.triage.funnel import TriageFunnel, TriageResult, get_top_flagged
from signal_risk.triage.keywords import KEYWORD_TAXONOMIES, KeywordMatch, KeywordMatcher, KeywordTaxonomy
from signal_risk.triage.relevance import RelevanceClassifier, RelevanceJudgment

__all__ = [
    "KEYWORD_TAXONOMIES",
    "KeywordMatch",
    "KeywordMatcher",
    "KeywordTaxonomy",
    "RelevanceClassifier",
    "RelevanceJudgment",
    "TriageConfig",
    "TriageFunnel",
    "TriageResult",
    "classify_event_type",
    "event_from_headline",
    "event_from_text",
    "get_top_flagged",
]
