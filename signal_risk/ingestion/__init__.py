"""
Headline ingestion: canonical schema, RSS aggregation, mock fixtures and
near-duplicate merging of AI-discovered headlines.
"""

from signal_risk.ingestion.deduplication import Deduplicator, hybrid_discovery, title_similarity
from signal_risk.ingestion.schemas import DiscoveryChannel, Headline, TriageStatus

__all__ = [
    "Deduplicator",
    "DiscoveryChannel",
    "Headline",
    "TriageStatus",
    "hybrid_discovery",
    "title_similarity",
]
