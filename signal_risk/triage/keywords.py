"""
Keyword matching against per-asset taxonomies.

Each taxonomy has four buckets with different weights. Every keyword that
occurs in the text (case-insensitive substring) adds its bucket's weight to
a raw score. A text matches an asset when it has a primary keyword plus
location or event context, or when the raw score alone clears the
threshold. The reported score is capped at 1.0.
"""

import logging
from dataclasses import dataclass, field

from pydantic import BaseModel, ConfigDict, Field

from signal_risk.triage.config import TriageConfig

logger = logging.getLogger(__name__)


class KeywordTaxonomy(BaseModel):
    """Keyword buckets for one asset."""

    model_config = ConfigDict(frozen=True)

    primary: tuple[str, ...] = Field(default_factory=tuple)
    locations: tuple[str, ...] = Field(default_factory=tuple)
    events: tuple[str, ...] = Field(default_factory=tuple)
    companies: tuple[str, ...] = Field(default_factory=tuple)


KEYWORD_TAXONOMIES: dict[str, KeywordTaxonomy] = {
    "lithium": KeywordTaxonomy(
        primary=("lithium", "li-ion", "battery metal", "sqm", "albemarle", "pilbara", "livent"),
        locations=("chile", "atacama", "argentina", "australia", "nevada", "salar"),
        events=("strike", "protest", "disruption", "halt", "shutdown", "closure", "suspend", "drought"),
        companies=("sqm", "albemarle", "pilbara", "livent", "ganfeng", "tianqi"),
    ),
    "oil": KeywordTaxonomy(
        primary=("opec", "crude", "barrel", "petroleum", "wti", "brent", "oil price"),
        locations=("hormuz", "saudi", "iran", "russia", "uae", "iraq", "venezuela", "strait"),
        events=("cut", "sanction", "embargo", "attack", "pipeline", "tanker", "spill", "quota"),
        companies=("aramco", "exxon", "chevron", "bp", "shell", "total", "rosneft"),
    ),
    "semiconductors": KeywordTaxonomy(
        primary=("tsmc", "semiconductor", "chip", "wafer", "foundry", "fab", "asml"),
        locations=("taiwan", "china", "korea", "arizona", "netherlands", "japan"),
        events=("shortage", "export", "restriction", "ban", "subsidy", "tariff", "earthquake"),
        companies=("tsmc", "samsung", "intel", "asml", "nvidia", "amd", "qualcomm"),
    ),
}


@dataclass
class KeywordMatch:
    """Outcome of matching one text against one taxonomy."""

    matches: bool
    score: float
    keywords: list[str] = field(default_factory=list)


class KeywordMatcher:
    """
    Weighted keyword matcher.

    Example:
        matcher = KeywordMatcher()
        result = matcher.match(headline.text, KEYWORD_TAXONOMIES["lithium"])
    """

    def __init__(self, config: TriageConfig | None = None):
        self._config = config or TriageConfig()

    def match(self, text: str, taxonomy: KeywordTaxonomy) -> KeywordMatch:
        """
        Score ``text`` against ``taxonomy``.

        Args:
            text: Headline title and description
            taxonomy: Keyword buckets for one asset

        Returns:
            KeywordMatch with de-duplicated keywords in first-seen order
        """
        lowered = (text or "").lower()
        cfg = self._config

        buckets = (
            (taxonomy.primary, cfg.primary_weight),
            (taxonomy.locations, cfg.location_weight),
            (taxonomy.events, cfg.event_weight),
            (taxonomy.companies, cfg.company_weight),
        )

        raw_score = 0.0
        hits: list[list[str]] = []
        for keywords, weight in buckets:
            found = [kw for kw in keywords if kw.lower() in lowered]
            raw_score += weight * len(found)
            hits.append(found)

        primary_hits, location_hits, event_hits, _ = hits
        has_context = bool(location_hits or event_hits)
        matches = (bool(primary_hits) and has_context) or raw_score > cfg.match_threshold

        keywords: list[str] = []
        for found in hits:
            for kw in found:
                if kw not in keywords:
                    keywords.append(kw)

        return KeywordMatch(
            matches=matches,
            score=min(raw_score, 1.0),
            keywords=keywords,
        )
