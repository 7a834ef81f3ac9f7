"""
Normalize deep analysis responses into ``ImpactAnalysis``.

The parser is total: any string, including the empty string, produces a
structurally valid analysis. Fidelity drops as structure disappears:

    PARSED         JSON parsed (strictly or after auto-repair)
    DEGRADED       no usable JSON; labeled text sections were extracted
    UNRECOVERABLE  no structure at all; one low-confidence primary impact
                   built from the start of the raw text

Downstream consumers receive the status with the analysis and decide how
much to trust it.
"""

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable

from pydantic import ValidationError

from signal_risk.analysis.json_repair import load_json_lenient
from signal_risk.analysis.schemas import (
    AffectedEntity,
    Citation,
    EntityType,
    Impact,
    ImpactAnalysis,
    ImpactOrder,
    Opportunity,
    OpportunityType,
    ReasoningStep,
)
from signal_risk.observability.metrics import get_metrics
from signal_risk.risk.schemas import RiskLevel

logger = logging.getLogger(__name__)

SUMMARY_CHARS = 200
FALLBACK_DESCRIPTION_CHARS = 500

_SECTION_TEMPLATE = r"{marker}[\w-]*(?:\s+impacts?)?\s*[:\-]?\s*(\S.*?)(?=\n\s*\n|\Z)"

_ORDER_ALIASES = {
    "primary": ImpactOrder.PRIMARY,
    "direct": ImpactOrder.PRIMARY,
    "first": ImpactOrder.FIRST,
    "1st": ImpactOrder.FIRST,
    "second": ImpactOrder.SECOND,
    "2nd": ImpactOrder.SECOND,
    "third": ImpactOrder.THIRD,
    "3rd": ImpactOrder.THIRD,
}


class ParseStatus(str, Enum):
    PARSED = "parsed"
    DEGRADED = "degraded"
    UNRECOVERABLE = "unrecoverable"


@dataclass(frozen=True)
class ParseOutcome:
    """An always-valid analysis tagged with how it was recovered."""

    analysis: ImpactAnalysis
    status: ParseStatus
    repaired: bool = False

    @property
    def structured(self) -> bool:
        return self.status == ParseStatus.PARSED


@dataclass(frozen=True)
class _TextSection:
    order: ImpactOrder | None
    marker: str
    magnitude: float
    confidence: float
    timeframe: str
    citation_slice: slice


def citations_from_search_results(results: Iterable[dict[str, Any]] | None) -> list[Citation]:
    """
    Build citations from a completion's search results.

    Ids are ``cite-{index}`` and relevance decays by 0.1 per position.
    """
    citations = []
    for index, result in enumerate(results or []):
        if not isinstance(result, dict):
            continue
        citations.append(
            Citation(
                id=f"cite-{index}",
                title=str(result.get("title") or ""),
                url=str(result.get("url") or ""),
                snippet=str(result.get("snippet") or ""),
                published_date=result.get("date") or result.get("published_date"),
                relevance=1 - index * 0.1,
            )
        )
    return citations


def _truncate(text: str, limit: int) -> str:
    text = text.strip()
    if len(text) <= limit:
        return text
    return text[:limit].rstrip() + "..."


def _normalize_key(value: Any) -> str:
    return str(value or "").strip().lower().replace("_", "-")


def _parse_order(value: Any) -> ImpactOrder | None:
    key = _normalize_key(value)
    for suffix in ("-order", " order"):
        key = key.removesuffix(suffix)
    return _ORDER_ALIASES.get(key)


def _parse_entity_type(value: Any) -> EntityType:
    try:
        return EntityType(_normalize_key(value))
    except ValueError:
        return EntityType.COMPANY


def _parse_opportunity_type(value: Any) -> OpportunityType:
    try:
        return OpportunityType(_normalize_key(value))
    except ValueError:
        return OpportunityType.HEDGE


def _parse_risk_level(value: Any) -> RiskLevel:
    try:
        return RiskLevel(_normalize_key(value))
    except ValueError:
        return RiskLevel.MODERATE


def as_list(value: Any) -> list[Any]:
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]


def map_citations(ids: Any, citations: list[Citation]) -> list[Citation]:
    """Resolve citation indexes; out-of-range or non-integer ids are dropped."""
    mapped = []
    for raw in as_list(ids):
        if isinstance(raw, bool):
            continue
        if isinstance(raw, str) and raw.strip().isdigit():
            raw = int(raw.strip())
        if isinstance(raw, int) and 0 <= raw < len(citations):
            mapped.append(citations[raw])
    return mapped


class ImpactAnalysisParser:
    """
    Turn raw deep analysis output into an ``ImpactAnalysis``.

    Example:
        parser = ImpactAnalysisParser()
        outcome = parser.parse(response.content, citations)
        if outcome.status != ParseStatus.PARSED:
            logger.warning("analysis degraded")
    """

    SECTIONS = (
        _TextSection(ImpactOrder.PRIMARY, r"PRIMARY", 6.0, 0.5, "Immediate to 4 weeks", slice(0, 2)),
        _TextSection(ImpactOrder.FIRST, r"FIRST[-\s]?ORDER", 5.0, 0.4, "4-12 weeks", slice(2, 4)),
        _TextSection(ImpactOrder.SECOND, r"SECOND[-\s]?ORDER", 4.0, 0.3, "3-6 months", slice(4, 6)),
    )
    OPPORTUNITY_SECTION = _TextSection(
        None, r"(?:TRADING\s+)?OPPORTUNIT", 0.0, 0.0, "Short to medium term", slice(4, 6)
    )

    def parse(
        self,
        raw: str | None,
        citations: list[Citation] | None = None,
        reasoning_steps: list[dict[str, Any]] | None = None,
    ) -> ParseOutcome:
        text = raw or ""
        cites = list(citations or [])
        steps = self._reasoning_steps(reasoning_steps)

        outcome = self._parse_json(text, cites, steps)
        if outcome is None:
            outcome = self._parse_sections(text, cites, steps)
        if outcome is None:
            outcome = self._unrecoverable(text, cites, steps)

        get_metrics().record_parse(outcome.status.value)
        if outcome.status != ParseStatus.PARSED:
            logger.warning(
                f"Analysis response {outcome.status.value} "
                f"({len(text)} chars, {len(outcome.analysis.impacts)} impacts recovered)"
            )
        return outcome

    # ── JSON ───────────────────────────────────────────────

    def _parse_json(
        self, text: str, citations: list[Citation], steps: list[ReasoningStep]
    ) -> ParseOutcome | None:
        loaded = load_json_lenient(text)
        if loaded is None:
            return None
        data, repaired = loaded
        if not isinstance(data, dict) or not ({"summary", "impacts", "opportunities"} & data.keys()):
            return None

        impacts = [
            impact
            for item in as_list(data.get("impacts"))
            if (impact := self._build_impact(item, citations)) is not None
        ]
        opportunities = self.build_opportunities(data.get("opportunities"), citations)
        summary = data.get("summary")
        analysis = ImpactAnalysis(
            summary=str(summary).strip() if summary else "Analysis complete",
            impacts=impacts,
            opportunities=opportunities,
            citations=citations,
            reasoning_steps=steps,
        )
        if repaired:
            logger.info("Analysis JSON required auto-repair")
        return ParseOutcome(analysis=analysis, status=ParseStatus.PARSED, repaired=repaired)

    def build_opportunities(
        self, items: Any, citations: list[Citation] | None = None
    ) -> list[Opportunity]:
        """Normalize a raw opportunity list, dropping unusable entries."""
        cites = list(citations or [])
        return [
            opp
            for item in as_list(items)
            if (opp := self._build_opportunity(item, cites)) is not None
        ]

    def _build_impact(self, item: Any, citations: list[Citation]) -> Impact | None:
        if not isinstance(item, dict):
            return None
        order = _parse_order(item.get("order"))
        description = str(item.get("description") or "").strip()
        if order is None or not description:
            logger.debug(f"Dropping impact with order={item.get('order')!r}")
            return None

        entities = [
            entity
            for raw in as_list(item.get("affectedEntities", item.get("affected_entities")))
            if (entity := self._build_entity(raw)) is not None
        ]
        try:
            return Impact(
                order=order,
                description=description,
                magnitude=item.get("magnitude"),
                timeframe=str(item.get("timeframe") or "Unknown"),
                affected_entities=entities,
                confidence=item.get("confidence"),
                citations=map_citations(
                    item.get("citationIds", item.get("citation_ids")), citations
                ),
            )
        except ValidationError as e:
            logger.debug(f"Dropping invalid impact: {e}")
            return None

    @staticmethod
    def _build_entity(item: Any) -> AffectedEntity | None:
        if not isinstance(item, dict) or not item.get("name"):
            return None
        symbol = item.get("symbol")
        try:
            return AffectedEntity(
                type=_parse_entity_type(item.get("type")),
                name=str(item["name"]).strip(),
                symbol=str(symbol).strip() if symbol else None,
                impact=str(item.get("impactDescription") or item.get("impact") or ""),
                impact_magnitude=item.get("impactMagnitude", item.get("impact_magnitude")),
            )
        except ValidationError as e:
            logger.debug(f"Dropping invalid entity: {e}")
            return None

    def _build_opportunity(self, item: Any, citations: list[Citation]) -> Opportunity | None:
        if not isinstance(item, dict):
            return None
        description = str(item.get("description") or "").strip()
        if not description:
            return None
        actions = [
            str(a) for a in as_list(item.get("suggestedActions", item.get("suggested_actions"))) if a
        ]
        try:
            return Opportunity(
                type=_parse_opportunity_type(item.get("type")),
                description=description,
                suggested_actions=actions,
                potential_return=item.get("potentialReturn", item.get("potential_return")),
                risk_level=_parse_risk_level(item.get("riskLevel", item.get("risk_level"))),
                timeframe=str(item.get("timeframe") or "Unknown"),
                citations=map_citations(
                    item.get("citationIds", item.get("citation_ids")), citations
                ),
            )
        except ValidationError as e:
            logger.debug(f"Dropping invalid opportunity: {e}")
            return None

    # ── Labeled text sections ──────────────────────────────

    @staticmethod
    def _find_section(text: str, marker: str) -> str | None:
        pattern = re.compile(_SECTION_TEMPLATE.format(marker=marker), re.IGNORECASE | re.DOTALL)
        match = pattern.search(text)
        if not match:
            return None
        body = match.group(1).strip()
        return body or None

    def _parse_sections(
        self, text: str, citations: list[Citation], steps: list[ReasoningStep]
    ) -> ParseOutcome | None:
        if not text.strip():
            return None

        impacts = []
        for section in self.SECTIONS:
            body = self._find_section(text, section.marker)
            if body is None:
                continue
            impacts.append(
                Impact(
                    order=section.order,
                    description=body,
                    magnitude=section.magnitude,
                    timeframe=section.timeframe,
                    confidence=section.confidence,
                    citations=citations[section.citation_slice],
                )
            )

        opportunities = []
        opp_body = self._find_section(text, self.OPPORTUNITY_SECTION.marker)
        if opp_body is not None:
            opportunities.append(
                Opportunity(
                    type=OpportunityType.HEDGE,
                    description=opp_body,
                    risk_level=RiskLevel.MODERATE,
                    timeframe=self.OPPORTUNITY_SECTION.timeframe,
                    citations=citations[self.OPPORTUNITY_SECTION.citation_slice],
                )
            )

        if not impacts and not opportunities:
            return None

        analysis = ImpactAnalysis(
            summary=_truncate(text, SUMMARY_CHARS),
            impacts=impacts,
            opportunities=opportunities,
            citations=citations,
            reasoning_steps=steps,
        )
        return ParseOutcome(analysis=analysis, status=ParseStatus.DEGRADED)

    # ── Last resort ────────────────────────────────────────

    @staticmethod
    def _unrecoverable(
        text: str, citations: list[Citation], steps: list[ReasoningStep]
    ) -> ParseOutcome:
        description = text.strip()[:FALLBACK_DESCRIPTION_CHARS] or "No analysis text was returned."
        analysis = ImpactAnalysis(
            summary="Analysis completed without a structured breakdown.",
            impacts=[
                Impact(
                    order=ImpactOrder.PRIMARY,
                    description=description,
                    magnitude=5.0,
                    timeframe="Unknown",
                    confidence=0.2,
                    citations=citations[:3],
                )
            ],
            citations=citations,
            reasoning_steps=steps,
        )
        return ParseOutcome(analysis=analysis, status=ParseStatus.UNRECOVERABLE)

    @staticmethod
    def _reasoning_steps(raw: list[dict[str, Any]] | None) -> list[ReasoningStep]:
        steps = []
        for step in raw or []:
            if not isinstance(step, dict):
                continue
            steps.append(
                ReasoningStep(
                    thought=str(step.get("thought") or ""),
                    type=str(step.get("type") or "web_search"),
                )
            )
        return steps
