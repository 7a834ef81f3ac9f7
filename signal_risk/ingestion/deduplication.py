"""
Near-duplicate merging for headlines from independent channels.

RSS feeds and AI web-search discovery often surface the same story with
slightly different wording. Titles are compared by token-set Jaccard
similarity over normalized word tokens:

- lowercased, punctuation stripped
- tokens shorter than ``min_token_length`` dropped ("at", "on", "go")
- each token truncated to ``stem_length`` characters so inflections and
  demonyms collapse ("chilean" / "chile", "strikes" / "strike")

Setting ``min_token_length=1`` and ``stem_length=0`` gives plain whitespace
Jaccard. Comparison is pairwise, O(n*m) in the number of titles; fine for
scan-sized batches of a few hundred headlines.
"""

import logging
import re
from typing import Iterable

from signal_risk.ingestion.schemas import Headline

logger = logging.getLogger(__name__)

_WORD_RE = re.compile(r"\w+")


def tokenize_title(
    title: str,
    min_token_length: int = 3,
    stem_length: int = 5,
) -> frozenset[str]:
    """
    Normalize a title into a set of comparison tokens.

    Falls back to the raw lowercased words when filtering would leave
    nothing, so very short titles still compare meaningfully.
    """
    words = _WORD_RE.findall(title.lower())
    tokens = {
        word[:stem_length] if stem_length > 0 else word
        for word in words
        if len(word) >= min_token_length
    }
    if not tokens:
        tokens = set(words)
    return frozenset(tokens)


def jaccard(a: frozenset[str], b: frozenset[str]) -> float:
    """Jaccard similarity of two token sets (0 when both are empty)."""
    union = a | b
    if not union:
        return 0.0
    return len(a & b) / len(union)


def title_similarity(
    a: str,
    b: str,
    min_token_length: int = 3,
    stem_length: int = 5,
) -> float:
    """
    Similarity of two headline titles in [0, 1].

    Identical titles (ignoring case and surrounding whitespace) are always 1.0.
    """
    if a.strip().lower() == b.strip().lower():
        return 1.0
    return jaccard(
        tokenize_title(a, min_token_length, stem_length),
        tokenize_title(b, min_token_length, stem_length),
    )


class Deduplicator:
    """
    Merge a secondary headline stream into a primary one.

    Every primary headline is kept. A secondary headline is appended only if
    its similarity to every title seen so far (primary titles plus accepted
    secondary titles) is at most ``threshold``; accepted titles are
    registered so later secondaries are checked against them too.

    Example:
        dedup = Deduplicator(threshold=0.7)
        combined = dedup.merge(feed_headlines, discovered_headlines)
    """

    def __init__(
        self,
        threshold: float = 0.7,
        min_token_length: int = 3,
        stem_length: int = 5,
    ):
        """
        Initialize deduplicator.

        Args:
            threshold: Similarity above which a secondary headline is dropped
            min_token_length: Shortest word that counts as a token
            stem_length: Prefix length tokens are truncated to (0 disables)
        """
        self.threshold = threshold
        self.min_token_length = min_token_length
        self.stem_length = stem_length

        self._stats = {
            "total_processed": 0,
            "duplicates_found": 0,
        }

    def _tokens(self, title: str) -> frozenset[str]:
        return tokenize_title(title, self.min_token_length, self.stem_length)

    def _is_duplicate(
        self,
        title: str,
        tokens: frozenset[str],
        seen: list[tuple[str, frozenset[str]]],
    ) -> bool:
        normalized = title.strip().lower()
        for seen_title, seen_tokens in seen:
            if normalized == seen_title:
                return True
            if jaccard(tokens, seen_tokens) > self.threshold:
                return True
        return False

    def merge(
        self,
        primary: Iterable[Headline] | None,
        secondary: Iterable[Headline] | None,
    ) -> list[Headline]:
        """
        Combine two headline lists, dropping near-duplicate secondaries.

        Args:
            primary: Headlines that are always kept (feed headlines)
            secondary: Candidate headlines (AI-discovered)

        Returns:
            Primary headlines followed by the unique secondaries, in order
        """
        combined = list(primary or [])
        seen = [(h.title.strip().lower(), self._tokens(h.title)) for h in combined]

        dropped = 0
        for candidate in secondary or []:
            self._stats["total_processed"] += 1
            tokens = self._tokens(candidate.title)
            if self._is_duplicate(candidate.title, tokens, seen):
                dropped += 1
                logger.debug(f"Dropping near-duplicate headline: {candidate.title!r}")
                continue
            combined.append(candidate)
            seen.append((candidate.title.strip().lower(), tokens))

        self._stats["duplicates_found"] += dropped
        if dropped:
            logger.info(f"Dropped {dropped} near-duplicate headlines during merge")

        return combined

    def get_stats(self) -> dict[str, int]:
        """Get deduplication statistics."""
        return self._stats.copy()

    def reset_stats(self) -> None:
        """Reset statistics counters."""
        self._stats = {
            "total_processed": 0,
            "duplicates_found": 0,
        }


def hybrid_discovery(
    feed_headlines: Iterable[Headline] | None,
    discovered: Iterable[Headline] | None,
    deduplicator: Deduplicator | None = None,
) -> list[Headline]:
    """Merge AI-discovered headlines into feed headlines without duplicates."""
    dedup = deduplicator or Deduplicator()
    return dedup.merge(feed_headlines, discovered)
