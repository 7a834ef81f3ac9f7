"""
RSS source registry for headline ingestion.

Sources are grouped by category so scans can be narrowed (e.g. only
commodities coverage). Disabled sources stay listed for reference but are
never fetched.
"""

from dataclasses import dataclass
from typing import Literal

FeedCategory = Literal["general", "commodities", "geopolitical", "supply-chain"]


@dataclass(frozen=True)
class FeedSource:
    """A single RSS feed endpoint."""

    id: str
    name: str
    url: str
    category: FeedCategory
    enabled: bool = True


RSS_SOURCES: tuple[FeedSource, ...] = (
    # General world news
    FeedSource(
        id="reuters-world",
        name="Reuters World",
        url="https://www.reutersagency.com/feed/?best-topics=world&post_type=best",
        category="general",
    ),
    FeedSource(
        id="al-jazeera",
        name="Al Jazeera",
        url="https://www.aljazeera.com/xml/rss/all.xml",
        category="geopolitical",
    ),
    FeedSource(
        id="ft-world",
        name="Financial Times World",
        url="https://www.ft.com/world?format=rss",
        category="general",
    ),
    # Commodities
    FeedSource(
        id="mining-com",
        name="Mining.com",
        url="https://www.mining.com/feed/",
        category="commodities",
    ),
    FeedSource(
        id="offshore-technology",
        name="Offshore Technology",
        url="https://www.offshore-technology.com/feed/",
        category="commodities",
    ),
    # Semiconductors
    FeedSource(
        id="semiconductor-engineering",
        name="Semiconductor Engineering",
        url="https://semiengineering.com/feed/",
        category="supply-chain",
    ),
    # Supply chain and shipping
    FeedSource(
        id="supply-chain-dive",
        name="Supply Chain Dive",
        url="https://www.supplychaindive.com/feeds/news/",
        category="supply-chain",
    ),
    FeedSource(
        id="freightwaves",
        name="FreightWaves",
        url="https://www.freightwaves.com/news/feed",
        category="supply-chain",
    ),
    FeedSource(
        id="joc",
        name="Journal of Commerce",
        url="https://www.joc.com/rss.xml",
        category="supply-chain",
        enabled=False,
    ),
    FeedSource(
        id="hellenic-shipping",
        name="Hellenic Shipping News",
        url="https://www.hellenicshippingnews.com/feed/",
        category="supply-chain",
    ),
)


def get_enabled_sources(category: FeedCategory | None = None) -> list[FeedSource]:
    """Return enabled sources, optionally restricted to one category."""
    return [
        source
        for source in RSS_SOURCES
        if source.enabled and (category is None or source.category == category)
    ]
