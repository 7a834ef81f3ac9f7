"""Market data enrichment for trading opportunities."""

from signal_risk.market.finnhub import FinnhubClient, enrich_opportunities, extract_ticker

__all__ = ["FinnhubClient", "enrich_opportunities", "extract_ticker"]
