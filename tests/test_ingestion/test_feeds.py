"""Tests for RSS feed aggregation."""

import httpx
import pytest
import respx

from signal_risk.config.feeds import FeedSource, get_enabled_sources
from signal_risk.ingestion.feeds import FeedAggregator, clean_html
from signal_risk.ingestion.schemas import DiscoveryChannel

RSS = """<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0">
  <channel>
    <title>Mining.com</title>
    <item>
      <title>Chilean workers strike at SQM lithium mine</title>
      <link>https://mining.com/sqm-strike</link>
      <description>&lt;p&gt;Output &lt;b&gt;halted&lt;/b&gt; at Atacama&lt;/p&gt;</description>
      <pubDate>Sun, 01 Mar 2026 10:00:00 GMT</pubDate>
    </item>
    <item>
      <title>Albemarle raises guidance</title>
      <link>https://mining.com/alb</link>
      <pubDate>Sun, 01 Mar 2026 12:00:00 GMT</pubDate>
    </item>
    <item>
      <title>Third item over the cap</title>
      <link>https://mining.com/third</link>
      <pubDate>Sat, 28 Feb 2026 09:00:00 GMT</pubDate>
    </item>
  </channel>
</rss>"""

MINING = FeedSource(id="mining-com", name="Mining.com", url="https://feeds.test/mining", category="commodities")
BROKEN = FeedSource(id="broken", name="Broken", url="https://feeds.test/broken", category="general")


class TestCleanHtml:
    def test_strips_markup(self):
        assert clean_html("<p>Output <b>halted</b> &amp; idle</p>") == "Output halted & idle"

    def test_drops_scripts(self):
        assert clean_html("<script>alert(1)</script>News") == "News"

    def test_empty(self):
        assert clean_html("") == ""


class TestFeedAggregator:
    """Tests for FeedAggregator.fetch_all."""

    @respx.mock
    async def test_parses_entries(self):
        respx.get(MINING.url).mock(return_value=httpx.Response(200, text=RSS))

        headlines = await FeedAggregator(sources=[MINING], max_per_source=2).fetch_all()

        assert len(headlines) == 2
        newest, older = headlines
        assert newest.title == "Albemarle raises guidance"
        assert older.description == "Output halted at Atacama"
        assert older.source == "Mining.com"
        assert older.channel == DiscoveryChannel.FEED
        assert older.id.startswith("mining-com-")

    @respx.mock
    async def test_failing_source_contributes_nothing(self):
        respx.get(MINING.url).mock(return_value=httpx.Response(200, text=RSS))
        respx.get(BROKEN.url).mock(return_value=httpx.Response(404))

        headlines = await FeedAggregator(sources=[BROKEN, MINING]).fetch_all()

        assert {h.source for h in headlines} == {"Mining.com"}

    @respx.mock
    async def test_garbage_body(self):
        respx.get(BROKEN.url).mock(return_value=httpx.Response(200, text="<html>not a feed"))

        assert await FeedAggregator(sources=[BROKEN]).fetch_all() == []

    @respx.mock
    async def test_transport_error(self):
        respx.get(BROKEN.url).mock(side_effect=httpx.ConnectError("refused"))

        aggregator = FeedAggregator(sources=[BROKEN])

        assert await aggregator.fetch_all() == []

    async def test_no_sources(self):
        assert await FeedAggregator(sources=[]).fetch_all() == []


class TestFeedRegistry:
    def test_disabled_sources_excluded(self):
        ids = {s.id for s in get_enabled_sources()}

        assert "joc" not in ids
        assert "mining-com" in ids

    def test_category_filter(self):
        assert all(s.category == "commodities" for s in get_enabled_sources("commodities"))
