"""
News adapters backed by the Google News RSS search feed.
"""

import logging
import re
import time
from typing import Any, Dict, List, Optional, Tuple

import feedparser
import httpx

from .base import INDUSTRY_NEWS, NEWS, SearchProvider, SearchResult, StrategyFn
from .parsing import clean_html, struct_time_to_iso

logger = logging.getLogger(__name__)

GOOGLE_NEWS_RSS_URL = "https://news.google.com/rss/search"

# Google News titles look like "Headline - Publisher"
TITLE_PUBLISHER_PATTERN = re.compile(r"^(.*?)\s*-\s*([^-]+)$")

INDUSTRY_SITES = [
    "pv-tech.org",
    "heatmap.news",
    "ogj.com",
    "rigzone.com",
    "oilandgasnewsworldwide.com",
    "oilandgasiq.com",
    "rechargenews.com",
    "cleantechnica.com",
    "energydigital.com",
]


def split_publisher(title: str, default_publisher: str) -> Tuple[str, str]:
    """
    Split a Google News title into headline and publisher.

    Args:
        title: Raw item title
        default_publisher: Publisher to use when the title has no suffix

    Returns:
        Tuple[str, str]: (headline, publisher)
    """
    match = TITLE_PUBLISHER_PATTERN.match(title)
    if match:
        return match.group(1).strip(), match.group(2).strip()
    return title, default_publisher


class NewsProvider(SearchProvider):
    """General news from Google News RSS."""

    name = "news"
    source = NEWS
    surface_errors = True
    default_publisher = "News"
    id_prefix = "news"

    def build_query(self, query: str) -> str:
        return query

    def strategies(self) -> List[Tuple[str, StrategyFn]]:
        return [("google_news_rss", self._search_rss)]

    async def _search_rss(self, client: httpx.AsyncClient, query: str, limit: int) -> List[SearchResult]:
        response = await client.get(
            GOOGLE_NEWS_RSS_URL,
            params={"q": self.build_query(query), "hl": "en-US", "gl": "US", "ceid": "US:en"},
            headers={"User-Agent": "Mozilla/5.0 (compatible; MarketIntelligence/1.0)"},
        )
        if response.status_code >= 400:
            raise RuntimeError(f"{self.name} fetch failed: {response.status_code}")

        feed = feedparser.parse(response.text)
        if feed.bozo:
            logger.warning(f"News feed parsing warning: {feed.bozo_exception}")

        stamp = int(time.time() * 1000)
        results: List[SearchResult] = []
        for entry in feed.entries:
            if len(results) >= limit:
                break
            result = self._from_entry(entry, len(results) + 1, stamp)
            if result:
                results.append(result)
        return results

    def _from_entry(self, entry: Dict[str, Any], position: int, stamp: int) -> Optional[SearchResult]:
        raw_title = clean_html(entry.get("title", ""))
        link = (entry.get("link") or "").strip()
        if not raw_title or not link:
            return None

        title, publisher = split_publisher(raw_title, self.default_publisher)
        description = clean_html(entry.get("summary", ""))
        date = struct_time_to_iso(entry.get("published_parsed")) or entry.get("published", "")

        return SearchResult(
            source=self.source,
            id=f"{self.id_prefix}-{position}-{stamp}",
            title=title,
            abstract=description or f"Latest news from {publisher}",
            authors=publisher,
            date=date,
            url=link,
            publisher=publisher,
        )


class IndustryNewsProvider(NewsProvider):
    """Energy and cleantech trade press, via site-restricted Google News RSS."""

    name = "industry_news"
    source = INDUSTRY_NEWS
    default_publisher = "Industry News"
    id_prefix = "industry-news"

    def build_query(self, query: str) -> str:
        sites = " OR ".join(f"site:{site}" for site in INDUSTRY_SITES)
        return f"{query} ({sites})"
