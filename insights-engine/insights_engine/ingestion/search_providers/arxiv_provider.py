import logging
from typing import Any, Dict, List, Tuple

import feedparser
import httpx

from .base import ARXIV, SearchProvider, SearchResult, StrategyFn
from .parsing import UNKNOWN, join_authors, struct_time_to_iso

logger = logging.getLogger(__name__)

ARXIV_API_URL = "https://export.arxiv.org/api/query"


def _one_line(text: str) -> str:
    return " ".join((text or "").split())


class ArxivProvider(SearchProvider):
    """arXiv preprints via the Atom query API."""

    name = "arxiv"
    source = ARXIV

    def strategies(self) -> List[Tuple[str, StrategyFn]]:
        return [("arxiv_api", self._search_arxiv)]

    async def _search_arxiv(self, client: httpx.AsyncClient, query: str, limit: int) -> List[SearchResult]:
        response = await client.get(
            ARXIV_API_URL,
            params={"search_query": f"all:{query}", "start": 0, "max_results": limit},
            headers={"User-Agent": "Mozilla/5.0 (InnovationInsightsEngine)"},
        )
        response.raise_for_status()

        feed = feedparser.parse(response.text)
        if feed.bozo:
            logger.warning(f"arXiv feed parsing warning: {feed.bozo_exception}")

        return [self._from_entry(entry) for entry in feed.entries[:limit]]

    def _from_entry(self, entry: Dict[str, Any]) -> SearchResult:
        arxiv_id = (entry.get("id") or "").rstrip("/").split("/")[-1] or UNKNOWN
        authors = [a.get("name", "").strip() for a in entry.get("authors", [])]
        return SearchResult(
            source=ARXIV,
            id=arxiv_id,
            title=_one_line(entry.get("title", "")) or "No title",
            abstract=_one_line(entry.get("summary", "")),
            authors=join_authors(authors),
            date=struct_time_to_iso(entry.get("published_parsed")) or UNKNOWN,
            url=f"https://arxiv.org/abs/{arxiv_id}",
        )
