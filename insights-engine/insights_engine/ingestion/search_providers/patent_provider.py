import logging
import uuid
from typing import Any, Dict, List, Tuple

import httpx

from ...config import settings
from .base import PATENTS, SearchProvider, SearchResult, StrategyFn
from .parsing import UNKNOWN, digits_to_iso, join_authors, openalex_id, openalex_url

logger = logging.getLogger(__name__)

EPO_TOKEN_URL = "https://ops.epo.org/3.2/auth/accesstoken"
EPO_SEARCH_URL = "https://ops.epo.org/3.2/rest-services/published-data/search"
PATENTSVIEW_URL = "https://api.patentsview.org/patents/query"
OPENALEX_WORKS_URL = "https://api.openalex.org/works"

# EPO biblio lookups are capped regardless of max_results
EPO_MAX_DOCUMENTS = 10


def _text(node: Any) -> str:
    """EPO JSON wraps scalars as {"$": value}."""
    if isinstance(node, dict):
        return str(node.get("$", ""))
    return str(node) if node is not None else ""


class PatentProvider(SearchProvider):
    """Patents: EPO OPS, then USPTO PatentsView, then patent-related OpenAlex works."""

    name = "patents"
    source = PATENTS

    def strategies(self) -> List[Tuple[str, StrategyFn]]:
        chain: List[Tuple[str, StrategyFn]] = []
        if settings.EPO_OPS_CONSUMER_KEY and settings.EPO_OPS_CONSUMER_SECRET:
            chain.append(("epo_ops", self._search_epo))
        chain.append(("patentsview", self._search_patentsview))
        chain.append(("openalex", self._search_openalex))
        return chain

    async def _epo_token(self, client: httpx.AsyncClient) -> str:
        response = await client.post(
            EPO_TOKEN_URL,
            auth=(settings.EPO_OPS_CONSUMER_KEY, settings.EPO_OPS_CONSUMER_SECRET),
            data={"grant_type": "client_credentials"},
        )
        response.raise_for_status()
        return response.json()["access_token"]

    async def _search_epo(self, client: httpx.AsyncClient, query: str, limit: int) -> List[SearchResult]:
        token = await self._epo_token(client)
        response = await client.get(
            EPO_SEARCH_URL,
            params={"q": query, "Range": f"1-{limit}"},
            headers={"Authorization": f"Bearer {token}", "Accept": "application/json"},
        )
        response.raise_for_status()

        search_result = (
            response.json()
            .get("ops:world-patent-data", {})
            .get("ops:biblio-search", {})
            .get("ops:search-result", {})
        )
        publications = search_result.get("ops:publication-reference") or []
        if isinstance(publications, dict):
            publications = [publications]

        results = []
        for pub in publications[:min(limit, EPO_MAX_DOCUMENTS)]:
            doc = pub.get("document-id") or {}
            number = _text(doc.get("doc-number"))
            country = _text(doc.get("country"))
            kind = _text(doc.get("kind"))
            date = _text(doc.get("date"))
            patent_id = f"{country}{number}{kind}"

            results.append(SearchResult(
                source=PATENTS,
                id=patent_id,
                title=f"Patent {patent_id}",
                abstract="View patent for full details",
                authors="View patent for details",
                date=digits_to_iso(date) if len(date) >= 8 else "N/A",
                url=f"https://worldwide.espacenet.com/patent/search/family/publication/?q={number}",
            ))
        logger.info(f"Found {len(results)} patents from EPO")
        return results

    async def _search_patentsview(self, client: httpx.AsyncClient, query: str, limit: int) -> List[SearchResult]:
        response = await client.post(
            PATENTSVIEW_URL,
            json={
                "q": {"_text_any": {"patent_title": query, "patent_abstract": query}},
                "f": ["patent_number", "patent_title", "patent_abstract", "patent_date", "assignee_organization"],
                "o": {"per_page": limit},
                "s": [{"patent_date": "desc"}],
            },
        )
        response.raise_for_status()

        results = []
        for patent in response.json().get("patents") or []:
            number = patent.get("patent_number")
            assignees = patent.get("assignees") or []
            assignee = assignees[0].get("assignee_organization") if assignees else None
            results.append(SearchResult(
                source=PATENTS,
                id=number or f"us-{uuid.uuid4().hex[:12]}",
                title=patent.get("patent_title") or "No title",
                abstract=patent.get("patent_abstract") or "Abstract not available",
                authors=assignee or "Unknown assignee",
                date=patent.get("patent_date") or UNKNOWN,
                url=f"https://patents.google.com/patent/US{number}",
            ))
        return results

    async def _search_openalex(self, client: httpx.AsyncClient, query: str, limit: int) -> List[SearchResult]:
        response = await client.get(
            OPENALEX_WORKS_URL,
            params={
                "search": f"{query} patent",
                "per-page": limit,
                "filter": "type:article",
                "sort": "publication_date:desc",
            },
            headers={"User-Agent": f"mailto:{settings.CONTACT_EMAIL}"},
        )
        response.raise_for_status()

        results = []
        for work in (response.json().get("results") or [])[:limit]:
            names = [(a.get("author") or {}).get("display_name") for a in work.get("authorships") or []]
            results.append(SearchResult(
                source=PATENTS,
                id=openalex_id(work, f"oalex-{uuid.uuid4().hex[:12]}"),
                title=work.get("title") or "No title",
                abstract="View source for details",
                authors=join_authors(names, limit=3),
                date=work.get("publication_date") or UNKNOWN,
                url=openalex_url(work),
            ))
        return results
