import logging
import uuid
from typing import Any, Dict, List, Tuple

import httpx

from ...config import settings
from .base import IEEE, SearchProvider, SearchResult, StrategyFn
from .parsing import (
    UNKNOWN,
    clean_html,
    date_parts_to_iso,
    digits_to_iso,
    openalex_id,
    openalex_url,
    reconstruct_abstract,
)

logger = logging.getLogger(__name__)

IEEE_XPLORE_URL = "https://ieeexploreapi.ieee.org/api/v1/search/articles"
OPENALEX_WORKS_URL = "https://api.openalex.org/works"
CROSSREF_WORKS_URL = "https://api.crossref.org/works"
CROSSREF_IEEE_MEMBER = "263"


def _fallback_id() -> str:
    return f"ieee-{uuid.uuid4().hex[:12]}"


class IEEEProvider(SearchProvider):
    """IEEE publications: Xplore API, then OpenAlex, then CrossRef."""

    name = "ieee"
    source = IEEE

    def strategies(self) -> List[Tuple[str, StrategyFn]]:
        chain: List[Tuple[str, StrategyFn]] = []
        if settings.IEEE_API_KEY:
            chain.append(("ieee_xplore", self._search_xplore))
        chain.append(("openalex", self._search_openalex))
        chain.append(("crossref", self._search_crossref))
        return chain

    async def _search_xplore(self, client: httpx.AsyncClient, query: str, limit: int) -> List[SearchResult]:
        response = await client.get(
            IEEE_XPLORE_URL,
            params={
                "querytext": query,
                "max_records": limit,
                "start_record": 1,
                "sort_order": "desc",
                "sort_field": "publication_date",
            },
            headers={"Accept": "application/json", "Authorization": settings.IEEE_API_KEY},
        )
        response.raise_for_status()
        articles = response.json().get("articles", [])
        return [self._from_xplore(a) for a in articles]

    def _from_xplore(self, article: Dict[str, Any]) -> SearchResult:
        date = digits_to_iso(article.get("publication_date"))
        if not date and article.get("publication_year"):
            date = f"{article['publication_year']}-01-01"

        names = []
        for a in (article.get("authors") or {}).get("authors", []):
            name = a.get("full_name") or UNKNOWN
            affiliation = a.get("affiliation") or a.get("org") or ""
            names.append(f"{name} ({affiliation})" if affiliation else name)

        number = article.get("article_number")
        return SearchResult(
            source=IEEE,
            id=str(number or article.get("doi") or _fallback_id()),
            title=article.get("title") or "No title",
            abstract=article.get("abstract") or "Abstract not available",
            authors=", ".join(names) or UNKNOWN,
            date=date or UNKNOWN,
            url=article.get("html_url") or f"https://ieeexplore.ieee.org/document/{number}",
        )

    async def _search_openalex(self, client: httpx.AsyncClient, query: str, limit: int) -> List[SearchResult]:
        response = await client.get(
            OPENALEX_WORKS_URL,
            params={
                "search": query,
                "filter": "primary_location.source.publisher:IEEE",
                "per-page": limit,
                "sort": "publication_date:desc",
            },
            headers={"User-Agent": f"mailto:{settings.CONTACT_EMAIL}"},
        )
        response.raise_for_status()
        return [self._from_openalex(w) for w in response.json().get("results", [])]

    def _from_openalex(self, work: Dict[str, Any]) -> SearchResult:
        date = work.get("publication_date")
        if not date and work.get("publication_year"):
            date = f"{work['publication_year']}-01-01"

        names = []
        for a in (work.get("authorships") or [])[:5]:
            name = (a.get("author") or {}).get("display_name") or UNKNOWN
            institutions = a.get("institutions") or []
            institution = institutions[0].get("display_name", "") if institutions else ""
            names.append(f"{name} ({institution})" if institution else name)

        return SearchResult(
            source=IEEE,
            id=openalex_id(work, _fallback_id()),
            title=work.get("title") or "No title",
            abstract=reconstruct_abstract(work.get("abstract_inverted_index")) or "Abstract not available",
            authors=", ".join(names) or UNKNOWN,
            date=date or UNKNOWN,
            url=openalex_url(work),
        )

    async def _search_crossref(self, client: httpx.AsyncClient, query: str, limit: int) -> List[SearchResult]:
        response = await client.get(
            CROSSREF_WORKS_URL,
            params={
                "query": query,
                "filter": f"member:{CROSSREF_IEEE_MEMBER}",
                "rows": limit,
                "sort": "published",
                "order": "desc",
            },
            headers={"User-Agent": f"InnovationInsightsEngine/1.0 (mailto:{settings.CONTACT_EMAIL})"},
        )
        response.raise_for_status()
        items = (response.json().get("message") or {}).get("items", [])
        return [self._from_crossref(item) for item in items]

    def _from_crossref(self, item: Dict[str, Any]) -> SearchResult:
        date_parts = None
        for key in ("published-online", "deposited", "published", "created"):
            parts = (item.get(key) or {}).get("date-parts")
            if parts and parts[0]:
                date_parts = parts[0]
                break

        abstract = ""
        if item.get("abstract"):
            abstract = clean_html(item["abstract"])
        elif item.get("description"):
            abstract = clean_html(item["description"])
        elif item.get("subtitle"):
            subtitle = item["subtitle"]
            abstract = " ".join(subtitle) if isinstance(subtitle, list) else subtitle

        names = []
        for a in (item.get("author") or [])[:5]:
            name = f"{a.get('given', '')} {a.get('family', '')}".strip()
            affiliations = a.get("affiliation") or []
            affiliation = affiliations[0].get("name", "") if affiliations else ""
            names.append(f"{name} ({affiliation})" if affiliation else name)

        title = item.get("title")
        if isinstance(title, list):
            title = title[0] if title else None

        doi = item.get("DOI")
        return SearchResult(
            source=IEEE,
            id=doi or _fallback_id(),
            title=title or "No title",
            abstract=abstract or "Abstract not available",
            authors=", ".join(names) or UNKNOWN,
            date=date_parts_to_iso(date_parts) or UNKNOWN,
            url=item.get("URL") or f"https://doi.org/{doi}",
        )
