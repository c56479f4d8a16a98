import logging
import re
import uuid
from typing import Any, Dict, List, Tuple

import httpx

from ...config import settings
from .base import GOOGLE_SCHOLAR, SearchProvider, SearchResult, StrategyFn
from .parsing import UNKNOWN, join_authors, openalex_id, openalex_url, reconstruct_abstract

logger = logging.getLogger(__name__)

SERPAPI_URL = "https://serpapi.com/search.json"
SEMANTIC_SCHOLAR_URL = "https://api.semanticscholar.org/graph/v1/paper/search"
OPENALEX_WORKS_URL = "https://api.openalex.org/works"

SEMANTIC_SCHOLAR_FIELDS = (
    "paperId,title,abstract,authors,authors.affiliations,year,url,venue,"
    "citationCount,externalIds,openAccessPdf,tldr"
)

YEAR_PATTERN = re.compile(r"\b(?:19|20)\d{2}\b")


def _fallback_id() -> str:
    return f"scholar-{uuid.uuid4().hex[:12]}"


def _publication_url(paper: Dict[str, Any]) -> str:
    """Prefer the actual publication over intermediary pages."""
    external = paper.get("externalIds") or {}
    pdf = (paper.get("openAccessPdf") or {}).get("url")
    if pdf:
        return pdf
    if external.get("DOI"):
        return f"https://doi.org/{external['DOI']}"
    if external.get("ArXiv"):
        return f"https://arxiv.org/abs/{external['ArXiv']}"
    if external.get("PubMed"):
        return f"https://pubmed.ncbi.nlm.nih.gov/{external['PubMed']}"
    if paper.get("url"):
        return paper["url"]
    if paper.get("paperId"):
        return f"https://www.semanticscholar.org/paper/{paper['paperId']}"
    return "#"


class ScholarProvider(SearchProvider):
    """Scholarly articles: SerpApi Google Scholar, then Semantic Scholar, then OpenAlex."""

    name = "google_scholar"
    source = GOOGLE_SCHOLAR

    def strategies(self) -> List[Tuple[str, StrategyFn]]:
        chain: List[Tuple[str, StrategyFn]] = []
        if settings.SERPAPI_KEY:
            chain.append(("serpapi", self._search_serpapi))
        chain.append(("semantic_scholar", self._search_semantic_scholar))
        chain.append(("openalex", self._search_openalex))
        return chain

    async def _search_serpapi(self, client: httpx.AsyncClient, query: str, limit: int) -> List[SearchResult]:
        response = await client.get(
            SERPAPI_URL,
            params={"engine": "google_scholar", "q": query, "num": limit, "api_key": settings.SERPAPI_KEY},
        )
        response.raise_for_status()

        results = []
        for item in response.json().get("organic_results", []):
            info = item.get("publication_info") or {}
            summary = info.get("summary") or ""
            authors = [a.get("name") for a in info.get("authors") or []]
            if not any(authors):
                authors = [summary.split(" - ")[0]] if summary else []
            year = YEAR_PATTERN.search(summary)
            results.append(SearchResult(
                source=GOOGLE_SCHOLAR,
                id=item.get("result_id") or _fallback_id(),
                title=item.get("title") or "No title",
                abstract=item.get("snippet") or "Abstract not available",
                authors=join_authors(authors),
                date=year.group(0) if year else UNKNOWN,
                url=item.get("link") or "#",
            ))
        return results

    async def _search_semantic_scholar(self, client: httpx.AsyncClient, query: str, limit: int) -> List[SearchResult]:
        response = await client.get(
            SEMANTIC_SCHOLAR_URL,
            params={"query": query, "limit": limit, "fields": SEMANTIC_SCHOLAR_FIELDS},
            headers={"User-Agent": "InnovationInsightsEngine/1.0"},
        )
        response.raise_for_status()

        results = []
        for paper in response.json().get("data", []):
            abstract = paper.get("abstract")
            if not abstract or abstract == "Abstract not available":
                abstract = (paper.get("tldr") or {}).get("text") or abstract

            names = []
            for a in (paper.get("authors") or [])[:5]:
                name = a.get("name") or UNKNOWN
                affiliations = a.get("affiliations") or []
                names.append(f"{name} ({affiliations[0]})" if affiliations else name)

            year = paper.get("year")
            results.append(SearchResult(
                source=GOOGLE_SCHOLAR,
                id=paper.get("paperId") or _fallback_id(),
                title=paper.get("title") or "No title",
                abstract=abstract or "Abstract not available",
                authors=join_authors(names),
                date=str(year) if year else UNKNOWN,
                url=_publication_url(paper),
            ))
        return results

    async def _search_openalex(self, client: httpx.AsyncClient, query: str, limit: int) -> List[SearchResult]:
        response = await client.get(
            OPENALEX_WORKS_URL,
            params={"search": query, "per-page": limit, "sort": "publication_date:desc"},
            headers={"User-Agent": f"mailto:{settings.CONTACT_EMAIL}"},
        )
        response.raise_for_status()

        results = []
        for work in response.json().get("results", []):
            names = [(a.get("author") or {}).get("display_name") for a in work.get("authorships") or []]
            year = work.get("publication_year")
            results.append(SearchResult(
                source=GOOGLE_SCHOLAR,
                id=openalex_id(work, _fallback_id()),
                title=work.get("title") or "No title",
                abstract=reconstruct_abstract(work.get("abstract_inverted_index"), max_chars=500)
                or "Abstract not available",
                authors=join_authors(names, limit=5),
                date=work.get("publication_date") or (str(year) if year else UNKNOWN),
                url=openalex_url(work),
            ))
        return results
