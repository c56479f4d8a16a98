import logging
from dataclasses import asdict, dataclass, field, fields
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple

import httpx

from ...config import settings

logger = logging.getLogger(__name__)


# Source labels emitted by the adapters
IEEE = "IEEE"
GOOGLE_SCHOLAR = "Google Scholar"
PUBMED = "PubMed"
ARXIV = "arXiv"
CLINICAL_TRIALS = "ClinicalTrials"
PATENTS = "Patents"
EPO = "EPO"
NEWS = "News"
INDUSTRY_NEWS = "IndustryNews"

# Wider than the legacy "IEEE" and "GoogleScholar" pair: keyword-free PubMed, arXiv
# and "Google Scholar" records also land in Academic Research.
ACADEMIC_SOURCES = {IEEE, GOOGLE_SCHOLAR, "GoogleScholar", PUBMED, ARXIV}
CLINICAL_SOURCES = {CLINICAL_TRIALS}
PATENT_SOURCES = {PATENTS, EPO}
NEWS_SOURCES = {NEWS, INDUSTRY_NEWS, "BusinessNews"}


def source_kind(source: str) -> str:
    """Map a source label to "academic", "clinical", "patent", "news" or "other"."""
    if source in ACADEMIC_SOURCES:
        return "academic"
    if source in CLINICAL_SOURCES:
        return "clinical"
    if source in PATENT_SOURCES:
        return "patent"
    if source in NEWS_SOURCES:
        return "news"
    return "other"


@dataclass
class SearchResult:
    source: str
    id: str
    title: str
    url: str
    abstract: Optional[str] = None
    authors: Optional[str] = None
    date: Optional[str] = None          # ISO YYYY-MM-DD when derivable, else free-form
    status: Optional[str] = None        # clinical trials
    phase: Optional[str] = None         # clinical trials
    enrollment: Optional[str] = None    # clinical trials
    publisher: Optional[str] = None     # news
    journal: Optional[str] = None       # pubmed
    insight_category: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {k: v for k, v in asdict(self).items() if v is not None}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SearchResult":
        known = {f.name for f in fields(cls)}
        values = {k: v for k, v in data.items() if k in known}
        # Accept the camelCase key used by the dashboard frontend
        if "insight_category" not in values and data.get("insightCategory"):
            values["insight_category"] = data["insightCategory"]
        for key in ("source", "id", "title", "url", "abstract", "authors", "date", "status",
                    "phase", "enrollment", "publisher", "journal", "insight_category"):
            if values.get(key) is not None:
                values[key] = str(values[key])
        return cls(
            source=values.pop("source", ""),
            id=values.pop("id", ""),
            title=values.pop("title", "") or "No title",
            url=values.pop("url", "") or "#",
            **values,
        )


@dataclass
class ProviderResponse:
    """Uniform outcome of a provider (or one of its strategies)."""
    results: List[SearchResult] = field(default_factory=list)
    error: Optional[str] = None
    strategy: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


StrategyFn = Callable[[httpx.AsyncClient, str, int], Awaitable[List[SearchResult]]]


class SearchProvider:
    """
    Base class for source adapters.

    Subclasses list their strategies in preference order. Each strategy is tried
    once; the first one returning results wins. Nothing is retried.
    """

    name: str = "base"
    source: str = ""
    # When False, a failed last strategy is reported as an empty result set
    surface_errors: bool = False

    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None) -> None:
        self._transport = transport

    def strategies(self) -> List[Tuple[str, StrategyFn]]:
        raise NotImplementedError

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=settings.REQUEST_TIMEOUT,
            follow_redirects=True,
            transport=self._transport,
        )

    async def _attempt(
        self,
        client: httpx.AsyncClient,
        label: str,
        strategy: StrategyFn,
        query: str,
        limit: int,
    ) -> ProviderResponse:
        try:
            results = await strategy(client, query, limit)
            return ProviderResponse(results=results, strategy=label)
        except Exception as e:
            logger.error(f"{self.name}: {label} failed: {e}")
            return ProviderResponse(error=str(e), strategy=label)

    async def search(self, query: str, limit: int = 20) -> ProviderResponse:
        chain = self.strategies()
        logger.info(f"🔎 {self.name}: '{query[:60]}' (limit={limit}, strategies={[s[0] for s in chain]})")

        last = ProviderResponse()
        async with self._client() as client:
            for label, strategy in chain:
                outcome = await self._attempt(client, label, strategy, query, limit)
                if outcome.ok and outcome.results:
                    logger.info(f"✅ {self.name}: {len(outcome.results)} results via {label}")
                    return outcome
                if outcome.ok:
                    logger.info(f"   {self.name}: {label} returned nothing, trying next")
                last = outcome

        logger.info(f"⚠️ {self.name}: no strategy produced results")
        if self.surface_errors and last.error:
            return last
        return ProviderResponse(strategy=last.strategy)
