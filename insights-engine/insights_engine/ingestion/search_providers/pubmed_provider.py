import logging
from typing import List, Optional, Tuple

import httpx
from bs4 import BeautifulSoup

from .base import PUBMED, SearchProvider, SearchResult, StrategyFn
from .parsing import UNKNOWN

logger = logging.getLogger(__name__)

ESEARCH_URL = "https://eutils.ncbi.nlm.nih.gov/entrez/eutils/esearch.fcgi"
EFETCH_URL = "https://eutils.ncbi.nlm.nih.gov/entrez/eutils/efetch.fcgi"
MAX_AUTHORS = 5
USER_AGENT = "Mozilla/5.0 (InnovationInsightsEngine)"


def _tag_text(node, name: str) -> str:
    found = node.find(name) if node is not None else None
    return " ".join(found.get_text().split()) if found else ""


class PubMedProvider(SearchProvider):
    """PubMed articles: esearch for ids, then efetch for abstracts."""

    name = "pubmed"
    source = PUBMED

    def strategies(self) -> List[Tuple[str, StrategyFn]]:
        return [("eutils", self._search_eutils)]

    async def _search_eutils(self, client: httpx.AsyncClient, query: str, limit: int) -> List[SearchResult]:
        search = await client.get(
            ESEARCH_URL,
            params={"db": "pubmed", "term": query, "retmax": limit, "retmode": "json", "sort": "date"},
            headers={"User-Agent": USER_AGENT},
        )
        search.raise_for_status()
        ids = (search.json().get("esearchresult") or {}).get("idlist") or []
        if not ids:
            return []

        fetch = await client.get(
            EFETCH_URL,
            params={"db": "pubmed", "id": ",".join(ids), "retmode": "xml"},
            headers={"User-Agent": USER_AGENT},
        )
        fetch.raise_for_status()
        return self.parse_articles(fetch.text)

    def parse_articles(self, xml_text: str) -> List[SearchResult]:
        """
        Parse an efetch XML payload.

        Args:
            xml_text: PubmedArticleSet document

        Returns:
            List[SearchResult]: One result per article with a PMID
        """
        soup = BeautifulSoup(xml_text, "xml")
        results = []
        for article in soup.find_all("PubmedArticle"):
            result = self._from_article(article)
            if result:
                results.append(result)
        return results

    def _from_article(self, article) -> Optional[SearchResult]:
        pmid = _tag_text(article, "PMID")
        if not pmid:
            return None

        abstract_node = article.find("Abstract")
        parts = []
        if abstract_node is not None:
            for text_node in abstract_node.find_all("AbstractText"):
                text = " ".join(text_node.get_text().split())
                if text:
                    parts.append(text)

        names = []
        for author in article.find_all("Author"):
            last = _tag_text(author, "LastName")
            fore = _tag_text(author, "ForeName")
            if last and fore:
                names.append(f"{fore} {last}")
        authors = ", ".join(names[:MAX_AUTHORS]) + (" et al." if len(names) > MAX_AUTHORS else "") if names else UNKNOWN

        pub_date = article.find("PubDate")
        year = _tag_text(pub_date, "Year")
        month = _tag_text(pub_date, "Month")
        date = (f"{year} {month}" if month else year) if year else UNKNOWN

        return SearchResult(
            source=PUBMED,
            id=pmid,
            title=_tag_text(article, "ArticleTitle") or "No title",
            abstract=" ".join(parts) or "Abstract not available",
            authors=authors,
            date=date,
            journal=_tag_text(article.find("Journal"), "Title") or None,
            url=f"https://pubmed.ncbi.nlm.nih.gov/{pmid}/",
        )
