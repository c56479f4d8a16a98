"""
Source adapters against canned provider payloads (httpx.MockTransport).
"""
import asyncio

import httpx
import pytest

from insights_engine.config import settings
from insights_engine.ingestion.search_providers.arxiv_provider import ArxivProvider
from insights_engine.ingestion.search_providers.clinical_provider import ClinicalTrialsProvider
from insights_engine.ingestion.search_providers.ieee_provider import IEEEProvider
from insights_engine.ingestion.search_providers.news_provider import (
    IndustryNewsProvider,
    NewsProvider,
    split_publisher,
)
from insights_engine.ingestion.search_providers.patent_provider import PatentProvider
from insights_engine.ingestion.search_providers.pubmed_provider import PubMedProvider
from insights_engine.ingestion.search_providers.scholar_provider import ScholarProvider


@pytest.fixture(autouse=True)
def no_provider_keys(monkeypatch):
    for key in ("IEEE_API_KEY", "SERPAPI_KEY", "EPO_OPS_CONSUMER_KEY", "EPO_OPS_CONSUMER_SECRET"):
        monkeypatch.setattr(settings, key, "")


def _search(provider, query="sodium battery", limit=5):
    return asyncio.run(provider.search(query, limit))


OPENALEX_PAYLOAD = {"results": [{
    "id": "https://openalex.org/W123",
    "title": "Sodium-ion cathodes",
    "publication_date": "2024-02-01",
    "abstract_inverted_index": {"Layered": [0], "oxides": [1], "work": [2]},
    "authorships": [{"author": {"display_name": "Grace Hopper"}}],
    "primary_location": {"landing_page_url": "https://journal.example/w123"},
}]}


def test_scholar_falls_back_to_openalex():
    seen = []

    def handler(request):
        seen.append(request.url.host)
        if request.url.host == "api.semanticscholar.org":
            return httpx.Response(500, text="unavailable")
        return httpx.Response(200, json=OPENALEX_PAYLOAD)

    response = _search(ScholarProvider(transport=httpx.MockTransport(handler)))

    assert seen == ["api.semanticscholar.org", "api.openalex.org"]
    assert response.ok and response.strategy == "openalex"
    result = response.results[0]
    assert (result.source, result.id, result.abstract) == ("Google Scholar", "W123", "Layered oxides work")
    assert result.url == "https://journal.example/w123"


def test_scholar_first_non_empty_strategy_wins():
    def handler(request):
        return httpx.Response(200, json={"data": [{
            "paperId": "abc",
            "title": "Paper",
            "abstract": None,
            "tldr": {"text": "Short summary"},
            "authors": [{"name": "Ann", "affiliations": ["MIT"]}],
            "year": 2021,
            "externalIds": {"DOI": "10.1/x"},
        }]})

    response = _search(ScholarProvider(transport=httpx.MockTransport(handler)))
    assert response.strategy == "semantic_scholar"
    result = response.results[0]
    assert result.abstract == "Short summary"
    assert result.authors == "Ann (MIT)"
    assert result.url == "https://doi.org/10.1/x"
    assert result.date == "2021"


def test_exhausted_chain_is_empty_not_error():
    transport = httpx.MockTransport(lambda request: httpx.Response(503))
    response = _search(PatentProvider(transport=transport))
    assert response.ok
    assert response.results == []


def test_epo_strategy_used_when_configured(monkeypatch):
    monkeypatch.setattr(settings, "EPO_OPS_CONSUMER_KEY", "key")
    monkeypatch.setattr(settings, "EPO_OPS_CONSUMER_SECRET", "secret")

    def handler(request):
        if request.url.path.endswith("/accesstoken"):
            assert request.headers["Authorization"].startswith("Basic ")
            return httpx.Response(200, json={"access_token": "tok"})
        assert request.headers["Authorization"] == "Bearer tok"
        return httpx.Response(200, json={"ops:world-patent-data": {"ops:biblio-search": {"ops:search-result": {
            "ops:publication-reference": {"document-id": {
                "country": {"$": "EP"}, "doc-number": {"$": "1234567"},
                "kind": {"$": "A1"}, "date": {"$": "20240315"},
            }},
        }}}})

    response = _search(PatentProvider(transport=httpx.MockTransport(handler)))
    assert response.strategy == "epo_ops"
    result = response.results[0]
    assert result.id == "EP1234567A1"
    assert result.date == "2024-03-15"
    assert result.source == "Patents"


RSS = """<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0"><channel><title>news</title>
<item>
  <title>Acme opens hydrogen plant - Reuters</title>
  <link>https://news.example/1</link>
  <pubDate>Tue, 10 Jun 2025 07:00:00 GMT</pubDate>
  <description>&lt;a href="x"&gt;Acme&lt;/a&gt; builds a plant</description>
</item>
<item>
  <title>Headline without publisher</title>
  <link>https://news.example/2</link>
</item>
</channel></rss>"""


def test_news_parses_rss_items():
    captured = []

    def handler(request):
        captured.append(request.url.params["q"])
        return httpx.Response(200, text=RSS)

    response = _search(NewsProvider(transport=httpx.MockTransport(handler)), query="hydrogen")

    assert captured == ["hydrogen"]
    first, second = response.results
    assert (first.title, first.publisher, first.authors) == ("Acme opens hydrogen plant", "Reuters", "Reuters")
    assert first.abstract == "Acme builds a plant"
    assert first.date == "2025-06-10"
    assert first.id.startswith("news-1-")
    assert second.publisher == "News"
    assert second.abstract == "Latest news from News"


def test_news_http_error_is_surfaced():
    transport = httpx.MockTransport(lambda request: httpx.Response(503))
    response = _search(NewsProvider(transport=transport))
    assert not response.ok
    assert response.error == "news fetch failed: 503"


def test_industry_news_restricts_sites():
    captured = []

    def handler(request):
        captured.append(request.url.params["q"])
        return httpx.Response(200, text=RSS)

    response = _search(IndustryNewsProvider(transport=httpx.MockTransport(handler)), query="solar")
    assert captured[0].startswith("solar (site:pv-tech.org OR ")
    assert response.results[0].source == "IndustryNews"


def test_split_publisher():
    assert split_publisher("A - B - Outlet", "News") == ("A - B", "Outlet")
    assert split_publisher("No suffix", "News") == ("No suffix", "News")


PUBMED_XML = """<?xml version="1.0"?>
<PubmedArticleSet>
  <PubmedArticle><MedlineCitation>
    <PMID Version="1">38000001</PMID>
    <Article>
      <Journal><Title>Nature Energy</Title></Journal>
      <ArticleTitle>Solid electrolytes</ArticleTitle>
      <Abstract>
        <AbstractText Label="BACKGROUND">Background text.</AbstractText>
        <AbstractText Label="RESULTS">Results text.</AbstractText>
      </Abstract>
      <AuthorList>
        <Author><LastName>A1</LastName><ForeName>F1</ForeName></Author>
        <Author><LastName>A2</LastName><ForeName>F2</ForeName></Author>
        <Author><LastName>A3</LastName><ForeName>F3</ForeName></Author>
        <Author><LastName>A4</LastName><ForeName>F4</ForeName></Author>
        <Author><LastName>A5</LastName><ForeName>F5</ForeName></Author>
        <Author><LastName>A6</LastName><ForeName>F6</ForeName></Author>
      </AuthorList>
    </Article>
  </MedlineCitation>
  <PubmedData><History><PubMedPubDate><Year>2020</Year></PubMedPubDate></History></PubmedData>
  </PubmedArticle>
</PubmedArticleSet>"""


def test_pubmed_parse_articles():
    results = PubMedProvider().parse_articles(PUBMED_XML)
    assert len(results) == 1
    result = results[0]
    assert result.id == "38000001"
    assert result.abstract == "Background text. Results text."
    assert result.authors == "F1 A1, F2 A2, F3 A3, F4 A4, F5 A5 et al."
    assert result.journal == "Nature Energy"
    assert result.date == "Unknown"
    assert result.url == "https://pubmed.ncbi.nlm.nih.gov/38000001/"


def test_pubmed_no_ids_skips_efetch():
    calls = []

    def handler(request):
        calls.append(request.url.path)
        return httpx.Response(200, json={"esearchresult": {"idlist": []}})

    response = _search(PubMedProvider(transport=httpx.MockTransport(handler)))
    assert response.results == []
    assert len(calls) == 1


def test_clinical_trials_mapping():
    payload = {"studies": [
        {"protocolSection": {
            "identificationModule": {"nctId": "NCT0001", "briefTitle": "Drug X in adults"},
            "statusModule": {"overallStatus": "RECRUITING", "startDateStruct": {"date": "2023-05"}},
            "designModule": {"phases": ["PHASE1", "PHASE2"], "enrollmentInfo": {"count": 120}},
            "sponsorCollaboratorsModule": {"leadSponsor": {"name": "Acme Pharma"}},
            "descriptionModule": {"briefSummary": "x" * 1000},
        }},
        {"protocolSection": {"identificationModule": {}}},
    ]}

    def handler(request):
        assert request.url.params["query.term"] == "drug x"
        return httpx.Response(200, json=payload)

    response = _search(ClinicalTrialsProvider(transport=httpx.MockTransport(handler)), query="drug x")
    assert len(response.results) == 1
    trial = response.results[0]
    assert (trial.status, trial.phase, trial.enrollment) == ("RECRUITING", "PHASE1, PHASE2", "120")
    assert trial.date == "2023-05-01"
    assert trial.authors == "Acme Pharma"
    assert len(trial.abstract) == 800
    assert trial.url == "https://clinicaltrials.gov/study/NCT0001"


ATOM = """<?xml version="1.0" encoding="UTF-8"?>
<feed xmlns="http://www.w3.org/2005/Atom">
  <entry>
    <id>http://arxiv.org/abs/2401.00001v1</id>
    <published>2024-01-02T00:00:00Z</published>
    <title>Perovskite
      stability</title>
    <summary>  We study   stability. </summary>
    <author><name>Ada</name></author>
    <author><name>Bob</name></author>
  </entry>
</feed>"""


def test_arxiv_atom_entries():
    transport = httpx.MockTransport(lambda request: httpx.Response(200, text=ATOM))
    response = _search(ArxivProvider(transport=transport))
    result = response.results[0]
    assert result.id == "2401.00001v1"
    assert result.title == "Perovskite stability"
    assert result.abstract == "We study stability."
    assert result.authors == "Ada, Bob"
    assert result.date == "2024-01-02"
    assert result.url == "https://arxiv.org/abs/2401.00001v1"


def test_ieee_empty_openalex_falls_through_to_crossref():
    def handler(request):
        if request.url.host == "api.openalex.org":
            assert request.url.params["filter"] == "primary_location.source.publisher:IEEE"
            return httpx.Response(200, json={"results": []})
        assert request.url.params["filter"] == "member:263"
        return httpx.Response(200, json={"message": {"items": [{
            "DOI": "10.1109/x.1",
            "title": ["Grid-scale storage"],
            "abstract": "<jats:p>Flow batteries.</jats:p>",
            "published": {"date-parts": [[2023, 7]]},
            "author": [{"given": "Ann", "family": "Lee", "affiliation": [{"name": "IEEE"}]}],
        }]}})

    response = _search(IEEEProvider(transport=httpx.MockTransport(handler)))
    assert response.strategy == "crossref"
    result = response.results[0]
    assert (result.id, result.title, result.abstract) == ("10.1109/x.1", "Grid-scale storage", "Flow batteries.")
    assert result.date == "2023-07-01"
    assert result.authors == "Ann Lee (IEEE)"
    assert result.url == "https://doi.org/10.1109/x.1"
