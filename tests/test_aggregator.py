"""
Aggregator fan-out, partial-failure tolerance and categorization.
"""
import asyncio

import pytest
from conftest import FakeProvider, make_result

from insights_engine.services.aggregator import (
    DEFAULT_SOURCES,
    SearchFailedError,
    SearchOptions,
    build_providers,
    search_all_sources,
)
from insights_engine.services.categorizer import ACADEMIC_RESEARCH, PATENT_IP


def _options(*names, query="hydrogen storage", max_results=5):
    return SearchOptions(query=query, max_results=max_results, sources={n: True for n in names})


def test_merges_results_from_all_sources():
    providers = {
        "patents": FakeProvider("patents", [make_result("Patents", "p1"), make_result("Patents", "p2")]),
        "pubmed": FakeProvider("pubmed", [make_result("PubMed", "m1")]),
    }
    results = asyncio.run(search_all_sources(_options("patents", "pubmed"), providers))

    assert [r.id for r in results] == ["p1", "p2", "m1"]
    assert providers["patents"].calls == [("hydrogen storage", 5)]


def test_results_are_categorized():
    providers = {
        "patents": FakeProvider("patents", [make_result("Patents", "p1")]),
        "arxiv": FakeProvider("arxiv", [make_result("arXiv", "a1")]),
    }
    results = asyncio.run(search_all_sources(_options("patents", "arxiv"), providers))
    assert [r.insight_category for r in results] == [PATENT_IP, ACADEMIC_RESEARCH]


def test_one_raising_source_does_not_fail_search():
    providers = {
        "patents": FakeProvider("patents", [make_result("Patents", "p1")]),
        "news": FakeProvider("news", exc=RuntimeError("boom")),
    }
    results = asyncio.run(search_all_sources(_options("patents", "news"), providers))
    assert [r.id for r in results] == ["p1"]


def test_error_response_contributes_nothing():
    providers = {
        "patents": FakeProvider("patents", [make_result("Patents", "p1")]),
        "news": FakeProvider("news", error="news fetch failed: 503"),
    }
    results = asyncio.run(search_all_sources(_options("patents", "news"), providers))
    assert [r.id for r in results] == ["p1"]


def test_all_error_responses_is_empty_not_failure():
    providers = {
        "news": FakeProvider("news", error="news fetch failed: 503"),
        "ieee": FakeProvider("ieee", error="timeout"),
    }
    assert asyncio.run(search_all_sources(_options("news", "ieee"), providers)) == []


def test_every_source_raising_is_search_failure():
    providers = {
        "news": FakeProvider("news", exc=RuntimeError("down")),
        "ieee": FakeProvider("ieee", exc=ValueError("bad")),
    }
    with pytest.raises(SearchFailedError):
        asyncio.run(search_all_sources(_options("news", "ieee"), providers))


def test_disabled_sources_are_not_called():
    providers = {
        "patents": FakeProvider("patents", [make_result("Patents", "p1")]),
        "news": FakeProvider("news", [make_result("News", "n1")]),
    }
    options = SearchOptions(query="q", sources={"patents": True, "news": False})
    results = asyncio.run(search_all_sources(options, providers))

    assert [r.id for r in results] == ["p1"]
    assert providers["news"].calls == []


def test_no_enabled_sources_returns_empty():
    options = SearchOptions(query="q", sources={"patents": False})
    assert asyncio.run(search_all_sources(options, {})) == []


def test_no_dedup_or_truncation():
    duplicate = make_result("Patents", "same")
    providers = {
        "patents": FakeProvider("patents", [duplicate, duplicate]),
        "google_scholar": FakeProvider("google_scholar", [make_result("Google Scholar", "same")]),
    }
    results = asyncio.run(search_all_sources(_options("patents", "google_scholar", max_results=1), providers))
    assert len(results) == 3


def test_default_sources_and_registry():
    enabled = SearchOptions(query="q").enabled_sources()
    assert enabled == ["ieee", "clinical", "google_scholar", "patents", "news"]
    assert set(build_providers(list(DEFAULT_SOURCES))) == set(DEFAULT_SOURCES)
    assert build_providers(["nope"]) == {}
