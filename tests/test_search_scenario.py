"""
End-to-end: patent adapter -> aggregator -> categorizer -> CSV export,
with the patent office API replaced by a mock transport.
"""
import asyncio
import csv
import io

import httpx

from insights_engine.config import settings
from insights_engine.ingestion.search_providers.patent_provider import PATENTSVIEW_URL, PatentProvider
from insights_engine.services.aggregator import SearchOptions, search_all_sources
from insights_engine.services.categorizer import PATENT_IP
from insights_engine.services.export_service import to_csv


def _patentsview_handler(request: httpx.Request) -> httpx.Response:
    assert str(request.url) == PATENTSVIEW_URL
    return httpx.Response(200, json={"patents": [
        {
            "patent_number": "11000001",
            "patent_title": "Patent: Hydrogen Storage Vessel",
            "patent_abstract": "A composite pressure vessel.",
            "patent_date": "2023-04-11",
            "assignees": [{"assignee_organization": "Acme Hydrogen"}],
        },
        {
            "patent_number": "11000002",
            "patent_title": "Cobalt Alloy for H2 Tanks",
            "patent_abstract": "An alloy liner.",
            "patent_date": "2022-09-27",
            "assignees": [],
        },
    ]})


def test_hydrogen_storage_patents_to_csv(monkeypatch):
    monkeypatch.setattr(settings, "EPO_OPS_CONSUMER_KEY", "")
    monkeypatch.setattr(settings, "EPO_OPS_CONSUMER_SECRET", "")

    providers = {"patents": PatentProvider(transport=httpx.MockTransport(_patentsview_handler))}
    options = SearchOptions(
        query="hydrogen storage",
        sources={"patents": True, "ieee": False, "clinical": False, "google_scholar": False, "news": False},
    )

    results = asyncio.run(search_all_sources(options, providers))

    assert [r.title for r in results] == ["Patent: Hydrogen Storage Vessel", "Cobalt Alloy for H2 Tanks"]
    assert all(r.insight_category == PATENT_IP for r in results)
    assert results[1].authors == "Unknown assignee"

    out = to_csv(results, options.query)
    lines = out.split("\n")
    assert len(lines) == 3
    rows = list(csv.reader(io.StringIO(out)))
    assert rows[1][0:3] == ["Patents", "11000001", "Patent: Hydrogen Storage Vessel"]
    assert rows[2][6] == "https://patents.google.com/patent/US11000002"
