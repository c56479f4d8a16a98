"""
Search Aggregator

Fans a query out to every enabled source adapter concurrently and merges
whatever comes back. A failing source never fails the overall search: its
error is logged and it contributes zero results.
"""
import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from ..config import settings
from ..ingestion.search_providers import PROVIDERS, ProviderResponse, SearchProvider, SearchResult
from .categorizer import categorize_results

logger = logging.getLogger(__name__)


class SearchFailedError(Exception):
    """Raised when every enabled source raised instead of settling."""


DEFAULT_SOURCES = {
    "ieee": True,
    "clinical": True,
    "google_scholar": True,
    "patents": True,
    "news": True,
    "arxiv": False,
    "pubmed": False,
    "industry_news": False,
}


@dataclass
class SearchOptions:
    query: str
    max_results: int = settings.DEFAULT_MAX_RESULTS
    sources: Dict[str, bool] = field(default_factory=lambda: dict(DEFAULT_SOURCES))

    def enabled_sources(self) -> List[str]:
        return [name for name, enabled in self.sources.items() if enabled]

    def to_dict(self) -> Dict[str, Any]:
        return {"query": self.query, "max_results": self.max_results, "sources": dict(self.sources)}


def build_providers(names: List[str]) -> Dict[str, SearchProvider]:
    providers = {}
    for name in names:
        provider_cls = PROVIDERS.get(name)
        if provider_cls is None:
            logger.warning(f"Unknown source '{name}' requested; skipping")
            continue
        providers[name] = provider_cls()
    return providers


async def search_all_sources(
    options: SearchOptions,
    providers: Optional[Mapping[str, SearchProvider]] = None,
) -> List[SearchResult]:
    """
    Query all enabled sources in parallel and merge the results.

    Args:
        options: Query, per-source cap and source selection
        providers: Adapter instances keyed by source flag (defaults to PROVIDERS)

    Returns:
        Merged, categorized results. No deduplication, truncation or ranking.

    Raises:
        SearchFailedError: If every enabled source raised
    """
    enabled = options.enabled_sources()
    if providers is None:
        providers = build_providers(enabled)
    active = {name: providers[name] for name in enabled if name in providers}

    logger.info("=" * 80)
    logger.info(f"🚀 AGGREGATOR: '{options.query}' across {list(active)} (max {options.max_results} each)")
    logger.info("=" * 80)

    if not active:
        return []

    names = list(active)
    outcomes = await asyncio.gather(
        *(active[name].search(options.query, options.max_results) for name in names),
        return_exceptions=True,  # Don't fail the search if one source fails
    )

    merged: List[SearchResult] = []
    raised = 0
    for name, outcome in zip(names, outcomes):
        if isinstance(outcome, BaseException):
            raised += 1
            logger.error(f"❌ {name} rejected: {outcome}")
            continue
        if not isinstance(outcome, ProviderResponse):
            logger.error(f"❌ {name} returned unexpected {type(outcome).__name__}; skipping")
            continue
        if outcome.error:
            logger.error(f"❌ {name} error: {outcome.error}")
            continue
        logger.info(f"   {name}: {len(outcome.results)} results")
        merged.extend(outcome.results)

    if raised == len(names):
        raise SearchFailedError("Search failed: every source raised")

    categorize_results(merged)

    logger.info(f"✅ AGGREGATOR COMPLETE: {len(merged)} results")
    return merged
