"""
Rule-based insight categorization.

Each rule is an unweighted "any keyword present" test over the lower-cased
title and abstract. Rules are checked in order and the first match wins, so a
result mentioning both "patent" and "partnership" is always patent activity.
"""

import logging
from typing import Iterable, List, Tuple

from ..ingestion.search_providers.base import ACADEMIC_SOURCES, PATENT_SOURCES, SearchResult

logger = logging.getLogger(__name__)

BUSINESS_UPDATES = "Business Updates"
PRODUCT_ANNOUNCEMENTS = "Product / Project Announcements"
PARTNERSHIPS = "Partnerships & Collaborations"
INVESTMENTS = "Investments & Funding"
ACADEMIC_RESEARCH = "Academic Research & Tie-ups"
PATENT_IP = "Patent & IP Activity"
STARTUP_INNOVATION = "Startup & Innovation News"
SUPPLY_CHAIN = "Suppliers, Logistics & Raw Materials"

INSIGHT_CATEGORIES = (
    BUSINESS_UPDATES,
    PRODUCT_ANNOUNCEMENTS,
    PARTNERSHIPS,
    INVESTMENTS,
    ACADEMIC_RESEARCH,
    PATENT_IP,
    STARTUP_INNOVATION,
    SUPPLY_CHAIN,
)

PATENT_KEYWORDS = (
    "patent", "intellectual property", "ip rights", "licensing agreement",
    "patent filed", "patent granted",
)
ACADEMIC_KEYWORDS = (
    "research", "study", "university", "journal", "scientific", "published",
    "academic", "conference paper",
)
PARTNERSHIP_KEYWORDS = (
    "partnership", "collaboration", "joint venture", "mou",
    "memorandum of understanding", "alliance", "strategic partnership",
    "teaming up", "partners with", "collaborates",
)
INVESTMENT_KEYWORDS = (
    "investment", "funding", "acquisition", "merger", "raised", "series a",
    "series b", "ipo", "private equity", "venture capital", "m&a", "buys",
    "acquires",
)
STARTUP_KEYWORDS = (
    "startup", "start-up", "incubator", "accelerator", "disruptive",
    "emerging company", "new entrant", "innovation hub", "tech startup",
    "founder",
)
ANNOUNCEMENT_KEYWORDS = (
    "launch", "announces", "new product", "project", "milestone", "facility",
    "plant", "opens", "unveils", "introduces", "commissioned", "inaugurated",
)
SUPPLY_CHAIN_KEYWORDS = (
    "supply chain", "supplier", "logistics", "raw material", "commodity",
    "procurement", "manufacturing", "distribution", "shipment", "inventory",
    "sourcing", "materials",
)

# Keyword-only rules after the two source-tagged ones, in priority order
KEYWORD_RULES: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    (PARTNERSHIPS, PARTNERSHIP_KEYWORDS),
    (INVESTMENTS, INVESTMENT_KEYWORDS),
    (STARTUP_INNOVATION, STARTUP_KEYWORDS),
    (PRODUCT_ANNOUNCEMENTS, ANNOUNCEMENT_KEYWORDS),
    (SUPPLY_CHAIN, SUPPLY_CHAIN_KEYWORDS),
)


def _mentions(text: str, keywords: Iterable[str]) -> bool:
    return any(keyword in text for keyword in keywords)


def categorize_result(result: SearchResult) -> str:
    """
    Assign exactly one insight category to a result.

    Args:
        result: Search result (only source, title and abstract are read)

    Returns:
        str: One of INSIGHT_CATEGORIES
    """
    text = f"{result.title} {result.abstract or ''}".lower()

    if result.source in PATENT_SOURCES or _mentions(text, PATENT_KEYWORDS):
        return PATENT_IP

    if result.source in ACADEMIC_SOURCES or _mentions(text, ACADEMIC_KEYWORDS):
        return ACADEMIC_RESEARCH

    for category, keywords in KEYWORD_RULES:
        if _mentions(text, keywords):
            return category

    return BUSINESS_UPDATES


def categorize_results(results: List[SearchResult], overwrite: bool = False) -> List[SearchResult]:
    """
    Tag every result that has no category yet.

    Args:
        results: Results to tag in place
        overwrite: Recompute categories that are already set

    Returns:
        List[SearchResult]: The same list, for chaining
    """
    tagged = 0
    for result in results:
        if overwrite or not result.insight_category:
            result.insight_category = categorize_result(result)
            tagged += 1
    logger.info(f"Categorized {tagged} of {len(results)} results")
    return results
