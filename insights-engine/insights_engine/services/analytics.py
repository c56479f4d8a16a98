"""
Aggregate views over a result set: chart data, executive snapshot metrics and
a keyword-driven competitive landscape.
"""

import logging
import re
from collections import Counter
from typing import Any, Dict, List

from ..ingestion.search_providers.base import SearchResult, source_kind
from .date_filter import parse_result_date

logger = logging.getLogger(__name__)


def build_chart_data(results: List[SearchResult]) -> Dict[str, List[Dict[str, Any]]]:
    """
    Compute the dashboard chart series.

    Returns:
        Dict with:
            - publicationTrend: [{"year": "2021", "publications": 3}, ...] sorted by year
            - sourceBreakdown: [{"name": "PubMed", "value": 7}, ...]
            - studyTypeDistribution: [{"name": "PHASE2", "value": 2}, ...]
    """
    years: Counter = Counter()
    for result in results:
        parsed = parse_result_date(result.date)
        if parsed:
            years[parsed.year] += 1

    sources = Counter(r.source for r in results)
    phases = Counter(r.phase for r in results if r.phase)

    return {
        "publicationTrend": [
            {"year": str(year), "publications": count} for year, count in sorted(years.items())
        ],
        "sourceBreakdown": [{"name": name, "value": count} for name, count in sources.items()],
        "studyTypeDistribution": [{"name": name, "value": count} for name, count in phases.items()],
    }


def executive_snapshot(results: List[SearchResult]) -> Dict[str, str]:
    """Coarse momentum / competition / readiness / innovation labels from source counts."""
    kinds = Counter(source_kind(r.source) for r in results)
    total = len(results)
    news, patents, clinical = kinds["news"], kinds["patent"], kinds["clinical"]

    return {
        "market_momentum": "High" if total > 15 else "Moderate" if total > 5 else "Low",
        "competitive_intensity": "Intense" if news > 5 else "Active" if news > 2 else "Limited",
        "commercial_readiness": "Advanced" if clinical > 3 else "Developing" if clinical > 0 else "Early Stage",
        "ip_innovation": "Strong" if patents > 3 else "Active" if patents > 0 else "Emerging",
    }


# Known energy and infrastructure companies
KNOWN_COMPANIES: Dict[str, Dict[str, str]] = {
    "shell": {"geography": "Netherlands/EU", "type": "Energy"},
    "bp": {"geography": "UK/EU", "type": "Energy"},
    "exxonmobil": {"geography": "USA", "type": "Energy"},
    "chevron": {"geography": "USA", "type": "Energy"},
    "totalenergies": {"geography": "France/EU", "type": "Energy"},
    "ongc": {"geography": "India/Asia", "type": "Energy"},
    "reliance": {"geography": "India/Asia", "type": "Energy"},
    "petronas": {"geography": "Malaysia/Asia", "type": "Energy"},
    "saudi aramco": {"geography": "Saudi Arabia/ME", "type": "Energy"},
    "equinor": {"geography": "Norway/EU", "type": "Energy"},
    "eni": {"geography": "Italy/EU", "type": "Energy"},
    "siemens": {"geography": "Germany/EU", "type": "Industrial"},
    "ge": {"geography": "USA", "type": "Industrial"},
    "schneider electric": {"geography": "France/EU", "type": "Industrial"},
    "abb": {"geography": "Switzerland/EU", "type": "Industrial"},
    "honeywell": {"geography": "USA", "type": "Industrial"},
    "tesla": {"geography": "USA", "type": "EV/Clean Energy"},
    "vestas": {"geography": "Denmark/EU", "type": "Renewable"},
    "orsted": {"geography": "Denmark/EU", "type": "Renewable"},
    "iberdrola": {"geography": "Spain/EU", "type": "Utility"},
    "enel": {"geography": "Italy/EU", "type": "Utility"},
    "bloom energy": {"geography": "USA", "type": "Clean Energy"},
    "plug power": {"geography": "USA", "type": "Hydrogen"},
    "nel asa": {"geography": "Norway/EU", "type": "Hydrogen"},
    "air liquide": {"geography": "France/EU", "type": "Industrial Gas"},
    "linde": {"geography": "Germany/EU", "type": "Industrial Gas"},
    "catl": {"geography": "China/Asia", "type": "Battery"},
    "lg energy": {"geography": "South Korea/Asia", "type": "Battery"},
    "panasonic": {"geography": "Japan/Asia", "type": "Battery"},
    "byd": {"geography": "China/Asia", "type": "EV/Battery"},
}

# Checked top to bottom; the first stage with a keyword near the company wins
STAGE_RULES = (
    (7, "Commercial", ("commercial", "market", "sales", "revenue")),
    (6, "Partnership", ("partnership", "license", "collaboration", "deal", "joint venture")),
    (5, "Regulatory", ("approv", "regulatory", "permit", "compliance")),
    (4, "Scaling", ("scaling", "expansion", "growth", "capacity")),
    (3, "Production", ("production", "manufacturing", "plant", "facility")),
    (2, "Pilot", ("pilot", "demonstration", "prototype", "testing")),
    (1, "Development", ("develop", "engineering", "design")),
)

CONTEXT_WINDOW = 200
MAX_COMPANIES = 8


def _company_pattern(company: str) -> re.Pattern:
    return re.compile(rf"\b{re.escape(company)}\b")


def _company_context(text: str, company: str) -> str:
    """Text within CONTEXT_WINDOW chars of every mention of the company."""
    snippets = []
    for match in _company_pattern(company).finditer(text):
        start = max(0, match.start() - CONTEXT_WINDOW)
        snippets.append(text[start:match.end() + CONTEXT_WINDOW])
    return " ".join(snippets)


def determine_stage(text: str, company: str) -> Dict[str, Any]:
    context = _company_context(text, company)
    for index, name, keywords in STAGE_RULES:
        if any(keyword in context for keyword in keywords):
            return {"index": index, "name": name}
    return {"index": 0, "name": "Research"}


def extract_competitive_landscape(results: List[SearchResult], synthesis: str = "") -> List[Dict[str, Any]]:
    """
    Find known companies in the results and synthesis and place each on a stage.

    Args:
        results: Search results
        synthesis: Optional synthesis text to scan as well

    Returns:
        List of {"name", "stage", "stage_name", "geography", "type"}, at most 8
    """
    corpus = " ".join([synthesis or ""] + [f"{r.title} {r.abstract or ''}" for r in results]).lower()

    companies = []
    for company, info in KNOWN_COMPANIES.items():
        if not _company_pattern(company).search(corpus):
            continue
        stage = determine_stage(corpus, company)
        companies.append({
            "name": " ".join(word.capitalize() for word in company.split()),
            "stage": stage["index"],
            "stage_name": stage["name"],
            "geography": info["geography"],
            "type": info["type"],
        })
        if len(companies) >= MAX_COMPANIES:
            break

    logger.info(f"Competitive landscape: {len(companies)} known companies found")
    return companies
