"""
Date normalization and client-side result filtering.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, time, timezone
from typing import List, Optional, Union

from dateutil import parser as date_parser

from ..ingestion.search_providers.base import SearchResult

logger = logging.getLogger(__name__)

# Placeholders providers emit when no date is known
UNKNOWN_DATES = {"", "unknown", "n/a", "n.d."}

# Missing month/day fall back to January 1st. The two defaults differ only in
# year so a string without a year can be told apart and rejected.
_DEFAULT_DATE = datetime(2000, 1, 1)
_ALT_DEFAULT_DATE = datetime(1999, 1, 1)

BOOLEAN_OPERATORS = ("AND", "OR", "NOT")


def parse_result_date(value: Optional[str]) -> Optional[datetime]:
    """
    Build a calendar date from a free-form provider date string.

    Args:
        value: e.g. "2024-03-15", "2024 Mar", "2023", "Tue, 10 Jun 2025 07:00:00 GMT"

    Returns:
        Optional[datetime]: Naive UTC datetime, or None when unparseable
    """
    if value is None:
        return None
    text = str(value).strip()
    if text.lower() in UNKNOWN_DATES:
        return None
    try:
        parsed = date_parser.parse(text, default=_DEFAULT_DATE)
        alternate = date_parser.parse(text, default=_ALT_DEFAULT_DATE)
    except (ValueError, OverflowError, TypeError):
        return None
    if parsed.year != alternate.year:
        # "March", "Dec", "June 12": no year to anchor a range check
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def _to_datetime(value: Union[str, datetime, None], end_of_day: bool = False) -> Optional[datetime]:
    if value is None or value == "":
        return None
    parsed = value if isinstance(value, datetime) else parse_result_date(value)
    if parsed is None:
        raise ValueError(f"Invalid date bound: {value!r}")
    if end_of_day:
        parsed = datetime.combine(parsed.date(), time.max)
    return parsed


def filter_by_date(
    results: List[SearchResult],
    date_from: Union[str, datetime, None] = None,
    date_to: Union[str, datetime, None] = None,
    now: Optional[datetime] = None,
) -> List[SearchResult]:
    """
    Apply the date rules to a result set.

    - unparseable dates always pass
    - dates after `now` are always excluded (likely bogus upstream data)
    - optional inclusive bounds; `date_to` covers its whole day

    Args:
        results: Results to filter
        date_from: Inclusive lower bound
        date_to: Inclusive upper bound (normalized to end of day)
        now: Reference time (defaults to current UTC time)

    Returns:
        List[SearchResult]: Results that pass, in original order
    """
    now = now or datetime.now(timezone.utc).replace(tzinfo=None)
    lower = _to_datetime(date_from)
    upper = _to_datetime(date_to, end_of_day=True)

    kept = []
    for result in results:
        parsed = parse_result_date(result.date)
        if parsed is None:
            kept.append(result)
            continue
        if parsed > now:
            logger.warning(f"Excluding future-dated result {result.source}:{result.id} ({result.date})")
            continue
        if lower and parsed < lower:
            continue
        if upper and parsed > upper:
            continue
        kept.append(result)
    return kept


@dataclass
class AdvancedFilterOptions:
    date_from: Optional[str] = None
    date_to: Optional[str] = None
    insight_categories: List[str] = field(default_factory=list)
    sources: List[str] = field(default_factory=list)
    # Carried for the dashboard; not applied to results
    boolean_operator: str = "AND"
    min_market_impact: float = 0.0

    def __post_init__(self) -> None:
        if self.boolean_operator not in BOOLEAN_OPERATORS:
            raise ValueError(f"boolean_operator must be one of {BOOLEAN_OPERATORS}")


def apply_advanced_filters(
    results: List[SearchResult],
    filters: AdvancedFilterOptions,
    now: Optional[datetime] = None,
) -> List[SearchResult]:
    """Date rules, then any-match category and source selections."""
    filtered = filter_by_date(results, filters.date_from, filters.date_to, now=now)

    if filters.insight_categories:
        wanted = set(filters.insight_categories)
        filtered = [r for r in filtered if r.insight_category in wanted]

    if filters.sources:
        wanted_sources = set(filters.sources)
        filtered = [r for r in filtered if r.source in wanted_sources]

    logger.info(f"Advanced filters kept {len(filtered)} of {len(results)} results")
    return filtered
