"""
Shared helpers for mapping provider payloads into SearchResult fields.
"""

import re
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

from bs4 import BeautifulSoup

UNKNOWN = "Unknown"


def clean_html(text: Optional[str]) -> str:
    """
    Strip HTML tags and collapse whitespace.

    Args:
        text: Raw text possibly containing markup or entities

    Returns:
        str: Plain text
    """
    if not text:
        return ""
    soup = BeautifulSoup(text, "html.parser")
    return " ".join(soup.get_text().split())


def digits_to_iso(value: Optional[str]) -> Optional[str]:
    """Turn "20240315" / "2024-03-15" / "2024" style strings into YYYY-MM-DD."""
    if not value:
        return None
    digits = re.sub(r"\D", "", str(value))
    if len(digits) >= 8:
        return f"{digits[:4]}-{digits[4:6]}-{digits[6:8]}"
    if len(digits) >= 4:
        return f"{digits[:4]}-01-01"
    return None


def date_parts_to_iso(parts: Optional[Sequence[Any]]) -> Optional[str]:
    """CrossRef style [year, month, day] with optional month/day."""
    if not parts:
        return None
    padded = list(parts) + [None, None]
    year, month, day = padded[0], padded[1], padded[2]
    if year and month and day:
        return f"{year}-{int(month):02d}-{int(day):02d}"
    if year and month:
        return f"{year}-{int(month):02d}-01"
    if year:
        return f"{year}-01-01"
    return None


def struct_time_to_iso(time_tuple: Any) -> Optional[str]:
    """feedparser's *_parsed fields to YYYY-MM-DD."""
    if not time_tuple:
        return None
    try:
        return datetime(*time_tuple[:6]).strftime("%Y-%m-%d")
    except (TypeError, ValueError):
        return None


def reconstruct_abstract(inverted_index: Optional[Dict[str, List[int]]], max_chars: int = 600) -> str:
    """
    Rebuild abstract text from an OpenAlex inverted index.

    Args:
        inverted_index: Mapping of word -> positions
        max_chars: Truncate (with an ellipsis) beyond this length

    Returns:
        str: Abstract text, empty string when no index
    """
    if not inverted_index:
        return ""
    positions = []
    for word, indices in inverted_index.items():
        for index in indices:
            positions.append((index, word))
    positions.sort(key=lambda p: p[0])
    text = " ".join(word for _, word in positions)
    return text[:max_chars] + "..." if len(text) > max_chars else text


def join_authors(names: List[str], limit: Optional[int] = None) -> str:
    names = [n for n in names if n]
    if limit is not None:
        names = names[:limit]
    return ", ".join(names) or UNKNOWN


def openalex_id(work: Dict[str, Any], fallback: str) -> str:
    raw = work.get("id") or ""
    return raw.replace("https://openalex.org/", "") or fallback


def openalex_url(work: Dict[str, Any]) -> str:
    landing = (work.get("primary_location") or {}).get("landing_page_url")
    if landing:
        return landing
    doi = work.get("doi")
    if doi:
        return doi if doi.startswith("http") else f"https://doi.org/{doi}"
    return "#"
