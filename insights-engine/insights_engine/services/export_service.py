"""
Export service for turning a result set into downloadable files.
Supports CSV, BibTeX, RIS, EndNote and an HTML executive brief.
"""

import html
import logging
import re
from datetime import datetime
from typing import Callable, Dict, List, Optional, Tuple

from ..ingestion.search_providers.base import SearchResult, source_kind
from .analytics import executive_snapshot
from .date_filter import parse_result_date

logger = logging.getLogger(__name__)

CSV_HEADERS = ["Source", "ID", "Title", "Authors", "Date", "Abstract/Status", "URL"]

BIBTEX_TYPES = {"academic": "article", "clinical": "misc", "patent": "patent", "news": "misc", "other": "misc"}
RIS_TYPES = {"academic": "JOUR", "clinical": "DATA", "patent": "PAT", "news": "NEWS", "other": "GEN"}
ENDNOTE_TYPES = {
    "academic": "Journal Article",
    "clinical": "Online Database",
    "patent": "Patent",
    "news": "Newspaper Article",
    "other": "Generic",
}

SIGNAL_KEYWORDS = ("significant", "opportunity", "growth", "emerging", "leading")
DEFAULT_SIGNAL = "Multiple market signals detected across intelligence sources."


def _year(result: SearchResult) -> Optional[int]:
    parsed = parse_result_date(result.date)
    return parsed.year if parsed else None


def _split_authors(authors: Optional[str]) -> List[str]:
    names = [name.strip() for name in (authors or "Anonymous").split(",")]
    return [name for name in names if name] or ["Anonymous"]


# -- CSV ---------------------------------------------------------------------

def _quote(value: str) -> str:
    return '"' + value.replace('"', '""') + '"'


def _quote_if_needed(value: str) -> str:
    if any(ch in value for ch in (",", '"', "\n", "\r")):
        return _quote(value)
    return value


def to_csv(results: List[SearchResult], query: str = "") -> str:
    """
    Render results as CSV.

    Title, authors and abstract/status are always quoted; the other columns
    only when they contain a delimiter, quote or newline. No trailing newline.
    """
    rows = [",".join(CSV_HEADERS)]
    for result in results:
        row = [
            _quote_if_needed(result.source or ""),
            _quote_if_needed(str(result.id or "")),
            _quote(result.title or ""),
            _quote(result.authors or ""),
            _quote_if_needed(result.date or ""),
            _quote(result.abstract or result.status or ""),
            _quote_if_needed(result.url or ""),
        ]
        rows.append(",".join(row))
    return "\n".join(rows)


# -- BibTeX ------------------------------------------------------------------

def _bibtex_key(result: SearchResult, index: int) -> str:
    return re.sub(r"[^a-z0-9]", "", (result.source or "").lower()) + str(index)


def _bibtex_entry(result: SearchResult, index: int) -> str:
    kind = source_kind(result.source)
    year = _year(result) or "n.d."
    authors = result.authors or "Anonymous"

    fields: List[Tuple[str, str]] = []
    if kind != "clinical":
        fields.append(("author", authors))
    fields.append(("title", result.title))
    fields.append(("year", str(year)))

    if kind == "academic":
        if result.journal:
            fields.append(("journal", result.journal))
        if result.abstract:
            fields.append(("abstract", f"{result.abstract[:200]}..."))
    elif kind == "clinical":
        if result.phase:
            fields.append(("note", f"Phase: {result.phase}"))
        fields.append(("howpublished", "ClinicalTrials.gov"))
    elif kind == "news":
        fields.append(("howpublished", result.publisher or result.source))

    fields.append(("url", result.url))

    body = ",\n".join(f"  {name} = {{{value}}}" for name, value in fields)
    return f"@{BIBTEX_TYPES[kind]}{{{_bibtex_key(result, index)},\n{body}\n}}"


def to_bibtex(results: List[SearchResult], query: str, now: Optional[datetime] = None) -> str:
    """One BibTeX entry per result, typed by source kind."""
    now = now or datetime.now()
    entries = "\n\n".join(_bibtex_entry(r, idx) for idx, r in enumerate(results, 1))
    header = f"% BibTeX Bibliography\n% Query: {query}\n% Generated: {now.strftime('%Y-%m-%d')}\n\n"
    return header + entries


# -- RIS ---------------------------------------------------------------------

def _ris_entry(result: SearchResult) -> str:
    lines = [f"TY  - {RIS_TYPES[source_kind(result.source)]}"]
    lines.extend(f"AU  - {author}" for author in _split_authors(result.authors))
    lines.append(f"TI  - {result.title}")
    year = _year(result)
    if year:
        lines.append(f"PY  - {year}")
    if result.journal:
        lines.append(f"JO  - {result.journal}")
    if result.abstract:
        lines.append(f"AB  - {result.abstract}")
    lines.append(f"UR  - {result.url}")
    if result.phase:
        lines.append(f"N1  - Phase: {result.phase}")
    lines.append("ER  - ")
    return "\n".join(lines) + "\n"


def to_ris(results: List[SearchResult], query: str = "") -> str:
    header = (
        "Provider: Innovation Insights Engine\n"
        "Database: Multi-source Research Database\n"
        'Content: text/plain; charset="utf-8"\n\n'
    )
    return header + "\n".join(_ris_entry(r) for r in results)


# -- EndNote -----------------------------------------------------------------

def _endnote_entry(result: SearchResult) -> str:
    lines = [f"%0 {ENDNOTE_TYPES[source_kind(result.source)]}"]
    lines.extend(f"%A {author}" for author in _split_authors(result.authors))
    lines.append(f"%T {result.title}")
    year = _year(result)
    if year:
        lines.append(f"%D {year}")
    if result.journal:
        lines.append(f"%J {result.journal}")
    if result.abstract:
        lines.append(f"%X {result.abstract}")
    lines.append(f"%U {result.url}")
    if result.phase:
        lines.append(f"%Z Phase: {result.phase}")
    return "\n".join(lines) + "\n"


def to_endnote(results: List[SearchResult], query: str = "") -> str:
    return "\n\n".join(_endnote_entry(r) for r in results)


# -- HTML executive brief ----------------------------------------------------

def markdown_to_html(markdown: str) -> str:
    """
    Minimal markdown rendering for synthesis text: headings, bold, italics,
    bullet and numbered lists, paragraphs. Input is HTML-escaped first.
    """
    text = html.escape(markdown or "", quote=False)

    text = re.sub(r"^### (.+)$", r"<h3>\1</h3>", text, flags=re.MULTILINE)
    text = re.sub(r"^## (.+)$", r"<h2>\1</h2>", text, flags=re.MULTILINE)
    text = re.sub(r"^# (.+)$", r"<h1>\1</h1>", text, flags=re.MULTILINE)
    text = re.sub(r"^[-*] (.+)$", r"<li>\1</li>", text, flags=re.MULTILINE)
    text = re.sub(r"^\d+\. (.+)$", r"<li>\1</li>", text, flags=re.MULTILINE)
    text = re.sub(r"\*\*(.+?)\*\*", r"<strong>\1</strong>", text)
    text = re.sub(r"\*(.+?)\*", r"<em>\1</em>", text)
    text = re.sub(r"((?:<li>.*</li>\n)*<li>.*</li>)", lambda m: f"<ul>{m.group(1)}</ul>", text)

    blocks = []
    for block in text.split("\n\n"):
        stripped = block.strip()
        if not stripped:
            continue
        if stripped.startswith(("<h", "<ul", "<li")):
            blocks.append(stripped)
        else:
            blocks.append(f"<p>{stripped.replace(chr(10), ' ')}</p>")
    return "\n".join(blocks)


def executive_signal(synthesis: str) -> str:
    """First synthesis line that reads like a headline signal, cleaned of markdown."""
    lines = [line for line in (synthesis or "").split("\n") if line.strip()]
    signal = next((line for line in lines if any(k in line for k in SIGNAL_KEYWORDS)), None)
    if signal is None:
        signal = lines[1] if len(lines) > 1 else DEFAULT_SIGNAL
    signal = re.sub(r"^[#*\-\s]+", "", signal).replace("**", "")
    return signal[:180]


BRIEF_STYLE = """
    * { box-sizing: border-box; }
    body { font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif; line-height: 1.6;
           color: #1a1a2e; max-width: 900px; margin: 0 auto; padding: 48px 32px; background: #fafafa; }
    .header { text-align: center; margin-bottom: 40px; padding-bottom: 24px; border-bottom: 3px solid #ea580c; }
    h1 { font-size: 28px; font-weight: 700; margin: 0 0 8px 0; }
    .subtitle { color: #6b7280; font-size: 14px; margin: 0; }
    .meta { color: #9ca3af; font-size: 12px; margin-top: 16px; }
    .snapshot { background: #f3f4f6; border-radius: 12px; padding: 24px; margin-bottom: 24px; }
    .snapshot-title, .signal-title { color: #ea580c; font-size: 12px; font-weight: 700; text-transform: uppercase;
                                     letter-spacing: 0.05em; margin-bottom: 16px; }
    .metrics { display: grid; grid-template-columns: repeat(2, 1fr); gap: 16px; }
    .metric { background: white; border-radius: 8px; padding: 16px; border: 1px solid #e5e7eb; }
    .metric-label { color: #6b7280; font-size: 12px; font-weight: 500; margin-bottom: 4px; }
    .metric-value { font-size: 20px; font-weight: 700; }
    .metric-value.highlight { color: #ea580c; }
    .signal { background: #fef3e2; border-left: 4px solid #ea580c; border-radius: 0 8px 8px 0;
              padding: 20px 24px; margin-bottom: 32px; }
    .signal-text { font-size: 15px; font-weight: 500; margin: 0; }
    .synthesis { background: white; border-radius: 12px; padding: 32px; border: 1px solid #e5e7eb; }
    .synthesis h2 { color: #ea580c; font-size: 14px; text-transform: uppercase; border-bottom: 1px solid #e5e7eb; }
    .synthesis p, .synthesis li { color: #374151; font-size: 14px; }
    .synthesis strong { color: #ea580c; font-weight: 600; }
    .footer { margin-top: 40px; padding-top: 20px; border-top: 1px solid #e5e7eb; text-align: center;
              color: #9ca3af; font-size: 11px; }
    @media print { body { background: white; padding: 24px; } .snapshot, .synthesis { break-inside: avoid; } }
"""

# (label, snapshot key, value that gets highlighted)
SNAPSHOT_METRICS = (
    ("Market Momentum", "market_momentum", "High"),
    ("Competitive Intensity", "competitive_intensity", "Intense"),
    ("Commercial Readiness", "commercial_readiness", "Advanced"),
    ("IP &amp; Innovation", "ip_innovation", "Strong"),
)


def to_html_report(
    results: List[SearchResult],
    query: str,
    synthesis: str = "",
    now: Optional[datetime] = None,
) -> str:
    """
    Render the executive intelligence brief.

    Args:
        results: Result set (drives the snapshot metrics)
        query: Search query (escaped)
        synthesis: Markdown synthesis text
        now: Generation time shown in the header

    Returns:
        str: Standalone HTML document
    """
    now = now or datetime.now()
    snapshot = executive_snapshot(results)
    safe_query = html.escape(query)

    metrics_html = "\n".join(
        f'      <div class="metric">\n'
        f'        <div class="metric-label">{label}</div>\n'
        f'        <div class="metric-value{" highlight" if snapshot[key] == strong else ""}">{snapshot[key]}</div>\n'
        f"      </div>"
        for label, key, strong in SNAPSHOT_METRICS
    )

    return f"""<!DOCTYPE html>
<html>
<head>
  <meta charset="utf-8">
  <title>Executive Intelligence Brief - {safe_query}</title>
  <style>{BRIEF_STYLE}</style>
</head>
<body>
  <div class="header">
    <h1>Executive Intelligence Brief</h1>
    <p class="subtitle">CXO-level synthesis of market signals, competition, and commercialization</p>
    <p class="meta">Query: {safe_query} &bull; {len(results)} sources analyzed &bull; {now.strftime('%Y-%m-%d')}</p>
  </div>

  <div class="snapshot">
    <div class="snapshot-title">Executive Snapshot</div>
    <div class="metrics">
{metrics_html}
    </div>
  </div>

  <div class="signal">
    <div class="signal-title">Executive Signal</div>
    <p class="signal-text">{html.escape(executive_signal(synthesis))}</p>
  </div>

  <div class="synthesis">
    {markdown_to_html(synthesis)}
  </div>

  <div class="footer">
    Generated by Innovation Insights Engine &bull; Executive Intelligence Brief
  </div>
</body>
</html>"""


# -- Dispatch ----------------------------------------------------------------

# format -> (filename kind, extension, media type)
EXPORT_FORMATS: Dict[str, Tuple[str, str, str]] = {
    "csv": ("results", "csv", "text/csv"),
    "bibtex": ("bibliography", "bib", "text/plain"),
    "ris": ("bibliography", "ris", "application/x-research-info-systems"),
    "endnote": ("bibliography", "enw", "text/plain"),
    "html": ("executive-brief", "html", "text/html"),
}


def export_filename(kind: str, query: str, ext: str, now: Optional[datetime] = None) -> str:
    """innovationengine-<kind>-<query-slug>-<ms timestamp>.<ext>"""
    now = now or datetime.now()
    slug = re.sub(r"\s+", "-", query.strip())
    slug = re.sub(r"[^\w\-]", "", slug) or "query"
    return f"innovationengine-{kind}-{slug}-{int(now.timestamp() * 1000)}.{ext}"


def export_results(fmt: str, results: List[SearchResult], query: str, synthesis: str = "") -> Dict[str, str]:
    """
    Render an export by format name.

    Returns:
        Dict with content, filename and media_type

    Raises:
        ValueError: Unknown format
    """
    if fmt not in EXPORT_FORMATS:
        raise ValueError(f"Unsupported export format '{fmt}'. Expected one of {list(EXPORT_FORMATS)}")

    renderers: Dict[str, Callable[[], str]] = {
        "csv": lambda: to_csv(results, query),
        "bibtex": lambda: to_bibtex(results, query),
        "ris": lambda: to_ris(results, query),
        "endnote": lambda: to_endnote(results, query),
        "html": lambda: to_html_report(results, query, synthesis),
    }
    kind, ext, media_type = EXPORT_FORMATS[fmt]
    content = renderers[fmt]()
    logger.info(f"📄 Exported {len(results)} results as {fmt}")
    return {"content": content, "filename": export_filename(kind, query, ext), "media_type": media_type}
