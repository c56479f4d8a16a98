"""
AI synthesis of search results and chart commentary.

- synthesize_results: executive narrative over the first 50 results
- analyze_charts: strategic reading of the chart series plus the first 20 results
"""

import json
import logging
from typing import Any, Dict, List, Optional

from ..ingestion.search_providers.base import SearchResult
from .client import CompletionClient

logger = logging.getLogger(__name__)

SYNTHESIS_CONTEXT_LIMIT = 50
CHART_CONTEXT_LIMIT = 20

SYNTHESIS_SYSTEM_PROMPT = """You are an expert research and industry intelligence synthesizer. Your task is to create a comprehensive, factual summary that bridges research findings with commercial and competitive landscape insights.

Guidelines:
- Write 4-7 concise paragraphs organized by theme
- Structure your synthesis to cover:
  1. Research Foundation: Key scientific findings from academic sources (IEEE, Google Scholar, PubMed, arXiv)
  2. Clinical & Project Development: Status of trials and projects, phases, and outcomes
  3. IP Landscape: Patent activity and innovation trends
  4. Commercial Intelligence: Industry news, partnerships, licensing deals, market developments
  5. Competitive Analysis: Key players, market positioning, and strategic moves
- ALWAYS cite sources using [number] format (e.g., [1], [2], [3])
- Include multiple citations when discussing related findings
- Connect the dots between early research, patents, trials, and commercialization
- Highlight potential market opportunities or competitive threats
- Note regulatory developments when mentioned in news
- Identify gaps between research progress and commercial development
- Keep strictly factual, no speculation
- Write in clear, professional language suitable for strategic decision-making
- Ensure every claim is backed by numbered citations"""

CHART_SYSTEM_PROMPT = """You are an industry analyst and competitive intelligence expert. Analyze the provided visualization data and provide strategic insights.

ANALYSIS STRUCTURE:
1. **Research Momentum Analysis**: Interpret publication trends - accelerating/decelerating research activity, key inflection points
2. **Development Stage Assessment**: Based on source distribution (patents vs trials vs papers), determine:
   - Early research phase (mostly papers/preprints)
   - IP building phase (increasing patents)
   - Development / trial activity
   - Commercialization stage (news, regulatory filings)
3. **Competitive Landscape Signals**: What the data distribution reveals about competition
4. **Market & Commercial Insights**:
   - Patent activity indicating IP strategies
   - Trial phases suggesting timeline to market
   - News coverage indicating commercial momentum
5. **Key Highlights**: 2-3 most significant recent developments with commercial implications

Be specific, data-driven, and highlight actionable intelligence. Use bullet points for clarity."""


def build_synthesis_context(results: List[SearchResult], limit: int = SYNTHESIS_CONTEXT_LIMIT) -> str:
    lines = []
    for idx, result in enumerate(results[:limit], 1):
        detail = result.abstract or result.status or ""
        lines.append(f"[{idx}] {result.source} ({result.id}): {result.title}\n{detail}")
    return "\n\n".join(lines)


def build_chart_context(results: List[SearchResult], limit: int = CHART_CONTEXT_LIMIT) -> str:
    return "\n".join(
        f"[{idx}] {r.source} ({r.date or 'N/A'}): {r.title}" for idx, r in enumerate(results[:limit], 1)
    )


async def synthesize_results(
    query: str,
    results: List[SearchResult],
    client: Optional[CompletionClient] = None,
) -> str:
    """
    Generate an executive synthesis of the result set.

    Args:
        query: The user's search query
        results: Aggregated results (only the first 50 are sent)
        client: Completion client (defaults to the configured gateway)

    Returns:
        str: Markdown synthesis text

    Raises:
        ValueError: Empty query
        AIServiceError subclasses on gateway failures
    """
    if not query:
        raise ValueError("Query is required")

    client = client or CompletionClient()
    logger.info(f"Synthesizing {len(results)} results for query: {query}")

    user_prompt = f"""Based on the following research results about "{query}", provide a comprehensive synthesis:

{build_synthesis_context(results)}

Create a well-structured synthesis that answers the research question and highlights key findings."""

    synthesis = await client.complete(
        messages=[
            {"role": "system", "content": SYNTHESIS_SYSTEM_PROMPT},
            {"role": "user", "content": user_prompt},
        ],
        temperature=0.3,
        max_tokens=2000,
        failure_message="AI synthesis failed",
    )
    logger.info("Synthesis completed successfully")
    return synthesis or "Unable to generate synthesis"


async def analyze_charts(
    query: str,
    chart_data: Dict[str, Any],
    results: Optional[List[SearchResult]] = None,
    client: Optional[CompletionClient] = None,
) -> str:
    """
    Generate strategic commentary over the chart series.

    Args:
        query: The user's search query
        chart_data: Output of build_chart_data()
        results: Results for the "recent key results" block (first 20)
        client: Completion client

    Returns:
        str: Markdown analysis text
    """
    if not chart_data:
        raise ValueError("Chart data is required")

    client = client or CompletionClient()
    logger.info(f"Analyzing charts for query: {query}")

    user_prompt = f"""Analyze these visualization metrics for "{query}":

PUBLICATION TIMELINE:
{json.dumps(chart_data.get("publicationTrend"), indent=2)}

SOURCE DISTRIBUTION:
{json.dumps(chart_data.get("sourceBreakdown"), indent=2)}

CLINICAL TRIAL PHASES:
{json.dumps(chart_data.get("studyTypeDistribution"), indent=2)}

RECENT KEY RESULTS:
{build_chart_context(results or [])}

Provide strategic interpretation focusing on:
- What stage is this technology at?
- Is momentum building or waning?
- What do the sources tell us about competitive positioning?
- Highlight 2-3 commercially significant recent developments"""

    analysis = await client.complete(
        messages=[
            {"role": "system", "content": CHART_SYSTEM_PROMPT},
            {"role": "user", "content": user_prompt},
        ],
        temperature=0.3,
        max_tokens=1500,
        failure_message="AI analysis failed",
    )
    logger.info("Chart analysis completed")
    return analysis or "Unable to generate analysis"
