#!/usr/bin/env python3
"""
Run a multi-source search from the command line.

Queries the selected sources, optionally synthesizes the results, writes an
export file and saves the search for a user.

Usage:
  python -m scripts.run_search "hydrogen storage" --sources patents,news --max-results 20 \
      --export csv --synthesize --save --user-id me
"""

import argparse
import asyncio
import logging
import sys
from datetime import datetime
from pathlib import Path

from insights_engine.ai.client import AIServiceError
from insights_engine.ai.synthesizer import synthesize_results
from insights_engine.config import settings
from insights_engine.database.db import SessionLocal, init_db
from insights_engine.database.saved_search_service import SavedSearchService
from insights_engine.ingestion.search_providers import PROVIDERS
from insights_engine.services.aggregator import DEFAULT_SOURCES, SearchFailedError, SearchOptions, search_all_sources
from insights_engine.services.export_service import EXPORT_FORMATS, export_results

logging.basicConfig(
    level=logging.INFO if not settings.DEBUG else logging.DEBUG,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


def parse_sources(value: str):
    """'patents,news' -> source flag map with only those enabled."""
    if not value:
        return dict(DEFAULT_SOURCES)
    names = [name.strip() for name in value.split(",") if name.strip()]
    unknown = [name for name in names if name not in PROVIDERS]
    if unknown:
        raise argparse.ArgumentTypeError(
            f"Unknown source(s): {', '.join(unknown)}. Choose from: {', '.join(PROVIDERS)}"
        )
    return {name: name in names for name in PROVIDERS}


async def run(args) -> int:
    options = SearchOptions(query=args.query, max_results=args.max_results, sources=args.sources)

    print(f"🔎 Searching: {args.query}")
    print(f"📅 Date: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
    print(f"📚 Sources: {', '.join(options.enabled_sources())}")
    print()

    try:
        results = await search_all_sources(options)
    except SearchFailedError as e:
        print(f"❌ {e}")
        return 1

    print(f"✅ {len(results)} results")
    for idx, result in enumerate(results[:args.show], 1):
        print(f"   [{idx}] {result.source} | {result.insight_category} | {result.title[:90]}")
    print()

    synthesis = None
    if args.synthesize:
        try:
            synthesis = await synthesize_results(args.query, results)
            print("📝 Synthesis:")
            print(synthesis)
            print()
        except AIServiceError as e:
            print(f"❌ Synthesis failed: {e}")

    if args.export:
        exported = export_results(args.export, results, args.query, synthesis or "")
        target = Path(args.output_dir) / exported["filename"]
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(exported["content"], encoding="utf-8")
        print(f"📄 Exported {args.export}: {target}")

    if args.save:
        init_db()
        db = SessionLocal()
        try:
            saved = SavedSearchService.save_search(
                db, args.user_id, args.query, results,
                sources=options.sources, max_results=args.max_results, synthesis=synthesis,
            )
            print(f"💾 Saved search #{saved['id']} for {args.user_id}")
        finally:
            db.close()

    return 0


def main():
    parser = argparse.ArgumentParser(description="Search papers, patents, trials and news for a topic")
    parser.add_argument("query", help="Search query")
    parser.add_argument(
        "--sources",
        type=parse_sources,
        default=dict(DEFAULT_SOURCES),
        help=f"Comma-separated sources (default: enabled defaults). Available: {', '.join(PROVIDERS)}"
    )
    parser.add_argument(
        "--max-results",
        type=int,
        default=settings.DEFAULT_MAX_RESULTS,
        help=f"Results per source (default: {settings.DEFAULT_MAX_RESULTS})"
    )
    parser.add_argument("--export", choices=list(EXPORT_FORMATS), help="Write results in this format")
    parser.add_argument("--output-dir", default=".", help="Directory for export files (default: .)")
    parser.add_argument("--synthesize", action="store_true", help="Generate an AI synthesis")
    parser.add_argument("--save", action="store_true", help="Save the search to the database")
    parser.add_argument("--user-id", default="cli", help="Owner of the saved search (default: cli)")
    parser.add_argument("--show", type=int, default=10, help="Number of results to print (default: 10)")

    args = parser.parse_args()
    sys.exit(asyncio.run(run(args)))


if __name__ == "__main__":
    main()
