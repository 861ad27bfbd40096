# src/main.py — v1
"""CLI entry point: ingest, remove, analyze, stats commands.

Usage:
    docsim ingest <file> --id ID --author AUTHOR --origin ORIGIN [--title T] [--url U]
    docsim remove <id>
    docsim analyze <file> --id ID --author AUTHOR [--scope ORIGIN ...] [--json]
    docsim stats [reports_dir]

Uses the corpus store configured in .env / DOCSIM_* (CORPUS_BACKEND must be
json or sqlite for ingested documents to outlive the command). Input files
are read as UTF-8 plain text.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from docsim.core.errors import DocSimError
from docsim.core.models import ORIGIN_TAGS
from docsim.version import __version__

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    try:
        settings = _load_settings(args.verbose)
        return asyncio.run(args.func(args, settings))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130
    except DocSimError as exc:
        logger.error("%s", exc)
        return 2
    except Exception as exc:
        logger.error("Fatal error: %s", exc, exc_info=args.verbose)
        return 1


def _build_parser() -> argparse.ArgumentParser:
    """Build CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="docsim",
        description=f"docsim v{__version__}: document similarity detection",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command")

    # --- ingest ---
    p_ingest = subparsers.add_parser(
        "ingest", help="Add or replace a reference document in the corpus",
    )
    p_ingest.add_argument("file", type=Path, help="Plain-text file")
    p_ingest.add_argument("--id", dest="document_id", required=True, help="Document id")
    p_ingest.add_argument("--author", required=True, help="Author id")
    p_ingest.add_argument(
        "--origin", required=True, choices=ORIGIN_TAGS, help="Origin tag",
    )
    p_ingest.add_argument("--title", default=None, help="Display title")
    p_ingest.add_argument("--url", default=None, help="Source URL")
    p_ingest.set_defaults(func=_cmd_ingest)

    # --- remove ---
    p_remove = subparsers.add_parser(
        "remove", help="Remove a reference document from the corpus",
    )
    p_remove.add_argument("document_id", help="Document id")
    p_remove.set_defaults(func=_cmd_remove)

    # --- analyze ---
    p_analyze = subparsers.add_parser(
        "analyze", help="Analyze a document against the corpus",
    )
    p_analyze.add_argument("file", type=Path, help="Plain-text file")
    p_analyze.add_argument("--id", dest="document_id", required=True, help="Document id")
    p_analyze.add_argument("--author", required=True, help="Author id")
    p_analyze.add_argument(
        "--scope", nargs="+", choices=ORIGIN_TAGS, default=None,
        help="Origin tags to match against (default: all)",
    )
    p_analyze.add_argument("--title", default="", help="Display title")
    p_analyze.add_argument(
        "--json", action="store_true", help="Print the report as JSON",
    )
    p_analyze.set_defaults(func=_cmd_analyze)

    # --- stats ---
    p_stats = subparsers.add_parser(
        "stats", help="Show the risk distribution of saved reports",
    )
    p_stats.add_argument(
        "reports_dir", type=Path, nargs="?", default=None,
        help="Reports directory (default: REPORTS_ROOT)",
    )
    p_stats.set_defaults(func=_cmd_stats)

    return parser


async def _cmd_ingest(args: argparse.Namespace, settings) -> int:
    """Ingest one reference document and persist the corpus."""
    from docsim.api.facade import ingest_corpus_document, open_index

    raw = _read_file(args.file)
    if raw is None:
        return 1

    async with await open_index(settings) as index:
        document = await ingest_corpus_document(
            args.document_id, raw, args.author, args.origin, index,
            title=args.title, url=args.url,
        )
    print(f"Ingested {document.id}: {document.token_count} tokens ({document.origin})")
    return 0


async def _cmd_remove(args: argparse.Namespace, settings) -> int:
    """Remove one reference document and persist the corpus."""
    from docsim.api.facade import open_index, remove_corpus_document

    async with await open_index(settings) as index:
        await remove_corpus_document(args.document_id, index)
    print(f"Removed {args.document_id}")
    return 0


async def _cmd_analyze(args: argparse.Namespace, settings) -> int:
    """Analyze one document and save the report."""
    from docsim.api.facade import analyze, open_index
    from docsim.storage.report_store import ReportStore

    raw = _read_file(args.file)
    if raw is None:
        return 1

    store = ReportStore(settings.reports_root)
    async with await open_index(settings) as index:
        report = await analyze(
            args.document_id, raw, args.author, args.scope, index,
            settings=settings, report_store=store, title=args.title,
        )

    if args.json:
        print(json.dumps(report.to_ui_dict(), indent=2, ensure_ascii=False))
    else:
        _print_report_summary(report)
    return 0


async def _cmd_stats(args: argparse.Namespace, settings) -> int:
    """Display the risk distribution over the latest report of each document."""
    from docsim.storage.report_store import ReportStore
    from docsim.tracking.stats_aggregator import compute_risk_distribution

    reports_dir: Path = args.reports_dir or settings.reports_root
    if not reports_dir.expanduser().is_dir():
        logger.error("Not a directory: %s", reports_dir)
        return 1

    dist = compute_risk_distribution(ReportStore(reports_dir).latest_reports())
    print(f"\nStatistics for {reports_dir}:")
    print(f"  Documents:        {dist.total_documents}")
    for tier in ("low", "medium", "high"):
        print(f"  {tier.capitalize():<8}          {dist.counts[tier]} ({dist.percentages[tier]}%)")
    print(f"  Avg similarity:   {dist.average_similarity:.1f}%")
    print(f"  Originality rate: {dist.originality_rate:.1f}%")
    print(f"  Self-plagiarism:  {dist.self_plagiarism_count}")
    return 0


def _read_file(path: Path) -> bytes | None:
    if not path.is_file():
        logger.error("File not found: %s", path)
        return None
    return path.read_bytes()


def _print_report_summary(report: object) -> None:
    """Print a human-readable summary of an AnalysisReport."""
    print("\nAnalysis complete:")
    print(f"  Document ID:  {report.document_id}")
    print(f"  Run ID:       {report.run_id} (v{report.version})")
    print(f"  Words:        {report.word_count}")
    print(f"  Similarity:   {report.similarity}% ({report.risk} risk)")
    if report.self_plagiarism:
        print("  Self-plagiarism detected")
    for source in report.sources:
        print(f"  - {source.title} [{source.origin}]: {source.similarity}%")


def _load_settings(verbose: bool):
    """Load settings and configure logging for CLI usage."""
    from docsim.config.settings import load_settings
    from docsim.logging.logger import setup_logging

    overrides = {"log_level": "DEBUG"} if verbose else {}
    settings = load_settings(**overrides)
    setup_logging(
        level=settings.log_level,
        log_format=settings.log_format,
        log_file=settings.log_file,
        rotation=settings.log_rotation,
        retention=settings.log_retention,
    )
    return settings


if __name__ == "__main__":
    sys.exit(main())
