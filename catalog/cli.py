"""Command-line interface for the catalog pipeline."""

import argparse
import logging
import sys
from typing import List, Optional

from dotenv import load_dotenv

from catalog.config import get_output_path, get_source_locations
from catalog.joiner import build_catalog_with_stats
from catalog.logging_config import get_logger, setup_logging
from catalog.snapshot import load_snapshot, summarize_snapshot, write_snapshot
from catalog.sources import SourceError, read_sources

__all__ = ["main", "parse_args", "run_pipeline", "show_stats"]

logger = get_logger("cli")


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    sources = get_source_locations()
    output = get_output_path()
    parser = argparse.ArgumentParser(
        description="Join the models, SKU and retailer sheets into the bikes.json snapshot",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Source locations default to MODELS_CSV, SKU_CSV and RETAILER_CSV (a .env file
in the working directory is loaded first). Each may be a path or a URL.

Examples:
  # Build from the environment, write public/bikes.json
  python -m catalog.cli

  # Build from explicit files
  python -m catalog.cli --models data/models.csv --skus data/skus.csv \\
      --retailer data/retailer.csv --output public/bikes.json

  # Summarize an existing snapshot
  python -m catalog.cli --stats public/bikes.json
        """,
    )

    parser.add_argument("--models", default=sources["models"], help="Models table (env: MODELS_CSV)")
    parser.add_argument("--skus", default=sources["skus"], help="SKU table (env: SKU_CSV)")
    parser.add_argument(
        "--retailer", default=sources["retailer"], help="Retailer stock/price feed (env: RETAILER_CSV)"
    )
    parser.add_argument(
        "--output",
        default=output,
        help=f"Snapshot output path (env: OUTPUT_JSON, default: {output})",
    )

    parser.add_argument(
        "--stats",
        metavar="PATH",
        help="Show per-brand statistics for an existing snapshot and exit",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging on the console")
    parser.add_argument("--no-log-file", action="store_true", help="Don't write the JSONL log file")

    return parser.parse_args(argv)


def run_pipeline(models_src: str, skus_src: str, retailer_src: str, output: str) -> int:
    """Read the sources, build the catalog and write the snapshot.

    Returns:
        Number of catalog entries written.

    Raises:
        SourceError: If any source cannot be read; nothing is written.
    """
    tables = read_sources(models_src, skus_src, retailer_src)
    entries, stats = build_catalog_with_stats(tables["models"], tables["skus"], tables["retailer"])
    if stats.dropped:
        logger.info(f"Dropped rows: {dict(stats.dropped)}")
    write_snapshot(entries, output)
    return len(entries)


def show_stats(path: str) -> None:
    """Print a summary of a snapshot file."""
    snapshot = load_snapshot(path)

    print(f"\n{'='*50}")
    print(f"Snapshot: {path}")
    print(f"Generated at: {snapshot.generated_at or 'unknown'}")
    print(f"{'='*50}")
    print(f"\nTotal variants: {len(snapshot.items)}")

    summary = summarize_snapshot(snapshot)
    if summary.empty:
        print("\nNo items.")
    else:
        print("\nBy brand:")
        print(summary.to_string(float_format=lambda v: f"{v:,.0f}"))
    print()


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for CLI."""
    load_dotenv()
    args = parse_args(argv)

    setup_logging(
        level=logging.DEBUG if args.verbose else logging.INFO,
        log_to_file=not args.no_log_file,
    )

    if args.stats:
        try:
            show_stats(args.stats)
        except (OSError, ValueError) as e:
            logger.error(f"Cannot read snapshot {args.stats}: {e}")
            return 1
        return 0

    missing = [
        env
        for env, value in (
            ("MODELS_CSV", args.models),
            ("SKU_CSV", args.skus),
            ("RETAILER_CSV", args.retailer),
        )
        if not value
    ]
    if missing:
        logger.error(f"Missing source location(s): {', '.join(missing)}")
        return 1

    try:
        count = run_pipeline(args.models, args.skus, args.retailer, args.output)
    except SourceError as e:
        logger.error(str(e))
        return 1

    logger.info(f"Wrote {count} bikes to {args.output}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
