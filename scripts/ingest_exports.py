#!/usr/bin/env python
"""Ingest inventory export CSVs and run the snapshot pipeline for each.

Every file needs an explicit snapshot date. Files are processed in ascending
date order so each date's changes compare against the one before it.

Usage:
    uv run python scripts/ingest_exports.py \
        --export exports/export-2025-08-08.csv 2025-08-08 \
        --export exports/export-2025-08-09.csv 2025-08-09

    # Recompute changes and metrics of every stored date afterwards
    uv run python scripts/ingest_exports.py --export today.csv 2025-08-11 --rebuild
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from datetime import date
from pathlib import Path

from app.core.database import get_storage
from app.core.exceptions import InventoryTrackerError, ParseError
from app.core.logging import configure_logging, get_logger
from app.features.jobs.pipeline import rebuild_history, run_snapshot_pipeline
from app.features.snapshots.reader import read_export_csv

logger = get_logger(__name__)


def parse_date(date_str: str) -> date:
    """Parse date string in YYYY-MM-DD format.

    Raises:
        argparse.ArgumentTypeError: If date format is invalid.
    """
    try:
        return date.fromisoformat(date_str)
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"Invalid date format: {date_str}. Use YYYY-MM-DD") from e


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser for CLI."""
    parser = argparse.ArgumentParser(
        description="InventoryTracker export ingest",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--export",
        nargs=2,
        action="append",
        metavar=("PATH", "DATE"),
        required=True,
        help="Export CSV and the snapshot date it represents (repeatable)",
    )
    parser.add_argument(
        "--rebuild",
        action="store_true",
        help="Recompute changes and metrics of every stored date after ingesting",
    )
    return parser


def resolve_exports(pairs: list[list[str]]) -> list[tuple[date, Path]]:
    """Validate ``[path, date]`` pairs and order them by date.

    Raises:
        argparse.ArgumentTypeError: If a date is invalid or repeated.
    """
    exports = sorted((parse_date(raw_date), Path(path)) for path, raw_date in pairs)
    dates = [snapshot_date for snapshot_date, _ in exports]
    if len(set(dates)) != len(dates):
        raise argparse.ArgumentTypeError("Each snapshot date may appear only once")
    return exports


async def run(exports: list[tuple[date, Path]], rebuild: bool) -> int:
    """Ingest exports in date order and optionally rebuild history."""
    storage = get_storage()
    try:
        for snapshot_date, path in exports:
            rows = read_export_csv(path)
            summary = await run_snapshot_pipeline(storage, snapshot_date, rows)
            print(
                f"[OK] {snapshot_date} {path.name}: saved={summary['saved']} "
                f"skipped={summary['skipped']} changes={summary['changes']}"
            )

        if rebuild:
            summary = await rebuild_history(storage)
            print(f"[OK] Rebuilt {summary['dates']} dates ({summary['changes']} changes)")

        return 0

    except (ParseError, InventoryTrackerError) as e:
        logger.error("ingest_exports.failed", error=str(e), error_type=type(e).__name__)
        print(f"[FAIL] {e}")
        return 1

    finally:
        await storage.dispose()


def main() -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args()

    try:
        exports = resolve_exports(args.export)
    except argparse.ArgumentTypeError as e:
        parser.error(str(e))

    configure_logging()
    return asyncio.run(run(exports, args.rebuild))


if __name__ == "__main__":
    sys.exit(main())
