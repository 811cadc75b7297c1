"""Cron entry point for sweeping stale scratch files."""

from __future__ import annotations

import argparse
import sys
import time
from dataclasses import dataclass

from src.reelmaker.config import load_config
from src.reelmaker.media.temp_asset_store import TempAssetStore


@dataclass(slots=True)
class CleanupSummary:
    removed: int
    dry_run: bool


def perform_cleanup(
    *,
    dry_run: bool,
    max_age_seconds: float | None = None,
    reference_time: float | None = None,
) -> CleanupSummary:
    """Execute cleanup logic and return summary counters."""
    config = load_config()
    store = TempAssetStore(paths=config.paths)
    max_age = config.scratch_ttl_seconds if max_age_seconds is None else max_age_seconds
    now = time.time() if reference_time is None else reference_time

    if dry_run:
        return CleanupSummary(removed=len(store.list_stale(max_age, now)), dry_run=True)
    return CleanupSummary(removed=store.cleanup_stale(max_age, now), dry_run=False)


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Remove scratch files left by interrupted requests.")
    parser.add_argument("--dry-run", action="store_true", help="Only report counts without deleting files.")
    parser.add_argument(
        "--max-age",
        type=float,
        default=None,
        help="Age in seconds after which a scratch file is stale (default: SCRATCH_TTL_SECONDS).",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv or [])
    try:
        summary = perform_cleanup(dry_run=args.dry_run, max_age_seconds=args.max_age)
    except Exception as exc:
        print(f"cleanup failed: {exc}", file=sys.stderr)
        return 2

    if summary.dry_run:
        print(f"cleanup dry-run, stale_files={summary.removed}", file=sys.stdout)
    else:
        print(f"cleanup done, removed={summary.removed}", file=sys.stdout)
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
