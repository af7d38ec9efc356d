#!/usr/bin/env python3
"""Run one expiry sweep against the configured database.

Intended for cron-style scheduling when the in-process scheduler is off:

    python scripts/sweep_expired_windows.py
    python scripts/sweep_expired_windows.py --as-of 2024-06-01
"""

from __future__ import annotations

import argparse
import sys
from datetime import date
from pathlib import Path
from typing import Optional, Sequence

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from backend.repository.data_repository import DataRepository, RepositoryError
from backend.services.sweep_service import ExpirySweeper, SweepError
from backend.utils.config import get_settings
from backend.utils.logger import get_logger


logger = get_logger("sweep_expired_windows")


def _parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Clear unavailability windows that have ended.")
    parser.add_argument(
        "--as-of",
        type=date.fromisoformat,
        default=None,
        help="Reference day in YYYY-MM-DD (defaults to today in UTC).",
    )
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = _parse_args(argv)
    settings = get_settings()
    repository = DataRepository(settings)
    try:
        repository.initialize_database()
        result = ExpirySweeper(repository=repository, settings=settings).sweep(args.as_of)
    except (RepositoryError, SweepError) as exc:
        logger.error("Expiry sweep failed: %s", exc)
        return 1

    print(f"Cleared {result.cleared_count} expired windows as of {result.reference_date.isoformat()}")
    for listing_id in result.cleared_ids:
        print(f"  listing {listing_id}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
