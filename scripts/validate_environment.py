#!/usr/bin/env python3
"""Validate local property listings environment readiness."""

from __future__ import annotations

import importlib
import shutil
import sys
import tempfile
from dataclasses import replace
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from backend.domain.availability import is_expired
from backend.repository.data_repository import DataRepository, RepositoryError
from backend.services.sweep_service import ExpirySweeper, SweepError
from backend.utils.clock import utc_today
from backend.utils.config import get_settings

SEPARATOR_LINE = "=" * 44


def _print_result(name: str, success: bool, detail: str = "") -> tuple[bool, str]:
    if success:
        return True, f"[PASS] {name}{detail}"
    return False, f"[FAIL] {name}: {detail}"


def main() -> int:
    results: list[str] = []
    all_passed = True
    temp_dir = tempfile.mkdtemp(prefix="listings-env-")

    # CHECK 1: Python version >= 3.10
    if sys.version_info >= (3, 10):
        ok, line = _print_result("Python " + sys.version.split()[0], True)
    else:
        ok, line = _print_result(
            "Python version >= 3.10",
            False,
            f"found {sys.version.split()[0]}",
        )
    results.append(line)
    all_passed = all_passed and ok

    # CHECK 2: Required packages importable with versions
    package_specs = [
        ("fastapi", "fastapi"),
        ("uvicorn", "uvicorn"),
        ("pydantic", "pydantic"),
        ("httpx", "httpx"),
        ("pytest", "pytest"),
    ]
    import_errors: list[str] = []
    for module_name, dist_name in package_specs:
        try:
            importlib.import_module(module_name)
            version(dist_name)
        except (ImportError, PackageNotFoundError) as exc:
            import_errors.append(f"{module_name} ({exc})")
    if import_errors:
        ok, line = _print_result(
            "Required packages",
            False,
            "missing/unimportable -> " + "; ".join(import_errors),
        )
    else:
        ok, line = _print_result("Required packages: all importable", True)
    results.append(line)
    all_passed = all_passed and ok

    try:
        validation_settings = replace(
            get_settings(),
            database_path=Path(temp_dir) / "listings_validation.db",
        )
        repository = DataRepository(validation_settings)

        # CHECK 3: Database initialization
        try:
            repository.initialize_database()
            ok, line = _print_result("Database initialization", True)
        except RepositoryError as exc:
            ok, line = _print_result("Database initialization", False, str(exc))
        results.append(line)
        all_passed = all_passed and ok

        # CHECK 4: Demo data seeding
        expected = validation_settings.synthetic_listing_count
        try:
            seeded = repository.seed_synthetic_data()
            if seeded != expected:
                raise RuntimeError(f"expected {expected} listings, got {seeded}")
            ok, line = _print_result(f"Demo dataset: {seeded} listings", True)
        except (RepositoryError, RuntimeError) as exc:
            ok, line = _print_result("Demo dataset", False, str(exc))
        results.append(line)
        all_passed = all_passed and ok

        # CHECK 5: Expiry sweep round-trip
        try:
            today = utc_today()
            sweeper = ExpirySweeper(
                repository=repository,
                settings=validation_settings,
                clock=lambda: today,
            )
            first = sweeper.sweep()
            second = sweeper.sweep()
            if second.cleared_count != 0:
                raise RuntimeError(f"second sweep cleared {second.cleared_count} windows")
            leftovers = [
                listing.listing_id
                for listing in repository.list_active_listings()
                if is_expired(listing.window, today)
            ]
            if leftovers:
                raise RuntimeError(f"expired windows left after sweep: {leftovers}")
            ok, line = _print_result(
                "Expiry sweep",
                True,
                f": cleared {first.cleared_count}, idempotent",
            )
        except (SweepError, RepositoryError, RuntimeError) as exc:
            ok, line = _print_result("Expiry sweep", False, str(exc))
        results.append(line)
        all_passed = all_passed and ok

    finally:
        shutil.rmtree(temp_dir, ignore_errors=True)

    print(SEPARATOR_LINE)
    print(" Property Listings Environment Validation")
    print(SEPARATOR_LINE)
    for line in results:
        print(f" {line}")
    print(SEPARATOR_LINE)
    if all_passed:
        print(" All checks passed. Environment is ready.")
        print(SEPARATOR_LINE)
        return 0
    print(" One or more checks failed.")
    print(SEPARATOR_LINE)
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
