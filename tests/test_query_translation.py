"""SQL date-range filter must keep exactly the listings the domain rule keeps."""

from __future__ import annotations

from dataclasses import replace
from datetime import date, timedelta
from itertools import product
from typing import Optional

import pytest

from backend.domain.availability import excluded_by_range
from backend.domain.models import (
    ListingCategory,
    ListingFilters,
    ListingType,
    QueryRange,
    UnavailabilityWindow,
)
from backend.repository.data_repository import DataRepository, window_filter_clause
from backend.utils.config import get_settings


BASE = date(2025, 6, 1)
GRID_BOUNDS: list[Optional[date]] = [None] + [BASE + timedelta(days=step * 3) for step in range(5)]
WINDOWS = [UnavailabilityWindow(start, end) for start, end in product(GRID_BOUNDS, GRID_BOUNDS)]
RANGES = [QueryRange(start, end) for start, end in product(GRID_BOUNDS, GRID_BOUNDS)]


def _build_repository(tmp_path) -> DataRepository:
    get_settings.cache_clear()
    settings = replace(
        get_settings(),
        database_path=tmp_path / "translation.db",
        seed_demo_data=False,
    )
    repository = DataRepository(settings)
    repository.initialize_database()
    return repository


def _insert_listing(repository: DataRepository, city_id: int, window: UnavailabilityWindow, title: str) -> int:
    return repository.create_listing(
        title=title,
        description="",
        category=ListingCategory.RENT,
        listing_type=ListingType.APARTMENT,
        rooms=2,
        bathrooms=1,
        area=80.0,
        price_min=500.0,
        price_max=700.0,
        city_id=city_id,
        governorate="SOUSSE",
        address=None,
        admin_id=None,
        phone_numbers=[],
        window=window,
    )


@pytest.fixture(scope="module")
def populated(tmp_path_factory) -> tuple[DataRepository, dict[int, UnavailabilityWindow]]:
    repository = _build_repository(tmp_path_factory.mktemp("translation"))
    city_id = repository.create_city("Sousse", "SOUSSE")
    windows = {
        _insert_listing(repository, city_id, window, f"grid {index}"): window
        for index, window in enumerate(WINDOWS)
    }
    return repository, windows


def test_unbounded_range_adds_no_clause() -> None:
    assert window_filter_clause(QueryRange()) == (None, [])


def test_inverted_range_matches_nothing() -> None:
    clause, params = window_filter_clause(QueryRange(date(2025, 6, 20), date(2025, 6, 10)))
    assert clause == "0 = 1"
    assert params == []


def test_bounded_range_binds_iso_dates() -> None:
    _, params = window_filter_clause(QueryRange(date(2025, 6, 11), date(2025, 6, 20)))
    assert params == ["2025-06-20", "2025-06-11"]


@pytest.mark.parametrize("query", RANGES)
def test_sql_filter_agrees_with_domain_rule(populated, query: QueryRange) -> None:
    repository, windows = populated
    page = repository.search_listings(ListingFilters(limit=len(windows), date_range=query))

    returned = {listing.listing_id for listing in page.listings}
    expected = {
        listing_id
        for listing_id, window in windows.items()
        if not excluded_by_range(window, query)
    }
    assert returned == expected
    assert page.total_count == len(expected)


def test_stored_windows_round_trip(populated) -> None:
    repository, windows = populated
    stored = {
        listing_id: repository.get_listing(listing_id, include_deleted=True).window
        for listing_id in windows
    }
    assert stored == windows
