"""Listing catalog: search, detail and owner-facing create/update/delete."""

from __future__ import annotations

from dataclasses import replace
from datetime import date
from typing import Any, Mapping, Optional, Sequence

from backend.domain.availability import classify
from backend.domain.models import (
    AvailabilityResult,
    Listing,
    ListingCategory,
    ListingFilters,
    ListingType,
    UnavailabilityWindow,
)
from backend.repository.data_repository import DataRepository
from backend.services.sweep_service import ExpirySweeper
from backend.utils.clock import Clock, utc_today
from backend.utils.config import Settings, get_settings
from backend.utils.logger import get_logger


logger = get_logger(__name__)


class ListingError(Exception):
    """Base exception for listing catalog failures."""


class ListingValidationError(ListingError):
    """Raised when listing input or search filters are invalid."""


class ListingNotFoundError(ListingError):
    """Raised when a listing does not exist or was deleted."""


class CityNotFoundError(ListingError):
    """Raised when a listing references an unknown city."""


def availability_label(result: AvailabilityResult) -> str | None:
    if result.is_available:
        return None
    if result.available_from is None:
        return "Occupied until further notice"
    return f"Available from {result.available_from.isoformat()}"


def listing_to_payload(listing: Listing, availability: AvailabilityResult) -> dict[str, Any]:
    """Flatten a listing and its classification for the HTTP layer."""
    return {
        "id": listing.listing_id,
        "title": listing.title,
        "description": listing.description,
        "category": listing.category.value,
        "listing_type": listing.listing_type.value,
        "rooms": listing.rooms,
        "bathrooms": listing.bathrooms,
        "area": listing.area,
        "price_min": listing.price_min,
        "price_max": listing.price_max,
        "city_id": listing.city_id,
        "city_name": listing.city_name,
        "governorate": listing.governorate,
        "address": listing.address,
        "admin_id": listing.admin_id,
        "phone_numbers": list(listing.phone_numbers),
        "start_date": listing.window.start_date,
        "end_date": listing.window.end_date,
        "created_at": listing.created_at,
        "availability": {
            "status": availability.status.value,
            "available_from": availability.available_from,
            "label": availability_label(availability),
        },
    }


def _warn_if_malformed(listing_id: int | None, window: UnavailabilityWindow) -> None:
    if window.is_malformed:
        logger.warning(
            "Listing %s has start date %s after end date %s; treated as occupied indefinitely",
            listing_id,
            window.start_date,
            window.end_date,
        )


class ListingService:
    """Owns listing reads and writes; availability always comes from the domain rules."""

    def __init__(
        self,
        repository: Optional[DataRepository] = None,
        sweeper: Optional[ExpirySweeper] = None,
        settings: Optional[Settings] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._repository = repository or DataRepository(self._settings)
        self._clock = clock or utc_today
        self._sweeper = sweeper or ExpirySweeper(
            repository=self._repository,
            settings=self._settings,
            clock=self._clock,
        )

    def _validate_filters(self, filters: ListingFilters) -> ListingFilters:
        if filters.page < 1:
            raise ListingValidationError("page must be >= 1")
        if filters.limit < 1:
            raise ListingValidationError("limit must be >= 1")
        if filters.limit > self._settings.listing_page_size_max:
            raise ListingValidationError(
                f"limit must be <= {self._settings.listing_page_size_max}"
            )
        for name in ("min_price", "max_price", "min_area"):
            value = getattr(filters, name)
            if value is not None and value < 0:
                raise ListingValidationError(f"{name} must be >= 0")
        if filters.rooms is not None and filters.rooms < 0:
            raise ListingValidationError("rooms must be >= 0")
        return filters

    def default_filters(self, **overrides: Any) -> ListingFilters:
        return replace(
            ListingFilters(limit=self._settings.listing_page_size_default),
            **overrides,
        )

    def search(self, filters: ListingFilters, as_of: Optional[date] = None) -> dict[str, Any]:
        """Return a page of listings free for ``filters.date_range``.

        ``as_of`` only changes the availability badges; the read-path sweep
        always runs against the clock.
        """
        filters = self._validate_filters(filters)
        day = as_of or self._clock()
        if self._settings.sweep_on_read:
            self._sweeper.sweep_quietly(self._clock())

        page = self._repository.search_listings(filters)
        return {
            "listings": [
                listing_to_payload(listing, classify(listing.window, day))
                for listing in page.listings
            ],
            "pagination": {
                "page": page.page,
                "limit": page.limit,
                "total_count": page.total_count,
                "total_pages": page.total_pages,
                "has_more": page.has_more,
            },
        }

    def get_listing(self, listing_id: int, as_of: Optional[date] = None) -> dict[str, Any]:
        listing = self._repository.get_listing(listing_id)
        if listing is None:
            raise ListingNotFoundError(f"Listing {listing_id} not found")
        day = as_of or self._clock()
        return listing_to_payload(listing, classify(listing.window, day))

    def _validate_listing_values(
        self,
        *,
        title: str,
        rooms: int,
        bathrooms: int,
        area: Optional[float],
        price_min: Optional[float],
        price_max: Optional[float],
    ) -> None:
        if not title.strip():
            raise ListingValidationError("title must not be empty")
        if rooms < 0 or bathrooms < 0:
            raise ListingValidationError("rooms and bathrooms must be >= 0")
        if area is not None and area <= 0:
            raise ListingValidationError("area must be > 0 when provided")
        for name, value in (("price_min", price_min), ("price_max", price_max)):
            if value is not None and value < 0:
                raise ListingValidationError(f"{name} must be >= 0")
        if price_min is not None and price_max is not None and price_min > price_max:
            raise ListingValidationError("price_min must not exceed price_max")

    def create_listing(
        self,
        *,
        title: str,
        category: ListingCategory,
        listing_type: ListingType,
        city_id: int,
        description: str = "",
        rooms: int = 0,
        bathrooms: int = 0,
        area: Optional[float] = None,
        price_min: Optional[float] = None,
        price_max: Optional[float] = None,
        address: Optional[str] = None,
        admin_id: Optional[str] = None,
        phone_numbers: Sequence[str] = (),
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> dict[str, Any]:
        self._validate_listing_values(
            title=title,
            rooms=rooms,
            bathrooms=bathrooms,
            area=area,
            price_min=price_min,
            price_max=price_max,
        )
        city = self._repository.get_city(city_id)
        if city is None:
            raise CityNotFoundError(f"City {city_id} not found")

        window = UnavailabilityWindow(start_date=start_date, end_date=end_date)
        listing_id = self._repository.create_listing(
            title=title.strip(),
            description=description,
            category=category,
            listing_type=listing_type,
            rooms=rooms,
            bathrooms=bathrooms,
            area=area,
            price_min=price_min,
            price_max=price_max,
            city_id=city.city_id,
            governorate=city.governorate,
            address=address,
            admin_id=admin_id,
            phone_numbers=phone_numbers,
            window=window,
        )
        _warn_if_malformed(listing_id, window)
        logger.info("Created listing %s in city %s", listing_id, city.city_id)
        return self.get_listing(listing_id)

    def update_listing(self, listing_id: int, changes: Mapping[str, Any]) -> dict[str, Any]:
        """Apply a partial update; an explicit None for a window bound clears it."""
        existing = self._repository.get_listing(listing_id)
        if existing is None:
            raise ListingNotFoundError(f"Listing {listing_id} not found")

        updates = dict(changes)
        if "city_id" in updates:
            city = self._repository.get_city(int(updates["city_id"]))
            if city is None:
                raise CityNotFoundError(f"City {updates['city_id']} not found")
            updates["governorate"] = city.governorate
        if "title" in updates and updates["title"] is not None:
            updates["title"] = str(updates["title"]).strip()

        for required in ("title", "category", "listing_type", "rooms", "bathrooms"):
            if required in updates and updates[required] is None:
                raise ListingValidationError(f"{required} cannot be null")

        self._validate_listing_values(
            title=updates.get("title", existing.title),
            rooms=updates.get("rooms", existing.rooms),
            bathrooms=updates.get("bathrooms", existing.bathrooms),
            area=updates.get("area", existing.area),
            price_min=updates.get("price_min", existing.price_min),
            price_max=updates.get("price_max", existing.price_max),
        )

        if not self._repository.update_listing(listing_id, updates):
            raise ListingNotFoundError(f"Listing {listing_id} not found")

        window = UnavailabilityWindow(
            start_date=updates.get("start_date", existing.window.start_date),
            end_date=updates.get("end_date", existing.window.end_date),
        )
        _warn_if_malformed(listing_id, window)
        return self.get_listing(listing_id)

    def delete_listing(self, listing_id: int, hard: bool = False) -> None:
        if hard:
            deleted = self._repository.hard_delete_listing(listing_id)
        else:
            deleted = self._repository.soft_delete_listing(listing_id)
        if not deleted:
            raise ListingNotFoundError(f"Listing {listing_id} not found")
        logger.info("Deleted listing %s (hard=%s)", listing_id, hard)
