"""Domain models for listings and their unavailability windows."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Optional


class AvailabilityStatus(str, Enum):
    AVAILABLE = "AVAILABLE"
    OCCUPIED = "OCCUPIED"


class ListingCategory(str, Enum):
    SALE = "SALE"
    RENT = "RENT"
    HOLIDAY_RENT = "HOLIDAY_RENT"


class ListingType(str, Enum):
    APARTMENT = "APARTMENT"
    HOUSE = "HOUSE"
    VILLA = "VILLA"


@dataclass(frozen=True)
class UnavailabilityWindow:
    """The single ``[start_date, end_date]`` span a listing is not available.

    Either bound may be absent. Both absent means the listing has no window.
    """

    start_date: Optional[date] = None
    end_date: Optional[date] = None

    @property
    def is_empty(self) -> bool:
        return self.start_date is None and self.end_date is None

    @property
    def is_malformed(self) -> bool:
        return (
            self.start_date is not None
            and self.end_date is not None
            and self.start_date > self.end_date
        )


@dataclass(frozen=True)
class AvailabilityResult:
    status: AvailabilityStatus
    available_from: Optional[date] = None

    @property
    def is_available(self) -> bool:
        return self.status is AvailabilityStatus.AVAILABLE


@dataclass(frozen=True)
class QueryRange:
    """Dates a caller wants a listing to be free for; absent means unbounded."""

    start: Optional[date] = None
    end: Optional[date] = None

    @property
    def is_unbounded(self) -> bool:
        return self.start is None and self.end is None

    @property
    def is_inverted(self) -> bool:
        return self.start is not None and self.end is not None and self.start > self.end


@dataclass(frozen=True)
class WindowedEntity:
    """Minimal projection the expiry sweep needs from persisted listings."""

    entity_id: int
    window: UnavailabilityWindow


@dataclass(frozen=True)
class SweepResult:
    reference_date: date
    cleared_count: int
    cleared_ids: list[int]


@dataclass(frozen=True)
class City:
    city_id: int
    name: str
    governorate: str


@dataclass(frozen=True)
class Listing:
    listing_id: int
    title: str
    description: str
    category: ListingCategory
    listing_type: ListingType
    rooms: int
    bathrooms: int
    area: Optional[float]
    price_min: Optional[float]
    price_max: Optional[float]
    city_id: int
    city_name: Optional[str]
    governorate: str
    address: Optional[str]
    admin_id: Optional[str]
    phone_numbers: list[str]
    window: UnavailabilityWindow
    is_deleted: bool
    created_at: str


@dataclass(frozen=True)
class ListingFilters:
    page: int = 1
    limit: int = 10
    category: Optional[ListingCategory] = None
    listing_type: Optional[ListingType] = None
    min_price: Optional[float] = None
    max_price: Optional[float] = None
    rooms: Optional[int] = None
    admin_id: Optional[str] = None
    city_id: Optional[int] = None
    governorate: Optional[str] = None
    min_area: Optional[float] = None
    date_range: QueryRange = field(default_factory=QueryRange)


@dataclass(frozen=True)
class ListingPage:
    listings: list[Listing]
    page: int
    limit: int
    total_count: int

    @property
    def total_pages(self) -> int:
        if self.limit <= 0:
            return 0
        return -(-self.total_count // self.limit)

    @property
    def has_more(self) -> bool:
        return self.page < self.total_pages


@dataclass(frozen=True)
class Favorite:
    favorite_id: int
    client_email: str
    listing_id: int
    created_at: str
