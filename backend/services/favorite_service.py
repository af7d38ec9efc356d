"""Wishlist favorites keyed by client email."""

from __future__ import annotations

import re
from datetime import date
from typing import Any, Optional

from backend.domain.availability import classify
from backend.repository.data_repository import DataRepository
from backend.services.listing_service import ListingNotFoundError, listing_to_payload
from backend.utils.clock import Clock, utc_today
from backend.utils.config import Settings, get_settings


_EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class FavoriteValidationError(Exception):
    """Raised when favorite input is invalid."""


class FavoriteService:
    def __init__(
        self,
        repository: Optional[DataRepository] = None,
        settings: Optional[Settings] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._repository = repository or DataRepository(self._settings)
        self._clock = clock or utc_today

    @staticmethod
    def _normalize_email(email: str) -> str:
        normalized = email.strip().lower()
        if _EMAIL_PATTERN.fullmatch(normalized) is None:
            raise FavoriteValidationError("email must be a valid address")
        return normalized

    def add_favorite(self, email: str, listing_id: int, name: Optional[str] = None) -> dict[str, Any]:
        """Add a listing to a client's wishlist; adding twice returns the same favorite."""
        normalized = self._normalize_email(email)
        if self._repository.get_listing(listing_id) is None:
            raise ListingNotFoundError(f"Listing {listing_id} not found")
        client_id = self._repository.get_or_create_client(normalized, name)
        favorite = self._repository.add_favorite(client_id, listing_id)
        return {
            "id": favorite.favorite_id,
            "email": favorite.client_email,
            "listing_id": favorite.listing_id,
            "created_at": favorite.created_at,
        }

    def list_favorites(self, email: str, as_of: Optional[date] = None) -> list[dict[str, Any]]:
        normalized = self._normalize_email(email)
        client_id = self._repository.find_client_id(normalized)
        if client_id is None:
            return []
        day = as_of or self._clock()
        return [
            listing_to_payload(listing, classify(listing.window, day))
            for listing in self._repository.list_favorite_listings(client_id)
        ]

    def remove_favorite(self, email: str, listing_id: int) -> None:
        normalized = self._normalize_email(email)
        client_id = self._repository.find_client_id(normalized)
        if client_id is None or not self._repository.remove_favorite(client_id, listing_id):
            raise ListingNotFoundError(f"Listing {listing_id} is not in the wishlist")
