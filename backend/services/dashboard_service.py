"""Admin dashboard: availability buckets and maintenance triggers."""

from __future__ import annotations

from datetime import date
from typing import Any, Optional

from backend.domain.availability import classify
from backend.domain.models import SweepResult
from backend.repository.data_repository import DataRepository
from backend.services.listing_service import availability_label
from backend.services.sweep_service import ExpirySweeper
from backend.utils.clock import Clock, utc_today
from backend.utils.config import Settings, get_settings
from backend.utils.logger import get_logger


logger = get_logger(__name__)


def sweep_to_payload(result: SweepResult) -> dict[str, Any]:
    return {
        "reference_date": result.reference_date,
        "cleared_count": result.cleared_count,
        "cleared_ids": list(result.cleared_ids),
    }


class DashboardService:
    """Groups listings into available and occupied for operator views."""

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

    def availability_overview(self, as_of: Optional[date] = None) -> dict[str, Any]:
        """Bucket listings as of ``as_of``; expired windows are swept as of the clock."""
        day = as_of or self._clock()
        sweep_result = None
        if self._settings.sweep_on_read:
            sweep_result = self._sweeper.sweep_quietly(self._clock())

        available: list[dict[str, Any]] = []
        occupied: list[dict[str, Any]] = []
        malformed_count = 0
        for listing in self._repository.list_active_listings():
            if listing.window.is_malformed:
                malformed_count += 1
                logger.warning(
                    "Listing %s window starts %s after it ends %s",
                    listing.listing_id,
                    listing.window.start_date,
                    listing.window.end_date,
                )
            result = classify(listing.window, day)
            row = {
                "id": listing.listing_id,
                "title": listing.title,
                "city_name": listing.city_name,
                "start_date": listing.window.start_date,
                "end_date": listing.window.end_date,
                "status": result.status.value,
                "available_from": result.available_from,
                "label": availability_label(result),
            }
            if result.is_available:
                available.append(row)
            else:
                occupied.append(row)

        return {
            "as_of": day,
            "available": available,
            "occupied": occupied,
            "available_count": len(available),
            "occupied_count": len(occupied),
            "malformed_count": malformed_count,
            "sweep": sweep_to_payload(sweep_result) if sweep_result is not None else None,
        }

    def run_sweep(self, as_of: Optional[date] = None) -> dict[str, Any]:
        """Explicit maintenance trigger; failures propagate to the caller."""
        result = self._sweeper.sweep(as_of or self._clock())
        return sweep_to_payload(result)

    def last_sweep(self) -> dict[str, Any] | None:
        result = self._sweeper.last_result
        return sweep_to_payload(result) if result is not None else None
