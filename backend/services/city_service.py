"""City catalog used to place listings."""

from __future__ import annotations

from typing import Optional

from backend.domain.models import City
from backend.repository.data_repository import DataRepository, DuplicateRowError
from backend.utils.config import Settings, get_settings
from backend.utils.logger import get_logger


logger = get_logger(__name__)


class CityError(Exception):
    """Base exception for city catalog failures."""


class CityValidationError(CityError):
    """Raised when city input is invalid."""


class CityConflictError(CityError):
    """Raised on duplicate cities or deleting a city still in use."""


class CityMissingError(CityError):
    """Raised when a city id does not exist."""


class CityService:
    def __init__(
        self,
        repository: Optional[DataRepository] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._repository = repository or DataRepository(self._settings)

    def list_cities(self) -> list[City]:
        return self._repository.list_cities()

    def add_city(self, name: str, governorate: str) -> City:
        cleaned_name = name.strip()
        cleaned_governorate = governorate.strip().upper()
        if not cleaned_name:
            raise CityValidationError("name must not be empty")
        if not cleaned_governorate:
            raise CityValidationError("governorate must not be empty")
        if self._repository.find_city(cleaned_name, cleaned_governorate) is not None:
            raise CityConflictError(
                f"City {cleaned_name!r} already exists in {cleaned_governorate}"
            )
        try:
            city_id = self._repository.create_city(cleaned_name, cleaned_governorate)
        except DuplicateRowError as exc:
            raise CityConflictError(str(exc)) from exc
        logger.info("Added city %s (%s)", cleaned_name, city_id)
        return City(city_id=city_id, name=cleaned_name, governorate=cleaned_governorate)

    def delete_city(self, city_id: int) -> None:
        if self._repository.get_city(city_id) is None:
            raise CityMissingError(f"City {city_id} not found")
        if self._repository.count_listings_in_city(city_id) > 0:
            raise CityConflictError(f"City {city_id} still has listings")
        self._repository.delete_city(city_id)
