"""HTTP controller layer for listings and cities."""

from __future__ import annotations

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from pydantic import BaseModel, Field, field_validator

from backend.controllers.dependencies import (
    get_city_service,
    get_listing_service,
    require_admin,
)
from backend.domain.models import ListingCategory, ListingType, QueryRange
from backend.services.city_service import (
    CityConflictError,
    CityMissingError,
    CityService,
    CityValidationError,
)
from backend.services.listing_service import (
    CityNotFoundError,
    ListingNotFoundError,
    ListingService,
    ListingValidationError,
)
from backend.utils.logger import get_logger


logger = get_logger(__name__)

router = APIRouter(tags=["listings"])


class AvailabilityResponse(BaseModel):
    status: str
    available_from: date | None = None
    label: str | None = None


class ListingResponse(BaseModel):
    id: int = Field(gt=0)
    title: str
    description: str
    category: ListingCategory
    listing_type: ListingType
    rooms: int = Field(ge=0)
    bathrooms: int = Field(ge=0)
    area: float | None = None
    price_min: float | None = None
    price_max: float | None = None
    city_id: int
    city_name: str | None = None
    governorate: str
    address: str | None = None
    admin_id: str | None = None
    phone_numbers: list[str]
    start_date: date | None = None
    end_date: date | None = None
    created_at: str
    availability: AvailabilityResponse


class PaginationResponse(BaseModel):
    page: int = Field(ge=1)
    limit: int = Field(ge=1)
    total_count: int = Field(ge=0)
    total_pages: int = Field(ge=0)
    has_more: bool


class ListingPageResponse(BaseModel):
    listings: list[ListingResponse]
    pagination: PaginationResponse


class ListingCreateRequest(BaseModel):
    """Owner-facing input; a window with start after end is stored as given."""

    title: str = Field(min_length=1, max_length=200)
    description: str = ""
    category: ListingCategory
    listing_type: ListingType
    city_id: int = Field(gt=0)
    rooms: int = Field(default=0, ge=0)
    bathrooms: int = Field(default=0, ge=0)
    area: float | None = Field(default=None, gt=0.0)
    price_min: float | None = Field(default=None, ge=0.0)
    price_max: float | None = Field(default=None, ge=0.0)
    address: str | None = None
    admin_id: str | None = None
    phone_numbers: list[str] = Field(default_factory=list)
    start_date: date | None = None
    end_date: date | None = None

    @field_validator("phone_numbers")
    @classmethod
    def validate_phone_numbers(cls, value: list[str]) -> list[str]:
        cleaned = [item.strip() for item in value]
        if any(not item for item in cleaned):
            raise ValueError("phone_numbers must not contain empty values")
        return cleaned


class ListingUpdateRequest(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = None
    category: ListingCategory | None = None
    listing_type: ListingType | None = None
    city_id: int | None = Field(default=None, gt=0)
    rooms: int | None = Field(default=None, ge=0)
    bathrooms: int | None = Field(default=None, ge=0)
    area: float | None = Field(default=None, gt=0.0)
    price_min: float | None = Field(default=None, ge=0.0)
    price_max: float | None = Field(default=None, ge=0.0)
    address: str | None = None
    admin_id: str | None = None
    phone_numbers: list[str] | None = None
    start_date: date | None = None
    end_date: date | None = None


class CityRequest(BaseModel):
    name: str = Field(min_length=1, max_length=120)
    governorate: str = Field(min_length=1, max_length=60)


class CityResponse(BaseModel):
    id: int = Field(gt=0)
    name: str
    governorate: str


@router.get("/listings", response_model=ListingPageResponse, status_code=status.HTTP_200_OK)
async def search_listings(
    page: int = Query(default=1, ge=1),
    limit: Optional[int] = Query(default=None, ge=1),
    category: Optional[ListingCategory] = None,
    listing_type: Optional[ListingType] = None,
    min_price: Optional[float] = Query(default=None, ge=0.0),
    max_price: Optional[float] = Query(default=None, ge=0.0),
    rooms: Optional[int] = Query(default=None, ge=0),
    admin_id: Optional[str] = None,
    city_id: Optional[int] = Query(default=None, gt=0),
    governorate: Optional[str] = None,
    min_area: Optional[float] = Query(default=None, ge=0.0),
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    as_of: Optional[date] = None,
    service: ListingService = Depends(get_listing_service),
) -> ListingPageResponse:
    """Listings free for ``[start_date, end_date]``; either bound may be omitted."""
    try:
        overrides = {
            "page": page,
            "category": category,
            "listing_type": listing_type,
            "min_price": min_price,
            "max_price": max_price,
            "rooms": rooms,
            "admin_id": admin_id,
            "city_id": city_id,
            "governorate": governorate.upper() if governorate else None,
            "min_area": min_area,
            "date_range": QueryRange(start=start_date, end=end_date),
        }
        if limit is not None:
            overrides["limit"] = limit
        result = service.search(service.default_filters(**overrides), as_of=as_of)
        return ListingPageResponse(**result)
    except ListingValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected listing search failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to search listings",
        ) from exc


@router.get("/listings/{listing_id}", response_model=ListingResponse, status_code=status.HTTP_200_OK)
async def get_listing(
    listing_id: int,
    as_of: Optional[date] = None,
    service: ListingService = Depends(get_listing_service),
) -> ListingResponse:
    try:
        return ListingResponse(**service.get_listing(listing_id, as_of=as_of))
    except ListingNotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(exc),
        ) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected listing lookup failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to load listing",
        ) from exc


@router.post(
    "/listings",
    response_model=ListingResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin)],
)
async def create_listing(
    payload: ListingCreateRequest,
    service: ListingService = Depends(get_listing_service),
) -> ListingResponse:
    try:
        result = service.create_listing(**payload.model_dump())
        return ListingResponse(**result)
    except ListingValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    except CityNotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(exc),
        ) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected listing creation failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create listing",
        ) from exc


@router.patch(
    "/listings/{listing_id}",
    response_model=ListingResponse,
    status_code=status.HTTP_200_OK,
    dependencies=[Depends(require_admin)],
)
async def update_listing(
    listing_id: int,
    payload: ListingUpdateRequest,
    service: ListingService = Depends(get_listing_service),
) -> ListingResponse:
    try:
        result = service.update_listing(listing_id, payload.model_dump(exclude_unset=True))
        return ListingResponse(**result)
    except ListingValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    except (ListingNotFoundError, CityNotFoundError) as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(exc),
        ) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected listing update failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update listing",
        ) from exc


@router.delete(
    "/listings/{listing_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    dependencies=[Depends(require_admin)],
)
async def delete_listing(
    listing_id: int,
    hard: bool = False,
    service: ListingService = Depends(get_listing_service),
) -> Response:
    try:
        service.delete_listing(listing_id, hard=hard)
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    except ListingNotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(exc),
        ) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected listing deletion failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to delete listing",
        ) from exc


@router.get("/cities", response_model=list[CityResponse], status_code=status.HTTP_200_OK)
async def list_cities(
    service: CityService = Depends(get_city_service),
) -> list[CityResponse]:
    return [
        CityResponse(id=city.city_id, name=city.name, governorate=city.governorate)
        for city in service.list_cities()
    ]


@router.post(
    "/cities",
    response_model=CityResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin)],
)
async def add_city(
    payload: CityRequest,
    service: CityService = Depends(get_city_service),
) -> CityResponse:
    try:
        city = service.add_city(payload.name, payload.governorate)
        return CityResponse(id=city.city_id, name=city.name, governorate=city.governorate)
    except CityValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    except CityConflictError as exc:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=str(exc),
        ) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected city creation failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to add city",
        ) from exc


@router.delete(
    "/cities/{city_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    dependencies=[Depends(require_admin)],
)
async def delete_city(
    city_id: int,
    service: CityService = Depends(get_city_service),
) -> Response:
    try:
        service.delete_city(city_id)
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    except CityMissingError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(exc),
        ) from exc
    except CityConflictError as exc:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=str(exc),
        ) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected city deletion failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to delete city",
        ) from exc
