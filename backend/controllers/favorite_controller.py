"""Controller layer for client wishlists."""

from __future__ import annotations

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from pydantic import BaseModel, Field

from backend.controllers.dependencies import get_favorite_service
from backend.controllers.listing_controller import ListingResponse
from backend.services.favorite_service import FavoriteService, FavoriteValidationError
from backend.services.listing_service import ListingNotFoundError
from backend.utils.logger import get_logger


logger = get_logger(__name__)

router = APIRouter(tags=["favorites"])


class FavoriteRequest(BaseModel):
    email: str = Field(min_length=3, max_length=254)
    listing_id: int = Field(gt=0)
    name: str | None = Field(default=None, max_length=120)


class FavoriteResponse(BaseModel):
    id: int = Field(gt=0)
    email: str
    listing_id: int = Field(gt=0)
    created_at: str


@router.post("/favorites", response_model=FavoriteResponse, status_code=status.HTTP_201_CREATED)
async def add_favorite(
    payload: FavoriteRequest,
    service: FavoriteService = Depends(get_favorite_service),
) -> FavoriteResponse:
    try:
        result = service.add_favorite(payload.email, payload.listing_id, name=payload.name)
        return FavoriteResponse(**result)
    except FavoriteValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    except ListingNotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(exc),
        ) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected favorite creation failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to add favorite",
        ) from exc


@router.get("/favorites", response_model=list[ListingResponse], status_code=status.HTTP_200_OK)
async def list_favorites(
    email: str = Query(min_length=3),
    as_of: Optional[date] = None,
    service: FavoriteService = Depends(get_favorite_service),
) -> list[ListingResponse]:
    try:
        return [ListingResponse(**row) for row in service.list_favorites(email, as_of=as_of)]
    except FavoriteValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected favorite listing failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to list favorites",
        ) from exc


@router.delete(
    "/favorites/{listing_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
)
async def remove_favorite(
    listing_id: int,
    email: str = Query(min_length=3),
    service: FavoriteService = Depends(get_favorite_service),
) -> Response:
    try:
        service.remove_favorite(email, listing_id)
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    except FavoriteValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    except ListingNotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(exc),
        ) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected favorite removal failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to remove favorite",
        ) from exc
