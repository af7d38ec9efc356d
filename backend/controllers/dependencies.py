"""Shared FastAPI dependency providers for controller layer."""

from __future__ import annotations

from typing import Any

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from backend.services.auth_service import (
    AdminTokenNotConfiguredError,
    AuthService,
    InvalidAdminTokenError,
)
from backend.services.city_service import CityService
from backend.services.dashboard_service import DashboardService
from backend.services.favorite_service import FavoriteService
from backend.services.listing_service import ListingService
from backend.utils.config import get_settings


bearer_scheme = HTTPBearer(auto_error=False)


def _require_state(request: Request, attribute: str, label: str) -> Any:
    service = getattr(request.app.state, attribute, None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"{label} service is not initialized",
        )
    return service


def get_auth_service(request: Request) -> AuthService:
    service = getattr(request.app.state, "auth_service", None)
    if service is None:
        service = AuthService(settings=get_settings())
        request.app.state.auth_service = service
    return service


def get_listing_service(request: Request) -> ListingService:
    return _require_state(request, "listing_service", "Listing")


def get_city_service(request: Request) -> CityService:
    return _require_state(request, "city_service", "City")


def get_favorite_service(request: Request) -> FavoriteService:
    return _require_state(request, "favorite_service", "Favorite")


def get_dashboard_service(request: Request) -> DashboardService:
    return _require_state(request, "dashboard_service", "Dashboard")


async def require_admin(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    auth_service: AuthService = Depends(get_auth_service),
) -> None:
    if not auth_service.auth_enabled:
        return
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authorization header with Bearer token is required",
        )
    try:
        auth_service.validate_bearer_token(credentials.credentials)
    except (AdminTokenNotConfiguredError, InvalidAdminTokenError) as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(exc),
        ) from exc
