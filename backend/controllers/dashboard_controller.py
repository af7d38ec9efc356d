"""Controller layer for admin login, availability dashboard and maintenance."""

from __future__ import annotations

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from fastapi.security import HTTPAuthorizationCredentials
from pydantic import BaseModel, Field

from backend.controllers.dependencies import (
    bearer_scheme,
    get_auth_service,
    get_dashboard_service,
    require_admin,
)
from backend.services.auth_service import (
    AdminTokenNotConfiguredError,
    AuthService,
    InvalidAdminTokenError,
)
from backend.services.dashboard_service import DashboardService
from backend.services.sweep_service import SweepFailedError
from backend.utils.logger import get_logger


logger = get_logger(__name__)

router = APIRouter(tags=["dashboard"])


class LoginRequest(BaseModel):
    admin_token: str = Field(min_length=1)


class LoginResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int = Field(gt=0)


class SweepResponse(BaseModel):
    reference_date: date
    cleared_count: int = Field(ge=0)
    cleared_ids: list[int]


class HealthResponse(BaseModel):
    status: str
    version: str
    auth_enabled: bool
    last_sweep: SweepResponse | None = None


class AvailabilityRow(BaseModel):
    id: int = Field(gt=0)
    title: str
    city_name: str | None = None
    start_date: date | None = None
    end_date: date | None = None
    status: str
    available_from: date | None = None
    label: str | None = None


class AvailabilityOverviewResponse(BaseModel):
    as_of: date
    available: list[AvailabilityRow]
    occupied: list[AvailabilityRow]
    available_count: int = Field(ge=0)
    occupied_count: int = Field(ge=0)
    malformed_count: int = Field(ge=0)
    sweep: SweepResponse | None = None


class SweepRequest(BaseModel):
    as_of: date | None = None


@router.get("/health", response_model=HealthResponse, status_code=status.HTTP_200_OK)
async def health(
    request: Request,
    auth_service: AuthService = Depends(get_auth_service),
    dashboard_service: DashboardService = Depends(get_dashboard_service),
) -> HealthResponse:
    last_sweep = dashboard_service.last_sweep()
    return HealthResponse(
        status="ok",
        version=request.app.version,
        auth_enabled=auth_service.auth_enabled,
        last_sweep=SweepResponse(**last_sweep) if last_sweep is not None else None,
    )


@router.post("/login", response_model=LoginResponse, status_code=status.HTTP_200_OK)
async def login(
    payload: LoginRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> LoginResponse:
    try:
        bearer = auth_service.login(payload.admin_token)
        return LoginResponse(
            access_token=bearer,
            expires_in=auth_service.session_ttl_seconds,
        )
    except (AdminTokenNotConfiguredError, InvalidAdminTokenError) as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(exc),
        ) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected login failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to login",
        ) from exc


@router.get(
    "/dashboard/availability",
    response_model=AvailabilityOverviewResponse,
    status_code=status.HTTP_200_OK,
    dependencies=[Depends(require_admin)],
)
async def availability_overview(
    as_of: Optional[date] = None,
    dashboard_service: DashboardService = Depends(get_dashboard_service),
) -> AvailabilityOverviewResponse:
    try:
        result = dashboard_service.availability_overview(as_of=as_of)
        return AvailabilityOverviewResponse(**result)
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected availability overview failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to load availability overview",
        ) from exc


@router.post(
    "/maintenance/sweep",
    response_model=SweepResponse,
    status_code=status.HTTP_200_OK,
    dependencies=[Depends(require_admin)],
)
async def run_sweep(
    payload: SweepRequest | None = None,
    dashboard_service: DashboardService = Depends(get_dashboard_service),
) -> SweepResponse:
    try:
        result = dashboard_service.run_sweep(as_of=payload.as_of if payload else None)
        return SweepResponse(**result)
    except SweepFailedError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=str(exc),
        ) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected sweep failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to run expiry sweep",
        ) from exc


@router.post(
    "/logout",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    dependencies=[Depends(require_admin)],
)
async def logout(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    auth_service: AuthService = Depends(get_auth_service),
) -> Response:
    if credentials is not None:
        auth_service.logout(credentials.credentials)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
