"""FastAPI application bootstrap and lifecycle wiring."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from backend.controllers.dashboard_controller import router as dashboard_router
from backend.controllers.favorite_controller import router as favorite_router
from backend.controllers.listing_controller import router as listing_router
from backend.domain.constraints import CatalogConfig, validate_catalog_config
from backend.repository.data_repository import DataRepository
from backend.services.auth_service import AuthService
from backend.services.city_service import CityService
from backend.services.dashboard_service import DashboardService
from backend.services.favorite_service import FavoriteService
from backend.services.listing_service import ListingService
from backend.services.sweep_service import ExpirySweeper, SweepScheduler
from backend.utils.clock import Clock, utc_today
from backend.utils.config import Settings, get_settings
from backend.utils.logger import get_logger


logger = get_logger(__name__)


def create_app(settings: Optional[Settings] = None, clock: Optional[Clock] = None) -> FastAPI:
    """Build the app with explicit startup lifecycle dependencies."""
    settings = settings or get_settings()
    clock = clock or utc_today
    validate_catalog_config(
        CatalogConfig(
            listing_page_size_default=settings.listing_page_size_default,
            listing_page_size_max=settings.listing_page_size_max,
            sweep_interval_seconds=settings.sweep_interval_seconds,
            synthetic_listing_count=settings.synthetic_listing_count,
        )
    )

    repository = DataRepository(settings)
    sweeper = ExpirySweeper(repository=repository, settings=settings, clock=clock)
    listing_service = ListingService(
        repository=repository,
        sweeper=sweeper,
        settings=settings,
        clock=clock,
    )
    city_service = CityService(repository=repository, settings=settings)
    favorite_service = FavoriteService(repository=repository, settings=settings, clock=clock)
    dashboard_service = DashboardService(
        repository=repository,
        sweeper=sweeper,
        settings=settings,
        clock=clock,
    )
    auth_service = AuthService(settings=settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        startup(app)
        try:
            yield
        finally:
            shutdown(app)

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        lifespan=lifespan,
    )
    app.include_router(listing_router)
    app.include_router(favorite_router)
    app.include_router(dashboard_router)

    app.state.settings = settings
    app.state.repository = repository
    app.state.sweeper = sweeper
    app.state.sweep_scheduler = None
    app.state.listing_service = listing_service
    app.state.city_service = city_service
    app.state.favorite_service = favorite_service
    app.state.dashboard_service = dashboard_service
    app.state.auth_service = auth_service

    return app


def startup(app: FastAPI) -> None:
    """Initialize schema, seed demo data, run a first sweep and start the scheduler."""
    settings: Settings = app.state.settings
    repository: DataRepository = app.state.repository
    sweeper: ExpirySweeper = app.state.sweeper

    repository.initialize_database()
    if settings.seed_demo_data:
        seeded = repository.seed_synthetic_data()
        if seeded:
            logger.info("Seeded %s demo listings", seeded)
    sweeper.sweep_quietly()

    if settings.sweep_interval_seconds > 0:
        scheduler = SweepScheduler(sweeper, settings.sweep_interval_seconds)
        scheduler.start()
        app.state.sweep_scheduler = scheduler
    logger.info("System startup completed")


def shutdown(app: FastAPI) -> None:
    scheduler: SweepScheduler | None = getattr(app.state, "sweep_scheduler", None)
    if scheduler is not None:
        scheduler.stop()
        app.state.sweep_scheduler = None


app = create_app()
