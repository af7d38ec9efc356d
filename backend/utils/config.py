"""Environment-driven application settings."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Optional


_TRUTHY = {"1", "true", "yes", "on"}


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in _TRUTHY


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from exc


@dataclass(frozen=True)
class Settings:
    app_name: str
    app_version: str
    database_path: Path
    log_level: str
    admin_token: Optional[str]
    admin_session_ttl_seconds: int
    sweep_on_read: bool
    sweep_interval_seconds: int
    listing_page_size_default: int
    listing_page_size_max: int
    seed_demo_data: bool
    synthetic_random_seed: int
    synthetic_listing_count: int


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Read settings once per process; call ``cache_clear`` to reload."""
    project_root = Path(__file__).resolve().parents[2]
    return Settings(
        app_name=os.getenv("APP_NAME", "Property Listings API"),
        app_version=os.getenv("APP_VERSION", "1.0.0"),
        database_path=Path(
            os.getenv("DATABASE_PATH", str(project_root / "data" / "listings.db"))
        ),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        admin_token=os.getenv("ADMIN_TOKEN") or None,
        admin_session_ttl_seconds=_env_int("ADMIN_SESSION_TTL_SECONDS", 3600),
        sweep_on_read=_env_bool("SWEEP_ON_READ", True),
        sweep_interval_seconds=_env_int("SWEEP_INTERVAL_SECONDS", 0),
        listing_page_size_default=_env_int("LISTING_PAGE_SIZE_DEFAULT", 10),
        listing_page_size_max=_env_int("LISTING_PAGE_SIZE_MAX", 100),
        seed_demo_data=_env_bool("SEED_DEMO_DATA", True),
        synthetic_random_seed=_env_int("SYNTHETIC_RANDOM_SEED", 42),
        synthetic_listing_count=_env_int("SYNTHETIC_LISTING_COUNT", 24),
    )
