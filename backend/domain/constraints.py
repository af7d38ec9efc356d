"""Domain-level validation rules for catalog configuration."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class CatalogConfig:
    listing_page_size_default: int
    listing_page_size_max: int
    sweep_interval_seconds: int
    synthetic_listing_count: int


def validate_catalog_config(config: CatalogConfig) -> None:
    if config.listing_page_size_default <= 0:
        raise ValueError("listing_page_size_default must be > 0")
    if config.listing_page_size_max <= 0:
        raise ValueError("listing_page_size_max must be > 0")
    if config.listing_page_size_default > config.listing_page_size_max:
        raise ValueError("listing_page_size_default must not exceed listing_page_size_max")
    if config.sweep_interval_seconds < 0:
        raise ValueError("sweep_interval_seconds must be >= 0")
    if config.synthetic_listing_count < 0:
        raise ValueError("synthetic_listing_count must be >= 0")
