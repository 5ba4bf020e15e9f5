"""
Centralized configuration with environment variable overrides.

The platform fee, the fallback tax province, slot granularity and the
backend location are configurable here. The processing-fee settings feed
``calculate_booking_fees`` only; booking totals charge the fixed card
rate defined in ``planbeau.tools.pricing``. Province tax rates are also
fixed there.
"""

import logging
import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

KNOWN_PROVINCES = (
    "Ontario",
    "Quebec",
    "British Columbia",
    "Alberta",
    "Manitoba",
    "Saskatchewan",
    "Nova Scotia",
    "New Brunswick",
    "Newfoundland and Labrador",
    "Prince Edward Island",
    "Northwest Territories",
    "Yukon",
    "Nunavut",
)


def _safe_int(env_var: str, default: str) -> int:
    """Parse an integer from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return int(raw)
    except (ValueError, TypeError):
        raise ValueError(
            f"Invalid integer for {env_var}: {raw!r}"
        ) from None


def _safe_float(env_var: str, default: str) -> float:
    """Parse a float from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return float(raw)
    except (ValueError, TypeError):
        raise ValueError(
            f"Invalid float for {env_var}: {raw!r}"
        ) from None


@dataclass(frozen=True)
class PricingConfig:
    """Fee and tax settings applied to every booking total."""

    platform_fee_percent: float = _safe_float("PLATFORM_FEE_PERCENT", "5")
    processing_fee_percent: float = _safe_float("PROCESSING_FEE_PERCENT", "2.9")
    processing_fee_fixed: float = _safe_float("PROCESSING_FEE_FIXED", "0.30")
    default_province: str = os.getenv("DEFAULT_PROVINCE", "Ontario")


@dataclass(frozen=True)
class AvailabilityConfig:
    """Calendar and time-slot settings."""

    slot_interval_minutes: int = _safe_int("SLOT_INTERVAL_MINUTES", "30")
    latest_end_minutes: int = _safe_int("LATEST_END_MINUTES", "1410")


@dataclass(frozen=True)
class ApiConfig:
    """REST backend connection settings."""

    base_url: str = os.getenv("API_BASE_URL", "http://localhost:5000/api")
    timeout_seconds: float = _safe_float("API_TIMEOUT", "15")


@dataclass(frozen=True)
class StorageConfig:
    """Client-side storage limits."""

    max_recent_searches: int = _safe_int("MAX_RECENT_SEARCHES", "5")


@dataclass(frozen=True)
class AppConfig:
    """Root configuration aggregating all sub-configs."""

    pricing: PricingConfig = field(default_factory=PricingConfig)
    availability: AvailabilityConfig = field(default_factory=AvailabilityConfig)
    api: ApiConfig = field(default_factory=ApiConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    log_level: str = os.getenv("LOG_LEVEL", "INFO")


def _validate_config(config: AppConfig) -> None:
    """Validate configuration values are within acceptable ranges."""
    if not 0.0 <= config.pricing.platform_fee_percent <= 100.0:
        raise ValueError(
            "PLATFORM_FEE_PERCENT must be between 0 and 100, "
            f"got {config.pricing.platform_fee_percent}"
        )
    if config.pricing.processing_fee_percent < 0:
        raise ValueError(
            "PROCESSING_FEE_PERCENT must be >= 0, "
            f"got {config.pricing.processing_fee_percent}"
        )
    if config.pricing.processing_fee_fixed < 0:
        raise ValueError(
            "PROCESSING_FEE_FIXED must be >= 0, "
            f"got {config.pricing.processing_fee_fixed}"
        )
    if config.pricing.default_province not in KNOWN_PROVINCES:
        raise ValueError(
            f"DEFAULT_PROVINCE must be a known province, got {config.pricing.default_province!r}"
        )

    interval = config.availability.slot_interval_minutes
    if not 1 <= interval <= 60 or 60 % interval != 0:
        raise ValueError(
            f"SLOT_INTERVAL_MINUTES must divide 60 evenly, got {interval}"
        )
    if not 0 <= config.availability.latest_end_minutes < 24 * 60:
        raise ValueError(
            "LATEST_END_MINUTES must be within a single day, "
            f"got {config.availability.latest_end_minutes}"
        )

    if config.api.timeout_seconds <= 0:
        raise ValueError(
            f"API_TIMEOUT must be > 0, got {config.api.timeout_seconds}"
        )
    if config.storage.max_recent_searches < 1:
        raise ValueError(
            f"MAX_RECENT_SEARCHES must be >= 1, got {config.storage.max_recent_searches}"
        )


def load_config() -> AppConfig:
    """Load and validate application configuration."""
    config = AppConfig()
    _validate_config(config)
    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    logger.info("Configuration loaded for API at '%s'", config.api.base_url)
    return config


# Singleton instance
settings = load_config()
