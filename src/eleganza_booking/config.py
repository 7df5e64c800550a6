"""
Centralized configuration with environment variable overrides.

Business offset, slot granularity, refresh cadence and timeline defaults
are configurable here. Scheduling and layout code read them from
``settings`` rather than hardcoding values.
"""

import logging
import os
import re
from dataclasses import dataclass, field

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

_OFFSET_PATTERN = re.compile(r"^[+-](?:0\d|1[0-4]):[0-5]\d$")


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
class BusinessConfig:
    """Business identity and its fixed UTC offset (no daylight saving)."""

    name: str = os.getenv("BUSINESS_NAME", "L'Femme Eleganza")
    utc_offset: str = os.getenv("BUSINESS_UTC_OFFSET", "-06:00")
    timezone_label: str = os.getenv("BUSINESS_TIMEZONE", "America/Guatemala")
    locale: str = os.getenv("BUSINESS_LOCALE", "es-GT")


@dataclass(frozen=True)
class SchedulingConfig:
    """Slot generation and availability polling settings."""

    slot_minutes: int = _safe_int("SLOT_MINUTES", "30")
    refresh_interval_sec: float = _safe_float("SLOT_REFRESH_INTERVAL", "30.0")
    booking_horizon_days: int = _safe_int("BOOKING_HORIZON_DAYS", "14")


@dataclass(frozen=True)
class TimelineConfig:
    """Visible window defaults for the admin timeline."""

    default_start_hour: int = _safe_int("TIMELINE_DEFAULT_START_HOUR", "8")
    default_end_hour: int = _safe_int("TIMELINE_DEFAULT_END_HOUR", "18")
    padding_hours: int = _safe_int("TIMELINE_PADDING_HOURS", "2")
    min_duration_hours: float = _safe_float("TIMELINE_MIN_DURATION_HOURS", "0.25")


@dataclass(frozen=True)
class AppConfig:
    """Root configuration aggregating all sub-configs."""

    business: BusinessConfig = field(default_factory=BusinessConfig)
    scheduling: SchedulingConfig = field(default_factory=SchedulingConfig)
    timeline: TimelineConfig = field(default_factory=TimelineConfig)
    log_level: str = os.getenv("LOG_LEVEL", "INFO")


def _validate_config(config: AppConfig) -> None:
    """Validate configuration values are within acceptable ranges."""
    if not _OFFSET_PATTERN.match(config.business.utc_offset):
        raise ValueError(
            f"BUSINESS_UTC_OFFSET must look like -06:00, got {config.business.utc_offset!r}"
        )
    slot_minutes = config.scheduling.slot_minutes
    if slot_minutes < 1 or (24 * 60) % slot_minutes != 0:
        raise ValueError(
            f"SLOT_MINUTES must be a positive divisor of 1440, got {slot_minutes}"
        )
    if config.scheduling.refresh_interval_sec <= 0:
        raise ValueError(
            "SLOT_REFRESH_INTERVAL must be > 0, "
            f"got {config.scheduling.refresh_interval_sec}"
        )
    if config.scheduling.booking_horizon_days < 1:
        raise ValueError(
            f"BOOKING_HORIZON_DAYS must be >= 1, got {config.scheduling.booking_horizon_days}"
        )

    timeline = config.timeline
    if not 0 <= timeline.default_start_hour < timeline.default_end_hour <= 24:
        raise ValueError(
            "TIMELINE_DEFAULT_START_HOUR/END_HOUR must satisfy 0 <= start < end <= 24, "
            f"got {timeline.default_start_hour}-{timeline.default_end_hour}"
        )
    if timeline.padding_hours < 0:
        raise ValueError(
            f"TIMELINE_PADDING_HOURS must be >= 0, got {timeline.padding_hours}"
        )
    if timeline.min_duration_hours <= 0:
        raise ValueError(
            f"TIMELINE_MIN_DURATION_HOURS must be > 0, got {timeline.min_duration_hours}"
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
    logger.info(
        "Configuration loaded for '%s' (UTC%s)",
        config.business.name, config.business.utc_offset,
    )
    return config


# Singleton instance
settings = load_config()
