"""
Centralized configuration with environment variable overrides.

Slot geometry, hold and lock lifetimes, the shared key-value store and
notification delivery are all configurable here. Nothing is hardcoded in
the availability or booking logic.
"""

import logging
import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

from testdrive.logging_context import request_id_handler

load_dotenv()

logger = logging.getLogger(__name__)


def _safe_int(env_var: str, default: str) -> int:
    """Parse an integer from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return int(raw)
    except (ValueError, TypeError):
        raise ValueError(
            f"Invalid integer for {env_var}: {raw!r}"
        ) from None


def _safe_bool(env_var: str, default: str) -> bool:
    """Parse a boolean flag; only true/1/yes/on count as enabled."""
    raw = os.getenv(env_var, default)
    return raw.strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class SchedulingConfig:
    """Slot geometry and reservation lifetimes."""

    slot_duration_minutes: int = _safe_int("SLOT_DURATION_MINUTES", "30")
    slot_buffer_minutes: int = _safe_int("SLOT_BUFFER_MINUTES", "15")
    hold_minutes: int = _safe_int("SLOT_HOLD_MINUTES", "10")
    lock_ttl_seconds: int = _safe_int("BOOKING_LOCK_TTL_SECONDS", "30")


@dataclass(frozen=True)
class StoreConfig:
    """Shared key-value store used for holds and commit locks."""

    redis_url: str = os.getenv("REDIS_URL", "redis://localhost:6379/0")
    namespace: str = os.getenv("REDIS_NAMESPACE", "testdrive")


@dataclass(frozen=True)
class BookingConfig:
    """Booking reference generation."""

    reference_prefix: str = os.getenv("REFERENCE_PREFIX", "TD")
    reference_max_attempts: int = _safe_int("REFERENCE_MAX_ATTEMPTS", "3")


@dataclass(frozen=True)
class NotificationConfig:
    """Outbound notification delivery."""

    enabled: bool = _safe_bool("NOTIFICATIONS_ENABLED", "false")
    log_size: int = _safe_int("NOTIFICATION_LOG_SIZE", "500")


@dataclass(frozen=True)
class AppConfig:
    """Root configuration aggregating all sub-configs."""

    scheduling: SchedulingConfig = field(default_factory=SchedulingConfig)
    store: StoreConfig = field(default_factory=StoreConfig)
    booking: BookingConfig = field(default_factory=BookingConfig)
    notifications: NotificationConfig = field(default_factory=NotificationConfig)
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    service_name: str = os.getenv("SERVICE_NAME", "testdrive-booking")


def _validate_config(config: AppConfig) -> None:
    """Validate configuration values are within acceptable ranges."""
    sched = config.scheduling
    if sched.slot_duration_minutes < 1:
        raise ValueError(
            f"SLOT_DURATION_MINUTES must be >= 1, got {sched.slot_duration_minutes}"
        )
    if sched.slot_buffer_minutes < 0:
        raise ValueError(
            f"SLOT_BUFFER_MINUTES must be >= 0, got {sched.slot_buffer_minutes}"
        )
    if sched.hold_minutes < 1:
        raise ValueError(f"SLOT_HOLD_MINUTES must be >= 1, got {sched.hold_minutes}")
    if sched.lock_ttl_seconds < 1:
        raise ValueError(
            f"BOOKING_LOCK_TTL_SECONDS must be >= 1, got {sched.lock_ttl_seconds}"
        )
    if sched.lock_ttl_seconds > sched.hold_minutes * 60:
        raise ValueError(
            "BOOKING_LOCK_TTL_SECONDS must not exceed the hold duration, "
            f"got {sched.lock_ttl_seconds}s against {sched.hold_minutes}min"
        )
    if config.booking.reference_max_attempts < 1:
        raise ValueError(
            "REFERENCE_MAX_ATTEMPTS must be >= 1, "
            f"got {config.booking.reference_max_attempts}"
        )
    if config.notifications.log_size < 1:
        raise ValueError(
            f"NOTIFICATION_LOG_SIZE must be >= 1, got {config.notifications.log_size}"
        )
    if not config.store.namespace:
        raise ValueError("REDIS_NAMESPACE must not be empty")


def load_config() -> AppConfig:
    """Load and validate application configuration."""
    config = AppConfig()
    _validate_config(config)
    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        handlers=[request_id_handler()],
    )
    logger.info("Configuration loaded for '%s'", config.service_name)
    return config


# Singleton instance
settings = load_config()
