"""Runtime settings for the ordering service.

Loaded from environment variables prefixed ``ORDERING_`` and from a local
``.env`` file when present.
"""

from decimal import Decimal
from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class OrderingSettings(BaseSettings):
    # Pricing
    tax_rate: Decimal = Decimal("0.085")
    currency: str = "USD"

    # Collaborator call budgets
    payment_timeout_seconds: float = Field(default=10.0, gt=0)
    notification_timeout_seconds: float = Field(default=5.0, gt=0)

    # Cart storage
    cart_store_backend: Literal["memory", "redis"] = "memory"
    cart_ttl_seconds: int = Field(default=24 * 60 * 60, gt=0)
    redis_url: str = "redis://localhost:6379/0"
    redis_key_prefix: str = "localeats:cart:"

    # Order lifecycle
    default_cancellation_reason: str = "User cancelled"
    fallback_delivery_minutes: int = 45
    fallback_prep_minutes: int = 20

    # Orders listing
    default_page_size: int = 20
    max_page_size: int = 100

    # Error responses carry exception text only when enabled
    expose_error_details: bool = False

    # Logging; an unset level follows PROTEAN_ENV
    log_level: Optional[str] = None
    log_format: Literal["auto", "json", "console"] = "auto"
    log_dir: Optional[str] = "logs"

    model_config = SettingsConfigDict(
        env_prefix="ORDERING_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


_settings: Optional[OrderingSettings] = None


def get_settings() -> OrderingSettings:
    """Return the OrderingSettings instance (singleton pattern)."""
    global _settings
    if _settings is None:
        _settings = OrderingSettings()
    return _settings


def set_settings_for_test(**kwargs) -> OrderingSettings:
    """For testing only: override the settings instance with new values."""
    global _settings
    _settings = OrderingSettings(**kwargs)
    return _settings


def reset_settings() -> None:
    global _settings
    _settings = None
