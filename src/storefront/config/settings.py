"""
Application settings with Pydantic v2 validation.

Loads configuration from ``STOREFRONT_*`` environment variables (or a
``.env`` file) with sensible defaults.
"""

from datetime import timedelta
from decimal import Decimal
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseSettings):
    """Persistence configuration."""

    model_config = SettingsConfigDict(env_prefix="STOREFRONT_DB_")

    url: str = "sqlite:///data/storefront.db"
    echo: bool = False
    busy_timeout: float = 30.0  # seconds a SQLite writer waits for the lock


class CommerceSettings(BaseSettings):
    """Business constants for checkout, carts and housekeeping."""

    model_config = SettingsConfigDict(env_prefix="STOREFRONT_")

    order_prefix: str = "ZF-"
    currency: str = "EUR"
    vat_rate: Decimal = Decimal("0.19")
    max_line_quantity: int = Field(default=10, ge=1)
    pending_order_timeout_hours: int = Field(default=24, ge=1)
    cart_retention_days: int = Field(default=7, ge=1)
    order_number_retries: int = Field(default=3, ge=1)

    @property
    def pending_order_timeout(self) -> timedelta:
        return timedelta(hours=self.pending_order_timeout_hours)

    @property
    def cart_retention(self) -> timedelta:
        return timedelta(days=self.cart_retention_days)


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_prefix="STOREFRONT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app_name: str = "Storefront Orders"
    app_version: str = "0.1.0"
    environment: Literal["development", "staging", "production", "test"] = "development"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["console", "json"] | None = None  # None: pick by environment

    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    commerce: CommerceSettings = Field(default_factory=CommerceSettings)


# Global settings instance
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get or create global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Reset settings (for testing)."""
    global _settings
    _settings = None
