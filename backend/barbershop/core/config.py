# backend/barbershop/core/config.py
import logging
import os
from typing import Literal, Optional

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
import pytz

from .constants import BRAND_NAME

logger = logging.getLogger(__name__)


def is_running_tests() -> bool:
    """
    Detect if code is running under pytest.

    PYTEST_CURRENT_TEST is set automatically by pytest during test runs, and is
    not expected to be present in production environments.
    """
    return os.getenv("PYTEST_CURRENT_TEST") is not None


class Settings(BaseSettings):
    app_name: str = BRAND_NAME
    environment: Literal["development", "test", "staging", "production"] = "development"
    log_level: str = Field(default="INFO", description="Root log level for the API process")

    # Persistence
    database_url: str = Field(
        default="sqlite+pysqlite:///./barbershop.db",
        description="SQLAlchemy database URL",
    )
    database_echo: bool = False
    backend_timeout_seconds: float = Field(
        default=12.0,
        gt=0,
        description="Seconds before a persistence call is reported as failed",
    )

    # Cache
    redis_url: Optional[str] = Field(
        default=None,
        description="Redis URL for the shared cache; in-memory cache when unset",
    )
    taken_slots_cache_ttl_seconds: int = Field(default=30, ge=0)
    catalog_cache_ttl_seconds: int = Field(default=300, ge=0)

    # Scheduling
    business_timezone: str = Field(
        default="America/La_Paz",
        description="IANA timezone the shops operate in",
    )
    bookable_start_hour: int = Field(default=9, ge=0, le=23)
    bookable_end_hour: int = Field(default=21, ge=1, le=24)
    default_opening_hour: int = Field(default=9, ge=0, le=23)
    default_closing_hour: int = Field(default=21, ge=1, le=24)
    booking_horizon_days: int = Field(default=14, ge=1)

    # Finance
    commission_rate: float = Field(default=0.03, ge=0, le=1)

    model_config = SettingsConfigDict(
        env_file=".env" if not os.getenv("CI") else None,
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("business_timezone")
    @classmethod
    def _validate_timezone(cls, value: str) -> str:
        try:
            pytz.timezone(value)
        except pytz.UnknownTimeZoneError as exc:
            raise ValueError(f"Unknown timezone: {value}") from exc
        return value

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalize_log_level(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip().upper()
        return value

    @model_validator(mode="after")
    def _check_hour_windows(self) -> "Settings":
        if self.bookable_end_hour <= self.bookable_start_hour:
            raise ValueError("bookable_end_hour must be after bookable_start_hour")
        if self.default_closing_hour <= self.default_opening_hour:
            raise ValueError("default_closing_hour must be after default_opening_hour")
        return self


settings = Settings()
logger.info(
    "[CONFIG] environment=%s timezone=%s bookable=%02d:00-%02d:00",
    settings.environment,
    settings.business_timezone,
    settings.bookable_start_hour,
    settings.bookable_end_hour,
)
