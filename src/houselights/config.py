"""Application configuration using pydantic-settings."""

from functools import lru_cache
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    The cinema identifier and both upstream URLs have no default: a process
    started without them fails validation at startup.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # Upstream ticketing site
    cinema_id: str = Field(alias="CINEMA_ID", min_length=1)
    schedule_api_url: str = Field(alias="SCHEDULE_API", min_length=1)
    movies_api_url: str = Field(alias="MOVIES_API", min_length=1)
    cinema_timezone: str = "Europe/London"

    # Enrichment (booking simulation) settings
    booking_concurrency: int = Field(default=15, ge=1)
    booking_max_attempts: int = Field(default=3, ge=1)
    booking_backoff_seconds: float = Field(default=0.2, ge=0)
    http_timeout: float = 30.0

    # Screen detail cache
    day_boundary_tolerance_seconds: float = Field(default=60.0, ge=0)

    # API settings
    result_ttl_seconds: float = 60.0
    poll_interval_seconds: int = 0
    cors_origins: list[str] = [
        "http://localhost:5173",
        "http://localhost:5174",
    ]
    api_host: str = "0.0.0.0"
    api_port: int = 8000

    log_level: str = "INFO"

    @field_validator("cinema_timezone")
    @classmethod
    def check_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"unknown timezone: {value!r}") from e
        return value


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the cached settings instance (raises ValidationError if incomplete)."""
    return Settings()
