"""Configuration management for Delivery Boy."""

from datetime import time
from typing import List, Literal, Optional

import pytz
from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings

WEEKDAYS = (
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
    "sunday",
)


class ConfigError(Exception):
    """Raised when required configuration is missing at startup."""

    pass


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Webhook delivery
    discord_webhook_url: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("DISCORD_WEBHOOK_URL", "WEBHOOK_URLS"),
        description="Comma-separated list of webhook URLs",
    )
    webhook_username: str = Field(default="Delivery Boy")

    # Inbound auth
    key: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("KEY", "API_KEY"),
    )

    # Bucketing
    timezone: str = Field(default="America/Los_Angeles")
    digest_period: Literal["daily", "weekly"] = Field(default="daily")
    cutoff_hour: int = Field(default=10)
    send_time: time = Field(default=time(10, 0, 0))
    boundary_weekday: str = Field(default="sunday")

    # Commentary thresholds
    too_few_below: int = Field(default=5)
    too_many_above: int = Field(default=5)
    weekly_too_many_above: int = Field(default=10)
    curator_name: str = Field(default="Matei")

    # Storage (unset = in-memory)
    database_url: Optional[str] = Field(default=None)

    # Web server
    host: str = Field(default="localhost")
    port: int = Field(default=8099)

    # HTTP client defaults
    http_timeout_seconds: float = Field(default=30.0)

    # Bot configuration
    log_level: str = Field(default="INFO")
    dry_run: bool = Field(default=False)
    log_json: bool = Field(default=False, description="Emit logs as JSON lines")

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
        "populate_by_name": True,
    }

    @field_validator("timezone")
    @classmethod
    def _check_timezone(cls, value: str) -> str:
        try:
            pytz.timezone(value)
        except pytz.UnknownTimeZoneError as exc:
            raise ValueError(f"Unknown time zone: {value}") from exc
        return value

    @field_validator("cutoff_hour")
    @classmethod
    def _check_cutoff_hour(cls, value: int) -> int:
        if not 0 <= value <= 23:
            raise ValueError("cutoff_hour must be between 0 and 23")
        return value

    @field_validator("boundary_weekday")
    @classmethod
    def _check_weekday(cls, value: str) -> str:
        normalized = value.strip().lower()
        if normalized not in WEEKDAYS:
            raise ValueError(f"Unknown weekday: {value}")
        return normalized

    @property
    def boundary_weekday_index(self) -> int:
        """Weekday as used by ``datetime.weekday()`` (Monday is 0)."""
        return WEEKDAYS.index(self.boundary_weekday)

    def get_webhook_urls(self) -> List[str]:
        """Return parsed webhook URL list."""
        if not self.discord_webhook_url:
            return []
        return [
            url.strip() for url in self.discord_webhook_url.split(",") if url.strip()
        ]

    def validate_required(self) -> None:
        """Ensure everything needed to serve and send digests is configured.

        Raises:
            ConfigError: Naming every missing variable.
        """
        missing = []
        if not self.get_webhook_urls():
            missing.append("DISCORD_WEBHOOK_URL")
        if not self.key:
            missing.append("KEY")
        if missing:
            raise ConfigError(
                "Cannot run! Missing required configuration: " + ", ".join(missing)
            )


# Global settings instance
settings = Settings()
