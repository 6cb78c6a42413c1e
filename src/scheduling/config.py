"""Scheduler configuration (``SCHEDULER_*`` environment variables)."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class SchedulerConfig(BaseSettings):
    """Configuration for periodic crawl and notification jobs."""

    model_config = SettingsConfigDict(
        env_prefix="SCHEDULER_",
        case_sensitive=False,
        extra="ignore",
    )

    interval_minutes: int = Field(
        default=10,
        description="Crawl interval in minutes, accepted range 5-1440",
    )
    exact_interval: bool = Field(
        default=False,
        description=(
            "Fire every interval_minutes exactly instead of the cron mapping "
            "(which treats e.g. 90 as hourly at minute 30)"
        ),
    )
    run_on_start: bool = Field(
        default=False,
        description="Run one crawl pass immediately when the scheduler starts",
    )
    timezone: str | None = Field(
        default=None,
        description="IANA timezone for cron triggers (default: local time)",
    )
    misfire_grace_seconds: int = Field(default=60, ge=1)
