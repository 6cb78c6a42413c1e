"""Crawl pipeline configuration (``CRAWLER_*`` environment variables)."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class CrawlerConfig(BaseSettings):
    """Configuration for crawl passes."""

    model_config = SettingsConfigDict(
        env_prefix="CRAWLER_",
        case_sensitive=False,
        extra="ignore",
    )

    concurrency: int = Field(
        default=3,
        ge=1,
        le=32,
        description="Maximum number of sources crawled at the same time",
    )
    fetch_count: int = Field(
        default=10,
        ge=1,
        le=100,
        description="Items requested per source listing",
    )
    notify_title: str = Field(
        default="New items collected",
        description="Title used when a pass pushes its new items to a notifier",
    )
