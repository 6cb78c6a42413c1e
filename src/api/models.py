"""
Request and response models for the article-tracker API.
"""

from typing import Literal

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Response model for errors."""

    detail: str = Field(
        ...,
        description="Error message",
    )
    error_type: str = Field(
        default="error",
        description="Error category",
    )


class ComponentHealth(BaseModel):
    """Health of one infrastructure dependency."""

    status: str = Field(..., description="healthy or unhealthy")
    latency_ms: float | None = None
    details: dict | None = None


class HealthResponse(BaseModel):
    """Response model for health check."""

    status: str = Field(
        ...,
        description="Overall service status: healthy or unhealthy",
    )
    components: dict[str, ComponentHealth] = Field(default_factory=dict)
    session_authenticated: bool = Field(
        default=False,
        description="Whether the browser session currently holds a login",
    )
    scheduler_running: bool = False
    version: str = "0.1.0"


# ── Sources ──────────────────────────────────────────


class SubscribeRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=200, description="Remote source name")
    alias: str = Field(default="", max_length=200, description="Optional display alias")


class SourceItem(BaseModel):
    source_id: str
    name: str
    alias: str = ""
    remote_id: str
    watermark: str = ""
    is_active: bool = True
    created_at: str | None = None
    updated_at: str | None = None


class SourcesListResponse(BaseModel):
    sources: list[SourceItem] = Field(default_factory=list)
    total: int = 0
    has_more: bool = False
    latency_ms: float = 0.0


# ── Items ────────────────────────────────────────────


class ItemSummary(BaseModel):
    """Collected item without its HTML body."""

    item_id: str
    source_id: str
    source_name: str
    title: str
    author: str = ""
    summary: str = ""
    content_url: str
    cover_url: str = ""
    has_content: bool = False
    published_at: str | None = None
    collected_at: str | None = None


class ItemsListResponse(BaseModel):
    items: list[ItemSummary] = Field(default_factory=list)
    total: int = 0
    has_more: bool = False
    latency_ms: float = 0.0


# ── Crawl ────────────────────────────────────────────


class SourceCrawlSummary(BaseModel):
    source_id: str
    source_name: str
    items_listed: int = 0
    items_collected: int = 0
    items_skipped: int = 0
    content_failures: int = 0
    error: str | None = None


class CrawlPassResponse(BaseModel):
    status: str = Field(..., description="success, partial or empty")
    sources_total: int = 0
    sources_failed: int = 0
    items_collected: int = 0
    sources: list[SourceCrawlSummary] = Field(default_factory=list)
    elapsed_seconds: float = 0.0


# ── Notifications ────────────────────────────────────


class NotifierConfigModel(BaseModel):
    enabled: bool = False
    period: Literal["daily", "hourly"] = "daily"
    notify_time: str = Field(default="09:00", pattern=r"^([01]?\d|2[0-3]):[0-5]\d$")
    webhook_url: str = ""
    title: str = ""


class NotifyResponse(BaseModel):
    delivered: bool
    items: int = 0
