"""Notification delivery configuration (``NOTIFY_*`` environment variables)."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class NotificationConfig(BaseSettings):
    """Delivery bounds for the digest webhook."""

    model_config = SettingsConfigDict(
        env_prefix="NOTIFY_",
        case_sensitive=False,
        extra="ignore",
    )

    webhook_timeout_seconds: float = Field(default=10.0, gt=0)
    max_items: int = Field(
        default=100,
        ge=1,
        le=1000,
        description="Most items a digest window query returns",
    )
    max_display: int = Field(
        default=10,
        ge=1,
        le=50,
        description="Items listed in one message; the rest are summarized",
    )
