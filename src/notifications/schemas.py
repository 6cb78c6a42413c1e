"""Notifier settings stored in the single-row ``notifier_config`` table."""

from dataclasses import dataclass
from datetime import datetime

DEFAULT_TITLE = "微信公众号文章推送"

VALID_PERIODS = ("daily", "hourly")


@dataclass
class NotifierConfig:
    """Digest push settings.

    ``period`` is ``daily`` (once at ``notify_time``, covering the last
    24 hours) or ``hourly`` (top of every hour, covering the last hour).
    """

    enabled: bool = False
    period: str = "daily"
    notify_time: str = "09:00"
    webhook_url: str = ""
    title: str = DEFAULT_TITLE
    updated_at: datetime | None = None

    @property
    def is_deliverable(self) -> bool:
        return self.enabled and bool(self.webhook_url)

    @property
    def window_hours(self) -> int:
        return 1 if self.period == "hourly" else 24
