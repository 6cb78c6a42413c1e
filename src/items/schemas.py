"""
Item schemas: the listing-stage summary returned by the remote platform
and the collected record persisted in ``collected_items``.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field


def _utc_now() -> datetime:
    """Return current UTC time with timezone info."""
    return datetime.now(timezone.utc)


class RemoteItemSummary(BaseModel):
    """One entry of the remote item list, prior to the detail fetch.

    Field aliases follow the remote JSON (``link`` is the content URL,
    ``digest`` the summary, timestamps are unix seconds).
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    aid: str = ""
    title: str = ""
    summary: str = Field(default="", alias="digest")
    cover_url: str = Field(default="", alias="cover")
    content_url: str = Field(default="", alias="link")
    create_time: int = 0
    update_time: int = 0
    author: str = ""
    origin_url: str = Field(default="", alias="source_url")

    @property
    def published_at(self) -> datetime | None:
        if not self.create_time:
            return None
        return datetime.fromtimestamp(self.create_time, tz=timezone.utc)


@dataclass
class CollectedItem:
    """A persisted item from the collected_items table.

    ``content_url`` is the global dedup key. ``content`` is empty when the
    detail fetch failed; such records are kept so metadata is not lost.
    """

    source_id: str
    source_name: str
    content_url: str
    title: str = ""
    author: str = ""
    summary: str = ""
    content: str = ""
    cover_url: str = ""
    origin_url: str = ""
    published_at: datetime | None = None
    item_id: str = field(default_factory=lambda: f"item_{uuid.uuid4().hex[:12]}")
    collected_at: datetime = field(default_factory=_utc_now)

    @classmethod
    def from_summary(
        cls,
        summary: RemoteItemSummary,
        *,
        source_id: str,
        source_name: str,
        content: str = "",
    ) -> "CollectedItem":
        return cls(
            source_id=source_id,
            source_name=source_name,
            content_url=summary.content_url,
            title=summary.title,
            author=summary.author,
            summary=summary.summary,
            content=content,
            cover_url=summary.cover_url,
            origin_url=summary.origin_url,
            published_at=summary.published_at,
        )
