"""Data models for the sources module."""

import uuid
from dataclasses import dataclass, field
from datetime import datetime


@dataclass
class TrackedSource:
    """A subscribed remote account whose published items are collected.

    ``remote_id`` is the platform identifier resolved by a source search at
    subscribe time. ``watermark`` is the content URL of the most recent item
    observed by the last pass that persisted something; empty until then.
    Sources are never hard-deleted, only deactivated.
    """

    name: str
    remote_id: str
    alias: str = ""
    home_url: str = ""
    watermark: str = ""
    is_active: bool = True
    source_id: str = field(default_factory=lambda: f"src_{uuid.uuid4().hex[:12]}")
    created_at: datetime | None = None
    updated_at: datetime | None = None
