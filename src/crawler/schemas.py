"""Crawl result records."""

from dataclasses import dataclass, field
from datetime import datetime

from src.items.schemas import CollectedItem


@dataclass
class SourceCrawlResult:
    """Outcome of crawling one source."""

    source_id: str
    source_name: str
    items_listed: int = 0
    items_collected: int = 0
    items_skipped: int = 0
    content_failures: int = 0
    watermark_advanced: bool = False
    error: str | None = None
    elapsed_seconds: float = 0.0

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class CrawlPassResult:
    """Summary of one crawl pass over every active source."""

    started_at: datetime
    sources_total: int = 0
    sources: list[SourceCrawlResult] = field(default_factory=list)
    new_items: list[CollectedItem] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    elapsed_seconds: float = 0.0

    @property
    def items_collected(self) -> int:
        return len(self.new_items)

    @property
    def sources_failed(self) -> int:
        return sum(1 for s in self.sources if not s.ok)

    @property
    def status(self) -> str:
        if not self.sources:
            return "empty"
        return "partial" if self.sources_failed else "success"
