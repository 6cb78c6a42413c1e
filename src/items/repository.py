"""Item repository for the collected_items table.

``content_url`` carries a UNIQUE constraint; batch inserts use
``ON CONFLICT DO NOTHING`` so a URL already written by another source or
a concurrent pass is silently treated as existing.
"""

import logging
from datetime import datetime
from typing import Any

from src.items.schemas import CollectedItem
from src.storage.database import Database, storage_errors

logger = logging.getLogger(__name__)

_CREATE_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS collected_items (
    item_id      TEXT PRIMARY KEY,
    source_id    TEXT NOT NULL REFERENCES tracked_sources(source_id),
    source_name  TEXT NOT NULL DEFAULT '',
    title        TEXT NOT NULL DEFAULT '',
    author       TEXT NOT NULL DEFAULT '',
    summary      TEXT NOT NULL DEFAULT '',
    content      TEXT,
    content_url  TEXT NOT NULL UNIQUE,
    cover_url    TEXT NOT NULL DEFAULT '',
    origin_url   TEXT NOT NULL DEFAULT '',
    published_at TIMESTAMPTZ,
    collected_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
);

CREATE INDEX IF NOT EXISTS idx_collected_items_source
    ON collected_items(source_id, published_at DESC);
CREATE INDEX IF NOT EXISTS idx_collected_items_collected_at
    ON collected_items(collected_at DESC);
"""

_BATCH_INSERT_SQL = """
INSERT INTO collected_items (
    item_id, source_id, source_name, title, author, summary, content,
    content_url, cover_url, origin_url, published_at, collected_at
)
SELECT * FROM unnest(
    $1::text[], $2::text[], $3::text[], $4::text[], $5::text[], $6::text[],
    $7::text[], $8::text[], $9::text[], $10::text[], $11::timestamptz[],
    $12::timestamptz[]
)
ON CONFLICT (content_url) DO NOTHING
RETURNING content_url
"""


def _row_to_item(row: Any) -> CollectedItem:
    """Convert an asyncpg Record to a CollectedItem."""
    return CollectedItem(
        item_id=row["item_id"],
        source_id=row["source_id"],
        source_name=row["source_name"],
        title=row["title"],
        author=row["author"],
        summary=row["summary"],
        content=row["content"] or "",
        content_url=row["content_url"],
        cover_url=row["cover_url"],
        origin_url=row["origin_url"],
        published_at=row["published_at"],
        collected_at=row["collected_at"],
    )


class ItemRepository:
    """Persistence and lookup for collected items."""

    def __init__(self, database: Database) -> None:
        self._db = database

    async def create_table(self) -> None:
        """Create the collected_items table and indexes (idempotent)."""
        await self._db.execute(_CREATE_TABLE_SQL)
        logger.info("Collected items table ensured")

    async def exists_by_content_url(self, content_url: str) -> bool:
        async with storage_errors("check item existence"):
            found = await self._db.fetchval(
                "SELECT EXISTS(SELECT 1 FROM collected_items WHERE content_url = $1)",
                content_url,
            )
        return bool(found)

    async def batch_create(self, items: list[CollectedItem]) -> list[CollectedItem]:
        """Insert items in one statement, skipping content URLs already stored.

        Returns:
            The subset of ``items`` that was actually inserted.
        """
        if not items:
            return []

        async with storage_errors("insert items"):
            rows = await self._db.fetch(
                _BATCH_INSERT_SQL,
                [i.item_id for i in items],
                [i.source_id for i in items],
                [i.source_name for i in items],
                [i.title for i in items],
                [i.author for i in items],
                [i.summary for i in items],
                [i.content or None for i in items],
                [i.content_url for i in items],
                [i.cover_url for i in items],
                [i.origin_url for i in items],
                [i.published_at for i in items],
                [i.collected_at for i in items],
            )

        inserted_urls = {row["content_url"] for row in rows}
        inserted = [i for i in items if i.content_url in inserted_urls]
        if len(inserted) < len(items):
            logger.info(
                "Skipped %d items whose content URL was already stored",
                len(items) - len(inserted),
            )
        return inserted

    async def get_by_content_url(self, content_url: str) -> CollectedItem | None:
        async with storage_errors("get item"):
            row = await self._db.fetchrow(
                "SELECT * FROM collected_items WHERE content_url = $1", content_url
            )
        return _row_to_item(row) if row else None

    async def list_items(
        self,
        *,
        source_id: str | None = None,
        keyword: str | None = None,
        since: datetime | None = None,
        until: datetime | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> tuple[list[CollectedItem], int]:
        """Paginated, filtered listing ordered by publish time (newest first).

        Args:
            source_id: Restrict to one source.
            keyword: Case-insensitive title match.
            since: Lower bound on publish time (inclusive).
            until: Upper bound on publish time (inclusive).
            limit: Page size.
            offset: Rows to skip.

        Returns:
            (items, total matching rows)
        """
        conditions: list[str] = []
        params: list[Any] = []
        idx = 1

        if source_id:
            conditions.append(f"source_id = ${idx}")
            params.append(source_id)
            idx += 1
        if keyword:
            conditions.append(f"title ILIKE ${idx}")
            params.append(f"%{keyword}%")
            idx += 1
        if since is not None:
            conditions.append(f"published_at >= ${idx}")
            params.append(since)
            idx += 1
        if until is not None:
            conditions.append(f"published_at <= ${idx}")
            params.append(until)
            idx += 1

        where_clause = " WHERE " + " AND ".join(conditions) if conditions else ""

        async with storage_errors("list items"):
            total = await self._db.fetchval(
                f"SELECT COUNT(*) FROM collected_items{where_clause}", *params
            )
            rows = await self._db.fetch(
                f"""
                SELECT * FROM collected_items{where_clause}
                ORDER BY published_at DESC NULLS LAST
                LIMIT ${idx} OFFSET ${idx + 1}
                """,
                *params,
                limit,
                offset,
            )
        return [_row_to_item(r) for r in rows], total or 0

    async def list_collected_since(
        self, since: datetime, limit: int = 100
    ) -> list[CollectedItem]:
        """Items collected at or after ``since``, newest first."""
        async with storage_errors("list recent items"):
            rows = await self._db.fetch(
                """
                SELECT * FROM collected_items
                WHERE collected_at >= $1
                ORDER BY collected_at DESC
                LIMIT $2
                """,
                since,
                limit,
            )
        return [_row_to_item(r) for r in rows]

    async def delete(self, item_id: str) -> bool:
        """Delete one item. Returns True if a row was removed."""
        async with storage_errors("delete item"):
            result = await self._db.execute(
                "DELETE FROM collected_items WHERE item_id = $1", item_id
            )
        return result.endswith("1")
