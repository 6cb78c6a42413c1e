"""Database repository for the tracked_sources table."""

import logging

from src.sources.schemas import TrackedSource
from src.storage.database import Database, storage_errors

logger = logging.getLogger(__name__)

_CREATE_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS tracked_sources (
    source_id   TEXT PRIMARY KEY,
    name        TEXT NOT NULL UNIQUE,
    alias       TEXT NOT NULL DEFAULT '',
    remote_id   TEXT NOT NULL,
    home_url    TEXT NOT NULL DEFAULT '',
    watermark   TEXT NOT NULL DEFAULT '',
    is_active   BOOLEAN NOT NULL DEFAULT TRUE,
    created_at  TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    updated_at  TIMESTAMPTZ NOT NULL DEFAULT NOW()
);

CREATE INDEX IF NOT EXISTS idx_tracked_sources_active
    ON tracked_sources(is_active) WHERE is_active = TRUE;
"""

_INSERT_SQL = """
INSERT INTO tracked_sources (source_id, name, alias, remote_id, home_url, watermark, is_active)
VALUES ($1, $2, $3, $4, $5, $6, $7)
RETURNING *
"""


def _record_to_source(record) -> TrackedSource:
    """Convert an asyncpg Record to a TrackedSource dataclass."""
    return TrackedSource(
        source_id=record["source_id"],
        name=record["name"],
        alias=record["alias"],
        remote_id=record["remote_id"],
        home_url=record["home_url"],
        watermark=record["watermark"],
        is_active=record["is_active"],
        created_at=record["created_at"],
        updated_at=record["updated_at"],
    )


class SourcesRepository:
    """CRUD operations for the tracked_sources table."""

    def __init__(self, database: Database) -> None:
        self._db = database

    async def create_table(self) -> None:
        """Create the tracked_sources table and indexes (idempotent)."""
        await self._db.execute(_CREATE_TABLE_SQL)
        logger.info("Tracked sources table ensured")

    async def create(self, source: TrackedSource) -> TrackedSource:
        """Insert a new source and return it with DB-assigned timestamps."""
        async with storage_errors("create source"):
            row = await self._db.fetchrow(
                _INSERT_SQL,
                source.source_id,
                source.name,
                source.alias,
                source.remote_id,
                source.home_url,
                source.watermark,
                source.is_active,
            )
        logger.info("Created source %s (%s)", source.name, source.source_id)
        return _record_to_source(row)

    async def get_by_id(self, source_id: str) -> TrackedSource | None:
        async with storage_errors("get source"):
            row = await self._db.fetchrow(
                "SELECT * FROM tracked_sources WHERE source_id = $1", source_id
            )
        return _record_to_source(row) if row else None

    async def get_by_name(self, name: str) -> TrackedSource | None:
        async with storage_errors("get source by name"):
            row = await self._db.fetchrow(
                "SELECT * FROM tracked_sources WHERE name = $1", name
            )
        return _record_to_source(row) if row else None

    async def list_active(self) -> list[TrackedSource]:
        """Fetch all active sources, oldest subscription first."""
        async with storage_errors("list active sources"):
            rows = await self._db.fetch(
                "SELECT * FROM tracked_sources WHERE is_active = TRUE ORDER BY created_at"
            )
        return [_record_to_source(r) for r in rows]

    async def list_sources(
        self,
        active_only: bool = False,
        limit: int = 50,
        offset: int = 0,
    ) -> tuple[list[TrackedSource], int]:
        """Paginated list. Returns (sources, total)."""
        where_clause = " WHERE is_active = TRUE" if active_only else ""

        async with storage_errors("list sources"):
            total = await self._db.fetchval(
                f"SELECT COUNT(*) FROM tracked_sources{where_clause}"
            )
            rows = await self._db.fetch(
                f"""
                SELECT * FROM tracked_sources{where_clause}
                ORDER BY created_at
                LIMIT $1 OFFSET $2
                """,
                limit,
                offset,
            )
        return [_record_to_source(r) for r in rows], total or 0

    async def update_watermark(self, source_id: str, watermark: str) -> bool:
        """Record the newest observed content URL. Returns True if a row changed."""
        async with storage_errors("update watermark"):
            result = await self._db.execute(
                """
                UPDATE tracked_sources SET watermark = $2, updated_at = NOW()
                WHERE source_id = $1
                """,
                source_id,
                watermark,
            )
        return result.endswith("1")

    async def deactivate(self, source_id: str) -> bool:
        """Soft-disable a source. Returns True if a row was updated."""
        async with storage_errors("deactivate source"):
            result = await self._db.execute(
                """
                UPDATE tracked_sources SET is_active = FALSE, updated_at = NOW()
                WHERE source_id = $1 AND is_active = TRUE
                """,
                source_id,
            )
        return result.endswith("1")

    async def reactivate(self, source_id: str) -> bool:
        """Re-enable a deactivated source. Returns True if a row was updated."""
        async with storage_errors("reactivate source"):
            result = await self._db.execute(
                """
                UPDATE tracked_sources SET is_active = TRUE, updated_at = NOW()
                WHERE source_id = $1 AND is_active = FALSE
                """,
                source_id,
            )
        return result.endswith("1")
