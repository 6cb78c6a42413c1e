"""Database repository for the single-row notifier_config table."""

import logging

from src.notifications.schemas import NotifierConfig
from src.storage.database import Database, storage_errors

logger = logging.getLogger(__name__)

_CREATE_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS notifier_config (
    id          SMALLINT PRIMARY KEY DEFAULT 1 CHECK (id = 1),
    enabled     BOOLEAN NOT NULL DEFAULT FALSE,
    period      TEXT NOT NULL DEFAULT 'daily',
    notify_time TEXT NOT NULL DEFAULT '09:00',
    webhook_url TEXT NOT NULL DEFAULT '',
    title       TEXT NOT NULL DEFAULT '',
    updated_at  TIMESTAMPTZ NOT NULL DEFAULT NOW()
);
"""

_UPSERT_SQL = """
INSERT INTO notifier_config (id, enabled, period, notify_time, webhook_url, title, updated_at)
VALUES (1, $1, $2, $3, $4, $5, NOW())
ON CONFLICT (id) DO UPDATE SET
    enabled = EXCLUDED.enabled,
    period = EXCLUDED.period,
    notify_time = EXCLUDED.notify_time,
    webhook_url = EXCLUDED.webhook_url,
    title = EXCLUDED.title,
    updated_at = NOW()
RETURNING *
"""


def _record_to_config(record) -> NotifierConfig:
    config = NotifierConfig(
        enabled=record["enabled"],
        period=record["period"],
        notify_time=record["notify_time"],
        webhook_url=record["webhook_url"],
        updated_at=record["updated_at"],
    )
    if record["title"]:
        config.title = record["title"]
    return config


class NotifierConfigRepository:
    """Read and replace the notifier settings row."""

    def __init__(self, database: Database) -> None:
        self._db = database

    async def create_table(self) -> None:
        await self._db.execute(_CREATE_TABLE_SQL)
        logger.info("Notifier config table ensured")

    async def get(self) -> NotifierConfig:
        """Return stored settings, or disabled defaults when none are stored."""
        async with storage_errors("get notifier config"):
            row = await self._db.fetchrow("SELECT * FROM notifier_config WHERE id = 1")
        return _record_to_config(row) if row else NotifierConfig()

    async def upsert(self, config: NotifierConfig) -> NotifierConfig:
        async with storage_errors("save notifier config"):
            row = await self._db.fetchrow(
                _UPSERT_SQL,
                config.enabled,
                config.period,
                config.notify_time,
                config.webhook_url,
                config.title,
            )
        logger.info(
            "Notifier config saved (enabled=%s, period=%s)", config.enabled, config.period
        )
        return _record_to_config(row)
