"""Storage layer: asyncpg connection management."""

from src.storage.database import Database, storage_errors

__all__ = ["Database", "storage_errors"]
