"""Sources: database-backed tracked source management."""

from src.sources.repository import SourcesRepository
from src.sources.schemas import TrackedSource

__all__ = [
    "SourcesRepository",
    "TrackedSource",
]
