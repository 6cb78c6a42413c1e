"""Items: collected content records and their repository.

Components:
- RemoteItemSummary: listing-stage record parsed from remote JSON
- CollectedItem: Dataclass mapping to the collected_items table
- ItemRepository: dedup-aware persistence keyed by content URL
"""

from src.items.repository import ItemRepository
from src.items.schemas import CollectedItem, RemoteItemSummary

__all__ = [
    "CollectedItem",
    "ItemRepository",
    "RemoteItemSummary",
]
