"""Inventory storage seam"""

from .inventory_store import (
    InventoryStore,
    InMemoryInventoryStore,
    get_store,
)

__all__ = [
    "InventoryStore",
    "InMemoryInventoryStore",
    "get_store",
]
