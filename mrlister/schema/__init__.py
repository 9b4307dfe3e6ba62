"""Canonical inventory schema shared by export and publishing"""

from .inventory_record import (
    InventoryRecord,
    ListingStatus,
    CANONICAL_CONDITIONS,
)

__all__ = [
    "InventoryRecord",
    "ListingStatus",
    "CANONICAL_CONDITIONS",
]
