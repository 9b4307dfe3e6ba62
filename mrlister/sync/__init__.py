"""Real-time inventory sync: wire protocol, server channel and reconnecting client"""

from .protocol import (
    InventoryAction,
    InventoryMutationEvent,
    ConnectionState,
    parse_envelope,
)
from .channel import SyncHub, SyncConnection
from .client import SyncClient

__all__ = [
    "InventoryAction",
    "InventoryMutationEvent",
    "ConnectionState",
    "parse_envelope",
    "SyncHub",
    "SyncConnection",
    "SyncClient",
]
