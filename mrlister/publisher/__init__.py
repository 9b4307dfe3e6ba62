"""Live marketplace publishing (stubbed OAuth)"""

from .marketplace_publisher import (
    MarketplacePublisher,
    MarketplaceConnection,
    PublishResult,
    ListingsResult,
    SyncResult,
)

__all__ = [
    "MarketplacePublisher",
    "MarketplaceConnection",
    "PublishResult",
    "ListingsResult",
    "SyncResult",
]
