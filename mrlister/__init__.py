"""
MrLister
========
Marketplace export and real-time inventory sync.

Main components:
- schema: Canonical inventory record
- adapters: Marketplace vocabularies and per-target export rows
- import_export: CSV serialization and the export orchestrator
- storage: Inventory store seam (in-memory implementation included)
- publisher: Live marketplace publishing (stubbed OAuth)
- sync: Real-time inventory sync socket (server hub and reconnecting client)
"""

from .schema import (
    InventoryRecord,
    ListingStatus,
)
from .errors import (
    MrListerError,
    UnsupportedTargetError,
    NoRecordsError,
    RecordLookupError,
    ChannelTransportError,
    MalformedEnvelopeError,
)
from .adapters import (
    get_target,
    supported_targets,
    translate_condition,
    translate_category,
)
from .import_export import (
    MarketplaceExporter,
    serialize,
)

# The API server and sync client pull in FastAPI/websockets; import them explicitly:
# from mrlister.web_app import create_app
# from mrlister.sync import SyncHub, SyncClient

__version__ = "1.0.0"

__all__ = [
    "InventoryRecord",
    "ListingStatus",
    "MrListerError",
    "UnsupportedTargetError",
    "NoRecordsError",
    "RecordLookupError",
    "ChannelTransportError",
    "MalformedEnvelopeError",
    "get_target",
    "supported_targets",
    "translate_condition",
    "translate_category",
    "MarketplaceExporter",
    "serialize",
]
