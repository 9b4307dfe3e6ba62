"""
Error Types
===========
Failures raised by the export and sync layers.

Export errors are synchronous and reach the caller of the exporter.
Sync errors stay inside one connection and only show up as a state change.
"""


class MrListerError(Exception):
    """Base class for all MrLister errors"""


class UnsupportedTargetError(MrListerError):
    """Requested marketplace is not a registered export target"""

    def __init__(self, target_name: str, supported=None):
        self.target_name = target_name
        self.supported = list(supported or [])
        message = f'Marketplace "{target_name}" is not supported for CSV export'
        if self.supported:
            message += f" (available: {', '.join(self.supported)})"
        super().__init__(message)


class NoRecordsError(MrListerError):
    """Nothing left to export after resolving and validating records"""


class RecordLookupError(MrListerError):
    """A single inventory lookup failed"""

    def __init__(self, record_id, cause: Exception = None):
        self.record_id = record_id
        self.cause = cause
        super().__init__(f"Lookup of inventory item {record_id} failed: {cause}")


class ChannelTransportError(MrListerError):
    """Socket-level failure on a sync connection"""


class MalformedEnvelopeError(MrListerError):
    """Inbound sync message is not a valid typed envelope"""


class MarketplaceConnectionError(MrListerError):
    """Stubbed marketplace connect/publish call failed"""
