"""CSV export of inventory in marketplace import formats"""

from .csv_handler import (
    escape_csv_value,
    serialize,
    split_csv_line,
    parse_csv,
)
from .exporter import (
    MarketplaceExporter,
    ExportResult,
    ExportFile,
)

__all__ = [
    "escape_csv_value",
    "serialize",
    "split_csv_line",
    "parse_csv",
    "MarketplaceExporter",
    "ExportResult",
    "ExportFile",
]
