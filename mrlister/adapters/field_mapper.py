"""
Marketplace Field Mapper
========================
Target descriptors and the shared field transformers used by every
marketplace export format.

A MarketplaceTarget bundles:
- the exact column list (and order) the marketplace import expects
- a pure function InventoryRecord → {column: value}
- the word used in the export filename ("products", "listings", ...)

Targets are plain data registered by name (see platform_configs), so adding a
marketplace means adding one descriptor, not a subclass.

EXAMPLE:
    record.title (81 chars) →
        eBay: "Title" (hard cut to 80)
        Etsy: "title" (hard cut to 140)
        Amazon: "item-name" (hard cut to 255)
"""

import re
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Dict, Any, List, Optional, Callable, Sequence

from ..schema.inventory_record import InventoryRecord


RowValue = Any
Row = Dict[str, RowValue]


@dataclass(frozen=True)
class MarketplaceTarget:
    """
    Export format for one marketplace.

    map_record must return a value (possibly "") for every header, nothing more.
    """
    name: str
    headers: Sequence[str]
    map_record: Callable[[InventoryRecord], Row]
    file_label: str
    display_name: Optional[str] = None

    def map_record_to_row(self, record: InventoryRecord) -> Row:
        """Map a record and check the row covers exactly this target's headers"""
        row = self.map_record(record)
        validate_row(self, row)
        return row

    def build_filename(self, day: Optional[date] = None) -> str:
        """{target}_{label}_{YYYYMMDD}.csv"""
        day = day or date.today()
        return f"{self.name.lower()}_{self.file_label}_{day.strftime('%Y%m%d')}.csv"


def validate_row(target: MarketplaceTarget, row: Row) -> None:
    """
    Raises:
        ValueError: If the row is missing headers or carries extra keys
    """
    expected = set(target.headers)
    actual = set(row.keys())
    if expected == actual:
        return

    missing = [h for h in target.headers if h not in actual]
    extra = sorted(actual - expected)
    raise ValueError(
        f"{target.name} row does not match its headers "
        f"(missing: {missing or 'none'}, extra: {extra or 'none'})"
    )


# ============================================================================
# Common field transformers
# ============================================================================

def truncate(value: Optional[str], max_length: Optional[int]) -> str:
    """Hard cut to max_length characters, no ellipsis"""
    if not value:
        return ""
    if max_length is None:
        return value
    return value[:max_length]


def format_number(value: Any) -> str:
    """
    Render prices and counts the way marketplace imports expect them.

    12.5 → "12.5", 10.00 → "10", None → ""
    """
    if value is None or value == "":
        return ""
    number = value if isinstance(value, Decimal) else Decimal(str(value))
    if number == number.to_integral_value():
        return str(int(number))
    return format(number.normalize(), "f")


def make_handle(record: InventoryRecord) -> str:
    """
    URL-safe handle derived from the SKU, falling back to the item id.

    "VTG-Lamp 01" → "vtg-lamp-01"
    """
    handle = re.sub(r"[^a-z0-9]+", "-", (record.sku or "").lower()).strip("-")
    return handle or f"item-{record.id}"


def image_slots(image_urls: List[str], count: int, field_prefix: str) -> Dict[str, str]:
    """
    Spread image URLs over numbered columns.

    Used for CSV platforms that need "image_1", "image_2", etc. Missing slots are
    empty strings so the column is never dropped.
    """
    result = {}
    for i in range(count):
        field_name = f"{field_prefix}{i + 1}"
        result[field_name] = image_urls[i] if i < len(image_urls) else ""
    return result


def join_tags(*tags: Optional[str]) -> str:
    """Comma-join tag values, keeping empty positions like the import templates do"""
    return ",".join(tag or "" for tag in tags)
