"""
Canonical Inventory Record
==========================
The account's authoritative representation of a sellable item, independent of
any marketplace. Every export target reads from this one structure, which keeps
marketplace quirks out of the inventory itself.
"""

from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import List, Optional, Dict, Any
from enum import Enum


class ListingStatus(Enum):
    """Lifecycle of an inventory item"""
    DRAFT = "draft"
    LISTED = "listed"
    SOLD = "sold"


# Canonical condition vocabulary. Records may carry any string, these are the
# values the translators know about.
CANONICAL_CONDITIONS = (
    "new",
    "new with tags",
    "new without tags",
    "new with defects",
    "like new",
    "excellent",
    "very good",
    "good",
    "fair",
    "acceptable",
    "for parts or not working",
)


def _to_decimal(value: Any) -> Optional[Decimal]:
    if value is None or value == "":
        return None
    if isinstance(value, Decimal):
        return value
    try:
        # str() first so 12.5 stays 12.5 instead of its binary expansion
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValueError(f"Invalid decimal value: {value!r}")


@dataclass
class InventoryRecord:
    """
    A single inventory item as stored by the inventory store.

    Required fields:
        - id: stable identifier, never reassigned
        - title, description, category, condition
        - price: non-negative decimal
        - quantity: non-negative integer

    image_urls is ordered; the first entry is the primary photo.
    metadata is opaque (barcode, QR code, ...), only a few keys are read by exporters.
    """

    id: int
    title: str
    description: str = ""
    category: str = ""
    condition: str = "good"
    price: Decimal = Decimal("0")
    quantity: int = 1

    sku: str = ""
    user_id: Optional[int] = None
    subcategory: Optional[str] = None
    cost: Optional[Decimal] = None
    image_urls: List[str] = field(default_factory=list)
    status: ListingStatus = ListingStatus.DRAFT
    metadata: Dict[str, Any] = field(default_factory=dict)
    marketplace_data: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        self.price = _to_decimal(self.price) or Decimal("0")
        self.cost = _to_decimal(self.cost)
        if isinstance(self.status, str):
            self.status = ListingStatus(self.status.lower())
        if self.image_urls is None:
            self.image_urls = []
        if self.metadata is None:
            self.metadata = {}
        if self.marketplace_data is None:
            self.marketplace_data = {}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "InventoryRecord":
        """
        Build a record from a storage row.

        Accepts snake_case keys as well as the camelCase keys of the web client
        (imageUrls, userId, marketplaceData).
        """
        def pick(*keys, default=None):
            for key in keys:
                if key in data and data[key] is not None:
                    return data[key]
            return default

        return cls(
            id=int(pick("id")),
            title=pick("title", default=""),
            description=pick("description", default=""),
            category=pick("category", default=""),
            condition=pick("condition", default="good"),
            price=pick("price", default=Decimal("0")),
            quantity=int(pick("quantity", default=1)),
            sku=pick("sku", default=""),
            user_id=pick("user_id", "userId"),
            subcategory=pick("subcategory"),
            cost=pick("cost"),
            image_urls=list(pick("image_urls", "imageUrls", default=[])),
            status=pick("status", default=ListingStatus.DRAFT),
            metadata=dict(pick("metadata", default={})),
            marketplace_data=dict(pick("marketplace_data", "marketplaceData", default={})),
        )

    def validate(self) -> tuple[bool, List[str]]:
        """
        Check the fields every export target depends on.
        Returns (is_valid, list_of_errors)
        """
        errors = []

        if not self.title or len(self.title.strip()) == 0:
            errors.append("Title is required")

        if not self.price.is_finite():
            errors.append("Price must be a finite number")
        elif self.price < 0:
            errors.append("Price must not be negative")

        if self.cost is not None and not self.cost.is_finite():
            errors.append("Cost must be a finite number")

        if self.quantity < 0:
            errors.append("Quantity must not be negative")

        return (len(errors) == 0, errors)

    @property
    def primary_image(self) -> str:
        return self.image_urls[0] if self.image_urls else ""

    @property
    def barcode(self) -> str:
        return str(self.metadata.get("barcode") or "")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON responses"""
        return {
            "id": self.id,
            "userId": self.user_id,
            "sku": self.sku,
            "title": self.title,
            "description": self.description,
            "category": self.category,
            "subcategory": self.subcategory,
            "condition": self.condition,
            "price": float(self.price),
            "cost": float(self.cost) if self.cost is not None else None,
            "quantity": self.quantity,
            "imageUrls": list(self.image_urls),
            "status": self.status.value,
            "metadata": dict(self.metadata),
            "marketplaceData": dict(self.marketplace_data),
        }
