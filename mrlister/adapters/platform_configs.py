"""
Platform Configurations
=======================
Export formats for every supported marketplace.

Each platform defines:
- The column list of its bulk-import CSV
- A mapping function from InventoryRecord to that column set
- Title limits, image slot counts and constant defaults

This centralizes all platform-specific quirks in one place. The set of
registered names is the complete set of valid export targets.
"""

from typing import Dict, List, Optional, Iterable

from .field_mapper import (
    MarketplaceTarget,
    Row,
    truncate,
    format_number,
    make_handle,
    image_slots,
    join_tags,
    validate_row,
)
from .vocabulary import Vocabulary, translate_condition, translate_category
from ..errors import UnsupportedTargetError
from ..schema.inventory_record import InventoryRecord


VENDOR_NAME = "MrLister"


# ============================================================================
# SHOPIFY
# ============================================================================

SHOPIFY_HEADERS = [
    'Handle', 'Title', 'Body (HTML)', 'Vendor', 'Product Category', 'Type',
    'Tags', 'Published', 'Option1 Name', 'Option1 Value', 'Option2 Name',
    'Option2 Value', 'Option3 Name', 'Option3 Value', 'Variant SKU',
    'Variant Grams', 'Variant Inventory Tracker', 'Variant Inventory Qty',
    'Variant Inventory Policy', 'Variant Fulfillment Service', 'Variant Price',
    'Variant Compare At Price', 'Variant Requires Shipping', 'Variant Taxable',
    'Variant Barcode', 'Image Src', 'Image Position', 'Image Alt Text',
    'Gift Card', 'SEO Title', 'SEO Description', 'Google Shopping / Google Product Category',
    'Google Shopping / Gender', 'Google Shopping / Age Group', 'Google Shopping / MPN',
    'Google Shopping / AdWords Grouping', 'Google Shopping / AdWords Labels',
    'Google Shopping / Condition', 'Google Shopping / Custom Product',
    'Google Shopping / Custom Label 0', 'Google Shopping / Custom Label 1',
    'Google Shopping / Custom Label 2', 'Google Shopping / Custom Label 3',
    'Google Shopping / Custom Label 4', 'Variant Image', 'Variant Weight Unit',
    'Variant Tax Code', 'Cost per item', 'Status',
]

SHOPIFY_TITLE_LIMIT = 255
SHOPIFY_SEO_DESCRIPTION_LIMIT = 160


def map_shopify_row(record: InventoryRecord) -> Row:
    """
    Shopify product import CSV.

    Docs: https://help.shopify.com/en/manual/products/import-export/using-csv
    """
    title = truncate(record.title, SHOPIFY_TITLE_LIMIT)
    category = record.category or ""
    subcategory = record.subcategory or ""

    return {
        'Handle': make_handle(record),
        'Title': title,
        'Body (HTML)': record.description,
        'Vendor': VENDOR_NAME,
        'Product Category': category,
        'Type': subcategory or category,
        'Tags': join_tags(category, subcategory, record.condition),
        'Published': 'TRUE',
        'Option1 Name': 'Condition',
        'Option1 Value': record.condition,
        'Option2 Name': '',
        'Option2 Value': '',
        'Option3 Name': '',
        'Option3 Value': '',
        'Variant SKU': record.sku,
        'Variant Grams': '0',
        'Variant Inventory Tracker': 'shopify',
        'Variant Inventory Qty': format_number(record.quantity),
        'Variant Inventory Policy': 'deny',
        'Variant Fulfillment Service': 'manual',
        'Variant Price': format_number(record.price),
        'Variant Compare At Price': '',
        'Variant Requires Shipping': 'TRUE',
        'Variant Taxable': 'TRUE',
        'Variant Barcode': record.barcode,
        'Image Src': record.primary_image,
        'Image Position': '1' if record.primary_image else '',
        'Image Alt Text': title,
        'Gift Card': 'FALSE',
        'SEO Title': title,
        'SEO Description': truncate(record.description, SHOPIFY_SEO_DESCRIPTION_LIMIT),
        'Google Shopping / Google Product Category': translate_category(category, Vocabulary.GOOGLE_SHOPPING),
        'Google Shopping / Gender': 'Unisex',
        'Google Shopping / Age Group': 'Adult',
        'Google Shopping / MPN': record.sku,
        'Google Shopping / AdWords Grouping': category,
        'Google Shopping / AdWords Labels': category,
        'Google Shopping / Condition': translate_condition(record.condition, Vocabulary.GOOGLE_SHOPPING),
        'Google Shopping / Custom Product': 'FALSE',
        'Google Shopping / Custom Label 0': category,
        'Google Shopping / Custom Label 1': subcategory,
        'Google Shopping / Custom Label 2': record.condition,
        'Google Shopping / Custom Label 3': '',
        'Google Shopping / Custom Label 4': '',
        'Variant Image': '',
        'Variant Weight Unit': 'kg',
        'Variant Tax Code': '',
        'Cost per item': format_number(record.cost),
        'Status': 'active',
    }


# ============================================================================
# EBAY
# ============================================================================

EBAY_HEADERS = [
    'Action', 'CustomLabel', 'Category', 'ConditionID', 'Title',
    'Description', 'Format', 'Duration', 'StartPrice', 'Quantity',
    'PicURL', 'ShippingService', 'ShippingServiceCost', 'Location',
]

EBAY_TITLE_LIMIT = 80


def map_ebay_row(record: InventoryRecord) -> Row:
    """
    eBay File Exchange listing CSV.

    Docs: https://pages.ebay.com/help/sell/fx-templates.html
    """
    return {
        'Action': 'Add',
        'CustomLabel': record.sku,
        'Category': translate_category(record.category, Vocabulary.EBAY),
        'ConditionID': translate_condition(record.condition, Vocabulary.EBAY),
        'Title': truncate(record.title, EBAY_TITLE_LIMIT),
        'Description': record.description,
        'Format': 'FixedPrice',
        'Duration': 'GTC',  # Good 'Til Cancelled
        'StartPrice': format_number(record.price),
        'Quantity': format_number(record.quantity),
        'PicURL': record.primary_image,
        'ShippingService': 'ShippingMethodStandard',
        'ShippingServiceCost': '0',
        'Location': 'United States',
    }


# ============================================================================
# ETSY
# ============================================================================

ETSY_IMAGE_SLOTS = 5
ETSY_TITLE_LIMIT = 140

ETSY_HEADERS = [
    'title', 'description', 'price', 'quantity', 'sku', 'when_made',
    'who_made', 'item_weight', 'item_length', 'item_width', 'item_height',
    'item_weight_unit', 'item_dimensions_unit', 'is_supply', 'is_customizable',
    'is_digital', 'file_data', 'shipping_template_id', 'shop_section_id',
    'tags', 'materials',
] + [f'image_{i + 1}' for i in range(ETSY_IMAGE_SLOTS)] + [
    'state', 'is_taxable', 'processing_min', 'processing_max', 'taxonomy_id',
]


def map_etsy_row(record: InventoryRecord) -> Row:
    """
    Etsy listing CSV.

    Docs: https://developers.etsy.com/documentation/reference#tag/ShopListing
    """
    row = {
        'title': truncate(record.title, ETSY_TITLE_LIMIT),
        'description': record.description,
        'price': format_number(record.price),
        'quantity': format_number(record.quantity),
        'sku': record.sku,
        'when_made': '2020_2023',
        'who_made': 'i_did',
        'item_weight': '',
        'item_length': '',
        'item_width': '',
        'item_height': '',
        'item_weight_unit': 'g',
        'item_dimensions_unit': 'in',
        'is_supply': 'FALSE',
        'is_customizable': 'FALSE',
        'is_digital': 'FALSE',
        'file_data': '',
        'shipping_template_id': '',
        'shop_section_id': '',
        'tags': join_tags(record.category, record.subcategory, record.condition),
        'materials': '',
        'state': translate_condition(record.condition, Vocabulary.ETSY),
        'is_taxable': 'TRUE',
        'processing_min': '1',
        'processing_max': '3',
        'taxonomy_id': '',
    }
    row.update(image_slots(record.image_urls, ETSY_IMAGE_SLOTS, 'image_'))
    return row


# ============================================================================
# AMAZON
# ============================================================================

AMAZON_HEADERS = [
    'sku', 'product-id', 'product-id-type', 'price', 'minimum-seller-allowed-price',
    'maximum-seller-allowed-price', 'item-condition', 'quantity', 'add-delete',
    'will-ship-internationally', 'expedited-shipping', 'item-note', 'fulfillment-center-id',
    'product-tax-code', 'item-name', 'item-description', 'listing-price', 'shipping-price',
    'category', 'subcategory', 'main-image-url', 'swatch-image-url', 'merchant-shipping-group',
]

AMAZON_TITLE_LIMIT = 255


def map_amazon_row(record: InventoryRecord) -> Row:
    """
    Amazon inventory loader flat file.

    product-id-type: ASIN=1, UPC=2, EAN=3, ISBN=4
    """
    price = format_number(record.price)
    return {
        'sku': record.sku,
        'product-id': record.barcode,
        'product-id-type': '2' if record.barcode else '1',
        'price': price,
        'minimum-seller-allowed-price': '',
        'maximum-seller-allowed-price': '',
        'item-condition': translate_condition(record.condition, Vocabulary.AMAZON),
        'quantity': format_number(record.quantity),
        'add-delete': 'a',  # a=add, d=delete
        'will-ship-internationally': 'n',
        'expedited-shipping': 'n',
        'item-note': '',
        'fulfillment-center-id': 'DEFAULT',
        'product-tax-code': 'A_GEN_NOTAX',
        'item-name': truncate(record.title, AMAZON_TITLE_LIMIT),
        'item-description': record.description,
        'listing-price': price,
        'shipping-price': '0',
        'category': record.category,
        'subcategory': record.subcategory or '',
        'main-image-url': record.primary_image,
        'swatch-image-url': '',
        'merchant-shipping-group': 'Standard',
    }


# ============================================================================
# GENERIC (marketplaces without their own import template)
# ============================================================================

GENERIC_HEADERS = [
    'SKU', 'Title', 'Description', 'Category', 'Subcategory',
    'Condition', 'Price', 'Quantity', 'ImageURL',
]


def map_generic_row(record: InventoryRecord) -> Row:
    return {
        'SKU': record.sku,
        'Title': record.title,
        'Description': record.description,
        'Category': record.category,
        'Subcategory': record.subcategory or '',
        'Condition': record.condition,
        'Price': format_number(record.price),
        'Quantity': format_number(record.quantity),
        'ImageURL': record.primary_image,
    }


# ============================================================================
# Registry
# ============================================================================

_TARGETS: Dict[str, MarketplaceTarget] = {}


def register_target(target: MarketplaceTarget) -> MarketplaceTarget:
    """
    Register an export target under its lowercased name.

    The mapping is checked against its headers with a blank probe record so a
    missing column fails at import time instead of mid-export.

    Raises:
        ValueError: If the headers contain duplicates or the mapping does not cover them
    """
    if len(set(target.headers)) != len(target.headers):
        raise ValueError(f"{target.name} headers contain duplicates")

    probe = InventoryRecord(id=0, title="probe")
    validate_row(target, target.map_record(probe))

    _TARGETS[target.name.lower()] = target
    return target


def supported_targets() -> List[str]:
    """Names of all registered export targets"""
    return list(_TARGETS.keys())


def is_target_supported(name: str) -> bool:
    return (name or "").lower() in _TARGETS


def get_target(name: str) -> MarketplaceTarget:
    """
    Get the export target for a marketplace.

    Args:
        name: Marketplace name (case-insensitive)

    Raises:
        UnsupportedTargetError: If no target is registered under that name
    """
    target = _TARGETS.get((name or "").lower())
    if not target:
        raise UnsupportedTargetError(name, supported_targets())
    return target


def preview_record(record: InventoryRecord, targets: Optional[Iterable[str]] = None) -> Dict[str, Row]:
    """Rows a single record would produce for each target (all targets by default)"""
    names = list(targets) if targets is not None else supported_targets()
    return {name: get_target(name).map_record_to_row(record) for name in names}


register_target(MarketplaceTarget("shopify", SHOPIFY_HEADERS, map_shopify_row, "products", "Shopify"))
register_target(MarketplaceTarget("ebay", EBAY_HEADERS, map_ebay_row, "listings", "eBay"))
register_target(MarketplaceTarget("etsy", ETSY_HEADERS, map_etsy_row, "items", "Etsy"))
register_target(MarketplaceTarget("amazon", AMAZON_HEADERS, map_amazon_row, "inventory", "Amazon"))
register_target(MarketplaceTarget("generic", GENERIC_HEADERS, map_generic_row, "export", "Generic CSV"))
