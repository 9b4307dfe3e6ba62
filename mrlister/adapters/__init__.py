"""Marketplace adapters: controlled vocabularies and per-target export rows"""

from .vocabulary import (
    Vocabulary,
    translate_condition,
    translate_category,
)
from .field_mapper import MarketplaceTarget, validate_row
from .platform_configs import (
    get_target,
    register_target,
    supported_targets,
    is_target_supported,
    preview_record,
)

__all__ = [
    "Vocabulary",
    "translate_condition",
    "translate_category",
    "MarketplaceTarget",
    "validate_row",
    "get_target",
    "register_target",
    "supported_targets",
    "is_target_supported",
    "preview_record",
]
