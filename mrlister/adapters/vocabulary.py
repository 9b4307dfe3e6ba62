"""
Vocabulary Translator
=====================
Maps canonical condition and category values to each marketplace's controlled
vocabulary.

Lookups are case-insensitive on the canonical side. Unknown input never fails:
marketplaces reject rows whose required enum columns are empty, so an
unrecognized value falls back to the vocabulary's default token instead.

EXAMPLE:
    translate_condition("Good", Vocabulary.EBAY)            → "4000"
    translate_condition("excellent", Vocabulary.GOOGLE_SHOPPING) → "new"
    translate_category("jewelry", Vocabulary.GOOGLE_SHOPPING) → "Apparel & Accessories > Jewelry"
    translate_category("garden gnomes", Vocabulary.EBAY)    → "1"
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional, Union


class Vocabulary(Enum):
    """Controlled vocabularies known to the translator"""
    GOOGLE_SHOPPING = "google_shopping"
    EBAY = "ebay"
    ETSY = "etsy"
    AMAZON = "amazon"


@dataclass(frozen=True)
class VocabularyTable:
    """Lookup tables plus the documented fallbacks for one vocabulary"""
    conditions: Dict[str, str]
    condition_default: str
    categories: Dict[str, str] = field(default_factory=dict)
    category_default: Optional[str] = None


# ============================================================================
# GOOGLE SHOPPING (used by the Shopify export)
# ============================================================================

GOOGLE_SHOPPING = VocabularyTable(
    conditions={
        "new": "new",
        "new with tags": "new",
        "new without tags": "new",
        "new with defects": "new",
        "like new": "new",
        "excellent": "new",
        "very good": "used",
        "good": "used",
        "fair": "used",
        "acceptable": "used",
        "for parts or not working": "used",
    },
    condition_default="used",
    categories={
        "clothing": "Apparel & Accessories > Clothing",
        "electronics": "Electronics",
        "jewelry": "Apparel & Accessories > Jewelry",
        "art": "Arts & Entertainment > Hobbies & Creative Arts > Arts & Crafts",
        "books": "Media > Books",
        "music": "Media > Music & Sound Recordings",
        "toys": "Toys & Games",
        "home": "Home & Garden",
    },
    category_default="Collectibles & Memorabilia",
)


# ============================================================================
# EBAY
# ============================================================================

EBAY = VocabularyTable(
    conditions={
        "new": "1000",
        "new with tags": "1000",
        "new without tags": "1500",
        "new with defects": "1750",
        "like new": "2000",
        "excellent": "2000",
        "very good": "3000",
        "good": "4000",
        "fair": "5000",
        "acceptable": "5000",
        "for parts or not working": "7000",
    },
    condition_default="3000",  # Very Good
    categories={
        "clothing": "11450",
        "electronics": "293",
        "collectibles": "1",
        "jewelry": "281",
        "art": "550",
        "books": "267",
        "music": "11233",
        "toys": "220",
        "toys & hobbies": "220",
        "home": "11700",
        "home & garden": "11700",
        "business & industrial": "12576",
    },
    category_default="1",  # Collectibles
)


# ============================================================================
# ETSY (listing state, Etsy has no condition field)
# ============================================================================

ETSY = VocabularyTable(
    conditions={
        "new": "active",
        "new with tags": "active",
        "new without tags": "active",
        "new with defects": "active",
        "like new": "active",
        "excellent": "active",
        "very good": "active",
        "good": "active",
        "fair": "active",
        "acceptable": "active",
        "for parts or not working": "draft",
    },
    condition_default="active",
)


# ============================================================================
# AMAZON
# ============================================================================

AMAZON = VocabularyTable(
    conditions={
        "new": "New",
        "new with tags": "New",
        "new without tags": "New",
        "new with defects": "NewWithDefects",
        "like new": "UsedLikeNew",
        "excellent": "UsedLikeNew",
        "very good": "UsedVeryGood",
        "good": "UsedGood",
        "fair": "UsedAcceptable",
        "acceptable": "UsedAcceptable",
        "for parts or not working": "ForPartsOrNotWorking",
    },
    condition_default="UsedGood",
)


_TABLES: Dict[Vocabulary, VocabularyTable] = {
    Vocabulary.GOOGLE_SHOPPING: GOOGLE_SHOPPING,
    Vocabulary.EBAY: EBAY,
    Vocabulary.ETSY: ETSY,
    Vocabulary.AMAZON: AMAZON,
}


def _normalize(value) -> str:
    return " ".join(str(value or "").split()).lower()


def get_vocabulary(vocabulary: Union[Vocabulary, str]) -> VocabularyTable:
    """
    Resolve a vocabulary by enum member or name.

    Raises:
        ValueError: If the vocabulary is unknown (a programming error, not bad input)
    """
    if not isinstance(vocabulary, Vocabulary):
        try:
            vocabulary = Vocabulary(str(vocabulary).lower())
        except ValueError:
            raise ValueError(
                f"Vocabulary '{vocabulary}' not found. "
                f"Available: {', '.join(v.value for v in Vocabulary)}"
            )
    return _TABLES[vocabulary]


def translate_condition(condition: str, vocabulary: Union[Vocabulary, str]) -> str:
    """Translate a canonical condition, falling back to the vocabulary default"""
    table = get_vocabulary(vocabulary)
    return table.conditions.get(_normalize(condition), table.condition_default)


def translate_category(category: str, vocabulary: Union[Vocabulary, str]) -> str:
    """
    Translate a canonical category, falling back to the vocabulary default.

    Raises:
        ValueError: If the vocabulary has no category list (Etsy, Amazon)
    """
    table = get_vocabulary(vocabulary)
    if table.category_default is None:
        raise ValueError(f"Vocabulary '{vocabulary}' has no category mapping")
    return table.categories.get(_normalize(category), table.category_default)
