"""
Free-text Normalizers

All functions here are total: any input, including None, empty strings
and values that are already normalized, maps to a valid enum member.
"""

from enum import Enum
from typing import Any

from family_ledger.normalization.tables import (
    FREQUENCY_KEYWORDS,
    OWNER_DISPLAY_NAMES,
    OWNER_SYNONYMS,
    TYPE_CATEGORIES,
    TYPE_RULES,
    Category,
    EntryType,
    Frequency,
    Owner,
    OwnerFilter,
)


def _clean(raw: Any) -> str:
    if raw is None:
        return ""
    if isinstance(raw, Enum):
        return str(raw.value)
    return str(raw).strip().lower()


def normalize_owner(raw: Any) -> Owner:
    """Map free text to an Owner; anything unrecognized belongs to the family."""
    text = _clean(raw)
    for owner, synonyms in OWNER_SYNONYMS.items():
        if text in synonyms:
            return owner
    return Owner.FAMILY


def normalize_type(raw: Any) -> EntryType:
    """Map free text to an EntryType; anything unrecognized is cash."""
    text = _clean(raw)
    if not text:
        return EntryType.CASH
    for entry_type, exact, keywords in TYPE_RULES:
        if text in exact or any(keyword in text for keyword in keywords):
            return entry_type
    return EntryType.CASH


def normalize_frequency(raw: Any) -> Frequency:
    """Map free text to a Frequency; anything unrecognized is monthly."""
    text = _clean(raw)
    for frequency, keywords in FREQUENCY_KEYWORDS:
        if any(keyword in text for keyword in keywords):
            return frequency
    return Frequency.MONTHLY


def normalize_owner_filter(raw: Any) -> OwnerFilter:
    """'all' (or nothing) selects every owner, otherwise one owner."""
    text = _clean(raw)
    if not text or text == OwnerFilter.ALL.value:
        return OwnerFilter.ALL
    return OwnerFilter(normalize_owner(text).value)


def category_for(raw_type: Any) -> Category:
    """Category a (possibly raw) type is totalled under."""
    return TYPE_CATEGORIES[normalize_type(raw_type)]


def owner_display_name(owner: Any) -> str:
    return OWNER_DISPLAY_NAMES[normalize_owner(owner)]
