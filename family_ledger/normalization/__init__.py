"""
Normalization Package

Closed enums for owner, type, category and frequency, the synonym tables
that map free text onto them, and the normalizer functions.
"""

from family_ledger.normalization.normalizers import (
    category_for,
    normalize_frequency,
    normalize_owner,
    normalize_owner_filter,
    normalize_type,
    owner_display_name,
)
from family_ledger.normalization.tables import (
    Category,
    EntryType,
    Frequency,
    Owner,
    OwnerFilter,
)

__all__ = [
    # Enums
    "Category",
    "EntryType",
    "Frequency",
    "Owner",
    "OwnerFilter",
    # Normalizers
    "category_for",
    "normalize_frequency",
    "normalize_owner",
    "normalize_owner_filter",
    "normalize_type",
    "owner_display_name",
]
