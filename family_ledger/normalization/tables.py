"""
Canonical Enum and Synonym Tables

Owner, type and frequency arrive as free text typed into a spreadsheet,
in English or Traditional Chinese. Every call site normalizes through
the tables below; nothing else in the codebase matches raw strings.

DESIGN DECISION: Owners match on exact synonyms, types and frequencies
match on keywords contained in the text. Order matters for types: the
first rule that matches wins.
"""

from enum import Enum


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class Owner(str, Enum):
    """Household member (or the shared family) an item belongs to."""
    HUSBAND = "husband"
    WIFE = "wife"
    FAMILY = "family"


class EntryType(str, Enum):
    """Normalized type of an asset or plan."""
    CASH = "cash"
    STOCK = "stock"
    DEBT = "debt"
    INCOME = "income"
    EXPENSE = "expense"


class Category(str, Enum):
    """Coarse bucket an entry type is totalled and charted under."""
    CASH = "cash"
    STOCK = "stock"
    DEBT = "debt"


class Frequency(str, Enum):
    """How often a recurring plan is paid."""
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    YEARLY = "yearly"

    @property
    def divisor(self) -> int:
        """Number of months one payment covers."""
        return FREQUENCY_DIVISORS[self]


class OwnerFilter(str, Enum):
    """Owner selection on the dashboard."""
    ALL = "all"
    HUSBAND = "husband"
    WIFE = "wife"
    FAMILY = "family"

    def includes(self, owner: Owner) -> bool:
        return self is OwnerFilter.ALL or self.value == owner.value


# =============================================================================
# SYNONYM TABLES
# =============================================================================

# Exact matches after lower-casing and trimming
OWNER_SYNONYMS: dict[Owner, frozenset[str]] = {
    Owner.HUSBAND: frozenset({"husband", "老公", "爸爸", "老爸"}),
    Owner.WIFE: frozenset({"wife", "老婆", "媽媽", "老媽"}),
    Owner.FAMILY: frozenset({"family", "全家"}),
}

# (type, exact values, contained keywords), checked in order
TYPE_RULES: list[tuple[EntryType, frozenset[str], tuple[str, ...]]] = [
    (
        EntryType.STOCK,
        frozenset({"stock"}),
        ("invest", "etf", "股票", "投資", "證券", "基金"),
    ),
    (
        EntryType.DEBT,
        frozenset({"debt"}),
        ("loan", "debt", "負債", "貸款", "借款"),
    ),
    (
        EntryType.EXPENSE,
        frozenset({"expense"}),
        ("expense", "支出"),
    ),
    (
        EntryType.INCOME,
        frozenset({"income"}),
        ("income", "收入"),
    ),
]

FREQUENCY_KEYWORDS: list[tuple[Frequency, tuple[str, ...]]] = [
    (Frequency.MONTHLY, ("monthly", "每月")),
    (Frequency.QUARTERLY, ("quarterly", "每季")),
    (Frequency.YEARLY, ("yearly", "annual", "每年")),
]

FREQUENCY_DIVISORS: dict[Frequency, int] = {
    Frequency.MONTHLY: 1,
    Frequency.QUARTERLY: 3,
    Frequency.YEARLY: 12,
}

# Income and expense are not asset categories; they chart as cash
TYPE_CATEGORIES: dict[EntryType, Category] = {
    EntryType.CASH: Category.CASH,
    EntryType.STOCK: Category.STOCK,
    EntryType.DEBT: Category.DEBT,
    EntryType.INCOME: Category.CASH,
    EntryType.EXPENSE: Category.CASH,
}

OWNER_DISPLAY_NAMES: dict[Owner, str] = {
    Owner.HUSBAND: "老公",
    Owner.WIFE: "老婆",
    Owner.FAMILY: "全家",
}
