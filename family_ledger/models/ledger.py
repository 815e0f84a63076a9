"""
Core Data Models for Family Ledger

These models define the schemas for everything read from and written to
the spreadsheet endpoint, plus the computed dashboard view.

DESIGN DECISION: Spreadsheet rows are typed by hand, so input validation
is LENIENT. Owner, type and frequency are normalized onto closed enums,
currencies are upper-cased, and unparseable amounts become 0. A malformed
row never takes the whole snapshot down.

Money is Decimal end to end so conversions like 100 USD at 31.58 come out
exact.
"""

from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)

from family_ledger.normalization import (
    Category,
    EntryType,
    Frequency,
    Owner,
    OwnerFilter,
    normalize_frequency,
    normalize_owner,
    normalize_type,
)


BASE_CURRENCY = "TWD"

# Value of one unit of each currency in TWD. Static, not fetched.
DEFAULT_RATES: dict[str, Decimal] = {
    "TWD": Decimal("1"),
    "USD": Decimal("31.58"),
    "JPY": Decimal("0.20"),
    "EUR": Decimal("37.24"),
    "CNY": Decimal("4.55"),
    "AUD": Decimal("22.11"),
    "CAD": Decimal("23.10"),
    "GBP": Decimal("43.18"),
    "HKD": Decimal("4.04"),
    "KRW": Decimal("0.02"),
    "SGD": Decimal("24.84"),
    "VND": Decimal("0.0013"),
    "MYR": Decimal("8.03"),
    "NZD": Decimal("19.05"),
    "THB": Decimal("1.0"),
    "ZAR": Decimal("1.98"),
    "SEK": Decimal("3.54"),
}

# Note sent with a write that removes the item
DELETE_NOTE = "DELETE"

ZERO = Decimal("0")


def to_decimal(value: Any) -> Decimal:
    """Coerce spreadsheet cell content to Decimal; blanks and garbage are 0."""
    if value is None or value == "" or isinstance(value, bool):
        return ZERO
    if isinstance(value, Decimal):
        return value if value.is_finite() else ZERO
    try:
        result = Decimal(str(value).strip().replace(",", ""))
    except (InvalidOperation, ValueError):
        return ZERO
    return result if result.is_finite() else ZERO


def normalize_currency(value: Any) -> str:
    text = str(value).strip().upper() if value is not None else ""
    return text or BASE_CURRENCY


def synthetic_key(name: str, owner: Any) -> str:
    """Stable per-item key inside a history record: "<name> (<OWNER>)"."""
    owner_text = owner.value if isinstance(owner, Enum) else str(owner)
    return f"{name} ({owner_text.upper()})"


def _to_text(value: Any) -> str:
    return "" if value is None else str(value)


# =============================================================================
# ENUMS
# =============================================================================

class WriteAction(str, Enum):
    """Actions understood by the endpoint's POST handler."""
    UPDATE_ASSET = "update_asset"
    UPDATE_PLAN = "update_plan"


class EditKind(str, Enum):
    """Which collection an edit targets."""
    ASSET = "asset"
    PLAN = "plan"

    @property
    def action(self) -> WriteAction:
        if self is EditKind.PLAN:
            return WriteAction.UPDATE_PLAN
        return WriteAction.UPDATE_ASSET


class TrendDirection(str, Enum):
    UP = "up"
    DOWN = "down"
    FLAT = "flat"


# =============================================================================
# LEDGER ITEMS
# =============================================================================

class LedgerItem(BaseModel):
    """Fields shared by assets and plans."""
    model_config = ConfigDict(
        str_strip_whitespace=True,
        populate_by_name=True,
        extra="ignore",
    )

    id: str = ""
    owner: Owner = Owner.FAMILY
    name: str = ""
    currency: str = BASE_CURRENCY
    amount: Decimal = ZERO
    note: Optional[str] = None

    @field_validator('id', 'name', mode='before')
    @classmethod
    def coerce_text(cls, v: Any) -> str:
        return _to_text(v)

    @field_validator('note', mode='before')
    @classmethod
    def coerce_note(cls, v: Any) -> Optional[str]:
        if v is None or v == "":
            return None
        return str(v)

    @field_validator('owner', mode='before')
    @classmethod
    def coerce_owner(cls, v: Any) -> Owner:
        return normalize_owner(v)

    @field_validator('currency', mode='before')
    @classmethod
    def coerce_currency(cls, v: Any) -> str:
        return normalize_currency(v)

    @field_validator('amount', mode='before')
    @classmethod
    def coerce_amount(cls, v: Any) -> Decimal:
        return to_decimal(v)

    @property
    def effective_amount(self) -> Decimal:
        return self.amount

    @property
    def key(self) -> str:
        return synthetic_key(self.name, self.owner)


class Asset(LedgerItem):
    """
    Something owned or owed.

    Debts are stored as positive magnitudes; aggregation subtracts them.
    Older sheets carry the figure in `balance` instead of `amount`.
    """

    type: EntryType = EntryType.CASH
    balance: Optional[Decimal] = None
    last_update: Optional[str] = Field(default=None, alias="lastUpdate")

    @field_validator('type', mode='before')
    @classmethod
    def coerce_type(cls, v: Any) -> EntryType:
        return normalize_type(v)

    @field_validator('balance', mode='before')
    @classmethod
    def coerce_balance(cls, v: Any) -> Optional[Decimal]:
        if v is None or v == "":
            return None
        return to_decimal(v)

    @field_validator('last_update', mode='before')
    @classmethod
    def coerce_last_update(cls, v: Any) -> Optional[str]:
        return None if v is None or v == "" else str(v)

    @property
    def effective_amount(self) -> Decimal:
        return self.amount or self.balance or ZERO


class Plan(LedgerItem):
    """A recurring income or expense."""

    type: EntryType = EntryType.EXPENSE
    frequency: Frequency = Frequency.MONTHLY

    @field_validator('type', mode='before')
    @classmethod
    def coerce_type(cls, v: Any) -> EntryType:
        if normalize_type(v) is EntryType.INCOME:
            return EntryType.INCOME
        return EntryType.EXPENSE

    @field_validator('frequency', mode='before')
    @classmethod
    def coerce_frequency(cls, v: Any) -> Frequency:
        return normalize_frequency(v)


# =============================================================================
# HISTORY
# =============================================================================

class HistoryMeta(BaseModel):
    """Descriptor of one synthetic key in a monthly history record."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    name: str = ""
    owner: str = ""
    type: str = ""
    currency: str = ""
    display_name: str = Field(default="", alias="displayName")

    @field_validator('name', 'owner', 'type', 'currency', 'display_name', mode='before')
    @classmethod
    def coerce_text(cls, v: Any) -> str:
        return _to_text(v).strip()

    @property
    def label(self) -> str:
        """Series key used in charts; empty means the entry is not charted."""
        return self.display_name or self.name


class HistoryRecord(BaseModel):
    """
    One calendar month of recorded values.

    On the wire the values are flat siblings of `month` and `meta`:
        {"month": "2024-05", "meta": {"Bank (HUSBAND)": {...}}, "Bank (HUSBAND)": 1000}
    They are folded into `values` here and flattened again by to_payload().
    """
    model_config = ConfigDict(extra="ignore")

    month: str
    meta: dict[str, HistoryMeta] = Field(default_factory=dict)
    values: dict[str, Decimal] = Field(default_factory=dict)

    @model_validator(mode='before')
    @classmethod
    def fold_flat_values(cls, data: Any) -> Any:
        if not isinstance(data, dict) or isinstance(data.get("values"), dict):
            return data
        meta = data.get("meta")
        meta = meta if isinstance(meta, dict) else {}
        return {
            "month": _to_text(data.get("month")),
            "meta": {
                key: descriptor
                for key, descriptor in meta.items()
                if isinstance(descriptor, dict)
            },
            "values": {
                key: to_decimal(value)
                for key, value in data.items()
                if key not in ("month", "meta")
            },
        }

    @property
    def month_label(self) -> str:
        parts = self.month.split("-")
        return parts[1] if len(parts) > 1 else self.month

    @property
    def orphan_keys(self) -> list[str]:
        """Value keys with no descriptor; aggregation ignores them."""
        return [key for key in self.values if key not in self.meta]

    def to_payload(self) -> dict:
        payload: dict[str, Any] = {
            "month": self.month,
            "meta": {
                key: descriptor.model_dump(by_alias=True)
                for key, descriptor in self.meta.items()
            },
        }
        for key, value in self.values.items():
            payload[key] = float(value)
        return payload


class LedgerSnapshot(BaseModel):
    """Everything the endpoint returns on a read."""

    assets: list[Asset] = Field(default_factory=list)
    plans: list[Plan] = Field(default_factory=list)
    history: list[HistoryRecord] = Field(default_factory=list)

    @field_validator('assets', 'plans', 'history', mode='before')
    @classmethod
    def coerce_rows(cls, v: Any) -> list:
        if not isinstance(v, list):
            return []
        return [row for row in v if isinstance(row, (dict, BaseModel))]

    @classmethod
    def empty(cls) -> "LedgerSnapshot":
        return cls()

    @property
    def is_empty(self) -> bool:
        return not (self.assets or self.plans or self.history)


class RateTable(BaseModel):
    """
    Currency code -> value of one unit in the base currency.

    Unknown (or zero) rates silently count as 1. That is a policy, not an
    error: a typo in a currency column must not break the dashboard.
    """

    rates: dict[str, Decimal] = Field(default_factory=lambda: dict(DEFAULT_RATES))

    @field_validator('rates', mode='before')
    @classmethod
    def normalize_codes(cls, v: Any) -> dict:
        if not isinstance(v, dict):
            return dict(DEFAULT_RATES)
        return {normalize_currency(code): to_decimal(rate) for code, rate in v.items()}

    def rate_for(self, currency: Any) -> Decimal:
        rate = self.rates.get(normalize_currency(currency))
        return rate if rate else Decimal("1")

    def convert(self, amount: Any, from_currency: Any, to_currency: Any) -> Decimal:
        """amount * rate[from] / rate[to]"""
        return to_decimal(amount) * self.rate_for(from_currency) / self.rate_for(to_currency)


# =============================================================================
# COMPUTED VIEW MODELS
# =============================================================================

class CategoryTotals(BaseModel):
    """Current per-category totals in the display currency."""

    cash: Decimal = ZERO
    stock: Decimal = ZERO
    debt: Decimal = ZERO

    def get(self, category: Category) -> Decimal:
        return getattr(self, category.value)

    @property
    def net_worth(self) -> Decimal:
        return self.cash + self.stock - self.debt

    @property
    def grand_total(self) -> Decimal:
        return self.cash + self.stock + self.debt


class TrendPoint(BaseModel):
    """One month of one category's stacked chart."""

    name: str
    month: str
    total_value: Decimal = ZERO
    values: dict[str, Decimal] = Field(default_factory=dict)


class TrendSeries(BaseModel):
    """Chart data for one category."""

    category: Category
    points: list[TrendPoint] = Field(default_factory=list)
    keys: list[str] = Field(
        default_factory=list,
        description="Series keys in stable (sorted) stacking order"
    )
    percent: Decimal = ZERO
    direction: TrendDirection = TrendDirection.FLAT

    @property
    def has_data(self) -> bool:
        return any(point.total_value > 0 for point in self.points)

    @property
    def latest_total(self) -> Decimal:
        return self.points[-1].total_value if self.points else ZERO


class MonthlyCashflow(BaseModel):
    """Monthly-equivalent income and expense from recurring plans."""

    income: Decimal = ZERO
    expense: Decimal = ZERO
    balance: Decimal = ZERO


class DashboardView(BaseModel):
    """Everything the dashboard page renders."""

    title: str
    display_currency: str
    owner_filter: OwnerFilter
    assets: list[Asset] = Field(default_factory=list)
    plans: list[Plan] = Field(default_factory=list)
    totals: CategoryTotals = Field(default_factory=CategoryTotals)
    trends: dict[Category, TrendSeries] = Field(default_factory=dict)
    cashflow: MonthlyCashflow = Field(default_factory=MonthlyCashflow)

    @property
    def net_worth(self) -> Decimal:
        return self.totals.net_worth


# =============================================================================
# WRITES
# =============================================================================

class LedgerWriteRequest(BaseModel):
    """One POST to the endpoint describing an edited asset or plan."""

    action: WriteAction
    date_stamp: date
    id: str
    name: str
    owner: str
    type: str
    currency: str
    amount: Decimal
    frequency: str = ""
    note: str = ""

    @property
    def is_delete(self) -> bool:
        return self.note == DELETE_NOTE

    def to_payload(self) -> dict:
        return {
            "action": self.action.value,
            "date": self.date_stamp.isoformat(),
            "id": self.id,
            "name": self.name,
            "owner": self.owner,
            "type": self.type,
            "currency": self.currency,
            "amount": float(self.amount),
            "frequency": self.frequency,
            "note": self.note,
        }


class WriteResult(BaseModel):
    """
    Outcome of a write as far as the client can observe it.

    The response body is never read; success only means the request went
    out and the endpoint did not answer with an HTTP error status.
    """

    success: bool
    action: WriteAction
    status_code: Optional[int] = None
    error: Optional[str] = None
    sent_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
