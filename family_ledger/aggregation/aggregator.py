"""
Ledger Aggregator

Turns a snapshot, a rate table and a display context into the numbers the
dashboard shows:
1. Current per-category totals and net worth
2. A stacked trend series per category from monthly history
3. Monthly income/expense estimates from recurring plans

DESIGN DECISION: Everything here is a pure function of its arguments.
The dashboard recomputes the whole view from scratch on every change;
nothing is cached or updated incrementally.

Conversion never fails. Unknown currencies count at rate 1 and unknown
owners/types/frequencies fall back to their normalization defaults.
"""

import re
from decimal import Decimal
from typing import Any, Iterable, Optional, TypeVar

from family_ledger.models.ledger import (
    ZERO,
    Asset,
    CategoryTotals,
    DashboardView,
    HistoryRecord,
    LedgerItem,
    LedgerSnapshot,
    MonthlyCashflow,
    Plan,
    RateTable,
    TrendDirection,
    TrendPoint,
    TrendSeries,
)
from family_ledger.normalization import (
    Category,
    EntryType,
    OwnerFilter,
    category_for,
    normalize_owner,
    owner_display_name,
)


DEFAULT_WINDOW_MONTHS = 12

# "<name> (<OWNER>)"
_SERIES_KEY_PATTERN = re.compile(r"(.*)\s\((.*)\)")

ItemT = TypeVar("ItemT", bound=LedgerItem)


def _as_models(items: Iterable[Any], model: type[ItemT]) -> list[ItemT]:
    return [
        item if isinstance(item, model) else model.model_validate(item)
        for item in items
    ]


def visible_items(items: Iterable[ItemT], owner_filter: OwnerFilter) -> list[ItemT]:
    """
    Items the dashboard lists and totals.

    Drops items owned by someone outside the filter and items whose
    amount is 0, which is how deleted rows are left behind in the sheet.
    """
    return [
        item for item in items
        if owner_filter.includes(item.owner) and item.effective_amount != 0
    ]


# =============================================================================
# CURRENT TOTALS
# =============================================================================

def aggregate_totals(
    assets: Iterable[Any],
    rates: RateTable,
    display_currency: str,
) -> CategoryTotals:
    """
    Sum assets per category in the display currency.

    Debts accumulate as a positive magnitude under `debt`;
    CategoryTotals.net_worth subtracts them.
    """
    totals = CategoryTotals()
    for asset in _as_models(assets, Asset):
        value = rates.convert(asset.effective_amount, asset.currency, display_currency)
        category = category_for(asset.type)
        setattr(totals, category.value, totals.get(category) + value)
    return totals


# =============================================================================
# TREND SERIES
# =============================================================================

def percent_change(points: list[TrendPoint]) -> Decimal:
    """
    Month-over-month change of the last point, in percent.

    With a single point the previous value is the latest one (0%).
    A zero previous value yields 0 rather than infinity.
    """
    if not points:
        return ZERO
    latest = points[-1].total_value
    previous = points[-2].total_value if len(points) > 1 else latest
    if previous == 0:
        return ZERO
    return (latest - previous) / previous * 100


def trend_direction(percent: Decimal) -> TrendDirection:
    if percent > 0:
        return TrendDirection.UP
    if percent < 0:
        return TrendDirection.DOWN
    return TrendDirection.FLAT


def build_trends(
    history: Iterable[HistoryRecord],
    rates: RateTable,
    display_currency: str,
    owner_filter: OwnerFilter = OwnerFilter.ALL,
    window: int = DEFAULT_WINDOW_MONTHS,
) -> dict[Category, TrendSeries]:
    """
    Build one stacked series per category from the most recent months.

    Every consumed month produces a point in every category, with
    total_value 0 when nothing matched; months are never dropped.
    """
    records = list(history)
    recent = records[-window:] if window > 0 else []

    points: dict[Category, list[TrendPoint]] = {category: [] for category in Category}
    keys: dict[Category, set[str]] = {category: set() for category in Category}

    for record in recent:
        month_points = {
            category: TrendPoint(name=record.month_label, month=record.month)
            for category in Category
        }

        for key, raw_value in record.values.items():
            meta = record.meta.get(key)
            if meta is None:
                continue
            if not owner_filter.includes(normalize_owner(meta.owner)):
                continue
            label = meta.label
            if not label:
                continue

            category = category_for(meta.type)
            converted = rates.convert(raw_value, meta.currency, display_currency)

            point = month_points[category]
            point.total_value += converted
            point.values[label] = point.values.get(label, ZERO) + converted
            keys[category].add(label)

        for category in Category:
            points[category].append(month_points[category])

    series = {}
    for category in Category:
        percent = percent_change(points[category])
        series[category] = TrendSeries(
            category=category,
            points=points[category],
            keys=sorted(keys[category]),
            percent=percent,
            direction=trend_direction(percent),
        )
    return series


def series_label(key: str, owner_filter: OwnerFilter) -> str:
    """
    Legend label for a series key.

    "Bank (HUSBAND)" reads "老公 - Bank" when every owner is shown and
    plain "Bank" when the view is already filtered to one owner.
    """
    match = _SERIES_KEY_PATTERN.match(key)
    if match and owner_filter is OwnerFilter.ALL:
        return f"{owner_display_name(match.group(2))} - {match.group(1)}"
    return key.split("(")[0].strip()


# =============================================================================
# MONTHLY CASH FLOW
# =============================================================================

def estimate_cashflow(
    plans: Iterable[Any],
    rates: RateTable,
    display_currency: str,
) -> MonthlyCashflow:
    """Monthly-equivalent income, expense and balance of recurring plans."""
    income = ZERO
    expense = ZERO
    for plan in _as_models(plans, Plan):
        converted = rates.convert(plan.amount, plan.currency, display_currency)
        monthly = converted / plan.frequency.divisor
        if plan.type is EntryType.INCOME:
            income += monthly
        else:
            expense += monthly
    return MonthlyCashflow(income=income, expense=expense, balance=income - expense)


# =============================================================================
# FULL VIEW
# =============================================================================

class LedgerAggregator:
    """
    Builds the complete dashboard view from a snapshot.

    Holds only configuration (rates, window); every call recomputes.
    """

    def __init__(
        self,
        rates: Optional[RateTable] = None,
        window_months: int = DEFAULT_WINDOW_MONTHS,
    ):
        self._rates = rates or RateTable()
        self._window_months = window_months

    @property
    def rates(self) -> RateTable:
        return self._rates

    def build_view(
        self,
        snapshot: LedgerSnapshot,
        title: str,
        display_currency: str,
        owner_filter: OwnerFilter = OwnerFilter.ALL,
    ) -> DashboardView:
        assets = visible_items(snapshot.assets, owner_filter)
        plans = visible_items(snapshot.plans, owner_filter)

        return DashboardView(
            title=title,
            display_currency=display_currency,
            owner_filter=owner_filter,
            assets=assets,
            plans=plans,
            totals=aggregate_totals(assets, self._rates, display_currency),
            trends=build_trends(
                snapshot.history,
                self._rates,
                display_currency,
                owner_filter=owner_filter,
                window=self._window_months,
            ),
            cashflow=estimate_cashflow(plans, self._rates, display_currency),
        )
