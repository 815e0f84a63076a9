"""Aggregation package."""

from family_ledger.aggregation.aggregator import (
    DEFAULT_WINDOW_MONTHS,
    LedgerAggregator,
    aggregate_totals,
    build_trends,
    estimate_cashflow,
    percent_change,
    series_label,
    trend_direction,
    visible_items,
)

__all__ = [
    "DEFAULT_WINDOW_MONTHS",
    "LedgerAggregator",
    "aggregate_totals",
    "build_trends",
    "estimate_cashflow",
    "percent_change",
    "series_label",
    "trend_direction",
    "visible_items",
]
