"""
Data Models Package

This package contains all Pydantic models used in Family Ledger.
Everything read from or written to the endpoint conforms to these schemas.
"""

from family_ledger.models.ledger import (
    BASE_CURRENCY,
    DEFAULT_RATES,
    DELETE_NOTE,
    Asset,
    CategoryTotals,
    DashboardView,
    EditKind,
    HistoryMeta,
    HistoryRecord,
    LedgerItem,
    LedgerSnapshot,
    LedgerWriteRequest,
    MonthlyCashflow,
    Plan,
    RateTable,
    TrendDirection,
    TrendPoint,
    TrendSeries,
    WriteAction,
    WriteResult,
    normalize_currency,
    synthetic_key,
    to_decimal,
)
from family_ledger.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Ledger models
    "BASE_CURRENCY",
    "DEFAULT_RATES",
    "DELETE_NOTE",
    "Asset",
    "CategoryTotals",
    "DashboardView",
    "EditKind",
    "HistoryMeta",
    "HistoryRecord",
    "LedgerItem",
    "LedgerSnapshot",
    "LedgerWriteRequest",
    "MonthlyCashflow",
    "Plan",
    "RateTable",
    "TrendDirection",
    "TrendPoint",
    "TrendSeries",
    "WriteAction",
    "WriteResult",
    "normalize_currency",
    "synthetic_key",
    "to_decimal",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
