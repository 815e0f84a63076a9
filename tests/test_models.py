"""
Tests for Family Ledger

Test strategy:
1. Unit tests for individual components (models, normalizers, aggregation)
2. Integration tests for flows (with in-memory or mocked HTTP storage)
3. No real endpoint calls in tests (use httpx.MockTransport)
"""

import pytest
from datetime import date
from decimal import Decimal
from uuid import uuid4

from family_ledger.models.ledger import (
    Asset,
    CategoryTotals,
    EditKind,
    HistoryRecord,
    LedgerSnapshot,
    LedgerWriteRequest,
    Plan,
    RateTable,
    WriteAction,
    synthetic_key,
    to_decimal,
)
from family_ledger.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)
from family_ledger.normalization import EntryType, Frequency, Owner


class TestLedgerItems:
    """Tests for asset and plan models."""

    def test_asset_normalizes_free_text(self):
        """Owner, type and currency are normalized on the way in."""
        asset = Asset(
            id="a1",
            owner="老公",
            name=" Bank ",
            type="股票投資",
            currency="usd",
            amount="1,000",
        )
        assert asset.owner == Owner.HUSBAND
        assert asset.type == EntryType.STOCK
        assert asset.currency == "USD"
        assert asset.amount == Decimal("1000")
        assert asset.name == "Bank"

    def test_asset_defaults(self):
        """Missing fields fall back to family, cash, TWD and 0."""
        asset = Asset.model_validate({})
        assert asset.owner == Owner.FAMILY
        assert asset.type == EntryType.CASH
        assert asset.currency == "TWD"
        assert asset.amount == Decimal("0")

    def test_unparseable_amount_is_zero(self):
        """Garbage in the amount column does not fail the row."""
        asset = Asset(name="Bank", amount="n/a")
        assert asset.amount == Decimal("0")

    def test_balance_fallback(self):
        """Older rows carry the figure in balance."""
        asset = Asset.model_validate({"name": "Old", "balance": "250", "lastUpdate": "2024-01-02"})
        assert asset.effective_amount == Decimal("250")
        assert asset.last_update == "2024-01-02"

    def test_plan_type_is_income_or_expense(self):
        """Anything that is not income counts as an expense."""
        assert Plan(name="Salary", type="收入").type == EntryType.INCOME
        assert Plan(name="Rent", type="固定支出").type == EntryType.EXPENSE
        assert Plan(name="Odd", type="stock").type == EntryType.EXPENSE

    def test_plan_frequency(self):
        """Frequency keywords map onto the enum."""
        assert Plan(name="Tax", frequency="每年").frequency == Frequency.YEARLY
        assert Plan(name="Tax", frequency="").frequency == Frequency.MONTHLY

    def test_synthetic_key(self):
        """Key inside history records is name plus upper-cased owner."""
        asset = Asset(name="Bank", owner="husband")
        assert asset.key == "Bank (HUSBAND)"
        assert synthetic_key("Loan", Owner.WIFE) == "Loan (WIFE)"


class TestToDecimal:
    """Tests for lenient amount coercion."""

    @pytest.mark.parametrize("raw, expected", [
        (None, Decimal("0")),
        ("", Decimal("0")),
        (True, Decimal("0")),
        ("abc", Decimal("0")),
        ("nan", Decimal("0")),
        (12.5, Decimal("12.5")),
        ("1,234.50", Decimal("1234.50")),
        (" 7 ", Decimal("7")),
    ])
    def test_coercion(self, raw, expected):
        assert to_decimal(raw) == expected


class TestHistoryRecord:
    """Tests for monthly history records."""

    def test_flat_values_are_folded(self):
        """Keys beside month and meta become values."""
        record = HistoryRecord.model_validate({
            "month": "2024-05",
            "meta": {
                "Bank (HUSBAND)": {"name": "Bank", "owner": "HUSBAND", "type": "CASH", "currency": "TWD"},
            },
            "Bank (HUSBAND)": 1000,
            "Stray (WIFE)": "20",
        })
        assert record.values == {
            "Bank (HUSBAND)": Decimal("1000"),
            "Stray (WIFE)": Decimal("20"),
        }
        assert record.meta["Bank (HUSBAND)"].owner == "HUSBAND"
        assert record.orphan_keys == ["Stray (WIFE)"]
        assert record.month_label == "05"

    @pytest.mark.parametrize("meta", [["x"], "oops", None])
    def test_non_object_meta_becomes_empty(self, meta):
        """A meta that is not an object is dropped, values are kept."""
        record = HistoryRecord.model_validate({"month": "2024-01", "meta": meta, "Bank (HUSBAND)": 1})
        assert record.meta == {}
        assert record.values == {"Bank (HUSBAND)": Decimal("1")}

    def test_display_name_alias(self):
        """displayName is preferred over name for the series label."""
        record = HistoryRecord.model_validate({
            "month": "2024-05",
            "meta": {"k": {"name": "Bank", "displayName": "Bank (HUSBAND)"}},
            "k": 1,
        })
        assert record.meta["k"].label == "Bank (HUSBAND)"

    def test_payload_is_flat(self):
        """to_payload restores the wire layout."""
        record = HistoryRecord.model_validate({
            "month": "2024-05",
            "meta": {"k": {"name": "Bank"}},
            "k": 10,
        })
        payload = record.to_payload()
        assert payload["month"] == "2024-05"
        assert payload["k"] == 10.0
        assert payload["meta"]["k"]["displayName"] == ""


class TestLedgerSnapshot:
    """Tests for the snapshot container."""

    def test_non_list_collections_become_empty(self):
        snapshot = LedgerSnapshot.model_validate({"assets": None, "plans": "x", "history": [1, {"month": "2024-01"}]})
        assert snapshot.assets == []
        assert snapshot.plans == []
        assert len(snapshot.history) == 1

    def test_empty(self):
        assert LedgerSnapshot.empty().is_empty is True


class TestRateTable:
    """Tests for currency conversion."""

    def test_convert_to_base(self):
        rates = RateTable()
        assert rates.convert(100, "USD", "TWD") == Decimal("3158.00")

    def test_unknown_currency_counts_as_one(self):
        rates = RateTable()
        assert rates.convert(100, "XYZ", "TWD") == Decimal("100")

    def test_zero_rate_counts_as_one(self):
        rates = RateTable(rates={"TWD": 1, "ABC": 0})
        assert rates.rate_for("abc") == Decimal("1")

    def test_totals_net_worth(self):
        totals = CategoryTotals(cash=Decimal("1000"), stock=Decimal("500"), debt=Decimal("3158"))
        assert totals.net_worth == Decimal("-1658")
        assert totals.grand_total == Decimal("4658")


class TestWriteRequest:
    """Tests for the write payload."""

    def test_payload(self):
        request = LedgerWriteRequest(
            action=EditKind.ASSET.action,
            date_stamp=date(2024, 5, 1),
            id="a1",
            name="Bank",
            owner="HUSBAND",
            type="CASH",
            currency="TWD",
            amount=Decimal("1500"),
        )
        payload = request.to_payload()
        assert payload == {
            "action": "update_asset",
            "date": "2024-05-01",
            "id": "a1",
            "name": "Bank",
            "owner": "HUSBAND",
            "type": "CASH",
            "currency": "TWD",
            "amount": 1500.0,
            "frequency": "",
            "note": "",
        }
        assert request.is_delete is False

    def test_plan_kind_maps_to_update_plan(self):
        assert EditKind.PLAN.action == WriteAction.UPDATE_PLAN


class TestAuditModels:
    """Tests for audit-related models."""

    def test_audit_event_creation(self):
        """Test AuditEvent model creation."""
        event = AuditEvent(
            event_type=AuditEventType.SNAPSHOT_LOADED,
            description="Snapshot loaded",
        )
        assert event.event_type == AuditEventType.SNAPSHOT_LOADED
        assert event.severity == AuditSeverity.INFO

    def test_audit_event_to_log_dict(self):
        """Test conversion to log dictionary."""
        event = AuditEvent(
            event_type=AuditEventType.ITEM_SAVED,
            description="Asset saved",
            details={"name": "Bank", "amount": "1000"},
        )
        log_dict = event.to_log_dict()
        assert "event_id" in log_dict
        assert log_dict["event_type"] == "item_saved"
        assert log_dict["details"]["name"] == "Bank"

    def test_audit_event_builder_write_failed(self):
        """Failed writes are logged as errors."""
        correlation_id = uuid4()
        event = AuditEventBuilder.write_failed(
            action="update_asset",
            item_id="a1",
            error_message="HTTP 500",
            correlation_id=correlation_id,
        )
        assert event.event_type == AuditEventType.WRITE_FAILED
        assert event.severity == AuditSeverity.ERROR
        assert event.entity_id == "a1"
        assert event.correlation_id == correlation_id

    def test_audit_event_builder_edit_opened_for_new_item(self):
        """Opening a blank form has no entity id."""
        event = AuditEventBuilder.edit_opened(kind="plan", item_id=None, correlation_id=uuid4())
        assert event.entity_id is None
        assert event.is_user_action is True


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
