"""Tests for the audit logger and settings."""

from uuid import uuid4

import pytest

from family_ledger.audit import AuditLogger, create_correlation_id
from family_ledger.config import (
    AppSettings,
    DisplaySettings,
    get_settings,
    validate_all_settings,
)
from family_ledger.models.audit import AuditEventBuilder, AuditEventType
from family_ledger.models.ledger import WriteAction, WriteResult


class TestAuditLogger:
    """Tests for the local audit log."""

    @pytest.mark.asyncio
    async def test_log_keeps_recent_events(self):
        audit_logger = AuditLogger(keep_last=2)
        for setting in ("owner", "currency", "title"):
            assert await audit_logger.log(AuditEventBuilder.settings_changed(setting, "x")) is True

        events = audit_logger.events
        assert len(events) == 2
        assert events[0].details == {"currency": "x"}

    @pytest.mark.asyncio
    async def test_write_result_success(self):
        audit_logger = AuditLogger()
        result = WriteResult(success=True, action=WriteAction.UPDATE_ASSET, status_code=200)
        await audit_logger.log_write_result("a1", result, uuid4())
        event = audit_logger.events[-1]
        assert event.event_type == AuditEventType.WRITE_SENT
        assert event.details["status_code"] == 200

    @pytest.mark.asyncio
    async def test_write_result_failure(self):
        audit_logger = AuditLogger()
        result = WriteResult(success=False, action=WriteAction.UPDATE_PLAN, error="HTTP 502")
        await audit_logger.log_write_result("p1", result, uuid4())
        event = audit_logger.events[-1]
        assert event.event_type == AuditEventType.WRITE_FAILED
        assert event.error_message == "HTTP 502"

    @pytest.mark.asyncio
    async def test_log_error(self):
        audit_logger = AuditLogger()
        await audit_logger.log_error("ValueError", "bad input", details={"field": "amount"})
        event = audit_logger.events[-1]
        assert event.event_type == AuditEventType.SYSTEM_ERROR
        assert event.details == {"field": "amount"}

    def test_correlation_ids_are_unique(self):
        assert create_correlation_id() != create_correlation_id()


class TestSettings:
    """Tests for environment configuration."""

    def test_display_defaults(self, monkeypatch):
        for name in ("LEDGER_DISPLAY_TITLE", "LEDGER_DISPLAY_CURRENCY", "LEDGER_DISPLAY_OWNER"):
            monkeypatch.delenv(name, raising=False)
        display = DisplaySettings()
        assert display.title == "家庭資產記帳本"
        assert display.currency == "TWD"
        assert display.owner == "all"

    def test_display_currency_from_env(self, monkeypatch):
        monkeypatch.setenv("LEDGER_DISPLAY_CURRENCY", "usd")
        assert DisplaySettings().currency == "USD"

    def test_display_currency_rejected(self, monkeypatch):
        monkeypatch.setenv("LEDGER_DISPLAY_CURRENCY", "XYZ")
        with pytest.raises(ValueError):
            DisplaySettings()

    def test_history_window_bounds(self):
        with pytest.raises(ValueError):
            AppSettings(history_window_months=0)

    def test_validate_all_settings(self, monkeypatch):
        monkeypatch.setenv("LEDGER_ENDPOINT_URL", "not-a-url")
        monkeypatch.delenv("LEDGER_DISPLAY_CURRENCY", raising=False)
        get_settings.cache_clear()

        status = validate_all_settings()

        assert status["endpoint"] is False
        assert "endpoint_error" in status
        assert status["display"] is True
        assert status["app"] is True

    def test_validate_all_settings_with_endpoint(self, monkeypatch):
        monkeypatch.setenv("LEDGER_ENDPOINT_URL", "https://script.example.com/exec")
        get_settings.cache_clear()

        assert validate_all_settings()["endpoint"] is True
