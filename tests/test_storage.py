"""
Tests for storage backends.

The spreadsheet endpoint is replaced by httpx.MockTransport; no network.
"""

import json
from datetime import date
from decimal import Decimal

import httpx
import pytest
from tenacity import wait_none

from family_ledger.config import LedgerEndpointSettings
from family_ledger.models.ledger import (
    LedgerSnapshot,
    LedgerWriteRequest,
    WriteAction,
)
from family_ledger.services.storage import (
    AppsScriptLedgerStorage,
    ConnectionError,
    InMemoryLedgerStorage,
    SnapshotRejectedError,
    StorageError,
)


URL = "https://script.example.com/macros/s/abc/exec"

SNAPSHOT_BODY = {
    "status": "success",
    "assets": [
        {"id": "a1", "owner": "老公", "name": "Bank", "type": "現金", "currency": "TWD", "amount": "1,000"},
    ],
    "plans": [
        {"id": "p1", "owner": "wife", "name": "Rent", "type": "支出", "amount": 20000, "frequency": "每月"},
    ],
    "history": [
        {
            "month": "2024-05",
            "meta": {"Bank (HUSBAND)": {"name": "Bank", "owner": "HUSBAND", "type": "CASH", "currency": "TWD"}},
            "Bank (HUSBAND)": 1000,
        },
    ],
}


def make_storage(handler, read_attempts: int = 3) -> AppsScriptLedgerStorage:
    settings = LedgerEndpointSettings(url=URL, read_attempts=read_attempts)
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return AppsScriptLedgerStorage(settings=settings, client=client, wait=wait_none())


def make_request(**overrides) -> LedgerWriteRequest:
    fields = {
        "action": WriteAction.UPDATE_ASSET,
        "date_stamp": date(2024, 5, 20),
        "id": "a1",
        "name": "銀行存款",
        "owner": "HUSBAND",
        "type": "CASH",
        "currency": "TWD",
        "amount": Decimal("1500"),
    }
    fields.update(overrides)
    return LedgerWriteRequest(**fields)


class TestEndpointSettings:
    """Tests for endpoint configuration."""

    def test_url_must_be_http(self):
        with pytest.raises(ValueError):
            LedgerEndpointSettings(url="ftp://example.com")

    def test_read_attempts_bounds(self):
        with pytest.raises(ValueError):
            LedgerEndpointSettings(url=URL, read_attempts=0)


class TestFetchSnapshot:
    """Tests for reading the ledger."""

    @pytest.mark.asyncio
    async def test_success(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=SNAPSHOT_BODY)

        storage = make_storage(handler)
        snapshot = await storage.fetch_snapshot()

        assert len(snapshot.assets) == 1
        assert snapshot.assets[0].amount == Decimal("1000")
        assert snapshot.plans[0].name == "Rent"
        assert snapshot.history[0].values["Bank (HUSBAND)"] == Decimal("1000")

        assert seen[0].method == "GET"
        assert seen[0].url.params["t"].isdigit()

    @pytest.mark.asyncio
    async def test_missing_collections_are_empty(self):
        storage = make_storage(lambda request: httpx.Response(200, json={"status": "success"}))
        snapshot = await storage.fetch_snapshot()
        assert snapshot.is_empty

    @pytest.mark.asyncio
    async def test_rejected_status(self):
        body = {"status": "error", "message": "sheet missing"}
        storage = make_storage(lambda request: httpx.Response(200, json=body))
        with pytest.raises(SnapshotRejectedError) as exc_info:
            await storage.fetch_snapshot()
        assert exc_info.value.status == "error"
        assert "sheet missing" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_invalid_json(self):
        storage = make_storage(lambda request: httpx.Response(200, text="<html>login</html>"))
        with pytest.raises(StorageError):
            await storage.fetch_snapshot()

    @pytest.mark.asyncio
    async def test_non_object_body(self):
        storage = make_storage(lambda request: httpx.Response(200, json=[1, 2]))
        with pytest.raises(StorageError):
            await storage.fetch_snapshot()

    @pytest.mark.asyncio
    async def test_http_error_status_not_retried(self):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(500)

        storage = make_storage(handler)
        with pytest.raises(StorageError):
            await storage.fetch_snapshot()
        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_transport_errors_retried(self):
        calls = []

        def handler(request):
            calls.append(request)
            if len(calls) < 3:
                raise httpx.ConnectError("connection refused", request=request)
            return httpx.Response(200, json=SNAPSHOT_BODY)

        storage = make_storage(handler, read_attempts=3)
        snapshot = await storage.fetch_snapshot()
        assert len(calls) == 3
        assert len(snapshot.assets) == 1

    @pytest.mark.asyncio
    async def test_transport_errors_exhaust_attempts(self):
        calls = []

        def handler(request):
            calls.append(request)
            raise httpx.ConnectError("connection refused", request=request)

        storage = make_storage(handler, read_attempts=2)
        with pytest.raises(ConnectionError):
            await storage.fetch_snapshot()
        assert len(calls) == 2


class TestSendUpdate:
    """Tests for posting one update."""

    @pytest.mark.asyncio
    async def test_body_and_headers(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, text="ok")

        storage = make_storage(handler)
        result = await storage.send_update(make_request())

        assert result.success is True
        assert result.action == WriteAction.UPDATE_ASSET
        assert result.status_code == 200

        request = seen[0]
        assert request.method == "POST"
        assert request.headers["content-type"] == "text/plain;charset=utf-8"
        body = json.loads(request.content.decode("utf-8"))
        assert body["name"] == "銀行存款"
        assert body["date"] == "2024-05-20"
        assert body["amount"] == 1500.0
        assert "銀行存款".encode("utf-8") in request.content

    @pytest.mark.asyncio
    async def test_http_error_status(self):
        storage = make_storage(lambda request: httpx.Response(500))
        result = await storage.send_update(make_request())
        assert result.success is False
        assert result.status_code == 500
        assert result.error == "HTTP 500"

    @pytest.mark.asyncio
    async def test_transport_error_is_not_raised(self):
        calls = []

        def handler(request):
            calls.append(request)
            raise httpx.ConnectError("connection refused", request=request)

        storage = make_storage(handler)
        result = await storage.send_update(make_request(action=WriteAction.UPDATE_PLAN, frequency="YEARLY"))
        assert result.success is False
        assert result.action == WriteAction.UPDATE_PLAN
        assert result.status_code is None
        assert "connection refused" in result.error
        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_close_keeps_injected_client(self):
        client = httpx.AsyncClient(transport=httpx.MockTransport(lambda request: httpx.Response(200)))
        storage = AppsScriptLedgerStorage(
            settings=LedgerEndpointSettings(url=URL),
            client=client,
        )
        await storage.close()
        assert client.is_closed is False
        await client.aclose()


class TestInMemoryStorage:
    """Tests for the in-memory backend."""

    @pytest.mark.asyncio
    async def test_fetch_returns_copy(self):
        snapshot = LedgerSnapshot.model_validate({"assets": [{"id": "a1", "name": "Bank", "amount": 1}]})
        storage = InMemoryLedgerStorage(snapshot)
        fetched = await storage.fetch_snapshot()
        fetched.assets.clear()
        assert len(storage.snapshot.assets) == 1

    @pytest.mark.asyncio
    async def test_fail_reads(self):
        storage = InMemoryLedgerStorage(fail_reads=True)
        with pytest.raises(StorageError):
            await storage.fetch_snapshot()

    @pytest.mark.asyncio
    async def test_records_writes(self):
        storage = InMemoryLedgerStorage()
        result = await storage.send_update(make_request())
        assert result.success is True
        assert [r.id for r in storage.sent] == ["a1"]

    @pytest.mark.asyncio
    async def test_fail_writes(self):
        storage = InMemoryLedgerStorage(fail_writes=True)
        result = await storage.send_update(make_request())
        assert result.success is False
        assert storage.sent == []


class TestMalformedHistory:
    """Tests for history rows whose meta is not an object."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("meta", [["x"], "oops"])
    async def test_non_object_meta_is_ignored(self, meta):
        body = {
            "status": "success",
            "history": [{"month": "2024-01", "meta": meta, "Bank (HUSBAND)": 1}],
        }
        storage = make_storage(lambda request: httpx.Response(200, json=body))

        snapshot = await storage.fetch_snapshot()

        record = snapshot.history[0]
        assert record.meta == {}
        assert record.orphan_keys == ["Bank (HUSBAND)"]
