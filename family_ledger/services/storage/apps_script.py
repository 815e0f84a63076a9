"""
Spreadsheet Web-App Storage Implementation

DESIGN DECISION: The ledger lives in a spreadsheet that exposes a small
web-app script. We talk to it over plain HTTP because:
1. The household can keep editing the sheet by hand
2. No credentials live on the client; the script URL is the only secret
3. The script owns row layout, so this client only deals in JSON

TRADEOFFS:
- A read returns everything; there is no partial fetch
- Writes are posted as a text body and the response body is never read,
  so a write that the script rejects looks like a success here
- There are no transactions; concurrent writes land in arrival order

Reads retry transport failures; writes are sent exactly once.
"""

import json
import time
from typing import Any, Optional

import httpx
import structlog
from pydantic import ValidationError
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from family_ledger.config import LedgerEndpointSettings, get_settings
from family_ledger.models.ledger import (
    LedgerSnapshot,
    LedgerWriteRequest,
    WriteResult,
)
from family_ledger.services.storage.interface import (
    ConnectionError,
    LedgerStorageInterface,
    SnapshotRejectedError,
    StorageError,
)


SUCCESS_STATUS = "success"

# The script parses the raw body itself; a JSON content type would
# trigger a CORS preflight it cannot answer
WRITE_HEADERS = {"Content-Type": "text/plain;charset=utf-8"}


class AppsScriptLedgerStorage(LedgerStorageInterface):
    """
    Ledger storage backed by a spreadsheet web-app endpoint.

    GET <url>?t=<epoch-ms> returns {status, assets, plans, history};
    POST <url> with a JSON text body updates one asset or plan.
    """

    def __init__(
        self,
        settings: Optional[LedgerEndpointSettings] = None,
        client: Optional[httpx.AsyncClient] = None,
        wait: Any = None,
    ):
        """
        Args:
            settings: Endpoint settings. Loaded from the environment if None.
            client: HTTP client to use. One is created (and owned) if None.
            wait: tenacity wait strategy between read attempts.
        """
        self._settings = settings or get_settings().endpoint
        self._client = client
        self._owns_client = client is None
        self._wait = wait or wait_exponential(multiplier=1, min=2, max=10)
        self._logger = structlog.get_logger(__name__)

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self._settings.timeout_seconds,
                follow_redirects=True,
            )
        return self._client

    async def fetch_snapshot(self) -> LedgerSnapshot:
        """Read the whole ledger, retrying transport failures."""
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self._settings.read_attempts),
            wait=self._wait,
            retry=retry_if_exception_type(ConnectionError),
            reraise=True,
        )
        async for attempt in retrying:
            with attempt:
                payload = await self._get_payload()
        return self._parse_snapshot(payload)

    async def _get_payload(self) -> Any:
        client = self._get_client()
        # Cache-busting parameter; the script ignores it
        params = {"t": str(int(time.time() * 1000))}
        try:
            response = await client.get(self._settings.url, params=params)
        except httpx.HTTPError as e:
            self._logger.warning("ledger_read_transport_error", error=str(e))
            raise ConnectionError(f"Failed to reach ledger endpoint: {e}")

        if response.is_error:
            raise StorageError(f"Ledger endpoint returned HTTP {response.status_code}")

        try:
            return response.json()
        except ValueError as e:
            raise StorageError(f"Ledger endpoint returned invalid JSON: {e}")

    def _parse_snapshot(self, payload: Any) -> LedgerSnapshot:
        if not isinstance(payload, dict):
            raise StorageError("Ledger endpoint returned a non-object body")

        status = payload.get("status")
        if status != SUCCESS_STATUS:
            raise SnapshotRejectedError(status, payload.get("message"))

        try:
            return LedgerSnapshot.model_validate(payload)
        except ValidationError as e:
            raise StorageError(f"Ledger snapshot is malformed: {e}")
        except (AttributeError, TypeError, ValueError) as e:
            raise StorageError(f"Ledger snapshot could not be parsed: {e}") from e

    async def send_update(self, request: LedgerWriteRequest) -> WriteResult:
        """Post one update. The response body is not read."""
        client = self._get_client()
        body = json.dumps(request.to_payload(), ensure_ascii=False).encode("utf-8")
        try:
            response = await client.post(
                self._settings.url,
                content=body,
                headers=WRITE_HEADERS,
            )
        except httpx.HTTPError as e:
            self._logger.warning(
                "ledger_write_transport_error",
                action=request.action.value,
                error=str(e),
            )
            return WriteResult(
                success=False,
                action=request.action,
                error=str(e) or e.__class__.__name__,
            )

        if response.is_error:
            return WriteResult(
                success=False,
                action=request.action,
                status_code=response.status_code,
                error=f"HTTP {response.status_code}",
            )

        return WriteResult(
            success=True,
            action=request.action,
            status_code=response.status_code,
        )

    async def close(self) -> None:
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None
