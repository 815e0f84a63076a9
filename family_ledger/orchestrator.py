"""
Main Orchestrator for Family Ledger

This module ties together all the components and defines the
end-to-end flows for:
1. Refresh (endpoint → snapshot → local state)
2. View (local state → aggregated dashboard view)
3. Edit (open → draft → save → optimistic local change → write)

DESIGN DECISION: All mutable UI state lives in one AppState held by the
dashboard. Aggregation functions never see the dashboard; they receive
slices of the state as arguments.

Failure policy is best-effort throughout:
- A failed read resets local state to an empty ledger
- A failed write is audit-logged and reported, never raised
- Local edits are not rolled back; the next good read wins
"""

from datetime import date
from typing import Optional, Union

import structlog
from pydantic import BaseModel, Field

from family_ledger.aggregation import LedgerAggregator
from family_ledger.audit import AuditLogger
from family_ledger.config import (
    SELECTABLE_CURRENCIES,
    DisplaySettings,
    get_settings,
)
from family_ledger.editing import EditDraft, EditSession
from family_ledger.models.ledger import (
    Asset,
    DashboardView,
    EditKind,
    LedgerSnapshot,
    Plan,
    WriteResult,
    normalize_currency,
)
from family_ledger.normalization import OwnerFilter, normalize_owner_filter
from family_ledger.services.storage import (
    AppsScriptLedgerStorage,
    InMemoryLedgerStorage,
    LedgerStorageInterface,
    StorageError,
)


logger = structlog.get_logger(__name__)


class AppState(BaseModel):
    """Everything the dashboard needs to render, in one place."""

    title: str
    display_currency: str
    owner_filter: OwnerFilter = OwnerFilter.ALL
    snapshot: LedgerSnapshot = Field(default_factory=LedgerSnapshot.empty)
    loaded: bool = False
    last_error: Optional[str] = None


class LedgerDashboard:
    """
    Orchestrates the dashboard.

    Flow:
    1. refresh() replaces the local snapshot with the endpoint's
    2. view() recomputes totals, trends and cash flow from scratch
    3. open_edit() / update_draft() / save_edit() run one edit; the save
       is applied locally first and then written to the endpoint
    """

    def __init__(
        self,
        storage: LedgerStorageInterface,
        audit_logger: Optional[AuditLogger] = None,
        aggregator: Optional[LedgerAggregator] = None,
        display: Optional[DisplaySettings] = None,
    ):
        display = display or get_settings().display
        self._storage = storage
        self._audit_logger = audit_logger or AuditLogger()
        self._aggregator = aggregator or LedgerAggregator()
        self._session = EditSession()
        self._state = AppState(
            title=display.title,
            display_currency=display.currency,
            owner_filter=normalize_owner_filter(display.owner),
        )

    @property
    def state(self) -> AppState:
        return self._state

    @property
    def edit_session(self) -> EditSession:
        return self._session

    @property
    def audit_logger(self) -> AuditLogger:
        return self._audit_logger

    # -------------------------------------------------------------------------
    # Read
    # -------------------------------------------------------------------------

    async def refresh(self) -> LedgerSnapshot:
        """
        Replace local state with the endpoint's snapshot.

        Any failure resets the ledger to empty. Storage failures are
        expected; anything else is logged as a system error.
        """
        try:
            snapshot = await self._storage.fetch_snapshot()
        except StorageError as e:
            self._reset(str(e))
            await self._audit_logger.log_snapshot_failed(str(e))
        except Exception as e:
            self._reset(str(e))
            await self._audit_logger.log_error(
                error_type=type(e).__name__,
                error_message=str(e),
                details={"operation": "refresh"},
            )
        else:
            self._state.snapshot = snapshot
            self._state.last_error = None
            await self._audit_logger.log_snapshot_loaded(
                asset_count=len(snapshot.assets),
                plan_count=len(snapshot.plans),
                month_count=len(snapshot.history),
            )
        self._state.loaded = True
        return self._state.snapshot

    def _reset(self, error: str) -> None:
        self._state.snapshot = LedgerSnapshot.empty()
        self._state.last_error = error

    def view(self) -> DashboardView:
        return self._aggregator.build_view(
            self._state.snapshot,
            title=self._state.title,
            display_currency=self._state.display_currency,
            owner_filter=self._state.owner_filter,
        )

    # -------------------------------------------------------------------------
    # Display settings
    # -------------------------------------------------------------------------

    async def select_owner(self, owner: Union[str, OwnerFilter]) -> OwnerFilter:
        self._state.owner_filter = normalize_owner_filter(owner)
        await self._audit_logger.log_settings_changed("owner", self._state.owner_filter.value)
        return self._state.owner_filter

    async def select_currency(self, currency: str) -> str:
        code = normalize_currency(currency)
        if code not in SELECTABLE_CURRENCIES:
            raise ValueError(f"Unsupported display currency: {code}")
        self._state.display_currency = code
        await self._audit_logger.log_settings_changed("currency", code)
        return code

    async def rename(self, title: str) -> str:
        title = title.strip()
        if title:
            self._state.title = title
            await self._audit_logger.log_settings_changed("title", title)
        return self._state.title

    # -------------------------------------------------------------------------
    # Edit
    # -------------------------------------------------------------------------

    def find_item(self, kind: EditKind, item_id: str) -> Union[Asset, Plan]:
        items = self._state.snapshot.plans if kind is EditKind.PLAN else self._state.snapshot.assets
        for item in items:
            if item.id == item_id:
                return item
        raise KeyError(f"No {kind.value} with id {item_id!r}")

    async def open_edit(
        self,
        kind: EditKind,
        item_id: Optional[str] = None,
    ) -> EditDraft:
        """Open the edit form on an existing item, or blank for a new one."""
        item = self.find_item(kind, item_id) if item_id is not None else None
        draft = self._session.open(kind, item)
        await self._audit_logger.log_edit_opened(
            kind=kind.value,
            item_id=item_id,
            correlation_id=self._session.correlation_id,
        )
        return draft

    def update_draft(self, **changes) -> EditDraft:
        return self._session.update(**changes)

    async def cancel_edit(self) -> None:
        if not self._session.is_open:
            return
        await self._audit_logger.log_edit_cancelled(
            kind=self._session.kind.value,
            item_id=self._session.draft.id,
            correlation_id=self._session.correlation_id,
        )
        self._session.cancel()

    async def save_edit(self, today: Optional[date] = None) -> WriteResult:
        """
        Save the open draft.

        The change is applied to local state before the write is sent and
        stays applied whatever the write's outcome.

        Raises:
            EditValidationError: If the draft is incomplete (form stays open)
            EditSessionError: If no edit is in progress
        """
        kind = self._session.kind
        correlation_id = self._session.correlation_id

        outcome = self._session.save(self._state.snapshot, today=today)
        self._state.snapshot = outcome.snapshot

        request = outcome.request
        if outcome.deleted:
            await self._audit_logger.log_item_deleted(
                kind=kind.value,
                item_id=request.id,
                name=request.name,
                correlation_id=correlation_id,
            )
        else:
            await self._audit_logger.log_item_saved(
                kind=kind.value,
                item_id=request.id,
                name=request.name,
                amount=str(request.amount),
                correlation_id=correlation_id,
            )

        result = await self._storage.send_update(request)
        await self._audit_logger.log_write_result(
            item_id=request.id,
            result=result,
            correlation_id=correlation_id,
        )
        return result

    async def close(self) -> None:
        await self._storage.close()


def create_app_components(
    use_storage: bool = True,
) -> tuple[LedgerDashboard, LedgerStorageInterface]:
    """
    Factory function to create all application components.

    Args:
        use_storage: Whether to connect to the configured endpoint.
                    Without it (or without an endpoint configured) the
                    dashboard runs on an empty in-memory ledger.

    Returns:
        (dashboard, storage)
    """
    settings = get_settings()
    storage: Optional[LedgerStorageInterface] = None

    if use_storage:
        try:
            storage = AppsScriptLedgerStorage(settings.endpoint)
        except Exception as e:
            # Endpoint not configured - continue without it
            logger.warning("endpoint_not_configured", error=str(e))

    if storage is None:
        storage = InMemoryLedgerStorage()

    aggregator = LedgerAggregator(window_months=settings.app.history_window_months)
    dashboard = LedgerDashboard(
        storage=storage,
        audit_logger=AuditLogger(),
        aggregator=aggregator,
        display=settings.display,
    )
    return dashboard, storage
