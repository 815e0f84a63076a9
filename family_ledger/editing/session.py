"""
Edit Session and Optimistic Edit Application

An edit target is either being VIEWED or EDITED (form open, holding a
draft copy of one asset or plan). Saving applies the draft to the local
snapshot immediately and produces the write request for the endpoint.

DESIGN DECISION: The local change is NOT rolled back if the write later
fails. The next successful read replaces local state wholesale, which is
the only reconciliation there is.

Deletion is requested with the explicit `delete` flag. An amount of
exactly 0 is still treated as a deletion, because that is how existing
sheets record removed rows.
"""

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any, Callable, Optional, Union
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, field_validator

from family_ledger.audit import create_correlation_id
from family_ledger.models.ledger import (
    BASE_CURRENCY,
    DELETE_NOTE,
    ZERO,
    Asset,
    EditKind,
    HistoryMeta,
    LedgerSnapshot,
    LedgerWriteRequest,
    Plan,
    normalize_currency,
    synthetic_key,
    to_decimal,
)
from family_ledger.normalization import (
    EntryType,
    Frequency,
    Owner,
    normalize_frequency,
    normalize_owner,
    normalize_type,
)


class EditValidationError(ValueError):
    """The draft is missing something required to save it."""

    def __init__(self, field: str, message: str):
        self.field = field
        super().__init__(message)


class EditSessionError(RuntimeError):
    """Operation not allowed in the session's current state."""
    pass


class EditState(str, Enum):
    VIEWING = "viewing"
    EDITING = "editing"


def new_item_id() -> str:
    """Identifier for an item created locally, before the sheet assigns one."""
    return f"temp_{uuid4().hex}"


class EditDraft(BaseModel):
    """Working copy of an asset or plan while the edit form is open."""
    model_config = ConfigDict(str_strip_whitespace=True)

    id: Optional[str] = None
    owner: Owner = Owner.HUSBAND
    type: EntryType = EntryType.CASH
    name: str = ""
    currency: str = BASE_CURRENCY
    amount: Optional[Decimal] = None
    frequency: Frequency = Frequency.MONTHLY
    note: Optional[str] = None
    delete: bool = False

    @field_validator('owner', mode='before')
    @classmethod
    def coerce_owner(cls, v: Any) -> Owner:
        return normalize_owner(v)

    @field_validator('type', mode='before')
    @classmethod
    def coerce_type(cls, v: Any) -> EntryType:
        return normalize_type(v)

    @field_validator('frequency', mode='before')
    @classmethod
    def coerce_frequency(cls, v: Any) -> Frequency:
        return normalize_frequency(v)

    @field_validator('currency', mode='before')
    @classmethod
    def coerce_currency(cls, v: Any) -> str:
        return normalize_currency(v)

    @field_validator('amount', mode='before')
    @classmethod
    def coerce_amount(cls, v: Any) -> Optional[Decimal]:
        if v is None or (isinstance(v, str) and not v.strip()):
            return None
        return to_decimal(v)

    @field_validator('name', mode='before')
    @classmethod
    def coerce_name(cls, v: Any) -> str:
        return "" if v is None else str(v)

    @classmethod
    def for_new(cls, kind: EditKind) -> "EditDraft":
        """Blank form defaults: husband's, in TWD, cash or a monthly expense."""
        entry_type = EntryType.EXPENSE if kind is EditKind.PLAN else EntryType.CASH
        return cls(type=entry_type)

    @classmethod
    def from_item(cls, item: Union[Asset, Plan]) -> "EditDraft":
        frequency = item.frequency if isinstance(item, Plan) else Frequency.MONTHLY
        return cls(
            id=item.id,
            owner=item.owner,
            type=item.type,
            name=item.name,
            currency=item.currency,
            amount=item.effective_amount,
            frequency=frequency,
            note=item.note,
        )

    @property
    def is_deletion(self) -> bool:
        return self.delete or self.amount == 0

    def check_complete(self) -> None:
        """Raise EditValidationError unless the draft can be saved."""
        if not self.name:
            raise EditValidationError("name", "Name is required")
        if self.amount is None and not self.delete:
            raise EditValidationError("amount", "Amount is required")

    def entry_type_for(self, kind: EditKind) -> EntryType:
        if kind is EditKind.PLAN:
            return EntryType.INCOME if self.type is EntryType.INCOME else EntryType.EXPENSE
        return self.type

    def type_choices(self, kind: EditKind) -> list[EntryType]:
        """
        Types the form offers for this kind.

        A type from the sheet outside the usual set (an asset typed as
        income, say) is kept as the last choice so saving does not change it.
        """
        if kind is EditKind.PLAN:
            return [EntryType.INCOME, EntryType.EXPENSE]
        choices = [EntryType.CASH, EntryType.STOCK, EntryType.DEBT]
        if self.type not in choices:
            choices.append(self.type)
        return choices

    def to_item(self, kind: EditKind, item_id: str) -> Union[Asset, Plan]:
        fields = {
            "id": item_id,
            "owner": self.owner,
            "type": self.entry_type_for(kind),
            "name": self.name,
            "currency": self.currency,
            "amount": self.amount,
            "note": self.note,
        }
        if kind is EditKind.PLAN:
            return Plan(frequency=self.frequency, **fields)
        return Asset(**fields)


class EditOutcome(BaseModel):
    """Result of applying a draft: the new local snapshot and the write to send."""

    snapshot: LedgerSnapshot
    request: LedgerWriteRequest
    item: Optional[Union[Asset, Plan]] = None
    deleted: bool = False


def apply_edit(
    snapshot: LedgerSnapshot,
    draft: EditDraft,
    kind: EditKind,
    today: Optional[date] = None,
    id_factory: Callable[[], str] = new_item_id,
) -> EditOutcome:
    """
    Apply a saved draft to a snapshot without mutating it.

    - Deletion removes the item with the draft's id from its collection.
    - Otherwise the item with the same id is replaced, or the draft is
      appended under a freshly generated id.
    - The latest history record is copied and its entry for the item's
      synthetic key is set to the new amount (0 on deletion), with the
      descriptor rewritten to the item's current owner/type/currency.
    """
    draft.check_complete()

    deleted = draft.is_deletion
    amount = ZERO if deleted else draft.amount
    entry_type = draft.entry_type_for(kind)
    items = list(snapshot.plans if kind is EditKind.PLAN else snapshot.assets)

    item = None
    if deleted:
        item_id = draft.id or ""
        items = [existing for existing in items if existing.id != draft.id]
    else:
        item_id = draft.id if draft.id is not None else id_factory()
        item = draft.to_item(kind, item_id)
        index = next(
            (n for n, existing in enumerate(items) if existing.id == item_id),
            None,
        )
        if index is None:
            items.append(item)
        else:
            items[index] = item

    history = list(snapshot.history)
    if history:
        latest = history[-1]
        key = synthetic_key(draft.name, draft.owner)
        meta = dict(latest.meta)
        values = dict(latest.values)
        values[key] = amount
        meta[key] = HistoryMeta(
            name=draft.name,
            owner=draft.owner.value.upper(),
            type=entry_type.value.upper(),
            currency=draft.currency,
            display_name=key,
        )
        history[-1] = latest.model_copy(update={"meta": meta, "values": values})

    collection = "plans" if kind is EditKind.PLAN else "assets"
    new_snapshot = snapshot.model_copy(update={collection: items, "history": history})

    request = LedgerWriteRequest(
        action=kind.action,
        date_stamp=today or date.today(),
        id=item_id,
        name=draft.name,
        owner=draft.owner.value.upper(),
        type=entry_type.value.upper(),
        currency=draft.currency,
        amount=amount,
        frequency=draft.frequency.value.upper() if kind is EditKind.PLAN else "",
        note=DELETE_NOTE if deleted else (draft.note or ""),
    )

    return EditOutcome(
        snapshot=new_snapshot,
        request=request,
        item=item,
        deleted=deleted,
    )


class EditSession:
    """
    Two-state edit form: VIEWING (closed) or EDITING (open with a draft).

    save() applies the draft and returns to VIEWING. An incomplete draft
    raises EditValidationError and leaves the form open.
    """

    def __init__(self):
        self._state = EditState.VIEWING
        self._kind: Optional[EditKind] = None
        self._draft: Optional[EditDraft] = None
        self._correlation_id: Optional[UUID] = None

    @property
    def state(self) -> EditState:
        return self._state

    @property
    def is_open(self) -> bool:
        return self._state is EditState.EDITING

    @property
    def kind(self) -> Optional[EditKind]:
        return self._kind

    @property
    def draft(self) -> Optional[EditDraft]:
        return self._draft

    @property
    def correlation_id(self) -> Optional[UUID]:
        return self._correlation_id

    def open(
        self,
        kind: EditKind,
        item: Optional[Union[Asset, Plan]] = None,
    ) -> EditDraft:
        """Open the form on an existing item, or blank when item is None."""
        self._kind = kind
        self._draft = EditDraft.from_item(item) if item is not None else EditDraft.for_new(kind)
        self._correlation_id = create_correlation_id()
        self._state = EditState.EDITING
        return self._draft

    def update(self, **changes: Any) -> EditDraft:
        """Change draft fields; values are normalized like any other input."""
        if not self.is_open:
            raise EditSessionError("No edit in progress")
        self._draft = EditDraft.model_validate({**self._draft.model_dump(), **changes})
        return self._draft

    def cancel(self) -> None:
        self._close()

    def save(
        self,
        snapshot: LedgerSnapshot,
        today: Optional[date] = None,
        id_factory: Callable[[], str] = new_item_id,
    ) -> EditOutcome:
        if not self.is_open:
            raise EditSessionError("No edit in progress")
        outcome = apply_edit(snapshot, self._draft, self._kind, today=today, id_factory=id_factory)
        self._close()
        return outcome

    def _close(self) -> None:
        self._state = EditState.VIEWING
        self._kind = None
        self._draft = None
        self._correlation_id = None
