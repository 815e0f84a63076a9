"""Edit session package."""

from family_ledger.editing.session import (
    EditDraft,
    EditOutcome,
    EditSession,
    EditSessionError,
    EditState,
    EditValidationError,
    apply_edit,
    new_item_id,
)

__all__ = [
    "EditDraft",
    "EditOutcome",
    "EditSession",
    "EditSessionError",
    "EditState",
    "EditValidationError",
    "apply_edit",
    "new_item_id",
]
