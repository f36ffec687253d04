"""Audit records for manual and cross-match reconciliation decisions."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime


@dataclass(eq=False, kw_only=True)
class ManualValidationApproval:
    """Append-only record of who approved or rejected a reconciliation, and when.

    Rows are inserted once and never updated or deleted; the repository port
    only offers ``append``. ``rejection_reason`` is only set when a manual
    case was rejected; ``voucher_id`` is then empty.
    """

    transaction_id: int
    voucher_id: int | None
    approved_by_user_id: str
    approval_notes: str | None = None
    rejection_reason: str | None = None
    approved_at: datetime = field(default_factory=lambda: datetime.now(tz=UTC))
    id: int | None = None
