"""Persisted records of the reconciliation subsystem.

These are plain dataclasses; the SQLAlchemy adapter maps them imperatively onto
their tables. Identifiers are assigned by the database on flush.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from .enums import UNCLAIMED_STATUSES, ValidationStatus

if TYPE_CHECKING:
    from datetime import date


@dataclass(eq=False, kw_only=True)
class BankTransaction:
    """A row of an imported bank statement.

    ``confirmation_status`` is also set by the upstream surplus step to keep a
    deposit out of the primary pass, so it does not mean "reconciled". Whether a
    deposit is still claimable is decided by its ``TransactionStatus`` rows (see
    :func:`is_unclaimed_status`).
    """

    date: date
    amount: float
    is_deposit: bool = True
    time: str | None = None
    concept: str | None = None
    currency: str | None = None
    bank_name: str | None = None
    confirmation_status: bool = False
    id: int | None = None


@dataclass(eq=False, kw_only=True)
class TransactionStatus:
    """Outcome of validating one bank transaction."""

    transactions_bank_id: int | None
    validation_status: ValidationStatus = ValidationStatus.PENDING
    vouchers_id: int | None = None
    reason: str | None = None
    identified_house_number: int | None = None
    processed_at: datetime | None = None
    details: dict[str, Any] | None = None  # "metadata" column
    created_at: datetime = field(default_factory=lambda: datetime.now(tz=UTC))
    id: int | None = None


def is_unclaimed_status(status: TransactionStatus) -> bool:
    """Return whether ``status`` still marks its deposit as unclaimed."""

    return status.validation_status in UNCLAIMED_STATUSES


@dataclass(eq=False, kw_only=True)
class Voucher:
    """Payment receipt submitted by a resident."""

    date: datetime
    amount: float
    confirmation_status: bool = False
    authorization_number: str | None = None
    confirmation_code: str | None = None
    url: str | None = None
    id: int | None = None


@dataclass(eq=False, kw_only=True)
class House:
    number_house: int
    user_id: str
    id: int | None = None


@dataclass(eq=False, kw_only=True)
class Record:
    """Payment record linking a confirmed status row (and optionally a voucher)."""

    transaction_status_id: int | None = None
    vouchers_id: int | None = None
    id: int | None = None


@dataclass(eq=False, kw_only=True)
class HouseRecord:
    house_id: int
    record_id: int
    id: int | None = None


@dataclass(eq=False, kw_only=True)
class Period:
    year: int
    month: int
    id: int | None = None


@dataclass(kw_only=True)
class AllocationLine:
    concept_type: str
    allocated_amount: float
    payment_status: str


@dataclass(kw_only=True)
class AllocationResult:
    total_distributed: float
    allocations: list[AllocationLine] = field(default_factory=list)
