"""Ports for reading and writing reconciliation records.

``add`` implementations flush, so the entity's ``id`` is set when they return.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from condorecon.domain.model import House, HouseRecord, Period, Record, TransactionStatus

if TYPE_CHECKING:
    from collections.abc import Sequence
    from datetime import datetime

    from condorecon.domain.model import (
        BankTransaction,
        ManualValidationApproval,
        ValidationStatus,
        Voucher,
    )
    from condorecon.domain.reconciliation.candidates import DepositCandidate, VoucherCandidate
    from condorecon.domain.reconciliation.listing import (
        ManualCaseCounts,
        ManualCaseItem,
        ManualCasesQuery,
        UnclaimedDepositItem,
        UnclaimedDepositsQuery,
        UnfundedVoucherItem,
        UnfundedVouchersQuery,
    )


@runtime_checkable
class Repository[TEntity](Protocol):
    """Minimal repository contract for a persistent record store."""

    def add(self, entity: TEntity) -> None: ...


@runtime_checkable
class BankTransactionRepository(Protocol):
    def get(self, transaction_id: int) -> BankTransaction | None: ...

    def mark_confirmed(self, transaction_id: int) -> None: ...


@runtime_checkable
class TransactionStatusRepository(Repository[TransactionStatus], Protocol):
    def list_for_transaction(self, transaction_id: int) -> Sequence[TransactionStatus]: ...

    def confirm_unclaimed(
        self,
        transaction_id: int,
        *,
        voucher_id: int | None,
        house_number: int,
        reason: str,
        processed_at: datetime,
        status_id: int | None = None,
    ) -> int:
        """Move unclaimed rows of a deposit to CONFIRMED and return the affected count.

        Only rows whose status is still CONFLICT or NOT_FOUND are touched. With
        ``status_id`` the update is restricted to that single row.
        """
        ...

    def resolve_manual(  # noqa: PLR0913
        self,
        transaction_id: int,
        *,
        validation_status: ValidationStatus,
        voucher_id: int | None,
        house_number: int | None,
        reason: str,
        processed_at: datetime,
        details: dict[str, Any],
    ) -> int:
        """Close the REQUIRES_MANUAL rows of a deposit and return the affected count."""
        ...


@runtime_checkable
class VoucherRepository(Protocol):
    def get(self, voucher_id: int) -> Voucher | None: ...

    def mark_confirmed(self, voucher_id: int) -> None: ...


@runtime_checkable
class HouseRepository(Repository[House], Protocol):
    def get_by_number(self, number_house: int) -> House | None: ...


@runtime_checkable
class RecordRepository(Repository[Record], Protocol):
    """Payment records."""


@runtime_checkable
class HouseRecordRepository(Repository[HouseRecord], Protocol):
    """House/record associations."""


@runtime_checkable
class ApprovalRepository(Protocol):
    """Insert-only audit trail; there is deliberately no update or delete."""

    def append(self, approval: ManualValidationApproval) -> None: ...


@runtime_checkable
class PeriodRepository(Repository[Period], Protocol):
    def find_by_year_and_month(self, year: int, month: int) -> Period | None: ...


@runtime_checkable
class CandidateRepository(Protocol):
    """Read-only queries producing reconciliation candidates."""

    def find_unclaimed_deposits(self) -> Sequence[DepositCandidate]: ...

    def find_unfunded_vouchers(self) -> Sequence[VoucherCandidate]: ...

    def find_house_numbers_for_vouchers(self, voucher_ids: Sequence[int]) -> dict[int, int]: ...

    def search_unclaimed_deposits(
        self, query: UnclaimedDepositsQuery
    ) -> tuple[int, Sequence[UnclaimedDepositItem]]: ...

    def search_unfunded_vouchers(
        self, query: UnfundedVouchersQuery
    ) -> tuple[int, Sequence[UnfundedVoucherItem]]: ...

    def search_manual_cases(
        self, query: ManualCasesQuery
    ) -> tuple[int, Sequence[ManualCaseItem]]: ...

    def count_manual_cases(self, *, since: datetime) -> ManualCaseCounts:
        """Deposit counts per manual outcome, plus pending cases opened at or after ``since``."""
        ...

    def list_manual_resolution_times(self) -> Sequence[tuple[datetime, datetime]]:
        """``(created_at, processed_at)`` of every approved or rejected case."""
        ...

    def list_pending_manual_amounts(self) -> Sequence[float]: ...
