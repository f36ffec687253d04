"""Unit-of-work abstractions for coordinating repositories."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from types import TracebackType

    from condorecon.domain.ports.persistence import (
        ApprovalRepository,
        BankTransactionRepository,
        CandidateRepository,
        HouseRecordRepository,
        HouseRepository,
        PeriodRepository,
        RecordRepository,
        TransactionStatusRepository,
        VoucherRepository,
    )


@runtime_checkable
class RepositoryCollection(Protocol):
    """Marker protocol for groups of repositories managed together."""


@runtime_checkable
class UnitOfWork[TRepositories: RepositoryCollection](Protocol):
    """Generic unit-of-work boundary around a repository collection."""

    @property
    def repositories(self) -> TRepositories: ...

    def __enter__(self) -> UnitOfWork[TRepositories]: ...

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> bool: ...

    def commit(self) -> None: ...

    def rollback(self) -> None: ...


@dataclass(slots=True)
class ReconciliationRepositories(RepositoryCollection):
    """Repositories touched by reconciliation workflows."""

    bank_transactions: BankTransactionRepository
    transaction_statuses: TransactionStatusRepository
    vouchers: VoucherRepository
    houses: HouseRepository
    records: RecordRepository
    house_records: HouseRecordRepository
    approvals: ApprovalRepository
    periods: PeriodRepository
    candidates: CandidateRepository


type ReconciliationUnitOfWork = UnitOfWork[ReconciliationRepositories]
