"""Ports the reconciliation services depend on."""

from __future__ import annotations

from .allocation import AllocationRequest, PaymentAllocator
from .persistence import (
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
from .unit_of_work import ReconciliationRepositories, ReconciliationUnitOfWork, UnitOfWork

__all__ = [
    "AllocationRequest",
    "ApprovalRepository",
    "BankTransactionRepository",
    "CandidateRepository",
    "HouseRecordRepository",
    "HouseRepository",
    "PaymentAllocator",
    "PeriodRepository",
    "ReconciliationRepositories",
    "ReconciliationUnitOfWork",
    "RecordRepository",
    "TransactionStatusRepository",
    "UnitOfWork",
    "VoucherRepository",
]
