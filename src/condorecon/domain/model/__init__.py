"""Public domain model surface."""

from __future__ import annotations

from condorecon.domain.model.audit import ManualValidationApproval
from condorecon.domain.model.enums import (
    UNCLAIMED_STATUSES,
    ConfidenceLevel,
    MatchCriteria,
    ValidationStatus,
)
from condorecon.domain.model.reconciliation import (
    ManualValidationCase,
    MatchSuggestion,
    MatchSuggestionsResult,
    PossibleMatch,
    ReconciliationMatch,
    ReconciliationSummary,
    UnclaimedDeposit,
    UnfundedVoucher,
)
from condorecon.domain.model.records import (
    AllocationLine,
    AllocationResult,
    BankTransaction,
    House,
    HouseRecord,
    Period,
    Record,
    TransactionStatus,
    Voucher,
    is_unclaimed_status,
)

__all__ = [  # noqa: RUF022
    # records
    "BankTransaction",
    "TransactionStatus",
    "Voucher",
    "House",
    "Record",
    "HouseRecord",
    "Period",
    "AllocationLine",
    "AllocationResult",
    "is_unclaimed_status",
    # audit
    "ManualValidationApproval",
    # value objects
    "ReconciliationMatch",
    "UnfundedVoucher",
    "UnclaimedDeposit",
    "PossibleMatch",
    "ManualValidationCase",
    "ReconciliationSummary",
    "MatchSuggestion",
    "MatchSuggestionsResult",
    # enums
    "ConfidenceLevel",
    "MatchCriteria",
    "ValidationStatus",
    "UNCLAIMED_STATUSES",
]
