"""Reconciliation services: cross-matching, application, listings, manual review."""

from __future__ import annotations

from .apply import AppliedReconciliation, ApplyMatchResult, apply_match_suggestion
from .candidates import DepositCandidate, VoucherCandidate
from .listing import (
    ManualCaseCounts,
    ManualCaseItem,
    ManualCasesQuery,
    Page,
    UnclaimedDepositItem,
    UnclaimedDepositsQuery,
    UnfundedVoucherItem,
    UnfundedVouchersQuery,
    normalize_paging,
)
from .manual import (
    ApproveCaseResult,
    ApprovedCase,
    ManualValidationStats,
    RejectCaseResult,
    approve_manual_case,
    get_manual_validation_stats,
    list_manual_cases,
    reject_manual_case,
)
from .matching import cross_match
from .suggestions import find_match_suggestions
from .unclaimed import (
    AssignedHouse,
    AssignHouseResult,
    assign_house_to_deposit,
    list_unclaimed_deposits,
)
from .unfunded import (
    MatchedVoucher,
    VoucherMatchResult,
    list_unfunded_vouchers,
    match_voucher_to_deposit,
)

__all__ = [
    "AppliedReconciliation",
    "ApplyMatchResult",
    "ApproveCaseResult",
    "ApprovedCase",
    "AssignHouseResult",
    "AssignedHouse",
    "DepositCandidate",
    "ManualCaseCounts",
    "ManualCaseItem",
    "ManualCasesQuery",
    "ManualValidationStats",
    "MatchedVoucher",
    "Page",
    "RejectCaseResult",
    "UnclaimedDepositItem",
    "UnclaimedDepositsQuery",
    "UnfundedVoucherItem",
    "UnfundedVouchersQuery",
    "VoucherCandidate",
    "VoucherMatchResult",
    "apply_match_suggestion",
    "approve_manual_case",
    "assign_house_to_deposit",
    "cross_match",
    "find_match_suggestions",
    "get_manual_validation_stats",
    "list_manual_cases",
    "list_unclaimed_deposits",
    "list_unfunded_vouchers",
    "match_voucher_to_deposit",
    "normalize_paging",
    "reject_manual_case",
]
