"""Application orchestration entry points."""

from __future__ import annotations

from collections.abc import Callable
from logging import getLogger
from typing import TYPE_CHECKING

from condorecon.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyReconciliationUnitOfWork,
    is_started,
    startup,
)
from condorecon.config import get_business_rules
from condorecon.domain import reconciliation
from condorecon.domain.ports.unit_of_work import ReconciliationUnitOfWork

if TYPE_CHECKING:
    from condorecon.config import BusinessRules
    from condorecon.domain.model import MatchSuggestionsResult
    from condorecon.domain.ports.allocation import PaymentAllocator
    from condorecon.domain.reconciliation import (
        ApplyMatchResult,
        ApproveCaseResult,
        AssignHouseResult,
        ManualCaseItem,
        ManualCasesQuery,
        ManualValidationStats,
        Page,
        RejectCaseResult,
        UnclaimedDepositItem,
        UnclaimedDepositsQuery,
        UnfundedVoucherItem,
        UnfundedVouchersQuery,
        VoucherMatchResult,
    )

UnitOfWorkFactory = Callable[[], ReconciliationUnitOfWork]


log = getLogger(__name__)


def _ensure_started() -> None:
    if not is_started():
        startup()


def init_database(*, database_uri: str | None = None) -> None:
    """Create the schema on the configured database."""

    startup(database_uri=database_uri, force=is_started())
    log.info("Database schema ready")


def find_match_suggestions(
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    rules: BusinessRules | None = None,
) -> MatchSuggestionsResult:
    """Compute cross-match suggestions against the configured database."""

    _ensure_started()
    return reconciliation.find_match_suggestions(
        unit_of_work_factory=unit_of_work_factory or SqlAlchemyReconciliationUnitOfWork,
        rules=rules or get_business_rules(),
    )


def apply_match_suggestion(  # noqa: PLR0913
    deposit_id: int,
    voucher_id: int,
    house_number: int,
    user_id: str,
    admin_notes: str | None = None,
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    rules: BusinessRules | None = None,
    allocator: PaymentAllocator | None = None,
    strict_transition: bool = False,
) -> ApplyMatchResult:
    """Apply one cross-match suggestion using the configured adapters."""

    _ensure_started()
    log.info(
        "Applying cross-match: deposit=%s, voucher=%s, house=%s, user=%s",
        deposit_id,
        voucher_id,
        house_number,
        user_id,
    )
    return reconciliation.apply_match_suggestion(
        deposit_id,
        voucher_id,
        house_number,
        user_id,
        admin_notes,
        unit_of_work_factory=unit_of_work_factory or SqlAlchemyReconciliationUnitOfWork,
        rules=rules or get_business_rules(),
        allocator=allocator,
        strict_transition=strict_transition,
    )


def list_unclaimed_deposits(
    query: UnclaimedDepositsQuery,
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> Page[UnclaimedDepositItem]:
    _ensure_started()
    return reconciliation.list_unclaimed_deposits(
        query,
        unit_of_work_factory=unit_of_work_factory or SqlAlchemyReconciliationUnitOfWork,
    )


def assign_house_to_deposit(  # noqa: PLR0913
    deposit_id: int,
    house_number: int,
    user_id: str,
    admin_notes: str | None = None,
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    rules: BusinessRules | None = None,
    allocator: PaymentAllocator | None = None,
) -> AssignHouseResult:
    _ensure_started()
    log.info("Assigning house %s to deposit %s (user %s)", house_number, deposit_id, user_id)
    return reconciliation.assign_house_to_deposit(
        deposit_id,
        house_number,
        user_id,
        admin_notes,
        unit_of_work_factory=unit_of_work_factory or SqlAlchemyReconciliationUnitOfWork,
        rules=rules or get_business_rules(),
        allocator=allocator,
    )


def list_unfunded_vouchers(
    query: UnfundedVouchersQuery,
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> Page[UnfundedVoucherItem]:
    _ensure_started()
    return reconciliation.list_unfunded_vouchers(
        query,
        unit_of_work_factory=unit_of_work_factory or SqlAlchemyReconciliationUnitOfWork,
    )


def match_voucher_to_deposit(  # noqa: PLR0913
    voucher_id: int,
    deposit_id: int,
    house_number: int,
    user_id: str,
    admin_notes: str | None = None,
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    rules: BusinessRules | None = None,
    allocator: PaymentAllocator | None = None,
) -> VoucherMatchResult:
    _ensure_started()
    log.info(
        "Matching voucher %s to deposit %s (house %s, user %s)",
        voucher_id,
        deposit_id,
        house_number,
        user_id,
    )
    return reconciliation.match_voucher_to_deposit(
        voucher_id,
        deposit_id,
        house_number,
        user_id,
        admin_notes,
        unit_of_work_factory=unit_of_work_factory or SqlAlchemyReconciliationUnitOfWork,
        rules=rules or get_business_rules(),
        allocator=allocator,
    )


def list_manual_cases(
    query: ManualCasesQuery,
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> Page[ManualCaseItem]:
    _ensure_started()
    return reconciliation.list_manual_cases(
        query,
        unit_of_work_factory=unit_of_work_factory or SqlAlchemyReconciliationUnitOfWork,
    )


def approve_manual_case(  # noqa: PLR0913
    deposit_id: int,
    voucher_id: int,
    user_id: str,
    approval_notes: str | None = None,
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    rules: BusinessRules | None = None,
    allocator: PaymentAllocator | None = None,
) -> ApproveCaseResult:
    _ensure_started()
    log.info(
        "Approving manual case: deposit=%s, voucher=%s, user=%s", deposit_id, voucher_id, user_id
    )
    return reconciliation.approve_manual_case(
        deposit_id,
        voucher_id,
        user_id,
        approval_notes,
        unit_of_work_factory=unit_of_work_factory or SqlAlchemyReconciliationUnitOfWork,
        rules=rules or get_business_rules(),
        allocator=allocator,
    )


def reject_manual_case(
    deposit_id: int,
    user_id: str,
    rejection_reason: str,
    notes: str | None = None,
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> RejectCaseResult:
    _ensure_started()
    log.info("Rejecting manual case: deposit=%s, user=%s", deposit_id, user_id)
    return reconciliation.reject_manual_case(
        deposit_id,
        user_id,
        rejection_reason,
        notes,
        unit_of_work_factory=unit_of_work_factory or SqlAlchemyReconciliationUnitOfWork,
    )


def get_manual_validation_stats(
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    rules: BusinessRules | None = None,
) -> ManualValidationStats:
    _ensure_started()
    return reconciliation.get_manual_validation_stats(
        unit_of_work_factory=unit_of_work_factory or SqlAlchemyReconciliationUnitOfWork,
        rules=rules or get_business_rules(),
    )
