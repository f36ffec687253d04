"""Manual validation queue: deposits with several plausible vouchers.

An upstream step leaves such deposits in REQUIRES_MANUAL with the candidate
vouchers under ``possibleMatches`` in the status metadata. An operator then
approves one candidate or rejects the case. Both decisions are written in a
single unit of work together with an audit row; a rejected deposit falls back
to NOT_FOUND and reappears among the unclaimed deposits.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import UTC, datetime, timedelta
from logging import getLogger
from typing import TYPE_CHECKING

from condorecon.domain.errors import (
    DepositNotFoundError,
    ManualCaseNotFoundError,
    MissingRejectionReasonError,
    VoucherAlreadyReconciledError,
    VoucherNotACandidateError,
    VoucherNotFoundError,
)
from condorecon.domain.model import (
    AllocationResult,
    HouseRecord,
    ManualValidationApproval,
    ManualValidationCase,
    Record,
    ValidationStatus,
)
from condorecon.domain.temporal import extract_house_number_from_cents, round_half_up

from .allocation import allocate_payment
from .apply import CONFIRMED, get_or_create_house
from .listing import ManualCaseItem, ManualCasesQuery, Page, normalize_paging

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from condorecon.config import BusinessRules
    from condorecon.domain.model import PossibleMatch, TransactionStatus
    from condorecon.domain.ports.allocation import PaymentAllocator
    from condorecon.domain.ports.persistence import TransactionStatusRepository
    from condorecon.domain.ports.unit_of_work import ReconciliationUnitOfWork

log = getLogger(__name__)

UNKNOWN_RANGE = "unknown"


def _utcnow() -> datetime:
    return datetime.now(UTC)


def list_manual_cases(
    query: ManualCasesQuery,
    *,
    unit_of_work_factory: Callable[[], ReconciliationUnitOfWork],
) -> Page[ManualCaseItem]:
    """Return one page of deposits waiting for a manual decision."""

    page, limit = normalize_paging(query.page, query.limit)
    query = replace(query, page=page, limit=limit)
    with unit_of_work_factory() as uow:
        total, items = uow.repositories.candidates.search_manual_cases(query)
    return Page(total_count=total, page=page, limit=limit, items=tuple(items))


def find_manual_status(
    statuses: TransactionStatusRepository, deposit_id: int
) -> TransactionStatus | None:
    for status in statuses.list_for_transaction(deposit_id):
        if status.validation_status == ValidationStatus.REQUIRES_MANUAL:
            return status
    return None


def _case_house_number(amount: float, match: PossibleMatch, rules: BusinessRules) -> int | None:
    cents = extract_house_number_from_cents(amount)
    if rules.is_valid_house_number(cents):
        return cents
    if match.house_number is not None and rules.is_valid_house_number(match.house_number):
        return match.house_number
    return None


@dataclass(frozen=True, slots=True)
class ApprovedCase:
    deposit_id: int
    voucher_id: int
    house_number: int | None
    status: str = CONFIRMED
    payment_allocation: AllocationResult | None = None


@dataclass(frozen=True, slots=True)
class ApproveCaseResult:
    message: str
    reconciliation: ApprovedCase
    approved_at: datetime


@dataclass(frozen=True, slots=True)
class RejectCaseResult:
    message: str
    deposit_id: int
    new_status: ValidationStatus
    rejected_at: datetime


def approve_manual_case(  # noqa: PLR0913
    deposit_id: int,
    voucher_id: int,
    user_id: str,
    approval_notes: str | None = None,
    *,
    unit_of_work_factory: Callable[[], ReconciliationUnitOfWork],
    rules: BusinessRules,
    allocator: PaymentAllocator | None = None,
    clock: Callable[[], datetime] = _utcnow,
) -> ApproveCaseResult:
    """Confirm ``deposit_id`` against one of its candidate vouchers.

    The house comes from the cents of the deposit, falling back to the
    candidate's own house number. When neither is in range the deposit is
    still confirmed but no payment record is written.
    """

    with unit_of_work_factory() as uow:
        repos = uow.repositories

        status = find_manual_status(repos.transaction_statuses, deposit_id)
        if status is None:
            raise ManualCaseNotFoundError(deposit_id)
        case = ManualValidationCase.from_details(deposit_id, status.details)
        match = case.find_match(voucher_id)
        if match is None:
            raise VoucherNotACandidateError(deposit_id, voucher_id)

        deposit = repos.bank_transactions.get(deposit_id)
        if deposit is None:
            raise DepositNotFoundError(deposit_id)
        voucher = repos.vouchers.get(voucher_id)
        if voucher is None:
            raise VoucherNotFoundError(voucher_id)
        if voucher.confirmation_status:
            raise VoucherAlreadyReconciledError(voucher_id)

        house_number = _case_house_number(deposit.amount, match, rules)
        record: Record | None = None
        try:
            processed_at = clock()
            repos.transaction_statuses.resolve_manual(
                deposit_id,
                validation_status=ValidationStatus.CONFIRMED,
                voucher_id=voucher_id,
                house_number=house_number,
                reason=f"Manual approval: {approval_notes or 'No notes'}",
                processed_at=processed_at,
                details={
                    **(status.details or {}),
                    "approvedVoucherId": voucher_id,
                    "approvalTimestamp": processed_at.isoformat(),
                },
            )
            repos.bank_transactions.mark_confirmed(deposit_id)
            repos.vouchers.mark_confirmed(voucher_id)

            if house_number is not None:
                house = get_or_create_house(repos.houses, house_number, rules=rules)
                record = Record(transaction_status_id=status.id, vouchers_id=voucher_id)
                repos.records.add(record)
                if record.id is None or house.id is None:
                    raise RuntimeError("Record and house must have identifiers after flush")
                repos.house_records.add(HouseRecord(house_id=house.id, record_id=record.id))

            repos.approvals.append(
                ManualValidationApproval(
                    transaction_id=deposit_id,
                    voucher_id=voucher_id,
                    approved_by_user_id=user_id,
                    approval_notes=approval_notes,
                    approved_at=processed_at,
                )
            )
            uow.commit()
        except Exception as exc:
            log.error("Error approving manual case for deposit %s: %s", deposit_id, exc)
            raise

    log.info(
        "Manual case for deposit %s approved with voucher %s by %s", deposit_id, voucher_id, user_id
    )

    allocation: AllocationResult | None = None
    if record is not None and house_number is not None:
        allocation = allocate_payment(
            allocator=allocator,
            unit_of_work_factory=unit_of_work_factory,
            record_id=record.id,
            house_number=house_number,
            amount=deposit.amount,
            now=processed_at,
        )

    return ApproveCaseResult(
        message="Case approved successfully",
        reconciliation=ApprovedCase(
            deposit_id=deposit_id,
            voucher_id=voucher_id,
            house_number=house_number,
            payment_allocation=allocation,
        ),
        approved_at=processed_at,
    )


def reject_manual_case(  # noqa: PLR0913
    deposit_id: int,
    user_id: str,
    rejection_reason: str,
    notes: str | None = None,
    *,
    unit_of_work_factory: Callable[[], ReconciliationUnitOfWork],
    clock: Callable[[], datetime] = _utcnow,
) -> RejectCaseResult:
    """Send a manual case back to NOT_FOUND, recording why."""

    rejection_reason = rejection_reason.strip()
    if not rejection_reason:
        raise MissingRejectionReasonError()

    with unit_of_work_factory() as uow:
        repos = uow.repositories

        status = find_manual_status(repos.transaction_statuses, deposit_id)
        if status is None:
            raise ManualCaseNotFoundError(deposit_id)

        try:
            processed_at = clock()
            repos.transaction_statuses.resolve_manual(
                deposit_id,
                validation_status=ValidationStatus.NOT_FOUND,
                voucher_id=None,
                house_number=None,
                reason=rejection_reason,
                processed_at=processed_at,
                details={
                    **(status.details or {}),
                    "rejectionReason": rejection_reason,
                    "rejectionTimestamp": processed_at.isoformat(),
                },
            )
            repos.approvals.append(
                ManualValidationApproval(
                    transaction_id=deposit_id,
                    voucher_id=None,
                    approved_by_user_id=user_id,
                    approval_notes=notes,
                    rejection_reason=rejection_reason,
                    approved_at=processed_at,
                )
            )
            uow.commit()
        except Exception as exc:
            log.error("Error rejecting manual case for deposit %s: %s", deposit_id, exc)
            raise

    log.info("Manual case for deposit %s rejected by %s", deposit_id, user_id)
    return RejectCaseResult(
        message="Case rejected successfully",
        deposit_id=deposit_id,
        new_status=ValidationStatus.NOT_FOUND,
        rejected_at=processed_at,
    )


@dataclass(frozen=True, slots=True)
class ManualValidationStats:
    total_pending: int
    total_approved: int
    total_rejected: int
    pending_last_24_hours: int
    approval_rate: float
    avg_approval_time_minutes: int
    distribution_by_house_range: dict[str, int] = field(default_factory=dict)


def _house_ranges(rules: BusinessRules) -> list[tuple[str, int, int]]:
    ranges = [(f"{low}-{low + 9}", low, low + 9) for low in (1, 11, 21, 31)]
    ranges.append((f"41-{rules.max_house_number}", 41, rules.max_house_number))
    return ranges


def _distribution(amounts: Sequence[float], rules: BusinessRules) -> dict[str, int]:
    ranges = _house_ranges(rules)
    distribution = {label: 0 for label, _, _ in ranges}
    distribution[UNKNOWN_RANGE] = 0
    for amount in amounts:
        house_number = extract_house_number_from_cents(amount)
        label = next(
            (label for label, low, high in ranges if low <= house_number <= high),
            UNKNOWN_RANGE,
        )
        distribution[label] += 1
    return distribution


def get_manual_validation_stats(
    *,
    unit_of_work_factory: Callable[[], ReconciliationUnitOfWork],
    rules: BusinessRules,
    clock: Callable[[], datetime] = _utcnow,
) -> ManualValidationStats:
    """Summarise the manual validation queue and past decisions.

    ``approval_rate`` is approved / (approved + rejected), 0 when nothing was
    decided yet. ``avg_approval_time_minutes`` averages the time from case
    creation to decision over approved and rejected cases.
    """

    now = clock()
    with unit_of_work_factory() as uow:
        candidates = uow.repositories.candidates
        counts = candidates.count_manual_cases(since=now - timedelta(hours=24))
        resolution_times = candidates.list_manual_resolution_times()
        pending_amounts = candidates.list_pending_manual_amounts()

    decided = counts.approved + counts.rejected
    approval_rate = round_half_up(counts.approved / decided, 2) if decided else 0.0
    minutes = [
        (processed_at - created_at) / timedelta(minutes=1)
        for created_at, processed_at in resolution_times
    ]
    avg_minutes = int(round_half_up(sum(minutes) / len(minutes))) if minutes else 0

    return ManualValidationStats(
        total_pending=counts.pending,
        total_approved=counts.approved,
        total_rejected=counts.rejected,
        pending_last_24_hours=counts.pending_since,
        approval_rate=approval_rate,
        avg_approval_time_minutes=avg_minutes,
        distribution_by_house_range=_distribution(pending_amounts, rules),
    )
