"""Unfunded vouchers: paged listing and manual matching to a deposit."""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import UTC, datetime
from logging import getLogger
from typing import TYPE_CHECKING

from condorecon.domain.errors import (
    DepositAlreadyReconciledError,
    DepositNotFoundError,
    InvalidHouseNumberError,
    VoucherAlreadyReconciledError,
    VoucherNotFoundError,
)
from condorecon.domain.model import (
    AllocationResult,
    HouseRecord,
    ManualValidationApproval,
    Record,
    TransactionStatus,
    ValidationStatus,
)

from .allocation import allocate_payment
from .apply import CONFIRMED, find_unclaimed_status, get_or_create_house
from .listing import Page, UnfundedVoucherItem, UnfundedVouchersQuery, normalize_paging

if TYPE_CHECKING:
    from collections.abc import Callable

    from condorecon.config import BusinessRules
    from condorecon.domain.ports.allocation import PaymentAllocator
    from condorecon.domain.ports.unit_of_work import ReconciliationUnitOfWork

log = getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


def list_unfunded_vouchers(
    query: UnfundedVouchersQuery,
    *,
    unit_of_work_factory: Callable[[], ReconciliationUnitOfWork],
) -> Page[UnfundedVoucherItem]:
    page, limit = normalize_paging(query.page, query.limit)
    query = replace(query, page=page, limit=limit)
    with unit_of_work_factory() as uow:
        candidates = uow.repositories.candidates
        total, items = candidates.search_unfunded_vouchers(query)
        house_numbers = (
            candidates.find_house_numbers_for_vouchers([item.voucher_id for item in items])
            if items
            else {}
        )
    enriched = tuple(
        replace(item, house_number=house_numbers.get(item.voucher_id, item.house_number))
        for item in items
    )
    return Page(total_count=total, page=page, limit=limit, items=enriched)


@dataclass(frozen=True, slots=True)
class MatchedVoucher:
    voucher_id: int
    deposit_id: int
    house_number: int
    status: str = CONFIRMED
    payment_allocation: AllocationResult | None = None


@dataclass(frozen=True, slots=True)
class VoucherMatchResult:
    message: str
    reconciliation: MatchedVoucher
    matched_at: datetime


def match_voucher_to_deposit(  # noqa: PLR0913
    voucher_id: int,
    deposit_id: int,
    house_number: int,
    user_id: str,
    admin_notes: str | None = None,
    *,
    unit_of_work_factory: Callable[[], ReconciliationUnitOfWork],
    rules: BusinessRules,
    allocator: PaymentAllocator | None = None,
    clock: Callable[[], datetime] = _utcnow,
) -> VoucherMatchResult:
    """Reconcile an unfunded voucher with a deposit picked by an operator.

    Both sides must still be unconfirmed. Unclaimed status rows of the deposit
    are confirmed in place; a deposit without one gets a new CONFIRMED row.
    """

    if not rules.is_valid_house_number(house_number):
        raise InvalidHouseNumberError(house_number, rules)

    with unit_of_work_factory() as uow:
        repos = uow.repositories

        voucher = repos.vouchers.get(voucher_id)
        if voucher is None:
            raise VoucherNotFoundError(voucher_id)
        if voucher.confirmation_status:
            raise VoucherAlreadyReconciledError(voucher_id)
        deposit = repos.bank_transactions.get(deposit_id)
        if deposit is None:
            raise DepositNotFoundError(deposit_id)
        if deposit.confirmation_status:
            raise DepositAlreadyReconciledError(deposit_id)

        try:
            house = get_or_create_house(repos.houses, house_number, rules=rules)
            processed_at = clock()
            reason = f"Manual voucher match: {admin_notes or 'No notes'}"
            status = find_unclaimed_status(repos.transaction_statuses, deposit_id)
            if status is not None:
                repos.transaction_statuses.confirm_unclaimed(
                    deposit_id,
                    voucher_id=voucher_id,
                    house_number=house_number,
                    reason=reason,
                    processed_at=processed_at,
                )
            else:
                status = TransactionStatus(
                    transactions_bank_id=deposit_id,
                    validation_status=ValidationStatus.CONFIRMED,
                    vouchers_id=voucher_id,
                    reason=reason,
                    identified_house_number=house_number,
                    processed_at=processed_at,
                )
                repos.transaction_statuses.add(status)

            repos.bank_transactions.mark_confirmed(deposit_id)
            repos.vouchers.mark_confirmed(voucher_id)

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
                    approval_notes=(
                        f"Voucher {voucher_id} matched to deposit {deposit_id} "
                        f"-> house {house_number}. {admin_notes or ''}"
                    ).rstrip(),
                    approved_at=processed_at,
                )
            )
            uow.commit()
        except Exception as exc:
            log.error("Error matching voucher %s to deposit %s: %s", voucher_id, deposit_id, exc)
            raise

    log.info(
        "Voucher %s reconciled with deposit %s -> house %s by %s",
        voucher_id,
        deposit_id,
        house_number,
        user_id,
    )

    matched_at = clock()
    allocation = allocate_payment(
        allocator=allocator,
        unit_of_work_factory=unit_of_work_factory,
        record_id=record.id,
        house_number=house_number,
        amount=deposit.amount,
        now=matched_at,
    )

    return VoucherMatchResult(
        message=f"Voucher {voucher_id} reconciled successfully with deposit {deposit_id}",
        reconciliation=MatchedVoucher(
            voucher_id=voucher_id,
            deposit_id=deposit_id,
            house_number=house_number,
            payment_allocation=allocation,
        ),
        matched_at=matched_at,
    )
