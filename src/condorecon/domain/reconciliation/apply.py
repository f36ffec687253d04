"""Apply a cross-match suggestion as one atomic state transition.

Preconditions are checked in a fixed order, each with its own error. The
writes (status rows, confirmation flags, record, house record, audit row) run
inside a single unit of work: any failure rolls all of them back and the
exception propagates unchanged. Payment allocation runs afterwards and never
fails the call.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from logging import getLogger
from typing import TYPE_CHECKING

from condorecon.domain.errors import (
    ConcurrentReconciliationError,
    DepositNotFoundError,
    InvalidHouseNumberError,
    UnclaimedStatusNotFoundError,
    VoucherAlreadyReconciledError,
    VoucherNotFoundError,
)
from condorecon.domain.model import (
    House,
    HouseRecord,
    ManualValidationApproval,
    Record,
    TransactionStatus,
    is_unclaimed_status,
)

from .allocation import allocate_payment

if TYPE_CHECKING:
    from collections.abc import Callable

    from condorecon.config import BusinessRules
    from condorecon.domain.ports.allocation import PaymentAllocator
    from condorecon.domain.ports.persistence import HouseRepository, TransactionStatusRepository
    from condorecon.domain.ports.unit_of_work import ReconciliationUnitOfWork

log = getLogger(__name__)

CONFIRMED = "confirmed"


def _utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True, slots=True)
class AppliedReconciliation:
    deposit_id: int
    voucher_id: int
    house_number: int
    status: str = CONFIRMED


@dataclass(frozen=True, slots=True)
class ApplyMatchResult:
    message: str
    reconciliation: AppliedReconciliation
    applied_at: datetime


def find_unclaimed_status(
    statuses: TransactionStatusRepository, deposit_id: int
) -> TransactionStatus | None:
    for status in statuses.list_for_transaction(deposit_id):
        if is_unclaimed_status(status):
            return status
    return None


def get_or_create_house(
    houses: HouseRepository, house_number: int, *, rules: BusinessRules
) -> House:
    house = houses.get_by_number(house_number)
    if house is None:
        house = House(number_house=house_number, user_id=rules.system_user_id)
        houses.add(house)
        log.info("House %s created automatically for the system user", house_number)
    return house


def apply_match_suggestion(  # noqa: PLR0913
    deposit_id: int,
    voucher_id: int,
    house_number: int,
    user_id: str,
    admin_notes: str | None = None,
    *,
    unit_of_work_factory: Callable[[], ReconciliationUnitOfWork],
    rules: BusinessRules,
    allocator: PaymentAllocator | None = None,
    clock: Callable[[], datetime] = _utcnow,
    strict_transition: bool = False,
) -> ApplyMatchResult:
    """Reconcile ``deposit_id`` with ``voucher_id`` and credit it to ``house_number``.

    With ``strict_transition`` a bulk status update that touched no rows (another
    request confirmed the deposit in between) raises
    :class:`ConcurrentReconciliationError` instead of committing.
    """

    if not rules.is_valid_house_number(house_number):
        raise InvalidHouseNumberError(house_number, rules)

    with unit_of_work_factory() as uow:
        repos = uow.repositories

        deposit = repos.bank_transactions.get(deposit_id)
        if deposit is None:
            raise DepositNotFoundError(deposit_id)
        # The deposit's confirmation flag is not a guard here: the surplus step
        # sets it too. The status rows decide whether the deposit is claimable.
        status = find_unclaimed_status(repos.transaction_statuses, deposit_id)
        if status is None:
            raise UnclaimedStatusNotFoundError(deposit_id)

        voucher = repos.vouchers.get(voucher_id)
        if voucher is None:
            raise VoucherNotFoundError(voucher_id)
        if voucher.confirmation_status:
            raise VoucherAlreadyReconciledError(voucher_id)

        try:
            house = get_or_create_house(repos.houses, house_number, rules=rules)
            processed_at = clock()
            affected = repos.transaction_statuses.confirm_unclaimed(
                deposit_id,
                voucher_id=voucher_id,
                house_number=house_number,
                reason=f"Cross-match: {admin_notes or 'Reconciled from cross-matching suggestion'}",
                processed_at=processed_at,
            )
            log.info("Confirmed %s status rows for deposit %s", affected, deposit_id)
            if strict_transition and affected == 0:
                raise ConcurrentReconciliationError(deposit_id)

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
                        f"Cross-match applied: deposit {deposit_id} -> voucher {voucher_id} "
                        f"-> house {house_number}. {admin_notes or ''}"
                    ).rstrip(),
                    approved_at=processed_at,
                )
            )
            uow.commit()
        except Exception as exc:
            log.error("Error applying cross-match for deposit %s: %s", deposit_id, exc)
            raise

    applied_at = clock()
    record_id = record.id
    log.info(
        "Cross-match applied: deposit %s -> voucher %s -> house %s by %s",
        deposit_id,
        voucher_id,
        house_number,
        user_id,
    )

    allocate_payment(
        allocator=allocator,
        unit_of_work_factory=unit_of_work_factory,
        record_id=record_id,
        house_number=house_number,
        amount=deposit.amount,
        now=applied_at,
    )

    return ApplyMatchResult(
        message=(
            f"Cross-match applied: deposit {deposit_id} reconciled with voucher {voucher_id} "
            f"-> house {house_number}"
        ),
        reconciliation=AppliedReconciliation(
            deposit_id=deposit_id,
            voucher_id=voucher_id,
            house_number=house_number,
        ),
        applied_at=applied_at,
    )
