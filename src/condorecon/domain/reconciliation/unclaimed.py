"""Unclaimed deposits: paged listing and manual house assignment."""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import UTC, datetime
from logging import getLogger
from typing import TYPE_CHECKING

from condorecon.domain.errors import (
    DepositAlreadyReconciledError,
    DepositNotFoundError,
    InvalidHouseNumberError,
    UnclaimedStatusNotFoundError,
)
from condorecon.domain.model import AllocationResult, HouseRecord, ManualValidationApproval, Record

from .allocation import allocate_payment
from .apply import CONFIRMED, find_unclaimed_status, get_or_create_house
from .listing import Page, UnclaimedDepositItem, UnclaimedDepositsQuery, normalize_paging

if TYPE_CHECKING:
    from collections.abc import Callable

    from condorecon.config import BusinessRules
    from condorecon.domain.ports.allocation import PaymentAllocator
    from condorecon.domain.ports.unit_of_work import ReconciliationUnitOfWork

log = getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


def list_unclaimed_deposits(
    query: UnclaimedDepositsQuery,
    *,
    unit_of_work_factory: Callable[[], ReconciliationUnitOfWork],
) -> Page[UnclaimedDepositItem]:
    """Return one page of deposits whose status is CONFLICT or NOT_FOUND."""

    page, limit = normalize_paging(query.page, query.limit)
    query = replace(query, page=page, limit=limit)
    with unit_of_work_factory() as uow:
        total, items = uow.repositories.candidates.search_unclaimed_deposits(query)
    return Page(total_count=total, page=page, limit=limit, items=tuple(items))


@dataclass(frozen=True, slots=True)
class AssignedHouse:
    deposit_id: int
    house_number: int
    status: str = CONFIRMED
    payment_allocation: AllocationResult | None = None


@dataclass(frozen=True, slots=True)
class AssignHouseResult:
    message: str
    reconciliation: AssignedHouse
    assigned_at: datetime


def assign_house_to_deposit(  # noqa: PLR0913
    deposit_id: int,
    house_number: int,
    user_id: str,
    admin_notes: str | None = None,
    *,
    unit_of_work_factory: Callable[[], ReconciliationUnitOfWork],
    rules: BusinessRules,
    allocator: PaymentAllocator | None = None,
    clock: Callable[[], datetime] = _utcnow,
) -> AssignHouseResult:
    """Credit an unclaimed deposit to ``house_number`` without a voucher.

    Unlike cross-match application, a deposit whose confirmation flag is
    already set is rejected with :class:`DepositAlreadyReconciledError`.
    """

    if not rules.is_valid_house_number(house_number):
        raise InvalidHouseNumberError(house_number, rules)

    with unit_of_work_factory() as uow:
        repos = uow.repositories

        deposit = repos.bank_transactions.get(deposit_id)
        if deposit is None:
            raise DepositNotFoundError(deposit_id)
        if deposit.confirmation_status:
            raise DepositAlreadyReconciledError(deposit_id)
        status = find_unclaimed_status(repos.transaction_statuses, deposit_id)
        if status is None:
            raise UnclaimedStatusNotFoundError(deposit_id)

        try:
            house = get_or_create_house(repos.houses, house_number, rules=rules)
            processed_at = clock()
            repos.transaction_statuses.confirm_unclaimed(
                deposit_id,
                voucher_id=None,
                house_number=house_number,
                reason=f"Manual assignment by administrator: {admin_notes or 'No notes'}",
                processed_at=processed_at,
                status_id=status.id,
            )
            repos.bank_transactions.mark_confirmed(deposit_id)

            record = Record(transaction_status_id=status.id)
            repos.records.add(record)
            if record.id is None or house.id is None:
                raise RuntimeError("Record and house must have identifiers after flush")
            repos.house_records.add(HouseRecord(house_id=house.id, record_id=record.id))

            repos.approvals.append(
                ManualValidationApproval(
                    transaction_id=deposit_id,
                    voucher_id=None,
                    approved_by_user_id=user_id,
                    approval_notes=(
                        f"Manual assignment of house {house_number}. {admin_notes or ''}"
                    ).rstrip(),
                    approved_at=processed_at,
                )
            )
            uow.commit()
        except Exception as exc:
            log.error("Error assigning house to deposit %s: %s", deposit_id, exc)
            raise

    log.info("Deposit %s assigned to house %s by %s", deposit_id, house_number, user_id)

    assigned_at = clock()
    allocation = allocate_payment(
        allocator=allocator,
        unit_of_work_factory=unit_of_work_factory,
        record_id=record.id,
        house_number=house_number,
        amount=deposit.amount,
        now=assigned_at,
    )

    return AssignHouseResult(
        message=f"Deposit assigned to house {house_number}",
        reconciliation=AssignedHouse(
            deposit_id=deposit_id,
            house_number=house_number,
            payment_allocation=allocation,
        ),
        assigned_at=assigned_at,
    )
