"""Post-commit payment allocation shared by the reconciliation workflows.

Allocation runs after the reconciliation transaction committed. Its failures
are logged and swallowed: the reconciliation stays in place and allocation can
be re-run later.
"""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from condorecon.domain.model import Period
from condorecon.domain.ports.allocation import AllocationRequest

if TYPE_CHECKING:
    from collections.abc import Callable
    from datetime import datetime

    from condorecon.domain.model import AllocationResult
    from condorecon.domain.ports.allocation import PaymentAllocator
    from condorecon.domain.ports.unit_of_work import ReconciliationUnitOfWork

log = getLogger(__name__)


def get_or_create_period(uow: ReconciliationUnitOfWork, *, year: int, month: int) -> Period:
    """Return the accounting period for ``year``/``month``, creating and committing it if absent."""

    periods = uow.repositories.periods
    period = periods.find_by_year_and_month(year, month)
    if period is not None:
        return period
    period = Period(year=year, month=month)
    periods.add(period)
    uow.commit()
    log.info("Created accounting period %s-%02d", year, month)
    return period


def allocate_payment(
    *,
    allocator: PaymentAllocator | None,
    unit_of_work_factory: Callable[[], ReconciliationUnitOfWork],
    record_id: int,
    house_number: int,
    amount: float,
    now: datetime,
) -> AllocationResult | None:
    """Distribute ``amount`` for ``house_number`` over the current period; never raises."""

    if allocator is None:
        log.info("No payment allocator configured, skipping allocation of record %s", record_id)
        return None

    try:
        with unit_of_work_factory() as uow:
            period = get_or_create_period(uow, year=now.year, month=now.month)
            house = uow.repositories.houses.get_by_number(house_number)
        if house is None or house.id is None or period.id is None:
            log.warning(
                "House %s or current period not available, allocation of record %s skipped",
                house_number,
                record_id,
            )
            return None
        result = allocator.execute(
            AllocationRequest(
                record_id=record_id,
                house_id=house.id,
                amount_to_distribute=amount,
                period_id=period.id,
            )
        )
    except Exception:  # noqa: BLE001
        log.exception(
            "Payment allocation failed for record %s (house %s). "
            "The reconciliation is committed; allocation must be retried separately.",
            record_id,
            house_number,
        )
        return None

    log.info(
        "Allocated %s over %s concepts for record %s",
        result.total_distributed,
        len(result.allocations),
        record_id,
    )
    return result
