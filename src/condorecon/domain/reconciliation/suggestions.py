"""Read side of cross-matching: load candidates and propose pairings."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from condorecon.domain.model import MatchSuggestionsResult

from .matching import cross_match

if TYPE_CHECKING:
    from collections.abc import Callable

    from condorecon.config import BusinessRules
    from condorecon.domain.ports.unit_of_work import ReconciliationUnitOfWork

log = getLogger(__name__)


def find_match_suggestions(
    *,
    unit_of_work_factory: Callable[[], ReconciliationUnitOfWork],
    rules: BusinessRules,
) -> MatchSuggestionsResult:
    """Suggest deposit/voucher pairings from the current unclaimed and unfunded sets.

    Read-only and idempotent: nothing is committed, so it is safe to call
    repeatedly and alongside other reconciliation requests.
    """

    with unit_of_work_factory() as uow:
        candidates = uow.repositories.candidates
        deposits = list(candidates.find_unclaimed_deposits())
        vouchers = list(candidates.find_unfunded_vouchers())
        if not deposits or not vouchers:
            log.info(
                "Cross-matching skipped: %s unclaimed deposits, %s unfunded vouchers",
                len(deposits),
                len(vouchers),
            )
            return MatchSuggestionsResult()

        house_numbers = candidates.find_house_numbers_for_vouchers([v.id for v in vouchers])

    enriched = [voucher.with_house_number(house_numbers.get(voucher.id)) for voucher in vouchers]
    result = cross_match(deposits, enriched, rules=rules)

    log.info(
        "Cross-matching: %s suggestions (%s high, %s medium)",
        result.total_suggestions,
        result.high_confidence,
        result.medium_confidence,
    )
    return result
