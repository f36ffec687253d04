"""Cross-matching of unclaimed deposits against unfunded vouchers.

Both candidate sets are bucketed by ``(calendar day, amount)``. Within a
bucket present on both sides, deposits are ordered by time of day and vouchers
by date, then paired index for index. The pairing is greedy and positional;
it does not search for the assignment with the smallest total time gap.
"""

from __future__ import annotations

from collections import defaultdict
from typing import TYPE_CHECKING, Protocol

from condorecon.domain.model import ConfidenceLevel, MatchSuggestion, MatchSuggestionsResult
from condorecon.domain.temporal import DateLike, format_day, to_datetime

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from condorecon.config import BusinessRules

    from .candidates import DepositCandidate, VoucherCandidate

type GroupKey = tuple[str, float]


class _Groupable(Protocol):
    @property
    def amount(self) -> float: ...

    @property
    def date(self) -> DateLike: ...


def group_key(item: _Groupable) -> GroupKey:
    # amounts compare exactly; upstream already normalised them to cents
    return (format_day(item.date), item.amount)


def group_by_day_and_amount[TItem: _Groupable](
    items: Iterable[TItem],
) -> dict[GroupKey, list[TItem]]:
    groups: dict[GroupKey, list[TItem]] = defaultdict(list)
    for item in items:
        groups[group_key(item)].append(item)
    return dict(groups)


def cross_match(
    deposits: Sequence[DepositCandidate],
    vouchers: Sequence[VoucherCandidate],
    *,
    rules: BusinessRules,
) -> MatchSuggestionsResult:
    """Pair deposits and vouchers sharing a ``(day, amount)`` key."""

    deposit_groups = group_by_day_and_amount(deposits)
    voucher_groups = group_by_day_and_amount(vouchers)

    suggestions: list[MatchSuggestion] = []
    for key, deposit_group in deposit_groups.items():
        voucher_group = voucher_groups.get(key)
        if not voucher_group:
            continue

        ordered_deposits = sorted(deposit_group, key=lambda deposit: deposit.time or "")
        ordered_vouchers = sorted(voucher_group, key=lambda voucher: to_datetime(voucher.date))
        same_count = len(ordered_deposits) == len(ordered_vouchers)

        for deposit, voucher in zip(ordered_deposits, ordered_vouchers, strict=False):
            has_house = rules.is_valid_house_number(voucher.house_number)
            confidence = (
                ConfidenceLevel.HIGH if same_count and has_house else ConfidenceLevel.MEDIUM
            )
            suggestions.append(
                MatchSuggestion(
                    deposit_id=deposit.id,
                    voucher_id=voucher.id,
                    amount=deposit.amount,
                    deposit_date=format_day(deposit.date),
                    deposit_time=deposit.time or None,
                    voucher_date=format_day(voucher.date),
                    house_number=voucher.house_number or None,
                    confidence=confidence,
                    reason=_build_reason(
                        amount=deposit.amount,
                        deposit_count=len(ordered_deposits),
                        voucher_count=len(ordered_vouchers),
                        house_number=voucher.house_number if has_house else None,
                    ),
                )
            )

    return MatchSuggestionsResult(suggestions=tuple(suggestions))


def format_amount(amount: float) -> str:
    if float(amount).is_integer():
        return str(int(amount))
    return str(amount)


def _build_reason(
    *,
    amount: float,
    deposit_count: int,
    voucher_count: int,
    house_number: int | None,
) -> str:
    reasons = [f"Same amount (${format_amount(amount)}) and same date"]
    if deposit_count == voucher_count:
        reasons.append(f"{deposit_count} deposit(s) = {voucher_count} voucher(s)")
    else:
        reasons.append(f"{deposit_count} deposit(s) vs {voucher_count} voucher(s) (partial)")
    if house_number is not None:
        reasons.append(f"House {house_number} identified")
    else:
        reasons.append("No house identified")
    return ". ".join(reasons)
