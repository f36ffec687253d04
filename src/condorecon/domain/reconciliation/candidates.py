"""Candidate rows read for cross-matching."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from datetime import date, datetime

    from condorecon.domain.model import ValidationStatus


@dataclass(frozen=True, slots=True)
class DepositCandidate:
    """An unclaimed deposit with one of its unclaimed status rows."""

    id: int
    amount: float
    date: date
    time: str | None
    status_id: int
    validation_status: ValidationStatus


@dataclass(frozen=True, slots=True)
class VoucherCandidate:
    """An unfunded voucher, optionally enriched with the house it was credited to."""

    id: int
    amount: float
    date: datetime
    house_number: int | None = None

    def with_house_number(self, house_number: int | None) -> VoucherCandidate:
        return replace(self, house_number=house_number)
