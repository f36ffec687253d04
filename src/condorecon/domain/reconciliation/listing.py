"""Read models and paging for unclaimed deposits, unfunded vouchers and manual cases."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Final, Literal

from condorecon.domain.temporal import extract_house_number_from_cents

if TYPE_CHECKING:
    from collections.abc import Sequence
    from datetime import date, datetime

    from condorecon.domain.model import PossibleMatch, ValidationStatus

DEFAULT_PAGE_SIZE: Final[int] = 20
MAX_PAGE_SIZE: Final[int] = 100

type SortBy = Literal["date", "amount"]
type StatusFilter = Literal["conflict", "not-found", "all"]
type ManualSortBy = Literal["date", "similarity", "candidates"]


def normalize_paging(page: int, limit: int) -> tuple[int, int]:
    """Clamp ``page`` to at least 1 and reset out-of-range ``limit`` to the default."""

    if page < 1:
        page = 1
    if limit < 1 or limit > MAX_PAGE_SIZE:
        limit = DEFAULT_PAGE_SIZE
    return page, limit


@dataclass(frozen=True, slots=True)
class UnclaimedDepositsQuery:
    start_date: date | None = None
    end_date: date | None = None
    validation_status: StatusFilter = "all"
    house_number: int | None = None
    page: int = 1
    limit: int = DEFAULT_PAGE_SIZE
    sort_by: SortBy = "date"

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


@dataclass(frozen=True, slots=True)
class UnfundedVouchersQuery:
    start_date: date | None = None
    end_date: date | None = None
    page: int = 1
    limit: int = DEFAULT_PAGE_SIZE
    sort_by: SortBy = "date"

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


@dataclass(frozen=True, slots=True)
class ManualCasesQuery:
    """Filters for pending manual cases.

    ``sort_by`` orders by newest case (``date``), lowest similarity first
    (``similarity``) or most candidates first (``candidates``).
    """

    start_date: date | None = None
    end_date: date | None = None
    house_number: int | None = None
    page: int = 1
    limit: int = DEFAULT_PAGE_SIZE
    sort_by: ManualSortBy = "date"

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


@dataclass(frozen=True, slots=True)
class UnclaimedDepositItem:
    deposit_id: int
    amount: float
    date: date
    time: str | None
    concept: str | None
    validation_status: ValidationStatus
    reason: str | None
    processed_at: datetime | None
    details: dict[str, Any] | None = None

    @property
    def suggested_house_number(self) -> int | None:
        """House number read from the cents of the amount, if any."""

        cents = extract_house_number_from_cents(self.amount)
        return cents if cents > 0 else None

    @property
    def concept_house_number(self) -> int | None:
        if not self.details:
            return None
        value = self.details.get("conceptHouseNumber")
        return value if isinstance(value, int) and value > 0 else None


@dataclass(frozen=True, slots=True)
class UnfundedVoucherItem:
    voucher_id: int
    amount: float
    date: datetime
    url: str | None = None
    house_number: int | None = None


@dataclass(frozen=True, slots=True)
class Page[TItem]:
    total_count: int
    page: int
    limit: int
    items: Sequence[TItem] = field(default_factory=tuple)

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total_count / self.limit) if self.limit else 0


@dataclass(frozen=True, slots=True)
class ManualCaseItem:
    deposit_id: int
    amount: float
    date: date
    time: str | None
    concept: str | None
    possible_matches: tuple[PossibleMatch, ...]
    reason: str
    created_at: datetime | None = None
    status: str = "pending"

    @property
    def suggested_house_number(self) -> int | None:
        cents = extract_house_number_from_cents(self.amount)
        return cents if cents > 0 else None


@dataclass(frozen=True, slots=True)
class ManualCaseCounts:
    """Deposit counts behind the manual validation statistics."""

    pending: int
    approved: int
    rejected: int
    pending_since: int
