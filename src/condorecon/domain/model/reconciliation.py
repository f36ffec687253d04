"""Value objects describing reconciliation outcomes.

None of these are persisted; they are assembled from records for one
request/response cycle.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Final

from condorecon.domain.temporal import round_half_up, to_datetime

from .enums import ConfidenceLevel, MatchCriteria

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence
    from datetime import date, datetime

    from .records import BankTransaction, Voucher

DEFAULT_MANUAL_REASON: Final[str] = "Multiple valid candidates"


@dataclass(frozen=True, slots=True)
class ReconciliationMatch:
    """Accepted pairing of a deposit with (optionally) a voucher."""

    transaction_id: int
    amount: float
    house_number: int
    match_criteria: tuple[MatchCriteria, ...]
    confidence_level: ConfidenceLevel
    voucher_id: int | None = None
    date_difference_hours: float | None = None

    @classmethod
    def create(
        cls,
        *,
        transaction: BankTransaction,
        house_number: int,
        match_criteria: Iterable[MatchCriteria],
        confidence_level: ConfidenceLevel,
        voucher: Voucher | None = None,
        date_difference_hours: float | None = None,
    ) -> ReconciliationMatch:
        if transaction.id is None:
            raise ValueError("Cannot build a match for an unsaved bank transaction")
        return cls(
            transaction_id=transaction.id,
            amount=transaction.amount,
            house_number=house_number,
            match_criteria=tuple(match_criteria),
            confidence_level=confidence_level,
            voucher_id=voucher.id if voucher is not None else None,
            date_difference_hours=date_difference_hours,
        )

    @property
    def has_voucher(self) -> bool:
        return self.voucher_id is not None

    @property
    def is_high_confidence(self) -> bool:
        return self.confidence_level == ConfidenceLevel.HIGH


@dataclass(frozen=True, slots=True)
class UnfundedVoucher:
    """Voucher left without a matching deposit."""

    voucher_id: int
    amount: float
    date: datetime
    reason: str

    @classmethod
    def from_voucher(cls, voucher: Voucher, reason: str) -> UnfundedVoucher:
        if voucher.id is None:
            raise ValueError("Cannot summarise an unsaved voucher")
        return cls(voucher_id=voucher.id, amount=voucher.amount, date=voucher.date, reason=reason)


@dataclass(frozen=True, slots=True)
class UnclaimedDeposit:
    """Deposit left without a matching voucher."""

    transaction_id: int
    amount: float
    date: date
    reason: str
    requires_manual_review: bool = True
    house_number: int | None = None

    @classmethod
    def from_transaction(
        cls,
        transaction: BankTransaction,
        reason: str,
        *,
        requires_manual_review: bool = True,
        house_number: int | None = None,
    ) -> UnclaimedDeposit:
        if transaction.id is None:
            raise ValueError("Cannot summarise an unsaved bank transaction")
        return cls(
            transaction_id=transaction.id,
            amount=transaction.amount,
            date=transaction.date,
            reason=reason,
            requires_manual_review=requires_manual_review,
            house_number=house_number,
        )


@dataclass(frozen=True, slots=True)
class PossibleMatch:
    voucher_id: int
    similarity_score: float
    date_difference_hours: float
    voucher_date: datetime | None = None
    house_number: int | None = None


def _parse_voucher_date(value: object) -> datetime | None:
    if not isinstance(value, str) or not value.strip():
        return None
    try:
        return to_datetime(value)
    except ValueError:
        return None


@dataclass(frozen=True, slots=True)
class ManualValidationCase:
    """Deposit with several weighted voucher candidates, resolved by a human."""

    transaction_id: int
    possible_matches: tuple[PossibleMatch, ...]
    reason: str

    @classmethod
    def create(
        cls,
        *,
        transaction: BankTransaction,
        possible_matches: Sequence[tuple[Voucher, float, float]],
        reason: str,
    ) -> ManualValidationCase:
        """Build a case from ``(voucher, similarity_score, date_difference_hours)`` triples."""

        if transaction.id is None:
            raise ValueError("Cannot build a validation case for an unsaved bank transaction")
        matches: list[PossibleMatch] = []
        for voucher, similarity_score, date_difference_hours in possible_matches:
            if voucher.id is None:
                raise ValueError("Possible matches must reference saved vouchers")
            matches.append(
                PossibleMatch(
                    voucher_id=voucher.id,
                    similarity_score=similarity_score,
                    date_difference_hours=date_difference_hours,
                    voucher_date=voucher.date,
                )
            )
        return cls(transaction_id=transaction.id, possible_matches=tuple(matches), reason=reason)

    @classmethod
    def from_details(
        cls,
        transaction_id: int,
        details: Mapping[str, Any] | None,
        *,
        default_reason: str = DEFAULT_MANUAL_REASON,
    ) -> ManualValidationCase:
        """Rebuild a case from the ``metadata`` of a REQUIRES_MANUAL status row.

        Entries of ``possibleMatches`` without an integer ``voucherId`` are skipped;
        missing scores default to 0.
        """

        details = details or {}
        matches: list[PossibleMatch] = []
        for raw in details.get("possibleMatches") or ():
            if not isinstance(raw, Mapping):
                continue
            voucher_id = raw.get("voucherId")
            if not isinstance(voucher_id, int) or isinstance(voucher_id, bool):
                continue
            house_number = raw.get("houseNumber")
            matches.append(
                PossibleMatch(
                    voucher_id=voucher_id,
                    similarity_score=float(raw.get("similarity") or 0),
                    date_difference_hours=float(raw.get("dateDifferenceHours") or 0),
                    voucher_date=_parse_voucher_date(raw.get("voucherDate")),
                    house_number=house_number if isinstance(house_number, int) else None,
                )
            )
        reason = details.get("reason")
        return cls(
            transaction_id=transaction_id,
            possible_matches=tuple(matches),
            reason=reason if isinstance(reason, str) and reason else default_reason,
        )

    @property
    def has_multiple_options(self) -> bool:
        return len(self.possible_matches) > 1

    def find_match(self, voucher_id: int) -> PossibleMatch | None:
        return next((m for m in self.possible_matches if m.voucher_id == voucher_id), None)


@dataclass(frozen=True, slots=True)
class ReconciliationSummary:
    """Aggregate counters of one reconciliation run."""

    total_processed: int = 0
    conciliados: int = 0
    unfunded_vouchers: int = 0
    unclaimed_deposits: int = 0
    requires_manual_validation: int = 0
    cross_matched: int = 0

    @classmethod
    def create(
        cls,
        *,
        total_processed: int,
        conciliados: int,
        unfunded_vouchers: int = 0,
        unclaimed_deposits: int = 0,
        requires_manual_validation: int = 0,
        cross_matched: int = 0,
    ) -> ReconciliationSummary:
        return cls(
            total_processed=total_processed,
            conciliados=conciliados,
            unfunded_vouchers=unfunded_vouchers,
            unclaimed_deposits=unclaimed_deposits,
            requires_manual_validation=requires_manual_validation,
            cross_matched=cross_matched,
        )

    @property
    def success_rate(self) -> int:
        """Percentage of processed transactions that were reconciled."""

        if self.total_processed == 0:
            return 0
        return int(round_half_up(self.conciliados / self.total_processed * 100))

    @property
    def has_manual_review(self) -> bool:
        return self.requires_manual_validation > 0


@dataclass(frozen=True, slots=True)
class MatchSuggestion:
    """Proposed pairing of an unclaimed deposit with an unfunded voucher."""

    deposit_id: int
    voucher_id: int
    amount: float
    deposit_date: str
    deposit_time: str | None
    voucher_date: str
    house_number: int | None
    confidence: ConfidenceLevel
    reason: str


@dataclass(frozen=True, slots=True)
class MatchSuggestionsResult:
    suggestions: tuple[MatchSuggestion, ...] = field(default_factory=tuple)

    @property
    def total_suggestions(self) -> int:
        return len(self.suggestions)

    @property
    def high_confidence(self) -> int:
        return sum(1 for item in self.suggestions if item.confidence == ConfidenceLevel.HIGH)

    @property
    def medium_confidence(self) -> int:
        return sum(1 for item in self.suggestions if item.confidence == ConfidenceLevel.MEDIUM)
