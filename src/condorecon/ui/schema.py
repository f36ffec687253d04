"""Pydantic models framing CLI input and JSON output."""

from __future__ import annotations

from datetime import date, datetime
from typing import TYPE_CHECKING, Annotated, Literal

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field
from pydantic.alias_generators import to_camel

if TYPE_CHECKING:
    from condorecon.domain.model import AllocationResult, MatchSuggestion, MatchSuggestionsResult
    from condorecon.domain.reconciliation import (
        ApplyMatchResult,
        ApproveCaseResult,
        AssignHouseResult,
        ManualCaseItem,
        ManualValidationStats,
        Page,
        RejectCaseResult,
        UnclaimedDepositItem,
        UnfundedVoucherItem,
        VoucherMatchResult,
    )


def _blank_to_none(value: object) -> object:
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return value


def _strip(value: object) -> object:
    return value.strip() if isinstance(value, str) else value


AdminNotes = Annotated[str | None, BeforeValidator(_blank_to_none)]
RequiredText = Annotated[str, BeforeValidator(_strip), Field(min_length=1)]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, indent=2)


# requests --------------------------------------------------------------------


class ApplyMatchRequest(CamelModel):
    deposit_id: int = Field(gt=0)
    voucher_id: int = Field(gt=0)
    house_number: int
    user_id: str = Field(min_length=1)
    admin_notes: AdminNotes = None


class AssignHouseRequest(CamelModel):
    deposit_id: int = Field(gt=0)
    house_number: int
    user_id: str = Field(min_length=1)
    admin_notes: AdminNotes = None


class MatchVoucherRequest(CamelModel):
    voucher_id: int = Field(gt=0)
    deposit_id: int = Field(gt=0)
    house_number: int
    user_id: str = Field(min_length=1)
    admin_notes: AdminNotes = None


class ApproveCaseRequest(CamelModel):
    deposit_id: int = Field(gt=0)
    voucher_id: int = Field(gt=0)
    user_id: str = Field(min_length=1)
    approval_notes: AdminNotes = None


class RejectCaseRequest(CamelModel):
    deposit_id: int = Field(gt=0)
    user_id: str = Field(min_length=1)
    rejection_reason: RequiredText
    notes: AdminNotes = None


# responses -------------------------------------------------------------------


class MatchSuggestionModel(CamelModel):
    deposit_id: int
    voucher_id: int
    amount: float
    deposit_date: str
    deposit_time: str | None
    voucher_date: str
    house_number: int | None
    confidence: Literal["high", "medium", "low", "manual"]
    reason: str

    @classmethod
    def from_domain(cls, suggestion: MatchSuggestion) -> MatchSuggestionModel:
        return cls(
            deposit_id=suggestion.deposit_id,
            voucher_id=suggestion.voucher_id,
            amount=suggestion.amount,
            deposit_date=suggestion.deposit_date,
            deposit_time=suggestion.deposit_time,
            voucher_date=suggestion.voucher_date,
            house_number=suggestion.house_number,
            confidence=suggestion.confidence.value,
            reason=suggestion.reason,
        )


class MatchSuggestionsResponse(CamelModel):
    total_suggestions: int
    high_confidence: int
    medium_confidence: int
    suggestions: list[MatchSuggestionModel]

    @classmethod
    def from_domain(cls, result: MatchSuggestionsResult) -> MatchSuggestionsResponse:
        return cls(
            total_suggestions=result.total_suggestions,
            high_confidence=result.high_confidence,
            medium_confidence=result.medium_confidence,
            suggestions=[MatchSuggestionModel.from_domain(s) for s in result.suggestions],
        )


class AppliedReconciliationModel(CamelModel):
    deposit_id: int
    voucher_id: int
    house_number: int
    status: str


class ApplyMatchResponse(CamelModel):
    message: str
    reconciliation: AppliedReconciliationModel
    applied_at: datetime

    @classmethod
    def from_domain(cls, result: ApplyMatchResult) -> ApplyMatchResponse:
        applied = result.reconciliation
        return cls(
            message=result.message,
            reconciliation=AppliedReconciliationModel(
                deposit_id=applied.deposit_id,
                voucher_id=applied.voucher_id,
                house_number=applied.house_number,
                status=applied.status,
            ),
            applied_at=result.applied_at,
        )


class AllocationLineModel(CamelModel):
    concept_type: str
    allocated_amount: float
    payment_status: str


class PaymentAllocationModel(CamelModel):
    total_distributed: float
    allocations: list[AllocationLineModel]

    @classmethod
    def from_domain(cls, result: AllocationResult) -> PaymentAllocationModel:
        return cls(
            total_distributed=result.total_distributed,
            allocations=[
                AllocationLineModel(
                    concept_type=line.concept_type,
                    allocated_amount=line.allocated_amount,
                    payment_status=line.payment_status,
                )
                for line in result.allocations
            ],
        )


class AssignedHouseModel(CamelModel):
    deposit_id: int
    house_number: int
    status: str
    payment_allocation: PaymentAllocationModel | None = None


class AssignHouseResponse(CamelModel):
    message: str
    reconciliation: AssignedHouseModel
    assigned_at: datetime

    @classmethod
    def from_domain(cls, result: AssignHouseResult) -> AssignHouseResponse:
        assigned = result.reconciliation
        allocation = assigned.payment_allocation
        return cls(
            message=result.message,
            reconciliation=AssignedHouseModel(
                deposit_id=assigned.deposit_id,
                house_number=assigned.house_number,
                status=assigned.status,
                payment_allocation=(
                    PaymentAllocationModel.from_domain(allocation) if allocation else None
                ),
            ),
            assigned_at=result.assigned_at,
        )


class UnclaimedDepositModel(CamelModel):
    deposit_id: int
    amount: float
    date: date
    time: str | None
    concept: str | None
    validation_status: str
    reason: str | None
    suggested_house_number: int | None
    concept_house_number: int | None
    processed_at: datetime | None

    @classmethod
    def from_domain(cls, item: UnclaimedDepositItem) -> UnclaimedDepositModel:
        return cls(
            deposit_id=item.deposit_id,
            amount=item.amount,
            date=item.date,
            time=item.time,
            concept=item.concept,
            validation_status=item.validation_status.value,
            reason=item.reason,
            suggested_house_number=item.suggested_house_number,
            concept_house_number=item.concept_house_number,
            processed_at=item.processed_at,
        )


class UnfundedVoucherModel(CamelModel):
    voucher_id: int
    amount: float
    date: datetime
    url: str | None
    house_number: int | None

    @classmethod
    def from_domain(cls, item: UnfundedVoucherItem) -> UnfundedVoucherModel:
        return cls(
            voucher_id=item.voucher_id,
            amount=item.amount,
            date=item.date,
            url=item.url,
            house_number=item.house_number,
        )


class UnclaimedDepositsPageResponse(CamelModel):
    total_count: int
    page: int
    limit: int
    total_pages: int
    items: list[UnclaimedDepositModel]

    @classmethod
    def from_domain(cls, page: Page[UnclaimedDepositItem]) -> UnclaimedDepositsPageResponse:
        return cls(
            total_count=page.total_count,
            page=page.page,
            limit=page.limit,
            total_pages=page.total_pages,
            items=[UnclaimedDepositModel.from_domain(item) for item in page.items],
        )


class UnfundedVouchersPageResponse(CamelModel):
    total_count: int
    page: int
    limit: int
    total_pages: int
    items: list[UnfundedVoucherModel]

    @classmethod
    def from_domain(cls, page: Page[UnfundedVoucherItem]) -> UnfundedVouchersPageResponse:
        return cls(
            total_count=page.total_count,
            page=page.page,
            limit=page.limit,
            total_pages=page.total_pages,
            items=[UnfundedVoucherModel.from_domain(item) for item in page.items],
        )


class MatchedVoucherModel(CamelModel):
    voucher_id: int
    deposit_id: int
    house_number: int
    status: str
    payment_allocation: PaymentAllocationModel | None = None


class VoucherMatchResponse(CamelModel):
    message: str
    reconciliation: MatchedVoucherModel
    matched_at: datetime

    @classmethod
    def from_domain(cls, result: VoucherMatchResult) -> VoucherMatchResponse:
        matched = result.reconciliation
        allocation = matched.payment_allocation
        return cls(
            message=result.message,
            reconciliation=MatchedVoucherModel(
                voucher_id=matched.voucher_id,
                deposit_id=matched.deposit_id,
                house_number=matched.house_number,
                status=matched.status,
                payment_allocation=(
                    PaymentAllocationModel.from_domain(allocation) if allocation else None
                ),
            ),
            matched_at=result.matched_at,
        )


# manual validation -----------------------------------------------------------


class PossibleMatchModel(CamelModel):
    voucher_id: int
    similarity: float
    date_difference_hours: float
    voucher_date: datetime | None
    house_number: int | None


class ManualCaseModel(CamelModel):
    deposit_id: int
    amount: float
    date: date
    time: str | None
    concept: str | None
    suggested_house_number: int | None
    possible_matches: list[PossibleMatchModel]
    reason: str
    created_at: datetime | None
    status: str

    @classmethod
    def from_domain(cls, item: ManualCaseItem) -> ManualCaseModel:
        return cls(
            deposit_id=item.deposit_id,
            amount=item.amount,
            date=item.date,
            time=item.time,
            concept=item.concept,
            suggested_house_number=item.suggested_house_number,
            possible_matches=[
                PossibleMatchModel(
                    voucher_id=match.voucher_id,
                    similarity=match.similarity_score,
                    date_difference_hours=match.date_difference_hours,
                    voucher_date=match.voucher_date,
                    house_number=match.house_number,
                )
                for match in item.possible_matches
            ],
            reason=item.reason,
            created_at=item.created_at,
            status=item.status,
        )


class ManualCasesPageResponse(CamelModel):
    total_count: int
    page: int
    limit: int
    total_pages: int
    items: list[ManualCaseModel]

    @classmethod
    def from_domain(cls, page: Page[ManualCaseItem]) -> ManualCasesPageResponse:
        return cls(
            total_count=page.total_count,
            page=page.page,
            limit=page.limit,
            total_pages=page.total_pages,
            items=[ManualCaseModel.from_domain(item) for item in page.items],
        )


class ApprovedCaseModel(CamelModel):
    deposit_id: int
    voucher_id: int
    house_number: int | None
    status: str
    payment_allocation: PaymentAllocationModel | None = None


class ApproveCaseResponse(CamelModel):
    message: str
    reconciliation: ApprovedCaseModel
    approved_at: datetime

    @classmethod
    def from_domain(cls, result: ApproveCaseResult) -> ApproveCaseResponse:
        approved = result.reconciliation
        allocation = approved.payment_allocation
        return cls(
            message=result.message,
            reconciliation=ApprovedCaseModel(
                deposit_id=approved.deposit_id,
                voucher_id=approved.voucher_id,
                house_number=approved.house_number,
                status=approved.status,
                payment_allocation=(
                    PaymentAllocationModel.from_domain(allocation) if allocation else None
                ),
            ),
            approved_at=result.approved_at,
        )


class RejectCaseResponse(CamelModel):
    message: str
    deposit_id: int
    new_status: str
    rejected_at: datetime

    @classmethod
    def from_domain(cls, result: RejectCaseResult) -> RejectCaseResponse:
        return cls(
            message=result.message,
            deposit_id=result.deposit_id,
            new_status=result.new_status.value,
            rejected_at=result.rejected_at,
        )


class ManualValidationStatsResponse(CamelModel):
    total_pending: int
    total_approved: int
    total_rejected: int
    pending_last_24_hours: int
    approval_rate: float
    avg_approval_time_minutes: int
    distribution_by_house_range: dict[str, int]

    @classmethod
    def from_domain(cls, stats: ManualValidationStats) -> ManualValidationStatsResponse:
        return cls(
            total_pending=stats.total_pending,
            total_approved=stats.total_approved,
            total_rejected=stats.total_rejected,
            pending_last_24_hours=stats.pending_last_24_hours,
            approval_rate=stats.approval_rate,
            avg_approval_time_minutes=stats.avg_approval_time_minutes,
            distribution_by_house_range=dict(stats.distribution_by_house_range),
        )
