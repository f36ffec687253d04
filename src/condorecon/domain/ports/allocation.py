"""Contract of the payment-allocation collaborator."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from condorecon.domain.model import AllocationResult


@dataclass(frozen=True, slots=True)
class AllocationRequest:
    record_id: int
    house_id: int
    amount_to_distribute: float
    period_id: int


@runtime_checkable
class PaymentAllocator(Protocol):
    """Distributes a confirmed payment over a house's charges for one period."""

    def execute(self, request: AllocationRequest) -> AllocationResult: ...
