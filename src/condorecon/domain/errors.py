"""Errors raised by the reconciliation services.

Invalid input and not-found/conflict failures are raised before any write;
callers (the CLI or an HTTP layer) translate them into their own status codes.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from condorecon.config import BusinessRules


class ReconciliationError(Exception):
    """Base class for reconciliation failures surfaced to callers."""


class InvalidInputError(ReconciliationError):
    """Raised when a request is rejected before touching persistence."""


class InvalidHouseNumberError(InvalidInputError):
    def __init__(self, house_number: int, rules: BusinessRules) -> None:
        super().__init__(
            f"Invalid house number: {house_number}. Must be between "
            f"{rules.min_house_number} and {rules.max_house_number}"
        )
        self.house_number = house_number


class VoucherNotACandidateError(InvalidInputError):
    def __init__(self, deposit_id: int, voucher_id: int) -> None:
        super().__init__(
            f"Voucher {voucher_id} is not among the possible matches of deposit {deposit_id}"
        )
        self.deposit_id = deposit_id
        self.voucher_id = voucher_id


class MissingRejectionReasonError(InvalidInputError):
    def __init__(self) -> None:
        super().__init__("A rejection reason is required")


class NotFoundError(ReconciliationError):
    """Raised when a referenced record does not exist."""


class DepositNotFoundError(NotFoundError):
    def __init__(self, deposit_id: int) -> None:
        super().__init__(f"Bank transaction not found: {deposit_id}")
        self.deposit_id = deposit_id


class UnclaimedStatusNotFoundError(NotFoundError):
    def __init__(self, deposit_id: int) -> None:
        super().__init__(f"No unclaimed transaction status for deposit: {deposit_id}")
        self.deposit_id = deposit_id


class ManualCaseNotFoundError(NotFoundError):
    def __init__(self, deposit_id: int) -> None:
        super().__init__(f"No pending manual validation case for deposit: {deposit_id}")
        self.deposit_id = deposit_id


class VoucherNotFoundError(NotFoundError):
    def __init__(self, voucher_id: int) -> None:
        super().__init__(f"Voucher not found: {voucher_id}")
        self.voucher_id = voucher_id


class ConflictError(ReconciliationError):
    """Raised when the current state forbids the requested transition."""


class VoucherAlreadyReconciledError(ConflictError):
    def __init__(self, voucher_id: int) -> None:
        super().__init__(f"Voucher {voucher_id} was already reconciled")
        self.voucher_id = voucher_id


class DepositAlreadyReconciledError(ConflictError):
    def __init__(self, deposit_id: int) -> None:
        super().__init__(f"Deposit {deposit_id} was already assigned")
        self.deposit_id = deposit_id


class ConcurrentReconciliationError(ConflictError):
    """Raised in strict mode when the status transition affected no rows."""

    def __init__(self, deposit_id: int) -> None:
        super().__init__(
            f"Deposit {deposit_id} was reconciled by another request before this one committed"
        )
        self.deposit_id = deposit_id
