"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class ValidationStatus(StrEnum):
    NOT_FOUND = "not-found"
    PENDING = "pending"
    CONFIRMED = "confirmed"
    REQUIRES_MANUAL = "requires-manual"
    CONFLICT = "conflict"


UNCLAIMED_STATUSES: frozenset[ValidationStatus] = frozenset(
    {ValidationStatus.CONFLICT, ValidationStatus.NOT_FOUND}
)


class ConfidenceLevel(StrEnum):
    HIGH = "high"  # amount + close date + single voucher
    MEDIUM = "medium"  # exact amount, several candidates
    LOW = "low"  # house from cents only, no voucher
    MANUAL = "manual"


class MatchCriteria(StrEnum):
    AMOUNT = "amount"
    DATE = "date"
    CONCEPT = "concept"
