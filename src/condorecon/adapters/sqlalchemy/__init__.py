"""SQLAlchemy adapter package for condorecon."""

from __future__ import annotations

from .mappings import create_all_tables, mapper_registry, start_mappers
from .repositories import (
    SqlAlchemyApprovalRepository,
    SqlAlchemyBankTransactionRepository,
    SqlAlchemyCandidateRepository,
    SqlAlchemyHouseRecordRepository,
    SqlAlchemyHouseRepository,
    SqlAlchemyPeriodRepository,
    SqlAlchemyRecordRepository,
    SqlAlchemyTransactionStatusRepository,
    SqlAlchemyVoucherRepository,
)
from .unit_of_work import (
    SqlAlchemyReconciliationUnitOfWork,
    StartupError,
    configured_engine,
    is_started,
    shutdown,
    startup,
)

__all__ = [
    "SqlAlchemyApprovalRepository",
    "SqlAlchemyBankTransactionRepository",
    "SqlAlchemyCandidateRepository",
    "SqlAlchemyHouseRecordRepository",
    "SqlAlchemyHouseRepository",
    "SqlAlchemyPeriodRepository",
    "SqlAlchemyRecordRepository",
    "SqlAlchemyReconciliationUnitOfWork",
    "SqlAlchemyTransactionStatusRepository",
    "SqlAlchemyVoucherRepository",
    "StartupError",
    "configured_engine",
    "create_all_tables",
    "is_started",
    "mapper_registry",
    "shutdown",
    "start_mappers",
    "startup",
]
