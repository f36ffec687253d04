"""SQLAlchemy mapping metadata for the reconciliation records."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from functools import cache
from typing import TYPE_CHECKING

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    Dialect,
    Enum,
    Float,
    ForeignKey,
    Integer,
    String,
    Table,
    Text,
    TypeDecorator,
    UniqueConstraint,
    orm,
)
from sqlalchemy.orm import configure_mappers

from condorecon.domain.model import (
    BankTransaction,
    House,
    HouseRecord,
    ManualValidationApproval,
    Period,
    Record,
    TransactionStatus,
    ValidationStatus,
    Voucher,
)

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

log = logging.getLogger(__name__)


class UTCDateTime(TypeDecorator[datetime]):
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        return value if value.tzinfo else value.replace(tzinfo=UTC)


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _enum_values(enum_cls: type[ValidationStatus]) -> list[str]:
    return [member.value for member in enum_cls]


mapper_registry = orm.registry()
mapper_registry.metadata.naming_convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_label)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_label)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

# Bank side -------------------------------------------------------------------

transactions_bank_table = Table(
    "transactions_bank",
    mapper_registry.metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("date", Date, nullable=False),
    Column("time", String(8), nullable=True),
    Column("concept", String, nullable=True),
    Column("amount", Float, nullable=False),
    Column("currency", String(3), nullable=True),
    Column("is_deposit", Boolean, nullable=False, default=True),
    Column("bank_name", String, nullable=True),
    Column("confirmation_status", Boolean, nullable=False, default=False),
)

vouchers_table = Table(
    "vouchers",
    mapper_registry.metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("date", DateTime, nullable=False),
    Column("amount", Float, nullable=False),
    Column("confirmation_status", Boolean, nullable=False, default=False),
    Column("authorization_number", String, nullable=True),
    Column("confirmation_code", String, nullable=True),
    Column("url", String, nullable=True),
)

transactions_status_table = Table(
    "transactions_status",
    mapper_registry.metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column(
        "validation_status",
        Enum(ValidationStatus, native_enum=False, values_callable=_enum_values),
        nullable=False,
        default=ValidationStatus.PENDING,
    ),
    Column(
        "transactions_bank_id",
        Integer,
        ForeignKey("transactions_bank.id", ondelete="CASCADE"),
        nullable=True,
    ),
    Column("vouchers_id", Integer, ForeignKey("vouchers.id"), nullable=True),
    Column("reason", Text, nullable=True),
    Column("identified_house_number", Integer, nullable=True),
    Column("processed_at", UTCDateTime(), nullable=True),
    Column("metadata", JSON, key="details", nullable=True),
    Column("created_at", UTCDateTime(), nullable=False, default=_utcnow),
)

# House side ------------------------------------------------------------------

houses_table = Table(
    "houses",
    mapper_registry.metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("number_house", Integer, nullable=False, unique=True),
    Column("user_id", String, nullable=False),
)

records_table = Table(
    "records",
    mapper_registry.metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column(
        "transaction_status_id",
        Integer,
        ForeignKey("transactions_status.id"),
        nullable=True,
    ),
    Column("vouchers_id", Integer, ForeignKey("vouchers.id"), nullable=True),
)

house_records_table = Table(
    "house_records",
    mapper_registry.metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("house_id", Integer, ForeignKey("houses.id", ondelete="CASCADE"), nullable=False),
    Column("record_id", Integer, ForeignKey("records.id", ondelete="CASCADE"), nullable=False),
    UniqueConstraint("house_id", "record_id", name="uq_house_records_house_id_record_id"),
)

manual_validation_approvals_table = Table(
    "manual_validation_approvals",
    mapper_registry.metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("transaction_id", Integer, ForeignKey("transactions_bank.id"), nullable=False),
    Column("voucher_id", Integer, ForeignKey("vouchers.id"), nullable=True),
    Column("approved_by_user_id", String, nullable=False),
    Column("approval_notes", Text, nullable=True),
    Column("rejection_reason", Text, nullable=True),
    Column("approved_at", UTCDateTime(), nullable=False),
)

periods_table = Table(
    "periods",
    mapper_registry.metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("year", Integer, nullable=False),
    Column("month", Integer, nullable=False),
    UniqueConstraint("year", "month", name="uq_periods_year_month"),
)


@cache
def start_mappers() -> orm.registry:
    """Configure SQLAlchemy mappers for the reconciliation records."""

    log.info("Starting SQLAlchemy mappers")

    mapper_registry.map_imperatively(BankTransaction, transactions_bank_table)
    mapper_registry.map_imperatively(Voucher, vouchers_table)
    mapper_registry.map_imperatively(TransactionStatus, transactions_status_table)
    mapper_registry.map_imperatively(House, houses_table)
    mapper_registry.map_imperatively(Record, records_table)
    mapper_registry.map_imperatively(HouseRecord, house_records_table)
    mapper_registry.map_imperatively(ManualValidationApproval, manual_validation_approvals_table)
    mapper_registry.map_imperatively(Period, periods_table)

    configure_mappers()
    return mapper_registry


def create_all_tables(engine: Engine) -> None:
    """Create database tables for the mapped metadata."""

    log.info("Creating all tables")
    mapper_registry.metadata.create_all(engine)
