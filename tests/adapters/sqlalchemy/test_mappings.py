from __future__ import annotations

from datetime import UTC, date, datetime, timedelta, timezone
from typing import TYPE_CHECKING

import pytest
from sqlalchemy import String, cast, insert, inspect, select
from sqlalchemy.exc import IntegrityError

from condorecon.adapters.sqlalchemy import create_all_tables, start_mappers
from condorecon.adapters.sqlalchemy.mappings import (
    manual_validation_approvals_table,
    transactions_status_table,
)
from condorecon.domain.model import (
    BankTransaction,
    House,
    ManualValidationApproval,
    Period,
    TransactionStatus,
    ValidationStatus,
)

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine
    from sqlalchemy.orm import Session


def test_start_mappers_is_idempotent() -> None:
    # First invocation happens in the sqlite_engine fixture; calling again should be harmless.
    start_mappers()
    start_mappers()


def test_create_all_tables_registers_reconciliation_tables(sqlite_engine: Engine) -> None:
    create_all_tables(sqlite_engine)
    table_names = set(inspect(sqlite_engine).get_table_names())
    for required in (
        "transactions_bank",
        "transactions_status",
        "vouchers",
        "houses",
        "records",
        "house_records",
        "manual_validation_approvals",
        "periods",
    ):
        assert required in table_names


def test_status_is_stored_by_value(sqlite_session: Session) -> None:
    deposit = BankTransaction(date=date(2025, 3, 10), amount=100.0)
    sqlite_session.add(deposit)
    sqlite_session.flush()
    sqlite_session.add(
        TransactionStatus(
            transactions_bank_id=deposit.id,
            validation_status=ValidationStatus.NOT_FOUND,
            details={"conceptHouseNumber": 7},
        )
    )
    sqlite_session.commit()

    ts = transactions_status_table
    row = sqlite_session.execute(
        select(cast(ts.c.validation_status, String), ts.c.details)
    ).one()
    assert row[0] == "not-found"
    assert row[1] == {"conceptHouseNumber": 7}


def test_audit_timestamps_are_returned_in_utc(sqlite_session: Session) -> None:
    deposit = BankTransaction(date=date(2025, 3, 10), amount=100.0)
    sqlite_session.add(deposit)
    sqlite_session.flush()
    assert deposit.id is not None
    local = datetime(2025, 3, 14, 4, 30, tzinfo=timezone(timedelta(hours=-6)))
    sqlite_session.execute(
        insert(manual_validation_approvals_table).values(
            transaction_id=deposit.id,
            approved_by_user_id="admin",
            approval_notes="notes",
            approved_at=local,
        )
    )
    sqlite_session.commit()

    approval = sqlite_session.execute(select(ManualValidationApproval)).scalar_one()
    assert approval.approved_at == datetime(2025, 3, 14, 10, 30, tzinfo=UTC)
    assert approval.approved_at.tzinfo is not None


def test_house_numbers_are_unique(sqlite_session: Session) -> None:
    sqlite_session.add(House(number_house=5, user_id="a"))
    sqlite_session.flush()
    sqlite_session.add(House(number_house=5, user_id="b"))

    with pytest.raises(IntegrityError):
        sqlite_session.flush()


def test_periods_are_unique_per_month(sqlite_session: Session) -> None:
    sqlite_session.add(Period(year=2025, month=3))
    sqlite_session.flush()
    sqlite_session.add(Period(year=2025, month=3))

    with pytest.raises(IntegrityError):
        sqlite_session.flush()
