from __future__ import annotations

from datetime import date
from typing import TYPE_CHECKING

import pytest
from sqlalchemy import create_engine

from condorecon.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyReconciliationUnitOfWork,
    StartupError,
    configured_engine,
    is_started,
    shutdown,
    startup,
)
from condorecon.domain.model import BankTransaction, House

if TYPE_CHECKING:
    from collections.abc import Iterator

    from sqlalchemy.engine import Engine


@pytest.fixture(autouse=True)
def reset_unit_of_work_state() -> Iterator[None]:
    shutdown()
    yield
    shutdown()


def test_unit_of_work_requires_startup() -> None:
    assert not is_started()
    with pytest.raises(StartupError):
        SqlAlchemyReconciliationUnitOfWork()


def test_startup_requires_force_for_reconfiguration() -> None:
    engine_a = create_engine("sqlite+pysqlite:///:memory:")
    engine_b = create_engine("sqlite+pysqlite:///:memory:")

    startup(engine=engine_a, force=True)

    with pytest.raises(StartupError):
        startup(engine=engine_b)

    startup(engine=engine_b, force=True)
    assert configured_engine() is engine_b


def test_startup_reads_database_uri_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DATABASE_URI", "sqlite+pysqlite:///:memory:")

    startup()

    engine = configured_engine()
    assert engine is not None
    assert engine.url.drivername == "sqlite+pysqlite"


def test_repositories_require_an_open_session(sqlite_engine: Engine) -> None:
    startup(engine=sqlite_engine, force=True)
    uow = SqlAlchemyReconciliationUnitOfWork()

    with pytest.raises(StartupError):
        _ = uow.repositories


def test_unit_of_work_persists_on_commit(sqlite_engine: Engine) -> None:
    startup(engine=sqlite_engine, force=True)

    with SqlAlchemyReconciliationUnitOfWork() as uow:
        uow.repositories.houses.add(House(number_house=42, user_id="owner"))
        uow.commit()

    with SqlAlchemyReconciliationUnitOfWork() as uow:
        house = uow.repositories.houses.get_by_number(42)
        assert house is not None
        assert house.user_id == "owner"


def test_unit_of_work_rolls_back_on_exception(sqlite_engine: Engine) -> None:
    startup(engine=sqlite_engine, force=True)

    with pytest.raises(RuntimeError, match="boom"), SqlAlchemyReconciliationUnitOfWork() as uow:
        uow.repositories.houses.add(House(number_house=7, user_id="owner"))
        raise RuntimeError("boom")

    with SqlAlchemyReconciliationUnitOfWork() as uow:
        assert uow.repositories.houses.get_by_number(7) is None


def test_uncommitted_work_is_discarded(sqlite_engine: Engine) -> None:
    startup(engine=sqlite_engine, force=True)

    with SqlAlchemyReconciliationUnitOfWork() as uow:
        deposit = BankTransaction(date=date(2025, 3, 10), amount=10.0)
        uow.session.add(deposit)
        uow.session.flush()
        deposit_id = deposit.id

    assert deposit_id is not None
    with SqlAlchemyReconciliationUnitOfWork() as uow:
        assert uow.repositories.bank_transactions.get(deposit_id) is None
