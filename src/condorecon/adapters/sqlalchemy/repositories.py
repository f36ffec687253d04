"""Repository implementations backed by SQLAlchemy sessions."""

from __future__ import annotations

from datetime import datetime, time, timedelta
from typing import TYPE_CHECKING, Any, cast

from sqlalchemy import Integer, and_, false, func, or_, select, true, update
from sqlalchemy import cast as sql_cast

from condorecon.adapters.sqlalchemy.mappings import (
    house_records_table,
    houses_table,
    periods_table,
    records_table,
    transactions_bank_table,
    transactions_status_table,
    vouchers_table,
)
from condorecon.domain.model import (
    UNCLAIMED_STATUSES,
    BankTransaction,
    House,
    HouseRecord,
    ManualValidationCase,
    Period,
    Record,
    TransactionStatus,
    ValidationStatus,
    Voucher,
)
from condorecon.domain.reconciliation.candidates import DepositCandidate, VoucherCandidate
from condorecon.domain.reconciliation.listing import (
    ManualCaseCounts,
    ManualCaseItem,
    UnclaimedDepositItem,
    UnfundedVoucherItem,
)

if TYPE_CHECKING:
    from collections.abc import Sequence
    from datetime import date

    from sqlalchemy import ColumnElement, CursorResult, Select
    from sqlalchemy.orm import Session

    from condorecon.domain.model import ManualValidationApproval
    from condorecon.domain.reconciliation.listing import (
        ManualCasesQuery,
        UnclaimedDepositsQuery,
        UnfundedVouchersQuery,
    )

tb = transactions_bank_table
ts = transactions_status_table
v = vouchers_table

_UNCLAIMED = sorted(UNCLAIMED_STATUSES)


class _SessionRepository[TEntity]:
    """``add`` flushes so database identifiers are available to the caller."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entity: TEntity) -> None:
        self.session.add(entity)
        self.session.flush()


class SqlAlchemyBankTransactionRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, transaction_id: int) -> BankTransaction | None:
        return self.session.get(BankTransaction, transaction_id)

    def mark_confirmed(self, transaction_id: int) -> None:
        stmt = (
            update(BankTransaction)
            .where(tb.c.id == transaction_id)
            .values(confirmation_status=True)
            .execution_options(synchronize_session="evaluate")
        )
        self.session.execute(stmt)


class SqlAlchemyTransactionStatusRepository(_SessionRepository[TransactionStatus]):
    def list_for_transaction(self, transaction_id: int) -> Sequence[TransactionStatus]:
        stmt = (
            select(TransactionStatus)
            .where(ts.c.transactions_bank_id == transaction_id)
            .order_by(ts.c.id)
        )
        return list(self.session.execute(stmt).scalars())

    def confirm_unclaimed(
        self,
        transaction_id: int,
        *,
        voucher_id: int | None,
        house_number: int,
        reason: str,
        processed_at: datetime,
        status_id: int | None = None,
    ) -> int:
        stmt = (
            update(TransactionStatus)
            .where(ts.c.transactions_bank_id == transaction_id)
            .where(ts.c.validation_status.in_(_UNCLAIMED))
            .values(
                validation_status=ValidationStatus.CONFIRMED,
                vouchers_id=voucher_id,
                identified_house_number=house_number,
                reason=reason,
                processed_at=processed_at,
            )
            .execution_options(synchronize_session="evaluate")
        )
        if status_id is not None:
            stmt = stmt.where(ts.c.id == status_id)
        result = cast("CursorResult[Any]", self.session.execute(stmt))
        return result.rowcount

    def resolve_manual(  # noqa: PLR0913
        self,
        transaction_id: int,
        *,
        validation_status: ValidationStatus,
        voucher_id: int | None,
        house_number: int | None,
        reason: str,
        processed_at: datetime,
        details: dict[str, Any],
    ) -> int:
        stmt = (
            update(TransactionStatus)
            .where(ts.c.transactions_bank_id == transaction_id)
            .where(ts.c.validation_status == ValidationStatus.REQUIRES_MANUAL)
            .values(
                validation_status=validation_status,
                vouchers_id=voucher_id,
                identified_house_number=house_number,
                reason=reason,
                processed_at=processed_at,
                details=details,
            )
            .execution_options(synchronize_session="evaluate")
        )
        result = cast("CursorResult[Any]", self.session.execute(stmt))
        return result.rowcount


class SqlAlchemyVoucherRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, voucher_id: int) -> Voucher | None:
        return self.session.get(Voucher, voucher_id)

    def mark_confirmed(self, voucher_id: int) -> None:
        stmt = (
            update(Voucher)
            .where(v.c.id == voucher_id)
            .values(confirmation_status=True)
            .execution_options(synchronize_session="evaluate")
        )
        self.session.execute(stmt)


class SqlAlchemyHouseRepository(_SessionRepository[House]):
    def get_by_number(self, number_house: int) -> House | None:
        stmt = select(House).where(houses_table.c.number_house == number_house).limit(1)
        return self.session.execute(stmt).scalar_one_or_none()


class SqlAlchemyRecordRepository(_SessionRepository[Record]):
    pass


class SqlAlchemyHouseRecordRepository(_SessionRepository[HouseRecord]):
    pass


class SqlAlchemyApprovalRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def append(self, approval: ManualValidationApproval) -> None:
        self.session.add(approval)
        self.session.flush()


class SqlAlchemyPeriodRepository(_SessionRepository[Period]):
    def find_by_year_and_month(self, year: int, month: int) -> Period | None:
        stmt = (
            select(Period)
            .where(periods_table.c.year == year)
            .where(periods_table.c.month == month)
            .limit(1)
        )
        return self.session.execute(stmt).scalar_one_or_none()


def _house_from_cents() -> ColumnElement[int]:
    # rounding, not flooring: 500.15 * 100 is 50014.99... in binary floating point
    return sql_cast(func.round(tb.c.amount * 100), Integer) % 100


def _day_start(day: date) -> datetime:
    return datetime.combine(day, time())


def _requires_manual() -> ColumnElement[bool]:
    return ts.c.validation_status == ValidationStatus.REQUIRES_MANUAL


def _manually_approved() -> ColumnElement[bool]:
    return and_(
        ts.c.validation_status == ValidationStatus.CONFIRMED,
        ts.c.details["approvedVoucherId"].as_integer().is_not(None),
    )


def _manually_rejected() -> ColumnElement[bool]:
    return and_(
        ts.c.validation_status == ValidationStatus.NOT_FOUND,
        ts.c.details["rejectionReason"].as_string().is_not(None),
    )


class SqlAlchemyCandidateRepository:
    """Read-only queries over deposits, statuses and vouchers."""

    def __init__(self, session: Session) -> None:
        self.session = session

    # cross-matching ----------------------------------------------------------

    def find_unclaimed_deposits(self) -> Sequence[DepositCandidate]:
        stmt = self._deposit_status_select(ts.c.validation_status.in_(_UNCLAIMED)).order_by(
            tb.c.id
        )
        return [
            DepositCandidate(
                id=row.id,
                amount=row.amount,
                date=row.date,
                time=row.time,
                status_id=row.status_id,
                validation_status=row.validation_status,
            )
            for row in self.session.execute(stmt)
        ]

    def find_unfunded_vouchers(self) -> Sequence[VoucherCandidate]:
        stmt = self._unfunded_select().order_by(v.c.date.asc(), v.c.id.asc())
        return [
            VoucherCandidate(id=row.id, amount=row.amount, date=row.date)
            for row in self.session.execute(stmt)
        ]

    def find_house_numbers_for_vouchers(self, voucher_ids: Sequence[int]) -> dict[int, int]:
        """Map voucher ids to the house of their most recent payment record."""

        if not voucher_ids:
            return {}
        stmt = (
            select(records_table.c.vouchers_id, houses_table.c.number_house)
            .join(house_records_table, house_records_table.c.record_id == records_table.c.id)
            .join(houses_table, houses_table.c.id == house_records_table.c.house_id)
            .where(records_table.c.vouchers_id.in_(list(voucher_ids)))
            .order_by(records_table.c.id.desc())
        )
        house_numbers: dict[int, int] = {}
        for voucher_id, number_house in self.session.execute(stmt):
            house_numbers.setdefault(voucher_id, number_house)
        return house_numbers

    # listings ----------------------------------------------------------------

    def search_unclaimed_deposits(
        self, query: UnclaimedDepositsQuery
    ) -> tuple[int, Sequence[UnclaimedDepositItem]]:
        if query.validation_status == "all":
            status_filter = ts.c.validation_status.in_(_UNCLAIMED)
        else:
            status_filter = ts.c.validation_status == ValidationStatus(query.validation_status)

        stmt = self._deposit_status_select(status_filter)
        if query.start_date is not None:
            stmt = stmt.where(tb.c.date >= query.start_date)
        if query.end_date is not None:
            stmt = stmt.where(tb.c.date <= query.end_date)
        if query.house_number is not None:
            stmt = stmt.where(_house_from_cents() == query.house_number)

        total = self._count(stmt)
        sort_column = tb.c.amount if query.sort_by == "amount" else tb.c.date
        page_stmt = (
            stmt.order_by(sort_column.desc(), tb.c.id.desc())
            .offset(query.offset)
            .limit(query.limit)
        )
        items = [
            UnclaimedDepositItem(
                deposit_id=row.id,
                amount=row.amount,
                date=row.date,
                time=row.time,
                concept=row.concept,
                validation_status=row.validation_status,
                reason=row.reason,
                processed_at=row.processed_at,
                details=row.details,
            )
            for row in self.session.execute(page_stmt)
        ]
        return total, items

    def search_unfunded_vouchers(
        self, query: UnfundedVouchersQuery
    ) -> tuple[int, Sequence[UnfundedVoucherItem]]:
        stmt = self._unfunded_select()
        if query.start_date is not None:
            stmt = stmt.where(v.c.date >= _day_start(query.start_date))
        if query.end_date is not None:
            stmt = stmt.where(v.c.date < _day_start(query.end_date + timedelta(days=1)))

        total = self._count(stmt)
        sort_column = v.c.amount if query.sort_by == "amount" else v.c.date
        page_stmt = (
            stmt.order_by(sort_column.desc(), v.c.id.desc())
            .offset(query.offset)
            .limit(query.limit)
        )
        items = [
            UnfundedVoucherItem(voucher_id=row.id, amount=row.amount, date=row.date, url=row.url)
            for row in self.session.execute(page_stmt)
        ]
        return total, items

    def search_manual_cases(
        self, query: ManualCasesQuery
    ) -> tuple[int, Sequence[ManualCaseItem]]:
        stmt = self._deposit_status_select(_requires_manual())
        if query.start_date is not None:
            stmt = stmt.where(tb.c.date >= query.start_date)
        if query.end_date is not None:
            stmt = stmt.where(tb.c.date <= query.end_date)
        if query.house_number is not None:
            stmt = stmt.where(_house_from_cents() == query.house_number)

        total = self._count(stmt)
        if query.sort_by == "similarity":
            order_by = ts.c.details["similarity"].as_float().asc()
        elif query.sort_by == "candidates":
            order_by = func.json_array_length(ts.c.details["possibleMatches"]).desc()
        else:
            order_by = ts.c.created_at.desc()
        page_stmt = stmt.order_by(order_by, tb.c.id.desc()).offset(query.offset).limit(query.limit)

        items: list[ManualCaseItem] = []
        for row in self.session.execute(page_stmt):
            case = ManualValidationCase.from_details(row.id, row.details)
            items.append(
                ManualCaseItem(
                    deposit_id=row.id,
                    amount=row.amount,
                    date=row.date,
                    time=row.time,
                    concept=row.concept,
                    possible_matches=case.possible_matches,
                    reason=case.reason,
                    created_at=row.created_at,
                )
            )
        return total, items

    def count_manual_cases(self, *, since: datetime) -> ManualCaseCounts:
        def count_deposits(*conditions: ColumnElement[bool]) -> int:
            stmt = select(func.count(ts.c.transactions_bank_id.distinct())).where(*conditions)
            return self.session.execute(stmt).scalar_one()

        return ManualCaseCounts(
            pending=count_deposits(_requires_manual()),
            approved=count_deposits(_manually_approved()),
            rejected=count_deposits(_manually_rejected()),
            pending_since=count_deposits(_requires_manual(), ts.c.created_at >= since),
        )

    def list_manual_resolution_times(self) -> Sequence[tuple[datetime, datetime]]:
        stmt = (
            select(ts.c.created_at, ts.c.processed_at)
            .where(ts.c.processed_at.is_not(None))
            .where(or_(_manually_approved(), _manually_rejected()))
            .order_by(ts.c.id)
        )
        return [(row.created_at, row.processed_at) for row in self.session.execute(stmt)]

    def list_pending_manual_amounts(self) -> Sequence[float]:
        stmt = self._deposit_status_select(_requires_manual()).order_by(tb.c.id)
        return [row.amount for row in self.session.execute(stmt)]

    # helpers -----------------------------------------------------------------

    def _deposit_status_select(self, status_filter: ColumnElement[bool]) -> Select[Any]:
        """One row per deposit, joined to its earliest status row matching ``status_filter``."""

        first_status = (
            select(
                ts.c.transactions_bank_id.label("deposit_id"),
                func.min(ts.c.id).label("status_id"),
            )
            .where(status_filter)
            .group_by(ts.c.transactions_bank_id)
            .subquery("first_status")
        )
        return (
            select(
                tb.c.id,
                tb.c.amount,
                tb.c.date,
                tb.c.time,
                tb.c.concept,
                ts.c.id.label("status_id"),
                ts.c.validation_status,
                ts.c.reason,
                ts.c.processed_at,
                ts.c.details.label("details"),
                ts.c.created_at,
            )
            .select_from(tb)
            .join(first_status, first_status.c.deposit_id == tb.c.id)
            .join(ts, ts.c.id == first_status.c.status_id)
            .where(tb.c.is_deposit == true())
        )

    def _unfunded_select(self) -> Select[Any]:
        confirmed = ts.alias("confirmed_status")
        return (
            select(v.c.id, v.c.amount, v.c.date, v.c.url)
            .select_from(v)
            .outerjoin(
                confirmed,
                and_(
                    confirmed.c.vouchers_id == v.c.id,
                    confirmed.c.validation_status == ValidationStatus.CONFIRMED,
                ),
            )
            .where(v.c.confirmation_status == false())
            .where(confirmed.c.id.is_(None))
        )

    def _count(self, stmt: Select[Any]) -> int:
        count_stmt = select(func.count()).select_from(stmt.order_by(None).subquery())
        return self.session.execute(count_stmt).scalar_one()


if TYPE_CHECKING:
    from condorecon.domain.ports.persistence import (
        ApprovalRepository,
        BankTransactionRepository,
        CandidateRepository,
        HouseRecordRepository,
        HouseRepository,
        PeriodRepository,
        RecordRepository,
        TransactionStatusRepository,
        VoucherRepository,
    )

    _session_stub = cast("Session", object())
    _bank_repo: BankTransactionRepository = SqlAlchemyBankTransactionRepository(_session_stub)
    _status_repo: TransactionStatusRepository = SqlAlchemyTransactionStatusRepository(
        _session_stub
    )
    _voucher_repo: VoucherRepository = SqlAlchemyVoucherRepository(_session_stub)
    _house_repo: HouseRepository = SqlAlchemyHouseRepository(_session_stub)
    _record_repo: RecordRepository = SqlAlchemyRecordRepository(_session_stub)
    _house_record_repo: HouseRecordRepository = SqlAlchemyHouseRecordRepository(_session_stub)
    _approval_repo: ApprovalRepository = SqlAlchemyApprovalRepository(_session_stub)
    _period_repo: PeriodRepository = SqlAlchemyPeriodRepository(_session_stub)
    _candidate_repo: CandidateRepository = SqlAlchemyCandidateRepository(_session_stub)
