"""Tests for SQLAlchemy repositories."""

from __future__ import annotations

from datetime import UTC, date, datetime, timedelta

from sqlalchemy.orm import Session  # noqa: TC002

from condorecon.adapters.sqlalchemy.repositories import (
    SqlAlchemyApprovalRepository,
    SqlAlchemyBankTransactionRepository,
    SqlAlchemyCandidateRepository,
    SqlAlchemyHouseRepository,
    SqlAlchemyPeriodRepository,
    SqlAlchemyTransactionStatusRepository,
    SqlAlchemyVoucherRepository,
)
from condorecon.domain.model import (
    House,
    ManualValidationApproval,
    Period,
    TransactionStatus,
    ValidationStatus,
)
from condorecon.domain.reconciliation import (
    ManualCasesQuery,
    UnclaimedDepositsQuery,
    UnfundedVouchersQuery,
)
from tests.helpers.sqlalchemy_rows import persist_deposit, persist_house_link, persist_voucher

PROCESSED_AT = datetime(2025, 3, 14, 10, 30, tzinfo=UTC)


def test_unclaimed_deposits_are_deduplicated_per_deposit(sqlite_session: Session) -> None:
    deposit, first_status = persist_deposit(sqlite_session, 100.0, status=ValidationStatus.CONFLICT)
    assert first_status is not None
    sqlite_session.add(
        TransactionStatus(
            transactions_bank_id=deposit.id,
            validation_status=ValidationStatus.NOT_FOUND,
        )
    )
    persist_deposit(sqlite_session, 200.0, status=ValidationStatus.CONFIRMED)
    persist_deposit(sqlite_session, 300.0, is_deposit=False)
    persist_deposit(sqlite_session, 400.0, status=None)
    sqlite_session.commit()

    candidates = SqlAlchemyCandidateRepository(sqlite_session).find_unclaimed_deposits()

    assert [c.id for c in candidates] == [deposit.id]
    (candidate,) = candidates
    assert candidate.status_id == first_status.id
    assert candidate.validation_status is ValidationStatus.CONFLICT
    assert candidate.date == date(2025, 3, 10)
    assert candidate.time == "09:15:00"


def test_unfunded_vouchers_exclude_confirmed_links(sqlite_session: Session) -> None:
    late = persist_voucher(sqlite_session, 50.0, when=datetime(2025, 3, 11, 8, 0))  # noqa: DTZ001
    early = persist_voucher(sqlite_session, 50.0, when=datetime(2025, 3, 9, 8, 0))  # noqa: DTZ001
    persist_voucher(sqlite_session, 50.0, confirmed=True)
    funded = persist_voucher(sqlite_session, 75.0)
    loosely_linked = persist_voucher(sqlite_session, 80.0, when=datetime(2025, 3, 12, 8, 0))  # noqa: DTZ001
    deposit, _ = persist_deposit(sqlite_session, 75.0, status=None)
    sqlite_session.add_all(
        [
            TransactionStatus(
                transactions_bank_id=deposit.id,
                validation_status=ValidationStatus.CONFIRMED,
                vouchers_id=funded.id,
            ),
            TransactionStatus(
                transactions_bank_id=deposit.id,
                validation_status=ValidationStatus.CONFLICT,
                vouchers_id=loosely_linked.id,
            ),
        ]
    )
    sqlite_session.commit()

    candidates = SqlAlchemyCandidateRepository(sqlite_session).find_unfunded_vouchers()

    assert [c.id for c in candidates] == [early.id, late.id, loosely_linked.id]
    assert all(c.house_number is None for c in candidates)


def test_house_numbers_come_from_latest_record(sqlite_session: Session) -> None:
    voucher = persist_voucher(sqlite_session, 50.0)
    other = persist_voucher(sqlite_session, 60.0)
    unlinked = persist_voucher(sqlite_session, 70.0)
    persist_house_link(sqlite_session, voucher, 3)
    persist_house_link(sqlite_session, voucher, 9)
    persist_house_link(sqlite_session, other, 12)
    sqlite_session.commit()
    repository = SqlAlchemyCandidateRepository(sqlite_session)

    voucher_ids = [row.id for row in (voucher, other, unlinked) if row.id is not None]

    houses = repository.find_house_numbers_for_vouchers(voucher_ids)

    assert houses == {voucher.id: 9, other.id: 12}
    assert repository.find_house_numbers_for_vouchers([]) == {}


def test_confirm_unclaimed_only_touches_unclaimed_rows(sqlite_session: Session) -> None:
    deposit, status = persist_deposit(sqlite_session, 100.0, status=ValidationStatus.NOT_FOUND)
    assert deposit.id is not None
    assert status is not None
    pending = TransactionStatus(
        transactions_bank_id=deposit.id, validation_status=ValidationStatus.PENDING
    )
    sqlite_session.add(pending)
    voucher = persist_voucher(sqlite_session, 100.0)
    sqlite_session.commit()
    repository = SqlAlchemyTransactionStatusRepository(sqlite_session)

    affected = repository.confirm_unclaimed(
        deposit.id,
        voucher_id=voucher.id,
        house_number=15,
        reason="Cross-match: test",
        processed_at=PROCESSED_AT,
    )
    sqlite_session.commit()

    assert affected == 1
    confirmed, untouched = repository.list_for_transaction(deposit.id)
    assert confirmed is status
    assert confirmed.validation_status is ValidationStatus.CONFIRMED
    assert confirmed.vouchers_id == voucher.id
    assert confirmed.identified_house_number == 15
    assert confirmed.reason == "Cross-match: test"
    assert confirmed.processed_at == PROCESSED_AT
    assert untouched is pending
    assert untouched.validation_status is ValidationStatus.PENDING

    again = repository.confirm_unclaimed(
        deposit.id,
        voucher_id=voucher.id,
        house_number=15,
        reason="Cross-match: second attempt",
        processed_at=PROCESSED_AT,
    )
    assert again == 0


def test_confirm_unclaimed_can_target_one_row(sqlite_session: Session) -> None:
    deposit, first = persist_deposit(sqlite_session, 100.0, status=ValidationStatus.CONFLICT)
    assert deposit.id is not None
    assert first is not None
    second = TransactionStatus(
        transactions_bank_id=deposit.id, validation_status=ValidationStatus.NOT_FOUND
    )
    sqlite_session.add(second)
    sqlite_session.commit()

    affected = SqlAlchemyTransactionStatusRepository(sqlite_session).confirm_unclaimed(
        deposit.id,
        voucher_id=None,
        house_number=4,
        reason="Manual assignment by administrator: No notes",
        processed_at=PROCESSED_AT,
        status_id=first.id,
    )

    assert affected == 1
    assert first.validation_status is ValidationStatus.CONFIRMED
    assert second.validation_status is ValidationStatus.NOT_FOUND


def test_mark_confirmed_sets_flags(sqlite_session: Session) -> None:
    deposit, _ = persist_deposit(sqlite_session, 100.0)
    voucher = persist_voucher(sqlite_session, 100.0)
    sqlite_session.commit()
    assert deposit.id is not None
    assert voucher.id is not None

    SqlAlchemyBankTransactionRepository(sqlite_session).mark_confirmed(deposit.id)
    SqlAlchemyVoucherRepository(sqlite_session).mark_confirmed(voucher.id)
    sqlite_session.commit()

    assert SqlAlchemyBankTransactionRepository(sqlite_session).get(deposit.id) is deposit
    assert deposit.confirmation_status is True
    assert voucher.confirmation_status is True
    assert SqlAlchemyVoucherRepository(sqlite_session).get(999) is None


def test_house_and_period_lookups(sqlite_session: Session) -> None:
    houses = SqlAlchemyHouseRepository(sqlite_session)
    periods = SqlAlchemyPeriodRepository(sqlite_session)
    house = House(number_house=12, user_id="owner")

    houses.add(house)
    periods.add(Period(year=2025, month=3))

    assert house.id is not None
    assert houses.get_by_number(12) is house
    assert houses.get_by_number(13) is None
    found = periods.find_by_year_and_month(2025, 3)
    assert found is not None
    assert found.id is not None
    assert periods.find_by_year_and_month(2025, 4) is None


def test_approvals_are_appended(sqlite_session: Session) -> None:
    deposit, _ = persist_deposit(sqlite_session, 100.0)
    assert deposit.id is not None
    approval = ManualValidationApproval(
        transaction_id=deposit.id,
        voucher_id=None,
        approved_by_user_id="admin",
        approval_notes="Manual assignment of house 3.",
        approved_at=PROCESSED_AT,
    )

    SqlAlchemyApprovalRepository(sqlite_session).append(approval)
    sqlite_session.commit()
    sqlite_session.expire_all()

    stored = sqlite_session.get(ManualValidationApproval, approval.id)
    assert stored is not None
    assert stored.approved_at == PROCESSED_AT


def test_search_unclaimed_deposits_filters_and_pages(sqlite_session: Session) -> None:
    persist_deposit(
        sqlite_session,
        500.15,
        day=date(2025, 3, 1),
        status=ValidationStatus.CONFLICT,
        concept="Pago casa 15",
        details={"conceptHouseNumber": 15},
    )
    persist_deposit(sqlite_session, 800.15, day=date(2025, 3, 31))
    persist_deposit(sqlite_session, 300.07, day=date(2025, 3, 15))
    persist_deposit(sqlite_session, 900.15, day=date(2025, 4, 1))
    persist_deposit(
        sqlite_session, 700.15, day=date(2025, 3, 20), status=ValidationStatus.CONFIRMED
    )
    sqlite_session.commit()
    repository = SqlAlchemyCandidateRepository(sqlite_session)

    total, items = repository.search_unclaimed_deposits(
        UnclaimedDepositsQuery(
            start_date=date(2025, 3, 1),
            end_date=date(2025, 3, 31),
            house_number=15,
            sort_by="amount",
        )
    )

    assert total == 2
    assert [item.amount for item in items] == [800.15, 500.15]
    assert items[1].details == {"conceptHouseNumber": 15}
    assert items[1].concept_house_number == 15
    assert items[1].concept == "Pago casa 15"
    assert items[1].validation_status is ValidationStatus.CONFLICT

    total, items = repository.search_unclaimed_deposits(
        UnclaimedDepositsQuery(validation_status="not-found", page=2, limit=2)
    )
    assert total == 3
    assert [item.date for item in items] == [date(2025, 3, 15)]


def test_search_unfunded_vouchers_end_day_is_inclusive(sqlite_session: Session) -> None:
    persist_voucher(sqlite_session, 10.0, when=datetime(2025, 3, 31, 23, 30), url="a")  # noqa: DTZ001
    persist_voucher(sqlite_session, 30.0, when=datetime(2025, 3, 1, 0, 0), url="b")  # noqa: DTZ001
    persist_voucher(sqlite_session, 20.0, when=datetime(2025, 4, 1, 0, 0), url="c")  # noqa: DTZ001
    persist_voucher(sqlite_session, 40.0, when=datetime(2025, 2, 28, 23, 59), url="d")  # noqa: DTZ001
    sqlite_session.commit()
    repository = SqlAlchemyCandidateRepository(sqlite_session)

    total, items = repository.search_unfunded_vouchers(
        UnfundedVouchersQuery(start_date=date(2025, 3, 1), end_date=date(2025, 3, 31))
    )

    assert total == 2
    assert [item.url for item in items] == ["a", "b"]

    _, by_amount = repository.search_unfunded_vouchers(UnfundedVouchersQuery(sort_by="amount"))
    assert [item.amount for item in by_amount] == [40.0, 30.0, 20.0, 10.0]


def _manual_details(
    similarity: float, voucher_ids: list[int], reason: str | None = None
) -> dict[str, object]:
    details: dict[str, object] = {
        "similarity": similarity,
        "possibleMatches": [{"voucherId": vid, "similarity": similarity} for vid in voucher_ids],
    }
    if reason is not None:
        details["reason"] = reason
    return details


def test_status_add_assigns_identifier_and_creation_time(sqlite_session: Session) -> None:
    deposit, _ = persist_deposit(sqlite_session, 100.0, status=None)
    status = TransactionStatus(
        transactions_bank_id=deposit.id, validation_status=ValidationStatus.CONFIRMED
    )

    SqlAlchemyTransactionStatusRepository(sqlite_session).add(status)
    sqlite_session.commit()
    sqlite_session.expire_all()

    assert status.id is not None
    assert status.created_at.tzinfo is not None


def test_resolve_manual_only_touches_manual_rows(sqlite_session: Session) -> None:
    deposit, manual = persist_deposit(
        sqlite_session,
        500.15,
        status=ValidationStatus.REQUIRES_MANUAL,
        details=_manual_details(0.8, [1, 2]),
    )
    assert manual is not None
    other = TransactionStatus(
        transactions_bank_id=deposit.id, validation_status=ValidationStatus.NOT_FOUND
    )
    sqlite_session.add(other)
    sqlite_session.commit()
    assert deposit.id is not None

    affected = SqlAlchemyTransactionStatusRepository(sqlite_session).resolve_manual(
        deposit.id,
        validation_status=ValidationStatus.NOT_FOUND,
        voucher_id=None,
        house_number=None,
        reason="duplicate receipt",
        processed_at=PROCESSED_AT,
        details={"rejectionReason": "duplicate receipt"},
    )
    sqlite_session.commit()
    sqlite_session.expire_all()

    assert affected == 1
    assert manual.validation_status is ValidationStatus.NOT_FOUND
    assert manual.reason == "duplicate receipt"
    assert manual.processed_at == PROCESSED_AT
    assert manual.details == {"rejectionReason": "duplicate receipt"}
    assert other.reason is None
    assert other.processed_at is None


def test_search_manual_cases_filters_sorts_and_parses(sqlite_session: Session) -> None:
    created = datetime(2025, 3, 13, 10, 0, tzinfo=UTC)
    first, _ = persist_deposit(
        sqlite_session,
        500.15,
        day=date(2025, 3, 10),
        status=ValidationStatus.REQUIRES_MANUAL,
        details=_manual_details(0.9, [1, 2], reason="Same amount twice"),
        created_at=created,
    )
    second, _ = persist_deposit(
        sqlite_session,
        600.15,
        day=date(2025, 3, 12),
        status=ValidationStatus.REQUIRES_MANUAL,
        details=_manual_details(0.4, [3, 4, 5]),
        created_at=created + timedelta(hours=1),
    )
    third, _ = persist_deposit(
        sqlite_session,
        700.20,
        day=date(2025, 3, 20),
        status=ValidationStatus.REQUIRES_MANUAL,
        details=_manual_details(0.7, [6]),
        created_at=created - timedelta(hours=1),
    )
    persist_deposit(sqlite_session, 800.15, status=ValidationStatus.NOT_FOUND)
    sqlite_session.commit()
    repo = SqlAlchemyCandidateRepository(sqlite_session)

    total, by_date = repo.search_manual_cases(ManualCasesQuery())
    _, by_similarity = repo.search_manual_cases(ManualCasesQuery(sort_by="similarity"))
    _, by_candidates = repo.search_manual_cases(ManualCasesQuery(sort_by="candidates"))
    filtered_total, filtered = repo.search_manual_cases(
        ManualCasesQuery(house_number=15, end_date=date(2025, 3, 10))
    )

    assert total == 3
    assert [i.deposit_id for i in by_date] == [second.id, first.id, third.id]
    assert [i.deposit_id for i in by_similarity] == [second.id, third.id, first.id]
    assert [i.deposit_id for i in by_candidates] == [second.id, first.id, third.id]
    assert filtered_total == 1
    (item,) = filtered
    assert item.deposit_id == first.id
    assert item.reason == "Same amount twice"
    assert [m.voucher_id for m in item.possible_matches] == [1, 2]
    assert item.created_at == created
    assert by_date[2].reason == "Multiple valid candidates"


def test_manual_case_counts_and_resolution_times(sqlite_session: Session) -> None:
    now = PROCESSED_AT
    persist_deposit(
        sqlite_session,
        500.05,
        status=ValidationStatus.REQUIRES_MANUAL,
        created_at=now - timedelta(hours=2),
    )
    persist_deposit(
        sqlite_session,
        500.45,
        status=ValidationStatus.REQUIRES_MANUAL,
        created_at=now - timedelta(hours=30),
    )
    _, approved = persist_deposit(
        sqlite_session,
        600.0,
        status=ValidationStatus.CONFIRMED,
        details={"approvedVoucherId": 3},
        created_at=now - timedelta(hours=3),
    )
    _, rejected = persist_deposit(
        sqlite_session,
        700.0,
        status=ValidationStatus.NOT_FOUND,
        details={"rejectionReason": "duplicate"},
        created_at=now - timedelta(hours=1),
    )
    assert approved is not None
    assert rejected is not None
    approved.processed_at = now - timedelta(hours=2)
    rejected.processed_at = now
    persist_deposit(sqlite_session, 800.0, status=ValidationStatus.CONFIRMED)
    persist_deposit(sqlite_session, 900.0, status=ValidationStatus.NOT_FOUND, details={"x": 1})
    sqlite_session.commit()
    repo = SqlAlchemyCandidateRepository(sqlite_session)

    counts = repo.count_manual_cases(since=now - timedelta(hours=24))
    times = repo.list_manual_resolution_times()

    assert (counts.pending, counts.approved, counts.rejected, counts.pending_since) == (2, 1, 1, 1)
    assert [(processed - created) / timedelta(minutes=1) for created, processed in times] == [
        60.0,
        60.0,
    ]
    assert sorted(repo.list_pending_manual_amounts()) == [500.05, 500.45]
