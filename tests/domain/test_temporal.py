from __future__ import annotations

from datetime import UTC, date, datetime, time

import pytest

from condorecon.domain.temporal import (
    combine_date_and_time,
    extract_house_number_from_cents,
    format_day,
    get_date_difference_in_hours,
    parse_time_string,
    round_half_up,
    to_datetime,
)


@pytest.mark.parametrize(
    ("value", "ndigits", "expected"),
    [
        (2.5, 0, 3.0),
        (3.5, 0, 4.0),
        (66.66666, 0, 67.0),
        (5.125, 2, 5.13),
    ],
)
def test_round_half_up_rounds_halves_away_from_even(
    value: float, ndigits: int, expected: float
) -> None:
    assert round_half_up(value, ndigits) == pytest.approx(expected)


def test_parse_time_string_accepts_minutes_and_seconds() -> None:
    assert parse_time_string("09:15") == time(9, 15)
    assert parse_time_string(" 23:59:58 ") == time(23, 59, 58)


@pytest.mark.parametrize("value", ["", "9", "aa:bb", "10:00:00:00", "25:00"])
def test_parse_time_string_rejects_malformed_values(value: str) -> None:
    with pytest.raises(ValueError, match="time"):
        parse_time_string(value)


def test_to_datetime_accepts_dates_and_iso_strings() -> None:
    assert to_datetime(date(2025, 3, 10)) == datetime(2025, 3, 10)  # noqa: DTZ001
    assert to_datetime("2025-03-10") == datetime(2025, 3, 10)  # noqa: DTZ001
    assert to_datetime("2025-03-10T08:00:00Z") == datetime(2025, 3, 10, 8, tzinfo=UTC)


def test_format_day_returns_iso_calendar_day() -> None:
    assert format_day(datetime(2025, 3, 10, 23, 59)) == "2025-03-10"  # noqa: DTZ001
    assert format_day("2025-03-10T10:00:00") == "2025-03-10"


def test_combine_date_and_time_keeps_timezone() -> None:
    combined = combine_date_and_time(datetime(2025, 3, 10, 1, 0, tzinfo=UTC), "14:30")

    assert combined == datetime(2025, 3, 10, 14, 30, tzinfo=UTC)


def test_date_difference_combines_both_times() -> None:
    hours = get_date_difference_in_hours(date(2025, 3, 10), "09:00:00", date(2025, 3, 10), "10:30")

    assert hours == 1.5


def test_date_difference_uses_datetime_when_second_time_missing() -> None:
    hours = get_date_difference_in_hours(
        date(2025, 3, 10),
        "09:00:00",
        datetime(2025, 3, 11, 9, 20),  # noqa: DTZ001
    )

    assert hours == pytest.approx(24.33)


def test_date_difference_ignores_placeholder_noon_time() -> None:
    hours = get_date_difference_in_hours(
        date(2025, 3, 10),
        "18:45:00",
        datetime(2025, 3, 10, 12, 0, 0),  # noqa: DTZ001
    )

    assert hours == 0


def test_date_difference_five_minutes_rounds_to_two_decimals() -> None:
    hours = get_date_difference_in_hours(
        date(2025, 1, 10),
        "10:00",
        datetime(2025, 1, 10, 10, 5),  # noqa: DTZ001
    )

    assert hours == 0.08


def test_date_difference_ignores_second_time_for_datetimes() -> None:
    hours = get_date_difference_in_hours(
        date(2025, 3, 10),
        "09:00",
        datetime(2025, 3, 10, 11, 0),  # noqa: DTZ001
        "23:59",
    )

    assert hours == 2


def test_date_difference_placeholder_applies_even_with_second_time() -> None:
    hours = get_date_difference_in_hours(
        date(2025, 3, 10),
        "18:45",
        datetime(2025, 3, 11, 12, 0, 0),  # noqa: DTZ001
        "08:00",
    )

    assert hours == 24


def test_date_difference_is_symmetric_across_timezones() -> None:
    hours = get_date_difference_in_hours(
        date(2025, 3, 10),
        "08:00",
        datetime(2025, 3, 10, 6, 0, tzinfo=UTC),
    )

    assert hours == 2


@pytest.mark.parametrize(
    ("amount", "expected"),
    [(500.15, 15), (500.00, 0), (1000.66, 66), (250.07, 7), (0.01, 1)],
)
def test_extract_house_number_from_cents(amount: float, expected: int) -> None:
    assert extract_house_number_from_cents(amount) == expected


def test_extract_house_number_from_cents_does_not_range_check() -> None:
    assert extract_house_number_from_cents(500.999) >= 99
