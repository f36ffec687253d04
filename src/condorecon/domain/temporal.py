"""Date/time arithmetic and cents-based house identification."""

from __future__ import annotations

import math
from datetime import date, datetime, time, timedelta
from typing import Final

AUTO_ASSIGNED_VOUCHER_TIME: Final[time] = time(12, 0, 0)

type DateLike = date | datetime | str


def round_half_up(value: float, ndigits: int = 0) -> float:
    """Round halves up instead of to the nearest even digit."""

    factor = 10**ndigits
    return math.floor(value * factor + 0.5) / factor


def parse_time_string(value: str) -> time:
    """Parse ``HH:MM`` or ``HH:MM:SS`` into a :class:`datetime.time`."""

    parts = value.strip().split(":")
    if len(parts) not in (2, 3):
        raise ValueError(f"Invalid time of day: {value!r}")
    try:
        numbers = [int(part) for part in parts]
    except ValueError as exc:
        raise ValueError(f"Invalid time of day: {value!r}") from exc
    if len(numbers) == 2:
        numbers.append(0)
    hours, minutes, seconds = numbers
    try:
        return time(hours, minutes, seconds)
    except ValueError as exc:
        raise ValueError(f"Invalid time of day: {value!r}") from exc


def to_datetime(value: DateLike) -> datetime:
    """Coerce a date, datetime or ISO string to a datetime (dates become midnight)."""

    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime.combine(value, time())
    normalized = value.strip()
    if normalized.endswith("Z"):
        normalized = normalized[:-1] + "+00:00"
    if len(normalized) == 10:
        return datetime.combine(date.fromisoformat(normalized), time())
    return datetime.fromisoformat(normalized)


def combine_date_and_time(day: DateLike, time_of_day: str) -> datetime:
    """Take the calendar day of ``day`` and set its time to ``time_of_day``."""

    base = to_datetime(day)
    return datetime.combine(base.date(), parse_time_string(time_of_day), tzinfo=base.tzinfo)


def format_day(value: DateLike) -> str:
    """Return the ISO calendar day (``YYYY-MM-DD``) of ``value``."""

    return to_datetime(value).date().isoformat()


def get_date_difference_in_hours(
    date1: DateLike,
    time1: str,
    date2: DateLike,
    time2: str | None = None,
) -> float:
    """Absolute difference in hours between two instants, rounded to 2 decimals.

    ``date1`` is always combined with ``time1``. A datetime ``date2`` already
    carries its time of day and ``time2`` is ignored; otherwise ``date2`` is
    combined with ``time2`` when given. A voucher timestamp of exactly 12:00:00
    is a placeholder written when no time could be read from the receipt; in
    that case only calendar days are compared.
    """

    first = combine_date_and_time(date1, time1)
    if isinstance(date2, datetime) or not time2:
        second = to_datetime(date2)
    else:
        second = combine_date_and_time(date2, time2)

    if first.tzinfo is None and second.tzinfo is not None:
        first = first.replace(tzinfo=second.tzinfo)
    elif second.tzinfo is None and first.tzinfo is not None:
        second = second.replace(tzinfo=first.tzinfo)

    if isinstance(date2, datetime) and date2.time() == AUTO_ASSIGNED_VOUCHER_TIME:
        first = first.replace(hour=0, minute=0, second=0, microsecond=0)
        second = second.replace(hour=0, minute=0, second=0, microsecond=0)

    difference = abs(first - second)
    return round_half_up(difference / timedelta(hours=1), 2)


def extract_house_number_from_cents(amount: float) -> int:
    """Return the cents of ``amount`` as a house number candidate.

    ``500.15`` gives ``15`` and ``500.00`` gives ``0``. The result is not range
    checked; callers validate it against the configured house range.
    """

    return int(round_half_up((amount % 1) * 100))


__all__ = [
    "DateLike",
    "combine_date_and_time",
    "extract_house_number_from_cents",
    "format_day",
    "get_date_difference_in_hours",
    "parse_time_string",
    "round_half_up",
    "to_datetime",
]
