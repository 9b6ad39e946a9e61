"""
Calendar-month helpers.

Every metric and forecast in this project is keyed by a ``YYYY-MM`` month
string. String comparison on that format is chronological, which is what the
``site_metrics`` range queries rely on.
"""

from __future__ import annotations

import re
from datetime import date, datetime, timezone

MONTH_PATTERN = re.compile(r"^(\d{4})-(0[1-9]|1[0-2])$")


def utcnow() -> datetime:
    """Return the current UTC datetime with timezone info.

    Prefer this over ``datetime.utcnow()`` (which returns naive datetimes).
    """
    return datetime.now(tz=timezone.utc)


def parse_month(month: str) -> tuple[int, int]:
    """Split a ``YYYY-MM`` string into ``(year, month)``.

    Raises:
        ValueError: If ``month`` is not a valid ``YYYY-MM`` string.
    """
    match = MONTH_PATTERN.match(month)
    if match is None:
        raise ValueError(f"Invalid month '{month}'. Expected format YYYY-MM.")
    return int(match.group(1)), int(match.group(2))


def format_month(year: int, month: int) -> str:
    return f"{year:04d}-{month:02d}"


def month_of(value: date | datetime) -> str:
    """Return the ``YYYY-MM`` month containing ``value``."""
    return format_month(value.year, value.month)


def shift_month(month: str, offset: int) -> str:
    """Move ``month`` by ``offset`` calendar months (negative = backwards).

    Examples::

        shift_month("2024-01", -1)  -> "2023-12"
        shift_month("2024-11", 3)   -> "2025-02"
    """
    year, mon = parse_month(month)
    index = year * 12 + (mon - 1) + offset
    return format_month(index // 12, index % 12 + 1)


def months_between(start: str, end: str) -> int:
    """Signed number of months from ``start`` to ``end``."""
    sy, sm = parse_month(start)
    ey, em = parse_month(end)
    return (ey * 12 + em) - (sy * 12 + sm)


def month_range(start: str, end: str) -> list[str]:
    """Inclusive list of months from ``start`` to ``end``.

    Raises:
        ValueError: If ``end`` is before ``start``.
    """
    span = months_between(start, end)
    if span < 0:
        raise ValueError(f"end ({end}) must be >= start ({start}).")
    return [shift_month(start, i) for i in range(span + 1)]


def is_consecutive(months: list[str]) -> bool:
    """True if each month is exactly one calendar month after the previous."""
    return all(months_between(a, b) == 1 for a, b in zip(months, months[1:]))
