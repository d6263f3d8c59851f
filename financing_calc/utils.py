"""Utility functions for the financing calculator.

This module provides helpers for coercing user input into ``Decimal`` values,
rounding money to the minor currency unit and handling dates, including adding
calendar months and parsing ``YYYY-MM`` / ``YYYY-MM-DD`` strings.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP, getcontext
import calendar
from typing import Union

from .errors import InvalidLoanTermsError

getcontext().prec = 28  # increase decimal precision to avoid rounding errors

TWO_PLACES = Decimal("0.01")
ZERO = Decimal("0")

Numeric = Union[Decimal, int, float, str]


def to_decimal(value: Numeric, field: str = "value") -> Decimal:
    """Convert ``value`` into a ``Decimal``.

    Floats go through ``str`` so ``0.1`` becomes ``Decimal("0.1")`` rather
    than its binary expansion. Strings may contain thousands separators.

    Raises
    ------
    InvalidLoanTermsError
        If the value is not numeric.
    """
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, bool):
        raise InvalidLoanTermsError(f"Invalid numeric value for {field}: {value!r}")
    elif isinstance(value, int):
        result = Decimal(value)
    else:
        try:
            result = Decimal(str(value).strip().replace(",", ""))
        except InvalidOperation as exc:
            raise InvalidLoanTermsError(
                f"Invalid numeric value for {field}: {value!r}"
            ) from exc
    if not result.is_finite():
        raise InvalidLoanTermsError(f"Invalid numeric value for {field}: {value!r}")
    return result


def round_money(value: Decimal) -> Decimal:
    """Round to cents using half-up rounding."""
    return value.quantize(TWO_PLACES, ROUND_HALF_UP)


def parse_date(value: str) -> date:
    """Parse a ``YYYY-MM`` or ``YYYY-MM-DD`` string into a ``date``.

    A missing day component defaults to the first of the month.

    Raises
    ------
    ValueError
        If the string is not a valid date.
    """
    try:
        parts = value.strip().split("-")
        if len(parts) not in (2, 3):
            raise ValueError
        year = int(parts[0])
        month = int(parts[1])
        day = int(parts[2]) if len(parts) == 3 else 1
        return date(year, month, day)
    except ValueError as exc:
        raise ValueError(f"Invalid date string: {value}") from exc


def add_months(dt: date, months: int) -> date:
    """Return a new date a number of months after ``dt``.

    The day of the month is clamped to the last valid day if needed (e.g.,
    adding one month to Jan 31 yields Feb 28 or 29).
    """
    year = dt.year + (dt.month - 1 + months) // 12
    month = (dt.month - 1 + months) % 12 + 1
    day = min(dt.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)
