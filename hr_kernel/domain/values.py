"""
Value objects for money and pay periods.

All payroll and loan amounts are ``Decimal`` with exactly four fractional
digits, rounded half-up.  Floats are never accepted.
"""

from __future__ import annotations

import calendar
import re
from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal

MONEY_PLACES = 4
MONEY_QUANTUM = Decimal("0.0001")
ZERO = Decimal("0.0000")

_PERIOD_PATTERN = re.compile(r"^(\d{4})-(\d{2})$")


def quantize_amount(value: Decimal, rounding: str = ROUND_HALF_UP) -> Decimal:
    """Round to four fractional digits (half-up unless told otherwise)."""
    if not isinstance(value, Decimal):
        raise TypeError(f"Amounts must be Decimal, got {type(value).__name__}")
    return value.quantize(MONEY_QUANTUM, rounding=rounding)


def has_money_precision(value: Decimal) -> bool:
    """True if ``value`` has at most four fractional digits."""
    return value == value.quantize(MONEY_QUANTUM)


def add_months(start: date, months: int) -> date:
    """Shift ``start`` by whole months, clamping to the target month's end."""
    month_index = start.month - 1 + months
    year = start.year + month_index // 12
    month = month_index % 12 + 1
    day = min(start.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


@dataclass(frozen=True, order=True)
class PayPeriod:
    """A calendar month used as a pay period (``YYYY-MM``)."""

    year: int
    month: int

    def __post_init__(self) -> None:
        if not 1 <= self.month <= 12:
            raise ValueError(f"month must be 1..12, got {self.month}")
        if not 1900 <= self.year <= 9999:
            raise ValueError(f"year out of range: {self.year}")

    @classmethod
    def parse(cls, text: str) -> PayPeriod:
        match = _PERIOD_PATTERN.match(text.strip())
        if match is None:
            raise ValueError(f"Pay period must look like YYYY-MM, got {text!r}")
        return cls(int(match.group(1)), int(match.group(2)))

    @classmethod
    def containing(cls, day: date) -> PayPeriod:
        return cls(day.year, day.month)

    @property
    def start(self) -> date:
        return date(self.year, self.month, 1)

    @property
    def end(self) -> date:
        return date(self.year, self.month, calendar.monthrange(self.year, self.month)[1])

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end

    def day(self, day_of_month: int) -> date:
        """Date in this period, clamped to the last day of the month."""
        return date(self.year, self.month, min(day_of_month, self.end.day))

    def __str__(self) -> str:
        return f"{self.year:04d}-{self.month:02d}"
