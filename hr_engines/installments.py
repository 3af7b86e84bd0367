"""
hr_engines.installments -- Loan installment scheduling.

Responsibility:
    Split a loan principal into N dated installments whose amounts sum to
    the principal exactly.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - sum(amounts) == principal, always; the last installment absorbs the
      rounding remainder.
    - No amount is negative.
    - Due date n is first_due_date + (n-1) months, each computed from the
      first date so a 31st never drifts to the 28th permanently.

Failure modes:
    - InvalidArgumentError if count < 1, principal <= 0, or principal has
      more than four fractional digits.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import ROUND_DOWN, ROUND_HALF_UP, Decimal

from hr_engines.tracer import traced_engine
from hr_kernel.domain.values import add_months, has_money_precision, quantize_amount
from hr_kernel.exceptions import InvalidArgumentError


@dataclass(frozen=True)
class ScheduledInstallment:
    sequence_no: int
    due_date: date
    amount: Decimal


def installment_amount(principal: Decimal, count: int) -> Decimal:
    """The regular installment: principal / count, four places.

    Half-up, except where that would overshoot the principal before the
    last installment; tiny principals round down instead.  May be zero
    when the principal is below one ten-thousandth per installment.
    """
    regular = quantize_amount(principal / Decimal(count), ROUND_HALF_UP)
    if regular * (count - 1) > principal:
        return quantize_amount(principal / Decimal(count), ROUND_DOWN)
    return regular


@traced_engine("installments", "1.0", fingerprint_fields=("principal", "count", "first_due_date"))
def schedule_installments(
    *,
    principal: Decimal,
    count: int,
    first_due_date: date,
) -> tuple[ScheduledInstallment, ...]:
    """Build the repayment schedule for an approved loan.

    Args:
        principal: Loan amount, positive, at most four fractional digits.
        count: Number of installments, at least 1.
        first_due_date: Due date of installment 1.

    Returns:
        Installments ordered by sequence number starting at 1.
    """
    if count < 1:
        raise InvalidArgumentError("count", count, "must be at least 1")
    if principal <= 0:
        raise InvalidArgumentError("principal", principal, "must be positive")
    if not has_money_precision(principal):
        raise InvalidArgumentError("principal", principal, "at most 4 fractional digits")

    regular = installment_amount(principal, count)

    schedule: list[ScheduledInstallment] = []
    allocated = Decimal("0")
    for sequence_no in range(1, count + 1):
        if sequence_no < count:
            amount = regular
            allocated += amount
        else:
            amount = principal - allocated
        schedule.append(
            ScheduledInstallment(
                sequence_no=sequence_no,
                due_date=add_months(first_due_date, sequence_no - 1),
                amount=amount,
            )
        )
    return tuple(schedule)
