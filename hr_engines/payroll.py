"""
hr_engines.payroll -- Pure gross-to-net salary computation.

Responsibility:
    Turn an employee's salary terms, employment dates, monthly attendance
    totals and due loan installments into salary lines and totals for one
    pay period.

Architecture position:
    Engines -- pure calculation layer, zero I/O.  The payroll module
    service gathers inputs, applies the negative-net policy, persists the
    header and starts the approval.

Invariants enforced:
    - Pro-ration divides by a fixed 30 days whatever the month length;
      a full month of employment pays exactly the monthly salary.
    - Inverted employment dates are rejected, never paid as zero.
    - Every line amount is quantized to four places half-up; totals are
      sums of quantized lines.
    - Attendance is aggregated per month into at most one line per kind.
    - net = allowances - deductions, computed even when negative.

Failure modes:
    - DataIntegrityError: termination before hire.
    - EmploymentOutsidePeriodError: no overlap with the pay period.
    - InvalidArgumentError: non-positive divisor or required hours.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from uuid import UUID

from hr_engines.tracer import traced_engine
from hr_kernel.domain.directory import AttendanceAggregate
from hr_kernel.domain.snapshot import SalaryBreakdown
from hr_kernel.domain.values import ZERO, PayPeriod, quantize_amount
from hr_kernel.exceptions import (
    DataIntegrityError,
    EmploymentOutsidePeriodError,
    InvalidArgumentError,
)

PRORATION_DIVISOR_DAYS = 30


class DetailCategory(str, Enum):
    ALLOWANCE = "allowance"
    DEDUCTION = "deduction"


class ComponentCode:
    """Component codes produced by the engine itself.

    Breakdown components use whatever codes the configuration names.
    """

    BASIC = "BASIC"
    OVERTIME = "OVERTIME"
    LATE_ARRIVAL = "LATE_ARRIVAL"
    EARLY_DEPARTURE = "EARLY_DEPARTURE"
    SHORTFALL = "SHORTFALL"
    LOAN_INSTALLMENT = "LOAN_INSTALLMENT"


@dataclass(frozen=True)
class PayrollLine:
    component_code: str
    amount: Decimal
    category: DetailCategory
    reference_id: UUID | None = None


@dataclass(frozen=True)
class ProrationResult:
    effective_start: date
    effective_end: date
    days_worked: int
    full_month: bool
    gross_salary: Decimal


@dataclass(frozen=True)
class LoanDeduction:
    """A loan installment due in the pay period."""

    installment_id: UUID
    loan_id: UUID
    amount: Decimal


@dataclass(frozen=True)
class PayrollComputation:
    proration: ProrationResult
    lines: tuple[PayrollLine, ...]
    total_allowances: Decimal
    total_deductions: Decimal
    net_salary: Decimal
    used_default_breakdown: bool

    @property
    def gross_salary(self) -> Decimal:
        return self.proration.gross_salary

    @property
    def negative_net(self) -> bool:
        return self.net_salary < 0


def prorate_salary(
    *,
    employee_id: UUID,
    monthly_salary: Decimal,
    hire_date: date,
    termination_date: date | None,
    period: PayPeriod,
    divisor_days: int = PRORATION_DIVISOR_DAYS,
) -> ProrationResult:
    """Salary earned in ``period`` for the employed days (inclusive count)."""
    if divisor_days <= 0:
        raise InvalidArgumentError("divisor_days", divisor_days, "must be positive")
    if termination_date is not None and termination_date < hire_date:
        raise DataIntegrityError(
            "Employee",
            str(employee_id),
            f"termination date {termination_date} precedes hire date {hire_date}",
        )

    effective_start = max(hire_date, period.start)
    effective_end = min(termination_date or period.end, period.end)
    if effective_end < effective_start:
        raise EmploymentOutsidePeriodError(str(employee_id), str(period))

    days_worked = (effective_end - effective_start).days + 1
    full_month = effective_start == period.start and effective_end == period.end
    if full_month:
        gross = quantize_amount(monthly_salary)
    else:
        gross = quantize_amount(monthly_salary * days_worked / Decimal(divisor_days))

    return ProrationResult(
        effective_start=effective_start,
        effective_end=effective_end,
        days_worked=days_worked,
        full_month=full_month,
        gross_salary=gross,
    )


def breakdown_lines(
    gross_salary: Decimal, breakdown: SalaryBreakdown | None,
) -> tuple[PayrollLine, ...]:
    """Split gross salary by category percentages, or one BASIC line."""
    if breakdown is None or not breakdown.components:
        return (PayrollLine(ComponentCode.BASIC, gross_salary, DetailCategory.ALLOWANCE),)
    return tuple(
        PayrollLine(
            share.component_code,
            quantize_amount(gross_salary * share.percentage),
            DetailCategory.ALLOWANCE,
        )
        for share in breakdown.components
    )


def hourly_rate(monthly_salary: Decimal, required_monthly_hours: Decimal) -> Decimal:
    if required_monthly_hours <= 0:
        raise InvalidArgumentError(
            "required_monthly_hours", required_monthly_hours, "must be positive",
        )
    return monthly_salary / required_monthly_hours


def attendance_lines(
    *,
    monthly_salary: Decimal,
    attendance: AttendanceAggregate,
    required_monthly_hours: Decimal,
    overtime_multiplier: Decimal,
) -> tuple[PayrollLine, ...]:
    """Overtime allowance and attendance deductions, one line per kind."""
    rate = hourly_rate(monthly_salary, required_monthly_hours)
    priced = (
        (ComponentCode.OVERTIME, attendance.overtime_hours * overtime_multiplier,
         DetailCategory.ALLOWANCE),
        (ComponentCode.LATE_ARRIVAL, attendance.late_hours, DetailCategory.DEDUCTION),
        (ComponentCode.EARLY_DEPARTURE, attendance.early_departure_hours,
         DetailCategory.DEDUCTION),
        (ComponentCode.SHORTFALL, attendance.shortfall_hours, DetailCategory.DEDUCTION),
    )
    lines = []
    for code, hours, category in priced:
        amount = quantize_amount(hours * rate)
        if amount > 0:
            lines.append(PayrollLine(code, amount, category))
    return tuple(lines)


def loan_lines(deductions: Iterable[LoanDeduction]) -> tuple[PayrollLine, ...]:
    return tuple(
        PayrollLine(
            ComponentCode.LOAN_INSTALLMENT,
            quantize_amount(d.amount),
            DetailCategory.DEDUCTION,
            reference_id=d.installment_id,
        )
        for d in deductions
    )


@traced_engine(
    "payroll", "1.0",
    fingerprint_fields=("employee_id", "monthly_salary", "period", "hire_date", "termination_date"),
)
def compute_payroll(
    *,
    employee_id: UUID,
    monthly_salary: Decimal,
    hire_date: date,
    termination_date: date | None,
    period: PayPeriod,
    breakdown: SalaryBreakdown | None,
    attendance: AttendanceAggregate,
    loan_deductions: Iterable[LoanDeduction] = (),
    divisor_days: int = PRORATION_DIVISOR_DAYS,
    required_monthly_hours: Decimal = Decimal("240"),
    overtime_multiplier: Decimal = Decimal("1.5"),
) -> PayrollComputation:
    """Compute all salary lines and totals for one employee and period."""
    proration = prorate_salary(
        employee_id=employee_id,
        monthly_salary=monthly_salary,
        hire_date=hire_date,
        termination_date=termination_date,
        period=period,
        divisor_days=divisor_days,
    )

    lines = (
        breakdown_lines(proration.gross_salary, breakdown)
        + attendance_lines(
            monthly_salary=monthly_salary,
            attendance=attendance,
            required_monthly_hours=required_monthly_hours,
            overtime_multiplier=overtime_multiplier,
        )
        + loan_lines(loan_deductions)
    )

    total_allowances = sum(
        (l.amount for l in lines if l.category == DetailCategory.ALLOWANCE), ZERO,
    )
    total_deductions = sum(
        (l.amount for l in lines if l.category == DetailCategory.DEDUCTION), ZERO,
    )

    return PayrollComputation(
        proration=proration,
        lines=lines,
        total_allowances=total_allowances,
        total_deductions=total_deductions,
        net_salary=total_allowances - total_deductions,
        used_default_breakdown=breakdown is None or not breakdown.components,
    )
