"""
Payroll Domain Models (``hr_modules.payroll.models``).

Responsibility
--------------
Frozen value objects for versioned monthly payslips (salary headers and
their detail lines) and the result of a monthly payroll run.

Architecture position
---------------------
**Modules layer** -- pure data definitions with ZERO I/O.  Built from ORM
rows by ``orm.py`` and returned to callers by ``PayrollService``.

Invariants enforced
-------------------
* All models are ``frozen=True``.
* All monetary fields use ``Decimal``.
* ``net_salary == total_allowances - total_deductions``.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from uuid import UUID

from hr_engines.payroll import DetailCategory
from hr_kernel.domain.approval import ApprovalState, ApprovalStatus


@dataclass(frozen=True)
class SalaryDetail:
    line_no: int
    component_code: str
    amount: Decimal
    category: DetailCategory
    reference_id: UUID | None = None


@dataclass(frozen=True)
class SalaryHeader:
    """One calculated version of an employee's payslip for a period."""

    id: UUID
    employee_id: UUID
    period: str
    version: int
    monthly_salary: Decimal
    gross_salary: Decimal
    total_allowances: Decimal
    total_deductions: Decimal
    net_salary: Decimal
    negative_net: bool
    effective_start: date
    effective_end: date
    days_worked: int
    approval: ApprovalState
    recalculation_reason: str | None = None
    details: tuple[SalaryDetail, ...] = ()

    def __post_init__(self):
        if self.net_salary != self.total_allowances - self.total_deductions:
            raise ValueError(
                f"Salary {self.id}: net {self.net_salary} != allowances "
                f"{self.total_allowances} - deductions {self.total_deductions}"
            )

    @property
    def status(self) -> ApprovalStatus:
        return self.approval.status

    def lines_for(self, component_code: str) -> tuple[SalaryDetail, ...]:
        return tuple(d for d in self.details if d.component_code == component_code)


@dataclass(frozen=True)
class PayrollBatchFailure:
    employee_id: UUID
    error_code: str
    message: str


@dataclass(frozen=True)
class PayrollBatchResult:
    """Outcome of a monthly payroll run; failures do not stop the run."""

    period: str
    calculated: tuple[SalaryHeader, ...]
    failed: tuple[PayrollBatchFailure, ...]

    @property
    def total_net(self) -> Decimal:
        return sum((h.net_salary for h in self.calculated), Decimal("0"))

    @property
    def flagged_negative(self) -> tuple[SalaryHeader, ...]:
        return tuple(h for h in self.calculated if h.negative_net)
