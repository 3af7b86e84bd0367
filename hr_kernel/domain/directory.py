"""
External collaborator interfaces (``hr_kernel.domain.directory``).

Responsibility
--------------
Read-only views of data owned by other subsystems: the employee directory
and the attendance aggregate provider.  Payroll and loan services consume
these Protocols and never reimplement them.

Architecture position
---------------------
**Kernel domain layer** -- value objects and Protocols only, ZERO I/O.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Protocol
from uuid import UUID

from hr_kernel.domain.approval import ChainScope
from hr_kernel.domain.values import PayPeriod


class EmploymentStatus(str, Enum):
    ACTIVE = "active"
    ON_LEAVE = "on_leave"
    SUSPENDED = "suspended"
    TERMINATED = "terminated"


@dataclass(frozen=True)
class EmployeeRecord:
    """Directory entry for one employee."""

    employee_id: UUID
    monthly_salary: Decimal
    category: str
    hire_date: date
    employment_status: EmploymentStatus
    termination_date: date | None = None
    department_id: UUID | None = None
    project_id: UUID | None = None

    @property
    def scope(self) -> ChainScope:
        return ChainScope(department_id=self.department_id, project_id=self.project_id)


class EmployeeDirectory(Protocol):
    def get_employee(self, employee_id: UUID) -> EmployeeRecord | None: ...


@dataclass(frozen=True)
class AttendanceAggregate:
    """Closed monthly attendance totals, in hours."""

    overtime_hours: Decimal = Decimal("0")
    late_hours: Decimal = Decimal("0")
    early_departure_hours: Decimal = Decimal("0")
    shortfall_hours: Decimal = Decimal("0")

    def __post_init__(self) -> None:
        for name in (
            "overtime_hours", "late_hours", "early_departure_hours", "shortfall_hours",
        ):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} cannot be negative")


class AttendanceProvider(Protocol):
    def monthly_aggregate(
        self, employee_id: UUID, period: PayPeriod,
    ) -> AttendanceAggregate: ...
