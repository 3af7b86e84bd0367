"""
Pytest fixtures for the HR payroll and loans test suite.

Provides:
- Structured logging setup and a ``captured_logs`` helper
- A deterministic clock
- In-memory SQLite engine and session per test
- Fake employee directory, attendance provider and approver registry
- The bundled configuration snapshot and a workflow engine over it
- Payroll and loan services wired to all of the above
"""

import json
import logging
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from io import StringIO
from uuid import UUID, uuid4

import pytest

from hr_config import get_active_config
from hr_engines.approval_workflow import ApprovalWorkflowEngine
from hr_engines.approvers import ApproverRegistry
from hr_kernel.db.engine import (
    create_tables,
    drop_tables,
    get_session,
    init_engine_from_url,
    reset_engine,
)
from hr_kernel.domain.approval import ApproverKind, ChainScope
from hr_kernel.domain.clock import DeterministicClock
from hr_kernel.domain.directory import (
    AttendanceAggregate,
    EmployeeRecord,
    EmploymentStatus,
)
from hr_kernel.domain.events import RecordingEventPublisher
from hr_kernel.domain.values import PayPeriod
from hr_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from hr_modules.loans import LoanConfig, LoanService
from hr_modules.payroll import PayrollConfig, PayrollService

# Test actor ID for all HR-side operations (payroll runs, data entry).
TEST_ACTOR_ID = uuid4()


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture hr_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, payroll_service):
            payroll_service.calculate(...)
            logs = captured_logs()
            assert any(r["message"] == "payroll_calculated" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("hr_kernel")
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)


# =============================================================================
# Clock
# =============================================================================


@pytest.fixture
def deterministic_clock() -> DeterministicClock:
    """Fixed at 2026-01-05 09:00 UTC."""
    return DeterministicClock()


@pytest.fixture
def test_actor_id() -> UUID:
    return TEST_ACTOR_ID


# =============================================================================
# Database
# =============================================================================


@pytest.fixture
def db_engine():
    """Fresh in-memory SQLite database with every table created."""
    engine = init_engine_from_url("sqlite://")
    create_tables()
    yield engine
    drop_tables()
    reset_engine()


@pytest.fixture
def session(db_engine):
    s = get_session()
    yield s
    s.rollback()
    s.close()


# =============================================================================
# Organisation fakes
# =============================================================================


@dataclass
class OrgChart:
    """One approver per approver kind; a resolver may be switched off."""

    approvers: dict[ApproverKind, UUID] = field(
        default_factory=lambda: {kind: uuid4() for kind in ApproverKind},
    )
    unresolved: set[ApproverKind] = field(default_factory=set)

    def __getitem__(self, kind: ApproverKind) -> UUID:
        return self.approvers[kind]

    def resolver(self, kind: ApproverKind):
        def _resolve(employee_id: UUID, scope: ChainScope) -> UUID | None:
            if kind in self.unresolved:
                return None
            return self.approvers[kind]
        return _resolve


class FakeEmployeeDirectory:
    def __init__(self):
        self._employees: dict[UUID, EmployeeRecord] = {}

    def add(self, record: EmployeeRecord) -> EmployeeRecord:
        self._employees[record.employee_id] = record
        return record

    def get_employee(self, employee_id: UUID) -> EmployeeRecord | None:
        return self._employees.get(employee_id)


class FakeAttendanceProvider:
    def __init__(self):
        self._aggregates: dict[tuple[UUID, PayPeriod], AttendanceAggregate] = {}

    def set(self, employee_id: UUID, period: PayPeriod, aggregate: AttendanceAggregate) -> None:
        self._aggregates[(employee_id, period)] = aggregate

    def monthly_aggregate(self, employee_id: UUID, period: PayPeriod) -> AttendanceAggregate:
        return self._aggregates.get((employee_id, period), AttendanceAggregate())


@pytest.fixture
def org() -> OrgChart:
    return OrgChart()


@pytest.fixture
def approver_registry(org) -> ApproverRegistry:
    return ApproverRegistry({kind: org.resolver(kind) for kind in ApproverKind})


@pytest.fixture
def employees() -> FakeEmployeeDirectory:
    return FakeEmployeeDirectory()


@pytest.fixture
def attendance() -> FakeAttendanceProvider:
    return FakeAttendanceProvider()


@pytest.fixture
def make_employee(employees):
    """Factory registering an employee in the fake directory."""

    def _make(
        monthly_salary: Decimal = Decimal("9000"),
        category: str = "S",
        hire_date: date = date(2020, 1, 1),
        termination_date: date | None = None,
        employment_status: EmploymentStatus = EmploymentStatus.ACTIVE,
        department_id: UUID | None = None,
        project_id: UUID | None = None,
    ) -> EmployeeRecord:
        return employees.add(EmployeeRecord(
            employee_id=uuid4(),
            monthly_salary=monthly_salary,
            category=category,
            hire_date=hire_date,
            employment_status=employment_status,
            termination_date=termination_date,
            department_id=department_id,
            project_id=project_id,
        ))

    return _make


# =============================================================================
# Configuration and services
# =============================================================================


@pytest.fixture(scope="session")
def active_config():
    return get_active_config()


@pytest.fixture
def snapshot(active_config):
    return active_config.snapshot


@pytest.fixture
def workflow(snapshot, approver_registry) -> ApprovalWorkflowEngine:
    approver_registry.validate(snapshot)
    return ApprovalWorkflowEngine(snapshot, approver_registry)


@pytest.fixture
def publisher() -> RecordingEventPublisher:
    return RecordingEventPublisher()


@pytest.fixture
def payroll_config(active_config) -> PayrollConfig:
    return PayrollConfig.from_dict(active_config.payroll_settings)


@pytest.fixture
def loan_config(active_config) -> LoanConfig:
    return LoanConfig.from_dict(active_config.loan_settings)


@pytest.fixture
def payroll_service(
    session, workflow, employees, attendance, payroll_config, deterministic_clock, publisher,
) -> PayrollService:
    return PayrollService(
        session,
        workflow,
        employees,
        attendance,
        config=payroll_config,
        clock=deterministic_clock,
        publisher=publisher,
    )


@pytest.fixture
def loan_service(
    session, workflow, employees, loan_config, deterministic_clock, publisher,
) -> LoanService:
    return LoanService(
        session,
        workflow,
        employees,
        config=loan_config,
        clock=deterministic_clock,
        publisher=publisher,
    )


@pytest.fixture
def approve_loan_fully(loan_service):
    """Walk a pending loan through every level of its chain."""

    def _approve(loan):
        while loan.approval.is_pending:
            loan = loan_service.approve(loan.id, loan.approval.next_approver_id)
        return loan

    return _approve


@pytest.fixture
def approve_salary_fully(payroll_service):
    def _approve(header):
        while header.approval.is_pending:
            header = payroll_service.approve(header.id, header.approval.next_approver_id)
        return header

    return _approve
