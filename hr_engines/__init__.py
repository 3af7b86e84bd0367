"""
Module: hr_engines
Responsibility:
    Re-exports the pure calculation engines: approval chain resolution,
    the approval workflow state machine, installment scheduling and
    payroll computation.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import hr_kernel domain types, exceptions and logging.
    MUST NOT import hr_modules or hr_config.

Invariants enforced:
    - Engines never read the clock; dates are explicit parameters.
    - Decimal-only arithmetic for money.
"""

from hr_engines.approval_chain import find_level, next_level, resolve_chain
from hr_engines.approval_workflow import ApprovalWorkflowEngine
from hr_engines.approvers import ApproverRegistry, parse_approver_kind
from hr_engines.installments import (
    ScheduledInstallment,
    installment_amount,
    schedule_installments,
)
from hr_engines.payroll import (
    ComponentCode,
    DetailCategory,
    LoanDeduction,
    PayrollComputation,
    PayrollLine,
    ProrationResult,
    compute_payroll,
    prorate_salary,
)

__all__ = [
    "ApprovalWorkflowEngine",
    "ApproverRegistry",
    "ComponentCode",
    "DetailCategory",
    "LoanDeduction",
    "PayrollComputation",
    "PayrollLine",
    "ProrationResult",
    "ScheduledInstallment",
    "compute_payroll",
    "find_level",
    "installment_amount",
    "next_level",
    "parse_approver_kind",
    "prorate_salary",
    "resolve_chain",
    "schedule_installments",
]
