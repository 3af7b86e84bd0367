"""
Employee Loans Module (``hr_modules.loans``).

Responsibility
--------------
Loan requests with multi-level approval, installment schedules
materialized on final approval, manual repayment, single and mass
installment postponement, and the payroll-facing installment ledger.

Architecture position
---------------------
**Modules layer** -- frozen models, ORM persistence, a config schema and
the ``LoanService`` facade.  Approval transitions come from
``hr_engines.approval_workflow``; schedules from ``hr_engines.installments``.

Failure modes
-------------
* Typed ``hr_kernel.exceptions`` errors; the session is rolled back
  before they propagate.
"""

from hr_modules.loans.config import LoanConfig
from hr_modules.loans.models import (
    COLLECTIBLE_STATUSES,
    AutoApprovalResult,
    Loan,
    LoanInstallment,
    LoanPostponementRequest,
    MassPostponementResult,
    PaymentStatus,
)
from hr_modules.loans.service import LoanService

__all__ = [
    "COLLECTIBLE_STATUSES",
    "AutoApprovalResult",
    "Loan",
    "LoanConfig",
    "LoanInstallment",
    "LoanPostponementRequest",
    "LoanService",
    "MassPostponementResult",
    "PaymentStatus",
]
