"""
Payroll Module (``hr_modules.payroll``).

Responsibility
--------------
Monthly payslips: pro-rated gross salary split into category components,
overtime and attendance lines, loan installment deductions, versioned
recalculation and multi-level approval.

Architecture position
---------------------
**Modules layer** -- frozen models, ORM persistence, a config schema and
the ``PayrollService`` facade.  Arithmetic lives in ``hr_engines.payroll``.
"""

from hr_modules.payroll.config import NegativeNetPolicy, PayrollConfig
from hr_modules.payroll.models import (
    PayrollBatchFailure,
    PayrollBatchResult,
    SalaryDetail,
    SalaryHeader,
)
from hr_modules.payroll.service import PayrollService

__all__ = [
    "NegativeNetPolicy",
    "PayrollBatchFailure",
    "PayrollBatchResult",
    "PayrollConfig",
    "PayrollService",
    "SalaryDetail",
    "SalaryHeader",
]
