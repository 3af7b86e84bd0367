"""
Loan Domain Models (``hr_modules.loans.models``).

Responsibility
--------------
Frozen value objects for employee loans, their installments and
postponement requests, plus the result types of bulk operations.

Architecture position
---------------------
**Modules layer** -- pure data definitions with ZERO I/O.  Built from ORM
rows by ``orm.py`` and returned to callers by ``LoanService``.

Invariants enforced
-------------------
* All models are ``frozen=True``.
* All monetary fields use ``Decimal``.
* Sum of installment amounts equals the loan principal.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from uuid import UUID

from hr_kernel.domain.approval import ApprovalState, ApprovalStatus


class PaymentStatus(str, Enum):
    UNPAID = "unpaid"
    PAID = "paid"
    POSTPONED = "postponed"


COLLECTIBLE_STATUSES: frozenset[PaymentStatus] = frozenset({
    PaymentStatus.UNPAID,
    PaymentStatus.POSTPONED,
})


@dataclass(frozen=True)
class LoanInstallment:
    """One scheduled repayment.

    ``prepaid_amount`` is the part repaid outside payroll; payroll deducts
    only ``amount - prepaid_amount``.  A PAID installment has
    ``paid_amount == amount``; ``paid_period`` is set only when payroll
    collected it.
    """

    id: UUID
    loan_id: UUID
    sequence_no: int
    due_date: date
    amount: Decimal
    payment_status: PaymentStatus
    prepaid_amount: Decimal = Decimal("0")
    paid_amount: Decimal | None = None
    paid_date: date | None = None
    paid_period: str | None = None


@dataclass(frozen=True)
class Loan:
    """An employee loan and, once approved, its repayment schedule."""

    id: UUID
    employee_id: UUID
    principal: Decimal
    installment_count: int
    installment_amount: Decimal
    remaining_balance: Decimal
    first_installment_date: date
    request_date: date
    approval: ApprovalState
    is_active: bool
    installments: tuple[LoanInstallment, ...] = ()

    def __post_init__(self):
        if self.installments:
            total = sum((i.amount for i in self.installments), Decimal("0"))
            if total != self.principal:
                raise ValueError(
                    f"Installments of loan {self.id} sum to {total}, "
                    f"principal is {self.principal}"
                )

    @property
    def status(self) -> ApprovalStatus:
        return self.approval.status

    @property
    def is_fully_paid(self) -> bool:
        return self.status == ApprovalStatus.APPROVED and self.remaining_balance == 0


@dataclass(frozen=True)
class LoanPostponementRequest:
    id: UUID
    loan_id: UUID
    installment_id: UUID
    employee_id: UUID
    current_due_date: date
    new_due_date: date
    reason: str
    request_date: date
    approval: ApprovalState


@dataclass(frozen=True)
class MassPostponementResult:
    from_period: str
    to_period: str
    new_due_date: date
    installments_postponed: int
    affected_employee_ids: tuple[UUID, ...]


@dataclass(frozen=True)
class AutoApprovalResult:
    """Outcome of one sweep over stale pending loans."""

    processed_loan_ids: tuple[UUID, ...]
    fully_approved_loan_ids: tuple[UUID, ...]
    failed_loan_ids: tuple[UUID, ...] = ()
