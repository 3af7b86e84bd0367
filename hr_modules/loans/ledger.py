"""
Loan installment ledger (``hr_modules.loans.ledger``).

Responsibility
--------------
Session-level helpers that keep loan balances and installments in step:
finding the installments a payslip must deduct, settling them when the
payslip is finally approved, and applying repayments made outside payroll.
None of them commits; all run inside the caller's transaction.

Invariants enforced
-------------------
* An installment is settled at most once: an installment already PAID is
  left untouched (check-then-create).
* The loan balance always equals what its unpaid installments still owe
  (``amount - prepaid_amount`` summed).  Repayments outside payroll cover
  installments oldest first; payroll deducts and settles only the rest.
* Settlement collects exactly what the payslip deducted or refuses; the
  loan is closed when its balance reaches zero, with every installment PAID.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import and_, or_, select
from sqlalchemy.orm import Session

from hr_engines.payroll import LoanDeduction
from hr_kernel.domain.approval import ApprovalStatus
from hr_kernel.domain.values import PayPeriod
from hr_kernel.exceptions import DataIntegrityError, OverpaymentError
from hr_kernel.logging_config import get_logger
from hr_modules.loans.models import COLLECTIBLE_STATUSES, PaymentStatus
from hr_modules.loans.orm import LoanInstallmentModel, LoanModel

logger = get_logger("modules.loans.ledger")


@dataclass(frozen=True)
class InstallmentSettlement:
    installment_id: UUID
    loan_id: UUID
    employee_id: UUID
    amount: Decimal
    remaining_balance: Decimal
    loan_closed: bool


def installments_due(
    session: Session, employee_id: UUID, period: PayPeriod,
) -> list[LoanInstallmentModel]:
    """Installments a payslip for ``period`` deducts.

    Collectible installments of approved active loans due in the period,
    plus installments already settled for the same period by an earlier
    approved payslip version.
    """
    collectible = [status.value for status in COLLECTIBLE_STATUSES]
    stmt = (
        select(LoanInstallmentModel)
        .join(LoanModel, LoanInstallmentModel.loan_id == LoanModel.id)
        .where(
            LoanModel.employee_id == employee_id,
            LoanModel.approval_status == ApprovalStatus.APPROVED.value,
            LoanInstallmentModel.due_date >= period.start,
            LoanInstallmentModel.due_date <= period.end,
            or_(
                and_(
                    LoanModel.is_active.is_(True),
                    LoanInstallmentModel.payment_status.in_(collectible),
                ),
                and_(
                    LoanInstallmentModel.payment_status == PaymentStatus.PAID.value,
                    LoanInstallmentModel.paid_period == str(period),
                ),
            ),
        )
        .order_by(LoanInstallmentModel.due_date, LoanInstallmentModel.sequence_no)
    )
    return list(session.scalars(stmt).all())


def as_deductions(installments: list[LoanInstallmentModel]) -> tuple[LoanDeduction, ...]:
    """One deduction per installment for the part payroll collects.

    Whatever was repaid outside payroll (``prepaid_amount``) is not
    deducted again; fully prepaid installments are PAID and never due.
    """
    return tuple(
        LoanDeduction(installment_id=i.id, loan_id=i.loan_id, amount=i.payroll_amount)
        for i in installments
        if i.payroll_amount > 0
    )


def apply_prepayment(
    loan: LoanModel,
    amount: Decimal,
    paid_on: date,
    actor_id: UUID,
) -> list[LoanInstallmentModel]:
    """Spread a repayment made outside payroll over the loan's installments.

    Installments are covered oldest first.  A covered installment becomes
    PAID with no ``paid_period``; the last one touched may be covered only
    in part.  Returns the installments that changed.

    Raises:
        OverpaymentError: ``amount`` exceeds what the installments still owe.
    """
    left = amount
    touched: list[LoanInstallmentModel] = []
    for installment in sorted(loan.installments, key=lambda i: (i.due_date, i.sequence_no)):
        if left == 0:
            break
        if installment.payment_status == PaymentStatus.PAID.value:
            continue
        applied = min(installment.payroll_amount, left)
        installment.prepaid_amount = installment.prepaid_amount + applied
        installment.updated_by_id = actor_id
        left -= applied
        if installment.payroll_amount == 0:
            installment.payment_status = PaymentStatus.PAID.value
            installment.paid_amount = installment.amount
            installment.paid_date = paid_on
            installment.paid_period = None
        touched.append(installment)

    if left != 0:
        raise OverpaymentError(str(loan.id), str(amount), str(amount - left))
    return touched


def settle_installment(
    session: Session,
    installment_id: UUID,
    period: PayPeriod,
    paid_on: date,
    actor_id: UUID,
    *,
    deducted: Decimal,
) -> InstallmentSettlement | None:
    """Mark one installment PAID and decrement its loan balance by ``deducted``.

    Returns None when this period's payroll already settled the installment.

    Raises:
        DataIntegrityError: the payslip no longer matches the loan, e.g. a
            repayment outside payroll covered the installment after the
            payslip was calculated.  Recalculating the payslip fixes it.
    """
    installment = session.get(LoanInstallmentModel, installment_id)
    if installment is None:
        return None
    if installment.payment_status == PaymentStatus.PAID.value:
        if installment.paid_period == str(period):
            return None
        raise DataIntegrityError(
            "LoanInstallment", str(installment_id),
            "already repaid outside payroll; recalculate the payslip",
        )

    loan = installment.loan
    collected = installment.payroll_amount
    if deducted != collected or collected > loan.remaining_balance:
        raise DataIntegrityError(
            "LoanInstallment", str(installment_id),
            f"payslip deducts {deducted} but {collected} is outstanding "
            f"(loan balance {loan.remaining_balance}); recalculate the payslip",
        )

    installment.payment_status = PaymentStatus.PAID.value
    installment.paid_amount = installment.amount
    installment.paid_date = paid_on
    installment.paid_period = str(period)
    installment.updated_by_id = actor_id

    loan.remaining_balance = loan.remaining_balance - collected
    loan.updated_by_id = actor_id
    closed = loan.remaining_balance == 0
    if closed:
        loan.is_active = False

    logger.info(
        "loan_installment_settled",
        extra={
            "installment_id": str(installment.id),
            "loan_id": str(loan.id),
            "period": str(period),
            "amount": str(collected),
            "remaining_balance": str(loan.remaining_balance),
            "loan_closed": closed,
        },
    )
    return InstallmentSettlement(
        installment_id=installment.id,
        loan_id=loan.id,
        employee_id=loan.employee_id,
        amount=collected,
        remaining_balance=loan.remaining_balance,
        loan_closed=closed,
    )
