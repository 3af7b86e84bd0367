"""
Loan ORM Persistence Models (``hr_modules.loans.orm``).

Responsibility:
    SQLAlchemy ORM models persisting loans, their installments and
    postponement requests, with ``to_dto()`` conversion to the frozen
    models in ``hr_modules.loans.models``.

Architecture position:
    **Modules layer** -- persistence companions to the pure DTO models.
    Inherits ``TrackedBase`` (UUID id, audit columns) and embeds approval
    progress through ``ApprovalStateMixin``.

Invariants enforced:
    - Money columns are Numeric(18, 4) Decimals.
    - Installments belong to exactly one loan; (loan_id, sequence_no) is
      unique and sequence numbers start at 1.
    - An installment's ``prepaid_amount`` (repaid outside payroll) never
      exceeds its amount.
    - Loans and postponement requests carry ``row_version`` for optimistic
      locking; a concurrent writer makes the flush raise StaleDataError.
"""

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from hr_kernel.db.base import TrackedBase
from hr_kernel.models.approval_state import APPROVAL_STATUS_CHECK, ApprovalStateMixin

# ---------------------------------------------------------------------------
# LoanModel
# ---------------------------------------------------------------------------


class LoanModel(ApprovalStateMixin, TrackedBase):
    """
    ORM model for ``Loan``.

    Contract:
        ``is_active`` is true from submission until the loan is rejected
        or its balance reaches zero.  Installments exist only after final
        approval.
    """

    __tablename__ = "hr_loans"

    employee_id: Mapped[UUID] = mapped_column(nullable=False)
    principal: Mapped[Decimal] = mapped_column(nullable=False)
    installment_count: Mapped[int] = mapped_column(Integer, nullable=False)
    installment_amount: Mapped[Decimal] = mapped_column(nullable=False)
    remaining_balance: Mapped[Decimal] = mapped_column(nullable=False)
    first_installment_date: Mapped[date] = mapped_column(nullable=False)
    request_date: Mapped[date] = mapped_column(nullable=False)
    submitted_at: Mapped[datetime] = mapped_column(nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    row_version: Mapped[int] = mapped_column(Integer, nullable=False)

    installments: Mapped[list["LoanInstallmentModel"]] = relationship(
        back_populates="loan",
        order_by="LoanInstallmentModel.sequence_no",
        cascade="all, delete-orphan",
    )

    __mapper_args__ = {"version_id_col": row_version}

    __table_args__ = (
        CheckConstraint("principal > 0", name="chk_loan_principal_positive"),
        CheckConstraint("remaining_balance >= 0", name="chk_loan_balance_non_negative"),
        CheckConstraint("installment_count >= 1", name="chk_loan_installment_count"),
        CheckConstraint(APPROVAL_STATUS_CHECK, name="chk_loan_approval_status"),
        Index("idx_loan_employee_active", "employee_id", "is_active"),
        Index("idx_loan_next_approver", "approval_status", "next_approver_id"),
    )

    def to_dto(self):
        from hr_modules.loans.models import Loan

        return Loan(
            id=self.id,
            employee_id=self.employee_id,
            principal=self.principal,
            installment_count=self.installment_count,
            installment_amount=self.installment_amount,
            remaining_balance=self.remaining_balance,
            first_installment_date=self.first_installment_date,
            request_date=self.request_date,
            approval=self.approval_state,
            is_active=self.is_active,
            installments=tuple(i.to_dto() for i in self.installments),
        )

    def __repr__(self) -> str:
        return (
            f"<LoanModel {self.id} employee={self.employee_id} "
            f"principal={self.principal} status={self.approval_status}>"
        )


# ---------------------------------------------------------------------------
# LoanInstallmentModel
# ---------------------------------------------------------------------------


class LoanInstallmentModel(TrackedBase):
    """ORM model for ``LoanInstallment``."""

    __tablename__ = "hr_loan_installments"

    loan_id: Mapped[UUID] = mapped_column(ForeignKey("hr_loans.id"), nullable=False)
    sequence_no: Mapped[int] = mapped_column(Integer, nullable=False)
    due_date: Mapped[date] = mapped_column(nullable=False)
    amount: Mapped[Decimal] = mapped_column(nullable=False)
    prepaid_amount: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    payment_status: Mapped[str] = mapped_column(String(20), nullable=False, default="unpaid")
    paid_amount: Mapped[Decimal | None] = mapped_column(nullable=True)
    paid_date: Mapped[date | None] = mapped_column(nullable=True)
    paid_period: Mapped[str | None] = mapped_column(String(7), nullable=True)

    loan: Mapped[LoanModel] = relationship(back_populates="installments")

    __table_args__ = (
        UniqueConstraint("loan_id", "sequence_no", name="uq_loan_installment_sequence"),
        CheckConstraint("sequence_no >= 1", name="chk_loan_installment_sequence"),
        CheckConstraint("amount >= 0", name="chk_loan_installment_amount"),
        CheckConstraint(
            "prepaid_amount >= 0 AND prepaid_amount <= amount",
            name="chk_loan_installment_prepaid",
        ),
        CheckConstraint(
            "payment_status IN ('unpaid', 'paid', 'postponed')",
            name="chk_loan_installment_status",
        ),
        Index("idx_loan_installment_due", "due_date", "payment_status"),
    )

    @property
    def payroll_amount(self) -> Decimal:
        """What payroll still deducts: the amount less any repayment outside payroll."""
        return self.amount - (self.prepaid_amount or Decimal("0"))

    def to_dto(self):
        from hr_modules.loans.models import LoanInstallment, PaymentStatus

        return LoanInstallment(
            id=self.id,
            loan_id=self.loan_id,
            sequence_no=self.sequence_no,
            due_date=self.due_date,
            amount=self.amount,
            payment_status=PaymentStatus(self.payment_status),
            prepaid_amount=self.prepaid_amount,
            paid_amount=self.paid_amount,
            paid_date=self.paid_date,
            paid_period=self.paid_period,
        )


# ---------------------------------------------------------------------------
# LoanPostponementRequestModel
# ---------------------------------------------------------------------------


class LoanPostponementRequestModel(ApprovalStateMixin, TrackedBase):
    """ORM model for ``LoanPostponementRequest``."""

    __tablename__ = "hr_loan_postponement_requests"

    loan_id: Mapped[UUID] = mapped_column(ForeignKey("hr_loans.id"), nullable=False)
    installment_id: Mapped[UUID] = mapped_column(
        ForeignKey("hr_loan_installments.id"), nullable=False,
    )
    employee_id: Mapped[UUID] = mapped_column(nullable=False)
    current_due_date: Mapped[date] = mapped_column(nullable=False)
    new_due_date: Mapped[date] = mapped_column(nullable=False)
    reason: Mapped[str] = mapped_column(Text, nullable=False)
    request_date: Mapped[date] = mapped_column(nullable=False)
    row_version: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": row_version}

    __table_args__ = (
        CheckConstraint(APPROVAL_STATUS_CHECK, name="chk_postponement_approval_status"),
        Index("idx_postponement_installment", "installment_id", "approval_status"),
    )

    def to_dto(self):
        from hr_modules.loans.models import LoanPostponementRequest

        return LoanPostponementRequest(
            id=self.id,
            loan_id=self.loan_id,
            installment_id=self.installment_id,
            employee_id=self.employee_id,
            current_due_date=self.current_due_date,
            new_due_date=self.new_due_date,
            reason=self.reason,
            request_date=self.request_date,
            approval=self.approval_state,
        )
