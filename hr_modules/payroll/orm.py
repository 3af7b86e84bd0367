"""
Payroll ORM Persistence Models (``hr_modules.payroll.orm``).

Responsibility:
    SQLAlchemy ORM models persisting versioned salary headers and their
    detail lines, with ``to_dto()`` conversion to the frozen models in
    ``hr_modules.payroll.models``.

Architecture position:
    **Modules layer** -- persistence companions to the pure DTO models.

Invariants enforced:
    - (employee_id, period, version) is unique; concurrent calculations
      for the same key collide on insert instead of silently sharing a
      version number.
    - Headers are append-only apart from their approval columns.
    - Headers carry ``row_version`` for optimistic locking.
"""

from datetime import date
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

from hr_kernel.db.base import Base, TrackedBase
from hr_kernel.models.approval_state import APPROVAL_STATUS_CHECK, ApprovalStateMixin

# ---------------------------------------------------------------------------
# SalaryHeaderModel
# ---------------------------------------------------------------------------


class SalaryHeaderModel(ApprovalStateMixin, TrackedBase):
    """
    ORM model for ``SalaryHeader``.

    Contract:
        Scope ids are snapshotted at calculation time so the approval chain
        can be re-resolved consistently even if the employee later moves.
    """

    __tablename__ = "hr_salary_headers"

    employee_id: Mapped[UUID] = mapped_column(nullable=False)
    period: Mapped[str] = mapped_column(String(7), nullable=False)
    version: Mapped[int] = mapped_column(Integer, nullable=False)
    monthly_salary: Mapped[Decimal] = mapped_column(nullable=False)
    gross_salary: Mapped[Decimal] = mapped_column(nullable=False)
    total_allowances: Mapped[Decimal] = mapped_column(nullable=False)
    total_deductions: Mapped[Decimal] = mapped_column(nullable=False)
    net_salary: Mapped[Decimal] = mapped_column(nullable=False)
    negative_net: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    effective_start: Mapped[date] = mapped_column(nullable=False)
    effective_end: Mapped[date] = mapped_column(nullable=False)
    days_worked: Mapped[int] = mapped_column(Integer, nullable=False)
    department_id: Mapped[UUID | None] = mapped_column(nullable=True)
    project_id: Mapped[UUID | None] = mapped_column(nullable=True)
    recalculation_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    row_version: Mapped[int] = mapped_column(Integer, nullable=False)

    details: Mapped[list["SalaryDetailModel"]] = relationship(
        back_populates="header",
        order_by="SalaryDetailModel.line_no",
        cascade="all, delete-orphan",
    )

    __mapper_args__ = {"version_id_col": row_version}

    __table_args__ = (
        UniqueConstraint("employee_id", "period", "version", name="uq_salary_header_version"),
        CheckConstraint("version >= 1", name="chk_salary_header_version"),
        CheckConstraint("days_worked >= 0", name="chk_salary_header_days"),
        CheckConstraint(APPROVAL_STATUS_CHECK, name="chk_salary_header_approval_status"),
        Index("idx_salary_header_period", "period", "approval_status"),
        Index("idx_salary_header_next_approver", "approval_status", "next_approver_id"),
    )

    def to_dto(self):
        from hr_modules.payroll.models import SalaryHeader

        return SalaryHeader(
            id=self.id,
            employee_id=self.employee_id,
            period=self.period,
            version=self.version,
            monthly_salary=self.monthly_salary,
            gross_salary=self.gross_salary,
            total_allowances=self.total_allowances,
            total_deductions=self.total_deductions,
            net_salary=self.net_salary,
            negative_net=self.negative_net,
            effective_start=self.effective_start,
            effective_end=self.effective_end,
            days_worked=self.days_worked,
            approval=self.approval_state,
            recalculation_reason=self.recalculation_reason,
            details=tuple(d.to_dto() for d in self.details),
        )

    def __repr__(self) -> str:
        return (
            f"<SalaryHeaderModel {self.employee_id} {self.period} v{self.version} "
            f"net={self.net_salary} status={self.approval_status}>"
        )


# ---------------------------------------------------------------------------
# SalaryDetailModel
# ---------------------------------------------------------------------------


class SalaryDetailModel(Base):
    """ORM model for ``SalaryDetail``; immutable once written."""

    __tablename__ = "hr_salary_details"

    header_id: Mapped[UUID] = mapped_column(ForeignKey("hr_salary_headers.id"), nullable=False)
    line_no: Mapped[int] = mapped_column(Integer, nullable=False)
    component_code: Mapped[str] = mapped_column(String(50), nullable=False)
    amount: Mapped[Decimal] = mapped_column(nullable=False)
    category: Mapped[str] = mapped_column(String(20), nullable=False)
    reference_id: Mapped[UUID | None] = mapped_column(nullable=True)

    header: Mapped[SalaryHeaderModel] = relationship(back_populates="details")

    __table_args__ = (
        UniqueConstraint("header_id", "line_no", name="uq_salary_detail_line"),
        CheckConstraint("category IN ('allowance', 'deduction')", name="chk_salary_detail_category"),
        CheckConstraint("amount >= 0", name="chk_salary_detail_amount"),
    )

    def to_dto(self):
        from hr_engines.payroll import DetailCategory
        from hr_modules.payroll.models import SalaryDetail

        return SalaryDetail(
            line_no=self.line_no,
            component_code=self.component_code,
            amount=self.amount,
            category=DetailCategory(self.category),
            reference_id=self.reference_id,
        )
