"""
Module: hr_kernel.models.approval_state
Responsibility: Columns embedding an ``ApprovalState`` in an approvable
    entity (salary header, loan, postponement request), with conversion to
    and from the domain value object.

Architecture position: Kernel > Models.

Invariants enforced:
    - approval_status is one of pending/approved/rejected (check constraint
      is declared by each owning table, which knows its own name).
    - Writes go through ``apply_approval_state``, which refuses any change
      that ``is_valid_transition`` does not allow; the domain object's
      ``__post_init__`` rejects inconsistent level/approver combinations on
      read-back.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from hr_kernel.db.base import UUIDString

if TYPE_CHECKING:
    from hr_kernel.domain.approval import ApprovalState


APPROVAL_STATUS_CHECK = "approval_status IN ('pending', 'approved', 'rejected')"


class ApprovalStateMixin:
    """Approval columns shared by every approvable entity."""

    approval_status: Mapped[str] = mapped_column(String(20), nullable=False, default="pending")
    current_level: Mapped[int | None] = mapped_column(Integer, nullable=True)
    next_approver_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)
    rejection_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    approved_by_on_final: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)
    decided_by: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)
    decided_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    decided_level: Mapped[int | None] = mapped_column(Integer, nullable=True)

    @property
    def approval_state(self) -> ApprovalState:
        from hr_kernel.domain.approval import ApprovalState, ApprovalStatus

        return ApprovalState(
            status=ApprovalStatus(self.approval_status),
            current_level=self.current_level,
            next_approver_id=self.next_approver_id,
            rejection_reason=self.rejection_reason,
            approved_by_on_final=self.approved_by_on_final,
            decided_by=self.decided_by,
            decided_at=self.decided_at,
            decided_level=self.decided_level,
        )

    def apply_approval_state(self, state: ApprovalState) -> None:
        """Write ``state`` into the columns.

        Raises:
            ApprovalAlreadyResolvedError: the row is already APPROVED or
                REJECTED; a terminal status never changes.
        """
        from hr_kernel.domain.approval import ApprovalStatus, is_valid_transition
        from hr_kernel.exceptions import ApprovalAlreadyResolvedError

        if self.approval_status is not None and not is_valid_transition(
            ApprovalStatus(self.approval_status), state.status,
        ):
            raise ApprovalAlreadyResolvedError(
                type(self).__name__.removesuffix("Model"), str(self.id), self.approval_status,
            )
        self.approval_status = state.status.value
        self.current_level = state.current_level
        self.next_approver_id = state.next_approver_id
        self.rejection_reason = state.rejection_reason
        self.approved_by_on_final = state.approved_by_on_final
        self.decided_by = state.decided_by
        self.decided_at = state.decided_at
        self.decided_level = state.decided_level
