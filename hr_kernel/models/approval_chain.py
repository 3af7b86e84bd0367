"""
Module: hr_kernel.models.approval_chain
Responsibility: ORM persistence for approval chain definitions.

Architecture position: Kernel > Models.  May import from db/base.py only
    (domain types imported lazily inside converters).

Invariants enforced:
    - One row per (request_type, scope_kind, scope_id, level_no).
    - scope_kind is limited to global/department/project; a global row has
      no scope_id.
    - Contiguity and single-closing-level rules are checked when rows are
      compiled into a snapshot (``validate_chain_set``), not per row.
"""

from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import Boolean, CheckConstraint, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from hr_kernel.db.base import Base, UUIDString

if TYPE_CHECKING:
    from hr_kernel.domain.approval import ApprovalChainDefinition


class ApprovalChainDefinitionModel(Base):
    """One configured approval level."""

    __tablename__ = "hr_approval_chain_definitions"

    __table_args__ = (
        UniqueConstraint(
            "request_type", "scope_kind", "scope_id", "level_no",
            name="uq_approval_chain_level",
        ),
        CheckConstraint(
            "scope_kind IN ('global', 'department', 'project')",
            name="chk_approval_chain_scope_kind",
        ),
        CheckConstraint(
            "(scope_kind = 'global' AND scope_id IS NULL) OR "
            "(scope_kind <> 'global' AND scope_id IS NOT NULL)",
            name="chk_approval_chain_scope_id",
        ),
        CheckConstraint("level_no >= 1", name="chk_approval_chain_level_no"),
        Index("idx_approval_chain_lookup", "request_type", "scope_kind", "scope_id"),
    )

    request_type: Mapped[str] = mapped_column(String(30), nullable=False)
    scope_kind: Mapped[str] = mapped_column(String(20), nullable=False, default="global")
    scope_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)
    level_no: Mapped[int] = mapped_column(Integer, nullable=False)
    approver_kind: Mapped[str] = mapped_column(String(30), nullable=False)
    closes_chain: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    level_name: Mapped[str | None] = mapped_column(String(100), nullable=True)

    def to_dto(self) -> ApprovalChainDefinition:
        """Convert ORM model to frozen domain DTO."""
        from hr_kernel.domain.approval import (
            ApprovalChainDefinition as ChainDTO,
            ApproverKind,
            ChainScope,
            ScopeKind,
        )
        from hr_kernel.exceptions import UnknownApproverResolverError

        try:
            kind = ApproverKind(self.approver_kind)
        except ValueError as exc:
            raise UnknownApproverResolverError(self.approver_kind) from exc

        scope_kind = ScopeKind(self.scope_kind)
        if scope_kind == ScopeKind.DEPARTMENT:
            scope = ChainScope(department_id=self.scope_id)
        elif scope_kind == ScopeKind.PROJECT:
            scope = ChainScope(project_id=self.scope_id)
        else:
            scope = ChainScope()

        return ChainDTO(
            request_type=self.request_type,
            level_no=self.level_no,
            approver_kind=kind,
            scope=scope,
            closes_chain=self.closes_chain,
            active=self.is_active,
            level_name=self.level_name,
        )

    @classmethod
    def from_dto(cls, dto: ApprovalChainDefinition) -> ApprovalChainDefinitionModel:
        """Create ORM model from domain DTO."""
        return cls(
            request_type=dto.request_type,
            scope_kind=dto.scope.kind.value,
            scope_id=dto.scope.scope_id,
            level_no=dto.level_no,
            approver_kind=dto.approver_kind.value,
            closes_chain=dto.closes_chain,
            is_active=dto.active,
            level_name=dto.level_name,
        )
