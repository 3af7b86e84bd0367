"""
Approval domain types (``hr_kernel.domain.approval``).

Responsibility
--------------
Pure value objects for multi-level approval routing: the status lifecycle,
chain scopes, approver kinds, chain definitions, the per-transaction
approval state and timeline steps.  Also the structural validation of a
chain set, shared by the YAML compiler and the database selector.

Architecture position
---------------------
**Kernel domain layer** -- pure value objects.  ZERO I/O.  No imports
from ``db/``, ``models/``, ``selectors/``, or outer layers.

Invariants enforced
-------------------
* Lifecycle -- ``APPROVAL_TRANSITIONS`` defines the only valid status
  transitions.  APPROVED and REJECTED are terminal.  Every write of an
  ORM approval row is checked against it (``apply_approval_state``).
* State shape -- a pending state carries both a level and a next approver;
  a terminal state carries neither (checked in ``ApprovalState``).
* Chain shape -- per (request type, scope) the active levels run 1..N
  without gaps and only level N closes the chain (``validate_chain_set``).
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from uuid import UUID

from hr_kernel.exceptions import InvalidApprovalChainError


# =========================================================================
# Request types
# =========================================================================


class RequestType:
    """Request type tags used by the payroll and loan modules.

    The chain table accepts any tag (leave, transfers, allowances); these
    are the ones this package routes itself.
    """

    PAYROLL = "PAYROLL"
    LOAN = "LOAN"
    LOAN_POSTPONEMENT = "POSTLOAN"


# =========================================================================
# Approval Status Lifecycle
# =========================================================================


class ApprovalStatus(str, Enum):
    """Approval lifecycle states."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


APPROVAL_TRANSITIONS: dict[ApprovalStatus, frozenset[ApprovalStatus]] = {
    ApprovalStatus.PENDING: frozenset({
        ApprovalStatus.PENDING,
        ApprovalStatus.APPROVED,
        ApprovalStatus.REJECTED,
    }),
    ApprovalStatus.APPROVED: frozenset(),
    ApprovalStatus.REJECTED: frozenset(),
}

TERMINAL_APPROVAL_STATUSES: frozenset[ApprovalStatus] = frozenset({
    ApprovalStatus.APPROVED,
    ApprovalStatus.REJECTED,
})


def is_valid_transition(
    from_status: ApprovalStatus, to_status: ApprovalStatus,
) -> bool:
    return to_status in APPROVAL_TRANSITIONS.get(from_status, frozenset())


# =========================================================================
# Scope and approver kinds
# =========================================================================


class ScopeKind(str, Enum):
    """What a non-global chain is restricted to."""

    GLOBAL = "global"
    DEPARTMENT = "department"
    PROJECT = "project"


@dataclass(frozen=True)
class ChainScope:
    """Department/project context of a request.

    Used both as a chain definition's scope (exactly one of the ids set,
    or neither for the global chain) and as the lookup context passed to
    resolvers (either or both ids set).
    """

    department_id: UUID | None = None
    project_id: UUID | None = None

    @classmethod
    def global_scope(cls) -> ChainScope:
        return cls()

    @property
    def kind(self) -> ScopeKind:
        if self.department_id is not None:
            return ScopeKind.DEPARTMENT
        if self.project_id is not None:
            return ScopeKind.PROJECT
        return ScopeKind.GLOBAL

    @property
    def scope_id(self) -> UUID | None:
        return self.department_id or self.project_id

    def label(self) -> str:
        if self.kind == ScopeKind.GLOBAL:
            return "global"
        return f"{self.kind.value}:{self.scope_id}"


class ApproverKind(str, Enum):
    """Closed set of approver-resolution functions."""

    DIRECT_MANAGER = "direct_manager"
    PROJECT_MANAGER = "project_manager"
    REGIONAL_MANAGER = "regional_manager"
    HR_MANAGER = "hr_manager"
    FINANCE_MANAGER = "finance_manager"
    GENERAL_MANAGER = "general_manager"


# =========================================================================
# Chain definitions
# =========================================================================


@dataclass(frozen=True)
class ApprovalChainDefinition:
    """One level of an approval chain."""

    request_type: str
    level_no: int
    approver_kind: ApproverKind
    scope: ChainScope = ChainScope()
    closes_chain: bool = False
    active: bool = True
    level_name: str | None = None

    def __post_init__(self) -> None:
        if self.level_no < 1:
            raise ValueError(f"level_no must be >= 1, got {self.level_no}")
        if self.scope.department_id is not None and self.scope.project_id is not None:
            raise ValueError("A chain definition is scoped to a department or a project, not both")


def validate_chain_set(definitions: Iterable[ApprovalChainDefinition]) -> None:
    """Check contiguity and closing rules for every (request type, scope).

    Inactive definitions are ignored.

    Raises:
        InvalidApprovalChainError: On gaps, duplicate levels, a missing
            closing level, or a closing level that is not the highest.
    """
    grouped: dict[tuple[str, ChainScope], list[ApprovalChainDefinition]] = defaultdict(list)
    for definition in definitions:
        if definition.active:
            grouped[(definition.request_type, definition.scope)].append(definition)

    for (request_type, scope), levels in grouped.items():
        numbers = sorted(d.level_no for d in levels)
        if numbers != list(range(1, len(numbers) + 1)):
            raise InvalidApprovalChainError(
                request_type, scope.label(),
                f"levels must be contiguous from 1, got {numbers}",
            )
        closing = [d.level_no for d in levels if d.closes_chain]
        if len(closing) != 1:
            raise InvalidApprovalChainError(
                request_type, scope.label(),
                f"exactly one level must close the chain, got {closing or 'none'}",
            )
        if closing[0] != numbers[-1]:
            raise InvalidApprovalChainError(
                request_type, scope.label(),
                f"closing level {closing[0]} is not the highest level {numbers[-1]}",
            )


# =========================================================================
# Approval state
# =========================================================================


@dataclass(frozen=True)
class ApprovalState:
    """Approval progress embedded in an approvable entity.

    Created by ``ApprovalWorkflowEngine.initialize`` and replaced (never
    mutated) by ``advance``/``reject``.
    """

    status: ApprovalStatus
    current_level: int | None = None
    next_approver_id: UUID | None = None
    rejection_reason: str | None = None
    approved_by_on_final: UUID | None = None
    decided_by: UUID | None = None
    decided_at: datetime | None = None
    decided_level: int | None = None

    def __post_init__(self) -> None:
        if self.status == ApprovalStatus.PENDING:
            if self.current_level is None or self.next_approver_id is None:
                raise ValueError("A pending approval needs a level and a next approver")
        elif self.current_level is not None or self.next_approver_id is not None:
            raise ValueError(
                f"A {self.status.value} approval carries no level or next approver"
            )

    @classmethod
    def pending(cls, level: int, approver_id: UUID) -> ApprovalState:
        return cls(ApprovalStatus.PENDING, current_level=level, next_approver_id=approver_id)

    @property
    def is_pending(self) -> bool:
        return self.status == ApprovalStatus.PENDING

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_APPROVAL_STATUSES

    def decided(
        self, actor_id: UUID | None, at: datetime | None, level: int | None,
    ) -> ApprovalState:
        """Copy carrying who acted last, when, and at which level."""
        return replace(self, decided_by=actor_id, decided_at=at, decided_level=level)


# =========================================================================
# Timeline
# =========================================================================


class TimelineStepStatus(str, Enum):
    COMPLETED = "completed"
    PENDING = "pending"
    FUTURE = "future"
    REJECTED = "rejected"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class ApprovalTimelineStep:
    """One level of a request's approval path as shown to users."""

    level_no: int
    level_name: str
    approver_kind: ApproverKind
    status: TimelineStepStatus
    approver_id: UUID | None = None
