"""
hr_engines.approval_workflow -- Multi-level approval state machine.

Responsibility:
    Start, advance, reject and describe the approval of one transaction
    (a salary header, a loan, a postponement request, ...).  The engine
    returns new ``ApprovalState`` values; callers persist them and run side
    effects when the status becomes APPROVED.

Architecture position:
    Engines -- no database, no clock.  Approver lookups go through the
    injected ``ApproverRegistry``; chain lookups through the injected
    ``ConfigurationSnapshot``.

Invariants enforced:
    - Initial state is always PENDING at level 1.
    - ``advance`` never lowers the level; the closing level always yields
      APPROVED.
    - The chain is re-resolved on every ``advance`` because membership
      depends on the requester's department/project at that moment.
    - REJECTED and APPROVED are terminal: ``reject`` refuses non-pending
      states and actors other than the expected approver.

Failure modes:
    - NoApprovalChainError: nothing configured for the request type.
    - ApprovalLevelNotFoundError: the persisted level vanished from the
      chain (reconfiguration while a request was in flight).
    - NotAuthorizedError: wrong actor or non-pending state on reject.
    - InvalidArgumentError: blank rejection reason.
"""

from __future__ import annotations

from uuid import UUID

from hr_engines.approval_chain import find_level, next_level, resolve_chain
from hr_engines.approvers import DEFAULT_LEVEL_NAMES, ApproverRegistry
from hr_kernel.domain.approval import (
    ApprovalChainDefinition,
    ApprovalState,
    ApprovalStatus,
    ApprovalTimelineStep,
    ChainScope,
    TimelineStepStatus,
)
from hr_kernel.domain.snapshot import ConfigurationSnapshot
from hr_kernel.exceptions import (
    ApprovalLevelNotFoundError,
    InvalidArgumentError,
    NotAuthorizedError,
)
from hr_kernel.logging_config import get_logger

logger = get_logger("engines.approval_workflow")


class ApprovalWorkflowEngine:
    """
    Generic approval state machine shared by payroll and loans.

    Contract:
        All methods are pure functions of their arguments plus the injected
        snapshot and registry.

    Guarantees:
        - Returned states satisfy the ``ApprovalState`` shape invariant.
        - ``can_approve`` never mutates anything.

    Non-goals:
        - Does not persist states or publish notifications.
        - Does not implement administrator bypass of the chain.
    """

    def __init__(self, snapshot: ConfigurationSnapshot, approvers: ApproverRegistry):
        self._snapshot = snapshot
        self._approvers = approvers

    @property
    def snapshot(self) -> ConfigurationSnapshot:
        return self._snapshot

    def chain_for(
        self, request_type: str, scope: ChainScope,
    ) -> tuple[ApprovalChainDefinition, ...]:
        return resolve_chain(
            self._snapshot, request_type, scope.department_id, scope.project_id,
        )

    def initialize(
        self, request_type: str, scope: ChainScope, employee_id: UUID,
    ) -> ApprovalState:
        """Start an approval at level 1 of the applicable chain."""
        chain = self.chain_for(request_type, scope)
        first = chain[0]
        approver_id = self._approvers.resolve(first.approver_kind, employee_id, scope)
        logger.info(
            "approval_initialized",
            extra={
                "request_type": request_type,
                "employee_id": str(employee_id),
                "chain_scope": first.scope.label(),
                "chain_levels": len(chain),
                "next_approver_id": str(approver_id),
            },
        )
        return ApprovalState.pending(first.level_no, approver_id)

    def can_approve(
        self,
        request_type: str,
        state: ApprovalState,
        level: int,
        acting_user_id: UUID,
    ) -> bool:
        """True iff ``acting_user_id`` is the expected approver at ``level``."""
        allowed = (
            state.is_pending
            and state.current_level == level
            and state.next_approver_id == acting_user_id
        )
        if not allowed:
            logger.debug(
                "approval_not_permitted",
                extra={
                    "request_type": request_type,
                    "level": level,
                    "current_level": state.current_level,
                    "acting_user_id": str(acting_user_id),
                    "expected_approver_id": str(state.next_approver_id),
                },
            )
        return allowed

    def advance(
        self,
        request_type: str,
        level: int,
        employee_id: UUID,
        department_id: UUID | None = None,
        project_id: UUID | None = None,
        approved_by: UUID | None = None,
    ) -> ApprovalState:
        """Move past ``level``: next level if there is one, else APPROVED."""
        scope = ChainScope(department_id=department_id, project_id=project_id)
        chain = self.chain_for(request_type, scope)

        current = find_level(chain, level)
        if current is None:
            raise ApprovalLevelNotFoundError(request_type, level)

        following = None if current.closes_chain else next_level(chain, level)
        if following is None:
            logger.info(
                "approval_completed",
                extra={
                    "request_type": request_type,
                    "employee_id": str(employee_id),
                    "final_level": level,
                },
            )
            return ApprovalState(
                status=ApprovalStatus.APPROVED,
                approved_by_on_final=approved_by,
            )

        approver_id = self._approvers.resolve(following.approver_kind, employee_id, scope)
        logger.info(
            "approval_advanced",
            extra={
                "request_type": request_type,
                "employee_id": str(employee_id),
                "from_level": level,
                "to_level": following.level_no,
                "next_approver_id": str(approver_id),
            },
        )
        return ApprovalState.pending(following.level_no, approver_id)

    def reject(
        self, state: ApprovalState, acting_user_id: UUID, reason: str,
    ) -> ApprovalState:
        """Terminal rejection by the expected approver."""
        if not state.is_pending or state.next_approver_id != acting_user_id:
            raise NotAuthorizedError(
                actor_id=str(acting_user_id),
                attempted_transition="reject",
                expected_approver_id=(
                    str(state.next_approver_id) if state.next_approver_id else None
                ),
            )
        if not reason or not reason.strip():
            raise InvalidArgumentError("reason", reason, "rejection reason is required")
        return ApprovalState(
            status=ApprovalStatus.REJECTED,
            rejection_reason=reason.strip(),
        )

    def timeline(
        self,
        request_type: str,
        state: ApprovalState,
        scope: ChainScope,
    ) -> tuple[ApprovalTimelineStep, ...]:
        """Per-level progress of a request against its current chain."""
        chain = self.chain_for(request_type, scope)
        steps: list[ApprovalTimelineStep] = []
        for definition in chain:
            status, approver_id = _step_status(state, definition.level_no)
            steps.append(
                ApprovalTimelineStep(
                    level_no=definition.level_no,
                    level_name=definition.level_name
                    or DEFAULT_LEVEL_NAMES[definition.approver_kind],
                    approver_kind=definition.approver_kind,
                    status=status,
                    approver_id=approver_id,
                )
            )
        return tuple(steps)


def _step_status(
    state: ApprovalState, level_no: int,
) -> tuple[TimelineStepStatus, UUID | None]:
    if state.status == ApprovalStatus.PENDING:
        if level_no < state.current_level:
            return TimelineStepStatus.COMPLETED, None
        if level_no == state.current_level:
            return TimelineStepStatus.PENDING, state.next_approver_id
        return TimelineStepStatus.FUTURE, None

    decided_level = state.decided_level
    if state.status == ApprovalStatus.REJECTED:
        if decided_level is None or level_no > decided_level:
            return TimelineStepStatus.SKIPPED, None
        if level_no == decided_level:
            return TimelineStepStatus.REJECTED, state.decided_by
        return TimelineStepStatus.COMPLETED, None

    # Approved
    if decided_level is not None and level_no > decided_level:
        return TimelineStepStatus.SKIPPED, None
    if level_no == decided_level:
        return TimelineStepStatus.COMPLETED, state.approved_by_on_final
    return TimelineStepStatus.COMPLETED, None
