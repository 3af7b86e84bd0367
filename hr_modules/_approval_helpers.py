"""
Approval helpers shared by module services (``hr_modules._approval_helpers``).

Responsibility
--------------
Authorize, advance and reject the approval embedded in an ORM row
(``ApprovalStateMixin``) through the ``ApprovalWorkflowEngine``, so the
payroll and loan services apply the same rules and record the same audit
columns.
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from hr_engines.approval_workflow import ApprovalWorkflowEngine
from hr_kernel.domain.approval import ApprovalState, ChainScope
from hr_kernel.exceptions import ApprovalAlreadyResolvedError, NotAuthorizedError
from hr_kernel.models.approval_state import ApprovalStateMixin


def authorize_transition(
    workflow: ApprovalWorkflowEngine,
    request_type: str,
    model: ApprovalStateMixin,
    actor_id: UUID,
    transition: str,
    entity_type: str,
) -> ApprovalState:
    """Return the current state if ``actor_id`` may act on it now."""
    state = model.approval_state
    if not state.is_pending:
        raise ApprovalAlreadyResolvedError(entity_type, str(model.id), state.status.value)
    if not workflow.can_approve(request_type, state, state.current_level, actor_id):
        raise NotAuthorizedError(
            actor_id=str(actor_id),
            attempted_transition=transition,
            entity_type=entity_type,
            entity_id=str(model.id),
            expected_approver_id=str(state.next_approver_id),
        )
    return state


def advance_approval(
    workflow: ApprovalWorkflowEngine,
    request_type: str,
    model: ApprovalStateMixin,
    employee_id: UUID,
    scope: ChainScope,
    actor_id: UUID,
    now: datetime,
) -> ApprovalState:
    """Approve the current level; the result is pending at the next level or APPROVED."""
    state = model.approval_state
    new_state = workflow.advance(
        request_type,
        state.current_level,
        employee_id,
        scope.department_id,
        scope.project_id,
        approved_by=actor_id,
    ).decided(actor_id, now, state.current_level)
    model.apply_approval_state(new_state)
    model.updated_by_id = actor_id
    return new_state


def reject_approval(
    workflow: ApprovalWorkflowEngine,
    model: ApprovalStateMixin,
    actor_id: UUID,
    reason: str,
    now: datetime,
) -> ApprovalState:
    state = model.approval_state
    new_state = workflow.reject(state, actor_id, reason).decided(
        actor_id, now, state.current_level,
    )
    model.apply_approval_state(new_state)
    model.updated_by_id = actor_id
    return new_state
