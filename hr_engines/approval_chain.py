"""
hr_engines.approval_chain -- Pure approval chain resolution.

Responsibility:
    Given a request type and an optional department/project, pick the
    ordered list of approval levels that applies.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    Reads a ``ConfigurationSnapshot`` passed in by the caller.

Invariants enforced:
    - Precedence: department-scoped chain, then project-scoped chain, then
      the global chain; the first non-empty candidate wins.  Scopes are
      never merged.
    - Only active definitions are considered.
    - Result is ordered by level number.

Failure modes:
    - NoApprovalChainError when no candidate has any active level.
"""

from __future__ import annotations

from uuid import UUID

from hr_kernel.domain.approval import ApprovalChainDefinition, ChainScope
from hr_kernel.domain.snapshot import ConfigurationSnapshot
from hr_kernel.exceptions import NoApprovalChainError


def _levels_for(
    snapshot: ConfigurationSnapshot,
    request_type: str,
    scope: ChainScope,
) -> tuple[ApprovalChainDefinition, ...]:
    matches = [
        d for d in snapshot.approval_chains
        if d.active and d.request_type == request_type and d.scope == scope
    ]
    return tuple(sorted(matches, key=lambda d: d.level_no))


def resolve_chain(
    snapshot: ConfigurationSnapshot,
    request_type: str,
    department_id: UUID | None = None,
    project_id: UUID | None = None,
) -> tuple[ApprovalChainDefinition, ...]:
    """Return the approval levels for ``request_type`` in the given scope.

    Args:
        snapshot: Compiled chain configuration.
        request_type: Tag such as PAYROLL or LOAN.
        department_id: Requester's department, if any.
        project_id: Requester's project, if any.

    Raises:
        NoApprovalChainError: No department, project or global chain exists.
    """
    candidates: list[ChainScope] = []
    if department_id is not None:
        candidates.append(ChainScope(department_id=department_id))
    if project_id is not None:
        candidates.append(ChainScope(project_id=project_id))
    candidates.append(ChainScope.global_scope())

    for scope in candidates:
        levels = _levels_for(snapshot, request_type, scope)
        if levels:
            return levels

    raise NoApprovalChainError(
        request_type,
        str(department_id) if department_id else None,
        str(project_id) if project_id else None,
    )


def find_level(
    chain: tuple[ApprovalChainDefinition, ...], level_no: int,
) -> ApprovalChainDefinition | None:
    for definition in chain:
        if definition.level_no == level_no:
            return definition
    return None


def next_level(
    chain: tuple[ApprovalChainDefinition, ...], level_no: int,
) -> ApprovalChainDefinition | None:
    """The lowest level above ``level_no``, or None."""
    for definition in chain:
        if definition.level_no > level_no:
            return definition
    return None
