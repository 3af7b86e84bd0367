"""
hr_engines.approvers -- Registry of approver-resolution functions.

Responsibility:
    Map each ``ApproverKind`` to a typed function ``(employee_id, scope) ->
    approver id``.  The functions themselves belong to the organisation
    directory; this registry only dispatches to them.

Architecture position:
    Engines.  The registered callables may do I/O; the registry does not.

Invariants enforced:
    - Closed set: only ``ApproverKind`` members can be registered.
    - Fail fast: ``validate`` checks every kind a snapshot uses before the
      first request is processed.
    - A resolver that finds nobody (e.g. a department without a manager)
      falls back to the HR manager.

Failure modes:
    - UnknownApproverResolverError for unregistered kinds or unknown names.
    - ApproverNotResolvedError when neither the resolver nor the HR-manager
      fallback returns an approver.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from uuid import UUID

from hr_kernel.domain.approval import ApproverKind, ChainScope
from hr_kernel.domain.snapshot import ConfigurationSnapshot
from hr_kernel.exceptions import ApproverNotResolvedError, UnknownApproverResolverError
from hr_kernel.logging_config import get_logger

logger = get_logger("engines.approvers")

ApproverResolver = Callable[[UUID, ChainScope], UUID | None]

# Display names for timeline rendering.
DEFAULT_LEVEL_NAMES: dict[ApproverKind, str] = {
    ApproverKind.DIRECT_MANAGER: "Direct Manager",
    ApproverKind.PROJECT_MANAGER: "Project Manager",
    ApproverKind.REGIONAL_MANAGER: "Regional Manager",
    ApproverKind.HR_MANAGER: "HR Manager",
    ApproverKind.FINANCE_MANAGER: "Finance Manager",
    ApproverKind.GENERAL_MANAGER: "General Manager",
}


_LEGACY_FUNCTION_NAMES: dict[str, ApproverKind] = {
    "GetDirectManager": ApproverKind.DIRECT_MANAGER,
    "GetProjectManager": ApproverKind.PROJECT_MANAGER,
    "GetRegionalManager": ApproverKind.REGIONAL_MANAGER,
    "GetHRManager": ApproverKind.HR_MANAGER,
    "GetFinManager": ApproverKind.FINANCE_MANAGER,
    "GetGeneralManager": ApproverKind.GENERAL_MANAGER,
}


def parse_approver_kind(name: str) -> ApproverKind:
    """Accept enum values (``hr_manager``) and legacy function names (``GetHRManager``)."""
    normalized = name.strip()
    try:
        return ApproverKind(normalized.lower())
    except ValueError:
        pass
    legacy = _LEGACY_FUNCTION_NAMES.get(normalized)
    if legacy is None:
        raise UnknownApproverResolverError(name)
    return legacy


class ApproverRegistry:
    """Dispatch table from approver kind to resolution function."""

    def __init__(self, resolvers: Mapping[ApproverKind, ApproverResolver] | None = None):
        self._resolvers: dict[ApproverKind, ApproverResolver] = {}
        for kind, fn in (resolvers or {}).items():
            self.register(kind, fn)

    def register(self, kind: ApproverKind, resolver: ApproverResolver) -> None:
        if not isinstance(kind, ApproverKind):
            raise UnknownApproverResolverError(str(kind))
        self._resolvers[kind] = resolver

    @property
    def registered_kinds(self) -> frozenset[ApproverKind]:
        return frozenset(self._resolvers)

    def validate(self, kinds: Iterable[ApproverKind] | ConfigurationSnapshot) -> None:
        """Raise if any required kind has no registered function."""
        if isinstance(kinds, ConfigurationSnapshot):
            kinds = kinds.approver_kinds()
        missing = sorted(k.value for k in kinds if k not in self._resolvers)
        if missing:
            raise UnknownApproverResolverError(", ".join(missing))

    def resolve(self, kind: ApproverKind, employee_id: UUID, scope: ChainScope) -> UUID:
        resolver = self._resolvers.get(kind)
        if resolver is None:
            raise UnknownApproverResolverError(kind.value)

        approver_id = resolver(employee_id, scope)
        if approver_id is not None:
            return approver_id

        if kind != ApproverKind.HR_MANAGER and ApproverKind.HR_MANAGER in self._resolvers:
            approver_id = self._resolvers[ApproverKind.HR_MANAGER](employee_id, scope)
            if approver_id is not None:
                logger.warning(
                    "approver_fallback_to_hr_manager",
                    extra={
                        "approver_kind": kind.value,
                        "employee_id": str(employee_id),
                        "approver_id": str(approver_id),
                    },
                )
                return approver_id

        raise ApproverNotResolvedError(kind.value, str(employee_id))
