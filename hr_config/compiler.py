"""
Configuration Compiler (``hr_config.compiler``).

Responsibility
--------------
Turns a parsed ``HRConfigurationSet`` into the immutable
``ConfigurationSnapshot`` consumed by the engines.

Invariants enforced
-------------------
* Approver names map onto the closed ``ApproverKind`` enum; unknown names
  fail here, at load time.
* Chain contiguity and single closing level (``validate_chain_set``).
* Breakdown percentages are decimal strings in (0, 1].

Failure modes
-------------
* ``UnknownApproverResolverError`` -- unknown approver name.
* ``InvalidApprovalChainError`` -- malformed chain.
* ``ConfigurationError`` -- bad scope id or percentage.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from uuid import UUID

from hr_config.schema import ApprovalChainDef, HRConfigurationSet, SalaryBreakdownDef
from hr_engines.approvers import parse_approver_kind
from hr_kernel.domain.approval import ApprovalChainDefinition, ChainScope
from hr_kernel.domain.snapshot import (
    ConfigurationSnapshot,
    SalaryBreakdown,
    SalaryComponentShare,
)
from hr_kernel.exceptions import ConfigurationError


def _parse_uuid(value: str, what: str) -> UUID:
    try:
        return UUID(value)
    except ValueError as exc:
        raise ConfigurationError(f"Invalid {what} id in configuration: {value!r}") from exc


def compile_chain(chain: ApprovalChainDef) -> tuple[ApprovalChainDefinition, ...]:
    if chain.department_id and chain.project_id:
        raise ConfigurationError(
            f"Chain {chain.request_type} is scoped to both a department and a project"
        )
    scope = ChainScope(
        department_id=_parse_uuid(chain.department_id, "department") if chain.department_id else None,
        project_id=_parse_uuid(chain.project_id, "project") if chain.project_id else None,
    )
    return tuple(
        ApprovalChainDefinition(
            request_type=chain.request_type,
            level_no=level.level,
            approver_kind=parse_approver_kind(level.approver),
            scope=scope,
            closes_chain=level.closes_chain,
            active=level.active,
            level_name=level.name,
        )
        for level in chain.levels
    )


def compile_breakdown(breakdown: SalaryBreakdownDef) -> SalaryBreakdown:
    shares = []
    for component in breakdown.components:
        try:
            percentage = Decimal(component.percentage)
        except InvalidOperation as exc:
            raise ConfigurationError(
                f"Invalid percentage {component.percentage!r} for "
                f"{breakdown.category}/{component.code}"
            ) from exc
        try:
            shares.append(SalaryComponentShare(component.code, percentage))
        except ValueError as exc:
            raise ConfigurationError(str(exc)) from exc
    return SalaryBreakdown(category=breakdown.category, components=tuple(shares))


def compile_snapshot(config_set: HRConfigurationSet) -> ConfigurationSnapshot:
    definitions: list[ApprovalChainDefinition] = []
    for chain in config_set.approval_chains:
        definitions.extend(compile_chain(chain))
    breakdowns = tuple(compile_breakdown(b) for b in config_set.salary_breakdowns)
    try:
        return ConfigurationSnapshot(
            approval_chains=tuple(definitions),
            salary_breakdowns=breakdowns,
            version=f"{config_set.config_id}@{config_set.version}",
        )
    except ValueError as exc:
        raise ConfigurationError(str(exc)) from exc
