"""
Read-only configuration snapshot (``hr_kernel.domain.snapshot``).

Approval chains and salary-breakdown tables are compiled once (from YAML
or the chain table) into a ``ConfigurationSnapshot`` that is injected into
engines and services.  Nothing mutates it; tests build their own.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from hr_kernel.domain.approval import (
    ApprovalChainDefinition,
    ApproverKind,
    validate_chain_set,
)


@dataclass(frozen=True)
class SalaryComponentShare:
    """One component of a category's gross salary split."""

    component_code: str
    percentage: Decimal

    def __post_init__(self) -> None:
        if not Decimal("0") < self.percentage <= Decimal("1"):
            raise ValueError(
                f"percentage for {self.component_code} must be in (0, 1], "
                f"got {self.percentage}"
            )


@dataclass(frozen=True)
class SalaryBreakdown:
    """Ordered split of gross salary for an employee category."""

    category: str
    components: tuple[SalaryComponentShare, ...]

    @property
    def total_percentage(self) -> Decimal:
        return sum((c.percentage for c in self.components), Decimal("0"))


@dataclass(frozen=True)
class ConfigurationSnapshot:
    """Immutable approval-chain and salary-breakdown configuration."""

    approval_chains: tuple[ApprovalChainDefinition, ...] = ()
    salary_breakdowns: tuple[SalaryBreakdown, ...] = ()
    version: str = "unversioned"

    def __post_init__(self) -> None:
        validate_chain_set(self.approval_chains)
        categories = [b.category for b in self.salary_breakdowns]
        if len(categories) != len(set(categories)):
            raise ValueError(f"Duplicate salary breakdown categories: {categories}")

    def breakdown_for(self, category: str) -> SalaryBreakdown | None:
        for breakdown in self.salary_breakdowns:
            if breakdown.category == category:
                return breakdown
        return None

    def approver_kinds(self) -> frozenset[ApproverKind]:
        return frozenset(d.approver_kind for d in self.approval_chains if d.active)
