"""
Configuration schema (``hr_config.schema``).

Frozen dataclasses mirroring the YAML layout, before compilation.  Values
stay as authored (strings for percentages and approver names); the
compiler converts and validates them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class ChainLevelDef:
    """YAML-authored approval level."""

    level: int
    approver: str
    closes_chain: bool = False
    active: bool = True
    name: str | None = None


@dataclass(frozen=True)
class ApprovalChainDef:
    """YAML-authored approval chain for one request type and scope."""

    request_type: str
    levels: tuple[ChainLevelDef, ...]
    department_id: str | None = None
    project_id: str | None = None


@dataclass(frozen=True)
class SalaryComponentDef:
    code: str
    percentage: str


@dataclass(frozen=True)
class SalaryBreakdownDef:
    category: str
    components: tuple[SalaryComponentDef, ...]


@dataclass(frozen=True)
class HRConfigurationSet:
    """A complete configuration file, parsed but not yet compiled."""

    config_id: str
    version: int
    approval_chains: tuple[ApprovalChainDef, ...] = ()
    salary_breakdowns: tuple[SalaryBreakdownDef, ...] = ()
    payroll: dict[str, Any] = field(default_factory=dict)
    loans: dict[str, Any] = field(default_factory=dict)
    checksum: str = ""
