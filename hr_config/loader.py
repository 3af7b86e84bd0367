"""
Configuration Loader (``hr_config.loader``).

Responsibility
--------------
Reads a YAML configuration file and parses it into the frozen
``hr_config.schema`` dataclasses.  No validation beyond required keys;
``hr_config.compiler`` owns semantic checks.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Missing required keys  -> ``KeyError`` propagates.
"""

from __future__ import annotations

import hashlib
import json
from pathlib import Path
from typing import Any

import yaml

from hr_config.schema import (
    ApprovalChainDef,
    ChainLevelDef,
    HRConfigurationSet,
    SalaryBreakdownDef,
    SalaryComponentDef,
)


def load_yaml_file(path: Path) -> dict[str, Any]:
    with open(path) as f:
        return yaml.safe_load(f) or {}


def parse_chain(data: dict[str, Any]) -> ApprovalChainDef:
    """Parse one ``approval_chains`` entry.

    ``scope`` is optional; when present it holds ``department`` or
    ``project`` (an id).
    """
    scope = data.get("scope") or {}
    levels = tuple(
        ChainLevelDef(
            level=int(level["level"]),
            approver=str(level["approver"]),
            closes_chain=bool(level.get("closes_chain", False)),
            active=bool(level.get("active", True)),
            name=level.get("name"),
        )
        for level in data["levels"]
    )
    return ApprovalChainDef(
        request_type=data["request_type"],
        levels=levels,
        department_id=str(scope["department"]) if scope.get("department") else None,
        project_id=str(scope["project"]) if scope.get("project") else None,
    )


def parse_breakdown(data: dict[str, Any]) -> SalaryBreakdownDef:
    return SalaryBreakdownDef(
        category=str(data["category"]),
        components=tuple(
            SalaryComponentDef(code=c["code"], percentage=str(c["percentage"]))
            for c in data["components"]
        ),
    )


def compute_checksum(data: dict[str, Any]) -> str:
    """Deterministic SHA-256 of the raw configuration mapping."""
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


def parse_configuration(data: dict[str, Any]) -> HRConfigurationSet:
    return HRConfigurationSet(
        config_id=data.get("config_id", "default"),
        version=int(data.get("version", 1)),
        approval_chains=tuple(parse_chain(c) for c in data.get("approval_chains", [])),
        salary_breakdowns=tuple(
            parse_breakdown(b) for b in data.get("salary_breakdowns", [])
        ),
        payroll=dict(data.get("payroll") or {}),
        loans=dict(data.get("loans") or {}),
        checksum=compute_checksum(data),
    )


def load_configuration_set(path: Path) -> HRConfigurationSet:
    return parse_configuration(load_yaml_file(path))
