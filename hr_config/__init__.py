"""
hr_config -- single public entrypoint for HR configuration.

Responsibility:
    ``get_active_config()`` loads a YAML configuration set, compiles it into
    a frozen ``ConfigurationSnapshot`` and returns it with the raw payroll
    and loan tunables.  Services receive the snapshot by injection; nothing
    else reads configuration files.

Architecture position:
    Configuration -- sits above ``hr_kernel`` and ``hr_engines`` and below
    ``hr_modules``.  The kernel never imports from here.

Failure modes:
    - FileNotFoundError: configuration file missing.
    - ConfigurationError (and subclasses): unknown approver names,
      malformed chains, bad percentages.

Audit relevance:
    Every successful load emits an ``HR_CONFIG_TRACE`` record with the
    config id, version and checksum.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from hr_config.compiler import compile_snapshot
from hr_config.loader import load_configuration_set
from hr_kernel.domain.snapshot import ConfigurationSnapshot

_logger = logging.getLogger("hr_kernel.config")

DEFAULT_CONFIG_PATH = Path(__file__).parent / "sets" / "default.yaml"


@dataclass(frozen=True)
class ActiveConfiguration:
    snapshot: ConfigurationSnapshot
    checksum: str
    payroll_settings: dict[str, Any] = field(default_factory=dict)
    loan_settings: dict[str, Any] = field(default_factory=dict)


def get_active_config(path: Path | None = None) -> ActiveConfiguration:
    """Load, compile and validate a configuration file.

    Args:
        path: YAML file; defaults to the bundled ``sets/default.yaml``.
    """
    config_set = load_configuration_set(path or DEFAULT_CONFIG_PATH)
    snapshot = compile_snapshot(config_set)

    _logger.info(
        "HR_CONFIG_TRACE",
        extra={
            "trace_type": "HR_CONFIG_TRACE",
            "config_id": config_set.config_id,
            "config_version": config_set.version,
            "checksum": config_set.checksum,
            "chain_levels": len(snapshot.approval_chains),
            "breakdown_categories": len(snapshot.salary_breakdowns),
        },
    )

    return ActiveConfiguration(
        snapshot=snapshot,
        checksum=config_set.checksum,
        payroll_settings=config_set.payroll,
        loan_settings=config_set.loans,
    )


__all__ = ["ActiveConfiguration", "DEFAULT_CONFIG_PATH", "get_active_config"]
