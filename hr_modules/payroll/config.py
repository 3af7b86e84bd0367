"""
Payroll Configuration Schema.

Pro-ration divisor, working-hours basis for hourly rates, overtime
premium and the negative-net policy.  Values come from the ``payroll:``
section of the active configuration set.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Self

from hr_kernel.domain.directory import EmploymentStatus
from hr_kernel.logging_config import get_logger

logger = get_logger("modules.payroll.config")


class NegativeNetPolicy(str, Enum):
    """What to do when deductions exceed allowances."""

    ALLOW_AND_FLAG = "allow_and_flag"
    REJECT = "reject"


@dataclass
class PayrollConfig:
    """
    Configuration schema for the payroll module.

        config = PayrollConfig(negative_net_policy=NegativeNetPolicy.REJECT)
        config = PayrollConfig.from_dict(active.payroll_settings)
    """

    proration_divisor_days: int = 30
    # 30 days x 8 hours.
    required_monthly_hours: Decimal = Decimal("240")
    overtime_multiplier: Decimal = Decimal("1.5")
    negative_net_policy: NegativeNetPolicy = NegativeNetPolicy.ALLOW_AND_FLAG
    eligible_statuses: frozenset[EmploymentStatus] = field(
        default_factory=lambda: frozenset({EmploymentStatus.ACTIVE, EmploymentStatus.ON_LEAVE}),
    )

    def __post_init__(self):
        if self.proration_divisor_days <= 0:
            raise ValueError("proration_divisor_days must be positive")
        if self.required_monthly_hours <= 0:
            raise ValueError("required_monthly_hours must be positive")
        if self.overtime_multiplier < 0:
            raise ValueError("overtime_multiplier cannot be negative")
        if not self.eligible_statuses:
            raise ValueError("eligible_statuses cannot be empty")

    @classmethod
    def from_dict(cls, data: dict) -> Self:
        """Create config from the ``payroll:`` configuration mapping."""
        logger.info(
            "payroll_config_loading_from_dict",
            extra={"keys": sorted(data.keys())},
        )
        values = dict(data)
        for key in ("required_monthly_hours", "overtime_multiplier"):
            if key in values:
                values[key] = Decimal(str(values[key]))
        if "negative_net_policy" in values:
            values["negative_net_policy"] = NegativeNetPolicy(values["negative_net_policy"])
        if "eligible_statuses" in values:
            values["eligible_statuses"] = frozenset(
                EmploymentStatus(s) for s in values["eligible_statuses"]
            )
        return cls(**values)
