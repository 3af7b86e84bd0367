"""
Loan Configuration Schema.

Eligibility limits and housekeeping intervals for employee loans.
Values come from the ``loans:`` section of the active configuration set.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Self

from hr_kernel.logging_config import get_logger

logger = get_logger("modules.loans.config")


@dataclass
class LoanConfig:
    """
    Configuration schema for the loans module.

        config = LoanConfig(max_installments=36)
        config = LoanConfig.from_dict(active.loan_settings)
    """

    min_installments: int = 3
    max_installments: int = 60
    # Principal ceiling as a multiple of the monthly salary.
    max_salary_multiple: Decimal = Decimal("12")
    min_months_to_first_installment: int = 1
    auto_approve_after_hours: int = 48
    # Day of month that mass postponement moves installments to.
    mass_postponement_day: int = 15

    def __post_init__(self):
        if self.min_installments < 1:
            raise ValueError("min_installments must be at least 1")
        if self.max_installments < self.min_installments:
            raise ValueError("max_installments must be >= min_installments")
        if self.max_salary_multiple <= 0:
            raise ValueError("max_salary_multiple must be positive")
        if self.min_months_to_first_installment < 0:
            raise ValueError("min_months_to_first_installment cannot be negative")
        if self.auto_approve_after_hours <= 0:
            raise ValueError("auto_approve_after_hours must be positive")
        if not 1 <= self.mass_postponement_day <= 28:
            raise ValueError("mass_postponement_day must be between 1 and 28")

    @classmethod
    def from_dict(cls, data: dict) -> Self:
        """Create config from the ``loans:`` configuration mapping."""
        logger.info(
            "loan_config_loading_from_dict",
            extra={"keys": sorted(data.keys())},
        )
        values = dict(data)
        if "max_salary_multiple" in values:
            values["max_salary_multiple"] = Decimal(str(values["max_salary_multiple"]))
        return cls(**values)
