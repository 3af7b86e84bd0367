"""
Module: hr_kernel.selectors.approval_chain_selector
Responsibility: Read approval chain rows and compile them into a
    ``ConfigurationSnapshot`` for deployments that keep chains in the
    database rather than in YAML.
Architecture position: Kernel > Selectors.

Failure modes:
    - UnknownApproverResolverError if a row names an approver kind outside
      the registry enum.
    - InvalidApprovalChainError if the active rows break contiguity or the
      closing-level rule.
"""

from sqlalchemy import select

from hr_kernel.domain.approval import ApprovalChainDefinition
from hr_kernel.domain.snapshot import ConfigurationSnapshot, SalaryBreakdown
from hr_kernel.logging_config import get_logger
from hr_kernel.models.approval_chain import ApprovalChainDefinitionModel
from hr_kernel.selectors.base import BaseSelector

logger = get_logger("selectors.approval_chain")


class ApprovalChainSelector(BaseSelector[ApprovalChainDefinitionModel]):
    """Loads persisted chain definitions."""

    def load_chains(self, include_inactive: bool = False) -> tuple[ApprovalChainDefinition, ...]:
        stmt = select(ApprovalChainDefinitionModel).order_by(
            ApprovalChainDefinitionModel.request_type,
            ApprovalChainDefinitionModel.scope_kind,
            ApprovalChainDefinitionModel.level_no,
        )
        if not include_inactive:
            stmt = stmt.where(ApprovalChainDefinitionModel.is_active.is_(True))
        return tuple(row.to_dto() for row in self.session.scalars(stmt))

    def load_snapshot(
        self,
        salary_breakdowns: tuple[SalaryBreakdown, ...] = (),
        version: str = "database",
    ) -> ConfigurationSnapshot:
        chains = self.load_chains()
        logger.info(
            "approval_chains_loaded",
            extra={"chain_levels": len(chains), "config_version": version},
        )
        return ConfigurationSnapshot(
            approval_chains=chains,
            salary_breakdowns=salary_breakdowns,
            version=version,
        )
