"""Read-only query selectors."""

from hr_kernel.selectors.approval_chain_selector import ApprovalChainSelector
from hr_kernel.selectors.base import BaseSelector

__all__ = ["ApprovalChainSelector", "BaseSelector"]
