"""
Kernel ORM models.

Importing this package registers the kernel tables on ``Base.metadata``.
"""

from hr_kernel.models.approval_chain import ApprovalChainDefinitionModel
from hr_kernel.models.approval_state import APPROVAL_STATUS_CHECK, ApprovalStateMixin

__all__ = [
    "APPROVAL_STATUS_CHECK",
    "ApprovalChainDefinitionModel",
    "ApprovalStateMixin",
]
