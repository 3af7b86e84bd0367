"""
HR Modules.

Thin orchestration layers over the HR kernel and engines.
Each module contains:
- Domain models (the nouns)
- ORM persistence models
- Configuration schemas (policy and settings)
- A service facade owning the transaction boundary

Modules:
- Payroll: monthly salary calculation, versioned payslips, approval
- Loans: loan requests, installment schedules, repayment, postponement

Shared helpers:
- ``_transaction``: commit / rollback / single retry, event publication
- ``_approval_helpers``: authorize, advance and reject embedded approvals
- ``_orm_registry``: imports every ORM model before ``create_all()``
"""
