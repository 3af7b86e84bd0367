"""
Typed Exception Hierarchy for the HR kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Payroll and loan operations are surfaced to HR staff, payroll officers and
approvers through several front ends.  Callers must be able to branch on the
kind of failure without parsing messages:

  1. Every error has a TYPED exception class (catch by type, not message)
  2. Every exception has a CODE attribute (machine-readable, API-safe)
  3. Exceptions carry structured DATA (entity ids, attempted transition)

Example - WRONG way to handle errors:
    try:
        loans.approve(loan_id, actor_id)
    except Exception as e:
        if "not the expected approver" in str(e):
            ...

Example - RIGHT way (what this module enables):
    try:
        loans.approve(loan_id, actor_id)
    except NotAuthorizedError as e:
        api_response(code=e.code, entity=e.entity_id, transition=e.attempted_transition)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

All exceptions inherit from HRKernelError:

    HRKernelError (base)
    |
    +-- ConfigurationError                 fatal, operator action, never retried
    |   +-- NoApprovalChainError
    |   +-- InvalidApprovalChainError
    |   +-- UnknownApproverResolverError
    |   +-- ApproverNotResolvedError
    |   +-- ApprovalLevelNotFoundError
    |
    +-- DataIntegrityError                 inconsistent master data, 4xx
    |   +-- EmploymentOutsidePeriodError
    |
    +-- NotAuthorizedError                 wrong actor for a transition, 4xx
    |
    +-- ConcurrencyError
    |   +-- ConcurrentModificationError    surfaced after one internal retry
    |
    +-- ValidationError                    caller input, 4xx
    |   +-- InvalidArgumentError
    |   +-- OverpaymentError
    |
    +-- EntityNotFoundError
    |
    +-- ApprovalError
    |   +-- ApprovalAlreadyResolvedError
    |
    +-- PayrollError
    |   +-- EmployeeNotEligibleError
    |   +-- NegativeNetSalaryError
    |   +-- StaleSalaryVersionError
    |
    +-- LoanError
        +-- ActiveLoanExistsError
        +-- LoanNotActiveError
        +-- LoanLimitExceededError
        +-- InstallmentAlreadyPaidError
        +-- DuplicatePostponementRequestError

===============================================================================
RETRY POLICY
===============================================================================

Only optimistic-lock and uniqueness conflicts are retried, exactly once, by
the module transaction helper.  Everything else propagates to the caller.
"""


class HRKernelError(Exception):
    """
    Base exception for all HR kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "HR_KERNEL_ERROR"


# Configuration exceptions


class ConfigurationError(HRKernelError):
    """Approval chain or resolver configuration is missing or invalid."""

    code: str = "CONFIGURATION_ERROR"


class NoApprovalChainError(ConfigurationError):
    """No active approval chain matches the request type and scope."""

    code: str = "NO_APPROVAL_CHAIN"

    def __init__(
        self,
        request_type: str,
        department_id: str | None = None,
        project_id: str | None = None,
    ):
        self.request_type = request_type
        self.department_id = department_id
        self.project_id = project_id
        super().__init__(
            f"No approval chain configured for request type {request_type} "
            f"(department={department_id}, project={project_id})"
        )


class InvalidApprovalChainError(ConfigurationError):
    """A configured chain violates level contiguity or closing rules."""

    code: str = "INVALID_APPROVAL_CHAIN"

    def __init__(self, request_type: str, scope: str, reason: str):
        self.request_type = request_type
        self.scope = scope
        self.reason = reason
        super().__init__(
            f"Invalid approval chain {request_type} [{scope}]: {reason}"
        )


class UnknownApproverResolverError(ConfigurationError):
    """An approver kind is not part of the registry."""

    code: str = "UNKNOWN_APPROVER_RESOLVER"

    def __init__(self, resolver_name: str):
        self.resolver_name = resolver_name
        super().__init__(f"Unknown approver resolver: {resolver_name}")


class ApproverNotResolvedError(ConfigurationError):
    """A resolver (and its HR-manager fallback) returned no approver."""

    code: str = "APPROVER_NOT_RESOLVED"

    def __init__(self, resolver_name: str, employee_id: str):
        self.resolver_name = resolver_name
        self.employee_id = employee_id
        super().__init__(
            f"Resolver {resolver_name} found no approver for employee {employee_id}"
        )


class ApprovalLevelNotFoundError(ConfigurationError):
    """A persisted approval level no longer exists in the chain."""

    code: str = "APPROVAL_LEVEL_NOT_FOUND"

    def __init__(self, request_type: str, level: int):
        self.request_type = request_type
        self.level = level
        super().__init__(
            f"Approval level {level} not found in {request_type} chain"
        )


# Data integrity exceptions


class DataIntegrityError(HRKernelError):
    """Master data is internally inconsistent (e.g. inverted dates)."""

    code: str = "DATA_INTEGRITY_ERROR"

    def __init__(self, entity_type: str, entity_id: str, reason: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.reason = reason
        super().__init__(f"{entity_type} {entity_id}: {reason}")


class EmploymentOutsidePeriodError(DataIntegrityError):
    """The employment range does not overlap the pay period at all."""

    code: str = "EMPLOYMENT_OUTSIDE_PERIOD"

    def __init__(self, employee_id: str, period: str):
        self.period = period
        super().__init__(
            "Employee",
            employee_id,
            f"not employed during pay period {period}",
        )


# Authorization exceptions


class NotAuthorizedError(HRKernelError):
    """The acting user may not perform the attempted approval transition."""

    code: str = "NOT_AUTHORIZED"

    def __init__(
        self,
        actor_id: str,
        attempted_transition: str,
        entity_type: str | None = None,
        entity_id: str | None = None,
        expected_approver_id: str | None = None,
    ):
        self.actor_id = actor_id
        self.attempted_transition = attempted_transition
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.expected_approver_id = expected_approver_id
        super().__init__(
            f"Actor {actor_id} is not authorized to {attempted_transition} "
            f"{entity_type or 'request'} {entity_id or ''}".rstrip()
        )


# Concurrency exceptions


class ConcurrencyError(HRKernelError):
    """Base exception for concurrency-related errors."""

    code: str = "CONCURRENCY_ERROR"


class ConcurrentModificationError(ConcurrencyError):
    """Optimistic lock or uniqueness conflict that survived the retry."""

    code: str = "CONCURRENT_MODIFICATION"

    def __init__(self, entity_type: str, entity_id: str, attempts: int):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.attempts = attempts
        super().__init__(
            f"Concurrent modification of {entity_type} {entity_id} "
            f"after {attempts} attempts"
        )


# Validation exceptions


class ValidationError(HRKernelError):
    """Base exception for caller input validation."""

    code: str = "VALIDATION_ERROR"


class InvalidArgumentError(ValidationError):
    """An argument is outside its permitted range."""

    code: str = "INVALID_ARGUMENT"

    def __init__(self, argument: str, value: object, reason: str):
        self.argument = argument
        self.value = value
        self.reason = reason
        super().__init__(f"Invalid {argument}={value!r}: {reason}")


class OverpaymentError(ValidationError):
    """A repayment would drive the loan balance below zero."""

    code: str = "OVERPAYMENT"

    def __init__(self, loan_id: str, payment: str, remaining_balance: str):
        self.loan_id = loan_id
        self.payment = payment
        self.remaining_balance = remaining_balance
        super().__init__(
            f"Payment {payment} exceeds remaining balance "
            f"{remaining_balance} of loan {loan_id}"
        )


# Lookup exceptions


class EntityNotFoundError(HRKernelError):
    """A referenced entity does not exist."""

    code: str = "ENTITY_NOT_FOUND"

    def __init__(self, entity_type: str, entity_id: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(f"{entity_type} not found: {entity_id}")


# Approval exceptions


class ApprovalError(HRKernelError):
    """Base exception for approval errors."""

    code: str = "APPROVAL_ERROR"


class ApprovalAlreadyResolvedError(ApprovalError):
    """The approval is already terminal (approved or rejected)."""

    code: str = "APPROVAL_ALREADY_RESOLVED"

    def __init__(self, entity_type: str, entity_id: str, status: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.status = status
        super().__init__(
            f"{entity_type} {entity_id} approval already resolved: {status}"
        )


# Payroll exceptions


class PayrollError(HRKernelError):
    """Base exception for payroll errors."""

    code: str = "PAYROLL_ERROR"


class EmployeeNotEligibleError(PayrollError):
    """Employment status does not allow the operation."""

    code: str = "EMPLOYEE_NOT_ELIGIBLE"

    def __init__(self, employee_id: str, employment_status: str, operation: str):
        self.employee_id = employee_id
        self.employment_status = employment_status
        self.operation = operation
        super().__init__(
            f"Employee {employee_id} with status {employment_status} "
            f"is not eligible for {operation}"
        )


class NegativeNetSalaryError(PayrollError):
    """Net salary is negative and policy forbids it."""

    code: str = "NEGATIVE_NET_SALARY"

    def __init__(self, employee_id: str, period: str, net_salary: str):
        self.employee_id = employee_id
        self.period = period
        self.net_salary = net_salary
        super().__init__(
            f"Net salary {net_salary} for employee {employee_id} "
            f"in {period} is negative"
        )


class StaleSalaryVersionError(PayrollError):
    """An approval action targeted a superseded salary version."""

    code: str = "STALE_SALARY_VERSION"

    def __init__(self, salary_id: str, version: int, latest_version: int):
        self.salary_id = salary_id
        self.version = version
        self.latest_version = latest_version
        super().__init__(
            f"Salary header {salary_id} is version {version}; "
            f"latest is {latest_version}"
        )


# Loan exceptions


class LoanError(HRKernelError):
    """Base exception for loan errors."""

    code: str = "LOAN_ERROR"


class ActiveLoanExistsError(LoanError):
    """The employee already has an active loan."""

    code: str = "ACTIVE_LOAN_EXISTS"

    def __init__(self, employee_id: str, loan_id: str):
        self.employee_id = employee_id
        self.loan_id = loan_id
        super().__init__(
            f"Employee {employee_id} already has active loan {loan_id}"
        )


class LoanNotActiveError(LoanError):
    """The loan is not approved and active."""

    code: str = "LOAN_NOT_ACTIVE"

    def __init__(self, loan_id: str, status: str):
        self.loan_id = loan_id
        self.status = status
        super().__init__(f"Loan {loan_id} is not active (status={status})")


class LoanLimitExceededError(LoanError):
    """Requested principal exceeds the salary-based ceiling."""

    code: str = "LOAN_LIMIT_EXCEEDED"

    def __init__(self, employee_id: str, principal: str, limit: str):
        self.employee_id = employee_id
        self.principal = principal
        self.limit = limit
        super().__init__(
            f"Loan principal {principal} exceeds limit {limit} "
            f"for employee {employee_id}"
        )


class InstallmentAlreadyPaidError(LoanError):
    """The installment has already been collected."""

    code: str = "INSTALLMENT_ALREADY_PAID"

    def __init__(self, installment_id: str):
        self.installment_id = installment_id
        super().__init__(f"Installment {installment_id} is already paid")


class DuplicatePostponementRequestError(LoanError):
    """A pending postponement request already exists for the installment."""

    code: str = "DUPLICATE_POSTPONEMENT_REQUEST"

    def __init__(self, installment_id: str, request_id: str):
        self.installment_id = installment_id
        self.request_id = request_id
        super().__init__(
            f"Installment {installment_id} already has pending "
            f"postponement request {request_id}"
        )
