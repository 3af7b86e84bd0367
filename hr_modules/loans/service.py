"""
Loans Module Service (``hr_modules.loans.service``).

Responsibility
--------------
Orchestrates the employee loan lifecycle -- submission, multi-level
approval, manual repayment, installment postponement (single and mass) and
the stale-approval sweep -- by delegating state transitions to the
``ApprovalWorkflowEngine`` and schedule construction to
``hr_engines.installments``.

Architecture position
---------------------
**Modules layer** -- thin HR glue.  ``LoanService`` is the sole public entry
point for loan operations.  It composes the pure workflow engine, the
installment scheduler and the ORM models in ``hr_modules.loans.orm``.

Invariants enforced
-------------------
* Each public mutating method owns one transaction (``_transact``): commit
  on success, rollback and re-raise on any exception, one retry on an
  optimistic-lock conflict.
* At most one active loan per employee.
* Installments are materialized exactly once, on final approval, and sum
  to the principal.
* ``remaining_balance`` never goes below zero; reaching zero closes the
  loan.
* Every transition is authorized against the request's current approver.

Failure modes
-------------
* ``EntityNotFoundError`` -- unknown loan, installment, request or employee.
* ``EmployeeNotEligibleError`` / ``ActiveLoanExistsError`` /
  ``LoanLimitExceededError`` / ``InvalidArgumentError`` -- submission
  rejected, nothing persisted.
* ``NotAuthorizedError`` / ``ApprovalAlreadyResolvedError`` -- wrong actor
  or request already decided.
* ``LoanNotActiveError`` / ``OverpaymentError`` /
  ``InstallmentAlreadyPaidError`` / ``DuplicatePostponementRequestError``.
* ``ConcurrentModificationError`` -- conflict survived the retry.

Usage::

    service = LoanService(session, workflow, directory, clock=clock)
    loan = service.submit(
        employee_id=employee_id,
        principal=Decimal("1000"),
        installment_count=10,
        first_installment_date=date(2026, 3, 25),
        actor_id=employee_id,
    )
    loan = service.approve(loan.id, actor_id=loan.approval.next_approver_id)
"""

from __future__ import annotations

from datetime import date, timedelta
from decimal import Decimal
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from hr_engines.approval_workflow import ApprovalWorkflowEngine
from hr_engines.installments import installment_amount, schedule_installments
from hr_kernel.domain.approval import (
    ApprovalStatus,
    ApprovalTimelineStep,
    RequestType,
)
from hr_kernel.domain.clock import Clock
from hr_kernel.domain.directory import EmployeeDirectory, EmployeeRecord, EmploymentStatus
from hr_kernel.domain.events import EventPublisher, NotificationEventType
from hr_kernel.domain.values import (
    ZERO,
    PayPeriod,
    add_months,
    has_money_precision,
    quantize_amount,
)
from hr_kernel.exceptions import (
    ActiveLoanExistsError,
    DuplicatePostponementRequestError,
    EmployeeNotEligibleError,
    EntityNotFoundError,
    HRKernelError,
    InstallmentAlreadyPaidError,
    InvalidArgumentError,
    LoanLimitExceededError,
    LoanNotActiveError,
    OverpaymentError,
)
from hr_kernel.logging_config import get_logger
from hr_modules._approval_helpers import (
    advance_approval,
    authorize_transition,
    reject_approval,
)
from hr_modules._transaction import ModuleService
from hr_modules.loans.config import LoanConfig
from hr_modules.loans.ledger import apply_prepayment
from hr_modules.loans.models import (
    AutoApprovalResult,
    Loan,
    LoanPostponementRequest,
    MassPostponementResult,
    PaymentStatus,
)
from hr_modules.loans.orm import (
    LoanInstallmentModel,
    LoanModel,
    LoanPostponementRequestModel,
)

logger = get_logger("modules.loans.service")

LOAN = "Loan"
INSTALLMENT = "LoanInstallment"
POSTPONEMENT = "LoanPostponementRequest"


class LoanService(ModuleService):
    """
    Orchestrates employee loans through the approval workflow.

    Contract
    --------
    * Mutating methods return the frozen ``Loan`` /
      ``LoanPostponementRequest`` as committed.
    * Query methods never write.

    Guarantees
    ----------
    * Domain events are published only after the commit that produced them.
    * Clock is injectable for deterministic testing.

    Non-goals
    ---------
    * Does NOT deduct installments from payslips (``PayrollService`` does,
      through ``hr_modules.loans.ledger``).
    * Does NOT send notifications; events go to the injected publisher.
    """

    def __init__(
        self,
        session: Session,
        workflow: ApprovalWorkflowEngine,
        employees: EmployeeDirectory,
        config: LoanConfig | None = None,
        clock: Clock | None = None,
        publisher: EventPublisher | None = None,
    ):
        super().__init__(session, clock=clock, publisher=publisher)
        self._workflow = workflow
        self._employees = employees
        self._config = config or LoanConfig()

    # =========================================================================
    # Queries
    # =========================================================================

    def get_loan(self, loan_id: UUID) -> Loan:
        return self._load_loan(loan_id).to_dto()

    def get_postponement(self, request_id: UUID) -> LoanPostponementRequest:
        return self._load_postponement(request_id).to_dto()

    def active_loan_for(self, employee_id: UUID) -> Loan | None:
        model = self._active_loan_model(employee_id)
        return model.to_dto() if model is not None else None

    def outstanding_balance(self, employee_id: UUID) -> Decimal:
        """Sum of remaining balances over the employee's approved active loans."""
        stmt = select(func.coalesce(func.sum(LoanModel.remaining_balance), 0)).where(
            LoanModel.employee_id == employee_id,
            LoanModel.approval_status == ApprovalStatus.APPROVED.value,
            LoanModel.is_active.is_(True),
        )
        total = self._session.scalar(stmt)
        return quantize_amount(Decimal(str(total)))

    def pending_for_approver(self, approver_id: UUID) -> list[Loan]:
        stmt = (
            select(LoanModel)
            .where(
                LoanModel.approval_status == ApprovalStatus.PENDING.value,
                LoanModel.next_approver_id == approver_id,
            )
            .order_by(LoanModel.submitted_at)
        )
        return [model.to_dto() for model in self._session.scalars(stmt)]

    def pending_postponements_for_approver(
        self, approver_id: UUID,
    ) -> list[LoanPostponementRequest]:
        stmt = (
            select(LoanPostponementRequestModel)
            .where(
                LoanPostponementRequestModel.approval_status == ApprovalStatus.PENDING.value,
                LoanPostponementRequestModel.next_approver_id == approver_id,
            )
            .order_by(LoanPostponementRequestModel.request_date)
        )
        return [model.to_dto() for model in self._session.scalars(stmt)]

    def timeline(self, loan_id: UUID) -> tuple[ApprovalTimelineStep, ...]:
        """Approval progress of a loan, one step per chain level."""
        loan = self._load_loan(loan_id)
        employee = self._require_employee(loan.employee_id)
        return self._workflow.timeline(RequestType.LOAN, loan.approval_state, employee.scope)

    # =========================================================================
    # Submission and approval
    # =========================================================================

    def submit(
        self,
        employee_id: UUID,
        principal: Decimal,
        installment_count: int,
        first_installment_date: date,
        actor_id: UUID,
    ) -> Loan:
        """
        Submit a loan request and start its approval.

        Preconditions:
            - Employee exists and is ACTIVE.
            - ``principal`` is a positive Decimal with at most four decimals
              and at most ``max_salary_multiple`` monthly salaries.
            - ``installment_count`` within the configured bounds.
            - Every installment of the schedule is positive.
            - First installment at least ``min_months_to_first_installment``
              months after today.
            - No other active loan for the employee.
        Postconditions:
            - Loan persisted PENDING at level 1 with no installments;
              ``remaining_balance == principal``.
        """
        employee = self._require_employee(employee_id)
        if employee.employment_status != EmploymentStatus.ACTIVE:
            raise EmployeeNotEligibleError(
                str(employee_id), employee.employment_status.value, "loan",
            )
        self._validate_principal(principal)
        config = self._config
        if not config.min_installments <= installment_count <= config.max_installments:
            raise InvalidArgumentError(
                "installment_count",
                installment_count,
                f"must be between {config.min_installments} and {config.max_installments}",
            )
        regular = installment_amount(principal, installment_count)
        if regular == ZERO or regular * (installment_count - 1) >= principal:
            raise InvalidArgumentError(
                "principal",
                str(principal),
                f"too small to repay in {installment_count} installments",
            )
        limit = quantize_amount(employee.monthly_salary * config.max_salary_multiple)
        if principal > limit:
            raise LoanLimitExceededError(str(employee_id), str(principal), str(limit))
        today = self._clock.today()
        earliest = add_months(today, config.min_months_to_first_installment)
        if first_installment_date < earliest:
            raise InvalidArgumentError(
                "first_installment_date",
                first_installment_date.isoformat(),
                f"must be on or after {earliest.isoformat()}",
            )

        logger.info("loan_submit_started", extra={
            "employee_id": str(employee_id),
            "principal": str(principal),
            "installment_count": installment_count,
        })

        def operation(events):
            existing = self._active_loan_model(employee_id)
            if existing is not None:
                raise ActiveLoanExistsError(str(employee_id), str(existing.id))

            state = self._workflow.initialize(RequestType.LOAN, employee.scope, employee_id)
            loan = LoanModel(
                employee_id=employee_id,
                principal=principal,
                installment_count=installment_count,
                installment_amount=regular,
                remaining_balance=principal,
                first_installment_date=first_installment_date,
                request_date=today,
                submitted_at=self._clock.now(),
                is_active=True,
                created_by_id=actor_id,
            )
            loan.apply_approval_state(state)
            self._session.add(loan)
            self._session.flush()

            events.append(self._event(
                NotificationEventType.LOAN_SUBMITTED,
                entity_type=LOAN,
                entity_id=loan.id,
                employee_id=employee_id,
                recipients=(state.next_approver_id,),
                principal=str(principal),
                installment_count=installment_count,
                level=state.current_level,
            ))
            logger.info("loan_submitted", extra={
                "loan_id": str(loan.id),
                "employee_id": str(employee_id),
                "next_approver_id": str(state.next_approver_id),
            })
            return loan.to_dto()

        return self._transact(operation, entity_type=LOAN, entity_id=employee_id)

    def approve(self, loan_id: UUID, actor_id: UUID) -> Loan:
        """
        Approve the loan at its current level.

        On final approval the installment schedule is materialized.
        """

        def operation(events):
            loan = self._load_loan(loan_id)
            authorize_transition(
                self._workflow, RequestType.LOAN, loan, actor_id, "approve", LOAN,
            )
            employee = self._require_employee(loan.employee_id)
            state = advance_approval(
                self._workflow, RequestType.LOAN, loan, loan.employee_id, employee.scope,
                actor_id, self._clock.now(),
            )

            if state.status == ApprovalStatus.APPROVED:
                schedule = schedule_installments(
                    principal=loan.principal,
                    count=loan.installment_count,
                    first_due_date=loan.first_installment_date,
                )
                for item in schedule:
                    loan.installments.append(LoanInstallmentModel(
                        sequence_no=item.sequence_no,
                        due_date=item.due_date,
                        amount=item.amount,
                        prepaid_amount=ZERO,
                        payment_status=PaymentStatus.UNPAID.value,
                        created_by_id=actor_id,
                    ))
                events.append(self._event(
                    NotificationEventType.LOAN_APPROVED,
                    entity_type=LOAN,
                    entity_id=loan.id,
                    employee_id=loan.employee_id,
                    recipients=(loan.employee_id,),
                    principal=str(loan.principal),
                    installment_count=loan.installment_count,
                    first_installment_date=loan.first_installment_date.isoformat(),
                ))
                logger.info("loan_approved", extra={
                    "loan_id": str(loan.id),
                    "approved_by": str(actor_id),
                    "installments": len(schedule),
                })
            else:
                events.append(self._event(
                    NotificationEventType.LOAN_APPROVED_INTERMEDIATE,
                    entity_type=LOAN,
                    entity_id=loan.id,
                    employee_id=loan.employee_id,
                    recipients=(state.next_approver_id, loan.employee_id),
                    level=state.current_level,
                ))
                logger.info("loan_approval_advanced", extra={
                    "loan_id": str(loan.id),
                    "approved_by": str(actor_id),
                    "next_level": state.current_level,
                    "next_approver_id": str(state.next_approver_id),
                })

            self._session.flush()
            return loan.to_dto()

        return self._transact(operation, entity_type=LOAN, entity_id=loan_id)

    def reject(self, loan_id: UUID, actor_id: UUID, reason: str) -> Loan:
        """Reject the loan at its current level; the loan is deactivated."""

        def operation(events):
            loan = self._load_loan(loan_id)
            authorize_transition(
                self._workflow, RequestType.LOAN, loan, actor_id, "reject", LOAN,
            )
            reject_approval(self._workflow, loan, actor_id, reason, self._clock.now())
            loan.is_active = False
            self._session.flush()

            events.append(self._event(
                NotificationEventType.LOAN_REJECTED,
                entity_type=LOAN,
                entity_id=loan.id,
                employee_id=loan.employee_id,
                recipients=(loan.employee_id,),
                reason=loan.rejection_reason,
            ))
            logger.info("loan_rejected", extra={
                "loan_id": str(loan.id),
                "rejected_by": str(actor_id),
            })
            return loan.to_dto()

        return self._transact(operation, entity_type=LOAN, entity_id=loan_id)

    def auto_approve_stale(self, max_age_hours: int | None = None) -> AutoApprovalResult:
        """
        Approve, one level each, loans left pending longer than the limit.

        Age is measured from the last decision on the loan (or submission),
        so every level gets the full waiting time.  Each loan is approved in
        its own transaction acting as its current approver; a failure is
        logged and reported without stopping the sweep.
        """
        hours = max_age_hours if max_age_hours is not None else self._config.auto_approve_after_hours
        if hours <= 0:
            raise InvalidArgumentError("max_age_hours", hours, "must be positive")
        cutoff = self._clock.now() - timedelta(hours=hours)
        waiting_since = func.coalesce(LoanModel.decided_at, LoanModel.submitted_at)
        stmt = (
            select(LoanModel.id, LoanModel.next_approver_id)
            .where(
                LoanModel.approval_status == ApprovalStatus.PENDING.value,
                waiting_since <= cutoff,
            )
            .order_by(LoanModel.submitted_at)
        )
        candidates = list(self._session.execute(stmt).all())

        processed: list[UUID] = []
        completed: list[UUID] = []
        failed: list[UUID] = []
        for loan_id, approver_id in candidates:
            try:
                loan = self.approve(loan_id, approver_id)
            except HRKernelError as exc:
                failed.append(loan_id)
                logger.warning("loan_auto_approval_failed", extra={
                    "loan_id": str(loan_id),
                    "error_code": exc.code,
                    "error": str(exc),
                })
                continue
            processed.append(loan_id)
            if loan.status == ApprovalStatus.APPROVED:
                completed.append(loan_id)

        logger.info("loan_auto_approval_sweep_completed", extra={
            "cutoff": cutoff.isoformat(),
            "candidates": len(candidates),
            "processed": len(processed),
            "fully_approved": len(completed),
            "failed": len(failed),
        })
        return AutoApprovalResult(
            processed_loan_ids=tuple(processed),
            fully_approved_loan_ids=tuple(completed),
            failed_loan_ids=tuple(failed),
        )

    # =========================================================================
    # Repayment
    # =========================================================================

    def record_payment(self, loan_id: UUID, amount: Decimal, actor_id: UUID) -> Loan:
        """
        Record a repayment made outside payroll.

        The payment covers unpaid installments oldest first, so later
        payslips deduct only what the installments still owe.

        Raises:
            InvalidArgumentError: ``amount`` not positive.
            LoanNotActiveError: loan not approved or already closed.
            OverpaymentError: payment exceeds the remaining balance.
        """
        self._validate_amount("amount", amount)

        def operation(events):
            loan = self._load_loan(loan_id)
            self._require_active(loan)
            new_balance = loan.remaining_balance - amount
            if new_balance < ZERO:
                raise OverpaymentError(str(loan_id), str(amount), str(loan.remaining_balance))

            covered = apply_prepayment(loan, amount, self._clock.today(), actor_id)
            loan.remaining_balance = new_balance
            loan.updated_by_id = actor_id
            closed = new_balance == ZERO
            if closed:
                loan.is_active = False
            self._session.flush()

            events.append(self._event(
                NotificationEventType.LOAN_INSTALLMENT_PAID,
                entity_type=LOAN,
                entity_id=loan.id,
                employee_id=loan.employee_id,
                recipients=(loan.employee_id,),
                amount=str(amount),
                remaining_balance=str(new_balance),
            ))
            if closed:
                events.append(self._event(
                    NotificationEventType.LOAN_FULLY_PAID,
                    entity_type=LOAN,
                    entity_id=loan.id,
                    employee_id=loan.employee_id,
                    recipients=(loan.employee_id,),
                    principal=str(loan.principal),
                ))
            logger.info("loan_payment_recorded", extra={
                "loan_id": str(loan.id),
                "amount": str(amount),
                "installments_covered": [i.sequence_no for i in covered],
                "remaining_balance": str(new_balance),
                "loan_closed": closed,
            })
            return loan.to_dto()

        return self._transact(operation, entity_type=LOAN, entity_id=loan_id)

    # =========================================================================
    # Postponement
    # =========================================================================

    def postpone(
        self,
        loan_id: UUID,
        installment_id: UUID,
        new_due_date: date,
        reason: str,
        actor_id: UUID,
    ) -> LoanPostponementRequest:
        """
        Request that one installment be moved to ``new_due_date``.

        The request runs through the POSTLOAN approval chain; the
        installment changes only when the request is finally approved.
        """
        if not reason or not reason.strip():
            raise InvalidArgumentError("reason", reason, "postponement reason is required")
        today = self._clock.today()
        if new_due_date <= today:
            raise InvalidArgumentError(
                "new_due_date", new_due_date.isoformat(), "must be in the future",
            )

        def operation(events):
            loan = self._load_loan(loan_id)
            self._require_active(loan)
            installment = self._session.get(LoanInstallmentModel, installment_id)
            if installment is None or installment.loan_id != loan.id:
                raise EntityNotFoundError(INSTALLMENT, str(installment_id))
            if installment.payment_status == PaymentStatus.PAID.value:
                raise InstallmentAlreadyPaidError(str(installment_id))
            if new_due_date == installment.due_date:
                raise InvalidArgumentError(
                    "new_due_date", new_due_date.isoformat(),
                    "must differ from the current due date",
                )
            pending = self._session.scalars(
                select(LoanPostponementRequestModel).where(
                    LoanPostponementRequestModel.installment_id == installment_id,
                    LoanPostponementRequestModel.approval_status == ApprovalStatus.PENDING.value,
                )
            ).first()
            if pending is not None:
                raise DuplicatePostponementRequestError(str(installment_id), str(pending.id))

            employee = self._require_employee(loan.employee_id)
            state = self._workflow.initialize(
                RequestType.LOAN_POSTPONEMENT, employee.scope, loan.employee_id,
            )
            request = LoanPostponementRequestModel(
                loan_id=loan.id,
                installment_id=installment.id,
                employee_id=loan.employee_id,
                current_due_date=installment.due_date,
                new_due_date=new_due_date,
                reason=reason.strip(),
                request_date=today,
                created_by_id=actor_id,
            )
            request.apply_approval_state(state)
            self._session.add(request)
            self._session.flush()

            events.append(self._event(
                NotificationEventType.LOAN_POSTPONEMENT_SUBMITTED,
                entity_type=POSTPONEMENT,
                entity_id=request.id,
                employee_id=loan.employee_id,
                recipients=(state.next_approver_id,),
                loan_id=str(loan.id),
                current_due_date=installment.due_date.isoformat(),
                new_due_date=new_due_date.isoformat(),
            ))
            logger.info("loan_postponement_requested", extra={
                "request_id": str(request.id),
                "loan_id": str(loan.id),
                "installment_id": str(installment.id),
                "new_due_date": new_due_date.isoformat(),
            })
            return request.to_dto()

        return self._transact(operation, entity_type=INSTALLMENT, entity_id=installment_id)

    def approve_postponement(self, request_id: UUID, actor_id: UUID) -> LoanPostponementRequest:
        """Approve at the current level; final approval moves the installment."""

        def operation(events):
            request = self._load_postponement(request_id)
            authorize_transition(
                self._workflow, RequestType.LOAN_POSTPONEMENT, request, actor_id,
                "approve", POSTPONEMENT,
            )
            employee = self._require_employee(request.employee_id)
            state = advance_approval(
                self._workflow, RequestType.LOAN_POSTPONEMENT, request, request.employee_id,
                employee.scope, actor_id, self._clock.now(),
            )

            if state.status == ApprovalStatus.APPROVED:
                installment = self._session.get(LoanInstallmentModel, request.installment_id)
                if installment.payment_status == PaymentStatus.PAID.value:
                    raise InstallmentAlreadyPaidError(str(installment.id))
                installment.due_date = request.new_due_date
                installment.payment_status = PaymentStatus.POSTPONED.value
                installment.updated_by_id = actor_id
                event_type = NotificationEventType.LOAN_POSTPONEMENT_APPROVED
                recipients = (request.employee_id,)
            else:
                event_type = NotificationEventType.LOAN_POSTPONEMENT_APPROVED_INTERMEDIATE
                recipients = (state.next_approver_id, request.employee_id)
            self._session.flush()

            events.append(self._event(
                event_type,
                entity_type=POSTPONEMENT,
                entity_id=request.id,
                employee_id=request.employee_id,
                recipients=recipients,
                loan_id=str(request.loan_id),
                new_due_date=request.new_due_date.isoformat(),
            ))
            logger.info("loan_postponement_approval_recorded", extra={
                "request_id": str(request.id),
                "approved_by": str(actor_id),
                "status": state.status.value,
            })
            return request.to_dto()

        return self._transact(operation, entity_type=POSTPONEMENT, entity_id=request_id)

    def reject_postponement(
        self, request_id: UUID, actor_id: UUID, reason: str,
    ) -> LoanPostponementRequest:

        def operation(events):
            request = self._load_postponement(request_id)
            authorize_transition(
                self._workflow, RequestType.LOAN_POSTPONEMENT, request, actor_id,
                "reject", POSTPONEMENT,
            )
            reject_approval(self._workflow, request, actor_id, reason, self._clock.now())
            self._session.flush()

            events.append(self._event(
                NotificationEventType.LOAN_POSTPONEMENT_REJECTED,
                entity_type=POSTPONEMENT,
                entity_id=request.id,
                employee_id=request.employee_id,
                recipients=(request.employee_id,),
                loan_id=str(request.loan_id),
                reason=request.rejection_reason,
            ))
            logger.info("loan_postponement_rejected", extra={
                "request_id": str(request.id),
                "rejected_by": str(actor_id),
            })
            return request.to_dto()

        return self._transact(operation, entity_type=POSTPONEMENT, entity_id=request_id)

    def mass_postpone(
        self, from_period: PayPeriod, to_period: PayPeriod, actor_id: UUID,
    ) -> MassPostponementResult:
        """
        Move every UNPAID installment due in ``from_period`` to
        ``mass_postponement_day`` of ``to_period`` (e.g. a payroll holiday
        month).  No approval chain is involved.
        """
        if to_period <= from_period:
            raise InvalidArgumentError(
                "to_period", str(to_period), f"must be after {from_period}",
            )
        new_due_date = to_period.day(self._config.mass_postponement_day)

        def operation(events):
            stmt = (
                select(LoanInstallmentModel)
                .join(LoanModel, LoanInstallmentModel.loan_id == LoanModel.id)
                .where(
                    LoanModel.approval_status == ApprovalStatus.APPROVED.value,
                    LoanModel.is_active.is_(True),
                    LoanInstallmentModel.payment_status == PaymentStatus.UNPAID.value,
                    LoanInstallmentModel.due_date >= from_period.start,
                    LoanInstallmentModel.due_date <= from_period.end,
                )
                .order_by(LoanInstallmentModel.loan_id, LoanInstallmentModel.sequence_no)
            )
            installments = list(self._session.scalars(stmt))

            per_loan: dict[UUID, list[LoanInstallmentModel]] = {}
            for installment in installments:
                installment.due_date = new_due_date
                installment.payment_status = PaymentStatus.POSTPONED.value
                installment.updated_by_id = actor_id
                per_loan.setdefault(installment.loan_id, []).append(installment)
            self._session.flush()

            employees: list[UUID] = []
            for loan_id, moved in per_loan.items():
                employee_id = moved[0].loan.employee_id
                if employee_id not in employees:
                    employees.append(employee_id)
                events.append(self._event(
                    NotificationEventType.LOAN_INSTALLMENTS_MASS_POSTPONED,
                    entity_type=LOAN,
                    entity_id=loan_id,
                    employee_id=employee_id,
                    recipients=(employee_id,),
                    from_period=str(from_period),
                    new_due_date=new_due_date.isoformat(),
                    installments=len(moved),
                ))

            logger.info("loan_installments_mass_postponed", extra={
                "from_period": str(from_period),
                "to_period": str(to_period),
                "installments": len(installments),
                "employees": len(employees),
            })
            return MassPostponementResult(
                from_period=str(from_period),
                to_period=str(to_period),
                new_due_date=new_due_date,
                installments_postponed=len(installments),
                affected_employee_ids=tuple(employees),
            )

        return self._transact(operation, entity_type=INSTALLMENT, entity_id=str(from_period))

    # =========================================================================
    # Helpers
    # =========================================================================

    def _load_loan(self, loan_id: UUID) -> LoanModel:
        loan = self._session.get(LoanModel, loan_id)
        if loan is None:
            raise EntityNotFoundError(LOAN, str(loan_id))
        return loan

    def _load_postponement(self, request_id: UUID) -> LoanPostponementRequestModel:
        request = self._session.get(LoanPostponementRequestModel, request_id)
        if request is None:
            raise EntityNotFoundError(POSTPONEMENT, str(request_id))
        return request

    def _active_loan_model(self, employee_id: UUID) -> LoanModel | None:
        stmt = select(LoanModel).where(
            LoanModel.employee_id == employee_id,
            LoanModel.is_active.is_(True),
        )
        return self._session.scalars(stmt).first()

    def _require_employee(self, employee_id: UUID) -> EmployeeRecord:
        employee = self._employees.get_employee(employee_id)
        if employee is None:
            raise EntityNotFoundError("Employee", str(employee_id))
        return employee

    @staticmethod
    def _require_active(loan: LoanModel) -> None:
        if loan.approval_status != ApprovalStatus.APPROVED.value or not loan.is_active:
            status = loan.approval_status if loan.is_active else "closed"
            raise LoanNotActiveError(str(loan.id), status)

    @staticmethod
    def _validate_amount(argument: str, amount: Decimal) -> None:
        if not isinstance(amount, Decimal):
            raise InvalidArgumentError(argument, amount, "must be a Decimal")
        if amount <= ZERO:
            raise InvalidArgumentError(argument, str(amount), "must be positive")
        if not has_money_precision(amount):
            raise InvalidArgumentError(argument, str(amount), "at most four decimal places")

    def _validate_principal(self, principal: Decimal) -> None:
        self._validate_amount("principal", principal)
