"""
Payroll Module Service (``hr_modules.payroll.service``).

Responsibility
--------------
Orchestrates monthly payroll -- payslip calculation, recalculation as new
versions, the monthly batch run and the multi-level approval that finally
settles loan installments -- by delegating arithmetic to
``hr_engines.payroll`` and state transitions to the
``ApprovalWorkflowEngine``.

Architecture position
---------------------
**Modules layer** -- thin HR glue.  ``PayrollService`` is the sole public
entry point for payroll operations.  Employee master data and attendance
come through the ``EmployeeDirectory`` / ``AttendanceProvider`` protocols;
loan installments through ``hr_modules.loans.ledger``.

Invariants enforced
-------------------
* Every calculation inserts a new version ``max(version) + 1`` for
  (employee, period); earlier versions are never modified apart from
  their own approval columns.
* Only the latest version can be approved or rejected.
* Loan installments are marked PAID only when a payslip reaches APPROVED,
  and an installment already PAID is never settled again.
* Each public mutating method owns one transaction, with one retry on a
  uniqueness or optimistic-lock conflict.

Failure modes
-------------
* ``EntityNotFoundError`` / ``EmployeeNotEligibleError`` -- unknown or
  ineligible employee.
* ``DataIntegrityError`` -- termination before hire, or no employed day in
  the period (``EmploymentOutsidePeriodError``); nothing persisted.
  On final approval, a loan deduction that no longer matches the loan
  (repaid outside payroll since calculation); nothing approved.
* ``NegativeNetSalaryError`` -- negative net under the REJECT policy.
* ``StaleSalaryVersionError`` / ``ApprovalAlreadyResolvedError`` /
  ``NotAuthorizedError`` -- approval on the wrong version, state or actor.
* ``ConcurrentModificationError`` -- conflict survived the retry.

Usage::

    service = PayrollService(session, workflow, directory, attendance, clock=clock)
    header = service.calculate(employee_id, PayPeriod(2026, 1), actor_id=hr_user)
    header = service.approve(header.id, actor_id=header.approval.next_approver_id)
"""

from __future__ import annotations

from collections.abc import Iterable
from uuid import UUID, uuid4

from sqlalchemy import func, select
from sqlalchemy.orm import Session, aliased

from hr_engines.approval_workflow import ApprovalWorkflowEngine
from hr_engines.payroll import ComponentCode, compute_payroll
from hr_kernel.domain.approval import (
    ApprovalStatus,
    ApprovalTimelineStep,
    ChainScope,
    RequestType,
)
from hr_kernel.domain.clock import Clock
from hr_kernel.domain.directory import AttendanceProvider, EmployeeDirectory, EmployeeRecord
from hr_kernel.domain.events import EventPublisher, NotificationEventType
from hr_kernel.domain.values import PayPeriod
from hr_kernel.exceptions import (
    EmployeeNotEligibleError,
    EntityNotFoundError,
    HRKernelError,
    NegativeNetSalaryError,
    StaleSalaryVersionError,
)
from hr_kernel.logging_config import LogContext, get_logger
from hr_modules._approval_helpers import (
    advance_approval,
    authorize_transition,
    reject_approval,
)
from hr_modules._transaction import ModuleService
from hr_modules.loans.ledger import as_deductions, installments_due, settle_installment
from hr_modules.payroll.config import NegativeNetPolicy, PayrollConfig
from hr_modules.payroll.models import PayrollBatchFailure, PayrollBatchResult, SalaryHeader
from hr_modules.payroll.orm import SalaryDetailModel, SalaryHeaderModel

logger = get_logger("modules.payroll.service")

SALARY = "SalaryHeader"


def _as_period(period: PayPeriod | str) -> PayPeriod:
    return period if isinstance(period, PayPeriod) else PayPeriod.parse(period)


class PayrollService(ModuleService):
    """
    Orchestrates payslip calculation and approval.

    Contract
    --------
    * ``calculate`` returns the newly inserted ``SalaryHeader`` version.
    * ``approve`` / ``reject`` return the header as committed.

    Guarantees
    ----------
    * A failed calculation persists nothing.
    * Domain events are published only after the commit that produced them.
    * Clock is injectable for deterministic testing.

    Non-goals
    ---------
    * Does NOT read attendance punches; it consumes monthly aggregates.
    * Does NOT post accounting entries or produce bank files.
    """

    def __init__(
        self,
        session: Session,
        workflow: ApprovalWorkflowEngine,
        employees: EmployeeDirectory,
        attendance: AttendanceProvider,
        config: PayrollConfig | None = None,
        clock: Clock | None = None,
        publisher: EventPublisher | None = None,
    ):
        super().__init__(session, clock=clock, publisher=publisher)
        self._workflow = workflow
        self._employees = employees
        self._attendance = attendance
        self._config = config or PayrollConfig()

    # =========================================================================
    # Calculation
    # =========================================================================

    def calculate(
        self,
        employee_id: UUID,
        period: PayPeriod | str,
        actor_id: UUID,
        reason: str | None = None,
    ) -> SalaryHeader:
        """
        Calculate (or recalculate) an employee's payslip for ``period``.

        Preconditions:
            - Employee exists with an eligible employment status.
        Postconditions:
            - A new header version with its detail lines, PENDING at level 1
              of the PAYROLL chain.
        Raises:
            DataIntegrityError: inverted or out-of-period employment dates.
            NegativeNetSalaryError: negative net under the REJECT policy.
        """
        period = _as_period(period)
        employee = self._require_employee(employee_id)
        if employee.employment_status not in self._config.eligible_statuses:
            raise EmployeeNotEligibleError(
                str(employee_id), employee.employment_status.value, "payroll",
            )
        attendance = self._attendance.monthly_aggregate(employee_id, period)
        breakdown = self._workflow.snapshot.breakdown_for(employee.category)
        if breakdown is None:
            logger.warning("payroll_breakdown_missing", extra={
                "employee_id": str(employee_id),
                "category": employee.category,
            })

        logger.info("payroll_calculate_started", extra={
            "employee_id": str(employee_id),
            "period": str(period),
            "recalculation_reason": reason,
        })

        def operation(events):
            installments = installments_due(self._session, employee_id, period)
            computation = compute_payroll(
                employee_id=employee_id,
                monthly_salary=employee.monthly_salary,
                hire_date=employee.hire_date,
                termination_date=employee.termination_date,
                period=period,
                breakdown=breakdown,
                attendance=attendance,
                loan_deductions=as_deductions(installments),
                divisor_days=self._config.proration_divisor_days,
                required_monthly_hours=self._config.required_monthly_hours,
                overtime_multiplier=self._config.overtime_multiplier,
            )
            if computation.negative_net:
                if self._config.negative_net_policy == NegativeNetPolicy.REJECT:
                    raise NegativeNetSalaryError(
                        str(employee_id), str(period), str(computation.net_salary),
                    )
                logger.warning("payroll_negative_net_flagged", extra={
                    "employee_id": str(employee_id),
                    "period": str(period),
                    "net_salary": str(computation.net_salary),
                })

            state = self._workflow.initialize(RequestType.PAYROLL, employee.scope, employee_id)
            version = self._next_version(employee_id, period)
            proration = computation.proration
            header = SalaryHeaderModel(
                employee_id=employee_id,
                period=str(period),
                version=version,
                monthly_salary=employee.monthly_salary,
                gross_salary=computation.gross_salary,
                total_allowances=computation.total_allowances,
                total_deductions=computation.total_deductions,
                net_salary=computation.net_salary,
                negative_net=computation.negative_net,
                effective_start=proration.effective_start,
                effective_end=proration.effective_end,
                days_worked=proration.days_worked,
                department_id=employee.department_id,
                project_id=employee.project_id,
                recalculation_reason=reason,
                created_by_id=actor_id,
            )
            header.apply_approval_state(state)
            for line_no, line in enumerate(computation.lines, start=1):
                header.details.append(SalaryDetailModel(
                    line_no=line_no,
                    component_code=line.component_code,
                    amount=line.amount,
                    category=line.category.value,
                    reference_id=line.reference_id,
                ))
            self._session.add(header)
            self._session.flush()

            events.append(self._event(
                NotificationEventType.PAYROLL_CALCULATED,
                entity_type=SALARY,
                entity_id=header.id,
                employee_id=employee_id,
                recipients=(state.next_approver_id,),
                period=str(period),
                version=version,
                net_salary=str(computation.net_salary),
                negative_net=computation.negative_net,
            ))
            logger.info("payroll_calculated", extra={
                "salary_id": str(header.id),
                "employee_id": str(employee_id),
                "period": str(period),
                "version": version,
                "gross_salary": str(computation.gross_salary),
                "net_salary": str(computation.net_salary),
                "days_worked": proration.days_worked,
                "loan_installments": len(installments),
            })
            return header.to_dto()

        return self._transact(
            operation, entity_type=SALARY, entity_id=f"{employee_id}:{period}",
        )

    def calculate_batch(
        self,
        employee_ids: Iterable[UUID],
        period: PayPeriod | str,
        actor_id: UUID,
        reason: str | None = None,
    ) -> PayrollBatchResult:
        """Monthly payroll run: one calculation (and transaction) per employee."""
        period = _as_period(period)
        run_id = uuid4()
        calculated: list[SalaryHeader] = []
        failed: list[PayrollBatchFailure] = []
        with LogContext.bind(run_id=str(run_id), actor_id=str(actor_id)):
            for employee_id in employee_ids:
                try:
                    calculated.append(self.calculate(employee_id, period, actor_id, reason))
                except HRKernelError as exc:
                    failed.append(PayrollBatchFailure(employee_id, exc.code, str(exc)))
                    logger.warning("payroll_batch_employee_failed", extra={
                        "employee_id": str(employee_id),
                        "period": str(period),
                        "error_code": exc.code,
                        "error": str(exc),
                    })

        result = PayrollBatchResult(
            period=str(period), calculated=tuple(calculated), failed=tuple(failed),
        )
        logger.info("payroll_batch_completed", extra={
            "run_id": str(run_id),
            "period": str(period),
            "calculated": len(result.calculated),
            "failed": len(result.failed),
            "flagged_negative": len(result.flagged_negative),
            "total_net": str(result.total_net),
        })
        return result

    # =========================================================================
    # Approval
    # =========================================================================

    def approve(self, salary_id: UUID, actor_id: UUID) -> SalaryHeader:
        """
        Approve the latest payslip version at its current level.

        Final approval settles every loan installment the payslip deducts
        that is not already PAID.

        Raises:
            DataIntegrityError: a deducted installment was repaid outside
                payroll after this version was calculated; nothing is
                approved and the payslip must be recalculated.
        """

        def operation(events):
            header = self._load_header(salary_id)
            self._require_latest(header)
            authorize_transition(
                self._workflow, RequestType.PAYROLL, header, actor_id, "approve", SALARY,
            )
            state = advance_approval(
                self._workflow, RequestType.PAYROLL, header, header.employee_id,
                self._scope_of(header), actor_id, self._clock.now(),
            )

            if state.status == ApprovalStatus.APPROVED:
                self._settle_loan_lines(header, actor_id, events)
                events.append(self._event(
                    NotificationEventType.PAYROLL_APPROVED,
                    entity_type=SALARY,
                    entity_id=header.id,
                    employee_id=header.employee_id,
                    recipients=(header.employee_id,),
                    period=header.period,
                    version=header.version,
                    net_salary=str(header.net_salary),
                ))
            else:
                events.append(self._event(
                    NotificationEventType.PAYROLL_APPROVED_INTERMEDIATE,
                    entity_type=SALARY,
                    entity_id=header.id,
                    employee_id=header.employee_id,
                    recipients=(state.next_approver_id, header.employee_id),
                    period=header.period,
                    level=state.current_level,
                ))
            self._session.flush()

            logger.info("payroll_approval_recorded", extra={
                "salary_id": str(header.id),
                "approved_by": str(actor_id),
                "status": state.status.value,
                "next_level": state.current_level,
            })
            return header.to_dto()

        return self._transact(operation, entity_type=SALARY, entity_id=salary_id)

    def reject(self, salary_id: UUID, actor_id: UUID, reason: str) -> SalaryHeader:

        def operation(events):
            header = self._load_header(salary_id)
            self._require_latest(header)
            authorize_transition(
                self._workflow, RequestType.PAYROLL, header, actor_id, "reject", SALARY,
            )
            reject_approval(self._workflow, header, actor_id, reason, self._clock.now())
            self._session.flush()

            events.append(self._event(
                NotificationEventType.PAYROLL_REJECTED,
                entity_type=SALARY,
                entity_id=header.id,
                employee_id=header.employee_id,
                recipients=(header.employee_id,),
                period=header.period,
                reason=header.rejection_reason,
            ))
            logger.info("payroll_rejected", extra={
                "salary_id": str(header.id),
                "rejected_by": str(actor_id),
            })
            return header.to_dto()

        return self._transact(operation, entity_type=SALARY, entity_id=salary_id)

    # =========================================================================
    # Queries
    # =========================================================================

    def get_salary(self, salary_id: UUID) -> SalaryHeader:
        return self._load_header(salary_id).to_dto()

    def get_latest(self, employee_id: UUID, period: PayPeriod | str) -> SalaryHeader | None:
        stmt = (
            select(SalaryHeaderModel)
            .where(
                SalaryHeaderModel.employee_id == employee_id,
                SalaryHeaderModel.period == str(_as_period(period)),
            )
            .order_by(SalaryHeaderModel.version.desc())
            .limit(1)
        )
        header = self._session.scalars(stmt).first()
        return header.to_dto() if header is not None else None

    def list_versions(self, employee_id: UUID, period: PayPeriod | str) -> list[SalaryHeader]:
        stmt = (
            select(SalaryHeaderModel)
            .where(
                SalaryHeaderModel.employee_id == employee_id,
                SalaryHeaderModel.period == str(_as_period(period)),
            )
            .order_by(SalaryHeaderModel.version)
        )
        return [header.to_dto() for header in self._session.scalars(stmt)]

    def pending_for_approver(self, approver_id: UUID) -> list[SalaryHeader]:
        """Latest-version payslips waiting on ``approver_id``."""
        newer = aliased(SalaryHeaderModel)
        latest_version = (
            select(func.max(newer.version))
            .where(
                newer.employee_id == SalaryHeaderModel.employee_id,
                newer.period == SalaryHeaderModel.period,
            )
            .scalar_subquery()
        )
        stmt = (
            select(SalaryHeaderModel)
            .where(
                SalaryHeaderModel.approval_status == ApprovalStatus.PENDING.value,
                SalaryHeaderModel.next_approver_id == approver_id,
                SalaryHeaderModel.version == latest_version,
            )
            .order_by(SalaryHeaderModel.period, SalaryHeaderModel.employee_id)
        )
        return [header.to_dto() for header in self._session.scalars(stmt)]

    def timeline(self, salary_id: UUID) -> tuple[ApprovalTimelineStep, ...]:
        header = self._load_header(salary_id)
        return self._workflow.timeline(
            RequestType.PAYROLL, header.approval_state, self._scope_of(header),
        )

    # =========================================================================
    # Helpers
    # =========================================================================

    def _next_version(self, employee_id: UUID, period: PayPeriod) -> int:
        current = self._session.scalar(
            select(func.max(SalaryHeaderModel.version)).where(
                SalaryHeaderModel.employee_id == employee_id,
                SalaryHeaderModel.period == str(period),
            )
        )
        return (current or 0) + 1

    def _load_header(self, salary_id: UUID) -> SalaryHeaderModel:
        header = self._session.get(SalaryHeaderModel, salary_id)
        if header is None:
            raise EntityNotFoundError(SALARY, str(salary_id))
        return header

    def _require_latest(self, header: SalaryHeaderModel) -> None:
        latest = self._session.scalar(
            select(func.max(SalaryHeaderModel.version)).where(
                SalaryHeaderModel.employee_id == header.employee_id,
                SalaryHeaderModel.period == header.period,
            )
        )
        if latest != header.version:
            raise StaleSalaryVersionError(str(header.id), header.version, latest)

    def _require_employee(self, employee_id: UUID) -> EmployeeRecord:
        employee = self._employees.get_employee(employee_id)
        if employee is None:
            raise EntityNotFoundError("Employee", str(employee_id))
        return employee

    @staticmethod
    def _scope_of(header: SalaryHeaderModel) -> ChainScope:
        return ChainScope(department_id=header.department_id, project_id=header.project_id)

    def _settle_loan_lines(self, header: SalaryHeaderModel, actor_id: UUID, events) -> None:
        period = PayPeriod.parse(header.period)
        paid_on = self._clock.today()
        for detail in header.details:
            if detail.component_code != ComponentCode.LOAN_INSTALLMENT or detail.reference_id is None:
                continue
            settlement = settle_installment(
                self._session, detail.reference_id, period, paid_on, actor_id,
                deducted=detail.amount,
            )
            if settlement is None:
                continue
            events.append(self._event(
                NotificationEventType.LOAN_INSTALLMENT_PAID,
                entity_type="Loan",
                entity_id=settlement.loan_id,
                employee_id=settlement.employee_id,
                recipients=(settlement.employee_id,),
                installment_id=str(settlement.installment_id),
                amount=str(settlement.amount),
                remaining_balance=str(settlement.remaining_balance),
                period=header.period,
            ))
            if settlement.loan_closed:
                events.append(self._event(
                    NotificationEventType.LOAN_FULLY_PAID,
                    entity_type="Loan",
                    entity_id=settlement.loan_id,
                    employee_id=settlement.employee_id,
                    recipients=(settlement.employee_id,),
                ))
