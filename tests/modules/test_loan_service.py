"""
Tests for LoanService.

Tests cover:
- Submission rules: eligibility, installment bounds, salary ceiling,
  first-installment lead time, one active loan per employee
- Multi-level approval and schedule materialization on final approval
- Rejection, manual repayment applied oldest installment first, overpayment
  and loan closure
- Single-installment postponement through its own approval chain
- Mass postponement of a period's installments
- Stale-approval sweep
"""

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from hr_kernel.domain.approval import (
    ApprovalState,
    ApprovalStatus,
    ApproverKind,
    TimelineStepStatus,
)
from hr_kernel.domain.directory import EmploymentStatus
from hr_kernel.domain.events import NotificationEventType
from hr_kernel.domain.values import PayPeriod
from hr_kernel.exceptions import (
    ActiveLoanExistsError,
    ApprovalAlreadyResolvedError,
    DuplicatePostponementRequestError,
    EmployeeNotEligibleError,
    EntityNotFoundError,
    InstallmentAlreadyPaidError,
    InvalidArgumentError,
    LoanLimitExceededError,
    LoanNotActiveError,
    NotAuthorizedError,
    OverpaymentError,
)
from hr_modules.loans.ledger import settle_installment
from hr_modules.loans.models import PaymentStatus
from hr_modules.loans.orm import LoanModel

FEB = PayPeriod(2026, 2)
MAR = PayPeriod(2026, 3)
FIRST_DUE = date(2026, 2, 25)


@pytest.fixture
def employee(make_employee):
    return make_employee()


@pytest.fixture
def submit(loan_service):
    """Factory submitting a loan on the employee's own behalf."""

    def _submit(employee, principal="3000", count=3, first=FIRST_DUE):
        return loan_service.submit(
            employee_id=employee.employee_id,
            principal=Decimal(principal) if isinstance(principal, str) else principal,
            installment_count=count,
            first_installment_date=first,
            actor_id=employee.employee_id,
        )

    return _submit


@pytest.fixture
def approved(submit, approve_loan_fully):
    def _approved(employee, **kwargs):
        return approve_loan_fully(submit(employee, **kwargs))

    return _approved


# =========================================================================
# 1. Submission
# =========================================================================


class TestSubmit:

    def test_submit_starts_approval(self, submit, employee, org, publisher):
        loan = submit(employee)

        assert loan.status == ApprovalStatus.PENDING
        assert loan.approval.current_level == 1
        assert loan.approval.next_approver_id == org[ApproverKind.DIRECT_MANAGER]
        assert loan.remaining_balance == Decimal("3000")
        assert loan.installment_amount == Decimal("1000")
        assert loan.installments == ()
        assert loan.is_active
        assert loan.request_date == date(2026, 1, 5)

        events = publisher.of_type(NotificationEventType.LOAN_SUBMITTED)
        assert events[0].recipient_ids == (org[ApproverKind.DIRECT_MANAGER],)

    def test_pending_loan_blocks_second_request(self, submit, employee):
        submit(employee)

        with pytest.raises(ActiveLoanExistsError):
            submit(employee, principal="500")

    def test_employee_must_be_active(self, submit, make_employee):
        employee = make_employee(employment_status=EmploymentStatus.ON_LEAVE)

        with pytest.raises(EmployeeNotEligibleError):
            submit(employee)

    def test_unknown_employee(self, loan_service):
        with pytest.raises(EntityNotFoundError):
            loan_service.submit(uuid4(), Decimal("1000"), 3, FIRST_DUE, uuid4())

    @pytest.mark.parametrize("count", [2, 61])
    def test_installment_count_bounds(self, submit, employee, count):
        with pytest.raises(InvalidArgumentError) as exc_info:
            submit(employee, count=count)

        assert exc_info.value.argument == "installment_count"

    @pytest.mark.parametrize("count", [3, 60])
    def test_installment_count_limits_inclusive(self, submit, employee, count):
        assert submit(employee, count=count).installment_count == count

    def test_salary_ceiling(self, submit, employee):
        with pytest.raises(LoanLimitExceededError) as exc_info:
            submit(employee, principal="108000.0001")

        assert exc_info.value.limit == "108000.0000"

    def test_ceiling_is_inclusive(self, submit, employee):
        assert submit(employee, principal="108000").principal == Decimal("108000")

    @pytest.mark.parametrize("principal", ["0", "-100", "100.00001", 100.5])
    def test_principal_validation(self, submit, employee, principal):
        with pytest.raises(InvalidArgumentError):
            submit(employee, principal=principal)

    @pytest.mark.parametrize("principal", ["0.0001", "0.0002"])
    def test_principal_too_small_to_split(self, submit, loan_service, employee, principal):
        with pytest.raises(InvalidArgumentError) as exc_info:
            submit(employee, principal=principal, count=3)

        assert exc_info.value.argument == "principal"
        assert loan_service.active_loan_for(employee.employee_id) is None

    def test_stored_installment_amount_matches_schedule(self, approved, employee):
        loan = approved(employee, principal="0.0005", count=3)

        assert loan.installment_amount == Decimal("0.0002")
        assert [i.amount for i in loan.installments] == [
            Decimal("0.0002"), Decimal("0.0002"), Decimal("0.0001"),
        ]

    def test_first_installment_lead_time(self, submit, employee):
        with pytest.raises(InvalidArgumentError) as exc_info:
            submit(employee, first=date(2026, 2, 4))

        assert exc_info.value.argument == "first_installment_date"
        assert submit(employee, first=date(2026, 2, 5)).first_installment_date == date(2026, 2, 5)

    def test_failed_submission_persists_nothing(self, submit, loan_service, employee, publisher):
        with pytest.raises(InvalidArgumentError):
            submit(employee, count=1)

        assert loan_service.active_loan_for(employee.employee_id) is None
        assert publisher.events == []


# =========================================================================
# 2. Approval
# =========================================================================


class TestApproval:

    def test_three_levels_then_schedule(self, submit, loan_service, employee, org, publisher):
        loan = submit(employee, principal="1000")

        loan = loan_service.approve(loan.id, org[ApproverKind.DIRECT_MANAGER])
        assert loan.approval.current_level == 2
        assert loan.installments == ()
        loan = loan_service.approve(loan.id, org[ApproverKind.HR_MANAGER])
        loan = loan_service.approve(loan.id, org[ApproverKind.FINANCE_MANAGER])

        assert loan.status == ApprovalStatus.APPROVED
        assert [i.amount for i in loan.installments] == [
            Decimal("333.3333"), Decimal("333.3333"), Decimal("333.3334"),
        ]
        assert [i.due_date for i in loan.installments] == [
            date(2026, 2, 25), date(2026, 3, 25), date(2026, 4, 25),
        ]
        assert all(i.payment_status == PaymentStatus.UNPAID for i in loan.installments)
        assert loan.remaining_balance == Decimal("1000")

        intermediate = publisher.of_type(NotificationEventType.LOAN_APPROVED_INTERMEDIATE)
        assert [e.recipient_ids[0] for e in intermediate] == [
            org[ApproverKind.HR_MANAGER], org[ApproverKind.FINANCE_MANAGER],
        ]
        final = publisher.of_type(NotificationEventType.LOAN_APPROVED)
        assert final[0].recipient_ids == (employee.employee_id,)

    def test_month_end_schedule(self, approved, employee):
        loan = approved(employee, first=date(2026, 3, 31))

        assert [i.due_date for i in loan.installments] == [
            date(2026, 3, 31), date(2026, 4, 30), date(2026, 5, 31),
        ]

    def test_terminal_status_is_never_overwritten(self, approved, session, employee):
        loan = approved(employee)
        model = session.get(LoanModel, loan.id)

        with pytest.raises(ApprovalAlreadyResolvedError) as exc_info:
            model.apply_approval_state(
                ApprovalState(ApprovalStatus.PENDING, current_level=1, next_approver_id=uuid4()),
            )

        assert exc_info.value.entity_type == "Loan"
        assert exc_info.value.status == "approved"
        assert model.approval_status == "approved"

    def test_wrong_approver(self, submit, loan_service, employee, org):
        loan = submit(employee)

        with pytest.raises(NotAuthorizedError):
            loan_service.approve(loan.id, org[ApproverKind.HR_MANAGER])

    def test_employee_cannot_approve_own_loan(self, submit, loan_service, employee):
        loan = submit(employee)

        with pytest.raises(NotAuthorizedError):
            loan_service.approve(loan.id, employee.employee_id)

    def test_approved_loan_is_final(self, approved, loan_service, employee, org):
        loan = approved(employee)

        with pytest.raises(ApprovalAlreadyResolvedError):
            loan_service.approve(loan.id, org[ApproverKind.FINANCE_MANAGER])

    def test_unresolved_direct_manager_routes_to_hr(self, submit, employee, org):
        org.unresolved.add(ApproverKind.DIRECT_MANAGER)

        loan = submit(employee)

        assert loan.approval.next_approver_id == org[ApproverKind.HR_MANAGER]

    def test_pending_for_approver(self, submit, loan_service, make_employee, org):
        first = submit(make_employee())
        second = submit(make_employee())
        loan_service.approve(second.id, org[ApproverKind.DIRECT_MANAGER])

        pending = loan_service.pending_for_approver(org[ApproverKind.DIRECT_MANAGER])

        assert [loan.id for loan in pending] == [first.id]
        assert [loan.id for loan in loan_service.pending_for_approver(
            org[ApproverKind.HR_MANAGER])] == [second.id]

    def test_timeline(self, submit, loan_service, employee, org):
        loan = submit(employee)
        loan_service.approve(loan.id, org[ApproverKind.DIRECT_MANAGER])
        loan = loan_service.reject(loan.id, org[ApproverKind.HR_MANAGER], "budget")

        steps = loan_service.timeline(loan.id)

        assert [s.status for s in steps] == [
            TimelineStepStatus.COMPLETED,
            TimelineStepStatus.REJECTED,
            TimelineStepStatus.SKIPPED,
        ]
        assert steps[1].approver_id == org[ApproverKind.HR_MANAGER]


class TestReject:

    def test_reject_deactivates_loan(self, submit, loan_service, employee, org, publisher):
        loan = submit(employee)

        rejected = loan_service.reject(loan.id, org[ApproverKind.DIRECT_MANAGER], " too high ")

        assert rejected.status == ApprovalStatus.REJECTED
        assert rejected.approval.rejection_reason == "too high"
        assert not rejected.is_active
        assert rejected.installments == ()
        assert publisher.of_type(NotificationEventType.LOAN_REJECTED)[0].payload["reason"] == "too high"

    def test_new_request_allowed_after_rejection(self, submit, loan_service, employee, org):
        loan = submit(employee)
        loan_service.reject(loan.id, org[ApproverKind.DIRECT_MANAGER], "no")

        again = submit(employee, principal="1500")

        assert again.status == ApprovalStatus.PENDING

    def test_reason_required(self, submit, loan_service, employee, org):
        loan = submit(employee)

        with pytest.raises(InvalidArgumentError):
            loan_service.reject(loan.id, org[ApproverKind.DIRECT_MANAGER], "  ")

        assert loan_service.get_loan(loan.id).status == ApprovalStatus.PENDING


# =========================================================================
# 3. Repayment
# =========================================================================


class TestRecordPayment:

    def test_partial_payment(self, approved, loan_service, employee, test_actor_id, publisher):
        loan = approved(employee)

        loan = loan_service.record_payment(loan.id, Decimal("1200.5"), test_actor_id)

        assert loan.remaining_balance == Decimal("1799.5")
        assert loan.is_active
        assert loan_service.outstanding_balance(employee.employee_id) == Decimal("1799.5")
        paid = publisher.of_type(NotificationEventType.LOAN_INSTALLMENT_PAID)
        assert Decimal(paid[0].payload["remaining_balance"]) == Decimal("1799.5")
        assert publisher.of_type(NotificationEventType.LOAN_FULLY_PAID) == []

    def test_payment_covers_installments_oldest_first(self, approved, loan_service, employee,
                                                      test_actor_id, deterministic_clock):
        loan = approved(employee)

        loan = loan_service.record_payment(loan.id, Decimal("1200.5"), test_actor_id)

        first, second, third = loan.installments
        assert first.payment_status == PaymentStatus.PAID
        assert first.prepaid_amount == Decimal("1000")
        assert first.paid_amount == Decimal("1000")
        assert first.paid_date == deterministic_clock.today()
        assert first.paid_period is None
        assert second.payment_status == PaymentStatus.UNPAID
        assert second.prepaid_amount == Decimal("200.5")
        assert third.prepaid_amount == Decimal("0")
        owed = sum(
            (i.amount - i.prepaid_amount for i in loan.installments
             if i.payment_status != PaymentStatus.PAID),
            Decimal("0"),
        )
        assert owed == loan.remaining_balance

    def test_full_payment_closes_loan(self, approved, loan_service, employee, test_actor_id,
                                      publisher):
        loan = approved(employee)

        loan = loan_service.record_payment(loan.id, Decimal("3000"), test_actor_id)

        assert loan.remaining_balance == Decimal("0")
        assert not loan.is_active
        assert loan.is_fully_paid
        assert len(publisher.of_type(NotificationEventType.LOAN_FULLY_PAID)) == 1
        assert all(i.payment_status == PaymentStatus.PAID for i in loan.installments)
        with pytest.raises(LoanNotActiveError):
            loan_service.record_payment(loan.id, Decimal("1"), test_actor_id)

    def test_overpayment(self, approved, loan_service, employee, test_actor_id):
        loan = approved(employee)

        with pytest.raises(OverpaymentError):
            loan_service.record_payment(loan.id, Decimal("3000.0001"), test_actor_id)

        assert loan_service.get_loan(loan.id).remaining_balance == Decimal("3000")

    def test_pending_loan_cannot_be_repaid(self, submit, loan_service, employee, test_actor_id):
        loan = submit(employee)

        with pytest.raises(LoanNotActiveError):
            loan_service.record_payment(loan.id, Decimal("100"), test_actor_id)

    @pytest.mark.parametrize("amount", [Decimal("0"), Decimal("-5"), Decimal("1.00001")])
    def test_amount_validation(self, approved, loan_service, employee, test_actor_id, amount):
        loan = approved(employee)

        with pytest.raises(InvalidArgumentError):
            loan_service.record_payment(loan.id, amount, test_actor_id)

    def test_outstanding_balance_ignores_pending(self, submit, loan_service, employee):
        submit(employee)

        assert loan_service.outstanding_balance(employee.employee_id) == Decimal("0")

    def test_new_loan_after_closure(self, approved, submit, loan_service, employee,
                                    test_actor_id):
        loan = approved(employee)
        loan_service.record_payment(loan.id, Decimal("3000"), test_actor_id)

        assert submit(employee, principal="2000").status == ApprovalStatus.PENDING


# =========================================================================
# 4. Postponement
# =========================================================================


class TestPostpone:

    def test_request_starts_postponement_chain(self, approved, loan_service, employee, org,
                                               publisher):
        loan = approved(employee)
        installment = loan.installments[0]

        request = loan_service.postpone(
            loan.id, installment.id, date(2026, 3, 10), "medical expenses", employee.employee_id,
        )

        assert request.approval.status == ApprovalStatus.PENDING
        assert request.approval.next_approver_id == org[ApproverKind.HR_MANAGER]
        assert request.current_due_date == FIRST_DUE
        assert request.new_due_date == date(2026, 3, 10)
        # The installment itself is untouched until final approval.
        assert loan_service.get_loan(loan.id).installments[0].due_date == FIRST_DUE
        assert publisher.of_type(NotificationEventType.LOAN_POSTPONEMENT_SUBMITTED)
        assert [r.id for r in loan_service.pending_postponements_for_approver(
            org[ApproverKind.HR_MANAGER])] == [request.id]

    def test_final_approval_moves_installment(self, approved, loan_service, employee, org,
                                              publisher):
        loan = approved(employee)
        installment = loan.installments[0]
        request = loan_service.postpone(
            loan.id, installment.id, date(2026, 3, 10), "travel", employee.employee_id,
        )

        request = loan_service.approve_postponement(request.id, org[ApproverKind.HR_MANAGER])
        assert loan_service.get_loan(loan.id).installments[0].due_date == FIRST_DUE
        request = loan_service.approve_postponement(request.id, org[ApproverKind.FINANCE_MANAGER])

        assert request.approval.status == ApprovalStatus.APPROVED
        moved = loan_service.get_loan(loan.id).installments[0]
        assert moved.due_date == date(2026, 3, 10)
        assert moved.payment_status == PaymentStatus.POSTPONED
        assert publisher.of_type(NotificationEventType.LOAN_POSTPONEMENT_APPROVED_INTERMEDIATE)
        assert publisher.of_type(NotificationEventType.LOAN_POSTPONEMENT_APPROVED)

    def test_rejection_leaves_installment(self, approved, loan_service, employee, org):
        loan = approved(employee)
        installment = loan.installments[0]
        request = loan_service.postpone(
            loan.id, installment.id, date(2026, 3, 10), "travel", employee.employee_id,
        )

        request = loan_service.reject_postponement(
            request.id, org[ApproverKind.HR_MANAGER], "not justified",
        )

        assert request.approval.status == ApprovalStatus.REJECTED
        unchanged = loan_service.get_loan(loan.id).installments[0]
        assert unchanged.due_date == FIRST_DUE
        assert unchanged.payment_status == PaymentStatus.UNPAID

    def test_duplicate_pending_request(self, approved, loan_service, employee):
        loan = approved(employee)
        installment = loan.installments[0]
        loan_service.postpone(loan.id, installment.id, date(2026, 3, 10), "a", employee.employee_id)

        with pytest.raises(DuplicatePostponementRequestError):
            loan_service.postpone(
                loan.id, installment.id, date(2026, 3, 20), "b", employee.employee_id,
            )

    def test_new_request_after_rejection(self, approved, loan_service, employee, org):
        loan = approved(employee)
        installment = loan.installments[0]
        first = loan_service.postpone(
            loan.id, installment.id, date(2026, 3, 10), "a", employee.employee_id,
        )
        loan_service.reject_postponement(first.id, org[ApproverKind.HR_MANAGER], "no")

        second = loan_service.postpone(
            loan.id, installment.id, date(2026, 3, 20), "b", employee.employee_id,
        )

        assert second.id != first.id

    @pytest.mark.parametrize("new_due,reason", [
        (date(2026, 1, 5), "today is not in the future"),
        (date(2025, 12, 1), "past"),
        (FIRST_DUE, "same date"),
        (date(2026, 3, 10), "   "),
    ])
    def test_request_validation(self, approved, loan_service, employee, new_due, reason):
        loan = approved(employee)

        with pytest.raises(InvalidArgumentError):
            loan_service.postpone(
                loan.id, loan.installments[0].id, new_due, reason, employee.employee_id,
            )

    def test_installment_must_belong_to_loan(self, approved, loan_service, employee,
                                             make_employee):
        loan = approved(employee)
        other = approved(make_employee())

        with pytest.raises(EntityNotFoundError):
            loan_service.postpone(
                loan.id, other.installments[0].id, date(2026, 3, 10), "x", employee.employee_id,
            )

    def test_pending_loan_cannot_be_postponed(self, submit, loan_service, employee):
        loan = submit(employee)

        with pytest.raises(LoanNotActiveError):
            loan_service.postpone(loan.id, uuid4(), date(2026, 3, 10), "x", employee.employee_id)

    def test_paid_installment_cannot_be_postponed(self, approved, loan_service, session,
                                                  employee, test_actor_id):
        loan = approved(employee)
        installment = loan.installments[0]
        settle_installment(
            session, installment.id, FEB, date(2026, 2, 28), test_actor_id,
            deducted=installment.amount,
        )
        session.commit()

        with pytest.raises(InstallmentAlreadyPaidError):
            loan_service.postpone(
                loan.id, installment.id, date(2026, 3, 10), "x", employee.employee_id,
            )

    def test_paid_before_final_approval(self, approved, loan_service, session, employee, org,
                                        test_actor_id):
        loan = approved(employee)
        installment = loan.installments[0]
        request = loan_service.postpone(
            loan.id, installment.id, date(2026, 3, 10), "x", employee.employee_id,
        )
        loan_service.approve_postponement(request.id, org[ApproverKind.HR_MANAGER])
        settle_installment(
            session, installment.id, FEB, date(2026, 2, 28), test_actor_id,
            deducted=installment.amount,
        )
        session.commit()

        with pytest.raises(InstallmentAlreadyPaidError):
            loan_service.approve_postponement(request.id, org[ApproverKind.FINANCE_MANAGER])

        assert loan_service.get_postponement(request.id).approval.current_level == 2

    def test_postponed_installment_deducted_in_new_period(
        self, approved, loan_service, payroll_service, employee, org, test_actor_id,
    ):
        loan = approved(employee)
        installment = loan.installments[0]
        request = loan_service.postpone(
            loan.id, installment.id, date(2026, 3, 10), "x", employee.employee_id,
        )
        loan_service.approve_postponement(request.id, org[ApproverKind.HR_MANAGER])
        loan_service.approve_postponement(request.id, org[ApproverKind.FINANCE_MANAGER])

        february = payroll_service.calculate(employee.employee_id, FEB, test_actor_id)
        march = payroll_service.calculate(employee.employee_id, MAR, test_actor_id)

        assert february.lines_for("LOAN_INSTALLMENT") == ()
        assert [line.reference_id for line in march.lines_for("LOAN_INSTALLMENT")] == [
            loan.installments[0].id, loan.installments[1].id,
        ]


class TestMassPostpone:

    def test_moves_period_installments(self, approved, loan_service, make_employee,
                                       test_actor_id, publisher):
        first_employee, second_employee = make_employee(), make_employee()
        first = approved(first_employee)
        second = approved(second_employee, first=date(2026, 2, 10))

        result = loan_service.mass_postpone(FEB, MAR, test_actor_id)

        assert result.installments_postponed == 2
        assert result.new_due_date == date(2026, 3, 15)
        assert set(result.affected_employee_ids) == {
            first_employee.employee_id, second_employee.employee_id,
        }
        for loan in (first, second):
            moved = loan_service.get_loan(loan.id).installments[0]
            assert moved.due_date == date(2026, 3, 15)
            assert moved.payment_status == PaymentStatus.POSTPONED
            untouched = loan_service.get_loan(loan.id).installments[1]
            assert untouched.payment_status == PaymentStatus.UNPAID
        assert len(publisher.of_type(NotificationEventType.LOAN_INSTALLMENTS_MASS_POSTPONED)) == 2

    def test_nothing_due(self, loan_service, test_actor_id):
        result = loan_service.mass_postpone(FEB, MAR, test_actor_id)

        assert result.installments_postponed == 0
        assert result.affected_employee_ids == ()

    @pytest.mark.parametrize("to_period", [FEB, PayPeriod(2026, 1)])
    def test_target_must_be_later(self, loan_service, test_actor_id, to_period):
        with pytest.raises(InvalidArgumentError):
            loan_service.mass_postpone(FEB, to_period, test_actor_id)


# =========================================================================
# 5. Stale-approval sweep
# =========================================================================


class TestAutoApproveStale:

    def test_recent_loans_untouched(self, submit, loan_service, employee, deterministic_clock):
        submit(employee)
        deterministic_clock.advance_hours(47)

        result = loan_service.auto_approve_stale()

        assert result.processed_loan_ids == ()

    def test_one_level_per_sweep(self, submit, loan_service, employee, org,
                                 deterministic_clock):
        loan = submit(employee)

        deterministic_clock.advance_hours(49)
        result = loan_service.auto_approve_stale()
        assert result.processed_loan_ids == (loan.id,)
        assert result.fully_approved_loan_ids == ()
        advanced = loan_service.get_loan(loan.id)
        assert advanced.approval.current_level == 2
        assert advanced.approval.decided_by == org[ApproverKind.DIRECT_MANAGER]

        # The next level gets its own waiting period.
        assert loan_service.auto_approve_stale().processed_loan_ids == ()

        deterministic_clock.advance_hours(49)
        loan_service.auto_approve_stale()
        deterministic_clock.advance_hours(49)
        result = loan_service.auto_approve_stale()

        assert result.fully_approved_loan_ids == (loan.id,)
        final = loan_service.get_loan(loan.id)
        assert final.status == ApprovalStatus.APPROVED
        assert len(final.installments) == 3

    def test_custom_age(self, submit, loan_service, employee, deterministic_clock):
        loan = submit(employee)
        deterministic_clock.advance_hours(3)

        result = loan_service.auto_approve_stale(max_age_hours=2)

        assert result.processed_loan_ids == (loan.id,)

    def test_failures_are_reported(self, submit, loan_service, make_employee, org,
                                   deterministic_clock, captured_logs):
        loan = submit(make_employee())
        org.unresolved.add(ApproverKind.HR_MANAGER)
        deterministic_clock.advance_hours(49)

        result = loan_service.auto_approve_stale()

        assert result.failed_loan_ids == (loan.id,)
        assert result.processed_loan_ids == ()
        assert loan_service.get_loan(loan.id).approval.current_level == 1
        assert any(r["message"] == "loan_auto_approval_failed" for r in captured_logs())

    def test_invalid_age(self, loan_service):
        with pytest.raises(InvalidArgumentError):
            loan_service.auto_approve_stale(max_age_hours=0)
