"""
Hypothesis-based property tests for the pure engines.

Boundaries fuzzed here:
- Installment schedules: any principal with four places, 1-120 installments
- Pro-ration: any hire/termination pair overlapping the period
- Payroll totals: random attendance and loan deductions, negative net allowed
- Approval chains: unresolved approvers, rejection at any level
- Month arithmetic: clamping from the 29th-31st across years

Boundaries not fuzzed here (covered by explicit tests):
- Persistence, versioning and settlement (tests/modules)
- Conflict retry (tests/concurrency)
- YAML validation (tests/config)
"""

from datetime import UTC, date, datetime
from decimal import Decimal
from uuid import uuid4

import pytest
from hypothesis import HealthCheck, assume, given, settings
from hypothesis import strategies as st
from hypothesis.strategies import composite

from hr_engines.installments import installment_amount, schedule_installments
from hr_engines.payroll import (
    DetailCategory,
    LoanDeduction,
    compute_payroll,
    prorate_salary,
)
from hr_kernel.domain.approval import (
    ApprovalStatus,
    ApproverKind,
    ChainScope,
    RequestType,
    TimelineStepStatus,
)
from hr_kernel.domain.directory import AttendanceAggregate
from hr_kernel.domain.values import ZERO, PayPeriod, add_months, quantize_amount

def fuzz_settings(max_examples=100):
    return settings(
        max_examples=max_examples,
        suppress_health_check=[HealthCheck.too_slow, HealthCheck.function_scoped_fixture],
        deadline=None,
    )


# =========================================================================
# Strategies
# =========================================================================


def money(min_value="0.0001", max_value="10000000"):
    return st.decimals(
        min_value=Decimal(min_value),
        max_value=Decimal(max_value),
        places=4,
        allow_nan=False,
        allow_infinity=False,
    )


def hours(max_value="200"):
    return st.decimals(
        min_value=Decimal("0"),
        max_value=Decimal(max_value),
        places=2,
        allow_nan=False,
        allow_infinity=False,
    )


pay_periods = st.builds(
    PayPeriod,
    year=st.integers(min_value=2000, max_value=2100),
    month=st.integers(min_value=1, max_value=12),
)


@composite
def employment_in_period(draw):
    """A period plus hire/termination dates that overlap it."""
    period = draw(pay_periods)
    last_day = period.end.day
    hired_before = draw(st.booleans())
    if hired_before:
        hire_date = add_months(period.start, -draw(st.integers(min_value=1, max_value=240)))
    else:
        hire_date = period.day(draw(st.integers(min_value=1, max_value=last_day)))

    termination_date = None
    if draw(st.booleans()):
        first_possible = max(hire_date, period.start).day
        termination_date = period.day(
            draw(st.integers(min_value=first_possible, max_value=last_day))
        )
    return period, hire_date, termination_date


attendance_aggregates = st.builds(
    AttendanceAggregate,
    overtime_hours=hours(),
    late_hours=hours("40"),
    early_departure_hours=hours("40"),
    shortfall_hours=hours("80"),
)


# =========================================================================
# 1. Installment schedules
# =========================================================================


class TestInstallmentFuzzing:

    @given(principal=money(), count=st.integers(min_value=1, max_value=120))
    @fuzz_settings(200)
    def test_schedule_sums_to_principal(self, principal, count):
        schedule = schedule_installments(
            principal=principal, count=count, first_due_date=date(2026, 2, 25),
        )

        assert len(schedule) == count
        assert sum((i.amount for i in schedule), ZERO) == principal

    @given(principal=money(), count=st.integers(min_value=1, max_value=120))
    @fuzz_settings(200)
    def test_no_negative_amounts(self, principal, count):
        schedule = schedule_installments(
            principal=principal, count=count, first_due_date=date(2026, 2, 25),
        )

        assert all(i.amount >= 0 for i in schedule)

    @given(
        principal=money("1", "1000000"),
        count=st.integers(min_value=2, max_value=60),
    )
    @fuzz_settings()
    def test_only_last_installment_differs(self, principal, count):
        schedule = schedule_installments(
            principal=principal, count=count, first_due_date=date(2026, 2, 25),
        )

        regular = {i.amount for i in schedule[:-1]}
        assert regular == {installment_amount(principal, count)}

    @given(principal=money("0.0001", "1"), count=st.integers(min_value=2, max_value=120))
    @fuzz_settings()
    def test_helper_matches_schedule_for_tiny_principals(self, principal, count):
        schedule = schedule_installments(
            principal=principal, count=count, first_due_date=date(2026, 2, 25),
        )

        assert schedule[0].amount == installment_amount(principal, count)

    @given(
        first_due_date=st.dates(min_value=date(2000, 1, 1), max_value=date(2090, 12, 31)),
        count=st.integers(min_value=1, max_value=120),
    )
    @fuzz_settings()
    def test_due_dates_strictly_increase_monthly(self, first_due_date, count):
        schedule = schedule_installments(
            principal=Decimal("1000"), count=count, first_due_date=first_due_date,
        )

        assert [i.sequence_no for i in schedule] == list(range(1, count + 1))
        assert schedule[0].due_date == first_due_date
        for earlier, later in zip(schedule, schedule[1:]):
            assert later.due_date > earlier.due_date
            assert later.due_date.day <= first_due_date.day


# =========================================================================
# 2. Pro-ration and payroll totals
# =========================================================================


class TestProrationFuzzing:

    @given(monthly_salary=money("1", "1000000"), employment=employment_in_period())
    @fuzz_settings(200)
    def test_gross_is_bounded(self, monthly_salary, employment):
        period, hire_date, termination_date = employment

        result = prorate_salary(
            employee_id=uuid4(),
            monthly_salary=monthly_salary,
            hire_date=hire_date,
            termination_date=termination_date,
            period=period,
        )

        assert 1 <= result.days_worked <= period.end.day
        assert result.gross_salary > 0
        assert result.gross_salary <= quantize_amount(monthly_salary * 31 / Decimal(30))
        assert period.contains(result.effective_start)
        assert period.contains(result.effective_end)

    @given(monthly_salary=money("1", "1000000"), period=pay_periods)
    @fuzz_settings()
    def test_full_month_pays_monthly_salary(self, monthly_salary, period):
        result = prorate_salary(
            employee_id=uuid4(),
            monthly_salary=monthly_salary,
            hire_date=add_months(period.start, -1),
            termination_date=None,
            period=period,
        )

        assert result.full_month
        assert result.gross_salary == monthly_salary

    @given(monthly_salary=money("1", "1000000"), employment=employment_in_period())
    @fuzz_settings()
    def test_more_days_never_pay_less(self, monthly_salary, employment):
        period, hire_date, termination_date = employment
        assume(termination_date is not None and termination_date < period.end)
        kwargs = dict(
            employee_id=uuid4(),
            monthly_salary=monthly_salary,
            hire_date=hire_date,
            period=period,
        )

        shorter = prorate_salary(termination_date=termination_date, **kwargs)
        longer = prorate_salary(termination_date=None, **kwargs)

        assert longer.gross_salary >= shorter.gross_salary


class TestPayrollTotalsFuzzing:

    @given(
        monthly_salary=money("1", "500000"),
        employment=employment_in_period(),
        attendance=attendance_aggregates,
        loan_amounts=st.lists(money("0.0001", "50000"), max_size=4),
        use_breakdown=st.booleans(),
    )
    @fuzz_settings(150)
    def test_net_is_allowances_minus_deductions(
        self, active_config, monthly_salary, employment, attendance, loan_amounts,
        use_breakdown,
    ):
        period, hire_date, termination_date = employment
        breakdown = (
            active_config.snapshot.breakdown_for("S") if use_breakdown else None
        )

        result = compute_payroll(
            employee_id=uuid4(),
            monthly_salary=monthly_salary,
            hire_date=hire_date,
            termination_date=termination_date,
            period=period,
            breakdown=breakdown,
            attendance=attendance,
            loan_deductions=[
                LoanDeduction(installment_id=uuid4(), loan_id=uuid4(), amount=amount)
                for amount in loan_amounts
            ],
        )

        allowances = sum(
            (l.amount for l in result.lines if l.category == DetailCategory.ALLOWANCE), ZERO,
        )
        deductions = sum(
            (l.amount for l in result.lines if l.category == DetailCategory.DEDUCTION), ZERO,
        )
        assert result.total_allowances == allowances
        assert result.total_deductions == deductions
        assert result.net_salary == allowances - deductions
        assert result.negative_net == (result.net_salary < 0)
        assert all(l.amount > 0 for l in result.lines)
        assert all(l.amount == quantize_amount(l.amount) for l in result.lines)
        assert result.used_default_breakdown == (breakdown is None)


# =========================================================================
# 3. Approval chains
# =========================================================================


REQUEST_TYPES = [RequestType.PAYROLL, RequestType.LOAN, RequestType.LOAN_POSTPONEMENT]
NON_HR_KINDS = [k for k in ApproverKind if k != ApproverKind.HR_MANAGER]
DECIDED_AT = datetime(2026, 1, 5, 9, 0, tzinfo=UTC)


@pytest.mark.slow
class TestApprovalChainFuzzing:

    @given(
        request_type=st.sampled_from(REQUEST_TYPES),
        unresolved=st.sets(st.sampled_from(NON_HR_KINDS)),
    )
    @fuzz_settings(50)
    def test_levels_strictly_increase_until_approved(
        self, workflow, org, request_type, unresolved,
    ):
        org.unresolved.clear()
        org.unresolved.update(unresolved)
        employee_id = uuid4()
        chain = workflow.chain_for(request_type, ChainScope())

        state = workflow.initialize(request_type, ChainScope(), employee_id)
        levels = []
        while state.is_pending:
            levels.append(state.current_level)
            expected_kind = chain[len(levels) - 1].approver_kind
            if expected_kind in unresolved:
                assert state.next_approver_id == org[ApproverKind.HR_MANAGER]
            else:
                assert state.next_approver_id == org[expected_kind]
            state = workflow.advance(
                request_type, state.current_level, employee_id,
                approved_by=state.next_approver_id,
            )

        assert state.status == ApprovalStatus.APPROVED
        assert levels == sorted(set(levels))
        assert levels == [d.level_no for d in chain]

    @given(
        request_type=st.sampled_from(REQUEST_TYPES),
        reject_at_step=st.integers(min_value=0, max_value=2),
    )
    @fuzz_settings(50)
    def test_rejection_timeline(self, workflow, org, request_type, reject_at_step):
        org.unresolved.clear()
        employee_id = uuid4()
        chain = workflow.chain_for(request_type, ChainScope())
        assume(reject_at_step < len(chain))

        state = workflow.initialize(request_type, ChainScope(), employee_id)
        for _ in range(reject_at_step):
            state = workflow.advance(
                request_type, state.current_level, employee_id,
                approved_by=state.next_approver_id,
            )
        level = state.current_level
        approver = state.next_approver_id
        rejected = workflow.reject(state, approver, "incomplete").decided(
            approver, DECIDED_AT, level,
        )

        steps = workflow.timeline(request_type, rejected, ChainScope())

        for step in steps:
            if step.level_no < level:
                assert step.status == TimelineStepStatus.COMPLETED
            elif step.level_no == level:
                assert step.status == TimelineStepStatus.REJECTED
                assert step.approver_id == approver
            else:
                assert step.status == TimelineStepStatus.SKIPPED


# =========================================================================
# 4. Month arithmetic
# =========================================================================


class TestAddMonthsFuzzing:

    @given(
        start=st.dates(min_value=date(1950, 1, 1), max_value=date(2100, 12, 31)),
        months=st.integers(min_value=-600, max_value=600),
    )
    @fuzz_settings(300)
    def test_clamps_to_month_end(self, start, months):
        shifted = add_months(start, months)

        assert (shifted.year * 12 + shifted.month) - (start.year * 12 + start.month) == months
        assert shifted.day <= start.day
        if shifted.day < start.day:
            assert shifted == PayPeriod.containing(shifted).end

    @given(start=st.dates(min_value=date(1950, 1, 1), max_value=date(2100, 12, 31)))
    @fuzz_settings()
    def test_zero_months_is_identity(self, start):
        assert add_months(start, 0) == start
