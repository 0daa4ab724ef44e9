"""
TL Payroll Core - Payroll Run Lifecycle Tests
"""

import pytest
from dataclasses import replace
from datetime import date

from tl_payroll.models.payroll import PayrollRun, PayrollStatus
from tl_payroll.services.payroll_run_service import (
    can_transition,
    ensure_disbursable,
    format_period_label,
    is_disbursable,
    transition_run,
)
from tl_payroll.utils.error_handling import (
    ErrorCode,
    InvalidDateRangeException,
    InvalidStatusTransitionException,
    RunNotDisbursableException,
)


class TestRunPeriod:
    """A run period never ends before it starts."""

    def test_inverted_period_rejected(self):
        with pytest.raises(InvalidDateRangeException) as exc_info:
            PayrollRun(
                period_start=date(2025, 1, 31),
                period_end=date(2025, 1, 1),
                pay_date=date(2025, 1, 31),
            )
        assert exc_info.value.code == ErrorCode.INVALID_DATE_RANGE
        assert exc_info.value.details == {"start_date": "2025-01-31", "end_date": "2025-01-01"}

    def test_single_day_period(self):
        run = PayrollRun(period_start=date(2025, 1, 6), period_end=date(2025, 1, 6), pay_date=date(2025, 1, 6))

        assert run.period_start == run.period_end

    def test_replace_is_checked(self, january_run):
        with pytest.raises(InvalidDateRangeException):
            replace(january_run, period_end=date(2024, 12, 31))


class TestTransitions:
    """Runs only move forward: draft -> processing -> approved -> paid."""

    def test_forward_path(self, january_run):
        run = january_run
        for status in (PayrollStatus.PROCESSING, PayrollStatus.APPROVED, PayrollStatus.PAID):
            run = transition_run(run, status)

        assert run.status == PayrollStatus.PAID
        # The input run is untouched
        assert january_run.status == PayrollStatus.DRAFT

    def test_skipping_a_step_is_rejected(self, january_run):
        with pytest.raises(InvalidStatusTransitionException) as exc_info:
            transition_run(january_run, PayrollStatus.APPROVED)
        assert exc_info.value.code == ErrorCode.INVALID_STATUS_TRANSITION
        assert exc_info.value.status_code == 422

    def test_backwards_is_rejected(self, approved_run):
        with pytest.raises(InvalidStatusTransitionException):
            transition_run(approved_run, PayrollStatus.DRAFT)

    @pytest.mark.parametrize("status,allowed", [
        (PayrollStatus.DRAFT, True),
        (PayrollStatus.PROCESSING, True),
        (PayrollStatus.APPROVED, True),
        (PayrollStatus.PAID, False),
        (PayrollStatus.CANCELLED, False),
    ])
    def test_cancellation(self, status, allowed):
        assert can_transition(status, PayrollStatus.CANCELLED) is allowed


class TestDisbursable:
    """Only approved or paid runs produce bank files."""

    def test_draft_is_not_disbursable(self, january_run):
        assert not is_disbursable(january_run)
        with pytest.raises(RunNotDisbursableException):
            ensure_disbursable(january_run)

    def test_approved_is_disbursable(self, approved_run):
        assert ensure_disbursable(approved_run) is approved_run

    def test_period_label(self, january_run):
        assert format_period_label(january_run) == "JAN2025"
