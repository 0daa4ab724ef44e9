"""
TL Payroll Core - Payroll Run Lifecycle

draft -> processing -> approved -> paid, with cancelled reachable from
any state except paid. Runs are immutable; a transition returns a new
PayrollRun.
"""

import logging
from dataclasses import replace
from typing import Dict, FrozenSet

from tl_payroll.models.payroll import PayrollRun, PayrollStatus
from tl_payroll.utils.error_handling import (
    InvalidStatusTransitionException,
    RunNotDisbursableException,
)

logger = logging.getLogger(__name__)


ALLOWED_TRANSITIONS: Dict[PayrollStatus, FrozenSet[PayrollStatus]] = {
    PayrollStatus.DRAFT: frozenset({PayrollStatus.PROCESSING, PayrollStatus.CANCELLED}),
    PayrollStatus.PROCESSING: frozenset({PayrollStatus.APPROVED, PayrollStatus.CANCELLED}),
    PayrollStatus.APPROVED: frozenset({PayrollStatus.PAID, PayrollStatus.CANCELLED}),
    PayrollStatus.PAID: frozenset(),
    PayrollStatus.CANCELLED: frozenset(),
}

DISBURSABLE_STATUSES = frozenset({PayrollStatus.APPROVED, PayrollStatus.PAID})

MONTH_ABBREVIATIONS = (
    "JAN", "FEB", "MAR", "APR", "MAY", "JUN",
    "JUL", "AUG", "SEP", "OCT", "NOV", "DEC",
)


def can_transition(current: PayrollStatus, new_status: PayrollStatus) -> bool:
    return new_status in ALLOWED_TRANSITIONS[PayrollStatus(current)]


def transition_run(run: PayrollRun, new_status: PayrollStatus) -> PayrollRun:
    """
    Move a run to a new status.

    Raises:
        InvalidStatusTransitionException: for any backwards or skipped step
    """
    new_status = PayrollStatus(new_status)
    if not can_transition(run.status, new_status):
        raise InvalidStatusTransitionException(run.status.value, new_status.value)
    logger.info(f"Payroll run {run.run_id or '-'}: {run.status.value} -> {new_status.value}")
    return replace(run, status=new_status)


def is_disbursable(run: PayrollRun) -> bool:
    return run.status in DISBURSABLE_STATUSES


def ensure_disbursable(run: PayrollRun) -> PayrollRun:
    """Only approved or paid runs may produce bank files."""
    if not is_disbursable(run):
        raise RunNotDisbursableException(run.status.value)
    return run


def format_period_label(run: PayrollRun) -> str:
    """Period label such as JAN2025, taken from the period end."""
    end = run.period_end
    return f"{MONTH_ABBREVIATIONS[end.month - 1]}{end.year}"
