"""
TL Payroll Core - Overtime Service

Labour Code (Law 4/2012) working time and premium pay.

Multipliers on the base hourly rate:
- Standard overtime: 1.5x
- Night shift: 1.25x
- Rest day / public holiday: 2.0x
- Night + overtime: 1.75x

Overtime is limited to 4 hours per day and 16 hours per week. Hours
beyond the caps are paid as recorded and flagged with an
OvertimeCapWarning for the caller to review.
"""

from collections import defaultdict
from datetime import date
from decimal import Decimal, localcontext
from math import ceil
from typing import Dict, List, Optional, Tuple, Union

from tl_payroll.services.statutory.constants import (
    OvertimeRules,
    ShiftType,
    TL_DEFAULT_RULES,
)
from tl_payroll.utils.error_handling import OvertimeCapWarning, ValidationException
from tl_payroll.utils.money import (
    MONEY_CONTEXT,
    MoneyInput,
    ZERO,
    divide_money,
    multiply_money,
    pro_rata,
    to_decimal,
    to_money,
)


def get_multiplier(
    shift_type: Union[ShiftType, str],
    rules: OvertimeRules = TL_DEFAULT_RULES.overtime,
) -> Decimal:
    try:
        return rules.multipliers[ShiftType(shift_type)]
    except (KeyError, ValueError):
        raise ValidationException(
            message=f"Unknown overtime shift type: {shift_type}",
            field="shift_type",
        )


def compute_overtime_pay(
    hours: MoneyInput,
    base_hourly_rate: MoneyInput,
    shift_type: Union[ShiftType, str] = ShiftType.STANDARD,
    rules: OvertimeRules = TL_DEFAULT_RULES.overtime,
) -> Decimal:
    """
    Premium pay for overtime hours.

    Computed as hours x rate x multiplier with a single rounding to cents.
    """
    worked = to_decimal(hours)
    if worked <= 0:
        return ZERO
    multiplier = get_multiplier(shift_type, rules)
    with localcontext(MONEY_CONTEXT):
        return to_money(worked * to_decimal(base_hourly_rate) * multiplier)


def premium_rate(
    base_hourly_rate: MoneyInput,
    shift_type: Union[ShiftType, str],
    rules: OvertimeRules = TL_DEFAULT_RULES.overtime,
) -> Decimal:
    """Hourly rate including the shift multiplier."""
    return multiply_money(base_hourly_rate, get_multiplier(shift_type, rules))


def monthly_working_hours(rules: OvertimeRules = TL_DEFAULT_RULES.overtime) -> Decimal:
    """44 hours a week over 52/12 weeks a month, about 190.67 hours."""
    with localcontext(MONEY_CONTEXT):
        return rules.standard_weekly_hours * rules.weeks_per_year / 12


def calculate_hourly_rate(
    monthly_salary: MoneyInput,
    rules: OvertimeRules = TL_DEFAULT_RULES.overtime,
) -> Decimal:
    """Hourly rate from a monthly salary."""
    return divide_money(monthly_salary, monthly_working_hours(rules))


def calculate_daily_rate(
    hourly_rate: MoneyInput,
    rules: OvertimeRules = TL_DEFAULT_RULES.overtime,
) -> Decimal:
    return multiply_money(hourly_rate, rules.standard_daily_hours)


# ===========================================
# CAP CHECKS
# ===========================================

def _iso_week(day: date) -> Tuple[int, int]:
    iso = day.isocalendar()
    return iso[0], iso[1]


def check_overtime_caps(
    total_hours: MoneyInput,
    period_start: date,
    period_end: date,
    daily_hours: Optional[Dict[date, Decimal]] = None,
    employee_id: Optional[str] = None,
    rules: OvertimeRules = TL_DEFAULT_RULES.overtime,
) -> List[OvertimeCapWarning]:
    """
    Flag overtime above the statutory daily and weekly caps.

    With a per-day breakdown, every day is checked against the daily cap
    and every ISO week against the weekly cap. Without one, the period
    total is checked against the weekly cap times the number of (part)
    weeks in the period.
    """
    warnings: List[OvertimeCapWarning] = []

    if daily_hours:
        weekly: Dict[Tuple[int, int], Decimal] = defaultdict(lambda: Decimal("0"))
        for day in sorted(daily_hours):
            hours = to_decimal(daily_hours[day])
            weekly[_iso_week(day)] += hours
            if hours > rules.max_daily_hours:
                warnings.append(OvertimeCapWarning(
                    employee_id=employee_id,
                    scope="daily",
                    period=day.isoformat(),
                    hours=hours,
                    cap=rules.max_daily_hours,
                ))
        for (year, week), hours in sorted(weekly.items()):
            if hours > rules.max_weekly_hours:
                warnings.append(OvertimeCapWarning(
                    employee_id=employee_id,
                    scope="weekly",
                    period=f"{year}-W{week:02d}",
                    hours=hours,
                    cap=rules.max_weekly_hours,
                ))
        return warnings

    hours = to_decimal(total_hours)
    days = (period_end - period_start).days + 1
    weeks = max(1, ceil(days / 7))
    cap = rules.max_weekly_hours * weeks
    if hours > cap:
        warnings.append(OvertimeCapWarning(
            employee_id=employee_id,
            scope="period",
            period=f"{period_start.isoformat()}/{period_end.isoformat()}",
            hours=hours,
            cap=cap,
        ))
    return warnings


# ===========================================
# ATTENDANCE DEDUCTIONS
# ===========================================

def compute_absence_deduction(hourly_rate: MoneyInput, absence_hours: MoneyInput) -> Decimal:
    """Unpaid absence: hourly rate x hours absent."""
    if to_decimal(absence_hours) <= 0:
        return ZERO
    return multiply_money(hourly_rate, absence_hours)


def compute_late_deduction(
    hourly_rate: MoneyInput,
    late_minutes: int,
    round_to_minutes: int = 15,
) -> Decimal:
    """Late arrival, rounded up to the next 15-minute increment."""
    if late_minutes <= 0:
        return ZERO
    rounded = ceil(late_minutes / round_to_minutes) * round_to_minutes
    with localcontext(MONEY_CONTEXT):
        return to_money(to_decimal(hourly_rate) * Decimal(rounded) / 60)


def split_monthly_salary_by_weeks(
    monthly_salary: MoneyInput,
    weekly_working_days: List[int],
) -> List[Decimal]:
    """
    Split a monthly salary into weekly sub-payroll amounts.

    Each week is pro-rated by its working days. The last week takes the
    remainder so the parts always add up to the monthly salary exactly.
    """
    total_days = sum(weekly_working_days)
    if not weekly_working_days or total_days <= 0:
        return [ZERO for _ in weekly_working_days]

    salary = to_money(monthly_salary)
    amounts: List[Decimal] = []
    allocated = ZERO
    for days in weekly_working_days[:-1]:
        amount = pro_rata(salary, days, total_days)
        amounts.append(amount)
        allocated += amount
    amounts.append(to_money(salary - allocated))
    return amounts
