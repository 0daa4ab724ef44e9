"""
TL Payroll Core - Leave Service

Labour Code (Law 4/2012) sick leave pay and annual leave entitlement.

Sick leave: 12 paid days a year, the first 6 at full pay and the next
6 at half pay. Days beyond 12 are unpaid.

Annual leave: 12 days, rising to 15 after 3 years, 18 after 6 years and
22 after 9 years of service.
"""

from decimal import Decimal

from tl_payroll.services.statutory.constants import LeaveRules, TL_DEFAULT_RULES
from tl_payroll.utils.money import MoneyInput, ZERO, apply_rate, sum_money, to_decimal


def compute_sick_pay_rate(
    day_number: int,
    days_already_used: int,
    rules: LeaveRules = TL_DEFAULT_RULES.leave,
) -> Decimal:
    """
    Pay rate for one sick day.

    Args:
        day_number: Position of this day in the annual entitlement (1-based)
        days_already_used: Sick days already taken this year before it

    Returns:
        1.0, 0.5 or 0
    """
    if day_number > rules.sick_days_per_year:
        return Decimal("0")
    if days_already_used < rules.sick_full_pay_days:
        return Decimal("1.0")
    if days_already_used < rules.sick_full_pay_days + rules.sick_half_pay_days:
        return rules.sick_half_pay_rate
    return Decimal("0")


def compute_sick_pay(
    daily_rate: MoneyInput,
    sick_days: int,
    ytd_days_used: int = 0,
    rules: LeaveRules = TL_DEFAULT_RULES.leave,
) -> Decimal:
    """Sick pay for the days taken this period, each day rounded to cents."""
    amounts = []
    for i in range(max(0, sick_days)):
        rate = compute_sick_pay_rate(ytd_days_used + i + 1, ytd_days_used + i, rules)
        if rate > 0:
            amounts.append(apply_rate(daily_rate, rate))
    return sum_money(amounts) if amounts else ZERO


def sick_days_remaining(ytd_days_used: int, rules: LeaveRules = TL_DEFAULT_RULES.leave) -> int:
    return max(0, rules.sick_days_per_year - ytd_days_used)


def compute_annual_leave_entitlement(
    years_of_service: MoneyInput,
    rules: LeaveRules = TL_DEFAULT_RULES.leave,
) -> int:
    """Annual leave days for a length of service."""
    years = to_decimal(years_of_service)
    for minimum_years, days in rules.annual_leave_tiers:
        if years >= minimum_years:
            return days
    return rules.annual_leave_tiers[-1][1]
