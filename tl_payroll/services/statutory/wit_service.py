"""
TL Payroll Core - Wage Income Tax (WIT) Service

Timor-Leste withholding tax on employment income (Decree-Law 8/2008).

- Flat 10% rate
- Residents: taxed only on the portion above $500 per month
- Non-residents: taxed from the first dollar
- Weekly and biweekly runs scale the monthly threshold to the pay period
"""

from decimal import Decimal
from typing import Optional

from tl_payroll.models.payroll import PayFrequency, Residency
from tl_payroll.services.statutory.constants import (
    PAY_PERIODS_PER_MONTH,
    TL_DEFAULT_RULES,
    WITRules,
)
from tl_payroll.utils.money import (
    MoneyInput,
    ZERO,
    apply_rate,
    divide_money,
    max_money,
    subtract_money,
    to_decimal,
)


def periods_per_month(
    pay_frequency: PayFrequency,
    periods_in_month: Optional[int] = None,
) -> Decimal:
    """
    Number of pay periods in a month for a frequency.

    For weekly and biweekly runs the actual number of periods in the pay
    month is preferred when known, so 4- and 5-week months withhold
    correctly.
    """
    if pay_frequency in (PayFrequency.WEEKLY, PayFrequency.BIWEEKLY) and periods_in_month:
        return Decimal(periods_in_month)
    return PAY_PERIODS_PER_MONTH[pay_frequency]


def period_threshold(
    residency: Residency,
    periods: MoneyInput = 1,
    rules: WITRules = TL_DEFAULT_RULES.wit,
) -> Decimal:
    """Tax-free amount for one pay period."""
    return divide_money(rules.monthly_threshold(residency), periods)


def compute_withholding_tax(
    gross_income: MoneyInput,
    residency: Residency,
    rules: WITRules = TL_DEFAULT_RULES.wit,
    periods: MoneyInput = 1,
) -> Decimal:
    """
    Calculate WIT for one pay period.

    Args:
        gross_income: Taxable income for the period
        residency: Tax residency of the employee
        rules: WIT rate table
        periods: Pay periods per month (1 for monthly payroll)

    Returns:
        Tax amount rounded to cents. Zero at or below the threshold.
    """
    income = to_decimal(gross_income)
    if income <= 0:
        return ZERO

    threshold = period_threshold(residency, periods, rules)
    taxable = max_money(ZERO, subtract_money(income, threshold))
    return apply_rate(taxable, rules.rate)


def is_below_threshold(
    gross_income: MoneyInput,
    residency: Residency,
    rules: WITRules = TL_DEFAULT_RULES.wit,
    periods: MoneyInput = 1,
) -> bool:
    if residency != Residency.RESIDENT:
        return False
    return to_decimal(gross_income) < period_threshold(residency, periods, rules)
