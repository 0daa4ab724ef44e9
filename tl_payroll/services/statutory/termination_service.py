"""
TL Payroll Core - Termination & Subsidio Anual Service

Severance (Labour Code, Law 4/2012):
- 30 days' pay for every full year of service
- Only applies once 3 months of service are completed

Subsidio Anual (13th month):
- One month's salary, pro-rated by months worked in the year
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal, ROUND_FLOOR, localcontext
from typing import Any, Dict

from tl_payroll.services.statutory.constants import TerminationRules, TL_DEFAULT_RULES
from tl_payroll.utils.money import MONEY_CONTEXT, MoneyInput, ZERO, pro_rata, to_decimal


@dataclass(frozen=True)
class SeveranceResult:
    eligible: bool
    full_years: int
    days_of_pay: int
    amount: Decimal

    def to_dict(self) -> Dict[str, Any]:
        return {
            "eligible": self.eligible,
            "full_years": self.full_years,
            "days_of_pay": self.days_of_pay,
            "amount": str(self.amount),
        }


def compute_severance(
    years_of_service: MoneyInput,
    monthly_salary: MoneyInput,
    rules: TerminationRules = TL_DEFAULT_RULES.termination,
) -> SeveranceResult:
    """
    Severance pay on termination.

    Args:
        years_of_service: Length of service in years (fractions allowed)
        monthly_salary: Current monthly salary

    Returns:
        SeveranceResult. Below the minimum service the result is not
        eligible and the amount is zero; between 3 and 12 months it is
        eligible but no full year has accrued yet.
    """
    years = to_decimal(years_of_service)
    with localcontext(MONEY_CONTEXT):
        months = years * rules.months_per_year
    if years <= 0 or months < rules.minimum_service_months:
        return SeveranceResult(eligible=False, full_years=0, days_of_pay=0, amount=ZERO)

    full_years = int(years.to_integral_value(rounding=ROUND_FLOOR))
    days_of_pay = rules.severance_days_per_year * full_years
    amount = pro_rata(monthly_salary, days_of_pay, rules.days_per_month)
    return SeveranceResult(
        eligible=True,
        full_years=full_years,
        days_of_pay=days_of_pay,
        amount=amount,
    )


def compute_13th_month(
    months_worked_in_year: MoneyInput,
    monthly_salary: MoneyInput,
    rules: TerminationRules = TL_DEFAULT_RULES.termination,
) -> Decimal:
    """Subsidio Anual: monthly salary x min(months, 12) / 12."""
    months = max(Decimal("0"), min(to_decimal(months_worked_in_year), Decimal(rules.months_per_year)))
    return pro_rata(monthly_salary, months, rules.months_per_year)


def months_worked_in_year(hire_date: date, as_of: date) -> int:
    """
    Months worked in the calendar year of `as_of`, counting the hire month.

    The reference date is explicit so results never depend on the clock.
    """
    if hire_date.year > as_of.year:
        return 0
    if hire_date.year == as_of.year:
        return max(0, as_of.month - hire_date.month + 1)
    return 12


def years_of_service(hire_date: date, as_of: date) -> Decimal:
    """Completed service in years, with completed months as a fraction."""
    months = (as_of.year - hire_date.year) * 12 + (as_of.month - hire_date.month)
    if as_of.day < hire_date.day:
        months -= 1
    months = max(0, months)
    with localcontext(MONEY_CONTEXT):
        return Decimal(months) / 12
