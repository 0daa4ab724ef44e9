"""
TL Payroll Core - INSS Social Security Service

Timor-Leste social security contributions (Decree-Law 19/2016).

Mandatory regime:
- Employee: 4% of the contributive base (deducted from pay)
- Employer: 6% of the contributive base (employer cost)

Contributive base = gross pay less the published exclusion table
(overtime, bonus, commission, per diem, food/transport/housing
allowances, gratuities, profit sharing, reimbursements, representation
expenses). Holiday, rest-day and night-overtime premiums count as
overtime and are excluded too.

Optional regime: voluntary registrants contribute on the first Social
Pension band at or above their declared income.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, Iterable

from tl_payroll.models.payroll import PayrollEarning
from tl_payroll.services.statutory.constants import INSSRules, TL_DEFAULT_RULES
from tl_payroll.utils.money import (
    MoneyInput,
    ZERO,
    add_money,
    apply_rate,
    multiply_money,
    sum_money,
    to_decimal,
    to_money,
)


@dataclass(frozen=True)
class SocialSecurityContribution:
    contributive_base: Decimal
    employee: Decimal
    employer: Decimal
    total: Decimal

    def to_dict(self) -> Dict[str, Any]:
        return {
            "contributive_base": str(self.contributive_base),
            "employee": str(self.employee),
            "employer": str(self.employer),
            "total": str(self.total),
        }


def compute_social_security(
    contributive_base: MoneyInput,
    rules: INSSRules = TL_DEFAULT_RULES.inss,
) -> SocialSecurityContribution:
    """
    Split a contributive base into employee and employer shares.

    Each share is rounded separately; the total is their sum.
    """
    base = to_money(contributive_base)
    if base <= 0:
        return SocialSecurityContribution(base, ZERO, ZERO, ZERO)

    employee = apply_rate(base, rules.employee_rate)
    employer = apply_rate(base, rules.employer_rate)
    return SocialSecurityContribution(
        contributive_base=base,
        employee=employee,
        employer=employer,
        total=add_money(employee, employer),
    )


def compute_contributive_base(
    earnings: Iterable[PayrollEarning],
    rules: INSSRules = TL_DEFAULT_RULES.inss,
) -> Decimal:
    """Sum of earnings whose type is not on the exclusion table."""
    return sum_money(e.amount for e in earnings if rules.is_contributive(e.type))


def optional_contribution_base(
    declared_income: MoneyInput,
    rules: INSSRules = TL_DEFAULT_RULES.inss,
) -> Decimal:
    """
    Contribution base for voluntary INSS registration.

    Bands are multiples of the Social Pension ($60). The base is the first
    band at or above the declared income; income above the top band uses
    the top band.
    """
    income = to_decimal(declared_income)
    if income <= 0:
        return ZERO

    bands = [multiply_money(rules.social_pension, m) for m in rules.optional_multipliers]
    for band in bands:
        if band >= income:
            return band
    return bands[-1]
