"""
TL Payroll Core - Statutory Rules Package

Timor-Leste payroll formulas as free functions over explicit rule tables.

Modules:
- constants: rule tables (WIT, INSS, overtime, leave, termination)
- wit_service: Wage Income Tax (10%, $500 resident threshold)
- inss_service: INSS contributions (4% employee / 6% employer)
- overtime_service: premium pay, hourly rates, caps, attendance deductions
- leave_service: sick pay and annual leave entitlement
- termination_service: severance and Subsidio Anual (13th month)
"""

from decimal import Decimal

from tl_payroll.models.payroll import Residency
from tl_payroll.services.statutory.constants import (
    INSS_EXCLUDED_EARNINGS,
    PAY_PERIODS_PER_MONTH,
    TL_DEFAULT_RULES,
    DeductionRules,
    INSSRules,
    LeaveRules,
    OvertimeRules,
    PayrollRuleSet,
    ShiftType,
    TerminationRules,
    WITRules,
)
from tl_payroll.services.statutory.inss_service import (
    SocialSecurityContribution,
    compute_contributive_base,
    compute_social_security,
    optional_contribution_base,
)
from tl_payroll.services.statutory.leave_service import (
    compute_annual_leave_entitlement,
    compute_sick_pay,
    compute_sick_pay_rate,
    sick_days_remaining,
)
from tl_payroll.services.statutory.overtime_service import (
    calculate_daily_rate,
    calculate_hourly_rate,
    check_overtime_caps,
    compute_absence_deduction,
    compute_late_deduction,
    compute_overtime_pay,
    premium_rate,
    split_monthly_salary_by_weeks,
)
from tl_payroll.services.statutory.termination_service import (
    SeveranceResult,
    compute_13th_month,
    compute_severance,
    months_worked_in_year,
    years_of_service,
)
from tl_payroll.services.statutory.wit_service import (
    compute_withholding_tax,
    is_below_threshold,
    periods_per_month,
)


# ===========================================
# CONVENIENCE FUNCTIONS
# ===========================================

def calculate_wit(monthly_income: Decimal, is_resident: bool = True) -> Decimal:
    """
    Calculate monthly Wage Income Tax.

    - Resident: 10% above $500
    - Non-resident: 10% of everything
    """
    residency = Residency.RESIDENT if is_resident else Residency.NON_RESIDENT
    return compute_withholding_tax(monthly_income, residency)


def calculate_inss(contributive_base: Decimal) -> SocialSecurityContribution:
    """
    Calculate INSS on a contributive base.

    Returns employee (4%), employer (6%) and total shares.
    """
    return compute_social_security(contributive_base)


def get_wit_band(monthly_income: Decimal, is_resident: bool = True) -> str:
    """
    Describe the WIT band for an income level.

    Returns:
        "Exempt" or "10%"
    """
    if is_resident and monthly_income <= TL_DEFAULT_RULES.wit.resident_monthly_threshold:
        return "Exempt"
    if monthly_income <= 0:
        return "Exempt"
    return "10%"


__all__ = [
    # Rule tables
    "PayrollRuleSet",
    "TL_DEFAULT_RULES",
    "WITRules",
    "INSSRules",
    "OvertimeRules",
    "LeaveRules",
    "TerminationRules",
    "DeductionRules",
    "ShiftType",
    "INSS_EXCLUDED_EARNINGS",
    "PAY_PERIODS_PER_MONTH",
    # WIT
    "compute_withholding_tax",
    "is_below_threshold",
    "periods_per_month",
    # INSS
    "SocialSecurityContribution",
    "compute_social_security",
    "compute_contributive_base",
    "optional_contribution_base",
    # Overtime / attendance
    "compute_overtime_pay",
    "premium_rate",
    "check_overtime_caps",
    "calculate_hourly_rate",
    "calculate_daily_rate",
    "compute_absence_deduction",
    "compute_late_deduction",
    "split_monthly_salary_by_weeks",
    # Leave
    "compute_sick_pay_rate",
    "compute_sick_pay",
    "sick_days_remaining",
    "compute_annual_leave_entitlement",
    # Termination
    "SeveranceResult",
    "compute_severance",
    "compute_13th_month",
    "months_worked_in_year",
    "years_of_service",
    # Convenience
    "calculate_wit",
    "calculate_inss",
    "get_wit_band",
]
