"""
TL Payroll Core - Statutory Rule Tables

Timor-Leste payroll constants, bundled into swappable rule tables.

Sources:
- Wage Income Tax: Decree-Law 8/2008 (10% flat, $500/month resident threshold)
- INSS social security: Decree-Law 19/2016 (4% employee, 6% employer)
- Overtime, leave and termination: Labour Code, Law 4/2012

Each table is a frozen dataclass. Formulas in this package take the table
as an explicit argument and default to TL_DEFAULT_RULES, so next year's
rates are a new PayrollRuleSet rather than an edit at every call site.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Dict, FrozenSet, Tuple

from tl_payroll.models.payroll import EarningType, PayFrequency, Residency


# ===========================================
# WAGE INCOME TAX (WIT)
# ===========================================

@dataclass(frozen=True)
class WITRules:
    rate: Decimal = Decimal("0.10")
    resident_monthly_threshold: Decimal = Decimal("500")
    non_resident_threshold: Decimal = Decimal("0")

    def monthly_threshold(self, residency: Residency) -> Decimal:
        if residency == Residency.RESIDENT:
            return self.resident_monthly_threshold
        return self.non_resident_threshold


# ===========================================
# INSS SOCIAL SECURITY
# ===========================================

# Earnings kept out of the contributive base (published exclusion table)
INSS_EXCLUDED_EARNINGS: FrozenSet[EarningType] = frozenset({
    EarningType.PER_DIEM,
    EarningType.TRAVEL_ALLOWANCE,
    EarningType.FOOD_ALLOWANCE,
    EarningType.TRANSPORT_ALLOWANCE,
    EarningType.HOUSING_ALLOWANCE,
    EarningType.OVERTIME,
    EarningType.BONUS,
    EarningType.COMMISSION,
    EarningType.GRATUITY,
    EarningType.PROFIT_SHARING,
    EarningType.REIMBURSEMENT,
    EarningType.REPRESENTATION_EXPENSE,
})

# Premium pay and extraordinary allowances that are also not contributive
INSS_NON_BASE_EARNINGS: FrozenSet[EarningType] = frozenset({
    EarningType.NIGHT_OVERTIME,
    EarningType.HOLIDAY,
    EarningType.REST_DAY,
    EarningType.OTHER,
})

SOCIAL_PENSION_AMOUNT = Decimal("60")

# Voluntary-registration bands, multiples of the Social Pension
OPTIONAL_INSS_MULTIPLIERS: Tuple[Decimal, ...] = tuple(
    Decimal(m) for m in (
        "2", "2.5", "3", "4", "5", "6", "7", "8", "9", "10",
        "12", "14", "16", "18", "20", "25", "30", "40", "50", "100", "200",
    )
)


@dataclass(frozen=True)
class INSSRules:
    employee_rate: Decimal = Decimal("0.04")
    employer_rate: Decimal = Decimal("0.06")
    excluded_earnings: FrozenSet[EarningType] = INSS_EXCLUDED_EARNINGS | INSS_NON_BASE_EARNINGS
    social_pension: Decimal = SOCIAL_PENSION_AMOUNT
    optional_multipliers: Tuple[Decimal, ...] = OPTIONAL_INSS_MULTIPLIERS

    @property
    def total_rate(self) -> Decimal:
        return self.employee_rate + self.employer_rate

    def is_contributive(self, earning_type: EarningType) -> bool:
        return earning_type not in self.excluded_earnings


# ===========================================
# OVERTIME
# ===========================================

class ShiftType(str, Enum):
    """Overtime shift categories"""
    STANDARD = "standard"
    NIGHT_SHIFT = "night_shift"
    REST_DAY = "rest_day"
    PUBLIC_HOLIDAY = "public_holiday"
    NIGHT_OVERTIME = "night_overtime"


@dataclass(frozen=True)
class OvertimeRules:
    multipliers: Dict[str, Decimal] = field(default_factory=lambda: {
        ShiftType.STANDARD: Decimal("1.5"),
        ShiftType.NIGHT_SHIFT: Decimal("1.25"),
        ShiftType.REST_DAY: Decimal("2.0"),
        ShiftType.PUBLIC_HOLIDAY: Decimal("2.0"),
        ShiftType.NIGHT_OVERTIME: Decimal("1.75"),
    })
    max_daily_hours: Decimal = Decimal("4")
    max_weekly_hours: Decimal = Decimal("16")
    standard_weekly_hours: Decimal = Decimal("44")
    standard_daily_hours: Decimal = Decimal("8")
    weeks_per_year: Decimal = Decimal("52")


# ===========================================
# LEAVE
# ===========================================

@dataclass(frozen=True)
class LeaveRules:
    sick_days_per_year: int = 12
    sick_full_pay_days: int = 6
    sick_half_pay_days: int = 6
    sick_half_pay_rate: Decimal = Decimal("0.5")
    sick_warning_threshold: int = 10
    # (minimum years of service, days) from the highest tier down
    annual_leave_tiers: Tuple[Tuple[int, int], ...] = ((9, 22), (6, 18), (3, 15), (0, 12))


# ===========================================
# TERMINATION / SUBSIDIO ANUAL
# ===========================================

@dataclass(frozen=True)
class TerminationRules:
    severance_days_per_year: int = 30
    minimum_service_months: int = 3
    days_per_month: int = 30
    months_per_year: int = 12


# ===========================================
# PAY PERIODS
# ===========================================

PAY_PERIODS_PER_MONTH: Dict[PayFrequency, Decimal] = {
    PayFrequency.WEEKLY: Decimal("4.33"),
    PayFrequency.BIWEEKLY: Decimal("2.17"),
    PayFrequency.MONTHLY: Decimal("1"),
}


@dataclass(frozen=True)
class DeductionRules:
    # Voluntary deductions may not exceed this share of gross pay
    max_voluntary_rate: Decimal = Decimal("0.30")


@dataclass(frozen=True)
class PayrollRuleSet:
    """Every statutory table used by one payroll calculation"""
    name: str = "TL-2026"
    wit: WITRules = field(default_factory=WITRules)
    inss: INSSRules = field(default_factory=INSSRules)
    overtime: OvertimeRules = field(default_factory=OvertimeRules)
    leave: LeaveRules = field(default_factory=LeaveRules)
    termination: TerminationRules = field(default_factory=TerminationRules)
    deductions: DeductionRules = field(default_factory=DeductionRules)


TL_DEFAULT_RULES = PayrollRuleSet()
