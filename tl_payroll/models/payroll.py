"""
TL Payroll Core - Payroll Domain Types

Inbound employee/attendance data, per-run payroll records and the
derived bank-transfer artifacts. These are plain dataclasses: the core
never persists them, the surrounding application does.
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from tl_payroll.utils.error_handling import InvalidDateRangeException
from tl_payroll.utils.money import ZERO, sum_money, to_money


# ===========================================
# ENUMS
# ===========================================

class Residency(str, Enum):
    """Tax residency status for Wage Income Tax"""
    RESIDENT = "resident"
    NON_RESIDENT = "non_resident"


class PayFrequency(str, Enum):
    """Payroll frequency"""
    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"
    MONTHLY = "monthly"


class PayrollStatus(str, Enum):
    """Payroll run lifecycle status"""
    DRAFT = "draft"
    PROCESSING = "processing"
    APPROVED = "approved"
    PAID = "paid"
    CANCELLED = "cancelled"


class EarningType(str, Enum):
    """Earning line types"""
    REGULAR = "regular"
    OVERTIME = "overtime"
    NIGHT_SHIFT = "night_shift"
    NIGHT_OVERTIME = "night_overtime"
    HOLIDAY = "holiday"
    REST_DAY = "rest_day"
    SICK_PAY = "sick_pay"
    BONUS = "bonus"
    COMMISSION = "commission"
    PER_DIEM = "per_diem"
    TRAVEL_ALLOWANCE = "travel_allowance"
    FOOD_ALLOWANCE = "food_allowance"
    TRANSPORT_ALLOWANCE = "transport_allowance"
    HOUSING_ALLOWANCE = "housing_allowance"
    GRATUITY = "gratuity"
    PROFIT_SHARING = "profit_sharing"
    REPRESENTATION_EXPENSE = "representation_expense"
    SUBSIDIO_ANUAL = "subsidio_anual"  # 13th month
    REIMBURSEMENT = "reimbursement"
    OTHER = "other"


class DeductionType(str, Enum):
    """Deduction line types"""
    INCOME_TAX = "income_tax"
    INSS_EMPLOYEE = "inss_employee"
    HEALTH_INSURANCE = "health_insurance"
    LIFE_INSURANCE = "life_insurance"
    LOAN_REPAYMENT = "loan_repayment"
    ADVANCE_REPAYMENT = "advance_repayment"
    COURT_ORDER = "court_order"
    ABSENCE = "absence"
    LATE_ARRIVAL = "late_arrival"
    OTHER = "other"


class EmployerTaxType(str, Enum):
    """Employer-side statutory costs"""
    INSS_EMPLOYER = "inss_employer"


class BankCode(str, Enum):
    """Banks that accept salary transfer files"""
    BNU = "BNU"
    MANDIRI = "MANDIRI"
    ANZ = "ANZ"
    BNCTL = "BNCTL"


BANK_NAMES: Dict[BankCode, str] = {
    BankCode.BNU: "Banco Nacional Ultramarino",
    BankCode.MANDIRI: "Bank Mandiri (Timor-Leste)",
    BankCode.ANZ: "ANZ Bank",
    BankCode.BNCTL: "Banco Nacional de Comércio de Timor-Leste",
}


# ===========================================
# INBOUND EMPLOYEE DATA
# ===========================================

@dataclass(frozen=True)
class BankDestination:
    """Employee bank details. Every field is optional on input."""
    bank_name: Optional[str] = None
    account_number: Optional[str] = None
    account_name: Optional[str] = None
    branch: Optional[str] = None

    @property
    def has_bank(self) -> bool:
        return bool(self.bank_name and self.bank_name.strip())

    @property
    def has_account(self) -> bool:
        return bool(self.account_number and self.account_number.strip())


@dataclass(frozen=True)
class AllocationTag:
    """Project / funding source used for donor reporting"""
    project_code: Optional[str] = None
    funding_source: Optional[str] = None


@dataclass(frozen=True)
class EmployeeCompensation:
    """Validated employee record as delivered by the HR layer"""
    employee_id: str
    full_name: str
    residency: Optional[Residency]
    employee_number: Optional[str] = None
    monthly_salary: Optional[Decimal] = None
    annual_salary: Optional[Decimal] = None
    is_hourly: bool = False
    hourly_rate: Optional[Decimal] = None
    food_allowance: Decimal = ZERO
    transport_allowance: Decimal = ZERO
    housing_allowance: Decimal = ZERO
    bank: BankDestination = field(default_factory=BankDestination)
    allocation: Optional[AllocationTag] = None
    hire_date: Optional[date] = None


@dataclass(frozen=True)
class AttendanceFacts:
    """Hours, absences and leave for one employee in one run period"""
    regular_hours: Decimal = ZERO
    overtime_hours: Decimal = ZERO
    night_shift_hours: Decimal = ZERO
    night_overtime_hours: Decimal = ZERO
    holiday_hours: Decimal = ZERO
    rest_day_hours: Decimal = ZERO
    # Per-day overtime, used for the daily/weekly cap checks
    daily_overtime_hours: Dict[date, Decimal] = field(default_factory=dict)
    absence_hours: Decimal = ZERO
    late_arrival_minutes: int = 0
    sick_days: int = 0
    ytd_sick_days_used: int = 0


@dataclass(frozen=True)
class PeriodAdjustments:
    """One-off earnings, voluntary deductions and year-to-date figures"""
    bonus: Decimal = ZERO
    commission: Decimal = ZERO
    per_diem: Decimal = ZERO
    travel_allowance: Decimal = ZERO
    gratuity: Decimal = ZERO
    profit_sharing: Decimal = ZERO
    representation_expense: Decimal = ZERO
    reimbursement: Decimal = ZERO
    other_earnings: Decimal = ZERO
    subsidio_anual: Decimal = ZERO

    loan_repayment: Decimal = ZERO
    advance_repayment: Decimal = ZERO
    health_insurance: Decimal = ZERO
    life_insurance: Decimal = ZERO
    court_order: Decimal = ZERO
    other_deductions: Decimal = ZERO

    ytd_gross_pay: Decimal = ZERO
    ytd_income_tax: Decimal = ZERO
    ytd_inss_employee: Decimal = ZERO


# ===========================================
# PAYROLL RUN
# ===========================================

@dataclass(frozen=True)
class PayrollRun:
    """Run descriptor. Stored totals are optional and only used for audit."""
    period_start: date
    period_end: date
    pay_date: date
    status: PayrollStatus = PayrollStatus.DRAFT
    pay_frequency: PayFrequency = PayFrequency.MONTHLY
    run_id: Optional[str] = None
    # Actual weekly/biweekly periods in the pay month, when known
    periods_in_month: Optional[int] = None

    total_gross_pay: Optional[Decimal] = None
    total_net_pay: Optional[Decimal] = None
    total_deductions: Optional[Decimal] = None
    total_employer_cost: Optional[Decimal] = None

    def __post_init__(self):
        if self.period_end < self.period_start:
            raise InvalidDateRangeException(self.period_start.isoformat(), self.period_end.isoformat())


# ===========================================
# PAYROLL RECORD
# ===========================================

@dataclass(frozen=True)
class PayrollEarning:
    type: EarningType
    description: str
    amount: Decimal
    hours: Optional[Decimal] = None
    rate: Optional[Decimal] = None
    is_taxable: bool = True
    is_contributive: bool = True


@dataclass(frozen=True)
class PayrollDeduction:
    type: DeductionType
    description: str
    amount: Decimal
    is_statutory: bool = False


@dataclass(frozen=True)
class EmployerTax:
    type: EmployerTaxType
    description: str
    amount: Decimal


@dataclass
class PayrollRecord:
    """One employee's payroll for one run"""
    employee_id: str
    employee_name: str
    employee_number: Optional[str]
    residency: Residency
    period_start: date
    period_end: date
    pay_date: date

    monthly_salary: Decimal
    hourly_rate: Decimal
    daily_rate: Decimal

    earnings: List[PayrollEarning]
    deductions: List[PayrollDeduction]
    employer_taxes: List[EmployerTax]

    total_gross_pay: Decimal
    taxable_income: Decimal
    contributive_base: Decimal
    total_deductions: Decimal
    net_pay: Decimal
    total_employer_cost: Decimal

    ytd_gross_pay: Decimal = ZERO
    ytd_income_tax: Decimal = ZERO
    ytd_inss_employee: Decimal = ZERO

    allocation: Optional[AllocationTag] = None
    warnings: List[Any] = field(default_factory=list)

    def deduction_amount(self, deduction_type: DeductionType) -> Decimal:
        return sum_money(d.amount for d in self.deductions if d.type == deduction_type)

    def earning_amount(self, earning_type: EarningType) -> Decimal:
        return sum_money(e.amount for e in self.earnings if e.type == earning_type)

    def employer_tax_amount(self, tax_type: EmployerTaxType) -> Decimal:
        return sum_money(t.amount for t in self.employer_taxes if t.type == tax_type)

    @property
    def income_tax(self) -> Decimal:
        return self.deduction_amount(DeductionType.INCOME_TAX)

    @property
    def inss_employee(self) -> Decimal:
        return self.deduction_amount(DeductionType.INSS_EMPLOYEE)

    @property
    def inss_employer(self) -> Decimal:
        return self.employer_tax_amount(EmployerTaxType.INSS_EMPLOYER)


# ===========================================
# BANK TRANSFERS
# ===========================================

@dataclass(frozen=True)
class Originator:
    """Paying company as printed in bank file headers"""
    company_name: str
    debit_account: str


@dataclass(frozen=True)
class BankTransferLine:
    """One salary transfer. The amount is held in whole cents."""
    account_number: str
    account_name: str
    amount: Decimal
    reference: str
    employee_id: str

    def __post_init__(self):
        object.__setattr__(self, "amount", to_money(self.amount))


@dataclass(frozen=True)
class BankTransferSummary:
    """
    All transfers to one bank.

    The summary is immutable and its count and total are read from the
    lines, so the control totals in a bank file always match the lines
    printed above them.
    """
    bank_code: BankCode
    bank_name: str
    lines: Tuple[BankTransferLine, ...]
    value_date: date
    payroll_period: str

    def __post_init__(self):
        object.__setattr__(self, "lines", tuple(self.lines))

    @property
    def total_amount(self) -> Decimal:
        return sum_money(line.amount for line in self.lines)

    @property
    def transaction_count(self) -> int:
        return len(self.lines)


@dataclass
class BankFileResult:
    content: str
    file_name: str
    mime_type: str
    summary: BankTransferSummary
    file_hash: str
