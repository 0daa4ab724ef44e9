"""
TL Payroll Core - Payroll Schemas

Pydantic schemas for payroll requests and responses.
Request schemas convert themselves into the core's domain dataclasses;
response schemas read the dataclasses back through from_attributes.
"""

from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from tl_payroll.models.payroll import (
    AllocationTag,
    AttendanceFacts,
    BankCode,
    BankDestination,
    DeductionType,
    EarningType,
    EmployeeCompensation,
    EmployerTaxType,
    Originator,
    PayFrequency,
    PayrollRun,
    PayrollStatus,
    PeriodAdjustments,
    Residency,
)
from tl_payroll.services.payroll_record_builder import PayrollInput
from tl_payroll.services.statutory import ShiftType
from tl_payroll.utils.error_handling import WarningCode


# ===========================================
# EMPLOYEE INPUT
# ===========================================

class BankDestinationSchema(BaseModel):
    """Employee bank details; every field optional"""
    model_config = ConfigDict(from_attributes=True)

    bank_name: Optional[str] = Field(None, max_length=200)
    account_number: Optional[str] = Field(None, max_length=50)
    account_name: Optional[str] = Field(None, max_length=200)
    branch: Optional[str] = Field(None, max_length=200)

    def to_domain(self) -> BankDestination:
        return BankDestination(**self.model_dump())


class AllocationTagSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    project_code: Optional[str] = Field(None, max_length=50)
    funding_source: Optional[str] = Field(None, max_length=100)

    def to_domain(self) -> AllocationTag:
        return AllocationTag(**self.model_dump())


class EmployeeSchema(BaseModel):
    """
    Employee compensation as sent by the HR layer.

    Salary fields are validated by the payroll builder, so a run with one
    bad employee still returns the others.
    """
    employee_id: str = Field(..., min_length=1, max_length=50)
    employee_number: Optional[str] = Field(None, max_length=50)
    full_name: str = Field(..., min_length=1, max_length=200)
    residency: Optional[Residency] = None

    monthly_salary: Optional[Decimal] = None
    annual_salary: Optional[Decimal] = None
    is_hourly: bool = False
    hourly_rate: Optional[Decimal] = None

    food_allowance: Decimal = Field(default=Decimal("0"), ge=0)
    transport_allowance: Decimal = Field(default=Decimal("0"), ge=0)
    housing_allowance: Decimal = Field(default=Decimal("0"), ge=0)

    bank: BankDestinationSchema = Field(default_factory=BankDestinationSchema)
    allocation: Optional[AllocationTagSchema] = None
    hire_date: Optional[date] = None

    def to_domain(self) -> EmployeeCompensation:
        return EmployeeCompensation(
            employee_id=self.employee_id,
            employee_number=self.employee_number,
            full_name=self.full_name,
            residency=self.residency,
            monthly_salary=self.monthly_salary,
            annual_salary=self.annual_salary,
            is_hourly=self.is_hourly,
            hourly_rate=self.hourly_rate,
            food_allowance=self.food_allowance,
            transport_allowance=self.transport_allowance,
            housing_allowance=self.housing_allowance,
            bank=self.bank.to_domain(),
            allocation=self.allocation.to_domain() if self.allocation else None,
            hire_date=self.hire_date,
        )


class AttendanceSchema(BaseModel):
    regular_hours: Decimal = Field(default=Decimal("0"), ge=0)
    overtime_hours: Decimal = Field(default=Decimal("0"), ge=0)
    night_shift_hours: Decimal = Field(default=Decimal("0"), ge=0)
    night_overtime_hours: Decimal = Field(default=Decimal("0"), ge=0)
    holiday_hours: Decimal = Field(default=Decimal("0"), ge=0)
    rest_day_hours: Decimal = Field(default=Decimal("0"), ge=0)
    daily_overtime_hours: Dict[date, Decimal] = Field(default_factory=dict)
    absence_hours: Decimal = Field(default=Decimal("0"), ge=0)
    late_arrival_minutes: int = Field(default=0, ge=0)
    sick_days: int = Field(default=0, ge=0)
    ytd_sick_days_used: int = Field(default=0, ge=0)

    def to_domain(self) -> AttendanceFacts:
        return AttendanceFacts(**self.model_dump())


class AdjustmentsSchema(BaseModel):
    bonus: Decimal = Field(default=Decimal("0"), ge=0)
    commission: Decimal = Field(default=Decimal("0"), ge=0)
    per_diem: Decimal = Field(default=Decimal("0"), ge=0)
    travel_allowance: Decimal = Field(default=Decimal("0"), ge=0)
    gratuity: Decimal = Field(default=Decimal("0"), ge=0)
    profit_sharing: Decimal = Field(default=Decimal("0"), ge=0)
    representation_expense: Decimal = Field(default=Decimal("0"), ge=0)
    reimbursement: Decimal = Field(default=Decimal("0"), ge=0)
    other_earnings: Decimal = Field(default=Decimal("0"), ge=0)
    subsidio_anual: Decimal = Field(default=Decimal("0"), ge=0)

    loan_repayment: Decimal = Field(default=Decimal("0"), ge=0)
    advance_repayment: Decimal = Field(default=Decimal("0"), ge=0)
    health_insurance: Decimal = Field(default=Decimal("0"), ge=0)
    life_insurance: Decimal = Field(default=Decimal("0"), ge=0)
    court_order: Decimal = Field(default=Decimal("0"), ge=0)
    other_deductions: Decimal = Field(default=Decimal("0"), ge=0)

    ytd_gross_pay: Decimal = Field(default=Decimal("0"), ge=0)
    ytd_income_tax: Decimal = Field(default=Decimal("0"), ge=0)
    ytd_inss_employee: Decimal = Field(default=Decimal("0"), ge=0)

    def to_domain(self) -> PeriodAdjustments:
        return PeriodAdjustments(**self.model_dump())


class PayrollEntrySchema(BaseModel):
    """One employee's inputs for a run"""
    employee: EmployeeSchema
    attendance: AttendanceSchema = Field(default_factory=AttendanceSchema)
    adjustments: AdjustmentsSchema = Field(default_factory=AdjustmentsSchema)

    def to_domain(self) -> PayrollInput:
        return PayrollInput(
            employee=self.employee.to_domain(),
            attendance=self.attendance.to_domain(),
            adjustments=self.adjustments.to_domain(),
        )


class PayrollRunSchema(BaseModel):
    run_id: Optional[str] = Field(None, max_length=50)
    period_start: date
    period_end: date
    pay_date: date
    status: PayrollStatus = PayrollStatus.DRAFT
    pay_frequency: PayFrequency = PayFrequency.MONTHLY
    periods_in_month: Optional[int] = Field(None, ge=1, le=6)

    total_gross_pay: Optional[Decimal] = None
    total_net_pay: Optional[Decimal] = None
    total_deductions: Optional[Decimal] = None
    total_employer_cost: Optional[Decimal] = None

    def to_domain(self) -> PayrollRun:
        return PayrollRun(**self.model_dump())


class OriginatorSchema(BaseModel):
    company_name: str = Field(..., min_length=1, max_length=200)
    debit_account: str = Field(..., min_length=1, max_length=50)

    def to_domain(self) -> Originator:
        return Originator(company_name=self.company_name, debit_account=self.debit_account)


# ===========================================
# STATUTORY CALCULATORS
# ===========================================

class WITCalculationRequest(BaseModel):
    """Schema for WIT calculation request."""
    gross_income: Decimal = Field(..., ge=0)
    residency: Residency = Residency.RESIDENT
    pay_frequency: PayFrequency = PayFrequency.MONTHLY
    periods_in_month: Optional[int] = Field(None, ge=1, le=6)


class WITCalculationResponse(BaseModel):
    """Schema for WIT calculation response."""
    gross_income: Decimal
    residency: Residency
    threshold: Decimal
    taxable_amount: Decimal
    tax_rate: Decimal
    withholding_tax: Decimal
    net_income: Decimal


class INSSCalculationRequest(BaseModel):
    """Either a contributive base or itemised earnings."""
    contributive_base: Optional[Decimal] = Field(None, ge=0)
    earnings: Optional[Dict[EarningType, Decimal]] = None
    declared_income: Optional[Decimal] = Field(None, ge=0, description="Voluntary registration income")

    @model_validator(mode="after")
    def require_input(self):
        if self.contributive_base is None and not self.earnings and self.declared_income is None:
            raise ValueError("Provide contributive_base, earnings or declared_income")
        return self


class INSSCalculationResponse(BaseModel):
    contributive_base: Decimal
    employee: Decimal
    employer: Decimal
    total: Decimal
    excluded_earnings: Decimal = Decimal("0")
    optional_regime: bool = False


class OvertimeCalculationRequest(BaseModel):
    hours: Decimal = Field(..., ge=0)
    shift_type: ShiftType = ShiftType.STANDARD
    base_hourly_rate: Optional[Decimal] = Field(None, gt=0)
    monthly_salary: Optional[Decimal] = Field(None, gt=0)

    @model_validator(mode="after")
    def require_rate(self):
        if self.base_hourly_rate is None and self.monthly_salary is None:
            raise ValueError("Provide base_hourly_rate or monthly_salary")
        return self


class OvertimeCalculationResponse(BaseModel):
    """
    Premium pay for a block of hours.

    The cap flags compare the submitted hours with the limit for one day
    and for one week. Record building checks caps per day and ISO week.
    """
    hours: Decimal
    shift_type: ShiftType
    base_hourly_rate: Decimal
    multiplier: Decimal
    premium_rate: Decimal
    overtime_pay: Decimal
    exceeds_daily_cap: bool
    exceeds_weekly_cap: bool


class LeaveEntitlementRequest(BaseModel):
    years_of_service: Optional[Decimal] = Field(None, ge=0)
    hire_date: Optional[date] = None
    as_of: Optional[date] = None
    ytd_sick_days_used: int = Field(default=0, ge=0)

    @model_validator(mode="after")
    def require_service(self):
        if self.years_of_service is None and (self.hire_date is None or self.as_of is None):
            raise ValueError("Provide years_of_service, or hire_date and as_of")
        return self


class LeaveEntitlementResponse(BaseModel):
    years_of_service: Decimal
    annual_leave_days: int
    sick_days_per_year: int
    sick_days_remaining: int
    next_sick_day_rate: Decimal


class SeveranceRequest(BaseModel):
    years_of_service: Decimal = Field(..., ge=0)
    monthly_salary: Decimal = Field(..., gt=0)


class SeveranceResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    eligible: bool
    full_years: int
    days_of_pay: int
    amount: Decimal


class SubsidioAnualRequest(BaseModel):
    monthly_salary: Decimal = Field(..., gt=0)
    months_worked: Optional[Decimal] = Field(None, ge=0)
    hire_date: Optional[date] = None
    as_of: Optional[date] = None

    @model_validator(mode="after")
    def require_months(self):
        if self.months_worked is None and (self.hire_date is None or self.as_of is None):
            raise ValueError("Provide months_worked, or hire_date and as_of")
        return self


class SubsidioAnualResponse(BaseModel):
    monthly_salary: Decimal
    months_worked: Decimal
    amount: Decimal


# ===========================================
# PAYROLL RECORDS
# ===========================================

class WarningResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    code: WarningCode
    message: str
    employee_id: Optional[str] = None
    details: Dict[str, Any] = Field(default_factory=dict)


class EarningResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    type: EarningType
    description: str
    amount: Decimal
    hours: Optional[Decimal] = None
    rate: Optional[Decimal] = None
    is_taxable: bool
    is_contributive: bool


class DeductionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    type: DeductionType
    description: str
    amount: Decimal
    is_statutory: bool


class EmployerTaxResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    type: EmployerTaxType
    description: str
    amount: Decimal


class PayrollRecordResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    employee_id: str
    employee_name: str
    employee_number: Optional[str] = None
    residency: Residency
    period_start: date
    period_end: date
    pay_date: date

    monthly_salary: Decimal
    hourly_rate: Decimal
    daily_rate: Decimal

    earnings: List[EarningResponse]
    deductions: List[DeductionResponse]
    employer_taxes: List[EmployerTaxResponse]

    total_gross_pay: Decimal
    taxable_income: Decimal
    contributive_base: Decimal
    total_deductions: Decimal
    net_pay: Decimal
    total_employer_cost: Decimal

    ytd_gross_pay: Decimal
    ytd_income_tax: Decimal
    ytd_inss_employee: Decimal

    allocation: Optional[AllocationTagSchema] = None
    warnings: List[WarningResponse] = Field(default_factory=list)


class PayrollRecordRequest(PayrollEntrySchema):
    run: PayrollRunSchema


class FailureResponse(BaseModel):
    employee_id: Optional[str] = None
    code: str
    message: str
    field: Optional[str] = None


class RunTotalsResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    employee_count: int
    total_gross_pay: Decimal
    total_net_pay: Decimal
    total_deductions: Decimal
    total_employer_cost: Decimal
    total_income_tax: Decimal
    total_inss_employee: Decimal
    total_inss_employer: Decimal
    deductions_by_type: Dict[DeductionType, Decimal]
    employer_taxes_by_type: Dict[EmployerTaxType, Decimal]


class AllocationRowResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    project_code: str
    funding_source: str
    employee_count: int
    total_gross_pay: Decimal
    total_net_pay: Decimal
    total_income_tax: Decimal
    total_inss_employee: Decimal
    total_inss_employer: Decimal
    total_employer_cost: Decimal


class PayrollRunRequest(BaseModel):
    run: PayrollRunSchema
    entries: List[PayrollEntrySchema] = Field(..., min_length=1)


class PayrollRunResponse(BaseModel):
    records: List[PayrollRecordResponse]
    totals: RunTotalsResponse
    allocation: List[AllocationRowResponse]
    failures: List[FailureResponse]
    consistency_warnings: List[WarningResponse]


# ===========================================
# BANK FILES
# ===========================================

class BankFileRequest(PayrollRunRequest):
    originator: Optional[OriginatorSchema] = None
    value_date: Optional[date] = None


class BankFileResponse(BaseModel):
    bank_code: BankCode
    bank_name: str
    file_name: str
    mime_type: str
    transaction_count: int
    total_amount: Decimal
    file_hash: str
    content: str


class BankFilesResponse(BaseModel):
    files: List[BankFileResponse]
    routing_gaps: List[WarningResponse]
    failures: List[FailureResponse]
