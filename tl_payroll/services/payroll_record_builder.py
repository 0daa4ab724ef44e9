"""
TL Payroll Core - Payroll Record Builder

Assembles one employee's payroll record for one run.

Order of computation:
1. Earnings: regular pay, premiums (overtime, night shift, night
   overtime, public holiday, rest day), sick pay, one-off earnings,
   recurring allowances, Subsidio Anual
2. Attendance deductions: absence and late arrival
3. WIT on taxable income less attendance deductions
4. INSS on the contributive base less attendance deductions
5. Voluntary deductions, capped at 30% of gross (statutory deductions
   and court orders are exempt from the cap)
6. Net pay, employer cost and year-to-date figures

The builder never reads the clock: identical inputs give an identical
record.
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal, localcontext
from typing import Any, Dict, Iterable, List, Optional, Tuple

from tl_payroll.models.payroll import (
    AttendanceFacts,
    DeductionType,
    EarningType,
    EmployeeCompensation,
    EmployerTax,
    EmployerTaxType,
    PayrollDeduction,
    PayrollEarning,
    PayrollRecord,
    PayrollRun,
    PeriodAdjustments,
)
from tl_payroll.services.statutory import (
    PayrollRuleSet,
    ShiftType,
    TL_DEFAULT_RULES,
    calculate_daily_rate,
    calculate_hourly_rate,
    check_overtime_caps,
    compute_absence_deduction,
    compute_contributive_base,
    compute_late_deduction,
    compute_overtime_pay,
    compute_sick_pay,
    compute_social_security,
    compute_withholding_tax,
    is_below_threshold,
    periods_per_month,
    premium_rate,
)
from tl_payroll.services.statutory.overtime_service import monthly_working_hours
from tl_payroll.utils.error_handling import (
    ConsistencyWarning,
    ErrorCode,
    MissingCompensationException,
    PayrollWarning,
    ValidationException,
    WarningCode,
    require_field,
    validate_amount,
)
from tl_payroll.utils.money import (
    MONEY_CONTEXT,
    ZERO,
    add_money,
    apply_rate,
    divide_money,
    max_money,
    money_equal,
    multiply_money,
    subtract_money,
    sum_money,
    to_decimal,
    to_money,
)

logger = logging.getLogger(__name__)


# Earnings that are a refund of expenses rather than income
NON_TAXABLE_EARNINGS = frozenset({EarningType.REIMBURSEMENT})

# Deductions exempt from the voluntary deduction cap
STATUTORY_DEDUCTIONS = frozenset({
    DeductionType.INCOME_TAX,
    DeductionType.INSS_EMPLOYEE,
    DeductionType.COURT_ORDER,
})


@dataclass(frozen=True)
class PayrollInput:
    """Everything needed to build one employee's record"""
    employee: EmployeeCompensation
    attendance: AttendanceFacts = field(default_factory=AttendanceFacts)
    adjustments: PeriodAdjustments = field(default_factory=PeriodAdjustments)


@dataclass
class BuildFailure:
    employee_id: Optional[str]
    error: ValidationException

    def to_dict(self) -> Dict[str, Any]:
        result = self.error.to_dict()
        result["employee_id"] = self.employee_id
        return result


@dataclass
class RunBuildResult:
    records: List[PayrollRecord]
    failures: List[BuildFailure]


# ===========================================
# VALIDATION
# ===========================================

def validate_compensation(
    employee: EmployeeCompensation,
    rules: PayrollRuleSet = TL_DEFAULT_RULES,
) -> Tuple[Decimal, Optional[Decimal]]:
    """
    Check required employee fields and resolve compensation.

    Returns:
        (monthly_salary, hourly_rate). hourly_rate is only set for hourly
        employees.

    Raises:
        ValidationException: id or residency missing, or an amount negative
        MissingCompensationException: no salary or hourly rate at all
    """
    require_field(employee.employee_id, "employee_id")
    require_field(employee.residency, "residency", employee.employee_id)

    if employee.is_hourly:
        if employee.hourly_rate is None:
            raise MissingCompensationException(employee.employee_id, field="hourly_rate")
        hourly = validate_amount(employee.hourly_rate, "hourly_rate", allow_zero=False)
        return multiply_money(hourly, monthly_working_hours(rules.overtime)), hourly

    if employee.monthly_salary is not None:
        return to_money(validate_amount(employee.monthly_salary, "monthly_salary", allow_zero=False)), None
    if employee.annual_salary is not None:
        annual = validate_amount(employee.annual_salary, "annual_salary", allow_zero=False)
        return divide_money(annual, 12), None
    raise MissingCompensationException(employee.employee_id)


def validate_attendance(employee: EmployeeCompensation, attendance: AttendanceFacts) -> None:
    """
    Hourly employees are paid for the hours recorded, so they need some.

    Raises:
        ValidationException: hourly employee with no regular hours
    """
    if employee.is_hourly and to_decimal(attendance.regular_hours) <= 0:
        raise ValidationException(
            message=(
                f"Hourly employee {employee.employee_id} has no regular hours recorded; "
                f"payroll record cannot be built."
            ),
            field="regular_hours",
            code=ErrorCode.MISSING_FIELD,
            details={"employee_id": employee.employee_id, "provided": str(attendance.regular_hours)},
        )


# ===========================================
# BUILDER
# ===========================================

def _earning(
    earning_type: EarningType,
    description: str,
    amount: Decimal,
    rules: PayrollRuleSet,
    hours: Optional[Decimal] = None,
    rate: Optional[Decimal] = None,
) -> PayrollEarning:
    return PayrollEarning(
        type=earning_type,
        description=description,
        amount=to_money(amount),
        hours=hours,
        rate=rate,
        is_taxable=earning_type not in NON_TAXABLE_EARNINGS,
        is_contributive=rules.inss.is_contributive(earning_type),
    )


def _deduction(deduction_type: DeductionType, description: str, amount: Decimal) -> PayrollDeduction:
    return PayrollDeduction(
        type=deduction_type,
        description=description,
        amount=to_money(amount),
        is_statutory=deduction_type in STATUTORY_DEDUCTIONS,
    )


def _regular_pay(
    employee: EmployeeCompensation,
    monthly_salary: Decimal,
    hourly_rate: Decimal,
    attendance: AttendanceFacts,
    periods: Decimal,
) -> Decimal:
    if employee.is_hourly:
        return multiply_money(hourly_rate, attendance.regular_hours)
    return divide_money(monthly_salary, periods)


def _apply_voluntary_cap(
    deductions: List[PayrollDeduction],
    gross_pay: Decimal,
    employee_id: str,
    rules: PayrollRuleSet,
) -> Tuple[List[PayrollDeduction], Optional[PayrollWarning]]:
    """
    Proportionally reduce voluntary deductions above the cap.

    The reduced amounts add up to the cap exactly: the largest voluntary
    deduction takes the rounding remainder.
    """
    voluntary = [d for d in deductions if not d.is_statutory]
    voluntary_total = sum_money(d.amount for d in voluntary)
    cap = apply_rate(gross_pay, rules.deductions.max_voluntary_rate)

    if not voluntary or voluntary_total <= cap:
        return deductions, None

    with localcontext(MONEY_CONTEXT):
        ratio = cap / voluntary_total
    reduced = [multiply_money(d.amount, ratio) for d in voluntary]
    largest = max(range(len(voluntary)), key=lambda i: voluntary[i].amount)
    reduced[largest] = subtract_money(cap, *(a for i, a in enumerate(reduced) if i != largest))

    reduced_amounts = iter(reduced)
    adjusted = [
        PayrollDeduction(
            type=d.type,
            description=d.description,
            amount=next(reduced_amounts) if not d.is_statutory else d.amount,
            is_statutory=d.is_statutory,
        )
        for d in deductions
    ]
    warning = PayrollWarning(
        code=WarningCode.DEDUCTION_CAP_APPLIED,
        message=(
            f"Voluntary deductions ({voluntary_total}) exceed the "
            f"{rules.deductions.max_voluntary_rate * 100:.0f}% cap ({cap}). "
            f"Deductions were reduced proportionally."
        ),
        employee_id=employee_id,
        details={"voluntary_total": str(voluntary_total), "cap": str(cap)},
    )
    return adjusted, warning


def build_payroll_record(
    employee: EmployeeCompensation,
    attendance: AttendanceFacts,
    adjustments: PeriodAdjustments,
    run: PayrollRun,
    rules: PayrollRuleSet = TL_DEFAULT_RULES,
) -> PayrollRecord:
    """
    Build one employee's payroll record for a run.

    Args:
        employee: Validated employee compensation data
        attendance: Hours, absences and leave for the period
        adjustments: One-off earnings, voluntary deductions and YTD figures
        run: Run descriptor (period and pay frequency)
        rules: Statutory rule tables

    Returns:
        A fully populated PayrollRecord

    Raises:
        ValidationException: when required compensation or hours data is missing
    """
    monthly_salary, given_hourly = validate_compensation(employee, rules)
    validate_attendance(employee, attendance)
    employee_id = employee.employee_id
    warnings: List[Any] = []

    periods = periods_per_month(run.pay_frequency, run.periods_in_month)
    hourly_rate = given_hourly if given_hourly is not None else calculate_hourly_rate(monthly_salary, rules.overtime)
    hourly_rate = to_money(hourly_rate)
    daily_rate = calculate_daily_rate(hourly_rate, rules.overtime)

    # ========== EARNINGS ==========
    earnings: List[PayrollEarning] = []

    regular_pay = _regular_pay(employee, monthly_salary, hourly_rate, attendance, periods)
    earnings.append(_earning(
        EarningType.REGULAR, "Regular Salary", regular_pay, rules,
        hours=attendance.regular_hours or None, rate=hourly_rate,
    ))

    premiums = (
        (EarningType.OVERTIME, "Overtime", attendance.overtime_hours, ShiftType.STANDARD),
        (EarningType.NIGHT_SHIFT, "Night Shift Premium", attendance.night_shift_hours, ShiftType.NIGHT_SHIFT),
        (EarningType.NIGHT_OVERTIME, "Night Overtime", attendance.night_overtime_hours, ShiftType.NIGHT_OVERTIME),
        (EarningType.HOLIDAY, "Public Holiday Pay", attendance.holiday_hours, ShiftType.PUBLIC_HOLIDAY),
        (EarningType.REST_DAY, "Rest Day Pay", attendance.rest_day_hours, ShiftType.REST_DAY),
    )
    for earning_type, description, hours, shift_type in premiums:
        if to_decimal(hours) > 0:
            earnings.append(_earning(
                earning_type, description,
                compute_overtime_pay(hours, hourly_rate, shift_type, rules.overtime),
                rules,
                hours=to_decimal(hours),
                rate=premium_rate(hourly_rate, shift_type, rules.overtime),
            ))

    overtime_hours = to_decimal(attendance.overtime_hours) + to_decimal(attendance.night_overtime_hours)
    warnings.extend(check_overtime_caps(
        overtime_hours,
        run.period_start,
        run.period_end,
        daily_hours=attendance.daily_overtime_hours,
        employee_id=employee_id,
        rules=rules.overtime,
    ))

    sick_pay = compute_sick_pay(daily_rate, attendance.sick_days, attendance.ytd_sick_days_used, rules.leave)
    if sick_pay > 0:
        earnings.append(_earning(EarningType.SICK_PAY, "Sick Leave Pay", sick_pay, rules))
    total_sick_days = attendance.ytd_sick_days_used + attendance.sick_days
    if attendance.sick_days > 0 and total_sick_days >= rules.leave.sick_warning_threshold:
        warnings.append(PayrollWarning(
            code=WarningCode.SICK_LEAVE_LIMIT,
            message=(
                f"Employee has used {total_sick_days} of "
                f"{rules.leave.sick_days_per_year} annual sick days."
            ),
            employee_id=employee_id,
            details={"sick_days_used": total_sick_days},
        ))

    one_off = (
        (EarningType.BONUS, "Bonus", adjustments.bonus),
        (EarningType.COMMISSION, "Commission", adjustments.commission),
        (EarningType.PER_DIEM, "Per Diem", adjustments.per_diem),
        (EarningType.TRAVEL_ALLOWANCE, "Travel Allowance", adjustments.travel_allowance),
        (EarningType.FOOD_ALLOWANCE, "Food Allowance", divide_money(employee.food_allowance, periods)),
        (EarningType.TRANSPORT_ALLOWANCE, "Transport Allowance", divide_money(employee.transport_allowance, periods)),
        (EarningType.HOUSING_ALLOWANCE, "Housing Allowance", divide_money(employee.housing_allowance, periods)),
        (EarningType.GRATUITY, "Gratuity", adjustments.gratuity),
        (EarningType.PROFIT_SHARING, "Profit Sharing", adjustments.profit_sharing),
        (EarningType.REPRESENTATION_EXPENSE, "Representation Expenses", adjustments.representation_expense),
        (EarningType.REIMBURSEMENT, "Reimbursement", adjustments.reimbursement),
        (EarningType.OTHER, "Other Earnings", adjustments.other_earnings),
        (EarningType.SUBSIDIO_ANUAL, "Annual Subsidy (13th Month)", adjustments.subsidio_anual),
    )
    for earning_type, description, amount in one_off:
        if to_decimal(amount) > 0:
            earnings.append(_earning(earning_type, description, amount, rules))

    gross_pay = sum_money(e.amount for e in earnings)
    taxable_earnings = sum_money(e.amount for e in earnings if e.is_taxable)
    inss_earnings = compute_contributive_base(earnings, rules.inss)

    # ========== DEDUCTIONS ==========
    deductions: List[PayrollDeduction] = []

    absence = compute_absence_deduction(hourly_rate, attendance.absence_hours)
    if absence > 0:
        deductions.append(_deduction(DeductionType.ABSENCE, "Absence Deduction", absence))

    late = compute_late_deduction(hourly_rate, attendance.late_arrival_minutes)
    if late > 0:
        deductions.append(_deduction(DeductionType.LATE_ARRIVAL, "Late Arrival Deduction", late))

    taxable_income = subtract_money(taxable_earnings, absence, late)
    contributive_base = max_money(ZERO, subtract_money(inss_earnings, absence, late))

    income_tax = compute_withholding_tax(taxable_income, employee.residency, rules.wit, periods)
    if income_tax > 0:
        deductions.append(_deduction(DeductionType.INCOME_TAX, "Withholding Income Tax (WIT)", income_tax))

    inss = compute_social_security(contributive_base, rules.inss)
    if inss.employee > 0:
        deductions.append(_deduction(
            DeductionType.INSS_EMPLOYEE,
            f"INSS Employee ({rules.inss.employee_rate * 100:.0f}%)",
            inss.employee,
        ))

    voluntary = (
        (DeductionType.LOAN_REPAYMENT, "Loan Repayment", adjustments.loan_repayment),
        (DeductionType.ADVANCE_REPAYMENT, "Advance Repayment", adjustments.advance_repayment),
        (DeductionType.HEALTH_INSURANCE, "Health Insurance", adjustments.health_insurance),
        (DeductionType.LIFE_INSURANCE, "Life Insurance", adjustments.life_insurance),
        (DeductionType.COURT_ORDER, "Court Order", adjustments.court_order),
        (DeductionType.OTHER, "Other Deductions", adjustments.other_deductions),
    )
    for deduction_type, description, amount in voluntary:
        if to_decimal(amount) > 0:
            deductions.append(_deduction(deduction_type, description, amount))

    deductions, cap_warning = _apply_voluntary_cap(deductions, gross_pay, employee_id, rules)
    if cap_warning:
        warnings.append(cap_warning)

    employer_taxes: List[EmployerTax] = []
    if inss.employer > 0:
        employer_taxes.append(EmployerTax(
            type=EmployerTaxType.INSS_EMPLOYER,
            description=f"INSS Employer ({rules.inss.employer_rate * 100:.0f}%)",
            amount=inss.employer,
        ))

    # ========== TOTALS ==========
    total_deductions = sum_money(d.amount for d in deductions)
    net_pay = subtract_money(gross_pay, total_deductions)
    total_employer_cost = add_money(gross_pay, *(t.amount for t in employer_taxes))

    if net_pay < 0:
        warnings.append(PayrollWarning(
            code=WarningCode.NEGATIVE_NET_PAY,
            message="Net pay is negative. Please review deductions.",
            employee_id=employee_id,
            details={"net_pay": str(net_pay)},
        ))

    if is_below_threshold(taxable_income, employee.residency, rules.wit, periods):
        warnings.append(PayrollWarning(
            code=WarningCode.BELOW_TAX_THRESHOLD,
            message="Income below the resident threshold - no income tax applied.",
            employee_id=employee_id,
        ))

    record = PayrollRecord(
        employee_id=employee_id,
        employee_name=employee.full_name,
        employee_number=employee.employee_number,
        residency=employee.residency,
        period_start=run.period_start,
        period_end=run.period_end,
        pay_date=run.pay_date,
        monthly_salary=monthly_salary,
        hourly_rate=hourly_rate,
        daily_rate=daily_rate,
        earnings=earnings,
        deductions=deductions,
        employer_taxes=employer_taxes,
        total_gross_pay=gross_pay,
        taxable_income=taxable_income,
        contributive_base=contributive_base,
        total_deductions=total_deductions,
        net_pay=net_pay,
        total_employer_cost=total_employer_cost,
        ytd_gross_pay=add_money(adjustments.ytd_gross_pay, gross_pay),
        ytd_income_tax=add_money(adjustments.ytd_income_tax, income_tax),
        ytd_inss_employee=add_money(adjustments.ytd_inss_employee, inss.employee),
        allocation=employee.allocation,
        warnings=warnings,
    )
    logger.debug(
        f"Built payroll record for {employee_id}: gross={gross_pay} "
        f"deductions={total_deductions} net={net_pay}"
    )
    return record


def build_payroll_records(
    inputs: Iterable[PayrollInput],
    run: PayrollRun,
    rules: PayrollRuleSet = TL_DEFAULT_RULES,
) -> RunBuildResult:
    """
    Build records for a whole run.

    A validation failure stops that employee's record only; it is
    collected and returned next to the records that did build.
    """
    records: List[PayrollRecord] = []
    failures: List[BuildFailure] = []
    for item in inputs:
        try:
            records.append(build_payroll_record(
                item.employee, item.attendance, item.adjustments, run, rules,
            ))
        except ValidationException as e:
            logger.warning(f"Payroll record for {item.employee.employee_id} not built: {e.message}")
            failures.append(BuildFailure(employee_id=item.employee.employee_id, error=e))
    return RunBuildResult(records=records, failures=failures)


def verify_record(record: PayrollRecord) -> List[ConsistencyWarning]:
    """Re-check a record's totals against its line items."""
    warnings: List[ConsistencyWarning] = []

    earnings_total = sum_money(e.amount for e in record.earnings)
    if not money_equal(earnings_total, record.total_gross_pay):
        warnings.append(ConsistencyWarning(
            "Gross pay", earnings_total, record.total_gross_pay, record.employee_id,
        ))

    expected_net = subtract_money(record.total_gross_pay, *(d.amount for d in record.deductions))
    if not money_equal(expected_net, record.net_pay):
        warnings.append(ConsistencyWarning(
            "Net pay", expected_net, record.net_pay, record.employee_id,
        ))

    expected_cost = add_money(record.total_gross_pay, *(t.amount for t in record.employer_taxes))
    if not money_equal(expected_cost, record.total_employer_cost):
        warnings.append(ConsistencyWarning(
            "Employer cost", expected_cost, record.total_employer_cost, record.employee_id,
        ))
    return warnings
