"""
TL Payroll Core - Payroll Router

API endpoints for Timor-Leste payroll calculation and bank disbursement
files. Stateless: every response is computed from the request body.
"""

import logging
from typing import List

from fastapi import APIRouter

from tl_payroll.config import settings
from tl_payroll.models.payroll import Originator, PayrollRecord
from tl_payroll.schemas.payroll import (
    AllocationRowResponse,
    BankFileRequest,
    BankFileResponse,
    BankFilesResponse,
    FailureResponse,
    INSSCalculationRequest,
    INSSCalculationResponse,
    LeaveEntitlementRequest,
    LeaveEntitlementResponse,
    OvertimeCalculationRequest,
    OvertimeCalculationResponse,
    PayrollRecordRequest,
    PayrollRecordResponse,
    PayrollRunRequest,
    PayrollRunResponse,
    RunTotalsResponse,
    SeveranceRequest,
    SeveranceResponse,
    SubsidioAnualRequest,
    SubsidioAnualResponse,
    WarningResponse,
    WITCalculationRequest,
    WITCalculationResponse,
)
from tl_payroll.services.bank_files import generate_all_bank_files
from tl_payroll.services.disbursement_router import destinations_from_employees
from tl_payroll.services.payroll_aggregator import (
    aggregate_run,
    group_by_allocation,
    reconcile_run_totals,
)
from tl_payroll.services.payroll_record_builder import (
    BuildFailure,
    build_payroll_record,
    build_payroll_records,
    verify_record,
)
from tl_payroll.services.payroll_run_service import ensure_disbursable
from tl_payroll.services.statutory import (
    TL_DEFAULT_RULES,
    calculate_hourly_rate,
    compute_13th_month,
    compute_annual_leave_entitlement,
    compute_overtime_pay,
    compute_severance,
    compute_sick_pay_rate,
    compute_social_security,
    compute_withholding_tax,
    months_worked_in_year,
    optional_contribution_base,
    periods_per_month,
    premium_rate,
    sick_days_remaining,
    years_of_service,
)
from tl_payroll.services.statutory.overtime_service import get_multiplier
from tl_payroll.services.statutory.wit_service import period_threshold
from tl_payroll.utils.error_handling import ValidationException
from tl_payroll.utils.money import ZERO, max_money, subtract_money, sum_money, to_money

logger = logging.getLogger(__name__)

router = APIRouter()


# ===========================================
# HELPER FUNCTIONS
# ===========================================

def _failure_response(failure: BuildFailure) -> FailureResponse:
    return FailureResponse(
        employee_id=failure.employee_id,
        code=failure.error.code.value,
        message=failure.error.message,
        field=failure.error.field,
    )


def _record_responses(records: List[PayrollRecord]) -> List[PayrollRecordResponse]:
    return [PayrollRecordResponse.model_validate(r) for r in records]


def _resolve_originator(request: BankFileRequest) -> Originator:
    if request.originator:
        return request.originator.to_domain()
    if not settings.default_originator_name or not settings.default_debit_account:
        raise ValidationException(
            message="No originator given and no default originator configured.",
            field="originator",
        )
    return Originator(
        company_name=settings.default_originator_name,
        debit_account=settings.default_debit_account,
    )


# ===========================================
# STATUTORY CALCULATORS
# ===========================================

@router.post(
    "/tax/wit/calculate",
    response_model=WITCalculationResponse,
    summary="Calculate Wage Income Tax",
    tags=["Payroll - Statutory"],
)
async def calculate_wit(request: WITCalculationRequest):
    """
    Calculate WIT for one pay period.

    - Residents: 10% on income above $500/month
    - Non-residents: 10% from the first dollar
    """
    rules = TL_DEFAULT_RULES.wit
    periods = periods_per_month(request.pay_frequency, request.periods_in_month)
    threshold = period_threshold(request.residency, periods, rules)
    tax = compute_withholding_tax(request.gross_income, request.residency, rules, periods)

    return WITCalculationResponse(
        gross_income=to_money(request.gross_income),
        residency=request.residency,
        threshold=threshold,
        taxable_amount=max_money(ZERO, subtract_money(request.gross_income, threshold)),
        tax_rate=rules.rate,
        withholding_tax=tax,
        net_income=subtract_money(request.gross_income, tax),
    )


@router.post(
    "/inss/calculate",
    response_model=INSSCalculationResponse,
    summary="Calculate INSS contributions",
    tags=["Payroll - Statutory"],
)
async def calculate_inss(request: INSSCalculationRequest):
    """
    Calculate INSS (4% employee, 6% employer).

    Itemised earnings have the published exclusions removed before the
    rates are applied. A declared income uses the voluntary regime bands.
    """
    rules = TL_DEFAULT_RULES.inss
    excluded = ZERO
    optional_regime = False

    if request.declared_income is not None:
        base = optional_contribution_base(request.declared_income, rules)
        optional_regime = True
    elif request.earnings:
        base = sum_money(v for k, v in request.earnings.items() if rules.is_contributive(k))
        excluded = sum_money(v for k, v in request.earnings.items() if not rules.is_contributive(k))
    else:
        base = to_money(request.contributive_base)

    contribution = compute_social_security(base, rules)
    return INSSCalculationResponse(
        contributive_base=contribution.contributive_base,
        employee=contribution.employee,
        employer=contribution.employer,
        total=contribution.total,
        excluded_earnings=excluded,
        optional_regime=optional_regime,
    )


@router.post(
    "/overtime/calculate",
    response_model=OvertimeCalculationResponse,
    summary="Calculate overtime pay",
    tags=["Payroll - Statutory"],
)
async def calculate_overtime(request: OvertimeCalculationRequest):
    """
    Calculate premium pay for overtime hours.

    Hours above the daily or weekly cap are paid but flagged.
    """
    rules = TL_DEFAULT_RULES.overtime
    hourly = (
        to_money(request.base_hourly_rate)
        if request.base_hourly_rate is not None
        else calculate_hourly_rate(request.monthly_salary, rules)
    )
    return OvertimeCalculationResponse(
        hours=request.hours,
        shift_type=request.shift_type,
        base_hourly_rate=hourly,
        multiplier=get_multiplier(request.shift_type, rules),
        premium_rate=premium_rate(hourly, request.shift_type, rules),
        overtime_pay=compute_overtime_pay(request.hours, hourly, request.shift_type, rules),
        exceeds_daily_cap=request.hours > rules.max_daily_hours,
        exceeds_weekly_cap=request.hours > rules.max_weekly_hours,
    )


@router.post(
    "/leave/entitlement",
    response_model=LeaveEntitlementResponse,
    summary="Annual and sick leave entitlement",
    tags=["Payroll - Statutory"],
)
async def leave_entitlement(request: LeaveEntitlementRequest):
    rules = TL_DEFAULT_RULES.leave
    years = (
        request.years_of_service
        if request.years_of_service is not None
        else years_of_service(request.hire_date, request.as_of)
    )
    used = request.ytd_sick_days_used
    return LeaveEntitlementResponse(
        years_of_service=years,
        annual_leave_days=compute_annual_leave_entitlement(years, rules),
        sick_days_per_year=rules.sick_days_per_year,
        sick_days_remaining=sick_days_remaining(used, rules),
        next_sick_day_rate=compute_sick_pay_rate(used + 1, used, rules),
    )


@router.post(
    "/termination/severance",
    response_model=SeveranceResponse,
    summary="Calculate severance pay",
    tags=["Payroll - Statutory"],
)
async def calculate_severance(request: SeveranceRequest):
    """30 days' pay per full year of service, after 3 months minimum."""
    result = compute_severance(request.years_of_service, request.monthly_salary)
    return SeveranceResponse.model_validate(result)


@router.post(
    "/subsidio-anual/calculate",
    response_model=SubsidioAnualResponse,
    summary="Calculate Subsidio Anual (13th month)",
    tags=["Payroll - Statutory"],
)
async def calculate_subsidio_anual(request: SubsidioAnualRequest):
    months = (
        request.months_worked
        if request.months_worked is not None
        else months_worked_in_year(request.hire_date, request.as_of)
    )
    return SubsidioAnualResponse(
        monthly_salary=to_money(request.monthly_salary),
        months_worked=months,
        amount=compute_13th_month(months, request.monthly_salary),
    )


# ===========================================
# PAYROLL RECORDS & RUNS
# ===========================================

@router.post(
    "/records/calculate",
    response_model=PayrollRecordResponse,
    summary="Calculate one payroll record",
    tags=["Payroll - Records"],
)
async def calculate_record(request: PayrollRecordRequest):
    """
    Build one employee's payroll record.

    Missing compensation data is rejected with 422; it is never treated
    as zero pay.
    """
    entry = request.to_domain()
    record = build_payroll_record(
        entry.employee, entry.attendance, entry.adjustments, request.run.to_domain(),
    )
    return PayrollRecordResponse.model_validate(record)


@router.post(
    "/runs/calculate",
    response_model=PayrollRunResponse,
    summary="Calculate a payroll run",
    tags=["Payroll - Runs"],
)
async def calculate_run(request: PayrollRunRequest):
    """
    Build every record in a run with run totals and donor allocation.

    Employees that fail validation are listed under `failures`; the rest
    of the run is still calculated.
    """
    run = request.run.to_domain()
    result = build_payroll_records([e.to_domain() for e in request.entries], run)
    totals = aggregate_run(result.records)

    consistency = reconcile_run_totals(run, totals)
    for record in result.records:
        consistency.extend(verify_record(record))

    logger.info(
        f"Calculated run {run.run_id or '-'}: {len(result.records)} records, "
        f"{len(result.failures)} failures"
    )
    return PayrollRunResponse(
        records=_record_responses(result.records),
        totals=RunTotalsResponse.model_validate(totals),
        allocation=[AllocationRowResponse.model_validate(r) for r in group_by_allocation(result.records)],
        failures=[_failure_response(f) for f in result.failures],
        consistency_warnings=[WarningResponse.model_validate(w) for w in consistency],
    )


# ===========================================
# BANK FILES
# ===========================================

@router.post(
    "/bank-files",
    response_model=BankFilesResponse,
    summary="Generate bank transfer files",
    tags=["Payroll - Disbursement"],
)
async def generate_bank_files(request: BankFileRequest):
    """
    Generate one salary file per bank for an approved or paid run.

    Employees that cannot be routed are returned under `routing_gaps`
    for manual payment.
    """
    run = ensure_disbursable(request.run.to_domain())
    originator = _resolve_originator(request)

    inputs = [e.to_domain() for e in request.entries]
    result = build_payroll_records(inputs, run)
    destinations = destinations_from_employees(i.employee for i in inputs)
    batch = generate_all_bank_files(result.records, destinations, run, originator, request.value_date)

    return BankFilesResponse(
        files=[
            BankFileResponse(
                bank_code=f.summary.bank_code,
                bank_name=f.summary.bank_name,
                file_name=f.file_name,
                mime_type=f.mime_type,
                transaction_count=f.summary.transaction_count,
                total_amount=f.summary.total_amount,
                file_hash=f.file_hash,
                content=f.content,
            )
            for f in batch.files
        ],
        routing_gaps=[WarningResponse.model_validate(g) for g in batch.gaps],
        failures=[_failure_response(f) for f in result.failures],
    )
