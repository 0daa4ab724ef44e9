"""
TL Payroll Core - Payroll Run Aggregator

Run-level totals and donor-style grouping by project / funding source.

Totals are exact Decimal sums, so records can be aggregated in any order
with the same result. Employees without an allocation tag are reported
under "Unassigned" rather than dropped.
"""

from collections import defaultdict
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional, Tuple

from tl_payroll.models.payroll import (
    DeductionType,
    EmployerTaxType,
    PayrollRecord,
    PayrollRun,
)
from tl_payroll.utils.error_handling import ConsistencyWarning
from tl_payroll.utils.money import ZERO, money_equal, sum_money

UNASSIGNED = "Unassigned"


@dataclass
class RunTotals:
    employee_count: int = 0
    total_gross_pay: Decimal = ZERO
    total_net_pay: Decimal = ZERO
    total_deductions: Decimal = ZERO
    total_employer_cost: Decimal = ZERO
    total_income_tax: Decimal = ZERO
    total_inss_employee: Decimal = ZERO
    total_inss_employer: Decimal = ZERO
    deductions_by_type: Dict[DeductionType, Decimal] = field(default_factory=dict)
    employer_taxes_by_type: Dict[EmployerTaxType, Decimal] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "employee_count": self.employee_count,
            "total_gross_pay": str(self.total_gross_pay),
            "total_net_pay": str(self.total_net_pay),
            "total_deductions": str(self.total_deductions),
            "total_employer_cost": str(self.total_employer_cost),
            "total_income_tax": str(self.total_income_tax),
            "total_inss_employee": str(self.total_inss_employee),
            "total_inss_employer": str(self.total_inss_employer),
            "deductions_by_type": {k.value: str(v) for k, v in self.deductions_by_type.items()},
            "employer_taxes_by_type": {k.value: str(v) for k, v in self.employer_taxes_by_type.items()},
        }


@dataclass
class AllocationRow:
    project_code: str
    funding_source: str
    employee_count: int
    total_gross_pay: Decimal
    total_net_pay: Decimal
    total_income_tax: Decimal
    total_inss_employee: Decimal
    total_inss_employer: Decimal
    total_employer_cost: Decimal

    @property
    def key(self) -> Tuple[str, str]:
        return self.project_code, self.funding_source

    def to_dict(self) -> Dict[str, Any]:
        return {
            "project_code": self.project_code,
            "funding_source": self.funding_source,
            "employee_count": self.employee_count,
            "total_gross_pay": str(self.total_gross_pay),
            "total_net_pay": str(self.total_net_pay),
            "total_income_tax": str(self.total_income_tax),
            "total_inss_employee": str(self.total_inss_employee),
            "total_inss_employer": str(self.total_inss_employer),
            "total_employer_cost": str(self.total_employer_cost),
        }


def aggregate_run(records: Iterable[PayrollRecord]) -> RunTotals:
    """Sum a run's records into run-level totals."""
    records = list(records)
    if not records:
        return RunTotals()

    deductions_by_type = {
        deduction_type: sum_money(r.deduction_amount(deduction_type) for r in records)
        for deduction_type in DeductionType
    }
    employer_taxes_by_type = {
        tax_type: sum_money(r.employer_tax_amount(tax_type) for r in records)
        for tax_type in EmployerTaxType
    }

    return RunTotals(
        employee_count=len(records),
        total_gross_pay=sum_money(r.total_gross_pay for r in records),
        total_net_pay=sum_money(r.net_pay for r in records),
        total_deductions=sum_money(r.total_deductions for r in records),
        total_employer_cost=sum_money(r.total_employer_cost for r in records),
        total_income_tax=deductions_by_type[DeductionType.INCOME_TAX],
        total_inss_employee=deductions_by_type[DeductionType.INSS_EMPLOYEE],
        total_inss_employer=employer_taxes_by_type[EmployerTaxType.INSS_EMPLOYER],
        deductions_by_type={k: v for k, v in deductions_by_type.items() if v != 0},
        employer_taxes_by_type={k: v for k, v in employer_taxes_by_type.items() if v != 0},
    )


def _tag_value(value: Optional[str]) -> str:
    if value is None or not value.strip():
        return UNASSIGNED
    return value.strip()


def allocation_key(record: PayrollRecord) -> Tuple[str, str]:
    """(project code, funding source), with blanks mapped to Unassigned."""
    tag = record.allocation
    if tag is None:
        return UNASSIGNED, UNASSIGNED
    return _tag_value(tag.project_code), _tag_value(tag.funding_source)


def group_by_allocation(records: Iterable[PayrollRecord]) -> List[AllocationRow]:
    """
    Group records by allocation tag for donor reporting.

    Rows are sorted by gross pay (largest first), then by key, so the
    result does not depend on the input order.
    """
    groups: Dict[Tuple[str, str], List[PayrollRecord]] = defaultdict(list)
    for record in records:
        groups[allocation_key(record)].append(record)

    rows = [
        AllocationRow(
            project_code=project_code,
            funding_source=funding_source,
            employee_count=len(members),
            total_gross_pay=sum_money(r.total_gross_pay for r in members),
            total_net_pay=sum_money(r.net_pay for r in members),
            total_income_tax=sum_money(r.income_tax for r in members),
            total_inss_employee=sum_money(r.inss_employee for r in members),
            total_inss_employer=sum_money(r.inss_employer for r in members),
            total_employer_cost=sum_money(r.total_employer_cost for r in members),
        )
        for (project_code, funding_source), members in groups.items()
    ]
    rows.sort(key=lambda row: (-row.total_gross_pay, row.project_code, row.funding_source))
    return rows


def reconcile_run_totals(run: PayrollRun, totals: RunTotals) -> List[ConsistencyWarning]:
    """
    Compare the totals stored on a run with freshly computed totals.

    Only totals the run actually carries are checked. Differences above
    half a cent are returned as warnings.
    """
    checks = (
        ("Total gross pay", run.total_gross_pay, totals.total_gross_pay),
        ("Total net pay", run.total_net_pay, totals.total_net_pay),
        ("Total deductions", run.total_deductions, totals.total_deductions),
        ("Total employer cost", run.total_employer_cost, totals.total_employer_cost),
    )
    warnings: List[ConsistencyWarning] = []
    for label, stored, computed in checks:
        if stored is None:
            continue
        if not money_equal(stored, computed):
            warnings.append(ConsistencyWarning(label, expected=computed, actual=stored))
    return warnings
