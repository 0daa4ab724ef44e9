"""
TL Payroll Core - Payroll Run Aggregator Tests

Tests for run totals, donor allocation and stored-total reconciliation.
"""

from dataclasses import replace
from decimal import Decimal

from conftest import make_employee
from tl_payroll.models.payroll import (
    AllocationTag,
    AttendanceFacts,
    DeductionType,
    EmployerTaxType,
    PeriodAdjustments,
)
from tl_payroll.services.payroll_aggregator import (
    UNASSIGNED,
    aggregate_run,
    allocation_key,
    group_by_allocation,
    reconcile_run_totals,
)
from tl_payroll.services.payroll_record_builder import build_payroll_record
from tl_payroll.utils.error_handling import WarningCode


def build_records(run):
    employees = [
        make_employee("EMP001", "1000.00", allocation=AllocationTag("P-100", "USAID")),
        make_employee("EMP002", "750.00", allocation=AllocationTag("P-100", "USAID")),
        make_employee("EMP003", "1500.00", allocation=AllocationTag("P-200", "EU")),
        make_employee("EMP004", "600.00"),
        make_employee("EMP005", "450.00", allocation=AllocationTag("  ", None)),
    ]
    return [
        build_payroll_record(e, AttendanceFacts(), PeriodAdjustments(), run)
        for e in employees
    ]


class TestRunTotals:
    """Test run-level aggregation."""

    def test_totals_match_records(self, january_run):
        records = build_records(january_run)
        totals = aggregate_run(records)

        assert totals.employee_count == 5
        assert totals.total_gross_pay == Decimal("4300.00")
        assert totals.total_net_pay == sum(r.net_pay for r in records)
        assert totals.total_deductions == sum(r.total_deductions for r in records)
        assert totals.total_employer_cost == sum(r.total_employer_cost for r in records)
        assert totals.total_inss_employee == Decimal("172.00")
        assert totals.total_inss_employer == Decimal("258.00")

    def test_totals_identity(self, january_run):
        totals = aggregate_run(build_records(january_run))

        assert totals.total_net_pay == totals.total_gross_pay - totals.total_deductions
        assert totals.total_employer_cost == totals.total_gross_pay + totals.total_inss_employer

    def test_income_tax_by_type(self, january_run):
        """WIT: 50 + 25 + 100 + 10 + 0"""
        totals = aggregate_run(build_records(january_run))

        assert totals.total_income_tax == Decimal("185.00")
        assert totals.deductions_by_type[DeductionType.INCOME_TAX] == Decimal("185.00")
        assert totals.employer_taxes_by_type[EmployerTaxType.INSS_EMPLOYER] == Decimal("258.00")
        assert DeductionType.LOAN_REPAYMENT not in totals.deductions_by_type

    def test_order_independent(self, january_run):
        records = build_records(january_run)

        assert aggregate_run(records) == aggregate_run(list(reversed(records)))
        assert group_by_allocation(records) == group_by_allocation(list(reversed(records)))

    def test_empty_run(self):
        totals = aggregate_run([])

        assert totals.employee_count == 0
        assert totals.total_gross_pay == Decimal("0.00")


class TestAllocation:
    """Test donor-style grouping by project and funding source."""

    def test_groups_and_sort_order(self, january_run):
        rows = group_by_allocation(build_records(january_run))

        assert [row.key for row in rows] == [
            ("P-100", "USAID"),
            ("P-200", "EU"),
            (UNASSIGNED, UNASSIGNED),
        ]
        usaid = rows[0]
        assert usaid.employee_count == 2
        assert usaid.total_gross_pay == Decimal("1750.00")

    def test_untagged_employees_are_unassigned(self, january_run):
        rows = group_by_allocation(build_records(january_run))
        unassigned = [row for row in rows if row.key == (UNASSIGNED, UNASSIGNED)]

        assert len(unassigned) == 1
        assert unassigned[0].employee_count == 2
        assert unassigned[0].total_gross_pay == Decimal("1050.00")

    def test_allocation_rows_cover_every_record(self, january_run):
        records = build_records(january_run)
        rows = group_by_allocation(records)

        assert sum(row.employee_count for row in rows) == len(records)
        assert sum(row.total_gross_pay for row in rows) == aggregate_run(records).total_gross_pay

    def test_blank_project_code_is_unassigned(self, january_run):
        record = build_records(january_run)[4]

        assert allocation_key(record) == (UNASSIGNED, UNASSIGNED)


class TestReconciliation:
    """Test comparison with totals stored on the run."""

    def test_no_stored_totals_no_warnings(self, january_run):
        totals = aggregate_run(build_records(january_run))

        assert reconcile_run_totals(january_run, totals) == []

    def test_matching_totals(self, january_run):
        totals = aggregate_run(build_records(january_run))
        run = replace(
            january_run,
            total_gross_pay=Decimal("4300.00"),
            total_net_pay=totals.total_net_pay,
        )

        assert reconcile_run_totals(run, totals) == []

    def test_half_cent_tolerance(self, january_run):
        totals = aggregate_run(build_records(january_run))
        run = replace(january_run, total_gross_pay=Decimal("4300.005"))

        assert reconcile_run_totals(run, totals) == []

    def test_mismatch_warning(self, january_run):
        totals = aggregate_run(build_records(january_run))
        run = replace(january_run, total_gross_pay=Decimal("4299.00"))

        warnings = reconcile_run_totals(run, totals)

        assert len(warnings) == 1
        assert warnings[0].code == WarningCode.CONSISTENCY_MISMATCH
        assert warnings[0].expected == Decimal("4300.00")
        assert warnings[0].actual == Decimal("4299.00")
        assert warnings[0].details["difference"] == "-1.00"
