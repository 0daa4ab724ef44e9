"""
TL Payroll Core - Disbursement Router Tests

Tests for routing net pay to destination banks.
"""

import pytest
from decimal import Decimal

from conftest import make_employee
from tl_payroll.models.payroll import (
    AttendanceFacts,
    BankCode,
    BankDestination,
    PeriodAdjustments,
)
from tl_payroll.services.bank_files import generate_all_bank_files
from tl_payroll.services.disbursement_router import (
    UNROUTED,
    build_transfer_summaries,
    classify_bank,
    destinations_from_employees,
    route_records,
)
from tl_payroll.services.payroll_record_builder import build_payroll_record
from tl_payroll.utils.error_handling import (
    RoutingGapWarning,
    RunNotDisbursableException,
    WarningCode,
)


def employees():
    return [
        make_employee("EMP001", "1000.00", bank_name="BNU"),
        make_employee("EMP002", "800.00", bank_name="Bank Mandiri"),
        make_employee("EMP003", "700.00", bank_name="anz bank"),
        make_employee("EMP004", "900.00", bank_name="Banco Nacional de Comércio de Timor-Leste"),
        make_employee("EMP005", "600.00", bank_name="Westpac"),
        make_employee("EMP006", "600.00", bank_name=None, account_number=None),
        make_employee("EMP007", "600.00", bank_name="BNU", account_number=None),
        make_employee("EMP008", "600.00", bank_name="BNU"),
    ]


def build_records(run):
    records = []
    for employee in employees():
        adjustments = PeriodAdjustments()
        if employee.employee_id == "EMP008":
            adjustments = PeriodAdjustments(court_order=Decimal("1000.00"))
        records.append(build_payroll_record(employee, AttendanceFacts(), adjustments, run))
    return records


class TestClassifyBank:
    """Test matching free-text bank names."""

    @pytest.mark.parametrize("name,code", [
        ("BNU", BankCode.BNU),
        ("Banco Nacional Ultramarino", BankCode.BNU),
        ("bank mandiri", BankCode.MANDIRI),
        ("ANZ Bank", BankCode.ANZ),
        ("BNCTL", BankCode.BNCTL),
        ("Banco Nacional de Comercio", BankCode.BNCTL),
        ("Banco Nacional de Comércio", BankCode.BNCTL),
    ])
    def test_aliases(self, name, code):
        assert classify_bank(name).bank_code == code

    @pytest.mark.parametrize("name", [None, "", "   ", "Westpac"])
    def test_unrouted(self, name):
        result = classify_bank(name)

        assert result == UNROUTED
        assert not result.is_routed


class TestRouteRecords:
    """Test grouping by bank and gap reporting."""

    def test_groups_by_bank(self, january_run):
        records = build_records(january_run)
        routing = route_records(records, destinations_from_employees(employees()))

        routed = {
            code: [p.record.employee_id for p in payments]
            for code, payments in routing.groups.items()
        }
        assert routed == {
            BankCode.BNU: ["EMP001"],
            BankCode.MANDIRI: ["EMP002"],
            BankCode.ANZ: ["EMP003"],
            BankCode.BNCTL: ["EMP004"],
        }
        assert routing.routed_count == 4

    def test_gaps_are_reported(self, january_run):
        records = build_records(january_run)
        routing = route_records(records, destinations_from_employees(employees()))

        reasons = {gap.employee_id: gap.reason for gap in routing.gaps}
        assert reasons == {
            "EMP005": RoutingGapWarning.UNKNOWN_BANK,
            "EMP006": RoutingGapWarning.MISSING_BANK_DETAILS,
            "EMP007": RoutingGapWarning.MISSING_ACCOUNT_NUMBER,
            "EMP008": RoutingGapWarning.NON_POSITIVE_NET_PAY,
        }
        assert all(gap.code == WarningCode.ROUTING_GAP for gap in routing.gaps)

    def test_every_record_is_routed_or_reported(self, january_run):
        records = build_records(january_run)
        routing = route_records(records, destinations_from_employees(employees()))

        assert routing.routed_count + len(routing.gaps) == len(records)

    def test_missing_destination(self, january_run):
        records = build_records(january_run)[:1]
        routing = route_records(records, {})

        assert routing.gaps[0].reason == RoutingGapWarning.MISSING_BANK_DETAILS


class TestTransferSummaries:
    """Test per-bank transfer summaries."""

    def test_one_summary_per_bank_with_payments(self, approved_run):
        records = build_records(approved_run)
        routing = route_records(records, destinations_from_employees(employees()))
        summaries = build_transfer_summaries(routing, approved_run)

        assert [s.bank_code for s in summaries] == [
            BankCode.BNU, BankCode.MANDIRI, BankCode.ANZ, BankCode.BNCTL,
        ]
        bnu = summaries[0]
        assert bnu.transaction_count == 1
        assert bnu.total_amount == Decimal("910.00")
        assert bnu.value_date == approved_run.pay_date
        assert bnu.payroll_period == "JAN2025"

        line = bnu.lines[0]
        assert line.account_number == "0012345678"
        assert line.account_name == "Employee EMP001"
        assert line.reference == "SALARY-JAN2025-EMP001"

    def test_destination_account_name_preferred(self, approved_run):
        employee = make_employee("EMP001", "1000.00")
        record = build_payroll_record(employee, AttendanceFacts(), PeriodAdjustments(), approved_run)
        destination = BankDestination(bank_name="BNU", account_number="111", account_name="Maria da Costa")

        routing = route_records([record], {"EMP001": destination})
        summaries = build_transfer_summaries(routing, approved_run)

        assert summaries[0].lines[0].account_name == "Maria da Costa"

    def test_summary_totals_match_routed_net_pay(self, approved_run):
        records = build_records(approved_run)
        routing = route_records(records, destinations_from_employees(employees()))
        summaries = build_transfer_summaries(routing, approved_run)

        routed_net = sum(
            p.record.net_pay for payments in routing.groups.values() for p in payments
        )
        assert sum(s.total_amount for s in summaries) == routed_net


class TestGenerateAllBankFiles:
    """Test end-to-end disbursement."""

    def test_requires_approved_run(self, january_run, originator):
        records = build_records(january_run)

        with pytest.raises(RunNotDisbursableException):
            generate_all_bank_files(records, destinations_from_employees(employees()), january_run, originator)

    def test_files_and_gaps(self, approved_run, originator):
        records = build_records(approved_run)
        batch = generate_all_bank_files(
            records, destinations_from_employees(employees()), approved_run, originator,
        )

        assert [f.summary.bank_code for f in batch.files] == [
            BankCode.BNU, BankCode.MANDIRI, BankCode.ANZ, BankCode.BNCTL,
        ]
        assert len(batch.gaps) == 4
