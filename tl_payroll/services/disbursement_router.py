"""
TL Payroll Core - Disbursement Router

Routes each employee's net pay to a supported destination bank and builds
one transfer summary per bank.

Bank names are free text on the employee file; they are matched
case-insensitively against an ordered alias table. An employee who
cannot be routed (unknown bank, missing details, missing account number,
nothing to pay) is left out of every bank group and reported as a
RoutingGapWarning for manual handling.
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from tl_payroll.models.payroll import (
    BANK_NAMES,
    BankCode,
    BankDestination,
    BankTransferLine,
    BankTransferSummary,
    EmployeeCompensation,
    PayrollRecord,
    PayrollRun,
)
from tl_payroll.services.payroll_run_service import format_period_label
from tl_payroll.utils.error_handling import RoutingGapWarning

logger = logging.getLogger(__name__)


# Checked in order; first match wins
BANK_ALIASES: Tuple[Tuple[str, BankCode], ...] = (
    ("BNU", BankCode.BNU),
    ("ULTRAMARINO", BankCode.BNU),
    ("MANDIRI", BankCode.MANDIRI),
    ("ANZ", BankCode.ANZ),
    ("BNCTL", BankCode.BNCTL),
    ("COMÉRCIO", BankCode.BNCTL),
    ("COMERCIO", BankCode.BNCTL),
)


@dataclass(frozen=True)
class BankRouting:
    """Outcome of classifying a bank name: a bank code or unrouted"""
    bank_code: Optional[BankCode] = None
    matched_alias: Optional[str] = None

    @property
    def is_routed(self) -> bool:
        return self.bank_code is not None


UNROUTED = BankRouting()


@dataclass(frozen=True)
class RoutedPayment:
    record: PayrollRecord
    destination: BankDestination


@dataclass
class DisbursementRouting:
    groups: Dict[BankCode, List[RoutedPayment]] = field(
        default_factory=lambda: {code: [] for code in BankCode}
    )
    gaps: List[RoutingGapWarning] = field(default_factory=list)

    @property
    def routed_count(self) -> int:
        return sum(len(payments) for payments in self.groups.values())


def classify_bank(bank_name: Optional[str]) -> BankRouting:
    """Match a free-text bank name against the alias table."""
    if not bank_name or not bank_name.strip():
        return UNROUTED
    normalized = bank_name.strip().upper()
    for alias, code in BANK_ALIASES:
        if alias in normalized:
            return BankRouting(bank_code=code, matched_alias=alias)
    return UNROUTED


def get_bank_name(bank_code: BankCode) -> str:
    return BANK_NAMES[BankCode(bank_code)]


def destinations_from_employees(employees: Iterable[EmployeeCompensation]) -> Dict[str, BankDestination]:
    return {e.employee_id: e.bank for e in employees}


def route_records(
    records: Iterable[PayrollRecord],
    destinations: Mapping[str, BankDestination],
) -> DisbursementRouting:
    """
    Group records by destination bank.

    Args:
        records: Payroll records for the run
        destinations: Bank details keyed by employee id

    Returns:
        DisbursementRouting with one (possibly empty) group per bank code
        and a gap warning for every employee left out.
    """
    routing = DisbursementRouting()

    for record in records:
        destination = destinations.get(record.employee_id)
        if destination is None or not destination.has_bank:
            routing.gaps.append(RoutingGapWarning(
                record.employee_id, RoutingGapWarning.MISSING_BANK_DETAILS,
            ))
            continue

        bank = classify_bank(destination.bank_name)
        if not bank.is_routed:
            routing.gaps.append(RoutingGapWarning(
                record.employee_id, RoutingGapWarning.UNKNOWN_BANK, destination.bank_name,
            ))
            continue

        if not destination.has_account:
            routing.gaps.append(RoutingGapWarning(
                record.employee_id, RoutingGapWarning.MISSING_ACCOUNT_NUMBER, destination.bank_name,
            ))
            continue

        if record.net_pay <= 0:
            routing.gaps.append(RoutingGapWarning(
                record.employee_id, RoutingGapWarning.NON_POSITIVE_NET_PAY, destination.bank_name,
            ))
            continue

        routing.groups[bank.bank_code].append(RoutedPayment(record=record, destination=destination))

    logger.info(
        f"Routed {routing.routed_count} payments, {len(routing.gaps)} employees need manual handling"
    )
    return routing


def transfer_reference(period_label: str, record: PayrollRecord) -> str:
    return f"SALARY-{period_label}-{record.employee_number or record.employee_id}"


def build_transfer_summaries(
    routing: DisbursementRouting,
    run: PayrollRun,
    value_date: Optional[date] = None,
) -> List[BankTransferSummary]:
    """
    One transfer summary per bank that has at least one payment.

    Each line pays the employee's net pay. The value date defaults to the
    run's pay date.
    """
    period_label = format_period_label(run)
    summaries: List[BankTransferSummary] = []

    for bank_code in BankCode:
        payments = routing.groups.get(bank_code, [])
        if not payments:
            continue
        lines = [
            BankTransferLine(
                account_number=p.destination.account_number.strip(),
                account_name=(p.destination.account_name or p.record.employee_name).strip(),
                amount=p.record.net_pay,
                reference=transfer_reference(period_label, p.record),
                employee_id=p.record.employee_id,
            )
            for p in payments
        ]
        summaries.append(BankTransferSummary(
            bank_code=bank_code,
            bank_name=get_bank_name(bank_code),
            lines=lines,
            value_date=value_date or run.pay_date,
            payroll_period=period_label,
        ))
    return summaries
