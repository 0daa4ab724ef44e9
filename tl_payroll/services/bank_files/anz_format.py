"""
TL Payroll Core - ANZ Salary File

ANZ Bank bulk payments (CSV). Dates are DD/MM/YYYY and the file ends
with an END OF FILE marker after the payment totals.
"""

import csv

from tl_payroll.models.payroll import BankCode, BankFileResult, BankTransferSummary, Originator
from tl_payroll.services.bank_files.base import (
    CSV_EXTENSION,
    CSV_MIME_TYPE,
    batch_reference,
    ensure_bank,
    format_amount,
    make_result,
    write_csv,
)

HEADER = ["Account Name", "Account Number", "Amount", "Payment Reference", "Employee ID"]


def generate_anz_file(summary: BankTransferSummary, originator: Originator) -> BankFileResult:
    ensure_bank(summary, BankCode.ANZ)
    total = format_amount(summary.total_amount)

    rows = [
        ["Batch Reference", batch_reference(summary, originator)],
        ["Originator Name", originator.company_name],
        ["Debit Account Number", originator.debit_account],
        ["Value Date", summary.value_date.strftime("%d/%m/%Y")],
        ["Transaction Count", summary.transaction_count],
        ["Batch Total", total],
        [],
        HEADER,
    ]
    for line in summary.lines:
        rows.append([
            line.account_name,
            line.account_number,
            format_amount(line.amount),
            line.reference,
            line.employee_id,
        ])
    rows.extend([
        [],
        ["Number of Payments", summary.transaction_count],
        ["Total Payment Amount", total],
        ["END OF FILE"],
    ])

    content = write_csv(rows, quoting=csv.QUOTE_MINIMAL)
    return make_result(summary, content, CSV_EXTENSION, CSV_MIME_TYPE)
