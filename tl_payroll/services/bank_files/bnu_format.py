"""
TL Payroll Core - BNU Salary File

Banco Nacional Ultramarino bulk salary upload (CSV).

Layout:
- Key/value metadata block
- Header: Seq, Beneficiary Account, Beneficiary Name, Amount, Reference
- One row per transfer
- Control block: Total Records, Total Amount
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

HEADER = ["Seq", "Beneficiary Account", "Beneficiary Name", "Amount", "Reference"]


def generate_bnu_file(summary: BankTransferSummary, originator: Originator) -> BankFileResult:
    ensure_bank(summary, BankCode.BNU)
    total = format_amount(summary.total_amount)

    rows = [
        ["Batch Reference", batch_reference(summary, originator)],
        ["Originator", originator.company_name],
        ["Debit Account", originator.debit_account],
        ["Value Date", summary.value_date.strftime("%Y-%m-%d")],
        ["Payroll Period", summary.payroll_period],
        ["Record Count", summary.transaction_count],
        ["Total Amount", total],
        [],
        HEADER,
    ]
    for seq, line in enumerate(summary.lines, start=1):
        rows.append([
            seq,
            line.account_number,
            line.account_name,
            format_amount(line.amount),
            line.reference,
        ])
    rows.extend([
        [],
        ["Total Records", summary.transaction_count],
        ["Total Amount", total],
    ])

    content = write_csv(rows, quoting=csv.QUOTE_MINIMAL)
    return make_result(summary, content, CSV_EXTENSION, CSV_MIME_TYPE)
