"""
TL Payroll Core - Bank Mandiri Salary File

Bank Mandiri (Timor-Leste) payroll transfer (CSV, every field quoted).

The control block at the end repeats count and total for the bank's
manual cross-check.
"""

import csv

from tl_payroll.models.payroll import BankCode, BankFileResult, BankTransferSummary, Originator
from tl_payroll.services.bank_files.base import (
    CSV_EXTENSION,
    CSV_MIME_TYPE,
    CURRENCY,
    batch_reference,
    ensure_bank,
    format_amount,
    make_result,
    write_csv,
)

HEADER = ["NO", "ACCOUNT_NO", "ACCOUNT_NAME", "AMOUNT", "CURRENCY", "REMARK"]


def generate_mandiri_file(summary: BankTransferSummary, originator: Originator) -> BankFileResult:
    ensure_bank(summary, BankCode.MANDIRI)
    total = format_amount(summary.total_amount)

    rows = [
        ["BATCH_REF", batch_reference(summary, originator)],
        ["COMPANY", originator.company_name],
        ["SOURCE_ACCOUNT", originator.debit_account],
        ["VALUE_DATE", summary.value_date.strftime("%Y%m%d")],
        ["TRANSACTION_COUNT", summary.transaction_count],
        ["TOTAL_AMOUNT", total],
        HEADER,
    ]
    rows.extend(
        [seq, line.account_number, line.account_name, format_amount(line.amount), CURRENCY, line.reference]
        for seq, line in enumerate(summary.lines, start=1)
    )
    rows.extend([
        ["CONTROL_COUNT", summary.transaction_count],
        ["CONTROL_TOTAL", total],
    ])

    content = write_csv(rows, quoting=csv.QUOTE_ALL)
    return make_result(summary, content, CSV_EXTENSION, CSV_MIME_TYPE)
