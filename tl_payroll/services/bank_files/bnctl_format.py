"""
TL Payroll Core - BNCTL Salary File

Banco Nacional de Comércio de Timor-Leste fixed-width transfer file.

Every record is exactly 120 characters. Text is ASCII, upper case,
left-aligned and space-padded; numbers and account numbers are
right-aligned and zero-padded; amounts are integer cents. Text is
truncated to its field, account numbers never are.

Header (H):
    pos   1      record type "H"
    pos   2-36   originator name (35)
    pos  37-56   debit account (20)
    pos  57-64   value date YYYYMMDD (8)
    pos  65-80   batch reference (16)
    pos  81-86   record count (6)
    pos  87-101  total amount in cents (15)
    pos 102-120  filler

Detail (D):
    pos   1      record type "D"
    pos   2-7    sequence (6)
    pos   8-27   beneficiary account (20)
    pos  28-62   beneficiary name (35)
    pos  63-77   amount in cents (15)
    pos  78-107  reference (30)
    pos 108-120  filler

Trailer (T):
    pos   1      record type "T"
    pos   2-7    record count (6)
    pos   8-22   total amount in cents (15)
    pos  23-120  filler
"""

from typing import List

from tl_payroll.models.payroll import (
    BankCode,
    BankFileResult,
    BankTransferLine,
    BankTransferSummary,
    Originator,
)
from tl_payroll.services.bank_files.base import (
    TEXT_EXTENSION,
    TEXT_MIME_TYPE,
    account_field,
    batch_reference,
    cents_field,
    ensure_bank,
    join_records,
    make_result,
    number_field,
    text_field,
)

RECORD_LENGTH = 120


def _finish(record: str) -> str:
    record = record.ljust(RECORD_LENGTH)
    if len(record) != RECORD_LENGTH:
        raise ValueError(f"Fixed-width record is {len(record)} characters, expected {RECORD_LENGTH}")
    return record


def header_record(summary: BankTransferSummary, originator: Originator) -> str:
    return _finish(
        "H"
        + text_field(originator.company_name, 35)
        + account_field(originator.debit_account, 20)
        + summary.value_date.strftime("%Y%m%d")
        + text_field(batch_reference(summary, originator), 16)
        + number_field(summary.transaction_count, 6, "record_count")
        + cents_field(summary.total_amount, 15, "total_amount")
    )


def detail_record(seq: int, line: BankTransferLine) -> str:
    return _finish(
        "D"
        + number_field(seq, 6, "sequence")
        + account_field(line.account_number, 20)
        + text_field(line.account_name, 35)
        + cents_field(line.amount, 15)
        + text_field(line.reference, 30)
    )


def trailer_record(summary: BankTransferSummary) -> str:
    return _finish(
        "T"
        + number_field(summary.transaction_count, 6, "record_count")
        + cents_field(summary.total_amount, 15, "total_amount")
    )


def generate_bnctl_file(summary: BankTransferSummary, originator: Originator) -> BankFileResult:
    ensure_bank(summary, BankCode.BNCTL)

    records: List[str] = [header_record(summary, originator)]
    records.extend(detail_record(seq, line) for seq, line in enumerate(summary.lines, start=1))
    records.append(trailer_record(summary))

    return make_result(summary, join_records(records), TEXT_EXTENSION, TEXT_MIME_TYPE)
