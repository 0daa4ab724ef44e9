"""
TL Payroll Core - Bank File Helpers

Shared pieces for the per-bank salary file codecs: batch references,
file names, hashes, amount formatting, CSV writing and fixed-width
field padding.

Every codec is a pure function (summary, originator) -> BankFileResult.
Nothing here reads the clock or generates random ids, so the same
summary always produces byte-identical output.
"""

import csv
import hashlib
import io
import unicodedata
from decimal import Decimal
from typing import Callable, Iterable, List, Sequence

from tl_payroll.models.payroll import (
    BankCode,
    BankFileResult,
    BankTransferSummary,
    Originator,
)
from tl_payroll.utils.error_handling import (
    InvalidAccountNumberException,
    UnsupportedBankCodeException,
    ValidationException,
)
from tl_payroll.utils.money import to_cents, to_money

BankFileCodec = Callable[[BankTransferSummary, Originator], BankFileResult]

CSV_MIME_TYPE = "text/csv"
TEXT_MIME_TYPE = "text/plain"
CSV_EXTENSION = "csv"
TEXT_EXTENSION = "txt"
CURRENCY = "USD"


def ensure_bank(summary: BankTransferSummary, expected: BankCode) -> None:
    """A codec only encodes summaries for its own bank."""
    if summary.bank_code != expected:
        raise UnsupportedBankCodeException(summary.bank_code)


def calculate_file_hash(content: str) -> str:
    """SHA-256 of file content for integrity verification."""
    return hashlib.sha256(content.encode("utf-8")).hexdigest()


def batch_reference(summary: BankTransferSummary, originator: Originator) -> str:
    """
    Deterministic batch reference derived from the summary content.

    Format: SAL + 12 hex characters, e.g. SAL3F9A0C12B7E4.
    """
    parts = [
        summary.bank_code.value,
        summary.payroll_period,
        summary.value_date.isoformat(),
        originator.company_name,
        originator.debit_account,
    ]
    for line in summary.lines:
        parts.extend([
            line.employee_id,
            line.account_number,
            line.account_name,
            format_amount(line.amount),
            line.reference,
        ])
    digest = hashlib.sha256("|".join(parts).encode("utf-8")).hexdigest()
    return f"SAL{digest[:12].upper()}"


def build_file_name(summary: BankTransferSummary, extension: str) -> str:
    """{BANK_CODE}_Salaries_{period}_{YYYYMMDD}.{ext}"""
    return (
        f"{summary.bank_code.value}_Salaries_{summary.payroll_period}_"
        f"{summary.value_date.strftime('%Y%m%d')}.{extension}"
    )


def format_amount(amount: Decimal) -> str:
    """Plain two-decimal amount, e.g. 1234.50 (no thousands separator)."""
    return f"{to_money(amount):.2f}"


def write_csv(rows: Iterable[Sequence[object]], quoting: int = csv.QUOTE_MINIMAL) -> str:
    """
    Render rows as CSV text.

    The csv module doubles embedded quotes and quotes fields containing
    delimiters or line breaks.
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=quoting, lineterminator="\n")
    for row in rows:
        writer.writerow(row)
    return buffer.getvalue()


def make_result(
    summary: BankTransferSummary,
    content: str,
    extension: str,
    mime_type: str,
) -> BankFileResult:
    return BankFileResult(
        content=content,
        file_name=build_file_name(summary, extension),
        mime_type=mime_type,
        summary=summary,
        file_hash=calculate_file_hash(content),
    )


# ===========================================
# FIXED-WIDTH FIELDS
# ===========================================

def ascii_fold(text: str) -> str:
    """Strip accents; characters with no ASCII form become '?'."""
    decomposed = unicodedata.normalize("NFKD", text or "")
    stripped = "".join(c for c in decomposed if not unicodedata.combining(c))
    return stripped.encode("ascii", "replace").decode("ascii")


def text_field(value: str, width: int) -> str:
    """Left-aligned, space-padded, truncated to width."""
    cleaned = " ".join(ascii_fold(value).upper().split())
    return cleaned[:width].ljust(width)


ACCOUNT_SEPARATORS = " -"


def account_field(value: str, width: int) -> str:
    """
    Account number, right-aligned and zero-padded.

    Spaces and hyphens used for grouping are dropped. Account numbers are
    never truncated: any other non-digit character, or more digits than
    the field holds, is rejected.
    """
    digits = "".join(c for c in (value or "") if c not in ACCOUNT_SEPARATORS)
    if not digits or not digits.isdigit() or not digits.isascii() or len(digits) > width:
        raise InvalidAccountNumberException(value, width)
    return digits.rjust(width, "0")


def number_field(value: int, width: int, label: str) -> str:
    """Zero-padded integer. Values that do not fit are rejected."""
    if value < 0:
        raise ValidationException(message=f"{label} cannot be negative: {value}", field=label)
    rendered = str(value).rjust(width, "0")
    if len(rendered) > width:
        raise ValidationException(
            message=f"{label} {value} does not fit in {width} digits",
            field=label,
        )
    return rendered


def cents_field(amount: Decimal, width: int, label: str = "amount") -> str:
    return number_field(to_cents(amount), width, label)


def join_records(records: List[str]) -> str:
    return "\n".join(records) + "\n"
