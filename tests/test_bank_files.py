"""
TL Payroll Core - Bank File Codec Tests

Tests for the BNU, Mandiri, ANZ and BNCTL salary file formats.
"""

import csv
import io
from dataclasses import FrozenInstanceError, replace

import pytest
from decimal import Decimal

from conftest import make_line, make_summary
from tl_payroll.models.payroll import BankCode
from tl_payroll.services.bank_files import (
    BANK_FILE_CODECS,
    generate_anz_file,
    generate_bank_file,
    generate_bnctl_file,
    generate_bnu_file,
    generate_mandiri_file,
    get_codec,
)
from tl_payroll.services.bank_files.base import (
    account_field,
    ascii_fold,
    batch_reference,
    cents_field,
    text_field,
)
from tl_payroll.services.bank_files.bnctl_format import RECORD_LENGTH
from tl_payroll.utils.error_handling import (
    ErrorCode,
    InvalidAccountNumberException,
    UnsupportedBankCodeException,
    ValidationException,
)


def csv_rows(content):
    return list(csv.reader(io.StringIO(content)))


def row_value(rows, key):
    for row in rows:
        if row and row[0] == key:
            return row[1]
    raise AssertionError(f"{key} not found")


class TestCodecRegistry:
    """Every bank code has exactly one codec."""

    def test_registry_is_complete(self):
        assert set(BANK_FILE_CODECS) == set(BankCode)

    def test_unknown_code_is_rejected(self):
        with pytest.raises(UnsupportedBankCodeException) as exc_info:
            get_codec("WESTPAC")
        assert exc_info.value.code == ErrorCode.UNSUPPORTED_BANK_CODE

    def test_codec_refuses_other_banks(self, originator):
        with pytest.raises(UnsupportedBankCodeException):
            generate_bnu_file(make_summary(BankCode.ANZ), originator)

    def test_explicit_code_must_exist(self, originator):
        with pytest.raises(UnsupportedBankCodeException):
            generate_bank_file(make_summary(BankCode.BNU), originator, bank_code="XYZ")


class TestControlTotals:
    """120.00 + 80.50 + 45.25 = 245.75 over 3 transfers, in every format."""

    def test_bnu(self, originator):
        rows = csv_rows(generate_bnu_file(make_summary(BankCode.BNU), originator).content)

        assert row_value(rows, "Record Count") == "3"
        assert row_value(rows, "Total Records") == "3"
        assert row_value(rows, "Total Amount") == "245.75"
        assert rows[-1] == ["Total Amount", "245.75"]

    def test_mandiri(self, originator):
        content = generate_mandiri_file(make_summary(BankCode.MANDIRI), originator).content
        rows = csv_rows(content)

        assert row_value(rows, "TRANSACTION_COUNT") == "3"
        assert row_value(rows, "TOTAL_AMOUNT") == "245.75"
        assert rows[-2:] == [["CONTROL_COUNT", "3"], ["CONTROL_TOTAL", "245.75"]]
        # Every field is quoted
        assert '"CONTROL_TOTAL","245.75"' in content

    def test_anz(self, originator):
        rows = csv_rows(generate_anz_file(make_summary(BankCode.ANZ), originator).content)

        assert row_value(rows, "Transaction Count") == "3"
        assert row_value(rows, "Number of Payments") == "3"
        assert row_value(rows, "Total Payment Amount") == "245.75"
        assert row_value(rows, "Value Date") == "31/01/2025"
        assert rows[-1] == ["END OF FILE"]

    def test_bnctl(self, originator):
        content = generate_bnctl_file(make_summary(BankCode.BNCTL), originator).content
        records = content.splitlines()
        header, details, trailer = records[0], records[1:-1], records[-1]

        assert len(details) == 3
        assert header[80:86] == "000003"
        assert header[86:101] == "000000000024575"
        assert trailer[1:7] == "000003"
        assert trailer[7:22] == "000000000024575"

    @pytest.mark.parametrize("bank_code", list(BankCode))
    def test_summary_totals(self, bank_code, originator):
        result = generate_bank_file(make_summary(bank_code), originator)

        assert result.summary.transaction_count == 3
        assert result.summary.total_amount == Decimal("245.75")


class TestSummaryTotals:
    """Control totals are the sum of the amounts printed on the lines."""

    def test_line_amounts_are_cents(self):
        line = make_line(1, "10.005")

        assert line.amount == Decimal("10.01")

    @pytest.mark.parametrize("bank_code,total_key", [
        (BankCode.BNU, "Total Amount"),
        (BankCode.MANDIRI, "TOTAL_AMOUNT"),
        (BankCode.ANZ, "Total Payment Amount"),
    ])
    def test_csv_total_matches_printed_lines(self, bank_code, total_key, originator):
        summary = make_summary(bank_code, amounts=("10.005", "10.005"))
        content = generate_bank_file(summary, originator).content

        assert summary.total_amount == Decimal("20.02")
        assert row_value(csv_rows(content), total_key) == "20.02"
        assert content.count("10.01") == 2

    def test_bnctl_total_matches_printed_lines(self, originator):
        summary = make_summary(BankCode.BNCTL, amounts=("10.005", "10.005"))
        records = generate_bnctl_file(summary, originator).content.splitlines()

        assert [record[62:77] for record in records[1:-1]] == ["000000000001001"] * 2
        assert records[-1][7:22] == "000000000002002"

    def test_summary_cannot_be_edited(self):
        summary = make_summary(BankCode.BNU)

        with pytest.raises(FrozenInstanceError):
            summary.lines = ()
        with pytest.raises(TypeError):
            summary.lines[0] = make_line(9, "1.00")

    def test_totals_follow_lines(self):
        summary = make_summary(BankCode.BNU)
        shorter = replace(summary, lines=summary.lines[:1])

        assert shorter.transaction_count == 1
        assert shorter.total_amount == Decimal("120.00")
        assert summary.transaction_count == 3


class TestBNCTLLayout:
    """Test the 120-character fixed-width records."""

    def test_every_record_is_120_characters(self, originator):
        content = generate_bnctl_file(make_summary(BankCode.BNCTL), originator).content

        assert content.endswith("\n")
        assert all(len(record) == RECORD_LENGTH for record in content.splitlines())

    def test_header_fields(self, originator):
        summary = make_summary(BankCode.BNCTL)
        header = generate_bnctl_file(summary, originator).content.splitlines()[0]

        assert header[0] == "H"
        assert header[1:36].rstrip() == "DILI TRADING LDA"
        assert header[36:56] == "00000000009988776655"
        assert header[56:64] == "20250131"
        assert header[64:80].rstrip() == batch_reference(summary, originator)

    def test_detail_fields(self, originator):
        detail = generate_bnctl_file(make_summary(BankCode.BNCTL), originator).content.splitlines()[1]

        assert detail[0] == "D"
        assert detail[1:7] == "000001"
        assert detail[7:27] == "00000000000011234567"
        assert detail[27:62].rstrip() == "BENEFICIARY 1"
        assert detail[62:77] == "000000000012000"
        assert detail[77:107].rstrip() == "SALARY-JAN2025-EMP001"

    def test_long_fields_are_truncated(self, originator):
        summary = make_summary(BankCode.BNCTL, lines=[make_line(
            1,
            "100.00",
            account_name="Maria Fernanda dos Santos Guterres da Conceição Soares",
            reference="SALARY-JAN2025-A-VERY-LONG-EMPLOYEE-NUMBER-0001",
        )])
        records = generate_bnctl_file(summary, originator).content.splitlines()

        assert all(len(record) == RECORD_LENGTH for record in records)
        assert records[1][27:62] == "MARIA FERNANDA DOS SANTOS GUTERRES "
        assert records[1][77:107] == "SALARY-JAN2025-A-VERY-LONG-EMP"

    def test_grouped_account_number(self):
        assert account_field("0080-0012 3456", 20) == "00000000008000123456"

    @pytest.mark.parametrize("account_number", [
        "TL38 0080 0012 3456 7890 12",
        "12345678901234567890123",
        "",
        "0080/0012",
    ])
    def test_unprintable_account_rejected(self, account_number, originator):
        summary = make_summary(BankCode.BNCTL, lines=[make_line(1, "100.00", account_number=account_number)])

        with pytest.raises(InvalidAccountNumberException) as exc_info:
            generate_bnctl_file(summary, originator)
        assert exc_info.value.code == ErrorCode.INVALID_ACCOUNT_NUMBER
        assert exc_info.value.details["provided"] == account_number

    def test_accents_are_folded(self):
        assert ascii_fold("Comércio João") == "Comercio Joao"
        assert text_field("José  da  Silva", 10) == "JOSE DA SI"

    def test_amount_overflow_rejected(self):
        with pytest.raises(ValidationException):
            cents_field(Decimal("10000000000000.00"), 15)


class TestDeterminism:
    """The same summary always produces the same bytes."""

    @pytest.mark.parametrize("bank_code", list(BankCode))
    def test_idempotent(self, bank_code, originator):
        first = generate_bank_file(make_summary(bank_code), originator)
        second = generate_bank_file(make_summary(bank_code), originator)

        assert first.content == second.content
        assert first.file_hash == second.file_hash
        assert first.file_name == second.file_name

    def test_batch_reference_tracks_content(self, originator):
        reference = batch_reference(make_summary(BankCode.BNU), originator)
        changed = batch_reference(make_summary(BankCode.BNU, amounts=("120.00", "80.50", "45.26")), originator)

        assert reference.startswith("SAL")
        assert len(reference) == 15
        assert reference != changed

    def test_file_names(self, originator):
        assert generate_bnu_file(make_summary(BankCode.BNU), originator).file_name == (
            "BNU_Salaries_JAN2025_20250131.csv"
        )
        result = generate_bnctl_file(make_summary(BankCode.BNCTL), originator)
        assert result.file_name == "BNCTL_Salaries_JAN2025_20250131.txt"
        assert result.mime_type == "text/plain"


class TestCSVEscaping:
    """Names with commas or quotes survive a CSV round trip."""

    def test_special_characters(self, originator):
        summary = make_summary(BankCode.BNU, lines=[
            make_line(1, "100.00", account_number="001", account_name='Silva, Maria "Mia"'),
        ])
        rows = csv_rows(generate_bnu_file(summary, originator).content)
        header_index = rows.index(["Seq", "Beneficiary Account", "Beneficiary Name", "Amount", "Reference"])

        assert rows[header_index + 1][2] == 'Silva, Maria "Mia"'
