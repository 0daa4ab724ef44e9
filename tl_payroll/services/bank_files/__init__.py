"""
TL Payroll Core - Bank File Codecs

One codec per supported bank:
- BNU: CSV with key/value metadata and control block
- MANDIRI: fully quoted CSV
- ANZ: CSV with END OF FILE marker
- BNCTL: 120-character fixed-width H/D/T records

BANK_FILE_CODECS covers every BankCode; the module refuses to import if
a bank is added without a codec.
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, Iterable, List, Mapping, Optional, Union

from tl_payroll.models.payroll import (
    BankCode,
    BankDestination,
    BankFileResult,
    BankTransferSummary,
    Originator,
    PayrollRecord,
    PayrollRun,
)
from tl_payroll.services.bank_files.anz_format import generate_anz_file
from tl_payroll.services.bank_files.base import BankFileCodec, calculate_file_hash
from tl_payroll.services.bank_files.bnctl_format import generate_bnctl_file
from tl_payroll.services.bank_files.bnu_format import generate_bnu_file
from tl_payroll.services.bank_files.mandiri_format import generate_mandiri_file
from tl_payroll.services.disbursement_router import (
    build_transfer_summaries,
    route_records,
)
from tl_payroll.services.payroll_run_service import ensure_disbursable
from tl_payroll.utils.error_handling import RoutingGapWarning, UnsupportedBankCodeException

logger = logging.getLogger(__name__)


BANK_FILE_CODECS: Dict[BankCode, BankFileCodec] = {
    BankCode.BNU: generate_bnu_file,
    BankCode.MANDIRI: generate_mandiri_file,
    BankCode.ANZ: generate_anz_file,
    BankCode.BNCTL: generate_bnctl_file,
}

_missing = set(BankCode) - set(BANK_FILE_CODECS)
if _missing:
    raise RuntimeError(f"No bank file codec registered for: {sorted(c.value for c in _missing)}")


def get_codec(bank_code: Union[BankCode, str]) -> BankFileCodec:
    """Codec for a bank code. Unknown codes never fall back to another format."""
    try:
        code = BankCode(bank_code)
    except ValueError:
        raise UnsupportedBankCodeException(bank_code)
    codec = BANK_FILE_CODECS.get(code)
    if codec is None:
        raise UnsupportedBankCodeException(bank_code)
    return codec


def generate_bank_file(
    summary: BankTransferSummary,
    originator: Originator,
    bank_code: Optional[Union[BankCode, str]] = None,
) -> BankFileResult:
    """
    Encode a transfer summary in its bank's file format.

    Raises:
        UnsupportedBankCodeException: the bank code has no codec, or does
            not match the summary
    """
    code = summary.bank_code if bank_code is None else bank_code
    codec = get_codec(code)
    result = codec(summary, originator)
    logger.info(
        f"Generated {result.file_name}: {summary.transaction_count} transfers, "
        f"total {summary.total_amount}"
    )
    return result


@dataclass
class DisbursementBatch:
    """Bank files for a run plus the employees that need manual payment"""
    files: List[BankFileResult] = field(default_factory=list)
    gaps: List[RoutingGapWarning] = field(default_factory=list)


def generate_all_bank_files(
    records: Iterable[PayrollRecord],
    destinations: Mapping[str, BankDestination],
    run: PayrollRun,
    originator: Originator,
    value_date: Optional[date] = None,
) -> DisbursementBatch:
    """
    Route an approved run's records and generate one file per bank.

    Raises:
        RunNotDisbursableException: the run is not approved or paid
    """
    ensure_disbursable(run)
    routing = route_records(records, destinations)
    summaries = build_transfer_summaries(routing, run, value_date)
    files = [generate_bank_file(summary, originator) for summary in summaries]
    return DisbursementBatch(files=files, gaps=routing.gaps)


__all__ = [
    "BANK_FILE_CODECS",
    "BankFileCodec",
    "DisbursementBatch",
    "calculate_file_hash",
    "generate_all_bank_files",
    "generate_anz_file",
    "generate_bank_file",
    "generate_bnctl_file",
    "generate_bnu_file",
    "generate_mandiri_file",
    "get_codec",
]
