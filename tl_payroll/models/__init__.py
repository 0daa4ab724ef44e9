"""
TL Payroll Core - Models Package

Payroll domain types. The core does not persist anything; these are
plain dataclasses handed between services.
"""

from tl_payroll.models.payroll import (
    BANK_NAMES,
    AllocationTag,
    AttendanceFacts,
    BankCode,
    BankDestination,
    BankFileResult,
    BankTransferLine,
    BankTransferSummary,
    DeductionType,
    EarningType,
    EmployeeCompensation,
    EmployerTax,
    EmployerTaxType,
    Originator,
    PayFrequency,
    PayrollDeduction,
    PayrollEarning,
    PayrollRecord,
    PayrollRun,
    PayrollStatus,
    PeriodAdjustments,
    Residency,
)

__all__ = [
    "BANK_NAMES",
    "AllocationTag",
    "AttendanceFacts",
    "BankCode",
    "BankDestination",
    "BankFileResult",
    "BankTransferLine",
    "BankTransferSummary",
    "DeductionType",
    "EarningType",
    "EmployeeCompensation",
    "EmployerTax",
    "EmployerTaxType",
    "Originator",
    "PayFrequency",
    "PayrollDeduction",
    "PayrollEarning",
    "PayrollRecord",
    "PayrollRun",
    "PayrollStatus",
    "PeriodAdjustments",
    "Residency",
]
