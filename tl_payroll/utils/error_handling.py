"""
Error Handling Module for TL Payroll Core

This module provides centralized error handling with:
- Custom exception hierarchy for hard failures
- Non-fatal payroll warnings collected alongside successful output
- Standardized error responses for the HTTP layer
- Error logging
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Optional
import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger("tl_payroll.errors")


class ErrorCode(str, Enum):
    """Standardized error codes for the application"""

    # Validation Errors (4xx)
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_INPUT = "INVALID_INPUT"
    MISSING_FIELD = "MISSING_FIELD"
    MISSING_COMPENSATION = "MISSING_COMPENSATION"
    INVALID_AMOUNT = "INVALID_AMOUNT"
    INVALID_DATE_RANGE = "INVALID_DATE_RANGE"
    INVALID_ACCOUNT_NUMBER = "INVALID_ACCOUNT_NUMBER"

    # Resource Errors
    NOT_FOUND = "NOT_FOUND"

    # Business Logic Errors (422)
    BUSINESS_RULE_VIOLATION = "BUSINESS_RULE_VIOLATION"
    UNSUPPORTED_BANK_CODE = "UNSUPPORTED_BANK_CODE"
    INVALID_STATUS_TRANSITION = "INVALID_STATUS_TRANSITION"
    RUN_NOT_DISBURSABLE = "RUN_NOT_DISBURSABLE"

    # Internal Errors (500)
    INTERNAL_ERROR = "INTERNAL_ERROR"


class WarningCode(str, Enum):
    """Codes for non-fatal conditions reported with otherwise successful output"""

    ROUTING_GAP = "ROUTING_GAP"
    CONSISTENCY_MISMATCH = "CONSISTENCY_MISMATCH"
    OVERTIME_CAP_EXCEEDED = "OVERTIME_CAP_EXCEEDED"
    DEDUCTION_CAP_APPLIED = "DEDUCTION_CAP_APPLIED"
    NEGATIVE_NET_PAY = "NEGATIVE_NET_PAY"
    SICK_LEAVE_LIMIT = "SICK_LEAVE_LIMIT"
    BELOW_TAX_THRESHOLD = "BELOW_TAX_THRESHOLD"


class AppException(Exception):
    """Base exception for all application exceptions"""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        details: Optional[Dict[str, Any]] = None,
        field: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        self.field = field
        self.original_error = original_error
        self.timestamp = datetime.utcnow()
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for JSON response"""
        result = {
            "code": self.code.value,
            "message": self.message,
            "timestamp": self.timestamp.isoformat() + "Z",
        }
        if self.field:
            result["field"] = self.field
        if self.details:
            result["details"] = self.details
        return result


# ============================================================================
# Validation Exceptions
# ============================================================================

class ValidationException(AppException):
    """Base validation exception"""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        code: ErrorCode = ErrorCode.VALIDATION_ERROR,
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            details=details,
            field=field,
        )


class MissingCompensationException(ValidationException):
    """Required compensation data is missing; gross pay is never defaulted to zero"""

    def __init__(self, employee_id: Optional[str], field: str = "monthly_salary"):
        super().__init__(
            message=(
                f"Employee {employee_id or '<unknown>'} has no compensation data "
                f"({field}); payroll record cannot be built."
            ),
            field=field,
            code=ErrorCode.MISSING_COMPENSATION,
            details={"employee_id": employee_id},
        )


class InvalidAmountException(ValidationException):
    """Invalid monetary amount"""

    def __init__(self, amount: Any, field: str = "amount", message: Optional[str] = None):
        super().__init__(
            message=message or f"Invalid amount: {amount}. Amount must be zero or positive.",
            field=field,
            code=ErrorCode.INVALID_AMOUNT,
            details={"provided_amount": str(amount)},
        )


class InvalidDateRangeException(ValidationException):
    """Invalid date range"""

    def __init__(self, start_date: str, end_date: str, message: Optional[str] = None):
        super().__init__(
            message=message or f"Invalid date range: {start_date} to {end_date}. End date must not be before start date.",
            field="date_range",
            code=ErrorCode.INVALID_DATE_RANGE,
            details={"start_date": start_date, "end_date": end_date},
        )


class InvalidAccountNumberException(ValidationException):
    """Bank account number that cannot be written to a transfer file"""

    def __init__(self, account_number: str, max_digits: int, message: Optional[str] = None):
        super().__init__(
            message=message or f"Invalid account number: {account_number}. Expected up to {max_digits} digits.",
            field="account_number",
            code=ErrorCode.INVALID_ACCOUNT_NUMBER,
            details={"provided": account_number, "expected_format": f"1-{max_digits} digits"},
        )


# ============================================================================
# Business Logic Exceptions
# ============================================================================

class BusinessRuleException(AppException):
    """Business rule violation exception"""

    def __init__(
        self,
        message: str,
        rule: Optional[str] = None,
        code: ErrorCode = ErrorCode.BUSINESS_RULE_VIOLATION,
        details: Optional[Dict[str, Any]] = None,
    ):
        _details = details or {}
        if rule:
            _details["violated_rule"] = rule
        super().__init__(
            code=code,
            message=message,
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            details=_details,
        )


class UnsupportedBankCodeException(BusinessRuleException):
    """A bank file codec was requested for a bank code it does not know"""

    def __init__(self, bank_code: Any):
        super().__init__(
            message=f"Unsupported bank code: {bank_code}. No bank file format is registered for it.",
            rule="KNOWN_BANK_FORMAT_REQUIRED",
            code=ErrorCode.UNSUPPORTED_BANK_CODE,
            details={"bank_code": str(bank_code)},
        )


class InvalidStatusTransitionException(BusinessRuleException):
    """Payroll run status may only move forward through its lifecycle"""

    def __init__(self, current: str, requested: str):
        super().__init__(
            message=f"Payroll run cannot move from '{current}' to '{requested}'.",
            rule="MONOTONIC_RUN_LIFECYCLE",
            code=ErrorCode.INVALID_STATUS_TRANSITION,
            details={"current_status": current, "requested_status": requested},
        )


class RunNotDisbursableException(BusinessRuleException):
    """Bank files are only generated for approved or paid runs"""

    def __init__(self, status_value: str):
        super().__init__(
            message=f"Bank files can only be generated for approved or paid runs (status: '{status_value}').",
            rule="APPROVED_RUN_REQUIRED",
            code=ErrorCode.RUN_NOT_DISBURSABLE,
            details={"status": status_value},
        )


# ============================================================================
# Payroll Warnings (non-fatal, collected and returned with output)
# ============================================================================

class PayrollWarning:
    """Base class for non-fatal payroll conditions"""

    def __init__(
        self,
        code: WarningCode,
        message: str,
        employee_id: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.code = code
        self.message = message
        self.employee_id = employee_id
        self.details = details or {}
        logger.warning(
            f"{code.value}: {message}",
            extra={"employee_id": employee_id, "details": self.details},
        )

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "code": self.code.value,
            "message": self.message,
        }
        if self.employee_id:
            result["employee_id"] = self.employee_id
        if self.details:
            result["details"] = self.details
        return result

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PayrollWarning):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.code.value}, {self.message!r})"


class RoutingGapWarning(PayrollWarning):
    """Employee could not be routed to any supported bank"""

    UNKNOWN_BANK = "unknown_bank"
    MISSING_BANK_DETAILS = "missing_bank_details"
    MISSING_ACCOUNT_NUMBER = "missing_account_number"
    NON_POSITIVE_NET_PAY = "non_positive_net_pay"

    def __init__(self, employee_id: str, reason: str, bank_name: Optional[str] = None):
        messages = {
            self.UNKNOWN_BANK: f"Bank name '{bank_name}' does not match any supported bank.",
            self.MISSING_BANK_DETAILS: "No bank details on file.",
            self.MISSING_ACCOUNT_NUMBER: f"No account number for bank '{bank_name}'.",
            self.NON_POSITIVE_NET_PAY: "Net pay is zero or negative; nothing to transfer.",
        }
        super().__init__(
            code=WarningCode.ROUTING_GAP,
            message=f"Employee {employee_id} excluded from bank files: {messages.get(reason, reason)}",
            employee_id=employee_id,
            details={"reason": reason, "bank_name": bank_name},
        )
        self.reason = reason
        self.bank_name = bank_name


class ConsistencyWarning(PayrollWarning):
    """Two totals that must agree differ by more than half a cent"""

    def __init__(
        self,
        label: str,
        expected: Decimal,
        actual: Decimal,
        employee_id: Optional[str] = None,
    ):
        difference = actual - expected
        super().__init__(
            code=WarningCode.CONSISTENCY_MISMATCH,
            message=f"{label} mismatch: expected {expected}, got {actual} (difference {difference}).",
            employee_id=employee_id,
            details={
                "label": label,
                "expected": str(expected),
                "actual": str(actual),
                "difference": str(difference),
            },
        )
        self.label = label
        self.expected = expected
        self.actual = actual


class OvertimeCapWarning(PayrollWarning):
    """Recorded overtime exceeds the statutory daily or weekly cap"""

    def __init__(self, employee_id: Optional[str], scope: str, period: str, hours: Decimal, cap: Decimal):
        super().__init__(
            code=WarningCode.OVERTIME_CAP_EXCEEDED,
            message=(
                f"Overtime of {hours}h on {scope} {period} exceeds the {scope} cap of {cap}h. "
                f"Hours were paid as recorded; review attendance data."
            ),
            employee_id=employee_id,
            details={"scope": scope, "period": period, "hours": str(hours), "cap": str(cap)},
        )
        self.scope = scope
        self.hours = hours
        self.cap = cap


# ============================================================================
# Exception Handlers
# ============================================================================

def create_error_response(
    code: ErrorCode,
    message: str,
    status_code: int,
    details: Optional[Dict[str, Any]] = None,
    field: Optional[str] = None,
) -> JSONResponse:
    """Create a standardized error response"""
    content = {
        "detail": {
            "code": code.value,
            "message": message,
            "timestamp": datetime.utcnow().isoformat() + "Z",
        }
    }
    if field:
        content["detail"]["field"] = field
    if details:
        content["detail"]["details"] = details

    return JSONResponse(status_code=status_code, content=content)


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Handle AppException"""
    logger.error(
        f"AppException: {exc.code.value} - {exc.message}",
        extra={
            "code": exc.code.value,
            "path": request.url.path,
            "method": request.method,
            "details": exc.details,
        },
        exc_info=exc.original_error,
    )

    return create_error_response(
        code=exc.code,
        message=exc.message,
        status_code=exc.status_code,
        details=exc.details,
        field=exc.field,
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Handle HTTPException"""
    code_map = {
        400: ErrorCode.INVALID_INPUT,
        404: ErrorCode.NOT_FOUND,
        422: ErrorCode.VALIDATION_ERROR,
        500: ErrorCode.INTERNAL_ERROR,
    }

    error_code = code_map.get(exc.status_code, ErrorCode.INTERNAL_ERROR)
    message = exc.detail if isinstance(exc.detail, str) else str(exc.detail)

    logger.warning(
        f"HTTPException: {exc.status_code} - {message}",
        extra={"path": request.url.path, "method": request.method},
    )

    return create_error_response(
        code=error_code,
        message=message,
        status_code=exc.status_code,
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handle Pydantic validation errors"""
    errors = []
    for error in exc.errors():
        field = ".".join(str(loc) for loc in error["loc"])
        errors.append({
            "field": field,
            "message": error["msg"],
            "type": error["type"],
        })

    logger.warning(
        f"ValidationError: {len(errors)} validation errors",
        extra={"path": request.url.path, "method": request.method, "errors": errors},
    )

    return create_error_response(
        code=ErrorCode.VALIDATION_ERROR,
        message="Request validation failed",
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        details={"errors": errors},
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unhandled exceptions"""
    logger.critical(
        f"UnhandledException: {type(exc).__name__} - {str(exc)}",
        extra={"path": request.url.path, "method": request.method},
        exc_info=True,
    )

    return create_error_response(
        code=ErrorCode.INTERNAL_ERROR,
        message="An unexpected error occurred. Please try again later.",
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI application"""
    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)


# ============================================================================
# Utility Functions
# ============================================================================

def require_field(value: Any, field: str, employee_id: Optional[str] = None) -> Any:
    """Raise ValidationException when a required field is missing or blank"""
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValidationException(
            message=f"Required field '{field}' is missing.",
            field=field,
            code=ErrorCode.MISSING_FIELD,
            details={"employee_id": employee_id} if employee_id else None,
        )
    return value


def validate_amount(amount: Any, field: str = "amount", allow_zero: bool = True) -> Decimal:
    """Validate a monetary amount and return it as a Decimal"""
    try:
        value = Decimal(str(amount))
    except (TypeError, ValueError, ArithmeticError):
        raise InvalidAmountException(amount, field)
    if not value.is_finite() or value < 0 or (not allow_zero and value == 0):
        raise InvalidAmountException(amount, field)
    return value


__all__ = [
    # Base
    "AppException",
    "ErrorCode",
    "WarningCode",

    # Validation
    "ValidationException",
    "MissingCompensationException",
    "InvalidAmountException",
    "InvalidDateRangeException",
    "InvalidAccountNumberException",

    # Business Logic
    "BusinessRuleException",
    "UnsupportedBankCodeException",
    "InvalidStatusTransitionException",
    "RunNotDisbursableException",

    # Warnings
    "PayrollWarning",
    "RoutingGapWarning",
    "ConsistencyWarning",
    "OvertimeCapWarning",

    # Handlers
    "setup_exception_handlers",
    "create_error_response",

    # Utilities
    "require_field",
    "validate_amount",
]
