"""
TL Payroll Core - Test Configuration

Pytest fixtures and configuration.
"""

from datetime import date
from decimal import Decimal
from typing import AsyncGenerator, Optional

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

from tl_payroll.models.payroll import (
    AllocationTag,
    BankDestination,
    BankTransferLine,
    BankTransferSummary,
    EmployeeCompensation,
    Originator,
    PayrollRun,
    PayrollStatus,
    Residency,
)
from main import app


# ===========================================
# HTTP CLIENT
# ===========================================

@pytest_asyncio.fixture(scope="function")
async def client() -> AsyncGenerator[AsyncClient, None]:
    """Create a test client against the ASGI app."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


# ===========================================
# DATA FIXTURES
# ===========================================

def make_employee(
    employee_id: str = "EMP001",
    monthly_salary: Optional[str] = "1000.00",
    residency: Optional[Residency] = Residency.RESIDENT,
    bank_name: Optional[str] = "BNU",
    account_number: Optional[str] = "0012345678",
    allocation: Optional[AllocationTag] = None,
    **kwargs,
) -> EmployeeCompensation:
    """Build an employee with sensible defaults."""
    return EmployeeCompensation(
        employee_id=employee_id,
        full_name=kwargs.pop("full_name", f"Employee {employee_id}"),
        residency=residency,
        employee_number=kwargs.pop("employee_number", employee_id),
        monthly_salary=Decimal(monthly_salary) if monthly_salary is not None else None,
        bank=BankDestination(bank_name=bank_name, account_number=account_number),
        allocation=allocation,
        **kwargs,
    )


@pytest.fixture
def january_run() -> PayrollRun:
    """Monthly draft run for January 2025."""
    return PayrollRun(
        run_id="RUN-2025-01",
        period_start=date(2025, 1, 1),
        period_end=date(2025, 1, 31),
        pay_date=date(2025, 1, 31),
    )


@pytest.fixture
def approved_run(january_run: PayrollRun) -> PayrollRun:
    return PayrollRun(
        run_id=january_run.run_id,
        period_start=january_run.period_start,
        period_end=january_run.period_end,
        pay_date=january_run.pay_date,
        status=PayrollStatus.APPROVED,
    )


@pytest.fixture
def originator() -> Originator:
    return Originator(company_name="Dili Trading Lda", debit_account="9988776655")


def make_line(i, amount, **overrides) -> BankTransferLine:
    fields = dict(
        account_number=f"00{i}1234567",
        account_name=f"Beneficiary {i}",
        amount=Decimal(amount),
        reference=f"SALARY-JAN2025-EMP00{i}",
        employee_id=f"EMP00{i}",
    )
    fields.update(overrides)
    return BankTransferLine(**fields)


def make_summary(bank_code, amounts=("120.00", "80.50", "45.25"), lines=None) -> BankTransferSummary:
    """Transfer summary with one line per amount, or with the given lines."""
    if lines is None:
        lines = [make_line(i, amount) for i, amount in enumerate(amounts, start=1)]
    return BankTransferSummary(
        bank_code=bank_code,
        bank_name=str(bank_code.value),
        lines=lines,
        value_date=date(2025, 1, 31),
        payroll_period="JAN2025",
    )


@pytest.fixture
def run_payload() -> dict:
    """JSON run descriptor for API tests."""
    return {
        "run_id": "RUN-2025-01",
        "period_start": "2025-01-01",
        "period_end": "2025-01-31",
        "pay_date": "2025-01-31",
    }
