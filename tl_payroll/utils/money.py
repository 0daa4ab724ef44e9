"""
TL Payroll Core - Money Utilities

Decimal-exact currency helpers used by every payroll calculation.

- Working precision: 20 significant digits
- Rounding: ROUND_HALF_UP (standard banking rounding)
- Output scale: 2 decimal places (cents)
- None is treated as zero, never as an error
"""

from decimal import Context, Decimal, ROUND_HALF_UP, localcontext
from typing import Iterable, Optional, Union

MoneyInput = Union[Decimal, int, float, str, None]

MONEY_CONTEXT = Context(prec=20, rounding=ROUND_HALF_UP)

CENT = Decimal("0.01")
HALF_CENT = Decimal("0.005")
ZERO = Decimal("0.00")


def to_decimal(value: MoneyInput) -> Decimal:
    """
    Create a Decimal from any supported input.

    Floats are converted through their string form so binary
    representation error never enters a calculation.
    """
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


def to_money(value: MoneyInput) -> Decimal:
    """Round to cents (2 decimal places, half-up)."""
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def add_money(*values: MoneyInput) -> Decimal:
    """Add multiple currency values."""
    with localcontext(MONEY_CONTEXT):
        total = Decimal("0")
        for value in values:
            total += to_decimal(value)
        return to_money(total)


def subtract_money(base: MoneyInput, *values: MoneyInput) -> Decimal:
    """Subtract currency values: base - a - b ..."""
    with localcontext(MONEY_CONTEXT):
        result = to_decimal(base)
        for value in values:
            result -= to_decimal(value)
        return to_money(result)


def multiply_money(value: MoneyInput, factor: MoneyInput) -> Decimal:
    """Multiply a currency value by a scalar factor."""
    with localcontext(MONEY_CONTEXT):
        return to_money(to_decimal(value) * to_decimal(factor))


def divide_money(value: MoneyInput, divisor: MoneyInput) -> Decimal:
    """Divide a currency value. Division by zero yields zero."""
    divisor_dec = to_decimal(divisor)
    if divisor_dec == 0:
        return ZERO
    with localcontext(MONEY_CONTEXT):
        return to_money(to_decimal(value) / divisor_dec)


def percent_of(value: MoneyInput, percent: MoneyInput) -> Decimal:
    """Percentage of a value, e.g. percent_of(200, 10) == 20.00."""
    with localcontext(MONEY_CONTEXT):
        return to_money(to_decimal(value) * to_decimal(percent) / 100)


def apply_rate(value: MoneyInput, rate: MoneyInput) -> Decimal:
    """Apply a fractional rate, e.g. apply_rate(500, "0.04") == 20.00."""
    with localcontext(MONEY_CONTEXT):
        return to_money(to_decimal(value) * to_decimal(rate))


def sum_money(values: Iterable[MoneyInput]) -> Decimal:
    """Sum an iterable of currency values."""
    return add_money(*values)


def pro_rata(amount: MoneyInput, numerator: MoneyInput, denominator: MoneyInput) -> Decimal:
    """
    Pro-rated amount: amount * numerator / denominator.

    pro_rata(1000, 5, 12) == 416.67. A zero denominator yields zero.
    """
    denominator_dec = to_decimal(denominator)
    if denominator_dec == 0:
        return ZERO
    with localcontext(MONEY_CONTEXT):
        return to_money(to_decimal(amount) * to_decimal(numerator) / denominator_dec)


def compare_money(a: MoneyInput, b: MoneyInput) -> int:
    """Return -1 if a < b, 0 if equal, 1 if a > b."""
    left, right = to_decimal(a), to_decimal(b)
    if left < right:
        return -1
    if left > right:
        return 1
    return 0


def min_money(*values: MoneyInput) -> Decimal:
    """Smallest of the given values, rounded to cents."""
    return to_money(min(to_decimal(v) for v in values))


def max_money(*values: MoneyInput) -> Decimal:
    """Largest of the given values, rounded to cents."""
    return to_money(max(to_decimal(v) for v in values))


def is_positive(value: MoneyInput) -> bool:
    return to_decimal(value) > 0


def is_negative(value: MoneyInput) -> bool:
    return to_decimal(value) < 0


def money_equal(a: MoneyInput, b: MoneyInput, tolerance: Optional[Decimal] = None) -> bool:
    """True when two amounts differ by no more than half a cent."""
    limit = HALF_CENT if tolerance is None else tolerance
    return abs(to_decimal(a) - to_decimal(b)) <= limit


def format_money(value: MoneyInput, currency: str = "USD") -> str:
    """Format for display, e.g. format_money(1234.5) == "USD 1,234.50"."""
    return f"{currency} {to_money(value):,.2f}"


def to_cents(value: MoneyInput) -> int:
    """Integer cents, e.g. to_cents("245.75") == 24575."""
    return int(to_money(value) * 100)


__all__ = [
    "MONEY_CONTEXT",
    "CENT",
    "HALF_CENT",
    "ZERO",
    "MoneyInput",
    "to_decimal",
    "to_money",
    "add_money",
    "subtract_money",
    "multiply_money",
    "divide_money",
    "percent_of",
    "apply_rate",
    "sum_money",
    "pro_rata",
    "compare_money",
    "min_money",
    "max_money",
    "is_positive",
    "is_negative",
    "money_equal",
    "format_money",
    "to_cents",
]
