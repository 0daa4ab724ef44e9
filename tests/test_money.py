"""
TL Payroll Core - Money Tests

Unit tests for Decimal currency helpers.
"""

import pytest
from decimal import Decimal

from tl_payroll.utils.money import (
    ZERO,
    add_money,
    apply_rate,
    compare_money,
    divide_money,
    format_money,
    max_money,
    min_money,
    money_equal,
    multiply_money,
    percent_of,
    pro_rata,
    subtract_money,
    sum_money,
    to_cents,
    to_decimal,
    to_money,
)


class TestConversion:
    """Test conversion into Decimal amounts."""

    def test_none_is_zero(self):
        assert to_decimal(None) == Decimal("0")
        assert to_money(None) == Decimal("0.00")

    def test_float_goes_through_string(self):
        """0.1 must not carry binary representation error."""
        assert to_decimal(0.1) == Decimal("0.1")

    def test_round_half_up(self):
        assert to_money("2.345") == Decimal("2.35")
        assert to_money("2.344") == Decimal("2.34")
        assert to_money("-2.345") == Decimal("-2.35")

    def test_to_cents(self):
        assert to_cents("245.75") == 24575
        assert to_cents(Decimal("0.005")) == 1


class TestArithmetic:
    """Test arithmetic helpers."""

    def test_add_and_subtract(self):
        assert add_money("0.10", "0.20") == Decimal("0.30")
        assert subtract_money("100.00", "30.25", "9.75") == Decimal("60.00")

    def test_sum_money(self):
        assert sum_money(["120.00", "80.50", "45.25"]) == Decimal("245.75")
        assert sum_money([]) == ZERO

    def test_multiply_and_rate(self):
        assert multiply_money("5.24", 8) == Decimal("41.92")
        assert apply_rate(500, "0.04") == Decimal("20.00")
        assert percent_of(200, 10) == Decimal("20.00")

    def test_divide_by_zero_yields_zero(self):
        assert divide_money(100, 0) == ZERO
        assert pro_rata(100, 1, 0) == ZERO

    def test_pro_rata(self):
        assert pro_rata(1000, 5, 12) == Decimal("416.67")

    def test_compare_min_max(self):
        assert compare_money("1.00", "2.00") == -1
        assert compare_money("2.00", "2.00") == 0
        assert compare_money("3.00", "2.00") == 1
        assert min_money("5", "3.333") == Decimal("3.33")
        assert max_money(ZERO, "-4") == ZERO


class TestEqualityAndFormatting:
    """Test tolerance comparison and display formatting."""

    @pytest.mark.parametrize("a,b,expected", [
        ("10.00", "10.00", True),
        ("10.00", "10.005", True),
        ("10.00", "10.01", False),
    ])
    def test_money_equal_half_cent(self, a, b, expected):
        assert money_equal(Decimal(a), Decimal(b)) is expected

    def test_format_money(self):
        assert format_money(1234.5) == "USD 1,234.50"
