"""
Tests for amount parsing and formatting
"""

import pytest
from decimal import Decimal

from vault_banking.money import MAX_AMOUNT, exact_add, format_amount, parse_amount, quantize
from vault_banking.exceptions import InvalidAmount


class TestParseAmount:
    """Test client amount validation"""

    @pytest.mark.parametrize("value,expected", [
        (100, Decimal("100.00")),
        ("40", Decimal("40.00")),
        (" 12.5 ", Decimal("12.50")),
        (0.1, Decimal("0.10")),
        (Decimal("19.99"), Decimal("19.99")),
        ("0.005", Decimal("0.01")),
    ])
    def test_valid_amounts(self, value, expected):
        assert parse_amount(value) == expected

    @pytest.mark.parametrize("value", [
        None, True, False, 0, -5, "0", "-1", "abc", "", "NaN", "Infinity",
        float("nan"), float("inf"), "0.004", [10], {"amount": 10}
    ])
    def test_invalid_amounts(self, value):
        with pytest.raises(InvalidAmount) as exc_info:
            parse_amount(value)
        assert exc_info.value.message == "Invalid amount"
        assert exc_info.value.status_code == 400

    def test_huge_exponent_rejected(self):
        with pytest.raises(InvalidAmount):
            parse_amount("1e100000")

    def test_ceiling(self):
        assert parse_amount("1000000000") == MAX_AMOUNT
        with pytest.raises(InvalidAmount):
            parse_amount("1000000000.01")
        with pytest.raises(InvalidAmount):
            parse_amount("9e25")
        assert parse_amount("500", maximum=Decimal("500")) == Decimal("500.00")


class TestExactAdd:
    """Test precision-checked addition"""

    def test_exact_sum(self):
        assert exact_add(Decimal("60.00"), Decimal("-40.00")) == Decimal("20.00")

    def test_sum_beyond_precision_rejected(self):
        large = Decimal("1" + "0" * 26 + ".00")
        with pytest.raises(InvalidAmount):
            exact_add(large, Decimal("0.01"))


class TestFormatAmount:
    """Test amount rendering for activity text"""

    def test_integral(self):
        assert format_amount(Decimal("100.00")) == "100"

    def test_fractional(self):
        assert format_amount(Decimal("40.5")) == "40.50"

    def test_quantize_rounds_half_up(self):
        assert quantize(Decimal("2.345")) == Decimal("2.35")
        assert quantize(Decimal("2.344")) == Decimal("2.34")
