"""
Tests for numeric display formatting.
"""

import math

import pytest

from multicalc.errors import NonFiniteResult
from multicalc.formatting import (
    clamp_length,
    format_fixed,
    format_max_decimals,
    format_number,
    round_significant,
)


class TestFormatNumber:
    """Test formatting of calculator results."""

    def test_integer_has_no_fraction(self):
        assert format_number(20.0) == "20"

    def test_float_noise_is_rounded_away(self):
        assert format_number(0.1 + 0.2) == "0.3"

    def test_twelve_significant_digits(self):
        assert format_number(1 / 3) == "0.333333333333"

    def test_trailing_zeros_stripped(self):
        assert format_number(2.50) == "2.5"

    def test_negative_zero(self):
        assert format_number(-0.0) == "0"

    def test_large_value_stays_positional(self):
        assert format_number(1e20) == "100000000000000000000"

    def test_small_value_stays_positional(self):
        assert format_number(1e-7) == "0.0000001"

    def test_negative_value(self):
        assert format_number(-12.75) == "-12.75"

    @pytest.mark.parametrize("value", [math.inf, -math.inf, math.nan])
    def test_non_finite_is_error(self, value):
        assert format_number(value) == "Error"

    @pytest.mark.parametrize("value", [0.1 + 0.2, 1 / 3, 2 / 3, 123456.789, -0.000123, 1e15, math.pi])
    def test_formatting_is_idempotent(self, value):
        once = format_number(value)
        assert format_number(float(once)) == once


class TestRoundSignificant:
    """Test significant-digit rounding."""

    def test_default_digits(self):
        assert round_significant(0.30000000000000004) == 0.3

    def test_custom_digits(self):
        assert round_significant(123456, 2) == 120000

    def test_non_finite_raises(self):
        with pytest.raises(NonFiniteResult):
            round_significant(math.inf)


class TestDisplayHelpers:
    """Test length clamping and fixed-decimal formatting."""

    def test_clamp_short_text_unchanged(self):
        assert clamp_length("123", 15) == "123"

    def test_clamp_long_text(self):
        assert clamp_length("1234567890123456", 15) == "123456789012345"

    def test_clamp_to_lone_sign(self):
        assert clamp_length("-5", 1) == "0"

    def test_format_fixed_groups_thousands(self):
        assert format_fixed(1234.5, 2) == "1,234.50"

    def test_format_max_decimals_strips_zeros(self):
        assert format_max_decimals(0.30480, 5) == "0.3048"

    def test_format_max_decimals_integer(self):
        assert format_max_decimals(100.0, 5) == "100"

    def test_format_max_decimals_tiny_negative(self):
        assert format_max_decimals(-0.000001, 5) == "0"
