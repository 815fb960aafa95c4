"""
Numeric formatting for calculator displays.

Values are rounded to a bounded number of significant digits and printed in
plain positional notation, never switching to an exponent form.
"""

import math
from decimal import Decimal

from multicalc.config import settings
from multicalc.errors import NonFiniteResult
from multicalc.models import ERROR_DISPLAY


def round_significant(value: float, digits: int | None = None) -> float:
    """Round a value to ``digits`` significant digits.

    Raises:
        NonFiniteResult: value is NaN or infinite.
    """
    digits = digits or settings.significant_digits
    if not math.isfinite(value):
        raise NonFiniteResult(f"Non-finite result: {value}")
    return float(f"{value:.{digits}g}")


def format_number(value: float, digits: int | None = None) -> str:
    """Format a value for display, or return the error sentinel."""
    if not math.isfinite(value):
        return ERROR_DISPLAY
    rounded = round_significant(value, digits)
    if rounded == 0:
        return "0"
    text = format(Decimal(repr(rounded)), "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def clamp_length(text: str, max_length: int) -> str:
    """Truncate a display string to ``max_length`` characters."""
    if len(text) <= max_length:
        return text
    clamped = text[:max_length]
    # A lone sign is not a number
    if clamped in ("", "-"):
        return "0"
    return clamped


def format_fixed(value: float, decimals: int) -> str:
    """Format with grouping and exactly ``decimals`` fraction digits."""
    return f"{value:,.{decimals}f}"


def format_max_decimals(value: float, decimals: int) -> str:
    """Format with grouping and at most ``decimals`` fraction digits."""
    text = f"{value:,.{decimals}f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return "0" if text == "-0" else text
