"""
Unit, temperature and currency conversion.

Non-temperature units carry a factor relative to their category's base unit
(factor 1). Temperatures convert with the six affine formulas between
Celsius, Fahrenheit and Kelvin. Currency amounts are multiplied by a rate
taken from a rate map fetched for the "from" currency.
"""

import math
from collections.abc import Mapping

import structlog

from multicalc.config import settings
from multicalc.errors import DomainError, NonFiniteResult
from multicalc.formatting import format_fixed, format_max_decimals
from multicalc.models import (
    ConversionRequest,
    ConversionResult,
    CurrencyConversion,
    Unit,
    UnitCategory,
)

logger = structlog.get_logger()


# =============================================================================
# Unit Tables
# =============================================================================

UNITS: dict[UnitCategory, list[Unit]] = {
    UnitCategory.LENGTH: [
        Unit(name="Meter (m)", value="meter", factor=1),
        Unit(name="Kilometer (km)", value="kilometer", factor=1000),
        Unit(name="Centimeter (cm)", value="centimeter", factor=0.01),
        Unit(name="Millimeter (mm)", value="millimeter", factor=0.001),
        Unit(name="Mile (mi)", value="mile", factor=1609.34),
        Unit(name="Yard (yd)", value="yard", factor=0.9144),
        Unit(name="Foot (ft)", value="foot", factor=0.3048),
        Unit(name="Inch (in)", value="inch", factor=0.0254),
    ],
    UnitCategory.MASS: [
        Unit(name="Kilogram (kg)", value="kilogram", factor=1),
        Unit(name="Gram (g)", value="gram", factor=0.001),
        Unit(name="Milligram (mg)", value="milligram", factor=0.000001),
        Unit(name="Pound (lb)", value="pound", factor=0.453592),
        Unit(name="Ounce (oz)", value="ounce", factor=0.0283495),
    ],
    UnitCategory.TEMPERATURE: [
        Unit(name="Celsius (°C)", value="celsius"),
        Unit(name="Fahrenheit (°F)", value="fahrenheit"),
        Unit(name="Kelvin (K)", value="kelvin"),
    ],
    UnitCategory.TIME: [
        Unit(name="Second (s)", value="second", factor=1),
        Unit(name="Minute (min)", value="minute", factor=60),
        Unit(name="Hour (hr)", value="hour", factor=3600),
        Unit(name="Day (d)", value="day", factor=86400),
    ],
    UnitCategory.AREA: [
        Unit(name="Square Meter (m²)", value="sq_meter", factor=1),
        Unit(name="Square Kilometer (km²)", value="sq_kilometer", factor=1e6),
        Unit(name="Square Foot (ft²)", value="sq_foot", factor=0.092903),
    ],
    UnitCategory.VOLUME: [
        Unit(name="Cubic Meter (m³)", value="cubic_meter", factor=1),
        Unit(name="Liter (L)", value="liter", factor=0.001),
        Unit(name="Milliliter (mL)", value="milliliter", factor=1e-6),
    ],
}

TEMPERATURE_FORMULAS = {
    ("celsius", "fahrenheit"): lambda c: c * 9 / 5 + 32,
    ("celsius", "kelvin"): lambda c: c + 273.15,
    ("fahrenheit", "celsius"): lambda f: (f - 32) * 5 / 9,
    ("fahrenheit", "kelvin"): lambda f: (f - 32) * 5 / 9 + 273.15,
    ("kelvin", "celsius"): lambda k: k - 273.15,
    ("kelvin", "fahrenheit"): lambda k: (k - 273.15) * 9 / 5 + 32,
}


def _category(category: UnitCategory | str) -> UnitCategory:
    try:
        return UnitCategory(category)
    except ValueError:
        raise DomainError(f"Unknown unit category: {category}")


def list_units(category: UnitCategory | str) -> list[Unit]:
    """Units available in a category."""
    return list(UNITS[_category(category)])


def find_unit_category(unit: str) -> UnitCategory | None:
    """Category a unit belongs to, if any."""
    for category, units in UNITS.items():
        if any(u.value == unit for u in units):
            return category
    return None


def get_unit(category: UnitCategory | str, unit: str) -> Unit:
    """Look up a unit within a category.

    Raises:
        DomainError: unknown unit, or a unit of another category.
    """
    category = _category(category)
    for candidate in UNITS[category]:
        if candidate.value == unit:
            return candidate
    other = find_unit_category(unit)
    if other is not None:
        raise DomainError(
            f"Cross-category conversion not supported: {unit} is a {other.value} unit, not {category.value}"
        )
    raise DomainError(f"Unknown {category.value} unit: {unit}")


def _check_finite(value: float) -> float:
    if not math.isfinite(value):
        raise NonFiniteResult("Calculation error.")
    return value


# =============================================================================
# Conversions
# =============================================================================

def convert_temperature(from_unit: str, to_unit: str, amount: float) -> float:
    """Convert a temperature between Celsius, Fahrenheit and Kelvin."""
    get_unit(UnitCategory.TEMPERATURE, from_unit)
    get_unit(UnitCategory.TEMPERATURE, to_unit)
    _check_finite(amount)
    if from_unit == to_unit:
        return amount
    return _check_finite(TEMPERATURE_FORMULAS[(from_unit, to_unit)](amount))


def convert_unit(category: UnitCategory | str, from_unit: str, to_unit: str, amount: float) -> float:
    """
    Convert an amount between two units of the same category.

    Factor-based categories use ``amount * factor(from) / factor(to)``;
    temperatures use ``convert_temperature``.

    Raises:
        DomainError: unknown unit, cross-category pair or missing factor.
        NonFiniteResult: the result is NaN or infinite.
    """
    category = _category(category)
    if category is UnitCategory.TEMPERATURE:
        return convert_temperature(from_unit, to_unit, amount)

    source = get_unit(category, from_unit)
    target = get_unit(category, to_unit)
    if not source.factor or not target.factor:
        raise DomainError("Unit conversion factors not found.")
    _check_finite(amount)
    return _check_finite(amount * source.factor / target.factor)


def convert(request: ConversionRequest) -> ConversionResult:
    """Convert a request and describe the result for display."""
    value = convert_unit(request.category, request.from_unit, request.to_unit, request.amount)
    source = get_unit(request.category, request.from_unit)
    target = get_unit(request.category, request.to_unit)
    decimals = settings.conversion_display_decimals
    return ConversionResult(
        request=request,
        value=value,
        formatted_value=format_max_decimals(value, decimals),
        info=f"{format_max_decimals(request.amount, decimals)} {source.name} to {target.name}",
    )


def convert_currency(rates: Mapping[str, float], from_code: str, to_code: str, amount: float) -> float:
    """
    Convert an amount with a rate map fetched for ``from_code``.

    Raises:
        DomainError: non-positive amount or a currency missing from the rates.
        NonFiniteResult: the result is NaN or infinite.
    """
    if not math.isfinite(amount) or amount <= 0:
        raise DomainError("Please enter a valid positive amount.")
    if from_code not in rates:
        raise DomainError(f"Exchange rates are not for {from_code}.")
    rate = rates.get(to_code)
    if not rate:
        raise DomainError("Exchange rate not available for the selected currency.")
    return _check_finite(amount * rate)


def describe_currency_conversion(
    rates: Mapping[str, float], from_code: str, to_code: str, amount: float
) -> CurrencyConversion:
    """Convert currency and describe the result for display."""
    value = convert_currency(rates, from_code, to_code, amount)
    logger.debug("Converted currency", from_code=from_code, to_code=to_code, amount=amount)
    return CurrencyConversion(
        amount=amount,
        from_code=from_code,
        to_code=to_code,
        rate=rates[to_code],
        value=value,
        formatted_value=format_fixed(value, settings.money_display_decimals),
        info=f"{format_max_decimals(amount, 3)} {from_code} to {to_code}",
    )
