"""
Tests for unit, temperature and currency conversion.
"""

import itertools

import pytest

from multicalc.conversion import (
    convert,
    convert_currency,
    convert_temperature,
    convert_unit,
    describe_currency_conversion,
    find_unit_category,
    get_unit,
    list_units,
)
from multicalc.errors import DomainError, NonFiniteResult
from multicalc.models import ConversionRequest, UnitCategory


class TestUnitConversion:
    """Test factor-based unit conversion."""

    def test_meter_to_centimeter(self):
        assert convert_unit(UnitCategory.LENGTH, "meter", "centimeter", 1) == pytest.approx(100)

    def test_kilogram_to_gram(self):
        assert convert_unit("mass", "kilogram", "gram", 2) == pytest.approx(2000)

    def test_foot_to_meter(self):
        assert convert_unit("length", "foot", "meter", 1) == pytest.approx(0.3048)

    def test_hour_to_minute(self):
        assert convert_unit("time", "hour", "minute", 1.5) == pytest.approx(90)

    def test_same_unit(self):
        assert convert_unit("volume", "liter", "liter", 3) == pytest.approx(3)

    def test_cross_category_rejected(self):
        with pytest.raises(DomainError, match="Cross-category"):
            convert_unit("length", "meter", "gram", 1)

    def test_unknown_unit(self):
        with pytest.raises(DomainError):
            convert_unit("length", "furlong", "meter", 1)

    def test_unknown_category(self):
        with pytest.raises(DomainError):
            convert_unit("energy", "joule", "calorie", 1)

    def test_non_finite_amount(self):
        with pytest.raises(NonFiniteResult):
            convert_unit("length", "meter", "foot", float("inf"))

    def test_convert_request(self):
        result = convert(ConversionRequest(
            category=UnitCategory.LENGTH,
            from_unit="meter",
            to_unit="centimeter",
            amount=1,
        ))
        assert result.formatted_value == "100"
        assert result.info == "1 Meter (m) to Centimeter (cm)"

    def test_convert_request_rounds_display(self):
        result = convert(ConversionRequest(
            category=UnitCategory.LENGTH,
            from_unit="inch",
            to_unit="foot",
            amount=1,
        ))
        assert result.formatted_value == "0.08333"


class TestTemperature:
    """Test the affine temperature formulas."""

    def test_boiling_point(self):
        assert convert_temperature("celsius", "fahrenheit", 100) == pytest.approx(212)

    def test_freezing_point(self):
        assert convert_temperature("fahrenheit", "celsius", 32) == pytest.approx(0)

    def test_absolute_zero(self):
        assert convert_temperature("kelvin", "celsius", 0) == pytest.approx(-273.15)

    def test_via_convert_unit(self):
        assert convert_unit("temperature", "celsius", "kelvin", 0) == pytest.approx(273.15)

    @pytest.mark.parametrize(
        "source,target",
        list(itertools.product(["celsius", "fahrenheit", "kelvin"], repeat=2)),
    )
    def test_round_trip(self, source, target):
        there = convert_temperature(source, target, 37.5)
        assert convert_temperature(target, source, there) == pytest.approx(37.5)

    def test_temperature_unit_in_length(self):
        with pytest.raises(DomainError):
            convert_unit("length", "celsius", "meter", 1)


class TestUnitCatalogue:
    """Test unit lookup helpers."""

    def test_list_units(self):
        units = list_units("temperature")
        assert [u.value for u in units] == ["celsius", "fahrenheit", "kelvin"]
        assert all(u.factor is None for u in units)

    def test_base_unit_factor(self):
        for category in UnitCategory:
            if category is not UnitCategory.TEMPERATURE:
                assert list_units(category)[0].factor == 1

    def test_find_unit_category(self):
        assert find_unit_category("liter") is UnitCategory.VOLUME
        assert find_unit_category("furlong") is None

    def test_get_unit(self):
        assert get_unit("mass", "pound").name == "Pound (lb)"


class TestCurrency:
    """Test conversion with a rate map."""

    def setup_method(self):
        self.rates = {"USD": 1.0, "EUR": 0.9, "JPY": 150.0}

    def test_convert(self):
        assert convert_currency(self.rates, "USD", "EUR", 100) == pytest.approx(90)

    def test_same_currency(self):
        assert convert_currency(self.rates, "USD", "USD", 5) == pytest.approx(5)

    @pytest.mark.parametrize("amount", [0, -5, float("nan")])
    def test_invalid_amount(self, amount):
        with pytest.raises(DomainError):
            convert_currency(self.rates, "USD", "EUR", amount)

    def test_missing_target_rate(self):
        with pytest.raises(DomainError):
            convert_currency(self.rates, "USD", "GBP", 10)

    def test_rates_for_another_base(self):
        with pytest.raises(DomainError):
            convert_currency(self.rates, "GBP", "EUR", 10)

    def test_describe(self):
        result = describe_currency_conversion(self.rates, "USD", "JPY", 1234.5)
        assert result.value == pytest.approx(185175)
        assert result.formatted_value == "185,175.00"
        assert result.info == "1,234.5 USD to JPY"
        assert result.rate == 150.0
