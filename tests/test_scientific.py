"""
Tests for the scientific calculator engine.
"""

import math

import pytest

from multicalc.errors import ParseError
from multicalc.formatting import format_number
from multicalc.models import ScientificFunction, ScientificState
from multicalc.scientific import ScientificCalculatorEngine, rewrite_expression


class TestExpressionEntry:
    """Test typed expressions evaluated on "="."""

    def setup_method(self):
        self.engine = ScientificCalculatorEngine()

    def test_power_is_right_associative(self):
        state = self.engine.run_keys(list("2^3^2="))
        assert state.display_value == "512"
        assert state.expression == "2^3^2 ="

    def test_parentheses_and_symbols(self):
        state = self.engine.run_keys(["(", "2", "+", "3", ")", "×", "4", "="])
        assert state.display_value == "20"

    def test_division_by_zero(self):
        state = self.engine.run_keys(list("1/0="))
        assert state.display_value == "Error"
        assert state.expression == "1/0 ="

    def test_overflow(self):
        assert self.engine.run_keys(list("10^400=")).is_error

    def test_malformed_expression(self):
        assert self.engine.run_keys(list("2+*3=")).is_error

    def test_repeated_equals_is_no_op(self):
        state = self.engine.run_keys(list("2+3=="))
        assert state.display_value == "5"
        assert state.expression == "2+3 ="

    def test_typing_after_result_starts_new_expression(self):
        state = self.engine.run_keys(list("2+3=+1"))
        assert state.display_value == "5+1"
        assert state.expression == "5+1"
        assert self.engine.evaluate(state).display_value == "6"

    def test_display_length_cap(self):
        state = self.engine.run_keys(["1"] * 30)
        assert state.display_value == "1" * 25

    def test_backspace(self):
        state = self.engine.run_keys(["1", "2", "DEL"])
        assert state.display_value == "1"
        assert state.expression == "1"

    def test_deferred_function_call(self):
        state = self.engine.run_keys(["1", "+", "√", "1", "6", ")"])
        assert state.display_value == "1+√(16)"
        assert self.engine.evaluate(state).display_value == "5"

    def test_deferred_log_is_base_ten(self):
        state = self.engine.run_keys(["1", "+", "log", "1", "0", "0", ")", "="])
        assert state.display_value == "3"

    def test_typed_trig_uses_radians(self):
        state = self.engine.run_keys(["1", "+", "sin", "3", "0", ")", "="])
        assert state.display_value == format_number(1 + math.sin(30))

    def test_unknown_key(self):
        with pytest.raises(ParseError):
            self.engine.press(ScientificState(), "?")


class TestFunctionButtons:
    """Test functions applied to the displayed value."""

    def setup_method(self):
        self.engine = ScientificCalculatorEngine()

    def test_tan_in_degrees(self):
        assert self.engine.run_keys(["4", "5", "tan"]).display_value == "1"

    def test_inverse_cos_in_radians(self):
        state = self.engine.run_keys(["rad", "inv", "1", "cos"])
        assert state.display_value == "0"
        assert state.expression == "acos(1) ="

    def test_log_ignores_angle_mode(self):
        degrees = self.engine.run_keys(["1", "0", "0", "log"])
        radians = self.engine.run_keys(["rad", "1", "0", "0", "log"])
        assert degrees.display_value == radians.display_value == "2"

    def test_sin_in_degrees(self):
        state = self.engine.run_keys(["3", "0", "sin"])
        assert state.display_value == "0.5"
        assert state.expression == "sin(30) ="

    def test_cos_in_radians(self):
        state = self.engine.run_keys(["rad", "π", "cos"])
        assert state.display_value == "-1"
        assert state.is_radians

    def test_inverse_sin(self):
        state = self.engine.run_keys(["Inv", "1", "sin"])
        assert state.display_value == "90"
        assert state.expression == "asin(1) ="
        assert not state.is_inverse

    def test_inverse_log(self):
        assert self.engine.run_keys(["inv", "2", "log"]).display_value == "100"

    def test_inverse_sqrt_squares(self):
        assert self.engine.run_keys(["inv", "9", "sqrt"]).display_value == "81"

    def test_toggle_does_not_reset_itself(self):
        state = self.engine.toggle_inverse(ScientificState())
        assert state.is_inverse
        state = self.engine.append_token(state, "5")
        assert state.is_inverse
        assert not self.engine.toggle_inverse(state).is_inverse

    def test_sqrt(self):
        assert self.engine.run_keys(["1", "6", "√"]).display_value == "4"

    def test_ln(self):
        state = self.engine.run_keys(["e", "ln"])
        assert state.display_value == "1"

    def test_factorial(self):
        state = self.engine.run_keys(["5", "n!"])
        assert state.display_value == "120"
        assert state.expression == "fact(5) ="

    def test_factorial_too_large(self):
        state = self.engine.run_keys(["1", "7", "1", "fact"])
        assert state.is_error
        assert state.expression == "fact(171) ="

    def test_factorial_negative(self):
        state = self.engine.run_keys(["-", "1", "fact"])
        assert state.is_error
        assert state.expression == "fact(-1) ="

    def test_sqrt_negative(self):
        state = self.engine.apply_unary_function(ScientificState(display_value="-4"), ScientificFunction.SQRT)
        assert state.is_error

    def test_failed_function_resets_inverse(self):
        state = self.engine.run_keys(["inv", "4", "0", "0", "log"])
        assert state.is_error
        assert state.expression == "10^(400) ="
        assert not state.is_inverse

    def test_log_of_zero(self):
        assert self.engine.run_keys(["0", "log"]).is_error

    def test_unknown_function(self):
        with pytest.raises(ParseError):
            self.engine.apply_unary_function(ScientificState(), "cosh")


class TestConstants:
    """Test pi and e."""

    def setup_method(self):
        self.engine = ScientificCalculatorEngine()

    def test_pi_display(self):
        state = self.engine.run_keys(["π"])
        assert state.display_value == str(math.pi)
        assert state.expression == "π"

    def test_pi_evaluates(self):
        state = self.engine.run_keys(["2", "×", "π", "="])
        assert state.display_value == format_number(2 * math.pi)

    def test_e_evaluates(self):
        state = self.engine.run_keys(["e", "="])
        assert state.display_value == format_number(math.e)

    def test_rewrite_expression(self):
        assert rewrite_expression("2×π÷ln(e)") == f"2*({math.pi!r})/log(({math.e!r}))"
        assert rewrite_expression("√(4)+log(10)") == "sqrt(4)+log10(10)"


class TestScientificErrorState:
    """Test error handling and mode persistence."""

    def setup_method(self):
        self.engine = ScientificCalculatorEngine()

    def test_functions_and_equals_ignored_in_error(self):
        error = self.engine.run_keys(list("1/0="))
        assert self.engine.evaluate(error) == error
        assert self.engine.apply_unary_function(error, "sin") == error

    def test_token_clears_error(self):
        state = self.engine.run_keys(list("1/0=7"))
        assert state.display_value == "7"
        assert state.expression == "7"

    def test_constant_clears_error(self):
        state = self.engine.run_keys(list("1/0=") + ["π"])
        assert state.expression == "π"

    def test_clear_keeps_angle_mode(self):
        state = self.engine.run_keys(["rad", "5", "C"])
        assert state == ScientificState(is_radians=True)

    def test_backspace_clears_error(self):
        state = self.engine.run_keys(list("1/0=") + ["DEL"])
        assert state == ScientificState()
