"""
Basic calculator engine.

A binary-operator chain without precedence: each operator press resolves the
pending operation first, so ``2 + 3 × 4 =`` yields 20. Every operation is a
pure transition taking a ``CalculatorState`` and returning a new one.

From the "Error" state, digit, decimal and backspace input behave as an
implicit clear followed by that input; operators and equals are ignored
until then.
"""

import math
import operator as op
from collections.abc import Iterable

import structlog

from multicalc.config import settings
from multicalc.errors import CalculatorError, DomainError, NonFiniteResult, ParseError
from multicalc.formatting import clamp_length, format_number, round_significant
from multicalc.models import ERROR_DISPLAY, CalculatorState, Operator

logger = structlog.get_logger()


def _modulo(a: float, b: float) -> float:
    if b == 0:
        raise DomainError("Modulo by zero")
    return math.fmod(a, b)


def _divide(a: float, b: float) -> float:
    if b == 0:
        raise DomainError("Cannot divide by zero")
    return a / b


OPERATIONS = {
    Operator.ADD: op.add,
    Operator.SUBTRACT: op.sub,
    Operator.MULTIPLY: op.mul,
    Operator.DIVIDE: _divide,
    Operator.MODULO: _modulo,
}

KEY_ALIASES = {
    "×": Operator.MULTIPLY,
    "x": Operator.MULTIPLY,
    "÷": Operator.DIVIDE,
}


def parse_operand(text: str) -> float:
    """Parse a display string as a number."""
    try:
        value = float(text)
    except ValueError:
        raise ParseError(f"Not a number: {text!r}")
    if not math.isfinite(value):
        raise ParseError(f"Not a number: {text!r}")
    return value


class BasicCalculatorEngine:
    """Transitions of the basic calculator."""

    def __init__(self, max_display_length: int | None = None, significant_digits: int | None = None):
        self.max_display_length = max_display_length or settings.basic_max_display_length
        self.significant_digits = significant_digits or settings.significant_digits

    def initial_state(self) -> CalculatorState:
        return CalculatorState()

    def clear(self, state: CalculatorState | None = None) -> CalculatorState:
        """Reset to the initial state."""
        return CalculatorState()

    def error_state(self, expression: str = "") -> CalculatorState:
        return CalculatorState(display_value=ERROR_DISPLAY, expression=expression)

    def _format(self, value: float) -> str:
        return format_number(value, self.significant_digits)

    # =========================================================================
    # Operand entry
    # =========================================================================

    def _with_operand(self, state: CalculatorState, new_display: str, **updates) -> CalculatorState:
        """Replace the operand being typed in both display and expression."""
        old_display = state.display_value
        if state.operator is None:
            # With nothing pending, the operand is the whole expression
            expression = new_display
        elif state.expression.endswith(old_display):
            expression = state.expression[: len(state.expression) - len(old_display)] + new_display
        else:
            expression = state.expression + new_display[len(old_display):]
        return state.model_copy(update={"display_value": new_display, "expression": expression, **updates})

    def input_digit(self, state: CalculatorState, digit: str) -> CalculatorState:
        """Append a digit to the operand, or start the second operand."""
        if digit == ".":
            return self.input_decimal(state)
        if len(digit) != 1 or not digit.isdigit():
            raise ParseError(f"Not a digit: {digit!r}")
        if state.is_error:
            state = self.clear()

        if state.waiting_for_second_operand:
            return state.model_copy(update={
                "display_value": digit,
                "expression": state.expression + digit,
                "waiting_for_second_operand": False,
            })

        if state.display_value == "0":
            new_display = digit
        else:
            new_display = clamp_length(state.display_value + digit, self.max_display_length)
        return self._with_operand(state, new_display)

    def input_decimal(self, state: CalculatorState) -> CalculatorState:
        """Add a decimal point; at most one per operand."""
        if state.is_error:
            state = self.clear()

        if state.waiting_for_second_operand:
            return state.model_copy(update={
                "display_value": "0.",
                "expression": state.expression + "0.",
                "waiting_for_second_operand": False,
            })

        if "." in state.display_value:
            return state
        new_display = state.display_value + "."
        if len(new_display) > self.max_display_length:
            return state
        return self._with_operand(state, new_display)

    # =========================================================================
    # Operators
    # =========================================================================

    def perform_calculation(self, state: CalculatorState) -> float:
        """
        Resolve the pending operation against the displayed operand.

        With no operator pending, the result is the displayed value itself.

        Raises:
            ParseError: an operand is not a number.
            DomainError: division or modulo by zero.
            NonFiniteResult: the result is NaN or infinite.
        """
        second = parse_operand(state.display_value)
        if state.operator is None or state.first_operand is None:
            return second

        first = state.first_operand
        if not math.isfinite(first):
            raise ParseError(f"Not a number: {first}")

        try:
            result = OPERATIONS[state.operator](first, second)
        except OverflowError:
            raise NonFiniteResult("Result too large")
        return round_significant(result, self.significant_digits)

    def set_operator(self, state: CalculatorState, operator: Operator | str) -> CalculatorState:
        """Record the pending operator, first resolving a completed one."""
        try:
            operator = KEY_ALIASES.get(operator) or Operator(operator)
        except ValueError:
            raise ParseError(f"Unknown operator: {operator!r}")
        if state.is_error:
            return state

        if state.operator is not None and not state.waiting_for_second_operand:
            try:
                result = self.perform_calculation(state)
            except CalculatorError as e:
                logger.info("Calculation failed", error=str(e), kind=e.kind)
                return self.error_state()
            display = self._format(result)
            first_operand = result
        else:
            try:
                first_operand = parse_operand(state.display_value)
            except ParseError as e:
                logger.info("Invalid operand", error=str(e))
                return self.error_state()
            display = state.display_value

        return state.model_copy(update={
            "display_value": display,
            "expression": f"{display} {operator.symbol} ",
            "first_operand": first_operand,
            "operator": operator,
            "waiting_for_second_operand": True,
        })

    def equals(self, state: CalculatorState) -> CalculatorState:
        """Resolve the pending operation and show the full trace."""
        if state.is_error:
            return state

        if state.operator is None or state.first_operand is None:
            expression = state.expression.rstrip() or state.display_value
            if not expression.endswith("="):
                expression = f"{expression} ="
            return state.model_copy(update={
                "expression": expression,
                "waiting_for_second_operand": False,
            })

        trace = f"{self._format(state.first_operand)} {state.operator.symbol} {state.display_value} ="
        try:
            result = self.perform_calculation(state)
        except CalculatorError as e:
            logger.info("Calculation failed", error=str(e), kind=e.kind, expression=trace)
            return self.error_state(trace)

        return CalculatorState(
            display_value=self._format(result),
            expression=trace,
            first_operand=result,
            operator=None,
            waiting_for_second_operand=False,
        )

    # =========================================================================
    # Editing
    # =========================================================================

    def backspace(self, state: CalculatorState) -> CalculatorState:
        """Erase the last character of the operand being typed."""
        if state.is_error:
            return self.clear()
        if state.waiting_for_second_operand and state.operator is not None:
            return state
        if state.display_value == "0":
            return state

        old_display = state.display_value
        new_display = old_display[:-1]
        if new_display in ("", "-"):
            new_display = "0"

        if state.expression.endswith(old_display):
            prefix = state.expression[: len(state.expression) - len(old_display)]
            expression = prefix + new_display
        else:
            expression = state.expression[:-1]
        if expression == "0":
            expression = ""

        return state.model_copy(update={"display_value": new_display, "expression": expression})

    # =========================================================================
    # Key dispatch
    # =========================================================================

    def press(self, state: CalculatorState, key: str) -> CalculatorState:
        """Apply a button press by its label."""
        key = key.strip()
        if key.isdigit() and len(key) == 1:
            return self.input_digit(state, key)
        if key == ".":
            return self.input_decimal(state)
        if key in KEY_ALIASES or key in {o.value for o in Operator}:
            return self.set_operator(state, key)
        if key == "=":
            return self.equals(state)
        if key.upper() in ("C", "AC", "CLEAR"):
            return self.clear(state)
        if key.upper() in ("DEL", "BACKSPACE", "⌫"):
            return self.backspace(state)
        raise ParseError(f"Unknown key: {key!r}")

    def run_keys(self, keys: Iterable[str], state: CalculatorState | None = None) -> CalculatorState:
        """Fold a sequence of key presses into a final state."""
        state = state or self.initial_state()
        for key in keys:
            state = self.press(state, key)
        return state
