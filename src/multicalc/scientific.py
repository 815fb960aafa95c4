"""
Scientific calculator engine.

Typed tokens accumulate into an expression that is handed to the expression
evaluator on "=". Function buttons instead apply directly to the displayed
value, honoring the angle mode and the one-shot inverse toggle.

Angle mode only governs the function buttons. Trigonometric functions typed
into the expression text (``sin(30)``) are evaluated in radians whatever the
mode.

From the "Error" state, typed tokens and constants start a fresh expression;
function buttons and "=" are ignored until then.
"""

import math
import re
from collections.abc import Iterable

import structlog

from multicalc.config import settings
from multicalc.errors import CalculatorError, DomainError, NonFiniteResult, ParseError
from multicalc.expression import ExpressionEvaluator, get_evaluator
from multicalc.formatting import format_number
from multicalc.models import ERROR_DISPLAY, ScientificFunction, ScientificState

logger = structlog.get_logger()


TOKENS = set("0123456789.+-*/^()")

KEY_ALIASES = {
    "×": "*",
    "÷": "/",
    "xʸ": "^",
    "√": ScientificFunction.SQRT.value,
    "n!": ScientificFunction.FACT.value,
    "π": ScientificFunction.PI.value,
}

CONSTANTS = {
    ScientificFunction.PI: (math.pi, "π"),
    ScientificFunction.E: (math.e, "e"),
}

# Deferred function calls are written the way the expression rewrite reads them
DEFERRED_PREFIXES = {
    ScientificFunction.SQRT: "√(",
}

TRIGONOMETRY = {
    ScientificFunction.SIN: (math.sin, math.asin),
    ScientificFunction.COS: (math.cos, math.acos),
    ScientificFunction.TAN: (math.tan, math.atan),
}

INVERSE_PREVIEWS = {
    ScientificFunction.SIN: "asin({})",
    ScientificFunction.COS: "acos({})",
    ScientificFunction.TAN: "atan({})",
    ScientificFunction.LOG: "10^({})",
    ScientificFunction.LN: "e^({})",
    ScientificFunction.SQRT: "sqr({})",
}


def rewrite_expression(expression: str) -> str:
    """Rewrite display notation into evaluator syntax."""
    text = expression.replace("×", "*").replace("÷", "/")
    text = text.replace("π", f"({math.pi!r})")
    text = re.sub(r"(?<![A-Za-z_])e(?![A-Za-z_])", f"({math.e!r})", text)
    text = text.replace("√(", "sqrt(")
    text = re.sub(r"(?<![A-Za-z_])log\(", "log10(", text)
    text = re.sub(r"(?<![A-Za-z_])ln\(", "log(", text)
    return text


class ScientificCalculatorEngine:
    """Transitions of the scientific calculator."""

    def __init__(
        self,
        evaluator: ExpressionEvaluator | None = None,
        max_display_length: int | None = None,
        significant_digits: int | None = None,
    ):
        self.evaluator = evaluator or get_evaluator()
        self.max_display_length = max_display_length or settings.scientific_max_display_length
        self.significant_digits = significant_digits or settings.significant_digits

    def initial_state(self) -> ScientificState:
        return ScientificState()

    def clear(self, state: ScientificState) -> ScientificState:
        """Reset display and expression, keeping the angle mode."""
        return ScientificState(is_radians=state.is_radians)

    def _format(self, value: float) -> str:
        return format_number(value, self.significant_digits)

    @staticmethod
    def _trace_complete(state: ScientificState) -> bool:
        return state.expression.endswith("=")

    # =========================================================================
    # Modes
    # =========================================================================

    def set_angle_mode(self, state: ScientificState, radians: bool) -> ScientificState:
        return state.model_copy(update={"is_radians": radians})

    def toggle_inverse(self, state: ScientificState) -> ScientificState:
        return state.model_copy(update={"is_inverse": not state.is_inverse})

    # =========================================================================
    # Expression entry
    # =========================================================================

    def append_token(self, state: ScientificState, token: str) -> ScientificState:
        """Append literal text to the display and the expression."""
        if state.is_error:
            state = self.clear(state)

        if state.display_value == "0" and token != ".":
            new_display = token
        else:
            new_display = state.display_value + token
        if len(new_display) > self.max_display_length:
            return state

        if self._trace_complete(state):
            # A finished trace is replaced by the text being typed
            expression = new_display
        else:
            expression = state.expression + token
        return state.model_copy(update={"display_value": new_display, "expression": expression})

    def backspace(self, state: ScientificState) -> ScientificState:
        """Erase the last typed character."""
        if state.is_error:
            return self.clear(state)

        old_display = state.display_value
        if self._trace_complete(state):
            working = old_display if old_display != "0" else ""
        else:
            working = state.expression

        new_display = old_display[:-1] if len(old_display) > 1 else "0"
        if new_display in ("", "-"):
            new_display = "0"

        if working.endswith(old_display):
            expression = working[: len(working) - len(old_display)] + new_display
        else:
            expression = working[:-1]
        if expression == "0":
            expression = ""
        return state.model_copy(update={"display_value": new_display, "expression": expression})

    # =========================================================================
    # Function buttons
    # =========================================================================

    def _current_value(self, state: ScientificState) -> float | None:
        text = state.display_value
        if text == "π":
            return math.pi
        if text == "e":
            return math.e
        try:
            value = float(text)
        except ValueError:
            return None
        return value if math.isfinite(value) else None

    def _insert_constant(self, state: ScientificState, func: ScientificFunction) -> ScientificState:
        if state.is_error:
            state = self.clear(state)
        value, symbol = CONSTANTS[func]
        if self._trace_complete(state):
            expression = symbol
        else:
            expression = state.expression + symbol
        return state.model_copy(update={"display_value": str(value), "expression": expression})

    def _preview(self, state: ScientificState, func: ScientificFunction) -> str:
        """Label of a function button applied to the display, e.g. ``sin(30)``."""
        if func is ScientificFunction.SQRT and not state.is_inverse:
            return f"√({state.display_value})"
        if state.is_inverse and func in INVERSE_PREVIEWS:
            return INVERSE_PREVIEWS[func].format(state.display_value)
        return f"{func.value}({state.display_value})"

    def _compute(self, state: ScientificState, func: ScientificFunction, value: float) -> float:
        """Apply a function button to a value."""
        inverse = state.is_inverse

        def to_angle(v: float) -> float:
            return v if state.is_radians else math.radians(v)

        def from_angle(v: float) -> float:
            return v if state.is_radians else math.degrees(v)

        if func.is_trigonometric:
            forward, backward = TRIGONOMETRY[func]
            return from_angle(backward(value)) if inverse else forward(to_angle(value))
        if func is ScientificFunction.LOG:
            return 10.0 ** value if inverse else math.log10(value)
        if func is ScientificFunction.LN:
            return math.exp(value) if inverse else math.log(value)
        if func is ScientificFunction.SQRT:
            return value ** 2 if inverse else math.sqrt(value)
        if func is ScientificFunction.FACT:
            if value != int(value) or value < 0 or value > 170:
                raise DomainError(f"Factorial is defined for integers 0..170, got {state.display_value}")
            return float(math.factorial(int(value)))
        raise ParseError(f"Not a unary function: {func.value}")

    def apply_unary_function(self, state: ScientificState, name: ScientificFunction | str) -> ScientificState:
        """Apply a function button to the displayed value."""
        try:
            func = ScientificFunction(KEY_ALIASES.get(name, name))
        except ValueError:
            raise ParseError(f"Unknown function: {name!r}")

        if func.is_constant:
            return self._insert_constant(state, func)
        if state.is_error:
            return state

        value = self._current_value(state)
        if value is None:
            # Not a plain number: start a function call in the expression instead
            return self.append_token(state, DEFERRED_PREFIXES.get(func, f"{func.value}("))

        preview = self._preview(state, func)
        try:
            try:
                result = self._compute(state, func, value)
            except ValueError as e:
                raise DomainError(f"Math domain error: {e}")
            except OverflowError:
                raise NonFiniteResult("Result too large")
            display = self._format(result)
            if display == ERROR_DISPLAY:
                raise NonFiniteResult(f"Non-finite result: {result}")
        except CalculatorError as e:
            logger.info("Function failed", function=func.value, error=str(e), kind=e.kind)
            return state.model_copy(update={
                "display_value": ERROR_DISPLAY,
                "expression": f"{preview} =",
                "is_inverse": False,
            })

        return state.model_copy(update={
            "display_value": display,
            "expression": f"{preview} =",
            "is_inverse": False,
        })

    # =========================================================================
    # Evaluation
    # =========================================================================

    def evaluate(self, state: ScientificState) -> ScientificState:
        """Evaluate the accumulated expression."""
        if state.is_error or self._trace_complete(state):
            return state

        expression = state.expression or state.display_value
        try:
            result = self.evaluator.evaluate(rewrite_expression(expression))
            display = self._format(result)
            if display == ERROR_DISPLAY:
                raise NonFiniteResult(f"Non-finite result: {result}")
        except CalculatorError as e:
            logger.info("Evaluation failed", expression=expression, error=str(e), kind=e.kind)
            return state.model_copy(update={"display_value": ERROR_DISPLAY, "expression": f"{expression} ="})

        return state.model_copy(update={"display_value": display, "expression": f"{expression} ="})

    # =========================================================================
    # Key dispatch
    # =========================================================================

    def press(self, state: ScientificState, key: str) -> ScientificState:
        """Apply a button press by its label."""
        key = key.strip()
        key = KEY_ALIASES.get(key, key)
        if key in TOKENS:
            return self.append_token(state, key)
        if key in {f.value for f in ScientificFunction}:
            return self.apply_unary_function(state, key)
        lowered = key.lower()
        if lowered == "inv":
            return self.toggle_inverse(state)
        if lowered in ("deg", "rad"):
            return self.set_angle_mode(state, radians=lowered == "rad")
        if key == "=":
            return self.evaluate(state)
        if key.upper() in ("C", "AC", "CLEAR"):
            return self.clear(state)
        if key.upper() in ("DEL", "BACKSPACE", "⌫"):
            return self.backspace(state)
        raise ParseError(f"Unknown key: {key!r}")

    def run_keys(self, keys: Iterable[str], state: ScientificState | None = None) -> ScientificState:
        """Fold a sequence of key presses into a final state."""
        state = state or self.initial_state()
        for key in keys:
            state = self.press(state, key)
        return state
