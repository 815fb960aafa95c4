"""
Expression evaluation for the scientific and graphing calculators.

Provides an abstract evaluator interface and a sympy-backed implementation.
Parsing is done once; the parsed expression is compiled with ``lambdify``
into a plain-float function so it can be evaluated repeatedly, e.g. once per
plot sample. Trigonometric functions work in radians.
"""

import math
import re
from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping
from typing import Callable

import structlog
import sympy
from sympy.parsing.sympy_parser import (
    convert_xor,
    parse_expr,
    standard_transformations,
)
from sympy.utilities.lambdify import implemented_function

from multicalc.errors import CalculatorError, DomainError, NonFiniteResult, ParseError

logger = structlog.get_logger()


def _factorial(n: float) -> float:
    """Factorial of a non-negative integral value small enough for a float."""
    if n != int(n) or n < 0 or n > 170:
        raise DomainError(f"Factorial is defined for integers 0..170, got {n}")
    return float(math.factorial(int(n)))


FUNCTIONS: dict[str, Callable[..., float]] = {
    "sin": math.sin,
    "cos": math.cos,
    "tan": math.tan,
    "asin": math.asin,
    "acos": math.acos,
    "atan": math.atan,
    "sqrt": math.sqrt,
    "log10": math.log10,
    "log": math.log,
    "exp": math.exp,
    "abs": abs,
    "fact": _factorial,
}

CONSTANTS = {
    "pi": sympy.pi,
    "e": sympy.E,
}


class CompiledExpression(ABC):
    """A parsed expression that can be evaluated over named variables."""

    @property
    @abstractmethod
    def text(self) -> str:
        """The source text of the expression."""
        pass

    @abstractmethod
    def evaluate(self, env: Mapping[str, float] | None = None) -> float:
        """Evaluate the expression, binding variables from ``env``."""
        pass


class ExpressionEvaluator(ABC):
    """Abstract base class for expression evaluators."""

    @abstractmethod
    def parse(self, text: str, variables: Iterable[str] = ()) -> CompiledExpression:
        """Parse ``text`` into an evaluable expression.

        Raises:
            ParseError: malformed text or unknown names.
        """
        pass

    def evaluate(self, text: str, env: Mapping[str, float] | None = None) -> float:
        """Parse and evaluate in one step."""
        env = env or {}
        return self.parse(text, variables=env.keys()).evaluate(env)


class SympyExpression(CompiledExpression):
    """Expression compiled from a sympy tree into a float function."""

    def __init__(self, text: str, tree: sympy.Expr, variables: tuple[str, ...]):
        self._text = text
        self.tree = tree
        self.variables = variables
        self._func = sympy.lambdify(
            [sympy.Symbol(name) for name in variables], tree, modules="math"
        )

    @property
    def text(self) -> str:
        return self._text

    def evaluate(self, env: Mapping[str, float] | None = None) -> float:
        env = env or {}
        missing = [name for name in self.variables if name not in env]
        if missing:
            raise ParseError(f"Missing value for variable: {', '.join(missing)}")

        try:
            value = self._func(*(float(env[name]) for name in self.variables))
        except ZeroDivisionError:
            raise DomainError("Division by zero")
        except OverflowError:
            raise NonFiniteResult("Result too large")
        except (ValueError, TypeError) as e:
            raise DomainError(f"Math domain error: {e}")

        if isinstance(value, complex):
            raise DomainError("Result is not a real number")
        value = float(value)
        if not math.isfinite(value):
            raise NonFiniteResult(f"Non-finite result: {value}")
        return value


class SympyEvaluator(ExpressionEvaluator):
    """
    Expression evaluator built on sympy's parser.

    Supports ``+ - * / ^ ( )``, unary minus, ``**``, the functions in
    ``FUNCTIONS`` and the constants ``pi`` and ``e``. ``^`` is exponentiation:
    right-associative and binding tighter than ``*`` and ``/``.
    """

    _ALLOWED_CHARS = re.compile(r"^[\d\s+\-*/^().a-zA-Z_]*$")
    _IDENTIFIER = re.compile(r"[A-Za-z_][A-Za-z_0-9]*")
    _LEADING_ZEROS = re.compile(r"(?<![\d.])0+(?=\d)")
    _TRANSFORMATIONS = standard_transformations + (convert_xor,)

    def __init__(self):
        self._functions = {
            name: implemented_function(name, impl) for name, impl in FUNCTIONS.items()
        }

    def parse(self, text: str, variables: Iterable[str] = ()) -> SympyExpression:
        variables = tuple(variables)
        source = text.strip()
        if not source:
            raise ParseError("Empty expression")
        if not self._ALLOWED_CHARS.match(source):
            raise ParseError(f"Invalid characters in expression: {text}")

        for name in self._IDENTIFIER.findall(source):
            if name not in self._functions and name not in CONSTANTS and name not in variables:
                raise ParseError(f"Unknown name in expression: {name}")

        # "05" is a valid number on a calculator, not in Python source
        source = self._LEADING_ZEROS.sub("", source)

        local_dict: dict = {name: sympy.Symbol(name) for name in variables}
        local_dict.update(self._functions)
        local_dict.update(CONSTANTS)

        try:
            tree = parse_expr(
                source,
                local_dict=local_dict,
                transformations=self._TRANSFORMATIONS,
                evaluate=False,
            )
        except CalculatorError:
            # Functions bound to literals run while parsing
            raise
        except Exception as e:
            # sympy's tokenizer raises its own error types for unbalanced input
            raise ParseError(f"Invalid expression: {text}") from e

        if not isinstance(tree, sympy.Expr):
            raise ParseError(f"Not a numeric expression: {text}")

        # Integer literals evaluate as floats, keeping huge powers from
        # running as unbounded integer arithmetic
        with sympy.evaluate(False):
            tree = tree.xreplace(
                {n: sympy.Float(n) for n in tree.atoms(sympy.Integer)}
            )

        logger.debug("Parsed expression", text=text, variables=variables)
        return SympyExpression(text, tree, variables)


# Global evaluator instance
_evaluator: ExpressionEvaluator | None = None


def get_evaluator() -> ExpressionEvaluator:
    """Get the global expression evaluator instance."""
    global _evaluator
    if _evaluator is None:
        _evaluator = SympyEvaluator()
    return _evaluator
