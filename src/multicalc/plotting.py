"""
Function sampling for the graphing calculator.

Evaluates ``f(x)`` at evenly spaced points and keeps only finite samples.
Dropped samples are never interpolated. The midpoint between two neighbouring
kept samples is probed as well; a failing midpoint is listed as dropped, so
``PlotSample.runs()`` splits at a pole that no sample landed on, as for
``1/x`` over an even number of points.
"""

import math
from collections.abc import Sequence

import structlog

from multicalc.config import plot_config
from multicalc.errors import CalculatorError, DomainError, ParseError
from multicalc.expression import CompiledExpression, ExpressionEvaluator, get_evaluator
from multicalc.models import PlotPoint, PlotSample

logger = structlog.get_logger()

NO_VALID_POINTS = "No valid points to plot for this function and range."


class FunctionSampler:
    """Samples user expressions of ``x`` into plot-ready points."""

    def __init__(self, evaluator: ExpressionEvaluator | None = None):
        self.evaluator = evaluator or get_evaluator()

    def sample(
        self,
        expression: str,
        x_min: float,
        x_max: float,
        num_points: int | None = None,
    ) -> PlotSample:
        """
        Evaluate ``expression`` over ``[x_min, x_max]`` inclusive.

        Raises:
            ParseError: empty or malformed expression.
            DomainError: invalid range or point count, or a range too narrow
                to give distinct x values.
        """
        num_points = num_points or plot_config.num_points
        if not expression.strip():
            raise ParseError("Please enter a function.")
        if not math.isfinite(x_min) or not math.isfinite(x_max):
            raise DomainError("X Min and X Max must be valid numbers.")
        if x_max <= x_min:
            raise DomainError("X Max must be greater than X Min.")
        if num_points < 2:
            raise DomainError("At least two points are needed to plot.")

        compiled = self.evaluator.parse(expression, variables=("x",))
        span = x_max - x_min
        points: list[PlotPoint] = []
        dropped: list[float] = []

        def x_at(i: float) -> float:
            if i == num_points - 1:
                return x_max
            return x_min + span * i / (num_points - 1)

        xs = [x_at(i) for i in range(num_points)]
        if any(b <= a for a, b in zip(xs, xs[1:])):
            raise DomainError("Range is too narrow for the number of points.")

        previous_kept = False
        for i, x in enumerate(xs):
            y = self._evaluate_at(compiled, x)
            if y is None:
                dropped.append(x)
                previous_kept = False
                continue
            if previous_kept:
                # A pole between two kept samples shows up at their midpoint
                midpoint = x_at(i - 0.5)
                if self._evaluate_at(compiled, midpoint) is None:
                    dropped.append(midpoint)
            points.append(PlotPoint(x=x, y=y))
            previous_kept = True

        logger.info(
            "Sampled function",
            expression=expression,
            points=len(points),
            dropped=len(dropped),
        )
        return PlotSample(
            expression=expression,
            x_min=x_min,
            x_max=x_max,
            points=points,
            dropped=dropped,
        )

    @staticmethod
    def _evaluate_at(compiled: CompiledExpression, x: float) -> float | None:
        """Finite value at ``x``, or None when the sample must be dropped."""
        try:
            y = compiled.evaluate({"x": x})
        except CalculatorError:
            return None
        return y if math.isfinite(y) else None


def derive_axis_ticks(points: Sequence[PlotPoint], tick_count: int | None = None) -> list[float]:
    """Evenly spaced y-axis ticks spanning the finite points."""
    tick_count = tick_count or plot_config.tick_count
    ys = [p.y for p in points if math.isfinite(p.y)]
    if not ys:
        return [-1.0, 0.0, 1.0]

    min_y = min(ys)
    max_y = max(ys)

    if max_y == min_y:
        ticks = [t for t in (min_y - 1, min_y, min_y + 1) if math.isfinite(t)]
        return ticks if len(ticks) >= 2 else [-1.0, 0.0, 1.0]

    if tick_count < 2:
        return [min_y]
    # Divide before subtracting so extreme ranges do not overflow
    step = max_y / (tick_count - 1) - min_y / (tick_count - 1)
    ticks = [min_y + i * step for i in range(tick_count - 1)] + [max_y]
    return [t for t in ticks if math.isfinite(t)]
