"""
Core data models for MultiCalc.

Defines the value types passed between the engines and their front ends:
calculator states, conversion and loan requests/results, and plot samples.
Calculator states are immutable; engines return a fresh copy on each transition.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


ERROR_DISPLAY = "Error"


# =============================================================================
# Enums
# =============================================================================

class Operator(str, Enum):
    """Binary operators of the basic calculator."""
    ADD = "+"
    SUBTRACT = "-"
    MULTIPLY = "*"
    DIVIDE = "/"
    MODULO = "%"

    @property
    def symbol(self) -> str:
        """Symbol shown in the expression trace."""
        if self is Operator.MULTIPLY:
            return "×"
        if self is Operator.DIVIDE:
            return "÷"
        return self.value


class ScientificFunction(str, Enum):
    """Direct-function buttons of the scientific calculator."""
    SIN = "sin"
    COS = "cos"
    TAN = "tan"
    LOG = "log"
    LN = "ln"
    SQRT = "sqrt"
    FACT = "fact"
    PI = "pi"
    E = "e"

    @property
    def is_constant(self) -> bool:
        return self in (ScientificFunction.PI, ScientificFunction.E)

    @property
    def is_trigonometric(self) -> bool:
        return self in (ScientificFunction.SIN, ScientificFunction.COS, ScientificFunction.TAN)


class InterestType(str, Enum):
    """Loan interest models."""
    SIMPLE = "simple"
    COMPOUND = "compound"


class UnitCategory(str, Enum):
    """Unit conversion categories."""
    LENGTH = "length"
    MASS = "mass"
    TEMPERATURE = "temperature"
    TIME = "time"
    AREA = "area"
    VOLUME = "volume"


# =============================================================================
# Calculator States
# =============================================================================

class CalculatorState(BaseModel):
    """State of the basic (operator chain) calculator."""
    model_config = ConfigDict(frozen=True)

    display_value: str = "0"
    expression: str = ""
    first_operand: float | None = None
    operator: Operator | None = None
    waiting_for_second_operand: bool = False

    @property
    def is_error(self) -> bool:
        return self.display_value == ERROR_DISPLAY


class ScientificState(BaseModel):
    """State of the scientific (expression accumulating) calculator."""
    model_config = ConfigDict(frozen=True)

    display_value: str = "0"
    expression: str = ""
    is_radians: bool = False
    is_inverse: bool = False

    @property
    def is_error(self) -> bool:
        return self.display_value == ERROR_DISPLAY


# =============================================================================
# Conversion Models
# =============================================================================

class Unit(BaseModel):
    """A unit within a conversion category."""
    model_config = ConfigDict(frozen=True)

    name: str
    value: str
    factor: float | None = None  # Relative to the category base unit; None for temperature


class ConversionRequest(BaseModel):
    """Request to convert an amount between two units of a category."""
    category: UnitCategory
    from_unit: str
    to_unit: str
    amount: float


class ConversionResult(BaseModel):
    """Result of a unit conversion."""
    request: ConversionRequest
    value: float
    formatted_value: str
    info: str


class CurrencyConversion(BaseModel):
    """Result of a currency conversion."""
    amount: float
    from_code: str
    to_code: str
    rate: float
    value: float
    formatted_value: str
    info: str


# =============================================================================
# Loan Models
# =============================================================================

class LoanRequest(BaseModel):
    """Loan amortization inputs."""
    principal: float
    annual_rate_percent: float
    term_years: float
    interest_type: InterestType = InterestType.COMPOUND

    @property
    def term_months(self) -> float:
        return self.term_years * 12


class LoanResult(BaseModel):
    """Loan amortization outputs."""
    monthly_payment: float
    total_repayment: float
    total_interest: float


# =============================================================================
# Plot Models
# =============================================================================

class PlotPoint(BaseModel):
    """A single finite sample of a plotted function."""
    model_config = ConfigDict(frozen=True)

    x: float
    y: float


class PlotSample(BaseModel):
    """
    Plot-ready samples of a function over a range.

    Points are ordered by strictly increasing x and always carry a finite y.
    Samples whose evaluation failed or was non-finite are listed in
    ``dropped`` and never interpolated.
    """
    expression: str
    x_min: float
    x_max: float
    points: list[PlotPoint] = Field(default_factory=list)
    dropped: list[float] = Field(default_factory=list)

    @property
    def no_valid_points(self) -> bool:
        return not self.points

    def runs(self) -> list[list[PlotPoint]]:
        """Split the points into runs of consecutive samples.

        A dropped sample between two kept points ends the current run.
        """
        dropped = sorted(self.dropped)
        runs: list[list[PlotPoint]] = []
        current: list[PlotPoint] = []
        index = 0
        for point in self.points:
            gap = False
            while index < len(dropped) and dropped[index] < point.x:
                index += 1
                gap = True
            if gap and current:
                runs.append(current)
                current = []
            current.append(point)
        if current:
            runs.append(current)
        return runs


# =============================================================================
# API Models
# =============================================================================

class BasicKeyPress(BaseModel):
    """Request model for a basic calculator key press."""
    state: CalculatorState = Field(default_factory=CalculatorState)
    key: str = Field(..., min_length=1, max_length=16)


class ScientificKeyPress(BaseModel):
    """Request model for a scientific calculator key press."""
    state: ScientificState = Field(default_factory=ScientificState)
    key: str = Field(..., min_length=1, max_length=16)


class CurrencyConversionRequest(BaseModel):
    """Request model for a currency conversion."""
    amount: float
    from_code: str = Field(..., min_length=3, max_length=3)
    to_code: str = Field(..., min_length=3, max_length=3)


class PlotRequest(BaseModel):
    """Request model for sampling a function."""
    expression: str
    x_min: float = -10.0
    x_max: float = 10.0
    num_points: int = Field(100, ge=2, le=10_000)
    tick_count: int = Field(5, ge=2, le=50)


class PlotResponse(BaseModel):
    """Sampled function with y-axis ticks."""
    sample: PlotSample
    ticks: list[float]
    runs: int
    message: str | None = None
