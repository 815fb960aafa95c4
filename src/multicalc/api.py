"""
FastAPI application and API routes for MultiCalc.

Every route is a thin adapter over an engine; calculator states travel with
each request so the server keeps no session state.
"""

from contextlib import asynccontextmanager

import structlog
from fastapi import Depends, FastAPI, HTTPException

from multicalc import __version__
from multicalc.basic import BasicCalculatorEngine
from multicalc.config import plot_config, settings
from multicalc.conversion import convert, describe_currency_conversion, list_units
from multicalc.errors import CalculatorError, NetworkError
from multicalc.loan import calculate_loan
from multicalc.models import (
    BasicKeyPress,
    CalculatorState,
    ConversionRequest,
    ConversionResult,
    CurrencyConversion,
    CurrencyConversionRequest,
    LoanRequest,
    LoanResult,
    PlotRequest,
    PlotResponse,
    ScientificKeyPress,
    ScientificState,
    Unit,
    UnitCategory,
)
from multicalc.plotting import NO_VALID_POINTS, FunctionSampler, derive_axis_ticks
from multicalc.rates import CurrencyRateClient, currency_choices
from multicalc.scientific import ScientificCalculatorEngine

logger = structlog.get_logger()

basic_engine = BasicCalculatorEngine()
scientific_engine = ScientificCalculatorEngine()
sampler = FunctionSampler()

_rate_client: CurrencyRateClient | None = None


def get_rate_client() -> CurrencyRateClient:
    """Get the shared currency rate client."""
    global _rate_client
    if _rate_client is None:
        _rate_client = CurrencyRateClient()
    return _rate_client


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    yield
    # Shutdown
    if _rate_client is not None:
        await _rate_client.aclose()


app = FastAPI(
    title="MultiCalc",
    description="Basic, scientific, conversion, loan and graphing calculators",
    version=__version__,
    lifespan=lifespan,
)


def _raise_http(e: CalculatorError) -> None:
    status_code = 502 if isinstance(e, NetworkError) else 422
    logger.info("Request failed", kind=e.kind, error=str(e))
    raise HTTPException(status_code=status_code, detail={"message": str(e), "kind": e.kind})


# =============================================================================
# Health Check
# =============================================================================

@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "version": __version__}


@app.get("/api/v1/config")
async def get_config():
    """Get public configuration."""
    return {
        "app_name": settings.app_name,
        "significant_digits": settings.significant_digits,
        "basic_max_display_length": settings.basic_max_display_length,
        "scientific_max_display_length": settings.scientific_max_display_length,
        "default_from_currency": settings.default_from_currency,
        "default_to_currency": settings.default_to_currency,
        "plot_default_expression": plot_config.default_expression,
        "plot_default_x_min": plot_config.default_x_min,
        "plot_default_x_max": plot_config.default_x_max,
    }


# =============================================================================
# Calculators API
# =============================================================================

@app.post("/api/v1/basic/press", response_model=CalculatorState)
async def basic_press(press: BasicKeyPress):
    """Apply a key press to a basic calculator state."""
    try:
        return basic_engine.press(press.state, press.key)
    except CalculatorError as e:
        _raise_http(e)


@app.post("/api/v1/scientific/press", response_model=ScientificState)
async def scientific_press(press: ScientificKeyPress):
    """Apply a key press to a scientific calculator state."""
    try:
        return scientific_engine.press(press.state, press.key)
    except CalculatorError as e:
        _raise_http(e)


# =============================================================================
# Conversion API
# =============================================================================

@app.get("/api/v1/units/{category}", response_model=list[Unit])
async def get_units(category: UnitCategory):
    """List the units of a category."""
    return list_units(category)


@app.post("/api/v1/convert/unit", response_model=ConversionResult)
async def convert_unit(request: ConversionRequest):
    """Convert an amount between units."""
    try:
        return convert(request)
    except CalculatorError as e:
        _raise_http(e)


@app.get("/api/v1/currencies")
async def get_currencies(client: CurrencyRateClient = Depends(get_rate_client)):
    """List available currencies as (code, label) choices."""
    try:
        currencies = await client.fetch_currencies()
    except CalculatorError as e:
        _raise_http(e)
    return [{"code": code, "label": label} for code, label in currency_choices(currencies)]


@app.post("/api/v1/convert/currency", response_model=CurrencyConversion)
async def convert_currency(
    request: CurrencyConversionRequest,
    client: CurrencyRateClient = Depends(get_rate_client),
):
    """Convert an amount with the latest rates for its currency."""
    from_code = request.from_code.upper()
    try:
        rates = await client.fetch_rates(from_code)
        return describe_currency_conversion(rates, from_code, request.to_code.upper(), request.amount)
    except CalculatorError as e:
        _raise_http(e)


# =============================================================================
# Loan API
# =============================================================================

@app.post("/api/v1/loan", response_model=LoanResult)
async def loan(request: LoanRequest):
    """Calculate loan payments."""
    try:
        return calculate_loan(request)
    except CalculatorError as e:
        _raise_http(e)


# =============================================================================
# Graphing API
# =============================================================================

@app.post("/api/v1/plot", response_model=PlotResponse)
async def plot(request: PlotRequest):
    """Sample a function of x over a range."""
    try:
        sample = sampler.sample(request.expression, request.x_min, request.x_max, request.num_points)
    except CalculatorError as e:
        _raise_http(e)

    return PlotResponse(
        sample=sample,
        ticks=derive_axis_ticks(sample.points, request.tick_count),
        runs=len(sample.runs()),
        message=NO_VALID_POINTS if sample.no_valid_points else None,
    )
