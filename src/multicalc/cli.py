"""
Command-line interface for MultiCalc.

Provides one command per calculator mode:
- Basic and scientific key sequences
- Unit, temperature and currency conversion
- Loan amortization
- Function sampling
- Running the API server
"""

import asyncio
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from multicalc.config import configure_logging, plot_config, settings
from multicalc.errors import CalculatorError
from multicalc.models import InterestType, UnitCategory

app = typer.Typer(
    name="multicalc",
    help="MultiCalc - basic, scientific, conversion, loan and graphing calculators",
    add_completion=False,
)

console = Console()

MULTI_CHAR_KEYS = {"DEL", "C", "AC", "Inv", "inv", "deg", "rad", "xʸ", "n!"}
SINGLE_CHAR_KEYS = set("0123456789.+-*/%×÷^()=")


@app.callback()
def main(
    log_level: Optional[str] = typer.Option(None, "--log-level", "-l", help="Log level"),
):
    """MultiCalc command line."""
    configure_logging(log_level)


# =============================================================================
# Calculator Commands
# =============================================================================

@app.command()
def basic(
    keys: list[str] = typer.Argument(..., help="Key presses, e.g. 12 + 3 × 4 ="),
):
    """Run a key sequence on the basic calculator."""
    from multicalc.basic import BasicCalculatorEngine

    engine = BasicCalculatorEngine()
    state = _run(lambda: engine.run_keys(_expand_keys(keys)))
    _show_display(state.expression, state.display_value)


@app.command()
def scientific(
    keys: list[str] = typer.Argument(..., help="Key presses, e.g. 30 sin, or ( 2 + 3 ) ^ 2 ="),
    radians: bool = typer.Option(False, "--radians/--degrees", help="Angle mode for function keys"),
):
    """Run a key sequence on the scientific calculator."""
    from multicalc.scientific import ScientificCalculatorEngine

    engine = ScientificCalculatorEngine()
    initial = engine.set_angle_mode(engine.initial_state(), radians)
    state = _run(lambda: engine.run_keys(_expand_keys(keys), initial))
    mode = "RAD" if state.is_radians else "DEG"
    _show_display(state.expression, state.display_value, subtitle=mode)


# =============================================================================
# Conversion Commands
# =============================================================================

@app.command()
def units(
    category: Optional[UnitCategory] = typer.Argument(None, help="Unit category"),
):
    """List conversion units."""
    from multicalc.conversion import UNITS, list_units

    categories = [category] if category else list(UNITS)
    table = Table(title="Units")
    table.add_column("Category", style="magenta")
    table.add_column("Unit", style="cyan")
    table.add_column("Name")
    table.add_column("Factor", style="green")

    for cat in categories:
        for unit in _run(lambda: list_units(cat)):
            table.add_row(cat.value, unit.value, unit.name, "-" if unit.factor is None else f"{unit.factor:g}")

    console.print(table)


@app.command()
def convert(
    amount: float = typer.Argument(..., help="Amount to convert"),
    from_unit: str = typer.Argument(..., help="Source unit, e.g. meter"),
    to_unit: str = typer.Argument(..., help="Target unit, e.g. foot"),
    category: Optional[UnitCategory] = typer.Option(None, "--category", "-c", help="Unit category (inferred if omitted)"),
):
    """Convert between units of the same category."""
    from multicalc.conversion import convert as convert_request, find_unit_category
    from multicalc.models import ConversionRequest

    resolved = category or find_unit_category(from_unit)
    if resolved is None:
        console.print(f"[red]Unknown unit: {from_unit}[/]")
        raise typer.Exit(1)

    result = _run(lambda: convert_request(ConversionRequest(
        category=resolved,
        from_unit=from_unit,
        to_unit=to_unit,
        amount=amount,
    )))
    console.print(f"[bold green]{result.formatted_value}[/]")
    console.print(f"  [dim]{result.info}[/]")


@app.command()
def currencies():
    """List currencies known to the rate service."""
    from multicalc.rates import CurrencyRateClient, currency_choices

    async def _list():
        async with CurrencyRateClient() as client:
            return await client.fetch_currencies()

    available = _run(lambda: asyncio.run(_list()))
    table = Table(title="Currencies")
    table.add_column("Code", style="cyan")
    table.add_column("Currency")
    for code, label in currency_choices(available):
        table.add_row(code, label.split(" - ", 1)[1])
    console.print(table)


@app.command()
def currency(
    amount: float = typer.Argument(..., help="Amount to convert"),
    from_code: str = typer.Argument(settings.default_from_currency, help="Source currency code"),
    to_code: str = typer.Argument(settings.default_to_currency, help="Target currency code"),
):
    """Convert an amount using the latest exchange rates."""
    from multicalc.rates import CurrencyRateClient, RateBook

    async def _convert():
        async with CurrencyRateClient() as client:
            book = RateBook(client, from_code.upper())
            await book.refresh()
            return book.convert(to_code.upper(), amount)

    result = _run(lambda: asyncio.run(_convert()))
    console.print(f"[bold green]{result.formatted_value} {result.to_code}[/]")
    console.print(f"  [dim]{result.info} @ {result.rate:g}[/]")


# =============================================================================
# Loan Command
# =============================================================================

@app.command()
def loan(
    principal: float = typer.Argument(..., help="Loan amount"),
    rate: float = typer.Argument(..., help="Annual interest rate in percent"),
    years: float = typer.Argument(..., help="Loan term in years"),
    interest_type: InterestType = typer.Option(InterestType.COMPOUND, "--type", "-t", help="Interest model"),
):
    """Calculate the monthly payment of a loan."""
    from multicalc.loan import calculate_loan, format_loan_details, format_payment
    from multicalc.models import LoanRequest

    request = LoanRequest(
        principal=principal,
        annual_rate_percent=rate,
        term_years=years,
        interest_type=interest_type,
    )
    result = _run(lambda: calculate_loan(request))
    console.print(f"Monthly Payment: [bold green]{format_payment(result)}[/]")
    console.print(f"  [dim]{format_loan_details(request, result)}[/]")


# =============================================================================
# Graphing Command
# =============================================================================

@app.command()
def plot(
    expression: str = typer.Argument(plot_config.default_expression, help="Function of x, e.g. sin(x)"),
    x_min: float = typer.Option(plot_config.default_x_min, "--x-min", help="Range start"),
    x_max: float = typer.Option(plot_config.default_x_max, "--x-max", help="Range end"),
    points: int = typer.Option(plot_config.num_points, "--points", "-n", help="Number of samples"),
    show: int = typer.Option(10, "--show", "-s", help="Number of points to print"),
):
    """Sample a function for plotting."""
    from multicalc.plotting import NO_VALID_POINTS, FunctionSampler, derive_axis_ticks

    sample = _run(lambda: FunctionSampler().sample(expression, x_min, x_max, points))
    if sample.no_valid_points:
        console.print(f"[yellow]{NO_VALID_POINTS}[/]")
        raise typer.Exit(1)

    ticks = derive_axis_ticks(sample.points)
    console.print(f"\n[bold]f(x) = {expression}[/]  on [{x_min:g}, {x_max:g}]")
    console.print(f"  Points: {len(sample.points)}, dropped: {len(sample.dropped)}, runs: {len(sample.runs())}")
    console.print(f"  Y ticks: {', '.join(f'{t:.4g}' for t in ticks)}\n")

    table = Table(title="Samples")
    table.add_column("x", style="cyan", justify="right")
    table.add_column("y", style="green", justify="right")
    for point in sample.points[:show]:
        table.add_row(f"{point.x:.6g}", f"{point.y:.6g}")
    console.print(table)


# =============================================================================
# Server Command
# =============================================================================

@app.command()
def serve(
    host: str = typer.Option(settings.host, "--host", "-h", help="Host to bind to"),
    port: int = typer.Option(settings.port, "--port", "-p", help="Port to bind to"),
    reload: bool = typer.Option(False, "--reload", "-r", help="Enable auto-reload"),
):
    """Start the MultiCalc API server."""
    import uvicorn

    console.print(f"[bold green]Starting MultiCalc server on {host}:{port}[/]")

    uvicorn.run(
        "multicalc.api:app",
        host=host,
        port=port,
        reload=reload,
    )


# =============================================================================
# Helpers
# =============================================================================

def _run(action):
    """Run an engine call, turning calculator errors into a clean exit."""
    try:
        return action()
    except CalculatorError as e:
        console.print(f"[red]{e}[/]")
        raise typer.Exit(1)


def _expand_keys(args: list[str]) -> list[str]:
    """Split arguments into single key presses; "12.5" becomes 1 2 . 5."""
    keys = []
    for arg in args:
        for token in arg.split():
            if token not in MULTI_CHAR_KEYS and all(c in SINGLE_CHAR_KEYS for c in token):
                keys.extend(token)
            else:
                keys.append(token)
    return keys


def _show_display(expression: str, display: str, subtitle: str | None = None) -> None:
    color = "red" if display == "Error" else "bold"
    console.print(Panel(
        f"[dim]{expression or ' '}[/]\n[{color}]{display}[/]",
        subtitle=subtitle,
        expand=False,
    ))


if __name__ == "__main__":
    app()
