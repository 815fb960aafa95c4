"""
Loan amortization for MultiCalc.

Simple interest spreads principal plus flat interest evenly over the term.
Compound interest uses the standard monthly amortization formula.
"""

import math

import structlog

from multicalc.errors import DomainError, NonFiniteResult
from multicalc.models import InterestType, LoanRequest, LoanResult

logger = structlog.get_logger()


def _validate(request: LoanRequest) -> None:
    if not math.isfinite(request.principal) or request.principal <= 0:
        raise DomainError("Please enter a valid positive loan amount.")
    if not math.isfinite(request.annual_rate_percent) or request.annual_rate_percent < 0:
        raise DomainError("Please enter a valid non-negative interest rate.")
    if not math.isfinite(request.term_years) or request.term_years <= 0:
        raise DomainError("Please enter a valid positive loan term.")
    if request.term_months <= 0:
        raise DomainError("Loan term must result in at least one payment.")


def _simple(request: LoanRequest) -> tuple[float, float, float]:
    total_interest = request.principal * (request.annual_rate_percent / 100) * request.term_years
    total_repayment = request.principal + total_interest
    monthly_payment = total_repayment / request.term_months
    return monthly_payment, total_repayment, total_interest


def _compound(request: LoanRequest) -> tuple[float, float, float]:
    months = request.term_months
    monthly_rate = (request.annual_rate_percent / 100) / 12

    if monthly_rate == 0:
        monthly_payment = request.principal / months
    else:
        try:
            term_power = (1 + monthly_rate) ** months
        except OverflowError:
            raise NonFiniteResult("Could not calculate payment. Please check inputs.")
        denominator = term_power - 1
        if denominator == 0:
            raise DomainError("Calculation error (denominator is zero). Check inputs.")
        monthly_payment = request.principal * monthly_rate * term_power / denominator

    total_repayment = monthly_payment * months
    total_interest = total_repayment - request.principal
    return monthly_payment, total_repayment, total_interest


def calculate_loan(request: LoanRequest) -> LoanResult:
    """
    Compute the monthly payment, total repayment and total interest.

    Raises:
        DomainError: invalid principal, rate or term.
        NonFiniteResult: any output is NaN or infinite.
    """
    _validate(request)

    if request.interest_type is InterestType.SIMPLE:
        monthly_payment, total_repayment, total_interest = _simple(request)
    else:
        monthly_payment, total_repayment, total_interest = _compound(request)

    if not all(math.isfinite(v) for v in (monthly_payment, total_repayment, total_interest)):
        raise NonFiniteResult("Could not calculate payment. Please check inputs.")

    logger.info(
        "Calculated loan",
        interest_type=request.interest_type.value,
        months=request.term_months,
        monthly_payment=round(monthly_payment, 2),
    )
    return LoanResult(
        monthly_payment=monthly_payment,
        total_repayment=total_repayment,
        total_interest=total_interest,
    )


def format_loan_details(request: LoanRequest, result: LoanResult) -> str:
    """One-line summary shown under the monthly payment."""
    prefix = "Simple Int." if request.interest_type is InterestType.SIMPLE else "Compound Int."
    return (
        f"{prefix} | Total Repay: ${result.total_repayment:.2f}"
        f" | Total Interest: ${result.total_interest:.2f}"
    )


def format_payment(result: LoanResult) -> str:
    return f"${result.monthly_payment:.2f}"
