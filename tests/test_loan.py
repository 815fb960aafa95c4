"""
Tests for loan amortization.
"""

import pytest

from multicalc.errors import DomainError, NonFiniteResult
from multicalc.loan import calculate_loan, format_loan_details, format_payment
from multicalc.models import InterestType, LoanRequest


def make_request(principal=10000, rate=5, years=5, interest_type=InterestType.COMPOUND) -> LoanRequest:
    return LoanRequest(
        principal=principal,
        annual_rate_percent=rate,
        term_years=years,
        interest_type=interest_type,
    )


class TestCompoundInterest:
    """Test the monthly amortization formula."""

    def test_standard_loan(self):
        result = calculate_loan(make_request())
        assert round(result.monthly_payment, 2) == 188.71
        assert result.total_repayment == pytest.approx(result.monthly_payment * 60)
        assert result.total_interest == pytest.approx(result.total_repayment - 10000)

    def test_zero_rate(self):
        result = calculate_loan(make_request(principal=1200, rate=0, years=1))
        assert result.monthly_payment == pytest.approx(100)
        assert result.total_interest == pytest.approx(0)

    def test_format_payment(self):
        assert format_payment(calculate_loan(make_request())) == "$188.71"

    def test_overflow(self):
        with pytest.raises(NonFiniteResult):
            calculate_loan(make_request(rate=1e6, years=1000))


class TestSimpleInterest:
    """Test flat interest spread over the term."""

    def test_standard_loan(self):
        result = calculate_loan(make_request(interest_type=InterestType.SIMPLE))
        assert result.total_interest == pytest.approx(2500)
        assert result.total_repayment == pytest.approx(12500)
        assert round(result.monthly_payment, 2) == 208.33

    def test_zero_rate(self):
        result = calculate_loan(make_request(principal=1200, rate=0, years=1, interest_type=InterestType.SIMPLE))
        assert result.monthly_payment == pytest.approx(100)

    def test_details(self):
        request = make_request(interest_type=InterestType.SIMPLE)
        details = format_loan_details(request, calculate_loan(request))
        assert details == "Simple Int. | Total Repay: $12500.00 | Total Interest: $2500.00"


class TestLoanValidation:
    """Test rejected inputs."""

    @pytest.mark.parametrize("principal", [0, -100, float("nan")])
    def test_invalid_principal(self, principal):
        with pytest.raises(DomainError, match="loan amount"):
            calculate_loan(make_request(principal=principal))

    def test_negative_rate(self):
        with pytest.raises(DomainError, match="interest rate"):
            calculate_loan(make_request(rate=-1))

    @pytest.mark.parametrize("years", [0, -2, float("inf")])
    def test_invalid_term(self, years):
        with pytest.raises(DomainError, match="loan term"):
            calculate_loan(make_request(years=years))

    def test_compound_details_prefix(self):
        request = make_request()
        assert format_loan_details(request, calculate_loan(request)).startswith("Compound Int. | Total Repay: $")
