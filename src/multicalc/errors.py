"""
Error taxonomy shared by all engines.

Calculator engines collapse these into the "Error" display sentinel; the
conversion, loan and graphing front ends show the message instead.
"""


class CalculatorError(Exception):
    """Base exception for calculator errors."""
    
    kind = "error"


class ParseError(CalculatorError):
    """Raised when a number or expression cannot be parsed."""
    
    kind = "parse_error"


class DomainError(CalculatorError):
    """Raised when an operation is undefined for its input."""
    
    kind = "domain_error"


class NonFiniteResult(CalculatorError):
    """Raised when an arithmetic step produces NaN or infinity."""
    
    kind = "non_finite_result"


class NetworkError(CalculatorError):
    """Raised when the currency rate source cannot be reached or read."""
    
    kind = "network_error"
