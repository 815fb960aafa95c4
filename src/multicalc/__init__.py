"""
MultiCalc - Multi-Mode Calculator Engines

Basic and scientific calculator state machines, unit, temperature and currency
conversion, loan amortization and function sampling for plotting, exposed
through a command line front end and a JSON API.
"""

__version__ = "1.0.0"
__author__ = "MultiCalc Team"
