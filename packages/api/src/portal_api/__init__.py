# This project was developed with assistance from AI tools.
"""Loan and document lifecycle API for the mortgage portal."""

__version__ = "0.1.0"
