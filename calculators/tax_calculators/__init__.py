"""
Regime Calculator System

Jurisdiction-specific comparison of flat vs. aggregated taxation.
"""

from .base import TaxCalculator, get_calculator, list_available_jurisdictions
from .portugal import PortugalTaxCalculator

__all__ = [
    "TaxCalculator",
    "PortugalTaxCalculator",
    "get_calculator",
    "list_available_jurisdictions",
]
