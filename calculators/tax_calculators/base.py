"""
Abstract Base Class for Regime Calculators

Defines the interface each jurisdiction's regime comparator implements.
A calculator takes the lot matcher's and income aggregator's results plus
the taxpayer's other income and produces a SimulationResult.

Copyright (c) 2026 Andre. All rights reserved.
"""

from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Dict, List, Optional, Type

from calculators.tax_events import CapitalGainsResult, IncomeTaxResult, SimulationResult
from calculators.tax_tables import TaxYearSchedule, get_schedule


class TaxCalculator(ABC):
    """
    Abstract base class for jurisdiction-specific regime calculators.

    Rates and thresholds come from the TaxYearSchedule passed in; a
    calculator holds no other state.
    """

    def __init__(self, schedule: Optional[TaxYearSchedule] = None):
        self.schedule = schedule or get_schedule()

    @abstractmethod
    def compare_regimes(
        self,
        gains: CapitalGainsResult,
        income: IncomeTaxResult,
        other_income: Decimal
    ) -> SimulationResult:
        """
        Compute tax under each regime and recommend one.

        Args:
            gains: Lot matcher output
            income: Income aggregator output
            other_income: Other annual income subject to aggregation (>= 0)

        Returns:
            SimulationResult with both regimes and the recommendation
        """
        pass

    @abstractmethod
    def get_jurisdiction_name(self) -> str:
        """Return the human-readable name of this tax jurisdiction."""
        pass

    @abstractmethod
    def get_jurisdiction_code(self) -> str:
        """Return the ISO-style code for this jurisdiction."""
        pass


# Registry of available calculators
_CALCULATOR_REGISTRY: Dict[str, Type[TaxCalculator]] = {}


def register_calculator(jurisdiction_code: str):
    """
    Decorator to register a calculator class.

    Usage:
        @register_calculator("PT")
        class PortugalTaxCalculator(TaxCalculator):
            ...
    """
    def decorator(cls: Type[TaxCalculator]):
        _CALCULATOR_REGISTRY[jurisdiction_code.upper()] = cls
        return cls
    return decorator


def get_calculator(
    jurisdiction_code: str,
    schedule: Optional[TaxYearSchedule] = None
) -> TaxCalculator:
    """
    Factory method to get a calculator instance.

    Args:
        jurisdiction_code: ISO code (e.g., "PT"), case-insensitive
        schedule: Tax year schedule; defaults to the current year

    Raises:
        ValueError: If jurisdiction is not supported
    """
    code = jurisdiction_code.upper()

    if code not in _CALCULATOR_REGISTRY:
        available = ", ".join(_CALCULATOR_REGISTRY.keys())
        raise ValueError(
            f"Tax calculator for '{jurisdiction_code}' not found. "
            f"Available: {available}"
        )

    return _CALCULATOR_REGISTRY[code](schedule)


def list_available_jurisdictions() -> List[str]:
    return sorted(_CALCULATOR_REGISTRY.keys())
