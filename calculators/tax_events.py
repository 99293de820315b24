"""
Tax Result Data Models

Structures produced by the engine:
- MatchedGainEntry: one disposal matched against one acquisition lot
- CapitalGainsResult: all matches plus netted totals
- IncomeTaxResult: dividend/interest totals under both regimes
- FlatRegimeResult / AggregatedRegimeResult: tax under each regime
- SimulationResult: both regimes side by side with the recommendation
- Annex*: figures for the tax return annexes

All structures are computation outputs; none is persisted.

Copyright (c) 2026 Andre. All rights reserved.
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Optional, Tuple


class Regime(str, Enum):
    """Taxation regime for capital gains and investment income."""
    FLAT = "FLAT"
    AGGREGATED = "AGGREGATED"


@dataclass(frozen=True)
class MatchedGainEntry:
    """
    A realized gain or loss on `quantity` units of one acquisition lot.

    Values are net of costs: acquisition_value includes the lot's costs
    and disposal_value excludes the disposal's costs, both prorated by
    quantity.

    Key Invariant: taxable_gain == gain whenever gain <= 0.
    """

    disposal_id: str
    acquisition_id: str
    asset: str
    acquisition_date: date
    disposal_date: date
    holding_period_days: int
    quantity: Decimal
    acquisition_value: Decimal
    disposal_value: Decimal
    gain: Decimal
    holding_discount: Decimal
    taxable_gain: Decimal
    is_short_term: bool

    @property
    def is_loss(self) -> bool:
        return self.gain < 0


@dataclass(frozen=True)
class UnmatchedDisposal:
    """Disposed units that found no acquisition lot to match."""

    disposal_id: str
    asset: str
    disposal_date: date
    quantity: Decimal


@dataclass(frozen=True)
class CapitalGainsResult:
    """
    Output of the lot matcher.

    total_gains is the net of all entry gains. total_taxable_gains nets
    losses one-to-one against discounted positive gains.
    """

    total_gains: Decimal = field(default_factory=lambda: Decimal(0))
    total_taxable_gains: Decimal = field(default_factory=lambda: Decimal(0))
    has_short_term_gains: bool = False
    entries: Tuple[MatchedGainEntry, ...] = ()
    unmatched_disposals: Tuple[UnmatchedDisposal, ...] = ()

    @property
    def total_losses(self) -> Decimal:
        """Sum of losses as a non-positive number."""
        return sum((e.gain for e in self.entries if e.gain < 0), start=Decimal(0))


@dataclass(frozen=True)
class IncomeTaxResult:
    """Dividend and interest totals as seen by each regime."""

    total_gross: Decimal = field(default_factory=lambda: Decimal(0))
    total_withheld: Decimal = field(default_factory=lambda: Decimal(0))
    taxable_flat: Decimal = field(default_factory=lambda: Decimal(0))
    taxable_aggregated: Decimal = field(default_factory=lambda: Decimal(0))


@dataclass(frozen=True)
class BracketTaxResult:
    tax: Decimal
    surtax: Decimal

    @property
    def total(self) -> Decimal:
        return self.tax + self.surtax


@dataclass(frozen=True)
class FlatRegimeResult:
    """Special flat-rate taxation of gains and income."""

    gains_tax: Decimal
    income_tax: Decimal
    total_tax: Decimal
    foreign_tax_credit: Decimal
    final_tax: Decimal
    regime: Regime = Regime.FLAT


@dataclass(frozen=True)
class AggregatedRegimeResult:
    """Gains and income added to other income and taxed progressively."""

    taxable_income: Decimal
    progressive_tax: Decimal
    surtax: Decimal
    total_tax: Decimal
    income_marginal_tax: Decimal
    foreign_tax_credit: Decimal
    final_tax: Decimal
    regime: Regime = Regime.AGGREGATED


@dataclass(frozen=True)
class SimulationResult:
    """Both regimes for one simulation run and the cheaper choice."""

    tax_year: int
    other_income: Decimal
    flat: FlatRegimeResult
    aggregated: AggregatedRegimeResult
    mandatory_aggregation: bool
    recommendation: Regime
    gains: CapitalGainsResult
    income: IncomeTaxResult
    notes: Optional[str] = None

    @property
    def savings(self) -> Decimal:
        """Difference between the two regimes' final tax."""
        return abs(self.flat.final_tax - self.aggregated.final_tax)

    @property
    def recommended(self):
        if self.recommendation == Regime.FLAT:
            return self.flat
        return self.aggregated


@dataclass(frozen=True)
class AnnexGEntry:
    """Capital gain line (onerous disposal of securities)."""

    year: int
    asset: str
    acquisition_year: int
    realization_value: Decimal
    acquisition_value: Decimal
    expenses: Decimal = Decimal(0)


@dataclass(frozen=True)
class AnnexEEntry:
    """Domestic/EEA capital income line."""

    income_code: str
    gross_income: Decimal


@dataclass(frozen=True)
class AnnexJEntry:
    """Foreign-source income line."""

    country: str
    income_code: str
    gross_income: Decimal
    tax_paid_abroad: Decimal


@dataclass(frozen=True)
class AnnexData:
    g: Tuple[AnnexGEntry, ...] = ()
    e: Tuple[AnnexEEntry, ...] = ()
    j: Tuple[AnnexJEntry, ...] = ()

    def is_empty(self) -> bool:
        return not (self.g or self.e or self.j)
