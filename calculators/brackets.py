"""
Progressive bracket tax and solidarity surtax.

Uses the direct ("coleta parcial") method: find the bracket containing the
income, then add the marginal slice above the previous bound to that
bound's precomputed cumulative base.
"""

from decimal import Decimal
from typing import Optional, Sequence

from calculators.tax_tables import BracketRow, SurtaxSchedule, TaxYearSchedule, get_schedule
from calculators.tax_events import BracketTaxResult


def progressive_tax(income: Decimal, brackets: Sequence[BracketRow]) -> Decimal:
    """Bracket tax on `income`. Zero for non-positive income."""
    if income <= 0:
        return Decimal(0)

    previous_bound = Decimal(0)
    previous_base = Decimal(0)

    for row in brackets:
        if row.upper_bound is None or income <= row.upper_bound:
            return previous_base + (income - previous_bound) * row.rate
        previous_bound = row.upper_bound
        previous_base = row.base

    # Only reachable for a table without an unbounded row; validate_schedule rejects those
    return previous_base


def solidarity_surtax(income: Decimal, surtax: SurtaxSchedule) -> Decimal:
    """Two-tier surtax on the part of `income` above the first threshold."""
    if income <= surtax.first_threshold:
        return Decimal(0)

    if income <= surtax.second_threshold:
        return (income - surtax.first_threshold) * surtax.first_rate

    first_tier = (surtax.second_threshold - surtax.first_threshold) * surtax.first_rate
    second_tier = (income - surtax.second_threshold) * surtax.second_rate
    return first_tier + second_tier


def calculate_bracket_tax(
    income: Decimal,
    schedule: Optional[TaxYearSchedule] = None
) -> BracketTaxResult:
    """
    Tax and surtax on aggregated taxable income.

    Args:
        income: Taxable income (non-positive yields zero tax)
        schedule: Tax year schedule (default: current registered year)
    """
    if schedule is None:
        schedule = get_schedule()

    income = Decimal(income)
    if income <= 0:
        return BracketTaxResult(tax=Decimal(0), surtax=Decimal(0))

    return BracketTaxResult(
        tax=progressive_tax(income, schedule.brackets),
        surtax=solidarity_surtax(income, schedule.surtax),
    )
