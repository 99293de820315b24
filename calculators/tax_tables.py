"""
Tax Year Schedules

Year-specific rates and thresholds consumed by the engine. Nothing in the
calculators hardcodes a rate: add a new TaxYearSchedule and register it to
support another year.

Format:
    BracketRow(upper_bound, rate, base)
        upper_bound: top of the bracket (None = unbounded, last row only)
        rate: marginal rate inside the bracket
        base: cumulative tax due at upper_bound (None on the last row)

Validation cross-checks every base against the sum of marginal slices up
to its bound, so the direct lookup in brackets.py can trust the bases.
"""

import os
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, List, Optional, Tuple

from utils.logging_config import setup_logger

logger = setup_logger(__name__)

BASE_TOLERANCE = Decimal("0.01")


class ScheduleError(ValueError):
    """Raised for an inconsistent or unknown tax year schedule."""
    pass


@dataclass(frozen=True)
class BracketRow:
    upper_bound: Optional[Decimal]
    rate: Decimal
    base: Optional[Decimal]


@dataclass(frozen=True)
class SurtaxSchedule:
    """Two-tier surtax on taxable income above first_threshold."""

    first_threshold: Decimal
    first_rate: Decimal
    second_threshold: Decimal
    second_rate: Decimal


@dataclass(frozen=True)
class HoldingDiscountSchedule:
    """
    Exemption on positive gains by holding period.

    Holdings of min_holding_days or less get no discount. Longer holdings
    are converted to years and matched against tiers in order; a tier's
    max_years is inclusive and None means "any longer".
    """

    min_holding_days: int = 730
    days_per_year: Decimal = Decimal("365.25")
    tiers: Tuple[Tuple[Optional[int], Decimal], ...] = (
        (5, Decimal("0.10")),
        (8, Decimal("0.20")),
        (None, Decimal("0.30")),
    )


@dataclass(frozen=True)
class TaxYearSchedule:
    tax_year: int
    brackets: Tuple[BracketRow, ...]
    surtax: SurtaxSchedule
    holding_discounts: HoldingDiscountSchedule = field(default_factory=HoldingDiscountSchedule)
    flat_rate: Decimal = Decimal("0.28")
    domestic_income_exclusion: Decimal = Decimal("0.50")
    mandatory_aggregation_threshold: Decimal = Decimal("83696")
    short_term_days: int = 365


def build_brackets(rows: List[Tuple[Optional[str], str]]) -> Tuple[BracketRow, ...]:
    """
    Build bracket rows from (upper_bound, rate) pairs, deriving each base
    as the cumulative marginal tax at the bound.
    """
    brackets = []
    cumulative = Decimal(0)
    lower = Decimal(0)

    for upper, rate in rows:
        rate = Decimal(rate)
        if upper is None:
            brackets.append(BracketRow(upper_bound=None, rate=rate, base=None))
            continue
        upper = Decimal(upper)
        cumulative += (upper - lower) * rate
        brackets.append(BracketRow(upper_bound=upper, rate=rate, base=cumulative))
        lower = upper

    return tuple(brackets)


def validate_schedule(schedule: TaxYearSchedule) -> None:
    """
    Check a schedule for internal consistency.

    Raises:
        ScheduleError: On the first violation found
    """
    rows = schedule.brackets
    year = schedule.tax_year

    if not rows:
        raise ScheduleError(f"{year}: bracket table is empty")

    if rows[-1].upper_bound is not None:
        raise ScheduleError(f"{year}: last bracket must be unbounded")

    lower = Decimal(0)
    marginal_sum = Decimal(0)
    for index, row in enumerate(rows):
        if not Decimal(0) <= row.rate <= Decimal(1):
            raise ScheduleError(f"{year}: bracket {index + 1} rate {row.rate} outside [0, 1]")

        if row.upper_bound is None:
            if index != len(rows) - 1:
                raise ScheduleError(f"{year}: only the last bracket may be unbounded")
            break

        if row.upper_bound <= lower:
            raise ScheduleError(
                f"{year}: bracket bounds must strictly increase ({row.upper_bound} <= {lower})"
            )

        marginal_sum += (row.upper_bound - lower) * row.rate
        if row.base is None or abs(row.base - marginal_sum) > BASE_TOLERANCE:
            raise ScheduleError(
                f"{year}: bracket {index + 1} base {row.base} does not match "
                f"marginal tax {marginal_sum} at {row.upper_bound}"
            )
        lower = row.upper_bound

    surtax = schedule.surtax
    if surtax.second_threshold <= surtax.first_threshold:
        raise ScheduleError(f"{year}: surtax thresholds must increase")

    previous_max = 0
    for max_years, discount in schedule.holding_discounts.tiers[:-1]:
        if max_years is None or max_years <= previous_max:
            raise ScheduleError(f"{year}: holding discount tiers must increase, open-ended tier last")
        previous_max = max_years
    if schedule.holding_discounts.tiers[-1][0] is not None:
        raise ScheduleError(f"{year}: last holding discount tier must be open-ended")

    if not Decimal(0) <= schedule.domestic_income_exclusion <= Decimal(1):
        raise ScheduleError(f"{year}: income exclusion must be a fraction")


# 2025 schedule. Bounds and rates per the State Budget 2025; bases derived.
SCHEDULE_2025 = TaxYearSchedule(
    tax_year=2025,
    brackets=build_brackets([
        ("16058", "0.17"),
        ("21578", "0.22"),
        ("27146", "0.25"),
        ("38632", "0.32"),
        ("50483", "0.35"),
        ("83696", "0.45"),
        (None, "0.48"),
    ]),
    surtax=SurtaxSchedule(
        first_threshold=Decimal("80000"),
        first_rate=Decimal("0.025"),
        second_threshold=Decimal("250000"),
        second_rate=Decimal("0.05"),
    ),
    holding_discounts=HoldingDiscountSchedule(),
    flat_rate=Decimal("0.28"),
    domestic_income_exclusion=Decimal("0.50"),
    mandatory_aggregation_threshold=Decimal("83696"),
    short_term_days=365,
)

DEFAULT_TAX_YEAR = 2025

_SCHEDULE_REGISTRY: Dict[int, TaxYearSchedule] = {}


def register_schedule(schedule: TaxYearSchedule) -> TaxYearSchedule:
    """Validate and register a schedule under its tax year."""
    validate_schedule(schedule)
    if schedule.tax_year in _SCHEDULE_REGISTRY:
        logger.info(f"Replacing registered schedule for {schedule.tax_year}")
    _SCHEDULE_REGISTRY[schedule.tax_year] = schedule
    return schedule


def get_schedule(tax_year: Optional[int] = None) -> TaxYearSchedule:
    """
    Look up a registered schedule.

    Args:
        tax_year: Year to load. Defaults to IRS_TAX_YEAR env var, then DEFAULT_TAX_YEAR

    Raises:
        ScheduleError: If no schedule is registered for the year
    """
    if tax_year is None:
        tax_year = int(os.getenv('IRS_TAX_YEAR', DEFAULT_TAX_YEAR))

    if tax_year not in _SCHEDULE_REGISTRY:
        available = ", ".join(str(y) for y in available_tax_years())
        raise ScheduleError(
            f"No tax schedule for {tax_year}. Available: {available}"
        )
    return _SCHEDULE_REGISTRY[tax_year]


def available_tax_years() -> List[int]:
    return sorted(_SCHEDULE_REGISTRY.keys())


register_schedule(SCHEDULE_2025)
