"""
Holding-period discount on capital gains.

Positive gains on lots held longer than the minimum period are partially
exempt. The tiers come from the tax year schedule.
"""

from decimal import Decimal
from typing import Optional

from calculators.tax_tables import HoldingDiscountSchedule, get_schedule


def holding_discount(days: int, schedule: Optional[HoldingDiscountSchedule] = None) -> Decimal:
    """
    Exempt fraction of a gain held for `days`.

    Days at or below the minimum holding period (including negative
    periods from disposals dated before their lot) yield 0.

    >>> holding_discount(730)
    Decimal('0')
    >>> holding_discount(731)
    Decimal('0.10')
    """
    if schedule is None:
        schedule = get_schedule().holding_discounts

    if days <= schedule.min_holding_days:
        return Decimal(0)

    years = Decimal(days) / schedule.days_per_year
    for max_years, discount in schedule.tiers:
        if max_years is None or years <= max_years:
            return discount

    # Unreachable for a validated schedule (last tier is open-ended)
    return schedule.tiers[-1][1]
