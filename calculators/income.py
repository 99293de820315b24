"""
Dividend and interest aggregation.

The flat regime taxes the full gross of every record. Under aggregation,
income from domestic or EEA sources is only partially included (the
exclusion fraction comes from the tax year schedule).
"""

from decimal import Decimal
from typing import Iterable, Optional

from parsers.records import IncomeRecord, IncomeSource
from calculators.tax_events import IncomeTaxResult
from calculators.tax_tables import TaxYearSchedule, get_schedule
from utils.logging_config import setup_logger

logger = setup_logger(__name__)


def aggregated_taxable_amount(record: IncomeRecord, exclusion: Decimal) -> Decimal:
    """Portion of a record's gross that enters the aggregated base."""
    if record.source == IncomeSource.DOMESTIC_OR_EEA:
        return record.gross_amount * (1 - exclusion)
    return record.gross_amount


def compute_income_tax_base(
    records: Iterable[IncomeRecord],
    schedule: Optional[TaxYearSchedule] = None
) -> IncomeTaxResult:
    """Gross, withheld and taxable totals for both regimes."""
    if schedule is None:
        schedule = get_schedule()

    total_gross = Decimal(0)
    total_withheld = Decimal(0)
    taxable_aggregated = Decimal(0)
    count = 0

    for record in records:
        total_gross += record.gross_amount
        total_withheld += record.withholding_tax
        taxable_aggregated += aggregated_taxable_amount(
            record, schedule.domestic_income_exclusion
        )
        count += 1

    logger.debug(
        f"Aggregated {count} income records: gross {total_gross}, "
        f"withheld {total_withheld}"
    )
    return IncomeTaxResult(
        total_gross=total_gross,
        total_withheld=total_withheld,
        taxable_flat=total_gross,
        taxable_aggregated=taxable_aggregated,
    )
