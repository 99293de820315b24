"""
Simulation entry point.

simulate() runs the whole engine over one immutable snapshot of the
ledger: lot matching, income aggregation, regime comparison and annex
figures. Each call is independent.
"""

from decimal import Decimal
from typing import Iterable, Optional, Tuple

from parsers.records import IncomeRecord, Transaction
from calculators.annexes import generate_annexes
from calculators.income import compute_income_tax_base
from calculators.tax_basis import compute_capital_gains
from calculators.tax_calculators import get_calculator
from calculators.tax_events import AnnexData, SimulationResult
from calculators.tax_tables import TaxYearSchedule, get_schedule
from utils.logging_config import setup_logger, get_perf_logger, run_context

logger = setup_logger(__name__)

DEFAULT_JURISDICTION = "PT"


def simulate(
    transactions: Iterable[Transaction],
    income_records: Iterable[IncomeRecord],
    other_annual_income=Decimal(0),
    schedule: Optional[TaxYearSchedule] = None,
    jurisdiction: str = DEFAULT_JURISDICTION
) -> Tuple[SimulationResult, AnnexData]:
    """
    Compute both regimes and the recommendation.

    Args:
        transactions: Validated acquisition/disposal records
        income_records: Validated dividend/interest records
        other_annual_income: Other income subject to aggregation (>= 0)
        schedule: Tax year schedule (default: current registered year)
        jurisdiction: Registered calculator code

    Returns:
        (SimulationResult, AnnexData)
    """
    schedule = schedule or get_schedule()
    transactions = tuple(transactions)
    income_records = tuple(income_records)
    other_income = Decimal(str(other_annual_income))

    with get_perf_logger(logger, "simulate", threshold_ms=500):
        gains = compute_capital_gains(transactions, schedule)
        income = compute_income_tax_base(income_records, schedule)

        calculator = get_calculator(jurisdiction, schedule)
        result = calculator.compare_regimes(gains, income, other_income)
        annexes = generate_annexes(gains, income_records)

    logger.info(
        f"Simulation {schedule.tax_year}: {len(gains.entries)} gain entries, "
        f"{len(income_records)} income records; flat {result.flat.final_tax}, "
        f"aggregated {result.aggregated.final_tax} -> {result.recommendation.value}",
        extra={'run_context': run_context(
            jurisdiction=jurisdiction.upper(),
            other_income=other_income,
            mandatory=result.mandatory_aggregation,
        )}
    )

    return result, annexes
