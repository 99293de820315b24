"""
Portuguese Regime Calculator (IRS Categories E and G)

Compares the two ways capital gains (Cat. G) and investment income
(Cat. E) can be taxed:
- Flat regime (taxa especial / liberatória): a single rate on the taxable
  gain and on the full gross income
- Aggregation (englobamento): gains and income added to the taxpayer's
  other income and taxed with the progressive brackets plus the
  solidarity surtax

Rules:
- Net taxable gains below zero are treated as zero
- Foreign tax withheld on income is credited up to the tax due on that
  income; nothing withheld is credited against gains
- Short-term gains with (other income + net gains) above the threshold
  force aggregation

References:
- CIRS art. 43 (holding-period exemption), 68 (brackets), 68-A (surtax),
  72 (special rates), 81 (double taxation credit)

Copyright (c) 2026 Andre. All rights reserved.
"""

from decimal import Decimal

from calculators.brackets import calculate_bracket_tax
from calculators.tax_events import (
    AggregatedRegimeResult,
    CapitalGainsResult,
    FlatRegimeResult,
    IncomeTaxResult,
    Regime,
    SimulationResult,
)
from calculators.tax_calculators.base import TaxCalculator, register_calculator
from utils.logging_config import setup_logger

logger = setup_logger(__name__)


@register_calculator("PT")
class PortugalTaxCalculator(TaxCalculator):
    """
    Regime comparator for Portugal.

    Key Rules:
    - Flat: taxable gains and gross income at the flat rate
    - Aggregated: other income + taxable gains + partially excluded income
      through the brackets, surtax on the same base
    - Income credit under aggregation is capped by the marginal bracket tax
      of the income slice stacked directly on top of other income
    - Ties go to aggregation
    """

    def get_jurisdiction_name(self) -> str:
        return "Portugal"

    def get_jurisdiction_code(self) -> str:
        return "PT"

    def calculate_flat(
        self,
        gains: CapitalGainsResult,
        income: IncomeTaxResult
    ) -> FlatRegimeResult:
        """Tax under the flat regime."""
        rate = self.schedule.flat_rate

        gains_tax = max(Decimal(0), gains.total_taxable_gains) * rate
        income_tax = income.taxable_flat * rate
        credit = min(income_tax, income.total_withheld)

        return FlatRegimeResult(
            gains_tax=gains_tax,
            income_tax=income_tax,
            total_tax=gains_tax + income_tax,
            foreign_tax_credit=credit,
            final_tax=gains_tax + income_tax - credit,
        )

    def calculate_aggregated(
        self,
        gains: CapitalGainsResult,
        income: IncomeTaxResult,
        other_income: Decimal
    ) -> AggregatedRegimeResult:
        """Tax under aggregation with the other annual income."""
        taxable_gains = max(Decimal(0), gains.total_taxable_gains)
        taxable_income = other_income + taxable_gains + income.taxable_aggregated

        combined = calculate_bracket_tax(taxable_income, self.schedule)

        # Income slice sits directly on top of other income; gains are left out
        with_income = calculate_bracket_tax(other_income + income.taxable_aggregated, self.schedule)
        without_income = calculate_bracket_tax(other_income, self.schedule)
        income_marginal_tax = with_income.tax - without_income.tax

        credit = min(income_marginal_tax, income.total_withheld)

        return AggregatedRegimeResult(
            taxable_income=taxable_income,
            progressive_tax=combined.tax,
            surtax=combined.surtax,
            total_tax=combined.total,
            income_marginal_tax=income_marginal_tax,
            foreign_tax_credit=credit,
            final_tax=combined.total - credit,
        )

    def is_aggregation_mandatory(
        self,
        gains: CapitalGainsResult,
        other_income: Decimal
    ) -> bool:
        """Short-term gains plus income above the threshold force aggregation."""
        if not gains.has_short_term_gains:
            return False
        return other_income + gains.total_gains > self.schedule.mandatory_aggregation_threshold

    def compare_regimes(
        self,
        gains: CapitalGainsResult,
        income: IncomeTaxResult,
        other_income: Decimal
    ) -> SimulationResult:
        other_income = Decimal(other_income)

        flat = self.calculate_flat(gains, income)
        aggregated = self.calculate_aggregated(gains, income, other_income)
        mandatory = self.is_aggregation_mandatory(gains, other_income)

        notes = None
        if mandatory:
            recommendation = Regime.AGGREGATED
            notes = (
                "Aggregation is mandatory: short-term gains with income above "
                f"{self.schedule.mandatory_aggregation_threshold}"
            )
            if flat.final_tax < aggregated.final_tax:
                logger.warning(
                    f"Mandatory aggregation overrides cheaper flat regime "
                    f"({flat.final_tax} < {aggregated.final_tax})"
                )
        elif flat.final_tax < aggregated.final_tax:
            recommendation = Regime.FLAT
        else:
            recommendation = Regime.AGGREGATED

        return SimulationResult(
            tax_year=self.schedule.tax_year,
            other_income=other_income,
            flat=flat,
            aggregated=aggregated,
            mandatory_aggregation=mandatory,
            recommendation=recommendation,
            gains=gains,
            income=income,
            notes=notes,
        )
