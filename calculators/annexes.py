"""
Tax return annex figures.

- Annex G: one line per matched gain entry (costs already folded into
  both values, so expenses are reported as zero)
- Annex E: domestic/EEA income, code E20
- Annex J: other-source income per income type (E21 dividends, E11 interest)
"""

from collections import defaultdict
from decimal import Decimal
from typing import Dict, Iterable, List

from parsers.records import IncomeRecord, IncomeSource, IncomeType
from calculators.tax_events import (
    AnnexData,
    AnnexEEntry,
    AnnexGEntry,
    AnnexJEntry,
    CapitalGainsResult,
)

DOMESTIC_INCOME_CODE = "E20"
FOREIGN_INCOME_CODES = {
    IncomeType.DIVIDEND: "E21",
    IncomeType.INTEREST: "E11",
}
# Records carry only a domestic/other flag, not a country
FOREIGN_COUNTRY_PLACEHOLDER = "OTHER"


def build_annex_g(gains: CapitalGainsResult) -> List[AnnexGEntry]:
    return [
        AnnexGEntry(
            year=entry.disposal_date.year,
            asset=entry.asset,
            acquisition_year=entry.acquisition_date.year,
            realization_value=entry.disposal_value,
            acquisition_value=entry.acquisition_value,
        )
        for entry in gains.entries
    ]


def generate_annexes(
    gains: CapitalGainsResult,
    income_records: Iterable[IncomeRecord]
) -> AnnexData:
    """Build annex G, E and J figures from a simulation's inputs."""
    domestic_gross = Decimal(0)
    foreign: Dict[IncomeType, List[Decimal]] = defaultdict(lambda: [Decimal(0), Decimal(0)])

    for record in income_records:
        if record.source == IncomeSource.DOMESTIC_OR_EEA:
            domestic_gross += record.gross_amount
        else:
            totals = foreign[record.income_type]
            totals[0] += record.gross_amount
            totals[1] += record.withholding_tax

    annex_e = []
    if domestic_gross > 0:
        annex_e.append(AnnexEEntry(income_code=DOMESTIC_INCOME_CODE, gross_income=domestic_gross))

    annex_j = [
        AnnexJEntry(
            country=FOREIGN_COUNTRY_PLACEHOLDER,
            income_code=FOREIGN_INCOME_CODES[income_type],
            gross_income=gross,
            tax_paid_abroad=withheld,
        )
        for income_type, (gross, withheld) in foreign.items()
        if gross > 0 or withheld > 0
    ]

    return AnnexData(g=tuple(build_annex_g(gains)), e=tuple(annex_e), j=tuple(annex_j))
