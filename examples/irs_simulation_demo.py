"""
Flat vs. Aggregated Regime - Usage Example

Runs one simulation through the session ledger and prints both regimes
and the annex figures.
"""

from datetime import date

from services.ledger import Ledger
from services.data_validator import DataValidator


def main():
    """Demonstrate a full simulation run."""

    print("=" * 70)
    print("Capital Gains & Investment Income - Regime Simulation")
    print("=" * 70)
    print()

    ledger = Ledger()

    # Long-term holding: 100 units, 1 247 days, 10% exemption
    ledger.add_transaction(direction="Buy", asset="EDP", date=date(2020, 1, 1),
                           quantity="100", price="1000", costs="10")
    ledger.add_transaction(direction="Sell", asset="EDP", date=date(2023, 6, 1),
                           quantity="100", price="2000", costs="20")

    # Short-term loss
    ledger.add_transaction(direction="Buy", asset="GALP", date=date(2023, 2, 1),
                           quantity="50", price="700")
    ledger.add_transaction(direction="Sell", asset="GALP", date=date(2023, 9, 1),
                           quantity="50", price="600", costs="5")

    ledger.add_income(asset="EDP", date=date(2023, 5, 10), gross_amount="300",
                      withholding_tax="84", source="PT_EU_EEE")
    ledger.add_income(asset="MSFT", date=date(2023, 6, 15), gross_amount="200",
                      withholding_tax="30", source="OTHER")

    issues = DataValidator().validate_all(ledger.transactions, ledger.income_records)
    for issue in issues:
        print(f"  [{issue.severity}] {issue.category}: {issue.message}")

    result, annexes = ledger.simulate(other_annual_income="30000")

    print("=" * 70)
    print("CAPITAL GAINS (FIFO)")
    print("=" * 70)
    for entry in result.gains.entries:
        print(f"  {entry.asset:<6} {entry.acquisition_date} -> {entry.disposal_date} "
              f"({entry.holding_period_days:>4} d)  gain €{entry.gain:>10,.2f}  "
              f"discount {entry.holding_discount:.0%}  taxable €{entry.taxable_gain:>10,.2f}")
    print(f"  Net gain:          €{result.gains.total_gains:>12,.2f}")
    print(f"  Net taxable gain:  €{result.gains.total_taxable_gains:>12,.2f}")
    print()

    print("=" * 70)
    print("REGIMES")
    print("=" * 70)
    flat = result.flat
    print(f"Flat rate:    gains €{flat.gains_tax:,.2f} + income €{flat.income_tax:,.2f} "
          f"- credit €{flat.foreign_tax_credit:,.2f} = €{flat.final_tax:,.2f}")
    agg = result.aggregated
    print(f"Aggregation:  base €{agg.taxable_income:,.2f}, tax €{agg.progressive_tax:,.2f} "
          f"+ surtax €{agg.surtax:,.2f} - credit €{agg.foreign_tax_credit:,.2f} "
          f"= €{agg.final_tax:,.2f}")
    print()
    print(f"Recommendation: {result.recommendation.value} (saves €{result.savings:,.2f})")
    if result.notes:
        print(f"  {result.notes}")
    print()

    print("=" * 70)
    print("ANNEXES")
    print("=" * 70)
    for line in annexes.g:
        print(f"  G  {line.year} {line.asset:<6} realization €{line.realization_value:,.2f} "
              f"acquisition ({line.acquisition_year}) €{line.acquisition_value:,.2f}")
    for line in annexes.e:
        print(f"  E  {line.income_code} gross €{line.gross_income:,.2f}")
    for line in annexes.j:
        print(f"  J  {line.country} {line.income_code} gross €{line.gross_income:,.2f} "
              f"tax abroad €{line.tax_paid_abroad:,.2f}")
    print()
    print("=" * 70)


if __name__ == "__main__":
    main()
