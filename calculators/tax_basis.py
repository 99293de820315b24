"""
Tax Basis Engine - Lot Matching

Pairs every disposal with the acquisition lots it consumes and turns each
pairing into a MatchedGainEntry:
1. Partitions records by direction and orders each side by date
2. Matches disposals against lots of the same asset, oldest lot first
3. Applies the holding-period discount to each positive gain
4. Nets the entries into a CapitalGainsResult

Input records are never mutated. Units still available in each lot are
tracked in a side map keyed by the lot's position in acquisition order.

Copyright (c) 2026 Andre. All rights reserved.
"""

from abc import ABC, abstractmethod
from collections import defaultdict
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Tuple

from parsers.records import Transaction
from calculators.tax_events import CapitalGainsResult, MatchedGainEntry, UnmatchedDisposal
from calculators.tax_tables import TaxYearSchedule, get_schedule
from calculators.holding_period import holding_discount
from utils.logging_config import setup_logger

logger = setup_logger(__name__)

# (lot key, acquisition record)
OpenLot = Tuple[int, Transaction]


def unit_cost(acquisition: Transaction) -> Decimal:
    """Cost per unit of a lot, costs included."""
    return (acquisition.price + acquisition.costs) / acquisition.quantity


def unit_proceeds(disposal: Transaction) -> Decimal:
    """Proceeds per unit of a disposal, net of costs."""
    return (disposal.price - disposal.costs) / disposal.quantity


class LotMatchingStrategy(ABC):
    """Base class for lot matching strategies."""

    def __init__(self, schedule: TaxYearSchedule):
        self.schedule = schedule

    @abstractmethod
    def match_disposal(
        self,
        disposal: Transaction,
        lots: List[OpenLot],
        remaining: Dict[int, Decimal]
    ) -> Tuple[List[MatchedGainEntry], Decimal]:
        """
        Match one disposal against the open lots of its asset.

        Args:
            disposal: The disposal record
            lots: Lots of the same asset, in acquisition date order
            remaining: Units still available per lot key; decremented in place

        Returns:
            (entries emitted, disposal quantity left unmatched)
        """
        pass

    def build_entry(
        self,
        disposal: Transaction,
        acquisition: Transaction,
        quantity: Decimal
    ) -> MatchedGainEntry:
        """Price a matched quantity and apply the holding discount."""
        cost_per_unit = unit_cost(acquisition)
        proceeds_per_unit = unit_proceeds(disposal)

        gain = (proceeds_per_unit - cost_per_unit) * quantity
        days = (disposal.date - acquisition.date).days
        discount = holding_discount(days, self.schedule.holding_discounts)

        # Losses are never discounted
        taxable_gain = gain * (1 - discount) if gain > 0 else gain

        return MatchedGainEntry(
            disposal_id=disposal.id,
            acquisition_id=acquisition.id,
            asset=disposal.asset,
            acquisition_date=acquisition.date,
            disposal_date=disposal.date,
            holding_period_days=days,
            quantity=quantity,
            acquisition_value=cost_per_unit * quantity,
            disposal_value=proceeds_per_unit * quantity,
            gain=gain,
            holding_discount=discount,
            taxable_gain=taxable_gain,
            is_short_term=days < self.schedule.short_term_days,
        )


class FIFOStrategy(LotMatchingStrategy):
    """First-In, First-Out lot matching."""

    def match_disposal(
        self,
        disposal: Transaction,
        lots: List[OpenLot],
        remaining: Dict[int, Decimal]
    ) -> Tuple[List[MatchedGainEntry], Decimal]:
        remaining_to_match = disposal.quantity
        entries = []

        for lot_key, acquisition in lots:
            if remaining_to_match <= 0:
                break

            available = remaining[lot_key]
            if available <= 0:
                continue

            matched = min(remaining_to_match, available)
            entry = self.build_entry(disposal, acquisition, matched)
            entries.append(entry)

            logger.debug(
                f"FIFO: {disposal.asset} {matched} units from lot {acquisition.date} "
                f"(disposed {disposal.date}), gain {entry.gain}"
            )

            remaining[lot_key] = available - matched
            remaining_to_match -= matched

        return entries, remaining_to_match


class TaxBasisEngine:
    """
    Lot matching engine over one full set of ledger records.

    Each call to process_all_transactions() is an independent run; the
    engine keeps no state between runs.
    """

    def __init__(
        self,
        transactions: Iterable[Transaction],
        schedule: Optional[TaxYearSchedule] = None,
        strategy: Optional[LotMatchingStrategy] = None
    ):
        self.transactions = tuple(transactions)
        self.schedule = schedule or get_schedule()
        self.strategy = strategy or FIFOStrategy(self.schedule)

    def process_all_transactions(self) -> CapitalGainsResult:
        """Match all disposals and net the results."""
        # sorted() is stable: same-day records keep their input order
        acquisitions = sorted(
            (t for t in self.transactions if t.is_acquisition), key=lambda t: t.date
        )
        disposals = sorted(
            (t for t in self.transactions if t.is_disposal), key=lambda t: t.date
        )

        lots_by_asset: Dict[str, List[OpenLot]] = defaultdict(list)
        remaining: Dict[int, Decimal] = {}
        for lot_key, acquisition in enumerate(acquisitions):
            lots_by_asset[acquisition.asset].append((lot_key, acquisition))
            remaining[lot_key] = acquisition.quantity

        logger.debug(
            f"Matching {len(disposals)} disposals against {len(acquisitions)} lots "
            f"with {type(self.strategy).__name__}"
        )

        entries: List[MatchedGainEntry] = []
        unmatched: List[UnmatchedDisposal] = []

        for disposal in disposals:
            matched, leftover = self.strategy.match_disposal(
                disposal, lots_by_asset.get(disposal.asset, []), remaining
            )
            entries.extend(matched)

            if leftover > 0:
                logger.warning(
                    f"Orphaned disposal: {disposal.asset} on {disposal.date} "
                    f"- {leftover} units have no acquisition lot"
                )
                unmatched.append(UnmatchedDisposal(
                    disposal_id=disposal.id,
                    asset=disposal.asset,
                    disposal_date=disposal.date,
                    quantity=leftover,
                ))

        return summarize_entries(entries, unmatched)


def summarize_entries(
    entries: List[MatchedGainEntry],
    unmatched: Optional[List[UnmatchedDisposal]] = None
) -> CapitalGainsResult:
    """
    Net matched entries into totals.

    Losses offset the discounted taxable base one-to-one.
    """
    positive = [e for e in entries if e.gain > 0]
    losses = sum((e.gain for e in entries if e.gain < 0), start=Decimal(0))

    total_gains = sum((e.gain for e in positive), start=Decimal(0)) + losses
    total_taxable = sum((e.taxable_gain for e in positive), start=Decimal(0)) + losses

    return CapitalGainsResult(
        total_gains=total_gains,
        total_taxable_gains=total_taxable,
        has_short_term_gains=any(e.is_short_term for e in positive),
        entries=tuple(entries),
        unmatched_disposals=tuple(unmatched or ()),
    )


def compute_capital_gains(
    transactions: Iterable[Transaction],
    schedule: Optional[TaxYearSchedule] = None
) -> CapitalGainsResult:
    """Run FIFO lot matching over `transactions`."""
    return TaxBasisEngine(transactions, schedule=schedule).process_all_transactions()
