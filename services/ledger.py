"""
Session Ledger

In-memory store for the records entered during one session:
- Validates records as they are added (InvalidRecordError on bad input)
- Removes records by id
- Imports CSV ledgers
- Hands immutable snapshots to the simulation

Nothing is persisted; a new Ledger starts empty.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, List, Optional, Tuple

from pydantic import ValidationError

from parsers.records import IncomeRecord, InvalidRecordError, Transaction
from parsers.csv_parser import LedgerCSVParser
from calculators.simulation import simulate
from calculators.tax_events import AnnexData, SimulationResult
from calculators.tax_tables import get_schedule
from utils.logging_config import setup_logger

logger = setup_logger(__name__)


@dataclass
class ImportResult:
    """Result of importing a CSV ledger."""

    added: int
    skipped: int
    total_count: int
    errors: List[str] = field(default_factory=list)


def _validation_messages(error: ValidationError) -> List[str]:
    messages = []
    for item in error.errors():
        location = ".".join(str(part) for part in item.get('loc', ()))
        messages.append(f"{location}: {item.get('msg')}" if location else item.get('msg'))
    return messages


class Ledger:
    """Transactions and income records for one simulation session."""

    def __init__(self):
        self._transactions: Dict[str, Transaction] = {}
        self._income: Dict[str, IncomeRecord] = {}

    @property
    def transactions(self) -> Tuple[Transaction, ...]:
        return tuple(self._transactions.values())

    @property
    def income_records(self) -> Tuple[IncomeRecord, ...]:
        return tuple(self._income.values())

    def __len__(self) -> int:
        return len(self._transactions) + len(self._income)

    def add_transaction(self, **fields) -> Transaction:
        """
        Validate and add an acquisition/disposal.

        Raises:
            InvalidRecordError: If quantity or price is not positive, or any
                other field is invalid
        """
        try:
            record = Transaction(**fields)
        except ValidationError as e:
            messages = _validation_messages(e)
            logger.info(f"Rejected transaction: {messages}")
            raise InvalidRecordError("Invalid transaction: " + "; ".join(messages), messages) from e

        return self._store(self._transactions, record)

    def add_income(self, **fields) -> IncomeRecord:
        """
        Validate and add a dividend/interest record.

        Raises:
            InvalidRecordError: If any field is invalid
        """
        try:
            record = IncomeRecord(**fields)
        except ValidationError as e:
            messages = _validation_messages(e)
            logger.info(f"Rejected income record: {messages}")
            raise InvalidRecordError("Invalid income record: " + "; ".join(messages), messages) from e

        return self._store(self._income, record)

    def _store(self, bucket, record):
        if record.id in self._transactions or record.id in self._income:
            raise InvalidRecordError(f"Duplicate record id: {record.id}", [f"id: duplicate {record.id}"])
        bucket[record.id] = record
        return record

    def remove(self, record_id: str) -> bool:
        """Remove a record of either kind. Returns False if the id is unknown."""
        if self._transactions.pop(record_id, None) is not None:
            return True
        return self._income.pop(record_id, None) is not None

    def clear(self):
        self._transactions.clear()
        self._income.clear()

    def import_csv(self, content: str, kind: str = "transactions") -> ImportResult:
        """
        Import a CSV ledger.

        Args:
            content: Raw CSV text
            kind: "transactions" or "income"
        """
        parser = LedgerCSVParser()
        if kind == "transactions":
            records, errors = parser.parse_transactions(content)
            bucket = self._transactions
        elif kind == "income":
            records, errors = parser.parse_income(content)
            bucket = self._income
        else:
            raise ValueError(f"Unknown ledger kind: '{kind}'")

        added = 0
        skipped = len(errors)
        for record in records:
            try:
                self._store(bucket, record)
                added += 1
            except InvalidRecordError as e:
                errors.append(str(e))
                skipped += 1

        logger.info(f"Imported {added} {kind} records, skipped {skipped}")
        return ImportResult(
            added=added,
            skipped=skipped,
            total_count=len(bucket),
            errors=errors,
        )

    def simulate(
        self,
        other_annual_income=Decimal(0),
        tax_year: Optional[int] = None
    ) -> Tuple[SimulationResult, AnnexData]:
        """
        Run the simulation over a snapshot of the current records.

        Raises:
            InvalidRecordError: If other_annual_income is negative
        """
        if Decimal(str(other_annual_income)) < 0:
            raise InvalidRecordError(
                f"Other annual income cannot be negative: {other_annual_income}",
                ["other_annual_income: must be >= 0"],
            )
        return simulate(
            self.transactions,
            self.income_records,
            other_annual_income,
            schedule=get_schedule(tax_year),
        )
