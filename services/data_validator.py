"""
Data Quality Validation Service

Advisory checks over a ledger snapshot. Records reaching this point are
already individually valid; these checks look across records for things
that usually mean a data-entry mistake. The tax engine never consults
the result.
"""

from datetime import date
from decimal import Decimal
from typing import Dict, List, Optional, Sequence
from collections import defaultdict

from parsers.records import IncomeRecord, Transaction
from utils.logging_config import setup_logger

logger = setup_logger(__name__)


class ValidationIssue:
    """Represents a data quality issue."""

    SEVERITY_ERROR = "ERROR"
    SEVERITY_WARNING = "WARNING"
    SEVERITY_INFO = "INFO"

    def __init__(self, severity: str, category: str, message: str, record_id: Optional[str] = None):
        self.severity = severity
        self.category = category
        self.message = message
        self.record_id = record_id

    def __repr__(self):
        return f"ValidationIssue({self.severity}, {self.category}, {self.message!r})"


class DataValidator:
    """Cross-record checks for transaction and income ledgers."""

    def __init__(self, today: Optional[date] = None):
        self.today = today or date.today()
        self.issues: List[ValidationIssue] = []

    def validate_all(
        self,
        transactions: Sequence[Transaction] = (),
        income_records: Sequence[IncomeRecord] = ()
    ) -> List[ValidationIssue]:
        """Run all validation checks."""
        self.issues = []

        self.check_duplicates(transactions)
        self.check_orphaned_disposals(transactions)
        self.check_withholding(income_records)
        self.check_future_dates(transactions, income_records)

        if self.issues:
            logger.info(f"Data validation found {len(self.issues)} issues: {self.get_summary()}")
        return self.issues

    def check_duplicates(self, transactions: Sequence[Transaction]):
        """Detect lines that look entered twice."""
        seen = set()

        for trans in transactions:
            fingerprint = (trans.date, trans.direction, trans.asset, trans.quantity, trans.price)

            if fingerprint in seen:
                self.issues.append(ValidationIssue(
                    ValidationIssue.SEVERITY_WARNING,
                    "Duplicate",
                    f"Potential duplicate: {trans.direction.value} {trans.quantity} {trans.asset} on {trans.date}",
                    trans.id
                ))
            else:
                seen.add(fingerprint)

    def check_orphaned_disposals(self, transactions: Sequence[Transaction]):
        """Check for disposals exceeding the units held on their date."""
        holdings = defaultdict(Decimal)

        # Acquisitions before disposals on the same day
        ordered = sorted(transactions, key=lambda t: (t.date, 0 if t.is_acquisition else 1))
        for trans in ordered:
            if trans.is_acquisition:
                holdings[trans.asset] += trans.quantity
                continue

            if holdings[trans.asset] < trans.quantity:
                self.issues.append(ValidationIssue(
                    ValidationIssue.SEVERITY_WARNING,
                    "Orphaned Disposal",
                    f"Disposing {trans.quantity} {trans.asset} on {trans.date} "
                    f"but only {holdings[trans.asset]} held",
                    trans.id
                ))
            holdings[trans.asset] = max(Decimal(0), holdings[trans.asset] - trans.quantity)

    def check_withholding(self, income_records: Sequence[IncomeRecord]):
        """Withholding above the gross amount is almost always a typo."""
        for record in income_records:
            if record.withholding_tax > record.gross_amount:
                self.issues.append(ValidationIssue(
                    ValidationIssue.SEVERITY_WARNING,
                    "Withholding",
                    f"{record.asset} on {record.date}: withheld {record.withholding_tax} "
                    f"exceeds gross {record.gross_amount}",
                    record.id
                ))

    def check_future_dates(
        self,
        transactions: Sequence[Transaction],
        income_records: Sequence[IncomeRecord]
    ):
        future = [r for r in list(transactions) + list(income_records) if r.date > self.today]
        if future:
            self.issues.append(ValidationIssue(
                ValidationIssue.SEVERITY_WARNING,
                "Future Date",
                f"{len(future)} records dated in the future",
                None
            ))

    def get_summary(self) -> Dict[str, int]:
        """Get validation summary by severity."""
        return {
            "TOTAL": len(self.issues),
            "ERROR": sum(1 for i in self.issues if i.severity == ValidationIssue.SEVERITY_ERROR),
            "WARNING": sum(1 for i in self.issues if i.severity == ValidationIssue.SEVERITY_WARNING),
            "INFO": sum(1 for i in self.issues if i.severity == ValidationIssue.SEVERITY_INFO),
        }
