"""
Unit Tests for Cross-Record Data Validation

Copyright (c) 2026 Andreas Wagner. All rights reserved.
"""

import pytest
from datetime import date

from parsers.records import IncomeRecord, Transaction
from services.data_validator import DataValidator, ValidationIssue


def trade(direction, on, quantity, asset="EDP", price="100"):
    return Transaction(direction=direction, asset=asset, date=on, quantity=quantity, price=price)


@pytest.fixture
def validator():
    return DataValidator(today=date(2024, 1, 1))


class TestDataValidator:

    def test_clean_ledger(self, validator):
        issues = validator.validate_all(
            [trade("Buy", date(2023, 1, 1), "10"), trade("Sell", date(2023, 6, 1), "10", price="150")],
            [IncomeRecord(asset="EDP", date=date(2023, 5, 1), gross_amount="10", withholding_tax="2.8")],
        )
        assert issues == []
        assert validator.get_summary()["TOTAL"] == 0

    def test_duplicate_lines(self, validator):
        issues = validator.validate_all([
            trade("Buy", date(2023, 1, 1), "10"),
            trade("Buy", date(2023, 1, 1), "10"),
        ])

        assert [i.category for i in issues] == ["Duplicate"]
        assert issues[0].severity == ValidationIssue.SEVERITY_WARNING

    def test_disposal_exceeding_holdings(self, validator):
        sale = trade("Sell", date(2023, 6, 1), "15")
        issues = validator.validate_all([trade("Buy", date(2023, 1, 1), "10"), sale])

        assert len(issues) == 1
        assert issues[0].category == "Orphaned Disposal"
        assert issues[0].record_id == sale.id

    def test_same_day_acquisition_covers_disposal(self, validator):
        issues = validator.validate_all([
            trade("Sell", date(2023, 6, 1), "10", price="150"),
            trade("Buy", date(2023, 6, 1), "10"),
        ])
        assert issues == []

    def test_holdings_are_per_asset(self, validator):
        issues = validator.validate_all([
            trade("Buy", date(2023, 1, 1), "10", asset="GALP"),
            trade("Sell", date(2023, 6, 1), "10", asset="EDP"),
        ])
        assert [i.category for i in issues] == ["Orphaned Disposal"]

    def test_withholding_above_gross(self, validator):
        record = IncomeRecord(asset="EDP", date=date(2023, 5, 1), gross_amount="10", withholding_tax="20")
        issues = validator.validate_all([], [record])

        assert issues[0].category == "Withholding"
        assert issues[0].record_id == record.id

    def test_future_dates(self, validator):
        issues = validator.validate_all([trade("Buy", date(2024, 6, 1), "10")])

        assert [i.category for i in issues] == ["Future Date"]

    def test_summary_counts(self, validator):
        validator.validate_all([
            trade("Sell", date(2023, 6, 1), "10"),
            trade("Sell", date(2023, 6, 1), "10"),
        ])
        summary = validator.get_summary()

        assert summary["TOTAL"] == 3
        assert summary["WARNING"] == 3
        assert summary["ERROR"] == 0

    def test_rerun_resets_issues(self, validator):
        validator.validate_all([trade("Sell", date(2023, 6, 1), "10")])
        assert validator.validate_all([]) == []
