"""
Unit Tests for Ledger Record Models

Copyright (c) 2026 Andreas Wagner. All rights reserved.
"""

import pytest
from datetime import date, datetime
from decimal import Decimal

from pydantic import ValidationError

from parsers.records import (
    IncomeRecord,
    IncomeSource,
    IncomeType,
    RecordDirection,
    RecordTypeError,
    Transaction,
)


def make_transaction(**overrides):
    fields = dict(direction="Acquire", asset="EDP", date=date(2023, 1, 1),
                  quantity="10", price="100")
    fields.update(overrides)
    return Transaction(**fields)


class TestRecordDirection:

    @pytest.mark.parametrize("label", ["Acquire", "buy", "BUY", "Purchase", "compra"])
    def test_acquisition_labels(self, label):
        assert RecordDirection.normalize(label) == RecordDirection.ACQUIRE

    @pytest.mark.parametrize("label", ["Dispose", "sell", "Sale", "VENDA"])
    def test_disposal_labels(self, label):
        assert RecordDirection.normalize(label) == RecordDirection.DISPOSE

    def test_unknown_label(self):
        with pytest.raises(RecordTypeError, match="Unknown record direction"):
            RecordDirection.normalize("Gift")


class TestIncomeEnums:

    @pytest.mark.parametrize("label", ["PT_EU_EEE", "pt", "EU", "domestic"])
    def test_domestic_sources(self, label):
        assert IncomeSource.normalize(label) == IncomeSource.DOMESTIC_OR_EEA

    @pytest.mark.parametrize("label", ["OTHER", "foreign"])
    def test_other_sources(self, label):
        assert IncomeSource.normalize(label) == IncomeSource.OTHER

    def test_unknown_source(self):
        with pytest.raises(RecordTypeError):
            IncomeSource.normalize("Mars")

    def test_income_types(self):
        assert IncomeType.normalize("dividendo") == IncomeType.DIVIDEND
        assert IncomeType.normalize("Juros") == IncomeType.INTEREST


class TestTransaction:

    def test_values_become_decimals(self):
        trans = make_transaction(quantity=10, price=0.1, costs="1.5")

        assert trans.quantity == Decimal("10")
        assert trans.price == Decimal("0.1")
        assert trans.costs == Decimal("1.5")

    def test_defaults(self):
        trans = make_transaction()

        assert trans.costs == Decimal(0)
        assert trans.currency == "EUR"
        assert trans.is_acquisition
        assert not trans.is_disposal
        assert trans.id

    def test_ids_are_unique(self):
        assert make_transaction().id != make_transaction().id

    def test_datetime_is_truncated(self):
        assert make_transaction(date=datetime(2023, 1, 15, 10, 30)).date == date(2023, 1, 15)
        assert make_transaction(date="2023-01-15T10:30:00").date == date(2023, 1, 15)

    @pytest.mark.parametrize("field,value", [
        ("quantity", "0"),
        ("quantity", "-1"),
        ("price", "0"),
        ("price", "-100"),
        ("costs", "-1"),
        ("asset", "   "),
        ("quantity", "ten"),
    ])
    def test_invalid_values(self, field, value):
        with pytest.raises(ValidationError):
            make_transaction(**{field: value})

    def test_asset_is_stripped(self):
        assert make_transaction(asset=" EDP ").asset == "EDP"

    def test_records_are_immutable(self):
        trans = make_transaction()
        with pytest.raises(ValidationError):
            trans.quantity = Decimal("5")


class TestIncomeRecord:

    def test_defaults(self):
        record = IncomeRecord(asset="EDP", date=date(2023, 5, 10), gross_amount="100")

        assert record.withholding_tax == Decimal(0)
        assert record.source == IncomeSource.DOMESTIC_OR_EEA
        assert record.income_type == IncomeType.DIVIDEND

    def test_negative_amounts_rejected(self):
        with pytest.raises(ValidationError):
            IncomeRecord(asset="EDP", date=date(2023, 5, 10), gross_amount="-1")
        with pytest.raises(ValidationError):
            IncomeRecord(asset="EDP", date=date(2023, 5, 10), gross_amount="1",
                         withholding_tax="-1")

    def test_withholding_above_gross_is_accepted(self):
        record = IncomeRecord(asset="EDP", date=date(2023, 5, 10), gross_amount="10",
                              withholding_tax="20")
        assert record.withholding_tax == Decimal("20")
