"""
Ledger Record Models

Input records accepted by the tax engine:
- Transaction: an acquisition or disposal line for one asset
- IncomeRecord: a dividend or interest payment

Records are validated once, on construction, and are immutable afterwards.
All money and quantity fields are Decimals.
"""

import uuid
from enum import Enum
from decimal import Decimal, InvalidOperation
from datetime import date, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class RecordTypeError(ValueError):
    """Raised when a direction or source label cannot be normalized."""
    pass


class InvalidRecordError(ValueError):
    """
    Raised when user input cannot become a valid record.

    Attributes:
        errors: Human-readable field messages
    """

    def __init__(self, message: str, errors=None):
        super().__init__(message)
        self.errors = list(errors or [])


class RecordDirection(str, Enum):
    """Side of a ledger line."""

    ACQUIRE = "Acquire"
    DISPOSE = "Dispose"

    @classmethod
    def normalize(cls, value) -> 'RecordDirection':
        """Normalize direction labels from broker exports and manual entry.

        Raises:
            RecordTypeError: If the label cannot be mapped.
        """
        if isinstance(value, cls):
            return value

        clean_value = str(value).strip().upper().replace(" ", "").replace("-", "").replace("_", "")

        direction_map = {
            "ACQUIRE": cls.ACQUIRE,
            "BUY": cls.ACQUIRE,
            "PURCHASE": cls.ACQUIRE,
            "COMPRA": cls.ACQUIRE,
            "DISPOSE": cls.DISPOSE,
            "SELL": cls.DISPOSE,
            "SALE": cls.DISPOSE,
            "VENDA": cls.DISPOSE,
        }

        result = direction_map.get(clean_value)
        if result is None:
            raise RecordTypeError(f"Unknown record direction: '{value}'")
        return result


class IncomeSource(str, Enum):
    """Source jurisdiction class of investment income."""

    DOMESTIC_OR_EEA = "PT_EU_EEE"
    OTHER = "OTHER"

    @classmethod
    def normalize(cls, value) -> 'IncomeSource':
        if isinstance(value, cls):
            return value

        clean_value = str(value).strip().upper().replace(" ", "").replace("-", "_").replace("/", "_")

        source_map = {
            "PT_EU_EEE": cls.DOMESTIC_OR_EEA,
            "DOMESTIC_OR_EEA": cls.DOMESTIC_OR_EEA,
            "DOMESTIC": cls.DOMESTIC_OR_EEA,
            "PT": cls.DOMESTIC_OR_EEA,
            "EU": cls.DOMESTIC_OR_EEA,
            "EEA": cls.DOMESTIC_OR_EEA,
            "OTHER": cls.OTHER,
            "FOREIGN": cls.OTHER,
            "OUTRA": cls.OTHER,
        }

        result = source_map.get(clean_value)
        if result is None:
            raise RecordTypeError(f"Unknown income source: '{value}'")
        return result


class IncomeType(str, Enum):
    """Kind of investment income. Only affects annex codes."""

    DIVIDEND = "Dividend"
    INTEREST = "Interest"

    @classmethod
    def normalize(cls, value) -> 'IncomeType':
        if isinstance(value, cls):
            return value

        clean_value = str(value).strip().upper()
        if clean_value in ("DIVIDEND", "DIVIDENDO", "DIVIDENDOS"):
            return cls.DIVIDEND
        if clean_value in ("INTEREST", "JUROS"):
            return cls.INTEREST
        raise RecordTypeError(f"Unknown income type: '{value}'")


def _to_decimal(v: Any) -> Decimal:
    """Coerce int/float/str input to Decimal without binary float artefacts."""
    if isinstance(v, Decimal):
        return v
    if v is None or (isinstance(v, str) and not v.strip()):
        return Decimal(0)
    try:
        return Decimal(str(v).strip())
    except InvalidOperation:
        raise ValueError(f"Not a number: {v!r}")


def _to_date(v: Any) -> Any:
    if isinstance(v, datetime):
        return v.date()
    if isinstance(v, str):
        return date.fromisoformat(v.strip()[:10])
    return v


def _new_id() -> str:
    return uuid.uuid4().hex


class Transaction(BaseModel):
    """
    One acquisition or disposal line.

    `price` is the gross amount for the whole line, not a unit price.
    `costs` (commissions, stamp duty) are added to an acquisition's cost
    and subtracted from a disposal's proceeds.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=_new_id)
    direction: RecordDirection
    asset: str
    date: date
    quantity: Decimal
    price: Decimal
    costs: Decimal = Decimal(0)
    currency: str = "EUR"

    @field_validator('direction', mode='before')
    @classmethod
    def parse_direction(cls, v):
        return RecordDirection.normalize(v)

    @field_validator('asset')
    @classmethod
    def asset_present(cls, v):
        v = v.strip()
        if not v:
            raise ValueError('Asset symbol is required')
        return v

    @field_validator('date', mode='before')
    @classmethod
    def parse_date(cls, v):
        return _to_date(v)

    @field_validator('quantity', 'price', 'costs', mode='before')
    @classmethod
    def parse_decimal(cls, v):
        return _to_decimal(v)

    @field_validator('quantity', 'price')
    @classmethod
    def strictly_positive(cls, v, info):
        if v <= 0:
            raise ValueError(f'{info.field_name} must be greater than zero: {v}')
        return v

    @field_validator('costs')
    @classmethod
    def non_negative_costs(cls, v):
        if v < 0:
            raise ValueError(f'Costs cannot be negative: {v}')
        return v

    @property
    def is_acquisition(self) -> bool:
        return self.direction == RecordDirection.ACQUIRE

    @property
    def is_disposal(self) -> bool:
        return self.direction == RecordDirection.DISPOSE


class IncomeRecord(BaseModel):
    """A dividend or interest payment with the tax withheld at source."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=_new_id)
    asset: str
    date: date
    gross_amount: Decimal
    withholding_tax: Decimal = Decimal(0)
    source: IncomeSource = IncomeSource.DOMESTIC_OR_EEA
    income_type: IncomeType = IncomeType.DIVIDEND
    currency: str = "EUR"

    @field_validator('source', mode='before')
    @classmethod
    def parse_source(cls, v):
        return IncomeSource.normalize(v)

    @field_validator('income_type', mode='before')
    @classmethod
    def parse_income_type(cls, v):
        return IncomeType.normalize(v)

    @field_validator('asset')
    @classmethod
    def asset_present(cls, v):
        v = v.strip()
        if not v:
            raise ValueError('Asset symbol is required')
        return v

    @field_validator('date', mode='before')
    @classmethod
    def parse_date(cls, v):
        return _to_date(v)

    @field_validator('gross_amount', 'withholding_tax', mode='before')
    @classmethod
    def parse_decimal(cls, v):
        return _to_decimal(v)

    @field_validator('gross_amount', 'withholding_tax')
    @classmethod
    def non_negative_amounts(cls, v, info):
        # Withholding above gross is tolerated here and flagged by DataValidator
        if v < 0:
            raise ValueError(f'{info.field_name} cannot be negative: {v}')
        return v
