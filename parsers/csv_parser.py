"""CSV import of ledger records with format detection and fuzzy column mapping."""

import re
from datetime import datetime, date
from decimal import Decimal, InvalidOperation
from difflib import SequenceMatcher, get_close_matches
from io import StringIO
from typing import Any, Dict, Iterable, List, Optional, Set, Tuple

import pandas as pd
from pydantic import ValidationError

from parsers.records import IncomeRecord, Transaction
from utils.logging_config import setup_logger, log_frame_info

logger = setup_logger(__name__)

_COMMA_DECIMAL = re.compile(r"-?[\d.]*\d,\d{1,2}")
_POINT_DECIMAL = re.compile(r"-?\d+\.\d{1,2}")


class LedgerCSVParser:
    """
    CSV parser for transaction and income ledgers.

    Handles:
    - Multiple delimiters (;, ,, |, tab)
    - Decimal separators (. or ,)
    - English and Portuguese column names (fuzzy matching)
    - Row-level validation errors reported, not raised
    """

    TRANSACTION_COLUMNS = {
        'id': ['id', 'reference', 'ref'],
        'direction': ['direction', 'type', 'side', 'action', 'tipo', 'operacao'],
        'asset': ['asset', 'symbol', 'ticker', 'isin', 'ativo'],
        'date': ['date', 'trade_date', 'data'],
        'quantity': ['quantity', 'shares', 'units', 'quantidade'],
        'price': ['price', 'total', 'amount', 'value', 'valor', 'preco'],
        'costs': ['costs', 'fees', 'fee', 'commission', 'despesas', 'custos'],
        'currency': ['currency', 'ccy', 'moeda'],
    }

    INCOME_COLUMNS = {
        'id': ['id', 'reference', 'ref'],
        'asset': ['asset', 'symbol', 'ticker', 'isin', 'ativo'],
        'date': ['date', 'payment_date', 'data'],
        'gross_amount': ['gross_amount', 'gross', 'amount', 'valor_bruto', 'bruto'],
        'withholding_tax': ['withholding_tax', 'withholding', 'tax_withheld', 'retencao', 'imposto_retido'],
        'source': ['source', 'origin', 'fonte', 'origem'],
        'income_type': ['income_type', 'kind', 'category', 'tipo'],
        'currency': ['currency', 'ccy', 'moeda'],
    }

    DATE_FORMATS = [
        '%Y-%m-%d',     # ISO date
        '%d/%m/%Y',     # Portuguese/European format
        '%d-%m-%Y',
        '%d.%m.%Y',
        '%Y-%m-%dT%H:%M:%S',
    ]

    def __init__(self):
        self.delimiter = None
        self.decimal_separator = None

    def detect_delimiter(self, content: str) -> str:
        """Detect CSV delimiter from the header line."""
        first_line = content.split('\n')[0] if content else ''

        counts = {delim: first_line.count(delim) for delim in (';', ',', '|', '\t')}
        delimiter = max(counts, key=counts.get)
        return delimiter if counts[delimiter] > 0 else ','

    @staticmethod
    def _clean_number(value: Any) -> str:
        return str(value).strip().replace('€', '').replace(' ', '')

    def detect_decimal_separator(self, values: Iterable[Any]) -> str:
        """
        Detect the decimal separator from numeric cells only.

        Comma decimals only make sense when the delimiter is not a comma.
        Free-text columns (ids, notes) are never passed in.
        """
        if self.delimiter == ',':
            return '.'

        for value in values:
            if _COMMA_DECIMAL.fullmatch(self._clean_number(value)):
                return ','
        return '.'

    def fuzzy_match_column(self, column_name: str, templates: List[str]) -> float:
        """Best match score (0.0 to 1.0) of a column against templates."""
        column_lower = column_name.lower().strip().replace(' ', '_')

        if column_lower in templates:
            return 1.0

        matches = get_close_matches(column_lower, templates, n=1, cutoff=0.7)
        if matches:
            return SequenceMatcher(None, column_lower, matches[0]).ratio()
        return 0.0

    def map_columns(self, df: pd.DataFrame, mappings: Dict[str, List[str]]) -> Dict[str, str]:
        """Map actual column names to field names, best score first."""
        candidates = []
        for field_name, templates in mappings.items():
            for col in df.columns:
                score = self.fuzzy_match_column(col, templates)
                if score >= 0.8:
                    candidates.append((score, field_name, col))

        candidates.sort(key=lambda c: c[0], reverse=True)

        column_map = {}
        assigned_fields = set()
        for score, field_name, col in candidates:
            if col in column_map or field_name in assigned_fields:
                continue
            column_map[col] = field_name
            assigned_fields.add(field_name)
            logger.debug(f"Mapped '{col}' to '{field_name}' (score: {score:.2f})")

        logger.info(f"Column mapping: {column_map}")
        return column_map

    def normalize_decimal(self, value: Any) -> Optional[Decimal]:
        """Convert a cell to Decimal; None for blanks."""
        if value is None or pd.isna(value) or str(value).strip() == '':
            return None

        val_str = self._clean_number(value)
        if self.decimal_separator == ',':
            # "1000.5" is a point decimal, not a thousands group
            if _POINT_DECIMAL.fullmatch(val_str):
                raise ValueError(f"Ambiguous number '{value}' in a comma-decimal file")
            val_str = val_str.replace('.', '').replace(',', '.')

        try:
            return Decimal(val_str)
        except InvalidOperation:
            raise ValueError(f"Could not parse number: '{value}'")

    def parse_date(self, value: Any) -> Optional[date]:
        if value is None or pd.isna(value) or str(value).strip() == '':
            return None

        val_str = str(value).strip()
        for fmt in self.DATE_FORMATS:
            try:
                return datetime.strptime(val_str, fmt).date()
            except ValueError:
                continue

        raise ValueError(f"Could not parse date: '{value}'")

    def _read_frame(
        self,
        content: str,
        mappings: Dict[str, List[str]],
        numeric_fields: Set[str]
    ) -> pd.DataFrame:
        self.delimiter = self.detect_delimiter(content)

        df = pd.read_csv(
            StringIO(content),
            delimiter=self.delimiter,
            quotechar='"',
            dtype=str,
            keep_default_na=False,
            skipinitialspace=True,
        )
        df.columns = df.columns.str.strip().str.strip('"')
        log_frame_info(logger, df, "Ledger CSV")

        df = df.rename(columns=self.map_columns(df, mappings))

        numeric_cells = (
            value
            for column in numeric_fields if column in df.columns
            for value in df[column]
        )
        self.decimal_separator = self.detect_decimal_separator(numeric_cells)
        logger.info(f"Detected delimiter: '{self.delimiter}', decimal: '{self.decimal_separator}'")

        return df

    def _parse_rows(self, content, mappings, required, model, numeric_fields):
        df = self._read_frame(content, mappings, numeric_fields)

        missing = [col for col in required if col not in df.columns]
        if missing:
            raise ValueError(f"Missing required columns: {missing}")

        records = []
        errors = []

        for idx, row in df.iterrows():
            fields = {}
            try:
                for field_name in mappings:
                    if field_name not in df.columns:
                        continue
                    raw = row[field_name]
                    if field_name == 'date':
                        fields[field_name] = self.parse_date(raw)
                    elif field_name in numeric_fields:
                        value = self.normalize_decimal(raw)
                        if value is not None:
                            fields[field_name] = value
                    elif str(raw).strip():
                        fields[field_name] = str(raw).strip()

                records.append(model(**fields))
            except (ValidationError, ValueError) as e:
                errors.append(f"Row {idx + 2}: {e}")
                logger.warning(f"Failed to parse row {idx + 2}: {e}")

        logger.info(f"Parsed {len(records)} {model.__name__} rows, {len(errors)} errors")
        return records, errors

    def parse_transactions(self, content: str) -> Tuple[List[Transaction], List[str]]:
        """
        Parse an acquisition/disposal ledger.

        Returns:
            (valid records, row error messages)

        Raises:
            ValueError: If required columns are missing
        """
        return self._parse_rows(
            content,
            self.TRANSACTION_COLUMNS,
            ['direction', 'asset', 'date', 'quantity', 'price'],
            Transaction,
            {'quantity', 'price', 'costs'},
        )

    def parse_income(self, content: str) -> Tuple[List[IncomeRecord], List[str]]:
        """Parse a dividend/interest ledger. Same contract as parse_transactions."""
        return self._parse_rows(
            content,
            self.INCOME_COLUMNS,
            ['asset', 'date', 'gross_amount'],
            IncomeRecord,
            {'gross_amount', 'withholding_tax'},
        )
