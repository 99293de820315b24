"""
Tax Engine

Lot matching, income aggregation and regime comparison for capital gains
and investment income.
"""

__all__ = ['simulation', 'tax_basis', 'income', 'brackets', 'holding_period', 'tax_calculators']
