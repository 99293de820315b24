"""Ledger record models and importers."""
