"""Session services around the tax engine: ledger and data-quality checks."""
