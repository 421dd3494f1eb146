"""Budget Ledger, an envelope budgeting ledger engine."""

__version__ = "0.1.0"
