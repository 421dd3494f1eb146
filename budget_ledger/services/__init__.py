"""Ledger engine services."""

from budget_ledger.services.balance import AccountBalance
from budget_ledger.services.ledger_client import LedgerClient, get_ledger
from budget_ledger.services.retry import RetryPolicy, retry_call

__all__ = [
    "AccountBalance",
    "LedgerClient",
    "RetryPolicy",
    "get_ledger",
    "retry_call",
]
