"""
Database models package.

All models must be imported here so that Alembic can discover
them through Base.metadata when generating migrations.
"""

from budget_ledger.models.base import Base
from budget_ledger.models.enums import AccountType
from budget_ledger.models.account import (
    Account,
    DEFAULT_ACCOUNTS,
    STARTING_BALANCE_ID,
    UNALLOCATED_MONEY_ID,
)
from budget_ledger.models.transaction import Transaction

__all__ = [
    "Base",
    "AccountType",
    "Account",
    "DEFAULT_ACCOUNTS",
    "STARTING_BALANCE_ID",
    "UNALLOCATED_MONEY_ID",
    "Transaction",
]
