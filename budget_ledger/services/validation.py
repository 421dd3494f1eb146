"""
Transaction validation rules.

These rules keep the ledger internally consistent:
1. A transaction has a time
2. It books against an account, a category, or both
3. It moves a non-zero amount
4. Referenced accounts exist
5. Plain budget-account spending is categorized (transfer legs
   are exempt)
6. Tracking accounts never carry a category
7. A category reference points at a category-type account

Soft violations are collected and reported together. A missing
account is a hard failure and stops validation at once.
"""

from datetime import datetime
from typing import Callable
import uuid

from budget_ledger.errors import ValidationError
from budget_ledger.models.account import Account
from budget_ledger.models.enums import AccountType
from budget_ledger.models.transaction import Transaction

AccountLookup = Callable[[uuid.UUID], Account]


def is_zero_time(value: datetime | None) -> bool:
    return value is None or value.replace(tzinfo=None) == datetime.min


def validate_transaction(txn: Transaction, lookup: AccountLookup) -> None:
    """
    Check a candidate transaction against the ledger rules.

    `lookup` resolves an account id to its Account and raises
    NotFoundError for an unknown id; that error is propagated
    unchanged. All other violations are raised together as one
    ValidationError.
    """
    reasons = []

    if is_zero_time(txn.time):
        reasons.append("time is zero")

    if txn.account_id is None and txn.category_id is None:
        reasons.append("account and category are null")

    if not txn.amount:
        reasons.append("amount is zero")

    account = lookup(txn.account_id) if txn.account_id is not None else None
    category = lookup(txn.category_id) if txn.category_id is not None else None

    if (
        account is not None
        and account.type == AccountType.BUDGET
        and category is None
        and txn.pair_key is None
    ):
        reasons.append("budget account transactions need a category")

    if (
        account is not None
        and account.type == AccountType.TRACKING
        and category is not None
    ):
        reasons.append(
            "tracking account transactions must not have a category"
        )

    if category is not None and category.type != AccountType.CATEGORY:
        reasons.append("category is not of type category")

    if reasons:
        raise ValidationError(reasons)


def validate_account_name(name: str | None) -> None:
    if name is None or not name.strip():
        raise ValidationError(["account name is empty"])
