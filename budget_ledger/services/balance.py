"""
Balance aggregation.

A balance is never stored. It is the sum of the amounts of all
live transactions referencing the account: through the account
column for budget and tracking accounts, through the category
column for category accounts.
"""

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP

from sqlalchemy import select, func
from sqlalchemy.orm import Session

from budget_ledger.models.account import Account
from budget_ledger.models.enums import AccountType
from budget_ledger.models.transaction import Transaction

CENTS = Decimal("0.01")


@dataclass(frozen=True)
class AccountBalance:
    account: Account
    balance: Decimal


def round_currency(value) -> Decimal:
    """
    Round a summed amount to full cents.

    Databases summing floating point columns drift in the last
    digits; the surfaced balance is always exact to the cent.
    """
    return Decimal(str(value)).quantize(CENTS, rounding=ROUND_HALF_UP)


def balance_column(account: Account):
    """The transaction column an account's money is booked through."""
    if account.type == AccountType.CATEGORY:
        return Transaction.category_id
    return Transaction.account_id


def account_balance(db: Session, account: Account) -> Decimal:
    total = db.execute(
        select(func.coalesce(func.sum(Transaction.amount), 0)).where(
            balance_column(account) == account.id,
            Transaction.deleted_at.is_(None),
        )
    ).scalar()
    return round_currency(total)


def compute_balances(
    db: Session, accounts: list[Account]
) -> list[AccountBalance]:
    """Balance for every given account, zero for accounts without transactions."""
    return [
        AccountBalance(account=account, balance=account_balance(db, account))
        for account in accounts
    ]
