"""
Transfers as paired transactions.

A transfer is booked as two transactions, a debit leg on the
source and a credit leg on the target, sharing one freshly
generated pair_key. There is no foreign key between the legs;
the shared key is the whole relationship, and it is the unit
for every later change:

- deleting either leg deletes both
- changing the amount of either leg sets the other leg to the
  negated amount

Callers persist the legs of one transfer in a single unit of
work so the pair is committed completely or not at all.
"""

import logging
import uuid
from decimal import Decimal

from sqlalchemy import update
from sqlalchemy.orm import Session

from budget_ledger.errors import InvalidCategoryAccountError, TypeMismatchError
from budget_ledger.models.account import Account
from budget_ledger.models.base import utcnow
from budget_ledger.models.enums import AccountType
from budget_ledger.models.transaction import Transaction

logger = logging.getLogger(__name__)


def transfer_payee(from_acc: Account, to_acc: Account) -> str:
    return f"Transfer: {from_acc.name} → {to_acc.name}"


def _leg(
    account: Account,
    amount: Decimal,
    payee: str,
    description: str,
    pair_key: uuid.UUID,
    category_id: uuid.UUID | None = None,
) -> Transaction:
    """One side of a transfer, booked on the column matching the account type."""
    txn = Transaction(
        time=utcnow(),
        payee=payee,
        description=description,
        amount=amount,
        cleared=False,
        reconciled=False,
        pair_key=pair_key,
    )
    if account.type == AccountType.CATEGORY:
        txn.account_id = None
        txn.category_id = account.id
    else:
        txn.account_id = account.id
        txn.category_id = category_id
    return txn


def plan_transfer(
    from_acc: Account,
    to_acc: Account,
    amount: Decimal,
    description: str = "",
) -> list[Transaction]:
    """
    Build both legs of a transfer between two accounts of the same type.

    Raises TypeMismatchError when the account types differ.
    """
    if from_acc.type != to_acc.type:
        raise TypeMismatchError(
            f"account type mismatch: {from_acc.type.value} != {to_acc.type.value}"
        )

    pair_key = uuid.uuid4()
    payee = transfer_payee(from_acc, to_acc)
    return [
        _leg(from_acc, -amount, payee, description, pair_key),
        _leg(to_acc, amount, payee, description, pair_key),
    ]


def plan_transfer_with_category(
    from_acc: Account,
    to_acc: Account,
    amount: Decimal,
    description: str,
    category_id: uuid.UUID,
) -> list[Transaction]:
    """
    Build both legs of a transfer that also categorizes the money.

    Used when money leaves the budget, e.g. a payment from a budget
    account into a tracking account. Only a leg on a budget account
    carries the category. Category accounts cannot take part.
    """
    for acc in (from_acc, to_acc):
        if acc.type == AccountType.CATEGORY:
            raise InvalidCategoryAccountError(
                f"transfer contained category-type account {acc.id}"
            )

    pair_key = uuid.uuid4()
    payee = transfer_payee(from_acc, to_acc)
    return [
        _leg(
            from_acc, -amount, payee, description, pair_key,
            category_id if from_acc.type == AccountType.BUDGET else None,
        ),
        _leg(
            to_acc, amount, payee, description, pair_key,
            category_id if to_acc.type == AccountType.BUDGET else None,
        ),
    ]


def sync_paired_amount(db: Session, txn: Transaction) -> int:
    """
    Set the sibling leg's amount to the negation of txn's amount.

    Returns the number of sibling rows changed.
    """
    if txn.pair_key is None:
        return 0

    result = db.execute(
        update(Transaction)
        .where(
            Transaction.pair_key == txn.pair_key,
            Transaction.id != txn.id,
            Transaction.deleted_at.is_(None),
        )
        .values(amount=-txn.amount, updated_at=utcnow())
        .execution_options(synchronize_session="fetch")
    )
    logger.info(
        "Synchronized paired amount for pair %s to %s",
        txn.pair_key, -txn.amount,
    )
    return result.rowcount


def delete_pair(db: Session, pair_key: uuid.UUID) -> int:
    """Soft-delete every leg sharing pair_key. Returns rows deleted."""
    now = utcnow()
    result = db.execute(
        update(Transaction)
        .where(
            Transaction.pair_key == pair_key,
            Transaction.deleted_at.is_(None),
        )
        .values(deleted_at=now, updated_at=now)
        .execution_options(synchronize_session="fetch")
    )
    logger.info("Deleted %d transaction(s) of pair %s", result.rowcount, pair_key)
    return result.rowcount
