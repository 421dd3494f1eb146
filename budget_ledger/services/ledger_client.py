"""
Ledger client, the entry point for every ledger operation.

Each public method is one unit of work: it opens a session from
the session factory, does all of its reads and writes inside one
database transaction and commits at the end. The whole unit runs
under retry_call(), so a transient storage failure re-runs the
unit from the beginning and a transfer is never left with only
one leg committed.

The client keeps no state between calls and can be shared by
concurrent callers. The database transaction is the only point
of serialization.
"""

import logging
import uuid
from datetime import datetime
from decimal import Decimal
from typing import Callable, TypeVar

from sqlalchemy import select, update, or_
from sqlalchemy.orm import Session, sessionmaker

from budget_ledger.errors import InvalidTypeError, NotFoundError, ValidationError
from budget_ledger.models.account import (
    Account,
    DEFAULT_ACCOUNTS,
    STARTING_BALANCE_ID,
    UNALLOCATED_MONEY_ID,
)
from budget_ledger.models.base import SessionLocal, utcnow
from budget_ledger.models.enums import AccountType
from budget_ledger.models.transaction import Transaction, round_amount
from budget_ledger.schemas.transaction import TransactionCreate, TransactionUpdate
from budget_ledger.services.balance import AccountBalance, compute_balances
from budget_ledger.services.retry import RetryPolicy, retry_call
from budget_ledger.services.transfer import (
    delete_pair,
    plan_transfer,
    plan_transfer_with_category,
    sync_paired_amount,
)
from budget_ledger.services.validation import (
    validate_account_name,
    validate_transaction,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


def as_amount(value) -> Decimal:
    """
    Accept Decimal, int, float or numeric string amounts.

    The result is rounded to the stored scale, so the zero-amount
    rule sees the value that would actually be written.
    """
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return round_amount(value)


class LedgerClient:
    """
    Handles all account and transaction operations of one ledger.

    Business rules enforced here:
    - every transaction is validated before it is written
    - both legs of a transfer are written in the same unit of work
    - editing or deleting one leg of a transfer carries over to the other
    - transient storage failures re-run the whole operation
    """

    def __init__(
        self,
        session_factory: sessionmaker,
        retry_policy: RetryPolicy | None = None,
    ):
        self.session_factory = session_factory
        self.retry_policy = retry_policy or RetryPolicy()

    # --- Unit of work ---

    def _run(self, fn: Callable[[Session], T]) -> T:
        """
        Run fn inside one committed database transaction, with retries.

        Any exception raised by fn rolls the whole transaction back.
        """
        def attempt() -> T:
            with self.session_factory.begin() as db:
                return fn(db)

        return retry_call(attempt, self.retry_policy)

    def _load_account(self, db: Session, account_id: uuid.UUID) -> Account:
        account = db.execute(
            select(Account).where(
                Account.id == account_id,
                Account.deleted_at.is_(None),
            )
        ).scalar_one_or_none()
        if account is None:
            raise NotFoundError(f"Account {account_id} not found")
        return account

    def _load_transaction(self, db: Session, txn_id: uuid.UUID) -> Transaction:
        txn = db.execute(
            select(Transaction).where(
                Transaction.id == txn_id,
                Transaction.deleted_at.is_(None),
            )
        ).scalar_one_or_none()
        if txn is None:
            raise NotFoundError(f"Transaction {txn_id} not found")
        return txn

    def _validate(self, db: Session, txn: Transaction) -> None:
        validate_transaction(txn, lambda acc_id: self._load_account(db, acc_id))

    def _book(self, db: Session, txns: list[Transaction]) -> list[Transaction]:
        """Validate and persist transactions within the current unit."""
        for txn in txns:
            self._validate(db, txn)
        db.add_all(txns)
        db.flush()
        return txns

    # --- Accounts ---

    def ensure_default_accounts(self) -> None:
        """Create the seed accounts that are missing."""
        def op(db: Session) -> None:
            for values in DEFAULT_ACCOUNTS:
                if db.get(Account, values["id"]) is None:
                    db.add(Account(**values))
                    logger.info("Created default account %r", values["name"])

        self._run(op)

    def create_account(self, name: str, account_type) -> Account:
        """
        Create a new account of the given type.

        Raises InvalidTypeError for an unknown type; nothing is
        written in that case.
        """
        return self._run(
            lambda db: self._create_account(db, name, account_type)
        )

    def _create_account(self, db: Session, name: str, account_type) -> Account:
        if not AccountType.is_valid(account_type):
            raise InvalidTypeError(f"invalid account type {account_type}")
        validate_account_name(name)

        account = Account(name=name, type=AccountType(account_type))
        db.add(account)
        db.flush()
        logger.info("Created %s account %s", account.type.value, account.id)
        return account

    def create_account_with_starting_balance(
        self, name: str, account_type, starting_balance=0
    ) -> Account:
        """
        Create an account and book its starting balance in one unit.

        - budget accounts receive the money as income into
          Unallocated Money
        - tracking accounts receive an uncategorized transaction
        - category accounts receive a transfer from the hidden
          Starting Balance category
        """
        amount = as_amount(starting_balance)

        def op(db: Session) -> Account:
            account = self._create_account(db, name, account_type)
            if not amount:
                return account

            if account.type == AccountType.CATEGORY:
                source = self._load_account(db, STARTING_BALANCE_ID)
                self._book(db, plan_transfer(
                    source, account, amount, "Starting Balance",
                ))
                return account

            txn = Transaction(
                time=utcnow(),
                payee="Starting Balance",
                description="Starting Balance",
                amount=amount,
                account_id=account.id,
                cleared=True,
            )
            if account.type == AccountType.BUDGET:
                txn.category_id = UNALLOCATED_MONEY_ID
            self._book(db, [txn])
            return account

        return self._run(op)

    def get_account(self, account_id: uuid.UUID) -> Account:
        return self._run(lambda db: self._load_account(db, account_id))

    def _account_query(self, include_hidden: bool):
        query = select(Account).where(Account.deleted_at.is_(None))
        if not include_hidden:
            query = query.where(Account.hidden.is_(False))
        return query.order_by(Account.name, Account.created_at)

    def list_accounts(self, include_hidden: bool = False) -> list[Account]:
        query = self._account_query(include_hidden)
        return self._run(
            lambda db: list(db.execute(query).scalars().all())
        )

    def list_accounts_by_type(
        self, account_type, include_hidden: bool = False
    ) -> list[Account]:
        if not AccountType.is_valid(account_type):
            raise InvalidTypeError(f"invalid account type {account_type}")

        query = self._account_query(include_hidden).where(
            Account.type == AccountType(account_type)
        )
        return self._run(
            lambda db: list(db.execute(query).scalars().all())
        )

    def list_account_balances(
        self, include_hidden: bool = False
    ) -> list[AccountBalance]:
        """All (visible) accounts with their balance, read in one snapshot."""
        query = self._account_query(include_hidden)

        def op(db: Session) -> list[AccountBalance]:
            accounts = list(db.execute(query).scalars().all())
            return compute_balances(db, accounts)

        return self._run(op)

    def update_account_name(self, account_id: uuid.UUID, name: str) -> None:
        validate_account_name(name)

        def op(db: Session) -> None:
            self._load_account(db, account_id).name = name

        self._run(op)

    def update_account_hidden(self, account_id: uuid.UUID, hidden: bool) -> None:
        def op(db: Session) -> None:
            self._load_account(db, account_id).hidden = hidden

        self._run(op)

    def mark_account_reconciled(self, account_id: uuid.UUID) -> int:
        """
        Mark every cleared transaction of the account as reconciled.

        The account balance is NOT checked; the user asserts that the
        cleared transactions match the statement. Returns the number
        of transactions touched.
        """
        def op(db: Session) -> int:
            self._load_account(db, account_id)
            result = db.execute(
                update(Transaction)
                .where(
                    Transaction.account_id == account_id,
                    Transaction.cleared.is_(True),
                    Transaction.deleted_at.is_(None),
                )
                .values(reconciled=True, updated_at=utcnow())
                .execution_options(synchronize_session=False)
            )
            return result.rowcount

        count = self._run(op)
        logger.info("Marked %d transaction(s) of %s reconciled", count, account_id)
        return count

    # --- Transactions ---

    def create_transaction(self, draft: TransactionCreate) -> Transaction:
        """
        Validate and store a new standalone transaction.

        The id is assigned here; a draft carrying one is rejected.
        """
        if draft.id is not None:
            raise ValidationError(["transaction id must not be set on create"])

        def op(db: Session) -> Transaction:
            txn = Transaction(
                time=draft.time,
                payee=draft.payee,
                description=draft.description,
                amount=as_amount(draft.amount),
                account_id=draft.account,
                category_id=draft.category,
                cleared=draft.cleared,
                reconciled=draft.reconciled,
            )
            return self._book(db, [txn])[0]

        return self._run(op)

    def get_transaction(self, txn_id: uuid.UUID) -> Transaction:
        return self._run(lambda db: self._load_transaction(db, txn_id))

    def _transaction_query(
        self, since: datetime | None, until: datetime | None
    ):
        query = select(Transaction).where(Transaction.deleted_at.is_(None))
        if since is not None:
            query = query.where(Transaction.time >= since)
        if until is not None:
            query = query.where(Transaction.time <= until)
        return query.order_by(Transaction.time, Transaction.created_at)

    def list_transactions(
        self,
        since: datetime | None = None,
        until: datetime | None = None,
    ) -> list[Transaction]:
        query = self._transaction_query(since, until)
        return self._run(
            lambda db: list(db.execute(query).scalars().all())
        )

    def list_transactions_by_account(
        self,
        account_id: uuid.UUID,
        since: datetime | None = None,
        until: datetime | None = None,
    ) -> list[Transaction]:
        """Transactions booked on the id as account or as category."""
        query = self._transaction_query(since, until).where(
            or_(
                Transaction.account_id == account_id,
                Transaction.category_id == account_id,
            )
        )
        return self._run(
            lambda db: list(db.execute(query).scalars().all())
        )

    def update_transaction(
        self, txn_id: uuid.UUID, new_state: TransactionUpdate
    ) -> Transaction:
        """
        Overwrite a transaction with a new state.

        The stored account and pair key always win over the new
        state. When a paired transaction changes its amount the
        other leg is set to the negated amount in the same unit.
        """
        def op(db: Session) -> Transaction:
            txn = self._load_transaction(db, txn_id)
            old_amount = txn.amount

            txn.time = new_state.time
            txn.payee = new_state.payee
            txn.description = new_state.description
            txn.amount = as_amount(new_state.amount)
            txn.category_id = new_state.category
            txn.cleared = new_state.cleared
            txn.reconciled = new_state.reconciled

            self._validate(db, txn)
            db.flush()

            if txn.pair_key is not None and txn.amount != old_amount:
                sync_paired_amount(db, txn)
            return txn

        return self._run(op)

    def update_transaction_category(
        self, txn_id: uuid.UUID, category_id: uuid.UUID
    ) -> None:
        """Set the category of a transaction. A category cannot be removed this way."""
        def op(db: Session) -> None:
            txn = self._load_transaction(db, txn_id)
            txn.category_id = category_id
            self._validate(db, txn)

        self._run(op)

    def update_transaction_cleared(self, txn_id: uuid.UUID, cleared: bool) -> None:
        def op(db: Session) -> None:
            self._load_transaction(db, txn_id).cleared = cleared

        self._run(op)

    def delete_transaction(self, txn_id: uuid.UUID) -> None:
        """
        Delete a transaction.

        A paired transaction would be out of sync if only one leg
        went away, so for those the whole pair is deleted.
        """
        def op(db: Session) -> None:
            txn = self._load_transaction(db, txn_id)
            if txn.pair_key is not None:
                delete_pair(db, txn.pair_key)
                return
            txn.deleted_at = utcnow()
            logger.info("Deleted transaction %s", txn_id)

        self._run(op)

    # --- Transfers ---

    def transfer_money(
        self,
        from_id: uuid.UUID,
        to_id: uuid.UUID,
        amount,
        description: str = "",
    ) -> list[Transaction]:
        """
        Move money between two accounts of the same type.

        Returns the two committed legs (debit first).
        """
        amount = as_amount(amount)

        def op(db: Session) -> list[Transaction]:
            from_acc = self._load_account(db, from_id)
            to_acc = self._load_account(db, to_id)
            return self._book(
                db, plan_transfer(from_acc, to_acc, amount, description)
            )

        legs = self._run(op)
        logger.info("Transferred %s from %s to %s", amount, from_id, to_id)
        return legs

    def transfer_money_with_category(
        self,
        from_id: uuid.UUID,
        to_id: uuid.UUID,
        amount,
        description: str,
        category_id: uuid.UUID,
    ) -> list[Transaction]:
        """
        Move money between budget/tracking accounts, categorizing the
        budget-side leg(s). Returns the two committed legs.
        """
        amount = as_amount(amount)

        def op(db: Session) -> list[Transaction]:
            from_acc = self._load_account(db, from_id)
            to_acc = self._load_account(db, to_id)
            return self._book(db, plan_transfer_with_category(
                from_acc, to_acc, amount, description, category_id,
            ))

        legs = self._run(op)
        logger.info(
            "Transferred %s from %s to %s (category %s)",
            amount, from_id, to_id, category_id,
        )
        return legs


def get_ledger() -> LedgerClient:
    """FastAPI dependency providing a ledger bound to the application database."""
    return LedgerClient(SessionLocal)
