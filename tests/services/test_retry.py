"""
Tests for the retry discipline.

Covers:
- transient storage failures are retried and may recover
- exhausting the attempt budget raises StorageError
- not-found and rule violations are never retried
- a retried unit of work is re-executed as a whole
"""

import uuid
from decimal import Decimal

import pytest
from sqlalchemy import event, select
from sqlalchemy.exc import IntegrityError, NoResultFound, OperationalError

from budget_ledger.errors import NotFoundError, StorageError, ValidationError
from budget_ledger.models.account import UNALLOCATED_MONEY_ID
from budget_ledger.models.transaction import Transaction
from budget_ledger.schemas.transaction import TransactionUpdate
from budget_ledger.services.ledger_client import LedgerClient
from budget_ledger.services.retry import is_transient, retry_call


def locked():
    return OperationalError("UPDATE ...", {}, Exception("database is locked"))


class Flaky:
    """Callable failing with a transient error a fixed number of times."""

    def __init__(self, failures, result="ok"):
        self.failures = failures
        self.result = result
        self.calls = 0

    def __call__(self):
        self.calls += 1
        if self.calls <= self.failures:
            raise locked()
        return self.result


class FlakyFactory:
    """Session factory whose first `failures` units fail to start."""

    def __init__(self, factory, failures):
        self.factory = factory
        self.failures = failures
        self.begins = 0

    def begin(self):
        self.begins += 1
        if self.begins <= self.failures:
            raise locked()
        return self.factory.begin()


class TestClassification:

    def test_storage_errors_are_transient(self):
        assert is_transient(locked())
        assert is_transient(IntegrityError("INSERT", {}, Exception("dup")))

    def test_ledger_errors_are_permanent(self):
        assert not is_transient(NotFoundError("gone"))
        assert not is_transient(ValidationError(["amount is zero"]))

    def test_no_result_is_permanent(self):
        assert not is_transient(NoResultFound())

    def test_other_exceptions_are_permanent(self):
        assert not is_transient(RuntimeError("boom"))


class TestRetryCall:

    def test_success_needs_one_attempt(self, retry_policy):
        fn = Flaky(failures=0)
        assert retry_call(fn, retry_policy) == "ok"
        assert fn.calls == 1

    def test_transient_failures_are_retried(self, retry_policy):
        fn = Flaky(failures=3)
        assert retry_call(fn, retry_policy) == "ok"
        assert fn.calls == 4

    def test_exhausted_attempts_raise_storage_error(self, retry_policy):
        fn = Flaky(failures=10)
        with pytest.raises(StorageError) as exc_info:
            retry_call(fn, retry_policy)

        assert fn.calls == 5
        assert isinstance(exc_info.value.__cause__, OperationalError)

    def test_not_found_is_not_retried(self, retry_policy):
        calls = []

        def fn():
            calls.append(1)
            raise NotFoundError("Account x not found")

        with pytest.raises(NotFoundError):
            retry_call(fn, retry_policy)
        assert len(calls) == 1


class TestLedgerRetries:

    def test_unknown_account_is_looked_up_once(
        self, ledger, counting_factory, retry_policy
    ):
        counted = LedgerClient(counting_factory, retry_policy)

        for _ in range(3):
            counting_factory.begins = 0
            with pytest.raises(NotFoundError):
                counted.get_account(uuid.uuid4())
            assert counting_factory.begins == 1

    def test_update_of_missing_transaction_is_not_retried(
        self, ledger, counting_factory, retry_policy
    ):
        counted = LedgerClient(counting_factory, retry_policy)

        with pytest.raises(NotFoundError):
            counted.update_transaction(uuid.uuid4(), TransactionUpdate(
                amount=Decimal("1"), category=UNALLOCATED_MONEY_ID,
            ))
        assert counting_factory.begins == 1

    def test_transient_begin_failures_recover(
        self, ledger, session_factory, retry_policy
    ):
        factory = FlakyFactory(session_factory, failures=2)
        flaky = LedgerClient(factory, retry_policy)

        account = flaky.get_account(UNALLOCATED_MONEY_ID)

        assert account.name == "Unallocated Money"
        assert factory.begins == 3

    def test_transfer_is_rebooked_completely_after_failed_flush(
        self, ledger, session_factory
    ):
        budget_a = ledger.create_account("A", "budget")
        budget_b = ledger.create_account("B", "budget")
        state = {"failures": 1}

        def fail_once(session, flush_context):
            if state["failures"] and any(
                isinstance(obj, Transaction) for obj in session.new
            ):
                state["failures"] -= 1
                raise locked()

        event.listen(session_factory, "after_flush", fail_once)
        try:
            ledger.transfer_money(budget_a.id, budget_b.id, 50, "retry me")
        finally:
            event.remove(session_factory, "after_flush", fail_once)

        with session_factory() as db:
            legs = db.execute(select(Transaction)).scalars().all()

        assert state["failures"] == 0
        assert len(legs) == 2
        assert legs[0].pair_key == legs[1].pair_key
        assert sum(leg.amount for leg in legs) == 0

    def test_failing_transfer_commits_no_leg(self, ledger, session_factory):
        budget_a = ledger.create_account("A", "budget")
        budget_b = ledger.create_account("B", "budget")

        def always_fail(session, flush_context):
            if any(isinstance(obj, Transaction) for obj in session.new):
                raise locked()

        event.listen(session_factory, "after_flush", always_fail)
        try:
            with pytest.raises(StorageError):
                ledger.transfer_money(budget_a.id, budget_b.id, 50)
        finally:
            event.remove(session_factory, "after_flush", always_fail)

        assert ledger.list_transactions() == []

    def test_failed_pair_sync_rolls_back_leg_update(self, ledger, monkeypatch):
        budget_a = ledger.create_account("A", "budget")
        budget_b = ledger.create_account("B", "budget")
        debit, credit = ledger.transfer_money(budget_a.id, budget_b.id, 50)

        def broken_sync(db, txn):
            raise locked()

        monkeypatch.setattr(
            "budget_ledger.services.ledger_client.sync_paired_amount",
            broken_sync,
        )

        with pytest.raises(StorageError):
            ledger.update_transaction(debit.id, TransactionUpdate(
                time=debit.time, amount=Decimal("-80"),
            ))

        assert ledger.get_transaction(debit.id).amount == Decimal("-50")
        assert ledger.get_transaction(credit.id).amount == Decimal("50")
