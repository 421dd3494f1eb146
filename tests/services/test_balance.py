"""
Tests for balance computation.

The scenario test walks through a month of budgeting: income,
envelope funding, transfers, spending, corrections. It checks
every balance after each step.
"""

from datetime import datetime
from decimal import Decimal

from budget_ledger.models.account import UNALLOCATED_MONEY_ID
from budget_ledger.schemas.transaction import TransactionCreate
from budget_ledger.services.balance import round_currency


def balances(ledger, include_hidden=False):
    return {
        ab.account.id: ab.balance
        for ab in ledger.list_account_balances(include_hidden)
    }


def assert_balances(ledger, expected):
    actual = balances(ledger)
    for account_id, amount in expected.items():
        assert actual[account_id] == Decimal(amount), account_id


class TestRoundCurrency:

    def test_rounds_to_cents(self):
        assert round_currency(Decimal("10.004")) == Decimal("10.00")
        assert round_currency(Decimal("10.005")) == Decimal("10.01")

    def test_removes_float_drift(self):
        assert round_currency(0.1 + 0.2) == Decimal("0.30")

    def test_negative_half_rounds_away_from_zero(self):
        assert round_currency(Decimal("-0.005")) == Decimal("-0.01")

    def test_integers(self):
        assert round_currency(0) == Decimal("0.00")
        assert round_currency(1000) == Decimal("1000.00")


class TestAccountBalances:

    def test_accounts_without_transactions_are_zero(self, ledger):
        checking = ledger.create_account("Checking", "budget")
        groceries = ledger.create_account("Groceries", "category")

        assert_balances(ledger, {
            checking.id: "0",
            groceries.id: "0",
            UNALLOCATED_MONEY_ID: "0",
        })

    def test_hidden_accounts_need_include_hidden(self, ledger):
        checking = ledger.create_account("Checking", "budget")
        ledger.update_account_hidden(checking.id, True)

        assert checking.id not in balances(ledger)
        assert checking.id in balances(ledger, include_hidden=True)

    def test_balance_is_rounded_sum(self, ledger):
        checking = ledger.create_account("Checking", "budget")
        for amount in ("0.10", "0.20"):
            ledger.create_transaction(TransactionCreate(
                time=datetime(2024, 3, 1),
                amount=Decimal(amount),
                account=checking.id,
                category=UNALLOCATED_MONEY_ID,
            ))

        assert balances(ledger)[checking.id] == Decimal("0.30")

    def test_starting_balances_show_up(self, ledger):
        checking = ledger.create_account_with_starting_balance(
            "Checking", "budget", "1234.56"
        )
        groceries = ledger.create_account_with_starting_balance(
            "Groceries", "category", 80
        )

        assert_balances(ledger, {
            checking.id: "1234.56",
            groceries.id: "80",
            UNALLOCATED_MONEY_ID: "1234.56",
        })


class TestBudgetMonth:

    def test_full_month(self, ledger):
        tb1 = ledger.create_account("test1", "budget")
        tb2 = ledger.create_account("test2", "budget")
        tt = ledger.create_account("test", "tracking")
        tc = ledger.create_account("test", "category")
        um = UNALLOCATED_MONEY_ID

        ledger.create_transaction(TransactionCreate(
            time=datetime(2024, 3, 1, 9, 0),
            payee="ACME Inc.",
            description="Monthly Income",
            amount=Decimal("1000"),
            account=tb1.id,
            category=um,
            cleared=True,
        ))
        assert_balances(ledger, {
            tb1.id: "1000", tb2.id: "0", tt.id: "0", tc.id: "0", um: "1000",
        })

        ledger.transfer_money(um, tc.id, 500)
        assert_balances(ledger, {
            tb1.id: "1000", tb2.id: "0", tt.id: "0", tc.id: "500", um: "500",
        })

        ledger.transfer_money(tb1.id, tb2.id, 100)
        assert_balances(ledger, {
            tb1.id: "900", tb2.id: "100", tt.id: "0", tc.id: "500", um: "500",
        })

        # leaving the budget needs a category
        ledger.transfer_money_with_category(tb1.id, tt.id, 100, "", tc.id)
        assert_balances(ledger, {
            tb1.id: "800", tb2.id: "100", tt.id: "100", tc.id: "400", um: "500",
        })

        rent = ledger.create_transaction(TransactionCreate(
            time=datetime(2024, 3, 2, 9, 0),
            payee="Landlord",
            description="Rent",
            amount=Decimal("-100"),
            account=tb1.id,
            category=tc.id,
        ))
        assert rent.cleared is False
        assert_balances(ledger, {
            tb1.id: "700", tb2.id: "100", tt.id: "100", tc.id: "300", um: "500",
        })
        assert len(ledger.list_transactions_by_account(tb1.id)) == 4
        assert len(ledger.list_transactions_by_account(um)) == 2

        # wrong category
        ledger.update_transaction_category(rent.id, um)
        assert_balances(ledger, {
            tb1.id: "700", tb2.id: "100", tt.id: "100", tc.id: "400", um: "400",
        })

        ledger.update_transaction_cleared(rent.id, True)
        assert ledger.get_transaction(rent.id).cleared is True

        # the landlord was never paid
        ledger.delete_transaction(rent.id)
        assert_balances(ledger, {
            tb1.id: "800", tb2.id: "100", tt.id: "100", tc.id: "400", um: "500",
        })
        assert len(ledger.list_transactions_by_account(tb1.id)) == 3
