"""
Account API endpoints.

The API layer is thin: it parses the request, calls the ledger
and turns ledger errors into HTTP errors.
"""

import uuid
from datetime import datetime
from decimal import Decimal

from fastapi import APIRouter, Depends, HTTPException

from budget_ledger.api.errors import http_error
from budget_ledger.errors import LedgerError
from budget_ledger.schemas.account import (
    AccountCreate,
    AccountResponse,
    AccountBalanceResponse,
)
from budget_ledger.schemas.transaction import TransactionResponse, to_naive_utc
from budget_ledger.services.ledger_client import LedgerClient, get_ledger

router = APIRouter(prefix="/api/accounts", tags=["Accounts"])


@router.get("")
def list_accounts(
    with_hidden: bool = False,
    with_balances: bool = False,
    account_type: str | None = None,
    ledger: LedgerClient = Depends(get_ledger),
):
    """
    List accounts.

    with_balances adds the computed balance to every account;
    account_type restricts the list to one type.
    """
    try:
        if with_balances:
            return [
                AccountBalanceResponse(
                    **AccountResponse.model_validate(ab.account).model_dump(),
                    balance=ab.balance,
                )
                for ab in ledger.list_account_balances(with_hidden)
            ]

        if account_type:
            accounts = ledger.list_accounts_by_type(account_type, with_hidden)
        else:
            accounts = ledger.list_accounts(with_hidden)
        return [AccountResponse.model_validate(a) for a in accounts]
    except LedgerError as e:
        raise http_error(e, "listing accounts")


@router.post("", response_model=AccountResponse, status_code=201)
def create_account(
    request: AccountCreate,
    ledger: LedgerClient = Depends(get_ledger),
):
    """
    Create an account, optionally with a starting balance.

    The starting balance is booked in the same unit of work as
    the account itself.
    """
    try:
        return ledger.create_account_with_starting_balance(
            request.name, request.type, request.starting_balance,
        )
    except LedgerError as e:
        raise http_error(e, "creating account")


@router.get("/{account_id}", response_model=AccountResponse)
def get_account(
    account_id: uuid.UUID,
    ledger: LedgerClient = Depends(get_ledger),
):
    try:
        return ledger.get_account(account_id)
    except LedgerError as e:
        raise http_error(e, "getting account")


@router.patch("/{account_id}", status_code=204)
def update_account(
    account_id: uuid.UUID,
    name: str | None = None,
    hidden: bool | None = None,
    ledger: LedgerClient = Depends(get_ledger),
):
    """Rename and/or hide an account."""
    try:
        if name is not None:
            ledger.update_account_name(account_id, name)
        if hidden is not None:
            ledger.update_account_hidden(account_id, hidden)
    except LedgerError as e:
        raise http_error(e, "updating account")


@router.put("/{account_id}/reconcile", status_code=204)
def reconcile_account(
    account_id: uuid.UUID,
    ledger: LedgerClient = Depends(get_ledger),
):
    """Mark all cleared transactions of the account as reconciled."""
    try:
        ledger.mark_account_reconciled(account_id)
    except LedgerError as e:
        raise http_error(e, "marking reconciled")


@router.get(
    "/{account_id}/transactions",
    response_model=list[TransactionResponse],
)
def list_account_transactions(
    account_id: uuid.UUID,
    since: datetime | None = None,
    until: datetime | None = None,
    ledger: LedgerClient = Depends(get_ledger),
):
    try:
        return ledger.list_transactions_by_account(
            account_id, to_naive_utc(since), to_naive_utc(until),
        )
    except LedgerError as e:
        raise http_error(e, "listing transactions")


@router.put("/{account_id}/transfer/{to_id}", status_code=204)
def transfer_money(
    account_id: uuid.UUID,
    to_id: uuid.UUID,
    amount: Decimal,
    description: str = "",
    category: uuid.UUID | None = None,
    ledger: LedgerClient = Depends(get_ledger),
):
    """
    Transfer money to another account.

    With a category the budget-side leg is categorized, which
    allows transfers between budget and tracking accounts.
    """
    if amount <= 0:
        raise HTTPException(status_code=400, detail="amount must be positive")

    try:
        if category is None:
            ledger.transfer_money(account_id, to_id, amount, description)
        else:
            ledger.transfer_money_with_category(
                account_id, to_id, amount, description, category,
            )
    except LedgerError as e:
        raise http_error(e, "transferring money")
