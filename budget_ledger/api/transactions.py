"""
Transaction API endpoints.
"""

import uuid
from datetime import datetime

from fastapi import APIRouter, Depends

from budget_ledger.api.errors import http_error
from budget_ledger.errors import LedgerError
from budget_ledger.models.transaction import Transaction
from budget_ledger.schemas.transaction import (
    TransactionCreate,
    TransactionPatch,
    TransactionResponse,
    TransactionUpdate,
    to_naive_utc,
)
from budget_ledger.services.ledger_client import LedgerClient, get_ledger

router = APIRouter(prefix="/api/transactions", tags=["Transactions"])


def apply_patch(current: Transaction, patch: TransactionPatch) -> TransactionUpdate:
    """
    Merge the fields present in a patch onto the stored state.

    The result is a complete new state which the ledger validates
    like any other overwrite.
    """
    state = TransactionUpdate(
        time=current.time,
        payee=current.payee,
        description=current.description,
        amount=current.amount,
        account=current.account_id,
        category=current.category_id,
        cleared=current.cleared,
        reconciled=current.reconciled,
    )
    return state.model_copy(update=patch.model_dump(exclude_unset=True))


@router.get("", response_model=list[TransactionResponse])
def list_transactions(
    since: datetime | None = None,
    until: datetime | None = None,
    ledger: LedgerClient = Depends(get_ledger),
):
    try:
        return ledger.list_transactions(to_naive_utc(since), to_naive_utc(until))
    except LedgerError as e:
        raise http_error(e, "listing transactions")


@router.post("", response_model=TransactionResponse, status_code=201)
def create_transaction(
    request: TransactionCreate,
    ledger: LedgerClient = Depends(get_ledger),
):
    try:
        return ledger.create_transaction(request)
    except LedgerError as e:
        raise http_error(e, "creating transaction")


@router.get("/{transaction_id}", response_model=TransactionResponse)
def get_transaction(
    transaction_id: uuid.UUID,
    ledger: LedgerClient = Depends(get_ledger),
):
    try:
        return ledger.get_transaction(transaction_id)
    except LedgerError as e:
        raise http_error(e, "getting transaction")


@router.put("/{transaction_id}", status_code=204)
def overwrite_transaction(
    transaction_id: uuid.UUID,
    request: TransactionUpdate,
    ledger: LedgerClient = Depends(get_ledger),
):
    """Replace a transaction. The account and transfer pairing are kept."""
    try:
        ledger.update_transaction(transaction_id, request)
    except LedgerError as e:
        raise http_error(e, "updating transaction")


@router.patch("/{transaction_id}", status_code=204)
def patch_transaction(
    transaction_id: uuid.UUID,
    request: TransactionPatch,
    ledger: LedgerClient = Depends(get_ledger),
):
    """Update only the fields present in the request body."""
    try:
        current = ledger.get_transaction(transaction_id)
        ledger.update_transaction(transaction_id, apply_patch(current, request))
    except LedgerError as e:
        raise http_error(e, "updating transaction")


@router.delete("/{transaction_id}", status_code=204)
def delete_transaction(
    transaction_id: uuid.UUID,
    ledger: LedgerClient = Depends(get_ledger),
):
    """Delete a transaction; paired transfers are deleted as a whole."""
    try:
        ledger.delete_transaction(transaction_id)
    except LedgerError as e:
        raise http_error(e, "deleting transaction")
