"""
Pydantic schemas for account operations.
"""

import uuid
from decimal import Decimal

from pydantic import BaseModel, Field

from budget_ledger.models.enums import AccountType


class AccountCreate(BaseModel):
    """
    Request to create a new account.

    The type is checked by the ledger rather than by the schema,
    so an unknown type is reported as a ledger error.
    """
    name: str = Field(min_length=1, max_length=100)
    type: str
    starting_balance: Decimal = Decimal("0")


class AccountResponse(BaseModel):
    id: uuid.UUID
    name: str
    type: AccountType
    hidden: bool
    is_default: bool

    model_config = {"from_attributes": True}


class AccountBalanceResponse(AccountResponse):
    balance: Decimal
