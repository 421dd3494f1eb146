"""
Pydantic schemas for transaction operations.

TransactionCreate is the draft handed to the ledger on create,
TransactionUpdate the full replacement state for an overwrite
and TransactionPatch the sparse document of a partial update.
"""

import uuid
from datetime import datetime, timezone
from decimal import Decimal

from pydantic import AliasChoices, BaseModel, Field, field_validator


def to_naive_utc(value: datetime | None) -> datetime | None:
    """Timestamps are stored as naive UTC."""
    if value is not None and value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


class TransactionUpdate(BaseModel):
    """
    Complete new state of a transaction.

    The account is accepted for symmetry with the read model
    but the ledger always keeps the stored account.
    """
    time: datetime | None = None
    payee: str = Field(default="", max_length=255)
    description: str = ""
    amount: Decimal = Decimal("0")
    account: uuid.UUID | None = None
    category: uuid.UUID | None = None
    cleared: bool = False
    reconciled: bool = False

    @field_validator("time")
    @classmethod
    def time_as_naive_utc(cls, v: datetime | None) -> datetime | None:
        return to_naive_utc(v)


class TransactionCreate(TransactionUpdate):
    """
    Draft for a new transaction.

    Identity is assigned by the ledger; a draft arriving with an
    id is rejected.
    """
    id: uuid.UUID | None = None


class TransactionPatch(BaseModel):
    """Sparse update: only the fields present are applied."""
    time: datetime | None = None
    payee: str | None = Field(default=None, max_length=255)
    description: str | None = None
    amount: Decimal | None = None
    category: uuid.UUID | None = None
    cleared: bool | None = None
    reconciled: bool | None = None

    @field_validator(
        "time", "payee", "description", "amount", "cleared", "reconciled",
        mode="before",
    )
    @classmethod
    def not_null(cls, v):
        # Absent means unchanged; only category can be cleared
        if v is None:
            raise ValueError("field cannot be null")
        return v

    @field_validator("time")
    @classmethod
    def time_as_naive_utc(cls, v: datetime | None) -> datetime | None:
        return to_naive_utc(v)


class TransactionResponse(BaseModel):
    id: uuid.UUID
    time: datetime
    payee: str
    description: str
    amount: Decimal
    account: uuid.UUID | None = Field(
        validation_alias=AliasChoices("account_id", "account")
    )
    category: uuid.UUID | None = Field(
        validation_alias=AliasChoices("category_id", "category")
    )
    cleared: bool
    reconciled: bool
    paired: bool = Field(validation_alias=AliasChoices("is_paired", "paired"))

    model_config = {"from_attributes": True}
