"""
Transaction model.

A transaction moves money into or out of an account and/or a
category. Transfers are booked as two transactions sharing a
pair_key; the key is the only link between the two legs.
"""

import uuid
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP

from sqlalchemy import (
    String, Boolean, DateTime, Numeric, ForeignKey, Text, Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column

from budget_ledger.models.base import Base, utcnow

# Scale of the amount column
AMOUNT_QUANTUM = Decimal("0.0001")


def round_amount(value: Decimal) -> Decimal:
    """Round an amount to the precision it is stored with."""
    return value.quantize(AMOUNT_QUANTUM, rounding=ROUND_HALF_UP)


class Transaction(Base):
    __tablename__ = "transactions"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid.uuid4
    )
    time: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, index=True
    )
    payee: Mapped[str] = mapped_column(
        String(255), nullable=False, default=""
    )
    description: Mapped[str] = mapped_column(
        Text, nullable=False, default=""
    )
    amount: Mapped[Decimal] = mapped_column(
        Numeric(19, 4), nullable=False
    )
    account_id: Mapped[uuid.UUID | None] = mapped_column(
        "account", Uuid, ForeignKey("accounts.id"), nullable=True, index=True
    )
    category_id: Mapped[uuid.UUID | None] = mapped_column(
        "category", Uuid, ForeignKey("accounts.id"), nullable=True, index=True
    )
    cleared: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False
    )
    reconciled: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False
    )
    # Shared by exactly the two legs of one transfer
    pair_key: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, nullable=True, index=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=utcnow, onupdate=utcnow
    )
    deleted_at: Mapped[datetime | None] = mapped_column(
        DateTime, nullable=True, default=None, index=True
    )

    @property
    def is_paired(self) -> bool:
        return self.pair_key is not None

    def __repr__(self) -> str:
        return f"<Transaction {self.id} {self.amount} ({self.payee!r})>"
