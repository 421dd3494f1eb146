"""
Account model.

An account is a named bucket of money: a real-money budget
account, a tracking account, or a category envelope. Its
balance is never stored, it is derived from the transactions
that reference it.

Two accounts exist in every ledger and are created at start-up
if missing. Their identifiers are derived with uuid5 from a fixed
namespace, so they are identical across restarts and installs.
"""

import uuid
from datetime import datetime

from sqlalchemy import String, Boolean, DateTime, Enum as SAEnum, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from budget_ledger.models.base import Base, utcnow
from budget_ledger.models.enums import AccountType


ACCOUNT_ID_NAMESPACE = uuid.UUID("17de217e-94d7-4a9b-8833-ecca7f0eb6ca")

UNALLOCATED_MONEY_ID = uuid.uuid5(ACCOUNT_ID_NAMESPACE, "unallocated-money")
STARTING_BALANCE_ID = uuid.uuid5(ACCOUNT_ID_NAMESPACE, "starting-balance")

# Seed rows ensured by LedgerClient.ensure_default_accounts()
DEFAULT_ACCOUNTS = (
    {
        "id": UNALLOCATED_MONEY_ID,
        "name": "Unallocated Money",
        "type": AccountType.CATEGORY,
        "hidden": False,
    },
    {
        "id": STARTING_BALANCE_ID,
        "name": "Starting Balance",
        "type": AccountType.CATEGORY,
        "hidden": True,
    },
)


class Account(Base):
    """
    A budget, tracking or category account.

    Accounts are never hard-deleted. Transactions refer to an
    account by id; there is no collection of transactions on
    the account itself.
    """

    __tablename__ = "accounts"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid.uuid4
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    type: Mapped[AccountType] = mapped_column(
        SAEnum(
            AccountType,
            name="account_type_enum",
            create_constraint=True,
            values_callable=lambda enum_cls: [m.value for m in enum_cls],
        ),
        nullable=False,
        index=True,
    )
    hidden: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False
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
    def is_default(self) -> bool:
        """Whether this is one of the pre-provisioned seed accounts."""
        return self.id in (UNALLOCATED_MONEY_ID, STARTING_BALANCE_ID)

    def __repr__(self) -> str:
        return f"<Account {self.id} {self.name!r} ({self.type.value})>"
