"""initial schema: accounts, transactions and default accounts

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-19 12:00:00

"""
from alembic import op
import sqlalchemy as sa

from budget_ledger.models.account import DEFAULT_ACCOUNTS

# revision identifiers, used by Alembic.
revision = "0001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None

account_type_enum = sa.Enum(
    "budget", "category", "tracking",
    name="account_type_enum",
    create_constraint=True,
)


def upgrade() -> None:
    accounts = op.create_table(
        "accounts",
        sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("type", account_type_enum, nullable=False),
        sa.Column("hidden", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("deleted_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_accounts_type", "accounts", ["type"])
    op.create_index("ix_accounts_deleted_at", "accounts", ["deleted_at"])

    op.create_table(
        "transactions",
        sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
        sa.Column("time", sa.DateTime(), nullable=False),
        sa.Column("payee", sa.String(length=255), nullable=False, server_default=""),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("amount", sa.Numeric(19, 4), nullable=False),
        sa.Column("account", sa.Uuid(), sa.ForeignKey("accounts.id"), nullable=True),
        sa.Column("category", sa.Uuid(), sa.ForeignKey("accounts.id"), nullable=True),
        sa.Column("cleared", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("reconciled", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("pair_key", sa.Uuid(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("deleted_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_transactions_time", "transactions", ["time"])
    op.create_index("ix_transactions_account", "transactions", ["account"])
    op.create_index("ix_transactions_category", "transactions", ["category"])
    op.create_index("ix_transactions_pair_key", "transactions", ["pair_key"])
    op.create_index("ix_transactions_deleted_at", "transactions", ["deleted_at"])

    # default accounts
    op.bulk_insert(accounts, [
        {
            "id": values["id"],
            "name": values["name"],
            "type": values["type"].value,
            "hidden": values["hidden"],
        }
        for values in DEFAULT_ACCOUNTS
    ])


def downgrade() -> None:
    op.drop_table("transactions")
    op.drop_table("accounts")
    account_type_enum.drop(op.get_bind(), checkfirst=True)
