"""fund accounts, ledger entries and worker expenses

Revision ID: 20261018_0004
Revises: 20261018_0003
Create Date: 2026-10-18 09:30:00
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "20261018_0004"
down_revision: Union[str, Sequence[str], None] = "20261018_0003"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    fund_entry_type_enum = sa.Enum("CREDIT", "DEBIT", "REVERSAL", name="fundentrytype")

    bind = op.get_bind()
    fund_entry_type_enum.create(bind, checkfirst=True)

    op.create_table(
        "fund_accounts",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("shop_id", sa.String(length=64), nullable=False),
        sa.Column("balance_cents", sa.BigInteger(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_fund_accounts_id"), "fund_accounts", ["id"], unique=False)
    op.create_index(op.f("ix_fund_accounts_shop_id"), "fund_accounts", ["shop_id"], unique=True)

    op.create_table(
        "worker_funds",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("shop_id", sa.String(length=64), nullable=False),
        sa.Column("owner_id", sa.Integer(), nullable=True),
        sa.Column("worker_id", sa.Integer(), nullable=True),
        sa.Column("entry_type", fund_entry_type_enum, nullable=False),
        sa.Column("given_amount", sa.Numeric(14, 2), nullable=False),
        sa.Column("remaining_amount", sa.Numeric(14, 2), nullable=False),
        sa.Column("given_by", sa.String(length=120), nullable=True),
        sa.Column("reference_type", sa.String(length=32), nullable=True),
        sa.Column("reference_id", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["owner_id"], ["users.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["worker_id"], ["workers.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_worker_funds_id"), "worker_funds", ["id"], unique=False)
    op.create_index(op.f("ix_worker_funds_shop_id"), "worker_funds", ["shop_id"], unique=False)
    op.create_index(op.f("ix_worker_funds_owner_id"), "worker_funds", ["owner_id"], unique=False)
    op.create_index(op.f("ix_worker_funds_worker_id"), "worker_funds", ["worker_id"], unique=False)
    op.create_index(op.f("ix_worker_funds_entry_type"), "worker_funds", ["entry_type"], unique=False)
    op.create_index(op.f("ix_worker_funds_created_at"), "worker_funds", ["created_at"], unique=False)

    op.create_table(
        "worker_expenses",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("worker_id", sa.Integer(), nullable=True),
        sa.Column("shop_id", sa.String(length=64), nullable=False),
        sa.Column("title", sa.String(length=160), nullable=False),
        sa.Column("amount", sa.Numeric(14, 2), nullable=False),
        sa.Column("date", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["worker_id"], ["workers.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_worker_expenses_id"), "worker_expenses", ["id"], unique=False)
    op.create_index(op.f("ix_worker_expenses_worker_id"), "worker_expenses", ["worker_id"], unique=False)
    op.create_index(op.f("ix_worker_expenses_shop_id"), "worker_expenses", ["shop_id"], unique=False)
    op.create_index(op.f("ix_worker_expenses_date"), "worker_expenses", ["date"], unique=False)


def downgrade() -> None:
    for column in ("date", "shop_id", "worker_id", "id"):
        op.drop_index(op.f(f"ix_worker_expenses_{column}"), table_name="worker_expenses")
    op.drop_table("worker_expenses")
    for column in ("created_at", "entry_type", "worker_id", "owner_id", "shop_id", "id"):
        op.drop_index(op.f(f"ix_worker_funds_{column}"), table_name="worker_funds")
    op.drop_table("worker_funds")
    op.drop_index(op.f("ix_fund_accounts_shop_id"), table_name="fund_accounts")
    op.drop_index(op.f("ix_fund_accounts_id"), table_name="fund_accounts")
    op.drop_table("fund_accounts")

    bind = op.get_bind()
    sa.Enum(name="fundentrytype").drop(bind, checkfirst=True)
