"""items, purchases and sales

Revision ID: 20261018_0003
Revises: 20261018_0002
Create Date: 2026-10-18 09:20:00
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "20261018_0003"
down_revision: Union[str, Sequence[str], None] = "20261018_0002"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _transaction_columns(payment_type_enum: sa.Enum) -> list[sa.Column]:
    return [
        sa.Column("quantity", sa.Numeric(14, 3), nullable=False),
        sa.Column("unit_price", sa.Numeric(12, 2), nullable=False),
        sa.Column("total_amount", sa.Numeric(14, 2), nullable=False),
        sa.Column("payment_type", payment_type_enum, nullable=False),
        sa.Column("borrow_amount", sa.Numeric(14, 2), nullable=False),
    ]


def upgrade() -> None:
    payment_type_enum = sa.Enum("PAID", "BORROW", name="paymenttype")

    bind = op.get_bind()
    payment_type_enum.create(bind, checkfirst=True)

    op.create_table(
        "items",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=True),
        sa.Column("name", sa.String(length=160), nullable=False),
        sa.Column("unit", sa.String(length=24), nullable=False),
        sa.Column("category", sa.String(length=64), nullable=False),
        sa.Column("stock_milli", sa.BigInteger(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id", "name", name="uq_items_user_name"),
    )
    op.create_index(op.f("ix_items_id"), "items", ["id"], unique=False)
    op.create_index(op.f("ix_items_user_id"), "items", ["user_id"], unique=False)
    op.create_index(op.f("ix_items_name"), "items", ["name"], unique=False)

    op.create_table(
        "purchases",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("item_id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=True),
        sa.Column("shop_id", sa.String(length=64), nullable=False),
        sa.Column("supplier_name", sa.String(length=160), nullable=True),
        sa.Column("supplier_contact", sa.String(length=64), nullable=True),
        *_transaction_columns(payment_type_enum),
        sa.Column("fund_debited", sa.Numeric(14, 2), nullable=False),
        sa.Column("image", sa.Text(), nullable=True),
        sa.Column("purchase_date", sa.DateTime(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["item_id"], ["items.id"], ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_purchases_id"), "purchases", ["id"], unique=False)
    op.create_index(op.f("ix_purchases_item_id"), "purchases", ["item_id"], unique=False)
    op.create_index(op.f("ix_purchases_user_id"), "purchases", ["user_id"], unique=False)
    op.create_index(op.f("ix_purchases_shop_id"), "purchases", ["shop_id"], unique=False)
    op.create_index(op.f("ix_purchases_payment_type"), "purchases", ["payment_type"], unique=False)
    op.create_index(op.f("ix_purchases_purchase_date"), "purchases", ["purchase_date"], unique=False)

    op.create_table(
        "sales",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("item_id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=True),
        sa.Column("shop_id", sa.String(length=64), nullable=False),
        sa.Column("customer_name", sa.String(length=160), nullable=True),
        sa.Column("customer_contact", sa.String(length=64), nullable=True),
        *_transaction_columns(payment_type_enum),
        sa.Column("image", sa.Text(), nullable=True),
        sa.Column("sale_date", sa.DateTime(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["item_id"], ["items.id"], ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_sales_id"), "sales", ["id"], unique=False)
    op.create_index(op.f("ix_sales_item_id"), "sales", ["item_id"], unique=False)
    op.create_index(op.f("ix_sales_user_id"), "sales", ["user_id"], unique=False)
    op.create_index(op.f("ix_sales_shop_id"), "sales", ["shop_id"], unique=False)
    op.create_index(op.f("ix_sales_payment_type"), "sales", ["payment_type"], unique=False)
    op.create_index(op.f("ix_sales_sale_date"), "sales", ["sale_date"], unique=False)


def downgrade() -> None:
    for column in ("sale_date", "payment_type", "shop_id", "user_id", "item_id", "id"):
        op.drop_index(op.f(f"ix_sales_{column}"), table_name="sales")
    op.drop_table("sales")
    for column in ("purchase_date", "payment_type", "shop_id", "user_id", "item_id", "id"):
        op.drop_index(op.f(f"ix_purchases_{column}"), table_name="purchases")
    op.drop_table("purchases")
    op.drop_index(op.f("ix_items_name"), table_name="items")
    op.drop_index(op.f("ix_items_user_id"), table_name="items")
    op.drop_index(op.f("ix_items_id"), table_name="items")
    op.drop_table("items")

    bind = op.get_bind()
    sa.Enum(name="paymenttype").drop(bind, checkfirst=True)
