from datetime import datetime
from decimal import Decimal
from enum import Enum

from sqlalchemy import BigInteger, DateTime, Enum as SQLEnum, ForeignKey, Numeric, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from shopledger.db.database import Base


class PaymentType(str, Enum):
    PAID = "paid"
    BORROW = "borrow"


QUANTITY_STEP = Decimal("0.001")


def to_milli(quantity) -> int:
    """Quantity in whole thousandths of a unit."""
    if not isinstance(quantity, Decimal):
        quantity = Decimal(str(quantity))
    return int(quantity.quantize(QUANTITY_STEP).scaleb(3))


def from_milli(milli: int) -> Decimal:
    return Decimal(milli or 0).scaleb(-3).quantize(QUANTITY_STEP)


class Item(Base):
    __tablename__ = "items"
    __table_args__ = (UniqueConstraint("user_id", "name", name="uq_items_user_name"),)

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    user_id: Mapped[int | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"),
        index=True,
        nullable=True,
    )
    name: Mapped[str] = mapped_column(String(160), index=True, nullable=False)
    unit: Mapped[str] = mapped_column(String(24), default="kg", nullable=False)
    category: Mapped[str] = mapped_column(String(64), default="general", nullable=False)
    # Integer thousandths so guarded decrements compare exactly.
    stock_milli: Mapped[int] = mapped_column(BigInteger, default=0, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        nullable=False,
    )

    @property
    def stock(self) -> Decimal:
        return from_milli(self.stock_milli)

    @stock.setter
    def stock(self, value) -> None:
        self.stock_milli = to_milli(value)


class Purchase(Base):
    __tablename__ = "purchases"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    item_id: Mapped[int] = mapped_column(ForeignKey("items.id", ondelete="RESTRICT"), index=True, nullable=False)
    user_id: Mapped[int | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"),
        index=True,
        nullable=True,
    )
    shop_id: Mapped[str] = mapped_column(String(64), index=True, nullable=False)
    supplier_name: Mapped[str | None] = mapped_column(String(160), nullable=True)
    supplier_contact: Mapped[str | None] = mapped_column(String(64), nullable=True)
    quantity: Mapped[Decimal] = mapped_column(Numeric(14, 3), nullable=False)
    unit_price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    total_amount: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    payment_type: Mapped[PaymentType] = mapped_column(SQLEnum(PaymentType), index=True, nullable=False)
    borrow_amount: Mapped[Decimal] = mapped_column(Numeric(14, 2), default=Decimal("0"), nullable=False)
    # Cash drawn from the shop fund for this purchase; reversed exactly on edit/delete.
    fund_debited: Mapped[Decimal] = mapped_column(Numeric(14, 2), default=Decimal("0"), nullable=False)
    image: Mapped[str | None] = mapped_column(Text, nullable=True)
    purchase_date: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        nullable=False,
    )

    item = relationship("Item", lazy="joined")


class Sale(Base):
    __tablename__ = "sales"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    item_id: Mapped[int] = mapped_column(ForeignKey("items.id", ondelete="RESTRICT"), index=True, nullable=False)
    user_id: Mapped[int | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"),
        index=True,
        nullable=True,
    )
    shop_id: Mapped[str] = mapped_column(String(64), index=True, nullable=False)
    customer_name: Mapped[str | None] = mapped_column(String(160), nullable=True)
    customer_contact: Mapped[str | None] = mapped_column(String(64), nullable=True)
    quantity: Mapped[Decimal] = mapped_column(Numeric(14, 3), nullable=False)
    unit_price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    total_amount: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    payment_type: Mapped[PaymentType] = mapped_column(SQLEnum(PaymentType), index=True, nullable=False)
    borrow_amount: Mapped[Decimal] = mapped_column(Numeric(14, 2), default=Decimal("0"), nullable=False)
    image: Mapped[str | None] = mapped_column(Text, nullable=True)
    sale_date: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        nullable=False,
    )

    item = relationship("Item", lazy="joined")
