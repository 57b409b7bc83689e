from datetime import datetime
from decimal import Decimal
from enum import Enum

from sqlalchemy import BigInteger, DateTime, Enum as SQLEnum, ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from shopledger.db.database import Base


class FundEntryType(str, Enum):
    CREDIT = "credit"
    DEBIT = "debit"
    REVERSAL = "reversal"


class FundAccount(Base):
    """Materialised per-shop balance, in cents. Every ledger write is an atomic UPDATE on this row."""

    __tablename__ = "fund_accounts"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    shop_id: Mapped[str] = mapped_column(String(64), unique=True, index=True, nullable=False)
    balance_cents: Mapped[int] = mapped_column(BigInteger, default=0, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        nullable=False,
    )


class FundEntry(Base):
    """Append-only ledger row. ``given_amount`` is the signed delta, ``remaining_amount`` the balance after it."""

    __tablename__ = "worker_funds"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    shop_id: Mapped[str] = mapped_column(String(64), index=True, nullable=False)
    owner_id: Mapped[int | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"),
        index=True,
        nullable=True,
    )
    worker_id: Mapped[int | None] = mapped_column(
        ForeignKey("workers.id", ondelete="SET NULL"),
        index=True,
        nullable=True,
    )
    entry_type: Mapped[FundEntryType] = mapped_column(SQLEnum(FundEntryType), index=True, nullable=False)
    given_amount: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    remaining_amount: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    given_by: Mapped[str | None] = mapped_column(String(120), nullable=True)
    reference_type: Mapped[str | None] = mapped_column(String(32), nullable=True)
    reference_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False, index=True)

    worker = relationship("Worker", lazy="joined")


class WorkerExpense(Base):
    __tablename__ = "worker_expenses"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    worker_id: Mapped[int | None] = mapped_column(
        ForeignKey("workers.id", ondelete="SET NULL"),
        index=True,
        nullable=True,
    )
    shop_id: Mapped[str] = mapped_column(String(64), index=True, nullable=False)
    title: Mapped[str] = mapped_column(String(160), nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    date: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False, index=True)
