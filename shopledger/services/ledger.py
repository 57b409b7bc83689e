"""
Per-shop fund ledger.

Balances live in two places that are kept equal inside every transaction:
``worker_funds`` holds the append-only history of signed deltas, and
``fund_accounts`` holds one materialised balance row per shop, in integer
cents so the guarded comparison is exact on every backend.  All writes
mutate the account row with a single atomic UPDATE, so credits, debits and
reversals against the same shop serialise at the database.  Debits use a
conditional decrement and never commit a negative balance.

Nothing here commits; callers own the transaction.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from shopledger.core.config import settings
from shopledger.models.ledger import FundAccount, FundEntry, FundEntryType
from shopledger.models.user import User, UserRole
from shopledger.services.exceptions import (
    ConflictError,
    InsufficientFunds,
    OwnerNotFound,
    ShopNotFound,
    ValidationError,
)

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")


@dataclass
class FundSummary:
    shop_id: str
    total_given: Decimal
    current_remaining: Decimal
    entries: list[FundEntry]


def to_money(value) -> Decimal:
    if value is None:
        return Decimal("0.00")
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENT)


def to_cents(value: Decimal) -> int:
    return int(to_money(value).scaleb(2))


def from_cents(cents: int) -> Decimal:
    return Decimal(cents).scaleb(-2).quantize(CENT)


def validate_amount(amount, message: str = "Please provide a valid amount") -> Decimal:
    """Coerce ``amount`` to a positive, finite, cent-quantised Decimal."""
    if amount is None or isinstance(amount, bool):
        raise ValidationError(message)
    try:
        value = amount if isinstance(amount, Decimal) else Decimal(str(amount).strip())
    except (InvalidOperation, ValueError) as exc:
        raise ValidationError(message) from exc
    if not value.is_finite():
        raise ValidationError(message)
    value = value.quantize(CENT)
    if value <= 0:
        raise ValidationError(message)
    return value


def _require_shop(shop_id: str | None) -> str:
    if not shop_id:
        raise ShopNotFound()
    return shop_id


def _account_balance(db: Session, shop_id: str) -> Decimal | None:
    cents = db.scalar(select(FundAccount.balance_cents).where(FundAccount.shop_id == shop_id))
    return None if cents is None else from_cents(cents)


def get_or_create_account(db: Session, shop_id: str) -> FundAccount:
    account = db.scalar(select(FundAccount).where(FundAccount.shop_id == shop_id))
    if account:
        return account
    account = FundAccount(shop_id=shop_id, balance_cents=0)
    db.add(account)
    try:
        db.flush()
    except IntegrityError as exc:
        raise ConflictError("Fund account was created concurrently, please retry") from exc
    return account


def _increment(db: Session, shop_id: str, amount: Decimal) -> Decimal:
    get_or_create_account(db, shop_id)
    db.execute(
        update(FundAccount)
        .where(FundAccount.shop_id == shop_id)
        .values(balance_cents=FundAccount.balance_cents + to_cents(amount))
        .execution_options(synchronize_session=False)
    )
    return _account_balance(db, shop_id)


def _append(
    db: Session,
    *,
    shop_id: str,
    entry_type: FundEntryType,
    delta: Decimal,
    remaining: Decimal,
    owner_id: int | None = None,
    worker_id: int | None = None,
    given_by: str | None = None,
    reference_type: str | None = None,
    reference_id: int | None = None,
) -> FundEntry:
    entry = FundEntry(
        shop_id=shop_id,
        owner_id=owner_id,
        worker_id=worker_id,
        entry_type=entry_type,
        given_amount=delta,
        remaining_amount=remaining,
        given_by=given_by,
        reference_type=reference_type,
        reference_id=reference_id,
    )
    db.add(entry)
    db.flush()
    return entry


def credit(
    db: Session,
    *,
    shop_id: str | None,
    amount,
    given_by: str | None = None,
    worker_id: int | None = None,
    owner_id: int | None = None,
) -> FundEntry:
    """Owner tops up the shop fund. Appends a credit entry carrying the new running balance."""
    shop_id = _require_shop(shop_id)
    value = validate_amount(amount)
    new_balance = _increment(db, shop_id, value)
    entry = _append(
        db,
        shop_id=shop_id,
        entry_type=FundEntryType.CREDIT,
        delta=value,
        remaining=new_balance,
        owner_id=owner_id,
        worker_id=worker_id,
        given_by=given_by.strip() if given_by else None,
    )
    logger.info("fund credit shop=%s amount=%s balance=%s", shop_id, value, new_balance)
    return entry


def debit(
    db: Session,
    *,
    shop_id: str | None,
    amount,
    worker_id: int | None = None,
    reference_type: str | None = None,
    reference_id: int | None = None,
) -> FundEntry:
    """Consume ``amount`` from the shop fund, or raise InsufficientFunds without touching it."""
    shop_id = _require_shop(shop_id)
    value = validate_amount(amount)
    cents = to_cents(value)
    result = db.execute(
        update(FundAccount)
        .where(FundAccount.shop_id == shop_id, FundAccount.balance_cents >= cents)
        .values(balance_cents=FundAccount.balance_cents - cents)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        available = _account_balance(db, shop_id)
        if available is None:
            logger.warning("fund debit refused shop=%s amount=%s: no fund", shop_id, value)
            raise InsufficientFunds("No fund available for this shop")
        logger.warning("fund debit refused shop=%s amount=%s available=%s", shop_id, value, available)
        raise InsufficientFunds(f"Insufficient funds. Available: ₹{available}, Required: ₹{value}")

    new_balance = _account_balance(db, shop_id)
    entry = _append(
        db,
        shop_id=shop_id,
        entry_type=FundEntryType.DEBIT,
        delta=-value,
        remaining=new_balance,
        worker_id=worker_id,
        reference_type=reference_type,
        reference_id=reference_id,
    )
    logger.info(
        "fund debit shop=%s amount=%s balance=%s ref=%s:%s",
        shop_id,
        value,
        new_balance,
        reference_type,
        reference_id,
    )
    return entry


def reverse_debit(
    db: Session,
    *,
    shop_id: str | None,
    amount,
    worker_id: int | None = None,
    reference_type: str | None = None,
    reference_id: int | None = None,
) -> FundEntry | None:
    """Give back a previous debit. A zero amount is a no-op and returns None.

    ``amount`` is what an earlier debit drew. A negative value is a corrupt
    record and raises ValueError.
    """
    shop_id = _require_shop(shop_id)
    value = to_money(amount)
    if value < 0:
        raise ValueError(f"Cannot reverse a negative debit of {value}")
    if value == 0:
        return None
    new_balance = _increment(db, shop_id, value)
    entry = _append(
        db,
        shop_id=shop_id,
        entry_type=FundEntryType.REVERSAL,
        delta=value,
        remaining=new_balance,
        worker_id=worker_id,
        reference_type=reference_type,
        reference_id=reference_id,
    )
    logger.info(
        "fund reversal shop=%s amount=%s balance=%s ref=%s:%s",
        shop_id,
        value,
        new_balance,
        reference_type,
        reference_id,
    )
    return entry


def current_balance(db: Session, shop_id: str) -> Decimal:
    total = db.scalar(select(func.coalesce(func.sum(FundEntry.given_amount), 0)).where(FundEntry.shop_id == shop_id))
    return to_money(total)


def query(db: Session, shop_id: str | None) -> FundSummary:
    shop_id = _require_shop(shop_id)
    entries = list(
        db.scalars(
            select(FundEntry)
            .where(FundEntry.shop_id == shop_id)
            .order_by(FundEntry.created_at.desc(), FundEntry.id.desc())
        )
        .unique()
        .all()
    )
    total_given = sum(
        (to_money(e.given_amount) for e in entries if e.entry_type == FundEntryType.CREDIT),
        Decimal("0.00"),
    )
    return FundSummary(
        shop_id=shop_id,
        total_given=total_given,
        current_remaining=current_balance(db, shop_id),
        entries=entries,
    )


def resolve_fund_owner(db: Session) -> User:
    if settings.fund_owner_id is not None:
        owner = db.get(User, settings.fund_owner_id)
        if not owner or owner.role != UserRole.ADMIN:
            raise OwnerNotFound()
        return owner
    owner = db.scalar(select(User).where(User.role == UserRole.ADMIN).order_by(User.id.asc()))
    if not owner:
        raise OwnerNotFound()
    return owner
