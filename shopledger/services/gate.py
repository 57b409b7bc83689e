"""
Check-then-act guard in front of the fund ledger and item stock.

Fund sufficiency and the debit are one conditional UPDATE (see ``ledger.debit``),
and stock moves are atomic increments or guarded decrements, so two requests
racing for the same cash or the same stock cannot both pass the check.
"""

import logging
from decimal import Decimal

from sqlalchemy import update
from sqlalchemy.orm import Session

from shopledger.models.inventory import Item, PaymentType, to_milli
from shopledger.models.ledger import FundEntry
from shopledger.services import ledger
from shopledger.services.exceptions import ConflictError, InsufficientStock, ItemNotFound, LedgerError

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


def reserve_purchase(
    db: Session,
    *,
    shop_id: str,
    total_amount: Decimal,
    payment_type: PaymentType,
    purchase_id: int | None = None,
    worker_id: int | None = None,
) -> Decimal:
    """Draw a paid purchase's total from the fund. Returns the amount drawn (0 for borrow)."""
    if payment_type == PaymentType.BORROW:
        logger.debug("borrow purchase %s bypasses fund check", purchase_id)
        return ZERO
    entry = ledger.debit(
        db,
        shop_id=shop_id,
        amount=total_amount,
        worker_id=worker_id,
        reference_type="purchase",
        reference_id=purchase_id,
    )
    return -Decimal(entry.given_amount)


def reserve_expense(
    db: Session,
    *,
    shop_id: str,
    amount: Decimal,
    expense_id: int | None = None,
    worker_id: int | None = None,
) -> FundEntry:
    return ledger.debit(
        db,
        shop_id=shop_id,
        amount=amount,
        worker_id=worker_id,
        reference_type="expense",
        reference_id=expense_id,
    )


def reverse_debit(
    db: Session,
    *,
    shop_id: str,
    amount: Decimal,
    reference_type: str,
    reference_id: int | None,
    worker_id: int | None = None,
) -> FundEntry | None:
    return ledger.reverse_debit(
        db,
        shop_id=shop_id,
        amount=amount,
        worker_id=worker_id,
        reference_type=reference_type,
        reference_id=reference_id,
    )


def adjust_stock(db: Session, item_id: int, delta: Decimal, *, shortage: LedgerError | None = None) -> None:
    """Apply a signed stock delta atomically; a decrement never takes stock below zero."""
    milli = to_milli(delta)
    if milli == 0:
        if db.get(Item, item_id) is None:
            raise ItemNotFound()
        return
    statement = update(Item).where(Item.id == item_id)
    if milli < 0:
        statement = statement.where(Item.stock_milli >= -milli)
    result = db.execute(
        statement.values(stock_milli=Item.stock_milli + milli).execution_options(synchronize_session=False)
    )
    if result.rowcount == 1:
        return
    if db.get(Item, item_id) is None:
        raise ItemNotFound()
    raise shortage or InsufficientStock()


def _purchase_stock_consumed() -> ConflictError:
    return ConflictError("Cannot modify purchase because purchased stock has already been consumed")


def receive_purchase_stock(db: Session, item_id: int, quantity: Decimal) -> None:
    adjust_stock(db, item_id, quantity)


def withdraw_purchase_stock(db: Session, item_id: int, quantity: Decimal) -> None:
    adjust_stock(db, item_id, -quantity, shortage=_purchase_stock_consumed())


def move_purchase_stock(
    db: Session,
    *,
    old_item_id: int,
    old_quantity: Decimal,
    new_item_id: int,
    new_quantity: Decimal,
) -> None:
    if old_item_id == new_item_id:
        adjust_stock(db, new_item_id, new_quantity - old_quantity, shortage=_purchase_stock_consumed())
        return
    withdraw_purchase_stock(db, old_item_id, old_quantity)
    receive_purchase_stock(db, new_item_id, new_quantity)


def release_sale_stock(db: Session, item_id: int, quantity: Decimal) -> None:
    adjust_stock(db, item_id, -quantity)


def restore_sale_stock(db: Session, item_id: int, quantity: Decimal) -> None:
    adjust_stock(db, item_id, quantity)


def move_sale_stock(
    db: Session,
    *,
    old_item_id: int,
    old_quantity: Decimal,
    new_item_id: int,
    new_quantity: Decimal,
) -> None:
    if old_item_id == new_item_id:
        adjust_stock(db, new_item_id, old_quantity - new_quantity)
        return
    restore_sale_stock(db, old_item_id, old_quantity)
    release_sale_stock(db, new_item_id, new_quantity)
