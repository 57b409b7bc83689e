"""
Purchase, sale and worker-expense flows.

Each flow is a sequence of compensating steps (reverse the old fund and stock
effects, then apply the new ones) executed inside the caller's transaction.
A failure at any step aborts the whole request, so no partial effect survives.
"""

import logging
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation

from sqlalchemy import select
from sqlalchemy.orm import Session

from shopledger.models.inventory import QUANTITY_STEP, Item, PaymentType, Purchase, Sale
from shopledger.models.ledger import FundEntry, WorkerExpense
from shopledger.models.user import User, UserRole
from shopledger.services import gate
from shopledger.services.exceptions import ItemNotFound, UnauthorizedError, ValidationError
from shopledger.services.ledger import CENT, to_money, validate_amount
from shopledger.services.workforce import ShopActor

logger = logging.getLogger(__name__)


def validate_quantity(quantity) -> Decimal:
    message = "Please provide a valid quantity"
    if quantity is None or isinstance(quantity, bool):
        raise ValidationError(message)
    try:
        value = quantity if isinstance(quantity, Decimal) else Decimal(str(quantity).strip())
    except (InvalidOperation, ValueError) as exc:
        raise ValidationError(message) from exc
    if not value.is_finite():
        raise ValidationError(message)
    value = value.quantize(QUANTITY_STEP)
    if value <= 0:
        raise ValidationError(message)
    return value


def line_total(quantity: Decimal, unit_price: Decimal) -> Decimal:
    return (quantity * unit_price).quantize(CENT)


def resolve_borrow_amount(payment_type: PaymentType, total_amount: Decimal, borrow_amount) -> Decimal:
    if payment_type != PaymentType.BORROW:
        return Decimal("0.00")
    if borrow_amount is None:
        return total_amount
    value = to_money(borrow_amount)
    if value < 0 or value > total_amount:
        raise ValidationError("Borrow amount must be between 0 and the total amount")
    return value


def to_naive_utc(value: datetime | None) -> datetime:
    if value is None:
        return datetime.utcnow()
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def check_record_access(user: User, record_shop_id: str) -> None:
    """Workers may only touch records of their own shop; admins may touch any."""
    if user.role == UserRole.ADMIN:
        return
    if not user.shop_id or user.shop_id != record_shop_id:
        raise UnauthorizedError()


def resolve_item(
    db: Session,
    user: User,
    *,
    item_id: int | None,
    item_name: str | None,
    unit: str = "kg",
) -> Item:
    if item_id is not None:
        item = db.get(Item, item_id)
        if not item:
            raise ItemNotFound()
        return item
    name = (item_name or "").strip()
    if not name:
        raise ValidationError("itemId or itemName is required")
    item = db.scalar(select(Item).where(Item.user_id == user.id, Item.name == name))
    if item:
        return item
    item = Item(user_id=user.id, name=name, unit=unit or "kg", category="general", stock=Decimal("0"))
    db.add(item)
    db.flush()
    logger.info("created item %s (%s) for user %s", item.id, name, user.id)
    return item


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    return value.strip() or None


# -- purchases ---------------------------------------------------------------


def record_purchase(
    db: Session,
    actor: ShopActor,
    *,
    quantity,
    unit_price,
    payment_type: PaymentType = PaymentType.PAID,
    borrow_amount=None,
    item_id: int | None = None,
    item_name: str | None = None,
    unit: str = "kg",
    supplier_name: str | None = None,
    supplier_contact: str | None = None,
    purchase_date: datetime | None = None,
    image: str | None = None,
) -> Purchase:
    item = resolve_item(db, actor.user, item_id=item_id, item_name=item_name, unit=unit)
    qty = validate_quantity(quantity)
    price = validate_amount(unit_price, "Please provide a valid unit price")
    total = line_total(qty, price)

    purchase = Purchase(
        item_id=item.id,
        user_id=actor.user.id,
        shop_id=actor.shop_id,
        supplier_name=_clean(supplier_name),
        supplier_contact=_clean(supplier_contact),
        quantity=qty,
        unit_price=price,
        total_amount=total,
        payment_type=payment_type,
        borrow_amount=resolve_borrow_amount(payment_type, total, borrow_amount),
        fund_debited=Decimal("0.00"),
        image=image,
        purchase_date=to_naive_utc(purchase_date),
    )
    db.add(purchase)
    db.flush()

    purchase.fund_debited = gate.reserve_purchase(
        db,
        shop_id=actor.shop_id,
        total_amount=total,
        payment_type=payment_type,
        purchase_id=purchase.id,
        worker_id=actor.worker.id,
    )
    gate.receive_purchase_stock(db, item.id, qty)
    db.flush()
    return purchase


def revise_purchase(
    db: Session,
    purchase: Purchase,
    *,
    acting_user: User,
    acting_worker_id: int | None = None,
    quantity=None,
    unit_price=None,
    payment_type: PaymentType | None = None,
    borrow_amount=None,
    item_id: int | None = None,
    item_name: str | None = None,
    unit: str = "kg",
    supplier_name: str | None = None,
    supplier_contact: str | None = None,
    purchase_date: datetime | None = None,
    image: str | None = None,
) -> Purchase:
    check_record_access(acting_user, purchase.shop_id)
    if item_id is not None or item_name:
        new_item = resolve_item(db, acting_user, item_id=item_id, item_name=item_name, unit=unit)
    else:
        new_item = db.get(Item, purchase.item_id)
        if not new_item:
            raise ItemNotFound()

    new_qty = validate_quantity(quantity) if quantity is not None else Decimal(purchase.quantity)
    new_price = (
        validate_amount(unit_price, "Please provide a valid unit price")
        if unit_price is not None
        else to_money(purchase.unit_price)
    )
    new_type = payment_type or purchase.payment_type
    new_total = line_total(new_qty, new_price)
    if borrow_amount is None and new_type == PaymentType.BORROW and purchase.payment_type == PaymentType.BORROW:
        borrow_amount = min(to_money(purchase.borrow_amount), new_total)
    new_borrow = resolve_borrow_amount(new_type, new_total, borrow_amount)

    gate.reverse_debit(
        db,
        shop_id=purchase.shop_id,
        amount=purchase.fund_debited,
        reference_type="purchase",
        reference_id=purchase.id,
        worker_id=acting_worker_id,
    )
    purchase.fund_debited = Decimal("0.00")

    gate.move_purchase_stock(
        db,
        old_item_id=purchase.item_id,
        old_quantity=Decimal(purchase.quantity),
        new_item_id=new_item.id,
        new_quantity=new_qty,
    )
    purchase.fund_debited = gate.reserve_purchase(
        db,
        shop_id=purchase.shop_id,
        total_amount=new_total,
        payment_type=new_type,
        purchase_id=purchase.id,
        worker_id=acting_worker_id,
    )

    purchase.item_id = new_item.id
    purchase.quantity = new_qty
    purchase.unit_price = new_price
    purchase.total_amount = new_total
    purchase.payment_type = new_type
    purchase.borrow_amount = new_borrow
    if supplier_name is not None:
        purchase.supplier_name = _clean(supplier_name)
    if supplier_contact is not None:
        purchase.supplier_contact = _clean(supplier_contact)
    if purchase_date is not None:
        purchase.purchase_date = to_naive_utc(purchase_date)
    if image is not None:
        purchase.image = image
    db.flush()
    return purchase


def remove_purchase(
    db: Session,
    purchase: Purchase,
    *,
    acting_user: User,
    acting_worker_id: int | None = None,
) -> None:
    check_record_access(acting_user, purchase.shop_id)
    gate.reverse_debit(
        db,
        shop_id=purchase.shop_id,
        amount=purchase.fund_debited,
        reference_type="purchase",
        reference_id=purchase.id,
        worker_id=acting_worker_id,
    )
    gate.withdraw_purchase_stock(db, purchase.item_id, Decimal(purchase.quantity))
    db.delete(purchase)
    db.flush()


# -- sales -------------------------------------------------------------------


def record_sale(
    db: Session,
    actor: ShopActor,
    *,
    item_id: int,
    quantity,
    unit_price,
    payment_type: PaymentType = PaymentType.PAID,
    borrow_amount=None,
    customer_name: str | None = None,
    customer_contact: str | None = None,
    sale_date: datetime | None = None,
    image: str | None = None,
) -> Sale:
    item = db.get(Item, item_id)
    if not item:
        raise ItemNotFound()
    qty = validate_quantity(quantity)
    price = validate_amount(unit_price, "Please provide a valid unit price")
    total = line_total(qty, price)
    borrow = resolve_borrow_amount(payment_type, total, borrow_amount)

    gate.release_sale_stock(db, item.id, qty)
    sale = Sale(
        item_id=item.id,
        user_id=actor.user.id,
        shop_id=actor.shop_id,
        customer_name=_clean(customer_name),
        customer_contact=_clean(customer_contact),
        quantity=qty,
        unit_price=price,
        total_amount=total,
        payment_type=payment_type,
        borrow_amount=borrow,
        image=image,
        sale_date=to_naive_utc(sale_date),
    )
    db.add(sale)
    db.flush()
    return sale


def revise_sale(
    db: Session,
    sale: Sale,
    *,
    acting_user: User,
    quantity=None,
    unit_price=None,
    payment_type: PaymentType | None = None,
    borrow_amount=None,
    item_id: int | None = None,
    customer_name: str | None = None,
    customer_contact: str | None = None,
    sale_date: datetime | None = None,
    image: str | None = None,
) -> Sale:
    check_record_access(acting_user, sale.shop_id)
    new_item_id = item_id if item_id is not None else sale.item_id
    if db.get(Item, new_item_id) is None:
        raise ItemNotFound()
    new_qty = validate_quantity(quantity) if quantity is not None else Decimal(sale.quantity)
    new_price = (
        validate_amount(unit_price, "Please provide a valid unit price")
        if unit_price is not None
        else to_money(sale.unit_price)
    )
    new_type = payment_type or sale.payment_type
    new_total = line_total(new_qty, new_price)
    if borrow_amount is None and new_type == PaymentType.BORROW and sale.payment_type == PaymentType.BORROW:
        borrow_amount = min(to_money(sale.borrow_amount), new_total)
    new_borrow = resolve_borrow_amount(new_type, new_total, borrow_amount)

    gate.move_sale_stock(
        db,
        old_item_id=sale.item_id,
        old_quantity=Decimal(sale.quantity),
        new_item_id=new_item_id,
        new_quantity=new_qty,
    )

    sale.item_id = new_item_id
    sale.quantity = new_qty
    sale.unit_price = new_price
    sale.total_amount = new_total
    sale.payment_type = new_type
    sale.borrow_amount = new_borrow
    if customer_name is not None:
        sale.customer_name = _clean(customer_name)
    if customer_contact is not None:
        sale.customer_contact = _clean(customer_contact)
    if sale_date is not None:
        sale.sale_date = to_naive_utc(sale_date)
    if image is not None:
        sale.image = image
    db.flush()
    return sale


def remove_sale(db: Session, sale: Sale, *, acting_user: User) -> None:
    check_record_access(acting_user, sale.shop_id)
    gate.restore_sale_stock(db, sale.item_id, Decimal(sale.quantity))
    db.delete(sale)
    db.flush()


# -- worker expenses ---------------------------------------------------------


def _validate_title(title: str | None) -> str:
    cleaned = (title or "").strip()
    if not cleaned:
        raise ValidationError("Title and amount are required")
    return cleaned


def record_expense(
    db: Session,
    actor: ShopActor,
    *,
    title: str,
    amount,
    date: datetime | None = None,
) -> tuple[WorkerExpense, FundEntry]:
    cleaned_title = _validate_title(title)
    value = validate_amount(amount, "Title and amount are required")
    expense = WorkerExpense(
        worker_id=actor.worker.id,
        shop_id=actor.shop_id,
        title=cleaned_title,
        amount=value,
        date=to_naive_utc(date),
    )
    db.add(expense)
    db.flush()
    entry = gate.reserve_expense(
        db,
        shop_id=actor.shop_id,
        amount=value,
        expense_id=expense.id,
        worker_id=actor.worker.id,
    )
    return expense, entry


def revise_expense(
    db: Session,
    expense: WorkerExpense,
    *,
    acting_user: User,
    acting_worker_id: int | None = None,
    title: str | None = None,
    amount=None,
    date: datetime | None = None,
) -> tuple[WorkerExpense, FundEntry]:
    check_record_access(acting_user, expense.shop_id)
    new_title = _validate_title(title) if title is not None else expense.title
    new_amount = validate_amount(amount) if amount is not None else to_money(expense.amount)

    gate.reverse_debit(
        db,
        shop_id=expense.shop_id,
        amount=expense.amount,
        reference_type="expense",
        reference_id=expense.id,
        worker_id=acting_worker_id,
    )
    entry = gate.reserve_expense(
        db,
        shop_id=expense.shop_id,
        amount=new_amount,
        expense_id=expense.id,
        worker_id=acting_worker_id,
    )
    expense.title = new_title
    expense.amount = new_amount
    if date is not None:
        expense.date = to_naive_utc(date)
    db.flush()
    return expense, entry


def remove_expense(
    db: Session,
    expense: WorkerExpense,
    *,
    acting_user: User,
    acting_worker_id: int | None = None,
) -> None:
    check_record_access(acting_user, expense.shop_id)
    gate.reverse_debit(
        db,
        shop_id=expense.shop_id,
        amount=expense.amount,
        reference_type="expense",
        reference_id=expense.id,
        worker_id=acting_worker_id,
    )
    db.delete(expense)
    db.flush()
