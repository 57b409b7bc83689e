"""
Closing out borrow claims on purchases and sales.

Settling a purchase borrow is a cash outflow and draws ``amount`` from the
shop fund. The purchase is marked paid and its borrow cleared whatever the
amount, partial payments included.

Settling a sale borrow only flips the sale to paid. No credit is recorded for
the cash received from the customer.
"""

import logging
from decimal import Decimal

from sqlalchemy.orm import Session

from shopledger.models.inventory import PaymentType, Purchase, Sale
from shopledger.services import ledger
from shopledger.services.exceptions import ValidationError

logger = logging.getLogger(__name__)


def settle_purchase_borrow(
    db: Session,
    purchase: Purchase,
    amount,
    *,
    worker_id: int | None = None,
) -> Purchase:
    if purchase.payment_type != PaymentType.BORROW:
        raise ValidationError("This purchase is not a borrow")
    value = ledger.validate_amount(amount, "Please provide a valid payment amount")
    entry = ledger.debit(
        db,
        shop_id=purchase.shop_id,
        amount=value,
        worker_id=worker_id,
        reference_type="purchase_settlement",
        reference_id=purchase.id,
    )
    outstanding = ledger.to_money(purchase.borrow_amount)
    purchase.fund_debited = ledger.to_money(purchase.fund_debited) + value
    purchase.payment_type = PaymentType.PAID
    purchase.borrow_amount = Decimal("0.00")
    db.flush()
    if value != outstanding:
        logger.warning(
            "purchase %s settled with %s against outstanding borrow %s",
            purchase.id,
            value,
            outstanding,
        )
    logger.info(
        "purchase borrow settled purchase=%s amount=%s balance=%s",
        purchase.id,
        value,
        entry.remaining_amount,
    )
    return purchase


def settle_sale_borrow(db: Session, sale: Sale, amount) -> Sale:
    if sale.payment_type != PaymentType.BORROW:
        raise ValidationError("This sale is not a borrow")
    value = ledger.validate_amount(amount, "Please provide a valid payment amount")
    sale.payment_type = PaymentType.PAID
    sale.borrow_amount = Decimal("0.00")
    db.flush()
    logger.info("sale borrow settled sale=%s amount=%s (fund unchanged)", sale.id, value)
    return sale
