from datetime import datetime
from decimal import Decimal
from typing import Annotated

from pydantic import BeforeValidator, Field

from shopledger.models.inventory import PaymentType
from shopledger.schemas.common import CamelModel


def _normalize_payment_type(value):
    if isinstance(value, str):
        return value.strip().lower()
    return value


PaymentTypeIn = Annotated[PaymentType, BeforeValidator(_normalize_payment_type)]


class ItemCreate(CamelModel):
    name: str = Field(min_length=1, max_length=160)
    unit: str = Field(default="kg", min_length=1, max_length=24)
    category: str = Field(default="general", min_length=1, max_length=64)
    stock: Decimal = Field(default=Decimal("0"), ge=0)


class ItemUpdate(CamelModel):
    name: str | None = Field(default=None, min_length=1, max_length=160)
    unit: str | None = Field(default=None, min_length=1, max_length=24)
    category: str | None = Field(default=None, min_length=1, max_length=64)


class ItemOut(CamelModel):
    id: int
    user_id: int | None
    name: str
    unit: str
    category: str
    stock: Decimal
    created_at: datetime


class PurchaseCreate(CamelModel):
    item_id: int | None = None
    item_name: str | None = Field(default=None, max_length=160)
    unit: str = Field(default="kg", min_length=1, max_length=24)
    supplier_name: str | None = Field(default=None, max_length=160)
    supplier_contact: str | None = Field(default=None, max_length=64)
    quantity: Decimal = Field(gt=0)
    unit_price: Decimal = Field(gt=0)
    payment_type: PaymentTypeIn = PaymentType.PAID
    borrow_amount: Decimal | None = Field(default=None, ge=0)
    purchase_date: datetime | None = None
    image: str | None = None


class PurchaseUpdate(CamelModel):
    item_id: int | None = None
    item_name: str | None = Field(default=None, max_length=160)
    unit: str = Field(default="kg", min_length=1, max_length=24)
    supplier_name: str | None = Field(default=None, max_length=160)
    supplier_contact: str | None = Field(default=None, max_length=64)
    quantity: Decimal | None = Field(default=None, gt=0)
    unit_price: Decimal | None = Field(default=None, gt=0)
    payment_type: PaymentTypeIn | None = None
    borrow_amount: Decimal | None = Field(default=None, ge=0)
    purchase_date: datetime | None = None
    image: str | None = None


class PurchaseOut(CamelModel):
    id: int
    item_id: int
    item: ItemOut | None = None
    user_id: int | None
    shop_id: str
    supplier_name: str | None
    supplier_contact: str | None
    quantity: Decimal
    unit_price: Decimal
    total_amount: Decimal
    payment_type: PaymentType
    borrow_amount: Decimal
    fund_debited: Decimal
    image: str | None
    purchase_date: datetime
    created_at: datetime


class PurchaseResponse(CamelModel):
    message: str
    purchase: PurchaseOut


class PurchasePage(CamelModel):
    data: list[PurchaseOut]
    total_count: int


class SaleCreate(CamelModel):
    item_id: int
    customer_name: str | None = Field(default=None, max_length=160)
    customer_contact: str | None = Field(default=None, max_length=64)
    quantity: Decimal = Field(gt=0)
    unit_price: Decimal = Field(gt=0)
    payment_type: PaymentTypeIn = PaymentType.PAID
    borrow_amount: Decimal | None = Field(default=None, ge=0)
    sale_date: datetime | None = None
    image: str | None = None


class SaleUpdate(CamelModel):
    item_id: int | None = None
    customer_name: str | None = Field(default=None, max_length=160)
    customer_contact: str | None = Field(default=None, max_length=64)
    quantity: Decimal | None = Field(default=None, gt=0)
    unit_price: Decimal | None = Field(default=None, gt=0)
    payment_type: PaymentTypeIn | None = None
    borrow_amount: Decimal | None = Field(default=None, ge=0)
    sale_date: datetime | None = None
    image: str | None = None


class SaleOut(CamelModel):
    id: int
    item_id: int
    item: ItemOut | None = None
    user_id: int | None
    shop_id: str
    customer_name: str | None
    customer_contact: str | None
    quantity: Decimal
    unit_price: Decimal
    total_amount: Decimal
    payment_type: PaymentType
    borrow_amount: Decimal
    image: str | None
    sale_date: datetime
    created_at: datetime


class SaleResponse(CamelModel):
    message: str
    sale: SaleOut


class SalePage(CamelModel):
    data: list[SaleOut]
    total_count: int


class BorrowPaymentRequest(CamelModel):
    amount: Decimal = Field(gt=0)
