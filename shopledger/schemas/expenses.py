from datetime import datetime
from decimal import Decimal

from pydantic import Field

from shopledger.schemas.common import CamelModel


class ExpenseCreate(CamelModel):
    title: str = Field(min_length=1, max_length=160)
    amount: Decimal = Field(gt=0)
    date: datetime | None = None


class ExpenseUpdate(CamelModel):
    title: str | None = Field(default=None, min_length=1, max_length=160)
    amount: Decimal | None = Field(default=None, gt=0)
    date: datetime | None = None


class ExpenseOut(CamelModel):
    id: int
    worker_id: int | None
    shop_id: str
    title: str
    amount: Decimal
    date: datetime


class ExpenseResponse(CamelModel):
    message: str
    expense: ExpenseOut
    remaining_fund: Decimal
    total_remaining: Decimal
