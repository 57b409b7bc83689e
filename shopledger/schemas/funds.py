from datetime import datetime
from decimal import Decimal

from pydantic import Field

from shopledger.models.ledger import FundEntryType
from shopledger.schemas.common import CamelModel


class FundCreditRequest(CamelModel):
    amount: Decimal = Field(gt=0)
    given_by: str | None = Field(default=None, max_length=120)


class FundEntryOut(CamelModel):
    id: int
    shop_id: str
    owner_id: int | None
    worker_id: int | None
    entry_type: FundEntryType
    given_amount: Decimal
    remaining_amount: Decimal
    given_by: str | None
    reference_type: str | None
    reference_id: int | None
    created_at: datetime


class FundSummaryOut(CamelModel):
    shop_id: str
    total_given: Decimal
    current_remaining: Decimal
    funds: list[FundEntryOut]
