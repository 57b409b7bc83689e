from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from shopledger.api.deps import require_permission
from shopledger.db.database import get_db
from shopledger.models.user import User, UserRole
from shopledger.schemas.funds import FundCreditRequest, FundEntryOut, FundSummaryOut
from shopledger.services import ledger
from shopledger.services.audit import log_audit
from shopledger.services.workforce import resolve_shop_actor

router = APIRouter(prefix="/funds", tags=["Funds"])


@router.post("", response_model=FundEntryOut, status_code=status.HTTP_201_CREATED)
def credit_fund(
    payload: FundCreditRequest,
    current_user: User = Depends(require_permission("funds:manage")),
    db: Session = Depends(get_db),
):
    actor = resolve_shop_actor(db, current_user)
    owner = ledger.resolve_fund_owner(db)
    entry = ledger.credit(
        db,
        shop_id=actor.shop_id,
        amount=payload.amount,
        given_by=payload.given_by,
        worker_id=actor.worker.id,
        owner_id=owner.id,
    )
    log_audit(
        db=db,
        event_type="funds.credit",
        actor_user_id=current_user.id,
        shop_id=actor.shop_id,
        details={"entry_id": entry.id, "amount": entry.given_amount, "given_by": entry.given_by},
    )
    db.commit()
    db.refresh(entry)
    return entry


@router.get("", response_model=FundSummaryOut)
def get_fund_summary(
    shop_id: str | None = Query(default=None, alias="shopId"),
    current_user: User = Depends(require_permission("funds:manage")),
    db: Session = Depends(get_db),
):
    if current_user.role == UserRole.ADMIN and shop_id:
        target_shop_id = shop_id
    else:
        target_shop_id = resolve_shop_actor(db, current_user).shop_id
        db.commit()
    summary = ledger.query(db, target_shop_id)
    return FundSummaryOut(
        shop_id=summary.shop_id,
        total_given=summary.total_given,
        current_remaining=summary.current_remaining,
        funds=[FundEntryOut.model_validate(entry) for entry in summary.entries],
    )
