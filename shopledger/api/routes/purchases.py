from datetime import date

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from shopledger.api.deps import ROLE_PERMISSIONS, require_permission
from shopledger.api.listing import PageParams, business_day_window, page_params
from shopledger.db.database import get_db
from shopledger.models.inventory import Purchase
from shopledger.models.user import User
from shopledger.schemas.common import MessageResponse
from shopledger.schemas.inventory import (
    BorrowPaymentRequest,
    PurchaseCreate,
    PurchaseOut,
    PurchasePage,
    PurchaseResponse,
    PurchaseUpdate,
)
from shopledger.services import transactions
from shopledger.services.audit import log_audit
from shopledger.services.exceptions import PurchaseNotFound
from shopledger.services.settlement import settle_purchase_borrow
from shopledger.services.workforce import resolve_shop_actor, worker_id_for

router = APIRouter(prefix="/purchases", tags=["Purchases"])


def _get_purchase(db: Session, purchase_id: int) -> Purchase:
    purchase = db.get(Purchase, purchase_id)
    if not purchase:
        raise PurchaseNotFound()
    return purchase


def _respond(db: Session, purchase: Purchase, message: str) -> PurchaseResponse:
    db.refresh(purchase)
    return PurchaseResponse(message=message, purchase=PurchaseOut.model_validate(purchase))


@router.post("", response_model=PurchaseResponse, status_code=status.HTTP_201_CREATED)
def create_purchase(
    payload: PurchaseCreate,
    current_user: User = Depends(require_permission("transactions:record")),
    db: Session = Depends(get_db),
):
    actor = resolve_shop_actor(db, current_user)
    purchase = transactions.record_purchase(db, actor, **payload.model_dump())
    db.commit()
    return _respond(db, purchase, "Purchase created successfully")


@router.get("", response_model=PurchasePage)
def list_purchases(
    start_date: date | None = Query(default=None, alias="startDate"),
    end_date: date | None = Query(default=None, alias="endDate"),
    shop_id: str | None = Query(default=None, alias="shopId"),
    paging: PageParams = Depends(page_params),
    current_user: User = Depends(require_permission("transactions:record")),
    db: Session = Depends(get_db),
):
    sees_all = "transactions:view_all" in ROLE_PERMISSIONS.get(current_user.role, set())
    filters = []
    if sees_all:
        if shop_id:
            filters.append(Purchase.shop_id == shop_id)
    else:
        filters.append(Purchase.user_id == current_user.id)
    window_start, window_end = business_day_window(start_date, end_date, default_today=not sees_all)
    if window_start is not None:
        filters.append(Purchase.purchase_date >= window_start)
    if window_end is not None:
        filters.append(Purchase.purchase_date < window_end)

    total_count = db.scalar(select(func.count(Purchase.id)).where(*filters)) or 0
    purchases = db.scalars(
        select(Purchase)
        .where(*filters)
        .order_by(Purchase.purchase_date.desc(), Purchase.id.desc())
        .offset(paging.offset)
        .limit(paging.limit)
    ).all()
    return PurchasePage(data=[PurchaseOut.model_validate(p) for p in purchases], total_count=total_count)


@router.get("/{purchase_id}", response_model=PurchaseOut)
def get_purchase(
    purchase_id: int,
    current_user: User = Depends(require_permission("transactions:record")),
    db: Session = Depends(get_db),
):
    purchase = _get_purchase(db, purchase_id)
    transactions.check_record_access(current_user, purchase.shop_id)
    return purchase


@router.patch("/{purchase_id}", response_model=PurchaseResponse)
def update_purchase(
    purchase_id: int,
    payload: PurchaseUpdate,
    current_user: User = Depends(require_permission("transactions:record")),
    db: Session = Depends(get_db),
):
    purchase = _get_purchase(db, purchase_id)
    transactions.revise_purchase(
        db,
        purchase,
        acting_user=current_user,
        acting_worker_id=worker_id_for(db, current_user),
        **payload.model_dump(),
    )
    db.commit()
    return _respond(db, purchase, "Purchase updated successfully")


@router.delete("/{purchase_id}", response_model=MessageResponse)
def delete_purchase(
    purchase_id: int,
    current_user: User = Depends(require_permission("transactions:record")),
    db: Session = Depends(get_db),
):
    purchase = _get_purchase(db, purchase_id)
    transactions.remove_purchase(
        db,
        purchase,
        acting_user=current_user,
        acting_worker_id=worker_id_for(db, current_user),
    )
    db.commit()
    return MessageResponse(message="Purchase deleted successfully")


@router.post("/{purchase_id}/pay-borrow", response_model=PurchaseResponse)
def pay_purchase_borrow(
    purchase_id: int,
    payload: BorrowPaymentRequest,
    current_user: User = Depends(require_permission("transactions:record")),
    db: Session = Depends(get_db),
):
    purchase = _get_purchase(db, purchase_id)
    transactions.check_record_access(current_user, purchase.shop_id)
    outstanding = purchase.borrow_amount
    settle_purchase_borrow(db, purchase, payload.amount, worker_id=worker_id_for(db, current_user))
    log_audit(
        db=db,
        event_type="purchases.borrow_settled",
        actor_user_id=current_user.id,
        shop_id=purchase.shop_id,
        details={"purchase_id": purchase.id, "amount": payload.amount, "outstanding": outstanding},
    )
    db.commit()
    return _respond(db, purchase, "Borrow payment recorded successfully")
