from datetime import date

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from shopledger.api.deps import ROLE_PERMISSIONS, require_permission
from shopledger.api.listing import PageParams, business_day_window, page_params
from shopledger.db.database import get_db
from shopledger.models.inventory import Sale
from shopledger.models.user import User
from shopledger.schemas.common import MessageResponse
from shopledger.schemas.inventory import (
    BorrowPaymentRequest,
    SaleCreate,
    SaleOut,
    SalePage,
    SaleResponse,
    SaleUpdate,
)
from shopledger.services import transactions
from shopledger.services.audit import log_audit
from shopledger.services.exceptions import SaleNotFound
from shopledger.services.settlement import settle_sale_borrow
from shopledger.services.workforce import resolve_shop_actor

router = APIRouter(prefix="/sales", tags=["Sales"])


def _get_sale(db: Session, sale_id: int) -> Sale:
    sale = db.get(Sale, sale_id)
    if not sale:
        raise SaleNotFound()
    return sale


def _respond(db: Session, sale: Sale, message: str) -> SaleResponse:
    db.refresh(sale)
    return SaleResponse(message=message, sale=SaleOut.model_validate(sale))


@router.post("", response_model=SaleResponse, status_code=status.HTTP_201_CREATED)
def create_sale(
    payload: SaleCreate,
    current_user: User = Depends(require_permission("transactions:record")),
    db: Session = Depends(get_db),
):
    actor = resolve_shop_actor(db, current_user)
    sale = transactions.record_sale(db, actor, **payload.model_dump())
    db.commit()
    return _respond(db, sale, "Sale created successfully")


@router.get("", response_model=SalePage)
def list_sales(
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
            filters.append(Sale.shop_id == shop_id)
    else:
        filters.append(Sale.user_id == current_user.id)
    window_start, window_end = business_day_window(start_date, end_date, default_today=not sees_all)
    if window_start is not None:
        filters.append(Sale.sale_date >= window_start)
    if window_end is not None:
        filters.append(Sale.sale_date < window_end)

    total_count = db.scalar(select(func.count(Sale.id)).where(*filters)) or 0
    sales = db.scalars(
        select(Sale)
        .where(*filters)
        .order_by(Sale.sale_date.desc(), Sale.id.desc())
        .offset(paging.offset)
        .limit(paging.limit)
    ).all()
    return SalePage(data=[SaleOut.model_validate(s) for s in sales], total_count=total_count)


@router.get("/{sale_id}", response_model=SaleOut)
def get_sale(
    sale_id: int,
    current_user: User = Depends(require_permission("transactions:record")),
    db: Session = Depends(get_db),
):
    sale = _get_sale(db, sale_id)
    transactions.check_record_access(current_user, sale.shop_id)
    return sale


@router.patch("/{sale_id}", response_model=SaleResponse)
def update_sale(
    sale_id: int,
    payload: SaleUpdate,
    current_user: User = Depends(require_permission("transactions:record")),
    db: Session = Depends(get_db),
):
    sale = _get_sale(db, sale_id)
    transactions.revise_sale(db, sale, acting_user=current_user, **payload.model_dump())
    db.commit()
    return _respond(db, sale, "Sale updated successfully")


@router.delete("/{sale_id}", response_model=MessageResponse)
def delete_sale(
    sale_id: int,
    current_user: User = Depends(require_permission("transactions:record")),
    db: Session = Depends(get_db),
):
    sale = _get_sale(db, sale_id)
    transactions.remove_sale(db, sale, acting_user=current_user)
    db.commit()
    return MessageResponse(message="Sale deleted successfully")


@router.post("/{sale_id}/pay-borrow", response_model=SaleResponse)
def pay_sale_borrow(
    sale_id: int,
    payload: BorrowPaymentRequest,
    current_user: User = Depends(require_permission("transactions:record")),
    db: Session = Depends(get_db),
):
    sale = _get_sale(db, sale_id)
    transactions.check_record_access(current_user, sale.shop_id)
    outstanding = sale.borrow_amount
    settle_sale_borrow(db, sale, payload.amount)
    log_audit(
        db=db,
        event_type="sales.borrow_settled",
        actor_user_id=current_user.id,
        shop_id=sale.shop_id,
        details={"sale_id": sale.id, "amount": payload.amount, "outstanding": outstanding},
    )
    db.commit()
    return _respond(db, sale, "Borrow payment recorded successfully")
