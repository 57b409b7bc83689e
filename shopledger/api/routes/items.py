from fastapi import APIRouter, Depends, status
from sqlalchemy import exists, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from shopledger.api.deps import require_permission
from shopledger.db.database import get_db
from shopledger.models.inventory import Item, Purchase, Sale
from shopledger.models.user import User, UserRole
from shopledger.schemas.common import MessageResponse
from shopledger.schemas.inventory import ItemCreate, ItemOut, ItemUpdate
from shopledger.services.exceptions import ConflictError, ItemNotFound, UnauthorizedError

router = APIRouter(prefix="/items", tags=["Items"])


def _get_owned_item(db: Session, item_id: int, current_user: User) -> Item:
    item = db.get(Item, item_id)
    if not item:
        raise ItemNotFound()
    if current_user.role != UserRole.ADMIN and item.user_id != current_user.id:
        raise UnauthorizedError()
    return item


@router.post("", response_model=ItemOut, status_code=status.HTTP_201_CREATED)
def create_item(
    payload: ItemCreate,
    current_user: User = Depends(require_permission("inventory:manage")),
    db: Session = Depends(get_db),
):
    item = Item(
        user_id=current_user.id,
        name=payload.name.strip(),
        unit=payload.unit.strip(),
        category=payload.category.strip(),
        stock=payload.stock,
    )
    db.add(item)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise ConflictError("Item already exists") from exc
    db.refresh(item)
    return item


@router.get("", response_model=list[ItemOut])
def list_items(
    current_user: User = Depends(require_permission("inventory:manage")),
    db: Session = Depends(get_db),
):
    query = select(Item).order_by(Item.name.asc(), Item.id.asc())
    if current_user.role != UserRole.ADMIN:
        query = query.where(Item.user_id == current_user.id)
    return list(db.scalars(query).all())


@router.patch("/{item_id}", response_model=ItemOut)
def update_item(
    item_id: int,
    payload: ItemUpdate,
    current_user: User = Depends(require_permission("inventory:manage")),
    db: Session = Depends(get_db),
):
    item = _get_owned_item(db, item_id, current_user)
    if payload.name is not None:
        item.name = payload.name.strip()
    if payload.unit is not None:
        item.unit = payload.unit.strip()
    if payload.category is not None:
        item.category = payload.category.strip()
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise ConflictError("Item already exists") from exc
    db.refresh(item)
    return item


@router.delete("/{item_id}", response_model=MessageResponse)
def delete_item(
    item_id: int,
    current_user: User = Depends(require_permission("inventory:manage")),
    db: Session = Depends(get_db),
):
    item = _get_owned_item(db, item_id, current_user)
    in_use = db.scalar(
        select(
            or_(
                exists().where(Purchase.item_id == item.id),
                exists().where(Sale.item_id == item.id),
            )
        )
    )
    if in_use:
        raise ConflictError("Item has purchases or sales and cannot be deleted")
    db.delete(item)
    db.commit()
    return MessageResponse(message="Item deleted successfully")
