from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from shopledger.api.deps import ROLE_PERMISSIONS, require_permission
from shopledger.db.database import get_db
from shopledger.models.ledger import WorkerExpense
from shopledger.models.user import User
from shopledger.schemas.common import MessageResponse
from shopledger.schemas.expenses import ExpenseCreate, ExpenseOut, ExpenseResponse, ExpenseUpdate
from shopledger.services import ledger, transactions
from shopledger.services.exceptions import ExpenseNotFound
from shopledger.services.workforce import resolve_shop_actor, worker_id_for

router = APIRouter(prefix="/worker-expense", tags=["Worker expenses"])


def _get_expense(db: Session, expense_id: int) -> WorkerExpense:
    expense = db.get(WorkerExpense, expense_id)
    if not expense:
        raise ExpenseNotFound()
    return expense


def _respond(db: Session, expense: WorkerExpense, message: str) -> ExpenseResponse:
    db.refresh(expense)
    balance = ledger.current_balance(db, expense.shop_id)
    # The append-only ledger has a single balance, so both figures agree.
    return ExpenseResponse(
        message=message,
        expense=ExpenseOut.model_validate(expense),
        remaining_fund=balance,
        total_remaining=balance,
    )


@router.post("", response_model=ExpenseResponse, status_code=status.HTTP_201_CREATED)
def create_expense(
    payload: ExpenseCreate,
    current_user: User = Depends(require_permission("transactions:record")),
    db: Session = Depends(get_db),
):
    actor = resolve_shop_actor(db, current_user)
    expense, _ = transactions.record_expense(db, actor, **payload.model_dump())
    db.commit()
    return _respond(db, expense, "Expense added successfully")


@router.get("", response_model=list[ExpenseOut])
def list_expenses(
    shop_id: str | None = Query(default=None, alias="shopId"),
    current_user: User = Depends(require_permission("transactions:record")),
    db: Session = Depends(get_db),
):
    filters = []
    if "transactions:view_all" in ROLE_PERMISSIONS.get(current_user.role, set()):
        if shop_id:
            filters.append(WorkerExpense.shop_id == shop_id)
    else:
        worker_id = worker_id_for(db, current_user)
        if worker_id is None:
            return []
        filters.append(WorkerExpense.worker_id == worker_id)
    return list(
        db.scalars(
            select(WorkerExpense)
            .where(*filters)
            .order_by(WorkerExpense.date.desc(), WorkerExpense.id.desc())
        ).all()
    )


@router.patch("/{expense_id}", response_model=ExpenseResponse)
def update_expense(
    expense_id: int,
    payload: ExpenseUpdate,
    current_user: User = Depends(require_permission("transactions:record")),
    db: Session = Depends(get_db),
):
    expense = _get_expense(db, expense_id)
    transactions.revise_expense(
        db,
        expense,
        acting_user=current_user,
        acting_worker_id=worker_id_for(db, current_user),
        **payload.model_dump(),
    )
    db.commit()
    return _respond(db, expense, "Expense updated successfully")


@router.delete("/{expense_id}", response_model=MessageResponse)
def delete_expense(
    expense_id: int,
    current_user: User = Depends(require_permission("transactions:record")),
    db: Session = Depends(get_db),
):
    expense = _get_expense(db, expense_id)
    transactions.remove_expense(
        db,
        expense,
        acting_user=current_user,
        acting_worker_id=worker_id_for(db, current_user),
    )
    db.commit()
    return MessageResponse(message="Expense deleted successfully")
