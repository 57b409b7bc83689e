from datetime import date

from fastapi import APIRouter, Depends, status
from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from shopledger.api.deps import require_permission
from shopledger.core.config import settings
from shopledger.core.security import hash_password
from shopledger.db.database import get_db
from shopledger.models.user import User, UserRole
from shopledger.models.workforce import Attendance, Worker
from shopledger.schemas.common import MessageResponse
from shopledger.schemas.workforce import AttendanceOut, WorkerCreate, WorkerOut, WorkerUpdate
from shopledger.services.audit import log_audit
from shopledger.services.exceptions import ConflictError, WorkerNotFound
from shopledger.services.workforce import materialise_worker_profiles

router = APIRouter(prefix="/workers", tags=["Workers"])

RECENT_ATTENDANCE_LIMIT = 30


def worker_out(db: Session, worker: Worker, attendance_limit: int | None = RECENT_ATTENDANCE_LIMIT) -> WorkerOut:
    query = select(Attendance).where(Attendance.worker_id == worker.id).order_by(Attendance.date.desc())
    if attendance_limit is not None:
        query = query.limit(attendance_limit)
    return WorkerOut(
        id=worker.id,
        user_id=worker.user_id,
        name=worker.name,
        phone=worker.phone,
        position=worker.position,
        salary=worker.salary,
        join_date=worker.join_date,
        is_active=worker.is_active,
        shop_id=worker.user.shop_id if worker.user else None,
        attendances=[AttendanceOut.model_validate(a) for a in db.scalars(query).all()],
    )


def _get_worker(db: Session, worker_id: int) -> Worker:
    worker = db.get(Worker, worker_id)
    if not worker:
        raise WorkerNotFound()
    return worker


@router.get("", response_model=list[WorkerOut])
def list_workers(
    _: User = Depends(require_permission("workers:manage")),
    db: Session = Depends(get_db),
):
    workers = materialise_worker_profiles(db)
    db.commit()
    return [worker_out(db, worker) for worker in workers]


@router.get("/{worker_id}", response_model=WorkerOut)
def get_worker(
    worker_id: int,
    _: User = Depends(require_permission("workers:manage")),
    db: Session = Depends(get_db),
):
    return worker_out(db, _get_worker(db, worker_id), attendance_limit=None)


@router.post("", response_model=WorkerOut, status_code=status.HTTP_201_CREATED)
def add_worker(
    payload: WorkerCreate,
    admin_user: User = Depends(require_permission("workers:manage")),
    db: Session = Depends(get_db),
):
    name_taken = db.scalar(select(Worker.id).where(Worker.name == payload.name)) or db.scalar(
        select(User.id).where(User.name == payload.name)
    )
    if name_taken:
        raise ConflictError("Worker name already exists")

    user = User(
        name=payload.name,
        password_hash=hash_password(payload.password),
        role=UserRole.WORKER,
        shop_id=(payload.shop_id or "").strip() or settings.default_shop_id,
    )
    db.add(user)
    try:
        db.flush()
        worker = Worker(
            user_id=user.id,
            name=payload.name,
            phone=payload.phone.strip(),
            position=payload.position.strip(),
            salary=payload.salary,
            join_date=payload.join_date or date.today(),
            is_active=True,
        )
        db.add(worker)
        db.flush()
    except IntegrityError as exc:
        db.rollback()
        raise ConflictError("Worker name already exists") from exc

    log_audit(
        db=db,
        event_type="workers.created",
        actor_user_id=admin_user.id,
        shop_id=user.shop_id,
        details={"worker_id": worker.id, "user_id": user.id},
    )
    db.commit()
    db.refresh(worker)
    return worker_out(db, worker)


@router.patch("/{worker_id}", response_model=WorkerOut)
def update_worker(
    worker_id: int,
    payload: WorkerUpdate,
    admin_user: User = Depends(require_permission("workers:manage")),
    db: Session = Depends(get_db),
):
    worker = _get_worker(db, worker_id)
    user = db.get(User, worker.user_id)
    changes = payload.model_dump(exclude_unset=True)

    if payload.name is not None:
        worker.name = payload.name
        if user:
            user.name = payload.name
    if payload.phone is not None:
        worker.phone = payload.phone.strip()
    if payload.position is not None:
        worker.position = payload.position.strip()
    if payload.salary is not None:
        worker.salary = payload.salary
    if payload.join_date is not None:
        worker.join_date = payload.join_date
    if payload.is_active is not None:
        worker.is_active = payload.is_active
    if payload.shop_id is not None and user:
        user.shop_id = payload.shop_id.strip() or None

    log_audit(
        db=db,
        event_type="workers.updated",
        actor_user_id=admin_user.id,
        shop_id=user.shop_id if user else None,
        details={"worker_id": worker.id, "fields": sorted(changes)},
    )
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise ConflictError("Worker name already exists") from exc
    db.refresh(worker)
    return worker_out(db, worker)


@router.delete("/{worker_id}", response_model=MessageResponse)
def delete_worker(
    worker_id: int,
    admin_user: User = Depends(require_permission("workers:manage")),
    db: Session = Depends(get_db),
):
    worker = _get_worker(db, worker_id)
    db.execute(delete(Attendance).where(Attendance.worker_id == worker.id))
    log_audit(
        db=db,
        event_type="workers.deleted",
        actor_user_id=admin_user.id,
        details={"worker_id": worker.id, "user_id": worker.user_id},
    )
    db.delete(worker)
    db.commit()
    return MessageResponse(message="Worker deleted successfully")
