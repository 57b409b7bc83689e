import calendar
from datetime import date

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from shopledger.api.deps import require_permission
from shopledger.db.database import get_db
from shopledger.models.user import User
from shopledger.models.workforce import Attendance, Worker
from shopledger.schemas.common import MessageResponse
from shopledger.schemas.workforce import AttendanceCreate, AttendanceOut, AttendanceUpdate
from shopledger.services.exceptions import (
    AttendanceNotFound,
    ConflictError,
    ValidationError,
    WorkerNotFound,
)
from shopledger.services.workforce import ensure_worker_profile

router = APIRouter(prefix="/attendance", tags=["Attendance"])


def _get_attendance(db: Session, attendance_id: int) -> Attendance:
    attendance = db.get(Attendance, attendance_id)
    if not attendance:
        raise AttendanceNotFound()
    return attendance


def _resolve_worker(db: Session, payload: AttendanceCreate) -> Worker:
    if payload.worker_id is not None:
        worker = db.get(Worker, payload.worker_id)
        if not worker:
            raise WorkerNotFound()
        return worker
    if payload.user_id is not None:
        user = db.get(User, payload.user_id)
        if not user:
            raise WorkerNotFound()
        return ensure_worker_profile(db, user)
    raise ValidationError("workerId, date, and status are required")


@router.get("", response_model=list[AttendanceOut])
def list_attendance(
    worker_id: int | None = Query(default=None, alias="workerId"),
    month: int | None = Query(default=None, ge=1, le=12),
    year: int | None = Query(default=None, ge=1900, le=9999),
    _: User = Depends(require_permission("attendance:manage")),
    db: Session = Depends(get_db),
):
    query = select(Attendance).order_by(Attendance.date.desc(), Attendance.id.desc())
    if worker_id is not None:
        query = query.where(Attendance.worker_id == worker_id)
    if (month is None) != (year is None):
        raise ValidationError("month and year must be given together")
    if month is not None and year is not None:
        last_day = calendar.monthrange(year, month)[1]
        query = query.where(Attendance.date >= date(year, month, 1), Attendance.date <= date(year, month, last_day))
    return list(db.scalars(query).all())


@router.post("", response_model=AttendanceOut, status_code=status.HTTP_201_CREATED)
def add_attendance(
    payload: AttendanceCreate,
    _: User = Depends(require_permission("attendance:manage")),
    db: Session = Depends(get_db),
):
    worker = _resolve_worker(db, payload)
    attendance = Attendance(
        worker_id=worker.id,
        date=payload.date,
        status=payload.status,
        check_in=payload.check_in,
        check_out=payload.check_out,
        notes=payload.notes,
    )
    db.add(attendance)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise ConflictError("Attendance already recorded for this date") from exc
    db.refresh(attendance)
    return attendance


@router.patch("/{attendance_id}", response_model=AttendanceOut)
def update_attendance(
    attendance_id: int,
    payload: AttendanceUpdate,
    _: User = Depends(require_permission("attendance:manage")),
    db: Session = Depends(get_db),
):
    attendance = _get_attendance(db, attendance_id)
    if payload.status is not None:
        attendance.status = payload.status
    if payload.check_in is not None:
        attendance.check_in = payload.check_in
    if payload.check_out is not None:
        attendance.check_out = payload.check_out
    if payload.notes is not None:
        attendance.notes = payload.notes
    db.commit()
    db.refresh(attendance)
    return attendance


@router.delete("/{attendance_id}", response_model=MessageResponse)
def delete_attendance(
    attendance_id: int,
    _: User = Depends(require_permission("attendance:manage")),
    db: Session = Depends(get_db),
):
    attendance = _get_attendance(db, attendance_id)
    db.delete(attendance)
    db.commit()
    return MessageResponse(message="Attendance deleted successfully")
