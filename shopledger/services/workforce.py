import logging
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from shopledger.models.user import User, UserRole
from shopledger.models.workforce import Worker
from shopledger.services.exceptions import ConflictError, ShopNotFound, WorkerNotFound

logger = logging.getLogger(__name__)


@dataclass
class ShopActor:
    user: User
    worker: Worker
    shop_id: str


def ensure_worker_profile(db: Session, user: User) -> Worker:
    """Return the user's Worker row, creating it on first use."""
    worker = db.scalar(select(Worker).where(Worker.user_id == user.id))
    if worker:
        return worker
    worker = Worker(
        user_id=user.id,
        name=user.name,
        phone="",
        position="Worker",
        join_date=user.created_at.date(),
        is_active=True,
    )
    db.add(worker)
    try:
        db.flush()
    except IntegrityError as exc:
        raise ConflictError("Worker name already exists") from exc
    logger.info("materialised worker profile user=%s worker=%s", user.id, worker.id)
    return worker


def resolve_shop_actor(db: Session, user: User | None) -> ShopActor:
    """The acting worker and the shop whose fund they draw on."""
    if user is None:
        raise WorkerNotFound()
    if not user.shop_id:
        raise ShopNotFound()
    return ShopActor(user=user, worker=ensure_worker_profile(db, user), shop_id=user.shop_id)


def materialise_worker_profiles(db: Session) -> list[Worker]:
    users = db.scalars(
        select(User).where(User.role == UserRole.WORKER).order_by(User.created_at.desc(), User.id.desc())
    ).all()
    return [ensure_worker_profile(db, user) for user in users]


def worker_id_for(db: Session, user: User) -> int | None:
    """Id of the user's existing Worker row, without creating one."""
    return db.scalar(select(Worker.id).where(Worker.user_id == user.id))
