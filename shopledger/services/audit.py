import json
from decimal import Decimal

from sqlalchemy.orm import Session

from shopledger.models.audit import AuditLog


def _default(value):
    if isinstance(value, Decimal):
        return str(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def log_audit(
    db: Session,
    event_type: str,
    actor_user_id: int | None,
    shop_id: str | None = None,
    details: dict | None = None,
) -> None:
    audit = AuditLog(
        event_type=event_type,
        actor_user_id=actor_user_id,
        shop_id=shop_id,
        details=json.dumps(details or {}, default=_default),
    )
    db.add(audit)
