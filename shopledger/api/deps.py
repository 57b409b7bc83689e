from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError
from sqlalchemy import select
from sqlalchemy.orm import Session

from shopledger.core.security import decode_access_token
from shopledger.db.database import get_db
from shopledger.models.user import User, UserRole
from shopledger.services.exceptions import UnauthorizedError

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/token", auto_error=False)

ROLE_PERMISSIONS: dict[UserRole, set[str]] = {
    UserRole.ADMIN: {
        "funds:manage",
        "inventory:manage",
        "transactions:record",
        "transactions:view_all",
        "workers:manage",
        "attendance:manage",
    },
    UserRole.WORKER: {"funds:manage", "inventory:manage", "transactions:record"},
}


def get_current_user(
    request: Request,
    token: str | None = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
) -> User:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Invalid authentication credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    def _clean_candidate(value: str | None) -> str | None:
        if not value:
            return None
        cleaned = value.strip().strip("\"'").strip()
        if not cleaned:
            return None
        # Normalize accidental duplicated prefixes like: "Bearer Bearer <jwt>"
        while cleaned.lower().startswith("bearer "):
            cleaned = cleaned[7:].strip().strip("\"'").strip()
        return cleaned or None

    raw_token = _clean_candidate(token)
    if not raw_token:
        raw_token = _clean_candidate(request.headers.get("x-access-token"))

    if not raw_token:
        raise credentials_exception

    try:
        user_id = decode_access_token(raw_token)
    except JWTError as exc:
        raise credentials_exception from exc

    user = db.scalar(select(User).where(User.id == user_id))
    if not user:
        raise credentials_exception
    return user


def require_permission(permission: str):
    def checker(current_user: User = Depends(get_current_user)) -> User:
        permissions = ROLE_PERMISSIONS.get(current_user.role, set())
        if permission not in permissions:
            raise UnauthorizedError()
        return current_user

    return checker
