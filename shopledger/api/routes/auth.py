import logging

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from shopledger.api.deps import get_current_user
from shopledger.core.security import create_access_token, hash_password, verify_password
from shopledger.db.database import get_db
from shopledger.models.user import User, UserRole
from shopledger.schemas.auth import AuthResponse, LoginRequest, RegisterRequest, TokenResponse, UserOut
from shopledger.services.audit import log_audit
from shopledger.services.exceptions import ConflictError
from shopledger.services.workforce import ensure_worker_profile

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Auth"])


def _auth_response(user: User) -> AuthResponse:
    token = create_access_token(subject=str(user.id), role=user.role.value, shop_id=user.shop_id)
    return AuthResponse(token=token, user=UserOut.model_validate(user))


def authenticate_user(db: Session, name: str, password: str) -> User:
    user = db.scalar(select(User).where(func.lower(User.name) == name.strip().lower()))
    if not user or not verify_password(password, user.password_hash):
        logger.warning("failed login for %r", name)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def register(payload: RegisterRequest, db: Session = Depends(get_db)):
    existing = db.scalar(select(User).where(func.lower(User.name) == payload.name))
    if existing:
        raise ConflictError("User already exists")

    if payload.role == UserRole.ADMIN:
        admin_count = db.scalar(select(func.count(User.id)).where(User.role == UserRole.ADMIN)) or 0
        if admin_count > 0:
            raise ConflictError("Only one admin account is allowed")

    shop_id = payload.shop_id.strip() if payload.shop_id else None
    user = User(
        name=payload.name,
        password_hash=hash_password(payload.password),
        role=payload.role,
        shop_id=shop_id or None,
    )
    db.add(user)
    try:
        db.flush()
    except IntegrityError as exc:
        db.rollback()
        raise ConflictError("User already exists") from exc

    if user.role == UserRole.WORKER:
        ensure_worker_profile(db, user)
    log_audit(
        db=db,
        event_type="auth.register",
        actor_user_id=user.id,
        shop_id=user.shop_id,
        details={"role": user.role.value},
    )
    db.commit()
    db.refresh(user)
    logger.info("registered %s user %s", user.role.value, user.id)
    return _auth_response(user)


@router.post("/login", response_model=AuthResponse)
def login(payload: LoginRequest, db: Session = Depends(get_db)):
    user = authenticate_user(db, payload.name, payload.password)
    return _auth_response(user)


@router.post("/token", response_model=TokenResponse)
def login_for_access_token(
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: Session = Depends(get_db),
):
    user = authenticate_user(db, form_data.username, form_data.password)
    return TokenResponse(access_token=create_access_token(subject=str(user.id), role=user.role.value, shop_id=user.shop_id))


@router.get("/me", response_model=UserOut)
def get_me(current_user: User = Depends(get_current_user)):
    return current_user
