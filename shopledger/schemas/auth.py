from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from shopledger.models.user import UserRole
from shopledger.schemas.common import CamelModel


def _normalize_name(value: str) -> str:
    if isinstance(value, str):
        return value.strip().lower()
    return value


class RegisterRequest(CamelModel):
    name: str = Field(min_length=2, max_length=50)
    password: str = Field(min_length=4, max_length=128)
    role: UserRole = UserRole.WORKER
    shop_id: str | None = Field(default=None, max_length=64)

    @field_validator("name", mode="before")
    @classmethod
    def normalize_name(cls, value):
        return _normalize_name(value)

    @field_validator("role", mode="before")
    @classmethod
    def normalize_role(cls, value):
        if isinstance(value, str):
            return value.strip().lower()
        return value


class LoginRequest(CamelModel):
    name: str = Field(min_length=1, max_length=50)
    password: str = Field(min_length=1, max_length=128)

    @field_validator("name", mode="before")
    @classmethod
    def normalize_name(cls, value):
        return _normalize_name(value)


class UserOut(CamelModel):
    id: int
    name: str
    role: UserRole
    shop_id: str | None
    created_at: datetime


class AuthResponse(CamelModel):
    token: str
    token_type: str = "bearer"
    user: UserOut


class TokenResponse(BaseModel):
    """OAuth2 password-flow response; keeps the snake_case keys the docs UI expects."""

    access_token: str
    token_type: str = "bearer"
