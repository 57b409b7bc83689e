import datetime as dt
from decimal import Decimal

from pydantic import Field, field_validator

from shopledger.models.workforce import AttendanceStatus
from shopledger.schemas.common import CamelModel


class AttendanceCreate(CamelModel):
    worker_id: int | None = None
    user_id: int | None = None
    date: dt.date
    status: AttendanceStatus
    check_in: dt.datetime | None = None
    check_out: dt.datetime | None = None
    notes: str | None = Field(default=None, max_length=255)

    @field_validator("status", mode="before")
    @classmethod
    def normalize_status(cls, value):
        if isinstance(value, str):
            return value.strip().lower().replace("-", "_").replace(" ", "_")
        return value


class AttendanceUpdate(CamelModel):
    status: AttendanceStatus | None = None
    check_in: dt.datetime | None = None
    check_out: dt.datetime | None = None
    notes: str | None = Field(default=None, max_length=255)

    @field_validator("status", mode="before")
    @classmethod
    def normalize_status(cls, value):
        if isinstance(value, str):
            return value.strip().lower().replace("-", "_").replace(" ", "_")
        return value


class AttendanceOut(CamelModel):
    id: int
    worker_id: int
    date: dt.date
    status: AttendanceStatus
    check_in: dt.datetime | None
    check_out: dt.datetime | None
    notes: str | None


class WorkerCreate(CamelModel):
    name: str = Field(min_length=2, max_length=50)
    password: str = Field(min_length=4, max_length=128)
    phone: str = Field(default="", max_length=32)
    position: str = Field(default="Worker", min_length=1, max_length=64)
    salary: Decimal = Field(default=Decimal("0"), ge=0)
    join_date: dt.date | None = None
    shop_id: str | None = Field(default=None, max_length=64)

    @field_validator("name", mode="before")
    @classmethod
    def normalize_name(cls, value):
        if isinstance(value, str):
            return value.strip().lower()
        return value


class WorkerUpdate(CamelModel):
    name: str | None = Field(default=None, min_length=2, max_length=50)
    phone: str | None = Field(default=None, max_length=32)
    position: str | None = Field(default=None, min_length=1, max_length=64)
    salary: Decimal | None = Field(default=None, ge=0)
    join_date: dt.date | None = None
    is_active: bool | None = None
    shop_id: str | None = Field(default=None, max_length=64)

    @field_validator("name", mode="before")
    @classmethod
    def normalize_name(cls, value):
        if isinstance(value, str):
            return value.strip().lower()
        return value


class WorkerOut(CamelModel):
    id: int
    user_id: int
    name: str
    phone: str
    position: str
    salary: Decimal
    join_date: dt.date
    is_active: bool
    shop_id: str | None = None
    attendances: list[AttendanceOut] = []
