"""Date-window and pagination helpers shared by the list endpoints."""

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo

from fastapi import Query

from shopledger.core.config import settings
from shopledger.services.exceptions import ValidationError


@dataclass
class PageParams:
    page: int
    limit: int

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


def page_params(
    page: int = Query(default=1, ge=1),
    limit: int | None = Query(default=None, ge=1),
) -> PageParams:
    size = min(limit or settings.default_page_size, settings.max_page_size)
    return PageParams(page=page, limit=size)


def _local_midnight_utc(day: date) -> datetime:
    local = datetime.combine(day, time.min, tzinfo=ZoneInfo(settings.report_timezone))
    return local.astimezone(timezone.utc).replace(tzinfo=None)


def business_day_window(
    start_date: date | None,
    end_date: date | None,
    *,
    default_today: bool,
) -> tuple[datetime | None, datetime | None]:
    """Naive-UTC [start, end) bounds for whole business days in REPORT_TIMEZONE."""
    if start_date is None and end_date is None:
        if not default_today:
            return None, None
        today = datetime.now(ZoneInfo(settings.report_timezone)).date()
        start_date = end_date = today
    if start_date and end_date and end_date < start_date:
        raise ValidationError("endDate must not be before startDate")
    start = _local_midnight_utc(start_date) if start_date else None
    end = _local_midnight_utc(end_date + timedelta(days=1)) if end_date else None
    return start, end
