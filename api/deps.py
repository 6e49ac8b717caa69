from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from fastapi import Header, Query

from app.errors import AppError
from domain.services.analytics import DateRange


@dataclass
class RequestContext:
    company_id: Optional[str] = None
    user_id: Optional[str] = None
    user_name: Optional[str] = None


def get_context(
    x_company_id: Optional[str] = Header(default=None),
    x_user_id: Optional[str] = Header(default=None),
    x_user_name: Optional[str] = Header(default=None),
) -> RequestContext:
    return RequestContext(company_id=x_company_id, user_id=x_user_id, user_name=x_user_name)


@dataclass
class PageParams:
    page: int
    limit: int


def get_page(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
) -> PageParams:
    return PageParams(page=page, limit=limit)


def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def _parse_date(raw: Optional[str], label: str) -> Optional[datetime]:
    if not raw:
        return None
    try:
        return to_naive_utc(datetime.fromisoformat(raw.replace("Z", "+00:00")))
    except ValueError:
        raise AppError(f"Invalid {label} format", 400)


def get_date_range(
    start_date: Optional[str] = Query(None),
    end_date: Optional[str] = Query(None),
) -> DateRange:
    return DateRange(_parse_date(start_date, "start date"), _parse_date(end_date, "end date"))
