from __future__ import annotations

import calendar
from datetime import date, datetime
from zoneinfo import ZoneInfo

from ..core.constants import DEFAULT_TIMEZONE
from ..core.enums import ErrorCode
from ..core.exceptions import ValidationError


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value, "%Y-%m-%d").date()


def now_local(tz_name: str = DEFAULT_TIMEZONE) -> datetime:
    """Current wall-clock time in the organization's zone, as a naive datetime.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now(ZoneInfo(tz_name)).replace(tzinfo=None)


def truncate_to_minute(value: datetime) -> datetime:
    return value.replace(second=0, microsecond=0)


def minutes_between(start: datetime, end: datetime) -> int:
    return int((end - start).total_seconds() // 60)


def month_range(year: int, month: int) -> tuple[date, date]:
    if not 1 <= month <= 12:
        raise ValidationError("Month must be between 1 and 12", ErrorCode.INVALID_REQUEST)
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)
