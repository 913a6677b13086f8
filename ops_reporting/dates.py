"""UTC calendar helpers for week-based reporting."""

import re
from datetime import date, datetime, timedelta, timezone

_ISO_DATE_RX = re.compile(r"^\d{4}-\d{2}-\d{2}$")


class QueryValidationError(ValueError):
    def __init__(self, message: str, field: str | None = None):
        super().__init__(message)
        self.field = field


def utc_today() -> date:
    return datetime.now(timezone.utc).date()


def week_start(day: date) -> date:
    """Monday on or before ``day``."""
    return day - timedelta(days=day.weekday())


def add_weeks(day: date, weeks: int) -> date:
    return day + timedelta(weeks=weeks)


def to_iso(day: date) -> str:
    return day.isoformat()


def parse_iso_date(value) -> date | None:
    """Parse a strict ``YYYY-MM-DD`` string; ``None`` when invalid."""
    if not isinstance(value, str):
        return None
    value = value.strip()
    if not _ISO_DATE_RX.match(value):
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        return None


def coerce_date(value) -> date | None:
    """Turn a stored run/ship date into a calendar day.

    Timezone-aware datetimes are converted to UTC before taking the date.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.date()
    if isinstance(value, date):
        return value
    return parse_iso_date(value)


def require_iso_date(value, field: str) -> date:
    parsed = parse_iso_date(value)
    if parsed is None:
        raise QueryValidationError(f"{field} must be YYYY-MM-DD", field=field)
    return parsed


def default_week_range(weeks_back: int, today: date | None = None) -> tuple[date, date]:
    """Range of ``weeks_back`` weeks ending at the current week start."""
    end = week_start(today or utc_today())
    start = add_weeks(end, -(weeks_back - 1))
    return start, end
