"""
Date helpers for publication weeks and freshness checks.

Week labels use the YYYY-wWW format with weeks starting on Sunday:
week 1 runs from January 1st to the first Saturday of the year.
"""
from datetime import date, datetime, timedelta, timezone
from typing import Optional, Union

DateLike = Union[date, datetime]


def _as_date(value: DateLike) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value


def publication_week(value: DateLike) -> str:
    """Week label for a calendar date (or the calendar date of a datetime)."""
    day = _as_date(value)
    jan_first = date(day.year, 1, 1)
    # date.weekday() is Monday=0; shift so Sunday=0
    jan_first_offset = (jan_first.weekday() + 1) % 7
    day_index = (day - jan_first).days
    week = (day_index + jan_first_offset) // 7 + 1
    return f"{day.year}-w{week:02d}"


def publication_week_from_timestamp(timestamp: float) -> str:
    """Week label for a unix timestamp (seconds), evaluated in UTC."""
    moment = datetime.fromtimestamp(timestamp, tz=timezone.utc)
    return publication_week(moment.date())


def current_week(now: Optional[datetime] = None) -> str:
    return publication_week(now or datetime.now(timezone.utc))


def is_within_last_week(value: DateLike, now: Optional[datetime] = None, days: int = 7) -> bool:
    """True when `value` is no more than `days` days before `now`."""
    now = now or datetime.now(timezone.utc)
    if isinstance(value, datetime):
        moment = value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    else:
        moment = datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return moment >= now - timedelta(days=days)


def parse_date(text: Optional[str]) -> Optional[datetime]:
    """
    Parse an ISO date or datetime string. Returns None when the value
    cannot be read as a date.
    """
    if not text or not isinstance(text, str):
        return None
    candidate = text.strip()
    if candidate.endswith("Z"):
        candidate = candidate[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(candidate)
    except ValueError:
        try:
            parsed = datetime.strptime(candidate[:10], "%Y-%m-%d")
        except ValueError:
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def format_date(value: DateLike) -> str:
    """YYYY-MM-DD"""
    return _as_date(value).isoformat()


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()
