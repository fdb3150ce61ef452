"""Calendar-day helpers shared by the scheduler and the analytics.

All calendar arithmetic happens on local dates. Timezone-aware timestamps are
converted to local time before their date is taken; naive timestamps are
assumed to already be local.
"""
from datetime import date, datetime, timedelta


def to_local(dt: datetime) -> datetime:
    """Naive local time for ``dt``; aware values are converted first."""
    if dt.tzinfo is not None:
        dt = dt.astimezone().replace(tzinfo=None)
    return dt


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO timestamp, accepting a trailing ``Z`` for UTC."""
    return to_local(datetime.fromisoformat(value.replace("Z", "+00:00")))


def local_date(value: str) -> date:
    """Calendar date of an ISO timestamp or ``YYYY-MM-DD`` string."""
    return parse_timestamp(value).date()


def now() -> datetime:
    return datetime.now().replace(microsecond=0)


def today() -> date:
    return date.today()


def days_between(later: date, earlier: date) -> int:
    return (later - earlier).days


def add_days(day: date, days: int) -> date:
    return day + timedelta(days=days)
