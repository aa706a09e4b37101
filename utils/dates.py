import re
from datetime import date, datetime, timedelta
from typing import List, Optional

from dateutil.relativedelta import relativedelta

DATE_KEY_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def date_key(d: date = None) -> str:
    """Local calendar date as YYYY-MM-DD."""
    if d is None:
        d = date.today()
    if isinstance(d, datetime):
        d = d.date()
    return d.isoformat()


def parse_date_key(key) -> Optional[date]:
    if not isinstance(key, str) or not DATE_KEY_RE.match(key):
        return None
    try:
        return date.fromisoformat(key)
    except ValueError:
        return None


def as_date(d) -> date:
    if d is None:
        return date.today()
    if isinstance(d, datetime):
        return d.date()
    if isinstance(d, date):
        return d
    parsed = parse_date_key(d)
    if parsed is None:
        raise ValueError(f"Invalid date key: {d!r}")
    return parsed


def days_back(today: date, n: int) -> List[str]:
    """
    Date keys for the last n days, most recent first.
    Example:
      days_back(2024-03-02, 3)
      → ["2024-03-02", "2024-03-01", "2024-02-29"]
    """
    return [(today - timedelta(days=i)).isoformat() for i in range(n)]


def month_matrix(year: int, month: int) -> List[List[Optional[date]]]:
    """
    Weeks of the month, Monday first.
    Cells outside the month are None.
    """
    first = date(year, month, 1)
    last = first + relativedelta(months=1) - timedelta(days=1)

    weeks = []
    week = [None] * first.weekday()
    cursor = first
    while cursor <= last:
        week.append(cursor)
        if len(week) == 7:
            weeks.append(week)
            week = []
        cursor += timedelta(days=1)

    if week:
        week.extend([None] * (7 - len(week)))
        weeks.append(week)

    return weeks
