from __future__ import annotations

import calendar
import logging
import re
from datetime import date, datetime, timedelta
from typing import Any, List, Optional

from .models import WEEKDAY_KEYS


logger = logging.getLogger(__name__)

DATE_KEY_FORMAT = "%Y-%m-%d"

_DATE_KEY_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def normalize_date(value: Any) -> Optional[date]:
    """
    Strip time-of-day and return a calendar date, or None when the value
    cannot be read as one. Accepts date, datetime, "YYYY-MM-DD" keys and
    ISO timestamps.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        try:
            if _DATE_KEY_RE.match(text):
                return datetime.strptime(text, DATE_KEY_FORMAT).date()
            return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
        except ValueError:
            logger.debug("unparseable date %r", value)
            return None
    return None


def date_key(value: Any) -> Optional[str]:
    d = normalize_date(value)
    if d is None:
        return None
    return d.strftime(DATE_KEY_FORMAT)


def weekday_key(d: date) -> str:
    # date.weekday() is 0=Mon..6=Sun; the token list starts at Sunday
    return WEEKDAY_KEYS[(d.weekday() + 1) % 7]


def is_weekend(d: date) -> bool:
    return d.weekday() >= 5


# -----------------------------
# Arithmetic
# -----------------------------

def days_between(start: date, end: date) -> int:
    return (end - start).days


def weeks_between(start: date, end: date) -> int:
    return days_between(start, end) // 7


def months_between(start: date, end: date) -> int:
    return (end.year * 12 + end.month) - (start.year * 12 + start.month)


def add_days(d: date, days: int) -> date:
    return d + timedelta(days=days)


def add_months(d: date, months: int) -> date:
    """Shift by calendar months, clamping the day to the target month's length."""
    index = d.year * 12 + (d.month - 1) + months
    year, month = divmod(index, 12)
    month += 1
    last = calendar.monthrange(year, month)[1]
    return date(year, month, min(d.day, last))


def month_start(d: date) -> date:
    return d.replace(day=1)


def month_id(d: date) -> str:
    return f"{d.year:04d}-{d.month:02d}"


def month_end(d: date) -> date:
    return d.replace(day=calendar.monthrange(d.year, d.month)[1])


def weeks_in_month(d: date) -> int:
    """Number of Sunday-start calendar rows the month spans."""
    first = month_start(d)
    lead = (first.weekday() + 1) % 7
    return (lead + calendar.monthrange(d.year, d.month)[1] + 6) // 7


def daterange(d0: date, d1: date) -> List[date]:
    out: List[date] = []
    cur = d0
    while cur <= d1:
        out.append(cur)
        cur += timedelta(days=1)
    return out
