from __future__ import annotations

import logging
from datetime import date
from typing import Any, List, Optional

from .dates import (
    add_days,
    days_between,
    is_weekend,
    months_between,
    normalize_date,
    weekday_key,
    weeks_between,
)
from .models import RepeatRule, Task


logger = logging.getLogger(__name__)


def _resolve_interval(rule: RepeatRule) -> int:
    return 1 if rule.interval is None else rule.interval


# -----------------------------
# Parametric schema
# -----------------------------

def _parametric_applies(rule: RepeatRule, anchor: date, target: date) -> bool:
    end = normalize_date(rule.end_date)
    if end is not None and target > end:
        return False

    interval = _resolve_interval(rule)
    if interval <= 0:
        return False

    frequency = rule.frequency or "daily"

    if frequency == "daily":
        return days_between(anchor, target) % interval == 0

    if frequency == "weekly":
        allowed = rule.weekdays or [weekday_key(anchor)]
        return weeks_between(anchor, target) % interval == 0 and weekday_key(target) in allowed

    if frequency == "monthly":
        allowed_days = rule.month_days or [anchor.day]
        return months_between(anchor, target) % interval == 0 and target.day in allowed_days

    logger.debug("unknown repeat frequency %r", frequency)
    return False


# -----------------------------
# Legacy schema
# -----------------------------

def _legacy_applies(rule: RepeatRule, anchor: date, target: date) -> bool:
    option = rule.option

    if option == "daily":
        return True
    if option == "weekly":
        return target.weekday() == anchor.weekday()
    if option == "monthly":
        return target.day == anchor.day
    if option == "weekend":
        return is_weekend(target)
    if option == "weekdays":
        return not is_weekend(target)
    if option == "custom":
        return bool(rule.weekdays) and weekday_key(target) in rule.weekdays
    if option == "interval":
        interval = _resolve_interval(rule)
        if interval <= 0:
            return False
        return days_between(anchor, target) % interval == 0

    logger.debug("unknown repeat option %r", option)
    return False


# -----------------------------
# Occurrence
# -----------------------------

def occurs_on(task: Task, target: Any) -> bool:
    """
    True when the task is scheduled on the target day.

    The anchor day always occurs. Other days need an active rule and must
    not precede the anchor. A rule carrying parametric fields is evaluated
    as parametric even if it also has a legacy option.
    """
    target_day = normalize_date(target)
    anchor = normalize_date(task.anchor_date)
    if target_day is None or anchor is None:
        return False

    if target_day == anchor:
        return True

    rule = task.repeat
    if rule is None or rule.is_inert():
        return False

    if target_day < anchor:
        return False

    if rule.is_parametric():
        return _parametric_applies(rule, anchor, target_day)
    return _legacy_applies(rule, anchor, target_day)


def occurrences(task: Task, start: Any, end: Any) -> List[date]:
    d0 = normalize_date(start)
    d1 = normalize_date(end)
    if d0 is None or d1 is None or d1 < d0:
        return []
    out: List[date] = []
    cur = d0
    while cur <= d1:
        if occurs_on(task, cur):
            out.append(cur)
        cur = add_days(cur, 1)
    return out


def next_occurrence(task: Task, after: Any, horizon_days: int = 366) -> Optional[date]:
    """First occurrence on or after `after`, searching `horizon_days` ahead."""
    if horizon_days < 0:
        raise ValueError("horizon_days must be >= 0")
    start = normalize_date(after)
    if start is None:
        return None
    for offset in range(horizon_days + 1):
        candidate = add_days(start, offset)
        if occurs_on(task, candidate):
            return candidate
    return None
