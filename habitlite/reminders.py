"""
Reminder scheduling data.

Only computes *when* a reminder for a task would fire; delivering it is the
caller's business.
"""

from __future__ import annotations

from datetime import datetime, time, timedelta
from typing import Dict, Optional

from .models import Task, TaskTime, TimeOfDay
from .recurrence import next_occurrence


REMINDER_OFFSETS: Dict[str, Optional[int]] = {
    "none": None,
    "at_time": 0,
    "5m": -5,
    "15m": -15,
    "30m": -30,
    "1h": -60,
}

REMINDER_HORIZON_DAYS = 366


def reminder_base_time(task_time: Optional[TaskTime]) -> Optional[TimeOfDay]:
    if task_time is None or not task_time.specified:
        return None
    if task_time.mode == "period":
        return task_time.period_start
    return task_time.point


def next_reminder_at(task: Task, now: datetime) -> Optional[datetime]:
    offset = REMINDER_OFFSETS.get(task.reminder or "none")
    if offset is None:
        return None
    base = reminder_base_time(task.time)
    if base is None or task.anchor_date is None:
        return None

    day = now.date()
    searched = 0
    while searched <= REMINDER_HORIZON_DAYS:
        found = next_occurrence(task, day, horizon_days=REMINDER_HORIZON_DAYS - searched)
        if found is None:
            return None
        at = datetime.combine(found, time.min) + timedelta(minutes=base.to_minutes() + offset)
        if at > now.replace(tzinfo=None):
            return at
        searched += (found - day).days + 1
        day = found + timedelta(days=1)
    return None
