from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Iterable, List, Sequence

import pandas as pd

from .dates import daterange, date_key, month_end, normalize_date
from .ledger import completion_stats, is_day_complete, is_task_completed, tasks_on
from .models import HistoryEntry, Task
from .quantum import progress_label


DAY_REPORT_COLUMNS = ["id", "title", "completed", "subtasks_total", "subtasks_completed", "progress"]
MONTH_SUMMARY_COLUMNS = ["day", "scheduled", "completed", "all_completed"]


def day_report(tasks: Iterable[Task], day: date) -> pd.DataFrame:
    key = date_key(day)
    rows = []
    for t in tasks_on(tasks, day):
        stats = completion_stats(t, key)
        rows.append(
            {
                "id": t.id,
                "title": t.title,
                "completed": is_task_completed(t, key),
                "subtasks_total": stats.total,
                "subtasks_completed": stats.completed,
                "progress": progress_label(t, key) or "",
            }
        )
    if not rows:
        return pd.DataFrame(columns=DAY_REPORT_COLUMNS)
    return pd.DataFrame(rows, columns=DAY_REPORT_COLUMNS)


def month_summary(tasks: Sequence[Task], year: int, month: int) -> pd.DataFrame:
    first = date(year, month, 1)
    rows = []
    for d in daterange(first, month_end(first)):
        scheduled = tasks_on(tasks, d)
        rows.append(
            {
                "day": date_key(d),
                "scheduled": len(scheduled),
                "completed": sum(1 for t in scheduled if is_task_completed(t, d)),
                "all_completed": is_day_complete(scheduled, d),
            }
        )
    return pd.DataFrame(rows, columns=MONTH_SUMMARY_COLUMNS)


# -----------------------------
# Streaks
# -----------------------------

@dataclass(frozen=True)
class ProfileStats:
    total_days: int
    committed_habits: int
    current_streak: int
    best_streak: int


def profile_stats(tasks: Sequence[Task], history: Iterable[HistoryEntry], today: date) -> ProfileStats:
    """
    Tracking window starts at the earliest task anchor or history entry.
    Days with nothing scheduled neither extend nor break a streak.
    """
    candidates: List[date] = []
    for entry in history:
        d = normalize_date(entry.timestamp)
        if d is not None:
            candidates.append(d)
    for t in tasks:
        d = normalize_date(t.anchor_date)
        if d is not None:
            candidates.append(d)

    start = min(candidates) if candidates else today
    if start > today:
        start = today
    total_days = (today - start).days + 1

    if not tasks:
        return ProfileStats(total_days=total_days, committed_habits=0, current_streak=0, best_streak=0)

    current = 0
    best = 0
    for d in daterange(start, today):
        scheduled = tasks_on(tasks, d)
        if not scheduled:
            continue
        if is_day_complete(scheduled, d):
            current += 1
            best = max(best, current)
        else:
            current = 0

    return ProfileStats(
        total_days=total_days,
        committed_habits=len(tasks),
        current_streak=current,
        best_streak=best,
    )
