from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Iterable, List, Optional

from .dates import date_key
from .models import Subtask, Task
from .recurrence import occurs_on


@dataclass(frozen=True)
class CompletionStats:
    total: int
    completed: int


# -----------------------------
# Tasks
# -----------------------------

def is_task_completed(task: Task, day: Any) -> bool:
    key = date_key(day)
    if key is None:
        return False
    return key in task.completed_dates


def toggle_task_completion(task: Task, day: Any) -> Task:
    """Flip completion for one day. Other days are untouched; the input is not mutated."""
    key = date_key(day)
    if key is None:
        return task
    completed_dates = dict(task.completed_dates)
    if key in completed_dates:
        del completed_dates[key]
    else:
        completed_dates[key] = True
    return replace(task, completed_dates=completed_dates)


def set_task_completion(task: Task, day: Any, completed: bool) -> Task:
    key = date_key(day)
    if key is None or (key in task.completed_dates) == completed:
        return task
    completed_dates = dict(task.completed_dates)
    if completed:
        completed_dates[key] = True
    else:
        del completed_dates[key]
    return replace(task, completed_dates=completed_dates)


# -----------------------------
# Subtasks
# -----------------------------

def is_subtask_completed(subtask: Subtask, day: Any = None) -> bool:
    """
    Resolution order:
      1. a date was given and the ledger has it -> stored value
      2. a date was given but is absent        -> False
      3. no date given                         -> legacy `completed` flag
    """
    if day is None:
        return bool(subtask.completed)
    key = date_key(day)
    if key is None:
        return False
    return subtask.completed_dates.get(key) is True


def toggle_subtask_completion(subtask: Subtask, day: Any) -> Subtask:
    key = date_key(day)
    if key is None:
        return subtask
    completed_dates = dict(subtask.completed_dates)
    if is_subtask_completed(subtask, key):
        del completed_dates[key]
    else:
        completed_dates[key] = True
    return replace(subtask, completed_dates=completed_dates)


def toggle_task_subtask(task: Task, subtask_id: str, day: Any) -> Task:
    """Toggle one subtask (by id) inside its parent, keeping subtask order."""
    if not any(s.id == subtask_id for s in task.subtasks):
        return task
    subtasks = [
        toggle_subtask_completion(s, day) if s.id == subtask_id else s
        for s in task.subtasks
    ]
    return replace(task, subtasks=subtasks)


def completion_stats(task: Task, day: Any) -> CompletionStats:
    key = date_key(day)
    total = len(task.subtasks)
    if key is None:
        return CompletionStats(total=total, completed=0)
    done = sum(1 for s in task.subtasks if is_subtask_completed(s, key))
    return CompletionStats(total=total, completed=done)


# -----------------------------
# Collections
# -----------------------------

def tasks_on(tasks: Iterable[Task], day: Any) -> List[Task]:
    return [t for t in tasks if occurs_on(t, day)]


def completed_count(tasks: Iterable[Task], day: Any) -> int:
    return sum(1 for t in tasks_on(tasks, day) if is_task_completed(t, day))


def is_day_complete(tasks: Iterable[Task], day: Any) -> bool:
    """A day is fully done only if something is scheduled and all of it is completed."""
    scheduled = tasks_on(tasks, day)
    return bool(scheduled) and all(is_task_completed(t, day) for t in scheduled)


def find_task(tasks: Iterable[Task], task_id: str) -> Optional[Task]:
    for t in tasks:
        if t.id == task_id:
            return t
    return None


def replace_task(tasks: Iterable[Task], updated: Task) -> List[Task]:
    return [updated if t.id == updated.id else t for t in tasks]
