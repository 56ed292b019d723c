from __future__ import annotations

from dataclasses import replace
from typing import Any, Optional

from .dates import date_key
from .ledger import set_task_completion
from .models import QUANTUM_COUNT, QUANTUM_TIMER, QuantumProgress, Task


def clamp(value: float, lo: float, hi: float) -> float:
    return min(max(value, lo), hi)


def format_duration(total_seconds: Any) -> str:
    """
    H:MM, hours unpadded, minutes rounded half up (450s -> 0:08). A value
    within 30s of the target therefore already reads as the target.
    """
    seconds = max(0, int(total_seconds or 0))
    hours, minutes = divmod((seconds + 30) // 60, 60)
    return f"{hours}:{minutes:02d}"


def _uses_date_buckets(task: Task, key: Optional[str]) -> bool:
    return key is not None and task.is_repeating()


def read_progress(task: Task, day: Any = None) -> QuantumProgress:
    if not task.is_quantum():
        return QuantumProgress()
    q = task.quantum
    key = date_key(day) if day is not None else None
    if _uses_date_buckets(task, key):
        entry = q.progress_by_date.get(key)
        return QuantumProgress(max(0, entry.done_seconds), max(0, entry.done_count)) if entry else QuantumProgress()
    return QuantumProgress(
        done_seconds=max(0, q.done_seconds or 0),
        done_count=max(0, q.done_count or 0),
    )


def progress_percent(task: Task, day: Any = None) -> float:
    if not task.is_quantum():
        return 0.0
    target = task.quantum.target()
    if not target:
        return 0.0
    progress = read_progress(task, day)
    done = progress.done_seconds if task.quantum.mode == QUANTUM_TIMER else progress.done_count
    return clamp(done / target, 0.0, 1.0)


def progress_label(task: Task, day: Any = None) -> Optional[str]:
    if not task.is_quantum():
        return None
    q = task.quantum
    target = q.target()
    if not target:
        return None
    progress = read_progress(task, day)
    if q.mode == QUANTUM_TIMER:
        return f"{format_duration(progress.done_seconds)}/{format_duration(target)}"
    unit = q.count_unit.strip()
    label = f"{progress.done_count}/{target}"
    return f"{label} {unit}" if unit else label


def advance_progress(task: Task, day: Any, delta: int) -> Task:
    """
    Add `delta` seconds (timer) or units (count) to the right bucket, clamped
    to [0, target]. Completion for the day is marked when the bucket reaches
    the target and cleared otherwise. The input task is not mutated.
    """
    if not task.is_quantum() or not delta:
        return task
    q = task.quantum
    target = q.target()
    if not target:
        return task

    key = date_key(day) if day is not None else None
    if key is None:
        key = task.anchor_date
    if key is None:
        return task

    timer = q.mode == QUANTUM_TIMER
    current = read_progress(task, key)
    done = current.done_seconds if timer else current.done_count
    nxt = int(clamp(done + delta, 0, target))

    extra = dict(q.extra)
    extra["lastAdjustTimerSeconds" if timer else "lastAdjustCount"] = abs(delta)

    if _uses_date_buckets(task, key):
        progress_by_date = dict(q.progress_by_date)
        if timer:
            progress_by_date[key] = replace(current, done_seconds=nxt)
        else:
            progress_by_date[key] = replace(current, done_count=nxt)
        quantum = replace(q, progress_by_date=progress_by_date, extra=extra)
    elif timer:
        quantum = replace(q, done_seconds=nxt, extra=extra)
    elif q.mode == QUANTUM_COUNT:
        quantum = replace(q, done_count=nxt, extra=extra)
    else:
        return task

    updated = replace(task, quantum=quantum)
    return set_task_completion(updated, key, nxt == target)
