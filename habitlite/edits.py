from __future__ import annotations

import uuid
from dataclasses import replace
from typing import Any, Iterable, List, Optional

from .dates import date_key
from .models import Quantum, QUANTUM_COUNT, QUANTUM_TIMER, RepeatRule, Subtask, Task, TASK_TYPE_CHECKBOX


DEFAULT_TITLE = "Untitled task"


def new_id(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex[:12]}"


def unique_title(tasks: Iterable[Task], requested: Optional[str], exclude_id: Optional[str] = None) -> str:
    base = (requested or "").strip() or DEFAULT_TITLE
    taken = {(t.title or "").strip().lower() for t in tasks if t.id != exclude_id}
    if base.lower() not in taken:
        return base
    suffix = 1
    while f"{base} {suffix}".lower() in taken:
        suffix += 1
    return f"{base} {suffix}"


def merge_subtasks(titles: Iterable[str], existing: Iterable[Subtask] = ()) -> List[Subtask]:
    """
    Rebuild a subtask list from edited titles. Order follows `titles`; a
    title matching an existing subtask reuses it (id and ledger), each
    existing subtask at most once.
    """
    remaining = list(existing)
    out: List[Subtask] = []
    for raw in titles:
        title = (raw or "").strip()
        if not title:
            continue
        match = next((i for i, s in enumerate(remaining) if s.title == title), None)
        if match is not None:
            out.append(replace(remaining.pop(match), title=title))
        else:
            out.append(Subtask(id=new_id("st"), title=title))
    return out


def merge_quantum(previous: Optional[Quantum], incoming: Optional[Quantum]) -> Optional[Quantum]:
    """Keep global progress when the mode is unchanged, reset it otherwise."""
    if incoming is None:
        return previous
    if previous is None:
        return incoming
    same_mode = previous.mode == incoming.mode
    return replace(
        incoming,
        done_seconds=(previous.done_seconds or 0) if same_mode else 0,
        done_count=(previous.done_count or 0) if same_mode else 0,
        progress_by_date=dict(previous.progress_by_date) if same_mode else {},
        extra={**previous.extra, **incoming.extra},
    )


def edit_quantum(previous: Optional[Quantum], mode: str, target: int, unit: str = "") -> Optional[Quantum]:
    """
    Quantum change from an edit form, or None when the form still shows
    `previous` unchanged. `target` is seconds for timers and a count otherwise.
    """
    unit = (unit or "").strip()
    if mode == QUANTUM_TIMER:
        incoming = Quantum(mode=QUANTUM_TIMER, total_seconds=max(0, int(target)))
    else:
        incoming = Quantum(mode=QUANTUM_COUNT, count_value=max(0, int(target)), count_unit=unit)
    if previous is not None and previous.mode == incoming.mode and previous.target() == incoming.target():
        if mode == QUANTUM_TIMER or previous.count_unit == unit:
            return None
    return incoming


def new_task(
    tasks: Iterable[Task],
    title: Optional[str],
    anchor: Any,
    *,
    repeat: Optional[RepeatRule] = None,
    subtasks: Iterable[str] = (),
    task_type: str = TASK_TYPE_CHECKBOX,
    quantum: Optional[Quantum] = None,
    **fields: Any,
) -> Task:
    return Task(
        id=new_id("t"),
        title=unique_title(tasks, title),
        anchor_date=date_key(anchor),
        repeat=repeat,
        type=task_type,
        quantum=quantum,
        subtasks=merge_subtasks(subtasks),
        **fields,
    )


def update_task(
    tasks: Iterable[Task],
    task: Task,
    *,
    title: Optional[str] = None,
    anchor: Any = None,
    subtasks: Optional[Iterable[str]] = None,
    quantum: Optional[Quantum] = None,
    **fields: Any,
) -> Task:
    """
    Apply an edit. Ledgers survive unless the edit invalidates them: a
    quantum mode change resets progress and renamed subtasks start clean.
    """
    changes: dict = dict(fields)
    if title is not None:
        changes["title"] = unique_title(tasks, title, exclude_id=task.id)
    if anchor is not None:
        key = date_key(anchor)
        if key is not None:
            changes["anchor_date"] = key
    if subtasks is not None:
        changes["subtasks"] = merge_subtasks(subtasks, task.subtasks)
    if quantum is not None:
        changes["quantum"] = merge_quantum(task.quantum, quantum)
    return replace(task, **changes)
