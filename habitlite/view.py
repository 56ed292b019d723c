from __future__ import annotations

import re
import unicodedata
from dataclasses import dataclass
from typing import Any, Iterable, List, Optional, Tuple

from .dates import date_key
from .ledger import is_subtask_completed, is_task_completed
from .models import QuantumProgress, Task
from .quantum import progress_label, progress_percent, read_progress
from .recurrence import occurs_on


ALL_TAGS = "all"
MAX_SORT_VALUE = 2**53 - 1
DEFAULT_TAG_LABEL = "Tag"

_NO_TAG_KEYS = {"none", "no_tag"}
_NO_TAG_LABELS = {"no tag"}


# -----------------------------
# Tags
# -----------------------------

def tag_token(text: str) -> str:
    """'Saúde & Bem-estar' -> 'saude_bem_estar'"""
    ascii_text = unicodedata.normalize("NFKD", text).encode("ascii", "ignore").decode("ascii")
    return re.sub(r"[^a-z0-9]+", "_", ascii_text.lower()).strip("_")


def _raw_tag(task: Task) -> Optional[str]:
    if not isinstance(task.tag, str):
        return None
    tag = task.tag.strip()
    if not tag or tag.lower() in _NO_TAG_KEYS:
        return None
    return tag


def _raw_label(task: Task) -> Optional[str]:
    if not isinstance(task.tag_label, str):
        return None
    label = task.tag_label.strip()
    if not label or label.lower() in _NO_TAG_LABELS:
        return None
    return label


def tag_key(task: Task) -> Optional[str]:
    """`tag` is used as-is when present; otherwise the `tag_label` token."""
    tag = _raw_tag(task)
    if tag is not None:
        return tag
    label = _raw_label(task)
    if label is not None:
        return tag_token(label) or None
    return None


def tag_label(task: Task) -> Optional[str]:
    """`tag_label` text when present; otherwise a title-cased rebuild of `tag`."""
    label = _raw_label(task)
    if label is not None:
        return label
    tag = _raw_tag(task)
    if tag is not None:
        return " ".join(part[:1].upper() + part[1:] for part in tag.split("_") if part)
    return None


@dataclass(frozen=True)
class TagOption:
    key: str
    label: str


def tag_options(tasks: Iterable[Task]) -> List[TagOption]:
    seen = set()
    out: List[TagOption] = []
    for t in tasks:
        key = tag_key(t)
        if not key or key in seen:
            continue
        seen.add(key)
        out.append(TagOption(key=key, label=tag_label(t) or DEFAULT_TAG_LABEL))
    return out


def resolve_tag_filter(selected: Optional[str], tasks: Iterable[Task]) -> str:
    """Fall back to 'all' when the stored filter matches none of the known tags."""
    if not selected or selected == ALL_TAGS:
        return ALL_TAGS
    options = tag_options(tasks)
    if options and not any(o.key == selected for o in options):
        return ALL_TAGS
    return selected


# -----------------------------
# Ordering
# -----------------------------

def time_sort_value(task: Task) -> int:
    if task.time is None:
        return MAX_SORT_VALUE
    minutes = task.time.sort_minutes()
    return MAX_SORT_VALUE if minutes is None else minutes


# -----------------------------
# Composition
# -----------------------------

@dataclass(frozen=True)
class TaskView:
    task: Task
    date_key: str
    completed: bool
    tag_key: Optional[str]
    tag_label: Optional[str]
    subtasks_done: Tuple[bool, ...]
    progress: Optional[QuantumProgress] = None
    progress_percent: float = 0.0
    progress_label: Optional[str] = None

    @property
    def total_subtasks(self) -> int:
        return len(self.subtasks_done)

    @property
    def completed_subtasks(self) -> int:
        return sum(1 for done in self.subtasks_done if done)


def annotate(task: Task, day: Any) -> Optional[TaskView]:
    key = date_key(day)
    if key is None:
        return None
    quantum = task.is_quantum()
    return TaskView(
        task=task,
        date_key=key,
        completed=is_task_completed(task, key),
        tag_key=tag_key(task),
        tag_label=tag_label(task),
        subtasks_done=tuple(is_subtask_completed(s, key) for s in task.subtasks),
        progress=read_progress(task, key) if quantum else None,
        progress_percent=progress_percent(task, key) if quantum else 0.0,
        progress_label=progress_label(task, key) if quantum else None,
    )


def visible_tasks(tasks: Iterable[Task], target: Any, tag_filter: Optional[str] = ALL_TAGS) -> List[TaskView]:
    """
    Tasks occurring on `target`, narrowed to `tag_filter` unless it is 'all',
    annotated for that day and sorted by start time (untimed last, stable).
    """
    tag_filter = tag_filter or ALL_TAGS
    key = date_key(target)
    if key is None:
        return []
    views: List[TaskView] = []
    for t in tasks:
        if not occurs_on(t, key):
            continue
        view = annotate(t, key)
        if view is None:
            continue
        if tag_filter != ALL_TAGS and view.tag_key != tag_filter:
            continue
        views.append(view)
    views.sort(key=lambda v: time_sort_value(v.task))
    return views
