from __future__ import annotations

from typing import Any, Dict, List, Optional

import pytest

from habitlite.models import (
    Quantum,
    QUANTUM_COUNT,
    QUANTUM_TIMER,
    RepeatRule,
    Subtask,
    Task,
    TaskTime,
    TASK_TYPE_QUANTUM,
    TimeOfDay,
)


def make_task(
    task_id: str = "t1",
    anchor: str = "2024-01-01",
    repeat: Optional[RepeatRule] = None,
    **fields: Any,
) -> Task:
    return Task(id=task_id, title=fields.pop("title", task_id), anchor_date=anchor, repeat=repeat, **fields)


def at(hour: int, minute: int, meridiem: str) -> TaskTime:
    return TaskTime(specified=True, mode="point", point=TimeOfDay(hour, minute, meridiem))


@pytest.fixture()
def daily_rule() -> RepeatRule:
    return RepeatRule(enabled=True, frequency="daily", interval=1)


@pytest.fixture()
def timer_task(daily_rule: RepeatRule) -> Task:
    return make_task(
        "timer",
        repeat=daily_rule,
        type=TASK_TYPE_QUANTUM,
        quantum=Quantum(mode=QUANTUM_TIMER, total_seconds=1800),
    )


@pytest.fixture()
def count_task() -> Task:
    return make_task(
        "count",
        type=TASK_TYPE_QUANTUM,
        quantum=Quantum(mode=QUANTUM_COUNT, count_value=10, count_unit="pages"),
    )


@pytest.fixture()
def checklist_task(daily_rule: RepeatRule) -> Task:
    return make_task(
        "check",
        repeat=daily_rule,
        subtasks=[
            Subtask(id="s1", title="stretch", completed_dates={"2024-01-02": True}),
            Subtask(id="s2", title="run", completed_dates={"2024-01-02": False}),
            Subtask(id="s3", title="shower", completed=True),
        ],
    )


@pytest.fixture()
def stored_payload() -> Dict[str, Any]:
    tasks: List[Dict[str, Any]] = [
        {
            "id": "a",
            "title": "Read",
            "dateKey": "2024-03-01",
            "completed": True,
            "color": "#ffd93d",
            "repeat": {"enabled": True, "frequency": "weekly", "interval": 1, "weekdays": ["fri"]},
            "type": "quantum",
            "quantum": {"mode": "count", "count": {"value": 20, "unit": "pages"}, "doneCount": 5},
            "subtasks": [{"id": "s1", "title": "Pick a book", "completed": True}],
            "tagLabel": "Saúde",
        },
        {"id": "b", "title": "Plain", "dateKey": "2024-03-02", "repeat": {"option": "off"}},
    ]
    return {
        "tasks": tasks,
        "settings": {"activeTab": "calendar", "selectedTagFilter": "saude"},
        "history": [
            {"id": "h1", "type": "task_created", "timestamp": "2024-03-01T08:00:00", "details": {"taskId": "a"}},
        ],
    }
